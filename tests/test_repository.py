"""Tests for the CSV record source and the screening repository."""

import pytest
from shariah_screening.db.csv_source import CsvRecordSource, dedupe_headers
from shariah_screening.db.repository import RecordFilters, ScreeningRepository
from shariah_screening.schemas.enums import Classification


def _keys(page) -> list[str]:
    return [record.upsert_key for record in page.records]


# ─── CSV source ──────────────────────────────────────────────────────────────


class TestCsvRecordSource:
    def test_dedupe_headers(self):
        assert dedupe_headers(["a", "b", "a", " a "]) == ["a", "b", "a_2", "a_3"]

    def test_rows_keyed_by_deduped_headers(self, dataset_csv):
        rows = list(CsvRecordSource(dataset_csv))
        assert len(rows) == 6
        assert "haram_composition_json_2" in rows[0]
        assert "Interest income" in rows[0]["haram_composition_json_2"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            list(CsvRecordSource(tmp_path / "nope.csv"))

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.csv"
        path.write_text("")
        assert list(CsvRecordSource(path)) == []

    def test_semicolon_delimiter(self, tmp_path):
        path = tmp_path / "semi.csv"
        path.write_text("upsert_key;ticker\nK1;abc\n")
        assert list(CsvRecordSource(path, delimiter=";")) == [{"upsert_key": "K1", "ticker": "abc"}]


# ─── Loading ─────────────────────────────────────────────────────────────────


class TestLoad:
    def test_load_report(self, repository):
        report = repository.load()
        assert report.total_rows == 6
        assert report.loaded == 4
        assert report.dropped_rows == 1
        assert report.duplicate_keys == 1

    def test_load_is_idempotent(self, repository):
        assert repository.load() is repository.load()

    def test_duplicate_key_last_row_wins(self, repository):
        record = repository.find_by_upsert_key("MSFT-2024")
        assert record.company_name == "Microsoft Corporation"
        assert record.needs_board_review is True

    def test_duplicate_header_second_copy_used(self, repository):
        record = repository.find_by_upsert_key("AAPL-2024")
        assert [item.item_name for item in record.haram_composition] == ["Interest income"]

    def test_missing_dataset(self, tmp_path):
        repository = ScreeningRepository.from_csv(tmp_path / "missing.csv")
        with pytest.raises(FileNotFoundError):
            repository.load()

    def test_in_memory_source(self, current_row):
        repository = ScreeningRepository([current_row], source_name="fixture")
        report = repository.load()
        assert report.source == "fixture"
        assert repository.find_by_ticker("AAPL").company_name == "Apple Inc."


# ─── Lookups ─────────────────────────────────────────────────────────────────


class TestLookups:
    def test_find_by_ticker_case_insensitive_latest(self, repository):
        record = repository.find_by_ticker(" aapl ")
        assert record.upsert_key == "AAPL-2024"
        assert record.report_date == "2024-09-30"

    def test_find_unknown_ticker(self, repository):
        assert repository.find_by_ticker("ZZZZ") is None
        assert repository.find_by_upsert_key("nope") is None

    def test_distinct_sector(self, repository):
        assert repository.list_distinct_values("sector") == ["Financials", "Technology"]

    def test_distinct_enum_values(self, repository):
        assert repository.list_distinct_values("final_classification") == [
            "COMPLIANT",
            "COMPLIANT_WITH_PURIFICATION",
            "DOUBTFUL_REVIEW",
            "NON_COMPLIANT",
        ]

    def test_distinct_unknown_field(self, repository):
        with pytest.raises(ValueError, match="Unknown screening record field"):
            repository.list_distinct_values("favourite_colour")


# ─── Listing ─────────────────────────────────────────────────────────────────


class TestListRecords:
    def test_no_filters(self, repository):
        page = repository.list_records()
        assert page.total == 4
        assert page.total_pages == 1

    def test_search(self, repository):
        assert _keys(repository.list_records(RecordFilters(search="micro"))) == ["MSFT-2024"]
        assert repository.list_records(RecordFilters(search="jpm")).total == 1

    def test_classification_filter_parses_variants(self, repository):
        page = repository.list_records(RecordFilters(final_classification="compliant"))
        assert _keys(page) == ["AAPL-2024"]
        page = repository.list_records(RecordFilters(final_classification="Non-Compliant"))
        assert _keys(page) == ["JPM-2024"]

    def test_unknown_classification_filter_rejected(self):
        repository = ScreeningRepository(
            [
                {"upsert_key": "AAA-1", "ticker": "AAA", "final_classification": "COMPLIANT"},
                {"upsert_key": "BBB-1", "ticker": "BBB"},
            ]
        )
        with pytest.raises(ValueError, match="Unknown classification filter"):
            repository.list_records(RecordFilters(final_classification="BOGUS"))
        assert _keys(repository.list_records(RecordFilters(final_classification="compliant"))) == ["AAA-1"]

    def test_all_disables_filter(self, repository):
        assert repository.list_records(RecordFilters(sector="all", final_classification="ALL")).total == 4

    def test_sector_case_insensitive(self, repository):
        assert repository.list_records(RecordFilters(sector="technology")).total == 3

    def test_auto_banned_yes_no(self, repository):
        assert _keys(repository.list_records(RecordFilters(auto_banned="YES"))) == ["JPM-2024"]
        # NO includes records never screened for auto-ban
        assert repository.list_records(RecordFilters(auto_banned="NO")).total == 3

    def test_board_review(self, repository):
        assert _keys(repository.list_records(RecordFilters(board_review_needed="yes"))) == ["MSFT-2024"]
        assert repository.list_records(RecordFilters(board_review_needed=False)).total == 3

    def test_zakatable_min(self, repository):
        assert _keys(repository.list_records(RecordFilters(zakatable_assets_min=25))) == ["MSFT-2024"]

    def test_sort_desc_missing_last(self, repository):
        page = repository.list_records(RecordFilters(sort_by="debt_ratio_pct", sort_order="desc"))
        assert _keys(page) == ["JPM-2024", "MSFT-2024", "AAPL-2024", "AAPL-2023"]

    def test_sort_asc_missing_last(self, repository):
        page = repository.list_records(RecordFilters(sort_by="debt_ratio_pct"))
        assert _keys(page) == ["AAPL-2024", "MSFT-2024", "JPM-2024", "AAPL-2023"]

    def test_paging(self, repository):
        filters = RecordFilters(sort_by="upsert_key")
        first = repository.list_records(filters, page=1, page_size=3)
        second = repository.list_records(filters, page=2, page_size=3)
        assert (first.total, first.total_pages) == (4, 2)
        assert _keys(first) == ["AAPL-2023", "AAPL-2024", "JPM-2024"]
        assert _keys(second) == ["MSFT-2024"]
        assert repository.list_records(filters, page=3, page_size=3).records == []

    @pytest.mark.parametrize("page,page_size", [(0, 10), (1, 0), (-1, 5)])
    def test_invalid_paging(self, repository, page, page_size):
        with pytest.raises(ValueError):
            repository.list_records(page=page, page_size=page_size)

    def test_unknown_sort_field(self, repository):
        with pytest.raises(ValueError, match="Unknown sort field"):
            repository.list_records(RecordFilters(sort_by="nope"))

    @pytest.mark.parametrize("field_name", ["raw_field_sources", "haram_segments", "key_drivers"])
    def test_collection_sort_field_rejected(self, repository, field_name):
        with pytest.raises(ValueError, match="Cannot sort on collection field"):
            repository.list_records(RecordFilters(sort_by=field_name))

    def test_classifications_normalized(self, repository):
        records = {r.upsert_key: r for r in repository.records}
        assert records["JPM-2024"].final_classification == Classification.NON_COMPLIANT
        assert records["JPM-2024"].auto_banned is True
        assert records["MSFT-2024"].auto_banned is None


class TestRowsWithoutIdentity:
    def test_rows_without_identity_all_dropped(self, make_dataset):
        path = make_dataset("bad.csv", headers=["ticker", "sector"], rows=[["AAPL", "Tech"]])
        repository = ScreeningRepository.from_csv(path)
        report = repository.load()
        assert (report.loaded, report.dropped_rows) == (0, 1)
        assert repository.records == []
