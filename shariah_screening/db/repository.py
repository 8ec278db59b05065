"""Read-only screening record repository.

Wraps any iterable of raw rows (a CsvRecordSource, or documents from a store),
normalizes them once on first use and answers the lookups the dashboard and
the screening service need. Inject one per dataset; there is no global copy.
"""

import logging
import math
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional, Union, get_origin

from ..constants import DEFAULT_PAGE, DEFAULT_PAGE_SIZE
from ..parsers.record_normalizer import RecordNormalizer
from ..schemas.enums import Classification
from ..schemas.screening_record import ScreeningRecord
from .csv_source import CsvRecordSource

logger = logging.getLogger(__name__)

_DISABLED_FILTER_VALUES = {"", "all"}
_YES_VALUES = {"yes", "true", "1"}
_NO_VALUES = {"no", "false", "0"}


@dataclass
class DatasetLoadReport:
    """Outcome of one dataset load."""

    source: str
    total_rows: int = 0
    loaded: int = 0
    dropped_rows: int = 0
    duplicate_keys: int = 0


@dataclass
class RecordFilters:
    """Dashboard list filters; None or "all" disables a filter."""

    search: str | None = None
    final_classification: str | None = None
    sector: str | None = None
    industry: str | None = None
    risk_level: str | None = None
    shariah_compliant: str | None = None
    board_review_needed: str | bool | None = None
    auto_banned: str | bool | None = None
    zakat_status: str | None = None
    zakat_methodology: str | None = None
    zakatable_assets_min: float | None = None
    sort_by: str | None = None
    sort_order: str = "asc"


@dataclass
class RecordPage:
    records: list[ScreeningRecord] = field(default_factory=list)
    total: int = 0
    page: int = DEFAULT_PAGE
    page_size: int = DEFAULT_PAGE_SIZE
    total_pages: int = 0


def _active(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip().lower() not in _DISABLED_FILTER_VALUES
    return True


def _yes_no(value: Union[str, bool]) -> Optional[bool]:
    """YES/NO (or bool) filter value -> bool; unrecognised -> None."""
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _YES_VALUES:
        return True
    if text in _NO_VALUES:
        return False
    return None


def _same_text(left: Optional[str], right: str) -> bool:
    return left is not None and left.strip().lower() == right.strip().lower()


def _display_value(value: Any) -> Any:
    return value.value if hasattr(value, "value") else value


class ScreeningRepository:
    """Lookups over a normalized, read-only screening dataset."""

    def __init__(
        self,
        source: Iterable[Mapping[str, Any]],
        normalizer: Optional[RecordNormalizer] = None,
        source_name: Optional[str] = None,
    ):
        """
        Args:
            source: Raw rows; iterated once, on first use
            normalizer: Record normalizer (default field table if omitted)
            source_name: Label for logs and the load report
        """
        self._source = source
        self._normalizer = normalizer or RecordNormalizer()
        self.source_name = source_name or getattr(source, "name", "<memory>")
        self._lock = threading.Lock()
        self._records: Optional[list[ScreeningRecord]] = None
        self._by_key: dict[str, ScreeningRecord] = {}
        self._by_ticker: dict[str, list[ScreeningRecord]] = {}
        self.load_report: Optional[DatasetLoadReport] = None

    @classmethod
    def from_csv(cls, path: Union[str, Path], **kwargs) -> "ScreeningRepository":
        return cls(CsvRecordSource(path, **kwargs))

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self) -> DatasetLoadReport:
        """Normalize the source once; later calls return the first report."""
        with self._lock:
            if self.load_report is not None:
                return self.load_report

            report = DatasetLoadReport(source=self.source_name)
            by_key: dict[str, ScreeningRecord] = {}
            for raw in self._source:
                report.total_rows += 1
                record = self._normalizer.normalize(raw)
                if record is None:
                    report.dropped_rows += 1
                    continue
                if record.upsert_key in by_key:
                    report.duplicate_keys += 1
                by_key[record.upsert_key] = record

            by_ticker: dict[str, list[ScreeningRecord]] = {}
            for record in by_key.values():
                by_ticker.setdefault(record.ticker, []).append(record)

            report.loaded = len(by_key)
            self._by_key = by_key
            self._by_ticker = by_ticker
            self._records = list(by_key.values())
            self.load_report = report

        logger.info(
            f"Loaded {report.loaded} screening records from {report.source} "
            f"({report.dropped_rows} dropped, {report.duplicate_keys} duplicate keys)"
        )
        if report.dropped_rows:
            logger.warning(f"Dropped {report.dropped_rows} rows without ticker/upsert_key from {report.source}")
        return report

    @property
    def records(self) -> list[ScreeningRecord]:
        if self._records is None:
            self.load()
        return list(self._records)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def find_by_ticker(self, ticker: str) -> Optional[ScreeningRecord]:
        """Case-insensitive; the latest report_date wins when several exist."""
        if self._records is None:
            self.load()
        candidates = self._by_ticker.get((ticker or "").strip().upper(), [])
        latest = None
        for record in candidates:
            if latest is None or (record.report_date or "") >= (latest.report_date or ""):
                latest = record
        return latest

    def find_by_upsert_key(self, upsert_key: str) -> Optional[ScreeningRecord]:
        if self._records is None:
            self.load()
        return self._by_key.get(upsert_key)

    def list_distinct_values(self, field_name: str) -> list[str]:
        """
        Sorted unique non-empty values of a record field.

        Raises:
            ValueError: field_name is not a ScreeningRecord field
        """
        if field_name not in ScreeningRecord.model_fields:
            raise ValueError(f"Unknown screening record field: {field_name}")

        values = set()
        for record in self.records:
            value = _display_value(getattr(record, field_name))
            if value is None or isinstance(value, (list, dict)) or value == "":
                continue
            values.add(str(value))
        return sorted(values)

    def list_records(
        self,
        filters: Optional[RecordFilters] = None,
        page: int = DEFAULT_PAGE,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> RecordPage:
        """
        Filter, sort and page the dataset.

        Raises:
            ValueError: page or page_size below 1, an unknown classification filter,
                or an unknown or non-scalar sort field
        """
        if page < 1:
            raise ValueError(f"page must be >= 1, got {page}")
        if page_size < 1:
            raise ValueError(f"page_size must be >= 1, got {page_size}")

        filters = filters or RecordFilters()
        if _active(filters.final_classification) and Classification.parse(filters.final_classification) is None:
            raise ValueError(f"Unknown classification filter: {filters.final_classification}")

        matches = [record for record in self.records if self._matches(record, filters)]
        if filters.sort_by:
            matches = self._sorted(matches, filters.sort_by, filters.sort_order)

        total = len(matches)
        start = (page - 1) * page_size
        return RecordPage(
            records=matches[start : start + page_size],
            total=total,
            page=page,
            page_size=page_size,
            total_pages=math.ceil(total / page_size),
        )

    # ------------------------------------------------------------------
    # Filtering
    # ------------------------------------------------------------------

    @staticmethod
    def _matches(record: ScreeningRecord, filters: RecordFilters) -> bool:
        if _active(filters.search):
            needle = filters.search.strip().lower()
            if needle not in record.ticker.lower() and needle not in (record.company_name or "").lower():
                return False

        if _active(filters.final_classification):
            if record.final_classification != Classification.parse(filters.final_classification):
                return False

        exact_text = (
            (filters.sector, record.sector),
            (filters.industry, record.industry),
            (filters.risk_level, record.compliance_risk_level),
            (filters.shariah_compliant, record.shariah_compliant),
            (filters.zakat_status, record.zakat_status),
            (filters.zakat_methodology, record.zakat_methodology),
        )
        for wanted, actual in exact_text:
            if _active(wanted) and not _same_text(actual, wanted):
                return False

        if _active(filters.board_review_needed):
            wanted = _yes_no(filters.board_review_needed)
            if wanted is not None and record.needs_board_review != wanted:
                return False

        if _active(filters.auto_banned):
            wanted = _yes_no(filters.auto_banned)
            if wanted is True and record.auto_banned is not True:
                return False
            if wanted is False and record.auto_banned is True:
                return False

        if filters.zakatable_assets_min is not None:
            ratio = record.zakatable_assets_ratio_pct
            if ratio is None or ratio < filters.zakatable_assets_min:
                return False

        return True

    @staticmethod
    def _sorted(records: list[ScreeningRecord], sort_by: str, sort_order: str) -> list[ScreeningRecord]:
        """Sort on a record field; records missing the value always go last."""
        if sort_by not in ScreeningRecord.model_fields:
            raise ValueError(f"Unknown sort field: {sort_by}")
        if get_origin(ScreeningRecord.model_fields[sort_by].annotation) in (list, dict):
            raise ValueError(f"Cannot sort on collection field: {sort_by}")

        present = [r for r in records if _display_value(getattr(r, sort_by)) is not None]
        missing = [r for r in records if _display_value(getattr(r, sort_by)) is None]
        present.sort(
            key=lambda r: _display_value(getattr(r, sort_by)),
            reverse=(sort_order or "asc").lower() == "desc",
        )
        return present + missing
