"""Tests for value-weighted portfolio aggregation."""

import random

import pytest
from pydantic import ValidationError
from shariah_screening.db.repository import ScreeningRepository
from shariah_screening.schemas.enums import Classification, Methodology, ScreenStatus
from shariah_screening.schemas.portfolio import MethodologySummary, PortfolioHolding
from shariah_screening.schemas.screening_record import ScreeningRecord
from shariah_screening.scorers.portfolio_aggregator import (
    BUCKET_COMPLIANT,
    BUCKET_NO_DATA,
    BUCKET_NON_COMPLIANT,
    BUCKET_PURIFICATION,
    PortfolioAggregator,
    PortfolioError,
    classify_bucket,
)
from shariah_screening.services.screening_service import ScreeningService

# ─── Helpers ──────────────────────────────────────────────────────────────────

_SERVICE = ScreeningService(ScreeningRepository([]))


def _bundle(ticker="TEST", **overrides):
    """Screening bundle for a record built from overrides; ``missing=True`` → ticker not found."""
    if overrides.pop("missing", False):
        return _SERVICE.screen_record(None, ticker)
    defaults = dict(upsert_key=f"{ticker}-1", ticker=ticker)
    defaults.update(overrides)
    return _SERVICE.screen_record(ScreeningRecord(**defaults), ticker)


def _holding(ticker="TEST", quantity=1.0, price=100.0) -> PortfolioHolding:
    return PortfolioHolding(ticker=ticker, quantity=quantity, price=price)


# ─── Holdings ────────────────────────────────────────────────────────────────


class TestPortfolioHolding:
    def test_value(self):
        assert _holding(quantity=3, price=12.5).value == 37.5

    def test_ticker_normalized(self):
        assert _holding(ticker=" aapl ").ticker == "AAPL"

    @pytest.mark.parametrize("quantity,price", [(0, 10), (-1, 10), (1, 0), (1, -5)])
    def test_non_positive_rejected(self, quantity, price):
        with pytest.raises(ValidationError):
            PortfolioHolding(ticker="AAPL", quantity=quantity, price=price)

    def test_blank_ticker_rejected(self):
        with pytest.raises(ValidationError):
            PortfolioHolding(ticker="  ", quantity=1, price=1)


# ─── Buckets ─────────────────────────────────────────────────────────────────


class TestClassifyBucket:
    @pytest.mark.parametrize(
        "classification,bucket",
        [
            (Classification.COMPLIANT, BUCKET_COMPLIANT),
            (Classification.COMPLIANT_WITH_PURIFICATION, BUCKET_PURIFICATION),
            (Classification.NON_COMPLIANT, BUCKET_NON_COMPLIANT),
            (Classification.DOUBTFUL_REVIEW, BUCKET_NON_COMPLIANT),
        ],
    )
    def test_composite(self, classification, bucket):
        assert classify_bucket(Methodology.COMPOSITE, _bundle(final_classification=classification)) == bucket

    def test_numeric(self):
        passing = _bundle(debt_ratio_pct=1.0, cash_inv_ratio_pct=1.0, npin_ratio_pct=1.0)
        failing = _bundle(debt_ratio_pct=90.0)
        unknown = _bundle(debt_ratio_pct=1.0)
        assert classify_bucket(Methodology.NUMERIC, passing) == BUCKET_COMPLIANT
        assert classify_bucket(Methodology.NUMERIC, failing) == BUCKET_NON_COMPLIANT
        assert classify_bucket(Methodology.NUMERIC, unknown) == BUCKET_NO_DATA

    def test_auto_ban(self):
        assert classify_bucket(Methodology.AUTO_BAN, _bundle(auto_banned=False)) == BUCKET_COMPLIANT
        assert classify_bucket(Methodology.AUTO_BAN, _bundle(auto_banned=True)) == BUCKET_NON_COMPLIANT
        assert classify_bucket(Methodology.AUTO_BAN, _bundle()) == BUCKET_NO_DATA

    def test_missing_ticker_is_no_data_everywhere(self):
        bundle = _bundle(missing=True)
        for methodology in Methodology:
            assert classify_bucket(methodology, bundle) == BUCKET_NO_DATA


# ─── Aggregation ─────────────────────────────────────────────────────────────


class TestPortfolioAggregator:
    def test_weights(self):
        holdings = [_holding("A", 10, 100), _holding("B", 5, 200), _holding("C", 1, 500)]
        bundles = [
            _bundle("A", final_classification=Classification.COMPLIANT, auto_banned=False),
            _bundle("B", final_classification=Classification.COMPLIANT_WITH_PURIFICATION, auto_banned=True),
            _bundle("C", missing=True),
        ]
        result = PortfolioAggregator().aggregate(holdings, bundles)

        assert result.total_value == 2500.0
        composite = result.summary[Methodology.COMPOSITE]
        assert composite.compliant_weight == 1000.0
        assert composite.compliant_with_purification_weight == 1000.0
        assert composite.no_data_weight == 500.0
        assert composite.percentages()["compliant"] == pytest.approx(40.0)

        auto_ban = result.summary[Methodology.AUTO_BAN]
        assert (auto_ban.compliant_weight, auto_ban.non_compliant_weight, auto_ban.no_data_weight) == (
            1000.0,
            1000.0,
            500.0,
        )

        numeric = result.summary[Methodology.NUMERIC]
        assert numeric.no_data_weight == 2500.0

        assert [h.holding.ticker for h in result.holdings] == ["A", "B", "C"]
        assert result.holdings[1].buckets[Methodology.COMPOSITE] == BUCKET_PURIFICATION

    def test_weights_conserved_for_random_portfolios(self):
        """Bucket weights always add up to the portfolio value, per methodology."""
        rng = random.Random(2024)
        classifications = list(Classification) + [None]
        aggregator = PortfolioAggregator()

        for _ in range(50):
            holdings, bundles = [], []
            for i in range(rng.randint(1, 12)):
                ticker = f"T{i}"
                holdings.append(_holding(ticker, rng.uniform(0.1, 1000), rng.uniform(0.5, 500)))
                if rng.random() < 0.2:
                    bundles.append(_bundle(ticker, missing=True))
                    continue
                bundles.append(
                    _bundle(
                        ticker,
                        final_classification=rng.choice(classifications),
                        auto_banned=rng.choice([True, False, None]),
                        debt_ratio_pct=rng.choice([None, rng.uniform(0, 60)]),
                        cash_inv_ratio_pct=rng.uniform(0, 60),
                        npin_ratio_pct=rng.uniform(0, 10),
                        npin_status=rng.choice([None, ScreenStatus.PASS, ScreenStatus.FAIL]),
                    )
                )

            result = aggregator.aggregate(holdings, bundles)
            total = sum(h.value for h in holdings)
            assert result.total_value == pytest.approx(total)
            for summary in result.summary.values():
                assert summary.weight_sum == pytest.approx(total)
                assert sum(summary.percentages().values()) == pytest.approx(100.0)

    def test_empty_portfolio(self):
        with pytest.raises(PortfolioError):
            PortfolioAggregator().aggregate([], [])

    def test_misaligned_inputs(self):
        with pytest.raises(PortfolioError, match="1 holdings but 2"):
            PortfolioAggregator().aggregate([_holding()], [_bundle(), _bundle()])

    def test_portfolio_error_is_value_error(self):
        assert issubclass(PortfolioError, ValueError)


class TestMethodologySummary:
    def test_zero_value_percentages(self):
        assert MethodologySummary().percentages() == {
            "compliant": 0.0,
            "compliant_with_purification": 0.0,
            "non_compliant": 0.0,
            "no_data": 0.0,
        }
