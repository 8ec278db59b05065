"""Tests for the numeric ratio methodology and ratio scale helpers."""

import random

import pytest
from shariah_screening.schemas.enums import ScreenStatus
from shariah_screening.schemas.screening_record import ScreeningRecord
from shariah_screening.scorers.numeric_ratio_scorer import (
    RATIO_NAMES,
    NumericRatioScorer,
    normalize_ratio,
    to_percent,
)
from shariah_screening.utils.ratios import format_percent

# ─── Helpers ──────────────────────────────────────────────────────────────────


def _base_record(**overrides) -> ScreeningRecord:
    """Build a ScreeningRecord with passing ratios by default, override any field."""
    defaults = dict(
        upsert_key="TEST-1",
        ticker="TEST",
        debt_ratio_pct=10.0,
        cash_inv_ratio_pct=5.0,
        npin_ratio_pct=1.0,
    )
    defaults.update(overrides)
    return ScreeningRecord(**defaults)


# ─── Ratio helpers ───────────────────────────────────────────────────────────


class TestNormalizeRatio:
    def test_percent_and_fraction_agree(self):
        assert normalize_ratio(45) == pytest.approx(0.45)
        assert normalize_ratio(0.45) == pytest.approx(0.45)

    def test_none(self):
        assert normalize_ratio(None) is None
        assert to_percent(None) is None

    def test_boundary_one(self):
        assert normalize_ratio(1) == 1

    def test_idempotent_over_percent_range(self):
        """normalize(normalize(x)) == normalize(x) for any 0-100 value."""
        rng = random.Random(42)
        for _ in range(500):
            x = rng.uniform(0, 100)
            once = normalize_ratio(x)
            assert normalize_ratio(once) == pytest.approx(once)
            assert 0 <= once <= 1

    def test_round_trip_to_percent(self):
        assert to_percent(normalize_ratio(45)) == pytest.approx(45.0)

    def test_format_percent(self):
        assert format_percent(12.346) == "12.35%"
        assert format_percent(None) == "N/A"
        assert format_percent(3, decimals=0) == "3%"


# ─── NumericRatioScorer ──────────────────────────────────────────────────────


class TestNumericRatioScorer:
    def test_all_ratios_pass(self):
        """10% debt, 5% cash, 1% NPIN against 33/33/5 → PASS."""
        result = NumericRatioScorer().evaluate(_base_record())
        assert result.status == ScreenStatus.PASS
        assert result.available is True
        assert result.fail_reason is None
        assert set(result.per_ratio) == set(RATIO_NAMES)
        assert all(r.status == ScreenStatus.PASS for r in result.per_ratio.values())

    def test_debt_over_threshold_fails(self):
        result = NumericRatioScorer().evaluate(_base_record(debt_ratio_pct=45.0))
        assert result.status == ScreenStatus.FAIL
        assert result.per_ratio["debt"].status == ScreenStatus.FAIL
        assert result.fail_reason == "Debt ratio 45.00% exceeds 33% threshold"

    def test_threshold_is_inclusive(self):
        result = NumericRatioScorer().evaluate(_base_record(debt_ratio_pct=33.0, npin_ratio_pct=5.0))
        assert result.status == ScreenStatus.PASS

    def test_strict_thresholds(self):
        result = NumericRatioScorer(strict_thresholds=True).evaluate(_base_record(debt_ratio_pct=33.0))
        assert result.status == ScreenStatus.FAIL

    def test_precomputed_fail_wins_over_value(self):
        result = NumericRatioScorer().evaluate(_base_record(debt_ratio_pct=10.0, debt_status=ScreenStatus.FAIL))
        assert result.status == ScreenStatus.FAIL
        assert result.per_ratio["debt"].precomputed is True
        assert result.fail_reason == "Debt ratio marked FAIL"

    def test_precomputed_pass_wins_over_value(self):
        result = NumericRatioScorer().evaluate(_base_record(debt_ratio_pct=50.0, debt_status=ScreenStatus.PASS))
        assert result.per_ratio["debt"].status == ScreenStatus.PASS
        assert result.status == ScreenStatus.PASS

    def test_missing_ratio_is_unknown(self):
        result = NumericRatioScorer().evaluate(_base_record(npin_ratio_pct=None))
        assert result.per_ratio["npin"].status == ScreenStatus.UNKNOWN
        assert result.per_ratio["npin"].display == "N/A"
        assert result.status == ScreenStatus.UNKNOWN
        assert result.available is False

    def test_any_fail_beats_unknown(self):
        result = NumericRatioScorer().evaluate(_base_record(debt_ratio_pct=80.0, npin_ratio_pct=None))
        assert result.status == ScreenStatus.FAIL
        assert result.available is True

    def test_carried_fail_reason(self):
        record = _base_record(debt_ratio_pct=80.0, numeric_fail_reason="Debt too high per sheet")
        assert NumericRatioScorer().evaluate(record).fail_reason == "Debt too high per sheet"

    def test_multiple_fail_reasons_joined(self):
        result = NumericRatioScorer().evaluate(_base_record(debt_ratio_pct=40.0, npin_ratio_pct=6.0))
        assert result.fail_reason == (
            "Debt ratio 40.00% exceeds 33% threshold; Non-permissible income ratio 6.00% exceeds 5% threshold"
        )

    def test_record_threshold_override(self):
        record = _base_record(debt_ratio_pct=35.0, debt_threshold_pct=40.0)
        result = NumericRatioScorer().evaluate(record)
        assert result.per_ratio["debt"].threshold_pct == 40.0
        assert result.status == ScreenStatus.PASS

    def test_methodology_version_thresholds(self):
        record = _base_record(debt_ratio_pct=31.0, methodology_version="AAOIFI")
        result = NumericRatioScorer().evaluate(record)
        assert result.per_ratio["debt"].threshold_pct == 30.0
        assert result.status == ScreenStatus.FAIL
        assert result.methodology_version == "AAOIFI"

    def test_no_record(self):
        result = NumericRatioScorer().evaluate(None)
        assert result.status == ScreenStatus.UNKNOWN
        assert result.available is False
        assert result.per_ratio == {}

    def test_displays(self):
        result = NumericRatioScorer().evaluate(_base_record(debt_ratio_pct=12.346))
        assert result.per_ratio["debt"].display == "12.35%"
        assert result.per_ratio["debt"].threshold_display == "≤ 33%"

    def test_random_values_against_thresholds(self):
        """Aggregate status always agrees with a direct threshold comparison."""
        rng = random.Random(7)
        scorer = NumericRatioScorer()
        for _ in range(200):
            debt, cash, npin = rng.uniform(0, 60), rng.uniform(0, 60), rng.uniform(0, 10)
            result = scorer.evaluate(_base_record(debt_ratio_pct=debt, cash_inv_ratio_pct=cash, npin_ratio_pct=npin))
            expected_pass = debt <= 33.0 and cash <= 33.0 and npin <= 5.0
            assert (result.status == ScreenStatus.PASS) == expected_pass
            assert result.available is True
