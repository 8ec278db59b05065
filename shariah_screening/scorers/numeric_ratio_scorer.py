"""
Numeric Ratio Evaluator.

Three balance-sheet / income ratios are compared with their thresholds:
- debt:      conventional debt / market cap            (default ≤ 33%)
- cash_inv:  conventional cash + investments / base    (default ≤ 33%)
- npin:      non-permissible income / total revenue    (default ≤ 5%)

Per ratio a precomputed PASS/FAIL on the record wins verbatim; otherwise the
value is compared with its threshold; with neither the ratio is UNKNOWN.
Aggregate: FAIL if any ratio fails, PASS only when all three pass.
"""

import logging
from typing import Optional

from ..schemas.enums import ScreenStatus
from ..schemas.results import NumericResult, RatioResult
from ..schemas.screening_record import ScreeningRecord
from ..utils.ratios import normalize_ratio, to_percent
from .methodology_registry import get_thresholds

logger = logging.getLogger(__name__)

__all__ = ["NumericRatioScorer", "RATIO_NAMES", "RATIO_LABELS", "normalize_ratio", "to_percent"]

RATIO_NAMES = ("debt", "cash_inv", "npin")

RATIO_LABELS = {
    "debt": "Debt ratio",
    "cash_inv": "Cash + investments ratio",
    "npin": "Non-permissible income ratio",
}


class NumericRatioScorer:
    """Evaluates the numeric ratio methodology for one record.

    Comparison is inclusive (``value <= threshold`` passes). Legacy paths that
    used a strict comparison can opt in with ``strict_thresholds=True``.
    """

    def __init__(self, strict_thresholds: bool = False):
        self.strict_thresholds = strict_thresholds

    def evaluate(self, record: Optional[ScreeningRecord]) -> NumericResult:
        if record is None:
            return NumericResult()

        thresholds = get_thresholds(record.methodology_version)
        per_ratio = {}
        for name in RATIO_NAMES:
            override = getattr(record, f"{name}_threshold_pct")
            threshold = override if override is not None else thresholds.for_ratio(name)
            per_ratio[name] = self._evaluate_ratio(record, name, threshold)

        status = self._aggregate([r.status for r in per_ratio.values()])
        fail_reason = self._fail_reason(record, per_ratio) if status == ScreenStatus.FAIL else None

        return NumericResult(
            status=status,
            per_ratio=per_ratio,
            available=status in (ScreenStatus.PASS, ScreenStatus.FAIL),
            fail_reason=fail_reason,
            methodology_version=record.methodology_version,
        )

    def passes(self, value: float, threshold: float) -> bool:
        if self.strict_thresholds:
            return value < threshold
        return value <= threshold

    def _evaluate_ratio(self, record: ScreeningRecord, name: str, threshold: float) -> RatioResult:
        value = getattr(record, f"{name}_ratio_pct")
        precomputed = getattr(record, f"{name}_status")

        if precomputed in (ScreenStatus.PASS, ScreenStatus.FAIL):
            status = precomputed
        elif value is not None:
            status = ScreenStatus.PASS if self.passes(value, threshold) else ScreenStatus.FAIL
        else:
            status = ScreenStatus.UNKNOWN

        return RatioResult(
            name=name,
            value_pct=value,
            threshold_pct=threshold,
            status=status,
            precomputed=precomputed is not None,
            formula=getattr(record, f"{name}_ratio_formula"),
        )

    @staticmethod
    def _aggregate(statuses: list[ScreenStatus]) -> ScreenStatus:
        if ScreenStatus.FAIL in statuses:
            return ScreenStatus.FAIL
        if all(s == ScreenStatus.PASS for s in statuses):
            return ScreenStatus.PASS
        return ScreenStatus.UNKNOWN

    @staticmethod
    def _fail_reason(record: ScreeningRecord, per_ratio: dict[str, RatioResult]) -> str:
        if record.numeric_fail_reason:
            return record.numeric_fail_reason
        reasons = []
        for name, result in per_ratio.items():
            if result.status != ScreenStatus.FAIL:
                continue
            if result.precomputed or result.value_pct is None:
                reasons.append(f"{RATIO_LABELS[name]} marked FAIL")
            else:
                reasons.append(
                    f"{RATIO_LABELS[name]} {result.value_pct:.2f}% exceeds {result.threshold_pct:g}% threshold"
                )
        return "; ".join(reasons)
