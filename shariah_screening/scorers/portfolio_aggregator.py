"""
Portfolio Aggregator.

Folds per-holding screening bundles into value-weighted summaries, one per
methodology. Each holding's value (quantity × price) lands in exactly one
bucket per methodology:

- no_data:                      methodology unavailable for the ticker
- compliant:                    COMPLIANT or PASS
- compliant_with_purification:  COMPLIANT_WITH_PURIFICATION (composite only)
- non_compliant:                everything else (FAIL, NON_COMPLIANT, DOUBTFUL_REVIEW)

so the four weights of every methodology add up to the portfolio value.
"""

import logging
from typing import Sequence

from ..constants import WEIGHT_TOLERANCE
from ..schemas.enums import Classification, Methodology, ScreenStatus
from ..schemas.portfolio import HoldingResult, MethodologySummary, PortfolioHolding, PortfolioResult
from ..schemas.results import ScreeningBundle

logger = logging.getLogger(__name__)

BUCKET_COMPLIANT = "compliant"
BUCKET_PURIFICATION = "compliant_with_purification"
BUCKET_NON_COMPLIANT = "non_compliant"
BUCKET_NO_DATA = "no_data"

_BUCKET_FIELDS = {
    BUCKET_COMPLIANT: "compliant_weight",
    BUCKET_PURIFICATION: "compliant_with_purification_weight",
    BUCKET_NON_COMPLIANT: "non_compliant_weight",
    BUCKET_NO_DATA: "no_data_weight",
}


class PortfolioError(ValueError):
    """Structurally impossible portfolio request (no holdings, misaligned inputs)."""


def classify_bucket(methodology: Methodology, bundle: ScreeningBundle) -> str:
    """Bucket one holding's screening result falls into for a methodology."""
    if methodology == Methodology.COMPOSITE:
        composite = bundle.composite
        if not composite.available:
            return BUCKET_NO_DATA
        if composite.classification == Classification.COMPLIANT:
            return BUCKET_COMPLIANT
        if composite.classification == Classification.COMPLIANT_WITH_PURIFICATION:
            return BUCKET_PURIFICATION
        return BUCKET_NON_COMPLIANT

    result = bundle.numeric if methodology == Methodology.NUMERIC else bundle.auto_ban
    if not result.available:
        return BUCKET_NO_DATA
    if result.status == ScreenStatus.PASS:
        return BUCKET_COMPLIANT
    return BUCKET_NON_COMPLIANT


class PortfolioAggregator:
    """Value-weighted methodology summaries for a set of holdings."""

    def aggregate(
        self,
        holdings: Sequence[PortfolioHolding],
        per_holding_results: Sequence[ScreeningBundle],
    ) -> PortfolioResult:
        """
        Aggregate holdings and their screening bundles (aligned by index).

        Raises:
            PortfolioError: no holdings, or the two sequences differ in length
        """
        if not holdings:
            raise PortfolioError("Portfolio must contain at least one holding")
        if len(holdings) != len(per_holding_results):
            raise PortfolioError(
                f"Got {len(holdings)} holdings but {len(per_holding_results)} screening results"
            )

        total_value = sum(holding.value for holding in holdings)
        weights = {m: dict.fromkeys(_BUCKET_FIELDS, 0.0) for m in Methodology}
        holding_results = []

        for holding, bundle in zip(holdings, per_holding_results):
            value = holding.value
            buckets = {}
            for methodology in Methodology:
                bucket = classify_bucket(methodology, bundle)
                weights[methodology][bucket] += value
                buckets[methodology] = bucket
            holding_results.append(HoldingResult(holding=holding, value=value, bundle=bundle, buckets=buckets))

        summary = {}
        for methodology, bucket_weights in weights.items():
            summary[methodology] = MethodologySummary(
                total_value=total_value,
                **{_BUCKET_FIELDS[bucket]: weight for bucket, weight in bucket_weights.items()},
            )
            drift = abs(summary[methodology].weight_sum - total_value)
            if drift > WEIGHT_TOLERANCE * max(1.0, total_value):
                logger.warning(f"{methodology.value} weights drift from total value by {drift}")

        return PortfolioResult(summary=summary, holdings=holding_results, total_value=total_value)
