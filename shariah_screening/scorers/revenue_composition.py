"""
Revenue Composition Aggregator.

Turns a record's haram segments into the ranked breakdown behind the
revenue table and chart:

1. Structured segments if any, else the legacy blob (never merged)
2. Per-segment percentage: point, then upper, then lower, then 0
3. Total non-compliant share: record point estimate, else 100 - halal share,
   else the segment sum; capped at 100
4. A synthesized "Other non-halal" segment covers any gap above epsilon
5. Stable descending sort by resolved percentage

Composition items cite segment references by id; the aggregated result carries
the id -> reference map so callers can resolve those citations.

Range anomalies (lower/point/upper out of order, segments over 100%) are
logged and reported on the result, never rejected.
"""

import logging
from typing import Optional

from ..constants import MAX_PCT, RESIDUAL_SEGMENT_EPSILON_PCT, RESIDUAL_SEGMENT_NAME
from ..schemas.results import RevenueComposition
from ..schemas.screening_record import HaramSegment, ReferenceItem, ScreeningRecord
from ..utils.ratios import format_percent
from ..validators.bounds_validator import check_range_order, check_segment_sum

logger = logging.getLogger(__name__)


def build_reference_map(segments: list[HaramSegment]) -> dict[str, ReferenceItem]:
    """Reference id -> reference, across all segments (later duplicates win)."""
    reference_map = {}
    for segment in segments:
        for reference in segment.references:
            if reference.id:
                reference_map[reference.id] = reference
    return reference_map


class RevenueCompositionAggregator:
    """Builds the display-ready revenue composition for one record."""

    def __init__(self, residual_epsilon: float = RESIDUAL_SEGMENT_EPSILON_PCT):
        self.residual_epsilon = residual_epsilon

    def aggregate(self, record: ScreeningRecord) -> RevenueComposition:
        segments = list(record.haram_segments or record.haram_segments_legacy)

        anomalies = []
        for segment in segments:
            anomalies.extend(
                check_range_order(segment.name, segment.lower, segment.point, segment.upper, ticker=record.ticker)
            )
        segment_sum = sum(segment.resolved_pct for segment in segments)
        sum_anomaly = check_segment_sum(segment_sum, ticker=record.ticker)
        if sum_anomaly:
            anomalies.append(sum_anomaly)

        total = self._total_haram_pct(record, segments, segment_sum)
        haram_pct = min(total, MAX_PCT) if total is not None else None
        halal_pct = max(0.0, MAX_PCT - haram_pct) if haram_pct is not None else None

        if haram_pct is not None:
            gap = haram_pct - segment_sum
            if gap > self.residual_epsilon:
                segments.append(
                    HaramSegment(
                        name=RESIDUAL_SEGMENT_NAME,
                        description="Non-compliant revenue not attributed to a named segment",
                        point=gap,
                        synthesized=True,
                    )
                )

        segments = sorted(segments, key=lambda s: s.resolved_pct, reverse=True)

        return RevenueComposition(
            segments=segments,
            haram_pct=haram_pct,
            halal_pct=halal_pct,
            display_total=self._display_total(record, haram_pct),
            has_estimate=haram_pct is not None,
            anomalies=anomalies,
            composition=list(record.haram_composition),
            references=build_reference_map(segments),
            top_segments_label=record.haram_top_segments_label,
            confidence=record.haram_confidence,
            limitations=record.haram_limitations,
            global_reasoning=record.haram_global_reasoning,
        )

    @staticmethod
    def _total_haram_pct(
        record: ScreeningRecord, segments: list[HaramSegment], segment_sum: float
    ) -> Optional[float]:
        if record.haram_pct_point is not None:
            return record.haram_pct_point
        if record.halal_pct_point is not None:
            return MAX_PCT - record.halal_pct_point
        if segments:
            return segment_sum
        return None

    @staticmethod
    def _display_total(record: ScreeningRecord, haram_pct: Optional[float]) -> Optional[str]:
        override = (record.haram_total_pct_display or "").strip()
        if override:
            return override
        if haram_pct is None:
            return None
        return format_percent(haram_pct)
