"""
Composite (Invesense) Evaluator.

The four-state verdict is authoritative from the record and is never
re-derived here. The scorer packages it for display:
- NON_COMPLIANT on an auto-banned security reads "Automatically Non-Compliant"
- purification required without a percentage displays "Required"
- DOUBTFUL_REVIEW always reads as needing board review (the stored flag is
  reported unchanged alongside)
- no classification means the methodology is unavailable
"""

from typing import Optional

from ..parsers.evidence_normalizer import normalize_evidence, normalize_qa_issues
from ..schemas.enums import (
    AUTO_BANNED_LABEL,
    NO_DATA_COLOR,
    NOT_AVAILABLE_LABEL,
    BusinessActivityStatus,
    Classification,
)
from ..schemas.results import CompositeResult
from ..schemas.screening_record import ScreeningRecord
from ..utils.ratios import format_percent

PURIFICATION_REQUIRED_LABEL = "Required"

_REVIEW_BUSINESS_STATUSES = {"CAUTION", "REVIEW"}


def business_activity_status(record: ScreeningRecord) -> BusinessActivityStatus:
    """Qualitative tile: FAIL beats REVIEW beats PASS."""
    status = (record.business_status or "").upper()
    if status == "FAIL" or record.llm_has_fail_flag:
        return BusinessActivityStatus.FAIL
    if status in _REVIEW_BUSINESS_STATUSES or record.llm_has_caution_flag:
        return BusinessActivityStatus.REVIEW
    return BusinessActivityStatus.PASS


class CompositeScorer:
    """Packages the composite verdict and the context shown next to it."""

    def evaluate(self, record: Optional[ScreeningRecord]) -> CompositeResult:
        if record is None:
            return CompositeResult()

        context = self._context(record)
        classification = record.final_classification
        if classification is None:
            return CompositeResult(
                label=NOT_AVAILABLE_LABEL,
                color=NO_DATA_COLOR,
                needs_board_review=record.needs_board_review,
                needs_board_review_flag=record.needs_board_review,
                **context,
            )

        auto_ban_dominant = classification == Classification.NON_COMPLIANT and record.auto_banned is True
        label = AUTO_BANNED_LABEL if auto_ban_dominant else classification.label

        return CompositeResult(
            classification=classification,
            label=label,
            color=classification.color,
            auto_ban_dominant=auto_ban_dominant,
            purification_required=record.purification_required,
            purification_pct=record.purification_pct_recommended,
            purification_display=self._purification_display(record),
            needs_board_review=record.needs_board_review or classification == Classification.DOUBTFUL_REVIEW,
            needs_board_review_flag=record.needs_board_review,
            available=True,
            **context,
        )

    @staticmethod
    def _purification_display(record: ScreeningRecord) -> Optional[str]:
        if record.purification_pct_recommended is not None:
            return format_percent(record.purification_pct_recommended)
        if record.purification_required:
            return PURIFICATION_REQUIRED_LABEL
        return None

    @staticmethod
    def _context(record: ScreeningRecord) -> dict:
        """Fields shown around the verdict, independent of availability."""
        return {
            "business_activity_status": business_activity_status(record),
            "evidence_count": len(normalize_evidence(record)),
            "debt_ratio_pct": record.debt_ratio_pct,
            "cash_inv_ratio_pct": record.cash_inv_ratio_pct,
            "npin_ratio_pct": record.npin_ratio_pct,
            "haram_pct": record.haram_pct_point,
            "key_drivers": list(record.key_drivers),
            "shariah_summary": record.shariah_summary,
            "notes_for_portfolio_manager": record.notes_for_portfolio_manager,
            "doubt_reason": record.doubt_reason,
            "qa_status": record.qa_status,
            "qa_issues": [issue.description for issue in normalize_qa_issues(record)],
            "memo_url": record.memo_url,
        }
