"""
ScreeningRecord Pydantic model: the canonical shape of one security's screening.

Raw rows arrive from at least two schema generations (snake_case v1 website
export and the PascalCase legacy sheets, plus columns re-emitted under
suffixed names). The record normalizer resolves them into this model, and
every scorer and aggregator consumes ScreeningRecord, never raw rows.
"""

import logging
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..constants import MEMO_DOC_URL_TEMPLATE
from ..validators.bounds_validator import check_range_order
from .enums import Classification, ScreenStatus

logger = logging.getLogger(__name__)


# ============================================================================
# Nested structures
# ============================================================================


class ReferenceItem(BaseModel):
    """Citation backing a haram segment estimate."""

    model_config = ConfigDict(frozen=True)

    id: Optional[str] = Field(None, description="Reference ID used by composition items")
    source_name: Optional[str] = Field(None, description="Publisher or document name")
    source_type: Optional[str] = Field(None, description="e.g. annual_report, 10_k, news")
    url: Optional[str] = Field(None, description="Link to the source")
    as_of: Optional[str] = Field(None, description="Date the figure refers to")
    what_it_supports: Optional[str] = Field(None, description="Which claim the source supports")

    @property
    def source_type_label(self) -> Optional[str]:
        """'annual_report' -> 'Annual Report'."""
        if not self.source_type:
            return None
        return self.source_type.replace("_", " ").title()


class CompositionItem(BaseModel):
    """Sub-item of a haram segment (e.g. one product line inside 'Alcohol')."""

    model_config = ConfigDict(frozen=True)

    item_name: Optional[str] = Field(None, description="Sub-item name")
    point: Optional[float] = Field(None, description="Point estimate, % of total revenue")
    why_haram: Optional[str] = Field(None, description="Rationale for non-compliance")
    reference_ids: List[str] = Field(default_factory=list, description="IDs into the segment references")


class HaramSegment(BaseModel):
    """A named non-compliant revenue component with its estimated share of revenue."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Segment name")
    description: Optional[str] = Field(None, description="Short description")
    point: Optional[float] = Field(None, description="Point estimate, % of total revenue")
    lower: Optional[float] = Field(None, description="Lower bound, % of total revenue")
    upper: Optional[float] = Field(None, description="Upper bound, % of total revenue")
    confidence: Optional[str] = Field(None, description="Confidence label (High/Medium/Low)")
    reasoning: Optional[str] = Field(None, description="Why this segment is non-compliant")
    limitations: Optional[str] = Field(None, description="Caveats on the estimate")
    composition: List[CompositionItem] = Field(default_factory=list, description="Nested sub-items")
    references: List[ReferenceItem] = Field(default_factory=list, description="Citation records")
    synthesized: bool = Field(False, description="True for the residual bucket added by the aggregator")

    @property
    def resolved_pct(self) -> float:
        """Displayed percentage: point, then upper, then lower, then 0."""
        for value in (self.point, self.upper, self.lower):
            if value is not None:
                return value
        return 0.0

    @property
    def range_display(self) -> Optional[str]:
        if self.lower is None or self.upper is None:
            return None
        return f"{self.lower:.2f}% – {self.upper:.2f}%"


class EvidenceItem(BaseModel):
    """One piece of qualitative evidence behind the business-activity screen."""

    model_config = ConfigDict(frozen=True)

    category: Optional[str] = None
    severity: Optional[str] = Field(None, description="FAIL / CAUTION / INFO")
    rationale: Optional[str] = None
    snippet: Optional[str] = None
    source: Optional[str] = None
    ref: Optional[str] = None


class QAIssue(BaseModel):
    """Staff-facing QA finding."""

    model_config = ConfigDict(frozen=True)

    description: str
    category: Optional[str] = None
    severity: Optional[str] = None


# ============================================================================
# Canonical record
# ============================================================================


class ScreeningRecord(BaseModel):
    """
    Canonical screening record, one per security per report date.

    Immutable once constructed. Percentages are 0-100 floats throughout.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    # ========================================================================
    # Identity
    # ========================================================================
    upsert_key: str = Field(..., min_length=1, description="Unique record key")
    ticker: str = Field(..., min_length=1, description="Upper-cased ticker symbol")
    company_name: Optional[str] = Field(None, description="Company name")
    report_date: Optional[str] = Field(None, description="Report date (ISO string as supplied)")
    methodology_version: Optional[str] = Field(None, description="Methodology version tag")
    security_type: Optional[str] = Field(None, description="Common stock, ADR, ETF, ...")
    sector: Optional[str] = Field(None, description="Sector")
    industry: Optional[str] = Field(None, description="Industry")

    # ========================================================================
    # Numeric ratios
    # ========================================================================
    debt_ratio_pct: Optional[float] = Field(None, ge=0, description="Conventional debt ratio (%)")
    cash_inv_ratio_pct: Optional[float] = Field(None, ge=0, description="Cash + investments ratio (%)")
    npin_ratio_pct: Optional[float] = Field(None, ge=0, description="Non-permissible income ratio (%)")

    debt_threshold_pct: Optional[float] = Field(None, description="Per-record debt threshold override")
    cash_inv_threshold_pct: Optional[float] = Field(None, description="Per-record cash+inv threshold override")
    npin_threshold_pct: Optional[float] = Field(None, description="Per-record NPIN threshold override")

    debt_status: Optional[ScreenStatus] = Field(None, description="Precomputed debt PASS/FAIL")
    cash_inv_status: Optional[ScreenStatus] = Field(None, description="Precomputed cash+inv PASS/FAIL")
    npin_status: Optional[ScreenStatus] = Field(None, description="Precomputed NPIN PASS/FAIL")

    debt_ratio_formula: Optional[str] = None
    cash_inv_ratio_formula: Optional[str] = None
    npin_ratio_formula: Optional[str] = None
    npin_numerator_formula: Optional[str] = None
    npin_adjustments_notes: Optional[str] = None
    numeric_fail_reason: Optional[str] = Field(None, description="Carried fail reason from numeric sheets")

    # ========================================================================
    # Qualitative flags
    # ========================================================================
    llm_has_fail_flag: bool = Field(False, description="LLM review raised a FAIL flag")
    llm_has_caution_flag: bool = Field(False, description="LLM review raised a CAUTION flag")
    business_status: str = Field("UNKNOWN", description="Business activity status (free-form)")
    llm_primary_rationale: Optional[str] = None

    # ========================================================================
    # Verdict
    # ========================================================================
    final_classification: Optional[Classification] = Field(None, description="Composite verdict")
    purification_required: bool = False
    purification_pct_recommended: Optional[float] = Field(None, description="Recommended purification (%)")
    needs_board_review: bool = Field(False, description="Stored board-review flag")
    shariah_summary: Optional[str] = None
    doubt_reason: Optional[str] = None
    notes_for_portfolio_manager: Optional[str] = None
    key_drivers: List[str] = Field(default_factory=list, description="Key verdict drivers")
    compliance_risk_level: Optional[str] = Field(None, description="Low / Medium / High")
    shariah_compliant: Optional[str] = Field(None, description="Legacy YES / NO / DOUBTFUL")

    # ========================================================================
    # Revenue composition
    # ========================================================================
    haram_pct_point: Optional[float] = Field(None, ge=0, description="Non-compliant revenue point estimate (%)")
    haram_pct_lower: Optional[float] = Field(None, ge=0)
    haram_pct_upper: Optional[float] = Field(None, ge=0)
    halal_pct_point: Optional[float] = Field(None, ge=0)
    haram_total_pct_display: Optional[str] = Field(None, description="Pre-formatted total override")
    haram_segments: List[HaramSegment] = Field(default_factory=list, description="Structured segment list")
    haram_segments_legacy: List[HaramSegment] = Field(
        default_factory=list, description="Segments parsed from the legacy JSON blob"
    )
    haram_composition: List[CompositionItem] = Field(default_factory=list, description="Record-level composition")
    haram_top_segments_label: Optional[str] = None
    haram_confidence: Optional[str] = None
    haram_limitations: Optional[str] = None
    haram_global_reasoning: Optional[str] = None

    # ========================================================================
    # Evidence
    # ========================================================================
    evidence_items: List[EvidenceItem] = Field(default_factory=list)
    evidence_category: List[Optional[str]] = Field(default_factory=list)
    evidence_severity: List[Optional[str]] = Field(default_factory=list)
    evidence_rationale: List[Optional[str]] = Field(default_factory=list)
    evidence_snippet: List[Optional[str]] = Field(default_factory=list)
    evidence_source: List[Optional[str]] = Field(default_factory=list)

    # ========================================================================
    # QA (staff-only)
    # ========================================================================
    qa_needs_review: bool = False
    qa_status: Optional[str] = None
    qa_issue_count: Optional[int] = Field(None, ge=0)
    qa_issues: List[QAIssue] = Field(default_factory=list, description="Structured QA issues")
    qa_issues_csv: Optional[str] = Field(None, description="Legacy comma-separated issues")
    qa_issues_text: Optional[str] = Field(None, description="Legacy JSON-or-CSV issues string")
    qa_summary_display: Optional[str] = None
    qa_category_summary: Optional[str] = None
    qa_reasons_summary: Optional[str] = None

    # ========================================================================
    # Auto-ban
    # ========================================================================
    auto_banned: Optional[bool] = Field(None, description="Precomputed ban decision; None when not screened")
    auto_banned_status: Optional[ScreenStatus] = None
    auto_banned_reason_clean: Optional[str] = None
    auto_banned_summary: Optional[str] = None

    # ========================================================================
    # Zakat
    # ========================================================================
    zakat_status: Optional[str] = Field(None, description="ZAKATABLE / NON_ZAKATABLE / MIXED / UNKNOWN")
    zakat_methodology: Optional[str] = None
    zakatable_assets_ratio_pct: Optional[float] = Field(None, ge=0)

    # ========================================================================
    # Memo
    # ========================================================================
    shariah_memo_markdown: Optional[str] = None
    memo_doc_url: Optional[str] = None
    memo_doc_id: Optional[str] = None

    # ========================================================================
    # Provenance
    # ========================================================================
    raw_field_sources: Dict[str, str] = Field(
        default_factory=dict, description="Canonical field -> source column that supplied it"
    )

    # ========================================================================
    # Calculated Fields
    # ========================================================================

    @property
    def memo_url(self) -> Optional[str]:
        """Explicit memo URL, else a Docs view URL from the doc id."""
        if self.memo_doc_url:
            return self.memo_doc_url
        if self.memo_doc_id:
            return MEMO_DOC_URL_TEMPLATE.format(doc_id=self.memo_doc_id)
        return None

    @property
    def has_ratio_data(self) -> bool:
        return any(
            v is not None
            for v in (
                self.debt_ratio_pct,
                self.cash_inv_ratio_pct,
                self.npin_ratio_pct,
                self.debt_status,
                self.cash_inv_status,
                self.npin_status,
            )
        )

    @model_validator(mode="after")
    def _cross_field_validation(self) -> "ScreeningRecord":
        """Log range anomalies (warnings only, never rejects data)."""
        check_range_order(
            "haram_pct",
            self.haram_pct_lower,
            self.haram_pct_point,
            self.haram_pct_upper,
            ticker=self.ticker,
        )
        if self.haram_pct_point is not None and self.halal_pct_point is not None:
            total = self.haram_pct_point + self.halal_pct_point
            if abs(total - 100) > 1.0:
                logger.warning(f"Haram + halal percentages sum to {total:.2f} (expected 100) for {self.ticker}")
        return self
