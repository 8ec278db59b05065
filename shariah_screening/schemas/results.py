"""Result models produced by the methodology scorers and the screening service."""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from ..constants import NOT_AVAILABLE, TOP_SEGMENT_LIMIT
from .enums import NO_DATA_COLOR, NOT_AVAILABLE_LABEL, BusinessActivityStatus, Classification, ScreenStatus
from .screening_record import CompositionItem, EvidenceItem, HaramSegment, QAIssue, ReferenceItem

# ============================================================================
# Numeric ratios
# ============================================================================


class RatioResult(BaseModel):
    """Outcome of one balance-sheet / income ratio against its threshold."""

    name: str = Field(..., description="debt, cash_inv or npin")
    value_pct: Optional[float] = Field(None, description="Ratio value (%)")
    threshold_pct: float = Field(..., description="Threshold applied (%)")
    status: ScreenStatus = ScreenStatus.UNKNOWN
    precomputed: bool = Field(False, description="Status came from the record rather than a comparison")
    formula: Optional[str] = None

    @property
    def display(self) -> str:
        if self.value_pct is None:
            return NOT_AVAILABLE
        return f"{self.value_pct:.2f}%"

    @property
    def threshold_display(self) -> str:
        return f"≤ {self.threshold_pct:g}%"


class NumericResult(BaseModel):
    status: ScreenStatus = ScreenStatus.UNKNOWN
    per_ratio: Dict[str, RatioResult] = Field(default_factory=dict)
    available: bool = False
    fail_reason: Optional[str] = None
    methodology_version: Optional[str] = None


# ============================================================================
# Auto-ban
# ============================================================================


class AutoBanResult(BaseModel):
    status: Optional[ScreenStatus] = Field(None, description="PASS/FAIL, None when unavailable")
    reason: Optional[str] = None
    summary: Optional[str] = None
    industry: Optional[str] = None
    security_type: Optional[str] = None
    available: bool = False


# ============================================================================
# Composite (Invesense)
# ============================================================================


class CompositeResult(BaseModel):
    """Packaged composite verdict; the classification itself is read from the record."""

    classification: Optional[Classification] = None
    label: str = NOT_AVAILABLE_LABEL
    color: str = NO_DATA_COLOR
    auto_ban_dominant: bool = False
    purification_required: bool = False
    purification_pct: Optional[float] = None
    purification_display: Optional[str] = None
    needs_board_review: bool = Field(False, description="Display-level flag (stored flag OR doubtful)")
    needs_board_review_flag: bool = Field(False, description="Flag exactly as stored on the record")
    available: bool = False

    business_activity_status: Optional[BusinessActivityStatus] = None
    evidence_count: int = 0
    debt_ratio_pct: Optional[float] = None
    cash_inv_ratio_pct: Optional[float] = None
    npin_ratio_pct: Optional[float] = None
    haram_pct: Optional[float] = None
    key_drivers: List[str] = Field(default_factory=list)
    shariah_summary: Optional[str] = None
    notes_for_portfolio_manager: Optional[str] = None
    doubt_reason: Optional[str] = None
    qa_status: Optional[str] = None
    qa_issues: List[str] = Field(default_factory=list)
    memo_url: Optional[str] = None


# ============================================================================
# Revenue composition
# ============================================================================


class RevenueComposition(BaseModel):
    """Ranked non-compliant revenue segments and the residual compliant share."""

    segments: List[HaramSegment] = Field(default_factory=list, description="Sorted descending by resolved %")
    haram_pct: Optional[float] = None
    halal_pct: Optional[float] = None
    display_total: Optional[str] = None
    has_estimate: bool = False
    anomalies: List[str] = Field(default_factory=list, description="Logged range violations")

    composition: List[CompositionItem] = Field(default_factory=list)
    references: Dict[str, ReferenceItem] = Field(default_factory=dict, description="Segment references by id")
    top_segments_label: Optional[str] = None
    confidence: Optional[str] = None
    limitations: Optional[str] = None
    global_reasoning: Optional[str] = None

    def top_segments(self, limit: int = TOP_SEGMENT_LIMIT) -> List[HaramSegment]:
        return self.segments[:limit]

    def references_for(self, item: CompositionItem) -> List[ReferenceItem]:
        """References cited by a composition item; unknown ids are skipped."""
        return [self.references[ref_id] for ref_id in item.reference_ids if ref_id in self.references]

    @property
    def segment_total(self) -> float:
        return sum(segment.resolved_pct for segment in self.segments)


# ============================================================================
# Bundles
# ============================================================================


class SecurityInfo(BaseModel):
    ticker: str
    company_name: Optional[str] = None
    sector: Optional[str] = None
    industry: Optional[str] = None
    security_type: Optional[str] = None
    report_date: Optional[str] = None
    methodology_version: Optional[str] = None
    found: bool = False


class ScreeningBundle(BaseModel):
    """Everything the dashboard needs for one security."""

    security: SecurityInfo
    numeric: NumericResult
    auto_ban: AutoBanResult
    composite: CompositeResult
    revenue_composition: Optional[RevenueComposition] = None
    evidence: List[EvidenceItem] = Field(default_factory=list)
    qa_issues: List[QAIssue] = Field(default_factory=list)

    @property
    def found(self) -> bool:
        return self.security.found
