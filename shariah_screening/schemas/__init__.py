"""Pydantic schemas for screening records, methodology results and portfolios."""

from .enums import (
    AUTO_BANNED_LABEL,
    NO_DATA_COLOR,
    NOT_AVAILABLE_LABEL,
    BusinessActivityStatus,
    Classification,
    Methodology,
    ScreenStatus,
)
from .portfolio import HoldingResult, MethodologySummary, PortfolioHolding, PortfolioResult
from .results import (
    AutoBanResult,
    CompositeResult,
    NumericResult,
    RatioResult,
    RevenueComposition,
    ScreeningBundle,
    SecurityInfo,
)
from .screening_record import (
    CompositionItem,
    EvidenceItem,
    HaramSegment,
    QAIssue,
    ReferenceItem,
    ScreeningRecord,
)

__all__ = [
    # Enums
    "Classification",
    "ScreenStatus",
    "BusinessActivityStatus",
    "Methodology",
    "AUTO_BANNED_LABEL",
    "NOT_AVAILABLE_LABEL",
    "NO_DATA_COLOR",
    # Record
    "ScreeningRecord",
    "HaramSegment",
    "CompositionItem",
    "ReferenceItem",
    "EvidenceItem",
    "QAIssue",
    # Results
    "RatioResult",
    "NumericResult",
    "AutoBanResult",
    "CompositeResult",
    "RevenueComposition",
    "SecurityInfo",
    "ScreeningBundle",
    # Portfolio
    "PortfolioHolding",
    "MethodologySummary",
    "HoldingResult",
    "PortfolioResult",
]
