"""Methodology scorers and aggregators."""

from .auto_ban_scorer import AutoBanScorer
from .composite_scorer import CompositeScorer, business_activity_status
from .methodology_registry import MethodologyThresholds, get_thresholds, list_versions
from .numeric_ratio_scorer import NumericRatioScorer, normalize_ratio, to_percent
from .portfolio_aggregator import PortfolioAggregator, PortfolioError, classify_bucket
from .revenue_composition import RevenueCompositionAggregator, build_reference_map

__all__ = [
    "NumericRatioScorer",
    "normalize_ratio",
    "to_percent",
    "AutoBanScorer",
    "CompositeScorer",
    "business_activity_status",
    "RevenueCompositionAggregator",
    "build_reference_map",
    "PortfolioAggregator",
    "PortfolioError",
    "classify_bucket",
    "MethodologyThresholds",
    "get_thresholds",
    "list_versions",
]
