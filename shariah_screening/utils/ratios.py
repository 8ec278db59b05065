"""Ratio scale helpers (fraction vs percent) shared by the normalizer and scorers."""

from typing import Optional

from ..constants import NOT_AVAILABLE


def normalize_ratio(value: Optional[float]) -> Optional[float]:
    """
    Bring a ratio into fractional space: values above 1 are read as percents.

    ``normalize_ratio(45) == normalize_ratio(0.45) == 0.45``. Idempotent over
    the 0-100 percent range the source sheets use.
    """
    if value is None:
        return None
    if value > 1:
        return value / 100
    return value


def to_percent(fraction: Optional[float]) -> Optional[float]:
    if fraction is None:
        return None
    return fraction * 100


def format_percent(value: Optional[float], decimals: int = 2) -> str:
    """12.346 -> '12.35%'; None -> 'N/A'."""
    if value is None:
        return NOT_AVAILABLE
    return f"{value:.{decimals}f}%"
