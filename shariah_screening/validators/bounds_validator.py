"""
Domain-specific numeric bounds validation for screening fields.

Screening sheets sometimes carry nonsensical numbers (negative ratios, a 250%
debt threshold, a segment whose lower bound exceeds its upper bound). This
module catches those without ever rejecting a record.

Usage:
    from shariah_screening.validators.bounds_validator import validate_bounds

    value = validate_bounds("debt_threshold_pct", 250.0)  # Returns None (out of bounds)
    value = validate_bounds("debt_threshold_pct", 33.0)   # Returns 33.0 (valid)

    anomalies = check_range_order("Alcohol", lower=5.0, point=3.0, upper=4.0)
    # ["Alcohol: point 3.00 below lower bound 5.00", ...]

Design:
    - Out-of-bounds values are set to None and logged as warnings
    - Bounds are inclusive on both ends
    - Fields not in FIELD_BOUNDS are passed through unchanged
    - Range-order and segment-sum anomalies are logged and returned, never enforced
"""

import logging
from typing import Any, Optional

logger = logging.getLogger(__name__)

_UNBOUNDED = float("inf")

# =============================================================================
# FIELD BOUNDS CONFIGURATION
# =============================================================================

# Bounds are (min, max) inclusive, in percent (0-100) space
FIELD_BOUNDS: dict[str, tuple[float, float]] = {
    # Balance-sheet ratios can legitimately exceed 100% (debt > market cap)
    "debt_ratio_pct": (0.0, _UNBOUNDED),
    "cash_inv_ratio_pct": (0.0, _UNBOUNDED),
    "npin_ratio_pct": (0.0, _UNBOUNDED),
    "zakatable_assets_ratio_pct": (0.0, _UNBOUNDED),

    # Thresholds are a share of a base, so never above 100
    "debt_threshold_pct": (0.0, 100.0),
    "cash_inv_threshold_pct": (0.0, 100.0),
    "npin_threshold_pct": (0.0, 100.0),

    "purification_pct_recommended": (0.0, 100.0),
    "halal_pct_point": (0.0, 100.0),

    # Clamped to 100 by the revenue aggregator, so only the floor is enforced here
    "haram_pct_point": (0.0, _UNBOUNDED),
    "haram_pct_lower": (0.0, _UNBOUNDED),
    "haram_pct_upper": (0.0, _UNBOUNDED),

    "qa_issue_count": (0, _UNBOUNDED),
}

# Aliases: map common variant field names to canonical bounds
FIELD_ALIASES: dict[str, str] = {
    "debt_ratio": "debt_ratio_pct",
    "cash_inv_ratio": "cash_inv_ratio_pct",
    "npin_ratio": "npin_ratio_pct",
    "purification_pct": "purification_pct_recommended",
}


# =============================================================================
# VALIDATION FUNCTIONS
# =============================================================================


def get_bounds(field_name: str) -> tuple[float, float] | None:
    """
    Get bounds for a field, resolving aliases.

    Args:
        field_name: Field name to look up

    Returns:
        (min, max) tuple if field has bounds defined, None otherwise
    """
    if field_name in FIELD_BOUNDS:
        return FIELD_BOUNDS[field_name]

    canonical = FIELD_ALIASES.get(field_name)
    if canonical:
        return FIELD_BOUNDS.get(canonical)

    return None


def validate_bounds(
    field_name: str,
    value: Any,
    ticker: str | None = None,
    log_warning: bool = True,
) -> Any:
    """
    Validate a single field value against domain-specific bounds.

    Args:
        field_name: Name of the field being validated
        value: The value to validate (can be None)
        ticker: Optional ticker for logging context
        log_warning: Whether to log a warning for out-of-bounds values

    Returns:
        The original value if within bounds or no bounds defined,
        None if value is out of bounds
    """
    if value is None:
        return None

    bounds = get_bounds(field_name)
    if bounds is None:
        return value

    min_val, max_val = bounds

    if value < min_val or value > max_val:
        if log_warning:
            context = f" for {ticker}" if ticker else ""
            logger.warning(
                f"Out-of-bounds value{context}: {field_name}={value} "
                f"(valid range: {min_val}-{max_val}). Setting to None."
            )
        return None

    return value


def validate_dict_bounds(
    data: dict[str, Any],
    ticker: str | None = None,
    log_warnings: bool = True,
) -> dict[str, Any]:
    """
    Validate all numeric fields in a dictionary against domain-specific bounds.

    Args:
        data: Dictionary with field values to validate
        ticker: Optional ticker for logging context
        log_warnings: Whether to log warnings for out-of-bounds values

    Returns:
        New dictionary with out-of-bounds values set to None
    """
    result = {}

    for key, value in data.items():
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            result[key] = validate_bounds(key, value, ticker=ticker, log_warning=log_warnings)
        else:
            result[key] = value

    return result


# =============================================================================
# RANGE CONSISTENCY (logged, never enforced)
# =============================================================================


def check_range_order(
    name: str,
    lower: Optional[float],
    point: Optional[float],
    upper: Optional[float],
    ticker: str | None = None,
) -> list[str]:
    """
    Check ``lower <= point <= upper`` for an estimate with a confidence range.

    Only the pairs that are both present are compared.

    Returns:
        Human-readable anomaly descriptions (empty when consistent)
    """
    anomalies = []
    if lower is not None and upper is not None and lower > upper:
        anomalies.append(f"{name}: lower bound {lower:.2f} above upper bound {upper:.2f}")
    if lower is not None and point is not None and point < lower:
        anomalies.append(f"{name}: point {point:.2f} below lower bound {lower:.2f}")
    if upper is not None and point is not None and point > upper:
        anomalies.append(f"{name}: point {point:.2f} above upper bound {upper:.2f}")

    if anomalies:
        context = f" for {ticker}" if ticker else ""
        for anomaly in anomalies:
            logger.warning(f"Range anomaly{context}: {anomaly}")
    return anomalies


def check_segment_sum(segment_total: float, ticker: str | None = None) -> Optional[str]:
    """Flag haram segments whose resolved percentages add up to more than 100."""
    if segment_total <= 100.0:
        return None
    anomaly = f"segment percentages sum to {segment_total:.2f}% (over 100%)"
    context = f" for {ticker}" if ticker else ""
    logger.warning(f"Range anomaly{context}: {anomaly}")
    return anomaly


# =============================================================================
# VALIDATION SUMMARY
# =============================================================================


def get_validation_summary(
    original: dict[str, Any],
    validated: dict[str, Any],
) -> dict[str, Any]:
    """
    Generate a summary of validation changes.

    Args:
        original: Original dictionary before validation
        validated: Dictionary after validation

    Returns:
        Summary dict with counts and list of nullified fields
    """
    nullified = []
    for key, orig_val in original.items():
        if orig_val is not None and validated.get(key) is None:
            nullified.append(
                {
                    "field": key,
                    "original_value": orig_val,
                    "bounds": get_bounds(key),
                }
            )

    return {
        "fields_checked": len(FIELD_BOUNDS),
        "values_nullified": len(nullified),
        "nullified_fields": nullified,
    }
