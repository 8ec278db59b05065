"""
Validators for the screening engine.

This module provides validation utilities for:
- Numeric bounds checking on normalized fields
- Range-order and segment-sum anomaly detection
"""

from .bounds_validator import (
    FIELD_BOUNDS,
    check_range_order,
    check_segment_sum,
    get_bounds,
    get_validation_summary,
    validate_bounds,
    validate_dict_bounds,
)

__all__ = [
    "FIELD_BOUNDS",
    "validate_bounds",
    "validate_dict_bounds",
    "get_bounds",
    "get_validation_summary",
    "check_range_order",
    "check_segment_sum",
]
