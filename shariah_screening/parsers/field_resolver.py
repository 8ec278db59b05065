"""Field Resolver: pick a canonical value out of a multi-generation raw row.

Usage:
    from shariah_screening.parsers.field_resolver import FieldKind, resolve

    resolve({"Ticker": " aapl "}, ["ticker", "Ticker"], FieldKind.STRING)  # "aapl"
    resolve({"auto_banned": ""}, ["auto_banned"], FieldKind.BOOLEAN, tri_state=True)  # None

Candidate names are tried strictly in order (newest schema first). The first
candidate holding a present, non-empty value is selected and coerced; if that
coercion fails the result is None. Resolution never raises.
"""

import json
import math
from enum import Enum
from typing import Any, Mapping, Optional, Sequence

_EMPTY_MARKERS = {"", "[]", "{}"}
_TRUE_VALUES = {"true", "1", "yes"}
_FALSE_VALUES = {"false", "0", "no"}


class FieldKind(str, Enum):
    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"
    JSON = "json"


def is_empty(value: Any) -> bool:
    """Absent, blank, or an empty JSON container ("[]", "{}", [], {})."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() in _EMPTY_MARKERS
    if isinstance(value, (list, dict, tuple)):
        return len(value) == 0
    return False


# =============================================================================
# Coercion
# =============================================================================


def to_bool(value: Any, tri_state: bool = False) -> Optional[bool]:
    """Coerce to bool.

    Two-state: only "true"/"1"/"yes" (any case) are True, everything else False.
    Tri-state: absent and unrecognised values are None, "false"/"0"/"no" False.
    """
    if isinstance(value, bool):
        return value
    if is_empty(value):
        return None if tri_state else False
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if not tri_state:
        return False
    if text in _FALSE_VALUES:
        return False
    return None


def to_number(value: Any) -> Optional[float]:
    """Coerce to a finite float; a trailing '%' is tolerated."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        if is_empty(value):
            return None
        text = str(value).strip().replace(",", "")
        if text.endswith("%"):
            text = text[:-1].strip()
        try:
            number = float(text)
        except ValueError:
            return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def to_string(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = value.strip() if isinstance(value, str) else str(value).strip()
    if text in _EMPTY_MARKERS:
        return None
    return text


def to_json(value: Any) -> Any:
    """Parse a JSON blob; unparseable strings come back as the raw (trimmed) string."""
    if isinstance(value, (list, dict)):
        return value if value else None
    if is_empty(value):
        return None
    if not isinstance(value, str):
        return value
    text = value.strip()
    try:
        parsed = json.loads(text)
    except (ValueError, RecursionError):
        return text
    if is_empty(parsed):
        return None
    return parsed


_COERCERS = {
    FieldKind.NUMBER: to_number,
    FieldKind.STRING: to_string,
    FieldKind.JSON: to_json,
}


def coerce(value: Any, kind: FieldKind, tri_state: bool = False) -> Any:
    if kind == FieldKind.BOOLEAN:
        return to_bool(value, tri_state=tri_state)
    return _COERCERS[kind](value)


# =============================================================================
# Resolution
# =============================================================================


def resolve_with_source(
    raw_fields: Mapping[str, Any],
    candidate_names: Sequence[str],
    kind: FieldKind,
    tri_state: bool = False,
) -> tuple[Any, Optional[str]]:
    """
    Resolve a canonical value and report which candidate supplied it.

    Args:
        raw_fields: Raw row (CSV row dict or store document)
        candidate_names: Source column names, newest schema first
        kind: Target primitive kind
        tri_state: For BOOLEAN, keep absence as None instead of False

    Returns:
        (value, source_name); source_name is None when no candidate was present
    """
    for name in candidate_names:
        raw = raw_fields.get(name)
        if is_empty(raw):
            continue
        return coerce(raw, kind, tri_state=tri_state), name

    if kind == FieldKind.BOOLEAN and not tri_state:
        return False, None
    return None, None


def resolve(
    raw_fields: Mapping[str, Any],
    candidate_names: Sequence[str],
    kind: FieldKind,
    tri_state: bool = False,
) -> Any:
    """Resolve a canonical value; see ``resolve_with_source``."""
    value, _ = resolve_with_source(raw_fields, candidate_names, kind, tri_state=tri_state)
    return value
