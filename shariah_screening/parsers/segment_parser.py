"""
Parse haram segment, composition and reference blobs into typed models.

Segment items come in two shapes:
- current: ``{"name", "point", "lower", "upper", "reasoning", ...}``
- legacy:  ``{"name", "haram_pct_of_total_revenue_point_estimate", ...,
  "global_reasoning"}``

Current keys win when both are present on the same item. Malformed blobs and
items yield nothing rather than raising.
"""

import logging
from typing import Any, Optional

from ..schemas.screening_record import CompositionItem, HaramSegment, ReferenceItem
from ..validators.bounds_validator import validate_bounds
from .field_resolver import FieldKind, resolve

logger = logging.getLogger(__name__)

UNNAMED_SEGMENT = "Unknown"

_SEGMENT_KEYS = {
    "name": ("name", "segment_name", "segment"),
    "description": ("description",),
    "point": ("point", "point_estimate", "haram_pct_of_total_revenue_point_estimate"),
    "lower": ("lower", "lower_bound", "haram_pct_of_total_revenue_lower"),
    "upper": ("upper", "upper_bound", "haram_pct_of_total_revenue_upper"),
    "confidence": ("confidence",),
    "reasoning": ("reasoning", "global_reasoning"),
    "limitations": ("limitations",),
}

_COMPOSITION_KEYS = {
    "item_name": ("item_name", "name"),
    "point": ("haram_pct_of_total_revenue_point_estimate", "point"),
    "why_haram": ("why_haram", "reasoning"),
}

_REFERENCE_FIELDS = ("source_name", "source_type", "url", "as_of", "what_it_supports")


def _as_items(value: Any, what: str) -> list:
    """Coerce a parsed blob into a list of items; opaque strings yield nothing."""
    if value is None:
        return []
    if isinstance(value, dict):
        return [value]
    if isinstance(value, list):
        return value
    logger.debug(f"Ignoring unparseable {what} blob: {str(value)[:80]!r}")
    return []


def _pct(item: dict, keys: tuple[str, ...], field_name: str) -> Optional[float]:
    return validate_bounds(field_name, resolve(item, keys, FieldKind.NUMBER))


def parse_references(value: Any) -> list[ReferenceItem]:
    references = []
    for item in _as_items(value, "reference"):
        if not isinstance(item, dict):
            continue
        references.append(
            ReferenceItem(
                id=resolve(item, ("id", "ref_id"), FieldKind.STRING),
                **{name: resolve(item, (name,), FieldKind.STRING) for name in _REFERENCE_FIELDS},
            )
        )
    return references


def _reference_ids(item: dict) -> list[str]:
    raw = resolve(item, ("reference_ids", "refs"), FieldKind.JSON)
    if raw is None:
        return []
    if isinstance(raw, str):
        raw = raw.split(",")
    if not isinstance(raw, list):
        raw = [raw]
    return [str(ref).strip() for ref in raw if ref is not None and str(ref).strip()]


def parse_composition(value: Any) -> list[CompositionItem]:
    """Parse composition sub-items (record-level or nested in a segment)."""
    items = []
    for item in _as_items(value, "composition"):
        if not isinstance(item, dict):
            continue
        items.append(
            CompositionItem(
                item_name=resolve(item, _COMPOSITION_KEYS["item_name"], FieldKind.STRING),
                point=_pct(item, _COMPOSITION_KEYS["point"], "haram_pct_point"),
                why_haram=resolve(item, _COMPOSITION_KEYS["why_haram"], FieldKind.STRING),
                reference_ids=_reference_ids(item),
            )
        )
    return items


def parse_segment(item: Any) -> Optional[HaramSegment]:
    if isinstance(item, str):
        name = item.strip()
        return HaramSegment(name=name) if name else None
    if not isinstance(item, dict):
        return None

    return HaramSegment(
        name=resolve(item, _SEGMENT_KEYS["name"], FieldKind.STRING) or UNNAMED_SEGMENT,
        description=resolve(item, _SEGMENT_KEYS["description"], FieldKind.STRING),
        point=_pct(item, _SEGMENT_KEYS["point"], "haram_pct_point"),
        lower=_pct(item, _SEGMENT_KEYS["lower"], "haram_pct_lower"),
        upper=_pct(item, _SEGMENT_KEYS["upper"], "haram_pct_upper"),
        confidence=resolve(item, _SEGMENT_KEYS["confidence"], FieldKind.STRING),
        reasoning=resolve(item, _SEGMENT_KEYS["reasoning"], FieldKind.STRING),
        limitations=resolve(item, _SEGMENT_KEYS["limitations"], FieldKind.STRING),
        composition=parse_composition(resolve(item, ("composition",), FieldKind.JSON)),
        references=parse_references(resolve(item, ("references",), FieldKind.JSON)),
    )


def parse_segments(value: Any) -> list[HaramSegment]:
    """Parse a segment list (already JSON-decoded) into HaramSegments, input order kept."""
    segments = []
    for item in _as_items(value, "segment"):
        segment = parse_segment(item)
        if segment is not None:
            segments.append(segment)
    return segments
