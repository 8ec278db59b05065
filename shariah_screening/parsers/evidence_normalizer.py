"""
Evidence and QA-issue normalization.

Both concerns have several legacy representations. Each is handled by an
ordered tuple of source formats; the first format that yields a non-empty
list wins and sources are never concatenated.

Evidence:
    1. structured list (``evidence_items`` / ``evidence_items_json``)
    2. five parallel arrays zipped by index

QA issues:
    1. structured list (``qa_issues_json`` / ``QA_Issues_Parsed``)
    2. comma-separated string (``QA_Issues_CSV``)
    3. JSON-or-CSV string (``QA_Issues``)
"""

import logging
from typing import Any, Callable, Optional

from ..schemas.screening_record import EvidenceItem, QAIssue, ScreeningRecord
from .field_resolver import FieldKind, resolve, to_json, to_string

logger = logging.getLogger(__name__)

EVIDENCE_FIELDS = ("category", "severity", "rationale", "snippet", "source", "ref")

_QA_DESCRIPTION_KEYS = ("description", "issue", "message", "reason")


# =============================================================================
# Raw blob parsing (used by the record normalizer)
# =============================================================================


def parse_string_list(value: Any) -> list[Optional[str]]:
    """Parse one parallel evidence array; blank entries become None, positions are kept."""
    if value is None:
        return []
    if not isinstance(value, list):
        return [to_string(value)]
    return [to_string(entry) for entry in value]


def parse_evidence_items(value: Any) -> list[EvidenceItem]:
    if value is None:
        return []
    if isinstance(value, dict):
        value = [value]
    if not isinstance(value, list):
        logger.debug("Ignoring non-list evidence blob")
        return []

    items = []
    for entry in value:
        if isinstance(entry, dict):
            items.append(EvidenceItem(**{name: resolve(entry, (name,), FieldKind.STRING) for name in EVIDENCE_FIELDS}))
        elif isinstance(entry, str) and entry.strip():
            items.append(EvidenceItem(rationale=entry.strip()))
    return items


def _qa_issue_from(entry: Any) -> Optional[QAIssue]:
    if isinstance(entry, str):
        text = entry.strip()
        return QAIssue(description=text) if text else None
    if not isinstance(entry, dict):
        return None
    category = resolve(entry, ("category",), FieldKind.STRING)
    description = resolve(entry, _QA_DESCRIPTION_KEYS, FieldKind.STRING) or category
    if description is None:
        return None
    return QAIssue(
        description=description,
        category=category,
        severity=resolve(entry, ("severity",), FieldKind.STRING),
    )


def parse_qa_issues(value: Any) -> list[QAIssue]:
    """Parse a structured QA list; plain strings are wrapped as ``{description}``."""
    if value is None:
        return []
    if isinstance(value, (str, dict)):
        value = [value]
    if not isinstance(value, list):
        return []
    issues = []
    for entry in value:
        issue = _qa_issue_from(entry)
        if issue is not None:
            issues.append(issue)
    return issues


def split_csv_issues(text: Optional[str]) -> list[QAIssue]:
    """'a, b, c' -> three issues; empty pieces are dropped."""
    if not text:
        return []
    return [QAIssue(description=piece.strip()) for piece in text.split(",") if piece.strip()]


# =============================================================================
# Evidence
# =============================================================================


def _evidence_from_structured(record: ScreeningRecord) -> list[EvidenceItem]:
    return list(record.evidence_items)


def _evidence_from_parallel_arrays(record: ScreeningRecord) -> list[EvidenceItem]:
    columns = {
        "category": record.evidence_category,
        "severity": record.evidence_severity,
        "rationale": record.evidence_rationale,
        "snippet": record.evidence_snippet,
        "source": record.evidence_source,
    }
    length = max(len(values) for values in columns.values())
    return [
        EvidenceItem(**{name: values[i] if i < len(values) else None for name, values in columns.items()})
        for i in range(length)
    ]


EVIDENCE_SOURCES: tuple[tuple[str, Callable[[ScreeningRecord], list[EvidenceItem]]], ...] = (
    ("structured", _evidence_from_structured),
    ("parallel_arrays", _evidence_from_parallel_arrays),
)


def normalize_evidence(record: ScreeningRecord) -> list[EvidenceItem]:
    """Canonical evidence list for a record (first non-empty source wins)."""
    for source_name, source in EVIDENCE_SOURCES:
        items = source(record)
        if items:
            logger.debug(f"Evidence for {record.ticker} from {source_name}: {len(items)} items")
            return items
    return []


# =============================================================================
# QA issues
# =============================================================================


def _qa_from_structured(record: ScreeningRecord) -> list[QAIssue]:
    return list(record.qa_issues)


def _qa_from_csv(record: ScreeningRecord) -> list[QAIssue]:
    return split_csv_issues(record.qa_issues_csv)


def _qa_from_text(record: ScreeningRecord) -> list[QAIssue]:
    text = record.qa_issues_text
    if not text:
        return []
    parsed = to_json(text)
    if isinstance(parsed, (list, dict)):
        issues = parse_qa_issues(parsed)
        if issues:
            return issues
    if isinstance(parsed, str):
        # a JSON string literal, or the raw text when it is not JSON at all
        return split_csv_issues(parsed)
    return split_csv_issues(text)


QA_ISSUE_SOURCES: tuple[tuple[str, Callable[[ScreeningRecord], list[QAIssue]]], ...] = (
    ("structured", _qa_from_structured),
    ("csv", _qa_from_csv),
    ("json_text", _qa_from_text),
)


def normalize_qa_issues(record: ScreeningRecord) -> list[QAIssue]:
    """Canonical QA issue list for a record (first non-empty source wins)."""
    for source_name, source in QA_ISSUE_SOURCES:
        issues = source(record)
        if issues:
            logger.debug(f"QA issues for {record.ticker} from {source_name}: {len(issues)}")
            return issues
    return []
