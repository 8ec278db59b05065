"""Raw-row parsing: field resolution, record normalization, segment and evidence blobs."""

from .evidence_normalizer import normalize_evidence, normalize_qa_issues
from .field_resolver import FieldKind, resolve, resolve_with_source
from .field_table import FIELD_TABLE, FIELD_TABLE_VERSION, FieldSpec
from .record_normalizer import RecordNormalizer, normalize_record
from .segment_parser import parse_composition, parse_segments

__all__ = [
    "FieldKind",
    "resolve",
    "resolve_with_source",
    "FIELD_TABLE",
    "FIELD_TABLE_VERSION",
    "FieldSpec",
    "RecordNormalizer",
    "normalize_record",
    "normalize_evidence",
    "normalize_qa_issues",
    "parse_segments",
    "parse_composition",
]
