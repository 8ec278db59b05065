"""
Record Normalizer: raw row/document -> canonical ScreeningRecord.

Every canonical field is resolved through FIELD_TABLE (newest schema first),
nested JSON blobs are parsed into typed lists, legacy fractional ratio
columns are rescaled to percents and out-of-range numbers are nulled by the
bounds validator. Rows with no resolvable ``upsert_key`` or ``ticker`` are
rejected (None). Deterministic and free of I/O.
"""

import logging
from typing import Any, Mapping, Optional

from ..schemas.enums import Classification, ScreenStatus
from ..schemas.screening_record import ScreeningRecord
from ..utils.ratios import normalize_ratio, to_percent
from ..validators.bounds_validator import validate_dict_bounds
from .evidence_normalizer import parse_evidence_items, parse_qa_issues, parse_string_list
from .field_resolver import resolve_with_source
from .field_table import FIELD_TABLE, FieldSpec
from .segment_parser import parse_composition, parse_segments

logger = logging.getLogger(__name__)

_RATIO_PREFIXES = ("debt", "cash_inv", "npin")

_NUMERIC_FIELDS = (
    "debt_ratio_pct",
    "cash_inv_ratio_pct",
    "npin_ratio_pct",
    "debt_threshold_pct",
    "cash_inv_threshold_pct",
    "npin_threshold_pct",
    "purification_pct_recommended",
    "haram_pct_point",
    "haram_pct_lower",
    "haram_pct_upper",
    "halal_pct_point",
    "zakatable_assets_ratio_pct",
    "qa_issue_count",
)

_PLAIN_STRING_FIELDS = (
    "company_name",
    "report_date",
    "methodology_version",
    "security_type",
    "sector",
    "industry",
    "debt_ratio_formula",
    "cash_inv_ratio_formula",
    "npin_ratio_formula",
    "npin_numerator_formula",
    "npin_adjustments_notes",
    "numeric_fail_reason",
    "llm_primary_rationale",
    "shariah_summary",
    "doubt_reason",
    "notes_for_portfolio_manager",
    "compliance_risk_level",
    "shariah_compliant",
    "haram_total_pct_display",
    "haram_top_segments_label",
    "haram_confidence",
    "haram_limitations",
    "haram_global_reasoning",
    "qa_status",
    "qa_issues_csv",
    "qa_issues_text",
    "qa_summary_display",
    "qa_category_summary",
    "qa_reasons_summary",
    "auto_banned_reason_clean",
    "auto_banned_summary",
    "zakat_status",
    "zakat_methodology",
    "shariah_memo_markdown",
    "memo_doc_url",
    "memo_doc_id",
)

_BOOLEAN_FIELDS = (
    "llm_has_fail_flag",
    "llm_has_caution_flag",
    "purification_required",
    "needs_board_review",
    "qa_needs_review",
    "auto_banned",
)

_EVIDENCE_ARRAYS = (
    "evidence_category",
    "evidence_severity",
    "evidence_rationale",
    "evidence_snippet",
    "evidence_source",
)


def _as_string_list(value: Any) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        value = [value]
    return [str(item).strip() for item in value if item is not None and str(item).strip()]


class RecordNormalizer:
    """
    Build canonical ScreeningRecords from raw rows.

    Precedence rules live in the field table, not here:
    - website schema v1 (snake_case) before legacy sheets (PascalCase)
    - re-emitted ``*_2`` columns before the original name
    - a legacy fractional ratio (``Debt_Ratio = 0.45``) is rescaled to percent
    """

    def __init__(self, field_table: Optional[Mapping[str, FieldSpec]] = None):
        self.field_table = field_table if field_table is not None else FIELD_TABLE

    def resolve_fields(self, raw: Mapping[str, Any]) -> tuple[dict[str, Any], dict[str, str]]:
        """
        Resolve every canonical field.

        Returns:
            (values, sources): canonical name -> value, and canonical name ->
            source column for the fields some candidate supplied
        """
        values: dict[str, Any] = {}
        sources: dict[str, str] = {}
        for name, spec in self.field_table.items():
            value, source = resolve_with_source(raw, spec.candidates, spec.kind, tri_state=spec.tri_state)
            if source is not None and source in spec.fractional_sources:
                value = to_percent(normalize_ratio(value))
            values[name] = value
            if source is not None:
                sources[name] = source
        return values, sources

    def normalize(self, raw: Mapping[str, Any]) -> Optional[ScreeningRecord]:
        """
        Normalize one raw row.

        Args:
            raw: CSV row dict or store document

        Returns:
            ScreeningRecord, or None when upsert_key/ticker cannot be resolved
        """
        values, sources = self.resolve_fields(raw)

        upsert_key = values.get("upsert_key")
        ticker = values.get("ticker")
        if not upsert_key or not ticker:
            logger.debug(f"Rejecting row without identity (upsert_key={upsert_key!r}, ticker={ticker!r})")
            return None
        ticker = ticker.upper()

        numbers = validate_dict_bounds({name: values.get(name) for name in _NUMERIC_FIELDS}, ticker=ticker)
        if numbers["qa_issue_count"] is not None:
            numbers["qa_issue_count"] = int(numbers["qa_issue_count"])

        fields: dict[str, Any] = {
            "upsert_key": upsert_key,
            "ticker": ticker,
            **numbers,
            **{name: values.get(name) for name in _PLAIN_STRING_FIELDS},
            **{name: values.get(name) for name in _BOOLEAN_FIELDS},
        }

        for prefix in _RATIO_PREFIXES:
            fields[f"{prefix}_status"] = self._ratio_status(values, prefix)

        fields["business_status"] = (values.get("business_status") or "UNKNOWN").upper()
        fields["final_classification"] = self._classification(values.get("final_classification"), ticker)
        fields["auto_banned_status"] = ScreenStatus.parse(values.get("auto_banned_status"))
        fields["key_drivers"] = _as_string_list(values.get("key_drivers"))

        fields["haram_segments"] = parse_segments(values.get("haram_segments"))
        fields["haram_segments_legacy"] = parse_segments(values.get("haram_segments_legacy"))
        fields["haram_composition"] = parse_composition(values.get("haram_composition"))

        fields["evidence_items"] = parse_evidence_items(values.get("evidence_items"))
        for name in _EVIDENCE_ARRAYS:
            fields[name] = parse_string_list(values.get(name))

        fields["qa_issues"] = parse_qa_issues(values.get("qa_issues"))
        fields["raw_field_sources"] = sources

        return ScreeningRecord(**fields)

    @staticmethod
    def _ratio_status(values: dict[str, Any], prefix: str) -> Optional[ScreenStatus]:
        """Precomputed PASS/FAIL, else the legacy ``*_Within_Limit`` flag."""
        status = ScreenStatus.parse(values.get(f"{prefix}_status"))
        if status is not None:
            return status
        within_limit = values.get(f"{prefix}_within_limit")
        if within_limit is None:
            return None
        return ScreenStatus.PASS if within_limit else ScreenStatus.FAIL

    @staticmethod
    def _classification(value: Optional[str], ticker: str) -> Optional[Classification]:
        classification = Classification.parse(value)
        if value and classification is None:
            logger.warning(f"Unknown classification {value!r} for {ticker}; treating as unavailable")
        return classification


_default_normalizer = RecordNormalizer()


def normalize_record(raw: Mapping[str, Any]) -> Optional[ScreeningRecord]:
    """Normalize one raw row with the default field table."""
    return _default_normalizer.normalize(raw)
