"""
Versioned field resolution table.

Maps every canonical ScreeningRecord field to its ordered source-column
candidates (newest schema generation first) and target kind. Two generations
are covered:

- website schema v1 (snake_case, e.g. ``debt_ratio_pct``)
- legacy client-facing / numeric-only sheets (PascalCase, e.g. ``Debt_Ratio``)

Columns re-emitted under a suffixed name by an upstream header collision
(``haram_composition_json_2``) are listed ahead of the original name.

Bump FIELD_TABLE_VERSION whenever candidate order or membership changes.
"""

from dataclasses import dataclass, field

from .field_resolver import FieldKind

FIELD_TABLE_VERSION = "2025.2"


@dataclass(frozen=True)
class FieldSpec:
    """Resolution rule for one canonical field."""

    candidates: tuple[str, ...]
    kind: FieldKind
    tri_state: bool = False
    # Legacy columns that may hold fractions (0.45) instead of percents (45)
    fractional_sources: frozenset[str] = field(default_factory=frozenset)


def _s(*names: str) -> FieldSpec:
    return FieldSpec(names, FieldKind.STRING)


def _n(*names: str, fractional: tuple[str, ...] = ()) -> FieldSpec:
    return FieldSpec(names, FieldKind.NUMBER, fractional_sources=frozenset(fractional))


def _b(*names: str, tri_state: bool = False) -> FieldSpec:
    return FieldSpec(names, FieldKind.BOOLEAN, tri_state=tri_state)


def _j(*names: str) -> FieldSpec:
    return FieldSpec(names, FieldKind.JSON)


FIELD_TABLE: dict[str, FieldSpec] = {
    # Identity
    "upsert_key": _s("upsert_key", "Upsert_Key"),
    "ticker": _s("ticker", "Ticker"),
    "company_name": _s("company_name", "Company"),
    "report_date": _s("report_date", "Report_Date"),
    "methodology_version": _s("methodology_version", "methodology", "Methodology"),
    "security_type": _s("security_type", "Security_Type", "typeOfSecurity"),
    "sector": _s("sector", "Sector"),
    "industry": _s("industry", "Industry"),

    # Numeric ratios
    "debt_ratio_pct": _n("debt_ratio_pct", "Debt_Ratio_Percent", "Debt_Ratio", fractional=("Debt_Ratio",)),
    "cash_inv_ratio_pct": _n(
        "cash_inv_ratio_pct", "Cash_Investment_Ratio_Percent", "CashInv_Ratio", fractional=("CashInv_Ratio",)
    ),
    "npin_ratio_pct": _n(
        "npin_ratio_pct", "Non_Permissible_Income_Percent", "NPIN_Ratio", fractional=("NPIN_Ratio",)
    ),
    "debt_threshold_pct": _n("debt_threshold_pct", "Debt_Ratio_Threshold_Pct"),
    "cash_inv_threshold_pct": _n("cash_inv_threshold_pct", "CashInv_Ratio_Threshold_Pct"),
    "npin_threshold_pct": _n("npin_threshold_pct", "NPIN_Ratio_Threshold_Pct"),
    "debt_status": _s("debt_status"),
    "cash_inv_status": _s("cash_inv_status"),
    "npin_status": _s("npin_status"),
    "debt_within_limit": _b("Debt_Within_Limit", tri_state=True),
    "cash_inv_within_limit": _b("CashInv_Within_Limit", tri_state=True),
    "npin_within_limit": _b("NPIN_Within_Limit", tri_state=True),
    "debt_ratio_formula": _s("debt_ratio_formula", "Debt_Ratio_Formula"),
    "cash_inv_ratio_formula": _s("cash_inv_ratio_formula", "CashInv_Ratio_Formula"),
    "npin_ratio_formula": _s("npin_ratio_formula", "NPIN_Ratio_Formula"),
    "npin_numerator_formula": _s("npin_numerator_formula", "NPIN_Numerator_Formula"),
    "npin_adjustments_notes": _s("npin_adjustments_notes", "NPIN_Adjustments_Notes"),
    "numeric_fail_reason": _s("numeric_fail_reason", "Numeric_Fail_Reason"),

    # Qualitative flags
    "llm_has_fail_flag": _b("llm_has_fail_flag"),
    "llm_has_caution_flag": _b("llm_has_caution_flag"),
    "business_status": _s("business_status", "Qualitative_Screening_Result"),
    "llm_primary_rationale": _s("llm_primary_rationale"),

    # Verdict
    "final_classification": _s("final_classification", "Final_Verdict", "Classification"),
    "purification_required": _b("purification_required", "Purification_Required"),
    "purification_pct_recommended": _n("purification_pct_recommended", "Purification_Percentage"),
    "needs_board_review": _b("needs_board_review", "Board_Review_Needed", "Board_Review_Required"),
    "shariah_summary": _s("shariah_summary", "Key_Findings"),
    "doubt_reason": _s("doubt_reason", "Doubt_Reason"),
    "notes_for_portfolio_manager": _s("notes_for_portfolio_manager", "Portfolio_Manager_Notes"),
    "key_drivers": _j("key_drivers_json", "key_drivers", "Key_Risk_Factors"),
    "compliance_risk_level": _s("compliance_risk_level", "Compliance_Risk_Level"),
    "shariah_compliant": _s("shariah_compliant", "Shariah_Compliant"),

    # Revenue composition
    "haram_pct_point": _n(
        "haram_pct_point", "Non_Compliant_Revenue_Point_Estimate", "haram_revenue_pct_for_screening"
    ),
    "haram_pct_lower": _n("haram_pct_lower"),
    "haram_pct_upper": _n("haram_pct_upper"),
    "halal_pct_point": _n("halal_pct_point"),
    "haram_total_pct_display": _s("haram_total_pct_display"),
    "haram_segments": _j("haram_segments", "haram_segments_json"),
    "haram_segments_legacy": _j("non_compliant_revenue_pct_est_json"),
    "haram_composition": _j("haram_composition_json_2", "haram_composition_json"),
    "haram_top_segments_label": _s("haram_top_segments_label", "haram_top_segments_names"),
    "haram_confidence": _s("haram_confidence"),
    "haram_limitations": _s("haram_limitations"),
    "haram_global_reasoning": _s("haram_global_reasoning"),

    # Evidence
    "evidence_items": _j("evidence_items_json", "evidence_items"),
    "evidence_category": _j("evidence_category"),
    "evidence_severity": _j("evidence_severity"),
    "evidence_rationale": _j("evidence_rationale"),
    "evidence_snippet": _j("evidence_snippet"),
    "evidence_source": _j("evidence_source"),

    # QA
    "qa_needs_review": _b("qa_needs_review", "QA_Needs_Review"),
    "qa_status": _s("qa_status", "QA_Status"),
    "qa_issue_count": _n("qa_issue_count", "QA_Issue_Count"),
    "qa_issues": _j("qa_issues_json", "QA_Issues_Parsed"),
    "qa_issues_csv": _s("qa_issues_csv", "QA_Issues_CSV"),
    "qa_issues_text": _s("qa_issues_text", "QA_Issues"),
    "qa_summary_display": _s("qa_summary_display"),
    "qa_category_summary": _s("qa_category_summary"),
    "qa_reasons_summary": _s("qa_reasons_summary"),

    # Auto-ban
    "auto_banned": _b("auto_banned", "Auto_Banned", tri_state=True),
    "auto_banned_status": _s("auto_banned_status"),
    "auto_banned_reason_clean": _s("auto_banned_reason_clean", "Auto_Banned_Reason", "auto_banned_reason"),
    "auto_banned_summary": _s("auto_banned_summary"),

    # Zakat
    "zakat_status": _s("zakat_status", "Zakat_Status"),
    "zakat_methodology": _s("zakat_methodology", "Zakat_Methodology"),
    "zakatable_assets_ratio_pct": _n("zakatable_assets_ratio_pct", "Zakatable_Assets_Ratio_Percent"),

    # Memo
    "shariah_memo_markdown": _s("shariah_memo_markdown", "shariah_memo"),
    "memo_doc_url": _s("memo_doc_url"),
    "memo_doc_id": _s("memo_doc_id"),
}


def candidates_for(field_name: str) -> tuple[str, ...]:
    """Ordered source columns for a canonical field (KeyError if unknown)."""
    return FIELD_TABLE[field_name].candidates
