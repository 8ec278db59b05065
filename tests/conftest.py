"""Shared fixtures for screening engine tests.

Raw rows mirror the two schema generations found in the screening exports:
website schema v1 (snake_case) and the legacy client sheets (PascalCase).
"""

import csv
import json
import logging
import sys
from pathlib import Path

import pytest

# Make the package importable without installing it
sys.path.insert(0, str(Path(__file__).parent.parent))

DATASET_HEADERS = [
    "upsert_key",
    "ticker",
    "company_name",
    "report_date",
    "sector",
    "industry",
    "debt_ratio_pct",
    "cash_inv_ratio_pct",
    "npin_ratio_pct",
    "final_classification",
    "purification_required",
    "purification_pct_recommended",
    "needs_board_review",
    "auto_banned",
    "zakatable_assets_ratio_pct",
    "haram_pct_point",
    "haram_segments_json",
    # Re-emitted column: the second copy is the authoritative one
    "haram_composition_json",
    "haram_composition_json",
]

DATASET_ROWS = [
    [
        "AAPL-2024", "AAPL", "Apple Inc.", "2024-09-30", "Technology", "Consumer Electronics",
        "10", "5", "1", "COMPLIANT", "FALSE", "", "FALSE", "FALSE", "20", "0.5", "",
        json.dumps([{"item_name": "Stale composition"}]),
        json.dumps([{"item_name": "Interest income", "haram_pct_of_total_revenue_point_estimate": 0.5}]),
    ],
    [
        "AAPL-2023", "aapl", "Apple Inc.", "2023-09-30", "Technology", "Consumer Electronics",
        "", "6", "1", "COMPLIANT_WITH_PURIFICATION", "TRUE", "1.5", "FALSE", "FALSE", "", "", "", "", "",
    ],
    [
        "JPM-2024", "JPM", "JPMorgan Chase", "2024-12-31", "Financials", "Banks",
        "250", "40", "60", "NON_COMPLIANT", "FALSE", "", "FALSE", "TRUE", "", "60",
        json.dumps([{"name": "Interest income", "point": 45}, {"name": "Insurance", "point": 10}]),
        "", "",
    ],
    [
        "MSFT-2024", "MSFT", "Microsoft", "2024-06-30", "Technology", "Software",
        "20", "25", "2", "DOUBTFUL_REVIEW", "FALSE", "", "FALSE", "", "35", "", "", "", "",
    ],
    # No ticker: dropped on load
    [
        "ORPHAN-1", "", "Orphan Co", "2024-01-01", "Technology", "Software",
        "1", "1", "1", "COMPLIANT", "FALSE", "", "FALSE", "FALSE", "", "", "", "", "",
    ],
    # Same upsert key as above: last row wins
    [
        "MSFT-2024", "MSFT", "Microsoft Corporation", "2024-06-30", "Technology", "Software",
        "20", "25", "2", "DOUBTFUL_REVIEW", "FALSE", "", "TRUE", "", "35", "", "", "", "",
    ],
]


def write_dataset(path: Path, headers=None, rows=None) -> Path:
    """Write a screening dataset CSV (blank line included to exercise skipping)."""
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(headers or DATASET_HEADERS)
        for i, row in enumerate(rows if rows is not None else DATASET_ROWS):
            writer.writerow(row)
            if i == 1:
                writer.writerow([])
    return path


@pytest.fixture
def dataset_csv(tmp_path):
    """Screening dataset CSV with a duplicate header, a dropped row and a duplicate key."""
    return write_dataset(tmp_path / "screening.csv")


@pytest.fixture
def repository(dataset_csv):
    from shariah_screening.db.repository import ScreeningRepository

    return ScreeningRepository.from_csv(dataset_csv)


@pytest.fixture
def current_row():
    """Website schema v1 row."""
    return {
        "upsert_key": "AAPL-2024-09-30",
        "ticker": " aapl ",
        "company_name": "Apple Inc.",
        "report_date": "2024-09-30",
        "methodology_version": "methodology_3",
        "sector": "Technology",
        "industry": "Consumer Electronics",
        "debt_ratio_pct": "10.5",
        "cash_inv_ratio_pct": "5",
        "npin_ratio_pct": "1.2%",
        "debt_status": "pass",
        "cash_inv_status": "",
        "npin_status": "",
        "final_classification": "Compliant with Purification",
        "purification_required": "TRUE",
        "purification_pct_recommended": "1.2",
        "needs_board_review": "FALSE",
        "key_drivers_json": json.dumps(["Low leverage", "Minor interest income"]),
        "haram_pct_point": "1.2",
        "halal_pct_point": "98.8",
        "haram_segments_json": json.dumps(
            [
                {
                    "name": "Interest income",
                    "point": 1.0,
                    "lower": 0.8,
                    "upper": 1.4,
                    "composition": json.dumps([{"item_name": "Treasury interest", "point": 1.0, "refs": "r1"}]),
                    "references": [{"id": "r1", "source_name": "10-K", "url": "https://example.com/10k"}],
                }
            ]
        ),
        "evidence_items_json": json.dumps(
            [{"category": "Interest", "severity": "CAUTION", "rationale": "Interest on cash balances"}]
        ),
        "qa_issues_json": json.dumps([{"issue": "Segment estimate stale", "severity": "INFO"}]),
        "auto_banned": "FALSE",
        "zakat_status": "ZAKATABLE",
        "zakatable_assets_ratio_pct": "22.5",
        "memo_doc_id": "abc123",
    }


@pytest.fixture
def legacy_row():
    """Legacy client-facing sheet row (PascalCase, fractional ratios)."""
    return {
        "Upsert_Key": "JPM|2023",
        "Ticker": "jpm",
        "Company": "JPMorgan Chase",
        "Report_Date": "2023-12-31",
        "Sector": "Financials",
        "Debt_Ratio": "0.45",
        "CashInv_Ratio": "0.2",
        "NPIN_Ratio": "0.6",
        "Debt_Within_Limit": "FALSE",
        "CashInv_Within_Limit": "TRUE",
        "NPIN_Within_Limit": "",
        "Final_Verdict": "NON-COMPLIANT",
        "Board_Review_Needed": "no",
        "Key_Risk_Factors": "Interest-based lending",
        "Non_Compliant_Revenue_Point_Estimate": "60",
        "non_compliant_revenue_pct_est_json": json.dumps(
            [
                {
                    "name": "Lending",
                    "haram_pct_of_total_revenue_point_estimate": 50,
                    "haram_pct_of_total_revenue_lower": 45,
                    "haram_pct_of_total_revenue_upper": 55,
                    "global_reasoning": "Interest-based lending",
                }
            ]
        ),
        "QA_Issues_CSV": "Missing 10-K, Stale price",
        "Auto_Banned": "TRUE",
        "Auto_Banned_Reason": "Conventional bank",
    }


@pytest.fixture(autouse=True)
def _reset_state():
    """Fresh methodology cache and run logger for every test."""
    from shariah_screening.scorers.methodology_registry import clear_cache
    from shariah_screening.utils.logger import reset_logger

    clear_cache()
    reset_logger()
    logging.getLogger("shariah_screening").setLevel(logging.NOTSET)
    yield
    clear_cache()
    reset_logger()


@pytest.fixture
def make_dataset(tmp_path):
    """Factory for dataset CSVs with custom headers/rows."""

    def _make(name="screening.csv", headers=None, rows=None) -> Path:
        return write_dataset(tmp_path / name, headers=headers, rows=rows)

    return _make
