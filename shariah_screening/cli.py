"""
Command-line front end for the screening engine.

Usage:
    shariah-screen ticker AAPL MSFT
    shariah-screen portfolio holdings.csv --workers 4
    shariah-screen list --search app --classification COMPLIANT --page 2
    shariah-screen distinct sector

The dataset defaults to $SHARIAH_DATASET_CSV (see config.py); pass --dataset
to point elsewhere. --json prints machine-readable output instead of tables.
"""

import argparse
import csv
import json
import sys
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .config import get_dataset_path, get_log_level, get_max_workers
from .db.repository import RecordFilters, ScreeningRepository
from .schemas.enums import Methodology, ScreenStatus
from .scorers.numeric_ratio_scorer import RATIO_LABELS
from .schemas.portfolio import PortfolioHolding, PortfolioResult
from .schemas.results import ScreeningBundle
from .services.screening_service import ScreeningService
from .utils.logger import get_logger, reset_logger
from .utils.ratios import format_percent

load_dotenv()
console = Console()

_STATUS_STYLES = {
    "compliant": "green",
    "warning": "yellow",
    "non-compliant": "red",
    "doubtful": "magenta",
    "no-data": "dim",
}


def _status_markup(status: Optional[ScreenStatus]) -> str:
    if status == ScreenStatus.PASS:
        return "[green]PASS[/green]"
    if status == ScreenStatus.FAIL:
        return "[red]FAIL[/red]"
    return "[dim]N/A[/dim]"


def _print_json(data) -> None:
    sys.stdout.write(json.dumps(data, indent=2, default=str) + "\n")


# =============================================================================
# Holdings input
# =============================================================================


def load_holdings(path: Path) -> list[PortfolioHolding]:
    """
    Read holdings from CSV (ticker, quantity, price columns) or JSON.

    JSON may be a list of holdings or ``{"holdings": [...]}``.

    Raises:
        FileNotFoundError: path does not exist
        pydantic.ValidationError: non-positive quantity/price or missing ticker
    """
    if not path.exists():
        raise FileNotFoundError(f"Holdings file not found: {path}")

    if path.suffix.lower() == ".json":
        data = json.loads(path.read_text())
        rows = data.get("holdings", []) if isinstance(data, dict) else data
    else:
        with open(path, newline="", encoding="utf-8-sig") as f:
            rows = [{(k or "").strip().lower(): v for k, v in row.items()} for row in csv.DictReader(f)]

    return [PortfolioHolding(**row) for row in rows]


# =============================================================================
# Rendering
# =============================================================================


def display_bundle(bundle: ScreeningBundle) -> None:
    security = bundle.security
    if not bundle.found:
        console.print(Panel(f"No screening data available for {security.ticker}", border_style="dim"))
        return

    composite = bundle.composite
    style = _STATUS_STYLES.get(composite.color, "white")
    header = (
        f"{security.company_name or security.ticker} ({security.ticker})\n"
        f"{security.sector or 'N/A'} / {security.industry or 'N/A'}  |  report date {security.report_date or 'N/A'}\n"
        f"[bold {style}]{composite.label}[/bold {style}]"
    )
    if composite.purification_display:
        header += f"\nPurification: {composite.purification_display}"
    if composite.needs_board_review:
        header += "\n[magenta]Board review needed[/magenta]"
    console.print(Panel(header, title="Shariah Screening", border_style=style))

    table = Table(title="Methodologies")
    table.add_column("Methodology", style="cyan")
    table.add_column("Result", justify="center")
    table.add_column("Detail")
    table.add_row(Methodology.NUMERIC.display_name, _status_markup(bundle.numeric.status), bundle.numeric.fail_reason or "")
    table.add_row(
        Methodology.AUTO_BAN.display_name,
        _status_markup(bundle.auto_ban.status),
        bundle.auto_ban.reason or bundle.auto_ban.summary or "",
    )
    table.add_row(
        Methodology.COMPOSITE.display_name,
        f"[{style}]{composite.label}[/{style}]",
        composite.business_activity_status.value if composite.business_activity_status else "",
    )
    console.print(table)

    ratios = Table(title="Financial Ratios")
    ratios.add_column("Ratio", style="cyan")
    ratios.add_column("Value", justify="right")
    ratios.add_column("Threshold", justify="right")
    ratios.add_column("Status", justify="center")
    for ratio in bundle.numeric.per_ratio.values():
        ratios.add_row(RATIO_LABELS[ratio.name], ratio.display, ratio.threshold_display, _status_markup(ratio.status))
    console.print(ratios)

    revenue = bundle.revenue_composition
    if revenue is not None and revenue.has_estimate:
        segments = Table(title=f"Not-Halal Revenue: {revenue.display_total}")
        segments.add_column("Segment")
        segments.add_column("Share", justify="right")
        segments.add_column("Range", justify="right")
        for segment in revenue.top_segments():
            name = f"[italic]{segment.name}[/italic]" if segment.synthesized else segment.name
            segments.add_row(name, format_percent(segment.resolved_pct), segment.range_display or "")
        console.print(segments)
        if revenue.composition:
            items = Table(title="Composition")
            items.add_column("Item")
            items.add_column("Share", justify="right")
            items.add_column("Sources")
            for item in revenue.composition:
                sources = ", ".join(ref.source_name or ref.id for ref in revenue.references_for(item))
                items.add_row(item.item_name or "Unknown", format_percent(item.point), sources)
            console.print(items)
        console.print(f"Halal revenue: {format_percent(revenue.halal_pct)}")

    if composite.memo_url:
        console.print(f"Memo: {composite.memo_url}")


def display_portfolio(result: PortfolioResult) -> None:
    table = Table(title=f"Portfolio Summary (total value {result.total_value:,.2f})")
    table.add_column("Methodology", style="cyan")
    table.add_column("Compliant", justify="right")
    table.add_column("With purification", justify="right")
    table.add_column("Non-compliant", justify="right")
    table.add_column("No data", justify="right")
    for methodology, summary in result.summary.items():
        pct = summary.percentages()
        table.add_row(
            methodology.display_name,
            format_percent(pct["compliant"]),
            format_percent(pct["compliant_with_purification"]),
            format_percent(pct["non_compliant"]),
            format_percent(pct["no_data"]),
        )
    console.print(table)

    holdings = Table(title="Holdings")
    holdings.add_column("Ticker", style="cyan")
    holdings.add_column("Value", justify="right")
    for methodology in Methodology:
        holdings.add_column(methodology.display_name, justify="center")
    for item in result.holdings:
        holdings.add_row(
            item.holding.ticker,
            f"{item.value:,.2f}",
            *[item.buckets[m].replace("_", " ") for m in Methodology],
        )
    console.print(holdings)


# =============================================================================
# Commands
# =============================================================================


def cmd_ticker(args, service: ScreeningService) -> int:
    bundles = [service.screen_ticker(ticker) for ticker in args.tickers]
    if args.json:
        _print_json([bundle.model_dump(mode="json") for bundle in bundles])
    else:
        for bundle in bundles:
            display_bundle(bundle)
    return 0


def cmd_portfolio(args, service: ScreeningService) -> int:
    holdings = load_holdings(args.file)
    result = service.screen_portfolio(holdings)
    if args.json:
        _print_json(result.model_dump(mode="json"))
    else:
        display_portfolio(result)
    return 0


def cmd_list(args, service: ScreeningService) -> int:
    filters = RecordFilters(
        search=args.search,
        final_classification=args.classification,
        sector=args.sector,
        industry=args.industry,
        risk_level=args.risk_level,
        shariah_compliant=args.shariah_compliant,
        board_review_needed=args.board_review,
        auto_banned=args.auto_banned,
        zakat_status=args.zakat_status,
        zakat_methodology=args.zakat_methodology,
        zakatable_assets_min=args.zakatable_min,
        sort_by=args.sort_by,
        sort_order=args.sort_order,
    )
    page = service.repository.list_records(filters, page=args.page, page_size=args.page_size)

    if args.json:
        _print_json(
            {
                "records": [record.model_dump(mode="json") for record in page.records],
                "total": page.total,
                "page": page.page,
                "page_size": page.page_size,
                "total_pages": page.total_pages,
            }
        )
        return 0

    table = Table(title=f"Screening Records (page {page.page} of {max(page.total_pages, 1)}, {page.total} total)")
    table.add_column("Ticker", style="cyan")
    table.add_column("Company")
    table.add_column("Sector")
    table.add_column("Classification")
    table.add_column("Auto-banned", justify="center")
    for record in page.records:
        classification = record.final_classification.label if record.final_classification else "Not Available"
        table.add_row(
            record.ticker,
            record.company_name or "",
            record.sector or "",
            classification,
            "YES" if record.auto_banned else "",
        )
    console.print(table)
    return 0


def cmd_distinct(args, service: ScreeningService) -> int:
    values = service.repository.list_distinct_values(args.field)
    if args.json:
        _print_json(values)
    else:
        for value in values:
            console.print(value)
    return 0


COMMANDS = {
    "ticker": cmd_ticker,
    "portfolio": cmd_portfolio,
    "list": cmd_list,
    "distinct": cmd_distinct,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shariah-screen",
        description="Screen equities for Shariah compliance against a screening dataset",
    )
    parser.add_argument(
        "--dataset",
        type=Path,
        default=None,
        help="Screening dataset CSV (default: $SHARIAH_DATASET_CSV or ~/.shariah-screening-data/shariah-screening.csv)",
    )
    parser.add_argument("--json", action="store_true", help="Print JSON instead of tables")
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: $SHARIAH_LOG_LEVEL or INFO)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    ticker = subparsers.add_parser("ticker", help="Screen one or more tickers")
    ticker.add_argument("tickers", nargs="+", help="Ticker symbols")

    portfolio = subparsers.add_parser("portfolio", help="Screen a portfolio of holdings")
    portfolio.add_argument("file", type=Path, help="Holdings CSV (ticker,quantity,price) or JSON")
    portfolio.add_argument("--workers", type=int, default=None, help="Worker threads (default: $SHARIAH_MAX_WORKERS)")

    listing = subparsers.add_parser("list", help="List and filter screening records")
    listing.add_argument("--search", help="Free-text search over ticker and company name")
    listing.add_argument("--classification", help="COMPLIANT, COMPLIANT_WITH_PURIFICATION, NON_COMPLIANT, ...")
    listing.add_argument("--sector")
    listing.add_argument("--industry")
    listing.add_argument("--risk-level", help="Low, Medium or High")
    listing.add_argument("--shariah-compliant", help="YES, NO or DOUBTFUL")
    listing.add_argument("--board-review", help="YES or NO")
    listing.add_argument("--auto-banned", help="YES or NO")
    listing.add_argument("--zakat-status")
    listing.add_argument("--zakat-methodology")
    listing.add_argument("--zakatable-min", type=float, help="Minimum zakatable assets ratio (%%)")
    listing.add_argument("--sort-by", help="Record field to sort on")
    listing.add_argument("--sort-order", choices=["asc", "desc"], default="asc")
    listing.add_argument("--page", type=int, default=1)
    listing.add_argument("--page-size", type=int, default=50)

    distinct = subparsers.add_parser("distinct", help="List distinct values of a record field")
    distinct.add_argument("field", help="Record field, e.g. sector or industry")

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    reset_logger()
    run_logger = get_logger(log_level=args.log_level or get_log_level(), context=args.command)

    dataset = args.dataset or get_dataset_path()
    repository = ScreeningRepository.from_csv(dataset)
    workers = getattr(args, "workers", None) or get_max_workers()
    service = ScreeningService(repository, max_workers=workers, run_logger=run_logger)

    try:
        with run_logger.time_operation(args.command, dataset=dataset):
            report = repository.load()
            run_logger.log_dataset_load(
                source=report.source,
                loaded=report.loaded,
                dropped=report.dropped_rows,
                duplicates=report.duplicate_keys,
            )
            exit_code = COMMANDS[args.command](args, service)
    except FileNotFoundError as e:
        console.print(f"[red]{e}[/red]")
        return 1
    except (ValidationError, ValueError) as e:
        console.print(f"[red]Invalid input: {e}[/red]")
        return 2

    summary = run_logger.generate_summary()
    if summary["not_found"]:
        run_logger.info("Tickers without screening data", tickers=",".join(summary["not_found_tickers"]))
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
