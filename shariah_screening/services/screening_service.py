"""
Screening Service - ticker bundles and portfolio screening over a repository.

Looks records up in an injected ScreeningRepository and runs the three
methodology scorers, the revenue aggregator and the evidence/QA normalizers
on them. A ticker with no record is a normal outcome: every methodology comes
back unavailable and nothing is zero-filled.
"""

import logging
import time
from typing import Optional, Sequence

from ..db.repository import ScreeningRepository
from ..parsers.evidence_normalizer import normalize_evidence, normalize_qa_issues
from ..schemas.portfolio import PortfolioHolding, PortfolioResult
from ..schemas.results import ScreeningBundle, SecurityInfo
from ..schemas.screening_record import ScreeningRecord
from ..scorers.auto_ban_scorer import AutoBanScorer
from ..scorers.composite_scorer import CompositeScorer
from ..scorers.numeric_ratio_scorer import NumericRatioScorer
from ..scorers.portfolio_aggregator import PortfolioAggregator, PortfolioError
from ..scorers.revenue_composition import RevenueCompositionAggregator
from ..utils.logger import ScreeningLogger
from ..utils.worker_pool import WorkerPool

logger = logging.getLogger(__name__)


class ScreeningService:
    """Builds screening bundles for tickers and value-weighted portfolio summaries."""

    def __init__(
        self,
        repository: ScreeningRepository,
        max_workers: int = 1,
        run_logger: Optional[ScreeningLogger] = None,
        numeric_scorer: Optional[NumericRatioScorer] = None,
    ):
        """
        Args:
            repository: Read-only dataset access
            max_workers: Worker threads for portfolio fan-out (1 = sequential)
            run_logger: Optional structured logger used by CLI runs
            numeric_scorer: Override for the numeric scorer (e.g. strict thresholds)
        """
        self.repository = repository
        self.max_workers = max_workers
        self.run_logger = run_logger
        self.numeric_scorer = numeric_scorer or NumericRatioScorer()
        self.auto_ban_scorer = AutoBanScorer()
        self.composite_scorer = CompositeScorer()
        self.revenue_aggregator = RevenueCompositionAggregator()
        self.portfolio_aggregator = PortfolioAggregator()

    def screen_record(self, record: Optional[ScreeningRecord], ticker: str) -> ScreeningBundle:
        """Bundle for an already looked-up record (None when the ticker is unknown)."""
        if record is None:
            return ScreeningBundle(
                security=SecurityInfo(ticker=ticker.strip().upper(), found=False),
                numeric=self.numeric_scorer.evaluate(None),
                auto_ban=self.auto_ban_scorer.evaluate(None),
                composite=self.composite_scorer.evaluate(None),
            )

        return ScreeningBundle(
            security=SecurityInfo(
                ticker=record.ticker,
                company_name=record.company_name,
                sector=record.sector,
                industry=record.industry,
                security_type=record.security_type,
                report_date=record.report_date,
                methodology_version=record.methodology_version,
                found=True,
            ),
            numeric=self.numeric_scorer.evaluate(record),
            auto_ban=self.auto_ban_scorer.evaluate(record),
            composite=self.composite_scorer.evaluate(record),
            revenue_composition=self.revenue_aggregator.aggregate(record),
            evidence=normalize_evidence(record),
            qa_issues=normalize_qa_issues(record),
        )

    def screen_ticker(self, ticker: str) -> ScreeningBundle:
        record = self.repository.find_by_ticker(ticker)
        bundle = self.screen_record(record, ticker)
        self._log_screening(bundle)
        return bundle

    def screen_portfolio(self, holdings: Sequence[PortfolioHolding]) -> PortfolioResult:
        """
        Screen every holding and aggregate by value.

        Raises:
            PortfolioError: empty portfolio
        """
        if not holdings:
            raise PortfolioError("Portfolio must contain at least one holding")

        start = time.perf_counter()
        self.repository.load()

        pool = WorkerPool(max_workers=self.max_workers, logger=logger)
        outcomes = pool.map(self.screen_ticker, [h.ticker for h in holdings], desc="Screening holdings")

        bundles = []
        for success, ticker, result in outcomes:
            if not success:
                raise result
            bundles.append(result)

        portfolio = self.portfolio_aggregator.aggregate(holdings, bundles)
        if self.run_logger:
            self.run_logger.log_portfolio_complete(
                holdings=len(holdings),
                total_value=portfolio.total_value,
                duration_seconds=time.perf_counter() - start,
            )
        return portfolio

    def _log_screening(self, bundle: ScreeningBundle) -> None:
        if self.run_logger is None:
            logger.debug(f"Screened {bundle.security.ticker} (found={bundle.found})")
            return
        self.run_logger.log_screening(
            ticker=bundle.security.ticker,
            found=bundle.found,
            numeric=bundle.numeric.status.value,
            auto_ban=bundle.auto_ban.status.value if bundle.auto_ban.status else "N/A",
            composite=bundle.composite.label,
        )
