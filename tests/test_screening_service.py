"""Tests for ticker bundles and portfolio screening over a CSV dataset."""

import pytest
from shariah_screening.schemas.enums import (
    AUTO_BANNED_LABEL,
    NOT_AVAILABLE_LABEL,
    Classification,
    Methodology,
    ScreenStatus,
)
from shariah_screening.schemas.portfolio import PortfolioHolding
from shariah_screening.scorers.numeric_ratio_scorer import NumericRatioScorer
from shariah_screening.scorers.portfolio_aggregator import PortfolioError
from shariah_screening.services.screening_service import ScreeningService
from shariah_screening.utils.logger import ScreeningLogger


@pytest.fixture
def service(repository):
    return ScreeningService(repository)


class TestScreenTicker:
    def test_unknown_ticker_is_unavailable(self, service):
        bundle = service.screen_ticker("zzzz")
        assert bundle.found is False
        assert bundle.security.ticker == "ZZZZ"
        assert bundle.numeric.status == ScreenStatus.UNKNOWN
        assert bundle.numeric.available is False
        assert bundle.auto_ban.available is False
        assert bundle.composite.available is False
        assert bundle.composite.label == NOT_AVAILABLE_LABEL
        assert bundle.revenue_composition is None
        assert bundle.evidence == []

    def test_compliant_ticker(self, service):
        bundle = service.screen_ticker("aapl")
        assert bundle.found is True
        assert bundle.security.company_name == "Apple Inc."
        assert bundle.security.report_date == "2024-09-30"
        assert bundle.numeric.status == ScreenStatus.PASS
        assert bundle.auto_ban.status == ScreenStatus.PASS
        assert bundle.composite.classification == Classification.COMPLIANT
        assert bundle.revenue_composition.haram_pct == 0.5
        assert bundle.revenue_composition.halal_pct == 99.5

    def test_auto_banned_bank(self, service):
        bundle = service.screen_ticker("JPM")
        assert bundle.numeric.status == ScreenStatus.FAIL
        assert "Debt ratio 250.00% exceeds 33% threshold" in bundle.numeric.fail_reason
        assert bundle.auto_ban.status == ScreenStatus.FAIL
        assert bundle.composite.label == AUTO_BANNED_LABEL

        revenue = bundle.revenue_composition
        assert [s.name for s in revenue.segments] == ["Interest income", "Insurance", "Other non-halal"]
        assert revenue.segments[-1].point == pytest.approx(5.0)
        assert revenue.halal_pct == pytest.approx(40.0)

    def test_doubtful_needs_review(self, service):
        bundle = service.screen_ticker("MSFT")
        assert bundle.composite.needs_board_review is True
        assert bundle.auto_ban.available is False

    def test_strict_numeric_scorer_injected(self, repository):
        service = ScreeningService(repository, numeric_scorer=NumericRatioScorer(strict_thresholds=True))
        assert service.numeric_scorer.strict_thresholds is True


class TestScreenPortfolio:
    def _holdings(self):
        return [
            PortfolioHolding(ticker="AAPL", quantity=10, price=100),
            PortfolioHolding(ticker="JPM", quantity=5, price=200),
            PortfolioHolding(ticker="ZZZZ", quantity=1, price=500),
            PortfolioHolding(ticker="msft", quantity=2, price=250),
        ]

    @pytest.mark.parametrize("max_workers", [1, 4])
    def test_portfolio_summary(self, repository, max_workers):
        service = ScreeningService(repository, max_workers=max_workers)
        result = service.screen_portfolio(self._holdings())

        assert result.total_value == 3000.0
        assert [h.holding.ticker for h in result.holdings] == ["AAPL", "JPM", "ZZZZ", "MSFT"]

        composite = result.summary[Methodology.COMPOSITE]
        assert (composite.compliant_weight, composite.non_compliant_weight, composite.no_data_weight) == (
            1000.0,
            1500.0,
            500.0,
        )

        numeric = result.summary[Methodology.NUMERIC]
        assert (numeric.compliant_weight, numeric.non_compliant_weight, numeric.no_data_weight) == (
            1500.0,
            1000.0,
            500.0,
        )

        auto_ban = result.summary[Methodology.AUTO_BAN]
        assert (auto_ban.compliant_weight, auto_ban.non_compliant_weight, auto_ban.no_data_weight) == (
            1000.0,
            1000.0,
            1000.0,
        )

    def test_empty_portfolio(self, service):
        with pytest.raises(PortfolioError):
            service.screen_portfolio([])

    def test_missing_dataset_propagates(self, tmp_path):
        from shariah_screening.db.repository import ScreeningRepository

        service = ScreeningService(ScreeningRepository.from_csv(tmp_path / "missing.csv"))
        with pytest.raises(FileNotFoundError):
            service.screen_portfolio([PortfolioHolding(ticker="AAPL", quantity=1, price=1)])

    def test_run_logger_tracks_not_found(self, repository):
        run_logger = ScreeningLogger(name="shariah_screening.test_run", log_level="DEBUG")
        service = ScreeningService(repository, run_logger=run_logger)
        service.screen_portfolio(self._holdings())

        summary = run_logger.generate_summary()
        assert summary["screenings"] == 4
        assert summary["not_found_tickers"] == ["ZZZZ"]
