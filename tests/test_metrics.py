"""Tests for performance metrics."""

import pytest
import pandas as pd
import numpy as np

from pledge_backtest.metrics import (
    calculate_cagr,
    calculate_drawdown_series,
    calculate_max_drawdown,
    calculate_sharpe_ratio,
    calculate_irr,
    calculate_max_recovery_time,
    calculate_annual_returns,
    calculate_real_value,
    calculate_ulcer_index,
    calculate_calmar_ratio,
    compute_metrics,
)


def monthly_curve(values, start="2020-01-01") -> pd.Series:
    """Equity series with month-start dates."""
    dates = pd.date_range(start, periods=len(values), freq="MS")
    return pd.Series(values, index=dates, dtype=float)


@pytest.fixture
def equity_curve():
    """Sample equity curve: five years of noisy monthly growth."""
    np.random.seed(42)
    returns = np.random.normal(0.008, 0.04, 60)
    return monthly_curve(10_000 * np.cumprod(1 + returns))


class TestCAGR:
    """Tests for CAGR calculation."""

    def test_cagr_doubling_in_one_year(self):
        """Doubling in one year = 100% CAGR."""
        assert calculate_cagr(100, 200, 1) == pytest.approx(100)

    def test_cagr_compounding(self):
        """100 -> 121 over two years = 10% per year."""
        assert calculate_cagr(100, 121, 2) == pytest.approx(10)

    def test_cagr_loss(self):
        """Halving in one year = -50%."""
        assert calculate_cagr(100, 50, 1) == pytest.approx(-50)

    def test_cagr_total_loss(self):
        """Ending at zero = -100%."""
        assert calculate_cagr(100, 0, 3) == pytest.approx(-100)

    def test_cagr_degenerate_inputs(self):
        """Zero start value or zero years = 0."""
        assert calculate_cagr(0, 100, 1) == 0
        assert calculate_cagr(100, 200, 0) == 0


class TestMaxDrawdown:
    """Tests for max drawdown calculation."""

    def test_no_drawdown(self):
        """Monotonically increasing = 0 drawdown."""
        assert calculate_max_drawdown(monthly_curve([100, 110, 120])) == 0.0

    def test_peak_to_trough(self):
        """Peak at 120, trough at 60 = 50% drawdown."""
        equity = monthly_curve([100, 120, 60, 80, 130])
        assert calculate_max_drawdown(equity) == pytest.approx(50)

    def test_multiple_drawdowns(self):
        """Return worst of multiple drawdowns."""
        # First DD: 100 -> 90 = 10%
        # Second DD: 110 -> 77 = 30%
        equity = monthly_curve([100, 90, 95, 110, 100, 90, 80, 77, 85])
        assert calculate_max_drawdown(equity) == pytest.approx(30)

    def test_zero_peak(self):
        """A curve stuck at zero has no drawdown instead of dividing by zero."""
        assert calculate_max_drawdown(monthly_curve([0, 0, 0])) == 0.0

    def test_empty(self):
        assert calculate_max_drawdown(pd.Series(dtype=float)) == 0.0

    def test_drawdown_series_keeps_index(self):
        equity = monthly_curve([100, 50, 100])
        drawdown = calculate_drawdown_series(equity)
        assert list(drawdown) == pytest.approx([0, 50, 0])
        assert drawdown.index.equals(equity.index)


class TestSharpeRatio:
    """Tests for Sharpe ratio calculation."""

    def test_constant_returns_zero_volatility(self):
        """Constant 10% returns have no volatility, Sharpe = 0."""
        assert calculate_sharpe_ratio(monthly_curve([100, 110, 121])) == 0

    def test_symmetric_returns(self):
        """+10% then -10% averages to zero excess return."""
        sharpe = calculate_sharpe_ratio(monthly_curve([100, 110, 99]))
        assert sharpe == pytest.approx(0, abs=1e-9)

    def test_too_short(self):
        """Fewer than two points = 0."""
        assert calculate_sharpe_ratio(monthly_curve([100])) == 0

    def test_annualization(self, equity_curve):
        """Mean and stdev of monthly returns are annualized with 12 and sqrt(12)."""
        returns = equity_curve.pct_change().dropna().to_numpy()
        expected = (returns.mean() * 12 - 0.02) / (returns.std() * np.sqrt(12))

        assert calculate_sharpe_ratio(equity_curve, 2.0) == pytest.approx(expected)

    def test_risk_free_lowers_sharpe(self, equity_curve):
        assert calculate_sharpe_ratio(equity_curve, 5.0) < calculate_sharpe_ratio(equity_curve)

    def test_zero_equity_month(self):
        """Returns after a zero-equity month count as 0 rather than dividing by zero."""
        sharpe = calculate_sharpe_ratio(monthly_curve([100, 0, 0, 50]))
        assert np.isfinite(sharpe)


class TestIRR:
    """Tests for IRR root-finding."""

    def test_simple_growth(self):
        """Invest 100, receive 110 after 12 months = 10%."""
        assert calculate_irr(100, 0, 12, 110, 12) == pytest.approx(10, abs=1e-4)

    def test_regular_contributions_break_even(self):
        """11 monthly contributions of 10 returning 110 = 0%."""
        assert calculate_irr(0, 10, 1, 110, 12) == pytest.approx(0, abs=0.1)

    def test_contributions_with_gain(self):
        """Contributions plus growth give a positive IRR."""
        assert calculate_irr(1000, 100, 1, 2500, 12) > 0

    def test_quarterly_contributions(self):
        """Contributions land at months 3, 6 and 9 only."""
        irr = calculate_irr(100, 10, 3, 130, 12)
        assert irr == pytest.approx(0, abs=0.1)

    def test_no_cash_flows(self):
        """An account that never held money has a 0% IRR, not the starting guess."""
        assert calculate_irr(0, 0, 1, 0, 12) == 0.0

    def test_non_convergent_returns_estimate(self):
        """Running out of iterations gives the last finite estimate, not an error."""
        irr = calculate_irr(100, 0, 12, 50, 12, max_iterations=1)
        assert isinstance(irr, float)
        assert np.isfinite(irr)

    def test_halving(self):
        """Invest 100, receive 50 after 12 months = -50%."""
        assert calculate_irr(100, 0, 12, 50, 12) == pytest.approx(-50, abs=1e-3)


class TestMaxRecoveryTime:
    """Tests for recovery duration."""

    def test_recovered_drawdown(self):
        """Two months below the peak before a new high."""
        assert calculate_max_recovery_time(monthly_curve([100, 90, 95, 101])) == 2

    def test_monotonic(self):
        assert calculate_max_recovery_time(monthly_curve([100, 100, 110, 120])) == 0

    def test_unresolved_drawdown_counts(self):
        """A drawdown still open at the end counts."""
        assert calculate_max_recovery_time(monthly_curve([100, 120, 90, 80, 85])) == 3

    def test_longest_of_several(self):
        equity = monthly_curve([100, 90, 100, 80, 85, 90, 95, 105])
        assert calculate_max_recovery_time(equity) == 4


class TestAnnualReturns:
    """Tests for per-calendar-year returns."""

    def test_years_chain_from_prior_december(self):
        values = [100] * 11 + [110] + [110] * 11 + [99]
        returns = calculate_annual_returns(monthly_curve(values))

        assert list(returns.index) == [2020, 2021]
        assert returns[2020] == pytest.approx(10)
        assert returns[2021] == pytest.approx(-10)

    def test_partial_first_year(self):
        """A series starting mid-year uses its own first value."""
        returns = calculate_annual_returns(monthly_curve([100, 120], start="2020-11-01"))
        assert returns[2020] == pytest.approx(20)

    def test_zero_start_value(self):
        returns = calculate_annual_returns(monthly_curve([0, 0, 0]))
        assert returns[2020] == 0

    def test_empty(self):
        assert calculate_annual_returns(pd.Series(dtype=float)).empty


class TestRealValueAndUlcer:
    """Tests for inflation discounting and the pain index."""

    def test_real_value(self):
        """100 with 10% inflation over one year = 90.909."""
        assert calculate_real_value(100, 10, 1) == pytest.approx(90.909, rel=1e-4)

    def test_real_value_no_inflation(self):
        assert calculate_real_value(100, 0, 30) == 100

    def test_ulcer_empty(self):
        assert calculate_ulcer_index(pd.Series(dtype=float)) == 0

    def test_ulcer_rms(self):
        """Drawdowns 0% and 50% -> sqrt((0 + 2500) / 2)."""
        assert calculate_ulcer_index(monthly_curve([100, 50])) == pytest.approx(np.sqrt(1250))


class TestCalmar:
    """Tests for Calmar ratio."""

    def test_calmar(self):
        assert calculate_calmar_ratio(20, 10) == pytest.approx(2)

    def test_no_drawdown(self):
        assert calculate_calmar_ratio(20, 0) == 0


class TestComputeMetrics:
    """Tests for the metrics aggregator."""

    def test_flat_curve(self):
        metrics = compute_metrics(
            monthly_curve([1000] * 12),
            initial_capital=1000,
            contribution_amount=0,
            contribution_interval=1,
        )

        assert metrics.final_balance == 1000
        assert metrics.cagr == pytest.approx(0)
        assert metrics.max_drawdown == 0
        assert metrics.max_recovery_months == 0
        assert metrics.worst_year_return == 0
        assert metrics.calmar_ratio == 0
        assert metrics.pain_index == 0

    def test_real_balance_uses_inflation(self):
        metrics = compute_metrics(
            monthly_curve([1000] * 24),
            initial_capital=1000,
            contribution_amount=0,
            contribution_interval=1,
            inflation_rate_pct=10,
        )

        assert metrics.inflation_rate == 10
        assert metrics.real_final_balance == pytest.approx(1000 / 1.1 ** 2)

    def test_worst_year(self):
        values = [100] * 11 + [110] + [110] * 11 + [99]
        metrics = compute_metrics(
            monthly_curve(values),
            initial_capital=100,
            contribution_amount=0,
            contribution_interval=12,
        )
        assert metrics.worst_year_return == pytest.approx(-10)

    def test_bankrupt_forces_total_loss(self):
        metrics = compute_metrics(
            monthly_curve([1000, 1100, 0, 0]),
            initial_capital=1000,
            contribution_amount=0,
            contribution_interval=1,
            is_bankrupt=True,
        )

        assert metrics.cagr == -100
        assert metrics.irr == -100
        assert metrics.calmar_ratio == -100
        assert metrics.max_drawdown == pytest.approx(100)
        assert metrics.final_balance == 0

    def test_empty_account(self):
        metrics = compute_metrics(
            monthly_curve([0] * 12),
            initial_capital=0,
            contribution_amount=0,
            contribution_interval=1,
        )

        assert metrics.irr == 0
        assert metrics.cagr == 0
        assert metrics.calmar_ratio == 0

    def test_calmar_is_irr_over_drawdown(self, equity_curve):
        metrics = compute_metrics(
            equity_curve,
            initial_capital=equity_curve.iloc[0],
            contribution_amount=0,
            contribution_interval=1,
        )
        assert metrics.calmar_ratio == pytest.approx(metrics.irr / metrics.max_drawdown)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
