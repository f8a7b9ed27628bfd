"""Performance and risk metrics for monthly equity curves."""

from dataclasses import dataclass
import logging

import pandas as pd
import numpy as np

logger = logging.getLogger(__name__)

MONTHS_PER_YEAR = 12

# Reported for CAGR, IRR and Calmar when the account was liquidated
BANKRUPT_RETURN = -100.0


@dataclass
class PerformanceMetrics:
    """Summary metrics of one simulation. Rates are in percent."""

    final_balance: float
    """Net equity at the last month."""

    real_final_balance: float
    """Final balance discounted by inflation."""

    cagr: float
    max_drawdown: float
    """Largest peak-to-trough decline (positive percentage)."""

    sharpe_ratio: float
    irr: float
    """Annualized internal rate of return of the contribution schedule."""

    worst_year_return: float
    max_recovery_months: int
    calmar_ratio: float
    pain_index: float
    """Ulcer index: RMS of percentage drawdowns."""

    inflation_rate: float


def calculate_cagr(start_value: float, end_value: float, years: float) -> float:
    """
    Calculate Compound Annual Growth Rate.

    Args:
        start_value: Starting value
        end_value: Ending value
        years: Number of years

    Returns:
        CAGR in percent (0 if start value or years is 0)
    """
    if start_value <= 0 or years <= 0:
        return 0.0

    ratio = max(end_value / start_value, 0.0)
    return (ratio ** (1 / years) - 1) * 100


def calculate_drawdown_series(equity_curve: pd.Series) -> pd.Series:
    """
    Calculate percentage drawdown from the running peak.

    Months before the first positive peak have zero drawdown.
    """
    values = np.asarray(equity_curve, dtype=float)
    peaks = np.maximum.accumulate(values) if len(values) else values
    drawdown = np.divide(
        (peaks - values) * 100,
        peaks,
        out=np.zeros_like(values),
        where=peaks > 0,
    )
    index = equity_curve.index if isinstance(equity_curve, pd.Series) else None
    return pd.Series(drawdown, index=index, name="drawdown")


def calculate_max_drawdown(equity_curve: pd.Series) -> float:
    """
    Calculate maximum drawdown.

    Args:
        equity_curve: Portfolio equity over time

    Returns:
        Maximum drawdown in percent (0 for a non-decreasing curve)
    """
    drawdown = calculate_drawdown_series(equity_curve)
    if drawdown.empty:
        return 0.0
    return float(drawdown.max())


def calculate_monthly_returns(equity_curve: pd.Series) -> np.ndarray:
    """Simple month-over-month returns; a month after zero equity returns 0."""
    values = np.asarray(equity_curve, dtype=float)
    if len(values) < 2:
        return np.array([])
    previous = values[:-1]
    return np.divide(
        values[1:] - previous,
        previous,
        out=np.zeros_like(previous),
        where=previous != 0,
    )


def calculate_sharpe_ratio(
    equity_curve: pd.Series,
    annual_risk_free_pct: float = 0.0,
) -> float:
    """
    Calculate Sharpe ratio from monthly equity values.

    Args:
        equity_curve: Portfolio equity over time (monthly)
        annual_risk_free_pct: Annual risk-free rate in percent

    Returns:
        Annualized Sharpe ratio (0 with fewer than two points or zero volatility)
    """
    returns = calculate_monthly_returns(equity_curve)
    if len(returns) == 0:
        return 0.0

    std = returns.std()
    if std == 0 or np.isclose(std, 0, atol=1e-10):
        return 0.0

    annualized_return = returns.mean() * MONTHS_PER_YEAR
    annualized_vol = std * np.sqrt(MONTHS_PER_YEAR)

    return float((annualized_return - annual_risk_free_pct / 100) / annualized_vol)


def calculate_irr(
    initial_investment: float,
    contribution_amount: float,
    contribution_interval: int,
    final_value: float,
    total_months: int,
    max_iterations: int = 50,
    tolerance: float = 1e-7,
) -> float:
    """
    Solve the annualized IRR of a monthly contribution schedule.

    Cash flows are -initial at t=0, -contribution at every interval month
    strictly between 0 and total_months, and +final_value at total_months.
    Newton-Raphson starts from 10%/yr; if it does not converge within
    max_iterations the last estimate is returned. A schedule with no cash
    flows at all has an IRR of 0.

    Args:
        initial_investment: Amount invested at t=0
        contribution_amount: Amount invested at each contribution month
        contribution_interval: Months between contributions
        final_value: Value received at the end
        total_months: Length of the schedule in months

    Returns:
        Annualized IRR in percent
    """
    t = np.arange(1, total_months + 1, dtype=float)
    flows = np.zeros(total_months)
    if total_months > 0:
        flows[-1] += final_value
    if contribution_interval > 0:
        months = t.astype(int)
        flows[(months < total_months) & (months % contribution_interval == 0)] -= contribution_amount

    if initial_investment == 0 and not np.any(flows):
        return 0.0

    rate = 0.1 / MONTHS_PER_YEAR
    converged = False

    with np.errstate(over="ignore", divide="ignore", invalid="ignore"):
        for _ in range(max_iterations):
            growth = (1 + rate) ** t
            npv = -initial_investment + np.sum(flows / growth)
            d_npv = np.sum(flows * -t / (growth * (1 + rate)))

            if not np.isfinite(npv) or not np.isfinite(d_npv) or abs(d_npv) < 1e-10:
                break

            new_rate = rate - npv / d_npv
            if abs(new_rate - rate) < tolerance:
                rate = new_rate
                converged = True
                break
            rate = new_rate

    if not converged:
        logger.debug(f"IRR did not converge, using last estimate {rate:.6f}/month")

    return float(((1 + rate) ** MONTHS_PER_YEAR - 1) * 100)


def calculate_max_recovery_time(equity_curve: pd.Series) -> int:
    """
    Longest run of months spent below a previous peak.

    A drawdown still open at the end of the series counts.
    """
    peak = -np.inf
    max_recovery = 0
    underwater = 0

    for value in np.asarray(equity_curve, dtype=float):
        if value >= peak:
            peak = value
            max_recovery = max(max_recovery, underwater)
            underwater = 0
        else:
            underwater += 1

    return max(max_recovery, underwater)


def calculate_annual_returns(equity_curve: pd.Series) -> pd.Series:
    """
    Calculate simple returns per calendar year.

    Each year starts from the previous month's value (the prior December
    close), or from its own first value at the start of the series.

    Args:
        equity_curve: Equity indexed by a DatetimeIndex

    Returns:
        Series of returns in percent indexed by year (0 where start value is 0)
    """
    if equity_curve.empty:
        return pd.Series(dtype=float, name="annual_return")

    years = pd.DatetimeIndex(equity_curve.index).year
    previous = equity_curve.shift(1)
    previous.iloc[0] = equity_curve.iloc[0]

    starts = previous.groupby(years).first()
    ends = equity_curve.groupby(years).last()

    returns = np.divide(
        (ends - starts).to_numpy(dtype=float) * 100,
        starts.to_numpy(dtype=float),
        out=np.zeros(len(starts)),
        where=starts.to_numpy() != 0,
    )
    return pd.Series(returns, index=starts.index, name="annual_return")


def calculate_real_value(nominal_value: float, annual_inflation_pct: float, years: float) -> float:
    """Discount a nominal value by compounded annual inflation."""
    return nominal_value / (1 + annual_inflation_pct / 100) ** years


def calculate_ulcer_index(equity_curve: pd.Series) -> float:
    """Root-mean-square of percentage drawdowns (0 for an empty curve)."""
    drawdown = calculate_drawdown_series(equity_curve)
    if drawdown.empty:
        return 0.0
    return float(np.sqrt((drawdown ** 2).mean()))


def calculate_calmar_ratio(irr: float, max_drawdown: float) -> float:
    """
    Calculate Calmar ratio (IRR / max drawdown).

    Args:
        irr: Annualized return in percent
        max_drawdown: Max drawdown in percent (positive)

    Returns:
        Calmar ratio, 0 when there was no drawdown
    """
    if max_drawdown <= 0:
        return 0.0
    return irr / max_drawdown


def compute_metrics(
    equity_curve: pd.Series,
    initial_capital: float,
    contribution_amount: float,
    contribution_interval: int,
    cash_yield_pct: float = 0.0,
    inflation_rate_pct: float = 0.0,
    is_bankrupt: bool = False,
) -> PerformanceMetrics:
    """
    Compute all performance metrics of a completed simulation.

    Args:
        equity_curve: Monthly net equity indexed by date
        initial_capital: Capital invested at the first month
        contribution_amount: Recurring contribution
        contribution_interval: Months between contributions
        cash_yield_pct: Annual cash yield, used as the Sharpe risk-free rate
        inflation_rate_pct: Annual inflation for the real final balance
        is_bankrupt: Whether the account was liquidated

    Returns:
        PerformanceMetrics dataclass
    """
    total_months = len(equity_curve)
    years = total_months / MONTHS_PER_YEAR
    final_balance = float(equity_curve.iloc[-1]) if total_months else 0.0
    inflation_rate_pct = inflation_rate_pct or 0.0

    max_drawdown = calculate_max_drawdown(equity_curve)

    if is_bankrupt:
        cagr = BANKRUPT_RETURN
        irr = BANKRUPT_RETURN
    else:
        cagr = calculate_cagr(initial_capital, final_balance, years)
        irr = calculate_irr(
            initial_capital,
            contribution_amount,
            contribution_interval,
            final_balance,
            total_months,
        )

    if max_drawdown > 0 and is_bankrupt:
        calmar = BANKRUPT_RETURN
    else:
        calmar = calculate_calmar_ratio(irr, max_drawdown)

    annual_returns = calculate_annual_returns(equity_curve)
    worst_year = min(float(annual_returns.min()), 0.0) if not annual_returns.empty else 0.0

    return PerformanceMetrics(
        final_balance=final_balance,
        real_final_balance=calculate_real_value(final_balance, inflation_rate_pct, years),
        cagr=cagr,
        max_drawdown=max_drawdown,
        sharpe_ratio=calculate_sharpe_ratio(equity_curve, cash_yield_pct),
        irr=irr,
        worst_year_return=worst_year,
        max_recovery_months=calculate_max_recovery_time(equity_curve),
        calmar_ratio=calmar,
        pain_index=calculate_ulcer_index(equity_curve),
        inflation_rate=inflation_rate_pct,
    )
