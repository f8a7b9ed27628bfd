"""Performance metrics module."""

from .performance import (
    PerformanceMetrics,
    calculate_cagr,
    calculate_drawdown_series,
    calculate_max_drawdown,
    calculate_monthly_returns,
    calculate_sharpe_ratio,
    calculate_irr,
    calculate_max_recovery_time,
    calculate_annual_returns,
    calculate_real_value,
    calculate_ulcer_index,
    calculate_calmar_ratio,
    compute_metrics,
)

__all__ = [
    "PerformanceMetrics",
    "calculate_cagr",
    "calculate_drawdown_series",
    "calculate_max_drawdown",
    "calculate_monthly_returns",
    "calculate_sharpe_ratio",
    "calculate_irr",
    "calculate_max_recovery_time",
    "calculate_annual_returns",
    "calculate_real_value",
    "calculate_ulcer_index",
    "calculate_calmar_ratio",
    "compute_metrics",
]
