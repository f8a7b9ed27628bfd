"""Monthly backtester for a leveraged two-asset portfolio with margin borrowing."""

from pledge_backtest.data import (
    InvalidInputError,
    PriceRow,
    load_price_csv,
    price_series_from_frame,
    validate_price_series,
)
from pledge_backtest.metrics import PerformanceMetrics, compute_metrics
from pledge_backtest.simulation import (
    AssetConfig,
    BacktestEngine,
    InterestType,
    LeverageConfig,
    LtvBasis,
    PortfolioState,
    Profile,
    SimulationResult,
    StrategyType,
    WithdrawType,
    get_strategy,
    history_frame,
    run_backtest,
    run_profiles,
)
from pledge_backtest.config import DEFAULT_PROFILES, load_profiles, parse_profiles

__all__ = [
    "InvalidInputError",
    "PriceRow",
    "load_price_csv",
    "price_series_from_frame",
    "validate_price_series",
    "PerformanceMetrics",
    "compute_metrics",
    "AssetConfig",
    "BacktestEngine",
    "InterestType",
    "LeverageConfig",
    "LtvBasis",
    "PortfolioState",
    "Profile",
    "SimulationResult",
    "StrategyType",
    "WithdrawType",
    "get_strategy",
    "history_frame",
    "run_backtest",
    "run_profiles",
    "DEFAULT_PROFILES",
    "load_profiles",
    "parse_profiles",
]
