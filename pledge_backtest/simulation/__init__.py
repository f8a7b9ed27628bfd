"""Portfolio simulation module."""

from .state import (
    EventType,
    FinancialEvent,
    NoMemory,
    SmartAdjustMemory,
    StrategyMemory,
    Shares,
    PortfolioState,
)

from .leverage import (
    WithdrawType,
    InterestType,
    LtvBasis,
    LeverageConfig,
    DEFAULT_BASE_PLEDGE_RATIO,
    DEFAULT_LEVERAGED_PLEDGE_RATIO,
    DEFAULT_CASH_PLEDGE_RATIO,
    DEFAULT_LTV_BASIS,
    DEFAULT_INTEREST_TYPE,
    LTV_SENTINEL,
    resolve_leverage_config,
    monthly_rate,
    accrue_cash_interest,
    service_debt_interest,
    calculate_effective_collateral,
    is_withdrawal_month,
    calculate_withdrawal,
    calculate_ltv,
    check_liquidation,
    calculate_beta,
)

from .strategies import (
    AssetConfig,
    Allocation,
    StrategyType,
    StrategyFunction,
    STRATEGIES,
    target_allocation,
    contribution_allocation,
    is_contribution_month,
    no_rebalance_strategy,
    rebalance_strategy,
    smart_strategy,
    parse_strategy_type,
    get_strategy,
)

from .backtest import (
    SimulationResult,
    Profile,
    BacktestEngine,
    equity_curve,
    history_frame,
    run_backtest,
    run_profile,
    run_profiles,
)

__all__ = [
    # State
    "EventType",
    "FinancialEvent",
    "NoMemory",
    "SmartAdjustMemory",
    "StrategyMemory",
    "Shares",
    "PortfolioState",
    # Leverage
    "WithdrawType",
    "InterestType",
    "LtvBasis",
    "LeverageConfig",
    "DEFAULT_BASE_PLEDGE_RATIO",
    "DEFAULT_LEVERAGED_PLEDGE_RATIO",
    "DEFAULT_CASH_PLEDGE_RATIO",
    "DEFAULT_LTV_BASIS",
    "DEFAULT_INTEREST_TYPE",
    "LTV_SENTINEL",
    "resolve_leverage_config",
    "monthly_rate",
    "accrue_cash_interest",
    "service_debt_interest",
    "calculate_effective_collateral",
    "is_withdrawal_month",
    "calculate_withdrawal",
    "calculate_ltv",
    "check_liquidation",
    "calculate_beta",
    # Strategies
    "AssetConfig",
    "Allocation",
    "StrategyType",
    "StrategyFunction",
    "STRATEGIES",
    "target_allocation",
    "contribution_allocation",
    "is_contribution_month",
    "no_rebalance_strategy",
    "rebalance_strategy",
    "smart_strategy",
    "parse_strategy_type",
    "get_strategy",
    # Backtest
    "SimulationResult",
    "Profile",
    "BacktestEngine",
    "equity_curve",
    "history_frame",
    "run_backtest",
    "run_profile",
    "run_profiles",
]
