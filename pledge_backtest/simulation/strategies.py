"""Contribution and rebalancing strategies."""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable
import logging

from ..data import PriceRow
from .leverage import LeverageConfig
from .state import PortfolioState, Shares, SmartAdjustMemory

logger = logging.getLogger(__name__)

# Share of a December profit moved from the leveraged asset into cash
PROFIT_HARVEST_FRACTION = 1 / 3
# Share of total value bought into the leveraged asset after a losing year
DIP_BUY_FRACTION = 0.02


@dataclass(frozen=True)
class AssetConfig:
    """Capital, contribution schedule and allocation of one account."""

    initial_capital: float = 10_000.0

    contribution_amount: float = 500.0
    """Amount added per contribution period (may be negative)."""

    contribution_interval_months: int = 1
    """1 = monthly, 3 = quarterly, 12 = yearly."""

    yearly_contribution_month: int = 12
    """Calendar month (1-12) of yearly contributions."""

    base_weight: float = 50.0
    """Target weight of the base asset in percent."""

    leveraged_weight: float = 40.0
    """Target weight of the leveraged asset in percent."""

    contribution_base_weight: float = 100.0
    contribution_leveraged_weight: float = 0.0

    cash_yield_annual: float = 2.0
    """Annual cash yield in percent."""

    leverage: LeverageConfig = field(default_factory=LeverageConfig)


@dataclass(frozen=True)
class Allocation:
    """Portfolio weights as decimals."""
    base: float
    leveraged: float
    cash: float


def _allocation(base_pct: float, leveraged_pct: float) -> Allocation:
    cash_pct = max(0.0, 100 - base_pct - leveraged_pct)
    return Allocation(base_pct / 100, leveraged_pct / 100, cash_pct / 100)


def target_allocation(config: AssetConfig) -> Allocation:
    """Weights used for the initial purchase and yearly rebalancing."""
    return _allocation(config.base_weight, config.leveraged_weight)


def contribution_allocation(config: AssetConfig) -> Allocation:
    """Weights used to invest each recurring contribution."""
    return _allocation(config.contribution_base_weight, config.contribution_leveraged_weight)


def is_contribution_month(row: PriceRow, config: AssetConfig, month_index: int) -> bool:
    """
    Check whether a recurring contribution is made this month.

    Yearly schedules match the calendar month; shorter intervals count months
    from the start of the simulation. Month 0 is the initial purchase.
    """
    if month_index == 0:
        return False
    if config.contribution_interval_months == 12:
        return row.date.month == (config.yearly_contribution_month or 12)
    if config.contribution_interval_months <= 0:
        return False
    return month_index % config.contribution_interval_months == 0


def _mark_to_market(state: PortfolioState, row: PriceRow) -> float:
    return state.gross_value(row.base_price, row.leveraged_price)


StrategyFunction = Callable[[PortfolioState, PriceRow, AssetConfig, int], PortfolioState]


def no_rebalance_strategy(
    state: PortfolioState,
    row: PriceRow,
    config: AssetConfig,
    month_index: int,
) -> PortfolioState:
    """
    Buy and hold plus periodic contributions.

    Month 0 invests the initial capital by target weights; later contribution
    months invest the contribution by contribution weights.
    """
    new_state = state.copy(date=row.date)

    if month_index == 0:
        weights = target_allocation(config)
        new_state.shares = Shares(
            base=config.initial_capital * weights.base / row.base_price,
            leveraged=config.initial_capital * weights.leveraged / row.leveraged_price,
        )
        new_state.cash_balance = config.initial_capital * weights.cash

    elif is_contribution_month(row, config, month_index):
        weights = contribution_allocation(config)
        amount = config.contribution_amount
        new_state.shares = Shares(
            base=new_state.shares.base + amount * weights.base / row.base_price,
            leveraged=(
                new_state.shares.leveraged + amount * weights.leveraged / row.leveraged_price
            ),
        )
        new_state.cash_balance += amount * weights.cash

    new_state.total_value = _mark_to_market(new_state, row)
    return new_state


def rebalance_strategy(
    state: PortfolioState,
    row: PriceRow,
    config: AssetConfig,
    month_index: int,
) -> PortfolioState:
    """Contributions as no-rebalance, then reset to target weights every January."""
    new_state = no_rebalance_strategy(state, row, config, month_index)

    if row.date.month == 1 and month_index != 0:
        total_value = new_state.total_value
        weights = target_allocation(config)
        new_state.shares = Shares(
            base=total_value * weights.base / row.base_price,
            leveraged=total_value * weights.leveraged / row.leveraged_price,
        )
        new_state.cash_balance = total_value * weights.cash

    return new_state


def smart_strategy(
    state: PortfolioState,
    row: PriceRow,
    config: AssetConfig,
    month_index: int,
) -> PortfolioState:
    """
    Harvest leveraged-asset gains or buy its dips once a year.

    Each December the leveraged position's profit for the year is
    ending value - (year-start value + contributions into it). A third of a
    positive profit is sold into cash; otherwise 2% of total value is bought
    with available cash.
    """
    is_first_month = month_index == 0
    year = row.date.year

    memory = state.memory
    if is_first_month or not isinstance(memory, SmartAdjustMemory) or memory.current_year != year:
        last_action = memory.last_action if isinstance(memory, SmartAdjustMemory) else None
        memory = SmartAdjustMemory(
            current_year=year,
            start_leveraged_value=state.shares.leveraged * row.leveraged_price,
            year_inflow=0.0,
            last_action=None if is_first_month else last_action,
        )

    new_state = no_rebalance_strategy(state, row, config, month_index)

    if is_first_month:
        memory = SmartAdjustMemory(
            current_year=year,
            start_leveraged_value=new_state.shares.leveraged * row.leveraged_price,
        )
    elif is_contribution_month(row, config, month_index):
        inflow = config.contribution_amount * contribution_allocation(config).leveraged
        memory = replace(memory, year_inflow=memory.year_inflow + inflow)

    if row.date.month == 12:
        leveraged_value = new_state.shares.leveraged * row.leveraged_price
        profit = leveraged_value - (memory.start_leveraged_value + memory.year_inflow)

        if profit > 0:
            sell_amount = profit * PROFIT_HARVEST_FRACTION
            new_state.shares = Shares(
                base=new_state.shares.base,
                leveraged=new_state.shares.leveraged - sell_amount / row.leveraged_price,
            )
            new_state.cash_balance += sell_amount
            memory = replace(memory, last_action=f"Sold Profit {sell_amount:.2f}")
        else:
            buy_amount = min(new_state.total_value * DIP_BUY_FRACTION, new_state.cash_balance)
            if buy_amount > 0:
                new_state.shares = Shares(
                    base=new_state.shares.base,
                    leveraged=new_state.shares.leveraged + buy_amount / row.leveraged_price,
                )
                new_state.cash_balance -= buy_amount
                memory = replace(memory, last_action=f"Bought Dip {buy_amount:.2f}")

    new_state.total_value = _mark_to_market(new_state, row)
    new_state.memory = memory
    return new_state


class StrategyType(Enum):
    """Available strategies."""
    NO_REBALANCE = "NO_REBALANCE"
    REBALANCE = "REBALANCE"
    SMART = "SMART"


STRATEGIES: dict[StrategyType, StrategyFunction] = {
    StrategyType.NO_REBALANCE: no_rebalance_strategy,
    StrategyType.REBALANCE: rebalance_strategy,
    StrategyType.SMART: smart_strategy,
}


def parse_strategy_type(value) -> StrategyType:
    """
    Map a strategy name to its StrategyType.

    Accepts enum members, values or names in any case. Unknown names fall
    back to NO_REBALANCE.
    """
    if isinstance(value, StrategyType):
        return value
    try:
        return StrategyType(str(value).strip().upper().replace("-", "_"))
    except ValueError:
        logger.warning(f"Unknown strategy {value!r}, using {StrategyType.NO_REBALANCE.value}")
        return StrategyType.NO_REBALANCE


def get_strategy(strategy_type) -> StrategyFunction:
    """
    Factory returning the strategy function for a type.

    Args:
        strategy_type: StrategyType or its name

    Returns:
        StrategyFunction
    """
    return STRATEGIES[parse_strategy_type(strategy_type)]
