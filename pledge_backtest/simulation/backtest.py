"""Main monthly simulation engine."""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Optional, Sequence
import logging

import pandas as pd

from ..data import PriceRow, validate_price_series
from ..metrics import PerformanceMetrics, compute_metrics
from .leverage import (
    accrue_cash_interest,
    calculate_beta,
    calculate_effective_collateral,
    calculate_ltv,
    calculate_withdrawal,
    check_liquidation,
    is_withdrawal_month,
    monthly_rate,
    resolve_leverage_config,
    service_debt_interest,
)
from .state import EventType, FinancialEvent, PortfolioState, Shares
from .strategies import (
    AssetConfig,
    StrategyFunction,
    StrategyType,
    get_strategy,
)

logger = logging.getLogger(__name__)

BASE_SYMBOL = "QQQ"
LEVERAGED_SYMBOL = "QLD"

# Share-count change below this is not journaled as a trade
TRADE_EPSILON = 0.001
# Implied external inflow above this is journaled as a deposit
DEPOSIT_THRESHOLD = 1.0


@dataclass
class SimulationResult:
    """Results from one simulation run."""

    strategy_name: str
    color: str
    is_leveraged: bool
    history: list[PortfolioState]
    is_bankrupt: bool
    bankruptcy_date: Optional[pd.Timestamp]
    metrics: PerformanceMetrics


@dataclass(frozen=True)
class Profile:
    """A named strategy/configuration pair to compare against others."""

    id: str
    name: str
    color: str = "#000000"
    strategy_type: StrategyType = StrategyType.NO_REBALANCE
    config: AssetConfig = field(default_factory=AssetConfig)


class BacktestEngine:
    """
    Monthly simulation engine.

    Each month:
    - Accrues cash yield and services margin debt
    - Runs the strategy and journals trades and deposits
    - Applies withdrawals, LTV and liquidation checks
    - Records net equity, beta and an independent snapshot
    """

    def __init__(
        self,
        prices: Sequence[PriceRow],
        strategy: StrategyFunction,
        config: AssetConfig,
        strategy_name: str = "",
        color: str = "#000000",
    ):
        """
        Initialize backtest engine.

        Args:
            prices: Monthly price rows, strictly increasing dates
            strategy: Strategy function run every month
            config: Account configuration
            strategy_name: Label carried into the result
            color: Display color carried into the result

        Raises:
            InvalidInputError: if the price series is malformed
        """
        validate_price_series(prices)

        self.prices = prices
        self.strategy = strategy
        self.config = config
        self.strategy_name = strategy_name
        self.color = color

        self.leverage = resolve_leverage_config(config.leverage)
        self.monthly_cash_yield = monthly_rate(config.cash_yield_annual)
        self.monthly_loan_rate = (
            monthly_rate(self.leverage.interest_rate) if self.leverage.enabled else 0.0
        )

    def run(self) -> SimulationResult:
        """
        Run the simulation.

        Returns:
            SimulationResult with the full history and metrics
        """
        logger.info(
            f"Running {self.strategy_name or self.strategy.__name__} from "
            f"{self.prices[0].date:%Y-%m} to {self.prices[-1].date:%Y-%m}"
        )

        state = PortfolioState(date=self.prices[0].date)
        history: list[PortfolioState] = []
        is_bankrupt = False
        bankruptcy_date: Optional[pd.Timestamp] = None

        for index, row in enumerate(self.prices):
            if is_bankrupt:
                history.append(self._bankrupt_placeholder(state, row))
                continue

            events: list[FinancialEvent] = []

            if index > 0:
                events += self._apply_banking(state)

            state, trade_events = self._apply_strategy(state, row, index)
            events += trade_events

            if self.leverage.enabled:
                leverage_events, liquidated = self._apply_leverage(state, row, index)
                events += leverage_events
                if liquidated:
                    is_bankrupt = True
                    bankruptcy_date = row.date

            if not is_bankrupt:
                base_value, leveraged_value = state.asset_values(
                    row.base_price, row.leveraged_price
                )
                assets = base_value + leveraged_value + state.cash_balance
                state.total_value = max(
                    0.0, assets - state.debt_balance - state.accrued_interest
                )
                state.beta = calculate_beta(base_value, leveraged_value, state.total_value)

            history.append(state.snapshot(events))

        return self._build_result(history, is_bankrupt, bankruptcy_date)

    def _apply_banking(self, state: PortfolioState) -> list[FinancialEvent]:
        """Credit cash yield and settle interest on outstanding debt."""
        events = accrue_cash_interest(
            state, self.monthly_cash_yield, self.config.cash_yield_annual
        )

        if self.leverage.enabled and state.debt_balance > 0:
            interest_due = state.debt_balance * self.monthly_loan_rate
            events += service_debt_interest(state, interest_due, self.leverage.interest_type)

        return events

    def _apply_strategy(
        self,
        state: PortfolioState,
        row: PriceRow,
        index: int,
    ) -> tuple[PortfolioState, list[FinancialEvent]]:
        """Run the strategy and journal the trades and deposits it implies."""
        cash_before = state.cash_balance
        shares_before = state.shares

        new_state = self.strategy(state, row, self.config, index)

        events = []
        base_diff = new_state.shares.base - shares_before.base
        leveraged_diff = new_state.shares.leveraged - shares_before.leveraged

        for symbol, diff, price in (
            (BASE_SYMBOL, base_diff, row.base_price),
            (LEVERAGED_SYMBOL, leveraged_diff, row.leveraged_price),
        ):
            if abs(diff) > TRADE_EPSILON:
                events.append(FinancialEvent(
                    EventType.TRADE,
                    f"{'Buy' if diff > 0 else 'Sell'} {abs(diff):.2f} {symbol} @ {price:.2f}",
                    -diff * price,
                ))

        net_trade_cost = base_diff * row.base_price + leveraged_diff * row.leveraged_price
        implied_inflow = (new_state.cash_balance - cash_before) + net_trade_cost
        if implied_inflow > DEPOSIT_THRESHOLD:
            events.append(FinancialEvent(
                EventType.DEPOSIT, "Recurring Contribution / Deposit", implied_inflow
            ))

        return new_state, events

    def _apply_leverage(
        self,
        state: PortfolioState,
        row: PriceRow,
        index: int,
    ) -> tuple[list[FinancialEvent], bool]:
        """Borrow for withdrawals, update LTV and check for liquidation."""
        events = []
        base_value, leveraged_value = state.asset_values(row.base_price, row.leveraged_price)
        cash_value = state.cash_balance
        total_asset_value = base_value + leveraged_value + cash_value
        collateral = calculate_effective_collateral(
            base_value, leveraged_value, cash_value, self.leverage
        )

        if is_withdrawal_month(row.date, index) and collateral > 0:
            amount = calculate_withdrawal(total_asset_value, index, self.leverage)
            if amount > 0:
                state.debt_balance += amount
                label = "Initial Loan Withdrawal" if index == 0 else "Annual Living Expense Withdrawal"
                events.append(FinancialEvent(EventType.WITHDRAW, label, -amount))
                events.append(FinancialEvent(
                    EventType.DEBT_INC, "Borrowing increased for withdrawal", amount
                ))

        state.ltv = calculate_ltv(
            state.debt_balance + state.accrued_interest,
            total_asset_value,
            collateral,
            self.leverage.ltv_basis,
        )

        if not check_liquidation(state.ltv, self.leverage.max_ltv):
            return events, False

        logger.warning(
            f"{self.strategy_name or 'Simulation'} liquidated on {row.date:%Y-%m} "
            f"at LTV {state.ltv:.1f}% (max {self.leverage.max_ltv}%)"
        )
        state.total_value = 0.0
        state.beta = 0.0
        events.append(FinancialEvent(
            EventType.INFO,
            f"!!! MARGIN CALL / LIQUIDATION (LTV: {state.ltv:.1f}%) !!!",
        ))
        return events, True

    def _bankrupt_placeholder(self, state: PortfolioState, row: PriceRow) -> PortfolioState:
        """Zeroed history row for months after liquidation."""
        return PortfolioState(
            date=row.date,
            shares=Shares(),
            memory=state.memory,
            events=[FinancialEvent(EventType.INFO, "Account Bankrupt")],
        )

    def _build_result(
        self,
        history: list[PortfolioState],
        is_bankrupt: bool,
        bankruptcy_date: Optional[pd.Timestamp],
    ) -> SimulationResult:
        """Aggregate metrics and package the result."""
        metrics = compute_metrics(
            equity_curve(history),
            initial_capital=self.config.initial_capital,
            contribution_amount=self.config.contribution_amount,
            contribution_interval=self.config.contribution_interval_months,
            cash_yield_pct=self.config.cash_yield_annual,
            inflation_rate_pct=self.leverage.inflation_rate,
            is_bankrupt=is_bankrupt,
        )

        logger.info(
            f"Finished {self.strategy_name or self.strategy.__name__}: "
            f"final equity {metrics.final_balance:,.2f}, CAGR {metrics.cagr:.2f}%"
        )

        return SimulationResult(
            strategy_name=self.strategy_name,
            color=self.color,
            is_leveraged=self.leverage.enabled,
            history=history,
            is_bankrupt=is_bankrupt,
            bankruptcy_date=bankruptcy_date,
            metrics=metrics,
        )


def equity_curve(history: Sequence[PortfolioState]) -> pd.Series:
    """Net equity of each month indexed by date."""
    return pd.Series(
        [s.total_value for s in history],
        index=pd.DatetimeIndex([s.date for s in history]),
        name="equity",
        dtype=float,
    )


def history_frame(result: SimulationResult) -> pd.DataFrame:
    """
    Tabulate a result's history.

    Returns:
        DataFrame indexed by date with holdings, balances and risk columns
    """
    history = result.history
    return pd.DataFrame(
        {
            "base_shares": [s.shares.base for s in history],
            "leveraged_shares": [s.shares.leveraged for s in history],
            "cash": [s.cash_balance for s in history],
            "debt": [s.debt_balance for s in history],
            "accrued_interest": [s.accrued_interest for s in history],
            "equity": [s.total_value for s in history],
            "ltv": [s.ltv for s in history],
            "beta": [s.beta for s in history],
            "events": [len(s.events) for s in history],
        },
        index=pd.DatetimeIndex([s.date for s in history], name="date"),
    )


def run_backtest(
    prices: Sequence[PriceRow],
    strategy: StrategyFunction,
    config: AssetConfig,
    strategy_name: str = "",
    color: str = "#000000",
) -> SimulationResult:
    """
    Convenience function to run a backtest.

    Args:
        prices: Monthly price rows
        strategy: Strategy function
        config: Account configuration
        strategy_name: Label carried into the result
        color: Display color carried into the result

    Returns:
        SimulationResult
    """
    engine = BacktestEngine(prices, strategy, config, strategy_name, color)
    return engine.run()


def run_profile(prices: Sequence[PriceRow], profile: Profile) -> SimulationResult:
    """Run one profile's strategy and configuration."""
    logger.debug(f"Running profile {profile.id} ({profile.name})")
    return run_backtest(
        prices,
        get_strategy(profile.strategy_type),
        profile.config,
        profile.name,
        profile.color,
    )


def run_profiles(
    prices: Sequence[PriceRow],
    profiles: Sequence[Profile],
    max_workers: Optional[int] = None,
) -> list[SimulationResult]:
    """
    Run independent simulations for several profiles.

    Args:
        prices: Monthly price rows, shared read-only by all runs
        profiles: Profiles to simulate
        max_workers: Run on a thread pool of this size when greater than 1

    Returns:
        Results in the same order as profiles
    """
    if not max_workers or max_workers <= 1 or len(profiles) <= 1:
        return [run_profile(prices, profile) for profile in profiles]

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        return list(executor.map(lambda profile: run_profile(prices, profile), profiles))
