"""Monthly portfolio state, journal events and per-strategy memory."""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Union

import pandas as pd


class EventType(Enum):
    """Journal entry kinds recorded for each simulated month."""
    INTEREST_INC = "INTEREST_INC"  # cash yield credited
    INTEREST_EXP = "INTEREST_EXP"  # loan interest paid or accrued
    DEBT_INC = "DEBT_INC"
    TRADE = "TRADE"
    DEPOSIT = "DEPOSIT"
    WITHDRAW = "WITHDRAW"
    INFO = "INFO"


@dataclass(frozen=True)
class FinancialEvent:
    """A single journal entry."""
    type: EventType
    description: str
    amount: Optional[float] = None


@dataclass(frozen=True)
class NoMemory:
    """Memory of strategies that keep nothing between months."""


@dataclass(frozen=True)
class SmartAdjustMemory:
    """Year-over-year bookkeeping of the smart-adjust strategy."""

    current_year: int
    """Calendar year the trackers below refer to."""

    start_leveraged_value: float = 0.0
    """Leveraged position value at the start of the tracked year."""

    year_inflow: float = 0.0
    """Contributions routed into the leveraged asset during the year."""

    last_action: Optional[str] = None
    """Human-readable description of the last December adjustment."""


StrategyMemory = Union[NoMemory, SmartAdjustMemory]


@dataclass(frozen=True)
class Shares:
    """Share counts held in the two instruments."""
    base: float = 0.0
    leveraged: float = 0.0


@dataclass
class PortfolioState:
    """
    State of the account at the end of one month.

    The simulation loop threads a single working instance through the months
    and appends `snapshot()` copies to the history.
    """

    date: pd.Timestamp
    shares: Shares = field(default_factory=Shares)
    cash_balance: float = 0.0
    debt_balance: float = 0.0
    accrued_interest: float = 0.0
    """Simple interest accrued but not yet paid (maturity mode only)."""

    total_value: float = 0.0
    """Net equity: assets - debt - accrued interest, floored at 0."""

    memory: StrategyMemory = field(default_factory=NoMemory)
    ltv: float = 0.0
    beta: float = 0.0
    events: list[FinancialEvent] = field(default_factory=list)

    def asset_values(self, base_price: float, leveraged_price: float) -> tuple[float, float]:
        """Market value of the base and leveraged positions."""
        return self.shares.base * base_price, self.shares.leveraged * leveraged_price

    def gross_value(self, base_price: float, leveraged_price: float) -> float:
        """Sum of position values and cash, before any debt."""
        base_value, leveraged_value = self.asset_values(base_price, leveraged_price)
        return base_value + leveraged_value + self.cash_balance

    def copy(self, **changes) -> "PortfolioState":
        """Independent copy; the event list is never shared."""
        changes.setdefault("events", list(self.events))
        return replace(self, **changes)

    def snapshot(self, events: list[FinancialEvent]) -> "PortfolioState":
        """Copy for the history carrying this month's journal."""
        return self.copy(events=list(events))
