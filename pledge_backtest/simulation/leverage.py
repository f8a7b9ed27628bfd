"""Margin loan accounting: interest servicing, withdrawals and LTV checks."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

import pandas as pd

from .state import EventType, FinancialEvent, PortfolioState


class WithdrawType(Enum):
    """How the yearly living-expense withdrawal is sized."""
    PERCENT = "PERCENT"
    FIXED = "FIXED"


class InterestType(Enum):
    """How loan interest is settled each month."""
    MONTHLY = "MONTHLY"          # pay from cash, capitalize any shortfall
    MATURITY = "MATURITY"        # simple interest accrued separately
    CAPITALIZED = "CAPITALIZED"  # added to principal (compounding)


class LtvBasis(Enum):
    """Denominator used for the loan-to-value ratio."""
    TOTAL_ASSETS = "TOTAL_ASSETS"
    COLLATERAL = "COLLATERAL"


DEFAULT_BASE_PLEDGE_RATIO = 0.7
DEFAULT_LEVERAGED_PLEDGE_RATIO = 0.0
DEFAULT_CASH_PLEDGE_RATIO = 0.95
DEFAULT_LTV_BASIS = LtvBasis.TOTAL_ASSETS
DEFAULT_INTEREST_TYPE = InterestType.CAPITALIZED

# LTV reported when debt exists but nothing is pledged
LTV_SENTINEL = 9999.0


@dataclass(frozen=True)
class LeverageConfig:
    """Configuration for borrowing against the portfolio."""

    enabled: bool = False

    interest_rate: float = 5.0
    """Annual loan rate in percent (e.g., 5.0 = 5%)."""

    base_pledge_ratio: Optional[float] = None
    """Fraction of the base asset value counted as collateral (0-1)."""

    leveraged_pledge_ratio: Optional[float] = None
    """Fraction of the leveraged asset value counted as collateral (0-1)."""

    cash_pledge_ratio: Optional[float] = None
    """Fraction of cash counted as collateral (0-1)."""

    max_ltv: float = 100.0
    """LTV percentage above which the account is liquidated."""

    withdraw_type: WithdrawType = WithdrawType.PERCENT

    withdraw_value: float = 2.0
    """Percent of total assets, or a nominal amount, depending on withdraw_type."""

    inflation_rate: float = 0.0
    """Annual inflation in percent applied to FIXED withdrawals."""

    interest_type: Optional[InterestType] = None
    ltv_basis: Optional[LtvBasis] = None


def resolve_leverage_config(config: LeverageConfig) -> LeverageConfig:
    """Fill every unset field with its module default."""
    return LeverageConfig(
        enabled=config.enabled,
        interest_rate=config.interest_rate,
        base_pledge_ratio=_or_default(config.base_pledge_ratio, DEFAULT_BASE_PLEDGE_RATIO),
        leveraged_pledge_ratio=_or_default(
            config.leveraged_pledge_ratio, DEFAULT_LEVERAGED_PLEDGE_RATIO
        ),
        cash_pledge_ratio=_or_default(config.cash_pledge_ratio, DEFAULT_CASH_PLEDGE_RATIO),
        max_ltv=config.max_ltv,
        withdraw_type=config.withdraw_type,
        withdraw_value=config.withdraw_value,
        inflation_rate=config.inflation_rate or 0.0,
        interest_type=_or_default(config.interest_type, DEFAULT_INTEREST_TYPE),
        ltv_basis=_or_default(config.ltv_basis, DEFAULT_LTV_BASIS),
    )


def _or_default(value, default):
    return default if value is None else value


def monthly_rate(annual_rate_pct: float) -> float:
    """
    Convert an annual percentage rate to the equivalent compounded monthly rate.

    Args:
        annual_rate_pct: Annual rate in percent (e.g., 4.0 = 4%)

    Returns:
        Monthly rate as decimal
    """
    return (1 + annual_rate_pct / 100) ** (1 / 12) - 1


def accrue_cash_interest(
    state: PortfolioState,
    monthly_yield: float,
    annual_yield_pct: float,
) -> list[FinancialEvent]:
    """Credit one month of cash yield. Amounts of a cent or less are skipped."""
    interest_earned = state.cash_balance * monthly_yield
    if interest_earned <= 0.01:
        return []

    state.cash_balance += interest_earned
    return [
        FinancialEvent(
            EventType.INTEREST_INC,
            f"Cash Interest (+{annual_yield_pct / 12:.2f}%)",
            interest_earned,
        )
    ]


def service_debt_interest(
    state: PortfolioState,
    interest_due: float,
    interest_type: InterestType,
) -> list[FinancialEvent]:
    """
    Settle one month of loan interest according to the interest mode.

    Args:
        state: Working state, updated in place
        interest_due: Interest owed for the month
        interest_type: Settlement mode

    Returns:
        Journal entries describing the cash flows
    """
    if interest_due <= 0:
        return []

    events = []

    if interest_type == InterestType.MONTHLY:
        if state.cash_balance >= interest_due:
            state.cash_balance -= interest_due
            events.append(FinancialEvent(
                EventType.INTEREST_EXP, "Loan Interest Paid by Cash", -interest_due
            ))
        else:
            paid_by_cash = state.cash_balance
            shortfall = interest_due - paid_by_cash

            if paid_by_cash > 0:
                events.append(FinancialEvent(
                    EventType.INTEREST_EXP,
                    "Loan Interest Paid by Cash (Partial)",
                    -paid_by_cash,
                ))

            state.cash_balance = 0.0
            state.debt_balance += shortfall
            events.append(FinancialEvent(
                EventType.DEBT_INC, "Unpaid Interest Capitalized to Debt", shortfall
            ))

    elif interest_type == InterestType.MATURITY:
        state.accrued_interest += interest_due
        events.append(FinancialEvent(
            EventType.INTEREST_EXP, "Interest Accrued (Not Paid)", 0.0
        ))

    else:
        state.debt_balance += interest_due
        events.append(FinancialEvent(
            EventType.DEBT_INC, "Interest Capitalized to Debt (Compound)", interest_due
        ))

    return events


def calculate_effective_collateral(
    base_value: float,
    leveraged_value: float,
    cash_value: float,
    config: LeverageConfig,
) -> float:
    """Sum of asset values after applying each pledge ratio haircut."""
    return (
        base_value * config.base_pledge_ratio
        + leveraged_value * config.leveraged_pledge_ratio
        + cash_value * config.cash_pledge_ratio
    )


def is_withdrawal_month(date: pd.Timestamp, month_index: int) -> bool:
    """Withdrawals happen on the first simulated month and every January."""
    return month_index == 0 or date.month == 1


def calculate_withdrawal(
    total_asset_value: float,
    month_index: int,
    config: LeverageConfig,
) -> float:
    """
    Size of the living-expense withdrawal funded by new borrowing.

    Args:
        total_asset_value: Gross asset value (positions + cash)
        month_index: Index of the current month in the simulation
        config: Resolved leverage config

    Returns:
        Amount to borrow
    """
    if config.withdraw_type == WithdrawType.PERCENT:
        return total_asset_value * (config.withdraw_value / 100)

    # Whole years elapsed: month 0 draws the base amount, month 12 one year inflated
    years_elapsed = month_index // 12
    inflation_factor = (1 + config.inflation_rate / 100) ** years_elapsed
    return config.withdraw_value * inflation_factor


def calculate_ltv(
    liability: float,
    total_asset_value: float,
    effective_collateral: float,
    ltv_basis: LtvBasis,
) -> float:
    """
    Loan-to-value ratio in percent.

    Args:
        liability: Debt principal plus accrued interest
        total_asset_value: Gross asset value
        effective_collateral: Pledged collateral value
        ltv_basis: Which denominator to use

    Returns:
        LTV percentage, LTV_SENTINEL when debt exists without collateral
    """
    if effective_collateral <= 0:
        return LTV_SENTINEL if liability > 0 else 0.0

    denominator = (
        effective_collateral if ltv_basis == LtvBasis.COLLATERAL else total_asset_value
    )
    if denominator <= 0:
        return LTV_SENTINEL
    return liability / denominator * 100


def check_liquidation(ltv: float, max_ltv: float) -> bool:
    """Liquidation triggers strictly above the configured maximum."""
    return ltv > max_ltv


def calculate_beta(base_value: float, leveraged_value: float, equity: float) -> float:
    """Exposure multiple relative to net equity (base 1x, leveraged 2x, cash 0x)."""
    if equity <= 0:
        return 0.0
    return (base_value * 1 + leveraged_value * 2) / equity
