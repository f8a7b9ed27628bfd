"""Shared fixtures for simulation tests."""

import pytest
import pandas as pd

from pledge_backtest.data import PriceRow
from pledge_backtest.simulation import (
    AssetConfig,
    InterestType,
    LeverageConfig,
    LtvBasis,
    WithdrawType,
)


def generate_prices(
    months: int,
    base_price: float = 100.0,
    leveraged_price: float = 100.0,
    start: str = "2020-01-01",
) -> list[PriceRow]:
    """Constant monthly prices starting at the given month."""
    dates = pd.date_range(start, periods=months, freq="MS")
    return [PriceRow(date, base_price, leveraged_price) for date in dates]


def with_prices(prices: list[PriceRow], index: int, **changes) -> list[PriceRow]:
    """Copy of the series with one row's prices replaced."""
    row = prices[index]
    updated = list(prices)
    updated[index] = PriceRow(
        row.date,
        changes.get("base_price", row.base_price),
        changes.get("leveraged_price", row.leveraged_price),
    )
    return updated


def make_config(**overrides) -> AssetConfig:
    """60/40 account with monthly contributions, no yield and no leverage."""
    params = dict(
        initial_capital=10_000,
        contribution_amount=1_000,
        contribution_interval_months=1,
        yearly_contribution_month=12,
        base_weight=60,
        leveraged_weight=40,
        contribution_base_weight=60,
        contribution_leveraged_weight=40,
        cash_yield_annual=0.0,
        leverage=LeverageConfig(enabled=False),
    )
    params.update(overrides)
    return AssetConfig(**params)


def make_leverage(**overrides) -> LeverageConfig:
    """Enabled, interest-free leverage with no withdrawals."""
    params = dict(
        enabled=True,
        interest_rate=0.0,
        base_pledge_ratio=0.7,
        leveraged_pledge_ratio=0.0,
        cash_pledge_ratio=0.95,
        max_ltv=50.0,
        withdraw_type=WithdrawType.FIXED,
        withdraw_value=0.0,
        inflation_rate=0.0,
        interest_type=InterestType.CAPITALIZED,
        ltv_basis=LtvBasis.TOTAL_ASSETS,
    )
    params.update(overrides)
    return LeverageConfig(**params)


@pytest.fixture
def prices_24m():
    """Two years of constant prices."""
    return generate_prices(24)
