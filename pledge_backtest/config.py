"""Profile configuration loading and validation."""

from enum import Enum
from pathlib import Path
from typing import Optional
import yaml

from .simulation import (
    AssetConfig,
    InterestType,
    LeverageConfig,
    LtvBasis,
    Profile,
    StrategyType,
    WithdrawType,
    parse_strategy_type,
)


DEFAULT_PROFILES = [
    Profile(
        id="1",
        name="Conservative",
        color="#2563eb",
        strategy_type=StrategyType.NO_REBALANCE,
        config=AssetConfig(
            initial_capital=10_000,
            contribution_amount=500,
            contribution_interval_months=1,
            yearly_contribution_month=12,
            base_weight=50,
            leveraged_weight=40,
            contribution_base_weight=100,
            contribution_leveraged_weight=0,
            cash_yield_annual=2.0,
        ),
    ),
    Profile(
        id="2",
        name="Aggressive",
        color="#ea580c",
        strategy_type=StrategyType.SMART,
        config=AssetConfig(
            initial_capital=10_000,
            contribution_amount=500,
            contribution_interval_months=1,
            yearly_contribution_month=12,
            base_weight=10,
            leveraged_weight=80,
            contribution_base_weight=10,
            contribution_leveraged_weight=80,
            cash_yield_annual=2.0,
        ),
    ),
]


def load_profiles(config_path: str | Path) -> list[Profile]:
    """
    Load profiles from YAML file.

    Args:
        config_path: Path to YAML config file

    Returns:
        List of Profile objects
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "r") as f:
        raw = yaml.safe_load(f) or {}

    return parse_profiles(raw)


def parse_profiles(raw: dict) -> list[Profile]:
    """
    Parse raw config dict into profiles.

    Args:
        raw: Raw config dictionary with a 'profiles' list

    Returns:
        List of Profile objects
    """
    profiles = []
    for i, prof_raw in enumerate(raw.get("profiles", []), start=1):
        profiles.append(Profile(
            id=str(prof_raw.get("id", i)),
            name=prof_raw.get("name", f"Profile {i}"),
            color=prof_raw.get("color", "#000000"),
            strategy_type=parse_strategy_type(prof_raw.get("strategy", "NO_REBALANCE")),
            config=parse_asset_config(prof_raw.get("assets", {})),
        ))
    return profiles


def parse_asset_config(raw: dict) -> AssetConfig:
    """
    Parse raw asset section into AssetConfig.

    Args:
        raw: Raw asset dictionary

    Returns:
        AssetConfig object
    """
    defaults = AssetConfig()

    return AssetConfig(
        initial_capital=raw.get("initial_capital", defaults.initial_capital),
        contribution_amount=raw.get("contribution_amount", defaults.contribution_amount),
        contribution_interval_months=raw.get(
            "contribution_interval_months", defaults.contribution_interval_months
        ),
        yearly_contribution_month=raw.get(
            "yearly_contribution_month", defaults.yearly_contribution_month
        ),
        base_weight=raw.get("base_weight", defaults.base_weight),
        leveraged_weight=raw.get("leveraged_weight", defaults.leveraged_weight),
        contribution_base_weight=raw.get(
            "contribution_base_weight", defaults.contribution_base_weight
        ),
        contribution_leveraged_weight=raw.get(
            "contribution_leveraged_weight", defaults.contribution_leveraged_weight
        ),
        cash_yield_annual=raw.get("cash_yield_annual", defaults.cash_yield_annual),
        leverage=parse_leverage_config(raw.get("leverage", {})),
    )


def parse_leverage_config(raw: dict) -> LeverageConfig:
    """
    Parse raw leverage section into LeverageConfig.

    Pledge ratios, interest type and LTV basis stay unset when absent and are
    resolved to defaults when a simulation starts.
    """
    defaults = LeverageConfig()

    return LeverageConfig(
        enabled=raw.get("enabled", defaults.enabled),
        interest_rate=raw.get("interest_rate", defaults.interest_rate),
        base_pledge_ratio=raw.get("base_pledge_ratio"),
        leveraged_pledge_ratio=raw.get("leveraged_pledge_ratio"),
        cash_pledge_ratio=raw.get("cash_pledge_ratio"),
        max_ltv=raw.get("max_ltv", defaults.max_ltv),
        withdraw_type=_parse_enum(
            WithdrawType, raw.get("withdraw_type"), "withdraw_type", defaults.withdraw_type
        ),
        withdraw_value=raw.get("withdraw_value", defaults.withdraw_value),
        inflation_rate=raw.get("inflation_rate", defaults.inflation_rate),
        interest_type=_parse_enum(InterestType, raw.get("interest_type"), "interest_type"),
        ltv_basis=_parse_enum(LtvBasis, raw.get("ltv_basis"), "ltv_basis"),
    )


def _parse_enum(enum_cls: type[Enum], value, field_name: str, default=None) -> Optional[Enum]:
    if value is None:
        return default
    try:
        return enum_cls(str(value).strip().upper())
    except ValueError:
        choices = ", ".join(m.value for m in enum_cls)
        raise ValueError(f"Invalid {field_name}: {value!r} (expected one of {choices})")
