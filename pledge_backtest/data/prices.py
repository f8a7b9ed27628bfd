"""Monthly price series for the base and leveraged instruments."""

from dataclasses import dataclass
from pathlib import Path
from typing import Sequence
import logging

import pandas as pd

logger = logging.getLogger(__name__)


class InvalidInputError(ValueError):
    """Raised when a price series violates the simulation preconditions."""


@dataclass(frozen=True)
class PriceRow:
    """Prices of both instruments for one calendar month."""

    date: pd.Timestamp
    """First day of the month."""

    base_price: float
    leveraged_price: float


def validate_price_series(prices: Sequence[PriceRow]) -> None:
    """
    Check the preconditions the simulation loop relies on.

    Args:
        prices: Monthly price rows

    Raises:
        InvalidInputError: if the series is empty, dates are not strictly
            increasing, or a price is not positive
    """
    if len(prices) == 0:
        raise InvalidInputError("Price series is empty")

    previous = None
    for row in prices:
        if row.base_price <= 0 or row.leveraged_price <= 0:
            raise InvalidInputError(f"Non-positive price on {row.date:%Y-%m-%d}")
        if previous is not None and row.date <= previous:
            raise InvalidInputError(
                f"Dates must be strictly increasing: {row.date:%Y-%m-%d} after {previous:%Y-%m-%d}"
            )
        previous = row.date


def price_series_from_frame(
    df: pd.DataFrame,
    base_column: str = "QQQ",
    leveraged_column: str = "QLD",
) -> list[PriceRow]:
    """
    Build a monthly price series from a date-indexed DataFrame.

    Rows are aligned to month starts; with several observations in a month
    the first one is used.

    Args:
        df: DataFrame indexed by date with one price column per instrument
        base_column: Column holding base asset prices
        leveraged_column: Column holding leveraged asset prices

    Returns:
        List of PriceRow, one per month with both prices present
    """
    missing = [c for c in (base_column, leveraged_column) if c not in df.columns]
    if missing:
        raise InvalidInputError(f"Missing price columns: {missing}")

    frame = df[[base_column, leveraged_column]].copy()
    frame.index = pd.DatetimeIndex(frame.index)
    monthly = frame.sort_index().resample("MS").first()

    nan_rows = monthly.isna().any(axis=1)
    if nan_rows.any():
        logger.warning(f"Dropping {int(nan_rows.sum())} months with missing prices")
        monthly = monthly[~nan_rows]

    logger.info(
        f"Built {len(monthly)} monthly rows for {base_column}/{leveraged_column}"
    )

    return [
        PriceRow(
            date=date,
            base_price=float(row[base_column]),
            leveraged_price=float(row[leveraged_column]),
        )
        for date, row in monthly.iterrows()
    ]


def load_price_csv(
    path: str | Path,
    date_column: str = "date",
    base_column: str = "QQQ",
    leveraged_column: str = "QLD",
) -> list[PriceRow]:
    """
    Load a monthly price series from a CSV file.

    Args:
        path: CSV file with a date column and one column per instrument
        date_column: Name of the date column
        base_column: Column holding base asset prices
        leveraged_column: Column holding leveraged asset prices

    Returns:
        List of PriceRow
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Price file not found: {path}")

    df = pd.read_csv(path, parse_dates=[date_column]).set_index(date_column)
    return price_series_from_frame(df, base_column, leveraged_column)


def price_series_to_frame(prices: Sequence[PriceRow]) -> pd.DataFrame:
    """Convert price rows back into a DataFrame indexed by date."""
    return pd.DataFrame(
        {
            "base_price": [row.base_price for row in prices],
            "leveraged_price": [row.leveraged_price for row in prices],
        },
        index=pd.DatetimeIndex([row.date for row in prices], name="date"),
    )
