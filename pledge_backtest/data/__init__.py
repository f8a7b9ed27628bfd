"""Price data input module."""

from .prices import (
    InvalidInputError,
    PriceRow,
    validate_price_series,
    price_series_from_frame,
    load_price_csv,
    price_series_to_frame,
)

__all__ = [
    "InvalidInputError",
    "PriceRow",
    "validate_price_series",
    "price_series_from_frame",
    "load_price_csv",
    "price_series_to_frame",
]
