"""Pricing resolver."""

from .resolver import (
    PriceQuote,
    RawUsage,
    image_cost_for,
    is_fixed_cost,
    resolve_price,
)

__all__ = [
    "PriceQuote",
    "RawUsage",
    "image_cost_for",
    "is_fixed_cost",
    "resolve_price",
]
