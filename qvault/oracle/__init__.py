"""Oracle — кэш цены и deviation guard."""

from .price_guard import PriceGuard, PriceOrigin, PriceReading

__all__ = [
    "PriceGuard",
    "PriceOrigin",
    "PriceReading",
]
