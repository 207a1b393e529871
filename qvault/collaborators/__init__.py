"""Collaborators — интерфейсы внешних участников и in-memory реализации."""

from .memory import (
    InMemorySyntheticToken,
    InMemoryToken,
    InMemoryYieldVenue,
    StaticMarginPool,
    StaticPriceSource,
)
from .protocols import MarginPool, PriceSource, ReserveToken, SyntheticToken, YieldVenue

__all__ = [
    # Protocols
    "MarginPool",
    "PriceSource",
    "ReserveToken",
    "SyntheticToken",
    "YieldVenue",
    # In-memory implementations
    "InMemorySyntheticToken",
    "InMemoryToken",
    "InMemoryYieldVenue",
    "StaticMarginPool",
    "StaticPriceSource",
]
