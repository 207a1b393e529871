"""
Domain models and value objects.

Contains the collateral ledger, price cache, configuration, units and access control.
"""

from qvault.core.domain.access import AccessControl, Capability
from qvault.core.domain.clock import BlockClock
from qvault.core.domain.config import (
    CONFIG_SCHEMA_VERSION,
    VaultConfig,
    config_from_dict,
    load_config,
)
from qvault.core.domain.ledger import CollateralLedger
from qvault.core.domain.price_cache import PriceCache
from qvault.core.domain.units import (
    PRICE_DECIMALS,
    PRICE_UNIT,
    RESERVE_DECIMALS,
    RESERVE_UNIT,
    SYNTHETIC_DECIMALS,
    SYNTHETIC_UNIT,
    normalize_feed_price,
    reserve_to_synthetic,
    synthetic_value_in_reserve,
    to_reserve_units,
    to_synthetic_units,
)

__all__ = [
    # Access
    "AccessControl",
    "Capability",
    # Clock
    "BlockClock",
    # Config
    "CONFIG_SCHEMA_VERSION",
    "VaultConfig",
    "config_from_dict",
    "load_config",
    # State
    "CollateralLedger",
    "PriceCache",
    # Units
    "PRICE_DECIMALS",
    "PRICE_UNIT",
    "RESERVE_DECIMALS",
    "RESERVE_UNIT",
    "SYNTHETIC_DECIMALS",
    "SYNTHETIC_UNIT",
    "normalize_feed_price",
    "reserve_to_synthetic",
    "synthetic_value_in_reserve",
    "to_reserve_units",
    "to_synthetic_units",
]
