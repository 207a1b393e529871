"""
Contract Validation Module

Валидация JSON контрактов qvault: конфигурация и персистентное состояние.
"""

from .validators import (
    ContractValidator,
    LedgerStateValidator,
    PriceCacheValidator,
    SchemaLoader,
    VaultConfigValidator,
    VaultSnapshotValidator,
    validate_ledger_state,
    validate_price_cache,
    validate_vault_config,
    validate_vault_snapshot,
)

__all__ = [
    # Classes
    "SchemaLoader",
    "ContractValidator",
    "VaultConfigValidator",
    "LedgerStateValidator",
    "PriceCacheValidator",
    "VaultSnapshotValidator",
    # Functions
    "validate_vault_config",
    "validate_ledger_state",
    "validate_price_cache",
    "validate_vault_snapshot",
]
