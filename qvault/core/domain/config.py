"""
VaultConfig — версионированная конфигурация vault

Immutable Pydantic модель с валидированными границами. Загружается один раз
при старте (load_config) и проверяется против JSON Schema контракта
(qvault/core/contracts/schema/vault_config.json) до построения модели.
"""

import json
from pathlib import Path
from typing import Any, Final

from pydantic import BaseModel, Field, model_validator

from qvault.core.contracts import validate_vault_config
from qvault.core.math.fixed_point import BPS_DENOMINATOR


# =============================================================================
# DEFAULTS
# =============================================================================

CONFIG_SCHEMA_VERSION: Final[str] = "1"

DEFAULT_MINT_FEE_BPS: Final[int] = 10
DEFAULT_REDEEM_FEE_BPS: Final[int] = 10
DEFAULT_MIN_COLLATERAL_RATIO_BPS: Final[int] = 10_500
DEFAULT_CRITICAL_COLLATERAL_RATIO_BPS: Final[int] = 10_100
DEFAULT_MAX_DEVIATION_BPS: Final[int] = 200
DEFAULT_MIN_BLOCKS_BETWEEN_UPDATES: Final[int] = 1


# =============================================================================
# CONFIG MODEL
# =============================================================================


class VaultConfig(BaseModel):
    """
    Конфигурация vault.

    Границы:
    - fees: [0, 10000] bps
    - critical_collateral_ratio_bps >= 10000 (100%)
    - min_collateral_ratio_bps > critical_collateral_ratio_bps
    - max_deviation_bps: [1, 10000]
    """

    schema_version: str = Field(
        CONFIG_SCHEMA_VERSION, pattern="^1$", description="Версия схемы конфигурации"
    )

    # Fees
    mint_fee_bps: int = Field(
        DEFAULT_MINT_FEE_BPS, ge=0, le=BPS_DENOMINATOR, description="Комиссия mint (bps)"
    )
    redeem_fee_bps: int = Field(
        DEFAULT_REDEEM_FEE_BPS, ge=0, le=BPS_DENOMINATOR, description="Комиссия redeem (bps)"
    )

    # Collateralization thresholds
    min_collateral_ratio_bps: int = Field(
        DEFAULT_MIN_COLLATERAL_RATIO_BPS,
        gt=0,
        description="Ratio, ниже которого mint запрещён (bps)",
    )
    critical_collateral_ratio_bps: int = Field(
        DEFAULT_CRITICAL_COLLATERAL_RATIO_BPS,
        ge=BPS_DENOMINATOR,
        description="Ratio, при котором (и ниже) активен liquidation mode (bps)",
    )

    # Price guard
    max_deviation_bps: int = Field(
        DEFAULT_MAX_DEVIATION_BPS,
        ge=1,
        le=BPS_DENOMINATOR,
        description="Максимальное отклонение новой цены от кэша (bps)",
    )
    min_blocks_between_updates: int = Field(
        DEFAULT_MIN_BLOCKS_BETWEEN_UPDATES,
        ge=0,
        description="Минимум блоков между чтениями oracle",
    )

    # Reserve adapter
    yield_withdraw_tolerance: int = Field(
        0, ge=0, description="Допуск расхождения заявленного/фактического вывода (minor units)"
    )

    model_config = {"frozen": True, "extra": "forbid"}

    @model_validator(mode="after")
    def validate_threshold_order(self) -> "VaultConfig":
        """min ratio строго выше critical ratio."""
        if self.min_collateral_ratio_bps <= self.critical_collateral_ratio_bps:
            raise ValueError(
                f"min_collateral_ratio_bps {self.min_collateral_ratio_bps} must exceed "
                f"critical_collateral_ratio_bps {self.critical_collateral_ratio_bps}"
            )
        return self


# =============================================================================
# LOADING
# =============================================================================


def config_from_dict(data: dict[str, Any]) -> VaultConfig:
    """
    Построение VaultConfig из dict с проверкой JSON Schema контракта.

    Raises:
        jsonschema.ValidationError: Если данные не соответствуют контракту
        pydantic.ValidationError: Если нарушены межполевые границы
    """
    validate_vault_config(data)
    return VaultConfig.model_validate(data)


def load_config(path: str | Path) -> VaultConfig:
    """
    Загрузка конфигурации из JSON файла.

    Args:
        path: Путь к JSON файлу конфигурации

    Returns:
        Валидированный VaultConfig
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return config_from_dict(data)
