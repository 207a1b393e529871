"""
PriceCache — кэш последней валидированной цены

last_valid_price записывается только:
- после прохождения deviation check против предыдущего значения, или
- через привилегированный refresh, который заново валидирует сам feed.

Создаётся один раз при инициализации и только мутируется (через apply/restore).
"""

from typing import Any

from pydantic import BaseModel, Field

from qvault.core.domain.config import VaultConfig
from qvault.core.math.fixed_point import BPS_DENOMINATOR


class PriceCache(BaseModel):
    """Состояние кэша цены (price — 18 decimals)."""

    last_valid_price: int = Field(0, ge=0, description="Последняя валидная цена (0 = нет)")
    last_update_block: int = Field(0, ge=0, description="Блок последнего обновления")
    last_update_time: int = Field(0, ge=0, description="Время последнего обновления (unix sec)")

    max_deviation_bps: int = Field(..., ge=1, le=BPS_DENOMINATOR)
    min_blocks_between_updates: int = Field(..., ge=0)

    model_config = {"extra": "forbid"}

    @classmethod
    def from_config(cls, config: VaultConfig) -> "PriceCache":
        return cls(
            max_deviation_bps=config.max_deviation_bps,
            min_blocks_between_updates=config.min_blocks_between_updates,
        )

    @property
    def has_price(self) -> bool:
        return self.last_valid_price > 0

    def apply(self, **changes: Any) -> None:
        """Атомарное применение изменений (см. CollateralLedger.apply)."""
        candidate = type(self).model_validate({**self.model_dump(), **changes})
        for name in changes:
            setattr(self, name, getattr(candidate, name))

    def restore(self, state: dict[str, Any]) -> None:
        candidate = type(self).model_validate(state)
        for name in type(self).model_fields:
            setattr(self, name, getattr(candidate, name))
