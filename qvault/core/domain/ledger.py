"""
CollateralLedger — авторитетная запись резервов и synthetic supply

Pydantic модель состояния ledger. Создаётся один раз при инициализации vault
и живёт всё время работы системы: не пересоздаётся, только мутируется.

Мутация разрешена только через apply(): кандидат состояния валидируется
целиком (поля + межполевые инварианты) и лишь затем копируется в self.
Частично применённых изменений не бывает.

Инварианты:
- Все суммы >= 0
- critical_collateral_ratio_bps < min_collateral_ratio_bps
- accumulated_fees <= reserve_held_direct + reserve_deployed_to_yield
"""

from typing import Any

from pydantic import BaseModel, Field, model_validator

from qvault.core.domain.config import VaultConfig
from qvault.core.math.fixed_point import BPS_DENOMINATOR


class CollateralLedger(BaseModel):
    """
    Ledger двухактивного vault (reserve / synthetic).

    reserve_held_direct + reserve_deployed_to_yield = total reserve backing.
    """

    # Резервы (reserve minor units, 6 decimals)
    reserve_held_direct: int = Field(0, ge=0, description="Reserve в локальном хранении")
    reserve_deployed_to_yield: int = Field(
        0, ge=0, description="Reserve, размещённый в yield venue"
    )
    accumulated_fees: int = Field(
        0, ge=0, description="Накопленные комиссии (часть резервов, не обеспечение)"
    )

    # Supply (synthetic minor units, 18 decimals)
    synthetic_supply: int = Field(0, ge=0, description="Synthetic в обращении")

    # Параметры
    mint_fee_bps: int = Field(..., ge=0, le=BPS_DENOMINATOR)
    redeem_fee_bps: int = Field(..., ge=0, le=BPS_DENOMINATOR)
    min_collateral_ratio_bps: int = Field(..., gt=0)
    critical_collateral_ratio_bps: int = Field(..., ge=BPS_DENOMINATOR)

    paused: bool = Field(False, description="Mint/redeem остановлены")

    model_config = {"extra": "forbid"}

    @model_validator(mode="after")
    def validate_invariants(self) -> "CollateralLedger":
        if self.min_collateral_ratio_bps <= self.critical_collateral_ratio_bps:
            raise ValueError(
                f"min_collateral_ratio_bps {self.min_collateral_ratio_bps} must exceed "
                f"critical_collateral_ratio_bps {self.critical_collateral_ratio_bps}"
            )
        if self.accumulated_fees > self.total_reserve:
            raise ValueError(
                f"accumulated_fees {self.accumulated_fees} exceed total reserve {self.total_reserve}"
            )
        return self

    @classmethod
    def from_config(cls, config: VaultConfig) -> "CollateralLedger":
        """Пустой ledger с параметрами из конфигурации."""
        return cls(
            mint_fee_bps=config.mint_fee_bps,
            redeem_fee_bps=config.redeem_fee_bps,
            min_collateral_ratio_bps=config.min_collateral_ratio_bps,
            critical_collateral_ratio_bps=config.critical_collateral_ratio_bps,
        )

    # -------------------------------------------------------------------------
    # Derived
    # -------------------------------------------------------------------------

    @property
    def total_reserve(self) -> int:
        """held + deployed."""
        return self.reserve_held_direct + self.reserve_deployed_to_yield

    @property
    def backing_reserve(self) -> int:
        """Резервы, принадлежащие держателям synthetic (без комиссий)."""
        return self.total_reserve - self.accumulated_fees

    @property
    def free_held_direct(self) -> int:
        """Локальный reserve, доступный для выплат (без комиссий)."""
        return max(self.reserve_held_direct - self.accumulated_fees, 0)

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def apply(self, **changes: Any) -> None:
        """
        Атомарное применение изменений.

        Raises:
            pydantic.ValidationError: Если кандидат нарушает инварианты
                (self при этом не изменяется)
        """
        candidate = type(self).model_validate({**self.model_dump(), **changes})
        for name in changes:
            setattr(self, name, getattr(candidate, name))

    def restore(self, state: dict[str, Any]) -> None:
        """Восстановление из снапшота (rollback или загрузка при старте)."""
        candidate = type(self).model_validate(state)
        for name in type(self).model_fields:
            setattr(self, name, getattr(candidate, name))
