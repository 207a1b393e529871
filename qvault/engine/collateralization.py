"""
Collateralization Calculator — ratio обеспечения протокола

ratio_bps = (backing_reserve + aggregate_margin) * 10000 / debt_value

- backing_reserve = held + deployed - accumulated_fees
- debt_value = synthetic_supply * price, в reserve minor units
- synthetic_supply == 0 → RATIO_SENTINEL_MAX (нет долга ⇒ платёжеспособен)

Решения:
- can_mint: цена валидна И ratio >= min_collateral_ratio_bps
- should_trigger_liquidation: ratio <= critical_collateral_ratio_bps

Liquidation mode нигде не хранится: каждый потребитель пересчитывает его
из текущего состояния ledger, поэтому рассинхронизация невозможна.
"""

from dataclasses import dataclass

from qvault.collaborators.protocols import MarginPool
from qvault.core.domain.ledger import CollateralLedger
from qvault.core.domain.units import synthetic_value_in_reserve
from qvault.core.math.fixed_point import BPS_DENOMINATOR, RATIO_SENTINEL_MAX, safe_mul_div
from qvault.oracle.price_guard import PriceGuard


@dataclass(frozen=True)
class MintEligibility:
    """Результат проверки допуска mint."""

    allowed: bool
    block_reason: str

    ratio_bps: int | None
    min_ratio_bps: int

    details: str


class CollateralizationCalculator:
    """Расчёт ratio обеспечения по ledger + агрегированной марже."""

    def __init__(self, ledger: CollateralLedger, price_guard: PriceGuard, margin_pool: MarginPool):
        self.ledger = ledger
        self.price_guard = price_guard
        self.margin_pool = margin_pool

    def total_collateral(self) -> int:
        """Резервы держателей + агрегированная маржа (reserve minor units)."""
        return self.ledger.backing_reserve + self.margin_pool.get_aggregate_margin()

    def debt_value(self, price: int) -> int:
        """Стоимость synthetic supply в reserve minor units."""
        return synthetic_value_in_reserve(self.ledger.synthetic_supply, price)

    def ratio_at_price(self, price: int) -> int:
        """
        Ratio при заданной цене.

        Returns:
            ratio в bps или RATIO_SENTINEL_MAX, если долга нет
        """
        if self.ledger.synthetic_supply == 0:
            return RATIO_SENTINEL_MAX
        return safe_mul_div(
            self.total_collateral(),
            BPS_DENOMINATOR,
            self.debt_value(price),
            fallback=RATIO_SENTINEL_MAX,
        )

    def collateralization_ratio_bps(self) -> int:
        """
        Текущий ratio обеспечения.

        Raises:
            OracleInvalid: Если есть долг, а цена невалидна
        """
        if self.ledger.synthetic_supply == 0:
            return RATIO_SENTINEL_MAX
        return self.ratio_at_price(self.price_guard.require_price())

    def evaluate_mint_eligibility(self, price: int | None = None) -> MintEligibility:
        """
        Подробная проверка допуска mint (без исключений).

        Args:
            price: уже валидированная цена; None → чтение через price guard
        """
        min_ratio = self.ledger.min_collateral_ratio_bps
        if price is None:
            reading = self.price_guard.validated_price()
            if not reading.is_valid:
                return MintEligibility(
                    allowed=False,
                    block_reason="oracle_invalid",
                    ratio_bps=None,
                    min_ratio_bps=min_ratio,
                    details=f"price guard rejected: {reading.block_reason}",
                )
            price = reading.price

        ratio = self.ratio_at_price(price)
        if ratio < min_ratio:
            return MintEligibility(
                allowed=False,
                block_reason="ratio_below_minimum",
                ratio_bps=ratio,
                min_ratio_bps=min_ratio,
                details=f"ratio {ratio} bps < minimum {min_ratio} bps",
            )

        return MintEligibility(
            allowed=True,
            block_reason="",
            ratio_bps=ratio,
            min_ratio_bps=min_ratio,
            details=f"PASS: ratio={ratio} bps, minimum={min_ratio} bps",
        )

    def can_mint(self) -> bool:
        return self.evaluate_mint_eligibility().allowed

    def should_trigger_liquidation(self) -> bool:
        """
        Liquidation mode: ratio <= critical.

        Raises:
            OracleInvalid: Если есть долг, а цена невалидна
        """
        return self.collateralization_ratio_bps() <= self.ledger.critical_collateral_ratio_bps

    def in_liquidation_at_price(self, price: int) -> bool:
        return self.ratio_at_price(price) <= self.ledger.critical_collateral_ratio_bps
