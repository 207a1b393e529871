"""
Liquidation Engine — protocol-wide liquidation mode и pro-rata выплаты

Два режима: NORMAL и LIQUIDATION. Явной функции перехода нет: режим
пересчитывается при каждом вызове из текущего ratio обеспечения
(ratio <= critical_collateral_ratio_bps → LIQUIDATION).

Pro-rata формула liquidation mode:
    reserve_out = synthetic_amount * total_collateral / total_supply

Каждая единица synthetic получает пропорциональную долю оставшегося
обеспечения независимо от номинальной цены. Последовательное погашение всего
supply исчерпывает total_collateral ровно (floor оставляет остаток в пуле,
последний держатель его забирает), поэтому переплата невозможна.

Путь обходит can_mint и комиссии normal mode и доступен во время pause.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from qvault.collaborators.protocols import SyntheticToken
from qvault.core.domain.ledger import CollateralLedger
from qvault.core.domain.units import synthetic_value_in_reserve
from qvault.core.errors import ExcessiveSlippage, InvalidAmount, NotInLiquidationMode
from qvault.core.math.fixed_point import BPS_DENOMINATOR, mul_div
from qvault.engine.collateralization import CollateralizationCalculator
from qvault.engine.execution import Journal
from qvault.engine.reserve_adapter import ReserveAdapter, require_positive
from qvault.oracle.price_guard import PriceGuard

logger = logging.getLogger(__name__)


class LiquidationMode(str, Enum):
    """Режим протокола (производный, не хранится)."""

    NORMAL = "NORMAL"
    LIQUIDATION = "LIQUIDATION"


@dataclass(frozen=True)
class LiquidationStatus:
    """Read-only снапшот состояния liquidation mode."""

    in_liquidation_mode: bool
    ratio_bps: int
    # Pro-rata пул выплат (backing_reserve, без маржи)
    total_collateral: int
    total_supply: int
    # ratio_bps = (total_collateral + aggregate_margin) * 10000 / debt
    aggregate_margin: int

    mode: LiquidationMode
    critical_ratio_bps: int


@dataclass(frozen=True)
class LiquidationPayout:
    """Результат calculate_liquidation_payout."""

    reserve_out: int
    is_premium: bool
    bps: int

    # Диагностика
    fair_value: int


class LiquidationEngine:
    """Liquidation mode: статус, расчёт и исполнение pro-rata redemption."""

    def __init__(
        self,
        ledger: CollateralLedger,
        price_guard: PriceGuard,
        calculator: CollateralizationCalculator,
        synthetic_token: SyntheticToken,
        reserve_adapter: ReserveAdapter,
    ):
        self.ledger = ledger
        self.price_guard = price_guard
        self.calculator = calculator
        self.synthetic_token = synthetic_token
        self.reserve_adapter = reserve_adapter

    def current_mode(self) -> LiquidationMode:
        if self.calculator.should_trigger_liquidation():
            return LiquidationMode.LIQUIDATION
        return LiquidationMode.NORMAL

    def liquidation_status(self) -> LiquidationStatus:
        """
        Raises:
            OracleInvalid: Если есть supply, а цена невалидна
        """
        ratio = self.calculator.collateralization_ratio_bps()
        aggregate_margin = self.calculator.margin_pool.get_aggregate_margin()
        critical = self.ledger.critical_collateral_ratio_bps
        in_liquidation = ratio <= critical
        return LiquidationStatus(
            in_liquidation_mode=in_liquidation,
            ratio_bps=ratio,
            total_collateral=self.ledger.backing_reserve,
            total_supply=self.ledger.synthetic_supply,
            aggregate_margin=aggregate_margin,
            mode=LiquidationMode.LIQUIDATION if in_liquidation else LiquidationMode.NORMAL,
            critical_ratio_bps=critical,
        )

    def calculate_liquidation_payout(self, synthetic_amount: int) -> LiquidationPayout:
        """
        Pro-rata выплата и её отклонение от fair value.

        Raises:
            InvalidAmount: synthetic_amount <= 0 или > total supply
            OracleInvalid: цена невалидна
        """
        require_positive(synthetic_amount, "synthetic_amount")
        total_supply = self.ledger.synthetic_supply
        if synthetic_amount > total_supply:
            raise InvalidAmount(
                "amount exceeds synthetic supply",
                synthetic_amount=synthetic_amount,
                total_supply=total_supply,
            )

        price = self.price_guard.require_price()
        fair_value = synthetic_value_in_reserve(synthetic_amount, price)
        reserve_out = mul_div(synthetic_amount, self.ledger.backing_reserve, total_supply)

        if fair_value == 0:
            bps = 0
        else:
            bps = mul_div(abs(reserve_out - fair_value), BPS_DENOMINATOR, fair_value)

        return LiquidationPayout(
            reserve_out=reserve_out,
            is_premium=reserve_out > fair_value,
            bps=bps,
            fair_value=fair_value,
        )

    def redeem_in_liquidation_mode(
        self, journal: Journal, caller: str, synthetic_in: int, min_reserve_out: int
    ) -> LiquidationPayout:
        """
        Pro-rata redemption.

        Raises:
            NotInLiquidationMode: протокол платёжеспособен
            InvalidAmount, OracleInvalid, ExcessiveSlippage, InsufficientLiquidity
        """
        require_positive(synthetic_in, "synthetic_in")
        status = self.liquidation_status()
        if not status.in_liquidation_mode:
            raise NotInLiquidationMode(
                "protocol is not in liquidation mode",
                ratio_bps=status.ratio_bps,
                critical_ratio_bps=status.critical_ratio_bps,
            )

        payout = self.calculate_liquidation_payout(synthetic_in)
        if payout.reserve_out < min_reserve_out:
            raise ExcessiveSlippage(
                "liquidation payout below minimum",
                reserve_out=payout.reserve_out,
                min_reserve_out=min_reserve_out,
            )

        self.ledger.apply(synthetic_supply=self.ledger.synthetic_supply - synthetic_in)
        self.synthetic_token.burn_from(caller, synthetic_in)
        journal.record(
            f"burn {synthetic_in} from {caller}",
            lambda: self.synthetic_token.mint_to(caller, synthetic_in),
        )
        if payout.reserve_out > 0:
            self.reserve_adapter.pay_out(journal, caller, payout.reserve_out)

        logger.info(
            "liquidation-mode redeem: caller=%s synthetic_in=%d reserve_out=%d "
            "ratio=%d bps premium=%s deviation=%d bps",
            caller,
            synthetic_in,
            payout.reserve_out,
            status.ratio_bps,
            payout.is_premium,
            payout.bps,
        )
        return payout
