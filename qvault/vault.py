"""
QuantVault — операционная поверхность vault

Собирает компоненты в одном экземпляре:
- CollateralLedger и PriceCache (создаются один раз, живут всё время работы)
- PriceGuard, CollateralizationCalculator
- MintRedeemEngine, LiquidationEngine, ReserveAdapter
- ExecutionGuard: каждый публичный вызов — одна атомарная операция

Привилегированные операции проверяют capability на входе:
- GOVERNANCE: параметры, пороги, refresh цены, yield, комиссии
- EMERGENCY (или GOVERNANCE): pause/unpause
- MARGIN_POOL: credit_margin/debit_margin

Pause останавливает mint/redeem, но не liquidation-mode redemption.
"""

import logging
from dataclasses import dataclass
from typing import Any

from qvault.collaborators.protocols import (
    MarginPool,
    PriceSource,
    ReserveToken,
    SyntheticToken,
    YieldVenue,
)
from qvault.core.contracts import validate_vault_snapshot
from qvault.core.domain.access import AccessControl, Capability
from qvault.core.domain.clock import BlockClock
from qvault.core.domain.config import CONFIG_SCHEMA_VERSION, VaultConfig
from qvault.core.domain.ledger import CollateralLedger
from qvault.core.domain.price_cache import PriceCache
from qvault.core.errors import InvalidParameter
from qvault.core.math.fixed_point import BPS_DENOMINATOR, RATIO_SENTINEL_MAX
from qvault.engine.collateralization import CollateralizationCalculator, MintEligibility
from qvault.engine.execution import ExecutionGuard
from qvault.engine.liquidation import LiquidationEngine, LiquidationPayout, LiquidationStatus
from qvault.engine.mint_redeem import MintQuote, MintRedeemEngine, RedeemQuote
from qvault.engine.reserve_adapter import ReserveAdapter
from qvault.oracle.price_guard import PriceGuard, PriceReading

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VaultMetrics:
    """Сводные метрики vault (reserve minor units / synthetic minor units)."""

    reserve_held_direct: int
    reserve_deployed_to_yield: int
    total_reserve: int
    accumulated_fees: int
    synthetic_supply: int
    debt_value: int
    aggregate_margin: int
    collateralization_ratio_bps: int


class QuantVault:
    """Risk core euro-pegged synthetic vault."""

    def __init__(
        self,
        config: VaultConfig,
        price_source: PriceSource,
        synthetic_token: SyntheticToken,
        reserve_token: ReserveToken,
        margin_pool: MarginPool,
        yield_venue: YieldVenue,
        access: AccessControl,
        clock: BlockClock | None = None,
        vault_address: str = "vault",
        state: dict[str, Any] | None = None,
    ):
        """
        Args:
            config: валидированная конфигурация
            price_source: внешний EUR/USD feed
            synthetic_token: токен synthetic (mint_to/burn_from)
            reserve_token: токен reserve
            margin_pool: источник агрегированной маржи
            yield_venue: площадка размещения свободных резервов
            access: таблица capabilities
            clock: часы блоков (по умолчанию новые)
            vault_address: identity vault в reserve_token
            state: снапшот для восстановления ledger и price cache при старте
        """
        self.config = config
        self.access = access
        self.clock = clock or BlockClock()
        self.vault_address = vault_address
        self.margin_pool = margin_pool

        self.ledger = CollateralLedger.from_config(config)
        self.price_cache = PriceCache.from_config(config)
        if state is not None:
            validate_vault_snapshot(state)
            self.ledger.restore(state["ledger"])
            self.price_cache.restore(state["price_cache"])

        self.guard = ExecutionGuard(self.ledger, self.price_cache)
        self.price_guard = PriceGuard(price_source, self.price_cache, self.clock)
        self.calculator = CollateralizationCalculator(self.ledger, self.price_guard, margin_pool)
        self.reserve_adapter = ReserveAdapter(
            self.ledger,
            reserve_token,
            yield_venue,
            vault_address,
            withdraw_tolerance=config.yield_withdraw_tolerance,
        )
        self.mint_redeem = MintRedeemEngine(
            self.ledger, self.price_guard, self.calculator, synthetic_token, self.reserve_adapter
        )
        self.liquidation = LiquidationEngine(
            self.ledger, self.price_guard, self.calculator, synthetic_token, self.reserve_adapter
        )

    # =========================================================================
    # MINT / REDEEM
    # =========================================================================

    def mint(self, caller: str, reserve_in: int, min_synthetic_out: int) -> MintQuote:
        with self.guard.operation("mint") as journal:
            return self.mint_redeem.mint(journal, caller, reserve_in, min_synthetic_out)

    def redeem(self, caller: str, synthetic_in: int, min_reserve_out: int) -> RedeemQuote:
        with self.guard.operation("redeem") as journal:
            return self.mint_redeem.redeem(journal, caller, synthetic_in, min_reserve_out)

    def calculate_mint_amount(self, reserve_in: int) -> MintQuote:
        with self.guard.operation("calculate_mint_amount"):
            return self.mint_redeem.calculate_mint_amount(reserve_in)

    def calculate_redeem_amount(self, synthetic_in: int) -> RedeemQuote:
        with self.guard.operation("calculate_redeem_amount"):
            return self.mint_redeem.calculate_redeem_amount(synthetic_in)

    # =========================================================================
    # LIQUIDATION MODE
    # =========================================================================

    def liquidation_status(self) -> LiquidationStatus:
        with self.guard.operation("liquidation_status"):
            return self.liquidation.liquidation_status()

    def calculate_liquidation_payout(self, synthetic_amount: int) -> LiquidationPayout:
        with self.guard.operation("calculate_liquidation_payout"):
            return self.liquidation.calculate_liquidation_payout(synthetic_amount)

    def redeem_in_liquidation_mode(
        self, caller: str, synthetic_in: int, min_reserve_out: int
    ) -> LiquidationPayout:
        with self.guard.operation("redeem_in_liquidation_mode") as journal:
            return self.liquidation.redeem_in_liquidation_mode(
                journal, caller, synthetic_in, min_reserve_out
            )

    # =========================================================================
    # RATIO / PRICE
    # =========================================================================

    def validated_price(self) -> PriceReading:
        with self.guard.operation("validated_price"):
            return self.price_guard.validated_price()

    def collateralization_ratio_bps(self) -> int:
        with self.guard.operation("collateralization_ratio_bps"):
            return self.calculator.collateralization_ratio_bps()

    def can_mint(self) -> bool:
        with self.guard.operation("can_mint"):
            return self.calculator.can_mint()

    def mint_eligibility(self) -> MintEligibility:
        with self.guard.operation("mint_eligibility"):
            return self.calculator.evaluate_mint_eligibility()

    def should_trigger_liquidation(self) -> bool:
        with self.guard.operation("should_trigger_liquidation"):
            return self.calculator.should_trigger_liquidation()

    def refresh_price(self, caller: str) -> int:
        """Привилегированный refresh кэша цены (bootstrap и восстановление)."""
        self.access.require(caller, Capability.GOVERNANCE)
        with self.guard.operation("refresh_price"):
            return self.price_guard.refresh()

    def vault_metrics(self) -> VaultMetrics:
        """
        Метрики vault. Если цена недоступна, debt_value и ratio считаются
        только при нулевом supply (иначе OracleInvalid).
        """
        with self.guard.operation("vault_metrics"):
            ledger = self.ledger
            if ledger.synthetic_supply == 0:
                debt_value, ratio = 0, RATIO_SENTINEL_MAX
            else:
                price = self.price_guard.require_price()
                debt_value = self.calculator.debt_value(price)
                ratio = self.calculator.ratio_at_price(price)
            return VaultMetrics(
                reserve_held_direct=ledger.reserve_held_direct,
                reserve_deployed_to_yield=ledger.reserve_deployed_to_yield,
                total_reserve=ledger.total_reserve,
                accumulated_fees=ledger.accumulated_fees,
                synthetic_supply=ledger.synthetic_supply,
                debt_value=debt_value,
                aggregate_margin=self.margin_pool.get_aggregate_margin(),
                collateralization_ratio_bps=ratio,
            )

    # =========================================================================
    # RESERVE ADAPTER
    # =========================================================================

    def credit_margin(self, caller: str, amount: int) -> None:
        self.access.require(caller, Capability.MARGIN_POOL)
        with self.guard.operation("credit_margin") as journal:
            self.reserve_adapter.credit_margin(journal, caller, amount)

    def debit_margin(self, caller: str, recipient: str, amount: int) -> None:
        self.access.require(caller, Capability.MARGIN_POOL)
        with self.guard.operation("debit_margin") as journal:
            self.reserve_adapter.debit_margin(journal, recipient, amount)

    def deploy_to_yield(self, caller: str, amount: int) -> None:
        self.access.require(caller, Capability.GOVERNANCE)
        with self.guard.operation("deploy_to_yield") as journal:
            self.reserve_adapter.deploy_to_yield(journal, amount)

    def recall_from_yield(self, caller: str, amount: int) -> int:
        self.access.require(caller, Capability.GOVERNANCE)
        with self.guard.operation("recall_from_yield") as journal:
            return self.reserve_adapter.recall_from_yield(journal, amount)

    # =========================================================================
    # GOVERNANCE
    # =========================================================================

    def update_parameters(self, caller: str, mint_fee_bps: int, redeem_fee_bps: int) -> None:
        """
        Raises:
            Unauthorized: нет GOVERNANCE
            InvalidParameter: комиссия вне [0, 10000]
        """
        self.access.require(caller, Capability.GOVERNANCE)
        for name, value in (("mint_fee_bps", mint_fee_bps), ("redeem_fee_bps", redeem_fee_bps)):
            if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= BPS_DENOMINATOR:
                raise InvalidParameter(f"{name} out of bounds", **{name: value, "max": BPS_DENOMINATOR})

        with self.guard.operation("update_parameters"):
            self.ledger.apply(mint_fee_bps=mint_fee_bps, redeem_fee_bps=redeem_fee_bps)
        logger.info("fees updated: mint=%d bps redeem=%d bps", mint_fee_bps, redeem_fee_bps)

    def update_collateralization_thresholds(
        self, caller: str, min_ratio_bps: int, critical_ratio_bps: int
    ) -> None:
        """
        Raises:
            Unauthorized: нет GOVERNANCE
            InvalidParameter: critical < 100% или min <= critical
        """
        self.access.require(caller, Capability.GOVERNANCE)
        if critical_ratio_bps < BPS_DENOMINATOR:
            raise InvalidParameter(
                "critical ratio must be at least 100%",
                critical_ratio_bps=critical_ratio_bps,
            )
        if min_ratio_bps <= critical_ratio_bps:
            raise InvalidParameter(
                "min ratio must exceed critical ratio",
                min_ratio_bps=min_ratio_bps,
                critical_ratio_bps=critical_ratio_bps,
            )

        with self.guard.operation("update_collateralization_thresholds"):
            self.ledger.apply(
                min_collateral_ratio_bps=min_ratio_bps,
                critical_collateral_ratio_bps=critical_ratio_bps,
            )
        logger.info(
            "thresholds updated: min=%d bps critical=%d bps", min_ratio_bps, critical_ratio_bps
        )

    def pause(self, caller: str) -> None:
        self.access.require(caller, Capability.EMERGENCY, Capability.GOVERNANCE)
        with self.guard.operation("pause"):
            self.ledger.apply(paused=True)
        logger.warning("vault paused by %s", caller)

    def unpause(self, caller: str) -> None:
        self.access.require(caller, Capability.EMERGENCY, Capability.GOVERNANCE)
        with self.guard.operation("unpause"):
            self.ledger.apply(paused=False)
        logger.info("vault unpaused by %s", caller)

    def withdraw_accumulated_fees(self, caller: str, to: str) -> int:
        """
        Вывод накопленных комиссий.

        Returns:
            Выведенная сумма (0, если комиссий нет)
        """
        self.access.require(caller, Capability.GOVERNANCE)
        with self.guard.operation("withdraw_accumulated_fees") as journal:
            fees = self.ledger.accumulated_fees
            if fees == 0:
                return 0
            self.ledger.apply(accumulated_fees=0)
            self.reserve_adapter.pay_out(journal, to, fees)
        logger.info("fees withdrawn: %d to %s", fees, to)
        return fees

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    def snapshot(self) -> dict[str, Any]:
        """
        Снапшот персистентного состояния (ledger + price cache).

        Снапшот валидируется против vault_snapshot контракта.
        """
        self.guard.ensure_idle("snapshot")
        state = {
            "schema_version": CONFIG_SCHEMA_VERSION,
            "ledger": self.ledger.model_dump(),
            "price_cache": self.price_cache.model_dump(),
        }
        validate_vault_snapshot(state)
        return state
