"""
Mint/Redeem Engine — конверсия reserve ↔ synthetic по кэшированной цене

Формулы (price = reserve за одну единицу synthetic, 18 decimals):
- mint:   fee = reserve_in * mint_fee_bps / 10000
          synthetic_out = (reserve_in - fee) / price      (6 → 18 decimals)
- redeem: gross = synthetic_in * price                    (18 → 6 decimals)
          fee = gross * redeem_fee_bps / 10000
          reserve_out = gross - fee

Комиссии остаются в held и учитываются в accumulated_fees (redeem-комиссия
не больше того, что осталось в backing после выплаты). Redeem в liquidation
mode закрыт (InLiquidationMode).

Round-trip: mint(r) → redeem(s) при той же цене возвращает
r * (1 - mint_fee) * (1 - redeem_fee) с точностью до округления вниз.
"""

import logging
from dataclasses import dataclass

from qvault.collaborators.protocols import SyntheticToken
from qvault.core.domain.ledger import CollateralLedger
from qvault.core.domain.units import reserve_to_synthetic, synthetic_value_in_reserve
from qvault.core.errors import (
    ExcessiveSlippage,
    InLiquidationMode,
    InsufficientLiquidity,
    InvalidAmount,
    Paused,
    UndercollateralizedMint,
)
from qvault.core.math.fixed_point import apply_bps
from qvault.engine.collateralization import CollateralizationCalculator
from qvault.engine.execution import Journal
from qvault.engine.reserve_adapter import ReserveAdapter, require_positive
from qvault.oracle.price_guard import PriceGuard

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MintQuote:
    """Котировка mint: synthetic_out и комиссия в reserve."""

    synthetic_out: int
    fee: int
    price: int


@dataclass(frozen=True)
class RedeemQuote:
    """Котировка redeem: reserve_out и комиссия в reserve."""

    reserve_out: int
    fee: int
    price: int


class MintRedeemEngine:
    """Mint/redeem в normal mode."""

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

    # -------------------------------------------------------------------------
    # Quotes
    # -------------------------------------------------------------------------

    def quote_mint(self, reserve_in: int, price: int) -> MintQuote:
        fee = apply_bps(reserve_in, self.ledger.mint_fee_bps)
        synthetic_out = reserve_to_synthetic(reserve_in - fee, price)
        return MintQuote(synthetic_out=synthetic_out, fee=fee, price=price)

    def quote_redeem(self, synthetic_in: int, price: int) -> RedeemQuote:
        gross = synthetic_value_in_reserve(synthetic_in, price)
        fee = apply_bps(gross, self.ledger.redeem_fee_bps)
        return RedeemQuote(reserve_out=gross - fee, fee=fee, price=price)

    def calculate_mint_amount(self, reserve_in: int) -> MintQuote:
        """
        Raises:
            InvalidAmount: reserve_in <= 0
            OracleInvalid: цена невалидна
        """
        require_positive(reserve_in, "reserve_in")
        return self.quote_mint(reserve_in, self.price_guard.require_price())

    def calculate_redeem_amount(self, synthetic_in: int) -> RedeemQuote:
        require_positive(synthetic_in, "synthetic_in")
        return self.quote_redeem(synthetic_in, self.price_guard.require_price())

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def mint(self, journal: Journal, caller: str, reserve_in: int, min_synthetic_out: int) -> MintQuote:
        """
        Mint synthetic за reserve.

        Порядок:
        1. amount > 0, не на паузе, цена валидна, can_mint
        2. synthetic_out >= min_synthetic_out
        3. held += reserve_in, fees += fee, supply += synthetic_out
        4. pull reserve_in у caller, mint_to(caller, synthetic_out)

        Raises:
            InvalidAmount, Paused, OracleInvalid, UndercollateralizedMint,
            ExcessiveSlippage
        """
        require_positive(reserve_in, "reserve_in")
        self._require_not_paused("mint")
        price = self.price_guard.require_price()

        eligibility = self.calculator.evaluate_mint_eligibility(price)
        if not eligibility.allowed:
            raise UndercollateralizedMint(
                "collateralization ratio below minimum",
                ratio_bps=eligibility.ratio_bps,
                min_ratio_bps=eligibility.min_ratio_bps,
            )

        quote = self.quote_mint(reserve_in, price)
        if quote.synthetic_out < min_synthetic_out:
            raise ExcessiveSlippage(
                "mint output below minimum",
                synthetic_out=quote.synthetic_out,
                min_synthetic_out=min_synthetic_out,
            )

        self.ledger.apply(
            reserve_held_direct=self.ledger.reserve_held_direct + reserve_in,
            accumulated_fees=self.ledger.accumulated_fees + quote.fee,
            synthetic_supply=self.ledger.synthetic_supply + quote.synthetic_out,
        )
        self.reserve_adapter.pull(journal, caller, reserve_in)
        self.synthetic_token.mint_to(caller, quote.synthetic_out)
        journal.record(
            f"mint {quote.synthetic_out} to {caller}",
            lambda: self.synthetic_token.burn_from(caller, quote.synthetic_out),
        )

        logger.info(
            "mint: caller=%s reserve_in=%d synthetic_out=%d fee=%d price=%d",
            caller,
            reserve_in,
            quote.synthetic_out,
            quote.fee,
            price,
        )
        return quote

    def redeem(self, journal: Journal, caller: str, synthetic_in: int, min_reserve_out: int) -> RedeemQuote:
        """
        Redeem synthetic за reserve.

        В liquidation mode закрыт: держатели получают только pro-rata долю
        через redeem_in_liquidation_mode.

        Комиссия записывается в accumulated_fees лишь в той части, которая
        осталась в обеспечении после выплаты (gross может превышать backing,
        когда ratio держится на агрегированной марже).

        Raises:
            InvalidAmount, Paused, OracleInvalid, InLiquidationMode,
            InsufficientLiquidity, ExcessiveSlippage
        """
        require_positive(synthetic_in, "synthetic_in")
        self._require_not_paused("redeem")
        if synthetic_in > self.ledger.synthetic_supply:
            raise InvalidAmount(
                "redeem exceeds synthetic supply",
                synthetic_in=synthetic_in,
                synthetic_supply=self.ledger.synthetic_supply,
            )
        price = self.price_guard.require_price()
        if self.calculator.in_liquidation_at_price(price):
            raise InLiquidationMode(
                "protocol is in liquidation mode, use pro-rata redemption",
                ratio_bps=self.calculator.ratio_at_price(price),
                critical_ratio_bps=self.ledger.critical_collateral_ratio_bps,
            )

        quote = self.quote_redeem(synthetic_in, price)
        available = self.reserve_adapter.available_liquidity()
        if quote.reserve_out > available:
            raise InsufficientLiquidity(
                "redeem payout exceeds available liquidity",
                reserve_out=quote.reserve_out,
                available=available,
            )
        if quote.reserve_out < min_reserve_out:
            raise ExcessiveSlippage(
                "redeem output below minimum",
                reserve_out=quote.reserve_out,
                min_reserve_out=min_reserve_out,
            )

        self.ledger.apply(synthetic_supply=self.ledger.synthetic_supply - synthetic_in)
        self.synthetic_token.burn_from(caller, synthetic_in)
        journal.record(
            f"burn {synthetic_in} from {caller}",
            lambda: self.synthetic_token.mint_to(caller, synthetic_in),
        )
        self.reserve_adapter.pay_out(journal, caller, quote.reserve_out)

        retained_fee = min(quote.fee, self.ledger.backing_reserve)
        if retained_fee < quote.fee:
            logger.warning(
                "redeem fee truncated to remaining backing: fee=%d retained=%d",
                quote.fee,
                retained_fee,
            )
        self.ledger.apply(accumulated_fees=self.ledger.accumulated_fees + retained_fee)

        logger.info(
            "redeem: caller=%s synthetic_in=%d reserve_out=%d fee=%d price=%d",
            caller,
            synthetic_in,
            quote.reserve_out,
            retained_fee,
            price,
        )
        return quote

    def _require_not_paused(self, operation: str) -> None:
        if self.ledger.paused:
            raise Paused("mint/redeem are paused", operation=operation)
