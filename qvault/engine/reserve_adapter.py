"""
Reserve Adapter — движение reserve между vault, margin pool и yield venue

- credit_margin / debit_margin: margin pool вносит/забирает reserve в общий
  ledger, поэтому ликвидность mint/redeem и маржи взаимозаменяема
- deploy_to_yield / recall_from_yield: перемещение между held и deployed
- ensure_liquidity: неявный вывод из yield venue при нехватке held

Каждое внешнее движение reserve верифицируется по наблюдаемому изменению
баланса vault. Расхождение заявленного и наблюдаемого → BalanceVerificationFailed
(для вывода из yield venue — YieldWithdrawalMismatch), операция откатывается.
"""

import logging

from qvault.collaborators.protocols import ReserveToken, YieldVenue
from qvault.core.domain.ledger import CollateralLedger
from qvault.core.errors import (
    BalanceVerificationFailed,
    InsufficientLiquidity,
    InsufficientReserve,
    InvalidAmount,
    YieldWithdrawalMismatch,
)
from qvault.engine.execution import Journal

logger = logging.getLogger(__name__)


def require_positive(amount: int, name: str = "amount") -> None:
    """
    Raises:
        InvalidAmount: Если amount не положительное целое
    """
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise InvalidAmount(f"{name} must be a positive integer", **{name: amount})


class ReserveAdapter:
    """Верифицированные движения reserve для одного vault."""

    def __init__(
        self,
        ledger: CollateralLedger,
        reserve_token: ReserveToken,
        yield_venue: YieldVenue,
        vault_address: str,
        withdraw_tolerance: int = 0,
    ):
        self.ledger = ledger
        self.reserve_token = reserve_token
        self.yield_venue = yield_venue
        self.vault_address = vault_address
        self.withdraw_tolerance = withdraw_tolerance

    # -------------------------------------------------------------------------
    # Margin pool
    # -------------------------------------------------------------------------

    def credit_margin(self, journal: Journal, margin_pool_address: str, amount: int) -> None:
        """Приём reserve от margin pool: held += amount."""
        require_positive(amount)
        self.ledger.apply(reserve_held_direct=self.ledger.reserve_held_direct + amount)
        self.pull(journal, margin_pool_address, amount)
        logger.info("margin credited: %d from %s", amount, margin_pool_address)

    def debit_margin(self, journal: Journal, recipient: str, amount: int) -> None:
        """
        Выплата reserve по запросу margin pool: held -= amount.

        Raises:
            InsufficientReserve: Если amount > свободного held
        """
        require_positive(amount)
        available = self.ledger.free_held_direct
        if amount > available:
            raise InsufficientReserve(
                "margin debit exceeds reserve held",
                amount=amount,
                reserve_held_direct=self.ledger.reserve_held_direct,
                accumulated_fees=self.ledger.accumulated_fees,
            )
        self.ledger.apply(reserve_held_direct=self.ledger.reserve_held_direct - amount)
        self.push(journal, recipient, amount)
        logger.info("margin debited: %d to %s", amount, recipient)

    # -------------------------------------------------------------------------
    # Yield venue
    # -------------------------------------------------------------------------

    def deploy_to_yield(self, journal: Journal, amount: int) -> None:
        """
        held → deployed.

        Raises:
            InsufficientReserve: Если amount > свободного held
            BalanceVerificationFailed: Если venue забрал не amount
        """
        require_positive(amount)
        if amount > self.ledger.free_held_direct:
            raise InsufficientReserve(
                "deployment exceeds reserve held",
                amount=amount,
                reserve_held_direct=self.ledger.reserve_held_direct,
                accumulated_fees=self.ledger.accumulated_fees,
            )
        self.ledger.apply(
            reserve_held_direct=self.ledger.reserve_held_direct - amount,
            reserve_deployed_to_yield=self.ledger.reserve_deployed_to_yield + amount,
        )

        before = self._vault_balance()
        self.yield_venue.deploy(amount)
        journal.record(f"deploy {amount}", lambda: self.yield_venue.withdraw(amount))
        observed = before - self._vault_balance()
        if observed != amount:
            raise BalanceVerificationFailed(
                "yield venue took a different amount than deployed",
                claimed=amount,
                observed=observed,
            )
        logger.info("deployed %d to yield venue", amount)

    def recall_from_yield(self, journal: Journal, amount: int) -> int:
        """
        Явный вывод из yield venue.

        Returns:
            Фактически полученная сумма

        Raises:
            InsufficientLiquidity: Если venue располагает меньшей суммой
        """
        require_positive(amount)
        available = self.yield_venue.available_balance()
        if amount > available:
            raise InsufficientLiquidity(
                "recall exceeds yield venue balance",
                amount=amount,
                available_from_yield=available,
            )
        return self.withdraw_from_yield(journal, amount)

    def withdraw_from_yield(self, journal: Journal, amount: int) -> int:
        """
        Верифицированный вывод: наблюдаемый прирост баланса vault должен
        совпадать с заявленным venue (± withdraw_tolerance).

        Returns:
            Наблюдаемая (фактическая) сумма

        Raises:
            YieldWithdrawalMismatch: При расхождении claimed/observed
        """
        before = self._vault_balance()
        claimed = self.yield_venue.withdraw(amount)
        observed = self._vault_balance() - before
        if observed > 0:
            journal.record(f"withdraw {observed}", lambda: self.yield_venue.deploy(observed))

        if abs(claimed - observed) > self.withdraw_tolerance:
            raise YieldWithdrawalMismatch(
                "yield venue reported amount differs from observed balance delta",
                requested=amount,
                claimed=claimed,
                observed=observed,
                tolerance=self.withdraw_tolerance,
            )

        deployed = self.ledger.reserve_deployed_to_yield
        self.ledger.apply(
            reserve_held_direct=self.ledger.reserve_held_direct + observed,
            reserve_deployed_to_yield=deployed - min(observed, deployed),
        )
        logger.info("withdrew %d from yield venue (requested %d)", observed, amount)
        return observed

    # -------------------------------------------------------------------------
    # Liquidity
    # -------------------------------------------------------------------------

    def available_liquidity(self) -> int:
        """Свободный held + то, что можно вывести из yield venue."""
        return self.ledger.free_held_direct + self.yield_venue.available_balance()

    def ensure_liquidity(self, journal: Journal, amount: int) -> None:
        """
        Гарантия free held >= amount (вывод недостающего из yield venue).

        Raises:
            InsufficientLiquidity: Если даже после вывода held не хватает
        """
        shortfall = amount - self.ledger.free_held_direct
        if shortfall > 0:
            self.withdraw_from_yield(journal, shortfall)
        if amount > self.ledger.free_held_direct:
            raise InsufficientLiquidity(
                "payout exceeds available reserve",
                amount=amount,
                reserve_held_direct=self.ledger.reserve_held_direct,
                accumulated_fees=self.ledger.accumulated_fees,
            )

    def pay_out(self, journal: Journal, recipient: str, amount: int) -> None:
        """Выплата держателю: ensure_liquidity → held -= amount → transfer."""
        self.ensure_liquidity(journal, amount)
        self.ledger.apply(reserve_held_direct=self.ledger.reserve_held_direct - amount)
        self.push(journal, recipient, amount)

    # -------------------------------------------------------------------------
    # Verified transfers
    # -------------------------------------------------------------------------

    def pull(self, journal: Journal, sender: str, amount: int) -> None:
        """sender → vault с проверкой прироста баланса."""
        before = self._vault_balance()
        self.reserve_token.transfer_from(sender, self.vault_address, amount)
        journal.record(
            f"pull {amount} from {sender}",
            lambda: self.reserve_token.transfer_from(self.vault_address, sender, amount),
        )
        observed = self._vault_balance() - before
        if observed != amount:
            raise BalanceVerificationFailed(
                "reserve received differs from amount pulled",
                sender=sender,
                claimed=amount,
                observed=observed,
            )

    def push(self, journal: Journal, recipient: str, amount: int) -> None:
        """vault → recipient с проверкой убыли баланса."""
        before = self._vault_balance()
        self.reserve_token.transfer_from(self.vault_address, recipient, amount)
        journal.record(
            f"push {amount} to {recipient}",
            lambda: self.reserve_token.transfer_from(recipient, self.vault_address, amount),
        )
        observed = before - self._vault_balance()
        if observed != amount:
            raise BalanceVerificationFailed(
                "reserve sent differs from amount paid",
                recipient=recipient,
                claimed=amount,
                observed=observed,
            )

    def _vault_balance(self) -> int:
        return self.reserve_token.balance_of(self.vault_address)
