"""
Errors — таксономия ошибок vault

Каждая ошибка прерывает операцию целиком (ledger откатывается execution guard'ом)
и несёт значения, вызвавшие отказ, в `context`, чтобы вызывающая сторона могла
отличить "уменьшите сумму" от "система на паузе" от "oracle недоступен".

Автоматических повторов нет. Единственная "мягкая" ошибка — OracleInvalid
(retryable=True): вызывающей стороне следует повторить позже.
"""

from typing import Any


class VaultError(Exception):
    """Базовая ошибка vault."""

    code: str = "VAULT_ERROR"
    retryable: bool = False

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context: dict[str, Any] = context

    def __str__(self) -> str:
        if not self.context:
            return f"{self.code}: {self.message}"
        details = ", ".join(f"{k}={v}" for k, v in sorted(self.context.items()))
        return f"{self.code}: {self.message} ({details})"


class OracleInvalid(VaultError):
    """Цена недоступна, невалидна или вне допустимого отклонения (fail closed)."""

    code = "ORACLE_INVALID"
    retryable = True


class UndercollateralizedMint(VaultError):
    """Collateralization ratio ниже минимума — mint запрещён."""

    code = "UNDERCOLLATERALIZED_MINT"


class ExcessiveSlippage(VaultError):
    """Вычисленный результат ниже минимума, заданного вызывающей стороной."""

    code = "EXCESSIVE_SLIPPAGE"


class InsufficientLiquidity(VaultError):
    """Выплата превышает доступную ликвидность (held + yield venue)."""

    code = "INSUFFICIENT_LIQUIDITY"


class InsufficientReserve(VaultError):
    """Сумма превышает reserve_held_direct."""

    code = "INSUFFICIENT_RESERVE"


class InvalidAmount(VaultError):
    """Нулевая, отрицательная или превышающая supply сумма."""

    code = "INVALID_AMOUNT"


class NotInLiquidationMode(VaultError):
    """Путь liquidation mode вызван, когда протокол платёжеспособен."""

    code = "NOT_IN_LIQUIDATION_MODE"


class InLiquidationMode(VaultError):
    """Redeem по номиналу закрыт: ratio <= critical, доступен только pro-rata путь."""

    code = "IN_LIQUIDATION_MODE"


class Unauthorized(VaultError):
    """У вызывающей стороны нет требуемой capability."""

    code = "UNAUTHORIZED"


class ReentrantCall(VaultError):
    """Повторный вход в vault во время незавершённой операции."""

    code = "REENTRANT_CALL"


class Paused(VaultError):
    """Mint/redeem остановлены (pause)."""

    code = "PAUSED"


class BalanceVerificationFailed(VaultError):
    """
    Заявленный эффект collaborator'а не совпал с наблюдаемым изменением баланса.

    Операция откатывается полностью; заявленному значению не доверяем.
    """

    code = "BALANCE_VERIFICATION_FAILED"


class YieldWithdrawalMismatch(BalanceVerificationFailed):
    """Yield venue заявил одну сумму вывода, а фактический прирост баланса другой."""

    code = "YIELD_WITHDRAWAL_MISMATCH"


class InvalidParameter(VaultError):
    """Параметр конфигурации вне допустимых границ."""

    code = "INVALID_PARAMETER"
