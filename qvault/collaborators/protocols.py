"""
Collaborator Protocols — контракты внешних участников

Ядро vault не реализует семантику токенов, price feed, margin pool и yield
venue: оно только вызывает их через эти интерфейсы.
"""

from typing import Protocol


class PriceSource(Protocol):
    """Внешний price feed (EUR/USD, 18 decimals)."""

    def get_price(self) -> tuple[int, bool]:
        """Возвращает (price, is_valid)."""
        ...


class SyntheticToken(Protocol):
    """Synthetic актив: mint/burn выполняет только vault."""

    def mint_to(self, recipient: str, amount: int) -> None: ...

    def burn_from(self, holder: str, amount: int) -> None: ...

    def balance_of(self, account: str) -> int: ...


class ReserveToken(Protocol):
    """Reserve актив (USDC-подобный, 6 decimals)."""

    def transfer_from(self, sender: str, recipient: str, amount: int) -> None: ...

    def balance_of(self, account: str) -> int: ...


class MarginPool(Protocol):
    """Margin pool: ядро читает только агрегированную маржу."""

    def get_aggregate_margin(self) -> int: ...


class YieldVenue(Protocol):
    """
    Yield venue для свободных резервов.

    deploy(amount) забирает reserve у vault; withdraw(amount) возвращает reserve
    vault и сообщает заявленную сумму (фактический прирост баланса vault
    проверяется отдельно).
    """

    def deploy(self, amount: int) -> None: ...

    def withdraw(self, amount: int) -> int: ...

    def available_balance(self) -> int: ...
