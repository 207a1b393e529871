"""
In-memory collaborators — эталонные реализации внешних контрактов

Используются в тестах и симуляциях. Реализуют только интерфейсы из
protocols.py, без собственной бизнес-логики.
"""

from dataclasses import dataclass, field
from typing import Callable


class InMemoryToken:
    """Простой токен: балансы + total supply."""

    def __init__(self, symbol: str):
        self.symbol = symbol
        self._balances: dict[str, int] = {}
        self.total_supply = 0
        # Вызываются перед каждым изменением балансов (для тестов reentrancy)
        self.hooks: list[Callable[[str, str, int], None]] = []

    def balance_of(self, account: str) -> int:
        return self._balances.get(account, 0)

    def mint(self, account: str, amount: int) -> None:
        if amount < 0:
            raise ValueError(f"{self.symbol}: negative mint {amount}")
        self._notify("mint", account, amount)
        self._balances[account] = self.balance_of(account) + amount
        self.total_supply += amount

    def burn(self, account: str, amount: int) -> None:
        balance = self.balance_of(account)
        if amount < 0 or amount > balance:
            raise ValueError(f"{self.symbol}: cannot burn {amount} from {account} (balance {balance})")
        self._notify("burn", account, amount)
        self._balances[account] = balance - amount
        self.total_supply -= amount

    def transfer_from(self, sender: str, recipient: str, amount: int) -> None:
        balance = self.balance_of(sender)
        if amount < 0 or amount > balance:
            raise ValueError(
                f"{self.symbol}: insufficient balance for {sender}: {balance} < {amount}"
            )
        self._notify("transfer", recipient, amount)
        self._balances[sender] = balance - amount
        self._balances[recipient] = self.balance_of(recipient) + amount

    def _notify(self, action: str, account: str, amount: int) -> None:
        for hook in list(self.hooks):
            hook(action, account, amount)


class InMemorySyntheticToken(InMemoryToken):
    """Synthetic токен с интерфейсом mint_to/burn_from."""

    def __init__(self, symbol: str = "QEURO"):
        super().__init__(symbol)

    def mint_to(self, recipient: str, amount: int) -> None:
        self.mint(recipient, amount)

    def burn_from(self, holder: str, amount: int) -> None:
        self.burn(holder, amount)


@dataclass
class StaticPriceSource:
    """Price feed с ручной установкой цены и флага валидности."""

    price: int
    is_valid: bool = True
    calls: int = 0

    def get_price(self) -> tuple[int, bool]:
        self.calls += 1
        return self.price, self.is_valid

    def set_price(self, price: int, is_valid: bool = True) -> None:
        self.price = price
        self.is_valid = is_valid


@dataclass
class StaticMarginPool:
    """Margin pool, сообщающий фиксированную агрегированную маржу."""

    aggregate_margin: int = 0

    def get_aggregate_margin(self) -> int:
        return self.aggregate_margin


@dataclass
class InMemoryYieldVenue:
    """
    Yield venue поверх InMemoryToken.

    withdraw_shortfall — сколько venue "недодаёт" при выводе, продолжая
    заявлять полную сумму (для проверки balance-delta верификации).
    """

    token: InMemoryToken
    depositor: str = "vault"
    account: str = "yield_venue"
    withdraw_shortfall: int = 0
    deployed_total: int = field(default=0, init=False)

    def deploy(self, amount: int) -> None:
        self.token.transfer_from(self.depositor, self.account, amount)
        self.deployed_total += amount

    def withdraw(self, amount: int) -> int:
        available = self.available_balance()
        claimed = min(amount, available)
        delivered = max(claimed - self.withdraw_shortfall, 0)
        self.token.transfer_from(self.account, self.depositor, delivered)
        self.deployed_total = max(self.deployed_total - claimed, 0)
        return claimed

    def available_balance(self) -> int:
        return self.token.balance_of(self.account)

    def accrue_yield(self, amount: int) -> None:
        """Начисление процентов (mint reserve на счёт venue)."""
        self.token.mint(self.account, amount)
