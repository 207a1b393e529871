"""
Execution Guard — одна операция в полёте + атомарный откат

Модель исполнения: глобально сериализованная. Каждая операция завершается
целиком (commit) или откатывается целиком до начала следующей.

Порядок внутри операции:
validate → update ledger → invoke collaborator → verify observed effect → finalize

При любом исключении:
1. Undo-действия collaborator'ов выполняются в обратном порядке
2. Ledger и price cache восстанавливаются из снапшота
3. Исключение пробрасывается дальше (никогда не поглощается)

Повторный вход (например, из callback collaborator'а) → ReentrantCall.
Никаких lock/wait примитивов: это single-actor мутация, не конкуренция.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Iterator

from qvault.core.domain.ledger import CollateralLedger
from qvault.core.domain.price_cache import PriceCache
from qvault.core.errors import ReentrantCall

logger = logging.getLogger(__name__)


@dataclass
class Journal:
    """Журнал undo-действий для эффектов collaborator'ов внутри операции."""

    operation: str
    _undo: list[tuple[str, Callable[[], None]]] = field(default_factory=list)

    def record(self, description: str, undo: Callable[[], None]) -> None:
        """Регистрация undo для уже выполненного внешнего эффекта."""
        self._undo.append((description, undo))

    def unwind(self) -> None:
        """Выполнение undo в обратном порядке."""
        while self._undo:
            description, undo = self._undo.pop()
            try:
                undo()
            except Exception:
                logger.error(
                    "undo failed during rollback of %s: %s",
                    self.operation,
                    description,
                    exc_info=True,
                )

    def __len__(self) -> int:
        return len(self._undo)


class ExecutionGuard:
    """Guard одной операции в полёте для пары (ledger, price cache)."""

    def __init__(self, ledger: CollateralLedger, price_cache: PriceCache):
        self._ledger = ledger
        self._price_cache = price_cache
        self._in_flight: str | None = None

    @property
    def in_flight(self) -> str | None:
        """Имя текущей операции или None."""
        return self._in_flight

    def ensure_idle(self, operation: str) -> None:
        """
        Проверка отсутствия незавершённой операции (для read-only вызовов).

        Raises:
            ReentrantCall: Если другая операция в полёте
        """
        if self._in_flight is not None:
            raise ReentrantCall(
                "vault operation already in flight",
                operation=operation,
                in_flight=self._in_flight,
            )

    @contextmanager
    def operation(self, name: str) -> Iterator[Journal]:
        """
        Контекст атомарной операции.

        Args:
            name: Имя операции (для диагностики)

        Yields:
            Journal для регистрации undo внешних эффектов

        Raises:
            ReentrantCall: Если другая операция в полёте
        """
        self.ensure_idle(name)

        ledger_before = self._ledger.model_dump()
        cache_before = self._price_cache.model_dump()
        journal = Journal(operation=name)
        self._in_flight = name
        try:
            yield journal
        except BaseException as exc:
            journal.unwind()
            self._ledger.restore(ledger_before)
            self._price_cache.restore(cache_before)
            logger.warning("operation %s rolled back: %s", name, exc)
            raise
        finally:
            self._in_flight = None
