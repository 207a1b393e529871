"""
Price Guard — кэш цены + deviation guard

Единственный источник валидированной цены для всех компонентов vault.

Поведение validated_price():
1. Кэш есть и min_blocks_between_updates ещё не прошло → кэш без запроса feed
2. Иначе запрос feed: (raw_price, feed_is_valid)
3. Fail closed: feed невалиден или raw_price <= 0 → is_valid=False
4. Кэша нет → is_valid=False (bootstrap только через refresh)
5. |raw - last| / last > max_deviation_bps → is_valid=False, кэш НЕ обновляется
6. Иначе кэш обновляется (price, block, time)

refresh() — привилегированный путь: обходит deviation check, но только
если сам feed сообщает валидную положительную цену.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from qvault.collaborators.protocols import PriceSource
from qvault.core.domain.clock import BlockClock
from qvault.core.domain.price_cache import PriceCache
from qvault.core.errors import OracleInvalid
from qvault.core.math.fixed_point import abs_diff_bps

logger = logging.getLogger(__name__)


class PriceOrigin(str, Enum):
    """Откуда получена цена."""

    CACHE = "CACHE"
    FEED = "FEED"
    NONE = "NONE"


@dataclass(frozen=True)
class PriceReading:
    """Результат validated_price()."""

    price: int
    is_valid: bool
    origin: PriceOrigin

    # Диагностика
    block_reason: str
    deviation_bps: int | None = None


class PriceGuard:
    """Deviation guard поверх PriceSource и PriceCache."""

    def __init__(self, source: PriceSource, cache: PriceCache, clock: BlockClock):
        self.source = source
        self.cache = cache
        self.clock = clock

    def validated_price(self) -> PriceReading:
        """
        Валидированная цена.

        Returns:
            PriceReading; при is_valid=False вызывающая сторона обязана
            отказаться от операции, зависящей от цены
        """
        if self.cache.has_price and not self._update_due():
            logger.debug(
                "price served from cache: %d (block %d)",
                self.cache.last_valid_price,
                self.cache.last_update_block,
            )
            return PriceReading(
                price=self.cache.last_valid_price,
                is_valid=True,
                origin=PriceOrigin.CACHE,
                block_reason="",
            )

        raw_price, feed_is_valid = self.source.get_price()

        if not feed_is_valid or raw_price <= 0:
            logger.warning("price feed invalid: price=%s valid=%s", raw_price, feed_is_valid)
            return self._rejected("feed_invalid")

        if not self.cache.has_price:
            return self._rejected("cache_not_initialized")

        deviation_bps = abs_diff_bps(raw_price, self.cache.last_valid_price)
        if deviation_bps > self.cache.max_deviation_bps:
            logger.warning(
                "price deviation %d bps exceeds %d bps: cached=%d raw=%d",
                deviation_bps,
                self.cache.max_deviation_bps,
                self.cache.last_valid_price,
                raw_price,
            )
            return self._rejected("deviation_exceeded", deviation_bps=deviation_bps)

        self._store(raw_price)
        return PriceReading(
            price=raw_price,
            is_valid=True,
            origin=PriceOrigin.FEED,
            block_reason="",
            deviation_bps=deviation_bps,
        )

    def require_price(self) -> int:
        """
        Валидированная цена или исключение.

        Raises:
            OracleInvalid: Если цена невалидна (retryable)
        """
        reading = self.validated_price()
        if not reading.is_valid:
            raise OracleInvalid(
                "validated price unavailable",
                reason=reading.block_reason,
                deviation_bps=reading.deviation_bps,
                cached_price=self.cache.last_valid_price,
                max_deviation_bps=self.cache.max_deviation_bps,
            )
        return reading.price

    def refresh(self) -> int:
        """
        Привилегированное обновление кэша напрямую из feed.

        Capability проверяется вызывающей стороной (vault facade).

        Returns:
            Новая цена в кэше

        Raises:
            OracleInvalid: Если feed невалиден или цена <= 0
        """
        raw_price, feed_is_valid = self.source.get_price()
        if not feed_is_valid or raw_price <= 0:
            raise OracleInvalid(
                "price feed invalid on refresh",
                reason="feed_invalid",
                price=raw_price,
                feed_is_valid=feed_is_valid,
            )
        previous = self.cache.last_valid_price
        self._store(raw_price)
        logger.info("price cache refreshed: %d -> %d", previous, raw_price)
        return raw_price

    def _update_due(self) -> bool:
        elapsed = self.clock.block_number - self.cache.last_update_block
        return elapsed >= self.cache.min_blocks_between_updates

    def _store(self, price: int) -> None:
        self.cache.apply(
            last_valid_price=price,
            last_update_block=self.clock.block_number,
            last_update_time=self.clock.timestamp,
        )

    def _rejected(self, reason: str, deviation_bps: int | None = None) -> PriceReading:
        return PriceReading(
            price=0,
            is_valid=False,
            origin=PriceOrigin.NONE,
            block_reason=reason,
            deviation_bps=deviation_bps,
        )
