"""
BlockClock — номер блока и время исполнения

Хост (симуляция, тесты, сервис) продвигает часы явно; ядро только читает.
"""

from dataclasses import dataclass


@dataclass
class BlockClock:
    """Монотонные часы: номер блока + unix timestamp (секунды)."""

    block_number: int = 1
    timestamp: int = 0

    def advance(self, blocks: int = 1, seconds: int = 12) -> None:
        """
        Продвижение часов вперёд.

        Args:
            blocks: Количество блоков (>= 0)
            seconds: Прошедшее время в секундах (>= 0)
        """
        if blocks < 0 or seconds < 0:
            raise ValueError(f"clock cannot move backwards: blocks={blocks}, seconds={seconds}")
        self.block_number += blocks
        self.timestamp += seconds
