"""
Units — Централизованный модуль конверсии reserve ↔ synthetic

Единственный допустимый способ преобразований между:
- reserve minor units (6 decimals, USDC-подобный актив)
- synthetic minor units (18 decimals, QEURO-подобный актив)
- price (18 decimals, reserve за одну единицу synthetic, т.е. EUR/USD)

ЗАПРЕЩЕНО смешивать разрядности без явного конвертера из этого модуля.
"""

from typing import Final

from qvault.core.math.fixed_point import mul_div, rescale


# =============================================================================
# РАЗРЯДНОСТИ
# =============================================================================

RESERVE_DECIMALS: Final[int] = 6
SYNTHETIC_DECIMALS: Final[int] = 18
PRICE_DECIMALS: Final[int] = 18

# Разрядность типичного внешнего EUR/USD feed (8 decimals)
FEED_DECIMALS: Final[int] = 8

RESERVE_UNIT: Final[int] = 10**RESERVE_DECIMALS
SYNTHETIC_UNIT: Final[int] = 10**SYNTHETIC_DECIMALS
PRICE_UNIT: Final[int] = 10**PRICE_DECIMALS


# =============================================================================
# КОНВЕРТЕРЫ
# =============================================================================


def synthetic_value_in_reserve(synthetic_amount: int, price: int) -> int:
    """
    Стоимость synthetic в reserve minor units.

    value = synthetic * price / 1e18, затем 18 → 6 decimals (floor).

    Args:
        synthetic_amount: Сумма synthetic (18 decimals)
        price: Цена reserve за единицу synthetic (18 decimals)

    Returns:
        Стоимость в reserve minor units
    """
    value_18 = mul_div(synthetic_amount, price, PRICE_UNIT)
    return rescale(value_18, SYNTHETIC_DECIMALS, RESERVE_DECIMALS)


def reserve_to_synthetic(reserve_amount: int, price: int) -> int:
    """
    Количество synthetic за reserve_amount по цене price.

    synthetic = rescale(reserve, 6 → 18) * 1e18 / price (floor).

    Raises:
        ValueError: Если price <= 0
    """
    reserve_18 = rescale(reserve_amount, RESERVE_DECIMALS, SYNTHETIC_DECIMALS)
    return mul_div(reserve_18, PRICE_UNIT, price)


def normalize_feed_price(raw_price: int, feed_decimals: int = FEED_DECIMALS) -> int:
    """
    Нормализация цены feed к 18 decimals.

    Examples:
        >>> normalize_feed_price(108_000_000)
        1080000000000000000
    """
    return rescale(raw_price, feed_decimals, PRICE_DECIMALS)


def to_reserve_units(whole: int) -> int:
    """Целые единицы reserve → minor units."""
    return whole * RESERVE_UNIT


def to_synthetic_units(whole: int) -> int:
    """Целые единицы synthetic → minor units."""
    return whole * SYNTHETIC_UNIT
