"""
Fixed-Point Safeguards — целочисленные примитивы для ledger-арифметики

Все суммы в ledger хранятся в minor units (int). Float в расчётах запрещён:
любая цена/сумма проходит через функции этого модуля.

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. Деление на ноль никогда не происходит молча (ValueError или явный fallback)
2. Округление всегда вниз (floor) — протокол никогда не переплачивает
3. Отрицательные суммы отклоняются на входе
4. Все операции детерминированы и воспроизводимы
"""

from typing import Final

# =============================================================================
# КОНСТАНТЫ
# =============================================================================

# Знаменатель basis points (10000 bps = 100%)
BPS_DENOMINATOR: Final[int] = 10_000

# Sentinel "полностью обеспечен" (аналог type(uint256).max)
RATIO_SENTINEL_MAX: Final[int] = 2**256 - 1


# =============================================================================
# БЕЗОПАСНОЕ ДЕЛЕНИЕ
# =============================================================================


def mul_div(a: int, b: int, denominator: int) -> int:
    """
    Вычисление floor(a * b / denominator) без промежуточной потери точности.

    Python int не переполняется, поэтому произведение считается точно.

    Args:
        a: Первый множитель (>= 0)
        b: Второй множитель (>= 0)
        denominator: Делитель (> 0)

    Returns:
        floor(a * b / denominator)

    Raises:
        ValueError: Если denominator <= 0 или множители отрицательны

    Examples:
        >>> mul_div(10, 3, 4)
        7
        >>> mul_div(1_000_000, 10_000, 900_000)
        11111
    """
    if denominator <= 0:
        raise ValueError(f"denominator must be positive, got {denominator}")
    if a < 0 or b < 0:
        raise ValueError(f"mul_div operands must be non-negative, got a={a}, b={b}")
    return (a * b) // denominator


def safe_mul_div(a: int, b: int, denominator: int, fallback: int) -> int:
    """
    mul_div с явным fallback при нулевом делителе.

    Используется там, где ноль в знаменателе имеет смысл домена
    (например, нулевой долг → sentinel "полностью обеспечен").

    Examples:
        >>> safe_mul_div(5, 10_000, 0, fallback=RATIO_SENTINEL_MAX) == RATIO_SENTINEL_MAX
        True
    """
    if denominator == 0:
        return fallback
    return mul_div(a, b, denominator)


# =============================================================================
# BASIS POINTS
# =============================================================================


def apply_bps(amount: int, bps: int) -> int:
    """
    Доля суммы в basis points: floor(amount * bps / 10000).

    Examples:
        >>> apply_bps(1_000_000, 10)
        1000
    """
    validate_bps(bps, "bps")
    return mul_div(amount, bps, BPS_DENOMINATOR)


def abs_diff_bps(value: int, reference: int) -> int:
    """
    Относительное отклонение |value - reference| / reference в bps (floor).

    Args:
        value: Новое значение
        reference: Опорное значение (> 0)

    Returns:
        Отклонение в basis points

    Raises:
        ValueError: Если reference <= 0

    Examples:
        >>> abs_diff_bps(106, 100)
        600
        >>> abs_diff_bps(96, 100)
        400
    """
    if reference <= 0:
        raise ValueError(f"reference must be positive, got {reference}")
    return mul_div(abs(value - reference), BPS_DENOMINATOR, reference)


def rescale(amount: int, from_decimals: int, to_decimals: int) -> int:
    """
    Пересчёт суммы между разрядностями (floor при уменьшении).

    Examples:
        >>> rescale(1_500_000, 6, 18)
        1500000000000000000
        >>> rescale(1_999_999_999_999, 18, 6)
        1
    """
    if from_decimals == to_decimals:
        return amount
    if to_decimals > from_decimals:
        return amount * 10 ** (to_decimals - from_decimals)
    return amount // 10 ** (from_decimals - to_decimals)


# =============================================================================
# ВАЛИДАЦИЯ
# =============================================================================


def validate_non_negative(value: int, name: str) -> None:
    """
    Проверка, что целое значение >= 0.

    Raises:
        ValueError: Если value не int или отрицательно
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer amount, got {value!r}")
    if value < 0:
        raise ValueError(f"{name} must be non-negative, got {value}")


def validate_bps(value: int, name: str) -> None:
    """Проверка диапазона basis points [0, 10000]."""
    validate_non_negative(value, name)
    if value > BPS_DENOMINATOR:
        raise ValueError(f"{name} must be <= {BPS_DENOMINATOR}, got {value}")
