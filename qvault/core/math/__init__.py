"""
Core math modules для qvault

Целочисленные fixed-point примитивы с гарантией детерминизма.
"""

from qvault.core.math.fixed_point import (
    BPS_DENOMINATOR,
    RATIO_SENTINEL_MAX,
    abs_diff_bps,
    apply_bps,
    mul_div,
    rescale,
    safe_mul_div,
    validate_bps,
    validate_non_negative,
)

__all__ = [
    # Constants
    "BPS_DENOMINATOR",
    "RATIO_SENTINEL_MAX",
    # Arithmetic
    "abs_diff_bps",
    "apply_bps",
    "mul_div",
    "rescale",
    "safe_mul_div",
    # Validation
    "validate_bps",
    "validate_non_negative",
]
