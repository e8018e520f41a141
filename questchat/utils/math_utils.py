# File: utils/math_utils.py
"""Math and calculation utilities for QuestChat.

Functions:
    - round_points: Consistent rounding to configured precision
    - round_half_up: Integer rounding, halves away from zero
    - apply_multiplier: Multiplier arithmetic producing whole XP
    - calculate_fraction: Progress fraction in [0, 1]
    - calculate_percentage: Progress percentage calculations
    - clamp: Bound a value to a range
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal


# ==============================================================================
# Constants (local copies to avoid circular imports)
# ==============================================================================

DATA_FLOAT_PRECISION = 2


# ==============================================================================
# Rounding
# ==============================================================================


def round_points(value: float, precision: int = DATA_FLOAT_PRECISION) -> float:
    """Round a fractional value to the configured precision.

    Examples:
        round_points(0.456) → 0.46
        round_points(10.0) → 10.0
    """
    return round(value, precision)


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going away from zero.

    Python's built-in round() uses banker's rounding (round(2.5) == 2), which
    would make XP grants drift from the documented arithmetic. The value is
    routed through its shortest repr so float noise from the multiplier step
    does not decide the rounding direction.

    Examples:
        round_half_up(2.5) → 3
        round_half_up(-2.5) → -3
        round_half_up(0.5) → 1
    """
    return int(Decimal(repr(value)).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def apply_multiplier(base: int, multiplier: float) -> int:
    """Apply a multiplier to a whole XP amount.

    Examples:
        apply_multiplier(250, 1.4) → 350
        apply_multiplier(15, 1.2) → 18
        apply_multiplier(25, 1.2) → 30
    """
    return round_half_up(base * multiplier)


# ==============================================================================
# Progress
# ==============================================================================


def calculate_fraction(
    current: float,
    target: float,
    precision: int = DATA_FLOAT_PRECISION,
) -> float:
    """Calculate progress as a fraction clamped to [0, 1].

    Examples:
        calculate_fraction(5, 20) → 0.25
        calculate_fraction(30, 20) → 1.0
        calculate_fraction(5, 0) → 0.0  # Division by zero protection
    """
    if target <= 0:
        return 0.0
    return round_points(clamp(current / target, 0.0, 1.0), precision)


def calculate_percentage(
    current: float,
    target: float,
    precision: int = DATA_FLOAT_PRECISION,
) -> float:
    """Calculate progress percentage with proper rounding.

    Unlike calculate_fraction() the result is not clamped, so a day at 150%
    of its hydration goal reports 150.0.

    Examples:
        calculate_percentage(32, 64) → 50.0
        calculate_percentage(1, 3) → 33.33
        calculate_percentage(5, 0) → 0.0
    """
    if target <= 0:
        return 0.0
    return round_points((current / target) * 100, precision)


def clamp(value: float, min_val: float, max_val: float) -> float:
    """Clamp a value between minimum and maximum bounds.

    Examples:
        clamp(150, 0, 100) → 100
        clamp(-10, 0, 100) → 0
    """
    return max(min_val, min(value, max_val))
