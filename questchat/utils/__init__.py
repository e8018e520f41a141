# File: utils/__init__.py
"""Pure Python utilities for QuestChat.

Functions here take every input explicitly (timezone, week start, precision)
and never reach into coordinator state, so they can be unit tested directly.

Submodules:
    - dt_utils: Date/time parsing, local-day and locale-week calculations
    - math_utils: XP rounding, multiplier arithmetic, progress calculations

Usage:
    from . import dt_utils
    from .math_utils import round_half_up
"""

from . import dt_utils, math_utils

__all__ = ["dt_utils", "math_utils"]
