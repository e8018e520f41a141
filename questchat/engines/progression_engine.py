"""Progression Engine - Pure logic for XP, levels and level-up tiers.

This engine provides stateless functions for:
- Buff multiplier arithmetic (additive per active buff)
- Level derivation from total XP (clamped at MAX_LEVEL)
- Level-up tier classification
- Applying a grant to a ProgressionState without mutating it

ARCHITECTURE: State management belongs in ProgressionManager.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .. import const
from ..utils.math_utils import apply_multiplier, calculate_fraction, round_points

if TYPE_CHECKING:
    from ..type_defs import (
        GrantOutcome,
        LevelProgress,
        LevelUpTier,
        PendingLevelUp,
        ProgressionState,
    )


class ProgressionEngine:
    """Pure logic engine for XP and level calculations.

    Level formula: level = min(MAX_LEVEL, total_xp // XP_PER_LEVEL + 1).
    XP keeps accumulating past the level cap; only the level is clamped.
    """

    @staticmethod
    def multiplier(active_buff_count: int) -> float:
        """Return the grant multiplier for a number of active buffs.

        Stacking is additive: two buffs give 1.4, not 1.2 * 1.2.
        """
        count = max(active_buff_count, 0)
        return round_points(1 + const.BUFF_MULTIPLIER_STEP * count)

    @staticmethod
    def adjusted_amount(base_amount: int, active_buff_count: int) -> int:
        """Return round(base_amount * multiplier), halves away from zero."""
        return apply_multiplier(
            base_amount, ProgressionEngine.multiplier(active_buff_count)
        )

    @staticmethod
    def level_for_xp(total_xp: int) -> int:
        """Derive the level for a cumulative XP total."""
        level = max(total_xp, 0) // const.XP_PER_LEVEL + 1
        return min(level, const.MAX_LEVEL)

    @staticmethod
    def classify_tier(level: int) -> LevelUpTier:
        """Classify a level-up by the final level reached.

        Multiples of 10 are jackpots, other multiples of 5 are milestones.
        A multi-level jump (4 → 11) is classified by 11 alone, so it is
        normal even though it passed 5 and 10 on the way.
        """
        if level % const.LEVEL_JACKPOT_INTERVAL == 0:
            return "jackpot"
        if level % const.LEVEL_MILESTONE_INTERVAL == 0:
            return "milestone"
        return "normal"

    @staticmethod
    def apply_grant(
        state: ProgressionState, base_amount: int, active_buff_count: int
    ) -> GrantOutcome | None:
        """Compute the outcome of granting XP against a progression state.

        Args:
            state: Current progression section (not mutated)
            base_amount: Unmultiplied XP amount
            active_buff_count: Buffs active at grant time

        Returns:
            GrantOutcome, or None when base_amount is not positive.
        """
        if base_amount <= 0:
            return None

        multiplier = ProgressionEngine.multiplier(active_buff_count)
        adjusted = apply_multiplier(base_amount, multiplier)
        previous_level = state[const.DATA_PROGRESSION_LEVEL]
        total_xp = state[const.DATA_PROGRESSION_TOTAL_XP] + adjusted
        level = ProgressionEngine.level_for_xp(total_xp)

        level_up: PendingLevelUp | None = None
        if level > previous_level:
            level_up = {
                const.DATA_LEVEL_UP_LEVEL: level,
                const.DATA_LEVEL_UP_TIER: ProgressionEngine.classify_tier(level),
            }  # type: ignore[misc]

        return {
            "base_amount": base_amount,
            "multiplier": multiplier,
            "adjusted_amount": adjusted,
            "total_xp": total_xp,
            "previous_level": previous_level,
            "level": level,
            "level_up": level_up,
        }

    @staticmethod
    def progress_to_next_level(total_xp: int) -> LevelProgress:
        """Return progress through the current level.

        At MAX_LEVEL the bar is reported full.
        """
        level = ProgressionEngine.level_for_xp(total_xp)
        if level >= const.MAX_LEVEL:
            xp_into_level = const.XP_PER_LEVEL
        else:
            xp_into_level = max(total_xp, 0) % const.XP_PER_LEVEL
        return {
            "level": level,
            "total_xp": total_xp,
            "xp_into_level": xp_into_level,
            "xp_for_level": const.XP_PER_LEVEL,
            "fraction": calculate_fraction(xp_into_level, const.XP_PER_LEVEL),
        }

