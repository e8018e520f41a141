"""Progression Manager - XP ledger and level-up bookkeeping.

The only writer of the progression section. Every XP grant goes through
grant_xp(), which applies the buff multiplier, recomputes the level and
records a pending level-up for the presentation layer to acknowledge.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .. import const, data_builders as db
from ..engines.progression_engine import ProgressionEngine
from .base_manager import BaseManager

if TYPE_CHECKING:
    from ..type_defs import (
        GrantOutcome,
        LevelProgress,
        PendingLevelUp,
        ProgressionState,
    )


__all__ = ["ProgressionManager"]


class ProgressionManager(BaseManager):
    """Manager for total XP, level and pending level-ups."""

    @property
    def _state(self) -> ProgressionState:
        return self._section(const.DATA_PROGRESSION)

    @property
    def total_xp(self) -> int:
        return self._state[const.DATA_PROGRESSION_TOTAL_XP]

    @property
    def level(self) -> int:
        return self._state[const.DATA_PROGRESSION_LEVEL]

    @property
    def pending_level_up(self) -> PendingLevelUp | None:
        return self._state[const.DATA_PROGRESSION_PENDING_LEVEL_UP]

    def setup(self) -> None:
        """Re-derive the level from total XP so the invariant always holds."""
        state = self._state
        total_xp = max(int(state.get(const.DATA_PROGRESSION_TOTAL_XP, 0)), 0)
        level = ProgressionEngine.level_for_xp(total_xp)
        if state.get(const.DATA_PROGRESSION_LEVEL) != level:
            const.LOGGER.warning(
                "WARNING: Stored level %s disagrees with %s XP, using %s",
                state.get(const.DATA_PROGRESSION_LEVEL),
                total_xp,
                level,
            )
        state[const.DATA_PROGRESSION_TOTAL_XP] = total_xp
        state[const.DATA_PROGRESSION_LEVEL] = level
        state.setdefault(const.DATA_PROGRESSION_PENDING_LEVEL_UP, None)

    def grant_xp(self, base_amount: int, active_buff_count: int) -> GrantOutcome | None:
        """Grant XP with the buff multiplier applied.

        Args:
            base_amount: Unmultiplied XP (non-positive amounts are a no-op)
            active_buff_count: Buffs active at grant time

        Returns:
            GrantOutcome, or None when nothing was granted.
        """
        outcome = ProgressionEngine.apply_grant(
            self._state, base_amount, active_buff_count
        )
        if outcome is None:
            return None

        state = self._state
        state[const.DATA_PROGRESSION_TOTAL_XP] = outcome["total_xp"]
        state[const.DATA_PROGRESSION_LEVEL] = outcome["level"]
        if outcome["level_up"] is not None:
            state[const.DATA_PROGRESSION_PENDING_LEVEL_UP] = outcome["level_up"]
            const.LOGGER.info(
                "Level up %s -> %s (%s)",
                outcome["previous_level"],
                outcome["level"],
                outcome["level_up"][const.DATA_LEVEL_UP_TIER],
            )

        const.LOGGER.debug(
            "Granted %s XP (base %s x%s), total %s",
            outcome["adjusted_amount"],
            base_amount,
            outcome["multiplier"],
            outcome["total_xp"],
        )
        return outcome

    def acknowledge_level_up(self) -> bool:
        """Clear the pending level-up. Returns whether one was pending."""
        if self.pending_level_up is None:
            return False
        self._state[const.DATA_PROGRESSION_PENDING_LEVEL_UP] = None
        return True

    def reset_xp(self) -> None:
        """Zero XP and return to level 1 (full wipe only)."""
        self.coordinator.data[const.DATA_PROGRESSION] = db.build_default_progression()
        const.LOGGER.info("Progression reset to level %s", const.MIN_LEVEL)

    def progress_to_next_level(self) -> LevelProgress:
        return ProgressionEngine.progress_to_next_level(self.total_xp)
