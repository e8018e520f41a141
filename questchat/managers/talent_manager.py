"""Talent Manager - Owns the talent rank allocation.

Points come from the player level (one per level). Allocation is checked by
TalentEngine on every call; a blocked allocation is a no-op that returns
False rather than an error.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .. import const
from ..engines.talent_engine import TalentEngine
from .base_manager import BaseManager

if TYPE_CHECKING:
    from ..type_defs import TalentNode, TalentNodeId, TalentNodeView, TalentState


__all__ = ["TalentManager"]


class TalentManager(BaseManager):
    """Manager for talent point allocation."""

    @property
    def _state(self) -> TalentState:
        return self._section(const.DATA_TALENTS)

    @property
    def nodes(self) -> dict[TalentNodeId, TalentNode]:
        return self.coordinator.catalog.talents

    @property
    def ranks(self) -> dict[TalentNodeId, int]:
        return self._state[const.DATA_TALENTS_RANKS]

    @property
    def _level(self) -> int:
        return self.coordinator.progression_manager.level

    def setup(self) -> None:
        """Drop unknown nodes, clamp ranks and reset an overspent tree."""
        raw = self._state.get(const.DATA_TALENTS_RANKS)
        self._state[const.DATA_TALENTS_RANKS] = TalentEngine.sanitize_ranks(
            self.nodes, raw if isinstance(raw, dict) else {}
        )
        self.apply_level(self._level)

    @property
    def points_spent(self) -> int:
        return TalentEngine.points_spent(self.ranks)

    @property
    def points_available(self) -> int:
        return TalentEngine.points_available(self._level, self.ranks)

    def can_allocate(self, node_id: TalentNodeId) -> bool:
        return TalentEngine.can_allocate(self.nodes, self.ranks, self._level, node_id)

    def allocate(self, node_id: TalentNodeId) -> bool:
        """Put one point into `node_id`. Returns False when blocked."""
        updated = TalentEngine.allocate(self.nodes, self.ranks, self._level, node_id)
        if updated is None:
            const.LOGGER.debug(
                "Talent %s blocked: %s",
                node_id,
                TalentEngine.blocking_reason(
                    self.nodes, self.ranks, self._level, node_id
                ),
            )
            return False
        self._state[const.DATA_TALENTS_RANKS] = updated
        const.LOGGER.debug("Talent %s now rank %s", node_id, updated[node_id])
        return True

    def respec_all(self) -> int:
        """Return every point. Returns how many were refunded."""
        refunded = self.points_spent
        self._state[const.DATA_TALENTS_RANKS] = {}
        if refunded:
            const.LOGGER.info("Talent respec refunded %s points", refunded)
        return refunded

    def apply_level(self, level: int) -> bool:
        """Respec when a level drop leaves more points spent than earned.

        Returns:
            True when the allocation was reset.
        """
        if self.points_spent <= TalentEngine.points_earned(level):
            return False
        const.LOGGER.warning(
            "WARNING: %s talent points spent at level %s, resetting allocation",
            self.points_spent,
            level,
        )
        self.respec_all()
        return True

    def tree_state(self) -> list[TalentNodeView]:
        return TalentEngine.tree_view(self.nodes, self.ranks, self._level)
