"""Buff Manager - Owns the active buff ledger.

Buffs are refreshed by name, never stacked. Expiry is lazy: every read
drops buffs whose remaining time reached zero, and the daily reset clears
the whole ledger through clear_all().
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .. import const
from ..engines.buff_engine import BuffEngine
from .base_manager import BaseManager

if TYPE_CHECKING:
    from datetime import datetime

    from ..type_defs import ActiveBuffView, BuffEntry


__all__ = ["BuffManager"]


class BuffManager(BaseManager):
    """Manager for the time-limited buff ledger."""

    @property
    def _buffs(self) -> list[BuffEntry]:
        return self._section(const.DATA_BUFFS)

    def _store(self, buffs: list[BuffEntry]) -> None:
        self.coordinator.data[const.DATA_BUFFS] = buffs

    def setup(self) -> None:
        """Drop entries that are not buff records or name an unknown buff."""
        known = {buff_type.value for buff_type in const.BuffType}
        buffs = self.coordinator.data.get(const.DATA_BUFFS)
        if not isinstance(buffs, list):
            buffs = []
        cleaned = [
            buff
            for buff in buffs
            if isinstance(buff, dict) and buff.get(const.DATA_BUFF_NAME) in known
        ]
        if len(cleaned) != len(buffs):
            const.LOGGER.debug(
                "Dropped %s unknown buff entries", len(buffs) - len(cleaned)
            )
        self._store(cleaned)

    def activate(
        self,
        buff_type: const.BuffType | str,
        now: datetime,
        duration_seconds: int | None = None,
    ) -> BuffEntry:
        """Activate a buff, replacing any active buff with the same name.

        Args:
            buff_type: BuffType member or its string tag
            now: Activation time
            duration_seconds: Override for the default duration

        Returns:
            The stored buff entry.
        """
        buff = BuffEngine.build_buff(const.BuffType(buff_type), now, duration_seconds)
        self._store(BuffEngine.refresh(self._buffs, buff))
        const.LOGGER.debug(
            "Buff '%s' activated for %ss",
            buff[const.DATA_BUFF_NAME],
            buff[const.DATA_BUFF_DURATION_SECONDS],
        )
        return buff

    def sweep(self, now: datetime) -> int:
        """Remove expired buffs from storage. Returns how many were dropped."""
        buffs = self._buffs
        active = BuffEngine.prune_expired(buffs, now)
        if len(active) != len(buffs):
            self._store(active)
        return len(buffs) - len(active)

    def active_buffs(self, now: datetime) -> list[ActiveBuffView]:
        """Return views of the buffs still active at `now`."""
        self.sweep(now)
        return [BuffEngine.to_view(buff, now) for buff in self._buffs]

    def count_active(self, now: datetime) -> int:
        """Number of active buffs, which drives the XP multiplier."""
        self.sweep(now)
        return len(self._buffs)

    def remaining_seconds(self, buff_type: const.BuffType | str, now: datetime) -> int:
        """Seconds left on a buff, 0 when it is not active."""
        name = const.BuffType(buff_type).value
        for buff in self._buffs:
            if buff[const.DATA_BUFF_NAME] == name:
                return BuffEngine.remaining_seconds(buff, now)
        return 0

    def clear_all(self) -> int:
        """Remove every buff. Returns how many were cleared."""
        cleared = len(self._buffs)
        self._store([])
        if cleared:
            const.LOGGER.debug("Cleared %s buffs", cleared)
        return cleared
