"""Buff Engine - Pure logic for time-limited XP buffs.

This engine provides stateless functions for:
- Building buff entries with the default duration per BuffType
- Remaining-time arithmetic (lazy expiry)
- Refresh-on-name semantics (replace, never stack)

ARCHITECTURE: All functions are static methods that operate on passed-in
lists. The buff list itself lives in the snapshot and is owned by
BuffManager.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
import uuid

from .. import const
from ..utils.dt_utils import dt_format_iso, dt_parse

if TYPE_CHECKING:
    from datetime import datetime

    from ..type_defs import ActiveBuffView, BuffEntry

# Every buff contributes one stacking step to the multiplier
DEFAULT_BUFF_MAGNITUDE = 1.0


class BuffEngine:
    """Pure logic engine for buff lifecycle arithmetic.

    A buff is active iff remaining_seconds(now) > 0. Expired buffs are never
    mutated in place; callers filter them out with prune_expired().
    """

    @staticmethod
    def default_duration(buff_type: const.BuffType) -> int:
        """Return the default duration in seconds for a buff type."""
        return const.BUFF_DEFAULT_DURATIONS[buff_type]

    @staticmethod
    def build_buff(
        buff_type: const.BuffType,
        now: datetime,
        duration_seconds: int | None = None,
    ) -> BuffEntry:
        """Create a new buff entry starting at `now`.

        Args:
            buff_type: Buff identity
            now: Activation time (timezone-aware)
            duration_seconds: Override for the per-type default

        Returns:
            BuffEntry ready for storage
        """
        duration = (
            duration_seconds
            if duration_seconds is not None
            else BuffEngine.default_duration(buff_type)
        )
        return {
            const.DATA_BUFF_ID: str(uuid.uuid4()),
            const.DATA_BUFF_NAME: buff_type.value,
            const.DATA_BUFF_MAGNITUDE: DEFAULT_BUFF_MAGNITUDE,
            const.DATA_BUFF_DURATION_SECONDS: max(int(duration), 0),
            const.DATA_BUFF_STARTED_AT: dt_format_iso(now),
        }

    @staticmethod
    def remaining_seconds(buff: BuffEntry, now: datetime) -> int:
        """Return max(0, duration - (now - started_at)) in whole seconds.

        A started_at in the future (clock moved backwards) counts as zero
        elapsed time, so the buff keeps its full duration.
        """
        started_at = dt_parse(buff[const.DATA_BUFF_STARTED_AT])
        if started_at is None:
            return 0
        elapsed = max((now - started_at).total_seconds(), 0.0)
        return max(int(buff[const.DATA_BUFF_DURATION_SECONDS] - elapsed), 0)

    @staticmethod
    def is_active(buff: BuffEntry, now: datetime) -> bool:
        """Return True while the buff has time remaining."""
        return BuffEngine.remaining_seconds(buff, now) > 0

    @staticmethod
    def prune_expired(buffs: list[BuffEntry], now: datetime) -> list[BuffEntry]:
        """Return only the buffs still active at `now`."""
        return [buff for buff in buffs if BuffEngine.is_active(buff, now)]

    @staticmethod
    def refresh(buffs: list[BuffEntry], new_buff: BuffEntry) -> list[BuffEntry]:
        """Return a buff list where `new_buff` replaces any same-name entry.

        The refreshed buff is appended so list order reflects activation
        order.
        """
        name = new_buff[const.DATA_BUFF_NAME]
        kept = [buff for buff in buffs if buff[const.DATA_BUFF_NAME] != name]
        kept.append(new_buff)
        return kept

    @staticmethod
    def to_view(buff: BuffEntry, now: datetime) -> ActiveBuffView:
        """Project a stored buff into its presentation shape."""
        return {
            "name": buff[const.DATA_BUFF_NAME],
            "magnitude": buff[const.DATA_BUFF_MAGNITUDE],
            "remaining_seconds": BuffEngine.remaining_seconds(buff, now),
            "started_at": buff[const.DATA_BUFF_STARTED_AT],
        }
