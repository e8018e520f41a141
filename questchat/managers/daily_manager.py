"""Daily Manager - Once-per-day flags and the local-midnight reset.

A day boundary is detected lazily: every day-scoped call runs
ensure_fresh_day() first. The first call that observes a local date later
than last_reset_day clears every flag and the buff ledger. A clock that
moved backwards never triggers a reset.
"""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

from .. import const
from ..utils.dt_utils import local_date
from .base_manager import BaseManager

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from ..type_defs import DailyState


__all__ = ["DailyManager"]


class DailyManager(BaseManager):
    """Manager for per-day one-shot flags."""

    @property
    def _state(self) -> DailyState:
        return self._section(const.DATA_DAILY)

    @property
    def last_reset_day(self) -> date | None:
        value = self._state.get(const.DATA_DAILY_LAST_RESET_DAY)
        return date.fromisoformat(value) if value else None

    def setup(self) -> None:
        state = self._state
        state.setdefault(const.DATA_DAILY_LAST_RESET_DAY, None)
        flags = state.get(const.DATA_DAILY_FLAGS)
        state[const.DATA_DAILY_FLAGS] = (
            {str(k): bool(v) for k, v in flags.items()}
            if isinstance(flags, dict)
            else {}
        )

    def ensure_fresh_day(self, now: datetime) -> bool:
        """Reset flags and buffs if `now` falls on a later local day.

        Returns:
            True when a reset happened.
        """
        today = local_date(now, self.tz)
        last = self.last_reset_day
        if last is not None and today <= last:
            return False

        state = self._state
        state[const.DATA_DAILY_FLAGS] = {}
        state[const.DATA_DAILY_LAST_RESET_DAY] = today.isoformat()
        self.coordinator.buff_manager.clear_all()
        const.LOGGER.info("Daily reset for %s (previous %s)", today, last)
        return True

    def is_flag_set(self, flag_id: str, now: datetime) -> bool:
        self.ensure_fresh_day(now)
        return self._state[const.DATA_DAILY_FLAGS].get(flag_id, False)

    def set_flag(self, flag_id: str, now: datetime) -> None:
        self.ensure_fresh_day(now)
        self._state[const.DATA_DAILY_FLAGS][flag_id] = True

    def grant_once_per_day(
        self, flag_id: str, action: Callable[[], object], now: datetime
    ) -> bool:
        """Run `action` unless `flag_id` was already set today.

        Args:
            flag_id: One of the const.FLAG_* values
            action: Grant to perform the first time today
            now: Current time

        Returns:
            True when the action ran.
        """
        if self.is_flag_set(flag_id, now):
            const.LOGGER.debug("Daily grant '%s' already claimed", flag_id)
            return False
        action()
        self._state[const.DATA_DAILY_FLAGS][flag_id] = True
        return True

    def all_flags_set(self, flag_ids: tuple[str, ...], now: datetime) -> bool:
        self.ensure_fresh_day(now)
        flags = self._state[const.DATA_DAILY_FLAGS]
        return all(flags.get(flag_id, False) for flag_id in flag_ids)
