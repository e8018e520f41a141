"""Reminder Manager - Reminder settings and last-fired bookkeeping.

The manager never schedules anything. The host asks whether a reminder may
fire now (should_fire / maybe_fire) or when it next could
(next_eligible_time) and delivers the notification itself.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import voluptuous as vol

from .. import const, data_builders as db
from ..engines.reminder_engine import ReminderEngine
from ..services import REMINDER_SETTINGS_SCHEMA
from ..utils.dt_utils import dt_format_iso
from .base_manager import BaseManager

if TYPE_CHECKING:
    from datetime import datetime

    from ..type_defs import ReminderContext, ReminderSettings, ReminderState


__all__ = ["ReminderManager"]


class ReminderManager(BaseManager):
    """Manager for hydration and posture reminders."""

    @property
    def _state(self) -> ReminderState:
        return self._section(const.DATA_REMINDERS)

    def setup(self) -> None:
        """Merge stored settings over per-type defaults.

        Settings that fail validation after the merge fall back to the
        type defaults.
        """
        state = self._state
        stored = state.get(const.DATA_REMINDERS_SETTINGS) or {}
        runtime = state.get(const.DATA_REMINDERS_STATE) or {}
        state[const.DATA_REMINDERS_SETTINGS] = {
            reminder_type: self._load_settings(reminder_type, stored.get(reminder_type))
            for reminder_type in const.REMINDER_TYPES
        }
        state[const.DATA_REMINDERS_STATE] = {
            reminder_type: {
                const.DATA_REMINDER_LAST_FIRED_AT: (
                    runtime.get(reminder_type) or {}
                ).get(const.DATA_REMINDER_LAST_FIRED_AT)
            }
            for reminder_type in const.REMINDER_TYPES
        }

    @staticmethod
    def _load_settings(reminder_type: str, stored: Any) -> ReminderSettings:
        merged = db.build_reminder_settings(
            reminder_type, stored if isinstance(stored, dict) else None
        )
        try:
            return REMINDER_SETTINGS_SCHEMA(merged)
        except vol.Invalid as err:
            const.LOGGER.warning(
                "WARNING: Stored %s reminder settings unreadable (%s), using defaults",
                reminder_type,
                err,
            )
            return db.build_reminder_settings(reminder_type)

    def settings(self, reminder_type: str) -> ReminderSettings:
        return self._state[const.DATA_REMINDERS_SETTINGS][reminder_type]

    def last_fired_at(self, reminder_type: str) -> str | None:
        return self._state[const.DATA_REMINDERS_STATE][reminder_type][
            const.DATA_REMINDER_LAST_FIRED_AT
        ]

    def should_fire(
        self,
        reminder_type: str,
        now: datetime,
        context: ReminderContext | None = None,
    ) -> bool:
        return ReminderEngine.should_fire(
            self.settings(reminder_type),
            self.last_fired_at(reminder_type),
            now,
            context,
            reminder_type=reminder_type,
            tz=self.tz,
        )

    def next_eligible_time(
        self, reminder_type: str, now: datetime
    ) -> datetime | None:
        return ReminderEngine.next_eligible_time(
            self.settings(reminder_type),
            self.last_fired_at(reminder_type),
            now,
            tz=self.tz,
        )

    def record_fired(self, reminder_type: str, now: datetime) -> None:
        self._state[const.DATA_REMINDERS_STATE][reminder_type][
            const.DATA_REMINDER_LAST_FIRED_AT
        ] = dt_format_iso(now)
        const.LOGGER.debug("Reminder '%s' fired at %s", reminder_type, now)

    def maybe_fire(
        self,
        reminder_type: str,
        now: datetime,
        context: ReminderContext | None = None,
    ) -> bool:
        """Check and record a fire in one step. Returns whether it fired."""
        if not self.should_fire(reminder_type, now, context):
            return False
        self.record_fired(reminder_type, now)
        return True

    def update_settings(self, reminder_type: str, changes: dict[str, Any]) -> bool:
        """Apply validated setting changes for one reminder type.

        Returns:
            False when the merged settings fail validation (nothing changes).
        """
        merged = {**self.settings(reminder_type), **changes}
        try:
            validated = REMINDER_SETTINGS_SCHEMA(merged)
        except vol.Invalid as err:
            const.LOGGER.warning(
                "WARNING: Rejected %s reminder settings: %s", reminder_type, err
            )
            return False
        self._state[const.DATA_REMINDERS_SETTINGS][reminder_type] = validated
        const.LOGGER.debug("Reminder '%s' settings updated", reminder_type)
        return True

    def responded(self, reminder_type: str, now: datetime) -> int:
        """Count an acknowledged reminder for today."""
        return self.coordinator.statistics_manager.record_reminder_response(
            reminder_type, now
        )

    def reset_runtime(self) -> None:
        """Forget last-fired times, keeping settings."""
        for runtime in self._state[const.DATA_REMINDERS_STATE].values():
            runtime[const.DATA_REMINDER_LAST_FIRED_AT] = None
