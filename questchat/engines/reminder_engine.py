"""Reminder Engine - Pure fire/no-fire decisions for nudges.

The engine never owns a timer. Given settings, the last fire time, "now" and
live context it answers two questions:
    - should_fire(): may a reminder be delivered right now?
    - next_eligible_time(): when is the earliest moment one could be?

Active windows are half-open [start_hour, end_hour) in the profile timezone,
wrap past midnight when end < start, and are always open when start == end.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from .. import const
from ..utils.dt_utils import as_local, at_local_hour, dt_parse

if TYPE_CHECKING:
    from zoneinfo import ZoneInfo

    from ..type_defs import ReminderContext, ReminderSettings


class ReminderEngine:
    """Pure logic engine for reminder scheduling."""

    @staticmethod
    def in_window(settings: ReminderSettings, local_hour: int) -> bool:
        """Return True when a local hour falls inside the active window."""
        start = settings[const.DATA_REMINDER_ACTIVE_START_HOUR]
        end = settings[const.DATA_REMINDER_ACTIVE_END_HOUR]
        if start == end:
            return True
        if start < end:
            return start <= local_hour < end
        # Wraps past midnight, e.g. [22, 6)
        return local_hour >= start or local_hour < end

    @staticmethod
    def cadence_elapsed(
        settings: ReminderSettings,
        last_fired_at: datetime | str | None,
        now: datetime,
    ) -> bool:
        """Return True when at least cadence_minutes passed since the last fire."""
        last = dt_parse(last_fired_at)
        if last is None:
            return True
        cadence = timedelta(minutes=settings[const.DATA_REMINDER_CADENCE_MINUTES])
        return now - last >= cadence

    @staticmethod
    def domain_gate(
        reminder_type: str | None, context: ReminderContext
    ) -> bool:
        """Apply reminder-type specific conditions.

        Hydration reminders need a positive goal that has not been reached.
        When triggered by a finished timer they also need a focus-type
        session of at least HYDRATION_REMINDER_MIN_SESSION_MINUTES.
        """
        if reminder_type != const.REMINDER_TYPE_HYDRATION:
            return True

        goal = context.get("water_goal_ounces", 0) or 0
        intake = context.get("water_intake_ounces", 0) or 0
        if goal <= 0 or intake >= goal:
            return False

        if context.get("reason") == const.REMINDER_REASON_TIMER_COMPLETED:
            category = context.get("session_category")
            minutes = context.get("session_duration_minutes") or 0
            if category not in const.FOCUS_TIMER_CATEGORIES:
                return False
            if minutes < const.HYDRATION_REMINDER_MIN_SESSION_MINUTES:
                return False
        return True

    @classmethod
    def should_fire(
        cls,
        settings: ReminderSettings,
        last_fired_at: datetime | str | None,
        now: datetime,
        context: ReminderContext | None = None,
        *,
        reminder_type: str | None = None,
        tz: ZoneInfo | None = None,
    ) -> bool:
        """Decide whether a reminder may fire at `now`.

        Args:
            settings: Reminder settings for this type
            last_fired_at: Previous fire time, or None if never fired
            now: Current time (timezone-aware)
            context: Live session and hydration context
            reminder_type: Enables the type-specific domain gate
            tz: Profile timezone for the active window

        Returns:
            True when every condition holds; the caller records the fire.
        """
        context = context or {}
        if not settings[const.DATA_REMINDER_ENABLED]:
            return False
        if settings[const.DATA_REMINDER_ONLY_DURING_SESSION] and not context.get(
            "qualifying_session_active", False
        ):
            return False
        if not cls.in_window(settings, as_local(now, tz).hour):
            return False
        if not cls.cadence_elapsed(settings, last_fired_at, now):
            return False
        return cls.domain_gate(reminder_type, context)

    @classmethod
    def next_eligible_time(
        cls,
        settings: ReminderSettings,
        last_fired_at: datetime | str | None,
        now: datetime,
        *,
        tz: ZoneInfo | None = None,
    ) -> datetime | None:
        """Return the earliest time >= now satisfying window and cadence.

        Session and domain gates depend on live context and are not
        previewed. Disabled reminders have no next time.

        Example:
            cadence 60, window [9, 22), last fire 08:59, now 23:00
            → 09:00 the next day
        """
        if not settings[const.DATA_REMINDER_ENABLED]:
            return None

        candidate = now
        last = dt_parse(last_fired_at)
        if last is not None:
            cadence = timedelta(
                minutes=settings[const.DATA_REMINDER_CADENCE_MINUTES]
            )
            candidate = max(now, last + cadence)

        local = as_local(candidate, tz)
        if cls.in_window(settings, local.hour):
            return local

        start = settings[const.DATA_REMINDER_ACTIVE_START_HOUR]
        day = local.date()
        if local.hour >= start:
            day += timedelta(days=1)
        return at_local_hour(day, start, tz)
