"""Payload schemas for the coordinator's event entry points and options.

Every event kind validates its payload here before any state is touched.
A payload that fails validation is logged and reported as not applied.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import voluptuous as vol

from . import const
from .utils.dt_utils import dt_parse


def time_zone(value: Any) -> str:
    """Validate an IANA time zone name."""
    if not isinstance(value, str):
        raise vol.Invalid("time zone must be a string")
    try:
        ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError) as err:
        raise vol.Invalid(f"unknown time zone: {value}") from err
    return value


def aware_datetime(value: Any) -> datetime:
    """Validate a datetime or ISO string, assuming UTC when naive."""
    if not isinstance(value, (str, datetime)):
        raise vol.Invalid("expected a datetime or ISO 8601 string")
    parsed = dt_parse(value)
    if parsed is None:
        raise vol.Invalid(f"invalid datetime: {value}")
    return parsed


_POSITIVE_INT = vol.All(vol.Coerce(int), vol.Range(min=1))
_HOUR = vol.All(vol.Coerce(int), vol.Range(min=0, max=23))

# --- Options ---
OPTIONS_SCHEMA = vol.Schema(
    {
        vol.Optional(const.CONF_TIMEZONE, default=const.DEFAULT_TIMEZONE): time_zone,
        vol.Optional(const.CONF_WEEK_START, default=const.DEFAULT_WEEK_START): vol.All(
            vol.Coerce(int), vol.Range(min=0, max=6)
        ),
        vol.Optional(
            const.CONF_HYDRATION_GOAL_OUNCES,
            default=const.DEFAULT_HYDRATION_GOAL_OUNCES,
        ): vol.All(vol.Coerce(int), vol.Range(min=0)),
        vol.Optional(
            const.CONF_COUNTER_RETENTION_DAYS,
            default=const.DEFAULT_COUNTER_RETENTION_DAYS,
        ): vol.All(
            vol.Coerce(int), vol.Range(min=const.MIN_COUNTER_RETENTION_DAYS)
        ),
        vol.Optional(const.CONF_BOARD_SEED, default=const.DEFAULT_BOARD_SEED): str,
    }
)

# --- Reminder settings ---
REMINDER_SETTINGS_SCHEMA = vol.Schema(
    {
        vol.Required(const.DATA_REMINDER_ENABLED): bool,
        vol.Required(const.DATA_REMINDER_CADENCE_MINUTES): _POSITIVE_INT,
        vol.Required(const.DATA_REMINDER_ACTIVE_START_HOUR): _HOUR,
        vol.Required(const.DATA_REMINDER_ACTIVE_END_HOUR): _HOUR,
        vol.Required(const.DATA_REMINDER_ONLY_DURING_SESSION): bool,
    }
)

# --- Event payload schemas ---
TIMER_COMPLETED_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_CATEGORY): vol.In(const.TIMER_CATEGORIES),
        vol.Required(const.FIELD_DURATION_MINUTES): _POSITIVE_INT,
        vol.Optional(const.FIELD_ENDED_AT): aware_datetime,
    }
)

RATING_LOGGED_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_RATING_KIND): vol.In(const.RATING_KINDS),
        vol.Required(const.FIELD_RATING_VALUE): vol.All(
            vol.Coerce(int), vol.Range(min=const.RATING_MIN, max=const.RATING_MAX)
        ),
    }
)

HYDRATION_LOGGED_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_OUNCES): _POSITIVE_INT,
        vol.Optional(const.FIELD_GOAL_OUNCES): vol.All(
            vol.Coerce(int), vol.Range(min=0)
        ),
    }
)

SCREEN_VIEWED_SCHEMA = vol.Schema(
    {vol.Required(const.FIELD_SCREEN): vol.In(const.SCREENS)}
)

QUEST_REROLLED_SCHEMA = vol.Schema(
    {vol.Required(const.FIELD_QUEST_ID): vol.All(str, vol.Length(min=1))}
)

TALENT_POINT_SPENT_SCHEMA = vol.Schema(
    {vol.Required(const.FIELD_NODE_ID): vol.All(str, vol.Length(min=1))}
)

REMINDER_SETTING_CHANGED_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_REMINDER_TYPE): vol.In(const.REMINDER_TYPES),
        vol.Optional(const.DATA_REMINDER_ENABLED): bool,
        vol.Optional(const.DATA_REMINDER_CADENCE_MINUTES): _POSITIVE_INT,
        vol.Optional(const.DATA_REMINDER_ACTIVE_START_HOUR): _HOUR,
        vol.Optional(const.DATA_REMINDER_ACTIVE_END_HOUR): _HOUR,
        vol.Optional(const.DATA_REMINDER_ONLY_DURING_SESSION): bool,
    }
)

REMINDER_RESPONDED_SCHEMA = vol.Schema(
    {vol.Required(const.FIELD_REMINDER_TYPE): vol.In(const.REMINDER_TYPES)}
)

EMPTY_SCHEMA = vol.Schema({})

EVENT_SCHEMAS: dict[str, vol.Schema] = {
    const.EVENT_TIMER_COMPLETED: TIMER_COMPLETED_SCHEMA,
    const.EVENT_RATING_LOGGED: RATING_LOGGED_SCHEMA,
    const.EVENT_HYDRATION_LOGGED: HYDRATION_LOGGED_SCHEMA,
    const.EVENT_SCREEN_VIEWED: SCREEN_VIEWED_SCHEMA,
    const.EVENT_QUEST_REROLLED: QUEST_REROLLED_SCHEMA,
    const.EVENT_TALENT_POINT_SPENT: TALENT_POINT_SPENT_SCHEMA,
    const.EVENT_TALENT_RESPEC: EMPTY_SCHEMA,
    const.EVENT_REMINDER_SETTING_CHANGED: REMINDER_SETTING_CHANGED_SCHEMA,
    const.EVENT_REMINDER_RESPONDED: REMINDER_RESPONDED_SCHEMA,
    const.EVENT_LEVEL_UP_ACKNOWLEDGED: EMPTY_SCHEMA,
    const.EVENT_FULL_RESET: EMPTY_SCHEMA,
}
