"""Snapshot migration and section recovery.

Snapshots are upgraded by explicit, version-tagged transforms before the
coordinator reads them:

    v1 (legacy flat keys) → v2 (sectioned snapshot)

After the version upgrade every section is validated on its own. A section
that fails validation is replaced by its default and logged; all other
sections are kept as they are. Only a snapshot whose root is not a mapping
is rejected outright (SnapshotError).
"""

from __future__ import annotations

from collections.abc import Mapping
import copy
from typing import TYPE_CHECKING, Any

import voluptuous as vol

from . import const, data_builders as db
from .exceptions import SnapshotError
from .utils.dt_utils import as_local, dt_parse, dt_parse_date

if TYPE_CHECKING:
    from zoneinfo import ZoneInfo

    from .type_defs import Snapshot


# ================================================================================================
# Section Schemas
# ================================================================================================


def _iso_datetime(value: Any) -> str:
    """Accept an ISO datetime string and keep it as stored."""
    if not isinstance(value, str) or dt_parse(value) is None:
        raise vol.Invalid(f"invalid datetime: {value!r}")
    return value


def _iso_date(value: Any) -> str:
    if not isinstance(value, str) or dt_parse_date(value) is None:
        raise vol.Invalid(f"invalid date: {value!r}")
    return value


_LEGACY_FLAT_KEYS = (
    const.LEGACY_KEY_TOTAL_XP,
    const.LEGACY_KEY_LEVEL,
    const.LEGACY_KEY_WATER_GOAL_GRANTED,
    const.LEGACY_KEY_SLEEP_GRANTED,
    const.LEGACY_KEY_GUT_GRANTED,
    const.LEGACY_KEY_TRIFECTA_GRANTED,
    const.LEGACY_KEY_LAST_RESET,
    const.LEGACY_KEY_ACTIVE_BUFFS,
)

_LEGACY_FLAG_KEYS = {
    const.LEGACY_KEY_WATER_GOAL_GRANTED: const.FLAG_WATER_GOAL_GRANTED,
    const.LEGACY_KEY_SLEEP_GRANTED: const.FLAG_SLEEP_GRANTED,
    const.LEGACY_KEY_GUT_GRANTED: const.FLAG_GUT_GRANTED,
    const.LEGACY_KEY_TRIFECTA_GRANTED: const.FLAG_TRIFECTA_GRANTED,
}

_NON_NEGATIVE_INT = vol.All(vol.Coerce(int), vol.Range(min=0))
_OPTIONAL_DATETIME = vol.Any(None, _iso_datetime)
_OPTIONAL_DATE = vol.Any(None, _iso_date)

PROGRESSION_SCHEMA = vol.Schema(
    {
        vol.Required(const.DATA_PROGRESSION_TOTAL_XP): _NON_NEGATIVE_INT,
        vol.Optional(const.DATA_PROGRESSION_LEVEL, default=const.MIN_LEVEL): vol.Coerce(
            int
        ),
        vol.Optional(const.DATA_PROGRESSION_PENDING_LEVEL_UP, default=None): vol.Any(
            None,
            {
                vol.Required(const.DATA_LEVEL_UP_LEVEL): vol.Coerce(int),
                vol.Required(const.DATA_LEVEL_UP_TIER): vol.In(
                    [
                        const.LEVEL_UP_TIER_NORMAL,
                        const.LEVEL_UP_TIER_MILESTONE,
                        const.LEVEL_UP_TIER_JACKPOT,
                    ]
                ),
            },
        ),
    },
    extra=vol.REMOVE_EXTRA,
)

BUFFS_SCHEMA = vol.Schema(
    [
        {
            vol.Required(const.DATA_BUFF_ID): str,
            vol.Required(const.DATA_BUFF_NAME): vol.In(
                [buff_type.value for buff_type in const.BuffType]
            ),
            vol.Optional(const.DATA_BUFF_MAGNITUDE, default=1.0): vol.Coerce(float),
            vol.Required(const.DATA_BUFF_DURATION_SECONDS): _NON_NEGATIVE_INT,
            vol.Required(const.DATA_BUFF_STARTED_AT): _iso_datetime,
        }
    ]
)

DAILY_SCHEMA = vol.Schema(
    {
        vol.Optional(const.DATA_DAILY_LAST_RESET_DAY, default=None): _OPTIONAL_DATE,
        vol.Optional(const.DATA_DAILY_FLAGS, default=dict): {str: bool},
    },
    extra=vol.REMOVE_EXTRA,
)

TIMER_RECORD_SCHEMA = vol.Schema(
    {
        vol.Required(const.DATA_TIMER_CATEGORY): str,
        vol.Required(const.DATA_TIMER_DURATION_MINUTES): _NON_NEGATIVE_INT,
        vol.Required(const.DATA_TIMER_ENDED_AT): _iso_datetime,
        vol.Required(const.DATA_TIMER_ENDED_HOUR): vol.All(
            vol.Coerce(int), vol.Range(min=0, max=23)
        ),
    },
    extra=vol.REMOVE_EXTRA,
)

QUEST_COMPLETION_SCHEMA = vol.Schema(
    {
        vol.Required(const.DATA_QUEST_COMPLETION_ID): str,
        vol.Required(const.DATA_QUEST_COMPLETION_SCOPE): vol.In(
            [const.QUEST_SCOPE_DAILY, const.QUEST_SCOPE_WEEKLY]
        ),
        vol.Required(const.DATA_QUEST_COMPLETION_DIFFICULTY): str,
        vol.Required(const.DATA_QUEST_COMPLETION_AT): _iso_datetime,
    },
    extra=vol.REMOVE_EXTRA,
)

# Missing keys are filled with their empty values; wrong types invalidate
# the whole counters section.
DAY_BUCKET_SCHEMA = vol.Schema(
    {
        vol.Optional(const.DATA_DAY_TIMERS, default=list): [TIMER_RECORD_SCHEMA],
        vol.Optional(const.DATA_DAY_FOCUS_MINUTES, default=0): _NON_NEGATIVE_INT,
        vol.Optional(const.DATA_DAY_HYDRATION_OUNCES, default=0): _NON_NEGATIVE_INT,
        vol.Optional(const.DATA_DAY_HYDRATION_GOAL_OUNCES, default=None): vol.Any(
            None, _NON_NEGATIVE_INT
        ),
        vol.Optional(const.DATA_DAY_CHECKINS, default=dict): {str: vol.Coerce(int)},
        vol.Optional(const.DATA_DAY_SCREENS, default=dict): {str: _NON_NEGATIVE_INT},
        vol.Optional(const.DATA_DAY_REMINDERS_RESPONDED, default=dict): {
            str: _NON_NEGATIVE_INT
        },
        vol.Optional(const.DATA_DAY_QUEST_COMPLETIONS, default=list): [
            QUEST_COMPLETION_SCHEMA
        ],
    },
    extra=vol.REMOVE_EXTRA,
)

COUNTERS_SCHEMA = vol.Schema(
    {
        vol.Required(const.DATA_COUNTERS_DAYS): vol.Schema(
            {_iso_date: DAY_BUCKET_SCHEMA}
        )
    },
    extra=vol.REMOVE_EXTRA,
)

QUEST_INSTANCE_SCHEMA = vol.Schema(
    {
        vol.Required(const.DATA_QUEST_DEFINITION_ID): str,
        vol.Required(const.DATA_QUEST_SCOPE): vol.In(
            [const.QUEST_SCOPE_DAILY, const.QUEST_SCOPE_WEEKLY]
        ),
        vol.Required(const.DATA_QUEST_WINDOW_START): _iso_date,
        vol.Required(const.DATA_QUEST_STATUS): vol.In(
            [const.QUEST_STATUS_PENDING, const.QUEST_STATUS_COMPLETED]
        ),
        vol.Optional(const.DATA_QUEST_PROGRESS, default=0): _NON_NEGATIVE_INT,
        vol.Optional(const.DATA_QUEST_TARGET, default=1): _NON_NEGATIVE_INT,
        vol.Optional(const.DATA_QUEST_COMPLETED_AT, default=None): _OPTIONAL_DATETIME,
        vol.Optional(const.DATA_QUEST_IS_CORE, default=False): bool,
    },
    extra=vol.REMOVE_EXTRA,
)

QUESTS_SCHEMA = vol.Schema(
    {
        vol.Optional(const.DATA_QUESTS_DAILY, default=list): [QUEST_INSTANCE_SCHEMA],
        vol.Optional(const.DATA_QUESTS_WEEKLY, default=list): [QUEST_INSTANCE_SCHEMA],
        vol.Optional(const.DATA_QUESTS_DAILY_WINDOW, default=None): _OPTIONAL_DATE,
        vol.Optional(const.DATA_QUESTS_WEEKLY_WINDOW, default=None): _OPTIONAL_DATE,
        vol.Optional(const.DATA_QUESTS_DISCARDED, default=list): [str],
    },
    extra=vol.REMOVE_EXTRA,
)

ACHIEVEMENTS_SCHEMA = vol.Schema(
    {
        str: {
            vol.Optional(
                const.DATA_ACHIEVEMENT_CURRENT_VALUE, default=0
            ): _NON_NEGATIVE_INT,
            vol.Optional(
                const.DATA_ACHIEVEMENT_UNLOCKED_AT, default=None
            ): _OPTIONAL_DATETIME,
            vol.Optional(
                const.DATA_ACHIEVEMENT_LAST_UPDATED_AT, default=None
            ): _OPTIONAL_DATETIME,
        }
    }
)

STREAK_SCHEMA = vol.Schema(
    {
        vol.Optional(const.DATA_STREAK_CURRENT, default=0): _NON_NEGATIVE_INT,
        vol.Optional(const.DATA_STREAK_LONGEST, default=0): _NON_NEGATIVE_INT,
        vol.Optional(const.DATA_STREAK_LAST_DATE, default=None): _OPTIONAL_DATE,
    }
)

SEASON_SCHEMA = vol.Schema(
    {
        vol.Required(const.DATA_SEASON_ID): str,
        vol.Optional(const.DATA_SEASON_COUNTS, default=dict): {str: _NON_NEGATIVE_INT},
        vol.Optional(const.DATA_SEASON_STREAKS, default=dict): {str: STREAK_SCHEMA},
    },
    extra=vol.REMOVE_EXTRA,
)

TITLES_SCHEMA = vol.Schema(
    {
        vol.Optional(const.DATA_TITLES_UNLOCKED, default=list): [str],
        vol.Optional(const.DATA_TITLES_EQUIPPED, default=None): vol.Any(None, str),
    },
    extra=vol.REMOVE_EXTRA,
)

TALENTS_SCHEMA = vol.Schema(
    {vol.Optional(const.DATA_TALENTS_RANKS, default=dict): {str: _NON_NEGATIVE_INT}},
    extra=vol.REMOVE_EXTRA,
)

REMINDERS_SCHEMA = vol.Schema(
    {
        vol.Optional(const.DATA_REMINDERS_SETTINGS, default=dict): {
            vol.In(const.REMINDER_TYPES): dict
        },
        vol.Optional(const.DATA_REMINDERS_STATE, default=dict): {
            vol.In(const.REMINDER_TYPES): {
                vol.Optional(
                    const.DATA_REMINDER_LAST_FIRED_AT, default=None
                ): _OPTIONAL_DATETIME
            }
        },
    },
    extra=vol.REMOVE_EXTRA,
)

SECTION_SCHEMAS: dict[str, vol.Schema] = {
    const.DATA_PROGRESSION: PROGRESSION_SCHEMA,
    const.DATA_BUFFS: BUFFS_SCHEMA,
    const.DATA_DAILY: DAILY_SCHEMA,
    const.DATA_COUNTERS: COUNTERS_SCHEMA,
    const.DATA_QUESTS: QUESTS_SCHEMA,
    const.DATA_ACHIEVEMENTS: ACHIEVEMENTS_SCHEMA,
    const.DATA_SEASON: SEASON_SCHEMA,
    const.DATA_TITLES: TITLES_SCHEMA,
    const.DATA_TALENTS: TALENTS_SCHEMA,
    const.DATA_REMINDERS: REMINDERS_SCHEMA,
}


# ================================================================================================
# Migrator
# ================================================================================================


class SnapshotMigrator:
    """Upgrade a raw snapshot mapping to the current schema.

    Usage:
        migrator = SnapshotMigrator(raw_data, tz)
        snapshot = migrator.run()
        migrator.recovered_sections  # sections replaced by defaults
    """

    def __init__(self, data: Any, tz: ZoneInfo | None = None) -> None:
        """Initialize the migrator.

        Args:
            data: Raw persisted value (decoded JSON)
            tz: Profile timezone, used to interpret legacy reset timestamps

        Raises:
            SnapshotError: `data` is not a mapping.
        """
        if not isinstance(data, Mapping):
            raise SnapshotError(data)
        self._raw: dict[str, Any] = copy.deepcopy(dict(data))
        self._tz = tz
        self.recovered_sections: list[str] = []
        self.migrations_applied: list[str] = []

    def detect_version(self) -> int:
        """Return the schema version of the raw data.

        Data without a meta section is legacy v1 when it carries any legacy
        flat key, otherwise it is treated as a current snapshot with
        missing sections.
        """
        meta = self._raw.get(const.DATA_META)
        if isinstance(meta, Mapping):
            version = meta.get(const.DATA_META_SCHEMA_VERSION)
            if isinstance(version, int):
                return version
        if any(key in self._raw for key in _LEGACY_FLAT_KEYS):
            return const.SCHEMA_VERSION_LEGACY_FLAT
        return const.SCHEMA_VERSION_CURRENT

    def run(self) -> Snapshot:
        """Return a migrated, section-validated snapshot."""
        version = self.detect_version()
        if version > const.SCHEMA_VERSION_CURRENT:
            const.LOGGER.warning(
                "WARNING: Snapshot schema %s is newer than %s, loading best effort",
                version,
                const.SCHEMA_VERSION_CURRENT,
            )
        if version <= const.SCHEMA_VERSION_LEGACY_FLAT:
            self._raw = self._migrate_legacy_flat(self._raw)
            self.migrations_applied.append(const.MIGRATION_LEGACY_FLAT_TO_V2)
            const.LOGGER.info(
                "INFO: Migrated legacy flat snapshot to schema version %s",
                const.SCHEMA_VERSION_CURRENT,
            )

        snapshot: dict[str, Any] = {const.DATA_META: self._finalize_meta()}
        for section in const.SNAPSHOT_SECTIONS:
            snapshot[section] = self._validate_section(section)
        return snapshot  # type: ignore[return-value]

    # --------------------------------------------------------------------------------------------
    # Version transforms
    # --------------------------------------------------------------------------------------------

    def _migrate_legacy_flat(self, raw: dict[str, Any]) -> dict[str, Any]:
        """v1 → v2: move flat player keys into sections.

        Legacy buffs were stored as bare names without start times, so their
        remaining duration is unknown; they are dropped.
        """
        migrated: dict[str, Any] = db.build_default_snapshot()  # type: ignore[assignment]

        total_xp = raw.get(const.LEGACY_KEY_TOTAL_XP, 0)
        migrated[const.DATA_PROGRESSION] = {
            const.DATA_PROGRESSION_TOTAL_XP: total_xp,
            const.DATA_PROGRESSION_LEVEL: raw.get(
                const.LEGACY_KEY_LEVEL, const.MIN_LEVEL
            ),
            const.DATA_PROGRESSION_PENDING_LEVEL_UP: None,
        }

        last_reset = dt_parse(raw.get(const.LEGACY_KEY_LAST_RESET), self._tz)
        if last_reset is not None:
            migrated[const.DATA_DAILY] = {
                const.DATA_DAILY_LAST_RESET_DAY: as_local(
                    last_reset, self._tz
                ).date().isoformat(),
                const.DATA_DAILY_FLAGS: {
                    flag: True
                    for legacy_key, flag in _LEGACY_FLAG_KEYS.items()
                    if raw.get(legacy_key) is True
                },
            }

        legacy_buffs = raw.get(const.LEGACY_KEY_ACTIVE_BUFFS) or []
        if legacy_buffs:
            const.LOGGER.info(
                "INFO: Dropped %s legacy buffs without start times", len(legacy_buffs)
            )
        if raw.get(const.LEGACY_KEY_EQUIPPED_BADGE):
            const.LOGGER.debug("Legacy equipped badge not carried over")
        return migrated

    # --------------------------------------------------------------------------------------------
    # Section recovery
    # --------------------------------------------------------------------------------------------

    def _validate_section(self, section: str) -> Any:
        """Validate one section, falling back to its default on failure."""
        if section not in self._raw:
            return db.build_default_section(section)
        try:
            return SECTION_SCHEMAS[section](self._raw[section])
        except vol.Invalid as err:
            const.LOGGER.warning(
                "WARNING: Snapshot section '%s' unreadable (%s), using defaults",
                section,
                err,
            )
            self.recovered_sections.append(section)
            return db.build_default_section(section)

    def _finalize_meta(self) -> dict[str, Any]:
        meta = self._raw.get(const.DATA_META)
        meta = meta if isinstance(meta, Mapping) else {}
        applied = meta.get(const.DATA_META_MIGRATIONS_APPLIED)
        applied = list(applied) if isinstance(applied, list) else []
        last_saved = meta.get(const.DATA_META_LAST_SAVED_AT)
        return {
            const.DATA_META_SCHEMA_VERSION: const.SCHEMA_VERSION_CURRENT,
            const.DATA_META_LAST_SAVED_AT: (
                last_saved if isinstance(last_saved, str) else None
            ),
            const.DATA_META_MIGRATIONS_APPLIED: applied + self.migrations_applied,
        }


def migrate_snapshot(data: Any, tz: ZoneInfo | None = None) -> Snapshot:
    """Migrate and validate raw persisted data in one call.

    Raises:
        SnapshotError: `data` is not a mapping.
    """
    return SnapshotMigrator(data, tz).run()
