# File: const.py
"""Constants for the QuestChat progression engine.

This file centralizes snapshot keys, defaults, rule constants, event names and
catalog identifiers for consistency across engines, managers and the
coordinator. Every persisted key is a DATA_* constant so that snapshot layout
changes happen in exactly one place.
"""

from enum import StrEnum
import logging
from typing import Final

# ------------------------------------------------------------------------------------------------
# General / Engine Information
# ------------------------------------------------------------------------------------------------
# Logger
LOGGER = logging.getLogger(__package__)

# Snapshot schema versioning
# v1 = legacy flat key layout written by the first mobile client
# v2 = sectioned snapshot (current)
SCHEMA_VERSION_LEGACY_FLAT = 1
SCHEMA_VERSION_CURRENT = 2

# Float precision for rounding fractions shown to the presentation layer
DATA_FLOAT_PRECISION = 2

# ------------------------------------------------------------------------------------------------
# Configuration Keys (coordinator options)
# ------------------------------------------------------------------------------------------------
CONF_TIMEZONE = "timezone"
CONF_WEEK_START = "week_start"
CONF_HYDRATION_GOAL_OUNCES = "hydration_goal_ounces"
CONF_COUNTER_RETENTION_DAYS = "counter_retention_days"
CONF_BOARD_SEED = "board_seed"

DEFAULT_TIMEZONE = "UTC"
# Python weekday numbering: Monday = 0 ... Sunday = 6
DEFAULT_WEEK_START = 0
DEFAULT_HYDRATION_GOAL_OUNCES = 64
# Must cover a full week window plus the previous day for streak checks
DEFAULT_COUNTER_RETENTION_DAYS = 14
MIN_COUNTER_RETENTION_DAYS = 8
DEFAULT_BOARD_SEED = "questchat"

# ------------------------------------------------------------------------------------------------
# Snapshot Sections
# ------------------------------------------------------------------------------------------------
DATA_META = "meta"
DATA_META_SCHEMA_VERSION = "schema_version"
DATA_META_LAST_SAVED_AT = "last_saved_at"
DATA_META_MIGRATIONS_APPLIED = "migrations_applied"

# Legacy v1 flat keys (mobile client layout)
LEGACY_KEY_TOTAL_XP = "player_total_xp"
LEGACY_KEY_LEVEL = "player_level"
LEGACY_KEY_WATER_GOAL_GRANTED = "water_goal_xp_granted_today"
LEGACY_KEY_SLEEP_GRANTED = "sleep_xp_granted_today"
LEGACY_KEY_GUT_GRANTED = "gut_xp_granted_today"
LEGACY_KEY_TRIFECTA_GRANTED = "trifecta_xp_granted_today"
LEGACY_KEY_LAST_RESET = "last_buff_reset_date"
LEGACY_KEY_ACTIVE_BUFFS = "player_active_buffs"
LEGACY_KEY_EQUIPPED_BADGE = "equippedBadgeID"

MIGRATION_LEGACY_FLAT_TO_V2 = "legacy_flat_to_v2"

DATA_PROGRESSION = "progression"
DATA_BUFFS = "buffs"
DATA_DAILY = "daily"
DATA_COUNTERS = "counters"
DATA_QUESTS = "quests"
DATA_ACHIEVEMENTS = "achievements"
DATA_SEASON = "season"
DATA_TITLES = "titles"
DATA_TALENTS = "talents"
DATA_REMINDERS = "reminders"

SNAPSHOT_SECTIONS: Final = (
    DATA_PROGRESSION,
    DATA_BUFFS,
    DATA_DAILY,
    DATA_COUNTERS,
    DATA_QUESTS,
    DATA_ACHIEVEMENTS,
    DATA_SEASON,
    DATA_TITLES,
    DATA_TALENTS,
    DATA_REMINDERS,
)

# Progression
DATA_PROGRESSION_TOTAL_XP = "total_xp"
DATA_PROGRESSION_LEVEL = "level"
DATA_PROGRESSION_PENDING_LEVEL_UP = "pending_level_up"
DATA_LEVEL_UP_LEVEL = "level"
DATA_LEVEL_UP_TIER = "tier"

# Buffs
DATA_BUFF_ID = "id"
DATA_BUFF_NAME = "name"
DATA_BUFF_MAGNITUDE = "magnitude"
DATA_BUFF_DURATION_SECONDS = "duration_seconds"
DATA_BUFF_STARTED_AT = "started_at"

# Daily state
DATA_DAILY_LAST_RESET_DAY = "last_reset_day"
DATA_DAILY_FLAGS = "flags"

# Counters
DATA_COUNTERS_DAYS = "days"
DATA_DAY_TIMERS = "timers"
DATA_DAY_FOCUS_MINUTES = "focus_minutes"
DATA_DAY_HYDRATION_OUNCES = "hydration_ounces"
DATA_DAY_HYDRATION_GOAL_OUNCES = "hydration_goal_ounces"
DATA_DAY_CHECKINS = "checkins"
DATA_DAY_SCREENS = "screens"
DATA_DAY_REMINDERS_RESPONDED = "reminders_responded"
DATA_DAY_QUEST_COMPLETIONS = "quest_completions"

DATA_TIMER_CATEGORY = "category"
DATA_TIMER_DURATION_MINUTES = "duration_minutes"
DATA_TIMER_ENDED_AT = "ended_at"
DATA_TIMER_ENDED_HOUR = "ended_hour"

DATA_QUEST_COMPLETION_ID = "quest_id"
DATA_QUEST_COMPLETION_AT = "completed_at"
DATA_QUEST_COMPLETION_SCOPE = "scope"
DATA_QUEST_COMPLETION_DIFFICULTY = "difficulty"

# Quests
DATA_QUESTS_DAILY = "daily"
DATA_QUESTS_WEEKLY = "weekly"
DATA_QUESTS_DAILY_WINDOW = "daily_window"
DATA_QUESTS_WEEKLY_WINDOW = "weekly_window"
DATA_QUESTS_DISCARDED = "discarded"

DATA_QUEST_DEFINITION_ID = "definition_id"
DATA_QUEST_SCOPE = "scope"
DATA_QUEST_WINDOW_START = "window_start"
DATA_QUEST_STATUS = "status"
DATA_QUEST_PROGRESS = "progress"
DATA_QUEST_TARGET = "target"
DATA_QUEST_COMPLETED_AT = "completed_at"
DATA_QUEST_IS_CORE = "is_core"

# Achievements
DATA_ACHIEVEMENT_CURRENT_VALUE = "current_value"
DATA_ACHIEVEMENT_UNLOCKED_AT = "unlocked_at"
DATA_ACHIEVEMENT_LAST_UPDATED_AT = "last_updated_at"

# Season counters
DATA_SEASON_ID = "season_id"
DATA_SEASON_COUNTS = "counts"
DATA_SEASON_STREAKS = "streaks"
DATA_STREAK_CURRENT = "current"
DATA_STREAK_LONGEST = "longest"
DATA_STREAK_LAST_DATE = "last_date"

# Titles
DATA_TITLES_UNLOCKED = "unlocked"
DATA_TITLES_EQUIPPED = "equipped"

# Talents
DATA_TALENTS_RANKS = "ranks"

# Reminders
DATA_REMINDERS_SETTINGS = "settings"
DATA_REMINDERS_STATE = "state"
DATA_REMINDER_ENABLED = "enabled"
DATA_REMINDER_CADENCE_MINUTES = "cadence_minutes"
DATA_REMINDER_ACTIVE_START_HOUR = "active_start_hour"
DATA_REMINDER_ACTIVE_END_HOUR = "active_end_hour"
DATA_REMINDER_ONLY_DURING_SESSION = "only_during_qualifying_session"
DATA_REMINDER_LAST_FIRED_AT = "last_fired_at"

# ------------------------------------------------------------------------------------------------
# Progression Rules
# ------------------------------------------------------------------------------------------------
XP_PER_LEVEL = 1000
MAX_LEVEL = 100
MIN_LEVEL = 1
BUFF_MULTIPLIER_STEP = 0.2

LEVEL_UP_TIER_NORMAL = "normal"
LEVEL_UP_TIER_MILESTONE = "milestone"
LEVEL_UP_TIER_JACKPOT = "jackpot"
LEVEL_MILESTONE_INTERVAL = 5
LEVEL_JACKPOT_INTERVAL = 10

# XP grant amounts
XP_PER_SESSION_MINUTE = 10
XP_HEALTH_GRANT = 250
XP_TRIFECTA_BONUS = 500
XP_STREAK_BONUS = 100
XP_QUEST_CHEST_BONUS = 50

# Grant sources (EventResult grant records)
GRANT_SOURCE_SESSION = "session"
GRANT_SOURCE_HYDRATION_GOAL = "hydration_goal"
GRANT_SOURCE_SLEEP = "sleep"
GRANT_SOURCE_GUT = "gut"
GRANT_SOURCE_TRIFECTA = "trifecta"
GRANT_SOURCE_STREAK = "streak"
GRANT_SOURCE_QUEST = "quest"
GRANT_SOURCE_QUEST_CHEST = "quest_chest"
GRANT_SOURCE_ACHIEVEMENT = "achievement"

# ------------------------------------------------------------------------------------------------
# Buffs
# ------------------------------------------------------------------------------------------------


class BuffType(StrEnum):
    """Closed set of buff identities; the value is the persisted tag."""

    HYDRATED = "Hydrated"
    RESTED = "Rested"
    GUT_HAPPY = "Gut Happy"
    RAY_OF_SUNSHINE = "Ray of Sunshine"


BUFF_DEFAULT_DURATIONS: Final[dict[BuffType, int]] = {
    BuffType.HYDRATED: 6 * 3600,
    BuffType.RESTED: 8 * 3600,
    BuffType.GUT_HAPPY: 6 * 3600,
    BuffType.RAY_OF_SUNSHINE: 4 * 3600,
}

# ------------------------------------------------------------------------------------------------
# Daily Flags
# ------------------------------------------------------------------------------------------------
FLAG_WATER_GOAL_GRANTED = "water-goal-granted"
FLAG_SLEEP_GRANTED = "sleep-granted"
FLAG_GUT_GRANTED = "gut-granted"
FLAG_TRIFECTA_GRANTED = "trifecta-granted"
FLAG_STREAK_GRANTED = "streak-granted"
FLAG_QUEST_CHEST_GRANTED = "quest-chest-granted"
FLAG_REROLL_USED = "reroll-used"

TRIFECTA_REQUIRED_FLAGS: Final = (
    FLAG_WATER_GOAL_GRANTED,
    FLAG_SLEEP_GRANTED,
    FLAG_GUT_GRANTED,
)

# ------------------------------------------------------------------------------------------------
# Timer Categories & Ratings
# ------------------------------------------------------------------------------------------------
TIMER_CATEGORY_WORK = "work"
TIMER_CATEGORY_DEEP_FOCUS = "deep_focus"
TIMER_CATEGORY_CHORES = "chores"
TIMER_CATEGORY_SELF_CARE = "self_care"
TIMER_CATEGORY_QUICK_BREAK = "quick_break"
TIMER_CATEGORY_CREATE = "create"
TIMER_CATEGORY_MOVE = "move"
TIMER_CATEGORY_GAMING = "gaming"

TIMER_CATEGORIES: Final = (
    TIMER_CATEGORY_WORK,
    TIMER_CATEGORY_DEEP_FOCUS,
    TIMER_CATEGORY_CHORES,
    TIMER_CATEGORY_SELF_CARE,
    TIMER_CATEGORY_QUICK_BREAK,
    TIMER_CATEGORY_CREATE,
    TIMER_CATEGORY_MOVE,
    TIMER_CATEGORY_GAMING,
)

# Categories whose sessions count as focus-type (focus minutes, reminder gate)
FOCUS_TIMER_CATEGORIES: Final = frozenset(
    {TIMER_CATEGORY_WORK, TIMER_CATEGORY_DEEP_FOCUS}
)

# Realm groups used by the "Four Realms" composite achievement
REALM_WORK: Final = frozenset({TIMER_CATEGORY_WORK, TIMER_CATEGORY_DEEP_FOCUS})
REALM_HOME: Final = frozenset({TIMER_CATEGORY_CHORES})
REALM_HEALTH: Final = frozenset(
    {TIMER_CATEGORY_SELF_CARE, TIMER_CATEGORY_QUICK_BREAK, TIMER_CATEGORY_MOVE}
)
REALM_CHILL: Final = frozenset({TIMER_CATEGORY_GAMING, TIMER_CATEGORY_CREATE})

RATING_KIND_MOOD = "mood"
RATING_KIND_SLEEP = "sleep"
RATING_KIND_GUT = "gut"
RATING_KINDS: Final = (RATING_KIND_MOOD, RATING_KIND_SLEEP, RATING_KIND_GUT)
RATING_MIN = 1
RATING_MAX = 5
# Ratings at or above this value count as "above meh"
RATING_POSITIVE_THRESHOLD = 4

SCREEN_QUESTS = "quests"
SCREEN_STATS = "stats"
SCREEN_PLAYER_CARD = "player_card"
SCREEN_TALENTS = "talents"
SCREENS: Final = (SCREEN_QUESTS, SCREEN_STATS, SCREEN_PLAYER_CARD, SCREEN_TALENTS)

# ------------------------------------------------------------------------------------------------
# Quests
# ------------------------------------------------------------------------------------------------
QUEST_SCOPE_DAILY = "daily"
QUEST_SCOPE_WEEKLY = "weekly"

QUEST_STATUS_PENDING = "pending"
QUEST_STATUS_COMPLETED = "completed"

QUEST_CATEGORY_TIMER = "timer"
QUEST_CATEGORY_HEALTH_BAR = "health_bar"
QUEST_CATEGORY_META = "meta"
QUEST_CATEGORY_EASY_WIN = "easy_win"

QUEST_DIFFICULTY_EASY = "easy"
QUEST_DIFFICULTY_MEDIUM = "medium"
QUEST_DIFFICULTY_HARD = "hard"

QUEST_TIER_CORE = "core"
QUEST_TIER_HABIT = "habit"
QUEST_TIER_BONUS = "bonus"

# Predicate types (catalog "predicate.type")
PREDICATE_TIMER = "timer"
PREDICATE_TIMER_COUNT = "timer_count"
PREDICATE_TIMER_MINUTES = "timer_minutes"
PREDICATE_CHECKIN = "checkin"
PREDICATE_HYDRATION_OUNCES = "hydration_ounces"
PREDICATE_HYDRATION_GOAL_PERCENT = "hydration_goal_percent"
PREDICATE_SCREEN_VIEWED = "screen_viewed"
PREDICATE_REMINDER_RESPONDED = "reminder_responded"
PREDICATE_QUESTS_COMPLETED = "quests_completed"
PREDICATE_QUEST_CHAIN = "quest_chain"
PREDICATE_HARD_QUESTS_COMPLETED = "hard_quests_completed"
PREDICATE_DISTINCT_DAYS = "distinct_days"
PREDICATE_GOOD_DAYS = "good_days"
PREDICATE_WEEKEND_WARRIOR = "weekend_warrior"
PREDICATE_ALL_OF = "all_of"

# Daily board rules
DAILY_BOARD_SIZE = 5
DAILY_BOARD_MAX_TIMER_QUESTS = 2
DAILY_BOARD_REQUIRED_CATEGORIES: Final = (
    QUEST_CATEGORY_HEALTH_BAR,
    QUEST_CATEGORY_EASY_WIN,
)
DAILY_REQUIRED_QUEST_IDS: Final = ("daily-checkin",)
DAILY_PREFERRED_QUEST_IDS: Final = ("DAILY_HB_MORNING_CHECKIN",)
NON_REROLLABLE_QUEST_IDS: Final = frozenset(
    DAILY_REQUIRED_QUEST_IDS + DAILY_PREFERRED_QUEST_IDS
)

# ------------------------------------------------------------------------------------------------
# Achievements
# ------------------------------------------------------------------------------------------------
ACHIEVEMENT_TYPE_COUNT = "count"
ACHIEVEMENT_TYPE_STREAK = "streak"
ACHIEVEMENT_TYPE_COMPOSITE = "composite"

CURRENT_SEASON_ID = "S1"

# Season count metrics (incremented per qualifying event or once per day)
METRIC_HYDRATION_GOAL_DAYS = "hydration_goal_days"
METRIC_LONG_FOCUS_SESSIONS = "long_focus_sessions"
METRIC_CHORE_BLITZ_SESSIONS = "chore_blitz_sessions"
METRIC_BALANCED_DAYS = "balanced_days"

# Day metrics (true/false per calendar day; feed streak/composite achievements)
DAY_METRIC_FOCUS_60 = "focus_minutes_60"
DAY_METRIC_QUESTS_OPENED = "quests_opened"
DAY_METRIC_MOOD_POSITIVE = "mood_positive"
DAY_METRIC_REALM_WORK = "realm_work_30"
DAY_METRIC_REALM_HOME = "realm_home_30"
DAY_METRIC_REALM_HEALTH = "realm_health_30"
DAY_METRIC_REALM_CHILL = "realm_chill_30"
DAY_METRIC_HYDRATION_GOAL = "hydration_goal"
DAY_METRIC_BALANCED = "balanced"
DAY_METRIC_ACTIVITY = "activity"

LONG_FOCUS_SESSION_MINUTES = 40
CHORE_BLITZ_SESSION_MINUTES = 10
FOCUS_DAY_MINUTES = 60
REALM_SESSION_MINUTES = 30
BALANCED_DAY_HYDRATION_PERCENT = 50

# Day metrics whose first occurrence on a day also bumps a season count
DAY_METRIC_SEASON_COUNTS: Final = {
    DAY_METRIC_HYDRATION_GOAL: METRIC_HYDRATION_GOAL_DAYS,
    DAY_METRIC_BALANCED: METRIC_BALANCED_DAYS,
}

# Realm day metrics keyed by the timer categories that feed them
REALM_DAY_METRICS: Final = {
    DAY_METRIC_REALM_WORK: REALM_WORK,
    DAY_METRIC_REALM_HOME: REALM_HOME,
    DAY_METRIC_REALM_HEALTH: REALM_HEALTH,
    DAY_METRIC_REALM_CHILL: REALM_CHILL,
}

# Streak tracker key prefix for composite achievements
COMPOSITE_STREAK_PREFIX = "all:"

# ------------------------------------------------------------------------------------------------
# Talents
# ------------------------------------------------------------------------------------------------
TALENT_POINTS_PER_TIER = 5
TALENT_MIN_TIER = 1
TALENT_MAX_TIER = 5

# ------------------------------------------------------------------------------------------------
# Reminders
# ------------------------------------------------------------------------------------------------
REMINDER_TYPE_HYDRATION = "hydration"
REMINDER_TYPE_POSTURE = "posture"
REMINDER_TYPES: Final = (REMINDER_TYPE_HYDRATION, REMINDER_TYPE_POSTURE)

REMINDER_REASON_PERIODIC = "periodic"
REMINDER_REASON_TIMER_COMPLETED = "timer_completed"

HYDRATION_REMINDER_MIN_SESSION_MINUTES = 20

DEFAULT_REMINDER_SETTINGS: Final[dict[str, dict[str, object]]] = {
    REMINDER_TYPE_HYDRATION: {
        DATA_REMINDER_ENABLED: True,
        DATA_REMINDER_CADENCE_MINUTES: 60,
        DATA_REMINDER_ACTIVE_START_HOUR: 9,
        DATA_REMINDER_ACTIVE_END_HOUR: 22,
        DATA_REMINDER_ONLY_DURING_SESSION: False,
    },
    REMINDER_TYPE_POSTURE: {
        DATA_REMINDER_ENABLED: True,
        DATA_REMINDER_CADENCE_MINUTES: 60,
        DATA_REMINDER_ACTIVE_START_HOUR: 9,
        DATA_REMINDER_ACTIVE_END_HOUR: 21,
        DATA_REMINDER_ONLY_DURING_SESSION: True,
    },
}

# ------------------------------------------------------------------------------------------------
# Event Kinds (coordinator entry points)
# ------------------------------------------------------------------------------------------------
EVENT_TIMER_COMPLETED = "timer_completed"
EVENT_RATING_LOGGED = "rating_logged"
EVENT_HYDRATION_LOGGED = "hydration_logged"
EVENT_SCREEN_VIEWED = "screen_viewed"
EVENT_QUEST_REROLLED = "quest_rerolled"
EVENT_TALENT_POINT_SPENT = "talent_point_spent"
EVENT_TALENT_RESPEC = "talent_respec"
EVENT_REMINDER_SETTING_CHANGED = "reminder_setting_changed"
EVENT_REMINDER_RESPONDED = "reminder_responded"
EVENT_LEVEL_UP_ACKNOWLEDGED = "level_up_acknowledged"
EVENT_FULL_RESET = "full_reset"

# Payload fields
FIELD_CATEGORY = "category"
FIELD_DURATION_MINUTES = "duration_minutes"
FIELD_ENDED_AT = "ended_at"
FIELD_RATING_KIND = "kind"
FIELD_RATING_VALUE = "value"
FIELD_OUNCES = "ounces"
FIELD_GOAL_OUNCES = "goal_ounces"
FIELD_SCREEN = "screen"
FIELD_QUEST_ID = "quest_id"
FIELD_NODE_ID = "node_id"
FIELD_REMINDER_TYPE = "reminder_type"

# EventResult keys
RESULT_EVENT = "event"
RESULT_APPLIED = "applied"
RESULT_XP_GRANTED = "xp_granted"
RESULT_GRANTS = "grants"
RESULT_QUESTS_COMPLETED = "quests_completed"
RESULT_ACHIEVEMENTS_UNLOCKED = "achievements_unlocked"
RESULT_LEVEL_UP = "level_up"
RESULT_BUFFS_CHANGED = "buffs_changed"
RESULT_DAY_RESET = "day_reset"
RESULT_REASON = "reason"
RESULT_REPLACEMENT_ID = "replacement_id"

# Not-applied reasons
REASON_INVALID_PAYLOAD = "invalid_payload"
REASON_REROLL_USED = "reroll_used"
REASON_REROLL_UNAVAILABLE = "reroll_unavailable"
REASON_TALENT_LOCKED = "talent_locked"
REASON_NOTHING_PENDING = "nothing_pending"
REASON_UNKNOWN_EVENT = "unknown_event"

# ------------------------------------------------------------------------------------------------
# Catalog files
# ------------------------------------------------------------------------------------------------
CATALOG_PACKAGE = "questchat.data"
CATALOG_QUESTS_FILE = "quests.json"
CATALOG_ACHIEVEMENTS_FILE = "achievements.json"
CATALOG_TALENTS_FILE = "talents.json"
