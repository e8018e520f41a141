"""Shared builders for QuestChat tests.

Tests never read the wall clock: every call receives an explicit aware
datetime built with local_dt() in the test profile timezone.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo

from questchat import const
from questchat.catalog import Catalog, load_catalog

# America/Chicago is UTC-6 in January, so local midnight != UTC midnight
TEST_TIMEZONE = "America/Chicago"
TZ = ZoneInfo(TEST_TIMEZONE)

TEST_OPTIONS: dict[str, Any] = {const.CONF_TIMEZONE: TEST_TIMEZONE}

# 2026-01-19 is a Monday
MONDAY = (2026, 1, 19)
TUESDAY = (2026, 1, 20)
WEDNESDAY = (2026, 1, 21)


def local_dt(
    year: int, month: int, day: int, hour: int = 10, minute: int = 0
) -> datetime:
    """Create an aware datetime in the test profile timezone."""
    return datetime(year, month, day, hour, minute, tzinfo=TZ)


def on(day: tuple[int, int, int], hour: int = 10, minute: int = 0) -> datetime:
    """Shorthand: local_dt(*MONDAY, 8) == on(MONDAY, 8)."""
    return local_dt(*day, hour, minute)


def make_catalog(
    quest_ids: tuple[str, ...] = (),
    achievements: list[dict[str, Any]] | None = None,
) -> Catalog:
    """Build a catalog holding only the listed bundled quests.

    Achievements default to none so XP arithmetic in a test stays exact.
    Talents are always the bundled tree.
    """
    bundled = load_catalog()
    return Catalog(
        quests={quest_id: bundled.quests[quest_id] for quest_id in quest_ids},
        achievements={a["id"]: a for a in achievements or []},
        talents=bundled.talents,
    )


def make_achievement(
    achievement_id: str,
    condition_type: str,
    threshold: int,
    *,
    metric: str | None = None,
    metrics: list[str] | None = None,
    xp_reward: int = 100,
    is_secret: bool = False,
) -> dict[str, Any]:
    """Build a validated-shape achievement definition for the current season."""
    definition: dict[str, Any] = {
        "id": achievement_id,
        "title": achievement_id.replace("_", " ").title(),
        "subtitle": "",
        "condition_type": condition_type,
        "threshold": threshold,
        "xp_reward": xp_reward,
        "season_id": const.CURRENT_SEASON_ID,
        "reward_title": f"Title {achievement_id}",
        "is_secret": is_secret,
    }
    if metric is not None:
        definition["metric"] = metric
    if metrics is not None:
        definition["metrics"] = metrics
    return definition


def grants_by_source(result: dict[str, Any], source: str) -> list[dict[str, Any]]:
    """Return the grant records of one source from an EventResult."""
    return [g for g in result[const.RESULT_GRANTS] if g["source"] == source]
