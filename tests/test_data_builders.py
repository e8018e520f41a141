"""Tests for snapshot section and record builders."""

from __future__ import annotations

from datetime import UTC, datetime

from questchat import const, data_builders as db
from tests.helpers import TZ


class TestDefaults:
    def test_default_snapshot_has_every_section(self) -> None:
        snapshot = db.build_default_snapshot()
        assert set(snapshot) == {const.DATA_META, *const.SNAPSHOT_SECTIONS}
        assert snapshot[const.DATA_META][const.DATA_META_SCHEMA_VERSION] == 2
        assert snapshot[const.DATA_PROGRESSION][const.DATA_PROGRESSION_LEVEL] == 1
        assert snapshot[const.DATA_SEASON][const.DATA_SEASON_ID] == "S1"

    def test_builders_return_fresh_objects(self) -> None:
        first = db.build_default_snapshot()
        first[const.DATA_BUFFS].append({"name": "Rested"})
        assert db.build_default_snapshot()[const.DATA_BUFFS] == []

    def test_reminder_overrides_ignore_unknown_keys(self) -> None:
        settings = db.build_reminder_settings(
            const.REMINDER_TYPE_POSTURE,
            {const.DATA_REMINDER_CADENCE_MINUTES: 15, "volume": 11},
        )
        assert settings[const.DATA_REMINDER_CADENCE_MINUTES] == 15
        assert settings[const.DATA_REMINDER_ACTIVE_END_HOUR] == 21
        assert "volume" not in settings

    def test_clone_is_deep(self) -> None:
        snapshot = db.build_default_snapshot()
        clone = db.clone_snapshot(snapshot)
        clone[const.DATA_TALENTS][const.DATA_TALENTS_RANKS]["focusSpark"] = 1
        assert snapshot[const.DATA_TALENTS][const.DATA_TALENTS_RANKS] == {}


class TestRecords:
    def test_timer_record_local_hour(self) -> None:
        record = db.build_timer_record(
            "work", 25, datetime(2026, 1, 19, 22, tzinfo=UTC), TZ
        )
        assert record == {
            const.DATA_TIMER_CATEGORY: "work",
            const.DATA_TIMER_DURATION_MINUTES: 25,
            const.DATA_TIMER_ENDED_AT: "2026-01-19T22:00:00+00:00",
            const.DATA_TIMER_ENDED_HOUR: 16,
        }

    def test_event_result_starts_applied_and_empty(self) -> None:
        result = db.build_event_result(const.EVENT_SCREEN_VIEWED)
        assert result[const.RESULT_APPLIED] is True
        assert result[const.RESULT_GRANTS] == []
        assert result[const.RESULT_LEVEL_UP] is None
