"""Tests for ReminderManager - settings and last-fired bookkeeping."""

from __future__ import annotations

import pytest

from questchat import QuestChatCoordinator, const
from questchat.managers import ReminderManager
from tests.helpers import MONDAY, TEST_OPTIONS, TUESDAY, make_catalog, on

_HYDRATION = const.REMINDER_TYPE_HYDRATION
_POSTURE = const.REMINDER_TYPE_POSTURE

_THIRSTY = {"water_intake_ounces": 0, "water_goal_ounces": 64}


@pytest.fixture
def reminders(bare_coordinator: QuestChatCoordinator) -> ReminderManager:
    return bare_coordinator.reminder_manager


class TestSettings:
    """Defaults, validated updates, and persistence through snapshots."""

    def test_defaults(self, reminders: ReminderManager) -> None:
        hydration = reminders.settings(_HYDRATION)
        assert hydration[const.DATA_REMINDER_CADENCE_MINUTES] == 60
        assert hydration[const.DATA_REMINDER_ACTIVE_START_HOUR] == 9
        assert hydration[const.DATA_REMINDER_ACTIVE_END_HOUR] == 22
        assert not hydration[const.DATA_REMINDER_ONLY_DURING_SESSION]
        assert reminders.settings(_POSTURE)[const.DATA_REMINDER_ONLY_DURING_SESSION]
        assert reminders.last_fired_at(_HYDRATION) is None

    def test_update_settings_merges(self, reminders: ReminderManager) -> None:
        assert reminders.update_settings(
            _HYDRATION, {const.DATA_REMINDER_CADENCE_MINUTES: 30}
        )
        settings = reminders.settings(_HYDRATION)
        assert settings[const.DATA_REMINDER_CADENCE_MINUTES] == 30
        assert settings[const.DATA_REMINDER_ACTIVE_START_HOUR] == 9

    @pytest.mark.parametrize(
        "changes",
        [
            {const.DATA_REMINDER_CADENCE_MINUTES: 0},
            {const.DATA_REMINDER_ACTIVE_START_HOUR: 24},
            {const.DATA_REMINDER_ENABLED: "sometimes"},
        ],
    )
    def test_invalid_update_changes_nothing(
        self, reminders: ReminderManager, changes: dict[str, object]
    ) -> None:
        before = dict(reminders.settings(_HYDRATION))
        assert not reminders.update_settings(_HYDRATION, changes)
        assert reminders.settings(_HYDRATION) == before

    def test_partial_stored_settings_are_completed(self) -> None:
        snapshot = QuestChatCoordinator(TEST_OPTIONS, catalog=make_catalog()).to_snapshot()
        snapshot[const.DATA_REMINDERS] = {
            const.DATA_REMINDERS_SETTINGS: {
                _POSTURE: {const.DATA_REMINDER_ENABLED: False}
            },
        }
        manager = QuestChatCoordinator.from_snapshot(
            snapshot, TEST_OPTIONS, catalog=make_catalog()
        ).reminder_manager
        posture = manager.settings(_POSTURE)
        assert posture[const.DATA_REMINDER_ENABLED] is False
        assert posture[const.DATA_REMINDER_CADENCE_MINUTES] == 60
        assert manager.settings(_HYDRATION)[const.DATA_REMINDER_ENABLED] is True

    def test_corrupted_stored_settings_fall_back_to_defaults(self) -> None:
        snapshot = QuestChatCoordinator(TEST_OPTIONS, catalog=make_catalog()).to_snapshot()
        snapshot[const.DATA_REMINDERS] = {
            const.DATA_REMINDERS_SETTINGS: {
                _HYDRATION: {
                    const.DATA_REMINDER_CADENCE_MINUTES: "hourly",
                    const.DATA_REMINDER_ACTIVE_START_HOUR: "nine",
                },
                _POSTURE: {const.DATA_REMINDER_CADENCE_MINUTES: 45},
            },
        }
        coordinator = QuestChatCoordinator.from_snapshot(
            snapshot, TEST_OPTIONS, catalog=make_catalog()
        )
        manager = coordinator.reminder_manager
        assert manager.settings(_HYDRATION) == const.DEFAULT_REMINDER_SETTINGS[_HYDRATION]
        assert manager.settings(_POSTURE)[const.DATA_REMINDER_CADENCE_MINUTES] == 45

        # Monday 10:00 local is inside the default window, so it is eligible now.
        now = on(MONDAY, 10)
        assert coordinator.next_reminder_times(now)[_HYDRATION] == now


class TestFiring:
    """maybe_fire records the fire so the cadence applies next time."""

    def test_cadence_applies_after_fire(self, reminders: ReminderManager) -> None:
        assert reminders.maybe_fire(_HYDRATION, on(MONDAY, 10), _THIRSTY)
        assert reminders.last_fired_at(_HYDRATION) is not None
        assert not reminders.maybe_fire(_HYDRATION, on(MONDAY, 10, 59), _THIRSTY)
        assert reminders.maybe_fire(_HYDRATION, on(MONDAY, 11), _THIRSTY)

    def test_should_fire_records_nothing(self, reminders: ReminderManager) -> None:
        assert reminders.should_fire(_HYDRATION, on(MONDAY, 10), _THIRSTY)
        assert reminders.last_fired_at(_HYDRATION) is None

    def test_next_eligible_after_window(self, reminders: ReminderManager) -> None:
        reminders.record_fired(_HYDRATION, on(MONDAY, 21, 30))
        assert reminders.next_eligible_time(_HYDRATION, on(MONDAY, 21, 45)) == on(
            TUESDAY, 9
        )

    def test_disabled_has_no_next_time(self, reminders: ReminderManager) -> None:
        reminders.update_settings(_POSTURE, {const.DATA_REMINDER_ENABLED: False})
        assert reminders.next_eligible_time(_POSTURE, on(MONDAY, 10)) is None

    def test_reset_runtime_keeps_settings(self, reminders: ReminderManager) -> None:
        reminders.update_settings(_HYDRATION, {const.DATA_REMINDER_CADENCE_MINUTES: 45})
        reminders.record_fired(_HYDRATION, on(MONDAY, 10))
        reminders.reset_runtime()
        assert reminders.last_fired_at(_HYDRATION) is None
        assert reminders.settings(_HYDRATION)[const.DATA_REMINDER_CADENCE_MINUTES] == 45

    def test_responded_counts_for_today(self, reminders: ReminderManager) -> None:
        assert reminders.responded(_POSTURE, on(MONDAY, 10)) == 1
        assert reminders.responded(_POSTURE, on(MONDAY, 11)) == 2
        assert reminders.responded(_POSTURE, on(TUESDAY, 11)) == 1
