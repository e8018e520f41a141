"""Tests for ReminderEngine - fire decisions and next eligible time.

Test categories:
- Active window (normal, wrapping, always-open)
- Cadence
- Domain gate (hydration goal and finished-timer reason)
- should_fire combinations
- next_eligible_time
"""

from __future__ import annotations

from typing import Any

import pytest

from questchat import const
from questchat.engines.reminder_engine import ReminderEngine
from tests.helpers import MONDAY, TUESDAY, TZ, on


def _settings(**overrides: Any) -> dict[str, Any]:
    """Hydration defaults with overrides by short name."""
    settings = dict(const.DEFAULT_REMINDER_SETTINGS[const.REMINDER_TYPE_HYDRATION])
    keys = {
        "enabled": const.DATA_REMINDER_ENABLED,
        "cadence": const.DATA_REMINDER_CADENCE_MINUTES,
        "start": const.DATA_REMINDER_ACTIVE_START_HOUR,
        "end": const.DATA_REMINDER_ACTIVE_END_HOUR,
        "session_only": const.DATA_REMINDER_ONLY_DURING_SESSION,
    }
    for name, value in overrides.items():
        settings[keys[name]] = value
    return settings


HYDRATION_CONTEXT: dict[str, Any] = {
    "reason": const.REMINDER_REASON_PERIODIC,
    "water_intake_ounces": 10,
    "water_goal_ounces": 64,
    "qualifying_session_active": False,
}


# ============================================================================
# Window & Cadence
# ============================================================================


class TestWindow:
    """Active windows are [start, end) in local hours."""

    @pytest.mark.parametrize(
        ("hour", "expected"), [(8, False), (9, True), (21, True), (22, False)]
    )
    def test_normal_window(self, hour: int, expected: bool) -> None:
        assert ReminderEngine.in_window(_settings(), hour) is expected

    @pytest.mark.parametrize(
        ("hour", "expected"), [(21, False), (22, True), (2, True), (6, False)]
    )
    def test_wrapping_window(self, hour: int, expected: bool) -> None:
        assert ReminderEngine.in_window(_settings(start=22, end=6), hour) is expected

    def test_equal_bounds_are_always_open(self) -> None:
        settings = _settings(start=7, end=7)
        assert all(ReminderEngine.in_window(settings, h) for h in range(24))


class TestCadence:
    """Cadence is strict: exactly cadence_minutes must elapse."""

    def test_never_fired(self) -> None:
        assert ReminderEngine.cadence_elapsed(_settings(), None, on(MONDAY, 10))

    def test_boundary(self) -> None:
        last = on(MONDAY, 10)
        assert not ReminderEngine.cadence_elapsed(_settings(), last, on(MONDAY, 10, 59))
        assert ReminderEngine.cadence_elapsed(_settings(), last, on(MONDAY, 11))

    def test_accepts_iso_strings(self) -> None:
        last = "2026-01-19T16:00:00+00:00"  # 10:00 local
        assert not ReminderEngine.cadence_elapsed(_settings(), last, on(MONDAY, 10, 30))


# ============================================================================
# Domain Gate
# ============================================================================


class TestDomainGate:
    """Hydration-specific conditions."""

    def test_posture_has_no_domain_gate(self) -> None:
        assert ReminderEngine.domain_gate(const.REMINDER_TYPE_POSTURE, {})

    def test_goal_reached_blocks(self) -> None:
        context = {**HYDRATION_CONTEXT, "water_intake_ounces": 64}
        assert not ReminderEngine.domain_gate(const.REMINDER_TYPE_HYDRATION, context)

    def test_zero_goal_blocks(self) -> None:
        context = {**HYDRATION_CONTEXT, "water_goal_ounces": 0}
        assert not ReminderEngine.domain_gate(const.REMINDER_TYPE_HYDRATION, context)

    @pytest.mark.parametrize(
        ("category", "minutes", "expected"),
        [
            ("work", 25, True),
            ("deep_focus", 20, True),
            ("work", 19, False),
            ("chores", 45, False),
        ],
    )
    def test_timer_completed_needs_long_focus_session(
        self, category: str, minutes: int, expected: bool
    ) -> None:
        context = {
            **HYDRATION_CONTEXT,
            "reason": const.REMINDER_REASON_TIMER_COMPLETED,
            "session_category": category,
            "session_duration_minutes": minutes,
        }
        assert (
            ReminderEngine.domain_gate(const.REMINDER_TYPE_HYDRATION, context)
            is expected
        )


# ============================================================================
# should_fire
# ============================================================================


class TestShouldFire:
    """All conditions must hold."""

    def _fire(self, settings: dict[str, Any], last: Any, now: Any, **ctx: Any) -> bool:
        return ReminderEngine.should_fire(
            settings,
            last,
            now,
            {**HYDRATION_CONTEXT, **ctx},
            reminder_type=const.REMINDER_TYPE_HYDRATION,
            tz=TZ,
        )

    def test_fires_inside_window(self) -> None:
        assert self._fire(_settings(), None, on(MONDAY, 10))

    def test_disabled(self) -> None:
        assert not self._fire(_settings(enabled=False), None, on(MONDAY, 10))

    def test_outside_window_uses_local_hour(self) -> None:
        """08:30 local is 14:30 UTC; only the local hour matters."""
        assert not self._fire(_settings(), None, on(MONDAY, 8, 30))

    def test_cadence_not_elapsed(self) -> None:
        assert not self._fire(_settings(), on(MONDAY, 10), on(MONDAY, 10, 30))

    def test_session_only_requires_qualifying_session(self) -> None:
        settings = _settings(session_only=True)
        assert not self._fire(settings, None, on(MONDAY, 10))
        assert self._fire(settings, None, on(MONDAY, 10), qualifying_session_active=True)


# ============================================================================
# next_eligible_time
# ============================================================================


class TestNextEligibleTime:
    """Earliest time satisfying window and cadence."""

    def test_after_window_moves_to_next_day(self) -> None:
        """Last fire 08:59 the day before, now 23:00 → 09:00 next day."""
        last = on(MONDAY, 8, 59)
        result = ReminderEngine.next_eligible_time(
            _settings(), last, on(MONDAY, 23), tz=TZ
        )
        assert result == on(TUESDAY, 9)

    def test_cadence_inside_window(self) -> None:
        """A same-day 08:59 fire makes 09:59 the next slot."""
        result = ReminderEngine.next_eligible_time(
            _settings(), on(MONDAY, 8, 59), on(MONDAY, 9), tz=TZ
        )
        assert result == on(MONDAY, 9, 59)

    def test_before_window_waits_for_start_same_day(self) -> None:
        result = ReminderEngine.next_eligible_time(
            _settings(), None, on(MONDAY, 6), tz=TZ
        )
        assert result == on(MONDAY, 9)

    def test_now_when_eligible(self) -> None:
        now = on(MONDAY, 12, 30)
        result = ReminderEngine.next_eligible_time(_settings(), None, now, tz=TZ)
        assert result == now

    def test_cadence_pushes_past_window_end(self) -> None:
        result = ReminderEngine.next_eligible_time(
            _settings(), on(MONDAY, 21, 30), on(MONDAY, 21, 45), tz=TZ
        )
        assert result == on(TUESDAY, 9)

    def test_disabled_has_no_next_time(self) -> None:
        result = ReminderEngine.next_eligible_time(
            _settings(enabled=False), None, on(MONDAY, 10), tz=TZ
        )
        assert result is None


# ============================================================================
# Hourly hydration example (cadence 60, window [9, 22), last fire 08:59)
# ============================================================================


class TestHourlyHydrationExample:
    """Cadence is strict, so the result at 09:05 depends on which 08:59."""

    def _fire(self, last: Any, now: Any) -> bool:
        return ReminderEngine.should_fire(
            _settings(),
            last,
            now,
            HYDRATION_CONTEXT,
            reminder_type=const.REMINDER_TYPE_HYDRATION,
            tz=TZ,
        )

    def test_previous_morning_fire_allows_0905(self) -> None:
        assert self._fire(on((2026, 1, 18), 8, 59), on(MONDAY, 9, 5))

    def test_same_morning_fire_blocks_0905(self) -> None:
        assert not self._fire(on(MONDAY, 8, 59), on(MONDAY, 9, 5))
        assert self._fire(on(MONDAY, 8, 59), on(MONDAY, 9, 59))

    def test_closed_window_at_2300(self) -> None:
        assert not self._fire(on((2026, 1, 18), 8, 59), on(MONDAY, 23))
