"""Engine modules for QuestChat.

Contains pure, stateless computation engines:
- achievement_engine: Season achievement progress
- buff_engine: Time-limited buff arithmetic
- progression_engine: XP multiplier, level and level-up tier rules
- quest_engine: Quest predicates and daily board selection
- reminder_engine: Reminder window/cadence decisions
- statistics_engine: Per-day counters, streaks and day metrics
- talent_engine: Talent DAG allocation rules
"""

from .achievement_engine import AchievementEngine
from .buff_engine import BuffEngine
from .progression_engine import ProgressionEngine
from .quest_engine import QuestEngine
from .reminder_engine import ReminderEngine
from .statistics_engine import StatisticsEngine
from .talent_engine import TalentEngine

__all__ = [
    "AchievementEngine",
    "BuffEngine",
    "ProgressionEngine",
    "QuestEngine",
    "ReminderEngine",
    "StatisticsEngine",
    "TalentEngine",
]
