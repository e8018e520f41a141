"""Manager modules for QuestChat.

Managers own one snapshot section each and orchestrate the pure engines.
They are stateful and are wired together by the coordinator.
"""

from .achievement_manager import AchievementManager
from .base_manager import BaseManager
from .buff_manager import BuffManager
from .daily_manager import DailyManager
from .progression_manager import ProgressionManager
from .quest_manager import QuestManager
from .reminder_manager import ReminderManager
from .statistics_manager import StatisticsManager
from .talent_manager import TalentManager

__all__ = [
    "AchievementManager",
    "BaseManager",
    "BuffManager",
    "DailyManager",
    "ProgressionManager",
    "QuestManager",
    "ReminderManager",
    "StatisticsManager",
    "TalentManager",
]
