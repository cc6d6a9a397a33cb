"""
Gamification - XP, levels, streaks, achievements and study sessions.
"""

from flashcore.gamification.achievements import (
    DEFAULT_CATALOG,
    AchievementCatalog,
    AchievementSnapshot,
    AchievementStatus,
    AchievementUnlock,
    achievement_status,
    check_new_achievements,
)
from flashcore.gamification.constants import StudyMode
from flashcore.gamification.progression import (
    LevelProgress,
    ProgressionState,
    XpAward,
    add_xp,
    level_for_xp,
    level_progress,
    update_streak,
)
from flashcore.gamification.sessions import (
    SessionTotals,
    Staleness,
    StudySession,
    is_perfect_session,
)
from flashcore.gamification.xp import difficulty_multiplier, xp_for_answer

__all__ = [
    "DEFAULT_CATALOG",
    "AchievementCatalog",
    "AchievementSnapshot",
    "AchievementStatus",
    "AchievementUnlock",
    "achievement_status",
    "check_new_achievements",
    "StudyMode",
    "LevelProgress",
    "ProgressionState",
    "XpAward",
    "add_xp",
    "level_for_xp",
    "level_progress",
    "update_streak",
    "SessionTotals",
    "Staleness",
    "StudySession",
    "is_perfect_session",
    "difficulty_multiplier",
    "xp_for_answer",
]
