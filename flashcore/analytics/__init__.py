"""
Analytics package exports.
"""

from flashcore.analytics.service import build_user_stats, get_difficult_words
from flashcore.analytics.types import (
    ActivityStats,
    DifficultWord,
    GamificationStats,
    ProgressStats,
    RecentSession,
    UserStats,
)

__all__ = [
    "build_user_stats",
    "get_difficult_words",
    "ActivityStats",
    "DifficultWord",
    "GamificationStats",
    "ProgressStats",
    "RecentSession",
    "UserStats",
]
