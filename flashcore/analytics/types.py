"""
Types for user statistics.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from flashcore.gamification.achievements import AchievementStatus
from flashcore.gamification.progression import LevelProgress


@dataclass(frozen=True)
class GamificationStats:
    level: int
    total_xp: int
    daily_streak: int
    perfect_sessions: int
    level_progress: LevelProgress
    achievements: list[AchievementStatus] = field(default_factory=list)


@dataclass(frozen=True)
class ProgressStats:
    words_learned: int
    total_words: Optional[int]  # None when the catalog was not consulted
    total_reviews: int
    correct_answers: int
    incorrect_answers: int
    accuracy: float  # percent, 0-100


@dataclass(frozen=True)
class RecentSession:
    session_id: int
    started_at: datetime
    mode: str
    xp_earned: int
    cards_reviewed: int
    correct_answers: int
    duration_minutes: float


@dataclass(frozen=True)
class ActivityStats:
    total_sessions: int
    total_study_minutes: float
    average_session_minutes: float
    last_study_time: Optional[datetime]
    recent_sessions: list[RecentSession] = field(default_factory=list)


@dataclass(frozen=True)
class UserStats:
    """
    Everything the statistics page shows for one user.
    """
    user_id: str
    gamification: GamificationStats
    progress: ProgressStats
    activity: ActivityStats


@dataclass(frozen=True)
class DifficultWord:
    word_id: str
    error_rate: float
    incorrect_count: int
    correct_count: int
    review_count: int
    ease_factor: float
    entry: Optional[dict] = None
