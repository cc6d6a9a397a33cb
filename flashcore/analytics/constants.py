"""
Constants for user statistics.
"""

from __future__ import annotations

from typing import Final


RECENT_SESSION_COUNT: Final[int] = 10
DIFFICULT_WORDS_LIMIT: Final[int] = 10

REVIEW_COLUMNS: Final[list[str]] = [
    "word_id",
    "ease_factor",
    "review_interval",
    "review_count",
    "correct_count",
    "incorrect_count",
    "is_known",
]

SESSION_COLUMNS: Final[list[str]] = [
    "session_id",
    "mode",
    "started_at",
    "ended_at",
    "cards_reviewed",
    "correct_answers",
    "xp_earned",
]
