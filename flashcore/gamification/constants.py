"""
Gamification Constants and Parameters

XP, level, streak and session parameters in one place. The achievement
catalog lives in achievements.py.
"""

from enum import Enum
from typing import Final


# ---- Study Modes ----

class StudyMode(str, Enum):
    """Study mode of an answer or session."""
    PRACTICE = "practice"
    QUIZ = "quiz"
    TYPING = "typing"


# ---- XP per Correct Answer ----

BASE_XP: Final[dict[StudyMode, int]] = {
    StudyMode.PRACTICE: 10,
    StudyMode.QUIZ: 15,
    StudyMode.TYPING: 20,
}

# Difficulty multiplier = 1 + error_rate * ERROR_RATE_WEIGHT,
# applied once the word has more than MIN_ATTEMPTS_FOR_MULTIPLIER prior attempts
ERROR_RATE_WEIGHT: Final[float] = 0.5
MIN_ATTEMPTS_FOR_MULTIPLIER: Final[int] = 1

# Hard words (low ease) earn more
HARD_EASE_THRESHOLD: Final[float] = 2.0
HARD_EASE_BONUS: Final[float] = 1.2

# Recalling after a long interval earns more
RETENTION_INTERVAL_DAYS: Final[int] = 7
RETENTION_BONUS: Final[float] = 1.15


# ---- Levels ----
# level = floor(sqrt(total_xp / LEVEL_XP_UNIT)) + 1

LEVEL_XP_UNIT: Final[int] = 100


# ---- Sessions ----

PERFECT_SESSION_MIN_CARDS: Final[int] = 10
STALE_SESSION_MINUTES: Final[int] = 30     # force-end the study session
SESSION_TIMEOUT_MINUTES: Final[int] = 60   # signal re-authentication upstream
