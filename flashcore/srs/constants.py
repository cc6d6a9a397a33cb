"""
SM-2 Constants and Parameters

All configurable parameters for the review scheduler in one place.
"""

from enum import IntEnum
from typing import Final


# ---- Recall Quality ----

class Quality(IntEnum):
    """Quality of recall fed to the scheduler (0-5)."""
    BLACKOUT = 0       # Complete blackout
    BARELY = 1         # Incorrect, barely remembered
    REMEMBERED = 2     # Incorrect, but remembered on seeing the answer
    DIFFICULT = 3      # Correct with difficulty
    HESITANT = 4       # Correct with hesitation
    PERFECT = 5        # Perfect recall


QUALITY_MIN: Final[int] = 0
QUALITY_MAX: Final[int] = 5

# Binary correctness mapping (no response-time signal)
QUALITY_CORRECT: Final[int] = Quality.HESITANT
QUALITY_INCORRECT: Final[int] = Quality.BARELY

# Quality < PASSING_QUALITY is a lapse
PASSING_QUALITY: Final[int] = Quality.DIFFICULT


# ---- Response-Time Escalation ----
# Optional extension: correct answers with a response time map to 5/4/3

FAST_RESPONSE_MS: Final[int] = 3000   # < 3s -> PERFECT
GOOD_RESPONSE_MS: Final[int] = 5000   # < 5s -> HESITANT, otherwise DIFFICULT


# ---- Ease Factor ----

INITIAL_EASE: Final[float] = 2.5
MIN_EASE: Final[float] = 1.3
EASE_DECIMALS: Final[int] = 2


# ---- Intervals (days) ----

INITIAL_INTERVAL: Final[int] = 0
FIRST_INTERVAL: Final[int] = 1    # After the first review
SECOND_INTERVAL: Final[int] = 6   # After the second review
LAPSE_INTERVAL: Final[int] = 0    # Word becomes due immediately
