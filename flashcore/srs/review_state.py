"""
Review State - Per-word spaced repetition state

Defines the review state held for every (user, word) pair and the
derived "due" check.

Key concepts:
- Ease factor: how quickly intervals grow for this word (>= 1.3)
- Interval: days until the next review (0 = due immediately)
- Known: whether the most recent answer was correct (not cumulative mastery)
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from flashcore.srs.constants import INITIAL_EASE, INITIAL_INTERVAL


@dataclass
class ReviewState:
    """
    Review state for a single word.

    Created lazily on the first answer for a word.
    """
    user_id: str
    word_id: str

    # Scheduling parameters
    ease_factor: float
    review_interval: int  # days
    next_review_date: datetime

    # Answer tracking
    review_count: int
    correct_count: int
    incorrect_count: int
    is_known: bool

    last_reviewed: Optional[datetime] = None

    @property
    def total_attempts(self) -> int:
        return self.correct_count + self.incorrect_count

    @property
    def error_rate(self) -> float:
        """Share of incorrect answers so far (0.0 for an unseen word)."""
        if self.total_attempts == 0:
            return 0.0
        return self.incorrect_count / self.total_attempts


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Normalise a timestamp to timezone-aware UTC.

    Some backends (SQLite) hand back naive datetimes; those are taken as UTC.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def initialize_new_review(
    user_id: str,
    word_id: str,
    now: Optional[datetime] = None
) -> ReviewState:
    """
    Initialize state for a word the user has never answered.

    Args:
        user_id: User identifier
        word_id: Vocabulary word identifier
        now: Creation timestamp (defaults to now)

    Returns:
        New ReviewState, due immediately
    """
    if now is None:
        now = utc_now()

    return ReviewState(
        user_id=user_id,
        word_id=word_id,
        ease_factor=INITIAL_EASE,
        review_interval=INITIAL_INTERVAL,
        next_review_date=now,
        review_count=0,
        correct_count=0,
        incorrect_count=0,
        is_known=False,
        last_reviewed=None,
    )


def is_due(next_review_date: Optional[datetime], now: Optional[datetime] = None) -> bool:
    """
    Check if a word is due for review.

    A word without a scheduled date is always due.
    """
    if next_review_date is None:
        return True
    if now is None:
        now = utc_now()
    return ensure_utc(now) >= ensure_utc(next_review_date)
