"""
Scheduler - SM-2 Review Logic

Pure scheduling and state updates (no database calls).

Main workflow:
1. Load review state (caller's responsibility)
2. Map the answer to a quality rating
3. Compute new ease factor and interval
4. Apply answer counters
5. Return updated state + event data dict

This module handles ONLY the algorithm logic.
Database I/O is handled by the database module.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Tuple
import math

from flashcore.exceptions import InvalidInputError
from flashcore.srs import review_state
from flashcore.srs.constants import (
    EASE_DECIMALS,
    FAST_RESPONSE_MS,
    FIRST_INTERVAL,
    GOOD_RESPONSE_MS,
    LAPSE_INTERVAL,
    MIN_EASE,
    PASSING_QUALITY,
    QUALITY_CORRECT,
    QUALITY_INCORRECT,
    QUALITY_MAX,
    QUALITY_MIN,
    SECOND_INTERVAL,
    Quality,
)


@dataclass(frozen=True)
class ReviewSchedule:
    """Outcome of one scheduling step."""
    ease_factor: float
    interval: int
    next_review_date: datetime


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def validate_quality(quality) -> int:
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise InvalidInputError(
            f"Quality must be an integer, got {quality!r}",
            [{"field": "quality", "message": "must be an integer"}],
        )
    if not QUALITY_MIN <= quality <= QUALITY_MAX:
        raise InvalidInputError(
            f"Quality must be between {QUALITY_MIN} and {QUALITY_MAX}, got {quality}",
            [{"field": "quality", "message": f"must be in [{QUALITY_MIN}, {QUALITY_MAX}]"}],
        )
    return quality


def update_ease(ease_factor: float, quality: int) -> float:
    """
    Update ease factor for a quality rating.

    Formula:
        EF' = EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02))

    The penalty grows quadratically as quality drops. The result is
    floored at MIN_EASE.

    Args:
        ease_factor: Current ease factor
        quality: Quality of recall (0-5)

    Returns:
        New (unrounded) ease factor
    """
    miss = QUALITY_MAX - quality
    new_ease = ease_factor + (0.1 - miss * (0.08 + miss * 0.02))
    return max(MIN_EASE, new_ease)


def next_interval(quality: int, ease_factor: float, prior_interval: int, prior_review_count: int) -> int:
    """
    Compute the next review interval in days.

    - Lapse (quality < 3): interval resets to 0
    - First review: 1 day
    - Second review: 6 days
    - Afterwards: prior interval scaled by the new ease factor
    """
    if quality < PASSING_QUALITY:
        return LAPSE_INTERVAL
    if prior_review_count == 0:
        return FIRST_INTERVAL
    if prior_review_count == 1:
        return SECOND_INTERVAL
    return round_half_up(prior_interval * ease_factor)


def next_review(
    quality: int,
    prior_ease: float,
    prior_interval: int,
    prior_review_count: int,
    now: Optional[datetime] = None
) -> ReviewSchedule:
    """
    Compute the next ease factor, interval and review date.

    Args:
        quality: Quality of recall (0-5), validated
        prior_ease: Ease factor before this answer
        prior_interval: Interval (days) before this answer
        prior_review_count: Number of answers recorded before this one
        now: Review timestamp (defaults to now)

    Returns:
        ReviewSchedule with ease rounded to two decimals

    Raises:
        InvalidInputError: quality is not an integer in [0, 5]
    """
    quality = validate_quality(quality)
    if now is None:
        now = review_state.utc_now()

    ease = update_ease(prior_ease, quality)
    interval = next_interval(quality, ease, prior_interval, prior_review_count)

    return ReviewSchedule(
        ease_factor=round(ease, EASE_DECIMALS),
        interval=interval,
        next_review_date=now + timedelta(days=interval),
    )


def correctness_to_quality(correct: bool, response_time_ms: Optional[int] = None) -> int:
    """
    Convert answer correctness to a quality rating.

    Without a response time, correct -> 4 and incorrect -> 1. With a
    response time, fast correct answers escalate to 5 and slow ones
    drop to 3.
    """
    if not correct:
        return QUALITY_INCORRECT

    if response_time_ms is None:
        return QUALITY_CORRECT

    if response_time_ms < FAST_RESPONSE_MS:
        return Quality.PERFECT
    if response_time_ms < GOOD_RESPONSE_MS:
        return Quality.HESITANT
    return Quality.DIFFICULT


def process_answer(
    state: review_state.ReviewState,
    correct: bool,
    response_time_ms: Optional[int] = None,
    timestamp: Optional[datetime] = None
) -> Tuple[review_state.ReviewState, dict]:
    """
    Process an answer and return updated review state + event data.

    No database calls. Caller is responsible for:
    1. Loading (or initializing) the state
    2. Saving the state afterwards

    Args:
        state: ReviewState to update (modified in place)
        correct: Whether the answer was correct
        response_time_ms: Optional response time used for quality escalation
        timestamp: Answer timestamp (defaults to now)

    Returns:
        Tuple of (updated_state, event_data_dict)
    """
    if timestamp is None:
        timestamp = review_state.utc_now()

    quality = correctness_to_quality(correct, response_time_ms)

    # Save state before update (for logging and XP)
    ease_before = state.ease_factor
    interval_before = state.review_interval
    correct_before = state.correct_count
    incorrect_before = state.incorrect_count

    schedule = next_review(
        quality,
        prior_ease=state.ease_factor,
        prior_interval=state.review_interval,
        prior_review_count=state.review_count,
        now=timestamp,
    )

    state.ease_factor = schedule.ease_factor
    state.review_interval = schedule.interval
    state.next_review_date = schedule.next_review_date
    state.review_count += 1
    if correct:
        state.correct_count += 1
    else:
        state.incorrect_count += 1
    state.is_known = bool(correct)
    state.last_reviewed = timestamp

    event_data = {
        'user_id': state.user_id,
        'word_id': state.word_id,
        'timestamp': timestamp,
        'correct': bool(correct),
        'quality': quality,
        'ease_before': ease_before,
        'interval_before': interval_before,
        'correct_before': correct_before,
        'incorrect_before': incorrect_before,
        'ease_after': state.ease_factor,
        'interval_after': state.review_interval,
        'next_review_date': state.next_review_date,
    }

    return state, event_data
