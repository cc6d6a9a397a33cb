"""
SRS - Modified SM-2 Review Scheduler

Decides when each vocabulary item is next due.

This package implements:
- Ease factor update: EF' = EF + (0.1 - (5-q)(0.08 + (5-q)0.02)), floored at 1.3
- Lapse reset: quality < 3 makes the word due immediately
- Interval growth: 1 day, 6 days, then previous interval x ease

Quick start:
    from flashcore import srs

    # Process an answer (algorithm only, no DB calls)
    state = srs.initialize_new_review("user-1", "word-42")
    state, event_data = srs.process_answer(state, correct=True)

    # Persist it
    srs.save_review_state(db, state)
"""

# Core scheduler API (algorithm logic)
from flashcore.srs.scheduler import (
    ReviewSchedule,
    correctness_to_quality,
    next_review,
    process_answer,
    round_half_up,
)

# Persistence API
from flashcore.srs.persistence import (
    count_correct_answers,
    count_known_words,
    get_all_review_states,
    get_due_review_states,
    get_user_ids,
    load_review_state,
    save_review_state,
)

# Constants and parameters
from flashcore.srs.constants import (
    Quality,
    INITIAL_EASE,
    MIN_EASE,
    FIRST_INTERVAL,
    SECOND_INTERVAL,
    QUALITY_CORRECT,
    QUALITY_INCORRECT,
)

# Review state
from flashcore.srs.review_state import (
    ReviewState,
    ensure_utc,
    initialize_new_review,
    is_due,
    utc_now,
)


__all__ = [
    # Core algorithm
    "ReviewSchedule",
    "correctness_to_quality",
    "next_review",
    "process_answer",
    "round_half_up",

    # Database operations
    "count_correct_answers",
    "count_known_words",
    "get_all_review_states",
    "get_due_review_states",
    "get_user_ids",
    "load_review_state",
    "save_review_state",

    # Enums
    "Quality",

    # Review state
    "ReviewState",
    "ensure_utc",
    "initialize_new_review",
    "is_due",
    "utc_now",

    # Parameters
    "INITIAL_EASE",
    "MIN_EASE",
    "FIRST_INTERVAL",
    "SECOND_INTERVAL",
    "QUALITY_CORRECT",
    "QUALITY_INCORRECT",
]
