"""
Persistence Layer - Database I/O for review state

Handles all reads and writes of per-word review state. Every function takes
the caller's SQLAlchemy session; committing is the caller's job.

This module handles ONLY database I/O.
Algorithm logic is handled by the scheduler module.
"""

from __future__ import annotations
from datetime import datetime
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from flashcore.models import ReviewStateRow
from flashcore.srs.review_state import ReviewState, ensure_utc


def _to_state(row: ReviewStateRow) -> ReviewState:
    return ReviewState(
        user_id=row.user_id,
        word_id=row.word_id,
        ease_factor=row.ease_factor,
        review_interval=row.review_interval,
        next_review_date=ensure_utc(row.next_review_date),
        review_count=row.review_count,
        correct_count=row.correct_count,
        incorrect_count=row.incorrect_count,
        is_known=bool(row.is_known),
        last_reviewed=ensure_utc(row.last_reviewed),
    )


def _find_row(db: Session, user_id: str, word_id: str) -> Optional[ReviewStateRow]:
    return db.execute(
        select(ReviewStateRow).where(
            ReviewStateRow.user_id == user_id,
            ReviewStateRow.word_id == word_id,
        )
    ).scalar_one_or_none()


def load_review_state(db: Session, user_id: str, word_id: str) -> Optional[ReviewState]:
    """
    Load review state for one word.

    Returns:
        ReviewState if the user has answered this word, None otherwise
    """
    row = _find_row(db, user_id, word_id)
    if row is None:
        return None
    return _to_state(row)


def save_review_state(db: Session, state: ReviewState) -> None:
    """
    Save review state (insert or update) and flush.
    """
    row = _find_row(db, state.user_id, state.word_id)
    if row is None:
        row = ReviewStateRow(user_id=state.user_id, word_id=state.word_id)
        db.add(row)

    row.ease_factor = state.ease_factor
    row.review_interval = state.review_interval
    row.next_review_date = ensure_utc(state.next_review_date)
    row.review_count = state.review_count
    row.correct_count = state.correct_count
    row.incorrect_count = state.incorrect_count
    row.is_known = state.is_known
    row.last_reviewed = ensure_utc(state.last_reviewed)

    db.flush()


def get_due_review_states(
    db: Session,
    user_id: str,
    now: datetime,
    limit: Optional[int] = None
) -> list[ReviewState]:
    """
    Get review states due at `now`.

    Ordered by next review date ascending (most overdue first), then by
    review count ascending.
    """
    query = (
        select(ReviewStateRow)
        .where(
            ReviewStateRow.user_id == user_id,
            ReviewStateRow.next_review_date <= ensure_utc(now),
        )
        .order_by(
            ReviewStateRow.next_review_date.asc(),
            ReviewStateRow.review_count.asc(),
            ReviewStateRow.word_id.asc(),
        )
    )
    if limit is not None:
        query = query.limit(limit)

    return [_to_state(row) for row in db.execute(query).scalars()]


def get_all_review_states(db: Session, user_id: str) -> list[ReviewState]:
    """Get every review state for a user."""
    rows = db.execute(
        select(ReviewStateRow)
        .where(ReviewStateRow.user_id == user_id)
        .order_by(ReviewStateRow.word_id.asc())
    ).scalars()
    return [_to_state(row) for row in rows]


def count_known_words(db: Session, user_id: str) -> int:
    """Number of words whose most recent answer was correct."""
    return db.execute(
        select(func.count(ReviewStateRow.id)).where(
            ReviewStateRow.user_id == user_id,
            ReviewStateRow.is_known.is_(True),
        )
    ).scalar_one()


def count_correct_answers(db: Session, user_id: str) -> int:
    """Total correct answers across all words."""
    total = db.execute(
        select(func.sum(ReviewStateRow.correct_count)).where(
            ReviewStateRow.user_id == user_id
        )
    ).scalar_one()
    return int(total or 0)


def get_user_ids(db: Session) -> list[str]:
    """All users that have review state."""
    rows = db.execute(
        select(ReviewStateRow.user_id).distinct().order_by(ReviewStateRow.user_id)
    ).scalars()
    return list(rows)
