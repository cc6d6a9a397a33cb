"""
Persistence Layer - Database I/O for progression and sessions

Every function takes the caller's SQLAlchemy session and flushes; committing
is the caller's job so an answer submission applies atomically.
"""

from __future__ import annotations
from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from flashcore.gamification.achievements import AchievementUnlock
from flashcore.gamification.constants import StudyMode
from flashcore.gamification.progression import ProgressionState
from flashcore.gamification.sessions import StudySession
from flashcore.models import ProgressionRow, StudySessionRow, UnlockedAchievementRow
from flashcore.srs.review_state import ensure_utc


# ---- Progression ----

def _unlocked_ids(db: Session, user_id: str) -> set[str]:
    rows = db.execute(
        select(UnlockedAchievementRow.achievement_id).where(
            UnlockedAchievementRow.user_id == user_id
        )
    ).scalars()
    return set(rows)


def load_progression(db: Session, user_id: str) -> Optional[ProgressionState]:
    """
    Load the progression ledger for a user.

    Returns:
        ProgressionState if the user has any study activity, None otherwise
    """
    row = db.get(ProgressionRow, user_id)
    if row is None:
        return None

    return ProgressionState(
        user_id=row.user_id,
        total_xp=row.total_xp,
        daily_streak=row.daily_streak,
        last_visit_date=row.last_visit_date,
        perfect_session_count=row.perfect_session_count,
        unlocked_achievements=_unlocked_ids(db, user_id),
    )


def load_or_create_progression(db: Session, user_id: str) -> ProgressionState:
    """Load the ledger, or start an empty one (not saved until save_progression)."""
    state = load_progression(db, user_id)
    if state is None:
        state = ProgressionState(user_id=user_id)
    return state


def save_progression(db: Session, state: ProgressionState) -> None:
    """
    Save the ledger scalars (insert or update) and flush.

    Achievement unlocks are appended separately with add_unlocked_achievements.
    """
    row = db.get(ProgressionRow, state.user_id)
    if row is None:
        row = ProgressionRow(user_id=state.user_id)
        db.add(row)

    row.total_xp = state.total_xp
    row.daily_streak = state.daily_streak
    row.last_visit_date = state.last_visit_date
    row.perfect_session_count = state.perfect_session_count

    db.flush()


def add_unlocked_achievements(
    db: Session,
    user_id: str,
    unlocks: Iterable[AchievementUnlock],
    now: datetime
) -> None:
    """
    Append unlock records, skipping ids already stored.
    """
    existing = _unlocked_ids(db, user_id)
    for unlock in unlocks:
        if unlock.id in existing:
            continue
        db.add(UnlockedAchievementRow(
            user_id=user_id,
            achievement_id=unlock.id,
            xp_reward=unlock.xp_reward,
            unlocked_at=ensure_utc(now),
        ))
        existing.add(unlock.id)
    db.flush()


def get_progression_user_ids(db: Session) -> list[str]:
    rows = db.execute(select(ProgressionRow.user_id).order_by(ProgressionRow.user_id)).scalars()
    return list(rows)


# ---- Sessions ----

def _to_session(row: StudySessionRow) -> StudySession:
    return StudySession(
        id=row.id,
        user_id=row.user_id,
        mode=StudyMode(row.mode),
        started_at=ensure_utc(row.started_at),
        last_interaction_at=ensure_utc(row.last_interaction_at),
        ended_at=ensure_utc(row.ended_at),
        cards_reviewed=row.cards_reviewed,
        correct_answers=row.correct_answers,
        xp_earned=row.xp_earned,
        timed_out=bool(row.timed_out),
    )


def load_session(db: Session, session_id: int) -> Optional[StudySession]:
    row = db.get(StudySessionRow, session_id)
    if row is None:
        return None
    return _to_session(row)


def find_active_session(db: Session, user_id: str) -> Optional[StudySession]:
    """The user's unended session, if any."""
    row = db.execute(
        select(StudySessionRow).where(
            StudySessionRow.user_id == user_id,
            StudySessionRow.ended_at.is_(None),
        )
    ).scalar_one_or_none()
    if row is None:
        return None
    return _to_session(row)


def save_session(db: Session, session: StudySession) -> StudySession:
    """
    Save a session (insert or update) and flush. New sessions get their id.
    """
    row = db.get(StudySessionRow, session.id) if session.id is not None else None
    if row is None:
        row = StudySessionRow(user_id=session.user_id)
        db.add(row)

    row.mode = StudyMode(session.mode).value
    row.started_at = ensure_utc(session.started_at)
    row.ended_at = ensure_utc(session.ended_at)
    row.last_interaction_at = ensure_utc(session.last_interaction_at)
    row.cards_reviewed = session.cards_reviewed
    row.correct_answers = session.correct_answers
    row.xp_earned = session.xp_earned
    row.timed_out = session.timed_out

    db.flush()
    session.id = row.id
    return session


def list_sessions(db: Session, user_id: str) -> list[StudySession]:
    """All sessions of a user, newest first."""
    rows = db.execute(
        select(StudySessionRow)
        .where(StudySessionRow.user_id == user_id)
        .order_by(StudySessionRow.started_at.desc(), StudySessionRow.id.desc())
    ).scalars()
    return [_to_session(row) for row in rows]
