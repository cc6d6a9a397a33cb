"""
Session Aggregator

Study session state machine: NONE -> ACTIVE -> ENDED.

Tracks running totals of an in-progress session and decides when an idle
session is stale. No database calls.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from flashcore.exceptions import SessionClosedError
from flashcore.gamification.constants import (
    PERFECT_SESSION_MIN_CARDS,
    SESSION_TIMEOUT_MINUTES,
    STALE_SESSION_MINUTES,
    StudyMode,
)


class Staleness(str, Enum):
    """How idle an active session is."""
    FRESH = "fresh"
    STALE = "stale"          # force-end the study session
    TIMED_OUT = "timed_out"  # also signal the caller to time out the user


@dataclass(frozen=True)
class SessionTotals:
    """Final totals reported by the client when ending a session."""
    cards_reviewed: int = 0
    correct_answers: int = 0
    xp_earned: int = 0


@dataclass
class StudySession:
    """
    One study session.

    `last_interaction_at` starts at `started_at` and moves only when an
    answer is recorded.
    """
    user_id: str
    mode: StudyMode
    started_at: datetime
    last_interaction_at: datetime
    ended_at: Optional[datetime] = None
    cards_reviewed: int = 0
    correct_answers: int = 0
    xp_earned: int = 0
    timed_out: bool = False
    id: Optional[int] = None

    @property
    def is_active(self) -> bool:
        return self.ended_at is None

    @property
    def is_perfect(self) -> bool:
        return is_perfect_session(self.cards_reviewed, self.correct_answers)

    @property
    def duration(self) -> timedelta:
        end = self.ended_at or self.last_interaction_at
        return end - self.started_at


def is_perfect_session(cards_reviewed: int, correct_answers: int) -> bool:
    """100% accuracy over at least PERFECT_SESSION_MIN_CARDS cards."""
    return cards_reviewed >= PERFECT_SESSION_MIN_CARDS and correct_answers == cards_reviewed


def new_session(user_id: str, mode: StudyMode, now: datetime) -> StudySession:
    """Create an ACTIVE session with zeroed counters."""
    return StudySession(
        user_id=user_id,
        mode=StudyMode(mode),
        started_at=now,
        last_interaction_at=now,
    )


def record_answer(session: StudySession, correct: bool, xp_earned: int, now: datetime) -> StudySession:
    """
    Add one answer to the running totals (modifies in place).

    Raises:
        SessionClosedError: session has already ended
    """
    if not session.is_active:
        raise SessionClosedError(session.id)

    session.cards_reviewed += 1
    if correct:
        session.correct_answers += 1
    session.xp_earned += max(0, xp_earned)
    session.last_interaction_at = max(session.last_interaction_at, now)
    return session


def end_session(
    session: StudySession,
    now: datetime,
    final_totals: Optional[SessionTotals] = None
) -> StudySession:
    """
    Close an ACTIVE session (modifies in place).

    Counters recorded through `record_answer` are authoritative. Client
    totals are adopted only when the session recorded no answers itself.
    """
    if final_totals is not None and session.cards_reviewed == 0:
        session.cards_reviewed = final_totals.cards_reviewed
        session.correct_answers = min(final_totals.correct_answers, final_totals.cards_reviewed)
        session.xp_earned = final_totals.xp_earned

    session.ended_at = max(now, session.started_at)
    return session


def staleness(session: StudySession, now: datetime) -> Staleness:
    """Classify an active session by time since its last interaction."""
    idle = now - session.last_interaction_at
    if idle >= timedelta(minutes=SESSION_TIMEOUT_MINUTES):
        return Staleness.TIMED_OUT
    if idle >= timedelta(minutes=STALE_SESSION_MINUTES):
        return Staleness.STALE
    return Staleness.FRESH


def force_end_stale(session: StudySession) -> StudySession:
    """
    End an idle session at its last interaction, not at "now", so the
    idle time does not count as study time.
    """
    session.ended_at = session.last_interaction_at
    session.timed_out = True
    return session
