"""
Study - Main API for answer submission and study sessions

This module ties together the scheduler, XP calculator, progression ledger,
achievement engine and session aggregator.

Main workflow for an answer:
1. Validate the request
2. Schedule the word's next review (SM-2)
3. Award difficulty-adaptive XP for a correct answer
4. Update streak and XP on the progression ledger
5. Record the answer on the active session
6. Unlock achievements and add their rewards

Every function takes the caller's SQLAlchemy session and only flushes.
Wrap each call in `database.session_scope()` so it commits as a whole or
rolls back as a whole. Callers must serialize calls for the same user.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from sqlalchemy.orm import Session

from flashcore import lexicon_repo, srs
from flashcore.exceptions import SessionNotFoundError
from flashcore.gamification import persistence
from flashcore.gamification.achievements import (
    DEFAULT_CATALOG,
    AchievementCatalog,
    AchievementSnapshot,
    AchievementStatus,
    AchievementUnlock,
    achievement_status,
    check_new_achievements,
)
from flashcore.gamification.progression import (
    LevelProgress,
    ProgressionState,
    add_xp,
    level_progress,
    update_streak,
)
from flashcore.gamification.sessions import (
    Staleness,
    StudySession,
    end_session as close_session,
    force_end_stale,
    new_session,
    record_answer,
    staleness,
)
from flashcore.gamification.xp import xp_for_answer
from flashcore.schemas import (
    AnswerSubmission,
    SessionEndRequest,
    SessionStartRequest,
    parse,
    validate_user_id,
)

logger = logging.getLogger(__name__)


# ---- Results ----

@dataclass(frozen=True)
class AnswerResult:
    """Outcome of one submitted answer."""
    xp_earned: int            # XP for the answer itself
    achievement_xp: int       # XP from achievements unlocked by it
    leveled_up: bool
    new_level: int
    total_xp: int
    new_achievement_ids: list[str]
    current_streak: int
    next_review_date: datetime
    interval: int
    ease_factor: float


@dataclass(frozen=True)
class SessionEndResult:
    """Outcome of ending a study session."""
    session_id: int
    xp_earned: int
    leveled_up: bool
    new_level: int
    new_achievement_ids: list[str]
    perfect: bool
    already_ended: bool = False


@dataclass(frozen=True)
class ActiveSessionLookup:
    """
    Active session (None if there is none or it just went stale).

    `timed_out` asks the caller to time out the user's login session;
    it is not enforced here.
    """
    session: Optional[StudySession]
    timed_out: bool = False
    closed_session_id: Optional[int] = None
    new_achievement_ids: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class DueWord:
    """A word due for review, optionally with its catalog entry."""
    word_id: str
    next_review_date: datetime
    review_count: int
    overdue_days: int
    ease_factor: float
    entry: Optional[dict] = None


# ---- Achievements ----

def build_snapshot(db: Session, progression: ProgressionState) -> AchievementSnapshot:
    """Current metric values for achievement evaluation."""
    return AchievementSnapshot(
        correct_answers=srs.count_correct_answers(db, progression.user_id),
        words_learned=srs.count_known_words(db, progression.user_id),
        daily_streak=progression.daily_streak,
        perfect_sessions=progression.perfect_session_count,
        total_xp=progression.total_xp,
    )


def apply_achievements(
    db: Session,
    progression: ProgressionState,
    now: datetime,
    catalog: AchievementCatalog = DEFAULT_CATALOG
) -> list[AchievementUnlock]:
    """
    Unlock every achievement the user now qualifies for and add rewards.

    Rewards can push total XP over a further threshold, so evaluation
    repeats until nothing new unlocks. Re-running is a no-op.
    """
    unlocked: list[AchievementUnlock] = []

    while True:
        snapshot = build_snapshot(db, progression)
        new_unlocks = check_new_achievements(snapshot, progression.unlocked_achievements, catalog)
        if not new_unlocks:
            break
        for unlock in new_unlocks:
            progression.unlocked_achievements.add(unlock.id)
            add_xp(progression, unlock.xp_reward)
            logger.info(
                f"User {progression.user_id} unlocked {unlock.id} (+{unlock.xp_reward} XP)"
            )
        unlocked.extend(new_unlocks)

    if unlocked:
        persistence.add_unlocked_achievements(db, progression.user_id, unlocked, now)
    return unlocked


def _finalize_session(
    db: Session,
    session: StudySession,
    progression: ProgressionState,
    now: datetime,
    catalog: AchievementCatalog
) -> list[AchievementUnlock]:
    """Persist an ended session, count it if perfect, evaluate achievements."""
    persistence.save_session(db, session)
    if session.is_perfect:
        progression.perfect_session_count += 1
    unlocks = apply_achievements(db, progression, now, catalog)
    persistence.save_progression(db, progression)
    logger.info(
        f"Session {session.id} ended for {session.user_id}: "
        f"{session.correct_answers}/{session.cards_reviewed} correct, {session.xp_earned} XP"
        + (" (perfect)" if session.is_perfect else "")
    )
    return unlocks


def _expire_if_stale(
    db: Session,
    session: StudySession,
    progression: ProgressionState,
    now: datetime,
    catalog: AchievementCatalog
) -> tuple[Staleness, list[AchievementUnlock]]:
    """Force-end an idle session at its last interaction."""
    state = staleness(session, now)
    if state is Staleness.FRESH:
        return state, []

    logger.warning(
        f"Session {session.id} for {session.user_id} idle since "
        f"{session.last_interaction_at.isoformat()}; closing it"
    )
    force_end_stale(session)
    return state, _finalize_session(db, session, progression, now, catalog)


# ---- Answers ----

def submit_answer(
    db: Session,
    user_id: str,
    answer: AnswerSubmission | dict,
    now: Optional[datetime] = None,
    catalog: AchievementCatalog = DEFAULT_CATALOG
) -> AnswerResult:
    """
    Record one answer: schedule the word, award XP, update streak,
    session totals and achievements.

    Args:
        db: SQLAlchemy session (caller commits)
        user_id: User identifier
        answer: AnswerSubmission or a dict with word_id, correct, mode,
            client_xp_hint and optional response_time_ms
        now: Answer timestamp (defaults to now)
        catalog: Achievement definitions

    Returns:
        AnswerResult

    Raises:
        InvalidInputError: malformed request, nothing is changed
    """
    user_id = validate_user_id(user_id)
    answer = parse(AnswerSubmission, answer)
    now = srs.ensure_utc(now) if now is not None else srs.utc_now()

    # 1. Schedule the word
    review = srs.load_review_state(db, user_id, answer.word_id)
    if review is None:
        review = srs.initialize_new_review(user_id, answer.word_id, now)
    review, event = srs.process_answer(
        review, answer.correct, answer.response_time_ms, timestamp=now
    )

    # 2. XP from history strictly before this answer
    xp_earned = 0
    if answer.correct:
        xp_earned = xp_for_answer(
            answer.mode,
            prior_correct=event['correct_before'],
            prior_incorrect=event['incorrect_before'],
            ease=event['ease_before'],
            interval=event['interval_before'],
            client_suggested_xp=answer.client_xp_hint,
        )

    # 3. Ledger
    progression = persistence.load_or_create_progression(db, user_id)
    level_before = progression.level
    streak = update_streak(progression, now.date())
    add_xp(progression, xp_earned)

    srs.save_review_state(db, review)
    logger.debug(
        f"{user_id}/{answer.word_id}: q={event['quality']} "
        f"ease {event['ease_before']}->{review.ease_factor} "
        f"interval {event['interval_before']}->{review.review_interval} xp={xp_earned}"
    )

    # 4. Session side channel
    unlocks: list[AchievementUnlock] = []
    session = persistence.find_active_session(db, user_id)
    if session is not None:
        state, stale_unlocks = _expire_if_stale(db, session, progression, now, catalog)
        unlocks.extend(stale_unlocks)
        if state is Staleness.FRESH:
            record_answer(session, answer.correct, xp_earned, now)
            persistence.save_session(db, session)

    # 5. Achievements
    unlocks.extend(apply_achievements(db, progression, now, catalog))
    persistence.save_progression(db, progression)

    return AnswerResult(
        xp_earned=xp_earned,
        achievement_xp=sum(u.xp_reward for u in unlocks),
        leveled_up=progression.level > level_before,
        new_level=progression.level,
        total_xp=progression.total_xp,
        new_achievement_ids=[u.id for u in unlocks],
        current_streak=streak,
        next_review_date=review.next_review_date,
        interval=review.review_interval,
        ease_factor=review.ease_factor,
    )


def get_due_words(
    db: Session,
    user_id: str,
    now: Optional[datetime] = None,
    limit: Optional[int] = None,
    hydrate: bool = True
) -> list[DueWord]:
    """
    Words due for review, most overdue first, then by next review date,
    then by fewest reviews.

    Args:
        db: SQLAlchemy session
        user_id: User identifier
        now: Reference time (defaults to now)
        limit: Maximum number of words
        hydrate: Attach catalog entries from the vocabulary store

    Returns:
        Ordered list of DueWord
    """
    user_id = validate_user_id(user_id)
    now = srs.ensure_utc(now) if now is not None else srs.utc_now()

    states = srs.get_due_review_states(db, user_id, now, limit)
    entries = lexicon_repo.get_words_by_ids(s.word_id for s in states) if hydrate and states else {}

    return [
        DueWord(
            word_id=s.word_id,
            next_review_date=s.next_review_date,
            review_count=s.review_count,
            overdue_days=max(0, (now - s.next_review_date).days),
            ease_factor=s.ease_factor,
            entry=entries.get(s.word_id),
        )
        for s in states
    ]


# ---- Sessions ----

def start_session(
    db: Session,
    user_id: str,
    mode: Any = None,
    now: Optional[datetime] = None,
    catalog: AchievementCatalog = DEFAULT_CATALOG
) -> int:
    """
    Start a study session, or return the user's active one unchanged.

    A stale active session is closed first, so a new one is started.

    Returns:
        Session id
    """
    user_id = validate_user_id(user_id)
    request = parse(SessionStartRequest, {} if mode is None else {"mode": mode})
    now = srs.ensure_utc(now) if now is not None else srs.utc_now()

    lookup = get_active_session(db, user_id, now, catalog)
    if lookup.session is not None:
        return lookup.session.id

    session = persistence.save_session(db, new_session(user_id, request.mode, now))
    logger.info(f"Started {request.mode.value} session {session.id} for {user_id}")
    return session.id


def end_session(
    db: Session,
    user_id: str,
    session_id: int,
    final_totals: Optional[SessionEndRequest | dict] = None,
    now: Optional[datetime] = None,
    catalog: AchievementCatalog = DEFAULT_CATALOG
) -> SessionEndResult:
    """
    End a study session and evaluate perfect-session and achievements.

    Ending an already ended session is a no-op that reports its totals.

    Raises:
        InvalidInputError: malformed totals
        SessionNotFoundError: unknown session or another user's session
    """
    user_id = validate_user_id(user_id)
    totals = parse(SessionEndRequest, final_totals).to_totals() if final_totals is not None else None
    now = srs.ensure_utc(now) if now is not None else srs.utc_now()

    session = persistence.load_session(db, session_id) if session_id is not None else None
    if session is None or session.user_id != user_id:
        raise SessionNotFoundError(session_id, user_id)

    progression = persistence.load_or_create_progression(db, user_id)
    level_before = progression.level

    if not session.is_active:
        return SessionEndResult(
            session_id=session.id,
            xp_earned=session.xp_earned,
            leveled_up=False,
            new_level=level_before,
            new_achievement_ids=[],
            perfect=session.is_perfect,
            already_ended=True,
        )

    if staleness(session, now) is Staleness.FRESH:
        close_session(session, now, totals)
    else:
        if totals is not None:
            close_session(session, session.last_interaction_at, totals)
        force_end_stale(session)

    unlocks = _finalize_session(db, session, progression, now, catalog)

    return SessionEndResult(
        session_id=session.id,
        xp_earned=session.xp_earned,
        leveled_up=progression.level > level_before,
        new_level=progression.level,
        new_achievement_ids=[u.id for u in unlocks],
        perfect=session.is_perfect,
    )


def get_active_session(
    db: Session,
    user_id: str,
    now: Optional[datetime] = None,
    catalog: AchievementCatalog = DEFAULT_CATALOG
) -> ActiveSessionLookup:
    """
    The user's active session, closing it first if it went stale.

    Idle >= 30 minutes: the session is ended at its last interaction.
    Idle >= 60 minutes: additionally `timed_out` is set for the caller.
    """
    user_id = validate_user_id(user_id)
    now = srs.ensure_utc(now) if now is not None else srs.utc_now()

    session = persistence.find_active_session(db, user_id)
    if session is None:
        return ActiveSessionLookup(session=None)

    progression = persistence.load_or_create_progression(db, user_id)
    state, unlocks = _expire_if_stale(db, session, progression, now, catalog)
    if state is Staleness.FRESH:
        return ActiveSessionLookup(session=session)

    return ActiveSessionLookup(
        session=None,
        timed_out=state is Staleness.TIMED_OUT,
        closed_session_id=session.id,
        new_achievement_ids=[u.id for u in unlocks],
    )


# ---- Progress ----

def get_level_progress(db: Session, user_id: str) -> LevelProgress:
    """Level and progress towards the next level."""
    user_id = validate_user_id(user_id)
    progression = persistence.load_or_create_progression(db, user_id)
    return level_progress(progression.total_xp)


def get_achievements(
    db: Session,
    user_id: str,
    catalog: AchievementCatalog = DEFAULT_CATALOG
) -> list[AchievementStatus]:
    """Every achievement with the user's standing."""
    user_id = validate_user_id(user_id)
    progression = persistence.load_or_create_progression(db, user_id)
    snapshot = build_snapshot(db, progression)
    return achievement_status(snapshot, progression.unlocked_achievements, catalog)
