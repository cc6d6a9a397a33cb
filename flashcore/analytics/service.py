"""
Service layer to assemble user statistics.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import Session

from flashcore import lexicon_repo
from flashcore.analytics.constants import DIFFICULT_WORDS_LIMIT, RECENT_SESSION_COUNT
from flashcore.analytics.metrics import (
    compute_accuracy,
    compute_answer_totals,
    compute_study_minutes,
    compute_words_learned,
    rank_difficult_words,
)
from flashcore.analytics.queries import load_review_states_df, load_sessions_df
from flashcore.analytics.types import (
    ActivityStats,
    DifficultWord,
    GamificationStats,
    ProgressStats,
    RecentSession,
    UserStats,
)
from flashcore.gamification import persistence
from flashcore.gamification.achievements import (
    DEFAULT_CATALOG,
    AchievementCatalog,
    AchievementSnapshot,
    achievement_status,
)
from flashcore.gamification.progression import level_progress
from flashcore.schemas import validate_user_id


def _recent_sessions(sessions_df, count: int) -> list[RecentSession]:
    return [
        RecentSession(
            session_id=int(row.session_id),
            started_at=row.started_at.to_pydatetime(),
            mode=row.mode,
            xp_earned=int(row.xp_earned),
            cards_reviewed=int(row.cards_reviewed),
            correct_answers=int(row.correct_answers),
            duration_minutes=round(float(row.duration_minutes), 1),
        )
        for row in sessions_df.head(count).itertuples(index=False)
    ]


def build_user_stats(
    db: Session,
    user_id: str,
    total_words: Optional[int] = None,
    include_catalog: bool = True,
    catalog: AchievementCatalog = DEFAULT_CATALOG
) -> UserStats:
    """
    Build the gamification, progress and activity blocks for a user.

    Args:
        db: SQLAlchemy session
        user_id: User identifier
        total_words: Catalog size, if already known
        include_catalog: Ask the vocabulary store for the catalog size
            when `total_words` is not given
        catalog: Achievement definitions

    Returns:
        UserStats
    """
    user_id = validate_user_id(user_id)
    progression = persistence.load_or_create_progression(db, user_id)
    reviews_df = load_review_states_df(db, user_id)
    sessions_df = load_sessions_df(db, user_id)

    words_learned = compute_words_learned(reviews_df)
    total_reviews, correct, incorrect = compute_answer_totals(reviews_df)
    if total_words is None and include_catalog:
        total_words = lexicon_repo.count_words()

    snapshot = AchievementSnapshot(
        correct_answers=correct,
        words_learned=words_learned,
        daily_streak=progression.daily_streak,
        perfect_sessions=progression.perfect_session_count,
        total_xp=progression.total_xp,
    )
    total_minutes, average_minutes = compute_study_minutes(sessions_df)
    last_study_time = sessions_df["ended_at"].max().to_pydatetime() if not sessions_df.empty else None

    return UserStats(
        user_id=user_id,
        gamification=GamificationStats(
            level=progression.level,
            total_xp=progression.total_xp,
            daily_streak=progression.daily_streak,
            perfect_sessions=progression.perfect_session_count,
            level_progress=level_progress(progression.total_xp),
            achievements=achievement_status(snapshot, progression.unlocked_achievements, catalog),
        ),
        progress=ProgressStats(
            words_learned=words_learned,
            total_words=total_words,
            total_reviews=total_reviews,
            correct_answers=correct,
            incorrect_answers=incorrect,
            accuracy=compute_accuracy(correct, incorrect),
        ),
        activity=ActivityStats(
            total_sessions=len(sessions_df),
            total_study_minutes=total_minutes,
            average_session_minutes=average_minutes,
            last_study_time=last_study_time,
            recent_sessions=_recent_sessions(sessions_df, RECENT_SESSION_COUNT),
        ),
    )


def get_difficult_words(
    db: Session,
    user_id: str,
    limit: int = DIFFICULT_WORDS_LIMIT,
    hydrate: bool = True
) -> list[DifficultWord]:
    """
    Words the user struggles with most, hardest first.
    """
    user_id = validate_user_id(user_id)
    ranked = rank_difficult_words(load_review_states_df(db, user_id), limit)
    if ranked.empty:
        return []

    entries = lexicon_repo.get_words_by_ids(ranked["word_id"].tolist()) if hydrate else {}
    return [
        DifficultWord(
            word_id=row.word_id,
            error_rate=round(float(row.error_rate), 3),
            incorrect_count=int(row.incorrect_count),
            correct_count=int(row.correct_count),
            review_count=int(row.review_count),
            ease_factor=float(row.ease_factor),
            entry=entries.get(row.word_id),
        )
        for row in ranked.itertuples(index=False)
    ]
