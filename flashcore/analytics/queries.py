"""
Data-loading helpers for statistics.
"""

from __future__ import annotations

import pandas as pd
from sqlalchemy.orm import Session

from flashcore import srs
from flashcore.analytics.constants import REVIEW_COLUMNS, SESSION_COLUMNS
from flashcore.gamification import persistence


def load_review_states_df(db: Session, user_id: str) -> pd.DataFrame:
    """
    Load every review state of a user into a dataframe.
    """
    states = srs.get_all_review_states(db, user_id)
    if not states:
        return pd.DataFrame(columns=REVIEW_COLUMNS)

    return pd.DataFrame(
        [
            {
                "word_id": s.word_id,
                "ease_factor": s.ease_factor,
                "review_interval": s.review_interval,
                "review_count": s.review_count,
                "correct_count": s.correct_count,
                "incorrect_count": s.incorrect_count,
                "is_known": bool(s.is_known),
            }
            for s in states
        ],
        columns=REVIEW_COLUMNS,
    )


def load_sessions_df(db: Session, user_id: str) -> pd.DataFrame:
    """
    Load ended study sessions of a user, newest first.
    """
    sessions = [s for s in persistence.list_sessions(db, user_id) if not s.is_active]
    if not sessions:
        return pd.DataFrame(columns=SESSION_COLUMNS + ["duration_minutes"])

    df = pd.DataFrame(
        [
            {
                "session_id": s.id,
                "mode": s.mode.value,
                "started_at": s.started_at,
                "ended_at": s.ended_at,
                "cards_reviewed": s.cards_reviewed,
                "correct_answers": s.correct_answers,
                "xp_earned": s.xp_earned,
            }
            for s in sessions
        ],
        columns=SESSION_COLUMNS,
    )
    df["started_at"] = pd.to_datetime(df["started_at"], utc=True)
    df["ended_at"] = pd.to_datetime(df["ended_at"], utc=True)
    df["duration_minutes"] = (
        (df["ended_at"] - df["started_at"]).dt.total_seconds() / 60.0
    ).clip(lower=0.0)
    return df.sort_values(["started_at", "session_id"], ascending=False).reset_index(drop=True)
