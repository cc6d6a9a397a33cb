"""
SQLAlchemy ORM Models

Defines the persisted review state, progression ledger, achievement unlocks
and study sessions. Level is not stored: it is always derived from total XP.
"""

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class ReviewStateRow(Base):
    """
    Persistent review state for a single (user, word) pair.
    """
    __tablename__ = 'review_states'
    __table_args__ = (
        UniqueConstraint('user_id', 'word_id', name='uq_review_states_user_word'),
        Index('idx_review_states_due', 'user_id', 'next_review_date'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(255), nullable=False)
    word_id = Column(String(255), nullable=False)

    # Scheduling parameters
    ease_factor = Column(Float, nullable=False, default=2.5)
    review_interval = Column(Integer, nullable=False, default=0)  # days
    next_review_date = Column(DateTime(timezone=True), nullable=False)

    # Answer tracking
    review_count = Column(Integer, nullable=False, default=0)
    correct_count = Column(Integer, nullable=False, default=0)
    incorrect_count = Column(Integer, nullable=False, default=0)
    is_known = Column(Boolean, nullable=False, default=False)
    last_reviewed = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<ReviewStateRow({self.user_id}, {self.word_id}, interval={self.review_interval})>"


class ProgressionRow(Base):
    """
    Progression ledger for one user.
    """
    __tablename__ = 'user_progression'

    user_id = Column(String(255), primary_key=True, nullable=False)
    total_xp = Column(Integer, nullable=False, default=0)
    daily_streak = Column(Integer, nullable=False, default=0)
    last_visit_date = Column(Date, nullable=True)  # calendar day, not timestamp
    perfect_session_count = Column(Integer, nullable=False, default=0)

    def __repr__(self):
        return f"<ProgressionRow({self.user_id}, xp={self.total_xp}, streak={self.daily_streak})>"


class UnlockedAchievementRow(Base):
    """
    Append-only record of an unlocked achievement.
    """
    __tablename__ = 'unlocked_achievements'
    __table_args__ = (
        UniqueConstraint('user_id', 'achievement_id', name='uq_unlocked_achievements_user_id'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(255), nullable=False)
    achievement_id = Column(String(64), nullable=False)
    xp_reward = Column(Integer, nullable=False, default=0)
    unlocked_at = Column(DateTime(timezone=True), nullable=False)

    def __repr__(self):
        return f"<UnlockedAchievementRow({self.user_id}, {self.achievement_id})>"


class StudySessionRow(Base):
    """
    One study session. At most one row per user may have ended_at NULL.
    """
    __tablename__ = 'study_sessions'
    __table_args__ = (
        Index(
            'uq_study_sessions_one_active',
            'user_id',
            unique=True,
            sqlite_where=text('ended_at IS NULL'),
            postgresql_where=text('ended_at IS NULL'),
        ),
        Index('idx_study_sessions_user_started', 'user_id', 'started_at'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(255), nullable=False)
    mode = Column(String(20), nullable=False)  # practice, quiz, typing

    started_at = Column(DateTime(timezone=True), nullable=False)
    ended_at = Column(DateTime(timezone=True), nullable=True)
    # Last-interaction watermark, moved only by recorded answers
    last_interaction_at = Column(DateTime(timezone=True), nullable=False)

    cards_reviewed = Column(Integer, nullable=False, default=0)
    correct_answers = Column(Integer, nullable=False, default=0)
    xp_earned = Column(Integer, nullable=False, default=0)
    timed_out = Column(Boolean, nullable=False, default=False)

    def __repr__(self):
        return f"<StudySessionRow(id={self.id}, {self.user_id}, mode={self.mode})>"
