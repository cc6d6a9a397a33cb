"""
Progression Ledger

Per-user XP, level and daily streak.

Key principles:
- XP is cumulative and never subtracted
- Level is always derived from total XP, never stored independently:
      level = floor(sqrt(total_xp / 100)) + 1
- Streak moves at calendar-day granularity and is idempotent within a day
"""

from __future__ import annotations
import logging
import math
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Optional

from flashcore.exceptions import InvalidInputError
from flashcore.gamification.constants import LEVEL_XP_UNIT

logger = logging.getLogger(__name__)


@dataclass
class ProgressionState:
    """
    Progression ledger for one user.
    """
    user_id: str
    total_xp: int = 0
    daily_streak: int = 0
    last_visit_date: Optional[date] = None
    perfect_session_count: int = 0
    unlocked_achievements: set[str] = field(default_factory=set)

    @property
    def level(self) -> int:
        return level_for_xp(self.total_xp)


@dataclass(frozen=True)
class XpAward:
    """Result of adding XP to the ledger."""
    amount: int
    old_level: int
    new_level: int
    total_xp: int

    @property
    def leveled_up(self) -> bool:
        return self.new_level > self.old_level


@dataclass(frozen=True)
class LevelProgress:
    """Where a total XP value sits inside its level."""
    level: int
    total_xp: int
    xp_at_current_level: int
    xp_at_next_level: int
    xp_into_level: int
    xp_needed_for_next_level: int
    progress: float  # percent, 0-100


def level_for_xp(total_xp: int) -> int:
    """
    Level for a cumulative XP total.

    Uses integer square root so large totals don't drift through floats:
    floor(sqrt(xp / 100)) == isqrt(xp // 100) for non-negative integers.
    """
    if total_xp <= 0:
        return 1
    return math.isqrt(total_xp // LEVEL_XP_UNIT) + 1


def xp_for_level(level: int) -> int:
    """Minimum total XP at which `level` is reached: (level - 1)^2 * 100."""
    return (max(level, 1) - 1) ** 2 * LEVEL_XP_UNIT


def level_progress(total_xp: int) -> LevelProgress:
    """
    Detailed progress towards the next level.

    XP range for level L is [(L-1)^2 * 100, L^2 * 100).
    """
    level = level_for_xp(total_xp)
    xp_at_current = xp_for_level(level)
    xp_at_next = xp_for_level(level + 1)

    xp_into_level = total_xp - xp_at_current
    xp_needed = xp_at_next - xp_at_current
    progress = min(100.0, max(0.0, xp_into_level / xp_needed * 100.0))

    return LevelProgress(
        level=level,
        total_xp=total_xp,
        xp_at_current_level=xp_at_current,
        xp_at_next_level=xp_at_next,
        xp_into_level=xp_into_level,
        xp_needed_for_next_level=xp_needed,
        progress=progress,
    )


def add_xp(state: ProgressionState, amount: int) -> XpAward:
    """
    Add XP to the ledger (modifies in place).

    Args:
        state: ProgressionState to update
        amount: XP to add, must be >= 0

    Returns:
        XpAward with old and new level

    Raises:
        InvalidInputError: amount is negative
    """
    if amount < 0:
        raise InvalidInputError(
            f"XP amount must not be negative, got {amount}",
            [{"field": "amount", "message": "must be >= 0"}],
        )

    old_level = state.level
    state.total_xp += amount
    new_level = state.level

    if new_level > old_level:
        logger.info(f"User {state.user_id} leveled up: {old_level} -> {new_level} ({state.total_xp} XP)")

    return XpAward(amount=amount, old_level=old_level, new_level=new_level, total_xp=state.total_xp)


def update_streak(state: ProgressionState, today: date) -> int:
    """
    Update the daily streak for activity on `today` (modifies in place).

    - Same day: no change
    - Previous day: streak + 1
    - Gap or first visit: streak = 1
    - Last visit in the future (clock skew): treated as already visited today

    Returns:
        Current streak
    """
    last = state.last_visit_date

    if last is not None and last > today:
        logger.warning(
            f"User {state.user_id} last visit {last.isoformat()} is after "
            f"{today.isoformat()}; treating as visited today"
        )
        state.daily_streak = max(state.daily_streak, 1)
        state.last_visit_date = today
        return state.daily_streak

    if last == today:
        return state.daily_streak

    if last == today - timedelta(days=1):
        state.daily_streak += 1
    else:
        state.daily_streak = 1

    state.last_visit_date = today
    return state.daily_streak
