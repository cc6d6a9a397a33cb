"""
Difficulty-adaptive XP for correct answers.

Pure function, no I/O. Harder words (high error rate, low ease) and words
recalled after long intervals earn more than the mode's base XP.
"""

from __future__ import annotations

from flashcore.exceptions import InvalidInputError
from flashcore.gamification.constants import (
    BASE_XP,
    ERROR_RATE_WEIGHT,
    HARD_EASE_BONUS,
    HARD_EASE_THRESHOLD,
    MIN_ATTEMPTS_FOR_MULTIPLIER,
    RETENTION_BONUS,
    RETENTION_INTERVAL_DAYS,
    StudyMode,
)
from flashcore.srs.scheduler import round_half_up


def difficulty_multiplier(prior_correct: int, prior_incorrect: int) -> float:
    """
    1 + error_rate * 0.5 once the word has more than one prior attempt.

    Uses history strictly before the current answer.
    """
    attempts = prior_correct + prior_incorrect
    if attempts <= MIN_ATTEMPTS_FOR_MULTIPLIER:
        return 1.0
    error_rate = prior_incorrect / attempts
    return 1.0 + error_rate * ERROR_RATE_WEIGHT


def xp_for_answer(
    mode: StudyMode,
    prior_correct: int,
    prior_incorrect: int,
    ease: float,
    interval: int,
    client_suggested_xp: int = 0
) -> int:
    """
    XP awarded for a correct answer.

    The server-side value is a minimum: a larger client suggestion (which may
    carry a same-session streak bonus) wins. All multipliers are applied
    before a single final rounding.

    Args:
        mode: Study mode, selects the base XP
        prior_correct: Correct answers on this word before this one
        prior_incorrect: Incorrect answers on this word before this one
        ease: Ease factor of the word when presented
        interval: Review interval (days) of the word when presented
        client_suggested_xp: XP the client computed, >= 0

    Returns:
        max(server XP, client suggestion)
    """
    try:
        mode = StudyMode(mode)
    except ValueError:
        raise InvalidInputError(
            f"Unknown study mode: {mode!r}",
            [{"field": "mode", "message": "must be one of practice, quiz, typing"}],
        ) from None
    if client_suggested_xp < 0:
        raise InvalidInputError(
            "Client XP hint must not be negative",
            [{"field": "client_xp_hint", "message": "must be >= 0"}],
        )

    xp = BASE_XP[mode] * difficulty_multiplier(prior_correct, prior_incorrect)
    if ease < HARD_EASE_THRESHOLD:
        xp *= HARD_EASE_BONUS
    if interval >= RETENTION_INTERVAL_DAYS:
        xp *= RETENTION_BONUS

    return max(round_half_up(xp), client_suggested_xp)
