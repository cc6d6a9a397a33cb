"""
Pydantic models for caller-supplied data.

Requests are validated here before any state is touched; failures are
re-raised as InvalidInputError with per-field details.
"""

from __future__ import annotations

from typing import Any, Optional, Type, TypeVar

from pydantic import BaseModel, Field, StrictBool, ValidationError, field_validator, model_validator

from flashcore.exceptions import InvalidInputError
from flashcore.gamification.constants import StudyMode
from flashcore.gamification.sessions import SessionTotals


ModelT = TypeVar("ModelT", bound=BaseModel)


def _coerce_identifier(value: Any) -> Any:
    """Accept integer ids (as stored by older clients) but not booleans."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str):
        return value.strip()
    return value


# ---- Answers ----

class AnswerSubmission(BaseModel):
    """One answer to a flashcard."""
    word_id: str = Field(..., min_length=1, description="Vocabulary word identifier")
    correct: StrictBool = Field(..., description="Whether the answer was correct")
    mode: StudyMode = Field(..., description="Study mode the answer was given in")
    client_xp_hint: int = Field(default=0, ge=0, description="XP the client computed (may include a streak bonus)")
    response_time_ms: Optional[int] = Field(default=None, ge=0, description="Optional response time for quality escalation")

    @field_validator("word_id", mode="before")
    @classmethod
    def _normalize_word_id(cls, value):
        return _coerce_identifier(value)

    @field_validator("client_xp_hint", mode="before")
    @classmethod
    def _default_hint(cls, value):
        # Clients send null when no hint applies
        return 0 if value is None else value


# ---- Sessions ----

class SessionStartRequest(BaseModel):
    """Start (or resume) a study session."""
    mode: StudyMode = StudyMode.PRACTICE


class SessionEndRequest(BaseModel):
    """Final totals reported by the client."""
    cards_reviewed: int = Field(default=0, ge=0)
    correct_answers: int = Field(default=0, ge=0)
    xp_earned: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _correct_within_reviewed(self):
        if self.correct_answers > self.cards_reviewed:
            raise ValueError("correct_answers cannot exceed cards_reviewed")
        return self

    def to_totals(self) -> SessionTotals:
        return SessionTotals(
            cards_reviewed=self.cards_reviewed,
            correct_answers=self.correct_answers,
            xp_earned=self.xp_earned,
        )


# ---- Helpers ----

def parse(model: Type[ModelT], data: Any) -> ModelT:
    """
    Validate `data` (a dict or an instance of `model`) into `model`.

    Raises:
        InvalidInputError: validation failed
    """
    if isinstance(data, model):
        return data
    if data is None:
        data = {}
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise InvalidInputError.from_pydantic(exc) from None


def validate_user_id(user_id: Any) -> str:
    """User ids are non-empty strings (integers are accepted and stringified)."""
    value = _coerce_identifier(user_id)
    if not isinstance(value, str) or not value:
        raise InvalidInputError(
            f"Invalid user id: {user_id!r}",
            [{"field": "user_id", "message": "must be a non-empty string"}],
        )
    return value
