"""
Error taxonomy for the scheduling and progression engine.

Nothing here is fatal: every failure path surfaces one of these to the caller.
"""

from __future__ import annotations

from typing import Optional


class FlashcoreError(Exception):
    """Base class for all engine errors."""


class InvalidInputError(FlashcoreError, ValueError):
    """
    Malformed input, rejected before any state mutation.

    `details` is a list of {"field": ..., "message": ...} dicts so callers
    can return a structured error.
    """

    def __init__(self, message: str, details: Optional[list[dict]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or []

    @classmethod
    def from_pydantic(cls, exc) -> "InvalidInputError":
        details = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ())),
                "message": err.get("msg", ""),
            }
            for err in exc.errors()
        ]
        fields = ", ".join(d["field"] or "<root>" for d in details)
        return cls(f"Invalid request data: {fields}", details)

    def to_dict(self) -> dict:
        return {"error": self.message, "details": self.details}


class SessionNotFoundError(FlashcoreError, LookupError):
    """Session id does not exist or belongs to another user."""

    def __init__(self, session_id, user_id: str):
        super().__init__(f"Session {session_id} not found for user {user_id}")
        self.session_id = session_id
        self.user_id = user_id


class SessionClosedError(InvalidInputError):
    """An answer was recorded against a session that has already ended."""

    def __init__(self, session_id):
        super().__init__(
            f"Session {session_id} has already ended",
            [{"field": "session_id", "message": "session is not active"}],
        )
        self.session_id = session_id
