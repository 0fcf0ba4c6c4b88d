"""Domain error taxonomy.

Every error is an ``HTTPException`` carrying the status the API reports for
it, so services can raise them directly and FastAPI renders them unchanged.
"""

from typing import Any

from fastapi import HTTPException, status


class SkillSwapError(HTTPException):
    """Base class for errors raised by the matching and scheduling core."""

    status_code_default = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(status_code=self.status_code_default, detail=detail)
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            return f"{self.detail} | Context: {self.context}"
        return str(self.detail)


class ValidationError(SkillSwapError):
    """Missing or malformed input."""


class NotFoundError(SkillSwapError):
    """A referenced user, skill or session does not exist."""

    status_code_default = status.HTTP_404_NOT_FOUND


class ForbiddenError(SkillSwapError):
    """The actor lacks the role or ownership the action needs."""

    status_code_default = status.HTTP_403_FORBIDDEN


class ConflictError(SkillSwapError):
    """A domain rule was violated.

    Covers self-sessions, skill-ownership mismatches, scheduling overlaps and
    illegal state transitions. Reported as 400 like the other input errors.
    """
