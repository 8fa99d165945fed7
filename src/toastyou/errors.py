"""Domain exceptions raised by the toast and achievement services."""

from __future__ import annotations


class ToastYouError(Exception):
    """Base class for all domain errors."""


class NoContentError(ToastYouError):
    """No notes exist in the requested period, so there is nothing to toast."""

    def __init__(self, user_id: int, week_start: object) -> None:
        self.user_id = user_id
        self.week_start = week_start
        super().__init__(f"No notes found for user {user_id} in week starting {week_start}")


class GenerationFailedError(ToastYouError):
    """The upstream text generation service failed, timed out or returned garbage."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        self.cause = cause
        super().__init__(message)


class ConstraintViolation(ToastYouError):
    """A persistence-layer uniqueness constraint was hit."""


class DuplicatePeriodError(ConstraintViolation):
    """A toast already exists for this user and week."""

    def __init__(self, user_id: int, week_start: object) -> None:
        self.user_id = user_id
        self.week_start = week_start
        super().__init__(f"A toast already exists for user {user_id} in week starting {week_start}")


class NotFoundError(ToastYouError, LookupError):
    """A requested record does not exist or belongs to another user."""
