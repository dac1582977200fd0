"""
Review errors: the well-typed failure outcomes of the review workflow.

Every error is raised synchronously by the operation that detected it and is
never retried internally. The HTTP adapter maps ``http_status`` to a response.
"""

from typing import Optional


class ReviewError(Exception):
    """Base class for all review workflow failures."""

    http_status = 400

    def __init__(self, message: str, action_id: Optional[str] = None):
        super().__init__(message)
        self.action_id = action_id


class NotFoundError(ReviewError):
    """The referenced action id is not in the active queue."""

    http_status = 404


class DuplicateIdError(ReviewError):
    """An action with the same id is already queued (producer bug)."""

    http_status = 409


class InvalidTransitionError(ReviewError):
    """The requested transition does not apply to the record's current status."""

    http_status = 409

    def __init__(
        self,
        message: str,
        action_id: Optional[str] = None,
        status: Optional[str] = None,
        event: Optional[str] = None,
    ):
        super().__init__(message, action_id)
        self.status = status
        self.event = event


class ValidationError(ReviewError):
    """Malformed input, e.g. empty edited content."""

    http_status = 422
