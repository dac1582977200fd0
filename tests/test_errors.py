"""Tests for the review error types."""

from typing import Optional, get_type_hints

import pytest

from action_review.errors import (
    DuplicateIdError,
    InvalidTransitionError,
    NotFoundError,
    ReviewError,
    ValidationError,
)


class TestReviewErrors:
    def test_defaults_are_none(self):
        e = InvalidTransitionError("nope")
        assert e.action_id is None
        assert e.status is None
        assert e.event is None
        assert str(e) == "nope"

    def test_optional_annotations(self):
        assert get_type_hints(ReviewError.__init__)["action_id"] == Optional[str]
        hints = get_type_hints(InvalidTransitionError.__init__)
        for name in ("action_id", "status", "event"):
            assert hints[name] == Optional[str]

    @pytest.mark.parametrize(
        "error_cls,status",
        [
            (NotFoundError, 404),
            (DuplicateIdError, 409),
            (InvalidTransitionError, 409),
            (ValidationError, 422),
        ],
    )
    def test_http_status(self, error_cls, status):
        e = error_cls("failed", action_id="AI-001")
        assert isinstance(e, ReviewError)
        assert e.http_status == status
        assert e.action_id == "AI-001"
