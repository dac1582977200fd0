"""Transition records: the result of one state-machine step and of one service call."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel

from action_review.models.action import ActionRecord, ActionStatus
from action_review.models.notification import ReviewNotification


class ReviewEvent(str, Enum):
    AUTO_APPLY = "auto_apply"
    SUBMIT = "submit"
    APPROVE = "approve"
    EDIT_APPROVE = "edit_approve"
    REJECT = "reject"
    VIEW = "view"


class Transition(BaseModel):
    """
    Outcome of applying an event to a record.

    ``to_status`` is None when the event removes the record from the queue;
    ``record`` then holds the record as it was at removal.
    """

    event: ReviewEvent
    action_id: str
    from_status: ActionStatus
    to_status: Optional[ActionStatus] = None
    record: ActionRecord
    outcome: Optional[str] = None

    @property
    def removed(self) -> bool:
        return self.to_status is None


class ReviewOutcome(BaseModel):
    """What a review service operation returns to its caller."""

    transition: Transition
    notification: Optional[ReviewNotification] = None
    delivered: bool = False
