"""Review Notification: the one event emitted per completed review operation."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from action_review.models.action import ActionKind, utc_now


class NotificationType(str, Enum):
    SENT = "sent"
    DISCARDED = "discarded"


class ReviewNotification(BaseModel):
    """
    Event delivered to the notification sink (a UI toast, a message bus, ...).
    Delivery is at-most-once per transition.

    ``id`` is the action the event concerns; ``notification_id`` identifies
    the event itself.
    """

    id: str                                 # Action id, e.g. "AI-001"
    type: NotificationType
    final_content: Optional[str] = None     # Only for SENT
    notification_id: str
    kind: ActionKind
    subject_id: str
    outcome: str                            # "applied" | "sent_as_is" | "sent_edited" | "discarded"
    emitted_at: datetime = Field(default_factory=utc_now)
