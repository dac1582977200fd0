"""Action review data models."""

from action_review.models.action import (
    ActionKind,
    ActionRecord,
    ActionStatus,
    Resolution,
)
from action_review.models.config import ReviewConfig
from action_review.models.ledger import LedgerEntry
from action_review.models.notification import NotificationType, ReviewNotification
from action_review.models.transition import ReviewEvent, ReviewOutcome, Transition

__all__ = [
    "ActionKind",
    "ActionRecord",
    "ActionStatus",
    "LedgerEntry",
    "NotificationType",
    "Resolution",
    "ReviewConfig",
    "ReviewEvent",
    "ReviewNotification",
    "ReviewOutcome",
    "Transition",
]
