"""Action Record: one AI-proposed action awaiting or having completed review."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ActionKind(str, Enum):
    EMAIL = "email"
    CALL = "call"
    FOLLOW_UP = "follow-up"
    SCORING = "scoring"


class ActionStatus(str, Enum):
    PENDING = "pending"                  # Generated, not yet routed to a reviewer
    NEEDS_APPROVAL = "needs_approval"    # Awaiting a human decision
    COMPLETED = "completed"              # Terminal


class Resolution(str, Enum):
    """How a completed action reached its terminal state."""
    APPLIED = "applied"          # Auto-applied, no human review
    SENT_AS_IS = "sent_as_is"    # Approved with the AI draft unchanged
    SENT_EDITED = "sent_edited"  # Human replaced the content, then approved


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ActionRecord(BaseModel):
    """
    A single proposed action. Frozen: the Review State Machine produces a new
    record for every transition, so no other writer can touch ``status``.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    kind: ActionKind
    subject_id: str                         # e.g., "LD-001"
    subject_name: str                       # e.g., "Mumbai Industries"
    description: str                        # e.g., "Follow-up email drafted"
    status: ActionStatus
    created_at: datetime = Field(default_factory=utc_now)
    content: Optional[str] = None           # Draft body, script, etc.
    confidence_score: Optional[float] = Field(default=None, ge=0.0, le=10.0)
    completed_at: Optional[datetime] = None
    resolution: Optional[Resolution] = None

    @property
    def is_terminal(self) -> bool:
        return self.status == ActionStatus.COMPLETED
