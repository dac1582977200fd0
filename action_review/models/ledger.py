"""Ledger Entry: one hash-chained row of the decision ledger."""

from typing import Optional

from pydantic import BaseModel

from action_review.models.notification import ReviewNotification


class LedgerEntry(BaseModel):
    """
    Audit record for one emitted notification.
    Every entry answers: which action, what happened to it, with what content.
    """

    notification: ReviewNotification

    # INTEGRITY
    signature: str = ""
    prior_record_hash: Optional[str] = None
