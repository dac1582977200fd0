"""
Review State Machine: governs valid transitions for an Action Record.

  pending ──auto_apply──▶ completed            (auto-apply kinds only)
  pending ──submit──────▶ needs_approval       (kinds that need a reviewer)
  needs_approval ──approve / edit_approve──▶ completed
  needs_approval ──reject──▶ (removed)
  any ──view──▶ (unchanged)

Behavioral Contract:
- Pure and stateless: takes a record, returns a Transition with a new record
- Never mutates the record it was given
- A request from the wrong state raises InvalidTransitionError
- A content guard failure raises ValidationError
- Completed is terminal; only ``view`` applies to it
"""

from datetime import datetime
from typing import Dict, List, Optional

from action_review.errors import InvalidTransitionError, ValidationError
from action_review.models.action import ActionRecord, ActionStatus, Resolution, utc_now
from action_review.models.config import ReviewConfig
from action_review.models.transition import ReviewEvent, Transition


# Event -> the status a record must be in for the event to apply
_REQUIRED_STATUS: Dict[ReviewEvent, ActionStatus] = {
    ReviewEvent.AUTO_APPLY: ActionStatus.PENDING,
    ReviewEvent.SUBMIT: ActionStatus.PENDING,
    ReviewEvent.APPROVE: ActionStatus.NEEDS_APPROVAL,
    ReviewEvent.EDIT_APPROVE: ActionStatus.NEEDS_APPROVAL,
    ReviewEvent.REJECT: ActionStatus.NEEDS_APPROVAL,
}


def validate_content(content: Optional[str], max_length: int) -> str:
    """Check replacement content: non-empty after trimming and within the size limit."""
    if content is None or not content.strip():
        raise ValidationError("Edited content must not be empty.")
    if len(content) > max_length:
        raise ValidationError(
            f"Edited content is {len(content)} characters; the limit is {max_length}."
        )
    return content


class ReviewStateMachine:
    """Stateless transition logic for Action Records."""

    def __init__(self, config: Optional[ReviewConfig] = None):
        self.config = config or ReviewConfig()

    def allowed_events(self, record: ActionRecord) -> List[ReviewEvent]:
        """Events that would currently succeed on ``record`` (content guards aside)."""
        events = [ReviewEvent.VIEW]
        if record.status == ActionStatus.PENDING:
            if self.config.requires_approval(record.kind):
                events.append(ReviewEvent.SUBMIT)
            else:
                events.append(ReviewEvent.AUTO_APPLY)
        elif record.status == ActionStatus.NEEDS_APPROVAL:
            events.extend([ReviewEvent.APPROVE, ReviewEvent.EDIT_APPROVE, ReviewEvent.REJECT])
        return events

    def apply(
        self,
        record: ActionRecord,
        event: ReviewEvent,
        content: Optional[str] = None,
        current_time: Optional[datetime] = None,
    ) -> Transition:
        """Apply ``event`` to ``record`` and return the resulting Transition."""
        if current_time is None:
            current_time = utc_now()

        if event == ReviewEvent.VIEW:
            return Transition(
                event=event,
                action_id=record.id,
                from_status=record.status,
                to_status=record.status,
                record=record,
            )

        # Content is checked before state for edit+approve
        if event == ReviewEvent.EDIT_APPROVE:
            content = validate_content(content, self.config.max_content_length)

        self._check_status(record, event)

        if event == ReviewEvent.AUTO_APPLY:
            if self.config.requires_approval(record.kind):
                raise InvalidTransitionError(
                    f"Action {record.id} of kind '{record.kind.value}' requires human approval "
                    f"and cannot be auto-applied.",
                    action_id=record.id,
                    status=record.status.value,
                    event=event.value,
                )
            return self._complete(record, event, Resolution.APPLIED, current_time)

        if event == ReviewEvent.SUBMIT:
            if not self.config.requires_approval(record.kind):
                raise InvalidTransitionError(
                    f"Action {record.id} of kind '{record.kind.value}' is auto-applied "
                    f"and is never submitted for review.",
                    action_id=record.id,
                    status=record.status.value,
                    event=event.value,
                )
            return Transition(
                event=event,
                action_id=record.id,
                from_status=record.status,
                to_status=ActionStatus.NEEDS_APPROVAL,
                record=record.model_copy(update={"status": ActionStatus.NEEDS_APPROVAL}),
            )

        if event == ReviewEvent.APPROVE:
            if self.config.requires_content(record.kind) and not (
                record.content and record.content.strip()
            ):
                raise ValidationError(
                    f"Action {record.id} of kind '{record.kind.value}' has no content to send.",
                    action_id=record.id,
                )
            return self._complete(record, event, Resolution.SENT_AS_IS, current_time)

        if event == ReviewEvent.EDIT_APPROVE:
            edited = record.model_copy(update={"content": content})
            return self._complete(edited, event, Resolution.SENT_EDITED, current_time)

        # REJECT
        return Transition(
            event=event,
            action_id=record.id,
            from_status=record.status,
            to_status=None,
            record=record,
            outcome="discarded",
        )

    def _check_status(self, record: ActionRecord, event: ReviewEvent) -> None:
        required = _REQUIRED_STATUS[event]
        if record.status != required:
            raise InvalidTransitionError(
                f"Cannot {event.value} action {record.id}: status is "
                f"{record.status.value}, expected {required.value}.",
                action_id=record.id,
                status=record.status.value,
                event=event.value,
            )

    def _complete(
        self,
        record: ActionRecord,
        event: ReviewEvent,
        resolution: Resolution,
        current_time: datetime,
    ) -> Transition:
        completed = record.model_copy(update={
            "status": ActionStatus.COMPLETED,
            "completed_at": current_time,
            "resolution": resolution,
        })
        return Transition(
            event=event,
            action_id=record.id,
            from_status=record.status,
            to_status=ActionStatus.COMPLETED,
            record=completed,
            outcome=resolution.value,
        )
