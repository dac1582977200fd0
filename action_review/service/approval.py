"""
Review Service: the orchestration layer a UI or API calls.

Wraps Action Queue + Review State Machine calls into single-purpose
operations and emits exactly one notification per completed operation.

Behavioral Contract:
- The state check and the write happen inside one ``queue.update`` call
- Notifications are published after the queue lock is released
- Errors are raised to the caller, never retried
- A sink failure does not undo a committed transition; it is reported as
  ``delivered=False``
"""

import logging
from typing import Callable, Optional
from uuid import uuid4

from action_review.errors import InvalidTransitionError, ReviewError, ValidationError
from action_review.models.action import ActionKind, ActionRecord, ActionStatus
from action_review.models.config import ReviewConfig
from action_review.models.notification import NotificationType, ReviewNotification
from action_review.models.transition import ReviewEvent, ReviewOutcome, Transition
from action_review.notifications.sinks import InMemorySink, NotificationSink
from action_review.queue.manager import ActionQueue, QueueView
from action_review.review.machine import ReviewStateMachine

logger = logging.getLogger(__name__)

_NOTIFICATION_TYPES = {
    ReviewEvent.AUTO_APPLY: NotificationType.SENT,
    ReviewEvent.APPROVE: NotificationType.SENT,
    ReviewEvent.EDIT_APPROVE: NotificationType.SENT,
    ReviewEvent.REJECT: NotificationType.DISCARDED,
}


def new_action_id() -> str:
    return f"act_{uuid4().hex[:12]}"


class ReviewService:
    """Human-in-the-loop review of AI-proposed actions."""

    def __init__(
        self,
        queue: Optional[ActionQueue] = None,
        sink: Optional[NotificationSink] = None,
        config: Optional[ReviewConfig] = None,
        state_machine: Optional[ReviewStateMachine] = None,
    ):
        self.config = config if config is not None else ReviewConfig()
        self.queue = queue if queue is not None else ActionQueue()
        self.sink = sink if sink is not None else InMemorySink()
        self.state_machine = (
            state_machine if state_machine is not None else ReviewStateMachine(self.config)
        )

    # --- Queue pass-throughs ---

    def enqueue(self, record: ActionRecord) -> ActionRecord:
        """Accept a record from the AI generator."""
        if record.status == ActionStatus.COMPLETED:
            raise ValidationError(
                f"Action {record.id} cannot be enqueued as completed.",
                action_id=record.id,
            )
        record = self.queue.enqueue(record)
        logger.info(
            f"Queued {record.kind.value} action {record.id} for {record.subject_id} "
            f"({record.status.value})"
        )
        return record

    def list(self, **filters) -> QueueView:
        return self.queue.list(**filters)

    def get(self, action_id: str) -> ActionRecord:
        return self.queue.get(action_id)

    def view(self, action_id: str) -> ActionRecord:
        """Read-only look at a record; valid in every state."""
        record = self.queue.get(action_id)
        return self.state_machine.apply(record, ReviewEvent.VIEW).record

    def allowed_events(self, action_id: str):
        return self.state_machine.allowed_events(self.queue.get(action_id))

    # --- Transitions ---

    def approve(self, action_id: str) -> ReviewOutcome:
        """
        Approve as-is. A pending record of an auto-apply kind is auto-applied
        instead; anything else must be awaiting approval.
        """
        def choose(record: ActionRecord) -> ReviewEvent:
            if (
                record.status == ActionStatus.PENDING
                and not self.config.requires_approval(record.kind)
            ):
                return ReviewEvent.AUTO_APPLY
            return ReviewEvent.APPROVE

        return self._run(action_id, choose)

    def auto_apply(self, action_id: str) -> ReviewOutcome:
        """Complete a pending action that needs no human review."""
        return self._run(action_id, lambda _: ReviewEvent.AUTO_APPLY)

    def edit_and_approve(self, action_id: str, new_content: str) -> ReviewOutcome:
        """Replace the draft content, then approve."""
        return self._run(action_id, lambda _: ReviewEvent.EDIT_APPROVE, content=new_content)

    def reject(self, action_id: str) -> ReviewOutcome:
        """Discard an action awaiting approval; it leaves the queue."""
        return self._run(action_id, lambda _: ReviewEvent.REJECT)

    def submit(self, action_id: str) -> ReviewOutcome:
        """Route a pending action to a human reviewer."""
        return self._run(action_id, lambda _: ReviewEvent.SUBMIT)

    def archive(self, action_id: str) -> ActionRecord:
        """Remove a completed action from the active queue and return it."""
        def take(record: ActionRecord) -> None:
            if not record.is_terminal:
                raise InvalidTransitionError(
                    f"Cannot archive action {action_id}: status is {record.status.value}, "
                    f"expected completed.",
                    action_id=action_id,
                    status=record.status.value,
                    event="archive",
                )
            archived.append(record)
            return None

        archived = []
        self.queue.update(action_id, take)
        logger.info(f"Archived action {action_id}")
        return archived[0]

    def _run(
        self,
        action_id: str,
        choose_event: Callable[[ActionRecord], ReviewEvent],
        content: Optional[str] = None,
    ) -> ReviewOutcome:
        """Apply one transition atomically, then notify."""
        holder = {}

        def mutate(record: ActionRecord) -> Optional[ActionRecord]:
            event = choose_event(record)
            transition = self.state_machine.apply(record, event, content=content)
            holder["transition"] = transition
            return None if transition.removed else transition.record

        try:
            self.queue.update(action_id, mutate)
        except ReviewError as e:
            logger.warning(f"Review request on {action_id} refused: {e}")
            raise

        transition: Transition = holder["transition"]
        logger.info(
            f"Action {action_id}: {transition.event.value} "
            f"{transition.from_status.value} -> "
            f"{transition.to_status.value if transition.to_status else 'removed'}"
        )

        notification = self._build_notification(transition)
        delivered = self._publish(notification) if notification else False
        return ReviewOutcome(
            transition=transition,
            notification=notification,
            delivered=delivered,
        )

    def _build_notification(self, transition: Transition) -> Optional[ReviewNotification]:
        type_ = _NOTIFICATION_TYPES.get(transition.event)
        if type_ is None:
            return None
        record = transition.record
        return ReviewNotification(
            id=record.id,
            notification_id=f"ntf_{uuid4().hex[:12]}",
            type=type_,
            kind=record.kind,
            subject_id=record.subject_id,
            outcome=transition.outcome,
            final_content=record.content if type_ == NotificationType.SENT else None,
        )

    def _publish(self, notification: ReviewNotification) -> bool:
        """Deliver at most once. The transition is already committed."""
        try:
            self.sink.publish(notification)
            return True
        except Exception:
            logger.exception(
                f"Notification {notification.notification_id} for action {notification.id} "
                f"was not delivered"
            )
            return False


def make_action(
    kind: ActionKind,
    subject_id: str,
    subject_name: str,
    description: str,
    status: ActionStatus = ActionStatus.NEEDS_APPROVAL,
    content: Optional[str] = None,
    confidence_score: Optional[float] = None,
    action_id: Optional[str] = None,
) -> ActionRecord:
    """Convenience constructor for producers that don't assign their own ids."""
    return ActionRecord(
        id=action_id or new_action_id(),
        kind=kind,
        subject_id=subject_id,
        subject_name=subject_name,
        description=description,
        status=status,
        content=content,
        confidence_score=confidence_score,
    )
