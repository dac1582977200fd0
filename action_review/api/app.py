"""
Action Review API: FastAPI endpoints.

A thin presentation adapter over the Review Service for:
- Queueing AI-proposed actions
- Listing and inspecting the review queue
- Approve / edit+approve / reject / submit / archive
- Ledger queries
"""

import logging
from typing import Optional

from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel, Field

from action_review.errors import ReviewError
from action_review.ledger.store import DecisionLedger
from action_review.models.action import ActionKind, ActionRecord, ActionStatus
from action_review.models.config import ReviewConfig
from action_review.models.transition import ReviewOutcome
from action_review.notifications.sinks import (
    CompositeSink,
    InMemorySink,
    LedgerSink,
    LoggingSink,
)
from action_review.queue.manager import ActionQueue
from action_review.service.approval import ReviewService, new_action_id


# --- Request/Response Models ---

class ActionCreateRequest(BaseModel):
    id: Optional[str] = None
    kind: ActionKind
    subject_id: str
    subject_name: str
    description: str
    status: ActionStatus = ActionStatus.NEEDS_APPROVAL
    content: Optional[str] = None
    confidence_score: Optional[float] = Field(default=None, ge=0.0, le=10.0)


class EditApproveRequest(BaseModel):
    content: str


def _http_error(e: ReviewError) -> HTTPException:
    return HTTPException(e.http_status, str(e))


def _outcome_json(outcome: ReviewOutcome) -> dict:
    return outcome.model_dump(mode="json")


# --- Application Factory ---

def create_app(
    queue: Optional[ActionQueue] = None,
    ledger: Optional[DecisionLedger] = None,
    config: Optional[ReviewConfig] = None,
    sink: Optional[InMemorySink] = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""

    cfg = config if config is not None else ReviewConfig()
    logging.getLogger("action_review").setLevel(cfg.log_level)

    app = FastAPI(
        title="Action Review API",
        description="Human-in-the-loop review of AI-proposed CRM actions",
        version="0.1.0",
    )

    # Initialize components
    q = queue if queue is not None else ActionQueue()
    ld = ledger if ledger is not None else DecisionLedger(db_path=cfg.ledger_path)
    inbox = sink if sink is not None else InMemorySink()
    service = ReviewService(
        queue=q,
        sink=CompositeSink([inbox, LedgerSink(ld), LoggingSink()]),
        config=cfg,
    )

    # Store components on app state for access in endpoints
    app.state.queue = q
    app.state.ledger = ld
    app.state.notifications = inbox
    app.state.review_service = service

    # === ACTIONS ===

    @app.post("/actions", status_code=201)
    def create_action(req: ActionCreateRequest):
        """Queue an AI-proposed action."""
        record = ActionRecord(
            id=req.id or new_action_id(),
            kind=req.kind,
            subject_id=req.subject_id,
            subject_name=req.subject_name,
            description=req.description,
            status=req.status,
            content=req.content,
            confidence_score=req.confidence_score,
        )
        try:
            service.enqueue(record)
        except ReviewError as e:
            raise _http_error(e)
        return record.model_dump(mode="json")

    @app.get("/actions")
    def list_actions(status: Optional[ActionStatus] = None, kind: Optional[ActionKind] = None):
        """Queued actions, oldest first."""
        return [r.model_dump(mode="json") for r in service.list(status=status, kind=kind)]

    @app.get("/actions/stats")
    def action_stats():
        """Queue counts and approval rate."""
        return q.stats()

    @app.get("/actions/{action_id}")
    def get_action(action_id: str):
        try:
            return service.view(action_id).model_dump(mode="json")
        except ReviewError as e:
            raise _http_error(e)

    @app.get("/actions/{action_id}/transitions")
    def get_allowed_transitions(action_id: str):
        """Events currently valid for an action."""
        try:
            events = service.allowed_events(action_id)
        except ReviewError as e:
            raise _http_error(e)
        return {"action_id": action_id, "events": [e.value for e in events]}

    @app.post("/actions/{action_id}/approve")
    def approve_action(action_id: str):
        """Human approves the AI draft as-is."""
        try:
            return _outcome_json(service.approve(action_id))
        except ReviewError as e:
            raise _http_error(e)

    @app.post("/actions/{action_id}/edit-approve")
    def edit_and_approve_action(action_id: str, req: EditApproveRequest):
        """Human replaces the draft content and approves."""
        try:
            return _outcome_json(service.edit_and_approve(action_id, req.content))
        except ReviewError as e:
            raise _http_error(e)

    @app.post("/actions/{action_id}/submit")
    def submit_action(action_id: str):
        """Route a pending action to review."""
        try:
            return _outcome_json(service.submit(action_id))
        except ReviewError as e:
            raise _http_error(e)

    @app.post("/actions/{action_id}/reject")
    def reject_action(action_id: str):
        """Human discards the action."""
        try:
            return _outcome_json(service.reject(action_id))
        except ReviewError as e:
            raise _http_error(e)

    @app.delete("/actions/{action_id}")
    def archive_action(action_id: str):
        """Remove a completed action from the queue."""
        try:
            record = service.archive(action_id)
        except ReviewError as e:
            raise _http_error(e)
        return {"status": "archived", "action": record.model_dump(mode="json")}

    # === NOTIFICATIONS ===

    @app.get("/notifications")
    def list_notifications():
        """Notifications emitted since startup, oldest first."""
        return [n.model_dump(mode="json") for n in inbox.events]

    # === LEDGER ===

    @app.get("/ledger")
    def get_ledger(limit: int = Query(50, ge=1)):
        """Recent ledger entries."""
        return [e.model_dump(mode="json") for e in ld.query_recent(limit=limit)]

    @app.get("/ledger/verify")
    def verify_ledger():
        """Verify chain integrity."""
        return {
            "integrity_valid": ld.verify_chain_integrity(),
            "total_records": ld.count(),
        }

    @app.get("/ledger/by-action/{action_id}")
    def get_ledger_by_action(action_id: str):
        return [e.model_dump(mode="json") for e in ld.query_by_action(action_id)]

    # === CONFIG ===

    @app.get("/config")
    def get_config():
        """Current review configuration."""
        return cfg.model_dump(mode="json")

    return app


# Default application instance
app = create_app(config=ReviewConfig.from_env())
