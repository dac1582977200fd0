"""Tests for the Action Queue."""

import threading

import pytest

from action_review.errors import DuplicateIdError, NotFoundError
from action_review.models.action import ActionKind, ActionRecord, ActionStatus
from action_review.queue.manager import ActionQueue


def _make_record(
    action_id: str,
    kind: ActionKind = ActionKind.EMAIL,
    status: ActionStatus = ActionStatus.NEEDS_APPROVAL,
    confidence: float = 5.0,
) -> ActionRecord:
    return ActionRecord(
        id=action_id,
        kind=kind,
        subject_id=f"LD-{action_id}",
        subject_name="Test Lead",
        description="Test action",
        status=status,
        content="Draft",
        confidence_score=confidence,
    )


class TestEnqueueAndGet:
    def setup_method(self):
        self.queue = ActionQueue()

    def test_round_trip(self):
        record = _make_record("AI-001")
        self.queue.enqueue(record)
        assert self.queue.get("AI-001") == record
        assert "AI-001" in self.queue
        assert len(self.queue) == 1

    def test_duplicate_id(self):
        self.queue.enqueue(_make_record("X"))
        with pytest.raises(DuplicateIdError):
            self.queue.enqueue(_make_record("X", kind=ActionKind.CALL))
        assert self.queue.count() == 1
        assert self.queue.get("X").kind == ActionKind.EMAIL

    def test_get_missing(self):
        with pytest.raises(NotFoundError):
            self.queue.get("nope")

    def test_remove(self):
        self.queue.enqueue(_make_record("A"))
        removed = self.queue.remove("A")
        assert removed.id == "A"
        assert self.queue.count() == 0
        with pytest.raises(NotFoundError):
            self.queue.remove("A")


class TestList:
    def setup_method(self):
        self.queue = ActionQueue()
        self.queue.enqueue(_make_record("A", confidence=3.0))
        self.queue.enqueue(_make_record("B", kind=ActionKind.CALL, confidence=9.0))
        self.queue.enqueue(
            _make_record("C", kind=ActionKind.SCORING, status=ActionStatus.PENDING, confidence=6.0)
        )

    def test_insertion_order(self):
        assert [r.id for r in self.queue.list()] == ["A", "B", "C"]

    def test_filter_by_status_and_kind(self):
        assert [r.id for r in self.queue.list(status=ActionStatus.PENDING)] == ["C"]
        assert [r.id for r in self.queue.list(kind=ActionKind.CALL)] == ["B"]
        assert list(self.queue.list(status=ActionStatus.PENDING, kind=ActionKind.CALL)) == []

    def test_custom_predicate_and_key(self):
        view = self.queue.list(
            predicate=lambda r: r.confidence_score > 4,
            key=lambda r: r.confidence_score,
            reverse=True,
        )
        assert [r.id for r in view] == ["B", "C"]

    def test_view_is_restartable_and_lazy(self):
        view = self.queue.list(kind=ActionKind.EMAIL)
        assert [r.id for r in view] == ["A"]
        self.queue.enqueue(_make_record("D"))
        assert [r.id for r in view] == ["A", "D"]
        assert len(view) == 2
        assert view.first().id == "A"


class TestUpdate:
    def setup_method(self):
        self.queue = ActionQueue()
        self.queue.enqueue(_make_record("A"))

    def test_replace(self):
        updated = self.queue.update(
            "A", lambda r: r.model_copy(update={"status": ActionStatus.COMPLETED})
        )
        assert updated.status == ActionStatus.COMPLETED
        assert self.queue.get("A").status == ActionStatus.COMPLETED

    def test_none_removes(self):
        assert self.queue.update("A", lambda r: None) is None
        assert "A" not in self.queue

    def test_failing_mutator_leaves_record(self):
        before = self.queue.get("A")

        def boom(record):
            raise RuntimeError("mutator failed")

        with pytest.raises(RuntimeError):
            self.queue.update("A", boom)
        assert self.queue.get("A") == before

    def test_id_change_refused(self):
        with pytest.raises(ValueError):
            self.queue.update("A", lambda r: r.model_copy(update={"id": "Z"}))
        assert "A" in self.queue
        assert "Z" not in self.queue

    def test_missing(self):
        with pytest.raises(NotFoundError):
            self.queue.update("missing", lambda r: r)

    def test_concurrent_updates_serialized(self):
        wins = []
        errors = []
        barrier = threading.Barrier(8)

        def complete(record):
            if record.status == ActionStatus.COMPLETED:
                raise RuntimeError("already completed")
            return record.model_copy(update={"status": ActionStatus.COMPLETED})

        def worker():
            barrier.wait()
            try:
                self.queue.update("A", complete)
                wins.append(1)
            except RuntimeError:
                errors.append(1)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(wins) == 1
        assert len(errors) == 7


class TestStatsAndPurge:
    def test_stats(self):
        queue = ActionQueue()
        queue.enqueue(_make_record("A"))
        queue.enqueue(_make_record("B", status=ActionStatus.COMPLETED))
        queue.enqueue(_make_record("C", kind=ActionKind.SCORING, status=ActionStatus.PENDING))
        queue.enqueue(_make_record("D", status=ActionStatus.COMPLETED))

        stats = queue.stats()
        assert stats["total"] == 4
        assert stats["by_status"] == {"pending": 1, "needs_approval": 1, "completed": 2}
        assert stats["by_kind"]["email"] == 3
        assert stats["by_kind"]["scoring"] == 1
        assert stats["approval_rate"] == 0.5

    def test_empty_stats(self):
        assert ActionQueue().stats()["approval_rate"] == 0.0

    def test_purge_completed(self):
        queue = ActionQueue()
        queue.enqueue(_make_record("A", status=ActionStatus.COMPLETED))
        queue.enqueue(_make_record("B"))
        queue.enqueue(_make_record("C", status=ActionStatus.COMPLETED))

        purged = queue.purge_completed()
        assert [r.id for r in purged] == ["A", "C"]
        assert [r.id for r in queue.list()] == ["B"]

    def test_approval_rate_survives_removal(self):
        queue = ActionQueue()
        queue.enqueue(_make_record("A"))
        queue.enqueue(_make_record("B"))
        queue.update("A", lambda r: r.model_copy(update={"status": ActionStatus.COMPLETED}))
        assert queue.stats()["approval_rate"] == 0.5

        queue.purge_completed()
        stats = queue.stats()
        assert stats["total"] == 1
        assert stats["total_completed"] == 1
        assert stats["approval_rate"] == 0.5

    def test_completion_counted_once(self):
        queue = ActionQueue()
        queue.enqueue(_make_record("A"))
        queue.update("A", lambda r: r.model_copy(update={"status": ActionStatus.COMPLETED}))
        queue.update("A", lambda r: r.model_copy(update={"content": "Other"}))
        assert queue.stats()["total_completed"] == 1
        assert queue.stats()["approval_rate"] == 1.0

    def test_discarded_not_counted(self):
        queue = ActionQueue()
        queue.enqueue(_make_record("A"))
        queue.update("A", lambda r: None)
        assert queue.stats()["total_completed"] == 0
        assert queue.stats()["approval_rate"] == 0.0

    def test_clear(self):
        queue = ActionQueue()
        queue.enqueue(_make_record("A", status=ActionStatus.COMPLETED))
        queue.clear()
        assert queue.count() == 0
        assert queue.stats()["total_seen"] == 0
        assert queue.stats()["total_completed"] == 0
