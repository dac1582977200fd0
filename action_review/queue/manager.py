"""
Action Queue: the authoritative in-memory set of Action Records under review.

Written to by: the AI generator (enqueue) + the Review Service (update/remove)
Read by: reviewers and the HTTP adapter

Every mutation runs under a single lock, so a transition is either fully
visible or not visible at all. Records are frozen; readers hold immutable
snapshots.
"""

import logging
import threading
from typing import Callable, Dict, Iterator, List, Optional

from action_review.errors import DuplicateIdError, NotFoundError
from action_review.models.action import ActionKind, ActionRecord, ActionStatus

logger = logging.getLogger(__name__)

Predicate = Callable[[ActionRecord], bool]
Mutator = Callable[[ActionRecord], Optional[ActionRecord]]


class QueueView:
    """
    Lazy, restartable view over the queue. Each iteration takes a fresh
    snapshot, so iterating twice reflects any changes in between.
    """

    def __init__(
        self,
        queue: "ActionQueue",
        predicate: Optional[Predicate] = None,
        key: Optional[Callable[[ActionRecord], object]] = None,
        reverse: bool = False,
    ):
        self._queue = queue
        self._predicate = predicate
        self._key = key
        self._reverse = reverse

    def __iter__(self) -> Iterator[ActionRecord]:
        records = self._queue._snapshot()
        if self._key is not None:
            records = sorted(records, key=self._key, reverse=self._reverse)
        for record in records:
            if self._predicate is None or self._predicate(record):
                yield record

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def first(self) -> Optional[ActionRecord]:
        return next(iter(self), None)


class ActionQueue:
    """
    In-memory action queue. Insertion-ordered.
    Instantiate one per process or per reviewer session; ``clear`` tears it down.
    """

    def __init__(self):
        self._records: Dict[str, ActionRecord] = {}
        self._lock = threading.RLock()
        self._total_seen = 0
        self._total_completed = 0

    def _snapshot(self) -> List[ActionRecord]:
        with self._lock:
            return list(self._records.values())

    def enqueue(self, record: ActionRecord) -> ActionRecord:
        """Insert a new record. Fails if the id is already queued."""
        with self._lock:
            if record.id in self._records:
                raise DuplicateIdError(
                    f"Action {record.id} is already queued.", action_id=record.id
                )
            self._records[record.id] = record
            self._total_seen += 1
            if record.is_terminal:
                self._total_completed += 1
        logger.debug(f"Enqueued action {record.id} ({record.kind.value}, {record.status.value})")
        return record

    def get(self, action_id: str) -> ActionRecord:
        """Get a record by id."""
        with self._lock:
            record = self._records.get(action_id)
        if record is None:
            raise NotFoundError(f"Action {action_id} not found.", action_id=action_id)
        return record

    def remove(self, action_id: str) -> ActionRecord:
        """Remove a record and return it."""
        with self._lock:
            record = self._records.pop(action_id, None)
        if record is None:
            raise NotFoundError(f"Action {action_id} not found.", action_id=action_id)
        logger.debug(f"Removed action {action_id}")
        return record

    def update(self, action_id: str, mutator: Mutator) -> Optional[ActionRecord]:
        """
        Atomically replace a record with ``mutator(record)``.

        A returned record replaces the current one (same id required); None
        removes it. If the mutator raises, the queue is left untouched and
        the exception propagates.
        """
        with self._lock:
            current = self._records.get(action_id)
            if current is None:
                raise NotFoundError(f"Action {action_id} not found.", action_id=action_id)

            updated = mutator(current)

            if updated is None:
                del self._records[action_id]
                return None
            if updated.id != action_id:
                raise ValueError(
                    f"Mutator changed the id of action {action_id} to {updated.id}."
                )
            if updated.is_terminal and not current.is_terminal:
                self._total_completed += 1
            self._records[action_id] = updated
            return updated

    def list(
        self,
        predicate: Optional[Predicate] = None,
        status: Optional[ActionStatus] = None,
        kind: Optional[ActionKind] = None,
        key: Optional[Callable[[ActionRecord], object]] = None,
        reverse: bool = False,
    ) -> QueueView:
        """Records matching every given filter, oldest first unless ``key`` is given."""
        filters = []
        if status is not None:
            filters.append(lambda r: r.status == status)
        if kind is not None:
            filters.append(lambda r: r.kind == kind)
        if predicate is not None:
            filters.append(predicate)

        def matches(record: ActionRecord) -> bool:
            return all(f(record) for f in filters)

        return QueueView(self, predicate=matches if filters else None, key=key, reverse=reverse)

    def count(self) -> int:
        with self._lock:
            return len(self._records)

    def __len__(self) -> int:
        return self.count()

    def __contains__(self, action_id: object) -> bool:
        with self._lock:
            return action_id in self._records

    def stats(self) -> dict:
        """
        Counts by status and kind, plus the share of seen actions that were
        completed. Archived and purged records still count as completed.
        """
        with self._lock:
            records = list(self._records.values())
            total_seen = self._total_seen
            total_completed = self._total_completed

        by_status = {s.value: 0 for s in ActionStatus}
        by_kind = {k.value: 0 for k in ActionKind}
        for r in records:
            by_status[r.status.value] += 1
            by_kind[r.kind.value] += 1

        approval_rate = round(total_completed / total_seen, 3) if total_seen else 0.0
        return {
            "total": len(records),
            "total_seen": total_seen,
            "total_completed": total_completed,
            "by_status": by_status,
            "by_kind": by_kind,
            "approval_rate": approval_rate,
        }

    def purge_completed(self) -> List[ActionRecord]:
        """Remove every completed record and return them, oldest first."""
        with self._lock:
            done = [r for r in self._records.values() if r.is_terminal]
            for r in done:
                del self._records[r.id]
        if done:
            logger.info(f"Purged {len(done)} completed actions")
        return done

    def clear(self) -> None:
        """Drop all records (teardown)."""
        with self._lock:
            self._records.clear()
            self._total_seen = 0
            self._total_completed = 0
