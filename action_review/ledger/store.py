"""
Decision Ledger: append-only, cryptographically chained audit of review outcomes.

Every notification the Review Service emits can be appended here, so a
completed or discarded action keeps an audit record after it leaves the queue.

Behavioral Contract:
- Append-only. No entry is ever modified or deleted.
- Each entry is hashed and chained to the previous entry (tamper-evident).
- Queryable by action id and recency.
"""

import hashlib
import json
import logging
import sqlite3
import threading
from typing import List, Optional

from action_review.models.ledger import LedgerEntry
from action_review.models.notification import ReviewNotification

logger = logging.getLogger(__name__)


def _compute_signature(entry: LedgerEntry) -> str:
    entry_dict = entry.model_dump(mode="json")
    # Zero out signature before hashing (it's what we're computing)
    entry_dict["signature"] = ""
    entry_bytes = json.dumps(entry_dict, sort_keys=True, default=str).encode()
    return hashlib.sha256(entry_bytes).hexdigest()


class DecisionLedger:
    """
    Append-only review decision ledger, backed by SQLite.
    Defaults to an in-memory database.
    """

    def __init__(self, db_path: str = ":memory:"):
        self.db_path = db_path
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.Lock()
        self._init_schema()

    def _init_schema(self) -> None:
        """Create the ledger table if it doesn't exist."""
        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS review_ledger (
                notification_id TEXT PRIMARY KEY,
                action_id TEXT NOT NULL,
                type TEXT NOT NULL,
                outcome TEXT NOT NULL,
                emitted_at TEXT NOT NULL,
                signature TEXT NOT NULL,
                prior_record_hash TEXT,
                entry_json TEXT NOT NULL
            )
        """)
        self._conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_review_ledger_action_id ON review_ledger(action_id)
        """)
        self._conn.commit()

    def append(self, notification: ReviewNotification) -> LedgerEntry:
        """Append a notification, signing it and chaining it to the previous entry."""
        with self._lock:
            entry = LedgerEntry(
                notification=notification,
                prior_record_hash=self._get_latest_hash(),
            )
            entry.signature = _compute_signature(entry)

            self._conn.execute(
                """
                INSERT INTO review_ledger (
                    notification_id, action_id, type, outcome, emitted_at,
                    signature, prior_record_hash, entry_json
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    notification.notification_id,
                    notification.id,
                    notification.type.value,
                    notification.outcome,
                    notification.emitted_at.isoformat(),
                    entry.signature,
                    entry.prior_record_hash,
                    entry.model_dump_json(),
                ),
            )
            self._conn.commit()
        logger.debug(
            f"Ledger appended {notification.notification_id} for action {notification.id}"
        )
        return entry

    def _get_latest_hash(self) -> Optional[str]:
        """Get the signature of the most recent entry."""
        row = self._conn.execute(
            "SELECT signature FROM review_ledger ORDER BY rowid DESC LIMIT 1"
        ).fetchone()
        return row["signature"] if row else None

    def _deserialize(self, row: sqlite3.Row) -> LedgerEntry:
        return LedgerEntry.model_validate_json(row["entry_json"])

    def get_by_id(self, notification_id: str) -> Optional[LedgerEntry]:
        """Get a specific entry by notification id."""
        row = self._conn.execute(
            "SELECT entry_json FROM review_ledger WHERE notification_id = ?",
            (notification_id,),
        ).fetchone()
        return self._deserialize(row) if row else None

    def query_by_action(self, action_id: str) -> List[LedgerEntry]:
        """All entries for one action, oldest first."""
        rows = self._conn.execute(
            "SELECT entry_json FROM review_ledger WHERE action_id = ? ORDER BY rowid",
            (action_id,),
        ).fetchall()
        return [self._deserialize(r) for r in rows]

    def query_recent(self, limit: int = 50) -> List[LedgerEntry]:
        """The most recent entries, oldest first."""
        rows = self._conn.execute(
            "SELECT entry_json FROM review_ledger ORDER BY rowid DESC LIMIT ?",
            (limit,),
        ).fetchall()
        return [self._deserialize(r) for r in reversed(rows)]

    def verify_chain_integrity(self) -> bool:
        """Verify no entry has been tampered with or unlinked."""
        rows = self._conn.execute(
            "SELECT entry_json, signature FROM review_ledger ORDER BY rowid"
        ).fetchall()

        prior_sig = None
        for row in rows:
            entry = self._deserialize(row)
            if entry.signature != row["signature"]:
                return False
            if _compute_signature(entry) != entry.signature:
                return False
            if entry.prior_record_hash != prior_sig:
                return False
            prior_sig = entry.signature
        return True

    def count(self) -> int:
        """Total number of ledger entries."""
        row = self._conn.execute("SELECT COUNT(*) as cnt FROM review_ledger").fetchone()
        return row["cnt"]

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()
