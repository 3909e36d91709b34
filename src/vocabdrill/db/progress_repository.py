"""Progress store: per-(user, item) mastery records.

Pure data access. The only writer is the scheduler's update step, which
goes through ``upsert_progress``: an optimistic compare-and-update on the
``version`` column. A lost race surfaces as ConflictError, never as a
silently overwritten record.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any

import structlog

from vocabdrill.core.errors import ConflictError
from vocabdrill.db.database import use_db
from vocabdrill.utils.timestamps import from_iso, to_iso, utc_now

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ProgressRecord:
    """Mastery state of one item for one user."""

    user_id: str
    vocabulary_id: str
    level: int
    next_review: datetime
    correct_count: int
    total_count: int
    version: int = 0  # 0 = not yet persisted

    def is_due(self, now: datetime) -> bool:
        """True when the next review time has arrived."""
        return self.next_review <= now

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "user_id": self.user_id,
            "vocabulary_id": self.vocabulary_id,
            "level": self.level,
            "next_review": to_iso(self.next_review),
            "correct_count": self.correct_count,
            "total_count": self.total_count,
            "version": self.version,
        }


def get_progress(
    user_id: str,
    item_id: str,
    conn: sqlite3.Connection | None = None,
) -> ProgressRecord | None:
    """Get the progress record for (user, item).

    Returns:
        ProgressRecord if the item has been scored before, None otherwise
    """
    with use_db(conn) as db:
        row = db.execute(
            "SELECT * FROM progress WHERE user_id = ? AND vocabulary_id = ?",
            (user_id, item_id),
        ).fetchone()

    if row is None:
        return None

    return _row_to_record(row)


def list_progress_for_user(
    user_id: str,
    conn: sqlite3.Connection | None = None,
) -> dict[str, ProgressRecord]:
    """Get every progress record of a user keyed by vocabulary_id."""
    with use_db(conn) as db:
        rows = db.execute("SELECT * FROM progress WHERE user_id = ?", (user_id,)).fetchall()

    return {row["vocabulary_id"]: _row_to_record(row) for row in rows}


def upsert_progress(
    record: ProgressRecord,
    expected_version: int | None,
    conn: sqlite3.Connection | None = None,
) -> ProgressRecord:
    """Create or update a progress record with optimistic concurrency.

    Args:
        record: New state to persist (its own ``version`` is ignored)
        expected_version: Version read before computing ``record``;
            None when no record existed.
        conn: Optional connection to join an open transaction

    Returns:
        The persisted record carrying its new version

    Raises:
        ConflictError: If another writer created or changed the record
            since it was read
    """
    updated_at = to_iso(utc_now())

    with use_db(conn) as db:
        if expected_version is None:
            try:
                db.execute(
                    """
                    INSERT INTO progress (
                        user_id, vocabulary_id, level, next_review,
                        correct_count, total_count, version, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, 1, ?)
                    """,
                    (
                        record.user_id,
                        record.vocabulary_id,
                        record.level,
                        to_iso(record.next_review),
                        record.correct_count,
                        record.total_count,
                        updated_at,
                    ),
                )
            except sqlite3.IntegrityError as e:
                if "UNIQUE" not in str(e):
                    raise
                raise ConflictError(record.user_id, record.vocabulary_id, None) from e
            new_version = 1
        else:
            cursor = db.execute(
                """
                UPDATE progress SET
                    level = ?,
                    next_review = ?,
                    correct_count = ?,
                    total_count = ?,
                    version = version + 1,
                    updated_at = ?
                WHERE user_id = ? AND vocabulary_id = ? AND version = ?
                """,
                (
                    record.level,
                    to_iso(record.next_review),
                    record.correct_count,
                    record.total_count,
                    updated_at,
                    record.user_id,
                    record.vocabulary_id,
                    expected_version,
                ),
            )
            if cursor.rowcount == 0:
                raise ConflictError(record.user_id, record.vocabulary_id, expected_version)
            new_version = expected_version + 1

    logger.debug(
        "progress.upserted",
        user_id=record.user_id,
        vocabulary_id=record.vocabulary_id,
        level=record.level,
        version=new_version,
    )
    return replace(record, version=new_version)


def _row_to_record(row: sqlite3.Row) -> ProgressRecord:
    """Convert database row to ProgressRecord."""
    return ProgressRecord(
        user_id=row["user_id"],
        vocabulary_id=row["vocabulary_id"],
        level=row["level"],
        next_review=from_iso(row["next_review"]),
        correct_count=row["correct_count"],
        total_count=row["total_count"],
        version=row["version"],
    )
