"""Session store: quiz sessions and their per-question answer records.

Append-only. Nothing here is read by the scheduler; history and stats are
the only consumers.
"""

from __future__ import annotations

import sqlite3
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable

import structlog

from vocabdrill.db.database import use_db
from vocabdrill.utils.timestamps import from_iso, to_iso

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class QuizSessionRecord:
    """Summary of one completed quiz attempt."""

    session_id: str
    user_id: str
    score: int
    total_questions: int
    time_spent: int
    completed_at: datetime

    @property
    def accuracy(self) -> float:
        """Fraction of correct answers (0.0 for an empty session)."""
        if self.total_questions == 0:
            return 0.0
        return self.score / self.total_questions

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "session_id": self.session_id,
            "user_id": self.user_id,
            "score": self.score,
            "total_questions": self.total_questions,
            "time_spent": self.time_spent,
            "completed_at": to_iso(self.completed_at),
        }


@dataclass(frozen=True)
class QuizAnswerRecord:
    """Outcome of one question within a session."""

    session_id: str
    vocabulary_id: str
    submitted_text: str
    correct: bool
    time_taken: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "session_id": self.session_id,
            "vocabulary_id": self.vocabulary_id,
            "submitted_text": self.submitted_text,
            "correct": self.correct,
            "time_taken": self.time_taken,
        }


def create_session(
    user_id: str,
    score: int,
    total_questions: int,
    time_spent: int,
    completed_at: datetime,
    conn: sqlite3.Connection | None = None,
) -> str:
    """Insert a quiz session summary.

    Returns:
        The new session_id
    """
    session_id = uuid.uuid4().hex

    with use_db(conn) as db:
        db.execute(
            """
            INSERT INTO quiz_sessions (
                session_id, user_id, score, total_questions, time_spent, completed_at
            ) VALUES (?, ?, ?, ?, ?, ?)
            """,
            (session_id, user_id, score, total_questions, time_spent, to_iso(completed_at)),
        )

    logger.debug("sessions.inserted", session_id=session_id, user_id=user_id, score=score)
    return session_id


def create_answer_records(
    session_id: str,
    records: Iterable[QuizAnswerRecord],
    conn: sqlite3.Connection | None = None,
) -> int:
    """Insert the answer records of a session.

    Each record's own ``session_id`` is overridden by the argument.

    Returns:
        Number of rows inserted
    """
    rows = [
        (session_id, r.vocabulary_id, r.submitted_text, int(r.correct), r.time_taken)
        for r in records
    ]

    with use_db(conn) as db:
        db.executemany(
            """
            INSERT INTO quiz_answers (
                session_id, vocabulary_id, submitted_text, correct, time_taken
            ) VALUES (?, ?, ?, ?, ?)
            """,
            rows,
        )

    logger.debug("answers.inserted", session_id=session_id, count=len(rows))
    return len(rows)


def get_session(
    session_id: str,
    conn: sqlite3.Connection | None = None,
) -> QuizSessionRecord | None:
    """Get a session by ID.

    Returns:
        QuizSessionRecord if found, None otherwise
    """
    with use_db(conn) as db:
        row = db.execute(
            "SELECT * FROM quiz_sessions WHERE session_id = ?", (session_id,)
        ).fetchone()

    if row is None:
        return None

    return _row_to_session(row)


def list_sessions(
    user_id: str,
    limit: int | None = 50,
    conn: sqlite3.Connection | None = None,
) -> list[QuizSessionRecord]:
    """Get a user's sessions, most recent first.

    Args:
        user_id: Owner
        limit: Maximum number of sessions; None for all
    """
    query = "SELECT * FROM quiz_sessions WHERE user_id = ? ORDER BY completed_at DESC, rowid DESC"
    params: tuple[Any, ...] = (user_id,)
    if limit is not None:
        query += " LIMIT ?"
        params = (user_id, limit)

    with use_db(conn) as db:
        rows = db.execute(query, params).fetchall()

    return [_row_to_session(row) for row in rows]


def list_answer_records(
    session_id: str,
    conn: sqlite3.Connection | None = None,
) -> list[QuizAnswerRecord]:
    """Get the answer records of a session in submission order."""
    with use_db(conn) as db:
        rows = db.execute(
            "SELECT * FROM quiz_answers WHERE session_id = ? ORDER BY answer_id",
            (session_id,),
        ).fetchall()

    return [
        QuizAnswerRecord(
            session_id=row["session_id"],
            vocabulary_id=row["vocabulary_id"],
            submitted_text=row["submitted_text"],
            correct=bool(row["correct"]),
            time_taken=row["time_taken"],
        )
        for row in rows
    ]


def _row_to_session(row: sqlite3.Row) -> QuizSessionRecord:
    """Convert database row to QuizSessionRecord."""
    return QuizSessionRecord(
        session_id=row["session_id"],
        user_id=row["user_id"],
        score=row["score"],
        total_questions=row["total_questions"],
        time_spent=row["time_spent"],
        completed_at=from_iso(row["completed_at"]),
    )
