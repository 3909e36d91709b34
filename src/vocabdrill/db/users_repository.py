"""Repository functions for users table.

Every scheduler and quiz operation takes an explicit ``user_id``; this table
is the registry those ids resolve against.
"""

from __future__ import annotations

import sqlite3
import uuid
from dataclasses import dataclass

import structlog

from vocabdrill.core.errors import NotFoundError, QuizValidationError
from vocabdrill.db.database import use_db
from vocabdrill.utils.timestamps import to_iso, utc_now

logger = structlog.get_logger(__name__)


@dataclass
class UserRecord:
    """User record from database."""

    user_id: str
    name: str
    created_at: str


def create_user(
    name: str,
    user_id: str | None = None,
    conn: sqlite3.Connection | None = None,
) -> UserRecord:
    """Insert a new user.

    Args:
        name: Display name (non-empty)
        user_id: Optional explicit id. Defaults to a random UUID hex.
        conn: Optional connection to join an open transaction

    Raises:
        QuizValidationError: If name is empty
        sqlite3.IntegrityError: If user_id already exists
    """
    name = (name or "").strip()
    if not name:
        raise QuizValidationError("User name is required", field="name")

    record = UserRecord(
        user_id=user_id or uuid.uuid4().hex,
        name=name,
        created_at=to_iso(utc_now()),
    )

    with use_db(conn) as db:
        db.execute(
            "INSERT INTO users (user_id, name, created_at) VALUES (?, ?, ?)",
            (record.user_id, record.name, record.created_at),
        )

    logger.debug("users.inserted", user_id=record.user_id)
    return record


def get_user(user_id: str, conn: sqlite3.Connection | None = None) -> UserRecord | None:
    """Get user by ID.

    Returns:
        UserRecord if found, None otherwise
    """
    with use_db(conn) as db:
        row = db.execute("SELECT * FROM users WHERE user_id = ?", (user_id,)).fetchone()

    if row is None:
        return None

    return UserRecord(user_id=row["user_id"], name=row["name"], created_at=row["created_at"])


def require_user(user_id: str, conn: sqlite3.Connection | None = None) -> UserRecord:
    """Get user by ID or raise NotFoundError."""
    user = get_user(user_id, conn=conn)
    if user is None:
        raise NotFoundError("User", user_id)
    return user
