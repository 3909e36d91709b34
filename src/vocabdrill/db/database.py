"""SQLite connection, transaction scope and schema management.

Provides connection management and schema initialization for vocabdrill.
Repository functions accept an optional connection so that several writes
can share one transaction (see ``transaction``).
"""

from __future__ import annotations

import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

import structlog

from vocabdrill.config.app_config import load_app_config

logger = structlog.get_logger(__name__)

# Environment override for the database file, used by both the CLI and the API
DB_PATH_ENV = "VOCABDRILL_DB"

# Current database path (module-level for simplicity in CLI/API context)
_db_path: Path | None = None


def _default_db_path() -> Path:
    db_env = os.environ.get(DB_PATH_ENV)
    if db_env:
        return Path(db_env)
    return Path(load_app_config().database.path)


def get_db_path() -> Path:
    """Return the active database path.

    Order: the path given to init_db, then VOCABDRILL_DB, then config.
    """
    if _db_path is not None:
        return _db_path
    return _default_db_path()


def init_db(db_path: Path | None = None) -> None:
    """Initialize database with schema.

    Creates the database file and all required tables if they don't exist.

    Args:
        db_path: Path to database file. Defaults to VOCABDRILL_DB, else
            ``database.path`` from config.
    """
    global _db_path
    _db_path = db_path or _default_db_path()

    with get_db() as conn:
        _create_schema(conn)

    logger.info("database.initialized", path=str(_db_path))


def _connect() -> sqlite3.Connection:
    db_path = get_db_path()
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path, timeout=load_app_config().database.timeout_seconds)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


@contextmanager
def get_db() -> Generator[sqlite3.Connection, None, None]:
    """Get database connection as context manager.

    Commits on clean exit, rolls back on any exception.

    Yields:
        SQLite connection with row factory set to sqlite3.Row

    Example:
        with get_db() as conn:
            rows = conn.execute("SELECT * FROM vocabulary").fetchall()
    """
    conn = _connect()

    try:
        yield conn
        conn.commit()
    except BaseException:
        conn.rollback()
        raise
    finally:
        conn.close()


@contextmanager
def transaction() -> Generator[sqlite3.Connection, None, None]:
    """Open a write transaction that takes the database write lock up front.

    Every statement executed on the yielded connection commits together or
    not at all. Cancellation (KeyboardInterrupt, task cancellation) rolls
    back as well.

    Example:
        with transaction() as conn:
            session_id = create_session(..., conn=conn)
            apply_result(..., conn=conn)
    """
    conn = _connect()

    try:
        conn.execute("BEGIN IMMEDIATE")
        yield conn
        conn.commit()
    except BaseException:
        conn.rollback()
        logger.info("database.transaction_rolled_back")
        raise
    finally:
        conn.close()


@contextmanager
def use_db(
    conn: sqlite3.Connection | None = None,
) -> Generator[sqlite3.Connection, None, None]:
    """Reuse a caller's connection, or open a short-lived one.

    A borrowed connection is neither committed nor closed here; the owner
    of the transaction decides.
    """
    if conn is not None:
        yield conn
        return

    with get_db() as own:
        yield own


def _create_schema(conn: sqlite3.Connection) -> None:
    """Create database schema.

    Uses IF NOT EXISTS for idempotency.
    """
    conn.executescript(
        """
        -- users: explicit owner of every item, record and session
        CREATE TABLE IF NOT EXISTS users (
            user_id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS vocabulary (
            item_id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL REFERENCES users(user_id) ON DELETE CASCADE,
            word TEXT NOT NULL,
            definition TEXT NOT NULL,
            example TEXT,
            category TEXT,
            difficulty INTEGER NOT NULL DEFAULT 1 CHECK(difficulty BETWEEN 1 AND 5),
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );

        -- progress: at most one row per (user, item); version guards concurrent updates
        CREATE TABLE IF NOT EXISTS progress (
            user_id TEXT NOT NULL REFERENCES users(user_id) ON DELETE CASCADE,
            vocabulary_id TEXT NOT NULL REFERENCES vocabulary(item_id) ON DELETE CASCADE,
            level INTEGER NOT NULL CHECK(level BETWEEN 1 AND 5),
            next_review TEXT NOT NULL,
            correct_count INTEGER NOT NULL DEFAULT 0 CHECK(correct_count >= 0),
            total_count INTEGER NOT NULL DEFAULT 0 CHECK(total_count >= correct_count),
            version INTEGER NOT NULL DEFAULT 1,
            updated_at TEXT NOT NULL,
            PRIMARY KEY (user_id, vocabulary_id)
        );

        -- quiz_sessions / quiz_answers: append-only audit trail
        CREATE TABLE IF NOT EXISTS quiz_sessions (
            session_id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL REFERENCES users(user_id) ON DELETE CASCADE,
            score INTEGER NOT NULL CHECK(score >= 0),
            total_questions INTEGER NOT NULL CHECK(total_questions >= score),
            time_spent INTEGER NOT NULL CHECK(time_spent >= 0),
            completed_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS quiz_answers (
            answer_id INTEGER PRIMARY KEY AUTOINCREMENT,
            session_id TEXT NOT NULL REFERENCES quiz_sessions(session_id) ON DELETE CASCADE,
            vocabulary_id TEXT NOT NULL,
            submitted_text TEXT NOT NULL DEFAULT '',
            correct INTEGER NOT NULL CHECK(correct IN (0, 1)),
            time_taken INTEGER NOT NULL CHECK(time_taken >= 0)
        );

        CREATE INDEX IF NOT EXISTS idx_vocabulary_user ON vocabulary(user_id);
        CREATE INDEX IF NOT EXISTS idx_progress_next_review ON progress(user_id, next_review);
        CREATE INDEX IF NOT EXISTS idx_sessions_user ON quiz_sessions(user_id, completed_at);
        CREATE INDEX IF NOT EXISTS idx_answers_session ON quiz_answers(session_id);
        """
    )
