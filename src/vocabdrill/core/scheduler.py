"""Spaced-repetition scheduler.

Responsibilities:
- Select the items that are due for a quiz
- Apply a scored answer to an item's progress record

The ladder has five mastery levels. A correct answer moves an item up one
level, a wrong answer moves it down one; the level is clamped to [1, 5].
The next review is scheduled from the new level:

    level:     1  2  3   4   5
    interval:  1d 3d 7d  14d 30d

A brand-new record always gets a 1-day first review, whatever its level.
"""

from __future__ import annotations

import sqlite3
from dataclasses import replace
from datetime import datetime, timedelta

import structlog

from vocabdrill.config.app_config import load_app_config
from vocabdrill.core.errors import ConflictError, QuizValidationError
from vocabdrill.db.database import use_db
from vocabdrill.db.progress_repository import (
    ProgressRecord,
    get_progress,
    list_progress_for_user,
    upsert_progress,
)
from vocabdrill.db.vocabulary_repository import (
    VocabularyItem,
    get_user_item,
    list_items_for_user,
)
from vocabdrill.utils.timestamps import ensure_utc, utc_now

logger = structlog.get_logger(__name__)

# =============================================================================
# CONSTANTS
# =============================================================================

MIN_LEVEL = 1
MAX_LEVEL = 5
UNSTUDIED_LEVEL = 0

INTERVAL_DAYS: dict[int, int] = {1: 1, 2: 3, 3: 7, 4: 14, 5: 30}
FIRST_REVIEW_DAYS = 1

DEFAULT_LIMIT = 10


# =============================================================================
# SELECTION
# =============================================================================


def order_due_items(
    items: list[VocabularyItem],
    progress: dict[str, ProgressRecord],
    now: datetime,
) -> list[VocabularyItem]:
    """Filter items down to the due ones and sort them for quizzing.

    Due: no progress record yet, or ``next_review <= now``.
    Order: mastery level ascending (unstudied = 0), then difficulty, then
    creation time.
    """
    now = ensure_utc(now)
    due = [
        item
        for item in items
        if item.item_id not in progress or progress[item.item_id].is_due(now)
    ]

    def sort_key(item: VocabularyItem) -> tuple[int, int, str, str]:
        record = progress.get(item.item_id)
        level = record.level if record is not None else UNSTUDIED_LEVEL
        return (level, item.difficulty, item.created_at, item.item_id)

    return sorted(due, key=sort_key)


def select_due_items(
    user_id: str,
    limit: int = DEFAULT_LIMIT,
    now: datetime | None = None,
    conn: sqlite3.Connection | None = None,
) -> list[VocabularyItem]:
    """Select the items a user should be quizzed on now.

    Read-only. Returns an empty list when nothing is due.

    Args:
        user_id: Owner of the items
        limit: Maximum number of items to return
        now: Reference time (defaults to current UTC time)
        conn: Optional connection to read within an open transaction

    Raises:
        QuizValidationError: If limit < 1
    """
    if limit < 1:
        raise QuizValidationError("Quiz limit must be at least 1", field="limit")

    now = ensure_utc(now) if now is not None else utc_now()

    with use_db(conn) as db:
        items = list_items_for_user(user_id, conn=db)
        progress = list_progress_for_user(user_id, conn=db)

    selected = order_due_items(items, progress, now)[:limit]

    logger.debug(
        "scheduler.due_selected",
        user_id=user_id,
        total_items=len(items),
        selected=len(selected),
    )
    return selected


# =============================================================================
# OUTCOME APPLICATION
# =============================================================================


def next_level(level: int, correct: bool) -> int:
    """Move one step up or down the ladder, clamped to [1, 5]."""
    if correct:
        return min(level + 1, MAX_LEVEL)
    return max(level - 1, MIN_LEVEL)


def compute_transition(
    user_id: str,
    item_id: str,
    previous: ProgressRecord | None,
    correct: bool,
    now: datetime,
) -> ProgressRecord:
    """Compute the new progress state from the previous one and an outcome.

    Pure function of (previous, correct, now). The returned record keeps the
    previous version so the store can check it on write.
    """
    now = ensure_utc(now)

    if previous is None:
        return ProgressRecord(
            user_id=user_id,
            vocabulary_id=item_id,
            level=2 if correct else 1,
            next_review=now + timedelta(days=FIRST_REVIEW_DAYS),
            correct_count=1 if correct else 0,
            total_count=1,
        )

    level = next_level(previous.level, correct)
    return replace(
        previous,
        level=level,
        next_review=now + timedelta(days=INTERVAL_DAYS[level]),
        correct_count=previous.correct_count + (1 if correct else 0),
        total_count=previous.total_count + 1,
    )


def apply_result(
    user_id: str,
    item_id: str,
    correct: bool,
    now: datetime | None = None,
    conn: sqlite3.Connection | None = None,
    max_retries: int | None = None,
) -> ProgressRecord:
    """Apply one scored answer to the (user, item) progress record.

    On a concurrent-update conflict the record is re-read and the
    transition reapplied, up to ``max_retries`` times.

    Args:
        user_id: Owner of the item
        item_id: Vocabulary item that was answered
        correct: Whether the answer was graded correct
        now: Reference time (defaults to current UTC time)
        conn: Optional connection to join an open transaction
        max_retries: Conflict retries (defaults to quiz.max_conflict_retries)

    Returns:
        The persisted ProgressRecord

    Raises:
        NotFoundError: If the item doesn't exist or isn't owned by user_id
        ConflictError: If every retry lost the race
    """
    now = ensure_utc(now) if now is not None else utc_now()
    if max_retries is None:
        max_retries = load_app_config().quiz.max_conflict_retries

    with use_db(conn) as db:
        get_user_item(user_id, item_id, conn=db)

        attempt = 0
        while True:
            previous = get_progress(user_id, item_id, conn=db)
            proposed = compute_transition(user_id, item_id, previous, correct, now)
            expected_version = previous.version if previous is not None else None
            try:
                record = upsert_progress(proposed, expected_version, conn=db)
                break
            except ConflictError:
                attempt += 1
                if attempt > max_retries:
                    logger.warning(
                        "scheduler.conflict_exhausted",
                        user_id=user_id,
                        item_id=item_id,
                        attempts=attempt,
                    )
                    raise
                logger.info(
                    "scheduler.conflict_retry",
                    user_id=user_id,
                    item_id=item_id,
                    attempt=attempt,
                )

    logger.debug(
        "scheduler.result_applied",
        user_id=user_id,
        item_id=item_id,
        correct=correct,
        previous_level=previous.level if previous is not None else None,
        level=record.level,
    )
    return record
