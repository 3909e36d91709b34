"""Learning statistics for the dashboard.

Aggregates a user's items, progress records and quiz history into a single
summary. Read-only.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

import structlog

from vocabdrill.config.app_config import load_app_config
from vocabdrill.core.scheduler import MAX_LEVEL, MIN_LEVEL, order_due_items
from vocabdrill.db.database import use_db
from vocabdrill.db.progress_repository import list_progress_for_user
from vocabdrill.db.session_repository import QuizSessionRecord, list_sessions
from vocabdrill.db.users_repository import require_user
from vocabdrill.db.vocabulary_repository import list_items_for_user
from vocabdrill.utils.timestamps import ensure_utc, utc_now

logger = structlog.get_logger(__name__)

ACTIVE_WINDOW_DAYS = 7


def _empty_histogram() -> dict[int, int]:
    return {level: 0 for level in range(MIN_LEVEL, MAX_LEVEL + 1)}


@dataclass
class UserStats:
    """Dashboard summary for one user."""

    total_words: int = 0
    new_words: int = 0
    learning_words: int = 0
    mastered_words: int = 0
    due_words: int = 0
    words_by_level: dict[int, int] = field(default_factory=_empty_histogram)
    words_by_difficulty: dict[int, int] = field(default_factory=_empty_histogram)
    total_sessions: int = 0
    average_accuracy: int = 0
    recent_accuracy: int = 0
    total_study_minutes: int = 0
    active_days_last_week: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "total_words": self.total_words,
            "new_words": self.new_words,
            "learning_words": self.learning_words,
            "mastered_words": self.mastered_words,
            "due_words": self.due_words,
            "words_by_level": dict(self.words_by_level),
            "words_by_difficulty": dict(self.words_by_difficulty),
            "total_sessions": self.total_sessions,
            "average_accuracy": self.average_accuracy,
            "recent_accuracy": self.recent_accuracy,
            "total_study_minutes": self.total_study_minutes,
            "active_days_last_week": self.active_days_last_week,
        }


def accuracy_percent(sessions: list[QuizSessionRecord]) -> int:
    """Rounded percentage of correct answers over sessions (0 if none)."""
    questions = sum(s.total_questions for s in sessions)
    if questions == 0:
        return 0
    correct = sum(s.score for s in sessions)
    return round(correct / questions * 100)


def compute_stats(user_id: str, now: datetime | None = None) -> UserStats:
    """Build the dashboard summary for a user.

    Raises:
        NotFoundError: If the user doesn't exist
    """
    now = ensure_utc(now) if now is not None else utc_now()
    config = load_app_config().stats

    with use_db() as conn:
        require_user(user_id, conn=conn)
        items = list_items_for_user(user_id, conn=conn)
        progress = list_progress_for_user(user_id, conn=conn)
        # Newest first
        sessions = list_sessions(user_id, limit=None, conn=conn)

    stats = UserStats(total_words=len(items), total_sessions=len(sessions))

    for item in items:
        if MIN_LEVEL <= item.difficulty <= MAX_LEVEL:
            stats.words_by_difficulty[item.difficulty] += 1

        record = progress.get(item.item_id)
        if record is None:
            stats.new_words += 1
            continue

        stats.words_by_level[record.level] += 1
        if record.level >= config.mastered_level:
            stats.mastered_words += 1
        elif record.level >= 2:
            stats.learning_words += 1

    stats.due_words = len(order_due_items(items, progress, now))

    stats.average_accuracy = accuracy_percent(sessions)
    stats.recent_accuracy = accuracy_percent(sessions[: config.recent_sessions])
    stats.total_study_minutes = round(sum(s.time_spent for s in sessions) / 60)

    window_start = now - timedelta(days=ACTIVE_WINDOW_DAYS)
    stats.active_days_last_week = len(
        {s.completed_at.date() for s in sessions if window_start <= s.completed_at <= now}
    )

    logger.debug("stats.computed", user_id=user_id, total_words=stats.total_words)
    return stats
