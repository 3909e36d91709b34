"""Quiz session orchestrator.

Drives one quiz attempt end-to-end:
- begin_quiz: pick the due items for a user
- submit_quiz: grade the answers server-side, record the session and its
  answers, and apply every outcome to the scheduler, all inside one
  transaction

Correctness is always recomputed here from the submitted text; a
client-side verdict is never accepted.
"""

from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import structlog

from vocabdrill.config.app_config import load_app_config
from vocabdrill.core.errors import EmptyQuizPoolError, QuizValidationError
from vocabdrill.core.grader import is_correct
from vocabdrill.core.scheduler import apply_result, select_due_items
from vocabdrill.db.database import transaction, use_db
from vocabdrill.db.session_repository import (
    QuizAnswerRecord,
    create_answer_records,
    create_session,
)
from vocabdrill.db.users_repository import require_user
from vocabdrill.db.vocabulary_repository import VocabularyItem, get_item
from vocabdrill.utils.timestamps import ensure_utc, utc_now

logger = structlog.get_logger(__name__)

# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass
class QuizAnswer:
    """A single submitted answer."""

    vocabulary_id: str
    submitted_text: str
    time_taken: int | float = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "vocabulary_id": self.vocabulary_id,
            "submitted_text": self.submitted_text,
            "time_taken": self.time_taken,
        }


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================


def _validate_seconds(value: Any, field: str) -> int:
    """Validate a non-negative duration and round it to whole seconds."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise QuizValidationError(f"{field} must be a number of seconds", field=field)
    if not math.isfinite(value):
        raise QuizValidationError(f"{field} must be a finite number of seconds", field=field)
    if value < 0:
        raise QuizValidationError(f"{field} cannot be negative", field=field)
    return int(round(value))


def _validate_submission(
    answers: list[QuizAnswer],
    total_time_spent: Any,
    expected_questions: int | None,
) -> tuple[int, list[int]]:
    """Check the shape of a submission before anything is written.

    Returns:
        (total seconds, per-answer seconds)
    """
    if not answers:
        raise QuizValidationError("A quiz submission needs at least one answer", field="answers")

    if expected_questions is not None and expected_questions != len(answers):
        raise QuizValidationError(
            f"Expected {expected_questions} answers, got {len(answers)}",
            field="answers",
        )

    total_seconds = _validate_seconds(total_time_spent, "total_time_spent")
    per_answer = [_validate_seconds(a.time_taken, "time_taken") for a in answers]
    return total_seconds, per_answer


# =============================================================================
# MAIN FUNCTIONS
# =============================================================================


def begin_quiz(
    user_id: str,
    limit: int | None = None,
    now: datetime | None = None,
) -> list[VocabularyItem]:
    """Select the question set for a new quiz.

    Args:
        user_id: Who is taking the quiz
        limit: Number of questions (defaults to quiz.question_limit)
        now: Reference time (defaults to current UTC time)

    Returns:
        Due items in quiz order

    Raises:
        NotFoundError: If the user doesn't exist
        EmptyQuizPoolError: If nothing is due
    """
    if limit is None:
        limit = load_app_config().quiz.question_limit

    with use_db() as conn:
        require_user(user_id, conn=conn)
        items = select_due_items(user_id, limit=limit, now=now, conn=conn)

    if not items:
        logger.info("quiz.empty_pool", user_id=user_id)
        raise EmptyQuizPoolError(user_id)

    logger.info("quiz.started", user_id=user_id, questions=len(items))
    return items


def submit_quiz(
    user_id: str,
    answers: list[QuizAnswer],
    total_time_spent: int | float,
    expected_questions: int | None = None,
    now: datetime | None = None,
) -> str:
    """Grade and record a completed quiz.

    Runs as one unit of work: the session, its answer records and every
    progress update commit together or not at all.

    A vocabulary_id repeated within one submission is applied once per
    occurrence, in order, so the level changes compound. Set
    ``quiz.reject_duplicate_items`` to refuse such submissions instead.

    Args:
        user_id: Who took the quiz
        answers: Submitted answers in question order
        total_time_spent: Whole-quiz duration in seconds
        expected_questions: Size of the question set that was served, if known
        now: Reference time (defaults to current UTC time)

    Returns:
        The created session_id

    Raises:
        NotFoundError: If the user doesn't exist
        QuizValidationError: On an empty, mismatched or negative-time
            submission, or an unknown/foreign vocabulary_id
        ConflictError: If a progress update kept losing concurrent races
    """
    now = ensure_utc(now) if now is not None else utc_now()
    config = load_app_config()

    total_seconds, per_answer_seconds = _validate_submission(
        answers, total_time_spent, expected_questions
    )

    duplicates = sorted(
        vid for vid, count in Counter(a.vocabulary_id for a in answers).items() if count > 1
    )
    if duplicates:
        if config.quiz.reject_duplicate_items:
            raise QuizValidationError(
                f"Duplicate vocabulary items in submission: {', '.join(duplicates)}",
                field="answers",
            )
        logger.warning("quiz.duplicate_items", user_id=user_id, vocabulary_ids=duplicates)

    with transaction() as conn:
        require_user(user_id, conn=conn)

        words: dict[str, str] = {}
        for answer in answers:
            if answer.vocabulary_id in words:
                continue
            item = get_item(answer.vocabulary_id, conn=conn)
            if item is None or item.user_id != user_id:
                raise QuizValidationError(
                    f"Unknown vocabulary item: {answer.vocabulary_id}",
                    field="vocabulary_id",
                )
            words[item.item_id] = item.word

        records = [
            QuizAnswerRecord(
                session_id="",
                vocabulary_id=answer.vocabulary_id,
                submitted_text=answer.submitted_text or "",
                correct=is_correct(answer.submitted_text, words[answer.vocabulary_id]),
                time_taken=seconds,
            )
            for answer, seconds in zip(answers, per_answer_seconds)
        ]
        score = sum(1 for r in records if r.correct)

        session_id = create_session(
            user_id=user_id,
            score=score,
            total_questions=len(records),
            time_spent=total_seconds,
            completed_at=now,
            conn=conn,
        )
        create_answer_records(session_id, records, conn=conn)

        for record in records:
            apply_result(
                user_id,
                record.vocabulary_id,
                record.correct,
                now=now,
                conn=conn,
                max_retries=config.quiz.max_conflict_retries,
            )

    logger.info(
        "quiz.submitted",
        user_id=user_id,
        session_id=session_id,
        score=score,
        total_questions=len(records),
        time_spent=total_seconds,
    )
    return session_id
