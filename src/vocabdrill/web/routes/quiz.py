"""Quiz endpoints: begin, submit and history."""

import structlog
from fastapi import APIRouter, HTTPException, status

from vocabdrill.config.app_config import load_app_config
from vocabdrill.core.errors import EmptyQuizPoolError, VocabDrillError
from vocabdrill.core.quiz_session import QuizAnswer, begin_quiz, submit_quiz
from vocabdrill.db.database import use_db
from vocabdrill.db.session_repository import (
    QuizSessionRecord,
    get_session,
    list_answer_records,
    list_sessions,
)
from vocabdrill.db.users_repository import require_user
from vocabdrill.db.vocabulary_repository import get_item
from vocabdrill.utils.timestamps import to_iso
from vocabdrill.web.errors import to_http_exception
from vocabdrill.web.schemas import (
    QuizAnswerResult,
    QuizQuestion,
    QuizSessionListResponse,
    QuizSessionResponse,
    QuizStartResponse,
    QuizSubmitRequest,
)

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/users/{user_id}/quiz", tags=["quiz"])


def _session_response(
    session: QuizSessionRecord,
    answers: list[QuizAnswerResult] | None = None,
) -> QuizSessionResponse:
    return QuizSessionResponse(
        session_id=session.session_id,
        score=session.score,
        total_questions=session.total_questions,
        time_spent=session.time_spent,
        completed_at=to_iso(session.completed_at),
        answers=answers or [],
    )


def _load_session_detail(user_id: str, session_id: str) -> QuizSessionResponse:
    """Load a session with its graded answers, or raise 404."""
    with use_db() as conn:
        session = get_session(session_id, conn=conn)
        if session is None or session.user_id != user_id:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Quiz session '{session_id}' not found",
            )

        answers = []
        for record in list_answer_records(session_id, conn=conn):
            item = get_item(record.vocabulary_id, conn=conn)
            answers.append(
                QuizAnswerResult(
                    vocabulary_id=record.vocabulary_id,
                    submitted_text=record.submitted_text,
                    correct=record.correct,
                    time_taken=record.time_taken,
                    expected_word=item.word if item is not None else None,
                )
            )

    return _session_response(session, answers)


@router.get("", response_model=QuizStartResponse)
async def start_quiz(user_id: str, limit: int | None = None) -> QuizStartResponse:
    """Get the due questions for a new quiz.

    Returns an empty question list with guidance when nothing is due.
    """
    try:
        items = begin_quiz(user_id, limit=limit)
    except EmptyQuizPoolError as e:
        return QuizStartResponse(questions=[], count=0, message=str(e))
    except VocabDrillError as e:
        raise to_http_exception(e) from e

    questions = [
        QuizQuestion(
            vocabulary_id=item.item_id,
            definition=item.definition,
            example=item.example,
            category=item.category,
            difficulty=item.difficulty,
        )
        for item in items
    ]
    return QuizStartResponse(questions=questions, count=len(questions))


@router.post("", response_model=QuizSessionResponse, status_code=status.HTTP_201_CREATED)
async def finish_quiz(user_id: str, request: QuizSubmitRequest) -> QuizSessionResponse:
    """Submit answers, grade them and update the schedule.

    Returns the recorded session with each answer's verdict.
    """
    answers = [
        QuizAnswer(
            vocabulary_id=a.vocabulary_id,
            submitted_text=a.submitted_text,
            time_taken=a.time_taken,
        )
        for a in request.answers
    ]

    try:
        session_id = submit_quiz(
            user_id,
            answers,
            request.time_spent,
            expected_questions=request.expected_questions,
        )
    except VocabDrillError as e:
        logger.info("quiz.submit_rejected", user_id=user_id, error=str(e))
        raise to_http_exception(e) from e

    return _load_session_detail(user_id, session_id)


@router.get("/sessions", response_model=QuizSessionListResponse)
async def quiz_history(user_id: str, limit: int | None = None) -> QuizSessionListResponse:
    """List past quiz sessions, most recent first."""
    if limit is None:
        limit = load_app_config().stats.history_limit

    try:
        with use_db() as conn:
            require_user(user_id, conn=conn)
            sessions = list_sessions(user_id, limit=limit, conn=conn)
    except VocabDrillError as e:
        raise to_http_exception(e) from e

    responses = [_session_response(s) for s in sessions]
    return QuizSessionListResponse(sessions=responses, count=len(responses))


@router.get("/sessions/{session_id}", response_model=QuizSessionResponse)
async def quiz_session_detail(user_id: str, session_id: str) -> QuizSessionResponse:
    """Get one session with its graded answers."""
    return _load_session_detail(user_id, session_id)
