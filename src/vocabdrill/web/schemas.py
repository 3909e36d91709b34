"""Pydantic schemas for Web API.

Serialization models for users, vocabulary, quizzes, sessions and stats.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field


# =============================================================================
# USER SCHEMAS
# =============================================================================


class UserCreate(BaseModel):
    """Request body for creating a user."""

    name: str = Field(..., min_length=1, max_length=100)


class UserResponse(BaseModel):
    """Response for a user."""

    user_id: str
    name: str
    created_at: str


# =============================================================================
# VOCABULARY SCHEMAS
# =============================================================================


class VocabularyCreate(BaseModel):
    """Request body for adding a vocabulary item."""

    word: str = Field(..., min_length=1, max_length=200)
    definition: str = Field(..., min_length=1, max_length=2000)
    example: str | None = Field(default=None, max_length=2000)
    category: str | None = Field(default=None, max_length=100)
    difficulty: int = Field(default=1, ge=1, le=5)


class VocabularyUpdate(BaseModel):
    """Request body for editing a vocabulary item.

    Omitted fields keep their current value.
    """

    word: str | None = Field(default=None, min_length=1, max_length=200)
    definition: str | None = Field(default=None, min_length=1, max_length=2000)
    example: str | None = Field(default=None, max_length=2000)
    category: str | None = Field(default=None, max_length=100)
    difficulty: int | None = Field(default=None, ge=1, le=5)


class ProgressResponse(BaseModel):
    """Mastery state of an item."""

    level: int
    next_review: str
    correct_count: int
    total_count: int


class VocabularyResponse(BaseModel):
    """Response for a vocabulary item."""

    item_id: str
    word: str
    definition: str
    example: str | None = None
    category: str | None = None
    difficulty: int
    created_at: str
    progress: ProgressResponse | None = None


class VocabularyListResponse(BaseModel):
    """Response for list of vocabulary items."""

    items: list[VocabularyResponse]
    count: int


# =============================================================================
# QUIZ SCHEMAS
# =============================================================================


class QuizQuestion(BaseModel):
    """A question served to the client. Never carries the answer."""

    vocabulary_id: str
    definition: str
    example: str | None = None
    category: str | None = None
    difficulty: int


class QuizStartResponse(BaseModel):
    """Question set for a new quiz.

    An empty list with a message means nothing is due.
    """

    questions: list[QuizQuestion]
    count: int
    message: str = ""


class QuizAnswerSubmission(BaseModel):
    """One answer in a quiz submission."""

    vocabulary_id: str = Field(..., min_length=1)
    submitted_text: str = Field(default="", max_length=200)
    time_taken: int = Field(default=0, ge=0)


class QuizSubmitRequest(BaseModel):
    """Request body for submitting a quiz."""

    answers: list[QuizAnswerSubmission]
    time_spent: int = Field(default=0, ge=0)
    expected_questions: int | None = None


class QuizAnswerResult(BaseModel):
    """Graded answer returned after submission."""

    vocabulary_id: str
    submitted_text: str
    correct: bool
    time_taken: int
    expected_word: str | None = None


class QuizSessionResponse(BaseModel):
    """Summary of a completed quiz."""

    session_id: str
    score: int
    total_questions: int
    time_spent: int
    completed_at: str
    answers: list[QuizAnswerResult] = Field(default_factory=list)


class QuizSessionListResponse(BaseModel):
    """Response for the quiz history."""

    sessions: list[QuizSessionResponse]
    count: int


# =============================================================================
# STATS SCHEMAS
# =============================================================================


class StatsResponse(BaseModel):
    """Dashboard summary."""

    total_words: int
    new_words: int
    learning_words: int
    mastered_words: int
    due_words: int
    words_by_level: dict[int, int]
    words_by_difficulty: dict[int, int]
    total_sessions: int
    average_accuracy: int
    recent_accuracy: int
    total_study_minutes: int
    active_days_last_week: int


# =============================================================================
# HEALTH SCHEMAS
# =============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str = "0.1.0"
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
