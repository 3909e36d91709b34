"""Translate domain errors into HTTP errors."""

from fastapi import HTTPException, status

from vocabdrill.core.errors import (
    ConflictError,
    NotFoundError,
    QuizValidationError,
    VocabDrillError,
)


def to_http_exception(error: VocabDrillError) -> HTTPException:
    """Map a domain error onto the matching HTTP status."""
    if isinstance(error, NotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(error, ConflictError):
        code = status.HTTP_409_CONFLICT
    elif isinstance(error, QuizValidationError):
        code = status.HTTP_400_BAD_REQUEST
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR

    return HTTPException(status_code=code, detail=str(error))
