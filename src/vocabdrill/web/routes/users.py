"""User endpoints."""

from fastapi import APIRouter, HTTPException, status

from vocabdrill.core.errors import VocabDrillError
from vocabdrill.db.users_repository import UserRecord, create_user, get_user
from vocabdrill.web.errors import to_http_exception
from vocabdrill.web.schemas import UserCreate, UserResponse

router = APIRouter(prefix="/api/users", tags=["users"])


def _to_response(user: UserRecord) -> UserResponse:
    return UserResponse(user_id=user.user_id, name=user.name, created_at=user.created_at)


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register_user(user_data: UserCreate) -> UserResponse:
    """Create a new user."""
    try:
        user = create_user(user_data.name)
    except VocabDrillError as e:
        raise to_http_exception(e) from e

    return _to_response(user)


@router.get("/{user_id}", response_model=UserResponse)
async def read_user(user_id: str) -> UserResponse:
    """Get a specific user by ID."""
    user = get_user(user_id)

    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User '{user_id}' not found",
        )

    return _to_response(user)
