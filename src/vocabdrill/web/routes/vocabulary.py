"""Vocabulary endpoints (item management)."""

from fastapi import APIRouter, status

from vocabdrill.core.errors import NotFoundError, VocabDrillError
from vocabdrill.db.database import use_db
from vocabdrill.db.progress_repository import ProgressRecord, get_progress, list_progress_for_user
from vocabdrill.db.users_repository import require_user
from vocabdrill.db.vocabulary_repository import (
    VocabularyItem,
    create_item,
    delete_item,
    get_user_item,
    list_items_for_user,
    update_item,
)
from vocabdrill.utils.timestamps import to_iso
from vocabdrill.web.errors import to_http_exception
from vocabdrill.web.schemas import (
    ProgressResponse,
    VocabularyCreate,
    VocabularyListResponse,
    VocabularyResponse,
    VocabularyUpdate,
)

router = APIRouter(prefix="/api/users/{user_id}/vocabulary", tags=["vocabulary"])


def _to_response(item: VocabularyItem, progress: ProgressRecord | None) -> VocabularyResponse:
    return VocabularyResponse(
        item_id=item.item_id,
        word=item.word,
        definition=item.definition,
        example=item.example,
        category=item.category,
        difficulty=item.difficulty,
        created_at=item.created_at,
        progress=(
            ProgressResponse(
                level=progress.level,
                next_review=to_iso(progress.next_review),
                correct_count=progress.correct_count,
                total_count=progress.total_count,
            )
            if progress is not None
            else None
        ),
    )


@router.get("", response_model=VocabularyListResponse)
async def list_vocabulary(user_id: str) -> VocabularyListResponse:
    """List a user's vocabulary with progress, newest first."""
    try:
        with use_db() as conn:
            require_user(user_id, conn=conn)
            items = list_items_for_user(user_id, conn=conn)
            progress = list_progress_for_user(user_id, conn=conn)
    except VocabDrillError as e:
        raise to_http_exception(e) from e

    responses = [_to_response(item, progress.get(item.item_id)) for item in items]
    return VocabularyListResponse(items=responses, count=len(responses))


@router.post("", response_model=VocabularyResponse, status_code=status.HTTP_201_CREATED)
async def add_vocabulary(user_id: str, item_data: VocabularyCreate) -> VocabularyResponse:
    """Add a vocabulary item."""
    try:
        with use_db() as conn:
            require_user(user_id, conn=conn)
            item = create_item(user_id, conn=conn, **item_data.model_dump())
    except VocabDrillError as e:
        raise to_http_exception(e) from e

    return _to_response(item, None)


@router.put("/{item_id}", response_model=VocabularyResponse)
async def edit_vocabulary(
    user_id: str, item_id: str, item_data: VocabularyUpdate
) -> VocabularyResponse:
    """Edit a vocabulary item. Its progress is kept."""
    try:
        with use_db() as conn:
            get_user_item(user_id, item_id, conn=conn)
            item = update_item(item_id, conn=conn, **item_data.model_dump(exclude_unset=True))
            progress = get_progress(user_id, item_id, conn=conn)
    except VocabDrillError as e:
        raise to_http_exception(e) from e

    return _to_response(item, progress)


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_vocabulary(user_id: str, item_id: str) -> None:
    """Delete a vocabulary item and its progress."""
    try:
        with use_db() as conn:
            get_user_item(user_id, item_id, conn=conn)
            if not delete_item(item_id, conn=conn):
                raise NotFoundError("Vocabulary item", item_id)
    except VocabDrillError as e:
        raise to_http_exception(e) from e
