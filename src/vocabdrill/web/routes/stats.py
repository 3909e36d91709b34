"""Stats endpoint (dashboard summary)."""

from fastapi import APIRouter

from vocabdrill.core.errors import VocabDrillError
from vocabdrill.core.stats import compute_stats
from vocabdrill.web.errors import to_http_exception
from vocabdrill.web.schemas import StatsResponse

router = APIRouter(prefix="/api/users/{user_id}/stats", tags=["stats"])


@router.get("", response_model=StatsResponse)
async def user_stats(user_id: str) -> StatsResponse:
    """Summarize a user's vocabulary and quiz history."""
    try:
        stats = compute_stats(user_id)
    except VocabDrillError as e:
        raise to_http_exception(e) from e

    return StatsResponse(**stats.to_dict())
