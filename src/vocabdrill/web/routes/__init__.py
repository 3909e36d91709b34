"""Route handlers for Web API."""

from vocabdrill.web.routes.health import router as health_router
from vocabdrill.web.routes.users import router as users_router
from vocabdrill.web.routes.vocabulary import router as vocabulary_router
from vocabdrill.web.routes.quiz import router as quiz_router
from vocabdrill.web.routes.stats import router as stats_router

__all__ = [
    "health_router",
    "users_router",
    "vocabulary_router",
    "quiz_router",
    "stats_router",
]
