"""Error kinds shared by the stores, the scheduler and the quiz orchestrator.

- NotFoundError: referenced user, item or session does not exist
- EmptyQuizPoolError: nothing is due (recoverable, user-facing guidance)
- ConflictError: concurrent update lost the race on a progress record
- QuizValidationError: malformed input, rejected before any write
"""

from __future__ import annotations


class VocabDrillError(Exception):
    """Base class for all domain errors."""

    pass


class NotFoundError(VocabDrillError):
    """Raised when a referenced entity does not exist for the given user."""

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}")


class EmptyQuizPoolError(VocabDrillError):
    """Raised when a user has no due items to quiz on."""

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__("No words are due for review. Add vocabulary first.")


class ConflictError(VocabDrillError):
    """Raised when a progress record changed between read and write."""

    def __init__(self, user_id: str, item_id: str, expected_version: int | None):
        self.user_id = user_id
        self.item_id = item_id
        self.expected_version = expected_version
        super().__init__(
            f"Progress for item {item_id} was modified concurrently "
            f"(expected version {expected_version})"
        )


class QuizValidationError(VocabDrillError):
    """Raised when a submission or item payload is malformed."""

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)
