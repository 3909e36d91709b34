"""Repository functions for vocabulary table.

Provides CRUD operations for vocabulary items. Items are owned by a single
user; deleting an item cascades to its progress record.
"""

from __future__ import annotations

import sqlite3
import uuid
from dataclasses import dataclass
from typing import Any

import structlog

from vocabdrill.core.errors import NotFoundError, QuizValidationError
from vocabdrill.db.database import use_db
from vocabdrill.utils.timestamps import to_iso, utc_now

logger = structlog.get_logger(__name__)

MIN_DIFFICULTY = 1
MAX_DIFFICULTY = 5

_EDITABLE_FIELDS = ("word", "definition", "example", "category", "difficulty")


@dataclass
class VocabularyItem:
    """Vocabulary item from database."""

    item_id: str
    user_id: str
    word: str
    definition: str
    example: str | None
    category: str | None
    difficulty: int
    created_at: str
    updated_at: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "item_id": self.item_id,
            "user_id": self.user_id,
            "word": self.word,
            "definition": self.definition,
            "example": self.example,
            "category": self.category,
            "difficulty": self.difficulty,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


def _clean_optional(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _validate_fields(fields: dict[str, Any]) -> dict[str, Any]:
    """Normalize and validate editable fields.

    Raises:
        QuizValidationError: On empty word/definition or out-of-range difficulty
    """
    cleaned = dict(fields)

    for required in ("word", "definition"):
        if required in cleaned:
            value = (cleaned[required] or "").strip()
            if not value:
                raise QuizValidationError(f"{required.capitalize()} is required", field=required)
            cleaned[required] = value

    for optional in ("example", "category"):
        if optional in cleaned:
            cleaned[optional] = _clean_optional(cleaned[optional])

    if "difficulty" in cleaned:
        difficulty = cleaned["difficulty"]
        if (
            isinstance(difficulty, bool)
            or not isinstance(difficulty, int)
            or not MIN_DIFFICULTY <= difficulty <= MAX_DIFFICULTY
        ):
            raise QuizValidationError(
                f"Difficulty must be an integer between {MIN_DIFFICULTY} and {MAX_DIFFICULTY}",
                field="difficulty",
            )

    return cleaned


def create_item(
    user_id: str,
    word: str,
    definition: str,
    example: str | None = None,
    category: str | None = None,
    difficulty: int = 1,
    conn: sqlite3.Connection | None = None,
) -> VocabularyItem:
    """Insert a new vocabulary item.

    Args:
        user_id: Owner of the item (must exist)
        word: The answer the user must recall
        definition: The prompt shown during a quiz
        example: Optional example sentence
        category: Optional free-form label
        difficulty: Author-assigned difficulty, 1-5
        conn: Optional connection to join an open transaction

    Raises:
        QuizValidationError: If fields are invalid
        sqlite3.IntegrityError: If user_id does not exist
    """
    fields = _validate_fields(
        {
            "word": word,
            "definition": definition,
            "example": example,
            "category": category,
            "difficulty": difficulty,
        }
    )
    now = to_iso(utc_now())
    item = VocabularyItem(
        item_id=uuid.uuid4().hex,
        user_id=user_id,
        created_at=now,
        updated_at=now,
        **fields,
    )

    with use_db(conn) as db:
        db.execute(
            """
            INSERT INTO vocabulary (
                item_id, user_id, word, definition, example,
                category, difficulty, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                item.item_id,
                item.user_id,
                item.word,
                item.definition,
                item.example,
                item.category,
                item.difficulty,
                item.created_at,
                item.updated_at,
            ),
        )

    logger.debug("vocabulary.inserted", item_id=item.item_id, user_id=user_id)
    return item


def get_item(item_id: str, conn: sqlite3.Connection | None = None) -> VocabularyItem | None:
    """Get item by ID.

    Returns:
        VocabularyItem if found, None otherwise
    """
    with use_db(conn) as db:
        row = db.execute("SELECT * FROM vocabulary WHERE item_id = ?", (item_id,)).fetchone()

    if row is None:
        return None

    return _row_to_item(row)


def get_user_item(
    user_id: str,
    item_id: str,
    conn: sqlite3.Connection | None = None,
) -> VocabularyItem:
    """Get an item that must belong to ``user_id``.

    Raises:
        NotFoundError: If the item does not exist or belongs to another user
    """
    item = get_item(item_id, conn=conn)
    if item is None or item.user_id != user_id:
        raise NotFoundError("Vocabulary item", item_id)
    return item


def list_items_for_user(
    user_id: str,
    conn: sqlite3.Connection | None = None,
) -> list[VocabularyItem]:
    """Get all items owned by a user, newest first."""
    with use_db(conn) as db:
        rows = db.execute(
            "SELECT * FROM vocabulary WHERE user_id = ? ORDER BY created_at DESC, item_id",
            (user_id,),
        ).fetchall()

    return [_row_to_item(row) for row in rows]


def update_item(
    item_id: str,
    conn: sqlite3.Connection | None = None,
    **fields: Any,
) -> VocabularyItem:
    """Update editable fields of an item.

    Only ``word``, ``definition``, ``example``, ``category`` and
    ``difficulty`` can change. Fields passed as None are left untouched,
    except ``example`` and ``category`` which are cleared.

    Raises:
        NotFoundError: If item_id doesn't exist
        QuizValidationError: If a field is unknown or invalid
    """
    unknown = set(fields) - set(_EDITABLE_FIELDS)
    if unknown:
        raise QuizValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")

    changes = {
        key: value
        for key, value in fields.items()
        if value is not None or key in ("example", "category")
    }
    changes = _validate_fields(changes)

    with use_db(conn) as db:
        if changes:
            assignments = ", ".join(f"{key} = ?" for key in changes)
            cursor = db.execute(
                f"UPDATE vocabulary SET {assignments}, updated_at = ? WHERE item_id = ?",
                (*changes.values(), to_iso(utc_now()), item_id),
            )
            if cursor.rowcount == 0:
                raise NotFoundError("Vocabulary item", item_id)

        item = get_item(item_id, conn=db)

    if item is None:
        raise NotFoundError("Vocabulary item", item_id)

    logger.debug("vocabulary.updated", item_id=item_id, fields=sorted(changes))
    return item


def delete_item(item_id: str, conn: sqlite3.Connection | None = None) -> bool:
    """Delete item by ID. Its progress record is removed by cascade.

    Returns:
        True if deleted, False if not found
    """
    with use_db(conn) as db:
        cursor = db.execute("DELETE FROM vocabulary WHERE item_id = ?", (item_id,))

    deleted = cursor.rowcount > 0
    if deleted:
        logger.debug("vocabulary.deleted", item_id=item_id)

    return deleted


def _row_to_item(row: sqlite3.Row) -> VocabularyItem:
    """Convert database row to VocabularyItem."""
    return VocabularyItem(
        item_id=row["item_id"],
        user_id=row["user_id"],
        word=row["word"],
        definition=row["definition"],
        example=row["example"],
        category=row["category"],
        difficulty=row["difficulty"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
