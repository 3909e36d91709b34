"""Database module for SQLite persistence.

Provides:
- Database connection management and the submission transaction scope
- Schema initialization
- Repository functions for users, vocabulary, progress and quiz sessions
"""

from vocabdrill.db.database import get_db, init_db, transaction, use_db

__all__ = ["get_db", "init_db", "transaction", "use_db"]
