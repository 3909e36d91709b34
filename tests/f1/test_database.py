"""Tests for database connection, schema and transaction scope."""

import sqlite3
from pathlib import Path

import pytest

from vocabdrill.config.app_config import clear_config_cache
from vocabdrill.db.database import get_db, get_db_path, init_db, transaction, use_db
from vocabdrill.db.progress_repository import get_progress
from vocabdrill.db.users_repository import create_user, get_user
from vocabdrill.db.vocabulary_repository import delete_item, get_item
from vocabdrill.core.scheduler import apply_result


class TestInitDb:
    """Tests for schema initialization."""

    def test_creates_all_tables(self, db_path):
        """init_db creates every table."""
        with get_db() as conn:
            names = {
                row["name"]
                for row in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
            }

        assert {"users", "vocabulary", "progress", "quiz_sessions", "quiz_answers"} <= names

    def test_init_is_idempotent(self, db_path):
        """Running init twice keeps existing data."""
        user = create_user("Ana")
        init_db(db_path)

        assert get_user(user.user_id) is not None

    def test_creates_parent_directory(self, tmp_path, monkeypatch):
        """Missing parent directories are created."""
        monkeypatch.chdir(tmp_path)
        path = tmp_path / "nested" / "dir" / "vocab.db"
        init_db(path)

        assert path.exists()

    def test_env_var_sets_default_path(self, tmp_path, monkeypatch):
        """Without an explicit path, VOCABDRILL_DB picks the database file."""
        monkeypatch.chdir(tmp_path)
        path = tmp_path / "from_env" / "vocab.db"
        monkeypatch.setenv("VOCABDRILL_DB", str(path))

        init_db()

        assert get_db_path() == path
        assert path.exists()

    def test_config_path_without_env(self, tmp_path, monkeypatch):
        """Without VOCABDRILL_DB the configured path is used."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("VOCABDRILL_DB", raising=False)
        clear_config_cache()

        init_db()

        assert get_db_path() == Path("db/vocabdrill.db")
        assert (tmp_path / "db" / "vocabdrill.db").exists()


class TestTransaction:
    """Tests for the unit-of-work scope."""

    def test_commits_on_success(self, db_path):
        """Writes inside a transaction are visible afterwards."""
        with transaction() as conn:
            user = create_user("Ana", conn=conn)

        assert get_user(user.user_id) is not None

    def test_rolls_back_on_error(self, db_path):
        """Every write is discarded when the block raises."""
        with pytest.raises(RuntimeError):
            with transaction() as conn:
                create_user("Ana", user_id="u-rollback", conn=conn)
                raise RuntimeError("boom")

        assert get_user("u-rollback") is None

    def test_rolls_back_on_keyboard_interrupt(self, db_path):
        """Cancellation also rolls back."""
        with pytest.raises(KeyboardInterrupt):
            with transaction() as conn:
                create_user("Ana", user_id="u-cancel", conn=conn)
                raise KeyboardInterrupt

        assert get_user("u-cancel") is None

    def test_use_db_reuses_connection(self, db_path):
        """use_db yields the borrowed connection unchanged."""
        with transaction() as conn:
            with use_db(conn) as inner:
                assert inner is conn


class TestCascade:
    """Tests for foreign key behaviour."""

    def test_deleting_item_removes_progress(self, user, make_item, now):
        """Progress records are deleted with their item."""
        item = make_item("apple")
        apply_result(user.user_id, item.item_id, True, now=now)
        assert get_progress(user.user_id, item.item_id) is not None

        assert delete_item(item.item_id) is True

        assert get_item(item.item_id) is None
        assert get_progress(user.user_id, item.item_id) is None

    def test_item_requires_existing_user(self, db_path):
        """Items cannot reference an unknown user."""
        from vocabdrill.db.vocabulary_repository import create_item

        with pytest.raises(sqlite3.IntegrityError):
            create_item("ghost", word="apple", definition="a fruit")
