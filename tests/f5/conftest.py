"""Fixtures for F5 tests - Web API and CLI."""

import pytest
from fastapi.testclient import TestClient

from vocabdrill.web.api import create_app


@pytest.fixture
def client(db_path):
    """Create test client bound to the isolated test database."""
    app = create_app()
    return TestClient(app)


@pytest.fixture
def api_user(client) -> str:
    """Register a user through the API and return its id."""
    response = client.post("/api/users", json={"name": "Ana"})
    return response.json()["user_id"]


@pytest.fixture
def add_word(client, api_user):
    """Add a word through the API and return its item_id."""

    def _add(word: str, definition: str | None = None, difficulty: int = 1) -> str:
        response = client.post(
            f"/api/users/{api_user}/vocabulary",
            json={
                "word": word,
                "definition": definition or f"Definition of {word}",
                "difficulty": difficulty,
            },
        )
        assert response.status_code == 201, response.text
        return response.json()["item_id"]

    return _add
