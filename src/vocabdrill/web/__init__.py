"""Web API (FastAPI presentation layer)."""
