"""Application configuration loader.

Loads centralized configuration from data/config/app_config_v1.yaml,
falling back to built-in defaults when the file is absent.

Usage:
    from vocabdrill.config.app_config import load_app_config

    config = load_app_config()
    limit = config.quiz.question_limit
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger(__name__)

# Config file path (relative to project root)
CONFIG_FILE = Path("data/config/app_config_v1.yaml")


@dataclass
class DatabaseConfig:
    """SQLite settings."""

    path: str = "db/vocabdrill.db"
    timeout_seconds: float = 5.0


@dataclass
class QuizConfig:
    """Quiz selection and submission settings."""

    question_limit: int = 10
    max_conflict_retries: int = 3
    reject_duplicate_items: bool = False


@dataclass
class StatsConfig:
    """Dashboard and history settings."""

    mastered_level: int = 4
    recent_sessions: int = 5
    history_limit: int = 50


@dataclass
class AppConfig:
    """Application-wide configuration."""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    quiz: QuizConfig = field(default_factory=QuizConfig)
    stats: StatsConfig = field(default_factory=StatsConfig)


# Module-level cache
_cached_config: AppConfig | None = None


def _get_defaults() -> dict[str, Any]:
    """Get default configuration values."""
    return {
        "database": {
            "path": "db/vocabdrill.db",
            "timeout_seconds": 5.0,
        },
        "quiz": {
            "question_limit": 10,
            "max_conflict_retries": 3,
            "reject_duplicate_items": False,
        },
        "stats": {
            "mastered_level": 4,
            "recent_sessions": 5,
            "history_limit": 50,
        },
    }


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """Parse configuration dictionary into AppConfig object.

    Missing keys fall back to the dataclass defaults.
    """
    db_data = data.get("database") or {}
    database = DatabaseConfig(
        path=str(db_data.get("path", DatabaseConfig.path)),
        timeout_seconds=float(db_data.get("timeout_seconds", DatabaseConfig.timeout_seconds)),
    )

    quiz_data = data.get("quiz") or {}
    quiz = QuizConfig(
        question_limit=int(quiz_data.get("question_limit", QuizConfig.question_limit)),
        max_conflict_retries=int(
            quiz_data.get("max_conflict_retries", QuizConfig.max_conflict_retries)
        ),
        reject_duplicate_items=bool(
            quiz_data.get("reject_duplicate_items", QuizConfig.reject_duplicate_items)
        ),
    )

    stats_data = data.get("stats") or {}
    stats = StatsConfig(
        mastered_level=int(stats_data.get("mastered_level", StatsConfig.mastered_level)),
        recent_sessions=int(stats_data.get("recent_sessions", StatsConfig.recent_sessions)),
        history_limit=int(stats_data.get("history_limit", StatsConfig.history_limit)),
    )

    return AppConfig(database=database, quiz=quiz, stats=stats)


def load_app_config(force_reload: bool = False) -> AppConfig:
    """Load application config.

    Args:
        force_reload: If True, ignore cached config and reload from file.

    Returns:
        AppConfig object with all settings.
    """
    global _cached_config

    if _cached_config is not None and not force_reload:
        return _cached_config

    data: dict[str, Any]

    if CONFIG_FILE.exists():
        logger.debug("loading_app_config", source=str(CONFIG_FILE))
        data = yaml.safe_load(CONFIG_FILE.read_text(encoding="utf-8")) or {}
    else:
        logger.info("using_default_config")
        data = _get_defaults()

    _cached_config = _parse_config(data)
    return _cached_config


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Useful for testing or when config is modified at runtime.
    """
    global _cached_config
    _cached_config = None
