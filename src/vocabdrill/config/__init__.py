"""Configuration package for vocabdrill."""

from vocabdrill.config.app_config import (
    AppConfig,
    DatabaseConfig,
    QuizConfig,
    StatsConfig,
    clear_config_cache,
    load_app_config,
)

__all__ = [
    "AppConfig",
    "DatabaseConfig",
    "QuizConfig",
    "StatsConfig",
    "clear_config_cache",
    "load_app_config",
]
