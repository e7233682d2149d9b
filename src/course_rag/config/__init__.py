"""Configuration package for the course manager."""

from course_rag.config.app_config import (
    AppConfig,
    BackendConfig,
    PathsConfig,
    clear_config_cache,
    load_app_config,
)

__all__ = [
    "AppConfig",
    "BackendConfig",
    "PathsConfig",
    "clear_config_cache",
    "load_app_config",
]
