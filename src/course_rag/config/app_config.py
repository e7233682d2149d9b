"""Application configuration loader.

Loads centralized configuration from config/app_config.yaml (or the file
named by COURSE_RAG_CONFIG), falling back to built-in defaults. Environment
variables win over the file, since the backend tunnel URL changes across
sessions.

Usage:
    from course_rag.config.app_config import load_app_config

    config = load_app_config()
    config.backend.base_url
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger(__name__)

# Config file path (relative to project root)
CONFIG_FILE = Path("config/app_config.yaml")

CONFIG_FILE_ENV = "COURSE_RAG_CONFIG"
BACKEND_URL_ENV = "BACKEND_API_URL"
DB_PATH_ENV = "COURSE_RAG_DB_PATH"
UPLOAD_DIR_ENV = "COURSE_RAG_UPLOAD_DIR"


@dataclass
class BackendConfig:
    """Connection settings for the remote question-answering backend."""

    base_url: str = "http://localhost:8000"
    ping_timeout: float = 5.0
    ask_timeout: float = 60.0
    upload_timeout: float = 30.0
    debug_timeout: float = 15.0

    def url(self, path: str) -> str:
        """Join an endpoint path onto the base URL."""
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"


@dataclass
class PathsConfig:
    """Local storage locations."""

    db_path: Path = Path("data/course_rag.db")
    upload_dir: Path = Path("uploads")


@dataclass
class AppConfig:
    """Application-wide configuration."""

    backend: BackendConfig = field(default_factory=BackendConfig)
    paths: PathsConfig = field(default_factory=PathsConfig)


# Module-level cache
_cached_config: AppConfig | None = None


def _get_defaults() -> dict[str, Any]:
    """Get default configuration values."""
    return {
        "backend": {
            "base_url": "http://localhost:8000",
            "ping_timeout": 5.0,
            "ask_timeout": 60.0,
            "upload_timeout": 30.0,
            "debug_timeout": 15.0,
        },
        "paths": {
            "db_path": "data/course_rag.db",
            "upload_dir": "uploads",
        },
    }


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Overlay environment variables on the parsed file contents."""
    backend_url = os.environ.get(BACKEND_URL_ENV)
    if backend_url:
        data.setdefault("backend", {})["base_url"] = backend_url

    db_path = os.environ.get(DB_PATH_ENV)
    if db_path:
        data.setdefault("paths", {})["db_path"] = db_path

    upload_dir = os.environ.get(UPLOAD_DIR_ENV)
    if upload_dir:
        data.setdefault("paths", {})["upload_dir"] = upload_dir

    return data


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """Parse configuration dictionary into AppConfig object."""
    defaults = _get_defaults()

    backend_data = {**defaults["backend"], **(data.get("backend") or {})}
    backend = BackendConfig(
        base_url=str(backend_data["base_url"]),
        ping_timeout=float(backend_data["ping_timeout"]),
        ask_timeout=float(backend_data["ask_timeout"]),
        upload_timeout=float(backend_data["upload_timeout"]),
        debug_timeout=float(backend_data["debug_timeout"]),
    )

    paths_data = {**defaults["paths"], **(data.get("paths") or {})}
    paths = PathsConfig(
        db_path=Path(paths_data["db_path"]),
        upload_dir=Path(paths_data["upload_dir"]),
    )

    return AppConfig(backend=backend, paths=paths)


def _config_file() -> Path:
    override = os.environ.get(CONFIG_FILE_ENV)
    return Path(override) if override else CONFIG_FILE


def load_app_config(force_reload: bool = False) -> AppConfig:
    """Load application config from YAML, defaults and environment.

    Args:
        force_reload: If True, ignore cached config and reload from file.

    Returns:
        AppConfig object with all settings.
    """
    global _cached_config

    if _cached_config is not None and not force_reload:
        return _cached_config

    data: dict[str, Any]
    config_file = _config_file()

    if config_file.exists():
        logger.debug("loading_app_config", source=str(config_file))
        data = yaml.safe_load(config_file.read_text(encoding="utf-8")) or {}
    else:
        logger.info("using_default_config")
        data = _get_defaults()

    _cached_config = _parse_config(_apply_env_overrides(data))
    return _cached_config


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Useful for testing or when config is modified at runtime.
    """
    global _cached_config
    _cached_config = None
