"""Request dependencies for route handlers.

The store handle, backend client and config are built once by create_app()
and kept on app.state; routes receive them through Depends().
"""

from pathlib import Path

from fastapi import Request

from course_rag.backend.client import BackendClient
from course_rag.config.app_config import AppConfig
from course_rag.db.database import Database


def get_database(request: Request) -> Database:
    return request.app.state.db


def get_backend(request: Request) -> BackendClient:
    return request.app.state.backend


def get_config(request: Request) -> AppConfig:
    return request.app.state.config


def get_upload_dir(request: Request) -> Path:
    return request.app.state.config.paths.upload_dir
