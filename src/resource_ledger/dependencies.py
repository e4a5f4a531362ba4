"""Shared FastAPI dependencies."""

from __future__ import annotations

from typing import Generator, Optional

from fastapi import Query, Request
from sqlalchemy.orm import Session

from .config import Settings


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_db(request: Request) -> Generator[Session, None, None]:
    """Provide a database session bound to the application's engine."""

    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def pagination_params(
    request: Request,
    page: int = Query(1, ge=1),
    page_size: Optional[int] = Query(None, alias="pageSize", ge=1),
) -> tuple[int, int]:
    settings: Settings = request.app.state.settings
    if page_size is None:
        page_size = settings.default_page_size
    if page_size > settings.max_page_size:
        page_size = settings.max_page_size
    return page, page_size
