"""Authentication helpers for API handlers."""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from . import crud, models, security
from .config import Settings
from .dependencies import get_app_settings, get_db
from .policy import Action, require

SESSION_COOKIE = "resource_ledger_session"


def _token_from_request(request: Request) -> Optional[str]:
    header = request.headers.get("Authorization", "")
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials.strip()
    return request.cookies.get(SESSION_COOKIE)


def _resolve_user(request: Request, db: Session, settings: Settings) -> Optional[models.User]:
    token = _token_from_request(request)
    if not token:
        return None

    user_id = security.read_session_token(token, settings.secret_key, max_age=settings.session_max_age)
    if user_id is None:
        return None

    user = crud.get_user(db, user_id)
    if not user or not user.is_active:
        return None
    return user


def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> models.User:
    """Require an authenticated, active user from the session cookie or bearer token."""

    user = _resolve_user(request, db, settings)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def get_reader(user: models.User = Depends(get_current_user)) -> models.User:
    """Authenticated user whose role may read ledger data."""

    require(user.role, Action.READ)
    return user
