"""Database access helpers for principals and departments."""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from . import models, schemas, security
from .errors import ConflictError, NotFoundError, ValidationError
from .policy import Action, require

logger = logging.getLogger(__name__)


def list_users(db: Session, *, skip: int = 0, limit: int = 50) -> list[models.User]:
    statement = select(models.User).order_by(models.User.id).offset(skip).limit(limit)
    return list(db.scalars(statement))


def get_user(db: Session, user_id: int) -> Optional[models.User]:
    return db.get(models.User, user_id)


def get_user_by_username(db: Session, username: str) -> Optional[models.User]:
    statement = select(models.User).where(models.User.username == username)
    return db.scalars(statement).first()


def create_user(db: Session, payload: schemas.UserCreate) -> models.User:
    user = models.User(
        username=payload.username,
        full_name=payload.full_name,
        email=payload.email,
        hashed_password=security.hash_password(payload.password),
        role=payload.role,
        is_active=payload.is_active,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError(f"Username '{payload.username}' already exists", field="username") from exc
    db.refresh(user)
    logger.info("Created user %s with role %s", user.username, user.role.value)
    return user


def authenticate_user(db: Session, username: str, password: str) -> Optional[models.User]:
    """Return the matching user when the credentials are valid."""

    user = get_user_by_username(db, username)
    if not user or not user.is_active:
        return None
    if not security.verify_password(password, user.hashed_password):
        return None
    return user


def list_departments(db: Session) -> list[models.Department]:
    return list(db.scalars(select(models.Department).order_by(models.Department.name)))


def get_department(db: Session, department_id: int) -> models.Department:
    department = db.get(models.Department, department_id)
    if department is None:
        raise NotFoundError(f"Department {department_id} not found", field="departmentId")
    return department


def create_department(db: Session, name: str, actor: models.User) -> models.Department:
    require(actor.role, Action.CREATE_RESOURCE)
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError("Department name is required", field="name")
    department = models.Department(name=cleaned)
    db.add(department)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError(f"Department '{cleaned}' already exists", field="name") from exc
    db.refresh(department)
    logger.info("Created department %s (id=%s)", department.name, department.id)
    return department
