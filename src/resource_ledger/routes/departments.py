from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from .. import crud, models, schemas
from ..auth import get_current_user, get_reader
from ..dependencies import get_db

router = APIRouter(prefix="/departments", tags=["departments"])


@router.get("", response_model=list[schemas.DepartmentRead])
def list_departments(
    db: Session = Depends(get_db),
    _: models.User = Depends(get_reader),
) -> list[models.Department]:
    return crud.list_departments(db)


@router.post("", response_model=schemas.DepartmentRead, status_code=status.HTTP_201_CREATED)
def create_department(
    payload: schemas.DepartmentCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> models.Department:
    return crud.create_department(db, payload.name, user)
