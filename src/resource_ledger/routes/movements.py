from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from .. import ledger, models, movements, resources, schemas
from ..auth import get_current_user, get_reader
from ..config import Settings
from ..dependencies import get_app_settings, get_db, pagination_params
from .resources import resource_read

router = APIRouter(prefix="/movements", tags=["movements"])


@router.get("", response_model=schemas.Page[schemas.MovementRead])
def list_movements(
    resource_id: int = Query(..., alias="resourceId"),
    pagination: tuple[int, int] = Depends(pagination_params),
    db: Session = Depends(get_db),
    _: models.User = Depends(get_reader),
) -> schemas.Page[schemas.MovementRead]:
    page, page_size = pagination
    items = movements.list_movements(db, resource_id, page=page, page_size=page_size)
    return schemas.Page[schemas.MovementRead](
        items=[schemas.MovementRead.model_validate(item) for item in items],
        total=movements.count_movements(db, resource_id),
        page=page,
        page_size=page_size,
    )


@router.post("", response_model=schemas.MovementReceipt, status_code=status.HTTP_201_CREATED)
def create_movement(
    payload: schemas.MovementCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
    settings: Settings = Depends(get_app_settings),
) -> schemas.MovementReceipt:
    receipt = ledger.record_movement(
        db,
        user,
        resource_id=payload.resource_id,
        movement_type=payload.movement_type,
        quantity=payload.quantity,
        notes=payload.notes,
        reference_period=payload.reference_period,
        settings=settings,
    )
    count = resources.movement_counts(db, [receipt.resource.id])[receipt.resource.id]
    return schemas.MovementReceipt(
        resource=resource_read(receipt.resource, count),
        movement=schemas.MovementRead.model_validate(receipt.movement),
    )
