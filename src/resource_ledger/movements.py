"""Movement ledger: append-only storage and retrieval of movements."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from sqlalchemy import case, func, select, type_coerce
from sqlalchemy.orm import Session

from . import models
from .amounts import from_column
from .constants import MovementType
from .errors import NotFoundError, ValidationError


@dataclass(frozen=True, slots=True)
class MovementTotals:
    """Quantity sums per movement type for one resource."""

    entries: Decimal
    exits: Decimal
    adjustments: Decimal
    count: int


def _ensure_resource(db: Session, resource_id: int) -> None:
    exists = db.scalar(select(models.Resource.id).where(models.Resource.id == resource_id))
    if exists is None:
        raise NotFoundError(f"Resource {resource_id} not found", field="resourceId")


def append_movement(
    db: Session,
    *,
    resource_id: int,
    movement_type: MovementType,
    quantity: Decimal,
    performed_by: models.User,
    notes: Optional[str] = None,
    reference_period: Optional[str] = None,
) -> models.Movement:
    """Insert a movement inside the caller's open transaction.

    The caller is responsible for validating the quantity and for committing;
    this function only flushes so the new row gets its id.
    """

    movement = models.Movement(
        resource_id=resource_id,
        movement_type=movement_type,
        quantity=quantity,
        notes=notes,
        reference_period=reference_period,
        performed_by_id=performed_by.id,
        created_at=models.utcnow(),
    )
    db.add(movement)
    db.flush()
    return movement


def list_movements(
    db: Session,
    resource_id: int,
    *,
    page: int = 1,
    page_size: Optional[int] = 8,
    ascending: bool = False,
) -> list[models.Movement]:
    """Return one page of a resource's movements.

    Newest first by default; ``ascending=True`` yields replay order. Pass
    ``page_size=None`` to fetch the full history.
    """

    if page < 1:
        raise ValidationError("Page numbers start at 1", field="page")
    if page_size is not None and page_size < 1:
        raise ValidationError("Page size must be positive", field="pageSize")
    _ensure_resource(db, resource_id)

    if ascending:
        ordering = (models.Movement.created_at.asc(), models.Movement.id.asc())
    else:
        ordering = (models.Movement.created_at.desc(), models.Movement.id.desc())
    statement = select(models.Movement).where(models.Movement.resource_id == resource_id).order_by(*ordering)
    if page_size is not None:
        statement = statement.offset((page - 1) * page_size).limit(page_size)
    return list(db.scalars(statement))


def count_movements(db: Session, resource_id: int) -> int:
    statement = select(func.count(models.Movement.id)).where(models.Movement.resource_id == resource_id)
    return int(db.scalar(statement) or 0)


def movement_totals(db: Session, resource_id: int) -> MovementTotals:
    _ensure_resource(db, resource_id)

    def _sum_of(kind: MovementType):
        return type_coerce(
            func.coalesce(func.sum(case((models.Movement.movement_type == kind, models.Movement.quantity), else_=0)), 0),
            models.AMOUNT,
        )

    statement = select(
        _sum_of(MovementType.ENTRY),
        _sum_of(MovementType.EXIT),
        _sum_of(MovementType.ADJUSTMENT),
        func.count(models.Movement.id),
    ).where(models.Movement.resource_id == resource_id)
    entries, exits, adjustments, count = db.execute(statement).one()
    return MovementTotals(
        entries=from_column(entries),
        exits=from_column(exits),
        adjustments=from_column(adjustments),
        count=int(count or 0),
    )
