from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from .. import ledger, models, movements, resources, schemas
from ..auth import get_current_user, get_reader
from ..constants import ResourceStatus
from ..dependencies import get_db

router = APIRouter(prefix="/resources", tags=["resources"])


def resource_read(resource: models.Resource, movements_count: int) -> schemas.ResourceRead:
    data = schemas.ResourceRead.model_validate(resource)
    data.movements_count = movements_count
    return data


@router.get("", response_model=list[schemas.ResourceRead])
def list_resources(
    status_filter: Optional[ResourceStatus] = Query(None, alias="status"),
    q: Optional[str] = Query(None, max_length=120),
    db: Session = Depends(get_db),
    _: models.User = Depends(get_reader),
) -> list[schemas.ResourceRead]:
    items = resources.list_resources(db, status=status_filter, search=q)
    counts = resources.movement_counts(db, (item.id for item in items))
    return [resource_read(item, counts.get(item.id, 0)) for item in items]


@router.post("", response_model=schemas.ResourceRead, status_code=status.HTTP_201_CREATED)
def create_resource(
    payload: schemas.ResourceCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> schemas.ResourceRead:
    resource = resources.create_resource(db, payload, user)
    return resource_read(resource, 0)


@router.get("/summary", response_model=schemas.PortfolioSummary)
def portfolio_summary(
    db: Session = Depends(get_db),
    _: models.User = Depends(get_reader),
) -> schemas.PortfolioSummary:
    summary = resources.portfolio_summary(db)
    return schemas.PortfolioSummary(
        count=summary.count,
        total_initial=summary.total_initial,
        total_current=summary.total_current,
        variance=summary.variance,
    )


@router.get("/{resource_id}", response_model=schemas.ResourceRead)
def get_resource(
    resource_id: int,
    db: Session = Depends(get_db),
    _: models.User = Depends(get_reader),
) -> schemas.ResourceRead:
    resource = resources.get_resource(db, resource_id)
    return resource_read(resource, movements.count_movements(db, resource_id))


@router.get("/{resource_id}/series", response_model=list[schemas.BalancePoint])
def balance_series(
    resource_id: int,
    db: Session = Depends(get_db),
    _: models.User = Depends(get_reader),
) -> list[schemas.BalancePoint]:
    points = ledger.reconstruct_balance_series(db, resource_id)
    return [schemas.BalancePoint.model_validate(point) for point in points]


@router.get("/{resource_id}/totals", response_model=schemas.MovementTotals)
def movement_totals(
    resource_id: int,
    db: Session = Depends(get_db),
    _: models.User = Depends(get_reader),
) -> schemas.MovementTotals:
    return schemas.MovementTotals.model_validate(movements.movement_totals(db, resource_id))


@router.get("/{resource_id}/integrity", response_model=schemas.IntegrityReport)
def integrity(
    resource_id: int,
    db: Session = Depends(get_db),
    _: models.User = Depends(get_reader),
) -> schemas.IntegrityReport:
    report = ledger.verify_integrity(db, resource_id)
    return schemas.IntegrityReport(
        resource_id=report.resource_id,
        expected_balance=report.expected_balance,
        current_balance=report.current_balance,
        movement_count=report.movement_count,
        consistent=report.consistent,
    )
