"""Resource store: creation, lookup and listing of strategic resources.

Nothing in this module commits a change to ``current_balance`` on its own.
:func:`update_balance` is the internal hook the balance engine calls inside
its transaction; callers outside :mod:`resource_ledger.ledger` must not use it.
"""

from __future__ import annotations

import logging
import re
import unicodedata
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy import func, select, type_coerce, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from . import crud, models, schemas
from .amounts import from_column, to_amount
from .constants import DESCRIPTION_MAX_LENGTH, NAME_MAX_LENGTH, SLUG_MAX_LENGTH, ResourceStatus
from .errors import ConflictError, NotFoundError, ValidationError
from .policy import Action, require
from .text import clean_text

logger = logging.getLogger(__name__)

_NON_SLUG = re.compile(r"[^a-z0-9]+")


@dataclass(frozen=True, slots=True)
class PortfolioSummary:
    count: int
    total_initial: Decimal
    total_current: Decimal

    @property
    def variance(self) -> Decimal:
        return self.total_current - self.total_initial


def slugify(value: str) -> str:
    """Return the URL-safe slug for *value*; accents are folded to ASCII."""

    decomposed = unicodedata.normalize("NFKD", value)
    ascii_only = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    slug = _NON_SLUG.sub("-", ascii_only.lower()).strip("-")
    return slug[:SLUG_MAX_LENGTH].rstrip("-")


def create_resource(db: Session, payload: schemas.ResourceCreate, actor: models.User) -> models.Resource:
    """Create a resource whose current balance starts at its initial balance."""

    require(actor.role, Action.CREATE_RESOURCE)

    name = clean_text(payload.name, limit=NAME_MAX_LENGTH, field="name")
    if not name:
        raise ValidationError("Resource name is required", field="name")

    initial_balance = to_amount(payload.initial_balance, field="initialBalance")
    if initial_balance < 0:
        raise ValidationError("Initial balance must be zero or greater", field="initialBalance")

    requested_slug = clean_text(payload.slug)
    slug = slugify(requested_slug or name)
    if not slug:
        raise ValidationError(
            "Resource name or slug does not produce a valid slug",
            field="slug" if requested_slug else "name",
        )

    description = clean_text(payload.description, limit=DESCRIPTION_MAX_LENGTH, field="description")

    if payload.department_id is not None:
        crud.get_department(db, payload.department_id)

    if db.scalar(select(models.Resource.id).where(models.Resource.slug == slug)) is not None:
        raise ConflictError(f"A resource with slug '{slug}' already exists", field="slug")

    resource = models.Resource(
        slug=slug,
        name=name,
        description=description,
        department_id=payload.department_id,
        initial_balance=initial_balance,
        current_balance=initial_balance,
        status=ResourceStatus(payload.status),
        created_by_id=actor.id,
    )
    db.add(resource)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError(f"A resource with slug '{slug}' already exists", field="slug") from exc
    db.refresh(resource)
    logger.info(
        "Created resource %s (id=%s) with initial balance %s by %s",
        resource.slug,
        resource.id,
        resource.initial_balance,
        actor.username,
    )
    return resource


def get_resource(db: Session, resource_id: int) -> models.Resource:
    resource = db.get(models.Resource, resource_id)
    if resource is None:
        raise NotFoundError(f"Resource {resource_id} not found", field="resourceId")
    return resource


def list_resources(
    db: Session,
    *,
    status: Optional[ResourceStatus | str] = None,
    search: Optional[str] = None,
) -> list[models.Resource]:
    """List resources newest first, optionally filtered by status and free text."""

    statement = select(models.Resource).outerjoin(
        models.Department, models.Resource.department_id == models.Department.id
    )
    if status:
        statement = statement.where(models.Resource.status == ResourceStatus(status))
    query = (search or "").strip()
    if query:
        statement = statement.where(
            models.Resource.name.icontains(query, autoescape=True)
            | models.Resource.slug.icontains(query, autoescape=True)
            | models.Department.name.icontains(query, autoescape=True)
        )
    statement = statement.order_by(models.Resource.created_at.desc(), models.Resource.id.desc())
    return list(db.scalars(statement).unique())


def movement_counts(db: Session, resource_ids: Iterable[int]) -> dict[int, int]:
    ids = list(resource_ids)
    if not ids:
        return {}
    statement = (
        select(models.Movement.resource_id, func.count(models.Movement.id))
        .where(models.Movement.resource_id.in_(ids))
        .group_by(models.Movement.resource_id)
    )
    counts = {resource_id: 0 for resource_id in ids}
    counts.update({resource_id: count for resource_id, count in db.execute(statement)})
    return counts


def portfolio_summary(db: Session) -> PortfolioSummary:
    statement = select(
        func.count(models.Resource.id),
        type_coerce(func.coalesce(func.sum(models.Resource.initial_balance), 0), models.AMOUNT),
        type_coerce(func.coalesce(func.sum(models.Resource.current_balance), 0), models.AMOUNT),
    )
    count, total_initial, total_current = db.execute(statement).one()
    return PortfolioSummary(
        count=count,
        total_initial=from_column(total_initial),
        total_current=from_column(total_current),
    )


def update_balance(db: Session, resource_id: int, delta: Decimal) -> models.Resource:
    """Apply *delta* to the stored balance inside the caller's transaction.

    The increment is computed by the database against the latest committed
    row, so two writers can never both start from the same stale balance.
    """

    result = db.execute(
        update(models.Resource)
        .where(models.Resource.id == resource_id)
        .values(
            current_balance=models.Resource.current_balance + type_coerce(delta, models.AMOUNT),
            updated_at=models.utcnow(),
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise NotFoundError(f"Resource {resource_id} not found", field="resourceId")
    return db.execute(
        select(models.Resource)
        .where(models.Resource.id == resource_id)
        .execution_options(populate_existing=True)
    ).scalar_one()
