"""Balance engine.

This module owns the only code path that changes a resource's
``current_balance``. A movement and the balance update it implies are written
in one transaction: either both become visible or neither does.

Balance rule::

    delta(ENTRY, q)      = +q
    delta(EXIT, q)       = -q
    delta(ADJUSTMENT, q) = +q   (q may be negative)

so that for every resource ``current_balance == initial_balance + sum(delta)``.
The same rule drives :func:`balance_series`, which replays a resource's
history for charts and audits, and :func:`verify_integrity`, which checks the
stored balance against that replay.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Iterable, Optional, Protocol

from sqlalchemy import case, func, select, type_coerce
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from . import models, movements, resources
from .amounts import from_column, in_range, to_amount
from .config import Settings, get_settings
from .constants import INITIAL_POINT_LABEL, NOTES_MAX_LENGTH, REFERENCE_PERIOD_MAX_LENGTH, MovementType
from .errors import ConflictError, LedgerError, LedgerIntegrityError, NotFoundError, StorageError, ValidationError
from .policy import Action, require
from .text import clean_text

logger = logging.getLogger(__name__)


class _Replayable(Protocol):
    id: int
    movement_type: MovementType
    quantity: Decimal
    created_at: datetime


@dataclass(frozen=True, slots=True)
class MovementReceipt:
    resource: models.Resource
    movement: models.Movement


@dataclass(frozen=True, slots=True)
class BalancePoint:
    label: str
    balance: Decimal
    movement_id: Optional[int] = None


@dataclass(frozen=True, slots=True)
class IntegrityReport:
    resource_id: int
    expected_balance: Decimal
    current_balance: Decimal
    movement_count: int

    @property
    def consistent(self) -> bool:
        return self.expected_balance == self.current_balance


def _movement_type(value: MovementType | str) -> MovementType:
    try:
        return MovementType(value)
    except ValueError as exc:
        raise ValidationError(f"Unknown movement type '{value}'", field="movementType") from exc


def signed_delta(movement_type: MovementType | str, quantity: Decimal) -> Decimal:
    """Return the signed balance change a movement represents."""

    kind = _movement_type(movement_type)
    if kind is MovementType.EXIT:
        return -quantity
    return quantity


def validate_quantity(movement_type: MovementType | str, quantity: Any) -> Decimal:
    """Return *quantity* as a Decimal or raise :class:`ValidationError`.

    Entries and exits carry a strictly positive magnitude; adjustments may be
    signed but never zero.
    """

    kind = _movement_type(movement_type)
    amount = to_amount(quantity, field="quantity")
    if amount == 0:
        raise ValidationError("Quantity must be different from zero", field="quantity")
    if kind is not MovementType.ADJUSTMENT and amount < 0:
        raise ValidationError("Entries and exits must use positive quantities", field="quantity")
    return amount


def _apply(
    db: Session,
    actor: models.User,
    *,
    resource_id: int,
    movement_type: MovementType,
    quantity: Decimal,
    notes: Optional[str],
    reference_period: Optional[str],
    allow_negative_balance: bool,
) -> MovementReceipt:
    # Row lock where the backend supports it; SQLite serialises on the UPDATE.
    locked = db.execute(
        select(models.Resource.id).where(models.Resource.id == resource_id).with_for_update()
    ).scalar_one_or_none()
    if locked is None:
        raise NotFoundError(f"Resource {resource_id} not found", field="resourceId")

    resource = resources.update_balance(db, resource_id, signed_delta(movement_type, quantity))
    if resource.current_balance < 0 and not allow_negative_balance:
        raise ValidationError("The movement would leave the balance below zero", field="quantity")
    if not in_range(resource.current_balance):
        raise ValidationError("The movement would push the balance out of the supported range", field="quantity")

    movement = movements.append_movement(
        db,
        resource_id=resource_id,
        movement_type=movement_type,
        quantity=quantity,
        notes=notes,
        reference_period=reference_period,
        performed_by=actor,
    )
    return MovementReceipt(resource=resource, movement=movement)


def record_movement(
    db: Session,
    actor: models.User,
    *,
    resource_id: int,
    movement_type: MovementType | str,
    quantity: Any,
    notes: Optional[str] = None,
    reference_period: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> MovementReceipt:
    """Validate and apply one movement, committing it with the new balance.

    Lock contention is retried up to ``settings.max_retries`` times with a
    linear backoff, after which :class:`ConflictError` is raised. Every failure
    rolls the session back first, so no partial write is ever observable.
    """

    settings = settings or get_settings()
    require(actor.role, Action.CREATE_MOVEMENT)

    kind = _movement_type(movement_type)
    amount = validate_quantity(kind, quantity)
    cleaned_notes = clean_text(notes, limit=NOTES_MAX_LENGTH, field="notes")
    cleaned_period = clean_text(reference_period, limit=REFERENCE_PERIOD_MAX_LENGTH, field="referencePeriod")

    attempts = max(1, settings.max_retries)
    for attempt in range(1, attempts + 1):
        try:
            receipt = _apply(
                db,
                actor,
                resource_id=resource_id,
                movement_type=kind,
                quantity=amount,
                notes=cleaned_notes,
                reference_period=cleaned_period,
                allow_negative_balance=settings.allow_negative_balance,
            )
            db.commit()
        except LedgerError:
            db.rollback()
            raise
        except OperationalError as exc:
            db.rollback()
            if attempt == attempts:
                logger.error(
                    "Giving up on %s for resource %s after %s attempts: %s",
                    kind.value,
                    resource_id,
                    attempts,
                    exc,
                )
                raise ConflictError(
                    "The resource is busy; the movement was not recorded, please retry"
                ) from exc
            logger.warning(
                "Contention recording %s on resource %s (attempt %s/%s)",
                kind.value,
                resource_id,
                attempt,
                attempts,
            )
            time.sleep(settings.retry_backoff * attempt)
            continue
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error("Storage failure recording movement on resource %s: %s", resource_id, exc)
            raise StorageError("The ledger store failed to record the movement") from exc

        logger.info(
            "Recorded %s of %s on resource %s by %s; balance now %s",
            kind.value,
            amount,
            resource_id,
            actor.username,
            receipt.resource.current_balance,
        )
        return receipt

    raise AssertionError("unreachable")  # pragma: no cover


def balance_series(initial_balance: Decimal, history: Iterable[_Replayable]) -> list[BalancePoint]:
    """Replay *history* from *initial_balance* and return one point per step.

    The input order does not matter; movements are replayed by creation time
    with the id as tie-breaker.
    """

    running = from_column(initial_balance)
    points = [BalancePoint(label=INITIAL_POINT_LABEL, balance=running)]
    for movement in sorted(history, key=lambda m: (m.created_at, m.id)):
        running += signed_delta(movement.movement_type, from_column(movement.quantity))
        points.append(
            BalancePoint(
                label=movement.created_at.date().isoformat(),
                balance=running,
                movement_id=movement.id,
            )
        )
    return points


def reconstruct_balance_series(db: Session, resource_id: int) -> list[BalancePoint]:
    resource = resources.get_resource(db, resource_id)
    history = movements.list_movements(db, resource_id, page_size=None, ascending=True)
    return balance_series(resource.initial_balance, history)


def verify_integrity(db: Session, resource_id: int) -> IntegrityReport:
    """Compare the stored balance with the replayed one in a single query."""

    signed = case(
        (models.Movement.movement_type == MovementType.EXIT, -models.Movement.quantity),
        else_=models.Movement.quantity,
    )
    statement = (
        select(
            models.Resource.initial_balance,
            models.Resource.current_balance,
            type_coerce(func.coalesce(func.sum(signed), 0), models.AMOUNT),
            func.count(models.Movement.id),
        )
        .outerjoin(models.Movement, models.Movement.resource_id == models.Resource.id)
        .where(models.Resource.id == resource_id)
        .group_by(models.Resource.id, models.Resource.initial_balance, models.Resource.current_balance)
    )
    row = db.execute(statement).one_or_none()
    if row is None:
        raise NotFoundError(f"Resource {resource_id} not found", field="resourceId")
    initial_balance, current_balance, total_delta, count = row
    report = IntegrityReport(
        resource_id=resource_id,
        expected_balance=from_column(initial_balance) + from_column(total_delta),
        current_balance=from_column(current_balance),
        movement_count=int(count),
    )
    if not report.consistent:
        logger.warning(
            "Ledger mismatch on resource %s: stored %s, replayed %s over %s movements",
            resource_id,
            report.current_balance,
            report.expected_balance,
            report.movement_count,
        )
    return report


def assert_integrity(db: Session, resource_id: int) -> IntegrityReport:
    report = verify_integrity(db, resource_id)
    if not report.consistent:
        raise LedgerIntegrityError(
            f"Resource {resource_id} balance {report.current_balance} does not match "
            f"its history ({report.expected_balance})"
        )
    return report
