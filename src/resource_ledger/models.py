"""Database models."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum as PyEnum
from typing import Optional

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .amounts import Amount
from .constants import MovementType, ResourceStatus, Role
from .database import Base

# Balances and quantities share one exact fixed-point type.
AMOUNT = Amount()


def utcnow() -> datetime:
    """Naive UTC timestamp; SQLite does not keep tzinfo anyway."""

    return datetime.now(timezone.utc).replace(tzinfo=None)


def _enum(enum_cls: type[PyEnum], length: int) -> Enum:
    return Enum(
        enum_cls,
        native_enum=False,
        length=length,
        values_callable=lambda members: [member.value for member in members],
        validate_strings=True,
    )


class User(Base):
    """An authenticated principal of the HR application."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    full_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    email: Mapped[str | None] = mapped_column(String(128), nullable=True)
    hashed_password: Mapped[str] = mapped_column(String(256), nullable=False)
    role: Mapped[Role] = mapped_column(_enum(Role, 16), nullable=False, default=Role.EMPLOYEE)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<User username={self.username!r} role={self.role.value}>"


class Department(Base):
    """Organisational unit a resource can be scoped to."""

    __tablename__ = "departments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(120), unique=True, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)


class Resource(Base):
    """A named, balance-bearing quantity tracked by the ledger.

    ``current_balance`` is only ever written by the balance engine; every other
    column is fixed at creation apart from ``updated_at``.
    """

    __tablename__ = "resources"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    slug: Mapped[str] = mapped_column(String(80), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    department_id: Mapped[int | None] = mapped_column(
        ForeignKey("departments.id", ondelete="RESTRICT"), nullable=True, index=True
    )
    initial_balance: Mapped[Decimal] = mapped_column(AMOUNT, nullable=False)
    current_balance: Mapped[Decimal] = mapped_column(AMOUNT, nullable=False)
    status: Mapped[ResourceStatus] = mapped_column(
        _enum(ResourceStatus, 16), nullable=False, default=ResourceStatus.ACTIVE, index=True
    )
    created_by_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="RESTRICT"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    department: Mapped[Optional[Department]] = relationship(lazy="joined")
    created_by: Mapped[User] = relationship(lazy="joined")

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<Resource slug={self.slug!r} balance={self.current_balance}>"


class Movement(Base):
    """An immutable, attributed change to a resource's balance."""

    __tablename__ = "movements"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    resource_id: Mapped[int] = mapped_column(
        ForeignKey("resources.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    movement_type: Mapped[MovementType] = mapped_column(_enum(MovementType, 16), nullable=False, index=True)
    quantity: Mapped[Decimal] = mapped_column(AMOUNT, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    reference_period: Mapped[str | None] = mapped_column(String(50), nullable=True)
    performed_by_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="RESTRICT"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, index=True)

    performed_by: Mapped[User] = relationship(lazy="joined")

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<Movement {self.movement_type.value} {self.quantity} resource={self.resource_id}>"
