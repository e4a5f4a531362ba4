"""Pydantic schemas for API payloads.

JSON field names are camelCase on the wire; Python code keeps snake_case and
models accept either spelling on input.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from .constants import (
    DESCRIPTION_MAX_LENGTH,
    NAME_MAX_LENGTH,
    NOTES_MAX_LENGTH,
    REFERENCE_PERIOD_MAX_LENGTH,
    SLUG_MAX_LENGTH,
    MovementType,
    ResourceStatus,
    Role,
)

T = TypeVar("T")


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class UserBase(ApiModel):
    username: str = Field(..., min_length=3, max_length=64)
    full_name: Optional[str] = Field(None, max_length=128)
    email: Optional[EmailStr] = None
    role: Role = Role.EMPLOYEE
    is_active: bool = True


class UserCreate(UserBase):
    password: str = Field(..., min_length=6, max_length=128)


class UserRead(UserBase):
    id: int
    created_at: datetime


class UserRef(ApiModel):
    """Compact principal reference embedded in resources and movements."""

    id: int
    username: str
    full_name: Optional[str] = None
    role: Role


class LoginRequest(ApiModel):
    username: str
    password: str


class LoginResponse(ApiModel):
    token: str
    user: UserRead


class DepartmentCreate(ApiModel):
    name: str = Field(..., min_length=1, max_length=120)


class DepartmentRead(ApiModel):
    id: int
    name: str


class ResourceCreate(ApiModel):
    name: str = Field(..., max_length=NAME_MAX_LENGTH)
    slug: Optional[str] = Field(None, min_length=2, max_length=SLUG_MAX_LENGTH)
    description: Optional[str] = Field(None, max_length=DESCRIPTION_MAX_LENGTH)
    department_id: Optional[int] = None
    initial_balance: Decimal
    status: ResourceStatus = ResourceStatus.ACTIVE


class ResourceRead(ApiModel):
    id: int
    slug: str
    name: str
    description: Optional[str] = None
    department_id: Optional[int] = None
    department: Optional[DepartmentRead] = None
    initial_balance: float
    current_balance: float
    status: ResourceStatus
    created_by: UserRef
    created_at: datetime
    updated_at: datetime
    movements_count: int = 0


class MovementCreate(ApiModel):
    resource_id: int
    movement_type: MovementType
    quantity: Decimal
    notes: Optional[str] = Field(None, max_length=NOTES_MAX_LENGTH)
    reference_period: Optional[str] = Field(None, max_length=REFERENCE_PERIOD_MAX_LENGTH)


class MovementRead(ApiModel):
    id: int
    resource_id: int
    movement_type: MovementType
    quantity: float
    notes: Optional[str] = None
    reference_period: Optional[str] = None
    performed_by: UserRef
    created_at: datetime


class MovementReceipt(ApiModel):
    resource: ResourceRead
    movement: MovementRead


class Page(ApiModel, Generic[T]):
    items: list[T]
    total: int
    page: int
    page_size: Optional[int] = None


class MovementTotals(ApiModel):
    entries: float
    exits: float
    adjustments: float
    count: int


class BalancePoint(ApiModel):
    label: str
    balance: float
    movement_id: Optional[int] = None


class PortfolioSummary(ApiModel):
    count: int
    total_initial: float
    total_current: float
    variance: float


class IntegrityReport(ApiModel):
    resource_id: int
    expected_balance: float
    current_balance: float
    movement_count: int
    consistent: bool


class ErrorResponse(ApiModel):
    error: str
    code: str
    details: dict[str, list[str]] = Field(default_factory=dict)
