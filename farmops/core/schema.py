from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

AssignmentStatus = Literal["active", "completed", "cancelled"]
WorkerStatus = Literal["active", "inactive", "on-leave"]
DebtStatus = Literal["pending", "partially_paid", "paid", "cancelled", "overdue"]

PERIODS = ("week", "month", "quarter", "year")
GRANULARITIES = ("hourly", "daily", "weekly", "monthly", "quarterly", "yearly")
PITAK_STATUSES = ("active", "inactive", "completed")
ASSIGNMENT_STATUSES = ("active", "completed", "cancelled")
DEBT_STATUSES = ("pending", "partially_paid", "paid", "cancelled", "overdue")


def as_naive(value: datetime | None) -> datetime | None:
    """Stored timestamps are naive local time; offsets are converted to it."""

    if value is None or value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


class Assignment(BaseModel):
    id: int
    worker_id: int
    pitak_id: int
    session_id: int | None = None
    luwang_count: Decimal = Field(default=Decimal("0"), ge=0)
    status: AssignmentStatus = "active"
    assignment_date: datetime
    created_at: datetime | None = None
    updated_at: datetime | None = None
    notes: str | None = None

    naive_timestamps = field_validator("assignment_date", "created_at", "updated_at")(as_naive)

    @model_validator(mode="after")
    def _default_timestamps(self) -> "Assignment":
        if self.created_at is None:
            self.created_at = self.assignment_date
        if self.updated_at is None:
            self.updated_at = self.created_at
        return self


class Worker(BaseModel):
    id: int
    name: str
    status: WorkerStatus = "active"
    contact: str | None = None
    email: str | None = None
    address: str | None = None


class Bukid(BaseModel):
    id: int
    name: str
    location: str | None = None
    session_id: int | None = None


class Pitak(BaseModel):
    id: int
    location: str | None = None
    status: str = "active"
    total_luwang: Decimal = Field(default=Decimal("0"), ge=0)
    bukid_id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    naive_timestamps = field_validator("created_at", "updated_at")(as_naive)


class Payment(BaseModel):
    id: int
    worker_id: int
    pitak_id: int | None = None
    session_id: int | None = None
    gross_pay: Decimal = Decimal("0")
    net_pay: Decimal = Decimal("0")
    total_debt_deduction: Decimal = Decimal("0")
    other_deductions: Decimal = Decimal("0")
    status: str = "pending"
    payment_date: datetime | None = None
    payment_method: str | None = None
    created_at: datetime | None = None

    naive_timestamps = field_validator("payment_date", "created_at")(as_naive)


class Debt(BaseModel):
    id: int
    worker_id: int
    session_id: int | None = None
    original_amount: Decimal = Decimal("0")
    amount: Decimal = Decimal("0")
    balance: Decimal = Decimal("0")
    total_paid: Decimal = Decimal("0")
    interest_rate: Decimal = Decimal("0")
    date_incurred: datetime | None = None
    due_date: datetime | None = None
    last_payment_date: datetime | None = None
    status: DebtStatus = "pending"

    naive_timestamps = field_validator("date_incurred", "due_date", "last_payment_date")(as_naive)


class DateRange(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    start_date: datetime = Field(alias="startDate")
    end_date: datetime = Field(alias="endDate")

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _coerce_date(cls, value: object) -> object:
        if isinstance(value, date) and not isinstance(value, datetime):
            return datetime(value.year, value.month, value.day)
        return value

    naive_bounds = field_validator("start_date", "end_date")(as_naive)

    @model_validator(mode="after")
    def _ordered(self) -> "DateRange":
        if self.end_date < self.start_date:
            raise ValueError("endDate must not be earlier than startDate")
        return self


class AnalyticsParams(BaseModel):
    """Request options shared by every analytics view.

    Callers use the camelCase names of the dashboard API; snake_case is
    accepted as well.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    current_session: bool = Field(default=False, alias="currentSession")
    period: Literal["week", "month", "quarter", "year"] = "month"
    group_by: Literal["hourly", "daily", "weekly", "monthly", "quarterly", "yearly"] | None = Field(
        default=None, alias="groupBy"
    )
    worker_id: int | None = Field(default=None, alias="workerId")
    pitak_id: int | None = Field(default=None, alias="pitakId")
    pitak_ids: list[int] = Field(default_factory=list, alias="pitakIds")
    bukid_id: int | None = Field(default=None, alias="bukidId")
    status: str | None = None
    date_range: DateRange | None = Field(default=None, alias="dateRange")
    limit: int | None = Field(default=None, ge=1)
    min_assignments: int = Field(default=5, ge=0, alias="minAssignments")
    comparison_periods: int = Field(default=3, ge=1, alias="comparisonPeriods")
    fill_gaps: bool = Field(default=True, alias="fillGaps")
    overdue_only: bool = Field(default=False, alias="overdueOnly")

    @field_validator("pitak_ids", mode="before")
    @classmethod
    def _split_ids(cls, value: object) -> object:
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value
