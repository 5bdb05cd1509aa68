"""Job (service engagement) domain models."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from utils.civil_dates import parse_wall_time


class JobStatus(str, Enum):
    """Job lifecycle status."""

    LEAD = "lead"
    QUOTED = "quoted"
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


class ServiceType(str, Enum):
    """Work performed on a job."""

    INSIDE_WINDOWS = "inside_windows"
    OUTSIDE_WINDOWS = "outside_windows"
    GUTTERS = "gutters"
    SCREENS = "screens"
    OTHER = "other"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()


def _check_time(value: str | None) -> str | None:
    if value in (None, ""):
        return None
    return parse_wall_time(value)


class JobCreate(BaseModel):
    """Data required to open a job. Jobs always start as leads."""

    customer_id: UUID
    customer_name: str = Field(..., max_length=255)
    customer_address: str | None = Field(None, max_length=500)
    service_type: list[ServiceType] = Field(default_factory=list)
    notes: str | None = Field(None, max_length=10000)


class JobUpdate(BaseModel):
    """
    Operator edits to a job, including status changes.

    Only fields explicitly provided are applied, so a field sent as null
    clears it.
    """

    status: JobStatus | None = None
    service_type: list[ServiceType] | None = None
    price_estimate: Decimal | None = Field(None, ge=0)
    final_price: Decimal | None = Field(None, ge=0)
    estimated_duration: float | None = Field(None, gt=0)
    scheduled_date: date | None = None
    scheduled_start_time: str | None = None
    scheduled_end_time: str | None = None
    assigned_tech: str | None = Field(None, max_length=255)
    customer_confirmed: bool | None = None
    notes: str | None = Field(None, max_length=10000)

    @field_validator("scheduled_start_time", "scheduled_end_time")
    @classmethod
    def validate_time(cls, value: str | None) -> str | None:
        return _check_time(value)

    @field_validator("price_estimate", "final_price", "estimated_duration", "scheduled_date", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("status")
    @classmethod
    def status_not_null(cls, value: JobStatus | None) -> JobStatus:
        if value is None:
            raise ValueError("status cannot be cleared")
        return value


class Job(BaseModel):
    """Full job entity as stored."""

    id: UUID
    customer_id: UUID
    customer_name: str
    customer_address: str | None = None
    status: JobStatus = JobStatus.LEAD
    service_type: list[ServiceType] = Field(default_factory=list)
    price_estimate: Decimal | None = None
    final_price: Decimal | None = None
    estimated_duration: float | None = None
    scheduled_date: date | None = None
    scheduled_start_time: str | None = None
    scheduled_end_time: str | None = None
    assigned_tech: str | None = None
    customer_confirmed: bool = False
    notes: str | None = None
    created_date: datetime

    model_config = {"from_attributes": True}

    @field_validator("service_type", mode="before")
    @classmethod
    def null_services(cls, value):
        return [] if value is None else value

    @property
    def revenue(self) -> Decimal:
        """Amount this job contributes to revenue once completed."""
        if self.final_price is not None:
            return self.final_price
        if self.price_estimate is not None:
            return self.price_estimate
        return Decimal("0")

    @property
    def first_name(self) -> str:
        """Greeting name from the denormalized customer snapshot."""
        return (self.customer_name or "").split(" ")[0]
