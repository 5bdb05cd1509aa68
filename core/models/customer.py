"""Customer domain models."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, EmailStr, field_validator


class CustomerType(str, Enum):
    """Kind of property serviced."""

    RESIDENTIAL = "residential"
    COMMERCIAL = "commercial"


class CustomerSource(str, Enum):
    """Acquisition channel."""

    GOOGLE_SEARCH = "Google Search"
    GOOGLE_MAPS = "Google Maps"
    REFERRAL = "Referral"
    FACEBOOK = "Facebook"
    INSTAGRAM = "Instagram"
    NEXTDOOR = "Nextdoor"
    YARD_SIGN = "Yard Sign"
    DOOR_HANGER = "Door Hanger"
    REPEAT_CUSTOMER = "Repeat Customer"
    OTHER = "Other"


class CustomerCreate(BaseModel):
    """Data required to record a new customer."""

    full_name: str = Field(..., max_length=255)
    mobile_number: str | None = Field(None, max_length=50)
    email: EmailStr | None = None
    address: str | None = Field(None, max_length=500)
    customer_type: CustomerType = CustomerType.RESIDENTIAL
    source: CustomerSource | None = None
    notes: str | None = Field(None, max_length=10000)

    @field_validator("full_name")
    @classmethod
    def require_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("full_name must not be blank")
        return value

    @field_validator("email", "mobile_number", "address", "notes", "source", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        """Form fields arrive as empty strings when left blank."""
        if isinstance(value, str) and not value.strip():
            return None
        return value


class CustomerUpdate(BaseModel):
    """Data that can be updated on a customer. All fields optional."""

    full_name: str | None = Field(None, max_length=255)
    mobile_number: str | None = Field(None, max_length=50)
    email: EmailStr | None = None
    address: str | None = Field(None, max_length=500)
    customer_type: CustomerType | None = None
    source: CustomerSource | None = None
    notes: str | None = Field(None, max_length=10000)
    left_review: bool | None = None

    @field_validator("full_name")
    @classmethod
    def require_name(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            raise ValueError("full_name must not be blank")
        return value.strip() if value else value

    @field_validator("email", "source", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class Customer(BaseModel):
    """Full customer entity as stored."""

    id: UUID
    full_name: str
    mobile_number: str | None = None
    email: str | None = None
    address: str | None = None
    customer_type: CustomerType = CustomerType.RESIDENTIAL
    source: CustomerSource | None = None
    notes: str | None = None
    left_review: bool = False
    created_date: datetime

    model_config = {"from_attributes": True}

    @field_validator("customer_type", mode="before")
    @classmethod
    def untyped_is_residential(cls, value):
        return CustomerType.RESIDENTIAL if value in (None, "") else value

    @field_validator("left_review", mode="before")
    @classmethod
    def null_review(cls, value):
        return bool(value)
