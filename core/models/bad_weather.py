"""Bad-weather day markers."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, Field


class BadWeatherDayCreate(BaseModel):
    """Flag a calendar date as unsuitable for outdoor work."""

    date: date
    note: str | None = Field(None, max_length=1000)


class BadWeatherDay(BaseModel):
    """Full marker entity as stored."""

    id: UUID
    date: date
    note: str | None = None
    created_date: datetime

    model_config = {"from_attributes": True}
