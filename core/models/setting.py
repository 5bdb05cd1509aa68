"""Operator settings: business configuration and template overrides."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from utils.civil_dates import parse_wall_time

TEMPLATE_PREFIX = "template_"


class SettingType(str, Enum):
    """Whether a setting is plain configuration or a message template."""

    CONFIG = "config"
    TEMPLATE = "template"

    @classmethod
    def for_key(cls, key: str) -> "SettingType":
        return cls.TEMPLATE if key.startswith(TEMPLATE_PREFIX) else cls.CONFIG


class Setting(BaseModel):
    """Full setting record as stored."""

    id: UUID
    setting_key: str
    setting_value: str
    setting_type: SettingType
    created_date: datetime

    model_config = {"from_attributes": True}


class BusinessSettings(BaseModel):
    """
    Typed view of the recognized configuration keys.

    Persisted values are strings; blank values fall back to these defaults.
    """

    business_hours_start: str = Field(default="08:00", description="Start of the working day")
    business_hours_end: str = Field(default="18:00", description="End of the working day")
    slot_duration: float = Field(default=2, gt=0, description="Default job duration in hours")
    reminder_day_before: str = Field(default="18:00", description="When the day-before reminder goes out")
    reminder_morning: str = Field(default="07:00", description="When the morning-of reminder goes out")
    google_review_link: str = Field(default="", description="Link included in review requests")

    @field_validator("business_hours_start", "business_hours_end", "reminder_day_before", "reminder_morning")
    @classmethod
    def validate_time(cls, value: str) -> str:
        return parse_wall_time(value)


CONFIG_KEYS = tuple(BusinessSettings.model_fields)
