"""Message (customer conversation) domain models."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator


class MessageDirection(str, Enum):
    """Who sent the message."""

    INBOUND = "inbound"
    OUTBOUND = "outbound"


class MessageChannel(str, Enum):
    """Delivery channel."""

    TEXT = "text"
    EMAIL = "email"


class TemplateKey(str, Enum):
    """Message templates the operator can customise."""

    WELCOME = "welcome"
    QUOTE = "quote"
    CONFIRMATION = "confirmation"
    REMINDER = "reminder"
    RESCHEDULE = "reschedule"
    REVIEW = "review"
    FOLLOWUP = "followup"


class MessageCreate(BaseModel):
    """
    Data required to record a message.

    Outbound messages are always created read. Inbound messages default to
    unread. Only outbound messages can be automatic.
    """

    customer_id: UUID
    job_id: UUID | None = None
    direction: MessageDirection
    channel: MessageChannel = MessageChannel.TEXT
    body: str = Field(..., max_length=10000)
    is_read: bool | None = None
    is_auto: bool = False
    template_key: TemplateKey | None = None

    @field_validator("body")
    @classmethod
    def require_body(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Message body must not be blank")
        return value

    @model_validator(mode="after")
    def apply_direction_rules(self) -> "MessageCreate":
        if self.is_auto and self.direction != MessageDirection.OUTBOUND:
            raise ValueError("Automatic messages must be outbound")
        if self.direction == MessageDirection.OUTBOUND:
            self.is_read = True
        elif self.is_read is None:
            self.is_read = False
        return self


class Message(BaseModel):
    """Full message entity as stored."""

    id: UUID
    customer_id: UUID
    job_id: UUID | None = None
    direction: MessageDirection
    channel: MessageChannel = MessageChannel.TEXT
    body: str
    is_read: bool
    is_auto: bool = False
    template_key: TemplateKey | None = None
    created_date: datetime

    model_config = {"from_attributes": True}

    @property
    def is_unread_inbound(self) -> bool:
        return self.direction == MessageDirection.INBOUND and not self.is_read
