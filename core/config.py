"""Process-level console configuration."""

from pydantic import BaseModel, Field


class ConsoleConfig(BaseModel):
    """
    Console configuration.

    Operator-editable settings (business hours, templates, review link) live
    in the Setting records instead; this covers how the process itself reads
    the store and what it signs messages with.
    """

    business_name: str = Field(
        default="Deseret Peak Window Cleaning",
        description="Signature on hand-composed bulk messages and email subjects",
    )

    # Read caps. Projections are recomputed from these windows on every read.
    inbox_message_limit: int = Field(default=500, ge=1, le=5000)
    inbox_customer_limit: int = Field(default=200, ge=1, le=5000)
    inbox_job_limit: int = Field(default=200, ge=1, le=5000)
    dashboard_limit: int = Field(default=100, ge=1, le=5000)
    unread_limit: int = Field(default=100, ge=1, le=5000)
    list_limit: int = Field(default=500, ge=1, le=5000)
    thread_limit: int = Field(default=200, ge=1, le=5000)

    unread_poll_seconds: int = Field(
        default=30,
        description="Advisory cadence for the view host's unread-count poll",
        ge=5,
        le=600,
    )
