"""
Console events.

Frozen records of something that has already been written to the store.
Services publish them on the EventBus; handlers such as email delivery
subscribe by class name. Each event carries the record as it was after the
write, so a handler never has to read it back.

    CustomerCreated      lead intake recorded a new customer
    JobCreated           a job was opened as a lead
    JobStatusChanged     a job moved along the lifecycle graph
    MessageSent          an outbound message was recorded
    MessageReceived      an inbound message was recorded
    BadWeatherMarked     a date was flagged
    BadWeatherCleared    all flags on a date were removed
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from uuid import uuid4

from core.models import BadWeatherDay, Customer, Job, JobStatus, Message
from utils.civil_dates import now_utc


@dataclass(frozen=True, kw_only=True)
class ConsoleEvent:
    event_id: str = field(default_factory=lambda: str(uuid4()))
    occurred_at: datetime = field(default_factory=now_utc)


@dataclass(frozen=True)
class CustomerCreated(ConsoleEvent):
    customer: Customer

    @classmethod
    def create(cls, customer: Customer) -> "CustomerCreated":
        return cls(customer=customer)


@dataclass(frozen=True)
class JobCreated(ConsoleEvent):
    job: Job

    @classmethod
    def create(cls, job: Job) -> "JobCreated":
        return cls(job=job)


@dataclass(frozen=True)
class JobStatusChanged(ConsoleEvent):
    """job is the updated record; previous_status is where it moved from."""
    job: Job
    previous_status: JobStatus

    @classmethod
    def create(cls, job: Job, previous_status: JobStatus) -> "JobStatusChanged":
        return cls(job=job, previous_status=previous_status)


@dataclass(frozen=True)
class MessageSent(ConsoleEvent):
    message: Message

    @classmethod
    def create(cls, message: Message) -> "MessageSent":
        return cls(message=message)


@dataclass(frozen=True)
class MessageReceived(ConsoleEvent):
    message: Message

    @classmethod
    def create(cls, message: Message) -> "MessageReceived":
        return cls(message=message)


@dataclass(frozen=True)
class BadWeatherMarked(ConsoleEvent):
    marker: BadWeatherDay

    @classmethod
    def create(cls, marker: BadWeatherDay) -> "BadWeatherMarked":
        return cls(marker=marker)


@dataclass(frozen=True)
class BadWeatherCleared(ConsoleEvent):
    day: date

    @classmethod
    def create(cls, day: date) -> "BadWeatherCleared":
        return cls(day=day)
