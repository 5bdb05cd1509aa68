"""
Conversation projection for the inbox.

Groups messages by customer and summarizes each thread. The projection is
pure and recomputed on every read; nothing here is stored.
"""

from datetime import datetime
from typing import Iterable
from uuid import UUID

from pydantic import BaseModel, Field

from core.models import Customer, Job, JobStatus, Message, MessageChannel

UNKNOWN_CUSTOMER = "Unknown"


class ConversationSummary(BaseModel):
    """One inbox row: a customer's thread and their jobs."""

    customer_id: UUID
    customer_name: str
    customer: Customer | None = None
    jobs: list[Job] = Field(default_factory=list)
    latest_job: Job | None = None
    job_status: JobStatus | None = None
    last_message: str
    last_message_time: datetime
    channel: MessageChannel
    unread_count: int = 0
    messages: list[Message] = Field(default_factory=list)


def _latest(records):
    """Record with the greatest created_date; the first one seen wins a tie."""
    latest = None
    for record in records:
        if latest is None or record.created_date > latest.created_date:
            latest = record
    return latest


def project_conversations(
    messages: Iterable[Message],
    customers: Iterable[Customer],
    jobs: Iterable[Job],
) -> list[ConversationSummary]:
    """
    Build one summary per customer that has at least one message.

    Args:
        messages: Messages in any order; each thread keeps this order
        customers: Customers to resolve names from. Missing ones show as
            "Unknown"
        jobs: Jobs to attach to each thread

    Returns:
        Summaries sorted by last_message_time, most recent first
    """
    customers_by_id = {customer.id: customer for customer in customers}

    jobs_by_customer: dict[UUID, list[Job]] = {}
    for job in jobs:
        jobs_by_customer.setdefault(job.customer_id, []).append(job)

    threads: dict[UUID, list[Message]] = {}
    for message in messages:
        threads.setdefault(message.customer_id, []).append(message)

    summaries = []
    for customer_id, thread in threads.items():
        customer = customers_by_id.get(customer_id)
        customer_jobs = jobs_by_customer.get(customer_id, [])
        latest_job = _latest(customer_jobs)
        last = _latest(thread)

        summaries.append(ConversationSummary(
            customer_id=customer_id,
            customer_name=customer.full_name if customer else UNKNOWN_CUSTOMER,
            customer=customer,
            jobs=customer_jobs,
            latest_job=latest_job,
            job_status=latest_job.status if latest_job else None,
            last_message=last.body,
            last_message_time=last.created_date,
            channel=last.channel,
            unread_count=sum(1 for m in thread if m.is_unread_inbound),
            messages=thread,
        ))

    summaries.sort(key=lambda s: s.last_message_time, reverse=True)
    return summaries
