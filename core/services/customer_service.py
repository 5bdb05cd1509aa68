"""
Customer service for CRUD operations and new-lead intake.

A new lead is three writes in order: the customer, a lead job carrying a
copy of the customer's name and address, and the automatic welcome text.
Deleting a customer does not cascade; their jobs and messages remain and
show up as "Unknown" in the inbox.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping
from uuid import UUID

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError

from core.config import ConsoleConfig
from core.event_bus import EventBus
from core.events import CustomerCreated
from core.exceptions import ConsoleError, ValidationError
from core.models import (
    Customer, CustomerCreate, CustomerType, CustomerUpdate, Job, JobStatus, Message,
    ServiceType, TemplateKey,
)
from core.services.job_service import JobService
from core.services.message_service import MessageService
from core.store import EntityStore

logger = logging.getLogger(__name__)

# Page the view host opens after a lead is recorded.
LEAD_FOLLOW_UP_PAGE = "JobDetail"


class CustomerFilter(str, Enum):
    """Filters offered on the customers list."""

    ALL = "all"
    RESIDENTIAL = "residential"
    COMMERCIAL = "commercial"
    REVIEWED = "reviewed"


@dataclass
class LeadIntake:
    """Records produced by recording a new lead."""
    customer: Customer
    job: Job
    message: Message | None = None
    warnings: list[str] = field(default_factory=list)
    next_page: str = LEAD_FOLLOW_UP_PAGE


class CustomerRow(BaseModel):
    """Customers list entry."""

    customer: Customer
    job_count: int = 0


class CustomerDetail(BaseModel):
    """Everything the customer page shows."""

    customer: Customer
    jobs: list[Job] = Field(default_factory=list)
    messages: list[Message] = Field(default_factory=list)
    total_revenue: Decimal = Decimal("0")
    completed_jobs: int = 0


def matches_filter(customer: Customer, customer_filter: CustomerFilter) -> bool:
    if customer_filter == CustomerFilter.RESIDENTIAL:
        return customer.customer_type == CustomerType.RESIDENTIAL
    if customer_filter == CustomerFilter.COMMERCIAL:
        return customer.customer_type == CustomerType.COMMERCIAL
    if customer_filter == CustomerFilter.REVIEWED:
        return customer.left_review
    return True


def matches_search(customer: Customer, search: str | None) -> bool:
    """Case-insensitive match on name, address, or email; digits match the mobile number."""
    if not search:
        return True
    needle = search.lower()
    if customer.mobile_number and search in customer.mobile_number:
        return True
    return any(
        needle in value.lower()
        for value in (customer.full_name, customer.address, customer.email)
        if value
    )


class CustomerService:
    """Service for customer operations."""

    def __init__(
        self,
        store: EntityStore,
        jobs: JobService,
        messages: MessageService,
        event_bus: EventBus,
        config: ConsoleConfig | None = None,
    ):
        self.store = store
        self.jobs = jobs
        self.messages = messages
        self.event_bus = event_bus
        self.config = config or ConsoleConfig()

    def create(self, data: CustomerCreate | Mapping[str, Any]) -> Customer:
        """
        Create a new customer.

        Args:
            data: Customer creation data

        Returns:
            Created customer

        Raises:
            ValidationError: If the name is blank or a field is malformed
        """
        if not isinstance(data, CustomerCreate):
            data = self._parse(CustomerCreate, data)

        customer = self.store.customers.create(data.model_dump())

        logger.info(f"Created customer {customer.id}")
        self.event_bus.publish(CustomerCreated.create(customer=customer))

        return customer

    def create_lead(
        self,
        data: CustomerCreate | Mapping[str, Any],
        service_type: list[ServiceType] | None = None,
    ) -> LeadIntake:
        """
        Record a new customer together with their first lead job and welcome text.

        Args:
            data: Customer creation data
            service_type: Services the lead asked about, if known

        Returns:
            LeadIntake with the customer, the lead job, the welcome message,
            and warnings if the welcome text could not be sent

        Raises:
            ValidationError: If the customer data is invalid. Nothing is written.
        """
        customer = self.create(data)
        job = self.jobs.create_for_customer(customer.id, service_type=service_type)
        intake = LeadIntake(customer=customer, job=job)

        try:
            intake.message = self.jobs.send_auto_message(job, TemplateKey.WELCOME)
        except ConsoleError as e:
            logger.exception(f"Welcome message for customer {customer.id} failed")
            intake.warnings.append(f"Customer saved, but the welcome message was not sent: {e}")

        return intake

    def get(self, customer_id: UUID) -> Customer:
        """
        Raises:
            NotFoundError: If the customer doesn't exist
        """
        return self.store.customers.get(customer_id)

    def update(self, customer_id: UUID, data: CustomerUpdate | Mapping[str, Any]) -> Customer:
        """
        Update customer fields.

        Open jobs keep the name and address they were created with.

        Args:
            customer_id: Customer UUID
            data: Fields to update (only fields explicitly set are changed)

        Returns:
            Updated customer

        Raises:
            NotFoundError: If the customer doesn't exist
            ValidationError: If a field is malformed
        """
        if not isinstance(data, CustomerUpdate):
            data = self._parse(CustomerUpdate, data)

        changes = data.model_dump(exclude_unset=True)
        if "full_name" in changes and changes["full_name"] is None:
            raise ValidationError("full_name cannot be cleared")

        customer = self.store.customers.update(customer_id, changes)
        logger.info(f"Updated customer {customer_id}: {', '.join(sorted(changes)) or 'no changes'}")
        return customer

    def toggle_review(self, customer_id: UUID) -> Customer:
        """Flip whether the customer has left a review."""
        customer = self.store.customers.get(customer_id)
        return self.store.customers.update(customer_id, {"left_review": not customer.left_review})

    def delete(self, customer_id: UUID) -> None:
        """
        Delete a customer. Jobs and messages are left in place.

        Raises:
            NotFoundError: If the customer doesn't exist
        """
        self.store.customers.delete(customer_id)
        logger.info(f"Deleted customer {customer_id}")

    def detail(self, customer_id: UUID) -> CustomerDetail:
        """
        Customer page: record, jobs (newest first), thread, and revenue.

        Raises:
            NotFoundError: If the customer doesn't exist
        """
        customer = self.store.customers.get(customer_id)
        jobs = self.jobs.list_for_customer(customer_id)
        completed = [job for job in jobs if job.status == JobStatus.COMPLETED]

        return CustomerDetail(
            customer=customer,
            jobs=jobs,
            messages=self.messages.thread(customer_id),
            total_revenue=sum((job.revenue for job in completed), Decimal("0")),
            completed_jobs=len(completed),
        )

    def list_customers(
        self,
        customer_filter: CustomerFilter | str = CustomerFilter.ALL,
        search: str | None = None,
    ) -> list[CustomerRow]:
        """
        Customers list, newest first, with each customer's job count.

        Raises:
            ValidationError: If the filter is unknown
        """
        try:
            customer_filter = CustomerFilter(customer_filter)
        except ValueError:
            raise ValidationError(f"Unknown customers filter '{customer_filter}'")

        customers = self.store.customers.list(sort="-created_date", limit=self.config.list_limit)
        jobs = self.store.jobs.list(sort="-created_date", limit=self.config.list_limit)

        job_counts: dict[UUID, int] = {}
        for job in jobs:
            job_counts[job.customer_id] = job_counts.get(job.customer_id, 0) + 1

        return [
            CustomerRow(customer=customer, job_count=job_counts.get(customer.id, 0))
            for customer in customers
            if matches_search(customer, search) and matches_filter(customer, customer_filter)
        ]

    @staticmethod
    def _parse(model, data: Mapping[str, Any]):
        try:
            return model.model_validate(dict(data))
        except PydanticValidationError as e:
            raise ValidationError(str(e)) from e
