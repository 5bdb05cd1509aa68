"""
Job service: lifecycle transitions and the job list.

Every operator save goes through apply(), which plans the transition, writes
the job, then sends the automatic message the transition calls for. The job
write always comes first, so an automatic message never refers to a job
state that was not persisted. If the message fails, the job stays saved and
the failure comes back as a warning.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Mapping
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError

from core.config import ConsoleConfig
from core.event_bus import EventBus
from core.events import JobCreated, JobStatusChanged
from core.exceptions import ConsoleError, ValidationError
from core.lifecycle import Transition, plan_transition
from core.models import (
    Job, JobCreate, JobStatus, JobUpdate, Message, MessageChannel, ServiceType, TemplateKey,
)
from core.services.message_service import MessageService
from core.services.settings_service import SettingsService
from core.store import EntityStore
from core.templates import (
    TemplateEngine,
    confirmation_variables,
    quote_variables,
    reminder_variables,
    review_variables,
)
from utils.civil_dates import today_local, tomorrow_of, week_bounds

logger = logging.getLogger(__name__)


class JobView(str, Enum):
    """Filters offered on the jobs list."""

    ALL = "all"
    TODAY = "today"
    TOMORROW = "tomorrow"
    WEEK = "week"
    LEAD = "lead"
    QUOTED = "quoted"
    SCHEDULED = "scheduled"
    UNCONFIRMED = "unconfirmed"
    COMPLETED = "completed"


@dataclass
class TransitionResult:
    """Outcome of one job save."""
    job: Job
    transition: Transition
    message: Message | None = None
    warnings: list[str] = field(default_factory=list)


def matches_view(job: Job, view: JobView, today: date) -> bool:
    """Whether a job belongs in a jobs-list view on the given day."""
    if view == JobView.TODAY:
        return job.scheduled_date == today
    if view == JobView.TOMORROW:
        return job.scheduled_date == tomorrow_of(today)
    if view == JobView.WEEK:
        start, end = week_bounds(today)
        return job.scheduled_date is not None and start <= job.scheduled_date <= end
    if view == JobView.UNCONFIRMED:
        return job.status == JobStatus.SCHEDULED and not job.customer_confirmed
    if view in (JobView.LEAD, JobView.QUOTED, JobView.SCHEDULED, JobView.COMPLETED):
        return job.status == JobStatus(view.value)
    return True


def matches_search(job: Job, search: str | None) -> bool:
    """Case-insensitive match on customer name, address, or assigned tech."""
    if not search:
        return True
    needle = search.lower()
    return any(
        needle in value.lower()
        for value in (job.customer_name, job.customer_address, job.assigned_tech)
        if value
    )


class JobService:
    """Service for job operations."""

    def __init__(
        self,
        store: EntityStore,
        messages: MessageService,
        templates: TemplateEngine,
        settings: SettingsService,
        event_bus: EventBus,
        config: ConsoleConfig | None = None,
    ):
        self.store = store
        self.messages = messages
        self.templates = templates
        self.settings = settings
        self.event_bus = event_bus
        self.config = config or ConsoleConfig()

    def create_for_customer(
        self,
        customer_id: UUID,
        service_type: list[ServiceType] | None = None,
        notes: str | None = None,
    ) -> Job:
        """
        Open a new lead job for an existing customer.

        The customer's name and address are copied onto the job. Later edits
        to the customer do not change the job's copy.

        Raises:
            NotFoundError: If the customer doesn't exist
        """
        customer = self.store.customers.get(customer_id)

        try:
            data = JobCreate(
                customer_id=customer.id,
                customer_name=customer.full_name,
                customer_address=customer.address,
                service_type=service_type or [],
                notes=notes,
            )
        except PydanticValidationError as e:
            raise ValidationError(str(e)) from e

        job = self.store.jobs.create({**data.model_dump(), "status": JobStatus.LEAD})

        logger.info(f"Opened lead job {job.id} for customer {customer_id}")
        self.event_bus.publish(JobCreated.create(job=job))

        return job

    def get(self, job_id: UUID) -> Job:
        """
        Raises:
            NotFoundError: If the job doesn't exist
        """
        return self.store.jobs.get(job_id)

    def list_for_customer(self, customer_id: UUID) -> list[Job]:
        """A customer's jobs, newest first."""
        return self.store.jobs.filter({"customer_id": customer_id}, sort="-created_date")

    def list_jobs(
        self,
        view: JobView | str = JobView.ALL,
        search: str | None = None,
        today: date | None = None,
    ) -> list[Job]:
        """
        Jobs list, newest first.

        Args:
            view: One of the JobView filters
            search: Optional text matched against name, address, and tech
            today: Civil date the date views are relative to

        Raises:
            ValidationError: If the view is unknown
        """
        view = self._view(view)
        today = today or today_local()
        jobs = self.store.jobs.list(sort="-created_date", limit=self.config.list_limit)
        return [
            job for job in jobs
            if matches_search(job, search) and matches_view(job, view, today)
        ]

    def view_counts(self, today: date | None = None) -> dict[str, int]:
        """Number of jobs in each view, for the filter tabs."""
        today = today or today_local()
        jobs = self.store.jobs.list(sort="-created_date", limit=self.config.list_limit)
        return {
            view.value: sum(1 for job in jobs if matches_view(job, view, today))
            for view in JobView
        }

    def apply(self, job_id: UUID, changes: JobUpdate | Mapping[str, Any]) -> TransitionResult:
        """
        Save operator edits to a job, moving it through its lifecycle.

        Args:
            job_id: Job to save
            changes: Fields to write; only fields explicitly set are applied

        Returns:
            TransitionResult with the saved job, the automatic message sent
            (if any), and warnings for side effects that failed

        Raises:
            NotFoundError: If the job doesn't exist
            InvalidTransitionError: If the status change is not allowed
            ValidationError: If the edit is malformed or leaves the job
                missing a field its new status requires
        """
        if not isinstance(changes, JobUpdate):
            changes = self._parse_update(changes)

        current = self.store.jobs.get(job_id)
        transition = plan_transition(current, changes.model_dump(exclude_unset=True))

        job = self.store.jobs.update(job_id, transition.changes)
        result = TransitionResult(job=job, transition=transition)

        if transition.is_status_change:
            logger.info(
                f"Job {job_id} moved {transition.from_status.value} -> {transition.to_status.value}"
            )

        if transition.auto_message is not None:
            template_key = transition.auto_message.template_key
            try:
                result.message = self.send_auto_message(job, template_key)
            except ConsoleError as e:
                logger.exception(f"Automatic {template_key.value} message for job {job_id} failed")
                result.warnings.append(
                    f"Job saved, but the {template_key.value} message was not sent: {e}"
                )

        if transition.is_status_change:
            self.event_bus.publish(
                JobStatusChanged.create(job=job, previous_status=transition.from_status)
            )

        return result

    def send_auto_message(self, job: Job, template_key: TemplateKey) -> Message | None:
        """
        Send a templated automatic message about a job, at most once.

        Returns:
            The message sent, or None if this template was already sent
            automatically for this job
        """
        if self.messages.has_auto_message(job.id, template_key):
            logger.info(f"Skipping {template_key.value} for job {job.id}: already sent")
            return None

        body = self.templates.render(template_key, self.template_variables(template_key, job))
        return self.messages.send(
            customer_id=job.customer_id,
            body=body,
            channel=MessageChannel.TEXT,
            job_id=job.id,
            is_auto=True,
            template_key=template_key,
        )

    def template_variables(self, template_key: TemplateKey, job: Job) -> dict[str, str]:
        """Substitution bag for a template rendered about this job."""
        if template_key == TemplateKey.QUOTE:
            business = self.settings.business_settings()
            return quote_variables(job, default_duration=business.slot_duration)
        if template_key == TemplateKey.CONFIRMATION:
            return confirmation_variables(job)
        if template_key == TemplateKey.REMINDER:
            return reminder_variables(job)
        if template_key == TemplateKey.REVIEW:
            return review_variables(self.settings.business_settings().google_review_link)
        return {}

    def set_confirmed(self, job_id: UUID, confirmed: bool) -> Job:
        """Record whether the customer has confirmed their appointment."""
        job = self.store.jobs.update(job_id, {"customer_confirmed": bool(confirmed)})
        logger.info(f"Job {job_id} customer_confirmed={job.customer_confirmed}")
        return job

    def delete(self, job_id: UUID) -> None:
        """
        Delete a job. Its messages are kept.

        Raises:
            NotFoundError: If the job doesn't exist
        """
        self.store.jobs.delete(job_id)
        logger.info(f"Deleted job {job_id}")

    @staticmethod
    def _parse_update(changes: Mapping[str, Any]) -> JobUpdate:
        try:
            return JobUpdate.model_validate(dict(changes))
        except PydanticValidationError as e:
            raise ValidationError(str(e)) from e

    @staticmethod
    def _view(view: JobView | str) -> JobView:
        try:
            return JobView(view)
        except ValueError:
            raise ValidationError(f"Unknown jobs view '{view}'")
