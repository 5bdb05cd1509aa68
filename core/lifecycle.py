"""
Job lifecycle state machine.

Defines the legal status transitions and which of them send the customer an
automatic templated message. Planning is pure: plan_transition() validates
an operator's save against the current job and returns a Transition that
says what to write and which message (if any) to send afterwards. The
JobService executes the plan against the store.

    lead      -> quoted       (sends quote)
    lead      -> scheduled    (sends confirmation)
    quoted    -> scheduled    (sends confirmation)
    quoted    -> lead
    scheduled -> completed    (sends review request)
    scheduled -> no_show
    any       -> cancelled

Saving a job without changing its status is always allowed and never sends
anything.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

from core.exceptions import InvalidTransitionError, MissingFieldError, ValidationError
from core.models import Job, JobStatus, MessageChannel, TemplateKey

logger = logging.getLogger(__name__)


# (from, to) -> template sent automatically, or None for no side effect.
TRANSITIONS: dict[tuple[JobStatus, JobStatus], TemplateKey | None] = {
    (JobStatus.LEAD, JobStatus.QUOTED): TemplateKey.QUOTE,
    (JobStatus.LEAD, JobStatus.SCHEDULED): TemplateKey.CONFIRMATION,
    (JobStatus.QUOTED, JobStatus.SCHEDULED): TemplateKey.CONFIRMATION,
    (JobStatus.QUOTED, JobStatus.LEAD): None,
    (JobStatus.SCHEDULED, JobStatus.COMPLETED): TemplateKey.REVIEW,
    (JobStatus.SCHEDULED, JobStatus.NO_SHOW): None,
    **{
        (status, JobStatus.CANCELLED): None
        for status in JobStatus
        if status != JobStatus.CANCELLED
    },
}


@dataclass(frozen=True)
class AutoMessageIntent:
    """A templated message to send once the job update has been written."""
    template_key: TemplateKey
    channel: MessageChannel = MessageChannel.TEXT


@dataclass(frozen=True)
class Transition:
    """Validated plan for one job save."""
    from_status: JobStatus
    to_status: JobStatus
    changes: dict[str, Any] = field(default_factory=dict)
    auto_message: AutoMessageIntent | None = None

    @property
    def is_status_change(self) -> bool:
        return self.from_status != self.to_status


def allowed_targets(status: JobStatus) -> list[JobStatus]:
    """Statuses a job in this status may move to."""
    return [to for (frm, to) in TRANSITIONS if frm == status]


def can_transition(from_status: JobStatus, to_status: JobStatus) -> bool:
    return from_status == to_status or (from_status, to_status) in TRANSITIONS


def plan_transition(job: Job, changes: Mapping[str, Any]) -> Transition:
    """
    Validate a save against the current job and plan its side effects.

    Args:
        job: The job as currently stored
        changes: Fields the operator is writing (may include 'status')

    Returns:
        Transition with the final set of field changes and any automatic
        message to send after the update

    Raises:
        InvalidTransitionError: If the status change is not in the table
        MissingFieldError: If the resulting job breaks a state invariant
    """
    changes = dict(changes)
    try:
        target = JobStatus(changes.get("status", job.status))
    except ValueError:
        raise ValidationError(f"Unknown job status '{changes.get('status')}'")

    if not can_transition(job.status, target):
        raise InvalidTransitionError(job.status.value, target.value)

    result = job.model_copy(update=changes)

    if target == JobStatus.QUOTED and result.price_estimate is None:
        raise MissingFieldError(
            "price_estimate", "A quoted job needs a price estimate"
        )

    if target == JobStatus.SCHEDULED:
        if result.scheduled_date is None:
            raise MissingFieldError(
                "scheduled_date", "A scheduled job needs a scheduled date"
            )
        if not (result.scheduled_start_time and result.scheduled_end_time):
            logger.warning(f"Job {job.id} scheduled without a full arrival window")

    if (
        target == JobStatus.COMPLETED
        and result.final_price is None
        and result.price_estimate is not None
    ):
        changes["final_price"] = result.price_estimate

    intent = None
    if target != job.status:
        template_key = TRANSITIONS[(job.status, target)]
        if template_key is not None:
            intent = AutoMessageIntent(template_key=template_key)

    return Transition(
        from_status=job.status,
        to_status=target,
        changes=changes,
        auto_message=intent,
    )
