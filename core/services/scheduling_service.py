"""
Scheduling and weather service.

Bad-weather markers flag calendar dates as unsuitable for outdoor work. A
flagged date is a prompt for the operator, not a schedule change: bulk
reschedule messages the affected customers and leaves their jobs as they
are, so the operator moves each job once the customer has replied.
"""

import calendar
import logging
from datetime import date, timedelta
from typing import Iterable

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError

from core.config import ConsoleConfig
from core.event_bus import EventBus
from core.events import BadWeatherCleared, BadWeatherMarked
from core.exceptions import ValidationError
from core.models import BadWeatherDay, BadWeatherDayCreate, Job, JobStatus, Message, MessageChannel, TemplateKey
from core.services.job_service import JobService
from core.services.message_service import MessageService
from core.store import EntityStore
from utils.civil_dates import month_day, parse_civil_date, today_local, tomorrow_of

logger = logging.getLogger(__name__)


class CalendarDay(BaseModel):
    """One cell of the month view."""

    date: date
    in_month: bool
    is_bad_weather: bool = False
    jobs: list[Job] = Field(default_factory=list)


def reschedule_body(job: Job, personal_note: str | None, business_name: str) -> str:
    """Weather reschedule text for one job's customer."""
    parts = [
        f"Hi {job.first_name},",
        "Due to weather conditions, we need to reschedule your window cleaning "
        f"appointment on {month_day(job.scheduled_date)}.",
    ]
    if personal_note and personal_note.strip():
        parts.append(personal_note)
    parts.append(
        "What dates work best for you? We'll get you on the schedule as soon as the weather clears!"
    )
    parts.append(f"- {business_name}")
    return "\n\n".join(parts)


def civil_date(value: date | str) -> date:
    """parse_civil_date, raising the domain ValidationError."""
    try:
        return parse_civil_date(value)
    except ValueError as e:
        raise ValidationError(str(e)) from e


class SchedulingService:
    """Service for the calendar, bad-weather markers, and reminders."""

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

    def mark_bad_weather(self, day: date | str, note: str | None = None) -> BadWeatherDay:
        """
        Flag a date as bad weather.

        Marking an already flagged date returns the existing marker.

        Args:
            day: Date or YYYY-MM-DD string
            note: Optional note (forecast, wind speed)

        Raises:
            ValidationError: If the date is malformed or the note is too long
        """
        try:
            data = BadWeatherDayCreate(date=civil_date(day), note=note or None)
        except PydanticValidationError as e:
            raise ValidationError(str(e)) from e

        existing = self.store.bad_weather_days.filter({"date": data.date}, limit=1)
        if existing:
            return existing[0]

        marker = self.store.bad_weather_days.create(data.model_dump())

        logger.info(f"Marked {data.date.isoformat()} as bad weather")
        self.event_bus.publish(BadWeatherMarked.create(marker=marker))

        return marker

    def clear_bad_weather(self, day: date | str) -> int:
        """
        Remove every bad-weather marker on a date.

        Returns:
            Number of markers removed (0 if the date was not flagged)
        """
        day = civil_date(day)

        markers = self.store.bad_weather_days.filter({"date": day})
        for marker in markers:
            self.store.bad_weather_days.delete(marker.id)

        if markers:
            logger.info(f"Cleared bad weather on {day.isoformat()}")
            self.event_bus.publish(BadWeatherCleared.create(day=day))

        return len(markers)

    def is_bad_weather(self, day: date | str) -> bool:
        day = civil_date(day)
        return bool(self.store.bad_weather_days.filter({"date": day}, limit=1))

    def bad_weather_days(self) -> list[BadWeatherDay]:
        """Every flagged date, soonest first, one marker per date."""
        markers = self.store.bad_weather_days.list(sort="date")
        seen = set()
        unique = []
        for marker in markers:
            if marker.date not in seen:
                seen.add(marker.date)
                unique.append(marker)
        return unique

    def jobs_on(self, day: date | str) -> list[Job]:
        """Jobs scheduled on a date, in arrival order."""
        day = civil_date(day)
        jobs = self.store.jobs.filter({"scheduled_date": day})
        return sorted(jobs, key=lambda job: job.scheduled_start_time or "")

    def bulk_reschedule(self, jobs: Iterable[Job], personal_note: str | None = None) -> list[Message]:
        """
        Ask each job's customer to pick a new date because of the weather.

        Jobs are not changed. Every job is checked before anything is sent.

        Args:
            jobs: Jobs on the affected date
            personal_note: Optional text included verbatim in every message

        Returns:
            The messages sent, one per job

        Raises:
            ValidationError: If any job has no scheduled date
        """
        jobs = list(jobs)
        unscheduled = [str(job.id) for job in jobs if job.scheduled_date is None]
        if unscheduled:
            raise ValidationError(
                f"Cannot reschedule jobs without a scheduled date: {', '.join(unscheduled)}"
            )

        sent = []
        for job in jobs:
            sent.append(self.messages.send(
                customer_id=job.customer_id,
                body=reschedule_body(job, personal_note, self.config.business_name),
                channel=MessageChannel.TEXT,
                job_id=job.id,
            ))

        logger.info(f"Sent {len(sent)} weather reschedule message(s)")
        return sent

    def month_grid(self, year: int, month: int) -> list[CalendarDay]:
        """
        Days for a month view, in whole Sunday-to-Saturday weeks.

        Raises:
            ValidationError: If year or month is out of range
        """
        try:
            first = date(year, month, 1)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Invalid month {year}-{month}: {e}") from e
        last = first.replace(day=calendar.monthrange(year, month)[1])

        start = first - timedelta(days=(first.weekday() + 1) % 7)
        end = last + timedelta(days=(5 - last.weekday()) % 7)

        jobs_by_day: dict[date, list[Job]] = {}
        for job in self.store.jobs.list(sort="-scheduled_date", limit=self.config.list_limit):
            if job.scheduled_date is not None and start <= job.scheduled_date <= end:
                jobs_by_day.setdefault(job.scheduled_date, []).append(job)
        flagged = {marker.date for marker in self.store.bad_weather_days.list()}

        days = []
        day = start
        while day <= end:
            days.append(CalendarDay(
                date=day,
                in_month=day.month == month,
                is_bad_weather=day in flagged,
                jobs=sorted(jobs_by_day.get(day, []), key=lambda job: job.scheduled_start_time or ""),
            ))
            day += timedelta(days=1)
        return days

    def send_day_before_reminders(self, today: date | None = None) -> list[Message]:
        """
        Send the reminder template for every scheduled job tomorrow.

        A job that already got its reminder is skipped.

        Returns:
            Reminders sent by this call
        """
        tomorrow = tomorrow_of(today or today_local())
        due = self.store.jobs.filter({"scheduled_date": tomorrow, "status": JobStatus.SCHEDULED})

        sent = []
        for job in due:
            message = self.jobs.send_auto_message(job, TemplateKey.REMINDER)
            if message is not None:
                sent.append(message)

        logger.info(f"Sent {len(sent)} reminder(s) for {tomorrow.isoformat()}")
        return sent
