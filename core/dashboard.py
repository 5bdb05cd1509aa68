"""
Dashboard aggregation.

A pure function over the loaded collections. Scheduled dates are compared as
civil dates against the operator's today and are never converted. Monthly
revenue is the one place a record timestamp meets the calendar; created_date
is read in local time for it.
"""

from datetime import date, tzinfo
from decimal import Decimal
from typing import Iterable

from pydantic import BaseModel, Field

from core.models import BadWeatherDay, Customer, Job, JobStatus, Message
from utils.civil_dates import in_same_month, tomorrow_of

RECENT_LEADS = 5


class BadWeatherAlerts(BaseModel):
    today: bool = False
    tomorrow: bool = False


class DashboardSnapshot(BaseModel):
    """Everything the dashboard shows, computed for one day."""

    today: date
    today_jobs: list[Job] = Field(default_factory=list)
    tomorrow_jobs: list[Job] = Field(default_factory=list)
    leads_count: int = 0
    quoted_count: int = 0
    unread_messages: int = 0
    monthly_revenue: Decimal = Decimal("0")
    unconfirmed_jobs: list[Job] = Field(default_factory=list)
    bad_weather_alerts: BadWeatherAlerts = Field(default_factory=BadWeatherAlerts)
    recent_leads: list[Job] = Field(default_factory=list)
    customer_count: int = 0


def monthly_revenue(jobs: Iterable[Job], today: date, tz: tzinfo | None = None) -> Decimal:
    """Revenue from completed jobs created in today's calendar month, local time."""
    return sum(
        (
            job.revenue
            for job in jobs
            if job.status == JobStatus.COMPLETED and in_same_month(job.created_date, today, tz)
        ),
        Decimal("0"),
    )


def aggregate_dashboard(
    customers: Iterable[Customer],
    jobs: Iterable[Job],
    messages: Iterable[Message],
    bad_weather_days: Iterable[BadWeatherDay],
    today: date,
    tz: tzinfo | None = None,
) -> DashboardSnapshot:
    """
    Compute the dashboard for a given day.

    Args:
        customers: Loaded customers
        jobs: Loaded jobs
        messages: Loaded messages (only unread inbound ones are counted)
        bad_weather_days: Every bad-weather marker
        today: The operator's civil date
        tz: Zone creation timestamps are read in; the local zone when omitted

    Returns:
        DashboardSnapshot
    """
    jobs = list(jobs)
    tomorrow = tomorrow_of(today)
    flagged = {marker.date for marker in bad_weather_days}

    leads = [job for job in jobs if job.status == JobStatus.LEAD]
    recent_leads = sorted(leads, key=lambda job: job.created_date, reverse=True)[:RECENT_LEADS]

    return DashboardSnapshot(
        today=today,
        today_jobs=[job for job in jobs if job.scheduled_date == today],
        tomorrow_jobs=[job for job in jobs if job.scheduled_date == tomorrow],
        leads_count=len(leads),
        quoted_count=sum(1 for job in jobs if job.status == JobStatus.QUOTED),
        unread_messages=sum(1 for message in messages if message.is_unread_inbound),
        monthly_revenue=monthly_revenue(jobs, today, tz),
        unconfirmed_jobs=[
            job for job in jobs
            if job.status == JobStatus.SCHEDULED
            and not job.customer_confirmed
            and job.scheduled_date in (today, tomorrow)
        ],
        bad_weather_alerts=BadWeatherAlerts(today=today in flagged, tomorrow=tomorrow in flagged),
        recent_leads=recent_leads,
        customer_count=len(list(customers)),
    )
