"""Tests for SchedulingService: bad weather, bulk reschedule, calendar, reminders."""

from datetime import date

import pytest

from core.exceptions import ValidationError
from core.models import JobStatus, MessageDirection, TemplateKey
from core.services.scheduling_service import reschedule_body


class TestBadWeather:

    def test_mark_then_check(self, scheduling_service):
        scheduling_service.mark_bad_weather("2025-04-12", note="High winds")

        assert scheduling_service.is_bad_weather("2025-04-12")
        assert scheduling_service.is_bad_weather(date(2025, 4, 12))
        assert not scheduling_service.is_bad_weather("2025-04-13")

    def test_marking_twice_keeps_one_marker(self, scheduling_service, store):
        first = scheduling_service.mark_bad_weather("2025-04-12")
        second = scheduling_service.mark_bad_weather("2025-04-12")

        assert first.id == second.id
        assert len(store.bad_weather_days.list()) == 1
        assert scheduling_service.is_bad_weather("2025-04-12")

    def test_clear_after_mark(self, scheduling_service):
        scheduling_service.mark_bad_weather("2025-04-12")
        scheduling_service.mark_bad_weather("2025-04-12")

        assert scheduling_service.clear_bad_weather("2025-04-12") == 1
        assert not scheduling_service.is_bad_weather("2025-04-12")

    def test_clear_removes_duplicate_markers(self, scheduling_service, store):
        store.bad_weather_days.create({"date": date(2025, 4, 12)})
        store.bad_weather_days.create({"date": date(2025, 4, 12)})

        assert scheduling_service.clear_bad_weather("2025-04-12") == 2
        assert not scheduling_service.is_bad_weather("2025-04-12")

    def test_clear_unflagged_date_is_a_no_op(self, scheduling_service):
        assert scheduling_service.clear_bad_weather("2025-04-12") == 0

    def test_bad_weather_days_dedupes_and_sorts(self, scheduling_service, store):
        store.bad_weather_days.create({"date": date(2025, 4, 14)})
        store.bad_weather_days.create({"date": date(2025, 4, 12)})
        store.bad_weather_days.create({"date": date(2025, 4, 12)})

        assert [d.date for d in scheduling_service.bad_weather_days()] == [date(2025, 4, 12), date(2025, 4, 14)]

    @pytest.mark.parametrize("value", ["04/12/2025", "2025-4-12", "2025-04-12T00:00:00Z", "tomorrow"])
    def test_malformed_dates_are_rejected(self, scheduling_service, value):
        with pytest.raises(ValidationError):
            scheduling_service.mark_bad_weather(value)

    def test_overlong_note_is_rejected_without_a_marker(self, scheduling_service):
        with pytest.raises(ValidationError):
            scheduling_service.mark_bad_weather("2025-04-12", note="x" * 1001)

        assert not scheduling_service.is_bad_weather("2025-04-12")

    def test_blank_note_is_stored_as_none(self, scheduling_service):
        marker = scheduling_service.mark_bad_weather("2025-04-12", note="")

        assert marker.note is None

    def test_events(self, scheduling_service, event_bus):
        seen = []
        event_bus.subscribe("BadWeatherMarked", lambda e: seen.append(("marked", e.marker.date)))
        event_bus.subscribe("BadWeatherCleared", lambda e: seen.append(("cleared", e.day)))

        scheduling_service.mark_bad_weather("2025-04-12")
        scheduling_service.clear_bad_weather("2025-04-12")

        assert seen == [("marked", date(2025, 4, 12)), ("cleared", date(2025, 4, 12))]


class TestBulkReschedule:

    def test_messages_each_customer_and_leaves_jobs(self, scheduling_service, store, make_customer, make_job):
        jane = make_customer("Jane Doe")
        bob = make_customer("Bob Ruiz")
        jobs = [
            make_job(jane, status="scheduled", scheduled_date=date(2025, 4, 12)),
            make_job(bob, status="scheduled", scheduled_date=date(2025, 4, 12)),
        ]

        sent = scheduling_service.bulk_reschedule(jobs, "high winds")

        assert len(sent) == 2
        assert sent[0].body.startswith("Hi Jane,")
        assert sent[1].body.startswith("Hi Bob,")
        for message, job in zip(sent, jobs):
            assert message.direction == MessageDirection.OUTBOUND
            assert message.is_auto is False
            assert message.job_id == job.id
            assert "April 12" in message.body
            assert "high winds" in message.body
            assert store.jobs.get(job.id).status == JobStatus.SCHEDULED

    def test_rejects_batch_with_unscheduled_job_before_sending(self, scheduling_service, store, customer, make_job):
        scheduled = make_job(customer, status="scheduled", scheduled_date=date(2025, 4, 12))
        lead = make_job(customer, status="lead")

        with pytest.raises(ValidationError):
            scheduling_service.bulk_reschedule([scheduled, lead], None)

        assert store.messages.list() == []

    def test_empty_batch(self, scheduling_service):
        assert scheduling_service.bulk_reschedule([], "note") == []


class TestRescheduleBody:

    def test_with_note(self, make_job, customer):
        job = make_job(customer, status="scheduled", scheduled_date=date(2025, 4, 12))

        body = reschedule_body(job, "Gusts over 40 mph.", "Deseret Peak Window Cleaning")

        assert body == (
            "Hi Jane,\n\n"
            "Due to weather conditions, we need to reschedule your window cleaning appointment on April 12.\n\n"
            "Gusts over 40 mph.\n\n"
            "What dates work best for you? We'll get you on the schedule as soon as the weather clears!\n\n"
            "- Deseret Peak Window Cleaning"
        )

    def test_blank_note_is_left_out(self, make_job, customer):
        job = make_job(customer, status="scheduled", scheduled_date=date(2025, 4, 12))

        body = reschedule_body(job, "   ", "Deseret Peak Window Cleaning")

        assert "April 12.\n\nWhat dates" in body


class TestCalendar:

    def test_month_grid_covers_whole_weeks(self, scheduling_service):
        grid = scheduling_service.month_grid(2025, 4)

        # April 2025 starts on a Tuesday and ends on a Wednesday.
        assert grid[0].date == date(2025, 3, 30)
        assert grid[-1].date == date(2025, 5, 3)
        assert len(grid) % 7 == 0
        assert grid[0].in_month is False
        assert grid[2].in_month is True

    def test_month_grid_places_jobs_and_weather(self, scheduling_service, customer, make_job):
        job = make_job(customer, status="scheduled", scheduled_date=date(2025, 4, 12))
        scheduling_service.mark_bad_weather("2025-04-12")

        cell = next(day for day in scheduling_service.month_grid(2025, 4) if day.date == date(2025, 4, 12))

        assert cell.is_bad_weather is True
        assert [j.id for j in cell.jobs] == [job.id]

    def test_month_grid_reads_by_scheduled_date(self, scheduling_service, customer, make_job, config):
        config.list_limit = 1
        april = make_job(customer, status="scheduled", scheduled_date=date(2025, 4, 12))
        # Created later, but scheduled earlier; a read by creation order would keep only this one.
        make_job(customer, status="scheduled", scheduled_date=date(2025, 3, 1))

        cell = next(day for day in scheduling_service.month_grid(2025, 4) if day.date == date(2025, 4, 12))

        assert [j.id for j in cell.jobs] == [april.id]

    def test_invalid_month(self, scheduling_service):
        with pytest.raises(ValidationError):
            scheduling_service.month_grid(2025, 13)

    def test_jobs_on_in_arrival_order(self, scheduling_service, customer, make_job):
        late = make_job(customer, scheduled_date=date(2025, 4, 12), scheduled_start_time="13:00")
        early = make_job(customer, scheduled_date=date(2025, 4, 12), scheduled_start_time="08:00")
        make_job(customer, scheduled_date=date(2025, 4, 13))

        assert [j.id for j in scheduling_service.jobs_on("2025-04-12")] == [early.id, late.id]


class TestReminders:

    def test_sends_reminder_once_for_tomorrows_scheduled_jobs(self, scheduling_service, store, customer, make_job, today):
        due = make_job(customer, status="scheduled", scheduled_date=date(2025, 4, 11),
                       scheduled_start_time="09:00", scheduled_end_time="11:00")
        make_job(customer, status="quoted", scheduled_date=date(2025, 4, 11))
        make_job(customer, status="scheduled", scheduled_date=date(2025, 4, 12))

        first = scheduling_service.send_day_before_reminders(today)
        second = scheduling_service.send_day_before_reminders(today)

        assert len(first) == 1
        assert first[0].job_id == due.id
        assert first[0].template_key == TemplateKey.REMINDER
        assert "09:00 - 11:00" in first[0].body
        assert second == []
