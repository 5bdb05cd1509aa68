"""Tests for the inbox conversation projection."""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

from core.conversations import UNKNOWN_CUSTOMER, project_conversations
from core.models import Customer, Job, JobStatus, Message

BASE = datetime(2025, 4, 1, 9, 0, tzinfo=timezone.utc)


def _at(minutes: int) -> datetime:
    return BASE + timedelta(minutes=minutes)


def _customer(name: str) -> Customer:
    return Customer(id=uuid4(), full_name=name, created_date=BASE)


def _message(customer_id, minutes, body="hi", direction="inbound", is_read=False, channel="text") -> Message:
    return Message(
        id=uuid4(),
        customer_id=customer_id,
        direction=direction,
        channel=channel,
        body=body,
        is_read=is_read if direction == "inbound" else True,
        created_date=_at(minutes),
    )


def _job(customer, minutes, status=JobStatus.LEAD) -> Job:
    return Job(
        id=uuid4(),
        customer_id=customer.id,
        customer_name=customer.full_name,
        status=status,
        created_date=_at(minutes),
    )


class TestProjectConversations:

    def test_one_summary_per_customer_with_messages(self):
        jane, bob, quiet = _customer("Jane Doe"), _customer("Bob Ruiz"), _customer("No Messages")
        messages = [_message(jane.id, 1), _message(bob.id, 2), _message(jane.id, 3)]

        summaries = project_conversations(messages, [jane, bob, quiet], [])

        assert {s.customer_id for s in summaries} == {jane.id, bob.id}

    def test_sorted_by_last_message_descending(self):
        jane, bob = _customer("Jane Doe"), _customer("Bob Ruiz")
        messages = [_message(jane.id, 5), _message(bob.id, 2), _message(bob.id, 9)]

        summaries = project_conversations(messages, [jane, bob], [])

        assert [s.customer_name for s in summaries] == ["Bob Ruiz", "Jane Doe"]
        times = [s.last_message_time for s in summaries]
        assert times == sorted(times, reverse=True)

    def test_last_message_is_most_recent_regardless_of_input_order(self):
        jane = _customer("Jane Doe")
        messages = [
            _message(jane.id, 7, body="latest", direction="outbound", channel="email"),
            _message(jane.id, 1, body="earliest"),
        ]

        summary = project_conversations(messages, [jane], [])[0]

        assert summary.last_message == "latest"
        assert summary.last_message_time == _at(7)
        assert summary.channel == "email"
        assert [m.body for m in summary.messages] == ["latest", "earliest"]

    def test_unread_count_counts_inbound_unread_only(self):
        jane = _customer("Jane Doe")
        messages = [
            _message(jane.id, 1),
            _message(jane.id, 2, is_read=True),
            _message(jane.id, 3, direction="outbound"),
            _message(jane.id, 4),
        ]

        assert project_conversations(messages, [jane], [])[0].unread_count == 2

    def test_latest_job_and_status(self):
        jane = _customer("Jane Doe")
        old = _job(jane, 1, JobStatus.COMPLETED)
        new = _job(jane, 10, JobStatus.QUOTED)

        summary = project_conversations([_message(jane.id, 20)], [jane], [new, old])[0]

        assert summary.latest_job.id == new.id
        assert summary.job_status == JobStatus.QUOTED
        assert {j.id for j in summary.jobs} == {old.id, new.id}

    def test_no_jobs(self):
        jane = _customer("Jane Doe")

        summary = project_conversations([_message(jane.id, 1)], [jane], [])[0]

        assert summary.latest_job is None
        assert summary.job_status is None
        assert summary.jobs == []

    def test_orphaned_messages_show_unknown(self):
        orphan_id = uuid4()

        summary = project_conversations([_message(orphan_id, 1)], [], [])[0]

        assert summary.customer_name == UNKNOWN_CUSTOMER
        assert summary.customer is None

    def test_is_pure(self):
        jane, bob = _customer("Jane Doe"), _customer("Bob Ruiz")
        messages = [_message(jane.id, 1), _message(bob.id, 2)]

        first = project_conversations(messages, [jane, bob], [])
        second = project_conversations(messages, [jane, bob], [])

        assert [s.model_dump() for s in first] == [s.model_dump() for s in second]

    def test_empty_input(self):
        assert project_conversations([], [], []) == []
