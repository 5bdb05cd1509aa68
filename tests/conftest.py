"""Shared test fixtures for the console test suite."""

import itertools
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Any, List, Mapping
from uuid import UUID, uuid4

import pytest
from dotenv import load_dotenv

# Load .env file BEFORE any other imports that might use env vars
load_dotenv(Path(__file__).parent.parent / ".env", override=True)

# Reset vault client singleton to pick up env vars
import clients.vault_client as vault_module
vault_module._vault_client_instance = None
vault_module._secret_cache.clear()

from core.config import ConsoleConfig
from core.exceptions import NotFoundError, TransportError
from core.models import BadWeatherDay, Customer, Job, Message, Setting
from core.store import Collection, EntityStore


# =============================================================================
# TEST CONSTANTS
# =============================================================================

# Store clock starts here; every record created after it gets a later timestamp.
CLOCK_START = datetime(2025, 4, 1, 12, 0, tzinfo=timezone.utc)

# A Thursday. Tomorrow (Friday 2025-04-11) and the Saturday after are both
# in the same Sunday-to-Saturday week.
TODAY = date(2025, 4, 10)


# =============================================================================
# IN-MEMORY STORE
# =============================================================================


class StoreClock:
    """Strictly increasing created_date values, one second apart."""

    def __init__(self, start: datetime = CLOCK_START):
        self._ticks = itertools.count()
        self.start = start

    def __call__(self) -> datetime:
        return self.start + timedelta(seconds=next(self._ticks))


class InMemoryCollection(Collection):
    """
    Collection test double implementing the store contract over a dict.

    fail_on holds operation names ("create", "update", ...) that raise
    TransportError, to exercise partial-failure paths.
    """

    def __init__(self, kind: str, model, clock: StoreClock):
        super().__init__(kind, model)
        self.clock = clock
        self.records: dict[UUID, Any] = {}
        self.fail_on: set[str] = set()

    def _check_available(self, operation: str) -> None:
        if operation in self.fail_on:
            raise TransportError(f"{self.kind} store unavailable")

    def list(self, sort: str | None = None, limit: int | None = None) -> List:
        return self.filter({}, sort=sort, limit=limit)

    def filter(self, predicate: Mapping[str, Any], sort: str | None = None, limit: int | None = None) -> List:
        self._check_available("filter")
        self.check_fields(predicate)
        order = self.parse_sort(sort)

        rows = [
            record for record in self.records.values()
            if all(getattr(record, field) == value for field, value in predicate.items())
        ]
        if order:
            field, descending = order
            present = [r for r in rows if getattr(r, field) is not None]
            missing = [r for r in rows if getattr(r, field) is None]
            present.sort(key=lambda r: getattr(r, field), reverse=descending)
            rows = present + missing
        if limit is not None:
            rows = rows[:limit]
        return [row.model_copy(deep=True) for row in rows]

    def create(self, partial: Mapping[str, Any]):
        self._check_available("create")
        self.check_fields(partial, writable=True)
        record = self.model.model_validate({"id": uuid4(), "created_date": self.clock(), **partial})
        self.records[record.id] = record
        return record.model_copy(deep=True)

    def update(self, record_id: UUID, partial: Mapping[str, Any]):
        self._check_available("update")
        self.check_fields(partial, writable=True)
        if record_id not in self.records:
            raise NotFoundError(self.kind, record_id)
        current = self.records[record_id].model_dump()
        record = self.model.model_validate({**current, **partial})
        self.records[record_id] = record
        return record.model_copy(deep=True)

    def delete(self, record_id: UUID) -> None:
        self._check_available("delete")
        if record_id not in self.records:
            raise NotFoundError(self.kind, record_id)
        del self.records[record_id]


def in_memory_store() -> EntityStore:
    clock = StoreClock()
    return EntityStore(
        customers=InMemoryCollection("Customer", Customer, clock),
        jobs=InMemoryCollection("Job", Job, clock),
        messages=InMemoryCollection("Message", Message, clock),
        bad_weather_days=InMemoryCollection("BadWeatherDay", BadWeatherDay, clock),
        settings=InMemoryCollection("Setting", Setting, clock),
    )


# =============================================================================
# STORE & SERVICE FIXTURES
# =============================================================================


@pytest.fixture
def store() -> EntityStore:
    return in_memory_store()


@pytest.fixture
def config() -> ConsoleConfig:
    return ConsoleConfig()


@pytest.fixture
def services(store, config):
    from api.app import build_services
    return build_services(store, config)


@pytest.fixture
def event_bus(services):
    return services["event_bus"]


@pytest.fixture
def settings_service(services):
    return services["settings"]


@pytest.fixture
def template_engine(services):
    return services["templates"]


@pytest.fixture
def message_service(services):
    return services["message"]


@pytest.fixture
def job_service(services):
    return services["job"]


@pytest.fixture
def customer_service(services):
    return services["customer"]


@pytest.fixture
def scheduling_service(services):
    return services["scheduling"]


@pytest.fixture
def dashboard_service(services):
    return services["dashboard"]


# =============================================================================
# RECORD FIXTURES
# =============================================================================


@pytest.fixture
def customer(store) -> Customer:
    return store.customers.create({
        "full_name": "Jane Doe",
        "mobile_number": "801-555-0100",
        "email": "jane@example.com",
        "address": "1 Main",
    })


@pytest.fixture
def lead_job(store, customer) -> Job:
    return store.jobs.create({
        "customer_id": customer.id,
        "customer_name": customer.full_name,
        "customer_address": customer.address,
        "status": "lead",
    })


@pytest.fixture
def make_customer(store):
    """Factory: create a customer directly in the store."""

    def make(full_name="Jane Doe", **fields) -> Customer:
        return store.customers.create({"full_name": full_name, **fields})

    return make


@pytest.fixture
def make_job(store):
    """Factory: create a job for a customer directly in the store."""

    def make(customer, **fields) -> Job:
        return store.jobs.create({
            "customer_id": customer.id,
            "customer_name": customer.full_name,
            "customer_address": customer.address,
            **fields,
        })

    return make


@pytest.fixture
def make_inbound(store):
    """Factory: record an unread inbound message directly in the store."""

    def make(customer, body="Hi there", **fields) -> Message:
        return store.messages.create({
            "customer_id": customer.id,
            "direction": "inbound",
            "channel": "text",
            "body": body,
            "is_read": False,
            **fields,
        })

    return make


@pytest.fixture
def today() -> date:
    return TODAY
