"""
Entity store gateway.

Typed CRUD over the five record kinds (customers, jobs, messages,
bad-weather days, settings). Every collection speaks the same small
contract:

    list(sort?, limit?)            -> records
    filter(predicate, sort?, limit?) -> records matching every field
    create(partial)                -> record with id and created_date assigned
    update(id, partial)            -> updated record
    delete(id)

Sort strings are "field" (ascending) or "-field" (descending). Unknown ids
raise NotFoundError; driver failures surface as TransportError and are not
retried here.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, List, Mapping, TypeVar
from uuid import UUID, uuid4

import psycopg2
from pydantic import BaseModel

from clients.postgres_client import PostgresClient
from core.exceptions import NotFoundError, TransportError, ValidationError
from core.models import BadWeatherDay, Customer, Job, Message, Setting
from utils.civil_dates import now_utc

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

_ASSIGNED_FIELDS = {"id", "created_date"}


class Collection(ABC, Generic[T]):
    """Store contract for one record kind."""

    def __init__(self, kind: str, model: type[T]):
        self.kind = kind
        self.model = model

    @property
    def fields(self) -> set[str]:
        return set(self.model.model_fields)

    def parse_sort(self, sort: str | None) -> tuple[str, bool] | None:
        """
        Parse '[-]field' into (field, descending).

        Raises:
            ValidationError: If the field is not on the record
        """
        if not sort:
            return None
        descending = sort.startswith("-")
        field = sort[1:] if descending else sort
        if field not in self.fields:
            raise ValidationError(f"Cannot sort {self.kind} by unknown field '{field}'")
        return field, descending

    def check_fields(self, names, writable: bool = False) -> None:
        """Reject fields the record doesn't have (or the store assigns, when writing)."""
        allowed = self.fields - _ASSIGNED_FIELDS if writable else self.fields
        unknown = set(names) - allowed
        if unknown:
            raise ValidationError(
                f"Unknown {self.kind} field(s): {', '.join(sorted(unknown))}"
            )

    def get(self, record_id: UUID) -> T:
        """
        Fetch one record by id.

        Raises:
            NotFoundError: If no record has this id
        """
        rows = self.filter({"id": record_id}, limit=1)
        if not rows:
            raise NotFoundError(self.kind, record_id)
        return rows[0]

    @abstractmethod
    def list(self, sort: str | None = None, limit: int | None = None) -> List[T]:
        ...

    @abstractmethod
    def filter(
        self,
        predicate: Mapping[str, Any],
        sort: str | None = None,
        limit: int | None = None
    ) -> List[T]:
        ...

    @abstractmethod
    def create(self, partial: Mapping[str, Any]) -> T:
        ...

    @abstractmethod
    def update(self, record_id: UUID, partial: Mapping[str, Any]) -> T:
        ...

    @abstractmethod
    def delete(self, record_id: UUID) -> None:
        ...


class PostgresCollection(Collection[T]):
    """Collection backed by one PostgreSQL table. Column names come from the model."""

    def __init__(self, postgres: PostgresClient, table: str, kind: str, model: type[T]):
        super().__init__(kind, model)
        self.postgres = postgres
        self.table = table

    def _run(self, query: str, params: tuple) -> List[Dict[str, Any]]:
        try:
            return self.postgres.execute(query, params)
        except psycopg2.Error as e:
            logger.error(f"Store query on {self.table} failed: {e}")
            raise TransportError(f"Entity store unavailable: {e}") from e

    def list(self, sort: str | None = None, limit: int | None = None) -> List[T]:
        return self.filter({}, sort=sort, limit=limit)

    def filter(
        self,
        predicate: Mapping[str, Any],
        sort: str | None = None,
        limit: int | None = None
    ) -> List[T]:
        self.check_fields(predicate)
        order = self.parse_sort(sort)

        clauses = []
        params: List[Any] = []
        for field, value in predicate.items():
            if value is None:
                clauses.append(f"{field} IS NULL")
            else:
                clauses.append(f"{field} = %s")
                params.append(value)

        query = f"SELECT * FROM {self.table}"
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        if order:
            field, descending = order
            query += f" ORDER BY {field} {'DESC' if descending else 'ASC'} NULLS LAST"
        if limit is not None:
            query += " LIMIT %s"
            params.append(limit)

        rows = self._run(query, tuple(params))
        return [self.model.model_validate(row) for row in rows]

    def create(self, partial: Mapping[str, Any]) -> T:
        self.check_fields(partial, writable=True)
        values = {"id": uuid4(), "created_date": now_utc(), **partial}

        columns = ", ".join(values)
        placeholders = ", ".join(["%s"] * len(values))
        rows = self._run(
            f"INSERT INTO {self.table} ({columns}) VALUES ({placeholders}) RETURNING *",
            tuple(values.values())
        )
        return self.model.model_validate(rows[0])

    def update(self, record_id: UUID, partial: Mapping[str, Any]) -> T:
        self.check_fields(partial, writable=True)
        if not partial:
            return self.get(record_id)

        set_parts = ", ".join(f"{field} = %s" for field in partial)
        rows = self._run(
            f"UPDATE {self.table} SET {set_parts} WHERE id = %s RETURNING *",
            (*partial.values(), record_id)
        )
        if not rows:
            raise NotFoundError(self.kind, record_id)
        return self.model.model_validate(rows[0])

    def delete(self, record_id: UUID) -> None:
        rows = self._run(
            f"DELETE FROM {self.table} WHERE id = %s RETURNING id",
            (record_id,)
        )
        if not rows:
            raise NotFoundError(self.kind, record_id)


class EntityStore:
    """The five collections the console works with."""

    def __init__(
        self,
        customers: Collection[Customer],
        jobs: Collection[Job],
        messages: Collection[Message],
        bad_weather_days: Collection[BadWeatherDay],
        settings: Collection[Setting],
    ):
        self.customers = customers
        self.jobs = jobs
        self.messages = messages
        self.bad_weather_days = bad_weather_days
        self.settings = settings

    @classmethod
    def postgres(cls, client: PostgresClient) -> "EntityStore":
        """Store backed by one table per record kind."""
        return cls(
            customers=PostgresCollection(client, "customers", "Customer", Customer),
            jobs=PostgresCollection(client, "jobs", "Job", Job),
            messages=PostgresCollection(client, "messages", "Message", Message),
            bad_weather_days=PostgresCollection(client, "bad_weather_days", "BadWeatherDay", BadWeatherDay),
            settings=PostgresCollection(client, "settings", "Setting", Setting),
        )
