"""Tests for PostgresClient - pooled execution with dict rows.

The psycopg2 pool is patched; no database server is needed.
"""

from enum import Enum
from unittest.mock import MagicMock, patch
from uuid import uuid4

import pytest

from clients.postgres_client import PostgresClient


class _Colour(str, Enum):
    RED = "red"


@pytest.fixture
def pool():
    with patch("clients.postgres_client.psycopg2.pool.ThreadedConnectionPool") as pool_class:
        yield pool_class.return_value


@pytest.fixture
def cursor(pool):
    conn = pool.getconn.return_value
    cur = MagicMock()
    conn.cursor.return_value.__enter__.return_value = cur
    cur.description = [("num",)]
    cur.fetchall.return_value = []
    return cur


@pytest.fixture
def db(pool):
    client = PostgresClient(f"postgresql://test/{uuid4()}")
    yield client
    client.close()


class TestPostgresClientInit:
    """Connection pool initialization."""

    def test_pool_is_shared_per_url(self, pool):
        url = f"postgresql://test/{uuid4()}"
        first = PostgresClient(url)
        PostgresClient(url)

        assert url in PostgresClient._connection_pools
        first.close()
        assert url not in PostgresClient._connection_pools


class TestExecuteMethods:
    """Query execution methods."""

    def test_execute_returns_list_of_dicts(self, db, cursor, pool):
        cursor.fetchall.return_value = [{"num": 1, "word": "hello"}]

        assert db.execute("SELECT 1 as num, 'hello' as word") == [{"num": 1, "word": "hello"}]
        pool.getconn.return_value.commit.assert_called_once()
        pool.putconn.assert_called_once()

    def test_execute_without_result_set_returns_empty_list(self, db, cursor):
        cursor.description = None

        assert db.execute("DELETE FROM jobs") == []
        cursor.fetchall.assert_not_called()

    def test_params_are_converted(self, db, cursor):
        record_id = uuid4()

        db.execute("SELECT * FROM jobs WHERE id = %s AND status = %s", (record_id, _Colour.RED))

        assert cursor.execute.call_args.args[1] == (str(record_id), "red")

    def test_error_rolls_back_and_returns_connection(self, db, cursor, pool):
        cursor.execute.side_effect = RuntimeError("boom")

        with pytest.raises(RuntimeError):
            db.execute("SELECT 1")

        pool.getconn.return_value.rollback.assert_called_once()
        pool.putconn.assert_called_once()
