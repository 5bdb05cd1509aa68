"""
Pooled PostgreSQL access for the entity store.

One ThreadedConnectionPool per database URL, shared by every PostgresClient
pointed at it. Statements run in their own transaction: committed when the
cursor block finishes, rolled back if it raises. Rows come back as plain
dicts keyed by column name.
"""

import logging
import threading
from contextlib import contextmanager
from enum import Enum
from typing import Any, Dict, Iterator, List, Tuple
from uuid import UUID

import psycopg2
import psycopg2.extras
import psycopg2.pool

logger = logging.getLogger(__name__)

Params = Tuple | Dict | None


def _adapt(value: Any) -> Any:
    """UUIDs to text, enums to their value; containers are walked."""
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {key: _adapt(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return type(value)(_adapt(item) for item in value)
    return value


class PostgresClient:
    """
    Thin wrapper over a shared psycopg2 pool.

    Usage:
        db = PostgresClient(database_url)
        leads = db.execute("SELECT * FROM jobs WHERE status = %s", ("lead",))
    """

    _connection_pools: Dict[str, psycopg2.pool.ThreadedConnectionPool] = {}
    _pools_lock = threading.RLock()

    def __init__(self, database_url: str, min_connections: int = 1, max_connections: int = 10):
        self._database_url = database_url
        self._min_connections = min_connections
        self._max_connections = max_connections
        self._pool()

    def _pool(self) -> psycopg2.pool.ThreadedConnectionPool:
        with self._pools_lock:
            pool = self._connection_pools.get(self._database_url)
            if pool is None:
                pool = psycopg2.pool.ThreadedConnectionPool(
                    minconn=self._min_connections,
                    maxconn=self._max_connections,
                    dsn=self._database_url,
                    connect_timeout=30,
                )
                self._connection_pools[self._database_url] = pool
                logger.info(f"Opened pool of up to {self._max_connections} connections")
            return pool

    @contextmanager
    def _cursor(self) -> Iterator[psycopg2.extras.RealDictCursor]:
        """Cursor on a borrowed connection; the connection goes back to the pool either way."""
        pool = self._pool()
        conn = pool.getconn()
        if conn is None:
            raise RuntimeError("Connection pool exhausted")

        try:
            with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
                yield cur
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            pool.putconn(conn)

    def execute(self, query: str, params: Params = None) -> List[Dict[str, Any]]:
        """Run one statement. Returns its rows, or [] when it produces no result set."""
        with self._cursor() as cur:
            cur.execute(query, _adapt(params))
            if cur.description is None:
                return []
            return [dict(row) for row in cur.fetchall()]

    def close(self) -> None:
        """Close and forget this URL's pool."""
        with self._pools_lock:
            pool = self._connection_pools.pop(self._database_url, None)
        if pool is not None:
            pool.closeall()
