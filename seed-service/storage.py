"""
Region storage backend - PostgreSQL via psycopg2

One RegionStore per region, each with its own ThreadedConnectionPool.
Concurrent batch inserts from the loader run in worker threads and each
takes its own pooled connection.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Sequence

import psycopg2
from psycopg2.extras import RealDictCursor, execute_values
from psycopg2.pool import ThreadedConnectionPool

logger = logging.getLogger(__name__)

TABLES = ("users", "products", "orders", "order_items")


class StorageError(Exception):
    """Raised when a region's database rejects a read or write"""

    def __init__(self, region: str, operation: str, cause: Exception):
        self.region = region
        self.operation = operation
        self.cause = cause
        super().__init__(f"[{region}] {operation} failed: {cause}")


class RegionStore:
    """
    Storage handle for one region.

    Args:
        region: Region code, used in logs and errors
        dsn: PostgreSQL connection string
        minconn: Connections opened eagerly (0 = open on first use)
        maxconn: Upper bound on simultaneous connections
    """

    def __init__(self, region: str, dsn: str, minconn: int = 0, maxconn: int = 10):
        self.region = region
        self.dsn = dsn
        self._pool = ThreadedConnectionPool(minconn, maxconn, dsn)

    @contextmanager
    def connection(self) -> Iterator[Any]:
        conn = self._pool.getconn()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            self._pool.putconn(conn)

    def insert_batch(self, table: str, columns: Sequence[str], rows: List[tuple]) -> int:
        """
        Insert rows in a single multi-row INSERT and commit.

        No conflict handling: re-seeding a populated region appends rows.

        Returns:
            Number of rows written
        """
        if table not in TABLES:
            raise ValueError(f"Unknown table: {table}")
        if not rows:
            return 0

        query = f"INSERT INTO {table} ({', '.join(columns)}) VALUES %s"
        try:
            with self.connection() as conn, conn.cursor() as cur:
                execute_values(cur, query, rows, page_size=len(rows))
        except psycopg2.Error as e:
            raise StorageError(self.region, f"insert into {table}", e) from e

        logger.debug(f"[{self.region}] Inserted {len(rows)} rows into {table}")
        return len(rows)

    def count(self, table: str = "users") -> int:
        if table not in TABLES:
            raise ValueError(f"Unknown table: {table}")
        try:
            with self.connection() as conn, conn.cursor() as cur:
                cur.execute(f"SELECT count(*) FROM {table}")
                return int(cur.fetchone()[0])
        except psycopg2.Error as e:
            raise StorageError(self.region, f"count {table}", e) from e

    def fetch_all(self, query: str, params: Optional[Sequence[Any]] = None) -> List[Dict[str, Any]]:
        """Run a read-only query and return rows as dicts."""
        try:
            with self.connection() as conn, conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute(query, params)
                return [dict(row) for row in cur.fetchall()]
        except psycopg2.Error as e:
            raise StorageError(self.region, "query", e) from e

    def close(self) -> None:
        self._pool.closeall()
