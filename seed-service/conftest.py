"""Shared fixtures: in-memory region stores that stand in for PostgreSQL."""

import threading
import time
from collections import defaultdict

import pytest

from config import Region, SeedSettings
from regions import RegionRegistry
from storage import StorageError


class FakeStore:
    """
    Records every insert and tracks how many run at once.

    fail_on(table, call_no) -> bool makes the matching insert raise
    StorageError after its delay.
    """

    def __init__(self, region="us-east-2", delay=0.0, fail_on=None, query_results=None):
        self.region = region
        self.delay = delay
        self.fail_on = fail_on
        self.query_results = query_results or {}
        self.rows = defaultdict(list)
        self.batches = []
        self.queries = []
        self.calls = 0
        self.in_flight = 0
        self.max_in_flight = 0
        self.closed = False
        self._lock = threading.Lock()

    def insert_batch(self, table, columns, rows):
        with self._lock:
            call_no = self.calls
            self.calls += 1
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                time.sleep(self.delay)
            if self.fail_on is not None and self.fail_on(table, call_no):
                raise StorageError(self.region, f"insert into {table}", RuntimeError("connection reset"))
            with self._lock:
                self.rows[table].extend(dict(zip(columns, row)) for row in rows)
                self.batches.append((table, len(rows)))
        finally:
            with self._lock:
                self.in_flight -= 1
        return len(rows)

    def count(self, table="users"):
        with self._lock:
            self.calls += 1
        return len(self.rows[table])

    def fetch_all(self, query, params=None):
        self.queries.append((query, params))
        for marker, result in self.query_results.items():
            if marker in query:
                if isinstance(result, Exception):
                    raise result
                return result
        return []

    def close(self):
        self.closed = True


REGIONS = [
    Region("us-east-2", "Cleveland, USA (East)", "Ohio", "DATABASE_REGION_A"),
    Region("us-west-1", "San Francisco, USA (West)", "California", "DATABASE_REGION_B"),
    Region("ap-southeast-1", "Singapore (Southeast)", "Singapore", "DATABASE_REGION_C"),
]


@pytest.fixture
def stores():
    return {r.code: FakeStore(region=r.code) for r in REGIONS}


@pytest.fixture
def registry(stores):
    return RegionRegistry(stores, REGIONS)


@pytest.fixture
def small_settings():
    return SeedSettings(total_records=50, batch_size=20, parallel_batches=2)
