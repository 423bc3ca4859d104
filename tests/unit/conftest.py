"""Shared test fixtures."""

import sqlite3
from collections.abc import Iterator

import pytest

from hackstack.core.cache import RemoteCache
from hackstack.core.database.schema import create_schema
from hackstack.core.database.store import SqliteStore
from hackstack.core.remote import HackerNewsService
from tests.unit.fakes import FakeClock, FakeItemSource


@pytest.fixture
def conn() -> Iterator[sqlite3.Connection]:
    """Return an in-memory DB with the schema created."""
    conn = sqlite3.connect(":memory:")
    create_schema(conn)
    yield conn
    conn.close()


@pytest.fixture
def store(conn: sqlite3.Connection) -> SqliteStore:
    return SqliteStore(conn)


@pytest.fixture
def source() -> FakeItemSource:
    return FakeItemSource()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def service(source: FakeItemSource, clock: FakeClock) -> HackerNewsService:
    """Service over the fake source, with a cache driven by the fake clock."""
    return HackerNewsService(source, RemoteCache(clock=clock))
