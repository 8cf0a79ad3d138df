"""Pytest configuration and shared fixtures."""

import os
from datetime import datetime, timezone

import psycopg
import pytest
from psycopg import Connection
from pymongo import MongoClient

from storebench.backends import MemoryAdapter, MongoAdapter, PostgresAdapter
from storebench.config import SeedSettings
from storebench.generators import FieldGenerator

POSTGRES_URL = os.environ.get("STOREBENCH_TEST_POSTGRES_URL")
MONGO_URL = os.environ.get("STOREBENCH_TEST_MONGO_URL")

TEST_SCHEMA = "test_storebench"
TEST_DATABASE = "test_storebench"


@pytest.fixture
def now() -> datetime:
    return datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def fields(now: datetime) -> FieldGenerator:
    """Seeded generator with a pinned clock."""
    return FieldGenerator(seed=42, now=lambda: now)


@pytest.fixture
def small_settings() -> SeedSettings:
    """Scenario A profile: 5 customers, 3 products, 10 orders, batches of 2."""
    return SeedSettings(
        customer_count=5,
        product_count=3,
        order_count=10,
        batch_size=2,
        order_batch_size=2,
        progress_interval=2,
        order_progress_interval=4,
        random_seed=1234,
    )


@pytest.fixture
def memory_adapter() -> MemoryAdapter:
    return MemoryAdapter(seed=7)


@pytest.fixture
def db_conn() -> Connection:
    """
    Provide a test database connection.

    Skipped unless STOREBENCH_TEST_POSTGRES_URL points at a server.
    """
    if not POSTGRES_URL:
        pytest.skip("STOREBENCH_TEST_POSTGRES_URL not set")

    conn = psycopg.connect(POSTGRES_URL, autocommit=False)

    yield conn

    # Cleanup
    conn.rollback()
    with conn.cursor() as cur:
        cur.execute(f"DROP SCHEMA IF EXISTS {TEST_SCHEMA} CASCADE")
    conn.commit()
    conn.close()


@pytest.fixture
def postgres_adapter(db_conn: Connection) -> PostgresAdapter:
    return PostgresAdapter(db_conn, schema=TEST_SCHEMA)


@pytest.fixture
def mongo_client() -> MongoClient:
    """Skipped unless STOREBENCH_TEST_MONGO_URL points at a server."""
    if not MONGO_URL:
        pytest.skip("STOREBENCH_TEST_MONGO_URL not set")

    client = MongoClient(MONGO_URL, tz_aware=True)

    yield client

    client.drop_database(TEST_DATABASE)
    client.close()


@pytest.fixture
def mongo_adapter(mongo_client: MongoClient) -> MongoAdapter:
    return MongoAdapter(mongo_client, database=TEST_DATABASE)


@pytest.fixture(
    params=[
        "memory",
        pytest.param("postgres", marks=pytest.mark.postgres),
        pytest.param("mongo", marks=pytest.mark.mongo),
    ]
)
def adapter(request):
    """Every backend, each starting from a freshly reset schema."""
    backend = request.getfixturevalue(f"{request.param}_adapter")
    backend.reset_schema()
    return backend
