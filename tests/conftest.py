import pytest
from pytest_asyncio import is_async_test


def pytest_collection_modifyitems(items: list[pytest.Item]):
    for test in items:
        if is_async_test(test):
            # Mark async tests with session scope
            test.add_marker(pytest.mark.asyncio(loop_scope="session"), append=False)


# Load environment variables
from dotenv import load_dotenv

load_dotenv()

# Other imports
import os
from datetime import datetime, timezone

# Mute Logfire and operator alerts
from proxybot.logging_setup import mute_logging_for_tests

mute_logging_for_tests()

# Mute mp for tests
from proxybot.common.mp import mute_mp_for_tests

mute_mp_for_tests()

import asyncpg

from proxybot.common.settings import ProxySettings
from proxybot.database import postgres_connection
from proxybot.database.database_schema import (
    create_schema,
    drop_and_create_database,
    truncate_all_tables,
)
from proxybot.proxy.models import Candidate, RelayRecord

# PostgreSQL test database settings
TEST_PG_DB = "proxybot_test"
PG_HOST = os.getenv("PG_HOST", "localhost")
PG_PORT = int(os.getenv("PG_PORT", "5432"))
PG_USER = os.getenv("PG_USER", "postgres")
PG_PASS = os.getenv("PG_PASSWORD", "")


def postgres_configured() -> bool:
    """PostgreSQL-backed tests run only when a server is configured"""
    required_vars = ["PG_HOST", "PG_USER", "PG_PASSWORD"]
    return all(os.getenv(var) for var in required_vars)


async def create_test_database():
    """Create test database and schema from scratch"""
    system_conn = await asyncpg.connect(
        host=PG_HOST, port=PG_PORT, user=PG_USER, password=PG_PASS, database="postgres"
    )

    try:
        await drop_and_create_database(system_conn, TEST_PG_DB)
    finally:
        await system_conn.close()

    test_db_conn = await asyncpg.connect(
        host=PG_HOST, port=PG_PORT, user=PG_USER, password=PG_PASS, database=TEST_PG_DB
    )

    try:
        await create_schema(test_db_conn)
    finally:
        await test_db_conn.close()


@pytest.fixture(scope="session")
async def test_pool():
    """Create a test database pool that can be cleaned between tests"""
    if not postgres_configured():
        pytest.skip("PostgreSQL is not configured (PG_HOST, PG_USER, PG_PASSWORD)")

    await create_test_database()

    pool = await asyncpg.create_pool(
        host=PG_HOST,
        port=PG_PORT,
        user=PG_USER,
        password=PG_PASS,
        database=TEST_PG_DB,
        min_size=1,
        max_size=5,
    )

    try:
        yield pool
    finally:
        await pool.close()


@pytest.fixture(scope="session")
def patched_db_conn(test_pool):
    """Point the global database pool at the test database"""
    postgres_connection._pool = test_pool
    yield
    postgres_connection._pool = None


@pytest.fixture(scope="function")
async def clean_db(patched_db_conn, test_pool):
    """Ensure a clean database state before each test"""
    async with test_pool.acquire() as conn:
        db_name = await conn.fetchval("SELECT current_database()")
        assert db_name == TEST_PG_DB

        await truncate_all_tables(conn)

    yield test_pool


@pytest.fixture
def settings():
    return ProxySettings(
        discord_token="test-token",
        application_id=555,
        delete_delay=0.0,
        request_timeout=5.0,
        permission_warning_cooldown=300.0,
    )


@pytest.fixture
def alice():
    return Candidate(
        persona_id=1,
        owner_id=900,
        display_name="Alice",
        prefix="[",
        suffix="]",
        avatar_url="https://cdn.example.com/alice.png",
    )


@pytest.fixture
def sample_record():
    return RelayRecord(
        original_message_id=1000000000000000001,
        relayed_message_id=1000000000000000002,
        channel_id=2000000000000000001,
        sending_account_id=300000000000000001,
        persona_id=1,
        owner_id=300000000000000001,
        persona_name="Alice",
        created_at=datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
    )
