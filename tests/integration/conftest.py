# tests/integration/conftest.py
import os

import pytest
import pytest_asyncio
from redis.asyncio import Redis

from momo_auth.infrastructure.db.pool import close_pool, open_pool

REDIS_URL = os.environ.get("REDIS_URL", "redis://redis:6379/0")


def pytest_collection_modifyitems(config, items):
    if os.environ.get("RUN_INTEGRATION") == "1":
        return
    skip = pytest.mark.skip(reason="needs live Redis/Postgres; set RUN_INTEGRATION=1")
    for item in items:
        if "tests/integration/" in item.nodeid:
            item.add_marker(pytest.mark.integration)
            item.add_marker(skip)


@pytest_asyncio.fixture
async def redis_client():
    r = Redis.from_url(REDIS_URL, encoding="utf-8", decode_responses=True)
    try:
        yield r
    finally:
        await r.aclose()


@pytest_asyncio.fixture
async def pool():
    """Migrated database expected (python -m momo_auth.infrastructure.db.migrate up)."""
    p = await open_pool()
    await p.wait(timeout=30)
    try:
        yield p
    finally:
        await close_pool()


@pytest_asyncio.fixture
async def clean_tables(pool):
    async def _truncate():
        async with pool.connection() as conn:
            async with conn.transaction():
                async with conn.cursor() as cur:
                    await cur.execute("TRUNCATE outbox, auth_codes RESTART IDENTITY;")

    await _truncate()
    yield
    await _truncate()
