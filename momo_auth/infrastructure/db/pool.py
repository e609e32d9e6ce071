from __future__ import annotations

from typing import Optional

from psycopg_pool import AsyncConnectionPool

from momo_auth.settings import get_settings

_pool: Optional[AsyncConnectionPool] = None


def get_pool() -> AsyncConnectionPool:
    """
    Lazily build the process-wide pool. It is created closed: the API lifespan,
    the outbox worker and the auth code sweeper each open it on startup.
    """
    global _pool
    if _pool is None:
        settings = get_settings()
        _pool = AsyncConnectionPool(
            settings.database_url,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
            timeout=5,
            kwargs={"connect_timeout": 3, "application_name": "momo-auth"},
            open=False,
        )
    return _pool


async def open_pool() -> AsyncConnectionPool:
    pool = get_pool()
    if pool.closed:
        await pool.open()
    return pool


async def ping_postgres() -> bool:
    async with get_pool().connection() as conn:
        await conn.execute("SELECT 1")
    return True


async def close_pool() -> None:
    global _pool
    if _pool is not None:
        await _pool.close()
        _pool = None
