from __future__ import annotations

import asyncio
import logging
import signal
from contextlib import suppress
from datetime import datetime
from typing import Callable

import momo_auth.domain.services as domain_services
from momo_auth.domain.ports.auth_code_store import AuthCodeStorePort
from momo_auth.infrastructure.db.auth_code_store import PgAuthCodeStore
from momo_auth.infrastructure.db.pool import close_pool, open_pool
from momo_auth.logging import setup_logging
from momo_auth.settings import get_settings

logger = logging.getLogger(__name__)


class AuthCodeSweeper:
    """
    Background expiry for stores without native TTL (Postgres): deletes
    expired auth codes every `interval` seconds.
    """

    def __init__(
        self,
        store: AuthCodeStorePort,
        *,
        interval: float = 60.0,
        clock: Callable[[], datetime] = domain_services.utcnow,
    ) -> None:
        self.store = store
        self.interval = interval
        self.clock = clock

    async def sweep_once(self) -> int:
        removed = await self.store.purge_expired(self.clock())
        if removed:
            logger.info("purged expired auth codes", extra={"count": removed})
        return removed

    async def run_forever(self) -> None:
        logger.info("auth code sweeper started", extra={"interval": self.interval})
        while True:
            try:
                await self.sweep_once()
            except Exception as e:  # noqa: BLE001
                # keep sweeping; the next tick retries against a fresh connection
                logger.exception(
                    "auth code sweep failed", extra={"error": str(e)[:200]}
                )
            await asyncio.sleep(self.interval)


async def _run() -> None:
    settings = get_settings()
    setup_logging(settings.log_level, service="momo-auth-sweeper")

    if settings.auth_code_backend != "postgres":
        logger.info(
            "sweeper: backend expires keys natively; nothing to do",
            extra={"backend": settings.auth_code_backend},
        )
        return

    pool = await open_pool()
    sweeper = AuthCodeSweeper(
        PgAuthCodeStore(pool), interval=settings.auth_code_sweep_interval_seconds
    )

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        with suppress(NotImplementedError):
            loop.add_signal_handler(sig, stop.set)

    task = asyncio.create_task(sweeper.run_forever())
    await stop.wait()

    task.cancel()
    with suppress(asyncio.CancelledError):
        await task

    await close_pool()
    logger.info("sweeper: stopped cleanly")


def main() -> None:
    asyncio.run(_run())


if __name__ == "__main__":
    main()
