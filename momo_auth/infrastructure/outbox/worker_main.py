from __future__ import annotations

import asyncio
import logging
import signal
from contextlib import suppress
from datetime import timedelta

from momo_auth.infrastructure.db.pool import close_pool, open_pool
from momo_auth.infrastructure.http.client import close_http_client, open_http_client
from momo_auth.infrastructure.outbox.dispatcher import OutboxDispatcher, RetryPolicy
from momo_auth.infrastructure.sms.http_sms_adapter import HttpSmsAdapter
from momo_auth.logging import setup_logging
from momo_auth.settings import get_settings

logger = logging.getLogger(__name__)


async def _run() -> None:
    settings = get_settings()
    setup_logging(settings.log_level, service="momo-auth-worker")

    pool = await open_pool()
    client = await open_http_client()
    logger.info("worker: pool and http client opened")

    sms = HttpSmsAdapter(base_url=settings.sms_base_url, client=client)
    dispatcher = OutboxDispatcher(
        pool=pool,
        sms_adapter=sms,
        batch_size=settings.outbox_batch_size,
        poll_interval=settings.outbox_poll_interval_ms / 1000,
        retry_policy=RetryPolicy(
            base=2, max_delay=300, max_attempts=settings.outbox_max_attempts
        ),
        message_ttl=timedelta(seconds=settings.phone_code_ttl_seconds),
    )

    stop = asyncio.Event()

    def _on_signal(*_: object) -> None:
        logger.info("worker: stop signal received")
        stop.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        with suppress(NotImplementedError):
            loop.add_signal_handler(sig, _on_signal)

    worker_task = asyncio.create_task(dispatcher.run_forever())
    await stop.wait()

    worker_task.cancel()
    with suppress(asyncio.CancelledError):
        await worker_task

    await sms.aclose()
    await close_http_client()
    await close_pool()
    logger.info("worker: stopped cleanly")


def main() -> None:
    asyncio.run(_run())


if __name__ == "__main__":
    main()
