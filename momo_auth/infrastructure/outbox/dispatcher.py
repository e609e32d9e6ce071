from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable

from psycopg_pool import AsyncConnectionPool

from momo_auth.domain.ports.sms_port import SmsPort

logger = logging.getLogger(__name__)

PHONE_CODE_TOPIC = "user.phone_code"

Handler = Callable[[dict[str, Any], str], Awaitable[None]]


@dataclass(frozen=True)
class RetryPolicy:
    base: int = 2  # seconds
    max_delay: int = 60  # seconds
    max_attempts: int = 8

    def compute_delay(self, attempts: int) -> int:
        # attempts already made
        return min(self.max_delay, self.base * (2**attempts))

    def exhausted(self, attempts: int) -> bool:
        return attempts >= self.max_attempts


@dataclass(frozen=True)
class OutboxMessage:
    id: int
    topic: str
    payload: dict[str, Any]
    attempts: int
    created_at: datetime
    db_now: datetime

    @property
    def age(self) -> timedelta:
        return self.db_now - self.created_at


class OutboxDispatcher:
    """
    Drains the outbox table. Each claimed row ends up in one of:

    * ``dispatched``: the SMS gateway accepted it;
    * ``pending`` again, with ``next_attempt_at`` pushed out by the retry policy;
    * ``failed``: the retry policy gave up on it;
    * ``expired``: it is a phone code older than ``message_ttl``, so the code
      it carries can no longer be verified and sending it would only confuse
      the user.
    """

    def __init__(
        self,
        *,
        pool: AsyncConnectionPool,
        sms_adapter: SmsPort,
        batch_size: int = 10,
        poll_interval: float = 1.0,
        retry_policy: RetryPolicy | None = None,
        message_ttl: timedelta | None = None,
    ) -> None:
        self.pool = pool
        self.sms_adapter = sms_adapter
        self.batch_size = batch_size
        self.poll_interval = poll_interval
        self.retry_policy = retry_policy or RetryPolicy()
        self.message_ttl = message_ttl
        self._handlers: dict[str, Handler] = {PHONE_CODE_TOPIC: self._send_phone_code}

    async def run_forever(self) -> None:
        logger.info(
            "outbox dispatcher started",
            extra={
                "batch_size": self.batch_size,
                "poll_interval": self.poll_interval,
                "topics": sorted(self._handlers),
            },
        )
        while True:
            try:
                claimed = await self._process_once()
            except Exception as e:  # noqa: BLE001
                # rows stuck in 'processing' stay there; the loop itself must not die
                logger.exception("outbox poll failed", extra={"error": str(e)[:200]})
                claimed = 0
            if claimed == 0:
                await asyncio.sleep(self.poll_interval)

    async def _process_once(self) -> int:
        """Handle one claimed batch; returns how many rows were claimed."""
        batch = await self._claim_due_batch(self.batch_size)
        for msg in batch:
            await self._handle(msg)
        return len(batch)

    async def _handle(self, msg: OutboxMessage) -> None:
        if (
            msg.topic == PHONE_CODE_TOPIC
            and self.message_ttl is not None
            and msg.age >= self.message_ttl
        ):
            logger.info("phone code outlived its ttl, not sending", extra={"id": msg.id})
            await self._finish(msg.id, "expired", "code expired before delivery")
            return

        try:
            handler = self._handlers.get(msg.topic)
            if handler is None:
                raise RuntimeError(f"unknown topic: {msg.topic}")
            await handler(msg.payload, f"outbox-{msg.id}")
        except Exception as e:  # noqa: BLE001
            await self._on_failure(msg, e)
        else:
            await self._finish(msg.id, "dispatched", None)

    async def _send_phone_code(self, payload: dict[str, Any], idempotency_key: str) -> None:
        await self.sms_adapter.send(
            to=payload["to"], body=payload["body"], idempotency_key=idempotency_key
        )

    async def _on_failure(self, msg: OutboxMessage, error: Exception) -> None:
        attempts = msg.attempts + 1
        if self.retry_policy.exhausted(attempts):
            logger.error(
                "giving up on outbox message",
                extra={"id": msg.id, "topic": msg.topic, "attempts": attempts},
            )
            await self._finish(msg.id, "failed", str(error), attempts=attempts)
            return

        delay = self.retry_policy.compute_delay(msg.attempts)
        logger.warning(
            "dispatch failed, retrying later",
            extra={
                "id": msg.id,
                "topic": msg.topic,
                "attempts": attempts,
                "retry_in_s": delay,
                "error": str(error)[:200],
            },
        )
        sql = """
        UPDATE outbox
        SET status = 'pending',
            attempts = %s,
            last_error = %s,
            next_attempt_at = NOW() + make_interval(secs => %s),
            updated_at = NOW()
        WHERE id = %s;
        """
        await self._execute(sql, (attempts, str(error)[:1000], delay, msg.id))

    async def _finish(
        self, msg_id: int, status: str, error: str | None, *, attempts: int | None = None
    ) -> None:
        sql = """
        UPDATE outbox
        SET status = %s,
            attempts = COALESCE(%s, attempts),
            last_error = %s,
            updated_at = NOW()
        WHERE id = %s;
        """
        await self._execute(sql, (status, attempts, error, msg_id))

    async def _claim_due_batch(self, limit: int) -> list[OutboxMessage]:
        """Flip up to `limit` due pending rows to 'processing' in one statement."""
        sql = """
        WITH due AS (
            SELECT id
            FROM outbox
            WHERE status = 'pending'
              AND COALESCE(next_attempt_at, NOW()) <= NOW()
            ORDER BY created_at
            FOR UPDATE SKIP LOCKED
            LIMIT %s
        )
        UPDATE outbox o
        SET status = 'processing', updated_at = NOW()
        FROM due
        WHERE o.id = due.id
        RETURNING o.id, o.topic, o.payload, o.attempts, o.created_at, NOW();
        """
        async with self.pool.connection() as conn:
            async with conn.transaction():
                async with conn.cursor() as cur:
                    await cur.execute(sql, (limit,))
                    rows = await cur.fetchall()

        messages = [
            OutboxMessage(
                id=r[0],
                topic=r[1],
                payload=r[2] or {},
                attempts=r[3],
                created_at=r[4],
                db_now=r[5],
            )
            for r in rows
        ]
        messages.sort(key=lambda m: m.id)
        if messages:
            logger.info("claimed outbox messages", extra={"count": len(messages)})
        return messages

    async def _execute(self, sql: str, params: tuple) -> None:
        async with self.pool.connection() as conn:
            async with conn.transaction():
                async with conn.cursor() as cur:
                    await cur.execute(sql, params)
