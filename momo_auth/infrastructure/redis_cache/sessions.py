from __future__ import annotations

import secrets
from datetime import datetime, timezone
from typing import Optional

from redis.asyncio import Redis

from momo_auth.domain.entities import Session
from momo_auth.domain.ports.session_store import SessionStorePort


class RedisSessions(SessionStorePort):
    def __init__(
        self, redis: Redis, *, key_prefix: str = "sess:", ttl_seconds: int = 86400
    ) -> None:
        self._redis = redis
        self._prefix = key_prefix
        self._ttl = ttl_seconds

    def _key(self, token: str) -> str:
        return f"{self._prefix}{token}"

    async def create(self, user_id: str, method: str) -> Session:
        token = secrets.token_urlsafe(32)
        created_at = datetime.now(timezone.utc)
        key = self._key(token)
        pipe = self._redis.pipeline(transaction=True)
        pipe.hset(
            key,
            mapping={
                "user_id": user_id,
                "method": method,
                "created_at": created_at.isoformat(),
            },
        )
        pipe.expire(key, self._ttl)
        await pipe.execute()
        return Session(
            token=token, user_id=user_id, method=method, created_at=created_at
        )

    async def get(self, token: str) -> Optional[Session]:
        stored = await self._redis.hgetall(self._key(token))
        if not stored or "user_id" not in stored:
            return None
        return Session(
            token=token,
            user_id=stored["user_id"],
            method=stored.get("method", "mobile_code"),
            created_at=datetime.fromisoformat(stored["created_at"]),
        )

    async def revoke(self, token: str) -> None:
        await self._redis.delete(self._key(token))
