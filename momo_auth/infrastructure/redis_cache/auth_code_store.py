from __future__ import annotations

from datetime import datetime, timezone

from redis.asyncio import Redis

from momo_auth.domain.entities import AuthCode
from momo_auth.domain.errors import AuthCodeNotFound, DuplicateCode
from momo_auth.domain.ports.auth_code_store import AuthCodeStorePort


_LUA_PUT = """
-- KEYS[1]: auth code key
-- ARGV[1]: user id
-- ARGV[2]: expires_at (unix ms)
-- ARGV[3]: created_at (unix ms)
local key = KEYS[1]
if redis.call('EXISTS', key) == 1 then
  return 0
end
redis.call('HSET', key, 'user_id', ARGV[1], 'expires_at', ARGV[2], 'created_at', ARGV[3])
redis.call('PEXPIREAT', key, ARGV[2])
return 1
"""

_LUA_TAKE = """
-- KEYS[1]: auth code key
local key = KEYS[1]
local fields = redis.call('HGETALL', key)
if #fields == 0 then
  return fields
end
redis.call('DEL', key)
return fields
"""


def _to_ms(when: datetime) -> int:
    return int(when.timestamp() * 1000)


def _from_ms(raw: str) -> datetime:
    return datetime.fromtimestamp(int(raw) / 1000, tz=timezone.utc)


class RedisAuthCodeStore(AuthCodeStorePort):
    """
    One hash per code. Expiry is left to Redis (PEXPIREAT at expires_at);
    reads still filter on expires_at in case the key outlives it.
    """

    def __init__(self, redis: Redis, *, key_prefix: str = "authcode:") -> None:
        self._redis = redis
        self._prefix = key_prefix

    def _key(self, code: str) -> str:
        return f"{self._prefix}{code}"

    @staticmethod
    def _record(code: str, stored: dict[str, str]) -> AuthCode:
        return AuthCode(
            code=code,
            user_id=stored["user_id"],
            expires_at=_from_ms(stored["expires_at"]),
            created_at=_from_ms(stored["created_at"]),
        )

    async def put(self, record: AuthCode) -> None:
        res = await self._redis.eval(
            _LUA_PUT,
            1,
            self._key(record.code),
            record.user_id,
            _to_ms(record.expires_at),
            _to_ms(record.created_at),
        )
        if int(res) != 1:
            raise DuplicateCode(record.code)

    async def get(self, code: str, now: datetime) -> AuthCode:
        stored = await self._redis.hgetall(self._key(code))
        if not stored or "user_id" not in stored:
            raise AuthCodeNotFound(code)
        record = self._record(code, stored)
        if record.is_expired(now):
            raise AuthCodeNotFound(code)
        return record

    async def delete_by_code(self, code: str) -> None:
        await self._redis.delete(self._key(code))

    async def take(self, code: str) -> AuthCode:
        fields = await self._redis.eval(_LUA_TAKE, 1, self._key(code))
        if not fields:
            raise AuthCodeNotFound(code)
        stored = dict(zip(fields[::2], fields[1::2]))
        return self._record(code, stored)

    async def purge_expired(self, now: datetime) -> int:
        # keys carry their own PEXPIREAT; nothing to sweep
        return 0
