from __future__ import annotations

from redis.asyncio import Redis

from momo_auth.domain.ports.phone_verification_cache import (
    PhoneVerificationCachePort,
    VerifyOutcome,
)
from momo_auth.domain.services import code_digest_with_salt


_LUA_CONSUME = """
-- KEYS[1]: verification key
-- ARGV[1]: expected digest (base64)
-- ARGV[2]: max attempts
-- ARGV[3]: salt the digest was computed with
local key = KEYS[1]
local cur = redis.call('HGET', key, 'digest')
if not cur then
  return 0
end
-- code was replaced after the salt was read; not an attempt on the new one
if redis.call('HGET', key, 'salt') ~= ARGV[3] then
  return -1
end
local attempts = tonumber(redis.call('HGET', key, 'attempts') or '0')
if attempts >= tonumber(ARGV[2]) then
  redis.call('DEL', key)
  return -2
end
if cur ~= ARGV[1] then
  redis.call('HINCRBY', key, 'attempts', 1)
  return -1
end
redis.call('DEL', key)
return 1
"""

_OUTCOMES = {
    1: VerifyOutcome.OK,
    0: VerifyOutcome.MISSING,
    -1: VerifyOutcome.MISMATCH,
    -2: VerifyOutcome.TOO_MANY_ATTEMPTS,
}


class RedisPhoneVerificationCache(PhoneVerificationCachePort):
    def __init__(self, redis: Redis, *, key_prefix: str = "phone:") -> None:
        self._redis = redis
        self._prefix = key_prefix

    def _key(self, phone: str) -> str:
        return f"{self._prefix}{phone}"

    async def store_hashed_code(
        self, phone: str, salt_b64: str, digest_b64: str, ttl_seconds: int
    ) -> None:
        key = self._key(phone)
        pipe = self._redis.pipeline(transaction=True)
        pipe.delete(key)
        pipe.hset(key, mapping={"salt": salt_b64, "digest": digest_b64, "attempts": 0})
        pipe.expire(key, ttl_seconds)
        await pipe.execute()

    async def verify_and_consume(
        self, phone: str, code: str, max_attempts: int
    ) -> VerifyOutcome:
        key = self._key(phone)
        # read salt (to compute expected digest)
        salt_b64 = await self._redis.hget(key, "salt")
        if not salt_b64:
            return VerifyOutcome.MISSING
        expected = code_digest_with_salt(code, salt_b64)
        # atomic attempts-check, compare and delete
        res = await self._redis.eval(
            _LUA_CONSUME, 1, key, expected, max_attempts, salt_b64
        )
        return _OUTCOMES[int(res)]
