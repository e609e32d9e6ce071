from enum import Enum
from typing import Protocol


class VerifyOutcome(str, Enum):
    OK = "ok"
    MISSING = "missing"
    MISMATCH = "mismatch"
    TOO_MANY_ATTEMPTS = "too_many_attempts"


class PhoneVerificationCachePort(Protocol):
    async def store_hashed_code(
        self, phone: str, salt_b64: str, digest_b64: str, ttl_seconds: int
    ) -> None:
        """Store/replace the hashed code for `phone` with TTL=ttl_seconds, attempts=0."""

    async def verify_and_consume(
        self, phone: str, code: str, max_attempts: int
    ) -> VerifyOutcome:
        """
        OK (and delete, single-use) when the code matches.
        MISSING when nothing is pending for `phone`.
        TOO_MANY_ATTEMPTS (and delete) when attempts already reached max_attempts.
        MISMATCH (and bump attempts) otherwise.
        """
