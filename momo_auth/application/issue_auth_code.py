import logging
import time
from datetime import datetime, timedelta
from typing import Callable

import momo_auth.domain.services as domain_services
from momo_auth.domain.entities import AuthCode
from momo_auth.domain.errors import DuplicateCode, GenerationFailed
from momo_auth.domain.ports.auth_code_store import AuthCodeStorePort

logger = logging.getLogger(__name__)


async def issue_auth_code(
    store: AuthCodeStorePort,
    user_id: str,
    *,
    ttl_seconds: int = 300,
    clock: Callable[[], datetime] = domain_services.utcnow,
    max_attempts: int = 5,
    time_budget_seconds: float = 2.0,
) -> AuthCode:
    """
    Issue a single-use code for `user_id`, valid for `ttl_seconds`.

    A collision on the code value is retried with a fresh code, at most
    `max_attempts` times and within `time_budget_seconds`; past either limit
    GenerationFailed is raised and nothing is stored.
    """
    if not user_id:
        raise ValueError("user_id is required")
    if ttl_seconds <= 0:
        raise ValueError("ttl_seconds must be positive")

    deadline = time.monotonic() + time_budget_seconds
    attempt = 0
    while attempt < max_attempts:
        attempt += 1
        now = clock()
        record = AuthCode(
            code=domain_services.generate_auth_code(),
            user_id=user_id,
            expires_at=now + timedelta(seconds=ttl_seconds),
            created_at=now,
        )
        try:
            await store.put(record)
        except DuplicateCode:
            logger.warning(
                "auth code collision; regenerating",
                extra={"user_id": user_id, "attempt": attempt},
            )
            if time.monotonic() >= deadline:
                break
            continue
        logger.info(
            "auth code issued",
            extra={"user_id": user_id, "expires_at": record.expires_at.isoformat()},
        )
        return record

    raise GenerationFailed(f"no unique auth code after {attempt} attempt(s)")
