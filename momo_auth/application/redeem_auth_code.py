import logging
from datetime import datetime
from typing import Callable

import momo_auth.domain.services as domain_services
from momo_auth.domain.errors import AuthCodeNotFound, InvalidOrExpiredCode
from momo_auth.domain.ports.auth_code_store import AuthCodeStorePort

logger = logging.getLogger(__name__)


async def redeem_auth_code(
    store: AuthCodeStorePort,
    code: str,
    *,
    clock: Callable[[], datetime] = domain_services.utcnow,
) -> str:
    if not isinstance(code, str) or not code.strip():
        raise InvalidOrExpiredCode()

    # take() is the store's atomic read-and-delete: concurrent callers for the
    # same code cannot both get the record back.
    try:
        record = await store.take(code.strip())
    except AuthCodeNotFound:
        raise InvalidOrExpiredCode() from None

    if record.is_expired(clock()):
        logger.info("expired auth code presented", extra={"user_id": record.user_id})
        raise InvalidOrExpiredCode()

    return record.user_id
