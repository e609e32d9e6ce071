from __future__ import annotations

import logging
from typing import Optional

from momo_auth.domain.entities import Session
from momo_auth.domain.events import IdentityEvent, IdentityEvents, SignedIn, SignedOut
from momo_auth.domain.ports.session_store import SessionStorePort

logger = logging.getLogger(__name__)


class SessionManager:
    """
    Opens, resolves and closes sessions, and announces sign-in/sign-out on
    the identity event channel. Holds no per-user state itself.
    """

    def __init__(self, store: SessionStorePort, events: IdentityEvents) -> None:
        self._store = store
        self._events = events

    async def open(self, user_id: str, method: str) -> Session:
        session = await self._store.create(user_id, method)
        try:
            await self._events.publish(SignedIn(user_id=user_id, method=method))
        except Exception:
            # the caller never sees the token, so it must not stay valid
            await self._store.revoke(session.token)
            raise
        return session

    async def resolve(self, token: str) -> Optional[Session]:
        if not token:
            return None
        return await self._store.get(token)

    async def close(self, token: str) -> bool:
        """Revoke the session behind `token`. Return False if it was unknown."""
        session = await self.resolve(token)
        if session is None:
            return False
        await self._store.revoke(token)
        await self._events.publish(SignedOut(user_id=session.user_id))
        return True


async def log_identity_event(event: IdentityEvent) -> None:
    if isinstance(event, SignedIn):
        logger.info(
            "user signed in", extra={"user_id": event.user_id, "method": event.method}
        )
    else:
        logger.info(
            "user signed out", extra={"user_id": event.user_id}
        )


def build_identity_events() -> IdentityEvents:
    events = IdentityEvents()
    events.subscribe(SignedIn, log_identity_event)
    events.subscribe(SignedOut, log_identity_event)
    return events
