from __future__ import annotations

from typing import Optional, Protocol

from momo_auth.domain.entities import Session


class SessionStorePort(Protocol):
    async def create(self, user_id: str, method: str) -> Session:
        """Create a session with a fresh random token and the store's TTL."""

    async def get(self, token: str) -> Optional[Session]:
        """Return the session, or None if unknown or expired."""

    async def revoke(self, token: str) -> None:
        """Delete the session. Revoking an unknown token is a no-op."""
