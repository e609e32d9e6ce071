from __future__ import annotations

from datetime import datetime
from typing import Protocol

from momo_auth.domain.entities import AuthCode


class AuthCodeStorePort(Protocol):
    async def put(self, record: AuthCode) -> None:
        """
        Persist a new code. Raise DuplicateCode if a live record with the
        same code exists (an expired leftover may be replaced).
        """

    async def get(self, code: str, now: datetime) -> AuthCode:
        """
        Return the live record. Raise AuthCodeNotFound if absent or if
        expires_at <= now, even when the purge has not run yet.
        """

    async def delete_by_code(self, code: str) -> None:
        """Delete the record if present. Deleting an absent code is a no-op."""

    async def take(self, code: str) -> AuthCode:
        """
        Atomically read and delete the record (single-use).
        Raise AuthCodeNotFound if absent. The removed record is returned even
        if expired; the caller decides what an expired record means.
        """

    async def purge_expired(self, now: datetime) -> int:
        """Delete expired records and return how many were removed."""
