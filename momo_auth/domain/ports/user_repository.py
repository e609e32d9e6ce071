from __future__ import annotations

from typing import Optional, Protocol

from momo_auth.domain.entities import User


class UserRepositoryPort(Protocol):
    async def get_or_create_by_firebase_uid(
        self, firebase_uid: str, email: str | None, name: str | None
    ) -> User:
        """
        Return the user linked to `firebase_uid`, creating it if missing
        (email defaults to '<uid>@firebase.local', name to 'User').
        An existing user is returned unchanged.
        """

    async def get_or_create_by_phone(self, phone: str) -> User:
        """Return the user with this E.164 phone, creating a phone user if missing."""

    async def get_by_id(self, user_id: str) -> Optional[User]:
        """Return None if not found."""
