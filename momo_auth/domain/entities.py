from dataclasses import dataclass
from datetime import datetime
from typing import Literal


@dataclass
class User:
    id: str | None = None
    firebase_uid: str | None = None
    email: str | None = None
    name: str | None = None
    phone: str | None = None
    role: Literal["user", "admin"] = "user"
    auth_provider: Literal["firebase", "phone"] = "firebase"

    def __post_init__(self):
        if self.email is not None:
            self.email = self.email.strip().lower() or None
        if self.name is not None:
            self.name = self.name.strip() or None
        if not (self.firebase_uid or self.phone):
            raise ValueError("user needs a firebase_uid or a phone")


@dataclass(frozen=True)
class AuthCode:
    code: str
    user_id: str
    expires_at: datetime
    created_at: datetime

    def __post_init__(self):
        if self.expires_at.tzinfo is None or self.created_at.tzinfo is None:
            raise ValueError("auth code timestamps must be timezone-aware")
        if self.expires_at <= self.created_at:
            raise ValueError("expires_at must be after created_at")

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


@dataclass(frozen=True)
class Session:
    token: str
    user_id: str
    method: Literal["mobile_code", "phone"]
    created_at: datetime
