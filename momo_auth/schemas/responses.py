from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from momo_auth.domain.entities import User


class UserOut(BaseModel):
    id: str
    email: str | None = None
    name: str | None = None
    phone: str | None = None
    role: str = "user"

    @classmethod
    def from_user(cls, user: User) -> "UserOut":
        return cls(
            id=user.id, email=user.email, name=user.name, phone=user.phone, role=user.role
        )


class MobileCodeOut(BaseModel):
    code: str
    redirect_uri: str
    expires_at: datetime


class SignedInOut(BaseModel):
    token: str = Field(..., description="Bearer token for subsequent requests")
    user: UserOut


class PhoneCodeSentOut(BaseModel):
    status: Literal["sent"] = "sent"
    dev_code: str | None = None


class AuthStatusOut(BaseModel):
    auth_methods: list[str]
    configured: bool = True


class OkOut(BaseModel):
    status: Literal["ok"] = "ok"
