from pydantic import BaseModel, EmailStr, Field


class MobileCodeIn(BaseModel):
    firebase_uid: str = Field(..., min_length=1, max_length=128)
    email: EmailStr | None = Field(None, max_length=255)
    name: str | None = Field(None, max_length=120)
    redirect_uri: str = Field(..., description="sherpamomo:// or exp:// deep link")


class MobileCallbackIn(BaseModel):
    code: str = Field(..., min_length=1, max_length=128)


class PhoneRequestIn(BaseModel):
    phone: str = Field(..., min_length=1, max_length=32)


class PhoneVerifyIn(BaseModel):
    phone: str = Field(..., min_length=1, max_length=32)
    code: str = Field(..., min_length=6, max_length=6, pattern=r"^\d{6}$")
