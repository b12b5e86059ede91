from pydantic import BaseModel, EmailStr, Field
from typing import Optional

from app.schemas.user import UserRead

ACCESS_TOKEN = "access"
RESET_TOKEN = "reset"


class TokenData(BaseModel):
    sub: str
    role: Optional[str] = None
    typ: str = ACCESS_TOKEN


class Session(BaseModel):
    """Returned on registration and login."""
    token: str
    user: UserRead


class ResetToken(BaseModel):
    message: str
    resetToken: str


class PasswordResetRequest(BaseModel):
    email: EmailStr


class PasswordChange(BaseModel):
    password: str = Field(min_length=8)
