import re
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from typing import Optional
from app.models.user import UserRole

NIF_LETTERS = "TRWAGMYFPDXBNJZSQVHLCKE"
NIF_PATTERN = re.compile(r"^\d{8}[A-Z]$")
CIF_PATTERN = re.compile(r"^[A-Z]\d{8}$")


def nif_is_valid(value: str) -> bool:
    """Check the format and the mod-23 control letter of a Spanish NIF."""
    if not NIF_PATTERN.match(value):
        return False
    return NIF_LETTERS[int(value[:8]) % 23] == value[8]


class Company(BaseModel):
    name: str = Field(min_length=1)
    cif: str
    street: str = Field(min_length=1)
    number: int = Field(ge=1)
    postal: int = Field(ge=1000, le=99999)
    city: str = Field(min_length=1)
    province: str = Field(min_length=1)

    @field_validator("cif")
    @classmethod
    def check_cif(cls, value: str) -> str:
        if not CIF_PATTERN.match(value):
            raise ValueError("CIF must be one uppercase letter followed by 8 digits")
        return value


# Properties to receive via API on registration and login
class UserCredentials(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)


class VerificationCode(BaseModel):
    code: str = Field(min_length=6, max_length=6, pattern=r"^\d{6}$")


# Profile update
class UserProfileUpdate(BaseModel):
    name: str = Field(min_length=1)
    surnames: str = Field(min_length=1)
    nif: str

    @field_validator("nif")
    @classmethod
    def check_nif(cls, value: str) -> str:
        if not nif_is_valid(value):
            raise ValueError("NIF is not valid")
        return value


class CompanyUpdate(BaseModel):
    company: Company


class UserInvite(BaseModel):
    email: EmailStr


# Properties to return to client
class UserRead(BaseModel):
    id: str
    email: EmailStr
    role: UserRole
    verified: bool
    name: Optional[str] = None
    surnames: Optional[str] = None
    nif: Optional[str] = None
    logo: Optional[str] = None
    company: Optional[Company] = None
    created_at: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
