from pydantic import BaseModel, EmailStr, Field
from typing import Optional


class ClientCreate(BaseModel):
    name: str = Field(min_length=1)
    address: str = Field(min_length=1)
    email: EmailStr


class ClientUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    address: Optional[str] = Field(default=None, min_length=1)
    email: Optional[EmailStr] = None
