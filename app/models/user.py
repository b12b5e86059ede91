"""
User Model Module

This module defines the User model and UserRole enumeration for authentication
and authorization throughout the application.
"""
from enum import Enum
from typing import Any, Dict, Optional
from sqlmodel import Field, JSON, Column

from app.models.base import SoftDeleteFields, TimestampFields, new_id


class UserRole(str, Enum):
    """
    Roles a user account can hold.

    - USER: a registered account that owns clients, projects and delivery notes
    - ADMIN: an administrator
    - GUEST: an account created through an invitation from another user
    """
    USER = "user"
    ADMIN = "admin"
    GUEST = "guest"


class User(SoftDeleteFields, TimestampFields, table=True):
    """
    User model representing an account holder and tenant.

    Accounts are created unverified at registration and become verified once
    the 6-digit code mailed to them is confirmed.

    Attributes:
        id: Unique identifier (UUID)
        email: Login email (unique, indexed)
        password: bcrypt hash
        role: One of UserRole
        code: Pending verification code
        verified: Whether the email was confirmed
        attempts: Failed verification attempts since the last success
        name, surnames, nif: Personal profile fields
        logo: Gateway URL of the uploaded logo image
        company: Embedded company record (name, cif, street, number, postal,
            city, province) stored as JSON
    """
    __tablename__ = "users"

    id: str = Field(default_factory=new_id, primary_key=True)

    # Authentication fields
    email: str = Field(unique=True, index=True, nullable=False)
    password: str = Field(nullable=False)
    role: UserRole = Field(default=UserRole.USER)

    # Email verification
    code: Optional[str] = None
    verified: bool = False
    attempts: int = 0

    # Profile information
    name: Optional[str] = None
    surnames: Optional[str] = None
    nif: Optional[str] = None
    logo: Optional[str] = None

    # Company stored as a JSON document, mirroring the embedded sub-record
    company: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
