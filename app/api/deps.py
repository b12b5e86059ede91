"""
API Dependencies Module

This module provides FastAPI dependency functions for authentication and for
the collaborators handlers need (remote storage, mail).

Authentication failures are answered with bare codes: a request without a
bearer token gets 401 ``NOT_TOKEN``; a token that cannot be decoded, has the
wrong type, or points at a missing or deleted account gets 401
``NOT_SESSION``.
"""
from typing import List, Optional
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from pydantic import ValidationError
from sqlmodel import Session

from app.core.config import Settings, get_settings
from app.core.errors import HttpError
from app.core.security import decode_token
from app.db.repository import Repository
from app.db.session import get_db
from app.models.user import User, UserRole
from app.schemas.auth import ACCESS_TOKEN, RESET_TOKEN
from app.services.mailer import Mailer
from app.services.storage import BlobUploader, PinataUploader

# auto_error=False so a missing header reaches us and gets the NOT_TOKEN code
reusable_oauth2 = OAuth2PasswordBearer(tokenUrl="/users/login", auto_error=False)


def _user_from_token(token: Optional[str], token_type: str, db: Session, settings: Settings) -> User:
    if not token:
        raise HttpError("NOT_TOKEN", 401)

    try:
        token_data = decode_token(token, settings)
    except (JWTError, ValidationError):
        raise HttpError("NOT_SESSION", 401)

    if token_data.typ != token_type:
        raise HttpError("NOT_SESSION", 401)

    user = Repository(User, db, owner_field=None).find_by_id(token_data.sub)
    if not user:
        raise HttpError("NOT_SESSION", 401)
    return user


def get_current_user(
    db: Session = Depends(get_db),
    token: Optional[str] = Depends(reusable_oauth2),
    settings: Settings = Depends(get_settings),
) -> User:
    """
    Dependency that retrieves and validates the current authenticated user.

    Raises:
        HttpError 401 NOT_TOKEN: no bearer token was sent
        HttpError 401 NOT_SESSION: the token is invalid or its user is gone
    """
    return _user_from_token(token, ACCESS_TOKEN, db, settings)


def get_reset_user(
    db: Session = Depends(get_db),
    token: Optional[str] = Depends(reusable_oauth2),
    settings: Settings = Depends(get_settings),
) -> User:
    """Like get_current_user, but only accepts password-reset tokens."""
    return _user_from_token(token, RESET_TOKEN, db, settings)


class RoleChecker:
    """
    Dependency factory for checking user roles.

    Usage: Depends(RoleChecker([UserRole.USER, UserRole.ADMIN]))
    """
    def __init__(self, allowed_roles: List[UserRole]):
        self.allowed_roles = allowed_roles

    def __call__(self, current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in self.allowed_roles:
            raise HttpError("NOT_ALLOWED", 403)
        return current_user


def get_uploader(settings: Settings = Depends(get_settings)) -> BlobUploader:
    return PinataUploader(settings)


def get_mailer(settings: Settings = Depends(get_settings)) -> Mailer:
    return Mailer(settings)


def soft_delete_flag(soft: str = "true") -> bool:
    """``?soft=false`` selects a hard delete; anything else is a soft delete."""
    return soft.lower() != "false"
