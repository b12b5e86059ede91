"""
Password Recovery Endpoints Module

A forgotten password is replaced in two steps: ``POST /password/getToken``
issues a short-lived reset token for an email address, and
``PUT /password/changePassword`` accepts that token (and only that kind of
token) as bearer credentials to set a new password.
"""
import logging
from typing import Any
from fastapi import APIRouter, Depends
from sqlmodel import Session
from app.api import deps
from app.core.config import Settings, get_settings
from app.core.errors import HttpError
from app.core.security import create_reset_token, get_password_hash
from app.db.repository import Repository
from app.db.session import get_db
from app.models.user import User
from app.schemas.auth import PasswordChange, PasswordResetRequest, ResetToken

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/getToken", response_model=ResetToken)
def get_reset_token(
    request_in: PasswordResetRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> Any:
    """
    Issue a password-reset token.

    Raises:
        HttpError 404 USER_NOT_FOUND: No active account with this email
    """
    user = Repository(User, db, owner_field=None).find_one(email=request_in.email)
    if not user:
        raise HttpError("USER_NOT_FOUND", 404)

    logger.info("Issued password reset token for user %s", user.id)
    return ResetToken(message="Reset token generated", resetToken=create_reset_token(user.id, settings))


@router.put("/changePassword")
def change_password(
    password_in: PasswordChange,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_reset_user),
) -> Any:
    Repository(User, db, owner_field=None).update_one(
        current_user.id, {"password": get_password_hash(password_in.password)}
    )
    logger.info("Password changed for user %s", current_user.id)
    return {"message": "Password updated"}
