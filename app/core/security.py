"""
Password hashing and JWT helpers.

Tokens carry the user id in ``sub``, the role, and a ``typ`` claim that keeps
session tokens and password-reset tokens from being used interchangeably.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional
import secrets

import bcrypt
from jose import jwt

from app.core.config import Settings
from app.schemas.auth import ACCESS_TOKEN, RESET_TOKEN, TokenData

# bcrypt only looks at the first 72 bytes of a secret
_BCRYPT_MAX_BYTES = 72


def _encode_secret(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(_encode_secret(password), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    if not hashed_password:
        return False
    return bcrypt.checkpw(_encode_secret(plain_password), hashed_password.encode("utf-8"))


def generate_verification_code() -> str:
    """Random 6-digit code, zero padded."""
    return f"{secrets.randbelow(1_000_000):06d}"


def generate_random_password() -> str:
    return secrets.token_urlsafe(16)


def create_access_token(
    subject: str,
    settings: Settings,
    role: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
    token_type: str = ACCESS_TOKEN,
) -> str:
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    expire = datetime.now(timezone.utc) + expires_delta
    to_encode = {"sub": subject, "typ": token_type, "exp": expire}
    if role is not None:
        to_encode["role"] = role
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def create_reset_token(subject: str, settings: Settings) -> str:
    return create_access_token(
        subject,
        settings,
        expires_delta=timedelta(minutes=settings.RESET_TOKEN_EXPIRE_MINUTES),
        token_type=RESET_TOKEN,
    )


def decode_token(token: str, settings: Settings) -> TokenData:
    """
    Decode and validate a token.

    Raises:
        JWTError: bad signature, malformed or expired token
        ValidationError: payload lacks the expected claims
    """
    payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    return TokenData(**payload)
