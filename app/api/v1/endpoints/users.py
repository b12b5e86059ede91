"""
User Account Endpoints Module

Registration, email verification, login and self-service account management.
Every account is its own tenant: the endpoints here only ever act on the
authenticated caller, except registration and login which create or open a
session.

Failures that clients are expected to branch on (``USER_NOT_EXISTS``,
``INVALID_PASSWORD``, ``INVALID_CODE``...) are returned as plain-text codes.
"""
import logging
from typing import Any
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from sqlmodel import Session, select
from app.api import deps
from app.core.config import Settings, get_settings
from app.core.errors import HttpError
from app.core.security import (
    create_access_token,
    generate_random_password,
    generate_verification_code,
    get_password_hash,
    verify_password,
)
from app.db.repository import Repository
from app.db.session import get_db
from app.models.client import Client
from app.models.delivery_note import DeliveryNote
from app.models.project import Project
from app.models.user import User, UserRole
from app.schemas.auth import Session as SessionOut
from app.schemas.user import (
    CompanyUpdate,
    UserCredentials,
    UserInvite,
    UserProfileUpdate,
    UserRead,
    VerificationCode,
)
from app.services.mailer import Mailer
from app.services.storage import BlobUploader, UploadError

logger = logging.getLogger(__name__)

router = APIRouter()


def _session_for(user: User, settings: Settings) -> SessionOut:
    token = create_access_token(user.id, settings, role=user.role.value)
    return SessionOut(token=token, user=UserRead.model_validate(user))


@router.post("/register", response_model=SessionOut, status_code=status.HTTP_201_CREATED)
def register_user(
    user_in: UserCredentials,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    mailer: Mailer = Depends(deps.get_mailer),
) -> Any:
    """
    Register a new account.

    The account starts unverified with a fresh 6-digit code that is mailed to
    the given address. A session token is returned right away so the client
    can call ``PUT /users/validate``.

    Raises:
        HTTPException 409: An account (active or archived) already uses this email
    """
    users = Repository(User, db, owner_field=None)
    if users.find_one(include_deleted=True, email=user_in.email):
        raise HTTPException(status_code=409, detail="User already exists")

    code = generate_verification_code()
    user = users.create(
        email=user_in.email,
        password=get_password_hash(user_in.password),
        role=UserRole.USER,
        code=code,
    )
    mailer.send_verification_code(user.email, code)
    return _session_for(user, settings)


@router.put("/validate", response_model=UserRead)
def validate_email(
    code_in: VerificationCode,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
    settings: Settings = Depends(get_settings),
) -> Any:
    """
    Confirm the email address with the mailed verification code.

    Raises:
        HttpError 429 TOO_MANY_ATTEMPTS: The attempt limit has been reached
        HttpError 400 INVALID_CODE: Wrong code (counts as a failed attempt)
    """
    if current_user.attempts >= settings.VERIFICATION_MAX_ATTEMPTS:
        raise HttpError("TOO_MANY_ATTEMPTS", 429)

    users = Repository(User, db, owner_field=None)
    if current_user.code != code_in.code:
        current_user.attempts += 1
        users.save(current_user)
        logger.info("Wrong verification code for user %s (%d attempts)", current_user.id, current_user.attempts)
        raise HttpError("INVALID_CODE", 400)

    current_user.verified = True
    current_user.attempts = 0
    current_user.code = None
    return users.save(current_user)


@router.post("/login", response_model=SessionOut)
def login(
    credentials: UserCredentials,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> Any:
    """
    Exchange email and password for a session token.

    Raises:
        HttpError 404 USER_NOT_EXISTS: No active account with this email
        HttpError 401 INVALID_PASSWORD: Wrong password
        HttpError 401 USER_NOT_VALIDATED: Right password, but the email has not been verified yet
    """
    user = Repository(User, db, owner_field=None).find_one(email=credentials.email)
    if not user:
        raise HttpError("USER_NOT_EXISTS", 404)
    if not verify_password(credentials.password, user.password):
        raise HttpError("INVALID_PASSWORD", 401)
    if not user.verified:
        raise HttpError("USER_NOT_VALIDATED", 401)
    return _session_for(user, settings)


@router.put("/register", response_model=UserRead)
def update_profile(
    profile_in: UserProfileUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
) -> Any:
    """Set name, surnames and NIF of the current user."""
    return Repository(User, db, owner_field=None).update_one(current_user.id, profile_in.model_dump())


@router.put("/company", response_model=UserRead)
def update_company(
    company_in: CompanyUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
) -> Any:
    """
    Replace the company record of the current user.

    Raises:
        HTTPException 409: Another account already registered this CIF
    """
    cif = company_in.company.cif
    clash = db.exec(
        select(User).where(User.company["cif"].as_string() == cif, User.id != current_user.id)
    ).first()
    # Guests share their inviter's company, so the inviter is not a clash for them
    if clash and not (current_user.role == UserRole.GUEST and clash.company == current_user.company):
        raise HTTPException(status_code=409, detail="Company already registered")

    return Repository(User, db, owner_field=None).update_one(
        current_user.id, {"company": company_in.company.model_dump()}
    )


@router.get("", response_model=UserRead)
def read_user_me(
    current_user: User = Depends(deps.get_current_user),
) -> Any:
    return current_user


@router.delete("")
def delete_user_me(
    soft: bool = Depends(deps.soft_delete_flag),
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
) -> Any:
    """
    Archive (default) or permanently delete the caller's own account.

    An archived account can no longer log in or use its tokens and its
    clients, projects and delivery notes are kept. A permanent delete removes
    those records as well.
    """
    users = Repository(User, db, owner_field=None)
    if soft:
        users.mark_deleted(current_user.id)
        return {"message": "User archived"}

    # Owned records go first so no row is left pointing at the account
    for model in (DeliveryNote, Project, Client):
        Repository(model, db).purge_owned(current_user.id)
    users.purge(current_user.id)
    return {"message": "User permanently deleted"}


@router.patch("/logo", response_model=UserRead)
def update_logo(
    image: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
    uploader: BlobUploader = Depends(deps.get_uploader),
) -> Any:
    """
    Upload a logo image to remote storage and keep its gateway URL.

    Raises:
        HTTPException 400: Empty file
        HttpError 500 ERROR_UPLOADING_LOGO: The upload failed
    """
    data = image.file.read()
    if not data:
        raise HTTPException(status_code=400, detail="Logo image is empty")

    try:
        result = uploader.upload(data, image.filename or "logo")
    except UploadError:
        logger.exception("Logo upload for user %s failed", current_user.id)
        raise HttpError("ERROR_UPLOADING_LOGO", 500)

    return Repository(User, db, owner_field=None).update_one(current_user.id, {"logo": result.gateway_url})


@router.post("/invite", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def invite_user(
    invite_in: UserInvite,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.RoleChecker([UserRole.USER, UserRole.ADMIN])),
    mailer: Mailer = Depends(deps.get_mailer),
) -> Any:
    """
    Create a guest account that shares the inviter's company.

    The guest gets a random password and a verification code, both sent by
    mail. Guests cannot invite further users.

    Raises:
        HttpError 403 NOT_ALLOWED: The caller is a guest
        HTTPException 409: An account already uses this email
    """
    users = Repository(User, db, owner_field=None)
    if users.find_one(include_deleted=True, email=invite_in.email):
        raise HTTPException(status_code=409, detail="User already exists")

    password = generate_random_password()
    code = generate_verification_code()
    guest = users.create(
        email=invite_in.email,
        password=get_password_hash(password),
        role=UserRole.GUEST,
        code=code,
        company=current_user.company,
    )
    mailer.send_invitation(guest.email, current_user.email, password, code)
    logger.info("User %s invited %s", current_user.id, guest.id)
    return guest
