from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from .. import crud, models, notifications
from ..auth import authenticate, get_bearer_token, get_blacklist, get_current_account
from ..blacklist import TokenBlacklist
from ..config import settings
from ..database import get_db
from ..errors import AuthenticationError, ValidationError
from ..logging_config import get_logger
from ..ratelimit import auth_rate_limit
from ..schemas import (
    AccountOut,
    ForgotPasswordRequest,
    LoginRequest,
    LogoutRequest,
    RefreshTokenRequest,
    RegisterRequest,
    ResetPasswordRequest,
    VerifyEmailRequest,
)
from ..token import (
    EMAIL_VERIFICATION,
    REFRESH,
    RESET,
    claim_user_id,
    create_purpose_token,
    decode_token,
    issue_tokens,
    revoke,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"], dependencies=[Depends(auth_rate_limit)])


def _user(account: models.Account) -> dict:
    return AccountOut.model_validate(account).dump()


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    if crud.get_account_by_email(db, payload.email):
        raise ValidationError("Email already registered")

    account = crud.create_account(
        db,
        name=payload.name,
        email=payload.email,
        password=payload.password,
        role=payload.role,
        email_verified=not settings.EMAIL_VERIFICATION_REQUIRED,
        company_name=payload.company_name,
    )
    if settings.EMAIL_VERIFICATION_REQUIRED:
        token = create_purpose_token(account.id, EMAIL_VERIFICATION)
        notifications.notify(notifications.send_verification_email, account.email, account.name, token)

    message = f"User registered successfully as {account.role.value}"
    return {"message": message, "user": _user(account), **issue_tokens(account)}


@router.post("/login")
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    account = authenticate(db, payload.email, payload.password, payload.role)
    if settings.EMAIL_VERIFICATION_REQUIRED and not account.email_verified:
        raise AuthenticationError("Please verify your email before logging in")
    logger.info("Account %s logged in as %s", account.id, account.role.value)
    return {"message": "Login successful", "user": _user(account), **issue_tokens(account)}


@router.post("/refresh-token")
def refresh_token(
    payload: RefreshTokenRequest,
    db: Session = Depends(get_db),
    blacklist: TokenBlacklist = Depends(get_blacklist),
):
    claims = decode_token(payload.refresh_token, blacklist, expected_type=REFRESH)
    account = crud.get_account_by_id(db, claim_user_id(claims))
    if account is None:
        raise AuthenticationError("User no longer exists")

    # Rotation: the presented refresh token is spent
    revoke(payload.refresh_token, blacklist)
    return {"status": "success", "data": issue_tokens(account)}


@router.post("/logout")
def logout(
    payload: LogoutRequest,
    request: Request,
    blacklist: TokenBlacklist = Depends(get_blacklist),
):
    if not payload.refresh_token:
        raise ValidationError("Refresh token is required")
    revoke(payload.refresh_token, blacklist)

    access = get_bearer_token(request)
    if access:
        try:
            revoke(access, blacklist)
        except AuthenticationError as exc:
            logger.info("Logout ignored unusable access token: %s", exc.message)
    return {"message": "Logged out successfully"}


@router.post("/forgot-password")
def forgot_password(payload: ForgotPasswordRequest, db: Session = Depends(get_db)):
    account = crud.get_account_by_email(db, payload.email)
    if account is not None:
        token = create_purpose_token(account.id, RESET)
        notifications.notify(notifications.send_password_reset_email, account.email, account.name, token)
    else:
        logger.info("Password reset requested for unknown email")
    return {"message": "If that email is registered, a password reset link has been sent"}


@router.post("/reset-password")
def reset_password(
    payload: ResetPasswordRequest,
    db: Session = Depends(get_db),
    blacklist: TokenBlacklist = Depends(get_blacklist),
):
    claims = decode_token(payload.token, blacklist, expected_type=RESET)
    account = crud.get_account_by_id(db, claim_user_id(claims))
    if account is None:
        raise ValidationError("Invalid or expired reset token")
    crud.set_password(db, account, payload.password)
    revoke(payload.token, blacklist)
    logger.info("Password reset for account %s", account.id)
    return {"message": "Password reset successful"}


@router.post("/verify-email")
def verify_email(
    payload: VerifyEmailRequest,
    db: Session = Depends(get_db),
    blacklist: TokenBlacklist = Depends(get_blacklist),
):
    claims = decode_token(payload.token, blacklist, expected_type=EMAIL_VERIFICATION)
    account = crud.get_account_by_id(db, claim_user_id(claims))
    if account is None:
        raise ValidationError("Invalid or expired verification token")
    crud.mark_email_verified(db, account)
    return {"message": "Email verified successfully"}


@router.get("/me")
def me(account: models.Account = Depends(get_current_account)):
    return {"status": "success", "data": {"user": _user(account)}}
