from __future__ import annotations

from dataclasses import dataclass

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from . import crud, models, security
from .blacklist import TokenBlacklist, build_blacklist
from .config import settings
from .database import get_db
from .errors import AuthenticationError, NotAuthorizedError, NotFoundError, ValidationError
from .logging_config import get_logger
from .token import ACCESS, claim_user_id, decode_token, normalize_role

logger = get_logger(__name__)

_blacklist = build_blacklist(settings.REDIS_URL)


def get_blacklist() -> TokenBlacklist:
    """Revocation store shared by every request; overridden in tests."""
    return _blacklist


@dataclass(frozen=True)
class Principal:
    user_id: int
    role: str


def get_bearer_token(request: Request) -> str | None:
    authorization = request.headers.get("Authorization")
    if authorization and authorization.startswith("Bearer "):
        token = authorization[7:].strip()
        return token or None
    return None


def authenticate(db: Session, email: str, password: str, role: str | None = None) -> models.Account:
    """
    Check credentials and return the account.

    Unknown email, wrong password and a role that does not match the account
    all produce the same error so callers cannot probe which one failed.
    """
    account = crud.get_account_by_email(db, email)
    if account is None:
        logger.info("Login failed: unknown email %s", email)
        raise ValidationError("Invalid credentials")

    ok, new_hash = security.verify_and_update(password, account.hashed_password)
    if not ok:
        logger.info("Login failed: bad password for account %s", account.id)
        raise ValidationError("Invalid credentials")

    if role is not None and normalize_role(role) != normalize_role(account.role):
        logger.info("Login failed: role %s requested for %s account %s", role, account.role.value, account.id)
        raise ValidationError("Invalid credentials")

    if new_hash:
        account.hashed_password = new_hash
        db.commit()
    return account


def get_current_principal(
    request: Request, blacklist: TokenBlacklist = Depends(get_blacklist)
) -> Principal:
    token = get_bearer_token(request)
    if not token:
        raise AuthenticationError("Not authorized to access this route")

    payload = decode_token(token, blacklist, expected_type=ACCESS)
    principal = Principal(user_id=claim_user_id(payload), role=normalize_role(payload.get("role", "")))
    request.state.user = principal
    return principal


def require_roles(*roles):
    allowed = {normalize_role(r) for r in roles}

    def _role_gate(principal: Principal = Depends(get_current_principal)) -> Principal:
        if principal.role not in allowed:
            logger.warning(
                "Role %s denied; route allows %s", principal.role, ", ".join(sorted(allowed))
            )
            raise NotAuthorizedError("Not authorized to access this route")
        return principal

    return _role_gate


def _load_account(db: Session, principal: Principal) -> models.Account:
    account = crud.get_account_by_id(db, principal.user_id)
    if account is None:
        raise NotFoundError("User not found")
    return account


def get_current_account(
    principal: Principal = Depends(get_current_principal), db: Session = Depends(get_db)
) -> models.Account:
    return _load_account(db, principal)


def require_account(*roles):
    """Like :func:`require_roles` but resolves the full account row."""
    gate = require_roles(*roles)

    def _account(principal: Principal = Depends(gate), db: Session = Depends(get_db)) -> models.Account:
        return _load_account(db, principal)

    return _account
