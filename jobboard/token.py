# jobboard/token.py
"""
JWT issuance and verification.

Access and refresh tokens both carry ``userId``, ``role`` (lower-case) and a
``type`` claim; only the lifetime and the type differ. Expiry checks allow
``JWT_LEEWAY_SECONDS`` of clock drift between issuer and verifier.
"""
from __future__ import annotations

import enum
import uuid
from datetime import datetime, timedelta, timezone

import jwt

from .blacklist import TokenBlacklist
from .config import settings
from .errors import TokenExpiredError, TokenInvalidError, TokenRevokedError

ACCESS = "access"
REFRESH = "refresh"
RESET = "reset"
EMAIL_VERIFICATION = "email_verification"


def normalize_role(role) -> str:
    value = role.value if isinstance(role, enum.Enum) else str(role)
    return value.strip().lower()


def _encode(claims: dict, lifetime: timedelta, now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    exp = now + lifetime
    payload = {
        **claims,
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
        # keeps tokens minted in the same second distinct (refresh rotation)
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def issue_tokens(account, now: datetime | None = None) -> dict[str, str]:
    """Return ``{"accessToken", "refreshToken"}`` for an account-like object."""
    base = {"sub": str(account.id), "userId": account.id, "role": normalize_role(account.role)}
    return {
        "accessToken": _encode({**base, "type": ACCESS}, settings.JWT_ACCESS_EXPIRY, now),
        "refreshToken": _encode({**base, "type": REFRESH}, settings.JWT_REFRESH_EXPIRY, now),
    }


def create_purpose_token(user_id: int, token_type: str, now: datetime | None = None) -> str:
    lifetimes = {
        RESET: settings.PASSWORD_RESET_EXPIRY,
        EMAIL_VERIFICATION: settings.EMAIL_VERIFICATION_EXPIRY,
    }
    if token_type not in lifetimes:
        raise ValueError(f"unsupported token type: {token_type}")
    claims = {"sub": str(user_id), "userId": user_id, "type": token_type}
    return _encode(claims, lifetimes[token_type], now)


def decode_token(
    token: str,
    blacklist: TokenBlacklist | None = None,
    expected_type: str | None = None,
    *,
    verify_exp: bool = True,
) -> dict:
    if blacklist is not None and blacklist.contains(token):
        raise TokenRevokedError("Token has been revoked. Please log in again.")
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            leeway=settings.JWT_LEEWAY_SECONDS,
            options={"verify_exp": verify_exp, "require": ["exp", "iat"]},
        )
    except jwt.ExpiredSignatureError:
        raise TokenExpiredError("Your session has expired. Please log in again.")
    except jwt.PyJWTError:
        raise TokenInvalidError("Invalid authentication token. Please log in again.")
    if expected_type is not None and payload.get("type") != expected_type:
        raise TokenInvalidError(f"Invalid {expected_type.replace('_', ' ')} token")
    return payload


def claim_user_id(payload: dict) -> int:
    """User id from ``userId``, falling back to the older ``id`` claim."""
    raw = payload.get("userId")
    if raw is None:
        raw = payload.get("id")
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise TokenInvalidError("Invalid token format - missing user ID")


def remaining_lifetime(payload: dict, now: datetime | None = None) -> float:
    now = now or datetime.now(timezone.utc)
    return float(payload["exp"]) - now.timestamp()


def revoke(token: str, blacklist: TokenBlacklist) -> None:
    """Blacklist a signed token for the rest of its lifetime.

    Tokens that are already expired need no entry.
    """
    payload = decode_token(token, verify_exp=False)
    blacklist.add(token, remaining_lifetime(payload) + settings.JWT_LEEWAY_SECONDS)
