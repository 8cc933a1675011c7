from __future__ import annotations

import hashlib
from collections.abc import Iterable
from datetime import UTC, datetime, timedelta
from enum import Enum
from uuid import uuid4

import jwt

from hirehub.core.config import PLACEHOLDER_SECRETS, get_settings

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


class TokenError(Exception):
    """Raised when a token cannot be decoded or validated."""


class Role(str, Enum):
    ADMIN = "admin"
    HR = "hr"
    EMPLOYEE = "employee"
    APPLICANT = "applicant"

    @classmethod
    def contains(cls, value: str) -> bool:
        return value in {role.value for role in cls}


PRIVILEGED_ROLES: frozenset[str] = frozenset({Role.ADMIN.value, Role.HR.value})


def _signing_secret(token_type: str) -> str:
    settings = get_settings()
    secret = settings.jwt_secret if token_type == ACCESS_TOKEN_TYPE else settings.jwt_refresh_secret
    if settings.is_production and secret in PLACEHOLDER_SECRETS:
        raise TokenError("Server credential misconfiguration")
    return secret


def create_access_token(
    subject: str,
    *,
    role: str,
    email: str | None = None,
    name: str | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Generate a signed, short-lived JWT access token."""
    settings = get_settings()

    if role not in settings.allowed_roles:
        raise TokenError(f"Unsupported role: {role}")

    now = datetime.now(UTC)
    ttl = expires_delta or timedelta(seconds=settings.access_token_ttl_seconds)
    payload = {
        "sub": subject,
        "role": role,
        "type": ACCESS_TOKEN_TYPE,
        "jti": uuid4().hex,
        "iat": int(now.timestamp()),
        "exp": int((now + ttl).timestamp()),
        "iss": settings.app_name,
    }
    if email:
        payload["email"] = email
    if name:
        payload["name"] = name

    return jwt.encode(payload, _signing_secret(ACCESS_TOKEN_TYPE), algorithm=settings.jwt_algorithm)


def create_refresh_token(subject: str, *, expires_delta: timedelta | None = None) -> str:
    """Generate a refresh token. It carries no role and can only mint access tokens."""
    settings = get_settings()
    now = datetime.now(UTC)
    ttl = expires_delta or timedelta(seconds=settings.refresh_token_ttl_seconds)
    payload = {
        "sub": subject,
        "type": REFRESH_TOKEN_TYPE,
        "jti": uuid4().hex,
        "iat": int(now.timestamp()),
        "exp": int((now + ttl).timestamp()),
        "iss": settings.app_name,
    }
    return jwt.encode(payload, _signing_secret(REFRESH_TOKEN_TYPE), algorithm=settings.jwt_algorithm)


def _decode(token: str, token_type: str, required: list[str]) -> dict:
    settings = get_settings()
    secret = _signing_secret(token_type)

    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": required},
        )
    except jwt.ExpiredSignatureError as exc:
        raise TokenError("Token expired") from exc
    except jwt.PyJWTError as exc:  # pragma: no cover - third-party raises numerous subclasses
        raise TokenError("Invalid token") from exc

    if payload.get("type") != token_type:
        raise TokenError("Invalid token type")
    return payload


def decode_access_token(token: str) -> dict:
    """Decode and validate a JWT access token."""
    payload = _decode(token, ACCESS_TOKEN_TYPE, ["sub", "role", "exp", "type"])
    if not Role.contains(payload["role"]):
        raise TokenError(f"Unsupported role: {payload['role']}")
    return payload


def decode_refresh_token(token: str) -> dict:
    """Decode and validate a refresh token."""
    return _decode(token, REFRESH_TOKEN_TYPE, ["sub", "exp", "type"])


def extract_bearer_token(header_value: str | None) -> str | None:
    """Pull the raw token out of an Authorization header value.

    The ``Bearer`` scheme prefix is optional and matched case-insensitively.
    """
    if not header_value:
        return None
    value = header_value.strip()
    scheme, _, rest = value.partition(" ")
    if rest and scheme.lower() == "bearer":
        value = rest.strip()
    return value or None


def token_fingerprint(token: str) -> str:
    """Stable digest of a raw token, used as its revocation key."""
    return hashlib.sha256(token.encode()).hexdigest()


def token_remaining_seconds(payload: dict) -> int:
    """Seconds until ``exp``; never below one so revocation entries always get a TTL."""
    now = int(datetime.now(UTC).timestamp())
    return max(int(payload.get("exp", now)) - now, 1)


def is_allowed(role: str, allowed_roles: Iterable[str]) -> bool:
    return role in set(allowed_roles)


def is_self_or_privileged(
    identity_id: str,
    role: str,
    target_id: str,
    privileged_roles: Iterable[str] = PRIVILEGED_ROLES,
) -> bool:
    """Non-privileged identities may only act on their own id."""
    return identity_id == target_id or is_allowed(role, privileged_roles)
