# Overview: Service-layer operations for bearer tokens; signs and verifies identities.

"""
Bearer Token Service

Tokens are HS256 JWTs carrying the caller identity:
    {"sub": "<user id>", "role": "OWNER", "commerce_id": 7, "iat": ..., "exp": ...}

Verification is pure: no database lookup. The tenant context in the token is
fixed for its lifetime (JWT_EXPIRES_IN, one hour by default); a user moved to
another commerce must log in again.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

import jwt
from flask import current_app

from ..errors import InvalidCredential, MalformedCredential, MissingCredential
from ..models import Role
from menuhub.time_utils import utcnow


@dataclass(frozen=True)
class Identity:
    """Caller identity decoded from a verified token."""
    user_id: int
    role: Role
    commerce_id: int | None

    @property
    def is_superuser(self) -> bool:
        return self.role is Role.SUPERUSER

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "role": self.role.value,
            "commerce_id": self.commerce_id,
        }


def sign(identity: Identity, ttl: timedelta | None = None) -> str:
    """Mint a token for identity valid for ttl (defaults to JWT_EXPIRES_IN)."""
    if ttl is None:
        ttl = timedelta(seconds=current_app.config["JWT_EXPIRES_IN"])
    now = utcnow()
    payload = {
        "sub": str(identity.user_id),
        "role": identity.role.value,
        "commerce_id": identity.commerce_id,
        "iat": now,
        "exp": now + ttl,
    }
    return jwt.encode(
        payload,
        current_app.config["JWT_SECRET"],
        algorithm=current_app.config["JWT_ALGORITHM"],
    )


def verify(token: str) -> Identity:
    """
    Verify a token and return the Identity it carries.

    Raises InvalidCredential on bad signature, expiry or a payload that
    does not describe a valid identity.
    """
    try:
        payload = jwt.decode(
            token,
            current_app.config["JWT_SECRET"],
            algorithms=[current_app.config["JWT_ALGORITHM"]],
            options={"require": ["exp", "sub"]},
        )
    except jwt.PyJWTError as exc:
        current_app.logger.info("Rejected bearer token: %s", exc)
        raise InvalidCredential() from exc

    try:
        identity = Identity(
            user_id=int(payload["sub"]),
            role=Role(payload.get("role")),
            commerce_id=payload.get("commerce_id"),
        )
    except (TypeError, ValueError) as exc:
        current_app.logger.warning("Token payload rejected: %s", exc)
        raise InvalidCredential() from exc

    # OWNER tokens without a tenant are unusable
    if identity.role is Role.OWNER and identity.commerce_id is None:
        raise InvalidCredential()

    return identity


def extract_bearer(header: str | None) -> str:
    """
    Extract the token from an Authorization header value.

    Raises MissingCredential when absent, MalformedCredential when the
    scheme is not Bearer or the token is empty.
    """
    if not header:
        raise MissingCredential()
    scheme, _, token = header.strip().partition(" ")
    if scheme != "Bearer" or not token.strip():
        raise MalformedCredential()
    return token.strip()


def verify_header(header: str | None) -> Identity:
    return verify(extract_bearer(header))
