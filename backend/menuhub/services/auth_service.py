# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service

Uses bcrypt for password hashing and PyJWT (via token_service) for bearer
tokens.

MULTI-TENANT: OWNER users belong to exactly one commerce; SUPERUSER users
have no commerce. Email is globally unique.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Login fails with the same InvalidCredentials error for unknown email and
  wrong password; the specific reason is only logged server-side
"""

from __future__ import annotations

import bcrypt
from flask import current_app

from ..errors import AlreadyExistsError, ForbiddenError, InvalidCredentials, NotFoundError, ValidationError
from ..extensions import db
from ..models import Commerce, Role, User
from ..validation import validate_email
from . import token_service
from .catalog_store import transaction
from .token_service import Identity

MIN_PASSWORD_LENGTH = 6

PROFILE_FIELDS = ("first_name", "last_name", "phone")


class PasswordValidationError(ValidationError):
    """Raised when a password doesn't meet requirements."""


def validate_password(password) -> str:
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    return password


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt (cost factor BCRYPT_ROUNDS, 12 by default).

    Password is validated before hashing.
    """
    validate_password(password)
    salt = bcrypt.gensalt(rounds=current_app.config.get("BCRYPT_ROUNDS", 12))
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    bcrypt.checkpw() is timing-safe. A malformed stored hash counts as a
    mismatch rather than an error.
    """
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def identity_for(user: User) -> Identity:
    return Identity(user_id=user.id, role=user.role, commerce_id=user.commerce_id)


def build_user(
    *,
    email: str,
    password: str,
    role: Role,
    commerce_id: int | None,
    profile: dict | None = None,
) -> User:
    """
    Build (but do not commit) a User, enforcing the principal invariants:
    OWNER requires an existing commerce, SUPERUSER has none, email is unique.
    """
    email = validate_email(email)

    if role is Role.OWNER:
        if commerce_id is None:
            raise ValidationError("commerce_id is required for OWNER users")
    else:
        commerce_id = None

    existing = db.session.query(User.id).filter(User.email == email).first()
    if existing:
        raise AlreadyExistsError("email", "User already exists")

    user = User(
        email=email,
        password_hash=hash_password(password),
        role=role,
        commerce_id=commerce_id,
    )
    for key in PROFILE_FIELDS:
        if profile and profile.get(key) is not None:
            setattr(user, key, str(profile[key]).strip())
    return user


def register_user(creator: Identity | None, payload: dict) -> User:
    """
    Create a user on behalf of creator.

    Only a SUPERUSER may register users. Callers that are not SUPERUSER may
    not request any role other than OWNER (403), and still need SUPERUSER to
    complete the registration.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    raw_role = payload.get("role")
    if raw_role is not None:
        try:
            role = Role(str(raw_role).upper())
        except ValueError:
            raise ValidationError("role must be SUPERUSER or OWNER")
    else:
        role = Role.OWNER

    if creator is None or not creator.is_superuser:
        if role is not Role.OWNER:
            raise ForbiddenError("Only a SUPERUSER can assign roles other than OWNER")
        raise ForbiddenError("Only a SUPERUSER can register users")

    commerce_id = payload.get("commerce_id")
    if role is Role.OWNER and commerce_id is not None:
        if db.session.query(Commerce.id).filter_by(id=commerce_id).first() is None:
            raise NotFoundError("Commerce not found")

    with transaction():
        user = build_user(
            email=payload.get("email"),
            password=payload.get("password"),
            role=role,
            commerce_id=commerce_id,
            profile=payload,
        )
        db.session.add(user)

    current_app.logger.info("USER_CREATED user_id=%s role=%s by=%s", user.id, role.value, creator.user_id)
    return user


def authenticate(email: str, password: str) -> User:
    """
    Authenticate by email and password.

    Raises InvalidCredentials for both unknown email and wrong password.
    """
    if not isinstance(email, str) or not isinstance(password, str) or not email or not password:
        raise InvalidCredentials()

    normalized = email.strip().lower()
    user = db.session.query(User).filter(User.email == normalized).first()

    if user is None:
        current_app.logger.info("LOGIN_FAILED reason=unknown_email email=%s", normalized)
        raise InvalidCredentials()

    if not verify_password(password, user.password_hash):
        current_app.logger.info("LOGIN_FAILED reason=wrong_password user_id=%s", user.id)
        raise InvalidCredentials()

    return user


def login(email: str, password: str) -> tuple[User, str]:
    """Authenticate and mint a bearer token. Returns (user, token)."""
    user = authenticate(email, password)
    token = token_service.sign(identity_for(user))
    current_app.logger.info("LOGIN_SUCCEEDED user_id=%s role=%s", user.id, user.role.value)
    return user, token


def confirm_superuser_password(identity: Identity, password: str) -> None:
    """
    Re-check the caller's password before a sensitive operation
    (e.g. deleting a commerce from the admin console).
    """
    if not password:
        raise ValidationError("password is required")

    user = db.session.query(User).filter_by(id=identity.user_id).first()
    if user is None:
        raise NotFoundError("User not found")
    if user.role is not Role.SUPERUSER:
        raise ForbiddenError("Only superusers can perform this operation")
    if not verify_password(password, user.password_hash):
        raise InvalidCredentials("Incorrect password")


def email_available(email: str) -> bool:
    normalized = validate_email(email)
    return db.session.query(User.id).filter(User.email == normalized).first() is None


def get_user(user_id: int) -> User | None:
    return db.session.query(User).filter_by(id=user_id).first()


def list_users(commerce_id: int | None = None) -> list[User]:
    query = db.session.query(User)
    if commerce_id is not None:
        query = query.filter(User.commerce_id == commerce_id)
    return query.order_by(User.id.asc()).all()
