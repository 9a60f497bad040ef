"""User accounts and credential checks."""
from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from pharmapos.config import Settings, get_settings
from pharmapos.core.errors import (
    ConflictError,
    ForbiddenError,
    InvalidCredentialsError,
    InvalidInputError,
    NotFoundError,
)
from pharmapos.core.security import hash_password, verify_password
from pharmapos.core.session_auth import Principal
from pharmapos.database.base import fits_integer_column
from pharmapos.models.user import User, UserRole

logger = logging.getLogger(__name__)

_ROLES = tuple(role.value for role in UserRole)


def normalize_email(email: str) -> str:
    email = (email or "").strip().lower()
    local, _, domain = email.partition("@")
    if not local or not domain or "." not in domain:
        raise InvalidInputError("A valid email address is required.")
    return email


def normalize_role(role) -> str:
    value = role.value if isinstance(role, UserRole) else str(role or "").strip().upper()
    if value not in _ROLES:
        raise InvalidInputError("Invalid role. Use one of: {}.".format(", ".join(_ROLES)))
    return value


def find_by_email(db: Session, email: str) -> Optional[User]:
    return db.execute(select(User).where(User.email == email)).scalars().first()


def authenticate(db: Session, email: str, password: str) -> User:
    """Return the user for valid credentials.

    An unknown email and a wrong password fail the same way.
    """
    user = find_by_email(db, (email or "").strip().lower())
    if user is None or not verify_password(password or "", user.password_hash):
        logger.warning("login_failed email=%s", (email or "").strip().lower())
        raise InvalidCredentialsError()
    logger.info("login_ok user_id=%s role=%s", user.id, user.role)
    return user


def create_user(
    db: Session,
    name: str,
    email: str,
    password: str,
    role=UserRole.SALES,
    *,
    settings: Optional[Settings] = None,
) -> User:
    settings = settings or get_settings()
    name = (name or "").strip()
    if not name:
        raise InvalidInputError("Name is required.")
    email = normalize_email(email)
    role = normalize_role(role)
    if len(password or "") < settings.PASSWORD_MIN_LENGTH:
        raise InvalidInputError(
            f"Password must be at least {settings.PASSWORD_MIN_LENGTH} characters."
        )
    if find_by_email(db, email) is not None:
        raise ConflictError("User with this email already exists.")

    user = User(
        name=name,
        email=email,
        password_hash=hash_password(password, rounds=settings.PASSWORD_PBKDF2_ROUNDS),
        role=role,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("User with this email already exists.")
    db.refresh(user)
    logger.info("user_created user_id=%s role=%s", user.id, user.role)
    return user


def list_users(db: Session) -> list[User]:
    stmt = select(User).order_by(User.created_at.desc(), User.id.desc())
    return list(db.execute(stmt).scalars().all())


def get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id) if fits_integer_column(user_id) else None
    if user is None:
        raise NotFoundError("User not found.")
    return user


def set_role(db: Session, principal: Principal, user_id: int, role) -> User:
    if principal is None or not principal.is_admin:
        raise ForbiddenError("Only an admin can change roles.")
    role = normalize_role(role)
    user = get_user(db, user_id)
    user.role = role
    db.commit()
    db.refresh(user)
    logger.info("user_role_changed user_id=%s role=%s by=%s", user.id, role, principal.id)
    return user


def ensure_bootstrap_admin(db: Session, settings: Optional[Settings] = None) -> Optional[User]:
    """Create the configured admin account when the users table is empty."""
    settings = settings or get_settings()
    if not (settings.BOOTSTRAP_ADMIN_EMAIL and settings.BOOTSTRAP_ADMIN_PASSWORD):
        return None
    if db.execute(select(User.id).limit(1)).first():
        return None
    user = create_user(
        db,
        settings.BOOTSTRAP_ADMIN_NAME,
        settings.BOOTSTRAP_ADMIN_EMAIL,
        settings.BOOTSTRAP_ADMIN_PASSWORD,
        UserRole.ADMIN,
        settings=settings,
    )
    logger.info("bootstrap_admin_created email=%s", user.email)
    return user


__all__ = [
    "authenticate",
    "create_user",
    "ensure_bootstrap_admin",
    "get_user",
    "list_users",
    "normalize_role",
    "set_role",
]
