from __future__ import annotations

import hashlib
import hmac
import secrets
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional

import jwt

from pharmapos.config import get_settings
from pharmapos.core.errors import UnauthorizedError

_HASH_SCHEME = "pbkdf2_sha256"


def _pbkdf2(password: str, salt: str, rounds: int) -> str:
    digest = hashlib.pbkdf2_hmac(
        "sha256",
        password.encode("utf-8"),
        salt.encode("utf-8"),
        rounds,
    )
    return digest.hex()


def hash_password(password: str, *, rounds: Optional[int] = None) -> str:
    """Salted one-way hash stored as ``scheme$rounds$salt$digest``."""
    if rounds is None:
        rounds = get_settings().PASSWORD_PBKDF2_ROUNDS
    salt = secrets.token_hex(16)
    return f"{_HASH_SCHEME}${rounds}${salt}${_pbkdf2(password, salt, rounds)}"


def verify_password(password: str, stored_hash: Optional[str]) -> bool:
    if not stored_hash:
        return False
    try:
        scheme, rounds_text, salt, expected = stored_hash.split("$", 3)
        rounds = int(rounds_text)
    except ValueError:
        return False
    if scheme != _HASH_SCHEME:
        return False
    return hmac.compare_digest(_pbkdf2(password, salt, rounds), expected)


@lru_cache
def _process_secret() -> str:
    return secrets.token_urlsafe(32)


def session_secret() -> str:
    settings = get_settings()
    return settings.SESSION_SECRET or settings.JWT_SECRET or _process_secret()


def token_secret() -> str:
    settings = get_settings()
    return settings.JWT_SECRET or settings.SESSION_SECRET or _process_secret()


def create_access_token(user_id: int, role: str, *, expires_minutes: Optional[int] = None) -> str:
    settings = get_settings()
    if expires_minutes is None:
        expires_minutes = settings.JWT_EXPIRE_MINUTES
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "role": role,
        "iat": now,
        "exp": now + timedelta(minutes=expires_minutes),
    }
    return jwt.encode(payload, token_secret(), algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    settings = get_settings()
    try:
        return jwt.decode(token, token_secret(), algorithms=[settings.JWT_ALGORITHM])
    except jwt.PyJWTError as exc:
        raise UnauthorizedError("Invalid or expired token.") from exc


def get_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1]
    return None
