from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Optional
from urllib.parse import urlencode

from fastapi import Request
from fastapi.responses import RedirectResponse

from pharmapos.core.constants import LOGIN_PATH
from pharmapos.core.errors import UnauthorizedError
from pharmapos.core.security import decode_access_token, get_bearer_token
from pharmapos.models.user import UserRole

logger = logging.getLogger(__name__)

SESSION_KEY = "principal"


@dataclass(frozen=True)
class Principal:
    """The authenticated caller, resolved once per request."""

    id: int
    role: str
    email: Optional[str] = None
    name: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    @classmethod
    def from_user(cls, user) -> "Principal":
        return cls(id=user.id, role=user.role, email=user.email, name=user.name)


def _from_session(request: Request) -> Optional[Principal]:
    if "session" not in request.scope:
        return None
    data = request.session.get(SESSION_KEY)
    if not isinstance(data, dict):
        return None
    try:
        return Principal(
            id=int(data["id"]),
            role=str(data["role"]),
            email=data.get("email"),
            name=data.get("name"),
        )
    except (KeyError, TypeError, ValueError):
        request.session.pop(SESSION_KEY, None)
        return None


def _from_bearer(request: Request) -> Optional[Principal]:
    token = get_bearer_token(request.headers.get("authorization"))
    if not token:
        return None
    try:
        claims = decode_access_token(token)
        return Principal(id=int(claims["sub"]), role=str(claims["role"]))
    except (UnauthorizedError, KeyError, TypeError, ValueError):
        logger.warning("Rejected bearer token on %s", request.url.path)
        return None


def resolve_principal(request: Request) -> Optional[Principal]:
    """Bearer token first (API clients), then the signed session cookie."""
    return _from_bearer(request) or _from_session(request)


def login_session(request: Request, principal: Principal) -> None:
    request.session[SESSION_KEY] = asdict(principal)


def logout_session(request: Request) -> None:
    request.session.clear()


def wants_html(request: Request) -> bool:
    return "text/html" in request.headers.get("accept", "")


def login_redirect(request: Request) -> RedirectResponse:
    query = urlencode({"callbackUrl": request.url.path})
    return RedirectResponse(url=f"{LOGIN_PATH}?{query}", status_code=303)
