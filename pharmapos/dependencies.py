from fastapi import Request

from pharmapos.core.errors import UnauthorizedError
from pharmapos.core.session_auth import Principal, resolve_principal
from pharmapos.database.session import get_db


def get_principal(request: Request) -> Principal:
    principal = getattr(request.state, "principal", None) or resolve_principal(request)
    if principal is None:
        raise UnauthorizedError("Not authenticated.")
    return principal


def require_admin(request: Request) -> Principal:
    """Admin-only endpoints answer 401 for any non-admin caller."""
    principal = getattr(request.state, "principal", None) or resolve_principal(request)
    if principal is None or not principal.is_admin:
        raise UnauthorizedError("Unauthorized")
    return principal


__all__ = ["get_db", "get_principal", "require_admin"]
