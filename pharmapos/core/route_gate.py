"""Per-request access check driven by a static route table.

Public prefixes pass straight through. Everything else needs a principal:
browsers are sent to the sign-in page, API callers get 401. SALES
principals are refused the routes listed in ``ADMIN_ONLY_ROUTES``.
"""
import logging
import secrets
from typing import Optional

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from pharmapos.core.constants import ADMIN_ONLY_ROUTES, PUBLIC_PATH_PREFIXES
from pharmapos.core.errors import ForbiddenError, UnauthorizedError
from pharmapos.core.logging import request_id_var
from pharmapos.core.session_auth import Principal, login_redirect, resolve_principal, wants_html

logger = logging.getLogger(__name__)


def _matches(path: str, prefix: str) -> bool:
    return path == prefix or path.startswith(prefix + "/")


def is_public(path: str) -> bool:
    return any(_matches(path, prefix) for prefix in PUBLIC_PATH_PREFIXES)


def is_admin_only(path: str, method: str) -> bool:
    method = method.upper()
    for prefix, methods in ADMIN_ONLY_ROUTES:
        if _matches(path, prefix) and (methods is None or method in methods):
            return True
    return False


def check_access(path: str, method: str, principal: Optional[Principal]) -> None:
    """Raise UnauthorizedError/ForbiddenError when the route is not allowed."""
    if is_public(path):
        return
    if principal is None:
        raise UnauthorizedError("Not authenticated.")
    if is_admin_only(path, method) and not principal.is_admin:
        raise ForbiddenError("Access denied.")


REQUEST_ID_HEADER = "X-Request-ID"


def _request_id(request: Request) -> str:
    incoming = (request.headers.get(REQUEST_ID_HEADER) or "").strip()
    if incoming and len(incoming) <= 64 and incoming.isprintable():
        return incoming
    return secrets.token_hex(6)


class RouteGateMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = _request_id(request)
        token = request_id_var.set(request_id)
        try:
            response = await self._gate(request, call_next)
        finally:
            request_id_var.reset(token)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    async def _gate(self, request: Request, call_next):
        path = request.url.path
        principal = None if is_public(path) else resolve_principal(request)
        request.state.principal = principal
        try:
            check_access(path, request.method, principal)
        except UnauthorizedError as exc:
            if request.method == "GET" and wants_html(request):
                return login_redirect(request)
            return JSONResponse(
                status_code=exc.status_code,
                content=exc.to_body(),
                headers={"WWW-Authenticate": "Bearer"},
            )
        except ForbiddenError as exc:
            logger.warning(
                "Denied %s %s for user %s (role %s)",
                request.method,
                path,
                principal.id,
                principal.role,
                extra={"user_id": principal.id, "method": request.method, "path": path},
            )
            return JSONResponse(status_code=exc.status_code, content=exc.to_body())
        return await call_next(request)
