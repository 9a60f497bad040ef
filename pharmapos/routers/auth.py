from typing import Optional

from fastapi import APIRouter, Depends, Form, Query, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.orm import Session

from pharmapos.core.constants import DEFAULT_HOME_PATH, LOGIN_PATH
from pharmapos.core.errors import InvalidCredentialsError
from pharmapos.core.security import create_access_token
from pharmapos.core.session_auth import Principal, login_session, logout_session
from pharmapos.dependencies import get_db, get_principal
from pharmapos.schemas.user import LoginRequest, TokenRead, UserRead
from pharmapos.services import user_service

router = APIRouter(tags=["Auth"])


def _safe_callback(value: Optional[str]) -> str:
    # Only same-site relative paths; anything else lands on the home page.
    if not value or not value.startswith("/") or value.startswith("//"):
        return DEFAULT_HOME_PATH
    if value.startswith(LOGIN_PATH):
        return DEFAULT_HOME_PATH
    return value


@router.get("/login", response_class=HTMLResponse)
def login_page(request: Request, callback_url: Optional[str] = Query(None, alias="callbackUrl")):
    templates = request.app.state.templates
    return templates.TemplateResponse(
        request,
        "login.html",
        {"error": None, "callback_url": _safe_callback(callback_url)},
    )


@router.post("/login", response_class=HTMLResponse)
def login_submit(
    request: Request,
    email: str = Form(...),
    password: str = Form(...),
    callback_url: Optional[str] = Form(None, alias="callbackUrl"),
    db: Session = Depends(get_db),
):
    templates = request.app.state.templates
    try:
        user = user_service.authenticate(db, email, password)
    except InvalidCredentialsError as exc:
        return templates.TemplateResponse(
            request,
            "login.html",
            {"error": exc.message, "callback_url": _safe_callback(callback_url)},
            status_code=401,
        )
    login_session(request, Principal.from_user(user))
    return RedirectResponse(url=_safe_callback(callback_url), status_code=303)


@router.post("/auth/token", response_model=TokenRead)
def issue_token(payload: LoginRequest, request: Request, db: Session = Depends(get_db)):
    user = user_service.authenticate(db, payload.email, payload.password)
    login_session(request, Principal.from_user(user))
    return TokenRead(
        access_token=create_access_token(user.id, user.role),
        user=UserRead.model_validate(user),
    )


@router.post("/logout")
def logout(request: Request):
    logout_session(request)
    return RedirectResponse(url=LOGIN_PATH, status_code=303)


@router.get("/auth/me", response_model=UserRead)
def me(principal: Principal = Depends(get_principal), db: Session = Depends(get_db)):
    return user_service.get_user(db, principal.id)


__all__ = ["router"]
