from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates
from starlette.middleware.sessions import SessionMiddleware

from pharmapos.config import Settings, get_settings
from pharmapos.core.constants import DEFAULT_HOME_PATH, TEMPLATES_DIR
from pharmapos.core.errors import register_error_handlers
from pharmapos.core.logging import setup_logging
from pharmapos.core.route_gate import RouteGateMiddleware
from pharmapos.core.security import session_secret
from pharmapos.database.init_db import init_db
from pharmapos.routers import (
    analytics_router,
    auth_router,
    drugs_router,
    health_router,
    sales_router,
    users_router,
)

setup_logging()
settings: Settings = get_settings()


@asynccontextmanager
async def lifespan(_app: FastAPI):
    init_db()
    yield


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
app.state.templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
register_error_handlers(app)

# Starlette runs the last-added middleware first: the session must be
# decoded before the route gate looks for a principal.
app.add_middleware(RouteGateMiddleware)
app.add_middleware(
    SessionMiddleware,
    secret_key=session_secret(),
    session_cookie=settings.SESSION_COOKIE,
    same_site="lax",
    https_only=settings.ENVIRONMENT.lower() != "local",
)

app.include_router(health_router)
app.include_router(auth_router)
app.include_router(drugs_router)
app.include_router(sales_router)
app.include_router(analytics_router)
app.include_router(users_router)


@app.get("/")
def root():
    return RedirectResponse(url=DEFAULT_HOME_PATH, status_code=302)


__all__ = ["app", "root"]
