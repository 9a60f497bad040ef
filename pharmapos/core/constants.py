from datetime import timedelta
from pathlib import Path


PACKAGE_DIR = Path(__file__).resolve().parents[1]

TEMPLATES_DIR = PACKAGE_DIR / "templates"

LOGIN_PATH = "/login"
DEFAULT_HOME_PATH = "/quick-stats"

PUBLIC_PATH_PREFIXES = (
    "/login",
    "/logout",
    "/auth/token",
    "/health",
    "/docs",
    "/redoc",
    "/openapi.json",
)

MUTATING_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})

# (path prefix, methods) pairs reserved for ADMIN; None means every method.
ADMIN_ONLY_ROUTES = (
    ("/analytics", None),
    ("/drugs", MUTATING_METHODS),
)

PERIOD_WINDOWS = {
    "24h": timedelta(hours=24),
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
    "12m": timedelta(days=365),
    "365d": timedelta(days=365),
}
DEFAULT_PERIOD = "24h"
CUSTOM_PERIOD = "custom"

TOP_DRUGS_LIMIT = 5

MONEY_QUANTUM = "0.01"

# Largest integer the record store can hold in an INTEGER column.
STORE_INT_MAX = 2**63 - 1
