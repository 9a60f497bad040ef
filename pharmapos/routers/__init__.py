from pharmapos.routers.analytics import router as analytics_router
from pharmapos.routers.auth import router as auth_router
from pharmapos.routers.drugs import router as drugs_router
from pharmapos.routers.health import router as health_router
from pharmapos.routers.sales import router as sales_router
from pharmapos.routers.users import router as users_router

__all__ = [
    "analytics_router",
    "auth_router",
    "drugs_router",
    "health_router",
    "sales_router",
    "users_router",
]
