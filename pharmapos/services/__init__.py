from pharmapos.services.analytics_service import analytics_for_period, quick_stats
from pharmapos.services.inventory_service import (
    create_drug,
    delete_drug,
    get_drug,
    list_drugs,
    update_drug,
)
from pharmapos.services.sale_service import create_sale, get_sale, list_sales
from pharmapos.services.user_service import authenticate, create_user, list_users, set_role

__all__ = [
    "analytics_for_period",
    "authenticate",
    "create_drug",
    "create_sale",
    "create_user",
    "delete_drug",
    "get_drug",
    "get_sale",
    "list_drugs",
    "list_sales",
    "list_users",
    "quick_stats",
    "set_role",
    "update_drug",
]
