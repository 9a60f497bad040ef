import importlib

from pharmapos.models.drug import Drug
from pharmapos.models.sale import Sale, SaleItem
from pharmapos.models.user import User, UserRole


def import_all_models() -> None:
    for module_name in (
        "pharmapos.models.drug",
        "pharmapos.models.sale",
        "pharmapos.models.user",
    ):
        importlib.import_module(module_name)


__all__ = [
    "Drug",
    "Sale",
    "SaleItem",
    "User",
    "UserRole",
    "import_all_models",
]
