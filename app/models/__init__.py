import importlib

from app.models.inventory_item import InventoryItem
from app.models.lot import Lot
from app.models.product import Product
from app.models.sales import SalesTransaction, SalesTransactionItem
from app.models.supplier import Supplier


def import_all_models() -> None:
    for module_name in (
        "app.models.inventory_item",
        "app.models.lot",
        "app.models.product",
        "app.models.sales",
        "app.models.supplier",
    ):
        importlib.import_module(module_name)


__all__ = [
    "InventoryItem",
    "Lot",
    "Product",
    "SalesTransaction",
    "SalesTransactionItem",
    "Supplier",
    "import_all_models",
]
