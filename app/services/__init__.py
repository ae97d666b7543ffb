from app.services.checkout_service import CartLine, CheckoutResult, checkout
from app.services.inventory_service import (
    find_lot_drift,
    find_sellable_item,
    list_items_registered_by,
)
from app.services.receiving_service import ReceiveRequest, receive_inventory_item
from app.services.sales_service import get_sales_transaction, load_transaction_items

__all__ = [
    "CartLine",
    "CheckoutResult",
    "ReceiveRequest",
    "checkout",
    "find_lot_drift",
    "find_sellable_item",
    "get_sales_transaction",
    "list_items_registered_by",
    "load_transaction_items",
    "receive_inventory_item",
]
