from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.models.inventory_item import InventoryItem
from app.models.lot import Lot
from app.models.product import Product
from app.models.supplier import Supplier


def _item_columns():
    return (
        InventoryItem.id.label("item_id"),
        InventoryItem.product_id,
        InventoryItem.lot_id,
        InventoryItem.barcode,
        InventoryItem.quantity,
        InventoryItem.manufacturing_date,
        InventoryItem.expiry_date,
        InventoryItem.batch_number,
        Product.name.label("product_name"),
        Product.category.label("product_category"),
        Product.standard_price.label("product_price"),
        Lot.name.label("lot_name"),
    )


def find_sellable_item(db: Session, barcode: str) -> Optional[dict]:
    """Look up an in-stock item by barcode for the point-of-sale scanner."""
    stmt = (
        select(*_item_columns())
        .join(Product, Product.id == InventoryItem.product_id)
        .join(Lot, Lot.id == InventoryItem.lot_id)
        .where(InventoryItem.barcode == barcode.strip(), InventoryItem.quantity > 0)
        .limit(1)
    )
    row = db.execute(stmt).mappings().first()
    return dict(row) if row else None


def list_items_registered_by(db: Session, employee_id: str) -> list[dict]:
    stmt = (
        select(
            *_item_columns(),
            InventoryItem.created_at,
            InventoryItem.updated_at,
            InventoryItem.created_by_employee_id,
            Supplier.name.label("supplier_name"),
        )
        .join(Product, Product.id == InventoryItem.product_id)
        .join(Lot, Lot.id == InventoryItem.lot_id)
        .outerjoin(Supplier, Supplier.id == Lot.supplier_id)
        .where(InventoryItem.created_by_employee_id == employee_id.strip())
        .order_by(InventoryItem.updated_at.desc(), InventoryItem.id.desc())
    )
    return [dict(row) for row in db.execute(stmt).mappings().all()]


def find_lot_drift(db: Session) -> list[dict]:
    """Lots whose aggregate quantity no longer matches the sum of their items.

    The aggregate is a counter maintained by receiving and checkout; any write
    path that bypasses them shows up here.
    """
    items_total = func.coalesce(func.sum(InventoryItem.quantity), 0)
    stmt = (
        select(
            Lot.id.label("lot_id"),
            Lot.name.label("lot_name"),
            Lot.quantity.label("lot_quantity"),
            items_total.label("items_quantity"),
        )
        .outerjoin(InventoryItem, InventoryItem.lot_id == Lot.id)
        .group_by(Lot.id, Lot.name, Lot.quantity)
        .having(Lot.quantity != items_total)
        .order_by(Lot.id)
    )
    rows = []
    for row in db.execute(stmt).mappings().all():
        entry = dict(row)
        entry["difference"] = entry["lot_quantity"] - entry["items_quantity"]
        rows.append(entry)
    return rows


__all__ = ["find_lot_drift", "find_sellable_item", "list_items_registered_by"]
