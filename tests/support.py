from decimal import Decimal

from sqlalchemy import select

from app.database import Base, build_engine, build_session_factory
from app.models import InventoryItem, Lot, Product, Supplier, import_all_models


def make_session_factory(database_url: str = "sqlite:///:memory:"):
    import_all_models()
    engine = build_engine(database_url)
    Base.metadata.create_all(bind=engine)
    return engine, build_session_factory(engine)


def _default_product(db) -> Product:
    product = db.execute(select(Product).limit(1)).scalars().first()
    if product is None:
        product = Product(name="Whole Milk 1L", category="Dairy", standard_price=Decimal("3.50"))
        db.add(product)
        db.flush()
    return product


def add_lot(db, name: str = "LOT-A", quantity: int = 0) -> Lot:
    supplier = db.execute(select(Supplier).limit(1)).scalars().first()
    if supplier is None:
        supplier = Supplier(name="Fresh Farms Co-op")
        db.add(supplier)
        db.flush()
    lot = Lot(supplier_id=supplier.id, name=name, quantity=quantity)
    db.add(lot)
    db.flush()
    return lot


def add_item(db, item_id: int, lot: Lot, quantity: int, *, employee_id: str = "EMP-CLERK-1") -> InventoryItem:
    """Insert an item and grow its lot aggregate by the same quantity."""
    item = InventoryItem(
        id=item_id,
        product_id=_default_product(db).id,
        lot_id=lot.id,
        barcode="BC-{:05d}".format(item_id),
        quantity=quantity,
        created_by_employee_id=employee_id,
    )
    db.add(item)
    lot.quantity = (lot.quantity or 0) + quantity
    db.flush()
    return item


def quantity_of(session_factory, item_id: int) -> int:
    db = session_factory()
    try:
        return db.get(InventoryItem, item_id).quantity
    finally:
        db.close()


def lot_quantity_of(session_factory, lot_id: int) -> int:
    db = session_factory()
    try:
        return db.get(Lot, lot_id).quantity
    finally:
        db.close()
