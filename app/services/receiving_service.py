import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Optional, Union

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.constants import EMPLOYEE_ID_MAX_LENGTH, MAX_ROW_ID
from app.core.dates import parse_optional_date
from app.core.errors import (
    BarcodeConflict,
    ConcurrentModification,
    InvalidInput,
    InventoryError,
    NotFound,
    StoreUnavailable,
)
from app.models.inventory_item import InventoryItem
from app.models.lot import Lot
from app.models.product import Product

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReceiveRequest:
    product_id: int
    lot_id: int
    barcode: str
    quantity: int
    employee_id: str
    manufacturing_date: Optional[Union[date, str]] = None
    expiry_date: Optional[Union[date, str]] = None
    batch_number: Optional[str] = None


def _is_positive_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 0 < value <= MAX_ROW_ID


def _validate(request: ReceiveRequest) -> None:
    missing = []
    if not request.product_id:
        missing.append("productID")
    if not request.lot_id:
        missing.append("lotID")
    if not request.barcode or not request.barcode.strip():
        missing.append("barcode")
    if not request.quantity:
        missing.append("quantity")
    if not request.employee_id or not request.employee_id.strip():
        missing.append("employeeID")
    if missing:
        raise InvalidInput("Missing required fields: {}".format(", ".join(missing)))

    if not _is_positive_int(request.quantity):
        raise InvalidInput("quantity must be a positive integer")
    for field, value in (("productID", request.product_id), ("lotID", request.lot_id)):
        if not _is_positive_int(value):
            raise InvalidInput("{} must be a positive integer".format(field))
    if len(request.employee_id.strip()) > EMPLOYEE_ID_MAX_LENGTH:
        raise InvalidInput(
            "employeeID cannot be longer than {} characters".format(EMPLOYEE_ID_MAX_LENGTH)
        )

    manufactured = parse_optional_date(request.manufacturing_date, "manufacturingDate")
    expires = parse_optional_date(request.expiry_date, "expiryDate")
    if manufactured and expires and expires < manufactured:
        raise InvalidInput("expiryDate cannot be earlier than manufacturingDate")


def _increment_lot(db: Session, lot_id: int, quantity: int) -> None:
    result = db.execute(
        update(Lot).where(Lot.id == lot_id).values(quantity=Lot.quantity + quantity)
    )
    if result.rowcount != 1:
        logger.error("Lot %s vanished while receiving stock", lot_id, extra={"lot_id": lot_id})
        raise ConcurrentModification("Failed to update lot quantity for lot ID {}".format(lot_id))


def _restock(db: Session, item: InventoryItem, request: ReceiveRequest) -> InventoryItem:
    if item.created_by_employee_id != request.employee_id.strip():
        raise BarcodeConflict("This barcode is already registered by another receiving clerk.")

    item.quantity = item.quantity + request.quantity
    item.updated_at = datetime.now(timezone.utc)
    _increment_lot(db, item.lot_id, request.quantity)
    return item


def _register(db: Session, request: ReceiveRequest) -> InventoryItem:
    if db.get(Product, request.product_id) is None:
        raise NotFound("Product with ID {} not found".format(request.product_id), resource_id=request.product_id)
    if db.get(Lot, request.lot_id) is None:
        raise NotFound("Lot with ID {} not found".format(request.lot_id), resource_id=request.lot_id)

    item = InventoryItem(
        product_id=request.product_id,
        lot_id=request.lot_id,
        barcode=request.barcode.strip(),
        quantity=request.quantity,
        manufacturing_date=parse_optional_date(request.manufacturing_date, "manufacturingDate"),
        expiry_date=parse_optional_date(request.expiry_date, "expiryDate"),
        batch_number=request.batch_number or None,
        created_by_employee_id=request.employee_id.strip(),
    )
    db.add(item)
    db.flush()
    _increment_lot(db, request.lot_id, request.quantity)
    return item


def receive_inventory_item(db: Session, request: ReceiveRequest) -> tuple[InventoryItem, bool]:
    """Register a new barcode or add stock to one the same clerk registered.

    Returns the item and whether it was newly created. The lot aggregate grows
    by the received quantity in the same transaction.
    """
    _validate(request)
    barcode = request.barcode.strip()

    try:
        existing = (
            db.execute(
                select(InventoryItem)
                .where(InventoryItem.barcode == barcode)
                .with_for_update()
                .execution_options(populate_existing=True)
            )
            .scalars()
            .first()
        )
        if existing is not None:
            item, created = _restock(db, existing, request), False
        else:
            item, created = _register(db, request), True
        db.commit()
    except InventoryError:
        db.rollback()
        raise
    except IntegrityError as exc:
        # Another clerk registered the same barcode between our lookup and insert.
        db.rollback()
        raise BarcodeConflict("This barcode is already registered by another receiving clerk.") from exc
    except (OperationalError, InterfaceError) as exc:
        db.rollback()
        raise StoreUnavailable("Inventory store unavailable, safe to retry") from exc
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Receiving barcode %s failed", barcode)
        raise

    logger.info(
        "%s item %s (barcode %s) by %s, +%s units",
        "Registered" if created else "Restocked",
        item.id,
        barcode,
        request.employee_id,
        request.quantity,
        extra={"inventory_item_id": item.id, "employee_id": request.employee_id},
    )
    return item, created


__all__ = ["ReceiveRequest", "receive_inventory_item"]
