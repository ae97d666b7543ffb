"""Checkout: turn a cart into a committed sale and matching stock decrements.

The whole operation runs inside the session's transaction:

1. every touched inventory row is locked (``SELECT ... FOR UPDATE``) in
   ascending item id order, so two carts sharing items always queue in the
   same order and cannot deadlock;
2. stock is validated against the locked quantities;
3. the sale header and one line per cart line are inserted;
4. item quantities, then lot aggregates, are decremented with guarded
   ``UPDATE`` statements whose row counts are checked.

Any failure rolls the session back, so either all of the writes become
visible or none do.
"""
from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable, Optional, Sequence

from sqlalchemy import select, text, update
from sqlalchemy.exc import DataError, InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session

from app.config import get_settings
from app.core.constants import (
    CURRENCY_QUANTUM,
    EMPLOYEE_ID_MAX_LENGTH,
    MAX_ROW_ID,
    MONEY_PRECISION,
    MONEY_SCALE,
)
from app.core.errors import (
    INSUFFICIENT_STOCK,
    NOT_FOUND,
    ConcurrentModification,
    InvalidInput,
    InventoryError,
    StockProblem,
    StoreUnavailable,
    error_for_problem,
)
from app.models.inventory_item import InventoryItem
from app.models.lot import Lot
from app.models.sales import SalesTransaction, SalesTransactionItem

logger = logging.getLogger(__name__)

_CENTS = Decimal(CURRENCY_QUANTUM)
# Smallest amount that no longer fits the money columns.
_MONEY_LIMIT = Decimal(10) ** (MONEY_PRECISION - MONEY_SCALE)
_STORE_FAILURES = (OperationalError, InterfaceError, PoolTimeoutError)


@dataclass(frozen=True)
class CartLine:
    inventory_item_id: int
    quantity: int
    unit_price: Decimal


@dataclass(frozen=True)
class CheckoutResult:
    transaction_id: int
    total_amount: Decimal
    line_count: int


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _to_price(value, position: int) -> Decimal:
    if isinstance(value, bool) or value is None:
        raise InvalidInput("Line {}: unitPrice is required".format(position))
    if isinstance(value, float):
        value = str(value)
    try:
        price = Decimal(value)
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise InvalidInput("Line {}: unitPrice must be a decimal".format(position)) from exc
    if not price.is_finite():
        raise InvalidInput("Line {}: unitPrice must be finite".format(position))
    if price < 0:
        raise InvalidInput("Line {}: unitPrice cannot be negative".format(position))
    if price >= _MONEY_LIMIT:
        raise InvalidInput("Line {}: unitPrice must be below {}".format(position, _MONEY_LIMIT))
    if price != price.quantize(_CENTS):
        raise InvalidInput(
            "Line {}: unitPrice cannot have more than {} decimal places".format(position, MONEY_SCALE)
        )
    return price.quantize(_CENTS)


def _check_positive_int(value, position: int, message: str) -> None:
    if not _is_int(value) or value <= 0 or value > MAX_ROW_ID:
        raise InvalidInput("Line {}: {}".format(position, message))


def normalize_cart(
    cart: Optional[Iterable[CartLine]],
    employee_id: Optional[str],
    *,
    max_lines: Optional[int] = None,
) -> list[CartLine]:
    """Validate checkout input without touching the store.

    Raises ``InvalidInput`` for an empty or oversized cart, an item id or
    quantity that is not a positive 64-bit integer, a negative price or one
    finer than a cent, a total too large to record, or a blank or overlong
    employee id.
    """
    if employee_id is None or not str(employee_id).strip():
        raise InvalidInput("employeeID is required")
    if len(str(employee_id).strip()) > EMPLOYEE_ID_MAX_LENGTH:
        raise InvalidInput(
            "employeeID cannot be longer than {} characters".format(EMPLOYEE_ID_MAX_LENGTH)
        )

    lines = list(cart or [])
    if not lines:
        raise InvalidInput("Items array is required and must not be empty")
    if max_lines is not None and len(lines) > max_lines:
        raise InvalidInput("Cart cannot contain more than {} lines".format(max_lines))

    normalized = []
    for position, line in enumerate(lines, start=1):
        _check_positive_int(line.inventory_item_id, position, "itemID must be a positive integer")
        _check_positive_int(
            line.quantity,
            position,
            "quantity for item ID {} must be a positive integer".format(line.inventory_item_id),
        )
        normalized.append(
            CartLine(
                inventory_item_id=line.inventory_item_id,
                quantity=line.quantity,
                unit_price=_to_price(line.unit_price, position),
            )
        )

    # Prices are whole cents here, so the unrounded sum is the recorded total.
    total = sum((line.unit_price * line.quantity for line in normalized), Decimal("0"))
    if total >= _MONEY_LIMIT:
        raise InvalidInput("Cart total must be below {}".format(_MONEY_LIMIT))
    return normalized


def line_subtotal(line: CartLine) -> Decimal:
    return (line.unit_price * line.quantity).quantize(_CENTS, rounding=ROUND_HALF_UP)


def cart_total(lines: Sequence[CartLine]) -> Decimal:
    return sum((line_subtotal(line) for line in lines), Decimal("0")).quantize(_CENTS)


def _apply_lock_timeout(db: Session, seconds: int) -> Optional[int]:
    """Bound how long this checkout waits for row locks.

    PostgreSQL scopes the setting to the current transaction. MySQL only has a
    session-wide setting, so the previous value is returned and must be handed
    to ``_restore_lock_timeout`` once the transaction ends. On SQLite
    ``seconds`` has no effect: waits are bounded by the engine-wide
    ``busy_timeout`` set when the connection opens.
    """
    dialect = db.get_bind().dialect.name
    seconds = int(seconds)
    if dialect == "postgresql":
        db.execute(text("SET LOCAL lock_timeout = '{}s'".format(seconds)))
    elif dialect in ("mysql", "mariadb"):
        previous = db.execute(text("SELECT @@SESSION.innodb_lock_wait_timeout")).scalar()
        db.execute(text("SET SESSION innodb_lock_wait_timeout = {}".format(seconds)))
        return int(previous)
    return None


def _restore_lock_timeout(db: Session, previous: Optional[int]) -> None:
    if previous is None:
        return
    try:
        db.execute(text("SET SESSION innodb_lock_wait_timeout = {}".format(int(previous))))
        db.commit()
    except SQLAlchemyError:
        logger.exception("Could not restore innodb_lock_wait_timeout to %s", previous)
        _rollback(db)


def _demand_by_item(lines: Sequence[CartLine]) -> "OrderedDict[int, int]":
    demand: "OrderedDict[int, int]" = OrderedDict()
    for item_id in sorted({line.inventory_item_id for line in lines}):
        demand[item_id] = 0
    for line in lines:
        demand[line.inventory_item_id] += line.quantity
    return demand


def _lock_items(db: Session, item_ids: Iterable[int]) -> dict[int, InventoryItem]:
    locked = {}
    for item_id in item_ids:
        item = (
            db.execute(
                select(InventoryItem)
                .where(InventoryItem.id == item_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            )
            .scalars()
            .first()
        )
        if item is not None:
            locked[item_id] = item
    return locked


def find_stock_problems(
    demand: "OrderedDict[int, int]",
    locked: dict[int, InventoryItem],
) -> list[StockProblem]:
    problems = []
    for item_id, requested in demand.items():
        item = locked.get(item_id)
        if item is None:
            problems.append(StockProblem(NOT_FOUND, item_id))
        elif item.quantity < requested:
            problems.append(StockProblem(INSUFFICIENT_STOCK, item_id, item.quantity, requested))
    return problems


def _record_sale(
    db: Session,
    lines: Sequence[CartLine],
    employee_id: str,
    now: datetime,
) -> SalesTransaction:
    sale = SalesTransaction(
        employee_id=employee_id,
        total_amount=cart_total(lines),
        transaction_date=now,
    )
    db.add(sale)
    db.flush()

    db.add_all(
        [
            SalesTransactionItem(
                transaction_id=sale.id,
                inventory_item_id=line.inventory_item_id,
                quantity=line.quantity,
                unit_price=line.unit_price,
                subtotal=line_subtotal(line),
            )
            for line in lines
        ]
    )
    db.flush()
    return sale


def _concurrent_modification(message: str, **context) -> ConcurrentModification:
    logger.error(
        "Checkout anomaly: %s",
        message,
        extra=dict(kind=ConcurrentModification.kind, **context),
    )
    return ConcurrentModification(message)


def _decrement_stock(
    db: Session,
    lines: Sequence[CartLine],
    locked: dict[int, InventoryItem],
    now: datetime,
) -> None:
    for line in sorted(lines, key=lambda entry: entry.inventory_item_id):
        result = db.execute(
            update(InventoryItem)
            .where(
                InventoryItem.id == line.inventory_item_id,
                InventoryItem.quantity >= line.quantity,
            )
            .values(quantity=InventoryItem.quantity - line.quantity, updated_at=now)
        )
        if result.rowcount != 1:
            raise _concurrent_modification(
                "Failed to update inventory for item ID {}".format(line.inventory_item_id),
                inventory_item_id=line.inventory_item_id,
            )

    # Lots are shared between items that are not locked together, so they
    # are updated in ascending id order as well.
    lot_deltas: dict[int, int] = {}
    for line in lines:
        lot_id = locked[line.inventory_item_id].lot_id
        lot_deltas[lot_id] = lot_deltas.get(lot_id, 0) + line.quantity

    for lot_id in sorted(lot_deltas):
        result = db.execute(
            update(Lot)
            .where(Lot.id == lot_id)
            .values(quantity=Lot.quantity - lot_deltas[lot_id])
        )
        if result.rowcount != 1:
            raise _concurrent_modification(
                "Failed to update lot quantity for lot ID {}".format(lot_id),
                lot_id=lot_id,
            )


def _rollback(db: Session) -> None:
    try:
        db.rollback()
    except SQLAlchemyError:
        logger.exception("Rollback after failed checkout raised")


def checkout(
    db: Session,
    cart: Optional[Iterable[CartLine]],
    employee_id: Optional[str],
    *,
    lock_timeout_seconds: Optional[int] = None,
    max_lines: Optional[int] = None,
) -> CheckoutResult:
    """Sell ``cart`` on behalf of ``employee_id`` as one atomic unit.

    Stock problems are collected for every item before failing; the raised
    error is the one for the lowest offending item id and its ``problems``
    list holds all of them.

    Raises:
        InvalidInput, NotFound, InsufficientStock, ConcurrentModification,
        StoreUnavailable. None of them leave any write behind.
    """
    settings = get_settings()
    lines = normalize_cart(
        cart,
        employee_id,
        max_lines=max_lines if max_lines is not None else settings.CHECKOUT_MAX_LINES,
    )
    employee_id = str(employee_id).strip()
    timeout = lock_timeout_seconds or settings.DB_LOCK_TIMEOUT_SECONDS
    previous_timeout = None

    try:
        previous_timeout = _apply_lock_timeout(db, timeout)
        demand = _demand_by_item(lines)
        locked = _lock_items(db, demand.keys())

        problems = find_stock_problems(demand, locked)
        if problems:
            raise error_for_problem(problems[0], problems)

        now = datetime.now(timezone.utc)
        sale = _record_sale(db, lines, employee_id, now)
        _decrement_stock(db, lines, locked, now)
        db.commit()
    except InventoryError as exc:
        _rollback(db)
        logger.info("Checkout rejected for employee %s: %s", employee_id, exc.message)
        raise
    except _STORE_FAILURES as exc:
        _rollback(db)
        logger.warning("Checkout store failure for employee %s: %s", employee_id, exc)
        raise StoreUnavailable(
            "Inventory store unavailable, safe to retry ({})".format(exc.__class__.__name__)
        ) from exc
    except DataError as exc:
        _rollback(db)
        logger.warning("Checkout values rejected by the store for employee %s: %s", employee_id, exc)
        raise InvalidInput("Checkout values could not be stored ({})".format(exc.orig)) from exc
    except SQLAlchemyError as exc:
        _rollback(db)
        raise _concurrent_modification(
            "Checkout failed on an unexpected store error ({})".format(exc.__class__.__name__),
            employee_id=employee_id,
        ) from exc
    finally:
        _restore_lock_timeout(db, previous_timeout)

    result = CheckoutResult(
        transaction_id=sale.id,
        total_amount=sale.total_amount,
        line_count=len(lines),
    )
    logger.info(
        "Checkout committed: transaction %s, %s lines, total %s",
        result.transaction_id,
        result.line_count,
        result.total_amount,
        extra={"transaction_id": result.transaction_id, "employee_id": employee_id},
    )
    return result


__all__ = [
    "CartLine",
    "CheckoutResult",
    "cart_total",
    "checkout",
    "find_stock_problems",
    "line_subtotal",
    "normalize_cart",
]
