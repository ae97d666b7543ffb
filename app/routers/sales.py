from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy.orm import Session

from app.core.constants import CHECKOUT_ROLES, MAX_ROW_ID
from app.core.errors import InventoryError
from app.dependencies import get_db, http_error, require_roles
from app.schemas.checkout import CheckoutRequest, CheckoutResponse
from app.schemas.sales import SalesTransactionItemRead, SalesTransactionRead
from app.services.checkout_service import CartLine, checkout
from app.services.sales_service import get_sales_transaction, load_transaction_items

router = APIRouter(prefix="/sales", tags=["Sales"])


@router.post("/checkout", response_model=CheckoutResponse, status_code=status.HTTP_201_CREATED)
def checkout_cart(
    payload: CheckoutRequest,
    db: Session = Depends(get_db),
    _auth=Depends(require_roles(*CHECKOUT_ROLES)),
):
    cart = [
        CartLine(
            inventory_item_id=line.inventory_item_id,
            quantity=line.quantity,
            unit_price=line.unit_price,
        )
        for line in payload.items or []
    ]
    try:
        result = checkout(db, cart, payload.employee_id)
    except InventoryError as exc:
        raise http_error(exc) from exc
    return CheckoutResponse.model_validate(result)


@router.get("/{transaction_id}", response_model=SalesTransactionRead)
def get_transaction(
    transaction_id: int = Path(gt=0, le=MAX_ROW_ID),
    db: Session = Depends(get_db),
    _auth=Depends(require_roles(*CHECKOUT_ROLES)),
):
    sale = get_sales_transaction(db, transaction_id)
    if sale is None:
        raise HTTPException(status_code=404, detail="Sales transaction not found.")

    base = SalesTransactionRead.model_validate(sale).model_dump()
    base["items"] = [
        SalesTransactionItemRead.model_validate(item)
        for item in load_transaction_items(db, transaction_id)
    ]
    return SalesTransactionRead(**base)


__all__ = ["router"]
