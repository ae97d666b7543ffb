from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from app.core.constants import CHECKOUT_ROLES, RECEIVING_ROLES
from app.core.errors import InventoryError
from app.dependencies import get_db, http_error, require_auth, require_roles
from app.schemas.inventory import (
    ClerkInventoryItemRead,
    InventoryItemRead,
    ReceiveInventoryRequest,
    ReceiveInventoryResponse,
    ScannedItemRead,
)
from app.services.inventory_service import find_sellable_item, list_items_registered_by
from app.services.receiving_service import ReceiveRequest, receive_inventory_item

router = APIRouter(prefix="/inventory", tags=["Inventory"])


@router.post("/receive", response_model=ReceiveInventoryResponse)
def receive_item(
    payload: ReceiveInventoryRequest,
    response: Response,
    db: Session = Depends(get_db),
    _auth=Depends(require_roles(*RECEIVING_ROLES)),
):
    request = ReceiveRequest(
        product_id=payload.product_id,
        lot_id=payload.lot_id,
        barcode=payload.barcode,
        quantity=payload.quantity,
        employee_id=payload.employee_id,
        manufacturing_date=payload.manufacturing_date,
        expiry_date=payload.expiry_date,
        batch_number=payload.batch_number,
    )
    try:
        item, created = receive_inventory_item(db, request)
    except InventoryError as exc:
        raise http_error(exc) from exc

    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return ReceiveInventoryResponse(
        message="Inventory item added" if created else "Inventory updated",
        item=InventoryItemRead.model_validate(item),
    )


@router.get("/scan", response_model=ScannedItemRead)
def scan_item(
    barcode: str = Query("", description="Barcode printed on the item label"),
    db: Session = Depends(get_db),
    _auth=Depends(require_roles(*CHECKOUT_ROLES)),
):
    if not barcode.strip():
        raise HTTPException(status_code=400, detail="Barcode is required")

    row = find_sellable_item(db, barcode)
    if row is None:
        raise HTTPException(status_code=404, detail="Product not found or out of stock")
    return ScannedItemRead(**row)


@router.get("/items", response_model=list[ClerkInventoryItemRead])
def list_clerk_items(
    employee_id: str = Query("", alias="employeeID"),
    db: Session = Depends(get_db),
    _auth=Depends(require_auth),
):
    if not employee_id.strip():
        raise HTTPException(status_code=400, detail="employeeID query parameter is required")
    return [ClerkInventoryItemRead(**row) for row in list_items_registered_by(db, employee_id)]


__all__ = ["router"]
