from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class ReceiveInventoryRequest(BaseModel):
    product_id: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("productID", "productId", "product_id"),
    )
    lot_id: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("lotID", "lotId", "lot_id"),
    )
    barcode: Optional[str] = None
    quantity: Optional[int] = None
    manufacturing_date: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("manufacturingDate", "manufacturing_date"),
    )
    expiry_date: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("expiryDate", "expiry_date"),
    )
    batch_number: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("batchNumber", "batch_number"),
    )
    employee_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("employeeID", "employeeId", "employee_id"),
    )

    model_config = ConfigDict(populate_by_name=True)


class InventoryItemRead(BaseModel):
    id: int = Field(serialization_alias="itemID")
    product_id: int = Field(serialization_alias="productID")
    lot_id: int = Field(serialization_alias="lotID")
    barcode: str
    quantity: int
    manufacturing_date: Optional[date] = Field(default=None, serialization_alias="manufacturingDate")
    expiry_date: Optional[date] = Field(default=None, serialization_alias="expiryDate")
    batch_number: Optional[str] = Field(default=None, serialization_alias="batchNumber")
    created_by_employee_id: str = Field(serialization_alias="createdByEmployeeID")

    model_config = ConfigDict(from_attributes=True)


class ReceiveInventoryResponse(BaseModel):
    success: bool = True
    message: str
    item: InventoryItemRead


class ScannedItemRead(BaseModel):
    item_id: int = Field(serialization_alias="itemID")
    barcode: str
    product_id: int = Field(serialization_alias="productID")
    product_name: str = Field(serialization_alias="productName")
    product_price: Decimal = Field(serialization_alias="productPrice")
    product_category: str = Field(serialization_alias="productCategory")
    quantity: int
    lot_id: int = Field(serialization_alias="lotID")
    lot_name: str = Field(serialization_alias="lotName")
    batch_number: Optional[str] = Field(default=None, serialization_alias="batchNumber")
    manufacturing_date: Optional[date] = Field(default=None, serialization_alias="manufacturingDate")
    expiry_date: Optional[date] = Field(default=None, serialization_alias="expiryDate")


class ClerkInventoryItemRead(ScannedItemRead):
    created_at: datetime = Field(serialization_alias="createdAt")
    updated_at: datetime = Field(serialization_alias="updatedAt")
    created_by_employee_id: str = Field(serialization_alias="createdByEmployeeID")
    supplier_name: Optional[str] = Field(default=None, serialization_alias="supplierName")


class LotDriftRead(BaseModel):
    lot_id: int = Field(serialization_alias="lotID")
    lot_name: str = Field(serialization_alias="lotName")
    lot_quantity: int = Field(serialization_alias="lotQuantity")
    items_quantity: int = Field(serialization_alias="itemsQuantity")
    difference: int
