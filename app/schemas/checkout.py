from decimal import Decimal
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class CartLineIn(BaseModel):
    inventory_item_id: int = Field(
        validation_alias=AliasChoices("itemID", "inventoryItemId", "inventory_item_id"),
    )
    quantity: int
    unit_price: Decimal = Field(
        validation_alias=AliasChoices("unitPrice", "unit_price"),
    )

    model_config = ConfigDict(populate_by_name=True)


class CheckoutRequest(BaseModel):
    # Emptiness and blank ids are rejected by the checkout service so that the
    # caller gets the domain error instead of a schema error.
    items: Optional[List[CartLineIn]] = None
    employee_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("employeeID", "employeeId", "employee_id"),
    )

    model_config = ConfigDict(populate_by_name=True)


class CheckoutResponse(BaseModel):
    transaction_id: int = Field(serialization_alias="transactionId")
    total_amount: Decimal = Field(serialization_alias="totalAmount")
    line_count: int = Field(serialization_alias="lineCount")

    model_config = ConfigDict(from_attributes=True)
