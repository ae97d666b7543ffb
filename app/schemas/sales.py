from datetime import datetime
from decimal import Decimal
from typing import List

from pydantic import BaseModel, ConfigDict, Field


class SalesTransactionItemRead(BaseModel):
    inventory_item_id: int = Field(serialization_alias="itemID")
    quantity: int
    unit_price: Decimal = Field(serialization_alias="unitPrice")
    subtotal: Decimal

    model_config = ConfigDict(from_attributes=True)


class SalesTransactionRead(BaseModel):
    id: int = Field(serialization_alias="transactionID")
    employee_id: str = Field(serialization_alias="employeeID")
    total_amount: Decimal = Field(serialization_alias="totalAmount")
    transaction_date: datetime = Field(serialization_alias="transactionDate")
    items: List[SalesTransactionItemRead] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)
