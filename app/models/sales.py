from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, Numeric, String

from app.core.constants import EMPLOYEE_ID_MAX_LENGTH, MONEY_PRECISION, MONEY_SCALE
from app.database.base import Base


class SalesTransaction(Base):
    __tablename__ = "sales_transactions"

    id = Column(Integer, primary_key=True)
    # Recorded as given; the identity provider owns employee records.
    employee_id = Column(String(EMPLOYEE_ID_MAX_LENGTH), nullable=False)
    total_amount = Column(Numeric(MONEY_PRECISION, MONEY_SCALE), nullable=False)
    transaction_date = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("idx_sales_transactions_employee_date", "employee_id", "transaction_date"),
    )


class SalesTransactionItem(Base):
    __tablename__ = "sales_transaction_items"

    id = Column(Integer, primary_key=True)
    transaction_id = Column(Integer, ForeignKey("sales_transactions.id"), nullable=False)
    inventory_item_id = Column(Integer, ForeignKey("inventory_items.id"), nullable=False)

    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(MONEY_PRECISION, MONEY_SCALE), nullable=False)
    subtotal = Column(Numeric(MONEY_PRECISION, MONEY_SCALE), nullable=False)

    __table_args__ = (
        Index("idx_sales_transaction_items_transaction", "transaction_id"),
        Index("idx_sales_transaction_items_item", "inventory_item_id"),
    )


__all__ = ["SalesTransaction", "SalesTransactionItem"]
