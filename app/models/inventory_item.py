from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Index, Integer, String

from app.core.constants import EMPLOYEE_ID_MAX_LENGTH
from app.database.base import Base


class InventoryItem(Base):
    __tablename__ = "inventory_items"

    id = Column(Integer, primary_key=True)

    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    lot_id = Column(Integer, ForeignKey("lots.id"), nullable=False)

    barcode = Column(String(64), nullable=False, unique=True)
    quantity = Column(Integer, nullable=False, default=0)

    manufacturing_date = Column(Date)
    expiry_date = Column(Date)
    batch_number = Column(String(64))

    created_by_employee_id = Column(String(EMPLOYEE_ID_MAX_LENGTH), nullable=False)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_inventory_items_quantity_non_negative"),
        Index("idx_inventory_items_lot", "lot_id"),
        Index("idx_inventory_items_employee", "created_by_employee_id"),
    )


__all__ = ["InventoryItem"]
