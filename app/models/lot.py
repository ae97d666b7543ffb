from sqlalchemy import Column, Date, ForeignKey, Index, Integer, String

from app.database.base import Base


class Lot(Base):
    __tablename__ = "lots"

    id = Column(Integer, primary_key=True)
    supplier_id = Column(Integer, ForeignKey("suppliers.id"), nullable=False)

    name = Column(String(120), nullable=False)
    arrival_date = Column(Date)
    product_count = Column(Integer, nullable=False, default=0)

    # Aggregate of member inventory items, moved in lockstep by receiving and checkout.
    quantity = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        Index("idx_lots_supplier", "supplier_id"),
    )


__all__ = ["Lot"]
