from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Index, Integer, Numeric, String

from app.database.base import Base


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    name = Column(String(160), nullable=False)
    category = Column(String(80), nullable=False, default="")
    standard_price = Column(Numeric(12, 2), nullable=False, default=0)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("idx_products_category", "category"),
    )


__all__ = ["Product"]
