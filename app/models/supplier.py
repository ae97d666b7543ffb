from sqlalchemy import Column, Date, Integer, String

from app.database.base import Base


class Supplier(Base):
    __tablename__ = "suppliers"

    id = Column(Integer, primary_key=True)
    name = Column(String(120), nullable=False)
    date_of_joining = Column(Date)
    point_of_contact = Column(String(120))
    contact_number = Column(String(40))
    product_count = Column(Integer, nullable=False, default=0)


__all__ = ["Supplier"]
