from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.sales import SalesTransaction, SalesTransactionItem


def get_sales_transaction(db: Session, transaction_id: int) -> Optional[SalesTransaction]:
    return db.get(SalesTransaction, transaction_id)


def load_transaction_items(db: Session, transaction_id: int) -> list[SalesTransactionItem]:
    items = (
        db.execute(
            select(SalesTransactionItem)
            .where(SalesTransactionItem.transaction_id == transaction_id)
            .order_by(SalesTransactionItem.id)
        )
        .scalars()
        .all()
    )
    return list(items)


__all__ = ["get_sales_transaction", "load_transaction_items"]
