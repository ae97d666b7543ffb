import argparse
import logging
from datetime import date, timedelta
from decimal import Decimal

from sqlalchemy import delete, select

from app.core.logging import setup_logging
from app.database import Base, SessionLocal, engine
from app.models import (
    InventoryItem,
    Lot,
    Product,
    SalesTransaction,
    SalesTransactionItem,
    Supplier,
    import_all_models,
)

logger = logging.getLogger("seed_data")


def parse_args():
    parser = argparse.ArgumentParser(description="Seed sample supermarket inventory data.")
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Clear existing data before seeding.",
    )
    return parser.parse_args()


def main():
    setup_logging()
    args = parse_args()

    import_all_models()
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        if args.reset:
            for model in (SalesTransactionItem, SalesTransaction, InventoryItem, Lot, Product, Supplier):
                db.execute(delete(model))
            db.commit()

        has_supplier = db.execute(select(Supplier.id).limit(1)).first()
        if has_supplier:
            logger.info("Seed skipped: suppliers already exist.")
            return

        supplier = Supplier(
            name="Fresh Farms Co-op",
            date_of_joining=date.today() - timedelta(days=400),
            point_of_contact="Dana Reyes",
            contact_number="+1-555-0100",
            product_count=2,
        )
        db.add(supplier)
        db.flush()

        products = [
            Product(name="Whole Milk 1L", category="Dairy", standard_price=Decimal("3.50")),
            Product(name="Sourdough Loaf", category="Bakery", standard_price=Decimal("4.25")),
        ]
        db.add_all(products)
        db.flush()

        lot = Lot(
            supplier_id=supplier.id,
            name="LOT-{}".format(date.today().strftime("%Y%m%d")),
            arrival_date=date.today(),
            product_count=len(products),
            quantity=0,
        )
        db.add(lot)
        db.flush()

        items = [
            InventoryItem(
                product_id=products[0].id,
                lot_id=lot.id,
                barcode="0001234500017",
                quantity=24,
                manufacturing_date=date.today() - timedelta(days=2),
                expiry_date=date.today() + timedelta(days=10),
                batch_number="MLK-01",
                created_by_employee_id="EMP-CLERK-1",
            ),
            InventoryItem(
                product_id=products[1].id,
                lot_id=lot.id,
                barcode="0001234500024",
                quantity=12,
                manufacturing_date=date.today(),
                expiry_date=date.today() + timedelta(days=4),
                batch_number="BRD-07",
                created_by_employee_id="EMP-CLERK-1",
            ),
        ]
        db.add_all(items)
        lot.quantity = sum(item.quantity for item in items)
        db.commit()
        logger.info("Seed data created: lot %s with %s items.", lot.id, len(items))
    finally:
        db.close()


if __name__ == "__main__":
    main()
