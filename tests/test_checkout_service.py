import unittest
from decimal import Decimal
from unittest.mock import MagicMock, patch

from sqlalchemy import func, select
from sqlalchemy.exc import DataError, IntegrityError, OperationalError

from app.core.errors import (
    INSUFFICIENT_STOCK,
    NOT_FOUND,
    ConcurrentModification,
    InsufficientStock,
    InvalidInput,
    NotFound,
    StoreUnavailable,
)
from app.models.sales import SalesTransaction, SalesTransactionItem
from app.services import checkout_service
from app.services.checkout_service import CartLine, cart_total, checkout, normalize_cart
from tests.support import add_item, add_lot, lot_quantity_of, make_session_factory, quantity_of


def _line(item_id, quantity, price="3.50"):
    return CartLine(inventory_item_id=item_id, quantity=quantity, unit_price=Decimal(price))


class CheckoutServiceTest(unittest.TestCase):
    def setUp(self):
        self.engine, self.Session = make_session_factory()
        db = self.Session()
        self.lot = add_lot(db, "LOT-A")
        self.other_lot = add_lot(db, "LOT-B")
        add_item(db, 5, self.lot, 10)
        add_item(db, 7, self.lot, 10)
        add_item(db, 8, self.other_lot, 3)
        db.commit()
        db.close()
        self.db = self.Session()

    def tearDown(self):
        self.db.close()
        self.engine.dispose()

    def _sales_counts(self):
        db = self.Session()
        try:
            headers = db.execute(select(func.count(SalesTransaction.id))).scalar()
            lines = db.execute(select(func.count(SalesTransactionItem.id))).scalar()
            return headers, lines
        finally:
            db.close()

    def test_successful_checkout_decrements_item_and_lot(self):
        result = checkout(self.db, [_line(7, 2, "3.50")], "EMP-CASHIER-1")

        self.assertEqual(result.total_amount, Decimal("7.00"))
        self.assertEqual(result.line_count, 1)
        self.assertEqual(quantity_of(self.Session, 7), 8)
        self.assertEqual(lot_quantity_of(self.Session, self.lot.id), 18)

        db = self.Session()
        sale = db.get(SalesTransaction, result.transaction_id)
        self.assertEqual(sale.employee_id, "EMP-CASHIER-1")
        self.assertEqual(sale.total_amount, Decimal("7.00"))
        lines = db.execute(
            select(SalesTransactionItem).where(SalesTransactionItem.transaction_id == sale.id)
        ).scalars().all()
        self.assertEqual(len(lines), 1)
        self.assertEqual(lines[0].quantity, 2)
        self.assertEqual(lines[0].subtotal, Decimal("7.00"))
        db.close()

    def test_insufficient_stock_reports_available_and_requested(self):
        with self.assertRaises(InsufficientStock) as ctx:
            checkout(self.db, [_line(7, 20)], "EMP-CASHIER-1")

        error = ctx.exception
        self.assertEqual(error.inventory_item_id, 7)
        self.assertEqual(error.available, 10)
        self.assertEqual(error.requested, 20)
        self.assertIn("item ID 7", error.message)
        self.assertIn("Available: 10", error.message)
        self.assertIn("Requested: 20", error.message)
        self.assertEqual(quantity_of(self.Session, 7), 10)
        self.assertEqual(self._sales_counts(), (0, 0))

    def test_missing_item_is_not_found(self):
        with self.assertRaises(NotFound) as ctx:
            checkout(self.db, [_line(99, 1, "1.00")], "EMP-CASHIER-1")

        self.assertEqual(ctx.exception.resource_id, 99)
        self.assertIn("99", ctx.exception.message)
        self.assertEqual(self._sales_counts(), (0, 0))

    def test_failure_on_one_line_leaves_every_line_untouched(self):
        with self.assertRaises(InsufficientStock):
            checkout(self.db, [_line(5, 1), _line(7, 1), _line(8, 4)], "EMP-CASHIER-1")

        self.assertEqual(quantity_of(self.Session, 5), 10)
        self.assertEqual(quantity_of(self.Session, 7), 10)
        self.assertEqual(quantity_of(self.Session, 8), 3)
        self.assertEqual(lot_quantity_of(self.Session, self.lot.id), 20)
        self.assertEqual(self._sales_counts(), (0, 0))

    def test_all_problems_are_reported_first_by_lowest_item_id(self):
        with self.assertRaises(NotFound) as ctx:
            checkout(self.db, [_line(8, 5), _line(99, 1), _line(4, 1)], "EMP-CASHIER-1")

        problems = ctx.exception.problems
        self.assertEqual([p.inventory_item_id for p in problems], [4, 8, 99])
        self.assertEqual([p.kind for p in problems], [NOT_FOUND, INSUFFICIENT_STOCK, NOT_FOUND])
        self.assertEqual(problems[1].available, 3)
        self.assertEqual(problems[1].requested, 5)

    def test_duplicate_lines_are_validated_against_combined_demand(self):
        with self.assertRaises(InsufficientStock) as ctx:
            checkout(self.db, [_line(7, 6), _line(7, 6)], "EMP-CASHIER-1")
        self.assertEqual(ctx.exception.requested, 12)
        self.assertEqual(quantity_of(self.Session, 7), 10)

    def test_duplicate_lines_are_recorded_separately(self):
        result = checkout(self.db, [_line(7, 2, "1.00"), _line(7, 3, "1.00")], "EMP-CASHIER-1")

        self.assertEqual(result.line_count, 2)
        self.assertEqual(result.total_amount, Decimal("5.00"))
        self.assertEqual(quantity_of(self.Session, 7), 5)
        self.assertEqual(lot_quantity_of(self.Session, self.lot.id), 15)
        self.assertEqual(self._sales_counts(), (1, 2))

    def test_lines_across_lots_decrement_each_lot(self):
        checkout(self.db, [_line(8, 3, "2.00"), _line(5, 4, "2.00")], "EMP-CASHIER-1")

        self.assertEqual(quantity_of(self.Session, 8), 0)
        self.assertEqual(quantity_of(self.Session, 5), 6)
        self.assertEqual(lot_quantity_of(self.Session, self.lot.id), 16)
        self.assertEqual(lot_quantity_of(self.Session, self.other_lot.id), 0)

    def test_total_uses_exact_decimal_arithmetic(self):
        lines = [_line(5, 3, "0.10"), _line(7, 1, "0.20")]
        self.assertEqual(cart_total(lines), Decimal("0.50"))

        result = checkout(self.db, lines, "EMP-CASHIER-1")
        self.assertEqual(result.total_amount, Decimal("0.50"))

    def test_guarded_update_miss_is_concurrent_modification(self):
        with patch.object(checkout_service, "find_stock_problems", return_value=[]):
            with self.assertLogs("app.services.checkout_service", level="ERROR"):
                with self.assertRaises(ConcurrentModification):
                    checkout(self.db, [_line(8, 5)], "EMP-CASHIER-1")

        self.assertEqual(quantity_of(self.Session, 8), 3)
        self.assertEqual(lot_quantity_of(self.Session, self.other_lot.id), 3)
        self.assertEqual(self._sales_counts(), (0, 0))

    def test_store_failure_is_retryable_store_unavailable(self):
        failure = OperationalError("BEGIN IMMEDIATE", {}, Exception("database is locked"))
        with patch.object(checkout_service, "_apply_lock_timeout", side_effect=failure):
            with self.assertRaises(StoreUnavailable) as ctx:
                checkout(self.db, [_line(7, 1)], "EMP-CASHIER-1")

        self.assertTrue(ctx.exception.retryable)
        self.assertEqual(quantity_of(self.Session, 7), 10)


class CheckoutValidationTest(unittest.TestCase):
    def setUp(self):
        self.engine, self.Session = make_session_factory()
        db = self.Session()
        add_item(db, 7, add_lot(db), 10)
        db.commit()
        db.close()

    def tearDown(self):
        self.engine.dispose()

    def test_invalid_carts_fail_without_side_effects(self):
        cases = [
            ("empty cart", [], "EMP-1"),
            ("no cart", None, "EMP-1"),
            ("zero quantity", [_line(7, 0)], "EMP-1"),
            ("negative quantity", [_line(7, -2)], "EMP-1"),
            ("boolean quantity", [_line(7, True)], "EMP-1"),
            ("fractional quantity", [CartLine(7, 1.5, Decimal("1.00"))], "EMP-1"),
            ("negative price", [_line(7, 1, "-0.01")], "EMP-1"),
            ("item id past 64 bits", [_line(2**63, 1, "1.00")], "EMP-1"),
            ("quantity past 64 bits", [_line(7, 2**63, "1.00")], "EMP-1"),
            ("sub-cent price", [_line(7, 1, "0.125")], "EMP-1"),
            ("price too large to record", [_line(7, 1, "10000000000.00")], "EMP-1"),
            ("total too large to record", [_line(7, 2, "5000000000.00")], "EMP-1"),
            ("missing employee", [_line(7, 1)], None),
            ("blank employee", [_line(7, 1)], "   "),
            ("overlong employee", [_line(7, 1)], "E" * 51),
        ]
        for label, cart, employee_id in cases:
            with self.subTest(label):
                db = self.Session()
                try:
                    with self.assertRaises(InvalidInput):
                        checkout(db, cart, employee_id)
                finally:
                    db.close()
                self.assertEqual(quantity_of(self.Session, 7), 10)

    def test_cart_line_cap(self):
        with self.assertRaises(InvalidInput):
            normalize_cart([_line(7, 1)] * 3, "EMP-1", max_lines=2)

    def test_normalize_cart_accepts_float_prices_exactly(self):
        lines = normalize_cart([CartLine(7, 2, 3.5)], "EMP-1")
        self.assertEqual(lines[0].unit_price, Decimal("3.5"))

    def test_recorded_line_matches_price_times_quantity(self):
        db = self.Session()
        try:
            result = checkout(db, [_line(7, 3, "0.10"), _line(7, 1, "2.5")], "EMP-1")
        finally:
            db.close()

        db = self.Session()
        try:
            lines = db.execute(
                select(SalesTransactionItem).where(
                    SalesTransactionItem.transaction_id == result.transaction_id
                )
            ).scalars().all()
        finally:
            db.close()
        for line in lines:
            self.assertEqual(line.subtotal, line.unit_price * line.quantity)
        self.assertEqual(sum(line.subtotal for line in lines), result.total_amount)
        self.assertEqual(result.total_amount, Decimal("2.80"))

    def test_largest_recordable_total_is_accepted(self):
        lines = normalize_cart([_line(7, 1, "9999999999.99")], "E" * 50)
        self.assertEqual(cart_total(lines), Decimal("9999999999.99"))


class CheckoutStoreErrorTest(unittest.TestCase):
    def setUp(self):
        self.engine, self.Session = make_session_factory()
        db = self.Session()
        add_item(db, 7, add_lot(db), 10)
        db.commit()
        db.close()
        self.db = self.Session()

    def tearDown(self):
        self.db.close()
        self.engine.dispose()

    def _sales_count(self):
        db = self.Session()
        try:
            return db.execute(select(func.count(SalesTransaction.id))).scalar()
        finally:
            db.close()

    def test_rejected_values_are_invalid_input(self):
        failure = DataError("INSERT", {}, Exception("value too long for type character varying(50)"))
        with patch.object(checkout_service, "_decrement_stock", side_effect=failure):
            with self.assertRaises(InvalidInput):
                checkout(self.db, [_line(7, 1)], "EMP-1")

        self.assertEqual(quantity_of(self.Session, 7), 10)
        self.assertEqual(self._sales_count(), 0)

    def test_other_store_errors_are_concurrent_modification(self):
        failure = IntegrityError("INSERT", {}, Exception("foreign key constraint failed"))
        with patch.object(checkout_service, "_decrement_stock", side_effect=failure):
            with self.assertLogs("app.services.checkout_service", level="ERROR"):
                with self.assertRaises(ConcurrentModification):
                    checkout(self.db, [_line(7, 1)], "EMP-1")

        self.assertEqual(quantity_of(self.Session, 7), 10)
        self.assertEqual(self._sales_count(), 0)


def _fake_session(dialect_name, session_timeout=50):
    db = MagicMock()
    db.get_bind.return_value.dialect.name = dialect_name
    db.execute.return_value.scalar.return_value = session_timeout
    return db


def _statements(db):
    return [str(call.args[0]) for call in db.execute.call_args_list]


class LockTimeoutTest(unittest.TestCase):
    def test_postgresql_scopes_timeout_to_transaction(self):
        db = _fake_session("postgresql")
        self.assertIsNone(checkout_service._apply_lock_timeout(db, 3))
        self.assertEqual(_statements(db), ["SET LOCAL lock_timeout = '3s'"])

    def test_mysql_timeout_is_restored_after_checkout(self):
        db = _fake_session("mysql", session_timeout=50)
        previous = checkout_service._apply_lock_timeout(db, 3)
        checkout_service._restore_lock_timeout(db, previous)

        self.assertEqual(previous, 50)
        self.assertEqual(
            _statements(db),
            [
                "SELECT @@SESSION.innodb_lock_wait_timeout",
                "SET SESSION innodb_lock_wait_timeout = 3",
                "SET SESSION innodb_lock_wait_timeout = 50",
            ],
        )
        db.commit.assert_called_once()

    def test_sqlite_leaves_connection_settings_alone(self):
        db = _fake_session("sqlite")
        previous = checkout_service._apply_lock_timeout(db, 3)
        checkout_service._restore_lock_timeout(db, previous)

        self.assertIsNone(previous)
        db.execute.assert_not_called()
        db.commit.assert_not_called()


if __name__ == "__main__":
    unittest.main()
