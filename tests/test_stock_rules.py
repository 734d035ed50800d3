import unittest

from medstock.core.constants import MAX_QUANTITY
from medstock.core.exceptions import StockValidationError
from medstock.core.stock_rules import (
    StockPolicy,
    coerce_quantity,
    low_stock_message,
    resolve_approved_qty,
    resolve_policy,
)
from medstock.models.stock import StockLedger


class CoerceQuantityTest(unittest.TestCase):
    def test_numbers(self):
        self.assertEqual(coerce_quantity(12), 12)
        self.assertEqual(coerce_quantity(7.9), 7)
        self.assertEqual(coerce_quantity("15"), 15)
        self.assertEqual(coerce_quantity(" 1,200 "), 1200)

    def test_non_numeric_is_zero(self):
        for value in (None, "", "abc", True, [], float("nan"), float("inf")):
            self.assertEqual(coerce_quantity(value), 0, value)

    def test_negative_clamps_to_zero(self):
        self.assertEqual(coerce_quantity(-5), 0)
        self.assertEqual(coerce_quantity("-3"), 0)

    def test_too_large_is_rejected(self):
        self.assertEqual(coerce_quantity(MAX_QUANTITY), MAX_QUANTITY)
        for value in ("1e20", 2**63 - 1, MAX_QUANTITY + 1, 10**400):
            with self.assertRaises(StockValidationError):
                coerce_quantity(value)


class StockPolicyTest(unittest.TestCase):
    def test_threshold_is_inclusive(self):
        policy = StockPolicy(low_stock_threshold=10, default_restock_qty=50)
        self.assertTrue(policy.is_low(10))
        self.assertTrue(policy.is_low(0))
        self.assertFalse(policy.is_low(11))

    def test_ledger_overrides_win(self):
        base = StockPolicy(low_stock_threshold=10, default_restock_qty=50)
        ledger = StockLedger(pharmacy_id="P1", low_stock_threshold=3)
        policy = resolve_policy(ledger, base)
        self.assertEqual(policy.low_stock_threshold, 3)
        self.assertEqual(policy.default_restock_qty, 50)

    def test_configured_defaults(self):
        policy = resolve_policy()
        self.assertEqual(policy.low_stock_threshold, 10)
        self.assertEqual(policy.default_restock_qty, 50)


class MessageTest(unittest.TestCase):
    def test_low_stock_message(self):
        self.assertEqual(
            low_stock_message("Paracetamol", 9),
            "Low stock alert: Paracetamol only 9 left",
        )

    def test_approved_qty_falls_back_to_requested(self):
        self.assertEqual(resolve_approved_qty(40, 50), 40)
        self.assertEqual(resolve_approved_qty(None, 50), 50)
        self.assertEqual(resolve_approved_qty(0, 50), 50)
        self.assertEqual(resolve_approved_qty("abc", 50), 50)


if __name__ == "__main__":
    unittest.main()
