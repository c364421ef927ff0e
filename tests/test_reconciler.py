"""
Unit tests for balance reconciliation.
"""
import math
import unittest
from decimal import Decimal

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from parsers.base_parser import StatementData, Transaction
from reconciler.balance_checker import (
    BalanceReconciler, ReconciliationInput, ReconciliationResult, is_within_tolerance, round2
)


def txns(*amounts):
    """Build transactions from bare amounts."""
    return [
        Transaction(date=f"2025-01-{i + 1:02d}", description=f"Item {i + 1}", amount=amount)
        for i, amount in enumerate(amounts)
    ]


class TestReconcilerExamples(unittest.TestCase):
    """The worked statement examples."""

    def setUp(self):
        self.reconciler = BalanceReconciler()

    def test_exact_match(self):
        """1200 + 500 - 150 = 1550."""
        result = self.reconciler.reconcile(ReconciliationInput(
            starting_balance=1200.00,
            ending_balance=1550.00,
            transactions=txns(500.00, -150.00),
        ))
        self.assertEqual(result.calculated_ending_balance, Decimal("1550.00"))
        self.assertEqual(result.difference, Decimal("0"))
        self.assertTrue(result.matches)

    def test_one_cent_off_within_tolerance(self):
        """1200 + 500 - 150.01 = 1549.99, one cent short of 1550."""
        result = self.reconciler.reconcile(ReconciliationInput(
            starting_balance=1200.00,
            ending_balance=1550.00,
            transactions=txns(500.00, -150.01),
        ))
        self.assertEqual(result.calculated_ending_balance, Decimal("1549.99"))
        self.assertEqual(result.difference, Decimal("0.01"))
        self.assertTrue(result.matches)

    def test_missing_starting_balance(self):
        """No starting balance gives the insufficient-data result."""
        result = self.reconciler.reconcile(ReconciliationInput(
            starting_balance=None,
            ending_balance=1550.00,
            transactions=[],
        ))
        self.assertIsNone(result.calculated_ending_balance)
        self.assertIsNone(result.difference)
        self.assertFalse(result.matches)
        self.assertFalse(result.is_reconcilable)

    def test_two_cents_off_does_not_match(self):
        result = self.reconciler.reconcile(ReconciliationInput(
            starting_balance=1200.00,
            ending_balance=1550.00,
            transactions=txns(500.00, -150.02),
        ))
        self.assertEqual(result.difference, Decimal("0.02"))
        self.assertFalse(result.matches)

    def test_large_mismatch_sign(self):
        """Difference is stated minus calculated."""
        result = self.reconciler.reconcile(ReconciliationInput(
            starting_balance=100,
            ending_balance=50,
            transactions=txns(25),
        ))
        self.assertEqual(result.calculated_ending_balance, Decimal("125.00"))
        self.assertEqual(result.difference, Decimal("-75.00"))
        self.assertFalse(result.matches)


class TestReconcilerDegradedInput(unittest.TestCase):
    """Missing data maps to defined results, never exceptions."""

    def setUp(self):
        self.reconciler = BalanceReconciler()

    def assertInsufficient(self, result):
        self.assertEqual(result, ReconciliationResult(None, None, False))

    def test_missing_ending_balance(self):
        self.assertInsufficient(self.reconciler.reconcile(ReconciliationInput(
            starting_balance=100, ending_balance=None, transactions=txns(1),
        )))

    def test_missing_both_balances(self):
        self.assertInsufficient(self.reconciler.reconcile(ReconciliationInput()))

    def test_missing_transaction_list(self):
        self.assertInsufficient(self.reconciler.reconcile(ReconciliationInput(
            starting_balance=100, ending_balance=100, transactions=None,
        )))

    def test_non_numeric_balance(self):
        self.assertInsufficient(self.reconciler.reconcile(ReconciliationInput(
            starting_balance="1200.00", ending_balance=1550, transactions=[],
        )))

    def test_non_finite_balance(self):
        self.assertInsufficient(self.reconciler.reconcile(ReconciliationInput(
            starting_balance=float("nan"), ending_balance=1550, transactions=[],
        )))
        self.assertInsufficient(self.reconciler.reconcile(ReconciliationInput(
            starting_balance=100, ending_balance=float("inf"), transactions=[],
        )))

    def test_large_balance_keeps_cents(self):
        result = self.reconciler.reconcile(ReconciliationInput(
            starting_balance=1e27, ending_balance=1e27, transactions=txns(1.0),
        ))
        self.assertEqual(result.calculated_ending_balance,
                         Decimal("1000000000000000000000000001.00"))
        self.assertEqual(result.difference, Decimal("-1.00"))
        self.assertFalse(result.matches)

    def test_balance_beyond_precision(self):
        self.assertInsufficient(self.reconciler.reconcile(ReconciliationInput(
            starting_balance=Decimal("1e500"), ending_balance=Decimal("1e500"),
            transactions=txns(1),
        )))

    def test_empty_transactions_with_equal_balances(self):
        """An empty list is present data, not missing data."""
        result = self.reconciler.reconcile(ReconciliationInput(
            starting_balance=250.5, ending_balance=250.5, transactions=[],
        ))
        self.assertEqual(result.calculated_ending_balance, Decimal("250.50"))
        self.assertTrue(result.matches)

    def test_all_amounts_invalid(self):
        result = self.reconciler.reconcile(ReconciliationInput(
            starting_balance=10, ending_balance=10, transactions=txns(None, "abc"),
        ))
        self.assertTrue(result.matches)
        self.assertEqual(result.valid_transactions, 0)
        self.assertEqual(result.excluded_transactions, 2)


class TestReconcilerFiltering(unittest.TestCase):
    """Malformed amounts are excluded from the sum."""

    def setUp(self):
        self.reconciler = BalanceReconciler()

    def test_invalid_amounts_excluded(self):
        bad_values = [None, "150.00", float("nan"), float("inf"), -math.inf, True, [], {}]
        for bad in bad_values:
            with self.subTest(amount=bad):
                result = self.reconciler.reconcile(ReconciliationInput(
                    starting_balance=1200,
                    ending_balance=1550,
                    transactions=txns(500, bad, -150),
                ))
                self.assertTrue(result.matches)
                self.assertEqual(result.excluded_transactions, 1)
                self.assertEqual(result.valid_transactions, 2)

    def test_decimal_and_int_amounts(self):
        result = self.reconciler.reconcile(ReconciliationInput(
            starting_balance=Decimal("1200.00"),
            ending_balance=1550,
            transactions=txns(Decimal("500.00"), -150),
        ))
        self.assertTrue(result.matches)

    def test_excluded_count_not_serialised(self):
        result = self.reconciler.reconcile(ReconciliationInput(
            starting_balance=0, ending_balance=0, transactions=txns(None),
        ))
        self.assertEqual(set(result.to_dict()), {"calculatedEndingBalance", "difference", "matches"})


class TestReconcilerPrecision(unittest.TestCase):
    """Decimal arithmetic and rounding."""

    def setUp(self):
        self.reconciler = BalanceReconciler()

    def test_no_float_drift_over_many_additions(self):
        """0.1 added 1000 times is exactly 100."""
        result = self.reconciler.reconcile(ReconciliationInput(
            starting_balance=0, ending_balance=100, transactions=txns(*([0.1] * 1000)),
        ))
        self.assertEqual(result.calculated_ending_balance, Decimal("100.00"))
        self.assertEqual(result.difference, Decimal("0"))

    def test_round_half_away_from_zero(self):
        self.assertEqual(round2(Decimal("0.005")), Decimal("0.01"))
        self.assertEqual(round2(Decimal("-0.005")), Decimal("-0.01"))
        self.assertEqual(round2(Decimal("2.675")), Decimal("2.68"))
        self.assertEqual(round2(Decimal("1.004")), Decimal("1.00"))

    def test_stated_balance_rounded_before_difference(self):
        """A stated balance of 100.0149 rounds to 100.01."""
        result = self.reconciler.reconcile(ReconciliationInput(
            starting_balance=100, ending_balance=100.0149, transactions=[],
        ))
        self.assertEqual(result.difference, Decimal("0.01"))
        self.assertTrue(result.matches)

    def test_stated_balance_rounding_up_breaks_tolerance(self):
        """A stated balance of 100.015 rounds to 100.02."""
        result = self.reconciler.reconcile(ReconciliationInput(
            starting_balance=100, ending_balance=100.015, transactions=[],
        ))
        self.assertEqual(result.difference, Decimal("0.02"))
        self.assertFalse(result.matches)


class TestTolerance(unittest.TestCase):
    """The 1.5 cent tolerance boundary."""

    def test_just_inside(self):
        self.assertTrue(is_within_tolerance(Decimal("0.0149")))
        self.assertTrue(is_within_tolerance(0.0149))
        self.assertTrue(is_within_tolerance(Decimal("-0.0149")))

    def test_boundary_is_exclusive(self):
        self.assertFalse(is_within_tolerance(Decimal("0.015")))
        self.assertFalse(is_within_tolerance(0.015))
        self.assertFalse(is_within_tolerance(Decimal("-0.015")))

    def test_zero(self):
        self.assertTrue(is_within_tolerance(0))

    def test_missing(self):
        self.assertFalse(is_within_tolerance(None))


class TestReconcilerProperties(unittest.TestCase):
    """Properties that hold across many statements."""

    STATEMENTS = [
        (Decimal("0"), [Decimal("10.10"), Decimal("-5.05")]),
        (Decimal("1200.00"), [Decimal("500.00"), Decimal("-150.00")]),
        (Decimal("-42.17"), [Decimal("100"), Decimal("-0.01"), Decimal("-57.82")]),
        (Decimal("99999.99"), [Decimal("-99999.99")]),
        (Decimal("12.34"), []),
    ]

    def setUp(self):
        self.reconciler = BalanceReconciler()

    def test_consistent_statements_match(self):
        for start, amounts in self.STATEMENTS:
            with self.subTest(start=start, amounts=amounts):
                end = start + sum(amounts, Decimal("0"))
                result = self.reconciler.reconcile(ReconciliationInput(
                    starting_balance=start, ending_balance=end, transactions=txns(*amounts),
                ))
                self.assertTrue(result.matches)
                self.assertEqual(result.difference, Decimal("0"))

    def test_order_does_not_matter(self):
        start, amounts = self.STATEMENTS[2]
        forward = self.reconciler.reconcile(ReconciliationInput(
            starting_balance=start, ending_balance=0, transactions=txns(*amounts),
        ))
        backward = self.reconciler.reconcile(ReconciliationInput(
            starting_balance=start, ending_balance=0, transactions=txns(*reversed(amounts)),
        ))
        self.assertEqual(forward, backward)

    def test_idempotent(self):
        data = ReconciliationInput(
            starting_balance=1200.00, ending_balance=1550.00, transactions=txns(500.00, None, -150.01),
        )
        first = self.reconciler.reconcile(data)
        second = self.reconciler.reconcile(data)
        self.assertEqual(first, second)
        self.assertEqual(first.to_dict(), second.to_dict())


class TestReconciliationShapes(unittest.TestCase):
    """Conversion to and from the JSON shapes."""

    def test_from_dict_and_to_dict(self):
        data = ReconciliationInput.from_dict({
            "startingBalance": 1200.00,
            "endingBalance": 1550.00,
            "transactions": [
                {"date": "2025-01-02", "description": "Deposit", "amount": 500.00},
                {"date": "2025-01-05", "description": "Rent", "amount": -150.01},
            ],
        })
        result = BalanceReconciler().reconcile(data)
        self.assertEqual(result.to_dict(), {
            "calculatedEndingBalance": 1549.99,
            "difference": 0.01,
            "matches": True,
        })

    def test_null_starting_balance_dict(self):
        data = ReconciliationInput.from_dict({
            "startingBalance": None,
            "endingBalance": 1550.00,
            "transactions": [],
        })
        self.assertEqual(BalanceReconciler().reconcile(data).to_dict(), {
            "calculatedEndingBalance": None,
            "difference": None,
            "matches": False,
        })

    def test_from_dict_without_transactions(self):
        data = ReconciliationInput.from_dict({"startingBalance": 1, "endingBalance": 1})
        self.assertIsNone(data.transactions)

    def test_from_dict_non_object_transaction(self):
        data = ReconciliationInput.from_dict({
            "startingBalance": 0, "endingBalance": 5,
            "transactions": [{"amount": 5}, "junk"],
        })
        result = BalanceReconciler().reconcile(data)
        self.assertTrue(result.matches)
        self.assertEqual(result.excluded_transactions, 1)

    def test_reconcile_statement(self):
        statement = StatementData(
            starting_balance=Decimal("10.00"),
            ending_balance=Decimal("7.50"),
            transactions=txns(Decimal("-2.50")),
        )
        result = BalanceReconciler().reconcile_statement(statement)
        self.assertTrue(result.matches)
        self.assertEqual(result.calculated_ending_balance, Decimal("7.50"))


if __name__ == '__main__':
    unittest.main()
