"""
Balance Reconciliation Module.

Checks that a statement is internally consistent:
1. Opening and closing balances must both be present
2. Transactions with a malformed amount are left out of the sum
3. Opening balance plus the transaction total must equal the closing
   balance to within 1.5 cents
"""
import logging
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import Any, Dict, List, Optional, Sequence

from config import RECONCILIATION_TOLERANCE
from normalizer.amount_parser import to_decimal, to_json_number
from parsers.base_parser import StatementData, Transaction

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal("0.01")
TOLERANCE = Decimal(RECONCILIATION_TOLERANCE)

# Enough digits for any float balance (up to ~1.8e308) to the cent
PRECISION = 400


def round2(value: Decimal) -> Decimal:
    """Round to cents, halves away from zero."""
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def is_within_tolerance(difference: Any) -> bool:
    """True when ``difference`` is strictly inside the 1.5 cent tolerance."""
    value = to_decimal(difference)
    if value is None:
        return False
    return abs(value) < TOLERANCE


@dataclass
class ReconciliationInput:
    """Balances and transactions for one statement."""
    starting_balance: Any = None
    ending_balance: Any = None
    transactions: Optional[Sequence[Transaction]] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReconciliationInput":
        """Build from ``{startingBalance, endingBalance, transactions}``."""
        raw_transactions = data.get("transactions")
        transactions = None
        if isinstance(raw_transactions, list):
            transactions = [
                Transaction.from_dict(item) if isinstance(item, dict)
                else Transaction(date="", description="", amount=None)
                for item in raw_transactions
            ]
        return cls(
            starting_balance=data.get("startingBalance"),
            ending_balance=data.get("endingBalance"),
            transactions=transactions,
        )

    @classmethod
    def from_statement(cls, statement: StatementData) -> "ReconciliationInput":
        return cls(
            starting_balance=statement.starting_balance,
            ending_balance=statement.ending_balance,
            transactions=statement.transactions,
        )


@dataclass
class ReconciliationResult:
    """Verdict of a statement reconciliation."""
    calculated_ending_balance: Optional[Decimal]
    difference: Optional[Decimal]
    matches: bool
    # Diagnostics, not part of the serialised result
    valid_transactions: int = field(default=0, repr=False)
    excluded_transactions: int = field(default=0, repr=False)

    @property
    def is_reconcilable(self) -> bool:
        """False when there was not enough data to reconcile."""
        return self.calculated_ending_balance is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "calculatedEndingBalance": to_json_number(self.calculated_ending_balance),
            "difference": to_json_number(self.difference),
            "matches": self.matches,
        }


class BalanceReconciler:
    """
    Reconciles a statement's opening balance and transactions against its
    closing balance.

    The reconciler holds no per-call state, so a single instance can be
    shared between requests.
    """

    def reconcile(self, data: ReconciliationInput) -> ReconciliationResult:
        """
        Reconcile one statement.

        Args:
            data: Starting balance, ending balance and transactions

        Returns:
            ReconciliationResult. Missing balances or a missing transaction
            list produce a result with no figures and ``matches=False``.
        """
        starting = to_decimal(data.starting_balance)
        ending = to_decimal(data.ending_balance)

        if starting is None or ending is None or data.transactions is None:
            logger.info(
                "Insufficient data to reconcile (starting balance: %s, "
                "ending balance: %s, transactions: %s)",
                "present" if starting is not None else "missing",
                "present" if ending is not None else "missing",
                "present" if data.transactions is not None else "missing",
            )
            return ReconciliationResult(
                calculated_ending_balance=None,
                difference=None,
                matches=False,
            )

        amounts = self._valid_amounts(data.transactions)
        excluded = len(data.transactions) - len(amounts)
        if excluded:
            logger.warning(
                "Excluded %d of %d transaction(s) with a missing or non-numeric amount",
                excluded, len(data.transactions),
            )

        try:
            with localcontext() as ctx:
                ctx.prec = PRECISION
                total = sum(amounts, Decimal("0"))
                calculated = round2(starting + total)
                stated = round2(ending)
                difference = round2(stated - calculated)
                matches = is_within_tolerance(difference)
        except InvalidOperation:
            logger.warning(
                "Balances too large to reconcile to the cent (starting %s, ending %s)",
                starting, ending,
            )
            return ReconciliationResult(
                calculated_ending_balance=None,
                difference=None,
                matches=False,
            )

        logger.info(
            "Reconciliation %s: calculated %s, stated %s, difference %s",
            "PASS" if matches else "FAIL", calculated, stated, difference,
        )

        return ReconciliationResult(
            calculated_ending_balance=calculated,
            difference=difference,
            matches=matches,
            valid_transactions=len(amounts),
            excluded_transactions=excluded,
        )

    def reconcile_statement(self, statement: StatementData) -> ReconciliationResult:
        """Reconcile an extracted statement."""
        return self.reconcile(ReconciliationInput.from_statement(statement))

    @staticmethod
    def _valid_amounts(transactions: Sequence[Transaction]) -> List[Decimal]:
        amounts = []
        for txn in transactions:
            amount = to_decimal(getattr(txn, "amount", None))
            if amount is not None:
                amounts.append(amount)
        return amounts
