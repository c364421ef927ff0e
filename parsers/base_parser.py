"""
Data model and abstract base class for statement parsers.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional

from normalizer.amount_parser import is_finite_number, to_json_number


@dataclass
class Transaction:
    """
    A single statement line as extracted upstream.

    ``date`` and ``description`` are opaque strings. ``amount`` is signed:
    negative for a debit/withdrawal, positive for a credit/deposit. It is
    left as extracted, so it may be missing or malformed.
    """
    date: str
    description: str
    amount: Any = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert transaction to its JSON shape."""
        return {
            'date': self.date,
            'description': self.description,
            'amount': to_json_number(self.amount) if self.has_valid_amount else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Transaction':
        """Create transaction from its JSON shape."""
        return cls(
            date=str(data.get('date') or ''),
            description=str(data.get('description') or ''),
            amount=data.get('amount'),
        )

    @property
    def has_valid_amount(self) -> bool:
        """Check if the amount is a finite number."""
        return is_finite_number(self.amount)

    @property
    def is_debit(self) -> bool:
        """Check if this is a debit transaction."""
        return self.has_valid_amount and self.amount < 0

    @property
    def is_credit(self) -> bool:
        """Check if this is a credit transaction."""
        return self.has_valid_amount and self.amount > 0


@dataclass
class StatementData:
    """
    Structured data extracted from one bank statement.
    """
    account_holder_name: str = ""
    account_holder_address: str = ""
    statement_date: str = ""
    transactions: List[Transaction] = field(default_factory=list)
    starting_balance: Optional[Decimal] = None
    ending_balance: Optional[Decimal] = None
    raw_pdf_text: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the ``extractedData`` JSON shape."""
        data = {
            'accountHolderName': self.account_holder_name,
            'accountHolderAddress': self.account_holder_address,
            'statementDate': self.statement_date,
            'transactions': [txn.to_dict() for txn in self.transactions],
            'startingBalance': to_json_number(self.starting_balance),
            'endingBalance': to_json_number(self.ending_balance),
        }
        if self.raw_pdf_text:
            data['rawPdfText'] = self.raw_pdf_text
        return data


@dataclass
class ExtractionIncomplete:
    """
    Extraction that did not yield every required field.

    ``statement`` holds whatever could be recovered; reconciling it gives
    the "insufficient data" result when balances are missing.
    """
    statement: StatementData
    missing_fields: List[str] = field(default_factory=list)
    reason: str = ""

    @property
    def message(self) -> str:
        if self.missing_fields:
            return f"{self.reason} (missing: {', '.join(self.missing_fields)})"
        return self.reason


@dataclass
class ValidationIssue:
    """
    Represents a validation issue found in extracted transactions.
    """
    index: int
    issue_type: str
    message: str
    severity: str = "warning"  # "warning" or "error"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'index': self.index,
            'issueType': self.issue_type,
            'message': self.message,
            'severity': self.severity,
        }


def validate_transactions(transactions: List[Transaction]) -> List[ValidationIssue]:
    """
    Check extracted transactions for missing or suspicious fields.

    Args:
        transactions: Transactions in statement order

    Returns:
        List of ValidationIssue objects
    """
    issues = []

    for i, txn in enumerate(transactions):
        # Check for missing date
        if not str(txn.date or '').strip():
            issues.append(ValidationIssue(
                index=i,
                issue_type="missing_date",
                message=f"Transaction {i+1} has no date",
            ))

        # Check for empty description
        if not str(txn.description or '').strip():
            issues.append(ValidationIssue(
                index=i,
                issue_type="missing_description",
                message=f"Transaction {i+1} has no description",
            ))

        # Check for missing or malformed amount
        if not txn.has_valid_amount:
            issues.append(ValidationIssue(
                index=i,
                issue_type="invalid_amount",
                message=f"Transaction {i+1} has no valid amount and is excluded from reconciliation",
                severity="error",
            ))
        elif txn.amount == 0:
            issues.append(ValidationIssue(
                index=i,
                issue_type="zero_amount",
                message=f"Transaction {i+1} has a zero amount",
            ))

    return issues


class BaseParser(ABC):
    """
    Abstract base class for statement parsers.
    """

    def __init__(self):
        self._statement: Optional[StatementData] = None
        self._validation_issues: List[ValidationIssue] = []

    @abstractmethod
    def parse(self) -> StatementData:
        """
        Parse the statement and return the extracted data.

        Returns:
            StatementData object
        """
        pass

    def validate(self) -> List[ValidationIssue]:
        """
        Validate the parsed transactions and return any issues found.

        Returns:
            List of ValidationIssue objects
        """
        transactions = self._statement.transactions if self._statement else []
        self._validation_issues = validate_transactions(transactions)
        return self._validation_issues

    @property
    def statement(self) -> Optional[StatementData]:
        """Get the parsed statement."""
        return self._statement

    @property
    def validation_issues(self) -> List[ValidationIssue]:
        """Get validation issues."""
        return self._validation_issues

    def get_summary(self) -> Dict[str, Any]:
        """
        Get a summary of the parsed transactions.

        Returns:
            Dictionary with summary statistics
        """
        return summarize_transactions(self._statement.transactions if self._statement else [])


def summarize_transactions(transactions: List[Transaction]) -> Dict[str, Any]:
    """
    Totals and counts over the transactions with a valid amount.
    """
    valid = [t for t in transactions if t.has_valid_amount]
    total_debits = sum((-Decimal(str(t.amount)) for t in valid if t.is_debit), Decimal("0"))
    total_credits = sum((Decimal(str(t.amount)) for t in valid if t.is_credit), Decimal("0"))

    return {
        'total_transactions': len(transactions),
        'valid_transactions': len(valid),
        'total_debits': total_debits,
        'total_credits': total_credits,
        'net_flow': total_credits - total_debits,
        'debit_count': sum(1 for t in valid if t.is_debit),
        'credit_count': sum(1 for t in valid if t.is_credit),
    }
