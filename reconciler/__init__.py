"""Reconciliation module for balance verification."""
from reconciler.balance_checker import (
    BalanceReconciler, ReconciliationInput, ReconciliationResult, is_within_tolerance
)

__all__ = ["BalanceReconciler", "ReconciliationInput", "ReconciliationResult", "is_within_tolerance"]
