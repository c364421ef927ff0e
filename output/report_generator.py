"""
Report output for reconciled bank statements.

Creates a formatted Excel workbook with two sheets:
1. Summary (account details, balances and the reconciliation verdict)
2. Transactions

or a JSON document with the same content as the HTTP response.
"""
import json
import logging
from typing import Any, List, Tuple

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.utils.dataframe import dataframe_to_rows

from normalizer.amount_parser import to_json_number
from parsers.base_parser import StatementData
from reconciler.balance_checker import ReconciliationResult

logger = logging.getLogger(__name__)

# Style definitions
HEADER_FONT = Font(bold=True, color="FFFFFF")
HEADER_FILL = PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid")
MATCH_FILL = PatternFill(start_color="C6EFCE", end_color="C6EFCE", fill_type="solid")
MISMATCH_FILL = PatternFill(start_color="FFC7CE", end_color="FFC7CE", fill_type="solid")
ALT_ROW_FILL = PatternFill(start_color="F2F2F2", end_color="F2F2F2", fill_type="solid")
DEBIT_FONT = Font(color="C00000")
THIN_BORDER = Border(
    left=Side(style='thin'),
    right=Side(style='thin'),
    top=Side(style='thin'),
    bottom=Side(style='thin')
)
CURRENCY_FORMAT = '#,##0.00'

TRANSACTION_COLUMNS = ["Date", "Description", "Amount"]


def verdict_text(reconciliation: ReconciliationResult) -> str:
    """Human-readable reconciliation verdict."""
    if not reconciliation.is_reconcilable:
        return "Could not reconcile (insufficient data)"
    if reconciliation.matches:
        return "Balances reconcile"
    return "Balances do NOT reconcile"


def generate_report_excel(
    statement: StatementData,
    reconciliation: ReconciliationResult,
    output_path: str,
) -> str:
    """
    Generate an Excel workbook for a reconciled statement.

    Args:
        statement: Extracted statement data
        reconciliation: Reconciliation verdict for the statement
        output_path: Path to save the Excel file

    Returns:
        Path to the generated file
    """
    logger.info("Generating Excel report: %s", output_path)

    wb = Workbook()

    # Remove default sheet
    if 'Sheet' in wb.sheetnames:
        del wb['Sheet']

    _create_summary_sheet(wb, statement, reconciliation)
    _create_transactions_sheet(wb, statement)

    wb.save(output_path)
    logger.info("Excel file saved: %s", output_path)

    return output_path


def generate_report_json(result: Any, output_path: str) -> str:
    """
    Write a processing result as indented JSON.

    Args:
        result: Object with a ``to_dict()`` method
        output_path: Path to save the JSON file

    Returns:
        Path to the generated file
    """
    with open(output_path, 'w', encoding='utf-8') as f:
        json.dump(result.to_dict(), f, indent=2, ensure_ascii=False)
    logger.info("JSON report saved: %s", output_path)
    return output_path


def transactions_dataframe(statement: StatementData) -> pd.DataFrame:
    """Transactions as a DataFrame; invalid amounts become NaN."""
    rows = [
        {
            "Date": txn.date,
            "Description": txn.description,
            "Amount": to_json_number(txn.amount),
        }
        for txn in statement.transactions
    ]
    return pd.DataFrame(rows, columns=TRANSACTION_COLUMNS)


def _create_summary_sheet(
    wb: Workbook,
    statement: StatementData,
    reconciliation: ReconciliationResult,
) -> None:
    """Create the Summary sheet."""
    ws = wb.create_sheet("Summary")

    rows: List[Tuple[str, Any]] = [
        ("Account Holder", statement.account_holder_name or "N/A"),
        ("Address", statement.account_holder_address or "N/A"),
        ("Statement Date", statement.statement_date or "N/A"),
        ("Transactions", len(statement.transactions)),
        ("Starting Balance", to_json_number(statement.starting_balance)),
        ("Ending Balance (Stated)", to_json_number(statement.ending_balance)),
        ("Calculated Ending Balance", to_json_number(reconciliation.calculated_ending_balance)),
        ("Difference", to_json_number(reconciliation.difference)),
    ]

    cell = ws.cell(row=1, column=1, value="Statement Summary")
    cell.font = Font(bold=True, size=12)

    row_idx = 3
    for label, value in rows:
        ws.cell(row=row_idx, column=1, value=label).font = Font(bold=True)
        cell = ws.cell(row=row_idx, column=2, value=value if value is not None else "N/A")
        if isinstance(value, float):
            cell.number_format = CURRENCY_FORMAT
        if label == "Address":
            cell.alignment = Alignment(wrap_text=True, vertical='top')
        row_idx += 1

    # Verdict row
    row_idx += 1
    ws.cell(row=row_idx, column=1, value="Reconciliation").font = Font(bold=True)
    cell = ws.cell(row=row_idx, column=2, value=verdict_text(reconciliation))
    cell.font = Font(bold=True)
    cell.fill = MATCH_FILL if reconciliation.matches else MISMATCH_FILL
    cell.border = THIN_BORDER

    if reconciliation.excluded_transactions:
        row_idx += 1
        ws.cell(row=row_idx, column=1, value="Excluded Transactions")
        ws.cell(row=row_idx, column=2, value=reconciliation.excluded_transactions)

    ws.column_dimensions['A'].width = 28
    ws.column_dimensions['B'].width = 45


def _create_transactions_sheet(wb: Workbook, statement: StatementData) -> None:
    """Create the Transactions sheet."""
    ws = wb.create_sheet("Transactions")
    df = transactions_dataframe(statement)

    for row_idx, row in enumerate(dataframe_to_rows(df, index=False, header=True), 1):
        for col_idx, value in enumerate(row, 1):
            # openpyxl cannot write NaN
            if isinstance(value, float) and pd.isna(value):
                value = None
            cell = ws.cell(row=row_idx, column=col_idx, value=value)

            if row_idx == 1:
                cell.font = HEADER_FONT
                cell.fill = HEADER_FILL
                cell.alignment = Alignment(horizontal='center')
                continue

            if col_idx == 3 and value is not None:
                cell.number_format = CURRENCY_FORMAT
                if value < 0:
                    cell.font = DEBIT_FONT

            if row_idx % 2 == 0:
                cell.fill = ALT_ROW_FILL

    column_widths = [14, 60, 16]
    for col, width in enumerate(column_widths, 1):
        ws.column_dimensions[get_column_letter(col)].width = width

    ws.auto_filter.ref = f"A1:{get_column_letter(len(TRANSACTION_COLUMNS))}{len(df) + 1}"

    # Freeze header row
    ws.freeze_panes = "A2"
