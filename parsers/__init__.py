"""
Parsers module for bank statement PDFs.
"""
from .base_parser import (
    BaseParser, ExtractionIncomplete, StatementData, Transaction, ValidationIssue
)
from .pdf_parser import ExtractionError, PDFStatementParser, PDFTextExtractor

__all__ = [
    'BaseParser', 'ExtractionIncomplete', 'StatementData', 'Transaction', 'ValidationIssue',
    'ExtractionError', 'PDFStatementParser', 'PDFTextExtractor',
]
