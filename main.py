#!/usr/bin/env python3
"""
Statement Reconciler - Main Entry Point

Parses a bank statement PDF, extracts the account details, balances and
transactions with Claude, and checks that the transactions reconcile with
the stated opening and closing balances.

Usage:
    python main.py --input <statement.pdf> [--output <report.xlsx|report.json>] [options]

Examples:
    python main.py --input statement.pdf
    python main.py --input statement.pdf --output report.xlsx --api-key $ANTHROPIC_API_KEY
"""
import argparse
import logging
import os
import sys
from pathlib import Path

from config import LLM_MODEL, get_api_key, get_config
from extractor.llm_client import LLMCallError, StatementExtractor
from normalizer.amount_parser import format_currency
from output.report_generator import generate_report_excel, generate_report_json, verdict_text
from parsers.pdf_parser import ExtractionError
from processor import ProcessingResult, StatementProcessor, UploadValidationError

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_NOT_RECONCILED = 2


def parse_arguments(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Extract and reconcile a bank statement PDF.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py --input statement.pdf
  python main.py --input statement.pdf --output report.xlsx
  python main.py --input statement.pdf --output report.json --model claude-3-5-sonnet-latest

Exit codes:
  0 - balances reconcile
  1 - error (missing file, unreadable PDF, LLM failure)
  2 - balances do not reconcile, or could not be reconciled

Environment Variables:
  ANTHROPIC_API_KEY - Claude API key for statement extraction
  LLM_MODEL         - Model used for extraction
        """
    )

    parser.add_argument(
        '--input', '-i',
        required=True,
        help='Path to the bank statement PDF'
    )
    parser.add_argument(
        '--output', '-o',
        default=None,
        help='Optional report path (.xlsx or .json)'
    )
    parser.add_argument(
        '--api-key', '-k',
        default=None,
        help='Anthropic API key (or set ANTHROPIC_API_KEY env var)'
    )
    parser.add_argument(
        '--model', '-m',
        default=None,
        help=f'Model used for extraction (default: {LLM_MODEL})'
    )
    parser.add_argument(
        '--show-text',
        action='store_true',
        help='Print the raw text snippet extracted from the PDF'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose output'
    )

    return parser.parse_args(argv)


def print_result(result: ProcessingResult, show_text: bool = False) -> None:
    """Print a human-readable summary of a processed statement."""
    statement = result.statement
    reconciliation = result.reconciliation

    print(f"\n{result.message}")

    if show_text and statement.raw_pdf_text:
        print("\n--- Raw Extracted Text (Snippet) ---")
        print(statement.raw_pdf_text)

    print("\n--- Extracted Information ---")
    print(f"Account holder: {statement.account_holder_name or 'N/A'}")
    print(f"Address: {statement.account_holder_address or 'N/A'}")
    print(f"Statement date: {statement.statement_date or 'N/A'}")
    print(f"Starting balance: {format_currency(statement.starting_balance)}")
    print(f"Ending balance (stated): {format_currency(statement.ending_balance)}")
    print(f"Transactions: {len(statement.transactions)}")

    for txn in statement.transactions[:20]:
        print(f"  {txn.date:<12} {txn.description[:50]:<50} {format_currency(txn.amount):>14}")
    if len(statement.transactions) > 20:
        print(f"  ... and {len(statement.transactions) - 20} more")

    if result.validation_issues:
        print(f"\nValidation warnings ({len(result.validation_issues)}):")
        for issue in result.validation_issues[:10]:
            print(f"  - {issue.message}")
        if len(result.validation_issues) > 10:
            print(f"  ... and {len(result.validation_issues) - 10} more")

    print("\n--- Balance Reconciliation ---")
    print(f"Stated ending balance: {format_currency(statement.ending_balance)}")
    print(f"Calculated ending balance: {format_currency(reconciliation.calculated_ending_balance)}")
    print(f"Difference: {format_currency(reconciliation.difference)}")
    print(f"Result: {verdict_text(reconciliation)}")


def resolve_log_level(verbose: bool, config):
    """CLI log level: DEBUG with --verbose, else LOG_LEVEL, else WARNING."""
    if verbose:
        return logging.DEBUG
    return config.get("log_level") or "WARNING"


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_arguments(argv)

    config = get_config()
    logging.basicConfig(
        level=resolve_log_level(args.verbose, config),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    # Validate input file
    if not os.path.exists(args.input):
        print(f"Error: Input file not found: {args.input}")
        return EXIT_ERROR

    if Path(args.input).suffix.lower() != '.pdf':
        print(f"Error: Expected a .pdf file, got: {args.input}")
        return EXIT_ERROR

    api_key = args.api_key or get_api_key()
    if not api_key:
        print("Warning: No API key provided. Only the PDF text will be extracted; "
              "balances cannot be reconciled.")

    print(f"\n{'='*60}")
    print("Statement Reconciler")
    print(f"{'='*60}")
    print(f"Input file: {args.input}")
    if args.output:
        print(f"Output file: {args.output}")
    print(f"{'='*60}")

    extractor = StatementExtractor(
        api_key=api_key,
        model=args.model or config.get("llm_model", LLM_MODEL),
        max_tokens=config.get("llm_max_tokens"),
        max_input_chars=config.get("llm_max_input_chars"),
    )
    processor = StatementProcessor(
        extractor=extractor,
        snippet_chars=config.get("raw_text_snippet_chars"),
    )

    with open(args.input, 'rb') as f:
        content = f.read()

    try:
        result = processor.process(content, os.path.basename(args.input))
    except UploadValidationError as e:
        print(f"Error: {e}")
        return EXIT_ERROR
    except ExtractionError as e:
        print(f"Error processing PDF file content: {e}")
        return EXIT_ERROR
    except LLMCallError as e:
        print(f"Error calling the language model: {e}")
        return EXIT_ERROR

    print_result(result, show_text=args.show_text)

    if args.output:
        if Path(args.output).suffix.lower() == '.json':
            generate_report_json(result, args.output)
        else:
            generate_report_excel(result.statement, result.reconciliation, args.output)
        print(f"\nReport saved to: {args.output}")

    print(f"\n{'='*60}\n")

    return EXIT_OK if result.reconciliation.matches else EXIT_NOT_RECONCILED


if __name__ == "__main__":
    sys.exit(main())
