"""
Claude API client for extracting structured data from statement text.
"""
import json
import logging
import re
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from anthropic import Anthropic, APIError

from config import LLM_MAX_INPUT_CHARS, LLM_MAX_TOKENS, LLM_MODEL
from normalizer.amount_parser import parse_amount
from parsers.base_parser import ExtractionIncomplete, StatementData, Transaction

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("startingBalance", "endingBalance", "transactions")

SYSTEM_PROMPT = """You are a data extraction engine for BANK STATEMENTS.

You receive the plain text of a bank statement PDF. Extract the account details,
the opening and closing balances and every transaction.

Return ONLY a JSON object in this exact format, with no markdown and no other text:
{
  "accountHolderName": "<name of the account holder>",
  "accountHolderAddress": "<full postal address, lines joined with newline>",
  "statementDate": "<statement date or closing date of the period, YYYY-MM-DD if possible>",
  "startingBalance": 1200.00,
  "endingBalance": 1550.00,
  "transactions": [
    {"date": "<YYYY-MM-DD if possible>", "description": "<full description>", "amount": -150.00}
  ]
}

Rules:
- amount is NEGATIVE for debits/withdrawals/payments/fees and POSITIVE for credits/deposits
- Balances and amounts are plain numbers: no currency symbols, no thousands separators
- List transactions in the order they appear on the statement
- Do NOT list "balance brought forward", "opening balance", "closing balance" or
  other balance/summary lines as transactions
- Do NOT calculate, correct or invent values; use null for a field you cannot find"""

USER_PROMPT = (
    "Below is the text extracted from a bank statement PDF. "
    "Extract all fields per your instructions. Return a single valid JSON object.\n\n"
    "STATEMENT TEXT:\n"
)


class LLMCallError(Exception):
    """Raised when the language model call fails."""
    pass


class StatementExtractor:
    """
    Uses the Claude API to extract statement fields from PDF text.

    The API key is passed in explicitly; nothing here reads the environment.
    """

    def __init__(
        self,
        api_key: Optional[str],
        model: str = LLM_MODEL,
        max_tokens: int = LLM_MAX_TOKENS,
        max_input_chars: int = LLM_MAX_INPUT_CHARS,
        client: Optional[Any] = None,
    ):
        """
        Initialize the extractor.

        Args:
            api_key: Anthropic API key
            model: Model name
            max_tokens: Upper bound on the response length
            max_input_chars: Statement text beyond this is not sent
            client: Pre-built client (used instead of constructing one)
        """
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self.max_input_chars = max_input_chars
        self._client = client

        if self._client is None and self.api_key:
            # Single best-effort attempt per statement
            self._client = Anthropic(api_key=self.api_key, max_retries=0)
        elif self._client is None:
            logger.warning("No API key provided; LLM extraction is disabled")

    def is_available(self) -> bool:
        """
        Check if the client is available.

        Returns:
            True if the client is initialized and ready
        """
        return self._client is not None

    def build_prompt(self, text: str) -> str:
        """
        Build the user prompt for a statement.

        Args:
            text: Statement text from the PDF

        Returns:
            Prompt string
        """
        if len(text) > self.max_input_chars:
            logger.warning(
                "Statement text truncated from %d to %d characters for the LLM",
                len(text), self.max_input_chars,
            )
            text = text[:self.max_input_chars]
        return USER_PROMPT + text

    def extract(self, text: str) -> Union[StatementData, ExtractionIncomplete]:
        """
        Extract structured statement data from PDF text.

        Args:
            text: Statement text from the PDF

        Returns:
            StatementData when every required field was found, otherwise
            ExtractionIncomplete with the partial data

        Raises:
            LLMCallError: the client is unavailable or the API call failed
        """
        if not self._client:
            raise LLMCallError("No API key configured for the language model")

        logger.info("Requesting statement extraction from %s", self.model)

        try:
            response = self._client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=SYSTEM_PROMPT,
                messages=[
                    {"role": "user", "content": self.build_prompt(text)}
                ]
            )
        except APIError as e:
            logger.error("LLM API error: %s", e)
            raise LLMCallError(str(e)) from e

        response_text = "".join(
            block.text for block in response.content
            if getattr(block, "type", None) == "text"
        ).strip()

        if getattr(response, "stop_reason", None) == "max_tokens":
            logger.warning("LLM response hit max_tokens (%d); JSON may be truncated", self.max_tokens)

        return self.parse_response(response_text)

    def parse_response(self, response_text: str) -> Union[StatementData, ExtractionIncomplete]:
        """
        Parse the JSON response into StatementData.

        Every field is coerced on its own so that one bad field does not
        discard the rest.

        Args:
            response_text: Raw response text

        Returns:
            StatementData or ExtractionIncomplete
        """
        data = _decode_json_object(response_text)
        if data is None:
            logger.error("Failed to parse LLM response as JSON")
            logger.debug("Response was: %s", response_text[:200])
            return ExtractionIncomplete(
                statement=StatementData(),
                missing_fields=list(REQUIRED_FIELDS),
                reason="LLM response was not valid JSON",
            )

        missing: List[str] = []

        starting_balance = parse_amount(_first(data, "startingBalance", "starting_balance", "openingBalance"))
        if starting_balance is None:
            missing.append("startingBalance")

        ending_balance = parse_amount(_first(data, "endingBalance", "ending_balance", "closingBalance"))
        if ending_balance is None:
            missing.append("endingBalance")

        raw_transactions = data.get("transactions")
        transactions: List[Transaction] = []
        if isinstance(raw_transactions, list):
            transactions = _coerce_transactions(raw_transactions)
        else:
            missing.append("transactions")

        statement = StatementData(
            account_holder_name=_as_text(_first(data, "accountHolderName", "account_holder_name")),
            account_holder_address=_as_text(_first(data, "accountHolderAddress", "account_holder_address")),
            statement_date=_as_text(_first(data, "statementDate", "statement_date")),
            transactions=transactions,
            starting_balance=starting_balance,
            ending_balance=ending_balance,
        )

        if missing:
            return ExtractionIncomplete(
                statement=statement,
                missing_fields=missing,
                reason="LLM response did not include every required field",
            )

        logger.info("Extracted %d transaction(s) from the statement", len(transactions))
        return statement


def _decode_json_object(response_text: str) -> Optional[Dict[str, Any]]:
    """Decode the outermost JSON object in the text, or None."""
    text = (response_text or "").strip()

    # The model sometimes wraps the JSON in a markdown fence
    fence = re.search(r'```(?:json)?\s*(.*?)```', text, re.DOTALL)
    if fence:
        text = fence.group(1).strip()

    candidates = [text]
    start, end = text.find("{"), text.rfind("}")
    if start != -1 and end > start:
        candidates.append(text[start:end + 1])

    for candidate in candidates:
        try:
            data = json.loads(candidate, parse_float=Decimal)
        except ValueError:
            continue
        if isinstance(data, dict):
            return data
    return None


def _coerce_transactions(items: List[Any]) -> List[Transaction]:
    transactions = []
    for i, item in enumerate(items):
        if not isinstance(item, dict):
            logger.warning("Dropping transaction %d: expected an object, got %s", i + 1, type(item).__name__)
            continue

        amount = parse_amount(item.get("amount"))
        if amount is None and "amount" not in item:
            # Some responses split the amount into debit/credit
            debit = parse_amount(item.get("debit"))
            credit = parse_amount(item.get("credit"))
            if credit is not None:
                amount = abs(credit)
            elif debit is not None:
                amount = -abs(debit)

        transactions.append(Transaction(
            date=_as_text(item.get("date")),
            description=_as_text(item.get("description")),
            amount=amount,
        ))
    return transactions


def _first(data: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


def _as_text(value: Any) -> str:
    if value is None or isinstance(value, (dict, list)):
        return ""
    return str(value).strip()
