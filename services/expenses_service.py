"""Service layer for handling expense-related logic."""
import logging
import json
import math
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional
from models.expense import Expense
from services.expense_store import ExpenseStore
from utils.id_generator import TimestampIdGenerator

logger = logging.getLogger(__name__)

# Checked in this order; the first missing one is reported
REQUIRED_FIELDS = ('amount', 'description', 'category', 'date')
TEXT_FIELDS = ('description', 'category', 'date')

INVALID_JSON_MESSAGE = "Invalid JSON body."
INVALID_AMOUNT_MESSAGE = "Amount must be a positive number."


class InvalidExpenseError(ValueError):
    """Raised when a request payload cannot become an expense. The message is safe to show to clients."""


def _reject_constant(name: str) -> Any:
    # JSON has no NaN or Infinity literals, the stdlib parser accepts them anyway
    raise ValueError(f"Unsupported JSON constant: {name}")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_missing(value: Any) -> bool:
    """A field counts as missing when it is absent, null, false, zero or an empty string."""
    if value is None or value is False:
        return True
    if _is_number(value):
        return value == 0
    return isinstance(value, str) and value == ""


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision, e.g. 2024-01-01T12:00:00.123Z"""
    return moment.astimezone(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


# --- Parsing & Validation ---

def parse_expense_body(raw_body: bytes) -> Any:
    """
    Decodes a raw request body. An empty body becomes an empty dict.
    Raises InvalidExpenseError for anything that is not valid UTF-8 JSON.
    """
    if not raw_body:
        return {}
    try:
        return json.loads(raw_body.decode('utf-8'), parse_constant=_reject_constant)
    except (UnicodeDecodeError, ValueError) as e:
        logger.warning(f"Could not parse request body as JSON: {e}")
        raise InvalidExpenseError(INVALID_JSON_MESSAGE)


def validate_expense(body: Any) -> None:
    """
    Checks a decoded payload, raising InvalidExpenseError on the first problem found.

    Order matters to clients: presence of amount, description, category and date
    first, then the amount value, then the text fields' types. A payload that is
    not a JSON object has no fields at all.
    """
    fields: Dict[str, Any] = body if isinstance(body, dict) else {}

    for field in REQUIRED_FIELDS:
        if _is_missing(fields.get(field)):
            raise InvalidExpenseError(f"Missing required field: '{field}'")

    amount = fields['amount']
    # 1e400 parses to inf, which cannot be stored or serialized
    if not _is_number(amount) or amount <= 0 or not math.isfinite(amount):
        raise InvalidExpenseError(INVALID_AMOUNT_MESSAGE)

    for field in TEXT_FIELDS:
        if not isinstance(fields[field], str):
            raise InvalidExpenseError(f"Field '{field}' must be a string.")


# --- Store Interaction ---

def get_all_expenses(store: ExpenseStore) -> list:
    """Fetches every stored expense in insertion order."""
    expenses = store.list_all()
    logger.info(f"Fetched {len(expenses)} expenses from the store.")
    return expenses


def create_expense(
    store: ExpenseStore,
    body: Any,
    id_generator: TimestampIdGenerator,
    clock: Optional[Callable[[], datetime]] = None,
) -> Expense:
    """
    Validates a decoded payload, builds the Expense and appends it to the store.
    Nothing is stored unless every check passes.
    """
    validate_expense(body)

    now = (clock or (lambda: datetime.now(timezone.utc)))()
    expense = Expense(
        id=id_generator.next_id(now),
        amount=body['amount'],
        description=body['description'],
        category=body['category'],
        date=body['date'],
        createdAt=format_timestamp(now),
    )
    store.add(expense)
    logger.info(f"Created expense {expense.id}: {expense.description[:30]} ({expense.category}) {expense.amount}")
    return expense
