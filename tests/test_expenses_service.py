from datetime import datetime, timezone

import pytest

from services import expenses_service
from services.expenses_service import InvalidExpenseError
from services.expense_store import InMemoryExpenseStore
from utils.id_generator import TimestampIdGenerator

FIXED_NOW = datetime(2024, 1, 1, 12, 30, 45, 123456, tzinfo=timezone.utc)


def fixed_clock():
    return FIXED_NOW


def test_parse_empty_body_gives_empty_dict():
    assert expenses_service.parse_expense_body(b"") == {}


def test_parse_rejects_infinity():
    with pytest.raises(InvalidExpenseError, match="Invalid JSON body."):
        expenses_service.parse_expense_body(b'{"amount": Infinity}')


def test_parse_returns_decoded_payload():
    assert expenses_service.parse_expense_body(b'{"amount": 3}') == {"amount": 3}


@pytest.mark.parametrize("value", [None, False, 0, 0.0, ""])
def test_falsy_values_are_missing(value):
    body = {"amount": 5, "description": value, "category": "Food", "date": "2024-01-01"}

    with pytest.raises(InvalidExpenseError, match="Missing required field: 'description'"):
        expenses_service.validate_expense(body)


def test_whitespace_text_is_present():
    body = {"amount": 5, "description": " ", "category": "Food", "date": "2024-01-01"}

    expenses_service.validate_expense(body)


def test_create_expense_stores_and_returns_record():
    store = InMemoryExpenseStore()
    body = {"amount": 12, "description": "Taxi", "category": "Transport", "date": "yesterday"}

    expense = expenses_service.create_expense(store, body, TimestampIdGenerator(), clock=fixed_clock)

    assert expense.id == int(FIXED_NOW.timestamp() * 1000)
    assert expense.amount == 12
    assert expense.created_at == "2024-01-01T12:30:45.123Z"
    assert store.list_all() == [expense]


def test_create_expense_stores_nothing_on_invalid_input():
    store = InMemoryExpenseStore()

    with pytest.raises(InvalidExpenseError):
        expenses_service.create_expense(store, {"amount": -5, "description": "x", "category": "y", "date": "z"}, TimestampIdGenerator())

    assert store.count() == 0


def test_same_instant_gets_distinct_ids():
    store = InMemoryExpenseStore()
    generator = TimestampIdGenerator()
    body = {"amount": 1, "description": "Gum", "category": "Food", "date": "2024-01-01"}

    first = expenses_service.create_expense(store, body, generator, clock=fixed_clock)
    second = expenses_service.create_expense(store, body, generator, clock=fixed_clock)

    assert second.id == first.id + 1
    assert first.created_at == second.created_at


def test_format_timestamp_converts_to_utc():
    from datetime import timedelta

    moment = datetime(2024, 6, 1, 14, 0, 0, tzinfo=timezone(timedelta(hours=2)))

    assert expenses_service.format_timestamp(moment) == "2024-06-01T12:00:00.000Z"
