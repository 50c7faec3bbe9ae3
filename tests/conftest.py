import pytest
from fastapi.testclient import TestClient

from config import Settings
from main import create_app
from services.expense_store import InMemoryExpenseStore


LUNCH = {"amount": 42.5, "description": "Lunch", "category": "Food", "date": "2024-01-01"}


@pytest.fixture
def settings():
    return Settings(cors_origins=["*"], max_body_size=1024, rate_limit="")


@pytest.fixture
def store():
    return InMemoryExpenseStore()


@pytest.fixture
def app(settings, store):
    return create_app(settings=settings, store=store)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def lunch():
    return dict(LUNCH)
