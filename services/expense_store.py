"""Storage for expense records."""
import logging
import threading
from abc import ABC, abstractmethod
from typing import List

from models.expense import Expense

logger = logging.getLogger(__name__)


class ExpenseStore(ABC):
    """Append-only, insertion-ordered collection of expenses."""

    @abstractmethod
    def add(self, expense: Expense) -> Expense:
        """Appends one record and returns it."""

    @abstractmethod
    def list_all(self) -> List[Expense]:
        """Returns every stored record in insertion order."""

    @abstractmethod
    def count(self) -> int:
        ...


class InMemoryExpenseStore(ExpenseStore):
    """
    Keeps expenses in a list owned by this object.

    Everything is lost when the process goes away. A single lock guards the
    list so concurrent writers can neither corrupt it nor drop an element.
    """

    def __init__(self) -> None:
        self._expenses: List[Expense] = []
        self._lock = threading.Lock()

    def add(self, expense: Expense) -> Expense:
        with self._lock:
            self._expenses.append(expense)
            total = len(self._expenses)
        logger.debug(f"Stored expense {expense.id}. Store now holds {total} records.")
        return expense

    def list_all(self) -> List[Expense]:
        with self._lock:
            return list(self._expenses)

    def count(self) -> int:
        with self._lock:
            return len(self._expenses)
