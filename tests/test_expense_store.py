import threading
from datetime import datetime, timedelta, timezone

from models.expense import Expense
from services.expense_store import InMemoryExpenseStore
from utils.id_generator import TimestampIdGenerator


def make_expense(i):
    return Expense(id=i, amount=1.5, description=f"item {i}", category="Test", date="2024-01-01", createdAt="2024-01-01T00:00:00.000Z")


def test_list_returns_snapshot():
    store = InMemoryExpenseStore()
    store.add(make_expense(1))

    snapshot = store.list_all()
    store.add(make_expense(2))

    assert [e.id for e in snapshot] == [1]
    assert [e.id for e in store.list_all()] == [1, 2]


def test_concurrent_adds_lose_nothing():
    store = InMemoryExpenseStore()
    workers, per_worker = 8, 250

    def add_many(offset):
        for i in range(per_worker):
            store.add(make_expense(offset * per_worker + i + 1))

    threads = [threading.Thread(target=add_many, args=(n,)) for n in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert store.count() == workers * per_worker
    assert len({e.id for e in store.list_all()}) == workers * per_worker


def test_id_generator_is_strictly_increasing_under_threads():
    generator = TimestampIdGenerator()
    moment = datetime(2024, 1, 1, tzinfo=timezone.utc)
    issued = []
    lock = threading.Lock()

    def take():
        for _ in range(200):
            value = generator.next_id(moment)
            with lock:
                issued.append(value)

    threads = [threading.Thread(target=take) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(set(issued)) == len(issued) == 800
    assert generator.last_id == max(issued)


def test_id_generator_follows_the_clock_when_it_advances():
    generator = TimestampIdGenerator()
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)

    first = generator.next_id(start)
    later = generator.next_id(start + timedelta(seconds=1))

    assert later == first + 1000


def test_expense_serializes_created_at_alias():
    dumped = make_expense(7).model_dump(by_alias=True)

    assert dumped["createdAt"] == "2024-01-01T00:00:00.000Z"
    assert list(dumped) == ["id", "amount", "description", "category", "date", "createdAt"]
