import sys
from datetime import datetime
from decimal import Decimal
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from farmops.core.schema import Assignment, Bukid, Debt, Payment, Pitak, Worker
from farmops.core.thresholds import Thresholds
from farmops.infrastructure import InMemoryRecordStore, StaticSessionResolver

NOW = datetime(2024, 3, 15, 12, 0)


def seed(store: InMemoryRecordStore) -> InMemoryRecordStore:
    """Two sessions; session 1 owns bukid 1 (pitaks 10 and 11), session 2 owns bukid 2 (pitak 20)."""

    store.add_worker(Worker(id=1, name="Juan"))
    store.add_worker(Worker(id=2, name="Maria"))
    store.add_worker(Worker(id=3, name="Pedro", status="inactive"))

    store.add_bukid(Bukid(id=1, name="Bukid Uno", session_id=1))
    store.add_bukid(Bukid(id=2, name="Bukid Dos", session_id=2))
    store.add_pitak(Pitak(id=10, location="North", total_luwang=Decimal("100"), bukid_id=1))
    store.add_pitak(Pitak(id=11, location="South", total_luwang=Decimal("50"), bukid_id=1))
    store.add_pitak(Pitak(id=20, location="Other", total_luwang=Decimal("80"), bukid_id=2))

    store.add_assignment(
        Assignment(
            id=1,
            worker_id=1,
            pitak_id=10,
            session_id=1,
            luwang_count=Decimal("10"),
            status="completed",
            assignment_date=datetime(2024, 3, 13, 8),
            updated_at=datetime(2024, 3, 14, 8),
        )
    )
    store.add_assignment(
        Assignment(
            id=2,
            worker_id=1,
            pitak_id=10,
            session_id=1,
            luwang_count=Decimal("5"),
            status="active",
            assignment_date=datetime(2024, 3, 15, 8),
        )
    )
    store.add_assignment(
        Assignment(
            id=3,
            worker_id=2,
            pitak_id=11,
            session_id=1,
            luwang_count=Decimal("8"),
            status="completed",
            assignment_date=datetime(2024, 3, 14, 9),
        )
    )
    store.add_assignment(
        Assignment(
            id=4,
            worker_id=2,
            pitak_id=10,
            session_id=1,
            luwang_count=Decimal("4"),
            status="cancelled",
            assignment_date=datetime(2024, 3, 13, 10),
        )
    )
    store.add_assignment(
        Assignment(
            id=5,
            worker_id=1,
            pitak_id=20,
            session_id=2,
            luwang_count=Decimal("6"),
            status="completed",
            assignment_date=datetime(2024, 3, 15, 7),
        )
    )

    store.add_payment(
        Payment(
            id=1,
            worker_id=1,
            pitak_id=10,
            session_id=1,
            gross_pay=Decimal("2300"),
            net_pay=Decimal("2300"),
            status="completed",
            payment_date=datetime(2024, 3, 15, 10),
            payment_method="cash",
        )
    )
    store.add_payment(
        Payment(
            id=2,
            worker_id=2,
            pitak_id=11,
            session_id=1,
            gross_pay=Decimal("1840"),
            net_pay=Decimal("1740"),
            total_debt_deduction=Decimal("100"),
            status="completed",
            payment_date=datetime(2024, 3, 14, 11),
            payment_method="gcash",
        )
    )
    store.add_payment(
        Payment(
            id=3,
            worker_id=1,
            pitak_id=10,
            session_id=1,
            gross_pay=Decimal("500"),
            net_pay=Decimal("500"),
            status="pending",
            payment_date=datetime(2024, 3, 15, 9),
        )
    )

    store.add_debt(
        Debt(
            id=1,
            worker_id=2,
            session_id=1,
            original_amount=Decimal("12000"),
            amount=Decimal("12000"),
            balance=Decimal("11000"),
            total_paid=Decimal("1000"),
            date_incurred=datetime(2024, 1, 10),
            due_date=datetime(2024, 3, 1),
            status="partially_paid",
        )
    )
    store.add_debt(
        Debt(
            id=2,
            worker_id=1,
            session_id=1,
            original_amount=Decimal("2000"),
            amount=Decimal("2000"),
            balance=Decimal("2000"),
            date_incurred=datetime(2024, 3, 10),
            due_date=datetime(2024, 4, 1),
            status="pending",
        )
    )
    return store


@pytest.fixture()
def store():
    return InMemoryRecordStore()


@pytest.fixture()
def seeded_store(store):
    return seed(store)


@pytest.fixture()
def service_options():
    """Keyword arguments wiring a service to a fixed clock, session 1 and default thresholds."""

    return {
        "resolver": StaticSessionResolver(1),
        "clock": lambda: NOW,
        "thresholds": Thresholds(),
    }


@pytest.fixture()
def now():
    return NOW
