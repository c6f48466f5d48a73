"""Record store contracts and the in-memory implementation.

Every query method is a coroutine; the analytics views await each call and
never assume two calls observe the same snapshot of the store.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Protocol

from farmops.core.schema import Assignment, Bukid, Debt, Payment, Pitak, Worker


class AssignmentQuery(Protocol):
    async def find(
        self,
        *,
        session_id: int | None = None,
        worker_id: int | None = None,
        pitak_id: int | None = None,
        statuses: Iterable[str] | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        updated_before: datetime | None = None,
        updated_after: datetime | None = None,
        created_after: datetime | None = None,
    ) -> list[Assignment]: ...


class WorkerQuery(Protocol):
    async def get(self, worker_id: int) -> Worker | None: ...

    async def find(self, *, statuses: Iterable[str] | None = None) -> list[Worker]: ...

    async def count(self, *, statuses: Iterable[str] | None = None) -> int: ...


class PitakQuery(Protocol):
    async def get(self, pitak_id: int) -> Pitak | None: ...

    async def find(
        self,
        *,
        session_id: int | None = None,
        bukid_id: int | None = None,
        status: str | None = None,
    ) -> list[Pitak]: ...

    async def get_bukid(self, bukid_id: int) -> Bukid | None: ...


class PaymentQuery(Protocol):
    async def find(
        self,
        *,
        session_id: int | None = None,
        worker_id: int | None = None,
        pitak_id: int | None = None,
        statuses: Iterable[str] | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        created_after: datetime | None = None,
    ) -> list[Payment]: ...


class DebtQuery(Protocol):
    async def find(
        self,
        *,
        session_id: int | None = None,
        worker_id: int | None = None,
        statuses: Iterable[str] | None = None,
        incurred_start: datetime | None = None,
        incurred_end: datetime | None = None,
    ) -> list[Debt]: ...


@dataclass(slots=True)
class RecordStore:
    """The five collections the analytics views read from."""

    assignments: AssignmentQuery
    workers: WorkerQuery
    pitaks: PitakQuery
    payments: PaymentQuery
    debts: DebtQuery


def _within(value: datetime | None, start: datetime | None, end: datetime | None) -> bool:
    if start is None and end is None:
        return True
    if value is None:
        return False
    if start is not None and value < start:
        return False
    if end is not None and value > end:
        return False
    return True


def _matches(value: object, expected: object | None) -> bool:
    return expected is None or value == expected


def _status_set(statuses: Iterable[str] | None) -> set[str] | None:
    return None if statuses is None else set(statuses)


class InMemoryAssignmentQuery:
    def __init__(self, rows: list[Assignment]) -> None:
        self._rows = rows

    async def find(
        self,
        *,
        session_id: int | None = None,
        worker_id: int | None = None,
        pitak_id: int | None = None,
        statuses: Iterable[str] | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        updated_before: datetime | None = None,
        updated_after: datetime | None = None,
        created_after: datetime | None = None,
    ) -> list[Assignment]:
        wanted = _status_set(statuses)
        rows = [
            row
            for row in self._rows
            if _matches(row.session_id, session_id)
            and _matches(row.worker_id, worker_id)
            and _matches(row.pitak_id, pitak_id)
            and (wanted is None or row.status in wanted)
            and _within(row.assignment_date, start, end)
            and (updated_before is None or (row.updated_at is not None and row.updated_at < updated_before))
            and (updated_after is None or (row.updated_at is not None and row.updated_at >= updated_after))
            and (created_after is None or (row.created_at is not None and row.created_at >= created_after))
        ]
        return sorted(rows, key=lambda row: (row.assignment_date, row.id))


class InMemoryWorkerQuery:
    def __init__(self, rows: dict[int, Worker]) -> None:
        self._rows = rows

    async def get(self, worker_id: int) -> Worker | None:
        return self._rows.get(worker_id)

    async def find(self, *, statuses: Iterable[str] | None = None) -> list[Worker]:
        wanted = _status_set(statuses)
        return [row for row in self._rows.values() if wanted is None or row.status in wanted]

    async def count(self, *, statuses: Iterable[str] | None = None) -> int:
        return len(await self.find(statuses=statuses))


class InMemoryPitakQuery:
    def __init__(self, rows: dict[int, Pitak], bukids: dict[int, Bukid]) -> None:
        self._rows = rows
        self._bukids = bukids

    def _session_of(self, pitak: Pitak) -> int | None:
        bukid = self._bukids.get(pitak.bukid_id) if pitak.bukid_id is not None else None
        return bukid.session_id if bukid else None

    async def get(self, pitak_id: int) -> Pitak | None:
        return self._rows.get(pitak_id)

    async def find(
        self,
        *,
        session_id: int | None = None,
        bukid_id: int | None = None,
        status: str | None = None,
    ) -> list[Pitak]:
        return [
            row
            for row in self._rows.values()
            if _matches(self._session_of(row), session_id)
            and _matches(row.bukid_id, bukid_id)
            and _matches(row.status, status)
        ]

    async def get_bukid(self, bukid_id: int) -> Bukid | None:
        return self._bukids.get(bukid_id)


class InMemoryPaymentQuery:
    def __init__(self, rows: list[Payment]) -> None:
        self._rows = rows

    async def find(
        self,
        *,
        session_id: int | None = None,
        worker_id: int | None = None,
        pitak_id: int | None = None,
        statuses: Iterable[str] | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        created_after: datetime | None = None,
    ) -> list[Payment]:
        wanted = _status_set(statuses)
        rows = [
            row
            for row in self._rows
            if _matches(row.session_id, session_id)
            and _matches(row.worker_id, worker_id)
            and _matches(row.pitak_id, pitak_id)
            and (wanted is None or row.status in wanted)
            and _within(row.payment_date, start, end)
            and (created_after is None or (row.created_at is not None and row.created_at >= created_after))
        ]
        return sorted(rows, key=lambda row: (row.payment_date or datetime.min, row.id))


class InMemoryDebtQuery:
    def __init__(self, rows: list[Debt]) -> None:
        self._rows = rows

    async def find(
        self,
        *,
        session_id: int | None = None,
        worker_id: int | None = None,
        statuses: Iterable[str] | None = None,
        incurred_start: datetime | None = None,
        incurred_end: datetime | None = None,
    ) -> list[Debt]:
        wanted = _status_set(statuses)
        return [
            row
            for row in self._rows
            if _matches(row.session_id, session_id)
            and _matches(row.worker_id, worker_id)
            and (wanted is None or row.status in wanted)
            and _within(row.date_incurred, incurred_start, incurred_end)
        ]


class InMemoryRecordStore(RecordStore):
    """Simple in-memory store for fast iteration and tests."""

    def __init__(self) -> None:
        self._assignments: list[Assignment] = []
        self._workers: dict[int, Worker] = {}
        self._pitaks: dict[int, Pitak] = {}
        self._bukids: dict[int, Bukid] = {}
        self._payments: list[Payment] = []
        self._debts: list[Debt] = []
        super().__init__(
            assignments=InMemoryAssignmentQuery(self._assignments),
            workers=InMemoryWorkerQuery(self._workers),
            pitaks=InMemoryPitakQuery(self._pitaks, self._bukids),
            payments=InMemoryPaymentQuery(self._payments),
            debts=InMemoryDebtQuery(self._debts),
        )

    # ------------------------------------------------------------------
    # seeding helpers
    # ------------------------------------------------------------------
    def add_assignment(self, record: Assignment) -> None:
        self._assignments.append(record)

    def add_worker(self, record: Worker) -> None:
        self._workers[record.id] = record

    def add_bukid(self, record: Bukid) -> None:
        self._bukids[record.id] = record

    def add_pitak(self, record: Pitak) -> None:
        self._pitaks[record.id] = record

    def add_payment(self, record: Payment) -> None:
        self._payments.append(record)

    def add_debt(self, record: Debt) -> None:
        self._debts.append(record)

    def counts(self) -> dict[str, int]:
        return {
            "assignments": len(self._assignments),
            "workers": len(self._workers),
            "bukids": len(self._bukids),
            "pitaks": len(self._pitaks),
            "payments": len(self._payments),
            "debts": len(self._debts),
        }

    # ------------------------------------------------------------------
    # testing helpers
    # ------------------------------------------------------------------
    def reset(self) -> None:
        self._assignments.clear()
        self._workers.clear()
        self._pitaks.clear()
        self._bukids.clear()
        self._payments.clear()
        self._debts.clear()
