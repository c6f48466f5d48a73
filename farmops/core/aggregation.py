"""Aggregation pipeline: fold records into aggregates by time bucket or entity."""
from __future__ import annotations

from datetime import datetime
from functools import reduce
from typing import Callable, Hashable, Iterable, Protocol, TypeVar

from farmops.core.buckets import bucket_key, bucket_range
from farmops.core.schema import Assignment, Debt, Payment
from farmops.domain.aggregates import AssignmentAggregate, DebtAggregate, PaymentAggregate


class Mergeable(Protocol):
    def merge(self, other): ...


A = TypeVar("A", bound=Mergeable)
R = TypeVar("R")
K = TypeVar("K", bound=Hashable)


def fold(records: Iterable[R], lift: Callable[[R], A], empty: A) -> A:
    return reduce(lambda acc, record: acc.merge(lift(record)), records, empty)


def aggregate_assignments(records: Iterable[Assignment]) -> AssignmentAggregate:
    return fold(records, AssignmentAggregate.from_record, AssignmentAggregate())


def aggregate_payments(records: Iterable[Payment]) -> PaymentAggregate:
    return fold(records, PaymentAggregate.from_record, PaymentAggregate())


def aggregate_debts(records: Iterable[Debt]) -> DebtAggregate:
    return fold(records, DebtAggregate.from_record, DebtAggregate())


def group_by_entity(
    records: Iterable[R],
    key: Callable[[R], K | None],
    lift: Callable[[R], A],
) -> dict[K, A]:
    """Group records by ``key`` and fold each group; ``None`` keys are skipped."""

    groups: dict[K, A] = {}
    for record in records:
        entity = key(record)
        if entity is None:
            continue
        item = lift(record)
        groups[entity] = groups[entity].merge(item) if entity in groups else item
    return groups


def time_series(
    records: Iterable[R],
    timestamp: Callable[[R], datetime | None],
    granularity: str,
    lift: Callable[[R], A],
    empty: A,
    *,
    start: datetime | None = None,
    end: datetime | None = None,
    fill_gaps: bool = True,
) -> list[tuple[str, A]]:
    """Bucketed aggregates ordered chronologically ascending.

    With ``fill_gaps`` and both window bounds given, every bucket of the
    window is present, carrying ``empty`` when no record fell into it.
    """

    buckets = group_by_entity(
        records,
        lambda record: _key_or_none(timestamp(record), granularity),
        lift,
    )
    if fill_gaps and start is not None and end is not None:
        for key in bucket_range(start, end, granularity):
            buckets.setdefault(key, empty)
    return sorted(buckets.items(), key=lambda item: item[0])


def _key_or_none(moment: datetime | None, granularity: str) -> str | None:
    if moment is None:
        return None
    return bucket_key(moment, granularity)


def assignment_series(
    records: Iterable[Assignment],
    granularity: str,
    *,
    start: datetime | None = None,
    end: datetime | None = None,
    fill_gaps: bool = True,
) -> list[tuple[str, AssignmentAggregate]]:
    return time_series(
        records,
        lambda record: record.assignment_date,
        granularity,
        AssignmentAggregate.from_record,
        AssignmentAggregate(),
        start=start,
        end=end,
        fill_gaps=fill_gaps,
    )


def payment_series(
    records: Iterable[Payment],
    granularity: str,
    *,
    start: datetime | None = None,
    end: datetime | None = None,
    fill_gaps: bool = True,
) -> list[tuple[str, PaymentAggregate]]:
    return time_series(
        records,
        lambda record: record.payment_date,
        granularity,
        PaymentAggregate.from_record,
        PaymentAggregate(),
        start=start,
        end=end,
        fill_gaps=fill_gaps,
    )


def assignments_by_worker(records: Iterable[Assignment]) -> dict[int, AssignmentAggregate]:
    return group_by_entity(records, lambda record: record.worker_id, AssignmentAggregate.from_record)


def assignments_by_pitak(records: Iterable[Assignment]) -> dict[int, AssignmentAggregate]:
    return group_by_entity(records, lambda record: record.pitak_id, AssignmentAggregate.from_record)


def payments_by_worker(records: Iterable[Payment]) -> dict[int, PaymentAggregate]:
    return group_by_entity(records, lambda record: record.worker_id, PaymentAggregate.from_record)


def debts_by_worker(records: Iterable[Debt]) -> dict[int, DebtAggregate]:
    return group_by_entity(records, lambda record: record.worker_id, DebtAggregate.from_record)


def latest_first(series: list[tuple[str, A]]) -> list[tuple[str, A]]:
    return list(reversed(series))
