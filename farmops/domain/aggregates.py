"""Aggregate value objects folded from raw records.

Each aggregate is immutable; ``merge`` combines two partial results so that
any grouping (time bucket, worker, pitak) is built with a plain reduce.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from farmops.core.schema import Assignment, Debt, Payment
from farmops.core.stats import ratio

ZERO = Decimal("0")


def _min(left: Decimal | None, right: Decimal | None) -> Decimal | None:
    if left is None:
        return right
    if right is None:
        return left
    return min(left, right)


def _max(left: Decimal | None, right: Decimal | None) -> Decimal | None:
    if left is None:
        return right
    if right is None:
        return left
    return max(left, right)


@dataclass(frozen=True, slots=True)
class AssignmentAggregate:
    count: int = 0
    active: int = 0
    completed: int = 0
    cancelled: int = 0
    total_luwang: Decimal = ZERO
    active_luwang: Decimal = ZERO
    completed_luwang: Decimal = ZERO
    cancelled_luwang: Decimal = ZERO
    max_luwang: Decimal | None = None
    min_luwang: Decimal | None = None
    worker_ids: frozenset[int] = field(default_factory=frozenset)
    pitak_ids: frozenset[int] = field(default_factory=frozenset)

    @classmethod
    def from_record(cls, record: Assignment) -> "AssignmentAggregate":
        luwang = record.luwang_count
        return cls(
            count=1,
            active=int(record.status == "active"),
            completed=int(record.status == "completed"),
            cancelled=int(record.status == "cancelled"),
            total_luwang=luwang,
            active_luwang=luwang if record.status == "active" else ZERO,
            completed_luwang=luwang if record.status == "completed" else ZERO,
            cancelled_luwang=luwang if record.status == "cancelled" else ZERO,
            max_luwang=luwang,
            min_luwang=luwang,
            worker_ids=frozenset({record.worker_id}),
            pitak_ids=frozenset({record.pitak_id}),
        )

    def merge(self, other: "AssignmentAggregate") -> "AssignmentAggregate":
        return AssignmentAggregate(
            count=self.count + other.count,
            active=self.active + other.active,
            completed=self.completed + other.completed,
            cancelled=self.cancelled + other.cancelled,
            total_luwang=self.total_luwang + other.total_luwang,
            active_luwang=self.active_luwang + other.active_luwang,
            completed_luwang=self.completed_luwang + other.completed_luwang,
            cancelled_luwang=self.cancelled_luwang + other.cancelled_luwang,
            max_luwang=_max(self.max_luwang, other.max_luwang),
            min_luwang=_min(self.min_luwang, other.min_luwang),
            worker_ids=self.worker_ids | other.worker_ids,
            pitak_ids=self.pitak_ids | other.pitak_ids,
        )

    @property
    def completion_rate(self) -> float:
        return ratio(self.completed, self.count)

    @property
    def luwang_completion_rate(self) -> float:
        return ratio(self.completed_luwang, self.total_luwang)

    @property
    def average_luwang(self) -> float:
        return ratio(self.total_luwang, self.count, scale=1)

    @property
    def unique_workers(self) -> int:
        return len(self.worker_ids)

    @property
    def unique_pitaks(self) -> int:
        return len(self.pitak_ids)

    def status_counts(self) -> dict[str, int]:
        return {"active": self.active, "completed": self.completed, "cancelled": self.cancelled}


@dataclass(frozen=True, slots=True)
class PaymentAggregate:
    count: int = 0
    completed: int = 0
    pending: int = 0
    gross_pay: Decimal = ZERO
    net_pay: Decimal = ZERO
    debt_deductions: Decimal = ZERO
    other_deductions: Decimal = ZERO
    max_net_pay: Decimal | None = None
    worker_ids: frozenset[int] = field(default_factory=frozenset)

    @classmethod
    def from_record(cls, record: Payment) -> "PaymentAggregate":
        return cls(
            count=1,
            completed=int(record.status == "completed"),
            pending=int(record.status == "pending"),
            gross_pay=record.gross_pay,
            net_pay=record.net_pay,
            debt_deductions=record.total_debt_deduction,
            other_deductions=record.other_deductions,
            max_net_pay=record.net_pay,
            worker_ids=frozenset({record.worker_id}),
        )

    def merge(self, other: "PaymentAggregate") -> "PaymentAggregate":
        return PaymentAggregate(
            count=self.count + other.count,
            completed=self.completed + other.completed,
            pending=self.pending + other.pending,
            gross_pay=self.gross_pay + other.gross_pay,
            net_pay=self.net_pay + other.net_pay,
            debt_deductions=self.debt_deductions + other.debt_deductions,
            other_deductions=self.other_deductions + other.other_deductions,
            max_net_pay=_max(self.max_net_pay, other.max_net_pay),
            worker_ids=self.worker_ids | other.worker_ids,
        )

    @property
    def total_deductions(self) -> Decimal:
        return self.debt_deductions + self.other_deductions

    @property
    def average_net_pay(self) -> float:
        return ratio(self.net_pay, self.count, scale=1)

    @property
    def average_gross_pay(self) -> float:
        return ratio(self.gross_pay, self.count, scale=1)

    @property
    def unique_workers(self) -> int:
        return len(self.worker_ids)


@dataclass(frozen=True, slots=True)
class DebtAggregate:
    count: int = 0
    original_amount: Decimal = ZERO
    amount: Decimal = ZERO
    balance: Decimal = ZERO
    total_paid: Decimal = ZERO
    by_status: tuple[tuple[str, int, Decimal, Decimal], ...] = ()
    worker_ids: frozenset[int] = field(default_factory=frozenset)

    @classmethod
    def from_record(cls, record: Debt) -> "DebtAggregate":
        return cls(
            count=1,
            original_amount=record.original_amount,
            amount=record.amount,
            balance=record.balance,
            total_paid=record.total_paid,
            by_status=((record.status, 1, record.amount, record.balance),),
            worker_ids=frozenset({record.worker_id}),
        )

    def merge(self, other: "DebtAggregate") -> "DebtAggregate":
        statuses: dict[str, tuple[int, Decimal, Decimal]] = {}
        for status, count, amount, balance in self.by_status + other.by_status:
            seen = statuses.get(status, (0, ZERO, ZERO))
            statuses[status] = (seen[0] + count, seen[1] + amount, seen[2] + balance)
        return DebtAggregate(
            count=self.count + other.count,
            original_amount=self.original_amount + other.original_amount,
            amount=self.amount + other.amount,
            balance=self.balance + other.balance,
            total_paid=self.total_paid + other.total_paid,
            by_status=tuple((status, *values) for status, values in statuses.items()),
            worker_ids=self.worker_ids | other.worker_ids,
        )

    @property
    def collection_rate(self) -> float:
        return ratio(self.total_paid, self.amount)

    @property
    def average_balance(self) -> float:
        return ratio(self.balance, self.count, scale=1)

    def status_breakdown(self) -> list[dict[str, object]]:
        return [
            {"status": status, "count": count, "total_amount": amount, "total_balance": balance}
            for status, count, amount, balance in self.by_status
        ]
