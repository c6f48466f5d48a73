"""Composite scores and pitak KPIs.

All sub-metrics are percentages in ``[0, 100]`` unless stated otherwise;
composite scores are rounded and capped at 100.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Mapping, Sequence

from farmops.core.aggregation import aggregate_assignments
from farmops.core.schema import Assignment, Payment
from farmops.core.stats import mean, ratio
from farmops.domain.aggregates import AssignmentAggregate

SECONDS_PER_DAY = 86_400

EFFICIENCY_WEIGHTS: dict[str, float] = {
    "land_efficiency": 0.30,
    "labor_efficiency": 0.25,
    "cost_efficiency": 0.20,
    "time_efficiency": 0.15,
    "resource_utilization": 0.10,
}

COMPARISON_WEIGHTS: dict[str, float] = {
    "productivity": 0.40,
    "efficiency": 0.35,
    "financial": 0.25,
}

CATEGORY_FIELDS = ("completion_rate", "land_utilization", "efficiency")


def capped_score(value: float) -> int:
    return min(int(math.floor(value + 0.5)), 100)


def productivity_score(completion_rate: float, luwang_completion_rate: float, average_luwang: float) -> int:
    """``completion*0.4 + luwang completion*0.3 + min(avg luwang/10, 1)*30``."""

    score = completion_rate * 0.4 + luwang_completion_rate * 0.3 + min(average_luwang / 10, 1) * 30
    return capped_score(score)


def worker_productivity_score(aggregate: AssignmentAggregate) -> int:
    return productivity_score(
        aggregate.completion_rate,
        aggregate.luwang_completion_rate,
        aggregate.average_luwang,
    )


def normalized_cost_efficiency(cost_per_luwang: float) -> float:
    """Lower cost is better, so the cost figure is inverted onto ``[0, 100]``."""

    return max(0.0, 100 - cost_per_luwang * 0.4)


def _days_between(start: datetime, end: datetime) -> int:
    return math.ceil((end - start).total_seconds() / SECONDS_PER_DAY)


def time_efficiency(assignments: Iterable[Assignment], now: datetime) -> float:
    """``100 - min(avg completion days * 10, 100)`` over completed assignments."""

    durations = [
        _days_between(record.assignment_date, record.updated_at or now)
        for record in assignments
        if record.status == "completed"
    ]
    durations = [days for days in durations if days > 0]
    if not durations:
        return 0.0
    return 100 - min(mean(durations) * 10, 100)


def resource_utilization(actual_luwang: Decimal, capacity: Decimal) -> float:
    """Share of 80% of nominal capacity actually assigned, capped at 100."""

    optimal = float(capacity) * 0.8
    if optimal <= 0:
        return 0.0
    return min(float(actual_luwang) / optimal * 100, 100.0)


@dataclass(frozen=True, slots=True)
class EfficiencyMetrics:
    land_efficiency: float = 0.0
    labor_efficiency: float = 0.0
    cost_efficiency: float = 0.0
    time_efficiency: float = 0.0
    resource_utilization: float = 0.0

    @property
    def normalized_cost_efficiency(self) -> float:
        return normalized_cost_efficiency(self.cost_efficiency)

    @property
    def score(self) -> int:
        total = (
            self.land_efficiency * EFFICIENCY_WEIGHTS["land_efficiency"]
            + self.labor_efficiency * EFFICIENCY_WEIGHTS["labor_efficiency"]
            + self.normalized_cost_efficiency * EFFICIENCY_WEIGHTS["cost_efficiency"]
            + self.time_efficiency * EFFICIENCY_WEIGHTS["time_efficiency"]
            + self.resource_utilization * EFFICIENCY_WEIGHTS["resource_utilization"]
        )
        return capped_score(total)

    def as_dict(self) -> dict[str, float]:
        return {
            "land_efficiency": self.land_efficiency,
            "labor_efficiency": self.labor_efficiency,
            "cost_efficiency": self.cost_efficiency,
            "time_efficiency": self.time_efficiency,
            "resource_utilization": self.resource_utilization,
        }


def efficiency_metrics(
    assignments: Sequence[Assignment],
    payments: Iterable[Payment],
    capacity: Decimal,
    now: datetime,
) -> EfficiencyMetrics:
    aggregate = aggregate_assignments(assignments)
    net_pay = sum((payment.net_pay for payment in payments), Decimal("0"))
    return EfficiencyMetrics(
        land_efficiency=ratio(aggregate.completed_luwang, capacity),
        labor_efficiency=aggregate.completion_rate,
        cost_efficiency=ratio(net_pay, aggregate.completed_luwang, scale=1),
        time_efficiency=time_efficiency(assignments, now),
        resource_utilization=resource_utilization(aggregate.total_luwang, capacity),
    )


def category_score(data: Mapping[str, float | None]) -> float:
    """Mean of whichever of completion rate, land utilization and efficiency are present."""

    present = [data[name] for name in CATEGORY_FIELDS if data.get(name) is not None]
    return mean(present)


def overall_comparison_score(productivity: float, efficiency: float, financial: float) -> float:
    return (
        productivity * COMPARISON_WEIGHTS["productivity"]
        + efficiency * COMPARISON_WEIGHTS["efficiency"]
        + financial * COMPARISON_WEIGHTS["financial"]
    )


def luwang_per_day(assignments: Iterable[Assignment]) -> float:
    """Completed luwang divided by the span of completed assignment dates in days."""

    completed = [record for record in assignments if record.status == "completed"]
    if not completed:
        return 0.0
    dates = [record.assignment_date for record in completed]
    span = _days_between(min(dates), max(dates)) or 1
    return float(sum((record.luwang_count for record in completed), Decimal("0"))) / span


def cost_per_luwang(completed_luwang: Decimal, rate_per_luwang: Decimal) -> float:
    if completed_luwang <= 0:
        return 0.0
    return float(completed_luwang * rate_per_luwang / completed_luwang)


@dataclass(frozen=True, slots=True)
class PitakKPIs:
    land_utilization: float
    assignment_efficiency: float
    luwang_per_day: float
    worker_count: int
    cost_per_luwang: float

    def as_dict(self) -> dict[str, float | int]:
        return {
            "land_utilization": self.land_utilization,
            "assignment_efficiency": self.assignment_efficiency,
            "luwang_per_day": self.luwang_per_day,
            "worker_count": self.worker_count,
            "cost_per_luwang": self.cost_per_luwang,
        }


def pitak_kpis(assignments: Sequence[Assignment], capacity: Decimal, rate_per_luwang: Decimal) -> PitakKPIs:
    aggregate = aggregate_assignments(assignments)
    return PitakKPIs(
        land_utilization=ratio(aggregate.completed_luwang, capacity),
        assignment_efficiency=aggregate.completion_rate,
        luwang_per_day=luwang_per_day(assignments),
        worker_count=aggregate.unique_workers,
        cost_per_luwang=cost_per_luwang(aggregate.completed_luwang, rate_per_luwang),
    )


def top_performer_score(completion_rate: float, utilization: float) -> float:
    return completion_rate * 0.6 + utilization * 0.4
