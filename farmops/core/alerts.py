"""Threshold rules producing alerts, insights and recommendations.

Each rule is independent and evaluated against freshly aggregated figures.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Mapping, Sequence

from farmops.core.buckets import days_between
from farmops.core.schema import Debt
from farmops.core.scoring import EfficiencyMetrics, PitakKPIs
from farmops.core.thresholds import Thresholds

# Debts still being collected. A debt already flagged ``overdue`` is left out
# of the overdue count, outstanding balances and the high-debt check; only
# pending or partially paid debts past their due date count as overdue.
OUTSTANDING_DEBT_STATUSES = ("pending", "partially_paid")

COMPLETION_REMEDIAL = (
    "Provide additional training for workers with low completion rates",
    "Review assignment difficulty and adjust as needed",
    "Implement incentives for high completion rates",
)
COMPLETION_MAINTAIN = (
    "Maintain current assignment management practices",
    "Continue monitoring completion rates",
    "Recognize top performers",
)
TREND_REMEDIAL = (
    "Focus on completing active assignments",
    "Review assignment distribution",
    "Consider adjusting luwang targets",
)
TREND_MAINTAIN = (
    "Maintain current assignment completion rate",
    "Optimize worker assignment distribution",
    "Monitor assignment trends regularly",
)
UTILIZATION_REMEDIAL = (
    "Consider reassigning workers to underutilized pitaks",
    "Review pitak status and available luwang",
    "Plan assignments to maximize pitak utilization",
)
UTILIZATION_MAINTAIN = (
    "Pitak utilization is at good levels",
    "Continue monitoring utilization rates",
    "Optimize assignment distribution",
)
COLLECTION_REMEDIAL = (
    "Consider implementing stricter payment terms for new debts",
    "Follow up on debts older than 30 days",
    "Offer payment plans for large balances",
)
COLLECTION_MAINTAIN = (
    "Collection rate is healthy",
    "Continue current collection practices",
    "Monitor aging debts regularly",
)
PENDING_DEBT_REMEDIAL = (
    "Follow up on overdue debts immediately",
    "Consider payment plans for large balances",
    "Review debt collection procedures",
)
PENDING_DEBT_MAINTAIN = (
    "Debt collection is on track",
    "Continue monitoring upcoming due dates",
    "Maintain current collection practices",
)

URGENCY_ORDER = ("critical", "high", "medium", "low")


@dataclass(frozen=True, slots=True)
class Alert:
    type: str
    title: str
    message: str
    priority: str
    timestamp: datetime
    details: list[str] = field(default_factory=list)

    def as_dict(self) -> dict[str, object]:
        data: dict[str, object] = {
            "type": self.type,
            "title": self.title,
            "message": self.message,
            "priority": self.priority,
            "timestamp": self.timestamp,
        }
        if self.details:
            data["details"] = list(self.details)
        return data


def is_overdue(debt: Debt, now: datetime) -> bool:
    return debt.status in OUTSTANDING_DEBT_STATUSES and debt.due_date is not None and debt.due_date < now


def high_debt_workers(debts: Iterable[Debt], names: Mapping[int, str], limit: Decimal) -> list[str]:
    """Names of workers whose outstanding balance sums above ``limit``."""

    balances: dict[int, Decimal] = {}
    for debt in debts:
        if debt.status in OUTSTANDING_DEBT_STATUSES:
            balances[debt.worker_id] = balances.get(debt.worker_id, Decimal("0")) + debt.balance
    return [names.get(worker_id, f"Worker {worker_id}") for worker_id, total in balances.items() if total > limit]


def system_alerts(
    *,
    overdue_debts: int,
    stale_assignments: int,
    high_debt_names: Sequence[str],
    now: datetime,
    thresholds: Thresholds,
) -> list[Alert]:
    alerts: list[Alert] = []
    if overdue_debts > 0:
        alerts.append(
            Alert(
                type="warning",
                title="Overdue Debts",
                message=f"{overdue_debts} debts are overdue",
                priority="high",
                timestamp=now,
            )
        )
    if stale_assignments > 0:
        alerts.append(
            Alert(
                type="info",
                title="Stale Assignments",
                message=(
                    f"{stale_assignments} assignments haven't been updated in "
                    f"{thresholds.stale_assignment_days}+ days"
                ),
                priority="medium",
                timestamp=now,
            )
        )
    if high_debt_names:
        alerts.append(
            Alert(
                type="warning",
                title="High Debt Workers",
                message=f"{len(high_debt_names)} workers have debt over {thresholds.debt_balance_limit:,}",
                priority="medium",
                timestamp=now,
                details=list(high_debt_names),
            )
        )
    return alerts


def completion_recommendations(completion_rate: float, thresholds: Thresholds) -> list[str]:
    if completion_rate < thresholds.completion_target_rate:
        return list(COMPLETION_REMEDIAL)
    return list(COMPLETION_MAINTAIN)


def trend_recommendations(completion_rate: float, thresholds: Thresholds) -> list[str]:
    if completion_rate < thresholds.completion_target_rate:
        return list(TREND_REMEDIAL)
    return list(TREND_MAINTAIN)


def utilization_recommendations(utilization_rate: float, thresholds: Thresholds) -> list[str]:
    if utilization_rate < thresholds.utilization_target_rate:
        return list(UTILIZATION_REMEDIAL)
    return list(UTILIZATION_MAINTAIN)


def collection_recommendations(collection_rate: float, thresholds: Thresholds) -> list[str]:
    if collection_rate < thresholds.debts_collection_target_rate:
        return list(COLLECTION_REMEDIAL)
    return list(COLLECTION_MAINTAIN)


def pending_debt_recommendations(overdue_count: int) -> list[str]:
    if overdue_count > 0:
        return list(PENDING_DEBT_REMEDIAL)
    return list(PENDING_DEBT_MAINTAIN)


@dataclass(frozen=True, slots=True)
class DebtUrgency:
    level: str
    overdue: bool = False
    overdue_days: int = 0


def debt_urgency(due_date: datetime | None, now: datetime, thresholds: Thresholds) -> DebtUrgency:
    """Grade a debt by how far past due it is, or how soon it falls due."""

    if due_date is None:
        return DebtUrgency("low")
    if due_date < now:
        days = days_between(due_date, now)
        if days > thresholds.debts_critical_overdue_days:
            level = "critical"
        elif days > thresholds.debts_high_overdue_days:
            level = "high"
        else:
            level = "medium"
        return DebtUrgency(level, overdue=True, overdue_days=days)
    if days_between(now, due_date) <= thresholds.debts_due_soon_days:
        return DebtUrgency("medium")
    return DebtUrgency("low")


def productivity_recommendations(
    kpis: PitakKPIs,
    completion_rate: float,
    thresholds: Thresholds,
) -> list[dict[str, str]]:
    recommendations: list[dict[str, str]] = []
    if kpis.land_utilization < thresholds.productivity_land_utilization:
        recommendations.append(
            {
                "priority": "high",
                "area": "Land Utilization",
                "recommendation": "Increase assignment frequency to improve land utilization",
                "target": "Achieve >80% land utilization",
            }
        )
    if completion_rate < thresholds.productivity_completion_rate:
        recommendations.append(
            {
                "priority": "medium",
                "area": "Assignment Completion",
                "recommendation": "Review and optimize assignment scheduling",
                "target": "Achieve >85% completion rate",
            }
        )
    if kpis.luwang_per_day < thresholds.productivity_luwang_per_day:
        recommendations.append(
            {
                "priority": "medium",
                "area": "Daily Productivity",
                "recommendation": "Consider adjusting worker assignments or providing incentives",
                "target": f"Increase to >{thresholds.productivity_luwang_per_day:g} luwang per day",
            }
        )
    return recommendations


def efficiency_insights(
    metrics: EfficiencyMetrics,
    benchmark_average: float,
    thresholds: Thresholds,
) -> list[dict[str, str]]:
    insights: list[dict[str, str]] = []
    if metrics.land_efficiency < benchmark_average:
        insights.append(
            {
                "type": "warning",
                "message": (
                    f"Land efficiency ({metrics.land_efficiency:.1f}%) is below average "
                    f"({benchmark_average:.1f}%)"
                ),
                "suggestion": "Consider optimizing assignment scheduling",
            }
        )
    if metrics.labor_efficiency < thresholds.efficiency_labor:
        insights.append(
            {
                "type": "improvement",
                "message": f"Labor efficiency can be improved (currently {metrics.labor_efficiency:.1f}%)",
                "suggestion": "Review worker assignments and provide training",
            }
        )
    if metrics.cost_efficiency > thresholds.efficiency_cost_per_luwang:
        insights.append(
            {
                "type": "cost",
                "message": "Cost per luwang is above optimal range",
                "suggestion": "Review resource allocation and reduce overhead",
            }
        )
    return insights


def efficiency_recommendations(metrics: EfficiencyMetrics, thresholds: Thresholds) -> list[dict[str, str]]:
    recommendations: list[dict[str, str]] = []
    if metrics.land_efficiency < thresholds.efficiency_land_recommendation:
        recommendations.append(
            {
                "priority": "high",
                "action": "Increase land utilization",
                "details": "Schedule more assignments to utilize available land capacity",
                "expected_impact": "+15-20% land efficiency",
            }
        )
    if metrics.labor_efficiency < thresholds.efficiency_labor_recommendation:
        recommendations.append(
            {
                "priority": "medium",
                "action": "Optimize worker assignments",
                "details": "Assign workers based on skill and experience",
                "expected_impact": "+10-15% labor efficiency",
            }
        )
    if metrics.time_efficiency < thresholds.efficiency_time_recommendation:
        recommendations.append(
            {
                "priority": "medium",
                "action": "Reduce assignment completion time",
                "details": "Streamline processes and provide better tools",
                "expected_impact": "Reduce completion time by 20%",
            }
        )
    return recommendations


def daily_recommendations(assignments: int, completed: int, payments: int, thresholds: Thresholds) -> list[str]:
    recommendations: list[str] = []
    if assignments == 0:
        recommendations.append("No assignments today. Consider scheduling new assignments.")
    if assignments > 0 and completed / assignments < 0.5:
        recommendations.append("Low completion rate today. Check on active assignments.")
    if payments == 0:
        recommendations.append("No payments processed today. Review payment schedule.")
    if assignments > thresholds.dashboard_busy_day_assignments and completed < thresholds.dashboard_busy_day_completed:
        recommendations.append(
            "High volume of incomplete assignments. Consider reassigning or providing support."
        )
    if not recommendations:
        recommendations.append("Good progress today. Keep up the good work!")
    return recommendations


def comparison_insights(ranked: Sequence[Mapping[str, object]], gap_threshold: float = 20) -> list[dict[str, str]]:
    """Top performer callout plus every pitak trailing it by more than ``gap_threshold`` points.

    ``ranked`` rows carry ``location`` and ``overall_score`` and are ordered best first.
    """

    if len(ranked) < 2:
        return []
    top = ranked[0]
    top_score = float(top["overall_score"])  # type: ignore[arg-type]
    insights = [
        {
            "type": "performance",
            "message": f"{top['location']} is the top performer with score of {top_score:.1f}",
            "highlight": "Consider replicating their best practices",
        }
    ]
    for row in ranked[1:]:
        gap = top_score - float(row["overall_score"])  # type: ignore[arg-type]
        if gap > gap_threshold:
            insights.append(
                {
                    "type": "opportunity",
                    "message": f"{row['location']} has {gap:.1f} points improvement opportunity",
                    "suggestion": "Review and adopt practices from top performers",
                }
            )
    return insights
