"""Pitak productivity views: overview, details, timelines, efficiency and comparison."""
from __future__ import annotations

import math
from decimal import Decimal
from typing import Iterable, Sequence

from farmops.application.base import AnalyticsService, ViewContext, analytics_view
from farmops.core.aggregation import (
    aggregate_assignments,
    aggregate_payments,
    assignment_series,
    assignments_by_pitak,
    assignments_by_worker,
    latest_first,
)
from farmops.core.alerts import (
    comparison_insights,
    efficiency_insights,
    efficiency_recommendations,
    productivity_recommendations,
)
from farmops.core.ranking import compare_metrics, consistency_score, rank, top_n
from farmops.core.schema import PITAK_STATUSES, Assignment, Payment, Pitak
from farmops.core.scoring import (
    EfficiencyMetrics,
    category_score,
    efficiency_metrics,
    overall_comparison_score,
    pitak_kpis,
    top_performer_score,
    worker_productivity_score,
)
from farmops.core.stats import analyze_trend, growth_rate, mean, percentile, percentile_rank, ratio
from farmops.core.validation import NotFoundError, ValidationError, require_pitak_id, require_pitak_ids, status_filter
from farmops.domain import SessionScope

TIMELINE_GRANULARITIES = ("daily", "weekly", "monthly", "quarterly", "yearly")
COMPARISON_METRICS = ("completion_rate", "land_utilization", "efficiency", "cost_efficiency")


def financial_summary(payments: Iterable[Payment]) -> dict[str, object]:
    aggregate = aggregate_payments(payments)
    return {
        "total_payments": aggregate.count,
        "total_gross_pay": aggregate.gross_pay,
        "total_net_pay": aggregate.net_pay,
        "total_deductions": aggregate.total_deductions,
        "avg_gross_pay": aggregate.average_gross_pay,
        "avg_net_pay": aggregate.average_net_pay,
        "deduction_rate": ratio(aggregate.total_deductions, aggregate.gross_pay),
    }


def timeline_rows(records: Sequence[Assignment], granularity: str, limit: int) -> list[dict[str, object]]:
    """The last ``limit`` populated buckets, oldest first."""

    series = latest_first(assignment_series(records, granularity, fill_gaps=False))[:limit]
    return [
        {
            "period": period,
            "metrics": {
                "total_luwang": aggregate.total_luwang,
                "assignment_count": aggregate.count,
                "completed_assignments": aggregate.completed,
                "active_assignments": aggregate.active,
                "avg_luwang_per_assignment": aggregate.average_luwang,
                "completion_rate": aggregate.completion_rate,
                "productivity_index": aggregate.average_luwang,
            },
        }
        for period, aggregate in reversed(series)
    ]


def assignment_productivity(records: Sequence[Assignment]) -> dict[str, object]:
    aggregate = aggregate_assignments(records)
    return {
        "total_assignments": aggregate.count,
        "completed_assignments": aggregate.completed,
        "active_assignments": aggregate.active,
        "cancelled_assignments": aggregate.cancelled,
        "completion_rate": aggregate.completion_rate,
        "luwang_productivity": {
            "total": aggregate.total_luwang,
            "completed": aggregate.completed_luwang,
            "pending": aggregate.total_luwang - aggregate.completed_luwang,
            "completion_rate": aggregate.luwang_completion_rate,
        },
    }


def _days_active(records: Sequence[Assignment]) -> int:
    if not records:
        return 0
    dates = [record.assignment_date for record in records]
    return math.ceil((max(dates) - min(dates)).total_seconds() / 86_400)


class PitakProductivity(AnalyticsService):
    """Per-pitak productivity, efficiency scoring and cross-pitak comparison."""

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    async def _pitak_records(self, scope: SessionScope, pitak_id: int) -> tuple[list[Assignment], list[Payment]]:
        assignments = await self.store.assignments.find(session_id=scope.session_id, pitak_id=pitak_id)
        payments = await self.store.payments.find(session_id=scope.session_id, pitak_id=pitak_id)
        return assignments, payments

    async def _benchmarks(self, ctx: ViewContext, pitak_id: int) -> dict[str, float]:
        """Land efficiency of the pitak against every active pitak in scope."""

        pitaks = await self.store.pitaks.find(session_id=ctx.session_id, status="active")
        records = await self.store.assignments.find(session_id=ctx.session_id)
        grouped = assignments_by_pitak(records)
        efficiencies = {
            pitak.id: ratio(grouped[pitak.id].completed_luwang if pitak.id in grouped else 0, pitak.total_luwang)
            for pitak in pitaks
        }
        values = list(efficiencies.values())
        current = efficiencies.get(pitak_id, 0.0)
        return {
            "average": mean(values),
            "top25": percentile(values, 75),
            "median": percentile(values, 50),
            "current": current,
            "percentile": percentile_rank(values, current),
        }

    def _historical_trend(self, pitak: Pitak, records: Sequence[Assignment], periods: int) -> dict[str, object]:
        series = latest_first(assignment_series(records, "monthly", fill_gaps=False))[:periods]
        data = [
            {
                "period": period,
                "land_efficiency": ratio(aggregate.completed_luwang, pitak.total_luwang),
                "labor_efficiency": aggregate.completion_rate,
            }
            for period, aggregate in reversed(series)
        ]
        improvement = 0.0
        if len(data) >= 2:
            improvement = growth_rate(data[0]["labor_efficiency"], data[-1]["labor_efficiency"])
        if improvement > 0:
            direction = "improving"
        elif improvement < 0:
            direction = "declining"
        else:
            direction = "stable"
        return {
            "periods": len(data),
            "trend": direction,
            "improvement_rate": improvement,
            "consistency": "medium" if len(data) >= 3 else "low",
            "data": data,
        }

    # ------------------------------------------------------------------
    # views
    # ------------------------------------------------------------------
    @analytics_view("Pitak productivity overview retrieved")
    async def productivity_overview(self, ctx: ViewContext) -> dict[str, object]:
        status = status_filter(ctx.params, PITAK_STATUSES, default="active")
        pitaks = await self.store.pitaks.find(session_id=ctx.session_id, bukid_id=ctx.params.bukid_id, status=status)
        records = await self.store.assignments.find(session_id=ctx.session_id)
        payments = await self.store.payments.find(session_id=ctx.session_id)
        bukids = await self.bukid_names()

        grouped = assignments_by_pitak(records)
        rows: list[dict[str, object]] = []
        for pitak in pitaks:
            aggregate = grouped.get(pitak.id) or aggregate_assignments(())
            worked = aggregate.completed_luwang + aggregate.active_luwang
            rows.append(
                {
                    "pitak_id": pitak.id,
                    "location": pitak.location,
                    "status": pitak.status,
                    "total_luwang": pitak.total_luwang,
                    "bukid_name": bukids.get(pitak.bukid_id) if pitak.bukid_id is not None else None,
                    "metrics": {
                        "completed_luwang": aggregate.completed_luwang,
                        "active_luwang": aggregate.active_luwang,
                        "total_assignments": aggregate.count,
                        "completion_rate": ratio(aggregate.completed_luwang, worked),
                        "average_luwang_per_assignment": ratio(aggregate.completed_luwang, aggregate.count, scale=1),
                        "utilization": ratio(aggregate.completed_luwang, pitak.total_luwang),
                    },
                }
            )

        def performer_score(row: dict) -> float:
            return top_performer_score(row["metrics"]["completion_rate"], row["metrics"]["utilization"])

        top = top_n(rows, performer_score, ctx.params.limit or 5)
        pitak_ids = {pitak.id for pitak in pitaks}
        return {
            "summary": {
                "total_pitaks": len(rows),
                "active_pitaks": sum(1 for pitak in pitaks if pitak.status == "active"),
                "harvested_pitaks": sum(1 for pitak in pitaks if pitak.status == "completed"),
                "total_completed_luwang": sum((row["metrics"]["completed_luwang"] for row in rows), Decimal("0")),
                "average_completion_rate": mean(row["metrics"]["completion_rate"] for row in rows),
                "average_utilization": mean(row["metrics"]["utilization"] for row in rows),
            },
            "pitaks": rows,
            "financial": financial_summary(payment for payment in payments if payment.pitak_id in pitak_ids),
            "top_performers": [
                {
                    "pitak_id": row["pitak_id"],
                    "location": row["location"],
                    "completion_rate": row["metrics"]["completion_rate"],
                    "utilization": row["metrics"]["utilization"],
                    "score": performer_score(row),
                }
                for row in top
            ],
            "filters": {**ctx.filters("bukid_id"), "status": status},
        }

    @analytics_view("Pitak productivity details retrieved", lookup=True)
    async def productivity_details(self, ctx: ViewContext) -> dict[str, object]:
        pitak_id = require_pitak_id(ctx.params)
        pitak = await self.pitak_in_scope(pitak_id, ctx.scope)
        bukid = await self.store.pitaks.get_bukid(pitak.bukid_id) if pitak.bukid_id is not None else None
        records, payments = await self._pitak_records(ctx.scope, pitak_id)
        workers = await self.worker_names()

        productivity = assignment_productivity(records)
        kpis = pitak_kpis(records, pitak.total_luwang, self.thresholds.payroll_rate_per_luwang)
        performance = [
            {
                "worker_id": worker_id,
                "worker_name": workers.get(worker_id),
                "assignment_count": aggregate.count,
                "total_luwang": aggregate.total_luwang,
                "avg_luwang": aggregate.average_luwang,
            }
            for worker_id, aggregate in assignments_by_worker(records).items()
        ]
        return {
            "pitak_info": {
                "id": pitak.id,
                "location": pitak.location,
                "status": pitak.status,
                "total_luwang": pitak.total_luwang,
                "bukid": bukid.name if bukid else None,
                "session": bukid.session_id if bukid else None,
                "created_at": pitak.created_at,
                "updated_at": pitak.updated_at,
            },
            "productivity": {
                "assignments": productivity,
                "workers": performance,
                "timeline": timeline_rows(records, "monthly", ctx.params.limit or 12),
                "kpis": kpis.as_dict(),
            },
            "financial": financial_summary(payments),
            "recommendations": productivity_recommendations(kpis, productivity["completion_rate"], self.thresholds),
            "filters": ctx.filters("pitak_id"),
        }

    @analytics_view("Production timeline retrieved")
    async def production_timeline(self, ctx: ViewContext) -> dict[str, object]:
        pitak_id = require_pitak_id(ctx.params)
        granularity = ctx.params.group_by or "monthly"
        if granularity not in TIMELINE_GRANULARITIES:
            raise ValidationError(f"groupBy must be one of {', '.join(TIMELINE_GRANULARITIES)}")
        limit = ctx.params.limit or 12
        records = await self.store.assignments.find(session_id=ctx.session_id, pitak_id=pitak_id)

        timeline = timeline_rows(records, granularity, limit)
        analysis = analyze_trend([row["metrics"]["total_luwang"] for row in timeline])
        return {
            "timeline": timeline,
            "trend_analysis": analysis.as_dict(),
            "summary": {
                "total_periods": len(timeline),
                "average_luwang_per_period": mean(row["metrics"]["total_luwang"] for row in timeline),
                "average_productivity_index": mean(row["metrics"]["productivity_index"] for row in timeline),
                "trend_direction": analysis.direction,
            },
            "filters": {**ctx.filters("pitak_id"), "group_by": granularity, "limit": limit},
        }

    @analytics_view("Worker productivity data retrieved", lookup=True)
    async def worker_productivity(self, ctx: ViewContext) -> dict[str, object]:
        pitak_id = require_pitak_id(ctx.params)
        await self.pitak_in_scope(pitak_id, ctx.scope)
        records = await self.store.assignments.find(session_id=ctx.session_id, pitak_id=pitak_id)
        workers = {worker.id: worker for worker in await self.store.workers.find()}

        rows: list[dict[str, object]] = []
        for worker_id, aggregate in assignments_by_worker(records).items():
            worker = workers.get(worker_id)
            own = [record for record in records if record.worker_id == worker_id]
            rows.append(
                {
                    "worker_id": worker_id,
                    "worker_name": worker.name if worker else None,
                    "worker_status": worker.status if worker else None,
                    "assignments": {
                        "total": aggregate.count,
                        "completed": aggregate.completed,
                        "active": aggregate.active,
                        "completion_rate": aggregate.completion_rate,
                    },
                    "luwang": {
                        "total": aggregate.total_luwang,
                        "completed": aggregate.completed_luwang,
                        "pending": aggregate.total_luwang - aggregate.completed_luwang,
                        "avg_per_assignment": aggregate.average_luwang,
                        "completion_rate": aggregate.luwang_completion_rate,
                    },
                    "timeline": {
                        "first_assignment": min(record.assignment_date for record in own),
                        "last_assignment": max(record.assignment_date for record in own),
                        "days_active": _days_active(own),
                    },
                    "productivity_score": worker_productivity_score(aggregate),
                }
            )
        rows = top_n(rows, lambda row: row["luwang"]["total"], len(rows))
        scores = [row["productivity_score"] for row in rows]
        high = sum(1 for score in scores if score >= 80)
        medium = sum(1 for score in scores if 60 <= score < 80)
        low = sum(1 for score in scores if score < 60)

        return {
            "workers": rows,
            "summary": {
                "total_workers": len(rows),
                "average_completion_rate": mean(row["assignments"]["completion_rate"] for row in rows),
                "average_luwang_per_worker": mean(row["luwang"]["total"] for row in rows),
                "top_performer": rows[0] if rows else None,
                "efficiency_distribution": {
                    "high": high,
                    "medium": medium,
                    "low": low,
                    "average_score": mean(scores),
                    "distribution": scores,
                },
            },
            "benchmarks": {
                "high_efficiency": high,
                "medium_efficiency": medium,
                "low_efficiency": low,
            },
            "filters": ctx.filters("pitak_id"),
        }

    @analytics_view("Pitak efficiency analysis retrieved", lookup=True)
    async def efficiency_analysis(self, ctx: ViewContext) -> dict[str, object]:
        pitak_id = require_pitak_id(ctx.params)
        pitak = await self.pitak_in_scope(pitak_id, ctx.scope)
        records, payments = await self._pitak_records(ctx.scope, pitak_id)

        metrics = efficiency_metrics(records, payments, pitak.total_luwang, ctx.now)
        trends = self._historical_trend(pitak, records, ctx.params.comparison_periods)
        benchmarks = await self._benchmarks(ctx, pitak_id)
        thresholds = self.thresholds
        return {
            "pitak_info": {
                "id": pitak.id,
                "location": pitak.location,
                "total_luwang": pitak.total_luwang,
                "status": pitak.status,
            },
            "efficiency_metrics": metrics.as_dict(),
            "historical_trends": trends,
            "benchmarks": benchmarks,
            "insights": efficiency_insights(metrics, benchmarks["average"], thresholds),
            "recommendations": efficiency_recommendations(metrics, thresholds),
            "score": metrics.score,
            "filters": ctx.filters("pitak_id", "comparison_periods"),
        }

    @analytics_view("Pitak productivity comparison completed")
    async def compare(self, ctx: ViewContext) -> dict[str, object]:
        pitak_ids = require_pitak_ids(ctx.params)

        entries: list[dict[str, object]] = []
        skipped: list[int] = []
        for pitak_id in pitak_ids:
            try:
                pitak = await self.pitak_in_scope(pitak_id, ctx.scope)
            except NotFoundError:
                skipped.append(pitak_id)
                continue
            bukid = await self.store.pitaks.get_bukid(pitak.bukid_id) if pitak.bukid_id is not None else None
            records, payments = await self._pitak_records(ctx.scope, pitak_id)
            aggregate = aggregate_assignments(records)
            metrics: EfficiencyMetrics = efficiency_metrics(records, payments, pitak.total_luwang, ctx.now)

            productivity = {
                "completion_rate": aggregate.completion_rate,
                "land_utilization": ratio(aggregate.completed_luwang, pitak.total_luwang),
            }
            efficiency = {"efficiency": float(metrics.score)}
            financial = {"efficiency": metrics.normalized_cost_efficiency}
            scores = {
                "productivity": category_score(productivity),
                "efficiency": category_score(efficiency),
                "financial": category_score(financial),
            }
            scores["overall"] = overall_comparison_score(scores["productivity"], scores["efficiency"], scores["financial"])
            entries.append(
                {
                    "pitak_id": pitak_id,
                    "info": {
                        "location": pitak.location,
                        "status": pitak.status,
                        "bukid": bukid.name if bukid else None,
                        "session": bukid.session_id if bukid else None,
                    },
                    "productivity": productivity,
                    "efficiency": {**metrics.as_dict(), "efficiency": metrics.score},
                    "financial": {**financial_summary(payments), "efficiency": metrics.normalized_cost_efficiency},
                    "score": metrics.score,
                    "scores": scores,
                }
            )

        ranked = rank(entries, lambda entry: entry["scores"]["overall"])
        pitaks = [
            {**entry.item, "rankings": {"overall_rank": entry.rank, "percentile": entry.percentile}}  # type: ignore[dict-item]
            for entry in ranked
        ]
        metric_rows = [
            {
                "completion_rate": row["productivity"]["completion_rate"],
                "land_utilization": row["productivity"]["land_utilization"],
                "efficiency": row["score"],
                "cost_efficiency": row["efficiency"]["cost_efficiency"],
            }
            for row in pitaks
        ]
        scores = [float(row["score"]) for row in pitaks]
        return {
            "pitaks": pitaks,
            "summary": {
                "average_score": mean(scores),
                "best_performer": pitaks[0] if pitaks else None,
                "worst_performer": pitaks[-1] if pitaks else None,
                "consistency": consistency_score(scores),
            },
            "insights": comparison_insights(
                [{"location": row["info"]["location"], "overall_score": row["scores"]["overall"]} for row in pitaks]
            ),
            "metrics_comparison": compare_metrics(metric_rows, COMPARISON_METRICS),
            "skipped_pitak_ids": skipped,
            "filters": {**ctx.filters(), "pitak_ids": pitak_ids},
        }
