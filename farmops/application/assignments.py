"""Assignment analytics views."""
from __future__ import annotations

import math
from datetime import timedelta
from decimal import Decimal

from farmops.application.base import AnalyticsService, ViewContext, analytics_view
from farmops.core.aggregation import (
    aggregate_assignments,
    assignment_series,
    assignments_by_pitak,
    assignments_by_worker,
)
from farmops.core.alerts import completion_recommendations, trend_recommendations, utilization_recommendations
from farmops.core.buckets import start_of_day, start_of_month, start_of_week
from farmops.core.ranking import bottom_n, categorize, top_n
from farmops.core.schema import PITAK_STATUSES
from farmops.core.stats import growth_rate, mean, ratio
from farmops.core.validation import status_filter
from farmops.domain import AssignmentAggregate

COMPLETION_BANDS = (("excellent", 90), ("good", 75), ("average", 50))
UTILIZATION_BANDS = (("high", 80), ("medium", 50), ("low", 20))


def _bucket_row(period: str, aggregate: AssignmentAggregate) -> dict[str, object]:
    return {
        "period": period,
        "assignment_count": aggregate.count,
        "completed_count": aggregate.completed,
        "active_count": aggregate.active,
        "cancelled_count": aggregate.cancelled,
        "total_luwang": aggregate.total_luwang,
        "unique_workers": aggregate.unique_workers,
        "unique_pitaks": aggregate.unique_pitaks,
        "completion_rate": aggregate.completion_rate,
        "average_luwang": aggregate.average_luwang,
    }


class AssignmentAnalytics(AnalyticsService):
    """Assignment counts, trends, luwang totals, completion and pitak utilization."""

    @analytics_view("Assignment overview retrieved")
    async def overview(self, ctx: ViewContext) -> dict[str, object]:
        now = ctx.now
        records = await self.store.assignments.find(session_id=ctx.session_id)
        total_workers = await self.store.workers.count(statuses=["active"])
        total_pitaks = len(await self.store.pitaks.find(session_id=ctx.session_id, status="active"))

        summary = aggregate_assignments(records)
        active = aggregate_assignments(record for record in records if record.status == "active")

        today_start = start_of_day(now)
        today_end = today_start + timedelta(days=1)
        today = sum(1 for record in records if today_start <= record.assignment_date < today_end)
        this_week = sum(1 for record in records if record.assignment_date >= start_of_week(now))
        this_month = sum(1 for record in records if record.assignment_date >= start_of_month(now))

        return {
            "summary": {
                "total_assignments": summary.count,
                "active_assignments": summary.active,
                "completed_assignments": summary.completed,
                "cancelled_assignments": summary.cancelled,
                "completion_rate": summary.completion_rate,
            },
            "period_metrics": {
                "today": today,
                "this_week": this_week,
                "this_month": this_month,
                "daily_average": this_month / now.day,
            },
            "luwang_metrics": {
                "total": summary.total_luwang,
                "average": summary.average_luwang,
                "maximum": summary.max_luwang or Decimal("0"),
                "minimum": summary.min_luwang or Decimal("0"),
                "average_per_worker": ratio(summary.total_luwang, total_workers, scale=1),
            },
            "utilization": {
                "workers": {
                    "active": active.unique_workers,
                    "total": total_workers,
                    "utilization_rate": ratio(active.unique_workers, total_workers),
                },
                "pitaks": {
                    "active": active.unique_pitaks,
                    "total": total_pitaks,
                    "utilization_rate": ratio(active.unique_pitaks, total_pitaks),
                },
            },
            "status_breakdown": {
                "active": {"count": summary.active, "total_luwang": summary.active_luwang},
                "completed": {"count": summary.completed, "total_luwang": summary.completed_luwang},
                "cancelled": {"count": summary.cancelled, "total_luwang": summary.cancelled_luwang},
            },
            "filters": ctx.filters(),
        }

    @analytics_view("Assignment trend data retrieved")
    async def trend(self, ctx: ViewContext) -> dict[str, object]:
        window = ctx.window
        records = await self.store.assignments.find(
            session_id=ctx.session_id,
            worker_id=ctx.params.worker_id,
            pitak_id=ctx.params.pitak_id,
            start=window.start,
            end=window.end,
        )
        series = assignment_series(
            records,
            window.granularity,
            start=window.start,
            end=window.end,
            fill_gaps=ctx.params.fill_gaps,
        )
        rows = [_bucket_row(period, aggregate) for period, aggregate in series]
        total = aggregate_assignments(records)
        buckets = len(rows)

        assignment_growth = 0.0
        if buckets >= 2:
            assignment_growth = growth_rate(rows[-2]["assignment_count"], rows[-1]["assignment_count"])

        populated = [row for row in rows if row["assignment_count"]]
        peaks = top_n(populated, lambda row: row["assignment_count"], ctx.params.limit or 5)

        return {
            "period": window.as_dict(),
            "trend": rows,
            "summary": {
                "total_assignments": total.count,
                "total_completed": total.completed,
                "total_luwang": total.total_luwang,
                "total_unique_workers": total.unique_workers,
                "total_unique_pitaks": total.unique_pitaks,
                "overall_completion_rate": total.completion_rate,
                "average_assignments_per_period": ratio(total.count, buckets, scale=1),
                "average_luwang_per_period": ratio(total.total_luwang, buckets, scale=1),
                "average_luwang_per_assignment": total.average_luwang,
            },
            "growth_metrics": {
                "assignment_growth_rate": assignment_growth,
                "average_completion_rate": mean(row["completion_rate"] for row in rows),
                "worker_utilization": mean(row["unique_workers"] for row in rows),
            },
            "peak_periods": [
                {
                    "period": row["period"],
                    "assignment_count": row["assignment_count"],
                    "completion_rate": row["completion_rate"],
                    "total_luwang": row["total_luwang"],
                }
                for row in peaks
            ],
            "recommendations": trend_recommendations(total.completion_rate, self.thresholds),
            "filters": ctx.filters("worker_id", "pitak_id", "fill_gaps"),
        }

    @analytics_view("Luwang summary retrieved")
    async def luwang_summary(self, ctx: ViewContext) -> dict[str, object]:
        window = ctx.window
        records = await self.store.assignments.find(
            session_id=ctx.session_id,
            worker_id=ctx.params.worker_id,
            pitak_id=ctx.params.pitak_id,
            start=window.start,
            end=window.end,
        )
        workers = await self.worker_names()
        pitaks = {pitak.id: pitak for pitak in await self.store.pitaks.find()}
        bukids = await self.bukid_names()
        limit = ctx.params.limit or 10

        total = aggregate_assignments(records)
        daily = assignment_series(records, "daily", fill_gaps=False)
        daily_rows = [
            {
                "date": period,
                "luwang": aggregate.total_luwang,
                "assignments": aggregate.count,
                "average_luwang": aggregate.average_luwang,
            }
            for period, aggregate in daily
        ]
        daily_average = mean(row["luwang"] for row in daily_rows)

        by_worker = [
            {
                "worker_id": worker_id,
                "worker_name": workers.get(worker_id),
                "total_luwang": aggregate.total_luwang,
                "completed_luwang": aggregate.completed_luwang,
                "active_luwang": aggregate.active_luwang,
                "assignment_count": aggregate.count,
                "average_luwang": aggregate.average_luwang,
                "completion_rate": aggregate.luwang_completion_rate,
            }
            for worker_id, aggregate in assignments_by_worker(records).items()
        ]
        by_pitak = []
        for pitak_id, aggregate in assignments_by_pitak(records).items():
            pitak = pitaks.get(pitak_id)
            by_pitak.append(
                {
                    "pitak_id": pitak_id,
                    "pitak_location": pitak.location if pitak else None,
                    "bukid_name": bukids.get(pitak.bukid_id) if pitak and pitak.bukid_id is not None else None,
                    "total_luwang": aggregate.total_luwang,
                    "assignment_count": aggregate.count,
                    "average_luwang": aggregate.average_luwang,
                }
            )

        return {
            "period": window.as_dict(),
            "summary": {
                "total_luwang": total.total_luwang,
                "completed_luwang": total.completed_luwang,
                "active_luwang": total.active_luwang,
                "assignment_count": total.count,
                "average_luwang_per_assignment": total.average_luwang,
                "completion_rate": total.luwang_completion_rate,
            },
            "daily_trend": daily_rows,
            "averages": {
                "daily": daily_average,
                "weekly": daily_average * 7,
                "monthly": daily_average * 30,
            },
            "by_worker": by_worker,
            "by_pitak": by_pitak,
            "top_performers": top_n(by_worker, lambda row: row["total_luwang"], limit),
            "top_pitaks": top_n(by_pitak, lambda row: row["total_luwang"], limit),
            "filters": ctx.filters("worker_id", "pitak_id"),
        }

    @analytics_view("Assignment completion rate analysis retrieved")
    async def completion_rate(self, ctx: ViewContext) -> dict[str, object]:
        window = ctx.window
        records = await self.store.assignments.find(session_id=ctx.session_id, start=window.start, end=window.end)
        workers = await self.worker_names()
        limit = ctx.params.limit or 10

        rows = [
            {
                "worker_id": worker_id,
                "worker_name": workers.get(worker_id),
                "total_assignments": aggregate.count,
                "completed_assignments": aggregate.completed,
                "active_assignments": aggregate.active,
                "cancelled_assignments": aggregate.cancelled,
                "completion_rate": aggregate.completion_rate,
                "average_luwang": aggregate.average_luwang,
            }
            for worker_id, aggregate in assignments_by_worker(records).items()
            if aggregate.count >= ctx.params.min_assignments
        ]
        rows = top_n(rows, lambda row: row["completed_assignments"], len(rows))

        total_assignments = sum(row["total_assignments"] for row in rows)
        total_completed = sum(row["completed_assignments"] for row in rows)
        overall_rate = ratio(total_completed, total_assignments)

        categories = categorize(rows, lambda row: row["completion_rate"], COMPLETION_BANDS, "needs_improvement")
        daily = [
            {
                "date": period,
                "total_assignments": aggregate.count,
                "completed_assignments": aggregate.completed,
                "completion_rate": aggregate.completion_rate,
            }
            for period, aggregate in assignment_series(records, "daily", fill_gaps=False)
        ]
        bottom_rate = self.thresholds.completion_bottom_rate
        lagging = bottom_n(
            [row for row in rows if row["completion_rate"] < bottom_rate],
            lambda row: row["completion_rate"],
            limit,
        )

        return {
            "period": window.as_dict(),
            "overall_metrics": {
                "total_workers": len(rows),
                "total_assignments": total_assignments,
                "total_completed": total_completed,
                "total_active": sum(row["active_assignments"] for row in rows),
                "total_cancelled": sum(row["cancelled_assignments"] for row in rows),
                "overall_completion_rate": overall_rate,
                "average_completion_rate": mean(row["completion_rate"] for row in rows),
                "average_assignments_per_worker": ratio(total_assignments, len(rows), scale=1),
            },
            "worker_completion": rows,
            "categories": {
                name: {"count": band["count"], "workers": band["items"], "percentage": band["percentage"]}
                for name, band in categories.items()
            },
            "daily_trend": daily,
            "correlation_data": [
                {
                    "worker_name": row["worker_name"],
                    "completion_rate": row["completion_rate"],
                    "average_luwang": row["average_luwang"],
                }
                for row in rows
            ],
            "needs_improvement": lagging,
            "recommendations": completion_recommendations(overall_rate, self.thresholds),
            "filters": ctx.filters("min_assignments"),
        }

    @analytics_view("Pitak utilization analysis retrieved")
    async def pitak_utilization(self, ctx: ViewContext) -> dict[str, object]:
        status = status_filter(ctx.params, PITAK_STATUSES, default="active")
        now = ctx.now
        thresholds = self.thresholds
        pitaks = await self.store.pitaks.find(session_id=ctx.session_id, bukid_id=ctx.params.bukid_id, status=status)
        bukids = await self.bukid_names()

        rows: list[dict[str, object]] = []
        for pitak in pitaks:
            records = await self.store.assignments.find(session_id=ctx.session_id, pitak_id=pitak.id)
            aggregate = aggregate_assignments(records)
            last = max((record.assignment_date for record in records), default=None)
            idle_days = math.ceil((now - last).total_seconds() / 86_400) if last is not None else None
            rows.append(
                {
                    "pitak_id": pitak.id,
                    "location": pitak.location,
                    "bukid_name": bukids.get(pitak.bukid_id, "N/A") if pitak.bukid_id is not None else "N/A",
                    "total_luwang": pitak.total_luwang,
                    "status": pitak.status,
                    "utilization": {
                        "total_assignments": aggregate.count,
                        "active_assignments": aggregate.active,
                        "completed_assignments": aggregate.completed,
                        "total_luwang_assigned": aggregate.total_luwang,
                        "utilization_rate": ratio(aggregate.total_luwang, pitak.total_luwang),
                        "unique_workers": aggregate.unique_workers,
                        "last_assignment": last,
                        "days_since_last_assignment": idle_days,
                    },
                }
            )
        rows = top_n(rows, lambda row: row["utilization"]["utilization_rate"], len(rows))

        capacity = sum((pitak.total_luwang for pitak in pitaks), Decimal("0"))
        assigned = sum((row["utilization"]["total_luwang_assigned"] for row in rows), Decimal("0"))
        total_assignments = sum(row["utilization"]["total_assignments"] for row in rows)
        overall_rate = ratio(assigned, capacity)

        categories = categorize(
            rows, lambda row: row["utilization"]["utilization_rate"], UTILIZATION_BANDS, "underutilized"
        )
        needs_attention = [
            row
            for row in rows
            if row["utilization"]["utilization_rate"] < thresholds.utilization_needs_attention_rate
            or (row["utilization"]["days_since_last_assignment"] or 0) > thresholds.utilization_idle_days
        ][:10]

        return {
            "pitak_utilization": rows,
            "overall_metrics": {
                "total_pitaks": len(rows),
                "total_luwang": capacity,
                "total_assigned_luwang": assigned,
                "overall_utilization_rate": overall_rate,
                "average_utilization_rate": mean(row["utilization"]["utilization_rate"] for row in rows),
                "total_assignments": total_assignments,
                "total_active_assignments": sum(row["utilization"]["active_assignments"] for row in rows),
                "average_assignments_per_pitak": ratio(total_assignments, len(rows), scale=1),
                "average_workers_per_pitak": mean(row["utilization"]["unique_workers"] for row in rows),
            },
            "categories": {
                name: {"count": band["count"], "pitaks": band["items"], "percentage": band["percentage"]}
                for name, band in categories.items()
            },
            "most_utilized": rows[: ctx.params.limit or 10],
            "needs_attention": needs_attention,
            "recommendations": utilization_recommendations(overall_rate, thresholds),
            "filters": {**ctx.filters("bukid_id"), "status": status},
        }
