"""Live dashboard views: today's activity, comparisons, feeds and system alerts."""
from __future__ import annotations

from collections import Counter
from datetime import datetime, timedelta
from decimal import Decimal

from farmops.application.base import AnalyticsService, ViewContext, analytics_view
from farmops.core.aggregation import (
    aggregate_assignments,
    aggregate_debts,
    aggregate_payments,
    assignment_series,
    assignments_by_worker,
    debts_by_worker,
    group_by_entity,
    payment_series,
    payments_by_worker,
)
from farmops.core.alerts import (
    OUTSTANDING_DEBT_STATUSES,
    URGENCY_ORDER,
    Alert,
    daily_recommendations,
    debt_urgency,
    high_debt_workers,
    is_overdue,
    pending_debt_recommendations,
)
from farmops.core.alerts import system_alerts as build_system_alerts
from farmops.core.buckets import days_between, start_of_day
from farmops.core.ranking import top_n
from farmops.core.schema import ASSIGNMENT_STATUSES, DEBT_STATUSES, Pitak
from farmops.core.stats import mean, ratio
from farmops.core.validation import status_filter
from farmops.domain import PaymentAggregate, SessionScope

STATUS_COLORS = {"completed": "green", "active": "blue", "cancelled": "red"}
STATUS_PROGRESS = {"completed": 100, "active": 50}


def day_change(today: float, yesterday: float) -> float:
    """Percentage change against yesterday; 100 when yesterday had nothing and today has something."""

    if yesterday > 0:
        return (today - yesterday) / yesterday * 100
    return 100.0 if today > 0 else 0.0


def _pitak_location(pitaks: dict[int, Pitak], pitak_id: int) -> str:
    pitak = pitaks.get(pitak_id)
    return (pitak.location if pitak else None) or "Unknown"


def _hour(key: str) -> int:
    return int(key[11:13])


class LiveDashboard(AnalyticsService):
    """Snapshot of today's operations."""

    async def collect_alerts(self, scope: SessionScope, now: datetime) -> list[Alert]:
        thresholds = self.thresholds
        debts = await self.store.debts.find(session_id=scope.session_id, statuses=OUTSTANDING_DEBT_STATUSES)
        stale = await self.store.assignments.find(
            session_id=scope.session_id,
            statuses=["active"],
            updated_before=now - timedelta(days=thresholds.stale_assignment_days),
        )
        names = await self.worker_names({debt.worker_id for debt in debts})
        return build_system_alerts(
            overdue_debts=sum(1 for debt in debts if is_overdue(debt, now)),
            stale_assignments=len(stale),
            high_debt_names=high_debt_workers(debts, names, thresholds.debt_balance_limit),
            now=now,
            thresholds=thresholds,
        )

    @analytics_view("Live dashboard data retrieved")
    async def live_dashboard(self, ctx: ViewContext) -> dict[str, object]:
        now = ctx.now
        sid = ctx.session_id
        thresholds = self.thresholds
        today_start = start_of_day(now)
        recent_since = now - timedelta(hours=thresholds.dashboard_recent_activity_hours)

        today_records = await self.store.assignments.find(session_id=sid, start=today_start)
        active_workers = await self.store.workers.count(statuses=["active"])
        today_payments = await self.store.payments.find(session_id=sid, statuses=["completed"], start=today_start)
        pending_debts = await self.store.debts.find(session_id=sid, statuses=["pending"])
        outstanding = await self.store.debts.find(session_id=sid, statuses=OUTSTANDING_DEBT_STATUSES)
        active_pitaks = len(await self.store.pitaks.find(session_id=sid, status="active"))
        recent_assignments = await self.store.assignments.find(session_id=sid, created_after=recent_since)
        recent_payments = await self.store.payments.find(session_id=sid, created_after=recent_since)
        alerts = await self.collect_alerts(ctx.scope, now)
        completed = await self.store.assignments.find(session_id=sid, statuses=["completed"])
        all_debts = aggregate_debts(await self.store.debts.find(session_id=sid))

        today = aggregate_assignments(today_records)
        paid_today = aggregate_payments(today_payments)
        workers = await self.worker_names()
        pitaks = {pitak.id: pitak for pitak in await self.store.pitaks.find()}

        activities: list[dict[str, object]] = [
            {
                "type": "assignment",
                "id": record.id,
                "worker_name": workers.get(record.worker_id, "Unknown"),
                "pitak_location": _pitak_location(pitaks, record.pitak_id),
                "luwang_count": record.luwang_count,
                "status": record.status,
                "timestamp": record.created_at,
                "action": f"Assignment {record.status}",
            }
            for record in recent_assignments
        ]
        activities.extend(
            {
                "type": "payment",
                "id": payment.id,
                "worker_name": workers.get(payment.worker_id, "Unknown"),
                "net_pay": payment.net_pay,
                "status": payment.status,
                "timestamp": payment.created_at,
                "action": f"Payment {payment.status}",
            }
            for payment in recent_payments
        )
        activities.sort(key=lambda item: item["timestamp"] or now, reverse=True)

        hours = [
            (record.updated_at - record.created_at).total_seconds() / 3600
            for record in completed
            if record.created_at is not None and record.updated_at is not None
        ]

        return {
            "timestamp": now,
            "overview": {
                "assignments": {
                    "today": today.count,
                    "completed": today.completed,
                    "active": today.count - today.completed,
                    "completion_rate": today.completion_rate,
                },
                "workers": {
                    "total_active": active_workers,
                    "with_assignments": today.unique_workers,
                    "utilization_rate": ratio(today.unique_workers, active_workers),
                },
                "financial": {
                    "today_payments": paid_today.net_pay,
                    "today_payment_count": paid_today.count,
                    "active_debts": len(pending_debts),
                    "total_debt_balance": sum((debt.balance for debt in outstanding), Decimal("0")),
                },
                "resources": {"active_pitaks": active_pitaks},
            },
            "recent_activities": activities[: thresholds.dashboard_recent_activity_limit],
            "alerts": [alert.as_dict() for alert in alerts],
            "quick_stats": {
                "average_assignment_time": mean(hours),
                "average_payment_amount": paid_today.average_net_pay,
                "debt_collection_rate": all_debts.collection_rate,
            },
            "filters": ctx.filters(),
        }

    @analytics_view("Today's statistics retrieved")
    async def today_stats(self, ctx: ViewContext) -> dict[str, object]:
        now = ctx.now
        sid = ctx.session_id
        today_start = start_of_day(now)
        today_end = today_start + timedelta(days=1) - timedelta(microseconds=1)
        yesterday_start = today_start - timedelta(days=1)
        yesterday_end = today_start - timedelta(microseconds=1)

        today_records = await self.store.assignments.find(session_id=sid, start=today_start, end=today_end)
        yesterday_records = await self.store.assignments.find(session_id=sid, start=yesterday_start, end=yesterday_end)
        today_payments = await self.store.payments.find(
            session_id=sid, statuses=["completed"], start=today_start, end=today_end
        )
        yesterday_payments = await self.store.payments.find(
            session_id=sid, statuses=["completed"], start=yesterday_start, end=yesterday_end
        )

        today = aggregate_assignments(today_records)
        paid_today = aggregate_payments(today_payments).net_pay
        paid_yesterday = aggregate_payments(yesterday_payments).net_pay
        assignment_change = day_change(today.count, len(yesterday_records))
        payment_change = day_change(float(paid_today), float(paid_yesterday))

        hourly_assignments = assignment_series(today_records, "hourly", start=today_start, end=today_end)
        hourly_payments = payment_series(today_payments, "hourly", start=today_start, end=today_end)

        return {
            "date": today_start.date(),
            "comparisons": {
                "assignments": {
                    "today": today.count,
                    "yesterday": len(yesterday_records),
                    "change": assignment_change,
                    "trend": "up" if assignment_change >= 0 else "down",
                },
                "payments": {
                    "today": paid_today,
                    "yesterday": paid_yesterday,
                    "change": payment_change,
                    "trend": "up" if payment_change >= 0 else "down",
                },
            },
            "today_summary": {
                "assignments": {
                    "total": today.count,
                    "completed": today.completed,
                    "active": today.active,
                    "cancelled": today.cancelled,
                    "completion_rate": today.completion_rate,
                },
                "financial": {"payments": paid_today},
                "workforce": {
                    "active_workers": today.unique_workers,
                    "productivity": today.completion_rate,
                },
            },
            "hourly_distribution": {
                "assignments": [
                    {"hour": _hour(key), "assignments": aggregate.count}
                    for key, aggregate in hourly_assignments
                ],
                "payments": [
                    {"hour": _hour(key), "amount": aggregate.net_pay}
                    for key, aggregate in hourly_payments
                ],
            },
            "status_breakdown": today.status_counts(),
            "recommendations": daily_recommendations(
                today.count, today.completed, len(today_payments), self.thresholds
            ),
            "filters": ctx.filters(),
        }

    @analytics_view("System alerts retrieved")
    async def system_alerts(self, ctx: ViewContext) -> dict[str, object]:
        alerts = await self.collect_alerts(ctx.scope, ctx.now)
        return {
            "alerts": [alert.as_dict() for alert in alerts],
            "count": len(alerts),
            "filters": ctx.filters(),
        }

    @analytics_view("Real-time assignments retrieved")
    async def realtime_assignments(self, ctx: ViewContext) -> dict[str, object]:
        now = ctx.now
        thresholds = self.thresholds
        status = status_filter(ctx.params, ASSIGNMENT_STATUSES)
        limit = ctx.params.limit or thresholds.dashboard_feed_limit
        records = await self.store.assignments.find(
            session_id=ctx.session_id,
            statuses=[status] if status else None,
            updated_after=now - timedelta(hours=thresholds.dashboard_realtime_hours),
        )
        records.sort(key=lambda record: record.updated_at or record.assignment_date, reverse=True)
        records = records[:limit]

        workers = await self.worker_names({record.worker_id for record in records})
        pitaks = {pitak.id: pitak for pitak in await self.store.pitaks.find()}
        bukids = await self.bukid_names()
        total = aggregate_assignments(records)
        by_worker = assignments_by_worker(records)

        rows = []
        for record in records:
            pitak = pitaks.get(record.pitak_id)
            created = record.created_at or record.assignment_date
            updated = record.updated_at or created
            rows.append(
                {
                    "id": record.id,
                    "worker_id": record.worker_id,
                    "worker_name": workers.get(record.worker_id),
                    "pitak_location": pitak.location if pitak else None,
                    "bukid_name": bukids.get(pitak.bukid_id) if pitak and pitak.bukid_id is not None else None,
                    "luwang_count": record.luwang_count,
                    "status": record.status,
                    "status_color": STATUS_COLORS.get(record.status, "gray"),
                    "assignment_date": record.assignment_date,
                    "age": {
                        "hours": int((now - created).total_seconds() // 3600),
                        "minutes": int((now - updated).total_seconds() // 60),
                        "last_updated": updated,
                    },
                    "progress": STATUS_PROGRESS.get(record.status, 0),
                }
            )

        return {
            "assignments": rows,
            "summary": {
                "total": total.count,
                "active": total.active,
                "completed": total.completed,
                "total_luwang": total.total_luwang,
                "average_luwang": total.average_luwang,
                "completion_rate": total.completion_rate,
            },
            "distribution": {
                "by_status": [
                    {"status": name, "count": count, "percentage": ratio(count, total.count)}
                    for name, count in total.status_counts().items()
                    if count
                ],
                "by_worker": [
                    {
                        "worker_name": workers.get(worker_id, f"Worker {worker_id}"),
                        "count": aggregate.count,
                        "total_luwang": aggregate.total_luwang,
                    }
                    for worker_id, aggregate in by_worker.items()
                ],
            },
            "top_workers": [
                {
                    "worker_name": workers.get(worker_id, f"Worker {worker_id}"),
                    "assignment_count": aggregate.count,
                    "total_luwang": aggregate.total_luwang,
                }
                for worker_id, aggregate in top_n(list(by_worker.items()), lambda item: item[1].count, 5)
            ],
            "filters": {**ctx.filters(), "status": status, "limit": limit},
            "last_updated": now,
        }

    @analytics_view("Recent payments retrieved")
    async def recent_payments(self, ctx: ViewContext) -> dict[str, object]:
        limit = ctx.params.limit or self.thresholds.dashboard_feed_limit
        payments = await self.store.payments.find(session_id=ctx.session_id)
        payments = list(reversed(payments))[:limit]
        workers = await self.worker_names({payment.worker_id for payment in payments})

        total = aggregate_payments(payments)
        by_method = group_by_entity(
            payments, lambda payment: payment.payment_method or "Unknown", PaymentAggregate.from_record
        )
        by_worker = payments_by_worker(payments)

        return {
            "payments": [
                {
                    "type": "salary",
                    "id": payment.id,
                    "worker_id": payment.worker_id,
                    "worker_name": workers.get(payment.worker_id, "Unknown"),
                    "amount": payment.net_pay,
                    "gross_amount": payment.gross_pay,
                    "deductions": payment.total_debt_deduction + payment.other_deductions,
                    "status": payment.status,
                    "payment_date": payment.payment_date,
                    "payment_method": payment.payment_method,
                }
                for payment in payments
            ],
            "summary": {
                "total_payments": total.count,
                "total_amount": total.net_pay,
                "average_payment": total.average_net_pay,
            },
            "distribution": {
                "by_method": [
                    {
                        "method": method,
                        "count": aggregate.count,
                        "amount": aggregate.net_pay,
                        "percentage": ratio(aggregate.net_pay, total.net_pay),
                    }
                    for method, aggregate in by_method.items()
                ],
                "by_worker": [
                    {
                        "worker_name": workers.get(worker_id, "Unknown"),
                        "count": aggregate.count,
                        "amount": aggregate.net_pay,
                    }
                    for worker_id, aggregate in by_worker.items()
                ],
            },
            "top_payees": [
                {
                    "worker_name": workers.get(worker_id, "Unknown"),
                    "payment_count": aggregate.count,
                    "total_amount": aggregate.net_pay,
                }
                for worker_id, aggregate in top_n(list(by_worker.items()), lambda item: item[1].net_pay, 5)
            ],
            "filters": {**ctx.filters(), "limit": limit},
            "last_updated": ctx.now,
        }

    @analytics_view("Pending debts retrieved")
    async def pending_debts(self, ctx: ViewContext) -> dict[str, object]:
        now = ctx.now
        thresholds = self.thresholds
        status = status_filter(ctx.params, DEBT_STATUSES, default="pending")
        limit = ctx.params.limit or thresholds.dashboard_feed_limit
        debts = await self.store.debts.find(session_id=ctx.session_id, statuses=[status])
        if ctx.params.overdue_only:
            debts = [debt for debt in debts if debt.due_date is not None and debt.due_date < now]
        debts.sort(key=lambda debt: (debt.due_date is None, debt.due_date or now))
        debts = debts[:limit]
        workers = {worker.id: worker for worker in await self.store.workers.find()}

        rows = []
        for debt in debts:
            urgency = debt_urgency(debt.due_date, now, thresholds)
            worker = workers.get(debt.worker_id)
            rows.append(
                {
                    "id": debt.id,
                    "worker_id": debt.worker_id,
                    "worker_name": worker.name if worker else None,
                    "worker_contact": worker.contact if worker else None,
                    "original_amount": debt.original_amount,
                    "amount": debt.amount,
                    "balance": debt.balance,
                    "paid": debt.total_paid,
                    "payment_rate": ratio(debt.total_paid, debt.amount),
                    "status": debt.status,
                    "date_incurred": debt.date_incurred,
                    "due_date": debt.due_date,
                    "interest_rate": debt.interest_rate,
                    "last_payment_date": debt.last_payment_date,
                    "overdue": {"is_overdue": urgency.overdue, "days": urgency.overdue_days},
                    "urgency": urgency.level,
                    "age_in_days": days_between(debt.date_incurred, now) if debt.date_incurred else None,
                }
            )
        rows.sort(key=lambda row: URGENCY_ORDER.index(row["urgency"]))

        totals = aggregate_debts(debts)
        overdue = [row for row in rows if row["overdue"]["is_overdue"]]
        levels = Counter(row["urgency"] for row in rows)
        by_worker = debts_by_worker(debts)

        def worker_name(worker_id: int) -> str | None:
            worker = workers.get(worker_id)
            return worker.name if worker else None

        return {
            "debts": rows,
            "summary": {
                "total_debts": totals.count,
                "total_amount": totals.amount,
                "total_balance": totals.balance,
                "total_paid": totals.total_paid,
                "collection_rate": totals.collection_rate,
                "overdue_debts": len(overdue),
                "total_overdue_amount": sum((row["balance"] for row in overdue), Decimal("0")),
                "average_debt": ratio(totals.amount, totals.count, scale=1),
                "average_balance": totals.average_balance,
                "average_age": mean(row["age_in_days"] for row in rows if row["age_in_days"] is not None),
            },
            "distribution": {
                "by_urgency": [
                    {"urgency": level, "count": levels[level], "percentage": ratio(levels[level], len(rows))}
                    for level in URGENCY_ORDER
                    if levels[level]
                ],
                "by_worker": [
                    {"worker_name": worker_name(worker_id), "count": aggregate.count, "total_balance": aggregate.balance}
                    for worker_id, aggregate in by_worker.items()
                ],
            },
            "top_debtors": [
                {"worker_name": worker_name(worker_id), "debt_count": aggregate.count, "total_balance": aggregate.balance}
                for worker_id, aggregate in top_n(list(by_worker.items()), lambda item: item[1].balance, 5)
            ],
            "recommendations": pending_debt_recommendations(len(overdue)),
            "filters": {**ctx.filters("overdue_only"), "status": status, "limit": limit},
            "last_updated": now,
        }
