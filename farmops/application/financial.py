"""Payment and debt analytics."""
from __future__ import annotations

from collections import Counter
from datetime import datetime, timedelta
from decimal import Decimal

import pandas as pd

from farmops.application.base import AnalyticsService, ViewContext, analytics_view
from farmops.core.aggregation import (
    aggregate_debts,
    aggregate_payments,
    group_by_entity,
    payment_series,
    payments_by_worker,
)
from farmops.core.alerts import OUTSTANDING_DEBT_STATUSES, collection_recommendations, is_overdue
from farmops.core.buckets import days_between, shift, start_of_month
from farmops.core.ranking import top_n
from farmops.core.schema import DEBT_STATUSES, Debt
from farmops.core.stats import growth_rate, mean, ratio
from farmops.core.validation import status_filter
from farmops.domain.aggregates import PaymentAggregate

ZERO = Decimal("0")

# (label, upper bound in days inclusive); the last bucket is open-ended
AGE_BUCKETS: tuple[tuple[str, int | None], ...] = (
    ("0-30", 30),
    ("31-60", 60),
    ("61-90", 90),
    ("90+", None),
)


def age_bucket(age_days: int) -> str:
    for label, upper in AGE_BUCKETS:
        if upper is None or age_days <= upper:
            return label
    return AGE_BUCKETS[-1][0]


def collection_by_age(debts: list[Debt], now: datetime) -> list[dict[str, object]]:
    totals = {label: [ZERO, ZERO, 0] for label, _ in AGE_BUCKETS}
    for debt in debts:
        if debt.date_incurred is None:
            continue
        bucket = totals[age_bucket(days_between(debt.date_incurred, now))]
        bucket[0] += debt.amount
        bucket[1] += debt.total_paid
        bucket[2] += 1
    return [
        {
            "age_bucket": label,
            "total_amount": amount,
            "total_collected": collected,
            "remaining_balance": amount - collected,
            "collection_rate": ratio(collected, amount),
            "debt_count": count,
        }
        for label, (amount, collected, count) in totals.items()
    ]


def revenue_row(key: str, aggregate: PaymentAggregate) -> dict[str, object]:
    return {
        "period": key,
        "gross_revenue": aggregate.gross_pay,
        "net_revenue": aggregate.net_pay,
        "debt_collections": aggregate.debt_deductions,
        "transaction_count": aggregate.count,
        "average_transaction_value": aggregate.average_net_pay,
    }


class FinancialAnalytics(AnalyticsService):
    """Revenue from completed payments and collection of worker debts."""

    @analytics_view("Financial overview retrieved")
    async def financial_overview(self, ctx: ViewContext) -> dict[str, object]:
        now = ctx.now
        sid = ctx.session_id
        month_start = start_of_month(now)
        previous_start = shift(month_start, pd.DateOffset(months=1))
        previous_end = month_start - timedelta(microseconds=1)

        current = aggregate_payments(
            await self.store.payments.find(session_id=sid, statuses=["completed"], start=month_start)
        )
        previous = aggregate_payments(
            await self.store.payments.find(
                session_id=sid, statuses=["completed"], start=previous_start, end=previous_end
            )
        )
        debts = await self.store.debts.find(session_id=sid)
        totals = aggregate_debts(debts)

        upcoming = sorted(
            (
                debt
                for debt in debts
                if debt.status in OUTSTANDING_DEBT_STATUSES and debt.due_date is not None and debt.due_date >= now
            ),
            key=lambda debt: debt.due_date,
        )[: self.thresholds.debts_upcoming_limit]
        names = await self.worker_names({debt.worker_id for debt in upcoming})

        return {
            "payments": {
                "current_month": {
                    "gross": current.gross_pay,
                    "net": current.net_pay,
                    "debt_deductions": current.debt_deductions,
                    "count": current.count,
                    "average_net": current.average_net_pay,
                },
                "previous_month": {"gross": previous.gross_pay, "net": previous.net_pay},
                "growth_rate": growth_rate(previous.net_pay, current.net_pay),
            },
            "debts": {
                "total_count": totals.count,
                "total_amount": totals.amount,
                "total_balance": totals.balance,
                "total_paid": totals.total_paid,
                "collection_rate": totals.collection_rate,
                "average_interest_rate": mean(debt.interest_rate for debt in debts),
            },
            "debt_status_breakdown": totals.status_breakdown(),
            "upcoming_due_dates": [
                {
                    "debt_id": debt.id,
                    "due_date": debt.due_date,
                    "balance": debt.balance,
                    "original_amount": debt.amount,
                    "worker_name": names.get(debt.worker_id),
                    "days_until_due": days_between(now, debt.due_date),
                }
                for debt in upcoming
            ],
            "timestamp": now,
            "filters": ctx.filters(),
        }

    @analytics_view("Revenue trend data retrieved")
    async def revenue_trend(self, ctx: ViewContext) -> dict[str, object]:
        window = ctx.window
        payments = await self.store.payments.find(
            session_id=ctx.session_id, statuses=["completed"], start=window.start, end=window.end
        )
        series = payment_series(
            payments,
            window.granularity,
            start=window.start,
            end=window.end,
            fill_gaps=ctx.params.fill_gaps,
        )
        summary = aggregate_payments(payments)
        total_net = summary.net_pay

        change = 0.0
        if len(series) >= 2:
            change = growth_rate(series[-2][1].net_pay, series[-1][1].net_pay)

        by_method = group_by_entity(payments, lambda payment: payment.payment_method, PaymentAggregate.from_record)
        earners = payments_by_worker(payments)
        limit = ctx.params.limit or self.thresholds.financial_top_earners_limit
        top = top_n(list(earners.items()), lambda item: item[1].net_pay, limit)
        names = await self.worker_names(worker_id for worker_id, _ in top)

        return {
            "period": window.as_dict(),
            "trend": [revenue_row(key, aggregate) for key, aggregate in series],
            "summary": {
                "total_gross": summary.gross_pay,
                "total_net": total_net,
                "total_debt_collections": summary.debt_deductions,
                "total_transactions": summary.count,
                "average_transaction_value": summary.average_net_pay,
            },
            "growth_metrics": {
                "period_over_period": change,
                "average_revenue_per_period": ratio(total_net, len(series), scale=1),
            },
            "revenue_by_method": [
                {
                    "method": method,
                    "revenue": aggregate.net_pay,
                    "count": aggregate.count,
                    "average": aggregate.average_net_pay,
                    "percentage": ratio(aggregate.net_pay, total_net),
                }
                for method, aggregate in sorted(by_method.items(), key=lambda item: item[1].net_pay, reverse=True)
            ],
            "top_earners": [
                {
                    "worker_id": worker_id,
                    "worker_name": names.get(worker_id, f"Worker {worker_id}"),
                    "revenue": aggregate.net_pay,
                    "payment_count": aggregate.count,
                    "average_payment": aggregate.average_net_pay,
                    "percentage": ratio(aggregate.net_pay, total_net),
                }
                for worker_id, aggregate in top
            ],
            "filters": ctx.filters("period", "group_by"),
        }

    @analytics_view("Debt collection rate analysis retrieved")
    async def debt_collection_rate(self, ctx: ViewContext) -> dict[str, object]:
        now = ctx.now
        window = ctx.window
        thresholds = self.thresholds
        debts = await self.store.debts.find(
            session_id=ctx.session_id, incurred_start=window.start, incurred_end=window.end
        )
        totals = aggregate_debts(debts)
        collection_rate = totals.collection_rate

        problematic = []
        for debt in debts:
            if debt.date_incurred is None:
                continue
            age = days_between(debt.date_incurred, now)
            rate = ratio(debt.total_paid, debt.amount)
            if age > thresholds.debts_problematic_age_days and rate < thresholds.debts_problematic_collection_rate:
                problematic.append(
                    {
                        "id": debt.id,
                        "worker_id": debt.worker_id,
                        "amount": debt.amount,
                        "collected": debt.total_paid,
                        "balance": debt.balance,
                        "age_in_days": age,
                        "collection_rate": rate,
                        "status": debt.status,
                    }
                )
        problematic.sort(key=lambda row: row["age_in_days"], reverse=True)

        return {
            "period": window.as_dict(),
            "overall_metrics": {
                "total_debt_amount": totals.amount,
                "total_collected": totals.total_paid,
                "total_balance": totals.balance,
                "collection_rate": collection_rate,
                "average_collection_per_debt": ratio(totals.total_paid, totals.count, scale=1),
                "debts_count": totals.count,
            },
            "collection_by_age": collection_by_age(debts, now),
            "problematic_debts": problematic[: ctx.params.limit or 10],
            "recommendations": collection_recommendations(collection_rate, thresholds),
            "filters": ctx.filters("period"),
        }

    @analytics_view("Debt summary retrieved")
    async def debt_summary(self, ctx: ViewContext) -> dict[str, object]:
        params = ctx.params
        now = ctx.now
        status = status_filter(params, DEBT_STATUSES)
        date_range = params.date_range
        debts = await self.store.debts.find(
            session_id=ctx.session_id,
            worker_id=params.worker_id,
            statuses=[status] if status else None,
            incurred_start=date_range.start_date if date_range else None,
            incurred_end=date_range.end_date if date_range else None,
        )
        debts.sort(key=lambda debt: debt.date_incurred or datetime.min, reverse=True)
        limit = params.limit
        if limit is None and params.worker_id is None and status is None:
            limit = self.thresholds.debts_summary_limit
        if limit is not None:
            debts = debts[:limit]

        names = await self.worker_names({debt.worker_id for debt in debts})
        totals = aggregate_debts(debts)
        overdue = [debt for debt in debts if is_overdue(debt, now)]
        ages = [days_between(debt.date_incurred, now) for debt in debts if debt.date_incurred is not None]

        return {
            "debts": [
                {
                    "id": debt.id,
                    "worker_id": debt.worker_id,
                    "worker_name": names.get(debt.worker_id),
                    "original_amount": debt.original_amount,
                    "amount": debt.amount,
                    "balance": debt.balance,
                    "status": debt.status,
                    "date_incurred": debt.date_incurred,
                    "due_date": debt.due_date,
                    "interest_rate": debt.interest_rate,
                    "total_paid": debt.total_paid,
                    "days_since_incurred": (
                        days_between(debt.date_incurred, now) if debt.date_incurred is not None else None
                    ),
                    "is_overdue": is_overdue(debt, now),
                }
                for debt in debts
            ],
            "summary": {
                "total_debts": totals.count,
                "total_original_amount": totals.original_amount,
                "total_amount": totals.amount,
                "total_balance": totals.balance,
                "total_paid": totals.total_paid,
                "status_counts": {row["status"]: row["count"] for row in totals.status_breakdown()},
                "overdue_count": len(overdue),
                "overdue_balance": sum((debt.balance for debt in overdue), ZERO),
                "collection_rate": totals.collection_rate,
                "average_debt": ratio(totals.amount, totals.count, scale=1),
                "average_balance": totals.average_balance,
                "average_paid": ratio(totals.total_paid, totals.count, scale=1),
                "average_age": mean(ages),
            },
            "filters": {**ctx.filters("worker_id", "date_range"), "status": status},
        }

    @analytics_view("Payment summary retrieved")
    async def payment_summary(self, ctx: ViewContext) -> dict[str, object]:
        params = ctx.params
        window = ctx.window
        sid = ctx.session_id
        payments = await self.store.payments.find(
            session_id=sid,
            worker_id=params.worker_id,
            statuses=[params.status] if params.status else None,
            start=window.start,
            end=window.end,
        )
        in_window = await self.store.payments.find(session_id=sid, start=window.start, end=window.end)
        names = await self.worker_names({payment.worker_id for payment in payments})
        locations = {pitak.id: pitak.location for pitak in await self.store.pitaks.find()}

        summary = aggregate_payments(payments)
        status_counts = Counter(payment.status for payment in payments)
        daily = payment_series(
            [payment for payment in in_window if payment.status == "completed"], "daily", fill_gaps=False
        )
        by_method = group_by_entity(in_window, lambda payment: payment.payment_method, PaymentAggregate.from_record)

        return {
            "period": window.as_dict(),
            "payments": [
                {
                    "id": payment.id,
                    "worker_name": names.get(payment.worker_id),
                    "pitak_location": locations.get(payment.pitak_id),
                    "gross_pay": payment.gross_pay,
                    "net_pay": payment.net_pay,
                    "status": payment.status,
                    "payment_date": payment.payment_date,
                    "payment_method": payment.payment_method,
                    "debt_deduction": payment.total_debt_deduction,
                    "other_deductions": payment.other_deductions,
                    "deduction_percentage": ratio(
                        payment.total_debt_deduction + payment.other_deductions, payment.gross_pay
                    ),
                }
                for payment in reversed(payments)
            ],
            "summary": {
                "total_payments": summary.count,
                "total_gross": summary.gross_pay,
                "total_net": summary.net_pay,
                "total_debt_deductions": summary.debt_deductions,
                "total_other_deductions": summary.other_deductions,
                "status_counts": dict(status_counts),
                "average_gross": summary.average_gross_pay,
                "average_net": summary.average_net_pay,
                "total_deductions": summary.total_deductions,
                "deduction_rate": ratio(summary.total_deductions, summary.gross_pay),
            },
            "daily_stats": [
                {
                    "date": key,
                    "total_gross": aggregate.gross_pay,
                    "total_net": aggregate.net_pay,
                    "total_debt_deductions": aggregate.debt_deductions,
                    "payment_count": aggregate.count,
                }
                for key, aggregate in daily
            ],
            "payment_methods": [
                {
                    "method": method,
                    "count": aggregate.count,
                    "total_amount": aggregate.net_pay,
                    "average_amount": aggregate.average_net_pay,
                    "percentage": ratio(aggregate.net_pay, summary.net_pay),
                }
                for method, aggregate in sorted(by_method.items(), key=lambda item: item[1].net_pay, reverse=True)
            ],
            "filters": {**ctx.filters("period", "worker_id"), "status": params.status},
        }
