"""Time bucketing for trend aggregation.

Bucket keys are plain strings that sort chronologically within a
granularity:

``hourly``    ``2024-03-05 14:00:00``
``daily``     ``2024-03-05``
``weekly``    ``2024-W09`` (ISO year and week, so a week spanning New Year keeps one key)
``monthly``   ``2024-03``
``quarterly`` ``2024-Q1``
``yearly``    ``2024``
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta

import pandas as pd

from farmops.core.schema import AnalyticsParams

LOOKBACK: dict[str, pd.DateOffset] = {
    "week": pd.DateOffset(days=7),
    "month": pd.DateOffset(months=1),
    "quarter": pd.DateOffset(months=3),
    "year": pd.DateOffset(years=1),
}

DEFAULT_GRANULARITY: dict[str, str] = {
    "week": "daily",
    "month": "daily",
    "quarter": "weekly",
    "year": "monthly",
}

_STEP: dict[str, pd.DateOffset] = {
    "hourly": pd.DateOffset(hours=1),
    "daily": pd.DateOffset(days=1),
    "weekly": pd.DateOffset(weeks=1),
    "monthly": pd.DateOffset(months=1),
    "quarterly": pd.DateOffset(months=3),
    "yearly": pd.DateOffset(years=1),
}


def bucket_key(timestamp: datetime, granularity: str) -> str:
    if granularity == "hourly":
        return timestamp.strftime("%Y-%m-%d %H:00:00")
    if granularity == "daily":
        return timestamp.strftime("%Y-%m-%d")
    if granularity == "weekly":
        iso = timestamp.isocalendar()
        return f"{iso[0]:04d}-W{iso[1]:02d}"
    if granularity == "monthly":
        return timestamp.strftime("%Y-%m")
    if granularity == "quarterly":
        return f"{timestamp.year}-Q{(timestamp.month - 1) // 3 + 1}"
    if granularity == "yearly":
        return f"{timestamp.year:04d}"
    raise ValueError(f"unknown granularity: {granularity}")


def _floor(timestamp: datetime, granularity: str) -> datetime:
    if granularity == "hourly":
        return timestamp.replace(minute=0, second=0, microsecond=0)
    day = timestamp.replace(hour=0, minute=0, second=0, microsecond=0)
    if granularity == "daily":
        return day
    if granularity == "weekly":
        return day - timedelta(days=day.weekday())
    if granularity == "monthly":
        return day.replace(day=1)
    if granularity == "quarterly":
        return day.replace(month=(day.month - 1) // 3 * 3 + 1, day=1)
    if granularity == "yearly":
        return day.replace(month=1, day=1)
    raise ValueError(f"unknown granularity: {granularity}")


def bucket_range(start: datetime, end: datetime, granularity: str) -> list[str]:
    """Every bucket key touched by ``[start, end]``, ascending."""

    if end < start:
        return []
    step = _STEP[granularity]
    cursor = pd.Timestamp(_floor(start, granularity))
    stop = pd.Timestamp(end)
    keys: list[str] = []
    while cursor <= stop:
        key = bucket_key(cursor.to_pydatetime(), granularity)
        if not keys or keys[-1] != key:
            keys.append(key)
        cursor = cursor + step
    return keys


@dataclass(frozen=True, slots=True)
class Window:
    start: datetime
    end: datetime
    granularity: str
    period: str

    def contains(self, timestamp: datetime | None) -> bool:
        return timestamp is not None and self.start <= timestamp <= self.end

    def as_dict(self) -> dict[str, object]:
        return {
            "start": self.start,
            "end": self.end,
            "type": self.period,
            "group_by": self.granularity,
        }


def shift(moment: datetime, offset: pd.DateOffset, *, backwards: bool = True) -> datetime:
    stamp = pd.Timestamp(moment)
    moved = stamp - offset if backwards else stamp + offset
    return moved.to_pydatetime()


def lookback_window(period: str, now: datetime, group_by: str | None = None) -> Window:
    if period not in LOOKBACK:
        raise ValueError(f"unknown period: {period}")
    granularity = group_by or DEFAULT_GRANULARITY[period]
    return Window(start=shift(now, LOOKBACK[period]), end=now, granularity=granularity, period=period)


def resolve_window(params: AnalyticsParams, now: datetime) -> Window:
    """Lookback window for a request; an explicit ``dateRange`` wins."""

    window = lookback_window(params.period, now, params.group_by)
    if params.date_range is None:
        return window
    return Window(
        start=params.date_range.start_date,
        end=params.date_range.end_date,
        granularity=window.granularity,
        period=window.period,
    )


def start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def start_of_week(moment: datetime) -> datetime:
    """Sunday-based start of the current week."""

    day = start_of_day(moment)
    return day - timedelta(days=(day.weekday() + 1) % 7)


def start_of_month(moment: datetime) -> datetime:
    return start_of_day(moment).replace(day=1)


def days_between(earlier: datetime, later: datetime) -> int:
    """Whole days from ``earlier`` to ``later``, rounded up."""

    return math.ceil((later - earlier).total_seconds() / 86400)
