"""Tunable thresholds used by alerts, recommendations and KPIs.

Values come from ``farmops/config/thresholds.yaml`` (or the file named by
``FARMOPS_THRESHOLDS``); anything missing falls back to the defaults below.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, fields
from decimal import Decimal
from pathlib import Path
from typing import Any, Mapping

import yaml

CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"


@dataclass(frozen=True, slots=True)
class Thresholds:
    stale_assignment_days: int = 3
    debt_balance_limit: Decimal = Decimal("10000")
    completion_target_rate: float = 70
    completion_bottom_rate: float = 70
    utilization_target_rate: float = 60
    utilization_needs_attention_rate: float = 20
    utilization_idle_days: int = 30
    productivity_land_utilization: float = 70
    productivity_completion_rate: float = 80
    productivity_luwang_per_day: float = 5
    efficiency_labor: float = 70
    efficiency_cost_per_luwang: float = 250
    efficiency_land_recommendation: float = 75
    efficiency_labor_recommendation: float = 80
    efficiency_time_recommendation: float = 70
    payroll_rate_per_luwang: Decimal = Decimal("230")
    dashboard_recent_activity_hours: int = 2
    dashboard_recent_activity_limit: int = 15
    dashboard_busy_day_assignments: int = 20
    dashboard_busy_day_completed: int = 10
    dashboard_realtime_hours: int = 24
    dashboard_feed_limit: int = 20
    debts_problematic_age_days: int = 30
    debts_problematic_collection_rate: float = 50
    debts_collection_target_rate: float = 70
    debts_upcoming_limit: int = 10
    debts_summary_limit: int = 50
    debts_critical_overdue_days: int = 30
    debts_high_overdue_days: int = 15
    debts_due_soon_days: int = 7
    financial_top_earners_limit: int = 10

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "Thresholds":
        """Build from the sectioned YAML layout (``alerts.debt_balance_limit``)."""

        values: dict[str, Any] = {}
        for section, entries in (data or {}).items():
            if section == "alerts" and isinstance(entries, Mapping):
                values.update(entries)
            elif isinstance(entries, Mapping):
                values.update({f"{section}_{key}": value for key, value in entries.items()})
        defaults = cls()
        kwargs: dict[str, Any] = {}
        for item in fields(cls):
            if item.name not in values or values[item.name] is None:
                continue
            default = getattr(defaults, item.name)
            raw = values[item.name]
            kwargs[item.name] = Decimal(str(raw)) if isinstance(default, Decimal) else type(default)(raw)
        return cls(**kwargs)


def load_thresholds(path: Path | None = None) -> Thresholds:
    if path is None:
        override = os.getenv("FARMOPS_THRESHOLDS")
        path = Path(override) if override else CONFIG_DIR / "thresholds.yaml"
    if not path.exists():
        return Thresholds()
    with path.open("r", encoding="utf-8") as fp:
        return Thresholds.from_mapping(yaml.safe_load(fp))


_thresholds: Thresholds | None = None


def get_thresholds() -> Thresholds:
    global _thresholds
    if _thresholds is None:
        _thresholds = load_thresholds()
    return _thresholds


def configure_thresholds(thresholds: Thresholds | None) -> None:
    """Install explicit thresholds; ``None`` reloads from disk on next use."""

    global _thresholds
    _thresholds = thresholds
