"""Process-wide store and analytics services."""
from __future__ import annotations

from farmops.core.thresholds import configure_thresholds
from farmops.infrastructure import InMemoryRecordStore, reset_session_resolver

from .assignments import AssignmentAnalytics
from .dashboard import LiveDashboard
from .financial import FinancialAnalytics
from .pitaks import PitakProductivity

_store = InMemoryRecordStore()
_assignments = AssignmentAnalytics(_store)
_pitaks = PitakProductivity(_store)
_dashboard = LiveDashboard(_store)
_financial = FinancialAnalytics(_store)


def get_record_store() -> InMemoryRecordStore:
    """Return the singleton record store for the process."""

    return _store


def get_assignment_analytics() -> AssignmentAnalytics:
    return _assignments


def get_pitak_productivity() -> PitakProductivity:
    return _pitaks


def get_live_dashboard() -> LiveDashboard:
    return _dashboard


def get_financial_analytics() -> FinancialAnalytics:
    return _financial


def reset_analytics_state() -> None:
    """Clear the store and restore default session and threshold lookups (used in tests)."""

    _store.reset()
    reset_session_resolver()
    configure_thresholds(None)
