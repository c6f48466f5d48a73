"""Application services."""

from .assignments import AssignmentAnalytics
from .base import AnalyticsService, ViewContext, analytics_view
from .dashboard import LiveDashboard
from .financial import FinancialAnalytics
from .pitaks import PitakProductivity
from .services import (
    get_assignment_analytics,
    get_financial_analytics,
    get_live_dashboard,
    get_pitak_productivity,
    get_record_store,
    reset_analytics_state,
)

__all__ = [
    "AnalyticsService",
    "AssignmentAnalytics",
    "FinancialAnalytics",
    "LiveDashboard",
    "PitakProductivity",
    "ViewContext",
    "analytics_view",
    "get_assignment_analytics",
    "get_financial_analytics",
    "get_live_dashboard",
    "get_pitak_productivity",
    "get_record_store",
    "reset_analytics_state",
]
