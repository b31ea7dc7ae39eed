"""
Dashboard component - teams, current-quarter OKRs and headline stats.
"""

from .component import run_get_dashboard
from .models import DashboardData, DashboardOutput, OkrStats

__all__ = [
    "run_get_dashboard",
    "DashboardData",
    "DashboardOutput",
    "OkrStats",
]
