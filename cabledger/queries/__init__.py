"""Report filtering and aggregation package."""

from cabledger.queries.aggregates import (
    PeriodSummary,
    TrendPoint,
    driver_salary_total,
    expense_distribution,
    summarize,
    trend_series,
)
from cabledger.queries.filters import (
    ALL_DRIVERS,
    filter_reports,
    matches_date_filter,
    period_label,
)

__all__ = [
    "ALL_DRIVERS",
    "PeriodSummary",
    "TrendPoint",
    "driver_salary_total",
    "expense_distribution",
    "filter_reports",
    "matches_date_filter",
    "period_label",
    "summarize",
    "trend_series",
]
