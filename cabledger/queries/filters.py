"""
Report Filtering

Both dashboards show a subset of reports: one driver or all of them,
inside a date window picked from a fixed list. The rules here are
shared by the admin dashboard, the driver dashboard and the statement.

Dates are compared as plain calendar days. No timezone conversion is
applied; "today" is whatever the server's date is.
"""

from datetime import date, timedelta
from typing import Iterable, Optional, Union

from cabledger.models.ledger import DailyReport, DateFilter


ALL_DRIVERS = "all"

WEEK_WINDOW_DAYS = 7

PERIOD_LABELS = {
    DateFilter.TODAY: "Today",
    DateFilter.WEEK: "Last 7 Days",
    DateFilter.MONTH: "This Month",
    DateFilter.YEAR: "This Year",
    DateFilter.ALL: "All Time",
}


def matches_date_filter(
    report_date: date,
    mode: Union[DateFilter, str],
    start: Optional[date] = None,
    end: Optional[date] = None,
    today: Optional[date] = None,
) -> bool:
    """
    Check one report date against a date window.

    A custom window with a missing bound matches every date.
    """
    mode = DateFilter(mode)
    today = today or date.today()

    if mode == DateFilter.TODAY:
        return report_date == today
    if mode == DateFilter.WEEK:
        return today - timedelta(days=WEEK_WINDOW_DAYS) <= report_date <= today
    if mode == DateFilter.MONTH:
        return report_date.year == today.year and report_date.month == today.month
    if mode == DateFilter.YEAR:
        return report_date.year == today.year
    if mode == DateFilter.CUSTOM:
        if not start or not end:
            return True
        return start <= report_date <= end

    return True


def filter_reports(
    reports: Iterable[DailyReport],
    driver_id: Optional[str] = ALL_DRIVERS,
    mode: Union[DateFilter, str] = DateFilter.MONTH,
    start: Optional[date] = None,
    end: Optional[date] = None,
    today: Optional[date] = None,
) -> list[DailyReport]:
    """
    Select reports by driver and date window.

    Args:
        reports: All known reports
        driver_id: A driver's ID, or "all" / None for every driver
        mode: Date window
        start: First day of a custom window
        end: Last day of a custom window
        today: Reference day (defaults to the current date)

    Returns:
        Matching reports, newest date first
    """
    today = today or date.today()

    selected = [
        report
        for report in reports
        if (driver_id in (None, ALL_DRIVERS) or report.driver_id == driver_id)
        and matches_date_filter(report.report_date, mode, start, end, today)
    ]

    selected.sort(key=lambda r: (r.report_date, r.timestamp), reverse=True)
    return selected


def period_label(
    mode: Union[DateFilter, str],
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> str:
    """Human-readable name of a date window, as printed on statements."""
    mode = DateFilter(mode)
    if mode == DateFilter.CUSTOM:
        start_str = start.isoformat() if start else ""
        end_str = end.isoformat() if end else ""
        return f"{start_str} to {end_str}"
    return PERIOD_LABELS[mode]
