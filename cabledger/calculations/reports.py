"""
Building and editing reports from raw form values.

Both the driver's report form and the edit dialogs hand over whatever
the user typed. Amounts are parsed and the totals derived by the
DailyReport model itself, so a report can never be stored with totals
that disagree with its line items.
"""

from datetime import date
from typing import Any, Mapping, Optional

from cabledger.models.ledger import DailyReport, Driver


def build_report(
    driver: Driver,
    report_date: date,
    income: Mapping[str, Any],
    expenses: Mapping[str, Any],
    salary: Any = None,
    kms_driven: Any = None,
    login_time: Optional[str] = None,
    logout_time: Optional[str] = None,
    notes: Optional[str] = None,
) -> DailyReport:
    """
    Create a new report for a driver.

    Args:
        driver: The driver submitting the report
        report_date: Day the report covers
        income: local/outstation/other, as typed
        expenses: fuel/maintenance/toll/other, as typed
        salary: Driver salary/commission for the day
        kms_driven: Distance driven
        login_time: "HH:MM", blank means "00:00"
        logout_time: "HH:MM", blank means "00:00"
        notes: Free text

    Returns:
        A DailyReport with a fresh id, timestamp and derived totals
    """
    return DailyReport(
        driver_id=driver.id,
        driver_name=driver.name,
        report_date=report_date,
        kms_driven=kms_driven,
        login_time=login_time,
        logout_time=logout_time,
        income=dict(income),
        expenses=dict(expenses),
        driver_salary=salary,
        notes=notes,
    )


def recompute_report(report: DailyReport, **changes: Any) -> DailyReport:
    """
    Apply edits to a report and derive its totals again.

    Keyword names are the snake_case field names. `income` and
    `expenses` may be partial; missing keys keep their current value.
    The id, owner and creation timestamp are preserved.
    """
    data = report.model_dump()

    for section in ("income", "expenses"):
        if section in changes:
            merged = dict(data[section])
            merged.update(changes.pop(section) or {})
            data[section] = merged

    for protected in ("id", "driver_id", "timestamp"):
        changes.pop(protected, None)

    data.update(changes)
    return DailyReport.model_validate(data)
