"""Derived-totals calculations."""

# build_report and recompute_report live in cabledger.calculations.reports.
# They import the models, which import this package.

from cabledger.calculations.totals import (
    EXPENSE_FIELDS,
    INCOME_FIELDS,
    ReportTotals,
    compute_totals,
    income_total,
    parse_amount,
    trip_expense_total,
)

__all__ = [
    "EXPENSE_FIELDS",
    "INCOME_FIELDS",
    "ReportTotals",
    "compute_totals",
    "income_total",
    "parse_amount",
    "trip_expense_total",
]
