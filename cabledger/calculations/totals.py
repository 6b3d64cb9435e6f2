"""
Derived Totals

Every report carries three derived figures:

    total_income   = local + outstation + other
    total_expenses = fuel + maintenance + toll + other + driver salary
    net_profit     = total_income - total_expenses

Form values arrive as free text typed on a phone keypad ("1,200",
"500/-", "..1.5"), so every line item goes through parse_amount first.

DESIGN DECISION: Parsed values are floats (that is what gets stored),
but sums are accumulated as Decimal built from each value's shortest
repr. This keeps 0.1 + 0.2 at 0.3 instead of drifting by a paisa.
"""

import re
from decimal import Decimal
from typing import Any, Mapping, Optional

from pydantic import BaseModel


INCOME_FIELDS = ("local", "outstation", "other")
EXPENSE_FIELDS = ("fuel", "maintenance", "toll", "other")

_NON_NUMERIC = re.compile(r"[^0-9.]")


class ReportTotals(BaseModel):
    """The derived figures of one report."""

    total_income: float
    total_expenses: float
    net_profit: float


def parse_amount(value: Any) -> float:
    """
    Parse a free-text amount.

    Everything except digits and '.' is dropped. If several decimal
    points survive, empty segments are discarded and only the first two
    are kept, so "..1.2.3" reads as 1.2. Empty or unparseable input is 0.
    """
    if value is None:
        return 0.0
    if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
        return float(value)

    cleaned = _NON_NUMERIC.sub("", str(value))
    if cleaned.count(".") > 1:
        parts = [part for part in cleaned.split(".") if part]
        cleaned = ".".join(parts[:2])

    try:
        return float(cleaned)
    except ValueError:
        return 0.0


def _sum(values) -> float:
    total = sum((Decimal(repr(parse_amount(v))) for v in values), Decimal("0"))
    return float(total)


def income_total(income: Mapping[str, Any]) -> float:
    """Sum of the income breakdown."""
    return _sum(income.get(name) for name in INCOME_FIELDS)


def trip_expense_total(expenses: Mapping[str, Any]) -> float:
    """Sum of the expense breakdown, without the driver's salary."""
    return _sum(expenses.get(name) for name in EXPENSE_FIELDS)


def compute_totals(
    income: Mapping[str, Any],
    expenses: Mapping[str, Any],
    salary: Optional[Any] = None,
) -> ReportTotals:
    """
    Compute the derived totals for one report.

    Args:
        income: Mapping with local/outstation/other (numbers or text)
        expenses: Mapping with fuel/maintenance/toll/other
        salary: Driver salary/commission for the day

    Returns:
        ReportTotals where total_expenses includes the salary
    """
    total_income = income_total(income)
    total_expenses = _sum([trip_expense_total(expenses), salary])
    net_profit = float(Decimal(repr(total_income)) - Decimal(repr(total_expenses)))

    return ReportTotals(
        total_income=total_income,
        total_expenses=total_expenses,
        net_profit=net_profit,
    )
