"""
Period Aggregates

Sums over a filtered set of reports, used by the dashboards and the
PDF statement.

NOTE: The dashboards show "Total Expenses" as trip expenses only and
list the driver salary on its own line. Net profit is income minus
both, which equals the sum of each report's net_profit.
"""

from datetime import date
from decimal import Decimal
from typing import Iterable, Sequence

from pydantic import BaseModel, Field

from cabledger.models.ledger import DailyReport


class PeriodSummary(BaseModel):
    """Totals for a set of reports."""

    record_count: int = Field(ge=0)

    # Revenue
    income_local: float = 0.0
    income_outstation: float = 0.0
    income_other: float = 0.0
    total_income: float = 0.0

    # Operating expenses
    fuel: float = 0.0
    maintenance: float = 0.0
    toll: float = 0.0
    other_expenses: float = 0.0
    trip_expenses: float = 0.0
    driver_salary: float = 0.0
    total_expenses: float = 0.0

    net_profit: float = 0.0

    kms_driven: float = 0.0

    @property
    def tolls_and_other(self) -> float:
        """Toll and other expenses, printed as one statement line."""
        return _add(self.toll, self.other_expenses)


class TrendPoint(BaseModel):
    """One point on a dashboard trend chart."""

    day: date
    income: float
    expenses: float
    profit: float


def _add(*values: float) -> float:
    return float(sum((Decimal(repr(v)) for v in values), Decimal("0")))


def _column(reports: Sequence[DailyReport], getter) -> float:
    return _add(*(getter(r) for r in reports))


def summarize(reports: Iterable[DailyReport]) -> PeriodSummary:
    """Aggregate a set of reports into one PeriodSummary."""
    reports = list(reports)

    income_local = _column(reports, lambda r: r.income.local)
    income_outstation = _column(reports, lambda r: r.income.outstation)
    income_other = _column(reports, lambda r: r.income.other)
    total_income = _column(reports, lambda r: r.total_income)

    fuel = _column(reports, lambda r: r.expenses.fuel)
    maintenance = _column(reports, lambda r: r.expenses.maintenance)
    toll = _column(reports, lambda r: r.expenses.toll)
    other_expenses = _column(reports, lambda r: r.expenses.other)
    trip_expenses = _add(fuel, maintenance, toll, other_expenses)
    driver_salary = driver_salary_total(reports)
    total_expenses = _add(trip_expenses, driver_salary)

    return PeriodSummary(
        record_count=len(reports),
        income_local=income_local,
        income_outstation=income_outstation,
        income_other=income_other,
        total_income=total_income,
        fuel=fuel,
        maintenance=maintenance,
        toll=toll,
        other_expenses=other_expenses,
        trip_expenses=trip_expenses,
        driver_salary=driver_salary,
        total_expenses=total_expenses,
        net_profit=_add(total_income, -total_expenses),
        kms_driven=_column(reports, lambda r: r.kms_driven),
    )


def driver_salary_total(reports: Iterable[DailyReport]) -> float:
    """Salary/commission earned over a set of reports."""
    return _add(*(r.driver_salary for r in reports))


def trend_series(
    reports: Iterable[DailyReport],
    limit: int = 14,
) -> list[TrendPoint]:
    """
    Chart points in ascending date order.

    Only the last `limit` reports are kept; one point per report.
    """
    ordered = sorted(reports, key=lambda r: (r.report_date, r.timestamp))
    if limit:
        ordered = ordered[-limit:]
    return [
        TrendPoint(
            day=r.report_date,
            income=r.total_income,
            expenses=r.total_expenses,
            profit=r.net_profit,
        )
        for r in ordered
    ]


def expense_distribution(reports: Iterable[DailyReport]) -> dict[str, float]:
    """Where the money went: expense categories plus salary."""
    summary = summarize(reports)
    return {
        "Fuel": summary.fuel,
        "Maintenance": summary.maintenance,
        "Toll": summary.toll,
        "Other": summary.other_expenses,
        "Salary": summary.driver_salary,
    }
