"""
Core Data Models for Cab Ledger

These models define the schemas for all data flowing through the system.
They are designed to:
1. Enforce type safety at runtime
2. Keep the derived totals consistent with the line items
3. Serialize to the camelCase record shape used by the fallback store

DESIGN DECISION: Amount fields accept free text and parse it the same
way the report form does, so a record built from form values and a
record loaded from storage go through one code path.
"""

import time
from datetime import date
from enum import Enum
from typing import Any, Optional
from uuid import uuid4

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from cabledger.calculations.totals import (
    compute_totals,
    parse_amount,
    trip_expense_total,
)


# Field limits, shared with the form validator and the input widgets
DRIVER_NAME_MAX_LENGTH = 100
VEHICLE_MAX_LENGTH = 50
PIN_MAX_LENGTH = 20
NOTES_MAX_LENGTH = 2000


def new_record_id() -> str:
    """Create a new record identifier."""
    return str(uuid4())


def now_millis() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class UserRole(str, Enum):
    """Who is signed in."""
    ADMIN = "ADMIN"
    DRIVER = "DRIVER"


class DateFilter(str, Enum):
    """
    Date windows offered on the dashboards.

    Every window is evaluated against the calendar day "today".
    """
    TODAY = "today"
    WEEK = "week"      # trailing 7 days, inclusive
    MONTH = "month"    # same calendar month and year
    YEAR = "year"      # same calendar year
    CUSTOM = "custom"  # inclusive start..end
    ALL = "all"


class _LedgerModel(BaseModel):
    """Shared config: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


# =============================================================================
# DRIVERS
# =============================================================================

class Driver(_LedgerModel):
    """
    A driver profile, managed by the admin.

    The PIN is a plaintext secret compared as-is at login.
    """

    id: str = Field(
        default_factory=new_record_id,
        description="Unique driver ID"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=DRIVER_NAME_MAX_LENGTH,
        description="Display name"
    )
    vehicle: str = Field(
        default="",
        max_length=VEHICLE_MAX_LENGTH,
        description="Vehicle registration or description"
    )
    pin: str = Field(
        ...,
        min_length=1,
        max_length=PIN_MAX_LENGTH,
        description="Login PIN"
    )

    @property
    def first_name(self) -> str:
        return self.name.split(" ")[0]


class SessionUser(BaseModel):
    """The signed-in user, kept in the UI session."""

    id: str
    name: str
    role: UserRole
    vehicle: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


ADMIN_USER_ID = "admin"


# =============================================================================
# DAILY REPORTS
# =============================================================================

class _Breakdown(_LedgerModel):
    """Fixed set of named amounts. Text input is parsed like the form does."""

    @field_validator("*", mode="before")
    @classmethod
    def parse_amounts(cls, v: Any) -> float:
        return parse_amount(v)


class IncomeBreakdown(_Breakdown):
    """Income for the day by trip type."""

    local: float = Field(default=0.0, ge=0)
    outstation: float = Field(default=0.0, ge=0)
    # Older records call this bucket "mixed"
    other: float = Field(
        default=0.0,
        ge=0,
        validation_alias=AliasChoices("other", "mixed"),
    )


class ExpenseBreakdown(_Breakdown):
    """Trip expenses for the day. The driver's salary is tracked separately."""

    fuel: float = Field(default=0.0, ge=0)
    maintenance: float = Field(default=0.0, ge=0)
    toll: float = Field(default=0.0, ge=0)
    other: float = Field(default=0.0, ge=0)

    @property
    def trip_total(self) -> float:
        return trip_expense_total(self.model_dump())


class DailyReport(_LedgerModel):
    """
    One driver's report for one day.

    CRITICAL: total_income, total_expenses and net_profit are derived.
    They are recomputed from the breakdowns whenever a report is built
    or loaded; values supplied by the caller are ignored.
    """

    # Identity
    id: str = Field(
        default_factory=new_record_id,
        description="Unique report ID"
    )
    driver_id: str = Field(
        ...,
        min_length=1,
        description="ID of the driver who owns this report"
    )
    driver_name: str = Field(
        default="",
        description="Driver name at the time of the report"
    )
    report_date: date = Field(
        ...,
        alias="date",
        description="Calendar day the report covers"
    )

    # Trip logistics
    kms_driven: float = Field(default=0.0, ge=0)
    login_time: str = Field(default="00:00", description="HH:MM")
    logout_time: str = Field(default="00:00", description="HH:MM")

    # Line items
    income: IncomeBreakdown = Field(default_factory=IncomeBreakdown)
    expenses: ExpenseBreakdown = Field(default_factory=ExpenseBreakdown)
    driver_salary: float = Field(
        default=0.0,
        ge=0,
        description="Salary/commission paid to the driver for this day"
    )

    # Derived
    total_income: float = 0.0
    total_expenses: float = 0.0
    net_profit: float = 0.0

    notes: Optional[str] = Field(
        default="",
        max_length=NOTES_MAX_LENGTH,
        description="Free-text notes from the driver"
    )
    timestamp: int = Field(
        default_factory=now_millis,
        description="Creation time, epoch milliseconds"
    )

    @field_validator("kms_driven", "driver_salary", mode="before")
    @classmethod
    def parse_numeric_text(cls, v: Any) -> float:
        return parse_amount(v)

    @field_validator("login_time", "logout_time", mode="before")
    @classmethod
    def default_blank_time(cls, v: Any) -> str:
        return v or "00:00"

    @field_validator("notes", mode="before")
    @classmethod
    def blank_notes(cls, v: Any) -> str:
        return v or ""

    @model_validator(mode="after")
    def derive_totals(self) -> "DailyReport":
        """Recompute the derived figures from the line items."""
        totals = compute_totals(
            self.income.model_dump(),
            self.expenses.model_dump(),
            self.driver_salary,
        )
        self.total_income = totals.total_income
        self.total_expenses = totals.total_expenses
        self.net_profit = totals.net_profit
        return self

    @property
    def trip_expenses(self) -> float:
        """Expenses without the driver's salary."""
        return self.expenses.trip_total

    def to_record(self) -> dict:
        """camelCase JSON-ready dict, the shape kept by the fallback store."""
        return self.model_dump(mode="json", by_alias=True)
