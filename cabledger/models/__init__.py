"""
Data Models Package

This package contains all Pydantic models used in Cab Ledger.
All data flowing through the system must conform to these schemas.
"""

from cabledger.models.ledger import (
    ADMIN_USER_ID,
    DRIVER_NAME_MAX_LENGTH,
    NOTES_MAX_LENGTH,
    PIN_MAX_LENGTH,
    VEHICLE_MAX_LENGTH,
    DailyReport,
    DateFilter,
    Driver,
    ExpenseBreakdown,
    IncomeBreakdown,
    SessionUser,
    UserRole,
    new_record_id,
    now_millis,
)
from cabledger.models.activity import (
    ActivityEvent,
    ActivityEventBuilder,
    ActivityEventType,
    ActivitySeverity,
)

__all__ = [
    # Ledger models
    "ADMIN_USER_ID",
    "DRIVER_NAME_MAX_LENGTH",
    "NOTES_MAX_LENGTH",
    "PIN_MAX_LENGTH",
    "VEHICLE_MAX_LENGTH",
    "DailyReport",
    "DateFilter",
    "Driver",
    "ExpenseBreakdown",
    "IncomeBreakdown",
    "SessionUser",
    "UserRole",
    "new_record_id",
    "now_millis",
    # Activity models
    "ActivityEvent",
    "ActivityEventBuilder",
    "ActivityEventType",
    "ActivitySeverity",
]
