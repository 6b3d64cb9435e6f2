"""
Form Validation

Checks run on what the user typed before anything is saved.

ERRORS block the action:
- Driver form without a name or PIN
- Admin password change with mismatched or too-short passwords

WARNINGS are shown but do not block:
- Report dated in the future
- Logout time earlier than login time
- Salary larger than the day's income

IMPORTANT: Validation NEVER silently fixes issues. Amount parsing is
the one exception, and it lives in the models, not here.
"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field, ValidationError

from cabledger.config import get_settings
from cabledger.models.ledger import (
    DRIVER_NAME_MAX_LENGTH,
    NOTES_MAX_LENGTH,
    PIN_MAX_LENGTH,
    VEHICLE_MAX_LENGTH,
    DailyReport,
)


class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """Outcome of validating one form."""

    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        """True when no issue blocks the action."""
        return not any(issue.severity == "error" for issue in self.issues)

    @property
    def errors(self) -> list[str]:
        return [i.message for i in self.issues if i.severity == "error"]

    @property
    def warnings(self) -> list[str]:
        return [i.message for i in self.issues if i.severity == "warning"]

    @property
    def first_error(self) -> Optional[str]:
        errors = self.errors
        return errors[0] if errors else None

    @classmethod
    def from_validation_error(cls, error: ValidationError) -> "ValidationResult":
        """Turn a model ValidationError into blocking issues, one per failed field."""
        issues = []
        for detail in error.errors():
            field = ".".join(str(part) for part in detail["loc"]) or "form"
            issues.append(ValidationIssue(
                field=field,
                message=f"{field}: {detail['msg']}",
                severity="error",
            ))
        return cls(issues=issues)


class FormValidator:
    """Validates the driver, password and report forms."""

    def __init__(self, min_password_length: Optional[int] = None):
        if min_password_length is None:
            min_password_length = get_settings().app.min_admin_password_length
        self._min_password_length = min_password_length

    def validate_driver_form(
        self,
        name: Optional[str],
        pin: Optional[str],
        vehicle: Optional[str] = None,
    ) -> ValidationResult:
        """Name and PIN are both required; no field may exceed its limit."""
        name = (name or "").strip()
        pin = (pin or "").strip()
        vehicle = (vehicle or "").strip()

        issues = []
        if not name:
            issues.append(ValidationIssue(
                field="name",
                message="Driver name is required",
                severity="error",
            ))
        if not pin:
            issues.append(ValidationIssue(
                field="pin",
                message="PIN is required",
                severity="error",
            ))

        limits = [
            ("name", "Driver name", name, DRIVER_NAME_MAX_LENGTH),
            ("vehicle", "Vehicle", vehicle, VEHICLE_MAX_LENGTH),
            ("pin", "PIN", pin, PIN_MAX_LENGTH),
        ]
        for field, label, value, limit in limits:
            if len(value) > limit:
                issues.append(ValidationIssue(
                    field=field,
                    message=f"{label} must be at most {limit} characters",
                    severity="error",
                ))
        return ValidationResult(issues=issues)

    def validate_notes(self, notes: Optional[str]) -> ValidationResult:
        """Report notes are free text up to a fixed length."""
        if len((notes or "").strip()) > NOTES_MAX_LENGTH:
            return ValidationResult(issues=[ValidationIssue(
                field="notes",
                message=f"Notes must be at most {NOTES_MAX_LENGTH} characters",
                severity="error",
            )])
        return ValidationResult()

    def validate_password_change(
        self,
        new_password: str,
        confirm_password: str,
    ) -> ValidationResult:
        """
        Check a new admin password.

        The mismatch check runs first; a mismatched pair is not also
        checked for length.
        """
        if new_password != confirm_password:
            return ValidationResult(issues=[ValidationIssue(
                field="confirm_password",
                message="Passwords do not match",
                severity="error",
            )])
        if len(new_password) < self._min_password_length:
            return ValidationResult(issues=[ValidationIssue(
                field="new_password",
                message=(
                    f"Password must be at least {self._min_password_length} characters"
                ),
                severity="error",
            )])
        return ValidationResult()

    def validate_report(
        self,
        report: DailyReport,
        today: Optional[date] = None,
    ) -> ValidationResult:
        """Soft checks on a built report. Only warnings are produced."""
        today = today or date.today()
        issues = []

        if report.report_date > today:
            issues.append(ValidationIssue(
                field="date",
                message=f"Report date {report.report_date.isoformat()} is in the future",
                severity="warning",
            ))

        if (
            report.login_time != "00:00"
            and report.logout_time != "00:00"
            and report.logout_time < report.login_time
        ):
            issues.append(ValidationIssue(
                field="logout_time",
                message="Logout time is earlier than login time",
                severity="warning",
            ))

        if report.driver_salary > report.total_income:
            issues.append(ValidationIssue(
                field="driver_salary",
                message="Salary is higher than the day's total income",
                severity="warning",
            ))

        return ValidationResult(issues=issues)
