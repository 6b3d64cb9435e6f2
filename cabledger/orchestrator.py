"""
Main Orchestrator for Cab Ledger

This module ties together all the components and defines the
end-to-end flows behind every screen:
1. Login (driver PIN or admin password)
2. Reports (submit, edit, delete)
3. Driver administration and the admin password
4. Statement export and AI analysis

DESIGN DECISION: The views never touch storage directly. Each flow
validates input, derives totals through the models, writes to the
selected store and logs one activity event. Errors come back as
exceptions with a message that can be shown to the user as-is.
"""

from datetime import date
from typing import Any, Iterable, Optional, Sequence, Union

import structlog
from pydantic import BaseModel, Field, ValidationError

from cabledger.activity import ActivityLogger
from cabledger.agents import FAILURE_MESSAGE, MISSING_KEY_MESSAGE, FinancialAnalystAgent
from cabledger.calculations.reports import build_report, recompute_report
from cabledger.config import get_settings
from cabledger.models.ledger import (
    ADMIN_USER_ID,
    DailyReport,
    DateFilter,
    Driver,
    SessionUser,
    UserRole,
    new_record_id,
)
from cabledger.queries import ALL_DRIVERS, filter_reports, period_label
from cabledger.services.statement import (
    StatementBuilder,
    driver_label,
    statement_filename,
)
from cabledger.services.storage import (
    FailoverLedgerStorage,
    GoogleSheetsClient,
    GoogleSheetsLedgerStorage,
    LedgerStorageInterface,
    LocalLedgerStorage,
)
from cabledger.validation import FormValidator, ValidationResult


logger = structlog.get_logger(__name__)


class LoginError(Exception):
    """Credentials did not match."""
    pass


class ValidationFailedError(Exception):
    """A form failed validation; the message is the first error."""

    def __init__(self, result: ValidationResult):
        self.result = result
        super().__init__(result.first_error or "Invalid input")


# =============================================================================
# FORM DATA - what the views hand over, as typed
# =============================================================================

class ReportFormData(BaseModel):
    """Raw values of the report form. Amounts may be any text."""

    report_date: date = Field(default_factory=date.today)
    kms_driven: Any = ""
    login_time: str = ""
    logout_time: str = ""
    income: dict[str, Any] = Field(default_factory=dict)
    expenses: dict[str, Any] = Field(default_factory=dict)
    salary: Any = ""
    notes: str = ""


class DriverFormData(BaseModel):
    """Raw values of the add/edit driver form. No id means a new driver."""

    id: Optional[str] = None
    name: str = ""
    vehicle: str = ""
    pin: str = ""


# =============================================================================
# FLOWS
# =============================================================================

class LoginFlow:
    """
    Signs users in.

    Drivers pick their name and enter a PIN; the admin enters the
    stored admin password. Both comparisons are plain equality.
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        activity: Optional[ActivityLogger] = None,
    ):
        self._storage = storage
        self._activity = activity or ActivityLogger()

    def login_driver(
        self,
        drivers: Iterable[Driver],
        driver_id: Optional[str],
        pin: str,
    ) -> SessionUser:
        """
        Check a driver's PIN.

        Raises:
            LoginError: Unknown driver or wrong PIN
        """
        driver = next((d for d in drivers if d.id == driver_id), None)
        if driver is None or driver.pin != pin:
            self._activity.log_login_failed(UserRole.DRIVER.value, driver_id)
            raise LoginError("Invalid Driver PIN.")

        self._activity.log_login_succeeded(driver.id, UserRole.DRIVER.value)
        return SessionUser(
            id=driver.id,
            name=driver.name,
            role=UserRole.DRIVER,
            vehicle=driver.vehicle,
        )

    async def login_admin(self, password: str) -> SessionUser:
        """
        Check the admin password.

        Raises:
            LoginError: Wrong password
        """
        stored = await self._storage.get_admin_password()
        if password != stored:
            self._activity.log_login_failed(UserRole.ADMIN.value)
            raise LoginError("Invalid Admin Password.")

        self._activity.log_login_succeeded(ADMIN_USER_ID, UserRole.ADMIN.value)
        return SessionUser(
            id=ADMIN_USER_ID,
            name="Administrator",
            role=UserRole.ADMIN,
        )

    def logout(self, user: SessionUser) -> None:
        self._activity.log_logged_out(user.id)


class ReportFlow:
    """
    Creates, edits and deletes daily reports.

    Totals are always derived by the model from the line items, both
    on submit and on every edit.
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        activity: Optional[ActivityLogger] = None,
        validator: Optional[FormValidator] = None,
    ):
        self._storage = storage
        self._activity = activity or ActivityLogger()
        self._validator = validator or FormValidator()

    def _check_notes(self, form: ReportFormData) -> None:
        result = self._validator.validate_notes(form.notes)
        if not result.is_valid:
            raise ValidationFailedError(result)

    async def submit_report(
        self,
        driver: Union[Driver, SessionUser],
        form: ReportFormData,
    ) -> DailyReport:
        """
        Build a new report for `driver` and save it.

        Raises:
            ValidationFailedError: Notes too long or a value out of range
        """
        self._check_notes(form)
        try:
            report = build_report(
                driver=driver,
                report_date=form.report_date,
                income=form.income,
                expenses=form.expenses,
                salary=form.salary,
                kms_driven=form.kms_driven,
                login_time=form.login_time,
                logout_time=form.logout_time,
                notes=form.notes,
            )
        except ValidationError as e:
            raise ValidationFailedError(ValidationResult.from_validation_error(e))
        await self._storage.save_report(report)
        self._activity.log_report_submitted(report.id, report.driver_id, report.net_profit)
        return report

    async def update_report(
        self,
        report: DailyReport,
        form: ReportFormData,
        actor_id: Optional[str] = None,
    ) -> DailyReport:
        """
        Apply the edit form to an existing report and save it.

        Raises:
            ValidationFailedError: Notes too long or a value out of range
            NotFoundError: The report was deleted in the meantime
        """
        self._check_notes(form)
        await self._storage.get_report(report.id)

        try:
            updated = recompute_report(
                report,
                report_date=form.report_date,
                kms_driven=form.kms_driven,
                login_time=form.login_time,
                logout_time=form.logout_time,
                income=form.income,
                expenses=form.expenses,
                driver_salary=form.salary,
                notes=form.notes,
            )
        except ValidationError as e:
            raise ValidationFailedError(ValidationResult.from_validation_error(e))
        await self._storage.save_report(updated)
        self._activity.log_report_updated(updated.id, actor_id, updated.net_profit)
        return updated

    async def delete_report(
        self,
        report_id: str,
        actor_id: Optional[str] = None,
    ) -> bool:
        """Delete a report. The views ask for confirmation first."""
        deleted = await self._storage.delete_report(report_id)
        self._activity.log_report_deleted(report_id, actor_id)
        return deleted


class DriverAdminFlow:
    """Driver profiles and the admin password."""

    def __init__(
        self,
        storage: LedgerStorageInterface,
        activity: Optional[ActivityLogger] = None,
        validator: Optional[FormValidator] = None,
    ):
        self._storage = storage
        self._activity = activity or ActivityLogger()
        self._validator = validator or FormValidator()

    async def save_driver(self, form: DriverFormData) -> Driver:
        """
        Add or update a driver.

        Raises:
            ValidationFailedError: Name or PIN missing, or a field too long
        """
        result = self._validator.validate_driver_form(
            form.name, form.pin, form.vehicle
        )
        if not result.is_valid:
            raise ValidationFailedError(result)

        is_new = not form.id
        try:
            driver = Driver(
                id=form.id or new_record_id(),
                name=form.name,
                vehicle=form.vehicle or "",
                pin=form.pin,
            )
        except ValidationError as e:
            raise ValidationFailedError(ValidationResult.from_validation_error(e))
        await self._storage.save_driver(driver)
        self._activity.log_driver_saved(driver.id, is_new)
        return driver

    async def delete_driver(self, driver_id: str) -> bool:
        """Delete a driver profile. Their past reports are kept."""
        deleted = await self._storage.delete_driver(driver_id)
        self._activity.log_driver_deleted(driver_id)
        return deleted

    async def change_admin_password(
        self,
        new_password: str,
        confirm_password: str,
    ) -> None:
        """
        Replace the admin password.

        Raises:
            ValidationFailedError: "Passwords do not match" or too short
        """
        result = self._validator.validate_password_change(new_password, confirm_password)
        if not result.is_valid:
            raise ValidationFailedError(result)

        await self._storage.set_admin_password(new_password)
        self._activity.log_admin_password_changed()


class StatementFlow:
    """Builds the downloadable P&L statement for the admin's current view."""

    def __init__(
        self,
        builder: Optional[StatementBuilder] = None,
        activity: Optional[ActivityLogger] = None,
    ):
        self._builder = builder or StatementBuilder(get_settings().company)
        self._activity = activity or ActivityLogger()

    def export(
        self,
        reports: Sequence[DailyReport],
        drivers: Sequence[Driver],
        driver_id: Optional[str] = ALL_DRIVERS,
        mode: Union[DateFilter, str] = DateFilter.MONTH,
        start: Optional[date] = None,
        end: Optional[date] = None,
        today: Optional[date] = None,
    ) -> tuple[str, bytes]:
        """
        Filter `reports` like the dashboard does and render them.

        Returns:
            (filename, pdf_bytes)

        Raises:
            StatementError: If rendering fails
        """
        selected = filter_reports(reports, driver_id, mode, start, end, today)
        period = period_label(mode, start, end)

        try:
            pdf_bytes = self._builder.build(
                selected,
                driver=driver_label(drivers, driver_id),
                period=period,
                prepared_on=today,
            )
        except Exception as e:
            self._activity.log_error("statement_failed", str(e), {"period": period})
            raise

        filename = statement_filename(period)
        self._activity.log_statement_exported(filename, period, len(selected))
        return filename, pdf_bytes


class AnalysisFlow:
    """Gemini commentary on the reports the admin is looking at."""

    def __init__(
        self,
        agent: Optional[FinancialAnalystAgent] = None,
        activity: Optional[ActivityLogger] = None,
    ):
        self._agent = agent or FinancialAnalystAgent()
        self._activity = activity or ActivityLogger()

    async def analyze(self, reports: Sequence[DailyReport]) -> str:
        text = await self._agent.analyze(reports)
        if text == FAILURE_MESSAGE:
            self._activity.log_external_service_error("gemini", text)
        elif text != MISSING_KEY_MESSAGE:
            self._activity.log_analysis_generated(len(reports))
        return text


# =============================================================================
# WIRING
# =============================================================================

class AppComponents:
    """Everything a session needs, bound to the selected store."""

    def __init__(
        self,
        storage: LedgerStorageInterface,
        activity: ActivityLogger,
        validator: FormValidator,
    ):
        self.storage = storage
        self.activity = activity
        self.validator = validator
        self.login = LoginFlow(storage, activity)
        self.reports = ReportFlow(storage, activity, validator)
        self.drivers = DriverAdminFlow(storage, activity, validator)
        self.statements = StatementFlow(activity=activity)
        self.analysis = AnalysisFlow(activity=activity)

    @property
    def using_fallback(self) -> bool:
        if isinstance(self.storage, FailoverLedgerStorage):
            return self.storage.using_fallback
        return isinstance(self.storage, LocalLedgerStorage)


async def create_app_components(use_remote: bool = True) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        use_remote: Whether to try Google Sheets at all.
                    Set to False to run purely on the local store.

    Returns:
        AppComponents bound to a failover store that starts on Google
        Sheets if it answers, otherwise on the local store
    """
    activity = ActivityLogger()

    primary = None
    if use_remote:
        try:
            primary = GoogleSheetsLedgerStorage(GoogleSheetsClient())
        except ValidationError as e:
            # Google Sheets not configured - continue without it
            logger.warning("google_sheets_not_configured", error=str(e))

    storage = FailoverLedgerStorage(primary, LocalLedgerStorage(), activity)
    await storage.select()
    return AppComponents(storage, activity, FormValidator())
