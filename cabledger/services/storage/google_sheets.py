"""
Google Sheets Storage Implementation

DESIGN DECISION: The fleet owner keeps the ledger in a Google Sheet:
1. The owner can open the raw data directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- Every call reads the whole worksheet (fine for one small fleet)
- No transactions; an upsert is "find row, overwrite or append"
- Filtering and aggregation happen in Python

Columns are snake_case. The income and expense breakdowns are stored
as JSON in a single cell each.
"""

import json
from typing import Optional

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from cabledger.config import GoogleSheetsSettings, get_settings
from cabledger.models.ledger import DailyReport, Driver
from cabledger.services.storage.interface import (
    ConnectionError,
    LedgerStorageInterface,
    StorageError,
)


# Column mappings for the drivers sheet
DRIVER_COLUMNS = [
    "id",
    "name",
    "vehicle",
    "pin",
]

# Column mappings for the daily_reports sheet
REPORT_COLUMNS = [
    "id",
    "driver_id",
    "driver_name",
    "date",
    "kms_driven",
    "login_time",
    "logout_time",
    "income",
    "expenses",
    "total_income",
    "total_expenses",
    "driver_salary",
    "net_profit",
    "notes",
    "timestamp",
]

# Column mappings for the app_settings sheet
SETTINGS_COLUMNS = [
    "key",
    "value",
]

ADMIN_PASSWORD_KEY = "admin_pwd"

logger = structlog.get_logger(__name__)

# Only transient API failures are worth retrying
_retry_api = retry(
    retry=retry_if_exception_type(gspread.exceptions.APIError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    reraise=True,
)


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and hands out the three ledger worksheets,
    creating any that are missing.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create(self, title: str, columns: list[str]) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=1000,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_drivers_sheet(self) -> gspread.Worksheet:
        """Get or create the drivers worksheet."""
        return self._get_or_create(self._settings.drivers_sheet_name, DRIVER_COLUMNS)

    def get_reports_sheet(self) -> gspread.Worksheet:
        """Get or create the daily_reports worksheet."""
        return self._get_or_create(self._settings.reports_sheet_name, REPORT_COLUMNS)

    def get_settings_sheet(self) -> gspread.Worksheet:
        """Get or create the app_settings worksheet."""
        return self._get_or_create(
            self._settings.settings_sheet_name, SETTINGS_COLUMNS
        )


@_retry_api
def _read_rows(sheet: gspread.Worksheet) -> list[list[str]]:
    """All data rows, header excluded."""
    return sheet.get_all_values()[1:]


@_retry_api
def _upsert_row(sheet: gspread.Worksheet, key: str, row: list) -> None:
    """Overwrite the row whose first cell equals `key`, or append one."""
    for idx, existing in enumerate(sheet.get_all_values()[1:], start=2):  # row 1 is header
        if existing and existing[0] == key:
            sheet.update(
                range_name=f"A{idx}",
                values=[row],
                value_input_option="RAW",
            )
            return
    sheet.append_row(row, value_input_option="RAW")


@_retry_api
def _delete_row(sheet: gspread.Worksheet, key: str) -> bool:
    for idx, existing in enumerate(sheet.get_all_values()[1:], start=2):
        if existing and existing[0] == key:
            sheet.delete_rows(idx)
            return True
    return False


class GoogleSheetsLedgerStorage(LedgerStorageInterface):
    """
    Google Sheets implementation of ledger storage.

    One driver or report per row; the first column is the record ID.
    """

    name = "google_sheets"

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    # ------------------------------------------------------------------
    # Row mapping
    # ------------------------------------------------------------------

    @staticmethod
    def _driver_to_row(driver: Driver) -> list:
        return [driver.id, driver.name, driver.vehicle, driver.pin]

    @staticmethod
    def _row_to_driver(row: list) -> Driver:
        record = dict(zip(DRIVER_COLUMNS, row))
        return Driver(
            id=record["id"],
            name=record.get("name", ""),
            vehicle=record.get("vehicle", ""),
            pin=record.get("pin", ""),
        )

    @staticmethod
    def _report_to_row(report: DailyReport) -> list:
        """Convert a DailyReport to a spreadsheet row."""
        return [
            report.id,
            report.driver_id,
            report.driver_name,
            report.report_date.isoformat(),
            report.kms_driven,
            report.login_time,
            report.logout_time,
            json.dumps(report.income.model_dump()),
            json.dumps(report.expenses.model_dump()),
            report.total_income,
            report.total_expenses,
            report.driver_salary,
            report.net_profit,
            report.notes or "",
            report.timestamp,
        ]

    @staticmethod
    def _row_to_report(row: list) -> DailyReport:
        """
        Convert a spreadsheet row to a DailyReport.

        The stored totals are ignored; the model derives them again.
        """
        # Handle missing trailing columns gracefully
        record = dict(zip(REPORT_COLUMNS, row))

        def safe_json(column: str) -> dict:
            raw = record.get(column) or ""
            return json.loads(raw) if raw else {}

        return DailyReport(
            id=record["id"],
            driver_id=record.get("driver_id", ""),
            driver_name=record.get("driver_name", ""),
            report_date=record.get("date"),
            kms_driven=record.get("kms_driven"),
            login_time=record.get("login_time"),
            logout_time=record.get("logout_time"),
            income=safe_json("income"),
            expenses=safe_json("expenses"),
            driver_salary=record.get("driver_salary"),
            notes=record.get("notes"),
            timestamp=int(float(record.get("timestamp") or 0)),
        )

    @staticmethod
    def _parse_rows(rows: list, parse) -> list:
        """Parse data rows, skipping blank and malformed ones."""
        records = []
        for row_number, row in enumerate(rows, start=2):
            if not row or not row[0]:  # Skip empty rows
                continue
            try:
                records.append(parse(row))
            except (ValueError, TypeError) as e:
                logger.warning("malformed_row_skipped", row=row_number, error=str(e))
        return records

    # ------------------------------------------------------------------
    # Drivers
    # ------------------------------------------------------------------

    async def get_drivers(self) -> list[Driver]:
        """Return every driver in the sheet."""
        try:
            sheet = self._client.get_drivers_sheet()
            return self._parse_rows(_read_rows(sheet), self._row_to_driver)
        except Exception as e:
            raise StorageError(f"Failed to list drivers: {e}")

    async def save_driver(self, driver: Driver) -> bool:
        try:
            sheet = self._client.get_drivers_sheet()
            _upsert_row(sheet, driver.id, self._driver_to_row(driver))
            return True
        except Exception as e:
            raise StorageError(f"Failed to save driver: {e}")

    async def delete_driver(self, driver_id: str) -> bool:
        try:
            sheet = self._client.get_drivers_sheet()
            return _delete_row(sheet, driver_id)
        except Exception as e:
            raise StorageError(f"Failed to delete driver: {e}")

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    async def get_reports(self) -> list[DailyReport]:
        """Return every report in the sheet."""
        try:
            sheet = self._client.get_reports_sheet()
            return self._parse_rows(_read_rows(sheet), self._row_to_report)
        except Exception as e:
            raise StorageError(f"Failed to list reports: {e}")

    async def save_report(self, report: DailyReport) -> bool:
        """Save a report, replacing the row with the same ID."""
        try:
            sheet = self._client.get_reports_sheet()
            _upsert_row(sheet, report.id, self._report_to_row(report))
            return True
        except Exception as e:
            raise StorageError(f"Failed to save report: {e}")

    async def delete_report(self, report_id: str) -> bool:
        try:
            sheet = self._client.get_reports_sheet()
            return _delete_row(sheet, report_id)
        except Exception as e:
            raise StorageError(f"Failed to delete report: {e}")

    # ------------------------------------------------------------------
    # Admin credential
    # ------------------------------------------------------------------

    async def get_admin_password(self) -> str:
        try:
            sheet = self._client.get_settings_sheet()
            for row in _read_rows(sheet):
                if len(row) > 1 and row[0] == ADMIN_PASSWORD_KEY and row[1]:
                    return row[1]
            return self.default_admin_password()
        except Exception as e:
            raise StorageError(f"Failed to read admin password: {e}")

    async def set_admin_password(self, password: str) -> bool:
        try:
            sheet = self._client.get_settings_sheet()
            _upsert_row(sheet, ADMIN_PASSWORD_KEY, [ADMIN_PASSWORD_KEY, password])
            return True
        except Exception as e:
            raise StorageError(f"Failed to save admin password: {e}")

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    async def ping(self) -> bool:
        """Open the spreadsheet; any failure means unreachable."""
        try:
            self._client.get_spreadsheet()
            return True
        except Exception:
            return False
