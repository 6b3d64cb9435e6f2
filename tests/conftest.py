"""
Shared fixtures.

No test talks to Google or Gemini: the sheet client is replaced by an
in-memory one and the analyst agent by a stub.
"""

from datetime import date

import pytest

from cabledger.activity import ActivityLogger
from cabledger.models import DailyReport, Driver
from cabledger.services.storage import (
    ConnectionError,
    GoogleSheetsLedgerStorage,
    LocalLedgerStorage,
)
from cabledger.services.storage.google_sheets import (
    DRIVER_COLUMNS,
    REPORT_COLUMNS,
    SETTINGS_COLUMNS,
)


class FakeWorksheet:
    """The subset of gspread.Worksheet the storage layer uses."""

    def __init__(self, header):
        self.rows = [list(header)]

    def get_all_values(self):
        return [list(row) for row in self.rows]

    def append_row(self, row, value_input_option=None):
        self.rows.append([str(cell) for cell in row])

    def update(self, range_name=None, values=None, value_input_option=None):
        idx = int(range_name[1:]) - 1
        self.rows[idx] = [str(cell) for cell in values[0]]

    def delete_rows(self, index):
        del self.rows[index - 1]


class FakeSheetsClient:
    """Stands in for GoogleSheetsClient."""

    def __init__(self, reachable=True):
        self.reachable = reachable
        self.drivers = FakeWorksheet(DRIVER_COLUMNS)
        self.reports = FakeWorksheet(REPORT_COLUMNS)
        self.settings = FakeWorksheet(SETTINGS_COLUMNS)

    def get_spreadsheet(self):
        if not self.reachable:
            raise ConnectionError("Spreadsheet not found: test")
        return object()

    def get_drivers_sheet(self):
        return self.drivers

    def get_reports_sheet(self):
        return self.reports

    def get_settings_sheet(self):
        return self.settings


class RecordingActivityLogger(ActivityLogger):
    """Keeps every event it logs."""

    def __init__(self):
        super().__init__("cabledger.tests")
        self.events = []

    def log(self, event):
        self.events.append(event)
        return super().log(event)

    def event_types(self):
        return [e.event_type.value for e in self.events]


@pytest.fixture
def ramesh():
    return Driver(id="1", name="Ramesh Kumar", vehicle="TN 38 BR 1234", pin="1234")


@pytest.fixture
def suresh():
    return Driver(id="2", name="Suresh Raj", vehicle="TN 38 CS 5678", pin="5678")


@pytest.fixture
def make_report(ramesh):
    """Factory for reports with sensible defaults."""

    def _make(**overrides):
        data = {
            "driver_id": ramesh.id,
            "driver_name": ramesh.name,
            "report_date": date(2025, 3, 15),
            "income": {"local": 500},
            "expenses": {"fuel": 150},
            "driver_salary": 0,
        }
        data.update(overrides)
        return DailyReport(**data)

    return _make


@pytest.fixture
def local_storage(tmp_path):
    return LocalLedgerStorage(data_dir=tmp_path / "store", seed_demo_drivers=True)


@pytest.fixture
def sheets_client():
    return FakeSheetsClient()


@pytest.fixture
def sheets_storage(sheets_client):
    return GoogleSheetsLedgerStorage(sheets_client)


@pytest.fixture
def activity():
    return RecordingActivityLogger()
