"""
Tests for Cab Ledger

Test strategy:
1. Unit tests for individual components (models, calculations, validators)
2. Integration tests for flows against the local store and a fake sheet
3. No real API calls in tests (use fakes)
"""

import pytest
from datetime import date

from cabledger.models import (
    ActivityEvent,
    ActivityEventBuilder,
    ActivityEventType,
    ActivitySeverity,
    DailyReport,
    DateFilter,
    Driver,
    ExpenseBreakdown,
    IncomeBreakdown,
    SessionUser,
    UserRole,
)


class TestDriverModel:
    """Tests for the Driver model."""

    def test_driver_creation(self):
        """Test Driver model creation."""
        driver = Driver(name="Ramesh Kumar", vehicle="TN 38 BR 1234", pin="1234")
        assert driver.name == "Ramesh Kumar"
        assert driver.id  # generated

    def test_driver_strips_whitespace(self):
        """Test that whitespace is stripped from the name."""
        driver = Driver(name="  Ramesh  ", pin="1")
        assert driver.name == "Ramesh"

    def test_driver_requires_pin(self):
        with pytest.raises(ValueError):
            Driver(name="Ramesh", pin="")

    def test_first_name(self):
        assert Driver(name="Suresh Raj", pin="1").first_name == "Suresh"


class TestDailyReportModel:
    """Tests for DailyReport and its derived totals."""

    def test_totals_are_derived(self, make_report):
        """500 income, 150 fuel, 0 salary gives 350 profit."""
        report = make_report()
        assert report.total_income == 500
        assert report.total_expenses == 150
        assert report.net_profit == 350

    def test_supplied_totals_are_ignored(self, make_report):
        report = make_report(total_income=9999, total_expenses=1, net_profit=42)
        assert report.total_income == 500
        assert report.net_profit == 350

    def test_salary_counts_as_expense(self, make_report):
        report = make_report(driver_salary=200)
        assert report.total_expenses == 350
        assert report.trip_expenses == 150
        assert report.net_profit == 150

    def test_text_amounts_are_parsed(self, make_report):
        report = make_report(
            income={"local": "1,200", "outstation": "500/-"},
            expenses={"toll": "..1.5"},
            driver_salary="",
            kms_driven="120 km",
        )
        assert report.income.local == 1200
        assert report.income.outstation == 500
        assert report.expenses.toll == 1.5
        assert report.driver_salary == 0
        assert report.kms_driven == 120

    def test_negative_number_rejected(self, make_report):
        """Test that negative amounts are rejected."""
        with pytest.raises(ValueError):
            make_report(expenses={"fuel": -10.0})

    def test_legacy_mixed_income_key(self):
        income = IncomeBreakdown.model_validate({"local": 100, "mixed": 50})
        assert income.other == 50

    def test_blank_times_default(self, make_report):
        report = make_report(login_time="", logout_time=None)
        assert report.login_time == "00:00"
        assert report.logout_time == "00:00"

    def test_to_record_uses_camel_case(self, make_report):
        record = make_report(driver_salary=100).to_record()
        assert record["driverId"] == "1"
        assert record["driverName"] == "Ramesh Kumar"
        assert record["date"] == "2025-03-15"
        assert record["netProfit"] == 250
        assert record["income"]["outstation"] == 0

    def test_record_roundtrip(self, make_report):
        report = make_report(notes="Airport run")
        loaded = DailyReport.model_validate(report.to_record())
        assert loaded == report

    def test_expense_trip_total(self):
        expenses = ExpenseBreakdown(fuel=0.1, toll=0.2)
        assert expenses.trip_total == 0.3


class TestSessionUser:
    """Tests for the signed-in user."""

    def test_admin_flag(self):
        admin = SessionUser(id="admin", name="Administrator", role=UserRole.ADMIN)
        driver = SessionUser(id="1", name="Ramesh", role=UserRole.DRIVER)
        assert admin.is_admin is True
        assert driver.is_admin is False


class TestActivityModels:
    """Tests for activity-related models."""

    def test_activity_event_creation(self):
        """Test ActivityEvent model creation."""
        event = ActivityEvent(
            event_type=ActivityEventType.REPORT_SUBMITTED,
            description="Daily report submitted",
        )
        assert event.event_type == ActivityEventType.REPORT_SUBMITTED
        assert event.severity == ActivitySeverity.INFO

    def test_activity_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = ActivityEventBuilder.report_submitted("r1", "1", 350.0)
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "report_submitted"
        assert log_dict["details"]["net_profit"] == 350.0
        assert log_dict["actor_id"] == "1"

    def test_login_failed_is_warning(self):
        event = ActivityEventBuilder.login_failed("DRIVER", driver_id="2")
        assert event.severity == ActivitySeverity.WARNING
        assert event.entity_id == "2"

    def test_storage_fallback_event(self):
        event = ActivityEventBuilder.storage_fallback_activated("google_sheets did not respond")
        assert event.event_type == ActivityEventType.STORAGE_FALLBACK_ACTIVATED
        assert event.error_message == "google_sheets did not respond"


class TestDateFilter:
    """Tests for the date filter enum."""

    def test_all_modes_exist(self):
        for mode in ["today", "week", "month", "year", "custom", "all"]:
            assert DateFilter(mode) is not None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
