"""
Integration tests for the application flows.

Flows run against the local store in a temp directory. The Gemini
agent is replaced by a stub.
"""

import asyncio
from datetime import date

import pytest

from cabledger.agents import FAILURE_MESSAGE, MISSING_KEY_MESSAGE
from cabledger.config import get_settings
from cabledger.models import UserRole
from cabledger.orchestrator import (
    AnalysisFlow,
    AppComponents,
    DriverAdminFlow,
    DriverFormData,
    LoginError,
    LoginFlow,
    ReportFlow,
    ReportFormData,
    StatementFlow,
    ValidationFailedError,
    create_app_components,
)
from cabledger.services.storage import (
    FailoverLedgerStorage,
    LocalLedgerStorage,
    NotFoundError,
)
from cabledger.validation import FormValidator


def run(coro):
    return asyncio.run(coro)


class StubAgent:
    """Returns a canned answer instead of calling Gemini."""

    def __init__(self, answer):
        self.answer = answer
        self.seen = None

    async def analyze(self, reports):
        self.seen = list(reports)
        return self.answer


class TestLoginFlow:
    """Driver PIN and admin password sign-in."""

    def test_driver_login(self, local_storage, activity):
        flow = LoginFlow(local_storage, activity)
        drivers = run(local_storage.get_drivers())

        user = flow.login_driver(drivers, "1", "1234")

        assert user.id == "1"
        assert user.role == UserRole.DRIVER
        assert user.vehicle == "TN 38 BR 1234"
        assert activity.event_types() == ["login_succeeded"]

    def test_wrong_pin(self, local_storage, activity):
        flow = LoginFlow(local_storage, activity)
        drivers = run(local_storage.get_drivers())

        with pytest.raises(LoginError, match="Invalid Driver PIN."):
            flow.login_driver(drivers, "1", "0000")
        assert activity.event_types() == ["login_failed"]

    def test_unknown_driver(self, local_storage, activity):
        flow = LoginFlow(local_storage, activity)
        with pytest.raises(LoginError):
            flow.login_driver([], "1", "1234")

    def test_admin_login_default_password(self, local_storage, activity):
        flow = LoginFlow(local_storage, activity)
        user = run(flow.login_admin("admin"))
        assert user.is_admin
        assert user.name == "Administrator"

    def test_admin_login_after_password_change(self, local_storage, activity):
        run(local_storage.set_admin_password("taxi2025"))
        flow = LoginFlow(local_storage, activity)

        with pytest.raises(LoginError, match="Invalid Admin Password."):
            run(flow.login_admin("admin"))
        assert run(flow.login_admin("taxi2025")).is_admin

    def test_logout_logged(self, local_storage, activity):
        flow = LoginFlow(local_storage, activity)
        user = run(flow.login_admin("admin"))
        flow.logout(user)
        assert activity.event_types()[-1] == "logged_out"


class TestReportFlow:
    """Submitting, editing and deleting daily reports."""

    def test_submit(self, local_storage, activity, ramesh):
        flow = ReportFlow(local_storage, activity)
        form = ReportFormData(
            report_date=date(2025, 3, 15),
            kms_driven="140",
            login_time="07:30",
            logout_time="19:00",
            income={"local": "500"},
            expenses={"fuel": "150"},
            salary="",
        )

        report = run(flow.submit_report(ramesh, form))

        assert report.net_profit == 350
        assert report.driver_name == "Ramesh Kumar"
        assert run(local_storage.get_reports()) == [report]
        assert activity.events[-1].details["net_profit"] == 350

    def test_update_rederives_totals(self, local_storage, activity, make_report):
        original = make_report()
        run(local_storage.save_report(original))
        flow = ReportFlow(local_storage, activity)

        form = ReportFormData(
            report_date=original.report_date,
            income={"local": "800"},
            expenses={"fuel": "150"},
            salary="200",
        )
        updated = run(flow.update_report(original, form, actor_id="admin"))

        assert updated.id == original.id
        assert updated.timestamp == original.timestamp
        assert updated.net_profit == 450
        assert run(local_storage.get_report(original.id)).net_profit == 450
        assert activity.events[-1].actor_id == "admin"

    def test_update_deleted_report(self, local_storage, activity, make_report):
        flow = ReportFlow(local_storage, activity)
        with pytest.raises(NotFoundError):
            run(flow.update_report(make_report(), ReportFormData()))
        assert run(local_storage.get_reports()) == []

    def test_long_notes_rejected(self, local_storage, activity, ramesh):
        flow = ReportFlow(local_storage, activity, FormValidator(4))
        form = ReportFormData(income={"local": "500"}, notes="n" * 2500)

        with pytest.raises(ValidationFailedError, match="at most 2000 characters"):
            run(flow.submit_report(ramesh, form))
        assert run(local_storage.get_reports()) == []

    def test_out_of_range_value_rejected(self, local_storage, activity, ramesh):
        flow = ReportFlow(local_storage, activity, FormValidator(4))
        form = ReportFormData(income={"local": -100})

        with pytest.raises(ValidationFailedError, match="income.local"):
            run(flow.submit_report(ramesh, form))

    def test_update_with_long_notes(self, local_storage, activity, make_report):
        original = make_report()
        run(local_storage.save_report(original))
        flow = ReportFlow(local_storage, activity, FormValidator(4))
        form = ReportFormData(report_date=original.report_date, notes="n" * 2500)

        with pytest.raises(ValidationFailedError):
            run(flow.update_report(original, form))
        assert run(local_storage.get_report(original.id)).notes == ""

    def test_delete(self, local_storage, activity, make_report):
        report = make_report()
        run(local_storage.save_report(report))
        flow = ReportFlow(local_storage, activity)

        assert run(flow.delete_report(report.id, actor_id="1")) is True
        assert run(local_storage.get_reports()) == []
        assert activity.event_types() == ["report_deleted"]

    def test_submit_survives_remote_outage(
        self, sheets_storage, sheets_client, local_storage, activity, ramesh
    ):
        storage = FailoverLedgerStorage(sheets_storage, local_storage, activity)
        run(storage.select())
        assert storage.using_fallback is False

        def broken():
            raise RuntimeError("503 backend error")

        sheets_client.get_reports_sheet = broken
        sheets_client.reachable = False

        flow = ReportFlow(storage, activity, FormValidator(4))
        report = run(flow.submit_report(
            ramesh, ReportFormData(income={"local": "500"}, expenses={"fuel": "150"})
        ))

        assert storage.using_fallback is True
        assert run(local_storage.get_reports()) == [report]
        assert "storage_fallback_activated" in activity.event_types()


class TestDriverAdminFlow:
    """Driver management and the admin password."""

    def test_add_driver(self, local_storage, activity):
        flow = DriverAdminFlow(local_storage, activity, FormValidator(4))
        driver = run(flow.save_driver(
            DriverFormData(name="Karthik S", vehicle="TN 37 AB 0001", pin="2468")
        ))

        assert driver.id not in ("1", "2")
        assert len(run(local_storage.get_drivers())) == 3
        assert activity.events[-1].details["is_new"] is True

    def test_edit_driver(self, local_storage, activity):
        flow = DriverAdminFlow(local_storage, activity, FormValidator(4))
        run(flow.save_driver(DriverFormData(id="2", name="Suresh R", pin="5678")))

        assert run(local_storage.get_driver("2")).name == "Suresh R"
        assert len(run(local_storage.get_drivers())) == 2

    def test_driver_requires_name(self, local_storage, activity):
        flow = DriverAdminFlow(local_storage, activity, FormValidator(4))
        with pytest.raises(ValidationFailedError, match="Driver name is required"):
            run(flow.save_driver(DriverFormData(name=" ", pin="1111")))

    def test_vehicle_too_long(self, local_storage, activity):
        flow = DriverAdminFlow(local_storage, activity, FormValidator(4))
        with pytest.raises(ValidationFailedError, match="Vehicle must be at most 50"):
            run(flow.save_driver(
                DriverFormData(name="Ramesh", vehicle="V" * 60, pin="1234")
            ))
        assert len(run(local_storage.get_drivers())) == 2

    def test_delete_driver(self, local_storage, activity):
        flow = DriverAdminFlow(local_storage, activity, FormValidator(4))
        assert run(flow.delete_driver("1")) is True
        assert [d.id for d in run(local_storage.get_drivers())] == ["2"]

    def test_change_password(self, local_storage, activity):
        flow = DriverAdminFlow(local_storage, activity, FormValidator(4))
        run(flow.change_admin_password("newpass", "newpass"))
        assert run(local_storage.get_admin_password()) == "newpass"
        assert activity.event_types() == ["admin_password_changed"]

    def test_password_mismatch(self, local_storage, activity):
        flow = DriverAdminFlow(local_storage, activity, FormValidator(4))
        with pytest.raises(ValidationFailedError, match="Passwords do not match"):
            run(flow.change_admin_password("abcd", "abce"))
        assert run(local_storage.get_admin_password()) == "admin"

    def test_password_too_short(self, local_storage, activity):
        flow = DriverAdminFlow(local_storage, activity, FormValidator(4))
        with pytest.raises(ValidationFailedError, match="at least 4 characters"):
            run(flow.change_admin_password("abc", "abc"))


class TestStatementFlow:
    """PDF export of the admin's current view."""

    def test_export(self, activity, make_report, ramesh, suresh):
        reports = [
            make_report(report_date=date(2025, 3, 10)),
            make_report(driver_id="2", driver_name="Suresh Raj"),
            make_report(report_date=date(2025, 1, 5)),
        ]
        flow = StatementFlow(activity=activity)

        filename, pdf = flow.export(
            reports, [ramesh, suresh], driver_id="1", mode="month",
            today=date(2025, 3, 15),
        )

        assert pdf.startswith(b"%PDF")
        assert filename.startswith("PL_Statement_This_Month_")
        assert filename.endswith(".pdf")
        event = activity.events[-1]
        assert event.event_type.value == "statement_exported"
        assert event.details["record_count"] == 1

    def test_export_failure_logged(self, activity, make_report):
        class BrokenBuilder:
            def build(self, *args, **kwargs):
                raise RuntimeError("no fonts")

        flow = StatementFlow(builder=BrokenBuilder(), activity=activity)
        with pytest.raises(RuntimeError):
            flow.export([make_report()], [], mode="all")
        assert activity.event_types() == ["system_error"]


class TestAnalysisFlow:
    """Gemini commentary with the agent stubbed."""

    def test_analysis_text(self, activity, make_report):
        agent = StubAgent("Business is healthy.")
        flow = AnalysisFlow(agent=agent, activity=activity)
        reports = [make_report()]

        assert run(flow.analyze(reports)) == "Business is healthy."
        assert agent.seen == reports
        assert activity.event_types() == ["analysis_generated"]

    def test_failure_logged(self, activity, make_report):
        flow = AnalysisFlow(agent=StubAgent(FAILURE_MESSAGE), activity=activity)
        assert run(flow.analyze([make_report()])) == FAILURE_MESSAGE
        assert activity.event_types() == ["external_service_error"]

    def test_missing_key_not_logged(self, activity):
        flow = AnalysisFlow(agent=StubAgent(MISSING_KEY_MESSAGE), activity=activity)
        assert run(flow.analyze([])) == MISSING_KEY_MESSAGE
        assert activity.events == []


class TestCreateAppComponents:
    """Wiring with the remote store disabled."""

    @pytest.fixture(autouse=True)
    def local_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("LOCAL_STORE_DATA_DIR", str(tmp_path / "data"))
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        get_settings.cache_clear()
        yield
        get_settings.cache_clear()

    def test_local_only(self, tmp_path):
        components = run(create_app_components(use_remote=False))

        assert isinstance(components, AppComponents)
        assert isinstance(components.storage, FailoverLedgerStorage)
        assert isinstance(components.storage.active, LocalLedgerStorage)
        assert components.using_fallback is True
        assert len(run(components.storage.get_drivers())) == 2
        assert (tmp_path / "data" / "tyc_drivers.json").exists()
