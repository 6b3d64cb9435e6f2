"""
Tests for the storage layer.

The local store runs against a temp directory; the Google Sheets
store runs against the in-memory client from conftest.
"""

import asyncio
import json

import pytest

from cabledger.models import Driver
from cabledger.services.storage import (
    LocalKeyValueStore,
    LocalLedgerStorage,
    NotFoundError,
    FailoverLedgerStorage,
    StorageError,
    select_storage,
)
from cabledger.services.storage.google_sheets import REPORT_COLUMNS
from cabledger.services.storage.local import DRIVERS_KEY, REPORTS_KEY


def run(coro):
    return asyncio.run(coro)


class TestLocalKeyValueStore:
    """Whole-value JSON documents on disk."""

    def test_missing_key_is_none(self, tmp_path):
        assert LocalKeyValueStore(tmp_path).get("nothing") is None

    def test_set_then_get(self, tmp_path):
        store = LocalKeyValueStore(tmp_path / "nested")
        store.set("tyc_reports", [{"id": "a"}])
        assert store.get("tyc_reports") == [{"id": "a"}]

    def test_no_temp_files_left(self, tmp_path):
        store = LocalKeyValueStore(tmp_path)
        store.set("k", {"a": 1})
        store.set("k", {"a": 2})
        assert [p.name for p in tmp_path.iterdir()] == ["k.json"]

    def test_corrupt_file_raises(self, tmp_path):
        (tmp_path / "k.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(StorageError):
            LocalKeyValueStore(tmp_path).get("k")


class TestLocalLedgerStorage:
    """Local fallback store."""

    def test_seeds_demo_drivers_once(self, local_storage):
        drivers = run(local_storage.get_drivers())
        assert [d.name for d in drivers] == ["Ramesh Kumar", "Suresh Raj"]
        assert drivers[0].pin == "1234"

        run(local_storage.delete_driver("1"))
        assert [d.id for d in run(local_storage.get_drivers())] == ["2"]

    def test_empty_list_is_not_reseeded(self, local_storage):
        run(local_storage.delete_driver("1"))
        run(local_storage.delete_driver("2"))
        assert run(local_storage.get_drivers()) == []

    def test_no_seed_when_disabled(self, tmp_path):
        storage = LocalLedgerStorage(data_dir=tmp_path, seed_demo_drivers=False)
        assert run(storage.get_drivers()) == []

    def test_save_driver_upserts(self, local_storage):
        run(local_storage.save_driver(
            Driver(id="1", name="Ramesh K", vehicle="TN 38 BR 9999", pin="4321")
        ))
        drivers = run(local_storage.get_drivers())
        assert len(drivers) == 2
        assert run(local_storage.get_driver("1")).vehicle == "TN 38 BR 9999"

    def test_report_upsert_is_idempotent(self, local_storage, make_report):
        report = make_report()
        run(local_storage.save_report(report))
        run(local_storage.save_report(report))

        stored = run(local_storage.get_reports())
        assert len(stored) == 1
        assert stored[0] == report

    def test_report_replace(self, local_storage, make_report):
        report = make_report()
        run(local_storage.save_report(report))
        changed = report.model_copy(update={"notes": "late start"})
        run(local_storage.save_report(changed))
        assert run(local_storage.get_report(report.id)).notes == "late start"

    def test_reports_stored_in_camel_case(self, local_storage, make_report):
        run(local_storage.save_report(make_report()))
        path = local_storage._store.data_dir / f"{REPORTS_KEY}.json"
        record = json.loads(path.read_text(encoding="utf-8"))[0]
        assert record["driverId"] == "1"
        assert record["netProfit"] == 350

    def test_delete_report(self, local_storage, make_report):
        report = make_report()
        run(local_storage.save_report(report))
        assert run(local_storage.delete_report(report.id)) is True
        assert run(local_storage.delete_report(report.id)) is False
        with pytest.raises(NotFoundError):
            run(local_storage.get_report(report.id))

    def test_delete_driver_keeps_reports(self, local_storage, make_report):
        run(local_storage.save_report(make_report(driver_id="1")))
        run(local_storage.delete_driver("1"))
        assert len(run(local_storage.get_reports())) == 1

    def test_admin_password(self, local_storage):
        assert run(local_storage.get_admin_password()) == "admin"
        run(local_storage.set_admin_password("s3cret"))
        assert run(local_storage.get_admin_password()) == "s3cret"

    def test_corrupt_drivers_blob(self, local_storage):
        path = local_storage._store.data_dir
        path.mkdir(parents=True, exist_ok=True)
        (path / f"{DRIVERS_KEY}.json").write_text("[", encoding="utf-8")
        with pytest.raises(StorageError):
            run(local_storage.get_drivers())

    def test_ping(self, local_storage):
        assert run(local_storage.ping()) is True


class TestGoogleSheetsLedgerStorage:
    """Remote store against the in-memory sheet."""

    def test_driver_crud(self, sheets_storage, sheets_client, ramesh):
        run(sheets_storage.save_driver(ramesh))
        run(sheets_storage.save_driver(ramesh.model_copy(update={"pin": "9999"})))

        assert len(sheets_client.drivers.rows) == 2  # header + one
        assert run(sheets_storage.get_driver("1")).pin == "9999"

        assert run(sheets_storage.delete_driver("1")) is True
        assert run(sheets_storage.get_drivers()) == []

    def test_report_row_layout(self, sheets_storage, sheets_client, make_report):
        report = make_report(driver_salary=100)
        run(sheets_storage.save_report(report))

        row = dict(zip(REPORT_COLUMNS, sheets_client.reports.rows[1]))
        assert row["id"] == report.id
        assert row["date"] == "2025-03-15"
        assert json.loads(row["income"])["local"] == 500
        assert float(row["net_profit"]) == 250

    def test_report_roundtrip(self, sheets_storage, make_report):
        report = make_report(notes="toll heavy", login_time="08:00")
        run(sheets_storage.save_report(report))
        assert run(sheets_storage.get_reports()) == [report]

    def test_report_upsert(self, sheets_storage, sheets_client, make_report):
        report = make_report()
        run(sheets_storage.save_report(report))
        run(sheets_storage.save_report(report.model_copy(update={"notes": "x"})))
        assert len(sheets_client.reports.rows) == 2
        assert run(sheets_storage.get_report(report.id)).notes == "x"

    def test_stored_totals_are_rederived(self, sheets_storage, sheets_client, make_report):
        run(sheets_storage.save_report(make_report()))
        net_profit_col = REPORT_COLUMNS.index("net_profit")
        sheets_client.reports.rows[1][net_profit_col] = "99999"
        assert run(sheets_storage.get_reports())[0].net_profit == 350

    def test_malformed_and_blank_rows_skipped(self, sheets_storage, sheets_client, make_report):
        good = make_report()
        run(sheets_storage.save_report(good))
        sheets_client.reports.rows.append([])
        sheets_client.reports.rows.append(["bad", "1", "x", "not-a-date"])
        sheets_client.reports.rows.append(["bad2", "1", "x", "2025-03-01", "", "", "", "{oops"])

        assert [r.id for r in run(sheets_storage.get_reports())] == [good.id]

    def test_delete_report_missing(self, sheets_storage):
        assert run(sheets_storage.delete_report("nope")) is False

    def test_admin_password(self, sheets_storage, sheets_client):
        assert run(sheets_storage.get_admin_password()) == "admin"
        run(sheets_storage.set_admin_password("first"))
        run(sheets_storage.set_admin_password("second"))
        assert run(sheets_storage.get_admin_password()) == "second"
        assert len(sheets_client.settings.rows) == 2

    def test_sheet_failure_wrapped(self, sheets_storage, sheets_client):
        def broken():
            raise RuntimeError("quota")

        sheets_client.get_reports_sheet = broken
        with pytest.raises(StorageError, match="quota"):
            run(sheets_storage.get_reports())

    def test_ping(self, sheets_storage, sheets_client):
        assert run(sheets_storage.ping()) is True
        sheets_client.reachable = False
        assert run(sheets_storage.ping()) is False


class TestSelectStorage:
    """Choosing between the remote and the local store."""

    def test_primary_when_reachable(self, sheets_storage, local_storage):
        assert run(select_storage(sheets_storage, local_storage)) is sheets_storage

    def test_fallback_when_unreachable(self, sheets_storage, sheets_client, local_storage, activity):
        sheets_client.reachable = False
        chosen = run(select_storage(sheets_storage, local_storage, activity))
        assert chosen is local_storage
        assert activity.event_types() == ["storage_fallback_activated"]

    def test_fallback_when_not_configured(self, local_storage, activity):
        assert run(select_storage(None, local_storage, activity)) is local_storage
        assert activity.events[0].error_message == "remote store not configured"


class TestFailoverLedgerStorage:
    """Calls that fail on the remote store are repeated on the local one."""

    @staticmethod
    def break_reports_sheet(sheets_client, reachable=False):
        def broken():
            raise RuntimeError("503 backend error")

        sheets_client.get_reports_sheet = broken
        sheets_client.reachable = reachable

    def test_starts_on_primary(self, sheets_storage, local_storage):
        storage = FailoverLedgerStorage(sheets_storage, local_storage)
        assert run(storage.select()) is sheets_storage
        assert storage.using_fallback is False
        assert storage.name == sheets_storage.name

    def test_starts_on_fallback_without_primary(self, local_storage, activity):
        storage = FailoverLedgerStorage(None, local_storage, activity)
        assert storage.using_fallback is True
        run(storage.select())
        assert storage.active is local_storage

    def test_save_lands_locally_after_outage(
        self, sheets_storage, sheets_client, local_storage, activity, make_report
    ):
        storage = FailoverLedgerStorage(sheets_storage, local_storage, activity)
        run(storage.select())
        self.break_reports_sheet(sheets_client)

        report = make_report()
        assert run(storage.save_report(report)) is True

        assert storage.using_fallback is True
        assert run(local_storage.get_reports()) == [report]
        assert activity.event_types() == ["storage_fallback_activated"]

        # Later calls stay on the local store without another ping
        assert run(storage.get_reports()) == [report]
        assert activity.event_types() == ["storage_fallback_activated"]

    def test_error_raised_when_remote_still_answers(
        self, sheets_storage, sheets_client, local_storage
    ):
        storage = FailoverLedgerStorage(sheets_storage, local_storage)
        run(storage.select())
        self.break_reports_sheet(sheets_client, reachable=True)

        with pytest.raises(StorageError, match="503"):
            run(storage.get_reports())
        assert storage.using_fallback is False

    def test_not_found_does_not_fail_over(self, tmp_path, local_storage, activity):
        class MissingDriverStore(LocalLedgerStorage):
            async def delete_driver(self, driver_id):
                raise NotFoundError(f"Driver not found: {driver_id}")

        primary = MissingDriverStore(data_dir=tmp_path / "remote", seed_demo_drivers=False)
        storage = FailoverLedgerStorage(primary, local_storage, activity)

        with pytest.raises(NotFoundError):
            run(storage.delete_driver("9"))
        assert storage.active is primary
        assert activity.events == []

    def test_local_errors_propagate(self, tmp_path, activity):
        (tmp_path / "store").mkdir()
        (tmp_path / "store" / f"{DRIVERS_KEY}.json").write_text("[", encoding="utf-8")
        local = LocalLedgerStorage(data_dir=tmp_path / "store", seed_demo_drivers=False)
        storage = FailoverLedgerStorage(None, local, activity)

        with pytest.raises(StorageError):
            run(storage.get_drivers())
