"""
Local Fallback Storage

Used when the Google Sheet cannot be reached. Each collection is kept
as one JSON document on disk, and every write replaces the whole
document atomically (temp file + rename). No locking: the app is a
single-user Streamlit process.

File layout under the data directory:
    tyc_drivers.json    list of driver records
    tyc_reports.json    list of report records (camelCase keys)
    tyc_admin_pwd.json  the admin password as a JSON string
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Optional, Union

import structlog

from cabledger.config import get_settings
from cabledger.models.ledger import DailyReport, Driver
from cabledger.services.storage.interface import (
    LedgerStorageInterface,
    StorageError,
)


DRIVERS_KEY = "tyc_drivers"
REPORTS_KEY = "tyc_reports"
ADMIN_PASSWORD_KEY = "tyc_admin_pwd"

# Written the first time the driver list is read and no list exists
DEMO_DRIVERS = [
    Driver(id="1", name="Ramesh Kumar", vehicle="TN 38 BR 1234", pin="1234"),
    Driver(id="2", name="Suresh Raj", vehicle="TN 38 CS 5678", pin="5678"),
]

logger = structlog.get_logger(__name__)


class LocalKeyValueStore:
    """Whole-value JSON documents keyed by name, one file per key."""

    def __init__(self, data_dir: Union[str, Path]):
        self._dir = Path(data_dir)

    @property
    def data_dir(self) -> Path:
        return self._dir

    def _path(self, key: str) -> Path:
        return self._dir / f"{key}.json"

    def get(self, key: str) -> Optional[Any]:
        """
        Read a value.

        Returns:
            The decoded value, or None if the key was never written

        Raises:
            StorageError: If the file exists but cannot be read or decoded
        """
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise StorageError(f"Failed to read {key}: {e}")

    def set(self, key: str, value: Any) -> None:
        """Replace a value atomically."""
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self._dir, prefix=f".{key}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(value, f, ensure_ascii=False, indent=2)
                os.replace(tmp_path, self._path(key))
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            raise StorageError(f"Failed to write {key}: {e}")


class LocalLedgerStorage(LedgerStorageInterface):
    """
    File-backed implementation of ledger storage.

    Every operation reads the full collection, changes it in memory and
    writes it back.
    """

    name = "local"

    def __init__(
        self,
        data_dir: Optional[Union[str, Path]] = None,
        seed_demo_drivers: Optional[bool] = None,
    ):
        if data_dir is None or seed_demo_drivers is None:
            settings = get_settings().local_store
            data_dir = settings.data_dir if data_dir is None else data_dir
            if seed_demo_drivers is None:
                seed_demo_drivers = settings.seed_demo_drivers

        self._store = LocalKeyValueStore(data_dir)
        self._seed_demo_drivers = seed_demo_drivers

    # ------------------------------------------------------------------
    # Drivers
    # ------------------------------------------------------------------

    async def get_drivers(self) -> list[Driver]:
        """Return every driver, seeding the demo drivers on first use."""
        stored = self._store.get(DRIVERS_KEY)
        if stored is None:
            if not self._seed_demo_drivers:
                return []
            drivers = [d.model_copy() for d in DEMO_DRIVERS]
            self._write_drivers(drivers)
            logger.info("demo_drivers_seeded", count=len(drivers))
            return drivers
        return [Driver.model_validate(record) for record in stored]

    def _write_drivers(self, drivers: list[Driver]) -> None:
        self._store.set(
            DRIVERS_KEY, [d.model_dump(mode="json", by_alias=True) for d in drivers]
        )

    async def save_driver(self, driver: Driver) -> bool:
        drivers = await self.get_drivers()
        for idx, existing in enumerate(drivers):
            if existing.id == driver.id:
                drivers[idx] = driver
                break
        else:
            drivers.append(driver)
        self._write_drivers(drivers)
        return True

    async def delete_driver(self, driver_id: str) -> bool:
        drivers = await self.get_drivers()
        remaining = [d for d in drivers if d.id != driver_id]
        self._write_drivers(remaining)
        return len(remaining) < len(drivers)

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    async def get_reports(self) -> list[DailyReport]:
        stored = self._store.get(REPORTS_KEY) or []
        return [DailyReport.model_validate(record) for record in stored]

    def _write_reports(self, reports: list[DailyReport]) -> None:
        self._store.set(REPORTS_KEY, [r.to_record() for r in reports])

    async def save_report(self, report: DailyReport) -> bool:
        reports = await self.get_reports()
        for idx, existing in enumerate(reports):
            if existing.id == report.id:
                reports[idx] = report
                break
        else:
            reports.append(report)
        self._write_reports(reports)
        return True

    async def delete_report(self, report_id: str) -> bool:
        reports = await self.get_reports()
        remaining = [r for r in reports if r.id != report_id]
        self._write_reports(remaining)
        return len(remaining) < len(reports)

    # ------------------------------------------------------------------
    # Admin credential
    # ------------------------------------------------------------------

    async def get_admin_password(self) -> str:
        return self._store.get(ADMIN_PASSWORD_KEY) or self.default_admin_password()

    async def set_admin_password(self, password: str) -> bool:
        self._store.set(ADMIN_PASSWORD_KEY, password)
        return True

    async def ping(self) -> bool:
        """The local store is available whenever its directory is writable."""
        try:
            self._store.data_dir.mkdir(parents=True, exist_ok=True)
            return os.access(self._store.data_dir, os.W_OK)
        except OSError:
            return False
