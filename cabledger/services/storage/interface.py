"""
Abstract Storage Interface

DESIGN DECISION: The ledger talks to one storage interface with two
implementations, the remote Google Sheet and a local JSON store. This
allows us to:
1. Run on the local store when the sheet cannot be reached
2. Use an in-memory sheet client for testing
3. Keep the flows decoupled from where records live

The interface is intentionally small. It is not an ORM, just the
operations the ledger needs.
"""

from abc import ABC, abstractmethod

from cabledger.config import get_settings
from cabledger.models.ledger import DailyReport, Driver


class LedgerStorageInterface(ABC):
    """
    Abstract interface for ledger storage operations.

    Every implementation must offer upsert semantics for drivers and
    reports: saving a record whose id already exists replaces it.
    """

    name: str = "storage"

    # ------------------------------------------------------------------
    # Drivers
    # ------------------------------------------------------------------

    @abstractmethod
    async def get_drivers(self) -> list[Driver]:
        """
        Return every driver profile.

        Raises:
            StorageError: If the drivers cannot be read
        """
        pass

    @abstractmethod
    async def save_driver(self, driver: Driver) -> bool:
        """
        Insert or replace a driver profile.

        Args:
            driver: The driver to save

        Returns:
            True if saved successfully

        Raises:
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def delete_driver(self, driver_id: str) -> bool:
        """
        Delete a driver by ID.

        Reports that reference the driver are left in place.

        Returns:
            True if a driver was removed, False if none matched
        """
        pass

    async def get_driver(self, driver_id: str) -> Driver:
        """
        Look up one driver.

        Raises:
            NotFoundError: If no driver has this ID
        """
        for driver in await self.get_drivers():
            if driver.id == driver_id:
                return driver
        raise NotFoundError(f"Driver not found: {driver_id}")

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    @abstractmethod
    async def get_reports(self) -> list[DailyReport]:
        """
        Return every daily report, in storage order.

        Raises:
            StorageError: If the reports cannot be read
        """
        pass

    @abstractmethod
    async def save_report(self, report: DailyReport) -> bool:
        """
        Insert or replace a daily report.

        Args:
            report: The report to save

        Returns:
            True if saved successfully

        Raises:
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def delete_report(self, report_id: str) -> bool:
        """
        Delete a report by ID.

        Returns:
            True if a report was removed, False if none matched
        """
        pass

    async def get_report(self, report_id: str) -> DailyReport:
        """
        Look up one report.

        Raises:
            NotFoundError: If no report has this ID
        """
        for report in await self.get_reports():
            if report.id == report_id:
                return report
        raise NotFoundError(f"Report not found: {report_id}")

    # ------------------------------------------------------------------
    # Admin credential
    # ------------------------------------------------------------------

    @abstractmethod
    async def get_admin_password(self) -> str:
        """Return the admin password, or the configured default when none has been set."""
        pass

    @staticmethod
    def default_admin_password() -> str:
        """Password accepted until the admin sets one ("admin" unless configured)."""
        return get_settings().app.default_admin_password

    @abstractmethod
    async def set_admin_password(self, password: str) -> bool:
        """Store a new admin password."""
        pass

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    @abstractmethod
    async def ping(self) -> bool:
        """
        Check that the backend is reachable.

        Returns:
            True if the backend answered, False otherwise. Never raises.
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
