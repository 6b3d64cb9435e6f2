"""
Storage selection and failover.

The remote store is pinged when a session starts. If it does not
answer, the local store is used instead. A remote call that fails later
in the session runs the selection again and the call is repeated on
the store it returns.
Nothing is copied between the two stores.
"""

from typing import Optional

import structlog

from cabledger.activity import ActivityLogger
from cabledger.models.ledger import DailyReport, Driver
from cabledger.services.storage.interface import (
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
)


logger = structlog.get_logger(__name__)


async def select_storage(
    primary: Optional[LedgerStorageInterface],
    fallback: LedgerStorageInterface,
    activity: Optional[ActivityLogger] = None,
) -> LedgerStorageInterface:
    """
    Pick the store to use.

    Args:
        primary: Remote store, or None when it is not configured
        fallback: Local store
        activity: Where to record the fallback, if anywhere

    Returns:
        `primary` if its ping succeeds, `fallback` otherwise
    """
    if primary is not None and await primary.ping():
        logger.info("storage_selected", backend=primary.name)
        return primary

    reason = (
        "remote store not configured"
        if primary is None
        else f"{primary.name} did not respond"
    )
    if activity is not None:
        activity.log_storage_fallback(reason)
    else:
        logger.warning("storage_fallback_activated", reason=reason)
    return fallback


class FailoverLedgerStorage(LedgerStorageInterface):
    """
    Routes every call to the selected store.

    When the remote store raises StorageError (other than NotFoundError),
    the selection runs again and the call is repeated once on the store
    it returns. Errors from the local store propagate unchanged.
    """

    def __init__(
        self,
        primary: Optional[LedgerStorageInterface],
        fallback: LedgerStorageInterface,
        activity: Optional[ActivityLogger] = None,
    ):
        self._primary = primary
        self._fallback = fallback
        self._activity = activity
        self._active = primary if primary is not None else fallback

    @property
    def name(self) -> str:
        return self._active.name

    @property
    def active(self) -> LedgerStorageInterface:
        return self._active

    @property
    def using_fallback(self) -> bool:
        return self._active is self._fallback

    async def select(self) -> LedgerStorageInterface:
        """Ping the remote store and route later calls accordingly."""
        self._active = await select_storage(
            self._primary, self._fallback, self._activity
        )
        return self._active

    async def _call(self, operation: str, *args):
        store = self._active
        try:
            return await getattr(store, operation)(*args)
        except NotFoundError:
            raise
        except StorageError as e:
            if store is self._fallback:
                raise
            logger.warning(
                "remote_store_call_failed",
                operation=operation,
                error=str(e),
            )
            retry_store = await self.select()
            return await getattr(retry_store, operation)(*args)

    async def get_drivers(self) -> list[Driver]:
        return await self._call("get_drivers")

    async def save_driver(self, driver: Driver) -> bool:
        return await self._call("save_driver", driver)

    async def delete_driver(self, driver_id: str) -> bool:
        return await self._call("delete_driver", driver_id)

    async def get_reports(self) -> list[DailyReport]:
        return await self._call("get_reports")

    async def save_report(self, report: DailyReport) -> bool:
        return await self._call("save_report", report)

    async def delete_report(self, report_id: str) -> bool:
        return await self._call("delete_report", report_id)

    async def get_admin_password(self) -> str:
        return await self._call("get_admin_password")

    async def set_admin_password(self, password: str) -> bool:
        return await self._call("set_admin_password", password)

    async def ping(self) -> bool:
        return await self._active.ping()
