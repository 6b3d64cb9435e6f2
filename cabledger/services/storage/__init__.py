"""
Storage Services Package

Provides the ledger storage interface and its two implementations:
Google Sheets as the primary store and local JSON files as the fallback.
"""

from cabledger.services.storage.interface import (
    ConnectionError,
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
)
from cabledger.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsLedgerStorage,
)
from cabledger.services.storage.local import (
    LocalKeyValueStore,
    LocalLedgerStorage,
)
from cabledger.services.storage.selector import (
    FailoverLedgerStorage,
    select_storage,
)

__all__ = [
    # Interface
    "LedgerStorageInterface",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    # Google Sheets implementation
    "GoogleSheetsClient",
    "GoogleSheetsLedgerStorage",
    # Local fallback
    "LocalKeyValueStore",
    "LocalLedgerStorage",
    # Selection
    "FailoverLedgerStorage",
    "select_storage",
]
