"""Services package."""

from cabledger.services.statement import (
    StatementBuilder,
    StatementError,
)
from cabledger.services.storage import (
    ConnectionError,
    FailoverLedgerStorage,
    GoogleSheetsClient,
    GoogleSheetsLedgerStorage,
    LedgerStorageInterface,
    LocalLedgerStorage,
    NotFoundError,
    StorageError,
    select_storage,
)

__all__ = [
    # Statement
    "StatementBuilder",
    "StatementError",
    # Storage services
    "ConnectionError",
    "FailoverLedgerStorage",
    "GoogleSheetsClient",
    "GoogleSheetsLedgerStorage",
    "LedgerStorageInterface",
    "LocalLedgerStorage",
    "NotFoundError",
    "StorageError",
    "select_storage",
]
