"""Services package."""

from debt_ledger.services.storage import (
    AuditStorageInterface,
    DirectoryStorageInterface,
    DuplicateError,
    GoogleSheetsClient,
    GoogleSheetsLedgerStore,
    InMemoryLedgerStore,
    RecordNotFoundError,
    ReminderStorageInterface,
    StorageConnectionError,
    StorageError,
    TransactionStorageInterface,
)

__all__ = [
    "AuditStorageInterface",
    "DirectoryStorageInterface",
    "DuplicateError",
    "GoogleSheetsClient",
    "GoogleSheetsLedgerStore",
    "InMemoryLedgerStore",
    "RecordNotFoundError",
    "ReminderStorageInterface",
    "StorageConnectionError",
    "StorageError",
    "TransactionStorageInterface",
]
