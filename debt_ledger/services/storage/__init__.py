"""
Storage Services Package

Provides abstract interfaces and concrete implementations for ledger storage.
The in-memory store is the default; Google Sheets is the persistent option.
"""

from debt_ledger.services.storage.interface import (
    AuditStorageInterface,
    DirectoryStorageInterface,
    DuplicateError,
    RecordNotFoundError,
    ReminderStorageInterface,
    StorageConnectionError,
    StorageError,
    TransactionStorageInterface,
)
from debt_ledger.services.storage.memory import InMemoryLedgerStore
from debt_ledger.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsLedgerStore,
    SheetTable,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "DirectoryStorageInterface",
    "ReminderStorageInterface",
    "TransactionStorageInterface",
    # Exceptions
    "DuplicateError",
    "RecordNotFoundError",
    "StorageConnectionError",
    "StorageError",
    # Implementations
    "InMemoryLedgerStore",
    "GoogleSheetsClient",
    "GoogleSheetsLedgerStore",
    "SheetTable",
]
