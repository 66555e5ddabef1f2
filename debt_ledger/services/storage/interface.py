"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep an in-memory store for tests and single-session use
2. Swap in Google Sheets (or a real database) without touching the engine
3. Keep settlement logic decoupled from persistence mechanics

The interface is intentionally simple - we're not building a full ORM.
Records are addressed by id; filtering by soft-delete flag and status is
all the engine and the aggregator need.
"""

from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional
from uuid import UUID

from debt_ledger.exceptions import InfrastructureError
from debt_ledger.models.audit import AuditLogEntry
from debt_ledger.models.ledger import (
    Account,
    Category,
    Counterparty,
    PartialPayment,
    Reminder,
    ReminderStatus,
    ReminderTargetType,
    Transaction,
    TransactionStatus,
)


class TransactionStorageInterface(ABC):
    """
    Storage for transactions and the partial payments that settle them.

    Any storage implementation must implement these methods.
    """

    @asynccontextmanager
    async def atomic(self) -> AsyncIterator[None]:
        """
        Unit of work around a multi-record write.

        Stores that can roll back undo every write made inside the block
        when it raises. The default does nothing and relies on the engine
        writing in a careful order.
        """
        yield

    @abstractmethod
    async def save_transaction(self, transaction: Transaction) -> bool:
        """
        Save a new transaction.

        Raises:
            DuplicateError: If a transaction with this id exists
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def get_transaction(self, transaction_id: UUID) -> Optional[Transaction]:
        """
        Retrieve a transaction by id, including soft-deleted ones.

        Returns:
            The transaction if found, None otherwise
        """
        pass

    @abstractmethod
    async def update_transaction(self, transaction: Transaction) -> bool:
        """
        Replace a stored transaction as a whole.

        remaining_due and status are written together in this one call.

        Raises:
            RecordNotFoundError: If the transaction doesn't exist
        """
        pass

    @abstractmethod
    async def list_transactions(
        self,
        counterparty_id: Optional[UUID] = None,
        status: Optional[TransactionStatus] = None,
        include_deleted: bool = False,
    ) -> list[Transaction]:
        """
        List transactions in insertion order.

        Args:
            counterparty_id: Only transactions with this counterparty
            status: Only transactions in this status
            include_deleted: Include soft-deleted transactions
        """
        pass

    @abstractmethod
    async def save_payment(self, payment: PartialPayment) -> bool:
        pass

    @abstractmethod
    async def get_payment(self, payment_id: UUID) -> Optional[PartialPayment]:
        pass

    @abstractmethod
    async def update_payment(self, payment: PartialPayment) -> bool:
        """
        Raises:
            RecordNotFoundError: If the payment doesn't exist
        """
        pass

    @abstractmethod
    async def list_payments(
        self,
        transaction_id: UUID,
        include_deleted: bool = False,
    ) -> list[PartialPayment]:
        """Payments for one transaction, in insertion order."""
        pass


class DirectoryStorageInterface(ABC):
    """Storage for counterparties, accounts and categories."""

    @abstractmethod
    async def save_counterparty(self, counterparty: Counterparty) -> bool:
        pass

    @abstractmethod
    async def get_counterparty(self, counterparty_id: UUID) -> Optional[Counterparty]:
        pass

    @abstractmethod
    async def list_counterparties(self) -> list[Counterparty]:
        pass

    @abstractmethod
    async def save_account(self, account: Account) -> bool:
        pass

    @abstractmethod
    async def list_accounts(self) -> list[Account]:
        pass

    @abstractmethod
    async def save_category(self, category: Category) -> bool:
        pass

    @abstractmethod
    async def list_categories(self) -> list[Category]:
        pass


class ReminderStorageInterface(ABC):
    """Storage for reminders."""

    @abstractmethod
    async def save_reminder(self, reminder: Reminder) -> bool:
        pass

    @abstractmethod
    async def get_reminder(self, reminder_id: UUID) -> Optional[Reminder]:
        pass

    @abstractmethod
    async def update_reminder(self, reminder: Reminder) -> bool:
        """
        Raises:
            RecordNotFoundError: If the reminder doesn't exist
        """
        pass

    @abstractmethod
    async def delete_reminder(self, reminder_id: UUID) -> bool:
        """
        Physically remove a reminder.

        Returns:
            True if a reminder was removed
        """
        pass

    @abstractmethod
    async def list_reminders(
        self,
        target_type: Optional[ReminderTargetType] = None,
        target_id: Optional[UUID] = None,
        status: Optional[ReminderStatus] = None,
    ) -> list[Reminder]:
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_entry(self, entry: AuditLogEntry) -> AuditLogEntry:
        """
        Append an audit entry to the log.

        Returns:
            The stored entry, with its sequence number assigned
        """
        pass

    @abstractmethod
    async def list_entries(self) -> list[AuditLogEntry]:
        """
        All entries in append order (oldest first).
        """
        pass

    @abstractmethod
    async def get_entries_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditLogEntry]:
        """
        Get all entries for a specific entity.

        Returns:
            List of entries in chronological order
        """
        pass

    @abstractmethod
    async def count_entries(self) -> int:
        pass


class StorageError(InfrastructureError):
    """Base exception for storage operations."""
    pass


class RecordNotFoundError(StorageError):
    """Record not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate record."""
    pass


class StorageConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
