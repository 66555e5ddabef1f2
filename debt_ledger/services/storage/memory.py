"""
In-Memory Storage Implementation

Keeps every collection in insertion-ordered dicts. Used for tests and
for single-session use where nothing needs to survive the process.

Unlike the Sheets backend this store supports real rollback: atomic()
snapshots every collection and restores it if the block raises, so a
failed write sequence leaves nothing behind.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional
from uuid import UUID

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
from debt_ledger.services.storage.interface import (
    AuditStorageInterface,
    DirectoryStorageInterface,
    DuplicateError,
    RecordNotFoundError,
    ReminderStorageInterface,
    TransactionStorageInterface,
)


class InMemoryLedgerStore(
    TransactionStorageInterface,
    DirectoryStorageInterface,
    ReminderStorageInterface,
    AuditStorageInterface,
):
    """
    One object implementing every storage interface.

    Records are pydantic models and are replaced whole on update, so a
    reader never sees a half-written transaction.
    """

    def __init__(self):
        self._transactions: dict[UUID, Transaction] = {}
        self._payments: dict[UUID, PartialPayment] = {}
        self._counterparties: dict[UUID, Counterparty] = {}
        self._accounts: dict[UUID, Account] = {}
        self._categories: dict[UUID, Category] = {}
        self._reminders: dict[UUID, Reminder] = {}
        self._audit: list[AuditLogEntry] = []
        self._write_lock = asyncio.Lock()

    # -------------------------------------------------------------------------
    # Unit of work
    # -------------------------------------------------------------------------

    def _collections(self) -> tuple:
        return (
            self._transactions,
            self._payments,
            self._counterparties,
            self._accounts,
            self._categories,
            self._reminders,
        )

    @asynccontextmanager
    async def atomic(self) -> AsyncIterator[None]:
        """Serialize writers and roll back every collection on failure."""
        async with self._write_lock:
            saved = [dict(collection) for collection in self._collections()]
            audit_length = len(self._audit)
            try:
                yield
            except BaseException:
                for collection, previous in zip(self._collections(), saved):
                    collection.clear()
                    collection.update(previous)
                del self._audit[audit_length:]
                raise

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _insert(collection: dict, record, kind: str) -> bool:
        if record.id in collection:
            raise DuplicateError(f"{kind} already exists: {record.id}")
        collection[record.id] = record
        return True

    @staticmethod
    def _replace(collection: dict, record, kind: str) -> bool:
        if record.id not in collection:
            raise RecordNotFoundError(f"{kind} not found: {record.id}")
        collection[record.id] = record
        return True

    # -------------------------------------------------------------------------
    # Transactions and payments
    # -------------------------------------------------------------------------

    async def save_transaction(self, transaction: Transaction) -> bool:
        return self._insert(self._transactions, transaction, "Transaction")

    async def get_transaction(self, transaction_id: UUID) -> Optional[Transaction]:
        return self._transactions.get(transaction_id)

    async def update_transaction(self, transaction: Transaction) -> bool:
        return self._replace(self._transactions, transaction, "Transaction")

    async def list_transactions(
        self,
        counterparty_id: Optional[UUID] = None,
        status: Optional[TransactionStatus] = None,
        include_deleted: bool = False,
    ) -> list[Transaction]:
        transactions = []
        for transaction in self._transactions.values():
            if transaction.is_soft_deleted and not include_deleted:
                continue
            if counterparty_id and transaction.counterparty_id != counterparty_id:
                continue
            if status and transaction.status != status:
                continue
            transactions.append(transaction)
        return transactions

    async def save_payment(self, payment: PartialPayment) -> bool:
        return self._insert(self._payments, payment, "Payment")

    async def get_payment(self, payment_id: UUID) -> Optional[PartialPayment]:
        return self._payments.get(payment_id)

    async def update_payment(self, payment: PartialPayment) -> bool:
        return self._replace(self._payments, payment, "Payment")

    async def list_payments(
        self,
        transaction_id: UUID,
        include_deleted: bool = False,
    ) -> list[PartialPayment]:
        return [
            payment for payment in self._payments.values()
            if payment.parent_transaction_id == transaction_id
            and (include_deleted or not payment.is_soft_deleted)
        ]

    # -------------------------------------------------------------------------
    # Directory
    # -------------------------------------------------------------------------

    async def save_counterparty(self, counterparty: Counterparty) -> bool:
        return self._insert(self._counterparties, counterparty, "Counterparty")

    async def get_counterparty(self, counterparty_id: UUID) -> Optional[Counterparty]:
        return self._counterparties.get(counterparty_id)

    async def list_counterparties(self) -> list[Counterparty]:
        return list(self._counterparties.values())

    async def save_account(self, account: Account) -> bool:
        return self._insert(self._accounts, account, "Account")

    async def list_accounts(self) -> list[Account]:
        return list(self._accounts.values())

    async def save_category(self, category: Category) -> bool:
        return self._insert(self._categories, category, "Category")

    async def list_categories(self) -> list[Category]:
        return list(self._categories.values())

    # -------------------------------------------------------------------------
    # Reminders
    # -------------------------------------------------------------------------

    async def save_reminder(self, reminder: Reminder) -> bool:
        return self._insert(self._reminders, reminder, "Reminder")

    async def get_reminder(self, reminder_id: UUID) -> Optional[Reminder]:
        return self._reminders.get(reminder_id)

    async def update_reminder(self, reminder: Reminder) -> bool:
        return self._replace(self._reminders, reminder, "Reminder")

    async def delete_reminder(self, reminder_id: UUID) -> bool:
        return self._reminders.pop(reminder_id, None) is not None

    async def list_reminders(
        self,
        target_type: Optional[ReminderTargetType] = None,
        target_id: Optional[UUID] = None,
        status: Optional[ReminderStatus] = None,
    ) -> list[Reminder]:
        reminders = []
        for reminder in self._reminders.values():
            if target_type and reminder.target_type != target_type:
                continue
            if target_id and reminder.target_id != target_id:
                continue
            if status and reminder.status != status:
                continue
            reminders.append(reminder)
        return reminders

    # -------------------------------------------------------------------------
    # Audit log
    # -------------------------------------------------------------------------

    async def append_entry(self, entry: AuditLogEntry) -> AuditLogEntry:
        stored = entry.model_copy(update={"sequence": len(self._audit) + 1})
        self._audit.append(stored)
        return stored

    async def list_entries(self) -> list[AuditLogEntry]:
        return list(self._audit)

    async def get_entries_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditLogEntry]:
        return [
            entry for entry in self._audit
            if entry.entity_type == entity_type and entry.entity_id == entity_id
        ]

    async def count_entries(self) -> int:
        return len(self._audit)
