"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is offered as a persistent backend because:
1. The user can view their ledger directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- Not suitable for high-volume data (we're fine for personal use)
- No transactions, so atomic() is the no-op default; the engine writes
  in a careful order (payment, payment audit, transaction, update audit)
- Limited query capabilities (we filter in Python)

Each collection lives in its own worksheet, one record per row, one
column per model field. Dict and list fields are JSON-encoded.
"""

import json
from typing import Generic, Optional, TypeVar
from uuid import UUID

import gspread
from google.oauth2.service_account import Credentials
from pydantic import BaseModel
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from debt_ledger.config import GoogleSheetsSettings, get_settings
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
    StorageConnectionError,
    StorageError,
    TransactionStorageInterface,
)


ModelT = TypeVar("ModelT", bound=BaseModel)

# Transient API failures (quota, 5xx) are worth another attempt
_sheets_retry = retry(
    retry=retry_if_exception_type(gspread.exceptions.APIError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    reraise=True,
)


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and worksheet creation.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @property
    def settings(self) -> GoogleSheetsSettings:
        return self._settings

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise StorageConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise StorageConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise StorageConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_worksheet(self, title: str, columns: list[str]) -> gspread.Worksheet:
        """Get or create a worksheet with the given header row."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=1000,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet


class SheetTable(Generic[ModelT]):
    """
    One worksheet holding one kind of record.

    Row 1 is the header; column order follows the model's field order.
    Columns named in json_columns hold JSON documents.
    """

    def __init__(
        self,
        client,
        title: str,
        model: type[ModelT],
        json_columns: tuple[str, ...] = (),
    ):
        self._client = client
        self._title = title
        self._model = model
        self.columns = list(model.model_fields)
        self._json_columns = set(json_columns)

    def _sheet(self):
        return self._client.get_worksheet(self._title, self.columns)

    def to_row(self, record: ModelT) -> list[str]:
        """Convert a record to a spreadsheet row."""
        data = record.model_dump(mode="json")
        row = []
        for column in self.columns:
            value = data[column]
            if value is None:
                row.append("")
            elif column in self._json_columns or isinstance(value, bool):
                row.append(json.dumps(value))
            else:
                row.append(str(value))
        return row

    def from_row(self, row: list[str]) -> ModelT:
        """Convert a spreadsheet row back to a record."""
        data = {}
        for index, column in enumerate(self.columns):
            cell = row[index] if index < len(row) else ""
            if cell == "":
                continue
            data[column] = json.loads(cell) if column in self._json_columns else cell
        return self._model.model_validate(data)

    @_sheets_retry
    def all_records(self) -> list[ModelT]:
        try:
            rows = self._sheet().get_all_values()[1:]
        except gspread.exceptions.APIError:
            raise
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read {self._title}: {e}")
        return [self.from_row(row) for row in rows if row and row[0]]

    def find(self, record_id: UUID) -> Optional[ModelT]:
        key = str(record_id)
        for record in self.all_records():
            if str(record.id) == key:
                return record
        return None

    def _row_index(self, record_id: UUID) -> Optional[int]:
        key = str(record_id)
        rows = self._sheet().get_all_values()
        for idx, row in enumerate(rows[1:], start=2):  # Row 1 is header
            if row and row[0] == key:
                return idx
        return None

    @_sheets_retry
    def append(self, record: ModelT) -> None:
        if self._row_index(record.id) is not None:
            raise DuplicateError(f"{self._title} already has {record.id}")
        try:
            self._sheet().append_row(self.to_row(record), value_input_option="RAW")
        except gspread.exceptions.APIError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to append to {self._title}: {e}")

    @_sheets_retry
    def replace(self, record: ModelT) -> None:
        idx = self._row_index(record.id)
        if idx is None:
            raise RecordNotFoundError(f"{self._title} has no {record.id}")
        try:
            self._sheet().update(range_name=f"A{idx}", values=[self.to_row(record)])
        except gspread.exceptions.APIError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update {self._title}: {e}")

    @_sheets_retry
    def remove(self, record_id: UUID) -> bool:
        idx = self._row_index(record_id)
        if idx is None:
            return False
        self._sheet().delete_rows(idx)
        return True


class GoogleSheetsLedgerStore(
    TransactionStorageInterface,
    DirectoryStorageInterface,
    ReminderStorageInterface,
    AuditStorageInterface,
):
    """
    Google Sheets implementation of every ledger storage interface.

    Audit entries are append-only: the audit table is never updated or
    trimmed through this class.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()
        settings = self._client.settings
        self._transactions = SheetTable(self._client, settings.transactions_sheet_name, Transaction)
        self._payments = SheetTable(self._client, settings.payments_sheet_name, PartialPayment)
        self._counterparties = SheetTable(self._client, settings.counterparties_sheet_name, Counterparty)
        self._accounts = SheetTable(self._client, settings.accounts_sheet_name, Account)
        self._categories = SheetTable(self._client, settings.categories_sheet_name, Category)
        self._reminders = SheetTable(self._client, settings.reminders_sheet_name, Reminder)
        self._audit = SheetTable(
            self._client,
            settings.audit_sheet_name,
            AuditLogEntry,
            json_columns=("old_value", "new_value"),
        )

    # Transactions and payments

    async def save_transaction(self, transaction: Transaction) -> bool:
        self._transactions.append(transaction)
        return True

    async def get_transaction(self, transaction_id: UUID) -> Optional[Transaction]:
        return self._transactions.find(transaction_id)

    async def update_transaction(self, transaction: Transaction) -> bool:
        self._transactions.replace(transaction)
        return True

    async def list_transactions(
        self,
        counterparty_id: Optional[UUID] = None,
        status: Optional[TransactionStatus] = None,
        include_deleted: bool = False,
    ) -> list[Transaction]:
        transactions = []
        for transaction in self._transactions.all_records():
            if transaction.is_soft_deleted and not include_deleted:
                continue
            if counterparty_id and transaction.counterparty_id != counterparty_id:
                continue
            if status and transaction.status != status:
                continue
            transactions.append(transaction)
        return transactions

    async def save_payment(self, payment: PartialPayment) -> bool:
        self._payments.append(payment)
        return True

    async def get_payment(self, payment_id: UUID) -> Optional[PartialPayment]:
        return self._payments.find(payment_id)

    async def update_payment(self, payment: PartialPayment) -> bool:
        self._payments.replace(payment)
        return True

    async def list_payments(
        self,
        transaction_id: UUID,
        include_deleted: bool = False,
    ) -> list[PartialPayment]:
        return [
            payment for payment in self._payments.all_records()
            if payment.parent_transaction_id == transaction_id
            and (include_deleted or not payment.is_soft_deleted)
        ]

    # Directory

    async def save_counterparty(self, counterparty: Counterparty) -> bool:
        self._counterparties.append(counterparty)
        return True

    async def get_counterparty(self, counterparty_id: UUID) -> Optional[Counterparty]:
        return self._counterparties.find(counterparty_id)

    async def list_counterparties(self) -> list[Counterparty]:
        return self._counterparties.all_records()

    async def save_account(self, account: Account) -> bool:
        self._accounts.append(account)
        return True

    async def list_accounts(self) -> list[Account]:
        return self._accounts.all_records()

    async def save_category(self, category: Category) -> bool:
        self._categories.append(category)
        return True

    async def list_categories(self) -> list[Category]:
        return self._categories.all_records()

    # Reminders

    async def save_reminder(self, reminder: Reminder) -> bool:
        self._reminders.append(reminder)
        return True

    async def get_reminder(self, reminder_id: UUID) -> Optional[Reminder]:
        return self._reminders.find(reminder_id)

    async def update_reminder(self, reminder: Reminder) -> bool:
        self._reminders.replace(reminder)
        return True

    async def delete_reminder(self, reminder_id: UUID) -> bool:
        return self._reminders.remove(reminder_id)

    async def list_reminders(
        self,
        target_type: Optional[ReminderTargetType] = None,
        target_id: Optional[UUID] = None,
        status: Optional[ReminderStatus] = None,
    ) -> list[Reminder]:
        reminders = []
        for reminder in self._reminders.all_records():
            if target_type and reminder.target_type != target_type:
                continue
            if target_id and reminder.target_id != target_id:
                continue
            if status and reminder.status != status:
                continue
            reminders.append(reminder)
        return reminders

    # Audit log

    async def append_entry(self, entry: AuditLogEntry) -> AuditLogEntry:
        existing = self._audit.all_records()
        last_sequence = max((e.sequence for e in existing), default=0)
        stored = entry.model_copy(update={"sequence": last_sequence + 1})
        self._audit.append(stored)
        return stored

    async def list_entries(self) -> list[AuditLogEntry]:
        return sorted(self._audit.all_records(), key=lambda e: e.sequence)

    async def get_entries_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditLogEntry]:
        return [
            entry for entry in await self.list_entries()
            if entry.entity_type == entity_type and entry.entity_id == entity_id
        ]

    async def count_entries(self) -> int:
        return len(self._audit.all_records())
