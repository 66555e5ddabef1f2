"""
Core Ledger Models

These models define the records the ledger keeps:
1. Counterparties, accounts and categories (directory records)
2. Transactions and the partial payments that settle them
3. Reminders tied to transactions

DESIGN DECISION: Relations are id references, never embedded objects.
A transaction points at its counterparty by id and every lookup goes
through storage. This keeps snapshots flat and avoids object cycles.

CRITICAL: remaining_due on a Transaction is a cache. The source of truth
is amount minus the sum of the transaction's partial payments.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import (
    AwareDatetime,
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)

from debt_ledger.models.money import ZERO, ExactDecimal, Money, PositiveMoney


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionDirection(str, Enum):
    """Direction of a transaction from the user's perspective."""
    GAVE = "gave"          # User gave money to the counterparty
    RECEIVED = "received"  # User received money from the counterparty


class TransactionType(str, Enum):
    LOAN = "loan"
    BILL_PAYMENT = "bill_payment"
    RECHARGE = "recharge"
    OTHER = "other"


class TransactionStatus(str, Enum):
    """
    Settlement progress of a transaction.

    CRITICAL: CANCELLED is terminal. Cancelled transactions never take
    payments and never count towards any balance.
    """
    PENDING = "pending"                      # No payments yet
    PARTIALLY_SETTLED = "partially_settled"  # 0 < remaining_due < amount
    SETTLED = "settled"                      # remaining_due <= 0
    CANCELLED = "cancelled"


class PaymentDirection(str, Enum):
    FROM_COUNTERPARTY = "from_counterparty"  # Counterparty paying the user back
    TO_COUNTERPARTY = "to_counterparty"      # User paying the counterparty back


class PaymentMethod(str, Enum):
    CASH = "cash"
    UPI = "upi"
    BANK = "bank"
    CARD = "card"
    OTHER = "other"


class AccountType(str, Enum):
    CASH = "cash"
    BANK = "bank"
    UPI = "upi"
    CARD = "card"
    OTHER = "other"


class BillCategory(str, Enum):
    """Bill category for utility payments and recharges."""
    ELECTRICITY = "electricity"
    TV = "tv"
    MOBILE = "mobile"
    INTERNET = "internet"
    OTHER = "other"


class ReminderTargetType(str, Enum):
    TRANSACTION = "transaction"
    COUNTERPARTY = "counterparty"
    BILL = "bill"
    GENERIC = "generic"


class ReminderStatus(str, Enum):
    UPCOMING = "upcoming"
    DONE = "done"
    SNOOZED = "snoozed"
    CANCELLED = "cancelled"


class RepeatPattern(str, Enum):
    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


# =============================================================================
# DIRECTORY RECORDS
# =============================================================================

class Counterparty(BaseModel):
    """
    A person the user owes money to or is owed money by.

    No numeric state lives here. The balance is always derived from
    transactions.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    display_name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Name shown in lists"
    )
    phone: Optional[str] = Field(default=None, max_length=30)
    notes: Optional[str] = Field(default=None, max_length=1000)
    is_favorite: bool = False
    created_at: datetime = Field(default_factory=_utcnow)


class Account(BaseModel):
    """A wallet or payment method money moves through."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    name: str = Field(..., min_length=1, max_length=100)
    type: AccountType = AccountType.CASH
    is_active: bool = True


class Category(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    name: str = Field(..., min_length=1, max_length=100)
    icon_name: str = "label"
    color_key: str = "default"


# =============================================================================
# TRANSACTIONS
# =============================================================================

class TransactionDraft(BaseModel):
    """
    Fields a caller supplies to create a transaction.

    This is PROPOSED data, NOT validated. Amount, account and category are
    deliberately loose here so the validator can report every problem at
    once instead of failing on the first one.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    direction: TransactionDirection
    type: TransactionType = TransactionType.OTHER
    amount: Optional[ExactDecimal] = None
    account_id: Optional[UUID] = None
    category_id: Optional[UUID] = None
    counterparty_id: Optional[UUID] = None
    transaction_time: Optional[AwareDatetime] = None  # Naive times are rejected
    notes: Optional[str] = Field(default=None, max_length=1000)
    consumer_id: Optional[str] = Field(
        default=None,
        max_length=50,
        description="Phone number or consumer number for bill payments"
    )
    bill_category: Optional[BillCategory] = None
    is_for_self: bool = Field(
        default=False,
        description="Bill paid for self: creates no debt"
    )
    linked_task_id: Optional[UUID] = None


class Transaction(BaseModel):
    """
    The central ledger record.

    direction, type, amount, account, category, counterparty and time are
    fixed at creation. Only remaining_due, status, updated_at and the
    soft-delete flag change afterwards, and only through the settlement
    engine.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    # Identity
    id: UUID = Field(default_factory=uuid4)

    # Fixed facts
    direction: TransactionDirection
    type: TransactionType = TransactionType.OTHER
    amount: PositiveMoney
    account_id: UUID
    category_id: UUID
    counterparty_id: Optional[UUID] = Field(
        default=None,
        description="Absent means the transaction is with the user themself"
    )
    transaction_time: AwareDatetime
    is_for_self: bool = False
    consumer_id: Optional[str] = None
    bill_category: Optional[BillCategory] = None
    notes: Optional[str] = Field(default=None, max_length=1000)
    linked_task_id: Optional[UUID] = None
    created_at: datetime = Field(default_factory=_utcnow)

    # Derived, mutable
    remaining_due: Money
    status: TransactionStatus = TransactionStatus.PENDING
    updated_at: datetime = Field(default_factory=_utcnow)

    # Lifecycle
    is_soft_deleted: bool = False

    @model_validator(mode='after')
    def validate_self_paid(self) -> 'Transaction':
        """Self-paid bills never carry a debt."""
        if self.is_for_self and self.remaining_due != ZERO:
            raise ValueError("Self-paid transactions must have zero remaining due")
        return self

    @property
    def is_active(self) -> bool:
        """Counts towards balances and listings."""
        return not self.is_soft_deleted and self.status != TransactionStatus.CANCELLED

    @property
    def outstanding_due(self) -> Decimal:
        """
        What is still owed on this transaction.

        A SETTLED transaction owes nothing, even when overpaid (negative
        remaining_due). The surplus is reported separately.
        """
        if self.status in (TransactionStatus.SETTLED, TransactionStatus.CANCELLED):
            return ZERO
        return self.remaining_due

    def with_settlement(
        self,
        remaining_due: Decimal,
        status: TransactionStatus,
        updated_at: datetime,
    ) -> 'Transaction':
        """Copy with new settlement state. remaining_due and status always move together."""
        return self.model_copy(update={
            "remaining_due": remaining_due,
            "status": status,
            "updated_at": updated_at,
        })


class PartialPayment(BaseModel):
    """
    A payment against a transaction.

    Append-only per transaction. Deleting a payment is a soft delete that
    triggers recomputation of the parent transaction.
    """

    id: UUID = Field(default_factory=uuid4)
    parent_transaction_id: UUID
    amount: PositiveMoney
    direction: PaymentDirection
    method: PaymentMethod = PaymentMethod.CASH
    timestamp: AwareDatetime
    notes: Optional[str] = Field(default=None, max_length=1000)
    is_soft_deleted: bool = False


# =============================================================================
# REMINDERS
# =============================================================================

class Reminder(BaseModel):
    """A reminder for a financial obligation."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    target_type: ReminderTargetType = ReminderTargetType.GENERIC
    target_id: Optional[UUID] = None
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    due_time: datetime
    repeat_pattern: RepeatPattern = RepeatPattern.NONE
    status: ReminderStatus = ReminderStatus.UPCOMING
    ignored_count: int = Field(
        default=0,
        ge=0,
        description="How many times the reminder was ignored"
    )

    @model_validator(mode='after')
    def validate_target(self) -> 'Reminder':
        if self.target_type == ReminderTargetType.TRANSACTION and self.target_id is None:
            raise ValueError("Transaction reminders need a target_id")
        return self


# =============================================================================
# READ MODELS (balances and dashboards)
# =============================================================================

class CounterpartyBalance(BaseModel):
    """
    Net balance with one counterparty.

    Positive: the counterparty owes the user.
    Negative: the user owes the counterparty.
    """
    counterparty_id: UUID
    net_balance: Money


class PortfolioTotals(BaseModel):
    """Totals across all counterparties. Both figures are non-negative."""
    total_owed_to_user: Money = ZERO
    total_user_owes: Money = ZERO

    @property
    def net(self) -> Decimal:
        return self.total_owed_to_user - self.total_user_owes


class CounterpartyLedger(BaseModel):
    counterparty: Counterparty
    net_balance: Money
    transactions: list[Transaction] = Field(default_factory=list)


class DashboardSummary(BaseModel):
    totals: PortfolioTotals
    upcoming_reminders_count: int = Field(ge=0)
    recent_transactions: list[Transaction] = Field(default_factory=list)
    top_debtors: list[CounterpartyBalance] = Field(default_factory=list)
    top_creditors: list[CounterpartyBalance] = Field(default_factory=list)
