"""
Data Models Package

This package contains all Pydantic models used in the debt ledger.
All data flowing through the system must conform to these schemas.
"""

from debt_ledger.models.money import (
    MONEY_PLACES,
    ZERO,
    ExactDecimal,
    Money,
    PositiveMoney,
    format_money,
    sum_money,
    to_money,
)
from debt_ledger.models.ledger import (
    Account,
    AccountType,
    BillCategory,
    Category,
    Counterparty,
    CounterpartyBalance,
    CounterpartyLedger,
    DashboardSummary,
    PartialPayment,
    PaymentDirection,
    PaymentMethod,
    PortfolioTotals,
    Reminder,
    ReminderStatus,
    ReminderTargetType,
    RepeatPattern,
    Transaction,
    TransactionDirection,
    TransactionDraft,
    TransactionStatus,
    TransactionType,
)
from debt_ledger.models.audit import (
    AuditAction,
    AuditEntityType,
    AuditEntryBuilder,
    AuditLogEntry,
    AuditQuery,
    AuditQueryResult,
    snapshot,
)

__all__ = [
    # Money
    "MONEY_PLACES",
    "ZERO",
    "ExactDecimal",
    "Money",
    "PositiveMoney",
    "format_money",
    "sum_money",
    "to_money",
    # Ledger models
    "Account",
    "AccountType",
    "BillCategory",
    "Category",
    "Counterparty",
    "CounterpartyBalance",
    "CounterpartyLedger",
    "DashboardSummary",
    "PartialPayment",
    "PaymentDirection",
    "PaymentMethod",
    "PortfolioTotals",
    "Reminder",
    "ReminderStatus",
    "ReminderTargetType",
    "RepeatPattern",
    "Transaction",
    "TransactionDirection",
    "TransactionDraft",
    "TransactionStatus",
    "TransactionType",
    # Audit models
    "AuditAction",
    "AuditEntityType",
    "AuditEntryBuilder",
    "AuditLogEntry",
    "AuditQuery",
    "AuditQueryResult",
    "snapshot",
]
