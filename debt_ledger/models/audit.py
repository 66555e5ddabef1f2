"""
Audit Models for the Debt Ledger

Every mutation of ledger state is recorded as an audit entry.
This provides:
1. Complete traceability of balances back to user actions
2. Before/after snapshots for every change
3. Ability to reconstruct history

DESIGN DECISION: Audit logs are append-only. Entries are frozen models;
nothing in normal operation edits, reorders or deletes them.
"""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator

from debt_ledger.models.ledger import (
    Counterparty,
    PartialPayment,
    Transaction,
)


Snapshot = dict[str, Any]


class AuditAction(str, Enum):
    """Kinds of mutation we audit."""
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    PARTIAL_PAYMENT = "partial_payment"
    BACKUP = "backup"
    RESTORE = "restore"


class AuditEntityType(str, Enum):
    TRANSACTION = "transaction"
    PARTIAL_PAYMENT = "partial_payment"
    COUNTERPARTY = "counterparty"
    ACCOUNT = "account"
    CATEGORY = "category"
    REMINDER = "reminder"


def snapshot(entity: Optional[BaseModel]) -> Optional[Snapshot]:
    """Serialized view of an entity's full field set at this instant."""
    if entity is None:
        return None
    return entity.model_dump(mode="json")


class AuditLogEntry(BaseModel):
    """
    A single audit entry.

    old_value is absent for CREATE, new_value is absent for DELETE.
    sequence is assigned by storage on append and strictly increases.
    """
    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    sequence: int = Field(
        default=0,
        ge=0,
        description="Append order, assigned by storage"
    )
    action: AuditAction
    entity_type: AuditEntityType
    entity_id: UUID
    old_value: Optional[Snapshot] = None
    new_value: Optional[Snapshot] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    details: Optional[str] = Field(default=None, max_length=500)

    @model_validator(mode='after')
    def validate_snapshots(self) -> 'AuditLogEntry':
        if self.action == AuditAction.CREATE and self.old_value is not None:
            raise ValueError("CREATE entries have no old value")
        if self.action == AuditAction.DELETE and self.new_value is not None:
            raise ValueError("DELETE entries have no new value")
        return self

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "entry_id": str(self.id),
            "sequence": self.sequence,
            "timestamp": self.timestamp.isoformat(),
            "action": self.action.value,
            "entity_type": self.entity_type.value,
            "entity_id": str(self.entity_id),
            "details": self.details,
        }

    def matches_text(self, text: str) -> bool:
        """Case-insensitive free-text match over details and snapshots."""
        needle = text.lower()
        haystacks = [
            self.details or "",
            self.entity_type.value,
            str(self.old_value or ""),
            str(self.new_value or ""),
        ]
        return any(needle in haystack.lower() for haystack in haystacks)


class AuditEntryBuilder:
    """
    Helper class to build audit entries for common ledger events.

    Usage:
        entry = AuditEntryBuilder.transaction_created(transaction)
        entry = AuditEntryBuilder.payment_added(payment)
    """

    @staticmethod
    def transaction_created(transaction: Transaction, details: Optional[str] = None) -> AuditLogEntry:
        return AuditLogEntry(
            action=AuditAction.CREATE,
            entity_type=AuditEntityType.TRANSACTION,
            entity_id=transaction.id,
            new_value=snapshot(transaction),
            details=details or (
                f"Created transaction: {transaction.direction.value} {transaction.amount}"
            ),
        )

    @staticmethod
    def transaction_updated(
        before: Transaction,
        after: Transaction,
        details: Optional[str] = None,
    ) -> AuditLogEntry:
        return AuditLogEntry(
            action=AuditAction.UPDATE,
            entity_type=AuditEntityType.TRANSACTION,
            entity_id=after.id,
            old_value=snapshot(before),
            new_value=snapshot(after),
            details=details,
        )

    @staticmethod
    def transaction_deleted(transaction: Transaction) -> AuditLogEntry:
        return AuditLogEntry(
            action=AuditAction.DELETE,
            entity_type=AuditEntityType.TRANSACTION,
            entity_id=transaction.id,
            old_value=snapshot(transaction),
            details="Soft deleted transaction",
        )

    @staticmethod
    def payment_added(payment: PartialPayment) -> AuditLogEntry:
        return AuditLogEntry(
            action=AuditAction.PARTIAL_PAYMENT,
            entity_type=AuditEntityType.PARTIAL_PAYMENT,
            entity_id=payment.id,
            new_value=snapshot(payment),
            details=(
                f"Added partial payment of {payment.amount} "
                f"to transaction {payment.parent_transaction_id}"
            ),
        )

    @staticmethod
    def payment_deleted(payment: PartialPayment) -> AuditLogEntry:
        return AuditLogEntry(
            action=AuditAction.DELETE,
            entity_type=AuditEntityType.PARTIAL_PAYMENT,
            entity_id=payment.id,
            old_value=snapshot(payment),
            details=(
                f"Deleted partial payment of {payment.amount} "
                f"from transaction {payment.parent_transaction_id}"
            ),
        )

    @staticmethod
    def counterparty_created(counterparty: Counterparty) -> AuditLogEntry:
        return AuditLogEntry(
            action=AuditAction.CREATE,
            entity_type=AuditEntityType.COUNTERPARTY,
            entity_id=counterparty.id,
            new_value=snapshot(counterparty),
            details=f"Created counterparty: {counterparty.display_name}",
        )


# =============================================================================
# QUERY MODELS
# =============================================================================

class AuditQuery(BaseModel):
    """
    A read-only query over the audit log.

    The query is executed DETERMINISTICALLY on stored entries; results
    are always newest first.
    """

    query_id: UUID = Field(default_factory=uuid4)
    query_type: str = Field(
        default="recent",
        pattern="^(recent|date_range|entity_type|entity|action|search)$",
        description="Type of projection to run"
    )

    # Filters
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    entity_type: Optional[AuditEntityType] = None
    entity_id: Optional[UUID] = None
    action: Optional[AuditAction] = None
    text: Optional[str] = Field(default=None, min_length=1, max_length=200)

    limit: int = Field(
        default=100,
        ge=1,
        le=10000
    )


class AuditQueryResult(BaseModel):
    """Result of executing an AuditQuery."""

    query_id: UUID
    executed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    data_found: bool
    result_count: int = Field(ge=0)
    entries: list[AuditLogEntry] = Field(default_factory=list)
    query_description: str
