"""
Audit Recorder

DESIGN DECISION: Every mutation of ledger state is recorded.
This provides:
1. Complete traceability
2. Before/after snapshots for debugging balances
3. User can see history of their ledger

The recorder:
- Stamps entries from the injected clock, never going backwards in time
- Persists to storage and logs locally via structlog
- Raises if storage fails; a ledger change without its audit entry is
  an infrastructure failure, not something to paper over
"""

from typing import Optional
from uuid import UUID

import structlog
from pydantic import BaseModel

from debt_ledger.clock import Clock, SystemClock
from debt_ledger.exceptions import InfrastructureError
from debt_ledger.models.audit import (
    AuditAction,
    AuditEntityType,
    AuditEntryBuilder,
    AuditLogEntry,
    snapshot,
)
from debt_ledger.models.ledger import (
    Counterparty,
    PartialPayment,
    Transaction,
)
from debt_ledger.services.storage import AuditStorageInterface, StorageError


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditRecorder:
    """
    Central audit recording service.

    Writes entries both to:
    1. The audit store (append-only, the system of record)
    2. Structured local log (for debugging)
    """

    def __init__(
        self,
        storage: AuditStorageInterface,
        clock: Optional[Clock] = None,
    ):
        self._storage = storage
        self._clock = clock or SystemClock()
        self._last_timestamp = None
        self._logger = structlog.get_logger(__name__)

    async def log(self, entry: AuditLogEntry) -> AuditLogEntry:
        """
        Stamp, persist and locally log an audit entry.

        Returns the stored entry (with its sequence number).

        Raises:
            StorageError: If the audit store is unavailable
        """
        timestamp = self._clock.now()
        if self._last_timestamp is not None and timestamp < self._last_timestamp:
            timestamp = self._last_timestamp
        self._last_timestamp = timestamp

        entry = entry.model_copy(update={"timestamp": timestamp})

        try:
            stored = await self._storage.append_entry(entry)
        except InfrastructureError:
            self._logger.error("audit_storage_failed", entry_id=str(entry.id))
            raise
        except Exception as e:
            self._logger.error("audit_storage_failed", entry_id=str(entry.id), error=str(e))
            raise StorageError(f"Failed to append audit entry: {e}") from e

        self._logger.info("audit_entry", **stored.to_log_dict())
        return stored

    async def record(
        self,
        action: AuditAction,
        entity_type: AuditEntityType,
        entity_id: UUID,
        old: Optional[BaseModel] = None,
        new: Optional[BaseModel] = None,
        details: Optional[str] = None,
    ) -> AuditLogEntry:
        """Record any action against any entity."""
        entry = AuditLogEntry(
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            old_value=snapshot(old),
            new_value=snapshot(new),
            details=details,
        )
        return await self.log(entry)

    async def log_transaction_created(self, transaction: Transaction) -> AuditLogEntry:
        """Log transaction creation."""
        return await self.log(AuditEntryBuilder.transaction_created(transaction))

    async def log_transaction_updated(
        self,
        before: Transaction,
        after: Transaction,
        details: Optional[str] = None,
    ) -> AuditLogEntry:
        """Log a transaction update with before/after snapshots."""
        return await self.log(AuditEntryBuilder.transaction_updated(before, after, details))

    async def log_transaction_deleted(self, transaction: Transaction) -> AuditLogEntry:
        """Log a soft delete."""
        return await self.log(AuditEntryBuilder.transaction_deleted(transaction))

    async def log_payment_added(self, payment: PartialPayment) -> AuditLogEntry:
        """Log a partial payment."""
        return await self.log(AuditEntryBuilder.payment_added(payment))

    async def log_payment_deleted(self, payment: PartialPayment) -> AuditLogEntry:
        return await self.log(AuditEntryBuilder.payment_deleted(payment))

    async def log_counterparty_created(self, counterparty: Counterparty) -> AuditLogEntry:
        return await self.log(AuditEntryBuilder.counterparty_created(counterparty))
