"""
Ledger Exceptions

Domain errors (validation, not found, invalid state) are caller-fixable
and are raised before anything is written. Infrastructure errors mean
the store is unavailable; retry policy belongs to the caller.
"""

from typing import Any, Optional
from uuid import UUID


class LedgerError(Exception):
    """Base exception for all ledger errors."""
    pass


class ValidationError(LedgerError):
    """Input failed validation. Nothing was persisted."""

    def __init__(self, message: str, issues: Optional[list[Any]] = None):
        super().__init__(message)
        self.issues = issues or []


class NotFoundError(LedgerError):
    """A referenced entity does not exist."""

    entity_type = "entity"

    def __init__(self, entity_id: UUID):
        super().__init__(f"{self.entity_type.replace('_', ' ').capitalize()} not found: {entity_id}")
        self.entity_id = entity_id


class TransactionNotFoundError(NotFoundError):
    entity_type = "transaction"


class PaymentNotFoundError(NotFoundError):
    entity_type = "partial_payment"


class CounterpartyNotFoundError(NotFoundError):
    entity_type = "counterparty"


class InvalidStateError(LedgerError):
    """Operation is not allowed in the entity's current state."""
    pass


class InfrastructureError(LedgerError):
    """The underlying store is unavailable."""
    pass
