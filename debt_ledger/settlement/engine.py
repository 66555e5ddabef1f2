"""
Settlement Engine

Owns every write to transactions and partial payments. The engine:
1. Validates input before touching storage
2. Runs the whole write sequence inside the store's atomic() block
3. Derives remaining_due and status from the payment history, never
   from incremental arithmetic on the cached value
4. Audits every mutation, payment entry strictly before transaction update
5. Clears reminders once a transaction reaches SETTLED

The status rule and the remaining-due math are plain functions so they
can be tested without a store.

CRITICAL: atomic() is not reentrant. Public methods open it exactly once
and private helpers assume they are already inside it.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional, Union
from uuid import UUID

import structlog
from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from debt_ledger.audit import AuditRecorder
from debt_ledger.clock import Clock, SystemClock
from debt_ledger.exceptions import (
    CounterpartyNotFoundError,
    InvalidStateError,
    PaymentNotFoundError,
    TransactionNotFoundError,
    ValidationError,
)
from debt_ledger.models.ledger import (
    Counterparty,
    PartialPayment,
    PaymentDirection,
    PaymentMethod,
    Transaction,
    TransactionDraft,
    TransactionStatus,
)
from debt_ledger.models.money import ZERO, Money, PositiveMoney, sum_money, to_money
from debt_ledger.reminders import ReminderCoupling
from debt_ledger.services.storage import (
    DirectoryStorageInterface,
    TransactionStorageInterface,
)
from debt_ledger.validation import TransactionValidator, ValidationResult


logger = structlog.get_logger(__name__)


# =============================================================================
# PURE SETTLEMENT MATH
# =============================================================================

def compute_status(remaining_due: Decimal, base_amount: Decimal) -> TransactionStatus:
    """
    Status rule. Exact decimal comparison, no tolerance.

    remaining_due == 0            -> SETTLED
    remaining_due < 0             -> SETTLED (overpaid)
    remaining_due == base_amount  -> PENDING
    otherwise                     -> PARTIALLY_SETTLED
    """
    if remaining_due <= ZERO:
        return TransactionStatus.SETTLED
    if remaining_due == base_amount:
        return TransactionStatus.PENDING
    return TransactionStatus.PARTIALLY_SETTLED


def calculate_remaining_due(base_amount: Decimal, total_paid: Decimal) -> Decimal:
    return base_amount - total_paid


def detect_surplus(remaining_due: Decimal) -> Optional[Decimal]:
    """Overpaid amount, or None when nothing was overpaid."""
    if remaining_due < ZERO:
        return -remaining_due
    return None


# =============================================================================
# OUTCOMES
# =============================================================================

class SettledOutcome(BaseModel):
    """Payment applied; nothing was overpaid."""
    model_config = ConfigDict(frozen=True)

    payment_id: UUID
    transaction_id: UUID
    status: TransactionStatus
    remaining_due: Money

    @property
    def is_surplus(self) -> bool:
        return False


class SurplusOutcome(BaseModel):
    """
    Payment applied and the transaction is overpaid.

    Not an error. The caller should show overpaid_amount to the user;
    nothing is rolled back.
    """
    model_config = ConfigDict(frozen=True)

    payment_id: UUID
    transaction_id: UUID
    status: TransactionStatus
    overpaid_amount: PositiveMoney

    @property
    def is_surplus(self) -> bool:
        return True


PaymentOutcome = Union[SettledOutcome, SurplusOutcome]


def _raise_if_invalid(result: ValidationResult, message: str) -> None:
    if result.has_errors:
        raise ValidationError(f"{message}: {result.summary()}", issues=result.issues)


# =============================================================================
# ENGINE
# =============================================================================

class SettlementEngine:
    """
    Applies payments and lifecycle changes to transactions.

    Usage:
        engine = SettlementEngine(store, store, AuditRecorder(store), ReminderCoupling(store))
        transaction = await engine.create_transaction(draft)
        outcome = await engine.apply_payment(transaction.id, Decimal("200.00"),
                                             PaymentDirection.FROM_COUNTERPARTY)
    """

    def __init__(
        self,
        transactions: TransactionStorageInterface,
        directory: DirectoryStorageInterface,
        audit: AuditRecorder,
        reminders: ReminderCoupling,
        validator: Optional[TransactionValidator] = None,
        clock: Optional[Clock] = None,
    ):
        self._transactions = transactions
        self._directory = directory
        self._audit = audit
        self._reminders = reminders
        self._validator = validator or TransactionValidator()
        self._clock = clock or SystemClock()

    # -------------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------------

    async def create_transaction(self, draft: TransactionDraft) -> Transaction:
        """
        Create a transaction from a draft.

        Self-paid transactions are created SETTLED with nothing due. All
        others start PENDING with the full amount due.

        Raises:
            ValidationError: amount missing or not positive, account or
                category missing, or inconsistent fields
            CounterpartyNotFoundError: the referenced counterparty does not exist
        """
        _raise_if_invalid(
            self._validator.validate_transaction(draft),
            "Invalid transaction",
        )

        if draft.counterparty_id is not None:
            if await self._directory.get_counterparty(draft.counterparty_id) is None:
                raise CounterpartyNotFoundError(draft.counterparty_id)

        now = self._clock.now()
        amount = to_money(draft.amount)

        if draft.is_for_self:
            remaining_due, status = ZERO, TransactionStatus.SETTLED
        else:
            remaining_due, status = amount, TransactionStatus.PENDING

        transaction = Transaction(
            direction=draft.direction,
            type=draft.type,
            amount=amount,
            account_id=draft.account_id,
            category_id=draft.category_id,
            counterparty_id=draft.counterparty_id,
            transaction_time=draft.transaction_time or now,
            is_for_self=draft.is_for_self,
            consumer_id=draft.consumer_id,
            bill_category=draft.bill_category,
            notes=draft.notes,
            linked_task_id=draft.linked_task_id,
            created_at=now,
            updated_at=now,
            remaining_due=remaining_due,
            status=status,
        )

        async with self._transactions.atomic():
            await self._transactions.save_transaction(transaction)
            await self._audit.log_transaction_created(transaction)

        logger.info(
            "transaction_created",
            transaction_id=str(transaction.id),
            direction=transaction.direction.value,
            amount=str(transaction.amount),
            status=transaction.status.value,
        )
        return transaction

    async def add_counterparty(
        self,
        display_name: str,
        phone: Optional[str] = None,
        notes: Optional[str] = None,
        is_favorite: bool = False,
    ) -> Counterparty:
        """
        Raises:
            ValidationError: empty or over-long name, phone or notes
        """
        try:
            counterparty = Counterparty(
                display_name=display_name,
                phone=phone,
                notes=notes,
                is_favorite=is_favorite,
                created_at=self._clock.now(),
            )
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid counterparty: {e}", issues=e.errors()) from e

        async with self._transactions.atomic():
            await self._directory.save_counterparty(counterparty)
            await self._audit.log_counterparty_created(counterparty)

        return counterparty

    # -------------------------------------------------------------------------
    # Payments
    # -------------------------------------------------------------------------

    async def apply_payment(
        self,
        transaction_id: UUID,
        amount: Decimal,
        direction: PaymentDirection,
        method: PaymentMethod = PaymentMethod.CASH,
        timestamp: Optional[datetime] = None,
        notes: Optional[str] = None,
    ) -> PaymentOutcome:
        """
        Record a payment against a transaction and re-derive its state.

        Payments on an already SETTLED transaction are accepted and show
        up as surplus.

        Raises:
            ValidationError: amount missing, not exact or not positive, naive
                timestamp, unknown direction or method, or over-long notes
            TransactionNotFoundError: no such transaction
            InvalidStateError: transaction is cancelled, soft-deleted or self-paid
        """
        _raise_if_invalid(
            self._validator.validate_payment_amount(amount),
            "Invalid payment",
        )
        try:
            payment = PartialPayment(
                parent_transaction_id=transaction_id,
                amount=to_money(amount),
                direction=direction,
                method=method,
                timestamp=timestamp or self._clock.now(),
                notes=notes,
            )
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid payment: {e}", issues=e.errors()) from e

        async with self._transactions.atomic():
            before = await self._load_transaction(transaction_id)
            self._ensure_accepts_payments(before)

            await self._transactions.save_payment(payment)
            await self._audit.log_payment_added(payment)

            after = await self._settle(before, details=f"Applied payment {payment.id}")

        surplus = detect_surplus(after.remaining_due)
        if surplus is not None:
            logger.warning(
                "payment_surplus",
                transaction_id=str(after.id),
                payment_id=str(payment.id),
                overpaid_amount=str(surplus),
            )
            return SurplusOutcome(
                payment_id=payment.id,
                transaction_id=after.id,
                status=after.status,
                overpaid_amount=surplus,
            )

        logger.info(
            "payment_applied",
            transaction_id=str(after.id),
            payment_id=str(payment.id),
            amount=str(payment.amount),
            remaining_due=str(after.remaining_due),
            status=after.status.value,
        )
        return SettledOutcome(
            payment_id=payment.id,
            transaction_id=after.id,
            status=after.status,
            remaining_due=after.remaining_due,
        )

    async def delete_payment(self, payment_id: UUID) -> Transaction:
        """
        Soft-delete a payment and re-derive its transaction's state.

        The inverse of apply_payment: remaining_due again equals amount
        minus the remaining payments. Reminders cleared by an earlier
        settlement are not brought back.

        Returns:
            The updated transaction

        Raises:
            PaymentNotFoundError: no such payment
            InvalidStateError: payment already deleted, or its transaction
                is cancelled or soft-deleted
        """
        async with self._transactions.atomic():
            payment = await self._transactions.get_payment(payment_id)
            if payment is None:
                raise PaymentNotFoundError(payment_id)
            if payment.is_soft_deleted:
                raise InvalidStateError(f"Payment {payment_id} is already deleted")

            before = await self._load_transaction(payment.parent_transaction_id)
            self._ensure_active(before)

            await self._transactions.update_payment(
                payment.model_copy(update={"is_soft_deleted": True})
            )
            await self._audit.log_payment_deleted(payment)

            after = await self._settle(before, details=f"Removed payment {payment.id}")

        logger.info(
            "payment_deleted",
            transaction_id=str(after.id),
            payment_id=str(payment_id),
            remaining_due=str(after.remaining_due),
            status=after.status.value,
        )
        return after

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def cancel_transaction(self, transaction_id: UUID) -> Transaction:
        """
        Mark a transaction CANCELLED. Terminal: it never takes payments
        again and drops out of every balance.

        Raises:
            TransactionNotFoundError: no such transaction
            InvalidStateError: already cancelled or soft-deleted
        """
        async with self._transactions.atomic():
            before = await self._load_transaction(transaction_id)
            self._ensure_active(before)

            after = before.model_copy(update={
                "status": TransactionStatus.CANCELLED,
                "updated_at": self._clock.now(),
            })
            await self._transactions.update_transaction(after)
            await self._audit.log_transaction_updated(before, after, "Cancelled transaction")

        logger.info("transaction_cancelled", transaction_id=str(transaction_id))
        return after

    async def soft_delete_transaction(self, transaction_id: UUID) -> Transaction:
        """
        Hide a transaction from balances and listings. The record stays.

        Raises:
            TransactionNotFoundError: no such transaction
            InvalidStateError: already deleted
        """
        async with self._transactions.atomic():
            before = await self._load_transaction(transaction_id)
            if before.is_soft_deleted:
                raise InvalidStateError(f"Transaction {transaction_id} is already deleted")

            after = before.model_copy(update={
                "is_soft_deleted": True,
                "updated_at": self._clock.now(),
            })
            await self._transactions.update_transaction(after)
            await self._audit.log_transaction_deleted(before)

        return after

    async def restore_transaction(self, transaction_id: UUID) -> Transaction:
        """
        Undo a soft delete.

        Raises:
            TransactionNotFoundError: no such transaction
            InvalidStateError: transaction is not deleted
        """
        async with self._transactions.atomic():
            before = await self._load_transaction(transaction_id)
            if not before.is_soft_deleted:
                raise InvalidStateError(f"Transaction {transaction_id} is not deleted")

            after = before.model_copy(update={
                "is_soft_deleted": False,
                "updated_at": self._clock.now(),
            })
            await self._transactions.update_transaction(after)
            await self._audit.log_transaction_updated(before, after, "Restored transaction")

        return after

    # -------------------------------------------------------------------------
    # Internals (callers hold atomic())
    # -------------------------------------------------------------------------

    async def _load_transaction(self, transaction_id: UUID) -> Transaction:
        transaction = await self._transactions.get_transaction(transaction_id)
        if transaction is None:
            raise TransactionNotFoundError(transaction_id)
        return transaction

    @staticmethod
    def _ensure_active(transaction: Transaction) -> None:
        if transaction.status == TransactionStatus.CANCELLED:
            raise InvalidStateError(f"Transaction {transaction.id} is cancelled")
        if transaction.is_soft_deleted:
            raise InvalidStateError(f"Transaction {transaction.id} is deleted")

    def _ensure_accepts_payments(self, transaction: Transaction) -> None:
        self._ensure_active(transaction)
        if transaction.is_for_self:
            raise InvalidStateError(
                f"Transaction {transaction.id} was paid for self and carries no debt"
            )

    async def _settle(self, before: Transaction, details: str) -> Transaction:
        """
        Re-derive remaining_due and status from the stored payments,
        persist both in one update and audit the change.
        """
        payments = await self._transactions.list_payments(before.id)
        total_paid = sum_money(payment.amount for payment in payments)

        remaining_due = calculate_remaining_due(before.amount, total_paid)
        status = compute_status(remaining_due, before.amount)

        after = before.with_settlement(remaining_due, status, self._clock.now())
        await self._transactions.update_transaction(after)
        await self._audit.log_transaction_updated(before, after, details)

        if status == TransactionStatus.SETTLED:
            await self._reminders.clear_for_transaction(after.id)

        return after
