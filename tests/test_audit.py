"""
Tests for audit entries and the audit recorder.
"""

from datetime import timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from debt_ledger.audit import AuditRecorder
from debt_ledger.models.audit import (
    AuditAction,
    AuditEntityType,
    AuditEntryBuilder,
    AuditLogEntry,
    snapshot,
)
from debt_ledger.models.ledger import (
    PartialPayment,
    PaymentDirection,
    Transaction,
    TransactionDirection,
)
from debt_ledger.services.storage import StorageError


def _transaction(clock) -> Transaction:
    return Transaction(
        direction=TransactionDirection.GAVE,
        amount=Decimal("500.00"),
        account_id=uuid4(),
        category_id=uuid4(),
        transaction_time=clock.now(),
        remaining_due=Decimal("500.00"),
    )


class TestAuditLogEntry:
    """Tests for the audit entry model."""

    def test_create_has_no_old_value(self):
        with pytest.raises(ValueError):
            AuditLogEntry(
                action=AuditAction.CREATE,
                entity_type=AuditEntityType.TRANSACTION,
                entity_id=uuid4(),
                old_value={"amount": "1.00"},
            )

    def test_delete_has_no_new_value(self):
        with pytest.raises(ValueError):
            AuditLogEntry(
                action=AuditAction.DELETE,
                entity_type=AuditEntityType.TRANSACTION,
                entity_id=uuid4(),
                new_value={"amount": "1.00"},
            )

    def test_entries_are_frozen(self):
        entry = AuditLogEntry(
            action=AuditAction.BACKUP,
            entity_type=AuditEntityType.TRANSACTION,
            entity_id=uuid4(),
        )
        with pytest.raises(ValueError):
            entry.details = "changed"

    def test_snapshot_is_json_ready(self, clock):
        transaction = _transaction(clock)
        data = snapshot(transaction)
        assert data["id"] == str(transaction.id)
        assert data["amount"] == "500.00"
        assert data["direction"] == "gave"
        assert snapshot(None) is None

    def test_builder_payment_added(self, clock):
        payment = PartialPayment(
            parent_transaction_id=uuid4(),
            amount=Decimal("25.00"),
            direction=PaymentDirection.FROM_COUNTERPARTY,
            timestamp=clock.now(),
        )
        entry = AuditEntryBuilder.payment_added(payment)
        assert entry.action == AuditAction.PARTIAL_PAYMENT
        assert entry.entity_type == AuditEntityType.PARTIAL_PAYMENT
        assert entry.old_value is None
        assert "25.00" in entry.details

    def test_matches_text(self, clock):
        entry = AuditEntryBuilder.transaction_created(_transaction(clock))
        assert entry.matches_text("CREATED TRANSACTION")
        assert entry.matches_text("500.00")
        assert not entry.matches_text("electricity")


class TestAuditRecorder:
    """Tests for the recorder."""

    @pytest.mark.asyncio
    async def test_record_assigns_sequence_and_timestamp(self, store, clock):
        recorder = AuditRecorder(store, clock=clock)
        transaction = _transaction(clock)

        first = await recorder.record(
            AuditAction.CREATE, AuditEntityType.TRANSACTION, transaction.id, new=transaction
        )
        clock.advance(seconds=5)
        second = await recorder.log_transaction_deleted(transaction)

        assert (first.sequence, second.sequence) == (1, 2)
        assert second.timestamp - first.timestamp == timedelta(seconds=5)
        assert first.new_value["id"] == str(transaction.id)
        assert await store.list_entries() == [first, second]

    @pytest.mark.asyncio
    async def test_timestamps_never_go_backwards(self, store, clock):
        recorder = AuditRecorder(store, clock=clock)
        transaction = _transaction(clock)

        first = await recorder.log_transaction_created(transaction)
        clock.advance(minutes=-10)
        second = await recorder.log_transaction_deleted(transaction)

        assert second.timestamp == first.timestamp

    @pytest.mark.asyncio
    async def test_update_keeps_both_snapshots(self, store, clock):
        recorder = AuditRecorder(store, clock=clock)
        before = _transaction(clock)
        after = before.model_copy(update={"notes": "lent for rent"})

        entry = await recorder.log_transaction_updated(before, after, "Edited notes")

        assert entry.old_value["notes"] is None
        assert entry.new_value["notes"] == "lent for rent"
        assert entry.details == "Edited notes"

    @pytest.mark.asyncio
    async def test_storage_failure_raises(self, clock):
        class BrokenStore:
            async def append_entry(self, entry):
                raise ConnectionError("offline")

        recorder = AuditRecorder(BrokenStore(), clock=clock)

        with pytest.raises(StorageError):
            await recorder.log_transaction_created(_transaction(clock))
