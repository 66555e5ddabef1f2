"""Tests for clearing reminders when a transaction settles."""

from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from debt_ledger.models.ledger import (
    PaymentDirection,
    Reminder,
    ReminderStatus,
    ReminderTargetType,
)
from debt_ledger.reminders import ReminderCoupling


DUE = datetime(2024, 3, 15, tzinfo=timezone.utc)


def _reminder(target_id, status=ReminderStatus.UPCOMING, target_type=ReminderTargetType.TRANSACTION):
    return Reminder(
        target_type=target_type,
        target_id=target_id,
        title="Follow up",
        due_time=DUE,
        status=status,
    )


class TestReminderCoupling:

    @pytest.mark.asyncio
    async def test_cancel_policy_keeps_records(self, store):
        transaction_id = uuid4()
        upcoming = _reminder(transaction_id)
        done = _reminder(transaction_id, status=ReminderStatus.DONE)
        other = _reminder(uuid4())
        for reminder in (upcoming, done, other):
            await store.save_reminder(reminder)

        cleared = await ReminderCoupling(store).clear_for_transaction(transaction_id)

        assert [r.id for r in cleared] == [upcoming.id]
        assert (await store.get_reminder(upcoming.id)).status == ReminderStatus.CANCELLED
        assert (await store.get_reminder(done.id)).status == ReminderStatus.DONE
        assert (await store.get_reminder(other.id)).status == ReminderStatus.UPCOMING

    @pytest.mark.asyncio
    async def test_delete_policy_removes_records(self, store):
        transaction_id = uuid4()
        upcoming = _reminder(transaction_id)
        await store.save_reminder(upcoming)

        await ReminderCoupling(store, policy="delete").clear_for_transaction(transaction_id)

        assert await store.get_reminder(upcoming.id) is None

    @pytest.mark.asyncio
    async def test_only_transaction_targets(self, store):
        """A counterparty reminder sharing the id is not touched."""
        shared_id = uuid4()
        reminder = _reminder(shared_id, target_type=ReminderTargetType.COUNTERPARTY)
        await store.save_reminder(reminder)

        cleared = await ReminderCoupling(store).clear_for_transaction(shared_id)

        assert cleared == []
        assert (await store.get_reminder(reminder.id)).status == ReminderStatus.UPCOMING

    @pytest.mark.asyncio
    async def test_clearing_twice_is_harmless(self, store):
        transaction_id = uuid4()
        await store.save_reminder(_reminder(transaction_id))
        coupling = ReminderCoupling(store)

        await coupling.clear_for_transaction(transaction_id)
        assert await coupling.clear_for_transaction(transaction_id) == []

    @pytest.mark.asyncio
    async def test_upcoming_count(self, store):
        await store.save_reminder(_reminder(uuid4()))
        await store.save_reminder(_reminder(uuid4(), status=ReminderStatus.SNOOZED))
        await store.save_reminder(Reminder(title="Pay rent", due_time=DUE))

        coupling = ReminderCoupling(store)

        assert await coupling.upcoming_count() == 2
        assert await coupling.upcoming_count(ReminderTargetType.TRANSACTION) == 1

    def test_unknown_policy(self, store):
        with pytest.raises(ValueError):
            ReminderCoupling(store, policy="archive")


class TestSettlementClearsReminders:
    """The engine only clears reminders on SETTLED outcomes."""

    @pytest.mark.asyncio
    async def test_partial_payment_keeps_reminder(self, engine, store, make_draft):
        transaction = await engine.create_transaction(make_draft())
        reminder = _reminder(transaction.id)
        await store.save_reminder(reminder)

        await engine.apply_payment(
            transaction.id, Decimal("499.99"), PaymentDirection.FROM_COUNTERPARTY
        )

        assert (await store.get_reminder(reminder.id)).status == ReminderStatus.UPCOMING

    @pytest.mark.asyncio
    async def test_overpayment_clears_reminder(self, engine, store, make_draft):
        transaction = await engine.create_transaction(make_draft(amount=Decimal("100.00")))
        reminder = _reminder(transaction.id)
        await store.save_reminder(reminder)

        await engine.apply_payment(
            transaction.id, Decimal("150.00"), PaymentDirection.FROM_COUNTERPARTY
        )

        assert (await store.get_reminder(reminder.id)).status == ReminderStatus.CANCELLED

    @pytest.mark.asyncio
    async def test_settlement_does_not_audit_reminders(self, engine, store, make_draft):
        """Exactly one PARTIAL_PAYMENT and one UPDATE entry per payment."""
        transaction = await engine.create_transaction(make_draft(amount=Decimal("100.00")))
        await store.save_reminder(_reminder(transaction.id))
        before = await store.count_entries()

        await engine.apply_payment(
            transaction.id, Decimal("100.00"), PaymentDirection.FROM_COUNTERPARTY
        )

        assert await store.count_entries() == before + 2
