"""
Tests for the Debt Ledger models

Test strategy:
1. Unit tests for models, money helpers and validators
2. Engine and aggregator tests run against the in-memory store
3. No real Google Sheets calls in tests (fake worksheets only)
"""

from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from debt_ledger.models import (
    ZERO,
    Counterparty,
    PartialPayment,
    PaymentDirection,
    PortfolioTotals,
    Reminder,
    ReminderTargetType,
    Transaction,
    TransactionDirection,
    TransactionDraft,
    TransactionStatus,
    format_money,
    sum_money,
    to_money,
)


T0 = datetime(2024, 3, 1, tzinfo=timezone.utc)


def _transaction(**overrides) -> Transaction:
    fields = {
        "direction": TransactionDirection.GAVE,
        "amount": Decimal("500.00"),
        "account_id": uuid4(),
        "category_id": uuid4(),
        "transaction_time": T0,
        "remaining_due": Decimal("500.00"),
    }
    fields.update(overrides)
    return Transaction(**fields)


class TestMoney:
    """Tests for exact money handling."""

    @pytest.mark.parametrize("value, expected", [
        ("12.50", Decimal("12.50")),
        (" 7 ", Decimal("7")),
        (3, Decimal("3")),
        (Decimal("0.01"), Decimal("0.01")),
    ])
    def test_to_money(self, value, expected):
        assert to_money(value) == expected

    @pytest.mark.parametrize("value", [0.1, True, "abc", "NaN", "Infinity", "1.005"])
    def test_to_money_rejects(self, value):
        with pytest.raises(ValueError):
            to_money(value)

    def test_sum_money_is_exact(self):
        assert sum_money([Decimal("0.10"), Decimal("0.20")]) == Decimal("0.30")
        assert sum_money([]) == ZERO

    def test_format_money(self):
        assert format_money(Decimal("1250")) == "INR 1,250.00"
        assert format_money(Decimal("-5.5"), "USD") == "USD -5.50"


class TestTransactionModel:
    """Tests for the transaction record."""

    def test_rejects_float_amount(self):
        with pytest.raises(ValueError):
            _transaction(amount=500.0)

    def test_rejects_non_positive_amount(self):
        with pytest.raises(ValueError):
            _transaction(amount=Decimal("0"))

    def test_rejects_third_decimal_place(self):
        with pytest.raises(ValueError):
            _transaction(remaining_due=Decimal("1.001"))

    def test_self_paid_must_have_nothing_due(self):
        with pytest.raises(ValueError):
            _transaction(is_for_self=True)
        transaction = _transaction(
            is_for_self=True,
            remaining_due=ZERO,
            status=TransactionStatus.SETTLED,
        )
        assert transaction.outstanding_due == ZERO

    def test_outstanding_due(self):
        assert _transaction(
            remaining_due=Decimal("200.00"),
            status=TransactionStatus.PARTIALLY_SETTLED,
        ).outstanding_due == Decimal("200.00")
        assert _transaction(
            remaining_due=Decimal("-20.00"),
            status=TransactionStatus.SETTLED,
        ).outstanding_due == ZERO
        assert _transaction(status=TransactionStatus.CANCELLED).outstanding_due == ZERO

    def test_is_active(self):
        assert _transaction().is_active
        assert not _transaction(is_soft_deleted=True).is_active
        assert not _transaction(status=TransactionStatus.CANCELLED).is_active

    def test_with_settlement_updates_together(self):
        transaction = _transaction()
        later = datetime(2024, 3, 2, tzinfo=timezone.utc)

        settled = transaction.with_settlement(ZERO, TransactionStatus.SETTLED, later)

        assert settled.remaining_due == ZERO
        assert settled.status == TransactionStatus.SETTLED
        assert settled.updated_at == later
        assert transaction.status == TransactionStatus.PENDING

    def test_draft_accepts_missing_amount(self):
        """Drafts are loose; the validator reports what is missing."""
        draft = TransactionDraft(direction=TransactionDirection.RECEIVED)
        assert draft.amount is None

    def test_draft_rejects_float(self):
        with pytest.raises(ValueError):
            TransactionDraft(direction=TransactionDirection.GAVE, amount=9.99)


class TestOtherModels:

    def test_counterparty_strips_whitespace(self):
        assert Counterparty(display_name="  Ravi  ").display_name == "Ravi"

    def test_payment_must_be_positive(self):
        with pytest.raises(ValueError):
            PartialPayment(
                parent_transaction_id=uuid4(),
                amount=Decimal("-1.00"),
                direction=PaymentDirection.FROM_COUNTERPARTY,
                timestamp=T0,
            )

    def test_transaction_reminder_needs_target(self):
        with pytest.raises(ValueError):
            Reminder(target_type=ReminderTargetType.TRANSACTION, title="Collect", due_time=T0)

    def test_reminder_ignored_count_non_negative(self):
        with pytest.raises(ValueError):
            Reminder(title="Pay", due_time=T0, ignored_count=-1)

    def test_portfolio_net(self):
        totals = PortfolioTotals(
            total_owed_to_user=Decimal("100.00"),
            total_user_owes=Decimal("140.00"),
        )
        assert totals.net == Decimal("-40.00")
