"""Tests for the two-stage transaction validator."""

from decimal import Decimal
from uuid import uuid4

import pytest

from debt_ledger.models.ledger import (
    BillCategory,
    TransactionDirection,
    TransactionDraft,
    TransactionType,
)
from debt_ledger.validation import TransactionValidator


@pytest.fixture
def validator():
    return TransactionValidator()


class TestTransactionValidator:

    def test_valid_draft(self, validator, make_draft):
        result = validator.validate_transaction(make_draft())
        assert result.is_valid
        assert result.issues == []

    def test_missing_fields_reported_together(self, validator):
        result = validator.validate_transaction(
            TransactionDraft(direction=TransactionDirection.GAVE)
        )
        assert result.error_count == 3
        assert "Amount is required" in result.summary()

    def test_consistency_skipped_when_required_fields_fail(self, validator):
        result = validator.validate_transaction(TransactionDraft(
            direction=TransactionDirection.GAVE,
            is_for_self=True,
            counterparty_id=uuid4(),
        ))
        assert {issue.field for issue in result.issues} == {"amount", "account_id", "category_id"}

    def test_bill_details_on_loan_is_a_warning(self, validator, make_draft):
        result = validator.validate_transaction(make_draft(
            type=TransactionType.LOAN,
            bill_category=BillCategory.MOBILE,
        ))
        assert result.is_valid
        assert len(result.warnings) == 1

    def test_bill_details_on_recharge_is_fine(self, validator, make_draft):
        result = validator.validate_transaction(make_draft(
            type=TransactionType.RECHARGE,
            bill_category=BillCategory.MOBILE,
            consumer_id="9845000000",
        ))
        assert result.issues == []

    def test_self_paid_with_counterparty(self, validator, make_draft):
        result = validator.validate_transaction(make_draft(is_for_self=True, counterparty_id=uuid4()))
        assert result.has_errors
        assert result.issues[0].issue_type == "inconsistent"

    @pytest.mark.parametrize("amount, issue_type", [
        (None, "missing"),
        (Decimal("0.00"), "invalid_value"),
        (Decimal("-3.00"), "invalid_value"),
        (Decimal("1.234"), "invalid_format"),
        (1.5, "invalid_format"),
    ])
    def test_payment_amount(self, validator, amount, issue_type):
        result = validator.validate_payment_amount(amount)
        assert not result.is_valid
        assert result.issues[0].issue_type == issue_type

    def test_payment_amount_ok(self, validator):
        assert validator.validate_payment_amount(Decimal("0.01")).is_valid
