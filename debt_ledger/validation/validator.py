"""
Ledger Input Validation

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - REQUIRED FIELDS:
- Amount is present, exact and positive
- Account and category are set

STAGE 2 - CONSISTENCY:
- Bill metadata only on bill payments and recharges
- Self-paid transactions have no counterparty

IMPORTANT: Validation NEVER silently fixes issues. It reports every issue
it finds; the settlement engine refuses the write when any is an error.
"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from debt_ledger.models.ledger import TransactionDraft, TransactionType
from debt_ledger.models.money import to_money


class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'inconsistent')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """Result of the two-stage validation."""

    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def warnings(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "warning"]

    def summary(self) -> str:
        """One line listing the error messages."""
        return "; ".join(issue.message for issue in self.issues if issue.severity == "error")


_BILL_TYPES = (TransactionType.BILL_PAYMENT, TransactionType.RECHARGE)


def _amount_issue(field: str, amount: Optional[Decimal], label: str) -> Optional[ValidationIssue]:
    """Shared amount check for transactions and payments."""
    if amount is None:
        return ValidationIssue(
            field=field,
            issue_type="missing",
            message=f"{label} is required",
            severity="error",
        )

    try:
        amount = to_money(amount)
    except ValueError as e:
        return ValidationIssue(
            field=field,
            issue_type="invalid_format",
            message=str(e),
            severity="error",
        )

    if amount <= 0:
        return ValidationIssue(
            field=field,
            issue_type="invalid_value",
            message=f"{label} must be positive",
            severity="error",
        )
    return None


class TransactionValidator:
    """
    Validates transaction drafts and payment amounts.

    Pure: no storage access, no side effects.
    """

    def _validate_required(self, draft: TransactionDraft) -> list[ValidationIssue]:
        """
        Stage 1: Required fields.
        """
        issues = []

        amount_issue = _amount_issue("amount", draft.amount, "Amount")
        if amount_issue:
            issues.append(amount_issue)

        if draft.account_id is None:
            issues.append(ValidationIssue(
                field="account_id",
                issue_type="missing",
                message="Account is required",
                severity="error",
            ))

        if draft.category_id is None:
            issues.append(ValidationIssue(
                field="category_id",
                issue_type="missing",
                message="Category is required",
                severity="error",
            ))

        return issues

    def _validate_consistency(self, draft: TransactionDraft) -> list[ValidationIssue]:
        """
        Stage 2: Consistency between fields.
        """
        issues = []

        if draft.type not in _BILL_TYPES and (draft.bill_category or draft.consumer_id):
            issues.append(ValidationIssue(
                field="bill_category",
                issue_type="inconsistent",
                message="Bill details are only recorded on bill payments and recharges",
                severity="warning",
            ))

        if draft.is_for_self and draft.counterparty_id is not None:
            issues.append(ValidationIssue(
                field="counterparty_id",
                issue_type="inconsistent",
                message="A self-paid transaction cannot have a counterparty",
                severity="error",
            ))

        return issues

    def validate_transaction(self, draft: TransactionDraft) -> ValidationResult:
        """
        Run both stages. Stage 2 only runs when stage 1 passes.
        """
        issues = self._validate_required(draft)
        if not issues:
            issues.extend(self._validate_consistency(draft))
        return ValidationResult(issues=issues)

    def validate_payment_amount(self, amount: Optional[Decimal]) -> ValidationResult:
        issue = _amount_issue("amount", amount, "Payment amount")
        return ValidationResult(issues=[issue] if issue else [])
