"""Validation package."""

from debt_ledger.validation.validator import (
    TransactionValidator,
    ValidationIssue,
    ValidationResult,
)

__all__ = ["TransactionValidator", "ValidationIssue", "ValidationResult"]
