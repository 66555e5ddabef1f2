"""Audit package."""

from debt_ledger.audit.logger import AuditRecorder

__all__ = ["AuditRecorder"]
