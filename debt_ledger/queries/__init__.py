"""Audit log query projections."""

from debt_ledger.queries.executor import AuditQueryExecutor, QueryExecutionError

__all__ = ["AuditQueryExecutor", "QueryExecutionError"]
