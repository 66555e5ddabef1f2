"""
Audit Query Execution Engine

DESIGN DECISION: Query execution is DETERMINISTIC and READ-ONLY.
An AuditQuery describes a projection; this engine runs it over the
entries actually stored in the audit log and nothing else.

Results are always newest first. Ties on timestamp are broken by the
store-assigned sequence, so the order is stable across runs.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Callable, Optional

from debt_ledger.exceptions import LedgerError
from debt_ledger.models.audit import (
    AuditLogEntry,
    AuditQuery,
    AuditQueryResult,
)
from debt_ledger.services.storage import AuditStorageInterface


class QueryExecutionError(LedgerError):
    """The query is missing a filter its type requires."""
    pass


EntryFilter = Callable[[AuditLogEntry], bool]


class AuditQueryExecutor:
    """
    Executes audit queries against audit storage.

    GUARANTEES:
    - Only returns entries that exist in storage
    - Never modifies or reorders the stored log
    - Clear "no entries found" if nothing matches

    Storage failures propagate to the caller.
    """

    def __init__(self, storage: AuditStorageInterface):
        self._storage = storage

    async def execute(self, query: AuditQuery) -> AuditQueryResult:
        """
        Execute an audit query.

        Raises:
            QueryExecutionError: If a required filter is missing
            StorageError: If the audit store is unavailable
        """
        # Route to appropriate handler based on query type
        if query.query_type == "date_range":
            entry_filter, description = self._date_range(query)
        elif query.query_type == "entity_type":
            entry_filter, description = self._by_entity_type(query)
        elif query.query_type == "entity":
            entry_filter, description = self._by_entity(query)
        elif query.query_type == "action":
            entry_filter, description = self._by_action(query)
        elif query.query_type == "search":
            entry_filter, description = self._search(query)
        else:
            entry_filter, description = (lambda entry: True), "Recent audit entries"

        entries = await self._storage.list_entries()
        matches = [entry for entry in entries if entry_filter(entry)]
        matches.sort(key=lambda entry: (entry.timestamp, entry.sequence), reverse=True)
        matches = matches[:query.limit]

        if not matches:
            description = f"{description} | no entries found"

        return AuditQueryResult(
            query_id=query.query_id,
            data_found=len(matches) > 0,
            result_count=len(matches),
            entries=matches,
            query_description=description,
        )

    def _date_range(self, query: AuditQuery) -> tuple[EntryFilter, str]:
        """Entries whose timestamp falls on or between the given dates (UTC)."""
        if query.date_from is None and query.date_to is None:
            raise QueryExecutionError("date_range query needs date_from or date_to")

        start = self._day_start(query.date_from) if query.date_from else None
        end = self._day_start(query.date_to, next_day=True) if query.date_to else None

        def entry_filter(entry: AuditLogEntry) -> bool:
            if start is not None and entry.timestamp < start:
                return False
            if end is not None and entry.timestamp >= end:
                return False
            return True

        return entry_filter, f"Audit entries {self._date_range_str(query.date_from, query.date_to)}"

    def _by_entity_type(self, query: AuditQuery) -> tuple[EntryFilter, str]:
        if query.entity_type is None:
            raise QueryExecutionError("entity_type query needs entity_type")
        return (
            lambda entry: entry.entity_type == query.entity_type,
            f"Audit entries | entity type: {query.entity_type.value}",
        )

    def _by_entity(self, query: AuditQuery) -> tuple[EntryFilter, str]:
        """History of one entity, optionally narrowed to an entity type."""
        if query.entity_id is None:
            raise QueryExecutionError("entity query needs entity_id")

        def entry_filter(entry: AuditLogEntry) -> bool:
            if entry.entity_id != query.entity_id:
                return False
            return query.entity_type is None or entry.entity_type == query.entity_type

        return entry_filter, f"History of entity {query.entity_id}"

    def _by_action(self, query: AuditQuery) -> tuple[EntryFilter, str]:
        if query.action is None:
            raise QueryExecutionError("action query needs action")
        return (
            lambda entry: entry.action == query.action,
            f"Audit entries | action: {query.action.value}",
        )

    def _search(self, query: AuditQuery) -> tuple[EntryFilter, str]:
        if not query.text:
            raise QueryExecutionError("search query needs text")
        return (
            lambda entry: entry.matches_text(query.text),
            f"Audit entries matching '{query.text}'",
        )

    @staticmethod
    def _day_start(day: date, next_day: bool = False) -> datetime:
        start = datetime.combine(day, time.min, tzinfo=timezone.utc)
        return start + timedelta(days=1) if next_day else start

    @staticmethod
    def _date_range_str(date_from: Optional[date], date_to: Optional[date]) -> str:
        """Format a date range for descriptions."""
        if date_from and date_to:
            return f"from {date_from} to {date_to}"
        elif date_from:
            return f"from {date_from}"
        elif date_to:
            return f"until {date_to}"
        return ""
