"""
Tests for audit log queries.
"""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from debt_ledger.models.audit import AuditAction, AuditEntityType, AuditQuery
from debt_ledger.models.ledger import PaymentDirection
from debt_ledger.queries import QueryExecutionError


class TestAuditQueryExecutor:

    @pytest.fixture
    def history(self, engine, make_draft, clock):
        """One create on Mar 1, one payment on Mar 2, one cancel on Mar 3."""
        async def _build():
            transaction = await engine.create_transaction(make_draft(notes="Rent share"))
            clock.set(datetime(2024, 3, 2, 10, 0, tzinfo=timezone.utc))
            await engine.apply_payment(
                transaction.id, Decimal("100.00"), PaymentDirection.FROM_COUNTERPARTY
            )
            clock.set(datetime(2024, 3, 3, 10, 0, tzinfo=timezone.utc))
            await engine.cancel_transaction(transaction.id)
            return transaction
        return _build

    @pytest.mark.asyncio
    async def test_recent_newest_first(self, audit_queries, history):
        await history()

        result = await audit_queries.execute(AuditQuery())

        assert result.data_found
        assert result.result_count == 4
        sequences = [entry.sequence for entry in result.entries]
        assert sequences == sorted(sequences, reverse=True)
        assert result.entries[-1].action == AuditAction.CREATE

    @pytest.mark.asyncio
    async def test_limit(self, audit_queries, history):
        await history()
        result = await audit_queries.execute(AuditQuery(limit=2))
        assert result.result_count == 2

    @pytest.mark.asyncio
    async def test_date_range_is_inclusive(self, audit_queries, history):
        await history()

        result = await audit_queries.execute(AuditQuery(
            query_type="date_range",
            date_from=date(2024, 3, 2),
            date_to=date(2024, 3, 2),
        ))

        assert [e.action for e in result.entries] == [AuditAction.UPDATE, AuditAction.PARTIAL_PAYMENT]
        assert "from 2024-03-02 to 2024-03-02" in result.query_description

    @pytest.mark.asyncio
    async def test_by_entity_type(self, audit_queries, history):
        await history()
        result = await audit_queries.execute(AuditQuery(
            query_type="entity_type",
            entity_type=AuditEntityType.PARTIAL_PAYMENT,
        ))
        assert result.result_count == 1

    @pytest.mark.asyncio
    async def test_entity_history(self, audit_queries, history):
        transaction = await history()
        result = await audit_queries.execute(AuditQuery(query_type="entity", entity_id=transaction.id))
        assert [e.action for e in result.entries] == [
            AuditAction.UPDATE,
            AuditAction.UPDATE,
            AuditAction.CREATE,
        ]

    @pytest.mark.asyncio
    async def test_by_action(self, audit_queries, history):
        await history()
        result = await audit_queries.execute(AuditQuery(query_type="action", action=AuditAction.CREATE))
        assert result.result_count == 1

    @pytest.mark.asyncio
    async def test_search_looks_inside_snapshots(self, audit_queries, history):
        await history()
        result = await audit_queries.execute(AuditQuery(query_type="search", text="rent share"))
        assert [e.action for e in result.entries] == [
            AuditAction.UPDATE,
            AuditAction.UPDATE,
            AuditAction.CREATE,
        ]

    @pytest.mark.asyncio
    async def test_no_match(self, audit_queries, history):
        await history()
        result = await audit_queries.execute(AuditQuery(query_type="search", text="nothing like this"))
        assert not result.data_found
        assert result.entries == []
        assert "no entries found" in result.query_description

    @pytest.mark.asyncio
    async def test_missing_filter(self, audit_queries):
        with pytest.raises(QueryExecutionError):
            await audit_queries.execute(AuditQuery(query_type="entity_type"))

    def test_unknown_query_type_rejected(self):
        with pytest.raises(ValueError):
            AuditQuery(query_type="drop_table")
