"""
Shared fixtures.

Every test gets a fresh in-memory store and a manual clock, so tests
never touch Google Sheets and never depend on wall-clock time.
"""

from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest
import pytest_asyncio

from debt_ledger.audit import AuditRecorder
from debt_ledger.balances import BalanceAggregator
from debt_ledger.clock import ManualClock
from debt_ledger.config import LedgerSettings
from debt_ledger.models.ledger import (
    TransactionDirection,
    TransactionDraft,
)
from debt_ledger.queries import AuditQueryExecutor
from debt_ledger.reminders import ReminderCoupling
from debt_ledger.services.storage import InMemoryLedgerStore
from debt_ledger.settlement import SettlementEngine


@pytest.fixture
def clock():
    return ManualClock(datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def store():
    return InMemoryLedgerStore()


@pytest.fixture
def ledger_settings():
    return LedgerSettings(
        top_balances_limit=5,
        recent_transactions_limit=10,
        reminder_clear_policy="cancel",
        storage_backend="memory",
    )


@pytest.fixture
def audit(store, clock):
    return AuditRecorder(store, clock=clock)


@pytest.fixture
def reminders(store, ledger_settings):
    return ReminderCoupling(store, policy=ledger_settings.reminder_clear_policy)


@pytest.fixture
def engine(store, audit, reminders, clock):
    return SettlementEngine(
        transactions=store,
        directory=store,
        audit=audit,
        reminders=reminders,
        clock=clock,
    )


@pytest.fixture
def aggregator(store, reminders, ledger_settings):
    return BalanceAggregator(store, store, reminders, settings=ledger_settings)


@pytest.fixture
def audit_queries(store):
    return AuditQueryExecutor(store)


@pytest.fixture
def account_id():
    return uuid4()


@pytest.fixture
def category_id():
    return uuid4()


@pytest.fixture
def make_draft(account_id, category_id):
    """Build a valid draft; keyword arguments override fields."""
    def _make(**overrides) -> TransactionDraft:
        fields = {
            "direction": TransactionDirection.GAVE,
            "amount": Decimal("500.00"),
            "account_id": account_id,
            "category_id": category_id,
        }
        fields.update(overrides)
        return TransactionDraft(**fields)
    return _make


@pytest_asyncio.fixture
async def counterparty(engine):
    return await engine.add_counterparty("Ravi")
