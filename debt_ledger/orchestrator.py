"""
Main Orchestrator for the Debt Ledger

This module ties together all the components and exposes the one
surface callers (UI, task-conversion flows, scripts) talk to:
1. Writes go through the SettlementEngine
2. Balance reads go through the BalanceAggregator
3. Audit history reads go through the AuditQueryExecutor

DESIGN DECISION: The orchestrator enforces the boundaries:
- No ledger state changes outside the engine
- No balance is ever stored, only derived
- Every write is audited

create_ledger_components() wires everything against one store chosen
from configuration.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional, Union
from uuid import UUID

import structlog

from debt_ledger.audit import AuditRecorder
from debt_ledger.balances import BalanceAggregator
from debt_ledger.clock import Clock, SystemClock
from debt_ledger.config import Settings, get_settings
from debt_ledger.models.audit import AuditQuery, AuditQueryResult
from debt_ledger.models.ledger import (
    Counterparty,
    CounterpartyBalance,
    CounterpartyLedger,
    DashboardSummary,
    PaymentDirection,
    PaymentMethod,
    PortfolioTotals,
    Transaction,
    TransactionDraft,
)
from debt_ledger.models.money import format_money
from debt_ledger.queries import AuditQueryExecutor
from debt_ledger.reminders import ReminderCoupling
from debt_ledger.services.storage import (
    GoogleSheetsClient,
    GoogleSheetsLedgerStore,
    InMemoryLedgerStore,
)
from debt_ledger.settlement import PaymentOutcome, SettlementEngine


logger = structlog.get_logger(__name__)

LedgerStore = Union[InMemoryLedgerStore, GoogleSheetsLedgerStore]


class LedgerService:
    """
    Facade over the engine, the aggregator and the audit queries.

    Methods are thin: every rule lives in the component that owns it.
    """

    def __init__(
        self,
        engine: SettlementEngine,
        aggregator: BalanceAggregator,
        audit_queries: AuditQueryExecutor,
        currency_code: str = "INR",
    ):
        self._engine = engine
        self._aggregator = aggregator
        self._audit_queries = audit_queries
        self._currency_code = currency_code

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def create_transaction(self, draft: TransactionDraft) -> Transaction:
        return await self._engine.create_transaction(draft)

    async def apply_payment(
        self,
        transaction_id: UUID,
        amount: Decimal,
        direction: PaymentDirection,
        method: PaymentMethod = PaymentMethod.CASH,
        timestamp: Optional[datetime] = None,
        notes: Optional[str] = None,
    ) -> PaymentOutcome:
        return await self._engine.apply_payment(
            transaction_id,
            amount,
            direction,
            method=method,
            timestamp=timestamp,
            notes=notes,
        )

    async def delete_payment(self, payment_id: UUID) -> Transaction:
        return await self._engine.delete_payment(payment_id)

    async def cancel_transaction(self, transaction_id: UUID) -> Transaction:
        return await self._engine.cancel_transaction(transaction_id)

    async def soft_delete_transaction(self, transaction_id: UUID) -> Transaction:
        return await self._engine.soft_delete_transaction(transaction_id)

    async def restore_transaction(self, transaction_id: UUID) -> Transaction:
        return await self._engine.restore_transaction(transaction_id)

    async def add_counterparty(
        self,
        display_name: str,
        phone: Optional[str] = None,
        notes: Optional[str] = None,
        is_favorite: bool = False,
    ) -> Counterparty:
        return await self._engine.add_counterparty(
            display_name,
            phone=phone,
            notes=notes,
            is_favorite=is_favorite,
        )

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def net_balance(self, counterparty_id: UUID) -> Decimal:
        return await self._aggregator.net_balance(counterparty_id)

    async def portfolio_totals(self) -> PortfolioTotals:
        return await self._aggregator.portfolio_totals()

    async def top_debtors(self, n: Optional[int] = None) -> list[CounterpartyBalance]:
        return await self._aggregator.top_debtors(n)

    async def top_creditors(self, n: Optional[int] = None) -> list[CounterpartyBalance]:
        return await self._aggregator.top_creditors(n)

    async def counterparty_ledger(self, counterparty_id: UUID) -> CounterpartyLedger:
        return await self._aggregator.counterparty_ledger(counterparty_id)

    async def dashboard_summary(self) -> DashboardSummary:
        return await self._aggregator.dashboard_summary()

    async def query_audit_log(self, query: AuditQuery) -> AuditQueryResult:
        return await self._audit_queries.execute(query)

    def format_amount(self, amount: Decimal) -> str:
        """Amount in the ledger currency, e.g. 'INR 1,250.00'."""
        return format_money(amount, self._currency_code)


def _create_store(settings: Settings) -> LedgerStore:
    backend = settings.ledger.storage_backend
    if backend == "google_sheets":
        return GoogleSheetsLedgerStore(GoogleSheetsClient(settings.google_sheets))
    return InMemoryLedgerStore()


def create_ledger_components(
    settings: Optional[Settings] = None,
    store: Optional[LedgerStore] = None,
    clock: Optional[Clock] = None,
) -> tuple[LedgerService, LedgerStore]:
    """
    Factory function to create all ledger components.

    Args:
        settings: Configuration; defaults to get_settings()
        store: A ready store. When omitted, one is built for the
               configured storage backend.
        clock: Time source shared by the engine and the audit recorder

    Returns:
        (ledger_service, store)
    """
    settings = settings or get_settings()
    ledger_settings = settings.ledger
    logging.getLogger("debt_ledger").setLevel(settings.app.log_level)
    clock = clock or SystemClock()
    store = store or _create_store(settings)

    reminders = ReminderCoupling(store, policy=ledger_settings.reminder_clear_policy)
    audit = AuditRecorder(store, clock=clock)

    engine = SettlementEngine(
        transactions=store,
        directory=store,
        audit=audit,
        reminders=reminders,
        clock=clock,
    )
    aggregator = BalanceAggregator(
        transactions=store,
        directory=store,
        reminders=reminders,
        settings=ledger_settings,
    )

    logger.info(
        "ledger_components_created",
        store=type(store).__name__,
        reminder_clear_policy=ledger_settings.reminder_clear_policy,
    )
    service = LedgerService(
        engine,
        aggregator,
        AuditQueryExecutor(store),
        currency_code=ledger_settings.currency_code,
    )
    return service, store
