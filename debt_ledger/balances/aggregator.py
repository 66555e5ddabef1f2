"""
Balance Aggregator

Read side of the ledger. Nothing here writes.

Sign convention for a counterparty's net balance:
- positive: the counterparty owes the user
- negative: the user owes the counterparty
- zero: nothing outstanding

Only active transactions count: CANCELLED and soft-deleted ones are
skipped. A SETTLED transaction contributes nothing, even when overpaid;
the surplus was reported when the payment was applied.

The module-level functions are pure and total. BalanceAggregator loads
transactions from storage and hands them to those functions.
"""

from decimal import Decimal
from typing import Iterable, Optional
from uuid import UUID

from debt_ledger.config.settings import LedgerSettings
from debt_ledger.exceptions import CounterpartyNotFoundError
from debt_ledger.models.ledger import (
    CounterpartyBalance,
    CounterpartyLedger,
    DashboardSummary,
    PortfolioTotals,
    Transaction,
    TransactionDirection,
)
from debt_ledger.models.money import ZERO, sum_money
from debt_ledger.reminders import ReminderCoupling
from debt_ledger.services.storage import (
    DirectoryStorageInterface,
    TransactionStorageInterface,
)


DEFAULT_TOP_N = 5


def _signed_due(transaction: Transaction) -> Decimal:
    if transaction.direction == TransactionDirection.GAVE:
        return transaction.outstanding_due
    return -transaction.outstanding_due


def _active(transactions: Iterable[Transaction]) -> list[Transaction]:
    return [transaction for transaction in transactions if transaction.is_active]


def net_balance(counterparty_id: UUID, transactions: Iterable[Transaction]) -> Decimal:
    """GAVE dues minus RECEIVED dues for one counterparty."""
    return sum_money(
        _signed_due(transaction)
        for transaction in _active(transactions)
        if transaction.counterparty_id == counterparty_id
    )


def portfolio_totals(transactions: Iterable[Transaction]) -> PortfolioTotals:
    """
    Totals across every counterparty, partitioned by direction.

    The two figures never cancel each other out: GAVE dues only feed
    total_owed_to_user and RECEIVED dues only feed total_user_owes.
    """
    owed_to_user = ZERO
    user_owes = ZERO
    for transaction in _active(transactions):
        if transaction.direction == TransactionDirection.GAVE:
            owed_to_user += transaction.outstanding_due
        else:
            user_owes += transaction.outstanding_due
    return PortfolioTotals(total_owed_to_user=owed_to_user, total_user_owes=user_owes)


def counterparty_balances(transactions: Iterable[Transaction]) -> list[CounterpartyBalance]:
    """Net balance per counterparty, in the order counterparties first appear."""
    balances: dict[UUID, Decimal] = {}
    for transaction in _active(transactions):
        if transaction.counterparty_id is None:
            continue
        balances.setdefault(transaction.counterparty_id, ZERO)
        balances[transaction.counterparty_id] += _signed_due(transaction)

    return [
        CounterpartyBalance(counterparty_id=counterparty_id, net_balance=balance)
        for counterparty_id, balance in balances.items()
    ]


def _check_limit(n: int) -> None:
    if n < 0:
        raise ValueError(f"n must be zero or more, got {n}")


def top_debtors(
    transactions: Iterable[Transaction],
    n: int = DEFAULT_TOP_N,
) -> list[CounterpartyBalance]:
    """Counterparties owing the user the most. Ties keep first-seen order."""
    _check_limit(n)
    debtors = [b for b in counterparty_balances(transactions) if b.net_balance > ZERO]
    return sorted(debtors, key=lambda b: b.net_balance, reverse=True)[:n]


def top_creditors(
    transactions: Iterable[Transaction],
    n: int = DEFAULT_TOP_N,
) -> list[CounterpartyBalance]:
    """Counterparties the user owes the most. Ties keep first-seen order."""
    _check_limit(n)
    creditors = [b for b in counterparty_balances(transactions) if b.net_balance < ZERO]
    return sorted(creditors, key=lambda b: -b.net_balance, reverse=True)[:n]


class BalanceAggregator:
    """
    Storage-backed balance queries for dashboards and counterparty screens.
    """

    def __init__(
        self,
        transactions: TransactionStorageInterface,
        directory: DirectoryStorageInterface,
        reminders: ReminderCoupling,
        settings: Optional[LedgerSettings] = None,
    ):
        self._transactions = transactions
        self._directory = directory
        self._reminders = reminders
        self._settings = settings or LedgerSettings()

    async def _active_transactions(self) -> list[Transaction]:
        return _active(await self._transactions.list_transactions())

    async def net_balance(self, counterparty_id: UUID) -> Decimal:
        transactions = await self._transactions.list_transactions(counterparty_id=counterparty_id)
        return net_balance(counterparty_id, transactions)

    async def portfolio_totals(self) -> PortfolioTotals:
        return portfolio_totals(await self._active_transactions())

    async def top_debtors(self, n: Optional[int] = None) -> list[CounterpartyBalance]:
        return top_debtors(
            await self._active_transactions(),
            self._settings.top_balances_limit if n is None else n,
        )

    async def top_creditors(self, n: Optional[int] = None) -> list[CounterpartyBalance]:
        return top_creditors(
            await self._active_transactions(),
            self._settings.top_balances_limit if n is None else n,
        )

    async def counterparty_ledger(self, counterparty_id: UUID) -> CounterpartyLedger:
        """
        A counterparty with its net balance and active transactions,
        newest first.

        Raises:
            CounterpartyNotFoundError: If the counterparty doesn't exist
        """
        counterparty = await self._directory.get_counterparty(counterparty_id)
        if counterparty is None:
            raise CounterpartyNotFoundError(counterparty_id)

        transactions = _active(
            await self._transactions.list_transactions(counterparty_id=counterparty_id)
        )
        transactions.sort(key=lambda t: t.transaction_time, reverse=True)

        return CounterpartyLedger(
            counterparty=counterparty,
            net_balance=net_balance(counterparty_id, transactions),
            transactions=transactions,
        )

    async def dashboard_summary(self) -> DashboardSummary:
        """Everything the home screen shows, from one read of the ledger."""
        transactions = await self._active_transactions()
        limit = self._settings.top_balances_limit

        recent = sorted(transactions, key=lambda t: t.transaction_time, reverse=True)

        return DashboardSummary(
            totals=portfolio_totals(transactions),
            upcoming_reminders_count=await self._reminders.upcoming_count(),
            recent_transactions=recent[:self._settings.recent_transactions_limit],
            top_debtors=top_debtors(transactions, limit),
            top_creditors=top_creditors(transactions, limit),
        )
