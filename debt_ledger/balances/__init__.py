"""Read-side balance derivation."""

from debt_ledger.balances.aggregator import (
    BalanceAggregator,
    counterparty_balances,
    net_balance,
    portfolio_totals,
    top_creditors,
    top_debtors,
)

__all__ = [
    "BalanceAggregator",
    "counterparty_balances",
    "net_balance",
    "portfolio_totals",
    "top_creditors",
    "top_debtors",
]
