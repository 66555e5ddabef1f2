"""
Debt Ledger - Source Package

A personal debt/expense ledger: money given to or received from
counterparties, settled through partial payments.

DESIGN PRINCIPLES:
1. Balances are derived, never stored authoritatively
2. Money is exact (Decimal), never a binary float
3. Every mutation is auditable
4. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Debt Ledger Team"
