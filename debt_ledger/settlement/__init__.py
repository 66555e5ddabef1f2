"""Settlement engine and the status rule."""

from debt_ledger.settlement.engine import (
    PaymentOutcome,
    SettledOutcome,
    SettlementEngine,
    SurplusOutcome,
    calculate_remaining_due,
    compute_status,
    detect_surplus,
)

__all__ = [
    "PaymentOutcome",
    "SettledOutcome",
    "SettlementEngine",
    "SurplusOutcome",
    "calculate_remaining_due",
    "compute_status",
    "detect_surplus",
]
