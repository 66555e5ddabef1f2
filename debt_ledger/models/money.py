"""
Money

DESIGN DECISION: Money is a plain Decimal with at most two decimal
places. Binary floats are rejected everywhere money enters the system,
because 0.1 + 0.2 != 0.3 is not acceptable in a ledger.

Arithmetic on these values is exact: addition and subtraction of
two-place decimals never round.
"""

from decimal import Decimal, InvalidOperation
from typing import Annotated, Iterable, Union

from pydantic import BeforeValidator, Field


MONEY_PLACES = 2

ZERO = Decimal("0.00")


def _reject_float(value):
    """Pydantic pre-validator: refuse binary floats."""
    if isinstance(value, float):
        raise ValueError("Money must be given as str, int or Decimal, not float")
    return value


ExactDecimal = Annotated[Decimal, BeforeValidator(_reject_float)]

Money = Annotated[
    Decimal,
    BeforeValidator(_reject_float),
    Field(decimal_places=MONEY_PLACES),
]

PositiveMoney = Annotated[
    Decimal,
    BeforeValidator(_reject_float),
    Field(gt=0, decimal_places=MONEY_PLACES),
]


def to_money(value: Union[Decimal, int, str]) -> Decimal:
    """
    Convert a value to an exact money amount.

    Raises:
        ValueError: for floats, booleans, non-numeric strings, non-finite
            values, or more than two decimal places
    """
    if isinstance(value, (float, bool)):
        raise ValueError(f"Money must be given as str, int or Decimal, not {type(value).__name__}")

    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except InvalidOperation:
        raise ValueError(f"Not a valid amount: {value!r}")

    if not amount.is_finite():
        raise ValueError(f"Not a valid amount: {value!r}")

    if amount.as_tuple().exponent < -MONEY_PLACES:
        raise ValueError(f"Amount {amount} has more than {MONEY_PLACES} decimal places")

    return amount


def sum_money(values: Iterable[Decimal]) -> Decimal:
    """Exact sum; an empty iterable sums to ZERO."""
    total = ZERO
    for value in values:
        total += value
    return total


def format_money(amount: Decimal, currency: str = "INR") -> str:
    """Human-readable amount, e.g. 'INR 1,250.00'."""
    return f"{currency} {amount:,.2f}"
