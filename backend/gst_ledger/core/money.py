"""
Money helpers
Project: GST Ledger

Every monetary value in the ledger is a Decimal with two fractional
digits, rounded ROUND_HALF_UP. Floats never enter the arithmetic.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable, Union

from gst_ledger.core.exceptions import BusinessValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")

MoneyInput = Union[Decimal, int, str]


def to_money(value: MoneyInput) -> Decimal:
    """
    Convert a value to a two-place Decimal.

    Args:
        value: Decimal, int or numeric string

    Returns:
        Decimal: value quantized to cents

    Raises:
        BusinessValidationError: value is a float or not a number
    """
    if isinstance(value, bool) or isinstance(value, float):
        raise BusinessValidationError(
            f"Monetary values must be Decimal, int or str, got {type(value).__name__}"
        )
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as e:
        raise BusinessValidationError(f"'{value}' is not a valid amount") from e
    if not amount.is_finite():
        raise BusinessValidationError(f"'{value}' is not a valid amount")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def parse_amount(value: MoneyInput) -> Decimal:
    """
    Convert a caller-supplied amount, refusing fractions of a cent.

    Unlike to_money, which rounds computed values, input such as "10.005"
    is rejected rather than silently becoming 10.01.

    Raises:
        BusinessValidationError: float, not a number, or more than two decimal places
    """
    amount = to_money(value)
    raw = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    if raw != amount:
        raise BusinessValidationError(
            f"'{value}' has more than two decimal places",
            extra={"amount": str(value)},
        )
    return amount


def money_sum(values: Iterable[Decimal]) -> Decimal:
    """Sum monetary values, returning ZERO for an empty iterable."""
    return sum((to_money(v) for v in values), ZERO)


def percent_of(amount: Decimal, percent: Decimal) -> Decimal:
    """amount * percent / 100, rounded to cents."""
    return (amount * percent / HUNDRED).quantize(CENT, rounding=ROUND_HALF_UP)
