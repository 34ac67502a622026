"""Ringgit arithmetic rounded to the sen (0.01) after every operation.

Amounts are carried as ``Decimal``. Each helper quantizes its result with
ROUND_HALF_UP so per-tenant divisions never accumulate binary float error.
"""

from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from rentsplit.core.exceptions import PreconditionViolation

Number = Decimal | int | float | str

SEN = Decimal("0.01")
ZERO = Decimal("0.00")
CURRENCY_SYMBOL = "RM"


def to_decimal(value: Number) -> Decimal:
    """Convert a number to Decimal, going through ``str`` for floats."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def round_to_sen(amount: Number) -> Decimal:
    """Round to the nearest sen."""
    return to_decimal(amount).quantize(SEN, rounding=ROUND_HALF_UP)


def add(a: Number, b: Number) -> Decimal:
    """Add and round to the sen."""
    return round_to_sen(to_decimal(a) + to_decimal(b))


def subtract(a: Number, b: Number) -> Decimal:
    """Subtract ``b`` from ``a`` and round to the sen."""
    return round_to_sen(to_decimal(a) - to_decimal(b))


def multiply(amount: Number, multiplier: Number) -> Decimal:
    """Multiply and round to the sen."""
    return round_to_sen(to_decimal(amount) * to_decimal(multiplier))


def divide(amount: Number, divisor: Number) -> Decimal:
    """Divide and round to the sen.

    Raises:
        PreconditionViolation: if ``divisor`` is zero. Callers splitting among
            tenants must short-circuit the empty tenant list first.
    """
    divisor = to_decimal(divisor)
    if divisor == 0:
        raise PreconditionViolation(f"Cannot divide {amount} by zero")
    return round_to_sen(to_decimal(amount) / divisor)


def sum_amounts(amounts: Iterable[Number]) -> Decimal:
    """Sum amounts with ``add`` so the running total stays on the sen."""
    total = ZERO
    for amount in amounts:
        total = add(total, amount)
    return total


def to_sen(amount: Number) -> int:
    """Convert ringgit to integer sen."""
    return int(round_to_sen(amount) * 100)


def from_sen(sen: int) -> Decimal:
    """Convert integer sen to ringgit."""
    return (Decimal(sen) / 100).quantize(SEN)


def split_evenly(total: Number, parts: int) -> list[Decimal]:
    """Split ``total`` into ``parts`` amounts that sum to it exactly.

    Leftover sen go one each to the first recipients.
    """
    if parts <= 0:
        raise PreconditionViolation(f"Cannot split an amount into {parts} parts")

    total_sen = to_sen(total)
    base, remainder = divmod(total_sen, parts)
    return [from_sen(base + 1 if i < remainder else base) for i in range(parts)]


def format_ringgit(amount: Number) -> str:
    """Format as ``RM1,234.56`` (``-RM12.00`` for negatives)."""
    value = round_to_sen(amount)
    sign = "-" if value < 0 else ""
    return f"{sign}{CURRENCY_SYMBOL}{abs(value):,.2f}"


def parse_ringgit(text: str) -> Decimal | None:
    """Parse a ringgit string such as ``"RM 1,234.50"``; None if it is not a number."""
    cleaned = text.replace(CURRENCY_SYMBOL, "").replace(" ", "").replace(",", "")
    if not cleaned:
        return None
    try:
        return round_to_sen(Decimal(cleaned))
    except InvalidOperation:
        return None
