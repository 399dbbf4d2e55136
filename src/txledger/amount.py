"""Monetary amount helpers.

All balances are ``Decimal`` values kept at four decimal places.
Rounding is half-up (away from zero on ties) everywhere: arithmetic results
and output serialization use the same rule.

Transaction amounts are capped at ``MAX_AMOUNT``. Balance arithmetic runs at
``BALANCE_PRECISION`` significant digits, far more than any sum of capped
amounts can reach, so no balance is ever silently truncated.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext

FOUR_PLACES = Decimal("0.0001")
ZERO = Decimal("0.0000")

MAX_AMOUNT = Decimal("1000000000000000")
BALANCE_PRECISION = 64


def round4(value: Decimal) -> Decimal:
    """Round a value to four decimal places using half-up rounding."""
    with localcontext() as ctx:
        ctx.prec = BALANCE_PRECISION
        return Decimal(value).quantize(FOUR_PLACES, rounding=ROUND_HALF_UP)


def add4(left: Decimal, right: Decimal) -> Decimal:
    """Exact sum of two amounts, rounded to four decimal places."""
    with localcontext() as ctx:
        ctx.prec = BALANCE_PRECISION
        return round4(left + right)


def sub4(left: Decimal, right: Decimal) -> Decimal:
    """Exact difference of two amounts, rounded to four decimal places."""
    with localcontext() as ctx:
        ctx.prec = BALANCE_PRECISION
        return round4(left - right)


def within_limit(value: Decimal) -> bool:
    """Whether an amount's magnitude is at most ``MAX_AMOUNT``."""
    return value.is_finite() and abs(value) <= MAX_AMOUNT


def format_amount(value: Decimal) -> str:
    """Render an amount with exactly four decimal places."""
    return f"{round4(value):.4f}"


def parse_amount(text: str) -> Decimal:
    """Parse wire text into a Decimal amount.

    Raises:
        ValueError: If the text is not a finite decimal number, or its
            magnitude exceeds ``MAX_AMOUNT``
    """
    try:
        value = Decimal(text.strip())
    except InvalidOperation:
        raise ValueError(f"Invalid amount: {text!r}") from None
    if not value.is_finite():
        raise ValueError(f"Invalid amount: {text!r}")
    if not within_limit(value):
        raise ValueError(f"Amount out of range (max {MAX_AMOUNT}): {text!r}")
    return value
