"""
Money helpers.

All amounts in the ledger are integer cents. Every division goes through
Decimal with ROUND_HALF_EVEN so results never depend on float behaviour.
"""

from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation


CENT = Decimal(1)


def divide_cents(amount: int, divisor: int) -> int:
    """Divide integer cents and round half-to-even to the nearest cent."""
    if divisor <= 0:
        raise ValueError(f"Divisor must be positive, got {divisor}")
    quotient = Decimal(amount) / Decimal(divisor)
    return int(quotient.quantize(CENT, rounding=ROUND_HALF_EVEN))


def half_share(amount: int) -> int:
    """One persona's share of a 50/50 split."""
    return divide_cents(amount, 2)


def to_cents(value: str) -> int:
    """
    Parse a user-typed amount ("12,34", "12.34", "12") into cents.

    Raises:
        ValueError: If the text is not a number.
    """
    text = str(value).strip().replace(" ", "").replace(",", ".")
    if not text:
        raise ValueError("Amount is empty")
    try:
        amount = Decimal(text)
    except InvalidOperation:
        raise ValueError(f"Not a valid amount: {value!r}")
    if not amount.is_finite():
        raise ValueError(f"Not a valid amount: {value!r}")
    return int((amount * 100).quantize(CENT, rounding=ROUND_HALF_EVEN))


def format_cents(cents: int, symbol: str = "€") -> str:
    """Format cents as "1.234,56 €"."""
    sign = "-" if cents < 0 else ""
    euros, rest = divmod(abs(cents), 100)
    grouped = f"{euros:,}".replace(",", ".")
    return f"{sign}{grouped},{rest:02d} {symbol}".rstrip()
