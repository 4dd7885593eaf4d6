"""Display formatting for money and percentages.

Ties round half-up.
"""

from decimal import ROUND_HALF_UP, Decimal

from finance_core import config

CENTS = Decimal("0.01")
TENTHS = Decimal("0.1")


def format_money(amount: Decimal, currency: str = config.DEFAULT_CURRENCY) -> str:
    """Format an amount with the currency symbol and two decimals.

    Example:
        >>> format_money(Decimal("1234.5"), "$")
        '$1234.50'
        >>> format_money(Decimal("0.125"), "$")
        '$0.13'
    """
    return f"{currency}{amount.quantize(CENTS, rounding=ROUND_HALF_UP)}"


def format_percent(value: Decimal) -> str:
    """Format a percentage with one decimal, without the ``%`` sign."""
    return f"{value.quantize(TENTHS, rounding=ROUND_HALF_UP)}"
