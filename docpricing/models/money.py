"""Decimal wire serialization for money and rates"""

from decimal import Decimal
from typing import Optional

from docpricing.pricing.engine import round2


def money_to_wire(d: Optional[Decimal]) -> Optional[str]:
    """
    Convert a money amount to its wire string.

    Args:
        d: Decimal amount or None

    Returns:
        Fixed two-decimal string (never scientific notation), or None

    Examples:
        >>> money_to_wire(Decimal("258.75"))
        "258.75"
        >>> money_to_wire(Decimal("1E+3"))
        "1000.00"
        >>> money_to_wire(None)
        None
    """
    if d is None:
        return None
    return format(round2(Decimal(d)), 'f')


def rate_to_wire(d: Optional[Decimal]) -> Optional[str]:
    """
    Convert a rate or unit price to a plain string without trailing zeros.

    Examples:
        >>> rate_to_wire(Decimal("0.170"))
        "0.17"
        >>> rate_to_wire(Decimal("0.00"))
        "0"
    """
    if d is None:
        return None
    s = format(Decimal(d), 'f')
    if '.' in s:
        s = s.rstrip('0').rstrip('.')
    return s if s not in ('', '-0') else '0'

