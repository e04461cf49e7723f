"""Display formatting for Colombian pesos."""

from __future__ import annotations


def format_cop(amount: int) -> str:
    """Format *amount* as whole pesos with dot thousands separators.

    >>> format_cop(500000)
    '$ 500.000'
    >>> format_cop(-1500)
    '-$ 1.500'
    """
    sign = "-" if amount < 0 else ""
    grouped = f"{abs(int(amount)):,}".replace(",", ".")
    return f"{sign}$ {grouped}"
