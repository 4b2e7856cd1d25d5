"""
Display Formatting

Amounts are Indonesian Rupiah: no decimals, `.` as the thousands
separator, `Rp` prefix with no space (15000 -> "Rp15.000").
"""

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

Number = Union[int, float, Decimal, str]

_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def _to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float)):
        amount = Decimal(str(value))
    elif isinstance(value, str):
        try:
            amount = Decimal(value.strip())
        except InvalidOperation:
            raise ValueError(f"Not a number: {value!r}")
    else:
        raise TypeError(f"Cannot format {type(value).__name__} as currency")

    if not amount.is_finite():
        raise ValueError(f"Not a finite amount: {value!r}")
    return amount


def group_thousands(value: int) -> str:
    """12345678 -> "12.345.678"."""
    return f"{value:,}".replace(",", ".")


def format_rupiah(value: Number) -> str:
    """
    Format an amount as Rupiah.

    Rounds half away from zero to whole rupiah. Negative amounts keep
    their sign in front of the prefix ("-Rp5.000").
    """
    amount = _to_decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    whole = int(amount)
    sign = "-" if whole < 0 else ""
    return f"{sign}Rp{group_thousands(abs(whole))}"


def format_transaction_date(value: Union[date, datetime, str]) -> str:
    """Table date label, e.g. "05 Mar 2024"."""
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        value = datetime.fromisoformat(text)
    return f"{value.day:02d} {_MONTHS[value.month - 1]} {value.year:04d}"
