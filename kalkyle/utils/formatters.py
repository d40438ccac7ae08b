"""
Formatting utilities for API payloads and PDF documents.
Numbers and dates in Norwegian style (nb-NO).
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from datetime import date, datetime
from typing import Union, Optional


def iso(value: Union[date, datetime, None]) -> Optional[str]:
    """ISO 8601 string for JSON payloads, None stays None."""
    if value is None:
        return None
    return value.isoformat()


def _group_thousands(integer_part: str) -> str:
    reversed_int = integer_part[::-1]
    groups = [reversed_int[i:i+3] for i in range(0, len(reversed_int), 3)]
    return ' '.join(groups)[::-1]


def num_no(value: Union[int, float, Decimal, str, None], decimals: int = 2) -> str:
    """
    Formats a number in Norwegian style:
    - Thousands separator: space
    - Decimal separator: comma (,)
    - Fixed number of decimals, rounded half up

    Examples:
        num_no(1500) -> "1 500,00"
        num_no(1234.565) -> "1 234,57"
        num_no(2.5, decimals=1) -> "2,5"
        num_no(None) -> "-"
    """
    if value is None or value == "":
        return "-"

    try:
        normalized = str(value).replace(",", ".")
        quantum = Decimal(1).scaleb(-decimals)
        num = Decimal(normalized).quantize(quantum, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError, TypeError):
        return "-"

    sign = "-" if num < 0 else ""
    num = abs(num)

    text = f"{num:.{decimals}f}"
    if decimals:
        integer_part, decimal_part = text.split(".")
        return f"{sign}{_group_thousands(integer_part)},{decimal_part}"
    return f"{sign}{_group_thousands(text)}"


def money_nok(value: Union[int, float, Decimal, str, None]) -> str:
    """
    Formats a NOK amount with exactly 2 decimals.

    Rounding happens here only; stored and computed amounts keep full precision.

    Examples:
        money_nok(412.5) -> "kr 412,50"
        money_nok(1234567.891) -> "kr 1 234 567,89"
    """
    formatted = num_no(value, decimals=2)
    if formatted == "-":
        return formatted
    return f"kr {formatted}"


def percent_no(value: Union[int, float, Decimal, None]) -> str:
    """Percentage without trailing zeros: 25 -> "25", 12.5 -> "12,5"."""
    if value is None:
        return "-"
    text = f"{float(value):.2f}".rstrip('0').rstrip('.')
    return text.replace('.', ',')


def date_no(value: Union[date, datetime, None]) -> str:
    """
    Formats a date as DD.MM.YYYY.

    Examples:
        date_no(date(2026, 1, 12)) -> "12.01.2026"
    """
    if value is None:
        return "-"

    if isinstance(value, datetime):
        value = value.date()

    if not isinstance(value, date):
        return "-"

    return value.strftime("%d.%m.%Y")
