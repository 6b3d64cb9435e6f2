"""Display formatting shared by the dashboards and the PDF statement."""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional


def group_indian(value: float, max_decimals: int = 2) -> str:
    """
    Format a number with Indian digit grouping.

    The last three integer digits form one group and the rest are
    grouped in pairs: 1234567.5 -> "12,34,567.5". Trailing zero
    decimals are dropped.
    """
    quantum = Decimal(1).scaleb(-max_decimals)
    amount = Decimal(repr(float(value))).quantize(quantum, rounding=ROUND_HALF_UP)

    sign = "-" if amount < 0 else ""
    integer_part, _, fraction = f"{abs(amount):f}".partition(".")
    fraction = fraction.rstrip("0")

    head, tail = integer_part[:-3], integer_part[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    groups.append(tail)

    text = ",".join(groups)
    if fraction:
        text = f"{text}.{fraction}"
    return f"{sign}{text}"


def format_inr(value: float, prefix: str = "Rs.") -> str:
    """Amount with currency prefix, e.g. "Rs. 1,25,000"."""
    return f"{prefix} {group_indian(value)}"


def format_time_12h(value: Optional[str]) -> str:
    """
    "HH:MM" in 12-hour form: "00:05" -> "12:05 AM", "13:30" -> "1:30 PM".

    Blank input gives "--". Unparseable input is returned unchanged.
    """
    if not value:
        return "--"
    hours_text, _, minutes = value.partition(":")
    try:
        hours = int(hours_text)
    except ValueError:
        return value
    suffix = "PM" if hours >= 12 else "AM"
    hours = hours % 12 or 12
    return f"{hours}:{minutes} {suffix}"


def format_short_date(value: date) -> str:
    """Day and abbreviated month, e.g. "05 Mar"."""
    return value.strftime("%d %b")


def format_prepared_date(value: date) -> str:
    """Day/month/year without padding, e.g. "5/3/2025"."""
    return f"{value.day}/{value.month}/{value.year}"
