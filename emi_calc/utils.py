"""Utility functions for the EMI calculator.

This module provides helpers for turning loosely typed user input into
``Decimal`` values, for rounding money to a fixed number of places and for
handling due dates, including adding months and normalizing year-month strings
to ``datetime.date`` instances.
"""

from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, getcontext
import calendar
from typing import Union

from .exceptions import NotComputable

getcontext().prec = 28  # increase decimal precision to avoid rounding errors

MONTHS_IN_YEAR = 12
MAX_PLACES = 6

Number = Union[Decimal, int, float, str]


def parse_year_month(ym: str) -> date:
    """Parse a YYYY-MM string into a ``date`` object (first day of month).

    Parameters
    ----------
    ym: str
        A string in the form ``"YYYY-MM"``. A trailing day component
        (``"YYYY-MM-DD"``) is honoured when present.

    Returns
    -------
    date
        A date object for the given month.

    Raises
    ------
    ValueError
        If the string is not a valid year-month.
    """
    try:
        parts = ym.split("-")
        if len(parts) < 2:
            raise ValueError
        year = int(parts[0])
        month = int(parts[1])
        day = int(parts[2]) if len(parts) > 2 else 1
        return date(year, month, day)
    except (TypeError, ValueError, AttributeError) as exc:
        raise ValueError(f"Invalid year-month string: {ym}") from exc


def add_months(dt: date, months: int) -> date:
    """Return a new date a number of months after ``dt``.

    The day of the month is clamped to the last valid day if needed (e.g.,
    adding one month to Jan 31 yields Feb 28 or 29).
    """
    year = dt.year + (dt.month - 1 + months) // 12
    month = (dt.month - 1 + months) % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def decimal_from_str(value: str) -> Decimal:
    """Convert a numeric string into a ``Decimal``.

    The function strips any commas and surrounding whitespace. It raises
    ``ValueError`` if conversion fails or the value is not finite.
    """
    try:
        cleaned = value.replace(",", "").strip()
        result = Decimal(cleaned)
    except (InvalidOperation, AttributeError) as exc:
        raise ValueError(f"Invalid numeric value: {value}") from exc
    if not result.is_finite():
        raise ValueError(f"Invalid numeric value: {value}")
    return result


def to_decimal(value: Number) -> Decimal:
    """Coerce ``value`` to a finite ``Decimal``.

    Floats go through ``str`` so that ``0.1`` becomes ``Decimal("0.1")`` rather
    than its binary expansion. Booleans are rejected even though they are ints.
    """
    if value is None or isinstance(value, bool):
        raise ValueError(f"Invalid numeric value: {value!r}")
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise ValueError(f"Invalid numeric value: {value}")
        return value
    if isinstance(value, (int, float)):
        return decimal_from_str(str(value))
    return decimal_from_str(value)


def quantum(places: int) -> Decimal:
    """Return the ``Decimal`` step for ``places`` fractional digits."""
    return Decimal(1).scaleb(-places)


def round_money(value: Decimal, places: int = 0) -> Decimal:
    """Round half-up to ``places`` decimal places (0 means whole units).

    Raises ``NotComputable`` when the result needs more digits than the
    decimal context holds.
    """
    try:
        return value.quantize(quantum(places), rounding=ROUND_HALF_UP)
    except InvalidOperation as exc:
        raise NotComputable(f"{value} cannot be rounded to {places} places") from exc


def tenure_to_months(tenure: int, unit: str = "months") -> int:
    """Convert a tenure expressed in ``months`` or ``years`` to months."""
    if not isinstance(unit, str):
        raise ValueError(f"Tenure unit must be 'months' or 'years'; got {unit!r}")
    unit = unit.lower()
    if unit in ("month", "months"):
        return tenure
    if unit in ("year", "years"):
        return tenure * MONTHS_IN_YEAR
    raise ValueError(f"Tenure unit must be 'months' or 'years'; got {unit}")
