from __future__ import annotations

import logging
import math
import numbers
from datetime import date, datetime
from decimal import Context, Decimal, ROUND_DOWN, localcontext
from typing import Union

import pandas as pd

from .errors import BondInputError, ErrorKind

logger = logging.getLogger(__name__)

Number = Union[int, float, Decimal]

# Precision covers any float magnitude quantized to 6 places. Nothing is
# trapped: an invalid operation such as Infinity - Infinity gives NaN.
_MONEY_CONTEXT = Context(prec=400, traps=[])


def money_context():
    """Decimal context for truncation and money arithmetic on priced figures."""
    return localcontext(_MONEY_CONTEXT)


def truncate(value: Number, places: int) -> Decimal:
    """
    Floor-truncate (toward zero) to a fixed number of decimal places.

    Floats go through their shortest repr so 0.1-style binary artifacts do not
    leak into the truncated digit. Non-finite values are returned as Decimal
    NaN/Infinity rather than raising.
    """
    if isinstance(value, Decimal):
        d = value
    else:
        if not math.isfinite(value):
            logger.warning("Non-finite value %r reached truncation", value)
            return Decimal(value)
        d = Decimal(repr(float(value)))

    if not d.is_finite():
        return d
    with money_context():
        return d.quantize(Decimal(1).scaleb(-places), rounding=ROUND_DOWN)


def to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, numbers.Integral):
        return Decimal(int(value))
    return Decimal(repr(float(value)))


def as_date(value) -> date:
    """Calendar date from a date, datetime or pd.Timestamp (time part dropped)."""
    if isinstance(value, pd.Timestamp):
        return value.date()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return pd.Timestamp(value).date()


def parse_date(value, field: str) -> date:
    """
    Date field from raw input: date-likes pass through, strings must be ISO
    ``YYYY-MM-DD``. Anything else is an InvalidDateFormat, absence a MissingField.
    """
    if value is None or value is pd.NaT or (isinstance(value, float) and math.isnan(value)):
        raise BondInputError(ErrorKind.MISSING_FIELD, f"Missing required field: {field}.")

    if isinstance(value, (pd.Timestamp, datetime, date)):
        return as_date(value)

    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise BondInputError(ErrorKind.MISSING_FIELD, f"Missing required field: {field}.")
        try:
            return datetime.strptime(text, "%Y-%m-%d").date()
        except ValueError:
            raise BondInputError(
                ErrorKind.INVALID_DATE_FORMAT,
                f"{field} must be an ISO date (YYYY-MM-DD), got {value!r}.",
            ) from None

    raise BondInputError(ErrorKind.INVALID_DATE_FORMAT, f"{field} is not a date: {value!r}.")


def calendar_days(start: date, end: date) -> int:
    """Calendar days from start to end (negative when end precedes start)."""
    return (as_date(end) - as_date(start)).days


def fifteenth(year: int, month: int) -> date:
    """The 15th of a month, normalizing month overflow in either direction."""
    year += (month - 1) // 12
    month = (month - 1) % 12 + 1
    return date(year, month, 15)
