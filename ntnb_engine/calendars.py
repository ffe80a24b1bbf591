"""
B3 / ANBIMA business-day calendar.

Holidays are derived per year (never tabulated), so any year is supported:
- fixed national holidays
- movable feasts anchored on Easter Sunday (Carnival, Good Friday, Corpus Christi)
- exchange closures on Dec 24 and Dec 31

Dates are plain ``datetime.date`` values; there is no timezone anywhere.
"""
from __future__ import annotations

from datetime import date, timedelta
from functools import lru_cache
from typing import Tuple

import numpy as np

from .utils import as_date

_FIXED_HOLIDAYS = (
    (1, 1),    # Confraternizacao Universal
    (4, 21),   # Tiradentes
    (5, 1),    # Dia do Trabalho
    (9, 7),    # Independencia
    (10, 12),  # Nossa Senhora Aparecida
    (11, 2),   # Finados
    (11, 15),  # Proclamacao da Republica
    (11, 20),  # Consciencia Negra
    (12, 25),  # Natal
)

_EXCHANGE_CLOSURES = ((12, 24), (12, 31))


def easter_sunday(year: int) -> date:
    """Easter Sunday via the anonymous Gregorian algorithm."""
    a = year % 19
    b = year // 100
    c = year % 100
    d = b // 4
    e = b % 4
    f = (b + 8) // 25
    g = (b - f + 1) // 3
    h = (19 * a + b - d - g + 15) % 30
    i = c // 4
    k = c % 4
    l = (32 + 2 * e + 2 * i - h - k) % 7
    m = (a + 11 * h + 22 * l) // 451
    month = (h + l - 7 * m + 114) // 31
    day = (h + l - 7 * m + 114) % 31 + 1
    return date(year, month, day)


@lru_cache(maxsize=512)
def holidays_for_year(year: int) -> Tuple[date, ...]:
    days = {date(year, m, d) for m, d in _FIXED_HOLIDAYS + _EXCHANGE_CLOSURES}

    easter = easter_sunday(year)
    days.add(easter - timedelta(days=47))  # Carnival Tuesday
    days.add(easter - timedelta(days=2))   # Good Friday
    days.add(easter + timedelta(days=60))  # Corpus Christi

    return tuple(sorted(days))


def is_holiday(d: date) -> bool:
    d = as_date(d)
    return d in holidays_for_year(d.year)


def is_business_day(d: date) -> bool:
    d = as_date(d)
    return d.weekday() < 5 and not is_holiday(d)


def next_business_day(d: date) -> date:
    """Smallest business day strictly after d."""
    current = as_date(d) + timedelta(days=1)
    while not is_business_day(current):
        current += timedelta(days=1)
    return current


def adjust_to_business_day(d: date) -> date:
    """d itself when it is a business day, otherwise the next one."""
    d = as_date(d)
    return d if is_business_day(d) else next_business_day(d)


def _holiday_array(start_year: int, end_year: int) -> np.ndarray:
    days = [h for y in range(start_year, end_year + 1) for h in holidays_for_year(y)]
    return np.array(days, dtype="datetime64[D]")


def business_days_between(start: date, end: date) -> int:
    """
    Business days in [start, end): start inclusive, end exclusive.

    Returns 0 when end <= start. Callers that need the end date counted add 1.
    """
    start = as_date(start)
    end = as_date(end)
    if end <= start:
        return 0

    holidays = _holiday_array(start.year, end.year)
    return int(np.busday_count(np.datetime64(start, "D"), np.datetime64(end, "D"), holidays=holidays))
