"""
Projected VNA (Valor Nominal Atualizado) at settlement.

The reference value published for the last 15th is carried forward to
settlement with the projected monthly inflation, pro rata in calendar days
inside the 15th-to-15th window:

    x   = days(anchor_start, settlement) / days(anchor_start, anchor_end)
    VNA = VNA_previous * (1 + inflation) ** x

then floor-truncated to 6 decimals.
"""
from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Tuple

import numpy as np

from .errors import BondInputError, ErrorKind
from .utils import Number, as_date, calendar_days, fifteenth, truncate

logger = logging.getLogger(__name__)

VNA_DECIMALS = 6


def reference_window(settlement: date) -> Tuple[date, date]:
    """(anchor_start, anchor_end) calendar 15ths bracketing settlement."""
    settlement = as_date(settlement)
    if settlement.day >= 15:
        return fifteenth(settlement.year, settlement.month), fifteenth(settlement.year, settlement.month + 1)
    return fifteenth(settlement.year, settlement.month - 1), fifteenth(settlement.year, settlement.month)


def inflation_exponent(settlement: date) -> float:
    start, end = reference_window(settlement)
    return calendar_days(start, settlement) / calendar_days(start, end)


def project_vna(vna_previous: Number, monthly_inflation_pct: float, settlement: date) -> Decimal:
    if vna_previous <= 0:
        raise BondInputError(
            ErrorKind.NON_POSITIVE_REFERENCE_VALUE,
            f"Reference value must be positive, got {vna_previous}.",
        )

    x = inflation_exponent(settlement)
    with np.errstate(all="ignore"):
        raw = float(vna_previous) * float(np.power(1.0 + float(monthly_inflation_pct) / 100.0, x))

    vna = truncate(raw, VNA_DECIMALS)
    if not vna.is_finite():
        logger.warning("Projected VNA is not finite (vna_previous=%s, inflation=%s%%)", vna_previous, monthly_inflation_pct)

    logger.debug("VNA projection: settlement=%s x=%.6f vna=%s", settlement, x, vna)
    return vna
