from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import List, Tuple

from .calendars import adjust_to_business_day
from .utils import as_date, fifteenth


class FlowKind(str, Enum):
    INTEREST = "Interest"
    PRINCIPAL = "Principal"
    CUSTODY_FEE = "CustodyFee"

    @property
    def sort_order(self) -> int:
        # same-date tie-break: interest, then principal, then fee
        return _KIND_ORDER[self]


_KIND_ORDER = {FlowKind.INTEREST: 0, FlowKind.PRINCIPAL: 1, FlowKind.CUSTODY_FEE: 2}

FEB_AUG = (2, 8)
MAY_NOV = (5, 11)


@dataclass(frozen=True)
class ScheduledFlow:
    date: date          # business-day adjusted payment date
    kind: FlowKind
    anchor: date        # unadjusted anchor (15th of a cycle month, or maturity)


def coupon_cycle(maturity: date) -> Tuple[int, int]:
    """Coupon months for a bond: Feb/Aug maturities pay Feb/Aug, all others May/Nov."""
    return FEB_AUG if as_date(maturity).month in FEB_AUG else MAY_NOV


def _anchors_in_years(first_year: int, last_year: int, cycle: Tuple[int, int]) -> List[date]:
    return [fifteenth(y, m) for y in range(first_year, last_year + 1) for m in cycle]


def coupon_anchors(settlement: date, maturity: date) -> List[date]:
    """
    Unadjusted coupon anchors strictly after settlement and on/before maturity.

    Inclusion is decided on the unadjusted 15th, so a business-day shift
    never adds or drops a coupon.
    """
    settlement = as_date(settlement)
    maturity = as_date(maturity)
    if maturity <= settlement:
        return []

    cycle = coupon_cycle(maturity)
    return [
        d for d in _anchors_in_years(settlement.year, maturity.year, cycle)
        if settlement < d <= maturity
    ]


def previous_anchor(settlement: date, maturity: date) -> date:
    """Most recent coupon anchor on or before settlement (unadjusted)."""
    settlement = as_date(settlement)
    cycle = coupon_cycle(maturity)
    candidates = _anchors_in_years(settlement.year - 1, settlement.year, cycle)
    return max(d for d in candidates if d <= settlement)


def next_anchor(settlement: date, maturity: date) -> date:
    """First coupon anchor strictly after settlement (unadjusted)."""
    settlement = as_date(settlement)
    cycle = coupon_cycle(maturity)
    candidates = _anchors_in_years(settlement.year, settlement.year + 1, cycle)
    return min(d for d in candidates if d > settlement)


def payment_schedule(settlement: date, maturity: date) -> List[ScheduledFlow]:
    """
    Interest flows for every anchor in (settlement, maturity], plus the
    principal at adjusted maturity. Sorted by date with the kind tie-break.
    """
    settlement = as_date(settlement)
    maturity = as_date(maturity)
    if maturity <= settlement:
        raise ValueError("Maturity must be after settlement.")

    flows = [
        ScheduledFlow(adjust_to_business_day(a), FlowKind.INTEREST, a)
        for a in coupon_anchors(settlement, maturity)
    ]
    flows.append(ScheduledFlow(adjust_to_business_day(maturity), FlowKind.PRINCIPAL, maturity))

    flows.sort(key=lambda f: (f.date, f.kind.sort_order))
    return flows
