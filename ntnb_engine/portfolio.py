from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, Optional, Sequence, Tuple

import pandas as pd

from .bonds import BondInput, NTNBPricer, PricingResult
from .config import EngineConfig
from .schedule import FlowKind
from .utils import money_context

logger = logging.getLogger(__name__)

CONSOLIDATED_COLUMNS = ["year", "coupon_total", "principal_total", "fee_total", "total", "flow_count"]

_KIND_COLUMNS = {
    FlowKind.INTEREST.value: "coupon_total",
    FlowKind.PRINCIPAL.value: "principal_total",
    FlowKind.CUSTODY_FEE.value: "fee_total",
}


@dataclass(frozen=True)
class PortfolioResult:
    results: Tuple[PricingResult, ...]
    consolidated: pd.DataFrame = field(compare=False)
    total_invested: Decimal
    total_returned: Decimal
    total_profit: Decimal

    @property
    def first_flow_year(self) -> Optional[int]:
        if self.consolidated.empty:
            return None
        return int(self.consolidated["year"].iloc[0])


def build_flow_table(results: Iterable[PricingResult]) -> pd.DataFrame:
    """One row per cash flow: bond, payment year, kind and nominal value."""
    rows = []
    for res in results:
        for f in res.cash_flows:
            rows.append((res.bond.bond_id, f.date.year, f.kind.value, f.nominal_value))

    return pd.DataFrame(rows, columns=["bond_id", "year", "kind", "nominal_value"])


def consolidate_flows(results: Iterable[PricingResult]) -> pd.DataFrame:
    """
    Year-keyed totals of nominal cash flows across bonds.

    Sums are Decimal, so the table does not depend on the order bonds are
    folded in.
    """
    cf = build_flow_table(results)
    if cf.empty:
        return pd.DataFrame(columns=CONSOLIDATED_COLUMNS)

    with money_context():
        by_kind = (
            cf.groupby(["year", "kind"])["nominal_value"]
            .sum()
            .unstack("kind", fill_value=Decimal(0))
            .reindex(columns=list(_KIND_COLUMNS), fill_value=Decimal(0))
            .rename(columns=_KIND_COLUMNS)
            .rename_axis(columns=None)
        )
        yearly = cf.groupby("year").agg(total=("nominal_value", "sum"), flow_count=("nominal_value", "size"))

    out = by_kind.join(yearly).reset_index()
    return out[CONSOLIDATED_COLUMNS]


def price_batch(
    bonds: Sequence[BondInput],
    config: Optional[EngineConfig] = None,
    max_workers: Optional[int] = None,
) -> PortfolioResult:
    """
    Price every bond independently and consolidate.

    With ``max_workers`` the bonds are priced on a thread pool; results keep
    input order either way. Any invalid bond raises its BondInputError.
    """
    pricer = NTNBPricer(config)

    if max_workers and len(bonds) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            results = tuple(executor.map(pricer.price, bonds))
    else:
        results = tuple(pricer.price(b) for b in bonds)

    with money_context():
        total_invested = sum((r.total_investment for r in results), Decimal(0))
        total_returned = sum((r.gross_amount_returned for r in results), Decimal(0))
        total_profit = total_returned - total_invested

    logger.debug("Priced portfolio of %d bonds: invested=%s returned=%s", len(results), total_invested, total_returned)

    return PortfolioResult(
        results=results,
        consolidated=consolidate_flows(results),
        total_invested=total_invested,
        total_returned=total_returned,
        total_profit=total_profit,
    )
