from __future__ import annotations

import logging
import math
import uuid
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import List, Optional, Tuple

import numpy as np
import pandas as pd
from scipy.optimize import brentq

from .calendars import business_days_between, is_business_day
from .config import DEFAULT_CONFIG, EngineConfig
from .errors import BondInputError, ErrorKind
from .schedule import FlowKind, ScheduledFlow, next_anchor, payment_schedule, previous_anchor
from .utils import Number, calendar_days, money_context, parse_date, to_decimal, truncate
from .vna import project_vna

logger = logging.getLogger(__name__)

QUOTATION_DECIMALS = 4
MONEY_DECIMALS = 2


def default_bond_name(maturity: date, contracted_yield: float) -> str:
    return f"NTN-B {maturity.year} ({contracted_yield}%)"


@dataclass(frozen=True)
class BondInput:
    quantity: Number
    settlement: date
    maturity: date
    contracted_yield: float       # annual %, e.g. 6.25
    vna_previous: Number          # VNA at the last 15th
    projected_inflation: float    # monthly %, e.g. 0.50
    bond_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    name: str = ""

    def __post_init__(self):
        if not self.name and isinstance(self.maturity, date):
            object.__setattr__(self, "name", default_bond_name(self.maturity, self.contracted_yield))

    @property
    def label(self) -> str:
        return self.name or self.bond_id


@dataclass(frozen=True)
class CashFlowEvent:
    date: date
    kind: FlowKind
    business_days: int
    coupon_rate: float                 # % per period, informational
    nominal_value: Decimal             # quantity scaled
    present_value: float               # quantity scaled
    cumulative_present_value: float    # quantity scaled


@dataclass(frozen=True)
class PricingResult:
    total_investment: Decimal
    unit_price: Decimal
    quotation: Decimal                 # % of VNA
    gross_amount_returned: Decimal
    gross_profit: Decimal
    duration: float                    # years, 252 business-day basis
    cash_flows: Tuple[CashFlowEvent, ...]
    vna: Decimal
    bond: BondInput

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            [
                (f.date, f.kind.value, f.business_days, f.coupon_rate, f.nominal_value, f.present_value, f.cumulative_present_value)
                for f in self.cash_flows
            ],
            columns=["date", "kind", "business_days", "coupon_rate", "nominal_value", "present_value", "cumulative_present_value"],
        )


@dataclass(frozen=True)
class BondProjection:
    """
    Everything about a bond that does not depend on the discount rate:
    the projected VNA, the adjusted schedule, the per-period coupon rate of
    each flow (1.0 for principal) and the inclusive business-day counts.
    """
    settlement: date
    maturity: date
    vna: Decimal
    flows: Tuple[ScheduledFlow, ...]
    rates: np.ndarray
    business_days: np.ndarray
    business_days_per_year: int

    @property
    def years(self) -> np.ndarray:
        return self.business_days / float(self.business_days_per_year)

    def discount_factors(self, contracted_yield: float) -> np.ndarray:
        with np.errstate(all="ignore"):
            return np.power(1.0 + contracted_yield / 100.0, self.years)

    def raw_quotation(self, contracted_yield: float) -> float:
        """Untruncated quotation, % of VNA."""
        return 100.0 * float(np.sum(self.rates / self.discount_factors(contracted_yield)))


def _check_present(bond: BondInput) -> None:
    for name in ("quantity", "contracted_yield", "vna_previous", "projected_inflation"):
        value = getattr(bond, name)
        if value is None or (isinstance(value, float) and math.isnan(value)):
            raise BondInputError(ErrorKind.MISSING_FIELD, f"Missing required field: {name}.")


class NTNBPricer:
    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or DEFAULT_CONFIG

    def validate(self, bond: BondInput) -> Tuple[date, date]:
        """Input checks, all before any projection. Returns (settlement, maturity)."""
        settlement = parse_date(bond.settlement, "settlement")
        maturity = parse_date(bond.maturity, "maturity")
        _check_present(bond)

        if not bond.quantity > 0:
            raise BondInputError(ErrorKind.NON_POSITIVE_QUANTITY, f"{bond.label}: quantity must be positive, got {bond.quantity}.")
        if not bond.vna_previous > 0:
            raise BondInputError(
                ErrorKind.NON_POSITIVE_REFERENCE_VALUE,
                f"{bond.label}: reference value must be positive, got {bond.vna_previous}.",
            )
        if bond.contracted_yield < 0:
            raise BondInputError(ErrorKind.NEGATIVE_YIELD, f"{bond.label}: contracted yield must be >= 0, got {bond.contracted_yield}.")
        if settlement >= maturity:
            raise BondInputError(
                ErrorKind.MATURITY_NOT_AFTER_SETTLEMENT,
                f"{bond.label}: settlement {settlement} must precede maturity {maturity}.",
            )
        if not is_business_day(settlement):
            raise BondInputError(ErrorKind.SETTLEMENT_NOT_BUSINESS_DAY, f"{bond.label}: settlement {settlement} is not a business day.")

        return settlement, maturity

    def _coupon_rates(self, settlement: date, maturity: date, flows: List[ScheduledFlow]) -> List[float]:
        full = self.config.semiannual_rate
        rates = [full if f.kind is FlowKind.INTEREST else 1.0 for f in flows]

        if not self.config.pro_rata_first_coupon:
            return rates

        prev, nxt = previous_anchor(settlement, maturity), next_anchor(settlement, maturity)
        if not prev < settlement < nxt:
            return rates

        for i, f in enumerate(flows):
            if f.kind is FlowKind.INTEREST and f.anchor == nxt:
                fraction = calendar_days(settlement, nxt) / calendar_days(prev, nxt)
                rates[i] = full * fraction
                logger.debug("Pro-rata first coupon on %s: fraction=%.6f", f.date, fraction)
                break
        return rates

    def project(self, bond: BondInput) -> BondProjection:
        settlement, maturity = self.validate(bond)

        vna = project_vna(bond.vna_previous, bond.projected_inflation, settlement)
        flows = payment_schedule(settlement, maturity)
        rates = self._coupon_rates(settlement, maturity, flows)
        du = [business_days_between(settlement, f.date) + 1 for f in flows]

        return BondProjection(
            settlement=settlement,
            maturity=maturity,
            vna=vna,
            flows=tuple(flows),
            rates=np.array(rates, dtype=float),
            business_days=np.array(du, dtype=np.int64),
            business_days_per_year=self.config.business_days_per_year,
        )

    def _custody_fee(self, total_investment: Decimal, maturity_years: float) -> Optional[Decimal]:
        cfg = self.config
        if not cfg.apply_custody_fee or not total_investment.is_finite():
            return None
        if total_investment <= to_decimal(cfg.custody_fee_threshold):
            return None
        fee = total_investment * to_decimal(cfg.custody_fee_rate) * to_decimal(maturity_years)
        return -truncate(fee, MONEY_DECIMALS)

    def price(self, bond: BondInput) -> PricingResult:
        proj = self.project(bond)
        with money_context():
            qty = to_decimal(bond.quantity)
            qty_f = float(qty)

            discount = proj.discount_factors(bond.contracted_yield)
            quotation = truncate(proj.raw_quotation(bond.contracted_yield), QUOTATION_DECIMALS)
            unit_price = truncate(proj.vna * quotation / 100, MONEY_DECIMALS)
            total_investment = unit_price * qty

            nominal_unit = [
                truncate(proj.vna * to_decimal(r), MONEY_DECIMALS) if f.kind is FlowKind.INTEREST else truncate(proj.vna, MONEY_DECIMALS)
                for f, r in zip(proj.flows, proj.rates)
            ]
            with np.errstate(all="ignore"):
                pv_unit = np.array([float(n) for n in nominal_unit], dtype=float) / discount
            cum_unit = np.cumsum(pv_unit)

            events = [
                CashFlowEvent(
                    date=f.date,
                    kind=f.kind,
                    business_days=int(du),
                    coupon_rate=float(r) * 100.0 if f.kind is FlowKind.INTEREST else 0.0,
                    nominal_value=n * qty,
                    present_value=float(pv) * qty_f,
                    cumulative_present_value=float(cum) * qty_f,
                )
                for f, r, du, n, pv, cum in zip(proj.flows, proj.rates, proj.business_days, nominal_unit, pv_unit, cum_unit)
            ]

            years = proj.years
            with np.errstate(all="ignore"):
                total_pv = float(np.sum(pv_unit))
                weighted = float(np.sum(years * pv_unit))
            duration = weighted / total_pv if total_pv > 0 else 0.0

            last = events[-1]
            fee = self._custody_fee(total_investment, float(years[-1]))
            if fee is not None:
                fee_pv = float(fee) / float(discount[-1])
                events.append(
                    CashFlowEvent(
                        date=last.date,
                        kind=FlowKind.CUSTODY_FEE,
                        business_days=last.business_days,
                        coupon_rate=0.0,
                        nominal_value=fee,
                        present_value=fee_pv,
                        cumulative_present_value=last.cumulative_present_value + fee_pv,
                    )
                )

            gross_returned = sum((e.nominal_value for e in events), Decimal(0))

            logger.debug(
                "Priced %s: vna=%s quotation=%s pu=%s flows=%d duration=%.4f",
                bond.label, proj.vna, quotation, unit_price, len(events), duration,
            )
            if not math.isfinite(duration) or not quotation.is_finite() or not unit_price.is_finite():
                logger.warning("%s: pricing produced non-finite figures", bond.label)

            return PricingResult(
                total_investment=total_investment,
                unit_price=unit_price,
                quotation=quotation,
                gross_amount_returned=gross_returned,
                gross_profit=gross_returned - total_investment,
                duration=duration,
                cash_flows=tuple(events),
                vna=proj.vna,
                bond=bond,
            )

    def implied_yield(self, bond: BondInput, unit_price: Number, lower: float = -50.0, upper: float = 100.0) -> float:
        """
        Contracted yield (annual %) at which the untruncated unit price equals
        ``unit_price``. The bond's own contracted_yield is ignored.
        """
        proj = self.project(bond)
        vna = float(proj.vna)
        target = float(unit_price)

        def residual(y: float) -> float:
            return vna * proj.raw_quotation(y) / 100.0 - target

        fa, fb = residual(lower), residual(upper)
        if fa * fb > 0:
            raise ValueError(f"{bond.label}: root not bracketed for unit price {unit_price}.")

        return float(brentq(residual, lower, upper, maxiter=300, xtol=1e-12))


def price_bond(bond: BondInput, config: Optional[EngineConfig] = None) -> PricingResult:
    return NTNBPricer(config).price(bond)


def implied_yield(bond: BondInput, unit_price: Number, config: Optional[EngineConfig] = None) -> float:
    return NTNBPricer(config).implied_yield(bond, unit_price)
