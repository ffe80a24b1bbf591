"""
NTN-B Pricing Engine

Modules:
- calendars: B3 business-day calendar (computed holidays, day counts)
- schedule: coupon cycle + business-day adjusted payment schedule
- vna: projected VNA at settlement
- bonds: bond input, cash-flow generation, pricing (quotation, PU, duration)
- portfolio: batch pricing + yearly consolidated flows
- inputs: BondInput construction from raw/imported rows with injected lookups
- config: engine conventions (coupon policy, custody fee, pro-rata)
- errors: structured input errors

Presentation layers should import from this package.
"""
from .bonds import BondInput, CashFlowEvent, NTNBPricer, PricingResult, implied_yield, price_bond
from .config import DEFAULT_CONFIG, CouponPolicy, EngineConfig
from .errors import BondInputError, ErrorKind
from .portfolio import PortfolioResult, price_batch
from .schedule import FlowKind

__all__ = [
    "BondInput",
    "BondInputError",
    "CashFlowEvent",
    "CouponPolicy",
    "DEFAULT_CONFIG",
    "EngineConfig",
    "ErrorKind",
    "FlowKind",
    "NTNBPricer",
    "PortfolioResult",
    "PricingResult",
    "implied_yield",
    "price_batch",
    "price_bond",
]
