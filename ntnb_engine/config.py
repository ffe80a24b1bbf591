from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class CouponPolicy(str, Enum):
    """
    Semiannual coupon rate derived from the 6% annual NTN-B coupon.

    - FLAT: simple half of 6% (3.0000% per period)
    - COMPOUNDED: (1.06)^0.5 - 1 (~2.9563% per period)
    """
    FLAT = "flat"
    COMPOUNDED = "compounded"

    @property
    def semiannual_rate(self) -> float:
        if self is CouponPolicy.COMPOUNDED:
            return 1.06 ** 0.5 - 1.0
        return 0.03


@dataclass(frozen=True)
class EngineConfig:
    coupon_policy: CouponPolicy = CouponPolicy.FLAT
    business_days_per_year: int = 252

    # fractional first coupon for off-cycle settlement
    pro_rata_first_coupon: bool = False

    # flat custody fee deducted at maturity above the threshold
    apply_custody_fee: bool = False
    custody_fee_rate: float = 0.002  # 0.20% per year
    custody_fee_threshold: float = 10_000.0

    # monthly %, used when the inflation lookup has no figure for a date
    default_projected_inflation: float = 0.50

    @property
    def semiannual_rate(self) -> float:
        return self.coupon_policy.semiannual_rate


DEFAULT_CONFIG = EngineConfig()
