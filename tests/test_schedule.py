from datetime import date

import pytest

from ntnb_engine.calendars import adjust_to_business_day, is_business_day
from ntnb_engine.schedule import (
    FEB_AUG,
    MAY_NOV,
    FlowKind,
    coupon_anchors,
    coupon_cycle,
    next_anchor,
    payment_schedule,
    previous_anchor,
)


@pytest.mark.parametrize(
    "maturity, cycle",
    [
        (date(2055, 5, 15), MAY_NOV),
        (date(2035, 5, 15), MAY_NOV),
        (date(2030, 8, 15), FEB_AUG),
        (date(2050, 2, 15), FEB_AUG),
        (date(2030, 3, 10), MAY_NOV),
    ],
)
def test_coupon_cycle_from_maturity_month(maturity, cycle):
    assert coupon_cycle(maturity) == cycle


def test_anchors_strictly_after_settlement_up_to_maturity():
    anchors = coupon_anchors(date(2025, 11, 25), date(2027, 5, 15))
    assert anchors == [date(2026, 5, 15), date(2026, 11, 15), date(2027, 5, 15)]


def test_settlement_on_anchor_excludes_it():
    anchors = coupon_anchors(date(2026, 5, 15), date(2027, 5, 15))
    assert anchors == [date(2026, 11, 15), date(2027, 5, 15)]


def test_inclusion_uses_unadjusted_anchor():
    """
    Nov 15 2026 is a Sunday (and a holiday) rolling to Monday Nov 16.
    Settling on Nov 16 must not pick up that coupon even though its
    adjusted date equals settlement; settling on Friday Nov 13 must.
    """
    after = payment_schedule(date(2026, 11, 16), date(2027, 5, 15))
    assert [f.anchor for f in after if f.kind is FlowKind.INTEREST] == [date(2027, 5, 15)]

    before = payment_schedule(date(2026, 11, 13), date(2027, 5, 15))
    first = before[0]
    assert first.anchor == date(2026, 11, 15)
    assert first.date == date(2026, 11, 16)


def test_schedule_dates_adjusted_and_sorted():
    flows = payment_schedule(date(2025, 11, 25), date(2055, 5, 15))
    dates = [f.date for f in flows]
    assert dates == sorted(dates)
    assert all(is_business_day(d) for d in dates)
    assert all(f.date == adjust_to_business_day(f.anchor) for f in flows)
    assert len([f for f in flows if f.kind is FlowKind.INTEREST]) == 59


def test_interest_precedes_principal_on_maturity():
    flows = payment_schedule(date(2025, 11, 25), date(2035, 5, 15))
    last_two = flows[-2:]
    assert [f.kind for f in last_two] == [FlowKind.INTEREST, FlowKind.PRINCIPAL]
    assert last_two[0].date == last_two[1].date == adjust_to_business_day(date(2035, 5, 15))


def test_off_cycle_maturity_gets_principal_only():
    flows = payment_schedule(date(2030, 1, 7), date(2030, 3, 10))
    assert len(flows) == 1
    assert flows[0].kind is FlowKind.PRINCIPAL


def test_schedule_rejects_inverted_dates():
    with pytest.raises(ValueError):
        payment_schedule(date(2035, 5, 15), date(2035, 5, 15))


def test_previous_and_next_anchor():
    mat = date(2055, 5, 15)
    assert previous_anchor(date(2025, 11, 25), mat) == date(2025, 11, 15)
    assert next_anchor(date(2025, 11, 25), mat) == date(2026, 5, 15)
    assert previous_anchor(date(2026, 1, 5), mat) == date(2025, 11, 15)
    assert next_anchor(date(2025, 11, 14), mat) == date(2025, 11, 15)
    assert previous_anchor(date(2025, 11, 15), mat) == date(2025, 11, 15)
