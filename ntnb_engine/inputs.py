"""
Building BondInput values from raw or already-parsed import rows.

Reference data (published VNA, realized/projected monthly inflation) is never
held here: callers inject lookups

    reference_value(date) -> float
    projected_inflation(date) -> float | None   (None = use the default projection)
"""
from __future__ import annotations

import logging
import math
from typing import Any, Callable, List, Mapping, Optional

import pandas as pd

from .bonds import BondInput
from .config import DEFAULT_CONFIG
from .errors import BondInputError, ErrorKind
from .utils import parse_date

logger = logging.getLogger(__name__)

ReferenceValueLookup = Callable[[Any], float]
InflationLookup = Callable[[Any], Optional[float]]

REQUIRED_FIELDS = ("quantity", "settlement", "maturity", "contracted_yield", "vna_previous", "projected_inflation")


def _is_missing(value: Any) -> bool:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return True
    return isinstance(value, str) and not value.strip()


def _number(mapping: Mapping[str, Any], key: str, default: Optional[float] = None) -> float:
    """Numeric field; absent cells fall back to ``default`` or raise MissingField."""
    value = mapping.get(key)
    if _is_missing(value):
        if default is not None:
            return default
        raise BondInputError(ErrorKind.MISSING_FIELD, f"Missing required field: {key}.")
    try:
        return float(value.strip() if isinstance(value, str) else value)
    except (TypeError, ValueError):
        raise BondInputError(ErrorKind.INVALID_NUMBER, f"{key} is not a number: {value!r}.") from None


def bond_input_from_mapping(mapping: Mapping[str, Any]) -> BondInput:
    """BondInput from a dict of raw fields (ISO date strings accepted)."""
    settlement = parse_date(mapping.get("settlement"), "settlement")
    maturity = parse_date(mapping.get("maturity"), "maturity")
    numbers = {k: _number(mapping, k) for k in REQUIRED_FIELDS if k not in ("settlement", "maturity")}

    extra = {}
    if mapping.get("bond_id"):
        extra["bond_id"] = str(mapping["bond_id"])
    if mapping.get("name"):
        extra["name"] = str(mapping["name"])

    return BondInput(settlement=settlement, maturity=maturity, **numbers, **extra)


def bond_input_from_row(
    row: Mapping[str, Any],
    reference_value: ReferenceValueLookup,
    projected_inflation: InflationLookup,
    default_inflation: Optional[float] = None,
) -> BondInput:
    """
    BondInput from an imported position row (maturity, settlement, quantity,
    optional contracted_yield). VNA and inflation come from the lookups at the
    settlement date.
    """
    settlement = parse_date(row.get("settlement"), "settlement")
    maturity = parse_date(row.get("maturity"), "maturity")
    quantity = _number(row, "quantity")

    rate = _number(row, "contracted_yield", default=0.0)

    inflation = projected_inflation(settlement)
    if inflation is None:
        inflation = DEFAULT_CONFIG.default_projected_inflation if default_inflation is None else default_inflation

    vna_previous = reference_value(settlement)

    extra = {"bond_id": str(row["bond_id"])} if row.get("bond_id") else {}
    return BondInput(
        quantity=quantity,
        settlement=settlement,
        maturity=maturity,
        contracted_yield=rate,
        vna_previous=vna_previous,
        projected_inflation=float(inflation),
        name=f"NTN-B {maturity.year} ({rate:.4f}%)",
        **extra,
    )


def bonds_from_frame(
    frame: pd.DataFrame,
    reference_value: ReferenceValueLookup,
    projected_inflation: InflationLookup,
    default_inflation: Optional[float] = None,
) -> List[BondInput]:
    """
    BondInputs for every usable row of a parsed positions frame.

    Rows missing either date, with unparseable dates, or with quantity <= 0
    are skipped and logged.
    """
    bonds: List[BondInput] = []

    for idx, r in frame.iterrows():
        row = r.to_dict()
        try:
            bond = bond_input_from_row(row, reference_value, projected_inflation, default_inflation)
        except BondInputError as exc:
            logger.warning("Skipping row %s: %s", idx, exc)
            continue

        if not bond.quantity > 0:
            logger.warning("Skipping row %s: non-positive quantity %s", idx, bond.quantity)
            continue

        bonds.append(bond)

    return bonds
