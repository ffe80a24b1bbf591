from __future__ import annotations

from enum import Enum
from typing import Dict


class ErrorKind(str, Enum):
    MISSING_FIELD = "MissingField"
    INVALID_DATE_FORMAT = "InvalidDateFormat"
    NON_POSITIVE_QUANTITY = "NonPositiveQuantity"
    NON_POSITIVE_REFERENCE_VALUE = "NonPositiveReferenceValue"
    NEGATIVE_YIELD = "NegativeYield"
    MATURITY_NOT_AFTER_SETTLEMENT = "MaturityNotAfterSettlement"
    SETTLEMENT_NOT_BUSINESS_DAY = "SettlementNotBusinessDay"
    INVALID_NUMBER = "InvalidNumber"


class BondInputError(ValueError):
    """Invalid bond input, raised before any projection step runs."""

    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message

    def to_dict(self) -> Dict[str, str]:
        return {"kind": self.kind.value, "message": self.message}

    def __repr__(self) -> str:
        return f"BondInputError({self.kind.value}: {self.message})"
