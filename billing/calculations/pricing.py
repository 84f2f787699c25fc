"""Percentage-increase pricing for multi-party quotations"""

from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any, List, Sequence

from billing.calculations.amounts import percentage_of, to_decimal


def final_amount(base_amount: Any, percentage_increase: Any) -> Decimal:
    """Base amount marked up by `percentage_increase` percent"""
    base = to_decimal(base_amount)
    return base + percentage_of(base, percentage_increase)


@dataclass(frozen=True)
class PricedItem:
    """Quotation line priced as a markup over a base amount"""
    description: str
    base_amount: Decimal
    percentage_increase: Decimal = Decimal("0")

    @property
    def final_amount(self) -> Decimal:
        return final_amount(self.base_amount, self.percentage_increase)


def apply_global_percentage(items: Sequence[PricedItem], percentage: Any) -> List[PricedItem]:
    """Set every item's markup to `percentage`"""
    pct = to_decimal(percentage)
    return [replace(item, percentage_increase=pct) for item in items]


def final_amounts(items: Sequence[PricedItem]) -> List[Decimal]:
    return [item.final_amount for item in items]
