"""Amount, tax and pricing calculations"""

from .amounts import calculate_amount, quantity_magnitude, round2, apply_rounding_policy, to_decimal
from .tax_calculator import calculate_totals, precise_subtotal
from .pricing import PricedItem, final_amount, apply_global_percentage

__all__ = [
    "calculate_amount",
    "quantity_magnitude",
    "round2",
    "apply_rounding_policy",
    "to_decimal",
    "calculate_totals",
    "precise_subtotal",
    "PricedItem",
    "final_amount",
    "apply_global_percentage",
]
