"""Invoice totals validation"""

from .totals_validator import TotalsValidator

__all__ = ["TotalsValidator"]
