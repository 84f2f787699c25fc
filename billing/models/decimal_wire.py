"""Decimal wire serialization for API payloads and exports"""

from decimal import Decimal, InvalidOperation
from typing import Any, Optional
import logging

logger = logging.getLogger(__name__)


def decimal_to_wire(d: Optional[Decimal]) -> Optional[str]:
    """
    Convert Decimal to a plain string, keeping its precision.
    
    Args:
        d: Decimal value or None
        
    Returns:
        String without scientific notation, or None
        
    Examples:
        >>> decimal_to_wire(Decimal("231.75"))
        '231.75'
        >>> decimal_to_wire(Decimal("463.50"))
        '463.50'
        >>> decimal_to_wire(Decimal("1E+3"))
        '1000'
        >>> decimal_to_wire(None)
    """
    if d is None:
        return None
    
    # 'f' avoids exponent notation; trailing zeros are significant for money
    return format(d, 'f')


def wire_to_decimal(x: Any) -> Optional[Decimal]:
    """
    Parse wire value to Decimal safely.
    
    Args:
        x: Wire value (None, str, int, float, or Decimal)
        
    Returns:
        Decimal value or None
        
    Examples:
        >>> wire_to_decimal("231.75")
        Decimal('231.75')
        >>> wire_to_decimal(18)
        Decimal('18')
        >>> wire_to_decimal("")
    """
    if x is None or x == "":
        return None
    
    if isinstance(x, Decimal):
        return x
    
    try:
        # Always convert via string to avoid float precision issues
        return Decimal(str(x))
    except (InvalidOperation, ValueError, TypeError) as e:
        logger.warning(f"Failed to parse value as Decimal: {x}, error: {e}")
        return None
