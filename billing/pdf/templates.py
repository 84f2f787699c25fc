"""Company letterhead templates for taxable invoice PDFs"""

from dataclasses import dataclass
from typing import Tuple
import logging

logger = logging.getLogger(__name__)

DEFAULT_DECLARATION = (
    "Declaration: We declare that this invoice shows the actual price of the goods "
    "described and that all particulars are true and correct."
)


@dataclass(frozen=True)
class CompanyTemplate:
    """Letterhead, bank block and signatory for one issuing company"""
    key: str
    name: str
    detail_lines: Tuple[str, ...] = ()
    bank_lines: Tuple[str, ...] = ()
    declaration: str = DEFAULT_DECLARATION


GLOBAL_DIGITAL_CONNECT = CompanyTemplate(
    key="gdc",
    name="Global Digital Connect",
    detail_lines=(
        "Magneto Mall, VIP Chowk, Raipur - 492006",
        "GST No: 22AABCG1234N1Z5",
    ),
    bank_lines=(
        "A/c Holder's Name: Global Digital Connect",
        "Bank Name: HDFC Bank Limited",
    ),
)

GLOBAL_TRADING_CORPORATION = CompanyTemplate(
    key="gtc",
    name="Global Trading Corporation",
    detail_lines=("Raipur, Chhattisgarh",),
    bank_lines=("A/c Holder's Name: Global Trading Corporation",),
)

RUDHARMA = CompanyTemplate(
    key="rudharma",
    name="Rudharma Enterprises",
    detail_lines=(
        "Metro Green Society, Saddu, Raipur",
        "GST: 22APMPR8089K1Z3",
    ),
    bank_lines=("A/c Holder's Name: Rudharma Enterprises",),
)

# Checked in order; first substring match wins
_DISPATCH = (
    ("Global Trading Corporation", GLOBAL_TRADING_CORPORATION),
    ("Rudharma", RUDHARMA),
)


def get_template(company_name: str) -> CompanyTemplate:
    """
    Pick the letterhead for an invoice's company.

    Examples:
        >>> get_template("Global Trading Corporation").key
        'gtc'
        >>> get_template("Rudharma Enterprises").key
        'rudharma'
        >>> get_template("Anything else").key
        'gdc'
    """
    for marker, template in _DISPATCH:
        if marker in (company_name or ""):
            return template
    logger.debug(f"No dedicated template for '{company_name}', using {GLOBAL_DIGITAL_CONNECT.name}")
    return GLOBAL_DIGITAL_CONNECT
