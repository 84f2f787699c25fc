"""Item table column definitions"""

import re
from dataclasses import dataclass
from typing import Tuple

AMOUNT = "amount"
DESCRIPTION = "description"
HSN_SAC_CODE = "hsn_sac_code"
QUANTITY = "quantity"
RATE = "rate"
SERIAL_NO = "serial_no"

# Fields whose text is stored exactly as typed
CAPITALIZATION_EXEMPT = frozenset({RATE, AMOUNT, HSN_SAC_CODE, QUANTITY})

# Row fields editable through set_field that are not table columns; no custom
# column may take their id
EXTRA_ROW_FIELDS = frozenset({"description_hindi"})

CUSTOM_COLUMN_WIDTH = 15

_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class Column:
    """Column of the item table; `width` is a share of the table in percent"""
    id: str
    name: str
    width: int
    is_required: bool = False


REQUIRED_COLUMNS: Tuple[Column, ...] = (
    Column(SERIAL_NO, "S. No.", 8, True),
    Column(DESCRIPTION, "Description", 30, True),
    Column(HSN_SAC_CODE, "HSN/SAC Code", 12, True),
    Column(QUANTITY, "Quantity", 10, True),
    Column(RATE, "Taxable Value", 12, True),
    Column(AMOUNT, "Amount", 13, True),
)

REQUIRED_IDS = frozenset(column.id for column in REQUIRED_COLUMNS)


def capitalize_first(value: str) -> str:
    """Upper-case the first character only: "item one" -> "Item one" """
    if not value:
        return value
    return value[0].upper() + value[1:]


def derive_column_id(display_name: str) -> str:
    """Column id from a display name: "Unit Price" -> "unit_price" """
    return _WHITESPACE.sub("_", display_name.strip().lower())


def make_custom_column(display_name: str) -> Column:
    display_name = display_name.strip()
    return Column(
        id=derive_column_id(display_name),
        name=capitalize_first(display_name),
        width=CUSTOM_COLUMN_WIDTH,
    )
