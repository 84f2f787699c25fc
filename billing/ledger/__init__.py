"""Item ledger: line items, dynamic columns and change events"""

from .columns import Column, REQUIRED_COLUMNS, derive_column_id, capitalize_first
from .exceptions import LedgerError, ColumnRejectedError
from .item_ledger import (
    ItemLedger,
    ItemRow,
    LedgerUpdate,
    LedgerSession,
    RowsChanged,
    ColumnsChanged,
)

__all__ = [
    "Column",
    "REQUIRED_COLUMNS",
    "derive_column_id",
    "capitalize_first",
    "LedgerError",
    "ColumnRejectedError",
    "ItemLedger",
    "ItemRow",
    "LedgerUpdate",
    "LedgerSession",
    "RowsChanged",
    "ColumnsChanged",
]
