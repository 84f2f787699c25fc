"""Item ledger: ordered line items over a dynamic set of columns

The ledger is immutable. Every operation returns a `LedgerUpdate` holding the
new ledger plus the change events it produced; guarded operations (removing
the last row, removing a required column, touching an unknown row) return the
same ledger with no events.
"""

import logging
import uuid
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union

from billing.calculations.amounts import ZERO, calculate_amount, to_decimal
from billing.ledger.columns import (
    AMOUNT,
    CAPITALIZATION_EXEMPT,
    DESCRIPTION,
    EXTRA_ROW_FIELDS,
    HSN_SAC_CODE,
    QUANTITY,
    RATE,
    REQUIRED_COLUMNS,
    SERIAL_NO,
    Column,
    capitalize_first,
    make_custom_column,
)
from billing.ledger.exceptions import ColumnRejectedError

logger = logging.getLogger(__name__)


def _new_row_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class ItemRow:
    """One line item: fixed required fields plus custom column values"""
    id: str
    serial_no: str = "1"
    description: str = ""
    hsn_sac_code: str = ""
    quantity: str = "1"
    rate: Decimal = ZERO
    amount: Decimal = ZERO
    description_hindi: Optional[str] = None
    custom: Dict[str, str] = field(default_factory=dict)  # column id -> value, in column order


@dataclass(frozen=True)
class RowsChanged:
    """Emitted whenever the row set or any row's values change"""
    rows: Tuple[ItemRow, ...]


@dataclass(frozen=True)
class ColumnsChanged:
    """Emitted whenever the column set changes"""
    custom_column_names: Tuple[str, ...]
    custom_columns_map: Dict[str, str]  # display name -> column id, in column order


LedgerEvent = Union[RowsChanged, ColumnsChanged]


@dataclass(frozen=True)
class LedgerUpdate:
    """Result of a ledger operation"""
    ledger: "ItemLedger"
    events: Tuple[LedgerEvent, ...] = ()

    @property
    def changed(self) -> bool:
        return bool(self.events)


@dataclass(frozen=True)
class ItemLedger:
    """Ordered item rows and the columns that define their fields"""
    columns: Tuple[Column, ...] = REQUIRED_COLUMNS
    rows: Tuple[ItemRow, ...] = ()

    def __post_init__(self):
        # A ledger always holds at least one row
        if not self.rows:
            object.__setattr__(self, "rows", (self._default_row(1),))

    @classmethod
    def from_records(cls, items: Iterable[Any], custom_columns: Iterable[Any] = ()) -> "ItemLedger":
        """
        Rebuild a ledger from persisted item and custom column records.

        Items are ordered by `serial_no` and columns by `column_order`. Stored
        amounts are kept as-is so reloaded totals match the saved ones.
        """
        columns = list(REQUIRED_COLUMNS)
        amount_index = len(columns) - 1
        for record in sorted(custom_columns, key=lambda c: c.column_order):
            if any(col.id == record.column_name for col in columns):
                continue
            column = Column(
                id=record.column_name,
                name=record.column_display_name,
                width=make_custom_column(record.column_display_name).width,
            )
            columns.insert(amount_index, column)
            amount_index += 1

        custom_ids = [col.id for col in columns if not col.is_required]
        rows = []
        for position, item in enumerate(sorted(items, key=lambda i: i.serial_no), start=1):
            stored = dict(item.custom_columns or {})
            rows.append(ItemRow(
                id=item.id or _new_row_id(),
                serial_no=str(position),
                description=item.description or "",
                hsn_sac_code=item.hsn_sac_code or "",
                quantity=str(item.quantity) if item.quantity is not None else "1",
                rate=to_decimal(item.rate),
                amount=to_decimal(item.amount),
                description_hindi=item.description_hindi,
                custom={col_id: str(stored.get(col_id, "")) for col_id in custom_ids},
            ))
        return cls(columns=tuple(columns), rows=tuple(rows))

    # Queries

    @property
    def custom_columns(self) -> Tuple[Column, ...]:
        return tuple(col for col in self.columns if not col.is_required)

    @property
    def custom_column_names(self) -> Tuple[str, ...]:
        return tuple(col.name for col in self.custom_columns)

    @property
    def custom_columns_map(self) -> Dict[str, str]:
        return {col.name: col.id for col in self.custom_columns}

    @property
    def amounts(self) -> List[Decimal]:
        return [row.amount for row in self.rows]

    def column(self, column_id: str) -> Optional[Column]:
        return next((col for col in self.columns if col.id == column_id), None)

    def row(self, row_id: str) -> Optional[ItemRow]:
        return next((row for row in self.rows if row.id == row_id), None)

    # Operations

    def add_row(self) -> LedgerUpdate:
        """Append a row with default values"""
        rows = self.rows + (self._default_row(len(self.rows) + 1),)
        return self._with_rows(rows)

    def remove_row(self, row_id: str) -> LedgerUpdate:
        """Remove a row; the only remaining row is never removed"""
        if len(self.rows) <= 1 or self.row(row_id) is None:
            return LedgerUpdate(self)
        rows = tuple(row for row in self.rows if row.id != row_id)
        return self._with_rows(_renumber(rows))

    def set_field(self, row_id: str, column_id: str, value: Any) -> LedgerUpdate:
        """
        Update one field of one row.

        Text outside quantity, rate, amount and HSN/SAC code gets its first
        character capitalized. Changing quantity or rate recomputes amount.
        Unknown rows, unknown columns and the derived amount and serial number
        fields are left untouched.
        """
        target = self.row(row_id)
        if target is None or column_id in (AMOUNT, SERIAL_NO):
            return LedgerUpdate(self)
        if self.column(column_id) is None and column_id not in EXTRA_ROW_FIELDS:
            return LedgerUpdate(self)

        if isinstance(value, str) and value and column_id not in CAPITALIZATION_EXEMPT:
            value = capitalize_first(value)

        if column_id == QUANTITY:
            quantity = value if isinstance(value, str) else _quantity_text(value)
            updated = replace(target, quantity=quantity, amount=calculate_amount(value, target.rate))
        elif column_id == RATE:
            rate = to_decimal(value)
            updated = replace(target, rate=rate, amount=calculate_amount(target.quantity, rate))
        elif column_id in (DESCRIPTION, HSN_SAC_CODE) or column_id in EXTRA_ROW_FIELDS:
            updated = replace(target, **{column_id: _text(value)})
        else:
            custom = dict(target.custom)
            custom[column_id] = _text(value)
            updated = replace(target, custom=custom)

        rows = tuple(updated if row.id == row_id else row for row in self.rows)
        return self._with_rows(rows)

    def add_column(self, display_name: str) -> LedgerUpdate:
        """
        Add a custom column immediately before the amount column.

        Raises:
            ColumnRejectedError: empty name, or the derived id is already taken
        """
        if display_name is None or not display_name.strip():
            logger.debug("Rejected empty column name")
            raise ColumnRejectedError(display_name or "", "column name is empty")

        column = make_custom_column(display_name)
        if self.column(column.id) is not None or column.id in EXTRA_ROW_FIELDS:
            logger.debug(f"Rejected duplicate column id {column.id!r}")
            raise ColumnRejectedError(display_name, "a column with this name already exists")

        columns = list(self.columns)
        columns.insert(_amount_index(columns), column)
        return self._with_columns(tuple(columns), _align_custom(self.rows, columns))

    def remove_column(self, column_id: str) -> LedgerUpdate:
        """Remove a custom column and its values; required columns stay"""
        column = self.column(column_id)
        if column is None or column.is_required:
            return LedgerUpdate(self)

        columns = tuple(col for col in self.columns if col.id != column_id)
        rows = tuple(
            replace(row, custom={k: v for k, v in row.custom.items() if k != column_id})
            for row in self.rows
        )
        return self._with_columns(columns, rows)

    # Helpers

    def _default_row(self, serial_no: int) -> ItemRow:
        return ItemRow(
            id=_new_row_id(),
            serial_no=str(serial_no),
            custom={col.id: "" for col in self.columns if not col.is_required},
        )

    def _with_rows(self, rows: Tuple[ItemRow, ...]) -> LedgerUpdate:
        ledger = ItemLedger(columns=self.columns, rows=rows)
        return LedgerUpdate(ledger, (RowsChanged(ledger.rows),))

    def _with_columns(self, columns: Tuple[Column, ...], rows: Tuple[ItemRow, ...]) -> LedgerUpdate:
        ledger = ItemLedger(columns=columns, rows=rows)
        return LedgerUpdate(ledger, (
            ColumnsChanged(ledger.custom_column_names, ledger.custom_columns_map),
            RowsChanged(ledger.rows),
        ))


def _amount_index(columns: List[Column]) -> int:
    return next(i for i, col in enumerate(columns) if col.id == AMOUNT)


def _align_custom(rows: Iterable[ItemRow], columns: Iterable[Column]) -> Tuple[ItemRow, ...]:
    """Order each row's custom values like the column definitions"""
    custom_ids = [col.id for col in columns if not col.is_required]
    return tuple(
        replace(row, custom={col_id: row.custom.get(col_id, "") for col_id in custom_ids})
        for row in rows
    )


def _renumber(rows: Iterable[ItemRow]) -> Tuple[ItemRow, ...]:
    return tuple(replace(row, serial_no=str(i)) for i, row in enumerate(rows, start=1))


def _quantity_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, Decimal):
        return format(value, "f")
    return str(value)


def _text(value: Any) -> str:
    return "" if value is None else str(value)


class LedgerSession:
    """
    Holds the current ledger and notifies listeners of every emitted event.

    Listeners receive events in emission order after the new ledger is in
    place. Rejected mutations propagate to the caller and leave the current
    ledger untouched.
    """

    def __init__(self, ledger: Optional[ItemLedger] = None):
        self.ledger = ledger or ItemLedger()
        self._listeners: List[Callable[[LedgerEvent], None]] = []

    def subscribe(self, listener: Callable[[LedgerEvent], None]) -> Callable[[], None]:
        """Register a listener; returns a callable that unsubscribes it"""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def apply(self, update: LedgerUpdate) -> ItemLedger:
        self.ledger = update.ledger
        for event in update.events:
            for listener in list(self._listeners):
                listener(event)
        return self.ledger

    def add_row(self) -> ItemLedger:
        return self.apply(self.ledger.add_row())

    def remove_row(self, row_id: str) -> ItemLedger:
        return self.apply(self.ledger.remove_row(row_id))

    def set_field(self, row_id: str, column_id: str, value: Any) -> ItemLedger:
        return self.apply(self.ledger.set_field(row_id, column_id, value))

    def add_column(self, display_name: str) -> ItemLedger:
        return self.apply(self.ledger.add_column(display_name))

    def remove_column(self, column_id: str) -> ItemLedger:
        return self.apply(self.ledger.remove_column(column_id))
