"""Invoice assembly: item ledger + tax configuration -> records and view models"""

from datetime import date
from typing import Any, Iterable, List, Mapping, Optional
import logging

from billing.calculations.tax_calculator import calculate_totals
from billing.ledger.item_ledger import ItemLedger
from billing.models.invoice import (
    CustomColumnRecord,
    InvoiceRecord,
    InvoiceStatus,
    InvoiceTotals,
    InvoiceViewModel,
    ItemRecord,
    Party,
    TaxConfiguration,
    ViewItem,
)
from billing.utils.number_words import amount_in_words

logger = logging.getLogger(__name__)


def build_ledger(custom_column_names: Iterable[str], rows: Iterable[Mapping[str, Any]]) -> ItemLedger:
    """
    Replay column and field edits onto a fresh ledger.

    `rows` map column ids (or `description_hindi`) to values; amounts and
    serial numbers are always derived, never taken from input. Column names
    are validated like interactive edits and may raise ColumnRejectedError.
    """
    ledger = ItemLedger()
    for name in custom_column_names:
        ledger = ledger.add_column(name).ledger

    for index, values in enumerate(rows):
        if index > 0:
            ledger = ledger.add_row().ledger
        row_id = ledger.rows[-1].id
        for column_id, value in values.items():
            ledger = ledger.set_field(row_id, column_id, value).ledger
    return ledger


def calculate_ledger_totals(ledger: ItemLedger, config: TaxConfiguration) -> InvoiceTotals:
    """Totals for the ledger's current row amounts"""
    return calculate_totals(ledger.amounts, config)


def ledger_to_item_records(ledger: ItemLedger) -> List[ItemRecord]:
    """Item records in row order; `serial_no` is the 1-based position"""
    custom_ids = [col.id for col in ledger.custom_columns]
    return [
        ItemRecord(
            serial_no=position,
            description=row.description,
            description_hindi=row.description_hindi,
            hsn_sac_code=row.hsn_sac_code,
            quantity=row.quantity,
            rate=row.rate,
            amount=row.amount,
            custom_columns={col_id: row.custom.get(col_id, "") for col_id in custom_ids},
        )
        for position, row in enumerate(ledger.rows, start=1)
    ]


def ledger_to_column_records(ledger: ItemLedger) -> List[CustomColumnRecord]:
    return [
        CustomColumnRecord(column_name=col.id, column_display_name=col.name, column_order=order)
        for order, col in enumerate(ledger.custom_columns)
    ]


def build_invoice_record(
    ledger: ItemLedger,
    config: TaxConfiguration,
    *,
    invoice_number: str,
    invoice_date: date,
    company_name: str,
    bill_to: Party,
    ship_to: Optional[Party] = None,
    po_reference: Optional[str] = None,
    po_date: Optional[date] = None,
    customer_id: Optional[str] = None,
    terms_and_conditions: Optional[str] = None,
    hindi_mode: bool = False,
    fit_to_one_page: bool = False,
    status: InvoiceStatus = InvoiceStatus.DRAFT,
    invoice_id: Optional[str] = None,
) -> InvoiceRecord:
    """
    Serialize a ledger and tax configuration into a persistable invoice.

    A missing Ship-To party means "same as Bill-To".
    """
    totals = calculate_ledger_totals(ledger, config)
    return InvoiceRecord(
        id=invoice_id,
        invoice_number=invoice_number,
        invoice_date=invoice_date,
        po_reference=po_reference,
        po_date=po_date,
        customer_id=customer_id,
        company_name=company_name,
        bill_to=bill_to,
        ship_to=ship_to if ship_to is not None else bill_to.model_copy(),
        tax_type=config.tax_type,
        igst_rate=config.igst_rate,
        cgst_rate=config.cgst_rate,
        sgst_rate=config.sgst_rate,
        round_off=config.round_off,
        terms_and_conditions=terms_and_conditions,
        hindi_mode=hindi_mode,
        fit_to_one_page=fit_to_one_page,
        status=status,
        items=ledger_to_item_records(ledger),
        custom_columns=ledger_to_column_records(ledger),
        **totals.model_dump(),
    )


def ledger_from_record(record: InvoiceRecord) -> ItemLedger:
    return ItemLedger.from_records(record.items, record.custom_columns)


def verify_round_trip(record: InvoiceRecord) -> bool:
    """True when the reloaded ledger recomputes to the stored totals"""
    recomputed = calculate_ledger_totals(ledger_from_record(record), record.tax_configuration())
    stored = record.totals()
    matches = recomputed == stored
    if not matches:
        logger.warning(
            f"Stored totals of invoice {record.id or record.invoice_number} do not match "
            f"recomputation: stored={stored.model_dump()} recomputed={recomputed.model_dump()}"
        )
    return matches


def build_view_model(record: InvoiceRecord) -> InvoiceViewModel:
    """
    Render-ready view of a stored invoice.

    Custom values are resolved by display name; totals are copied verbatim.
    """
    display_names = {col.column_name: col.column_display_name for col in record.custom_columns}
    ordered = sorted(record.custom_columns, key=lambda col: col.column_order)

    items = [
        ViewItem(
            serial_no=item.serial_no,
            description=item.description,
            description_hindi=item.description_hindi,
            hsn_sac_code=item.hsn_sac_code,
            quantity=item.quantity,
            rate=item.rate,
            amount=item.amount,
            custom_values={
                display_names[col.column_name]: item.custom_columns.get(col.column_name, "")
                for col in ordered
            },
        )
        for item in sorted(record.items, key=lambda i: i.serial_no)
    ]

    return InvoiceViewModel(
        company_name=record.company_name,
        invoice_number=record.invoice_number,
        invoice_date=record.invoice_date,
        po_reference=record.po_reference,
        po_date=record.po_date,
        bill_to=record.bill_to,
        ship_to=record.ship_to,
        custom_column_names=[col.column_display_name for col in ordered],
        items=items,
        tax_type=record.tax_type,
        igst_rate=record.igst_rate,
        cgst_rate=record.cgst_rate,
        sgst_rate=record.sgst_rate,
        totals=record.totals(),
        amount_in_words=amount_in_words(record.total),
        terms_and_conditions=record.terms_and_conditions,
        round_off=record.round_off,
        fit_to_one_page=record.fit_to_one_page,
        hindi_mode=record.hindi_mode,
    )
