"""Utilities for converting between Pydantic and SQLAlchemy models"""

from typing import Optional, List
import json

from .invoice import (
    Customer as CustomerPydantic,
    CustomColumnRecord,
    InvoiceRecord,
    InvoiceStatus,
    ItemRecord,
    Party,
    TaxType,
)
from .db_models import (
    Customer as CustomerDB,
    TaxableInvoice as TaxableInvoiceDB,
    TaxableInvoiceCustomColumn as CustomColumnDB,
    TaxableInvoiceItem as ItemDB,
)

# Header columns copied one-to-one between InvoiceRecord and TaxableInvoiceDB
_HEADER_FIELDS = (
    "invoice_number",
    "invoice_date",
    "po_reference",
    "po_date",
    "customer_id",
    "company_name",
    "igst_rate",
    "cgst_rate",
    "sgst_rate",
    "round_off",
    "subtotal",
    "igst_amount",
    "cgst_amount",
    "sgst_amount",
    "tax_amount",
    "total",
    "terms_and_conditions",
    "hindi_mode",
    "fit_to_one_page",
)


def custom_values_to_json(values: Optional[dict]) -> dict:
    """Normalize custom column values for JSON storage"""
    if not values:
        return {}
    if isinstance(values, str):
        values = json.loads(values)
    return {str(key): "" if value is None else str(value) for key, value in values.items()}


def item_to_db(item: ItemRecord, invoice_id: Optional[str] = None) -> ItemDB:
    return ItemDB(
        invoice_id=invoice_id,
        serial_no=item.serial_no,
        description=item.description,
        description_hindi=item.description_hindi,
        hsn_sac_code=item.hsn_sac_code,
        quantity=item.quantity,
        rate=item.rate,
        amount=item.amount,
        custom_columns=custom_values_to_json(item.custom_columns),
    )


def db_to_item(item_db: ItemDB) -> ItemRecord:
    return ItemRecord(
        id=item_db.id,
        serial_no=item_db.serial_no,
        description=item_db.description or "",
        description_hindi=item_db.description_hindi,
        hsn_sac_code=item_db.hsn_sac_code or "",
        quantity=item_db.quantity if item_db.quantity is not None else "1",
        rate=item_db.rate or 0,
        amount=item_db.amount or 0,
        custom_columns=custom_values_to_json(item_db.custom_columns),
    )


def column_to_db(column: CustomColumnRecord, invoice_id: Optional[str] = None) -> CustomColumnDB:
    return CustomColumnDB(
        invoice_id=invoice_id,
        column_name=column.column_name,
        column_display_name=column.column_display_name,
        column_order=column.column_order,
    )


def db_to_column(column_db: CustomColumnDB) -> CustomColumnRecord:
    return CustomColumnRecord(
        column_name=column_db.column_name,
        column_display_name=column_db.column_display_name,
        column_order=column_db.column_order,
    )


def apply_record_to_db(record: InvoiceRecord, invoice_db: TaxableInvoiceDB) -> TaxableInvoiceDB:
    """Copy header, parties, tax configuration and totals onto an ORM row"""
    for name in _HEADER_FIELDS:
        setattr(invoice_db, name, getattr(record, name))
    invoice_db.tax_type = TaxType(record.tax_type).value
    invoice_db.status = InvoiceStatus(record.status).value
    invoice_db.bill_to_name = record.bill_to.name
    invoice_db.bill_to_address = record.bill_to.address
    invoice_db.bill_to_gst = record.bill_to.gst
    invoice_db.ship_to_name = record.ship_to.name
    invoice_db.ship_to_address = record.ship_to.address
    invoice_db.ship_to_gst = record.ship_to.gst
    return invoice_db


def pydantic_to_db_invoice(record: InvoiceRecord) -> TaxableInvoiceDB:
    """Convert an InvoiceRecord (with items and columns) to a new ORM graph"""
    invoice_db = TaxableInvoiceDB()
    if record.id:
        invoice_db.id = record.id
    apply_record_to_db(record, invoice_db)
    invoice_db.items = [item_to_db(item) for item in record.items]
    invoice_db.custom_columns = [column_to_db(column) for column in record.custom_columns]
    return invoice_db


def db_to_pydantic_invoice(invoice_db: TaxableInvoiceDB) -> InvoiceRecord:
    """Convert an ORM invoice (items and columns loaded) to an InvoiceRecord"""
    items: List[ItemRecord] = sorted(
        (db_to_item(item) for item in invoice_db.items or []),
        key=lambda item: item.serial_no,
    )
    columns: List[CustomColumnRecord] = sorted(
        (db_to_column(column) for column in invoice_db.custom_columns or []),
        key=lambda column: column.column_order,
    )
    return InvoiceRecord(
        id=invoice_db.id,
        invoice_number=invoice_db.invoice_number,
        invoice_date=invoice_db.invoice_date,
        po_reference=invoice_db.po_reference,
        po_date=invoice_db.po_date,
        customer_id=invoice_db.customer_id,
        company_name=invoice_db.company_name,
        bill_to=Party(
            name=invoice_db.bill_to_name or "",
            address=invoice_db.bill_to_address or "",
            gst=invoice_db.bill_to_gst,
        ),
        ship_to=Party(
            name=invoice_db.ship_to_name or "",
            address=invoice_db.ship_to_address or "",
            gst=invoice_db.ship_to_gst,
        ),
        tax_type=invoice_db.tax_type,
        igst_rate=invoice_db.igst_rate or 0,
        cgst_rate=invoice_db.cgst_rate or 0,
        sgst_rate=invoice_db.sgst_rate or 0,
        round_off=bool(invoice_db.round_off),
        subtotal=invoice_db.subtotal or 0,
        igst_amount=invoice_db.igst_amount or 0,
        cgst_amount=invoice_db.cgst_amount or 0,
        sgst_amount=invoice_db.sgst_amount or 0,
        tax_amount=invoice_db.tax_amount or 0,
        total=invoice_db.total or 0,
        terms_and_conditions=invoice_db.terms_and_conditions,
        hindi_mode=bool(invoice_db.hindi_mode),
        fit_to_one_page=bool(invoice_db.fit_to_one_page),
        status=invoice_db.status,
        items=items,
        custom_columns=columns,
        created_at=invoice_db.created_at,
        updated_at=invoice_db.updated_at,
    )


def db_to_pydantic_customer(customer_db: CustomerDB) -> CustomerPydantic:
    return CustomerPydantic(
        id=customer_db.id,
        name=customer_db.name,
        address=customer_db.address,
        gst_number=customer_db.gst_number,
        email=customer_db.email,
        phone=customer_db.phone,
        created_at=customer_db.created_at,
        updated_at=customer_db.updated_at,
    )
