"""SQLAlchemy ORM models for taxable invoices"""

from sqlalchemy import Column, String, Integer, Boolean, DateTime, Date, Numeric, Text, JSON, ForeignKey, Index
from sqlalchemy.orm import relationship
from datetime import datetime
import uuid

from .database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class Customer(Base):
    """Customer master, upserted by (name, address)"""
    __tablename__ = "customers"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String, nullable=False)
    address = Column(Text, nullable=False)
    gst_number = Column(String(20), nullable=True)
    email = Column(String, nullable=True)
    phone = Column(String(30), nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    invoices = relationship("TaxableInvoice", back_populates="customer")

    __table_args__ = (
        Index('ix_customers_name_address', 'name', 'address'),
    )


class TaxableInvoice(Base):
    """Taxable invoice header, tax configuration and computed totals"""
    __tablename__ = "taxable_invoices"

    id = Column(String(36), primary_key=True, default=_uuid)

    # Header
    invoice_number = Column(String(100), nullable=False, index=True)
    invoice_date = Column(Date, nullable=False)
    po_reference = Column(String(100), nullable=True)
    po_date = Column(Date, nullable=True)
    customer_id = Column(String(36), ForeignKey("customers.id"), nullable=True)
    company_name = Column(String, nullable=False)

    # Parties
    bill_to_name = Column(String, nullable=False, default="")
    bill_to_address = Column(Text, nullable=False, default="")
    bill_to_gst = Column(String(20), nullable=True)
    ship_to_name = Column(String, nullable=False, default="")
    ship_to_address = Column(Text, nullable=False, default="")
    ship_to_gst = Column(String(20), nullable=True)

    # Tax configuration
    tax_type = Column(String(20), nullable=False, default="cgst_sgst")
    igst_rate = Column(Numeric(5, 2), nullable=False, default=0)
    cgst_rate = Column(Numeric(5, 2), nullable=False, default=0)
    sgst_rate = Column(Numeric(5, 2), nullable=False, default=0)
    round_off = Column(Boolean, nullable=False, default=False)

    # Computed totals
    subtotal = Column(Numeric(14, 2), nullable=False, default=0)
    igst_amount = Column(Numeric(14, 2), nullable=False, default=0)
    cgst_amount = Column(Numeric(14, 2), nullable=False, default=0)
    sgst_amount = Column(Numeric(14, 2), nullable=False, default=0)
    tax_amount = Column(Numeric(14, 2), nullable=False, default=0)
    total = Column(Numeric(14, 2), nullable=False, default=0)

    terms_and_conditions = Column(Text, nullable=True)
    hindi_mode = Column(Boolean, nullable=False, default=False)
    fit_to_one_page = Column(Boolean, nullable=False, default=False)
    status = Column(String(20), nullable=False, default="draft")

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    customer = relationship("Customer", back_populates="invoices", lazy="selectin")
    items = relationship(
        "TaxableInvoiceItem",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="TaxableInvoiceItem.serial_no",
        lazy="selectin",
    )
    custom_columns = relationship(
        "TaxableInvoiceCustomColumn",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="TaxableInvoiceCustomColumn.column_order",
        lazy="selectin",
    )

    __table_args__ = (
        Index('ix_taxable_invoices_status', 'status'),
        Index('ix_taxable_invoices_invoice_date', 'invoice_date'),
    )


class TaxableInvoiceItem(Base):
    """Invoice line item; storage order is not guaranteed, `serial_no` is"""
    __tablename__ = "taxable_invoice_items"

    id = Column(String(36), primary_key=True, default=_uuid)
    invoice_id = Column(String(36), ForeignKey("taxable_invoices.id", ondelete="CASCADE"), nullable=False)

    serial_no = Column(Integer, nullable=False)
    description = Column(Text, nullable=False, default="")
    description_hindi = Column(Text, nullable=True)
    hsn_sac_code = Column(String(20), nullable=False, default="")
    quantity = Column(String(50), nullable=False, default="1")
    rate = Column(Numeric(14, 2), nullable=False, default=0)
    amount = Column(Numeric(14, 2), nullable=False, default=0)
    custom_columns = Column(JSON, nullable=False, default=dict)  # column id -> value

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    invoice = relationship("TaxableInvoice", back_populates="items")

    __table_args__ = (
        Index('ix_taxable_invoice_items_invoice_id', 'invoice_id'),
        Index('ix_taxable_invoice_items_serial', 'invoice_id', 'serial_no'),
    )


class TaxableInvoiceCustomColumn(Base):
    """Custom column definition for one invoice"""
    __tablename__ = "taxable_invoice_custom_columns"

    id = Column(String(36), primary_key=True, default=_uuid)
    invoice_id = Column(String(36), ForeignKey("taxable_invoices.id", ondelete="CASCADE"), nullable=False)

    column_name = Column(String(100), nullable=False)
    column_display_name = Column(String(200), nullable=False)
    column_order = Column(Integer, nullable=False)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    invoice = relationship("TaxableInvoice", back_populates="custom_columns")

    __table_args__ = (
        Index('ix_taxable_invoice_custom_columns_invoice_id', 'invoice_id'),
    )
