"""Taxable invoice data models"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional, Dict
from pydantic import BaseModel, Field
from enum import Enum


class TaxType(str, Enum):
    """GST regime applied to an invoice"""
    IGST = "igst"  # Inter-state: Integrated GST
    CGST_SGST = "cgst_sgst"  # Intra-state: Central + State GST


class InvoiceStatus(str, Enum):
    """Invoice lifecycle states"""
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    CANCELLED = "cancelled"


class Party(BaseModel):
    """Bill-To / Ship-To party"""
    name: str = ""
    address: str = ""
    gst: Optional[str] = None


class Customer(BaseModel):
    """Customer master record"""
    id: Optional[str] = None
    name: str
    address: str
    gst_number: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TaxConfiguration(BaseModel):
    """Tax type, GST rates (percent) and round-off mode"""
    tax_type: TaxType = TaxType.CGST_SGST
    igst_rate: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    cgst_rate: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    sgst_rate: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    round_off: bool = False

    def switch_tax_type(self, tax_type: TaxType) -> "TaxConfiguration":
        """
        Return a copy using `tax_type`, with the rates of the other regime zeroed.

        The calculator ignores inapplicable rates regardless; zeroing them keeps
        stored records unambiguous.
        """
        tax_type = TaxType(tax_type)
        if tax_type == TaxType.IGST:
            return self.model_copy(update={
                "tax_type": tax_type,
                "cgst_rate": Decimal("0"),
                "sgst_rate": Decimal("0"),
            })
        return self.model_copy(update={"tax_type": tax_type, "igst_rate": Decimal("0")})


class InvoiceTotals(BaseModel):
    """Computed billing totals"""
    subtotal: Decimal = Decimal("0")
    igst_amount: Decimal = Decimal("0")
    cgst_amount: Decimal = Decimal("0")
    sgst_amount: Decimal = Decimal("0")
    tax_amount: Decimal = Decimal("0")
    total: Decimal = Decimal("0")


class ItemRecord(BaseModel):
    """Persisted line item; `serial_no` carries the row order"""
    id: Optional[str] = None
    serial_no: int
    description: str = ""
    description_hindi: Optional[str] = None
    hsn_sac_code: str = ""
    quantity: str = "1"  # may carry a unit suffix, e.g. "5 pcs"
    rate: Decimal = Decimal("0")
    amount: Decimal = Decimal("0")
    custom_columns: Dict[str, str] = Field(default_factory=dict)  # column id -> value


class CustomColumnRecord(BaseModel):
    """Persisted custom column definition"""
    column_name: str  # column id, e.g. "unit_price"
    column_display_name: str  # label, e.g. "Unit price"
    column_order: int


class InvoiceRecord(BaseModel):
    """Serialized taxable invoice handed to persistence"""
    id: Optional[str] = None
    invoice_number: str
    invoice_date: date
    po_reference: Optional[str] = None
    po_date: Optional[date] = None
    customer_id: Optional[str] = None
    company_name: str

    bill_to: Party = Field(default_factory=Party)
    ship_to: Party = Field(default_factory=Party)

    # Tax configuration
    tax_type: TaxType = TaxType.CGST_SGST
    igst_rate: Decimal = Decimal("0")
    cgst_rate: Decimal = Decimal("0")
    sgst_rate: Decimal = Decimal("0")
    round_off: bool = False

    # Computed totals
    subtotal: Decimal = Decimal("0")
    igst_amount: Decimal = Decimal("0")
    cgst_amount: Decimal = Decimal("0")
    sgst_amount: Decimal = Decimal("0")
    tax_amount: Decimal = Decimal("0")
    total: Decimal = Decimal("0")

    terms_and_conditions: Optional[str] = None
    hindi_mode: bool = False
    fit_to_one_page: bool = False
    status: InvoiceStatus = InvoiceStatus.DRAFT

    items: List[ItemRecord] = Field(default_factory=list)
    custom_columns: List[CustomColumnRecord] = Field(default_factory=list)

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def tax_configuration(self) -> TaxConfiguration:
        return TaxConfiguration(
            tax_type=self.tax_type,
            igst_rate=self.igst_rate,
            cgst_rate=self.cgst_rate,
            sgst_rate=self.sgst_rate,
            round_off=self.round_off,
        )

    def totals(self) -> InvoiceTotals:
        return InvoiceTotals(
            subtotal=self.subtotal,
            igst_amount=self.igst_amount,
            cgst_amount=self.cgst_amount,
            sgst_amount=self.sgst_amount,
            tax_amount=self.tax_amount,
            total=self.total,
        )


class ViewItem(BaseModel):
    """Line item as handed to renderers; custom values keyed by display name"""
    serial_no: int
    description: str
    description_hindi: Optional[str] = None
    hsn_sac_code: str
    quantity: str
    rate: Decimal
    amount: Decimal
    custom_values: Dict[str, str] = Field(default_factory=dict)


class InvoiceViewModel(BaseModel):
    """Render-ready invoice; renderers print these values and never recompute them"""
    company_name: str
    invoice_number: str
    invoice_date: date
    po_reference: Optional[str] = None
    po_date: Optional[date] = None
    bill_to: Party
    ship_to: Party
    custom_column_names: List[str] = Field(default_factory=list)
    items: List[ViewItem] = Field(default_factory=list)
    tax_type: TaxType
    igst_rate: Decimal
    cgst_rate: Decimal
    sgst_rate: Decimal
    totals: InvoiceTotals
    amount_in_words: str
    terms_and_conditions: Optional[str] = None
    round_off: bool = False
    fit_to_one_page: bool = False
    hindi_mode: bool = False
