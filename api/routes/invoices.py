"""API routes for taxable invoices"""

from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union
import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from billing.config import settings
from billing.ledger.columns import DESCRIPTION, HSN_SAC_CODE, QUANTITY, RATE, derive_column_id
from billing.ledger.exceptions import ColumnRejectedError
from billing.ledger.item_ledger import ItemLedger
from billing.models.database import get_db
from billing.models.invoice import Customer, InvoiceRecord, InvoiceStatus, Party, TaxConfiguration
from billing.pdf.renderer import render_invoice_pdf
from billing.services.db_service import DatabaseService
from billing.services.invoice_service import (
    build_invoice_record,
    build_ledger,
    build_view_model,
    calculate_ledger_totals,
    ledger_to_item_records,
)
from billing.utils.number_words import amount_in_words
from billing.validation.totals_validator import TotalsValidator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/invoices", tags=["invoices"])


class ItemPayload(BaseModel):
    """One line item as entered; amount is always derived"""
    description: str = ""
    description_hindi: Optional[str] = None
    hsn_sac_code: str = ""
    quantity: Union[str, int, float] = "1"
    rate: Union[str, int, float, Decimal] = "0"
    custom_values: Dict[str, str] = Field(default_factory=dict)  # display name -> value


class CalculateRequest(BaseModel):
    """Items and tax settings to total without saving"""
    custom_columns: List[str] = Field(default_factory=list)  # display names, in order
    items: List[ItemPayload] = Field(default_factory=list)
    tax: TaxConfiguration = Field(default_factory=TaxConfiguration)


class InvoicePayload(CalculateRequest):
    """Full invoice for create/update"""
    invoice_number: str
    invoice_date: date
    po_reference: Optional[str] = None
    po_date: Optional[date] = None
    company_name: str = Field(default_factory=lambda: settings.DEFAULT_COMPANY)
    bill_to: Party = Field(default_factory=Party)
    ship_to: Optional[Party] = None  # None: same as bill-to
    terms_and_conditions: Optional[str] = None
    hindi_mode: bool = False
    fit_to_one_page: bool = False
    status: InvoiceStatus = InvoiceStatus.DRAFT
    save_customer: bool = True


class StatusUpdateRequest(BaseModel):
    status: InvoiceStatus


def _ledger_rows(items: List[ItemPayload]) -> List[Dict[str, Any]]:
    rows = []
    for item in items:
        values: Dict[str, Any] = {
            DESCRIPTION: item.description,
            HSN_SAC_CODE: item.hsn_sac_code,
            QUANTITY: item.quantity,
            RATE: item.rate,
        }
        if item.description_hindi is not None:
            values["description_hindi"] = item.description_hindi
        for name, value in item.custom_values.items():
            values[derive_column_id(name)] = value
        rows.append(values)
    return rows


def _payload_ledger(payload: CalculateRequest) -> ItemLedger:
    return build_ledger(payload.custom_columns, _ledger_rows(payload.items))


async def _payload_record(
    payload: InvoicePayload,
    db: AsyncSession,
    invoice_id: Optional[str] = None
) -> InvoiceRecord:
    # a rejected column must fail before the customer is written
    ledger = _payload_ledger(payload)

    customer_id = None
    if payload.save_customer and payload.bill_to.name and payload.bill_to.address:
        customer = await DatabaseService.upsert_customer(
            Customer(
                name=payload.bill_to.name,
                address=payload.bill_to.address,
                gst_number=payload.bill_to.gst,
            ),
            db=db,
        )
        customer_id = customer.id

    return build_invoice_record(
        ledger,
        payload.tax,
        invoice_number=payload.invoice_number,
        invoice_date=payload.invoice_date,
        company_name=payload.company_name,
        bill_to=payload.bill_to,
        ship_to=payload.ship_to,
        po_reference=payload.po_reference,
        po_date=payload.po_date,
        customer_id=customer_id,
        terms_and_conditions=payload.terms_and_conditions,
        hindi_mode=payload.hindi_mode,
        fit_to_one_page=payload.fit_to_one_page,
        status=payload.status,
        invoice_id=invoice_id,
    )


@router.post("/calculate")
async def calculate_invoice(request: CalculateRequest):
    """
    Compute line amounts and invoice totals without saving

    Returns:
        Items with derived amounts, custom column mapping, totals and amount in words
    """
    try:
        ledger = _payload_ledger(request)
        totals = calculate_ledger_totals(ledger, request.tax)
        return {
            "custom_column_names": list(ledger.custom_column_names),
            "custom_columns_map": ledger.custom_columns_map,
            "items": [item.model_dump(mode="json") for item in ledger_to_item_records(ledger)],
            "totals": totals.model_dump(mode="json"),
            "amount_in_words": amount_in_words(totals.total),
        }
    except ColumnRejectedError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error calculating invoice: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


@router.post("", status_code=201)
async def create_invoice(
    payload: InvoicePayload,
    db: AsyncSession = Depends(get_db)
):
    """Create a taxable invoice; totals are computed server-side"""
    try:
        record = await _payload_record(payload, db)
        saved = await DatabaseService.save_invoice(record, db=db)
        return saved.model_dump(mode="json")
    except ColumnRejectedError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error creating invoice {payload.invoice_number}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


@router.get("")
async def list_invoices(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    status: Optional[InvoiceStatus] = None,
    year: Optional[int] = None,
    month: Optional[int] = Query(None, ge=1, le=12),
    db: AsyncSession = Depends(get_db)
):
    """List invoices, newest first"""
    try:
        invoices = await DatabaseService.list_invoices(
            skip=skip,
            limit=limit,
            status=status.value if status else None,
            year=year,
            month=month,
            db=db,
        )
        return {
            "invoices": [invoice.model_dump(mode="json") for invoice in invoices],
            "count": len(invoices),
            "skip": skip,
            "limit": limit,
        }
    except Exception as e:
        logger.error(f"Error listing invoices: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/customers")
async def list_customers(db: AsyncSession = Depends(get_db)):
    customers = await DatabaseService.list_customers(db=db)
    return {"customers": [c.model_dump(mode="json") for c in customers]}


@router.get("/{invoice_id}")
async def get_invoice(
    invoice_id: str,
    db: AsyncSession = Depends(get_db)
):
    invoice = await DatabaseService.get_invoice(invoice_id, db=db)
    if not invoice:
        raise HTTPException(status_code=404, detail=f"Invoice {invoice_id} not found")
    return invoice.model_dump(mode="json")


@router.put("/{invoice_id}")
async def update_invoice(
    invoice_id: str,
    payload: InvoicePayload,
    db: AsyncSession = Depends(get_db)
):
    """Replace an invoice's header, items and custom columns"""
    try:
        if not await DatabaseService.get_invoice(invoice_id, db=db):
            raise HTTPException(status_code=404, detail=f"Invoice {invoice_id} not found")
        record = await _payload_record(payload, db, invoice_id=invoice_id)
        updated = await DatabaseService.update_invoice(invoice_id, record, db=db)
        if not updated:
            raise HTTPException(status_code=404, detail=f"Invoice {invoice_id} not found")
        return updated.model_dump(mode="json")
    except HTTPException:
        raise
    except ColumnRejectedError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error updating invoice {invoice_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


@router.patch("/{invoice_id}/status")
async def update_invoice_status(
    invoice_id: str,
    request: StatusUpdateRequest,
    db: AsyncSession = Depends(get_db)
):
    updated = await DatabaseService.update_status(invoice_id, request.status, db=db)
    if not updated:
        raise HTTPException(status_code=404, detail=f"Invoice {invoice_id} not found")
    return {"invoice_id": invoice_id, "status": request.status.value}


@router.delete("/{invoice_id}")
async def delete_invoice(
    invoice_id: str,
    db: AsyncSession = Depends(get_db)
):
    deleted = await DatabaseService.delete_invoice(invoice_id, db=db)
    if not deleted:
        raise HTTPException(status_code=404, detail=f"Invoice {invoice_id} not found")
    return {"invoice_id": invoice_id, "deleted": True}


@router.get("/{invoice_id}/validation")
async def validate_invoice(
    invoice_id: str,
    db: AsyncSession = Depends(get_db)
):
    """Check stored totals against the stored items"""
    invoice = await DatabaseService.get_invoice(invoice_id, db=db)
    if not invoice:
        raise HTTPException(status_code=404, detail=f"Invoice {invoice_id} not found")

    summary = TotalsValidator.get_validation_summary(invoice)
    return {
        "invoice_id": invoice_id,
        "all_valid": summary["all_valid"],
        "errors": summary["errors"],
        "passed_validations": summary["passed_validations"],
        "total_validations": summary["total_validations"],
    }


@router.get("/{invoice_id}/pdf")
async def get_invoice_pdf(
    invoice_id: str,
    db: AsyncSession = Depends(get_db)
):
    """
    Render a stored invoice as PDF

    Returns:
        PDF file using the company's letterhead template
    """
    try:
        invoice = await DatabaseService.get_invoice(invoice_id, db=db)
        if not invoice:
            raise HTTPException(status_code=404, detail=f"Invoice {invoice_id} not found")

        pdf = render_invoice_pdf(build_view_model(invoice))
        filename = f"Tax_Invoice_{invoice.invoice_number}.pdf".replace("/", "-")
        return Response(
            content=pdf,
            media_type="application/pdf",
            headers={"Content-Disposition": f'inline; filename="{filename}"'}
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error generating PDF for invoice {invoice_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))
