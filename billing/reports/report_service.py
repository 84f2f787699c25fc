"""
Sales reports over stored taxable invoices

Builds the monthly sales register and the HSN/SAC summary, and serializes
either to CSV for download.
"""

import csv
from collections import OrderedDict
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from io import StringIO
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union
import logging

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from billing.calculations.amounts import ZERO, round2
from billing.config import settings
from billing.models.decimal_wire import decimal_to_wire
from billing.models.invoice import InvoiceRecord
from billing.services.db_service import DatabaseService

logger = logging.getLogger(__name__)


class MonthlySalesRow(BaseModel):
    """One invoice in the sales register"""
    invoice_number: str
    invoice_date: date
    customer_name: str
    hsn_codes: str
    total_taxable_value: Decimal
    total_cgst: Decimal
    total_sgst: Decimal
    total_igst: Decimal
    total_amount: Decimal
    status: str


class HsnSummaryRow(BaseModel):
    """Items of one HSN/SAC code, with their share of invoice tax"""
    hsn_sac_code: str
    description: str
    total_quantity: str
    total_taxable_value: Decimal
    total_cgst: Decimal
    total_sgst: Decimal
    total_igst: Decimal
    total_amount: Decimal
    invoice_count: int


Row = Union[BaseModel, Dict[str, Any]]


def _csv_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, Decimal):
        return decimal_to_wire(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


class ReportService:
    """Monthly sales and HSN/SAC summaries"""

    @staticmethod
    def monthly_sales_rows(invoices: Iterable[InvoiceRecord]) -> List[MonthlySalesRow]:
        """One register row per invoice, keeping the stored totals"""
        rows = []
        for invoice in invoices:
            # unique codes in first-seen order
            codes = OrderedDict.fromkeys(item.hsn_sac_code for item in invoice.items)
            rows.append(MonthlySalesRow(
                invoice_number=invoice.invoice_number,
                invoice_date=invoice.invoice_date,
                customer_name=invoice.bill_to.name,
                hsn_codes=", ".join(codes),
                total_taxable_value=invoice.subtotal,
                total_cgst=invoice.cgst_amount,
                total_sgst=invoice.sgst_amount,
                total_igst=invoice.igst_amount,
                total_amount=invoice.total,
                status=invoice.status.value,
            ))
        return rows

    @staticmethod
    def hsn_summary_rows(invoices: Iterable[InvoiceRecord]) -> List[HsnSummaryRow]:
        """
        Group every item by HSN/SAC code.

        Each item contributes its amount plus `amount / invoice subtotal` of the
        invoice's CGST, SGST and IGST. Shares accumulate unrounded and the
        summed values are rounded to cents once per code. An invoice with a
        zero subtotal contributes no tax.
        """
        groups: Dict[str, Dict[str, Any]] = {}

        for invoice in invoices:
            for item in invoice.items:
                group = groups.setdefault(item.hsn_sac_code, {
                    "description": item.description,
                    "taxable": ZERO,
                    "cgst": ZERO,
                    "sgst": ZERO,
                    "igst": ZERO,
                    "count": 0,
                })
                ratio = item.amount / invoice.subtotal if invoice.subtotal > 0 else ZERO

                group["taxable"] += item.amount
                group["cgst"] += invoice.cgst_amount * ratio
                group["sgst"] += invoice.sgst_amount * ratio
                group["igst"] += invoice.igst_amount * ratio
                group["count"] += 1

        rows = []
        for code in sorted(groups):
            group = groups[code]
            tax = group["cgst"] + group["sgst"] + group["igst"]
            rows.append(HsnSummaryRow(
                hsn_sac_code=code,
                description=group["description"],
                total_quantity=f"{group['count']} items",
                total_taxable_value=round2(group["taxable"]),
                total_cgst=round2(group["cgst"]),
                total_sgst=round2(group["sgst"]),
                total_igst=round2(group["igst"]),
                total_amount=round2(group["taxable"] + tax),
                invoice_count=group["count"],
            ))
        return rows

    @staticmethod
    def export_to_csv(rows: Sequence[Row]) -> str:
        """
        Serialize report rows to CSV (header + data rows, every field quoted).

        Columns follow the field order of the first row. Decimals are written
        with the precision they carry. No rows yields an empty string.
        """
        if not rows:
            return ""

        records = [row.model_dump() if isinstance(row, BaseModel) else dict(row) for row in rows]
        headers = list(records[0].keys())

        output = StringIO()
        writer = csv.writer(output, quoting=csv.QUOTE_ALL, lineterminator="\n")
        writer.writerow(headers)
        for record in records:
            writer.writerow([_csv_value(record.get(header)) for header in headers])
        return output.getvalue()

    @staticmethod
    def export_filename(report: str, year: int, month: Optional[int] = None) -> str:
        """e.g. `hsn_sac_summary_2024_03.csv`"""
        suffix = f"_{month:02d}" if month else ""
        return f"{report}_{year}{suffix}.csv"

    @staticmethod
    def write_export(content: str, filename: str, export_dir: Optional[str] = None) -> Path:
        """Write a CSV export under the configured export directory"""
        directory = Path(export_dir or settings.REPORT_EXPORT_DIR)
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / filename
        path.write_text(content, encoding="utf-8")
        logger.info(f"Report exported: {path}")
        return path

    @staticmethod
    async def monthly_sales(
        year: int,
        month: Optional[int] = None,
        status: Optional[str] = None,
        db: Optional[AsyncSession] = None
    ) -> List[MonthlySalesRow]:
        invoices = await DatabaseService.list_invoices(
            limit=None, status=status, year=year, month=month, db=db
        )
        logger.info(f"Monthly sales report: {year}/{month or 'all'} -> {len(invoices)} invoices")
        return ReportService.monthly_sales_rows(invoices)

    @staticmethod
    async def hsn_summary(
        year: int,
        month: Optional[int] = None,
        status: Optional[str] = None,
        db: Optional[AsyncSession] = None
    ) -> List[HsnSummaryRow]:
        invoices = await DatabaseService.list_invoices(
            limit=None, status=status, year=year, month=month, db=db
        )
        rows = ReportService.hsn_summary_rows(invoices)
        logger.info(f"HSN summary: {year}/{month or 'all'} -> {len(rows)} codes")
        return rows

    @staticmethod
    async def export_report(
        report: str,
        year: int,
        month: Optional[int] = None,
        status: Optional[str] = None,
        db: Optional[AsyncSession] = None,
        export_dir: Optional[str] = None
    ) -> Path:
        """
        Build a report and write it as CSV under the export directory.

        Args:
            report: "monthly-sales" or "hsn-summary"

        Returns:
            Path of the written file

        Raises:
            ValueError: unknown report name
        """
        if report == "monthly-sales":
            rows = await ReportService.monthly_sales(year, month, status, db=db)
            filename = ReportService.export_filename("invoice_details_report", year, month)
        elif report == "hsn-summary":
            rows = await ReportService.hsn_summary(year, month, status, db=db)
            filename = ReportService.export_filename("hsn_sac_summary", year, month)
        else:
            raise ValueError(f"Unknown report: {report}")

        return ReportService.write_export(ReportService.export_to_csv(rows), filename, export_dir)

    @staticmethod
    async def available_years(db: Optional[AsyncSession] = None) -> List[int]:
        """Distinct invoice years, newest first; the current year when there are none"""
        years = await DatabaseService.available_years(db=db)
        return years or [date.today().year]
