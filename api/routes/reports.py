"""API routes for sales reports and CSV export"""

from datetime import date
from typing import Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from billing.models.database import get_db
from billing.models.invoice import InvoiceStatus
from billing.reports.report_service import ReportService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["reports"])


def _csv_response(rows, report: str, year: int, month: Optional[int]) -> Response:
    filename = ReportService.export_filename(report, year, month)
    return Response(
        content=ReportService.export_to_csv(rows),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )


@router.get("/years")
async def available_years(db: AsyncSession = Depends(get_db)):
    return {"years": await ReportService.available_years(db=db)}


@router.get("/monthly-sales")
async def monthly_sales(
    year: Optional[int] = None,
    month: Optional[int] = Query(None, ge=1, le=12),
    status: Optional[InvoiceStatus] = None,
    format: str = Query("json", pattern="^(json|csv)$"),
    db: AsyncSession = Depends(get_db)
):
    """
    Invoice register for a year, optionally one month and one status

    Args:
        format: "json" for rows, "csv" for a download
    """
    year = year or date.today().year
    try:
        rows = await ReportService.monthly_sales(
            year, month, status.value if status else None, db=db
        )
    except Exception as e:
        logger.error(f"Error building monthly sales report: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))

    if format == "csv":
        return _csv_response(rows, "invoice_details_report", year, month)
    return {
        "year": year,
        "month": month,
        "rows": [row.model_dump(mode="json") for row in rows],
        "count": len(rows),
    }


@router.get("/hsn-summary")
async def hsn_summary(
    year: Optional[int] = None,
    month: Optional[int] = Query(None, ge=1, le=12),
    status: Optional[InvoiceStatus] = None,
    format: str = Query("json", pattern="^(json|csv)$"),
    db: AsyncSession = Depends(get_db)
):
    """HSN/SAC code summary with proportional tax shares"""
    year = year or date.today().year
    try:
        rows = await ReportService.hsn_summary(
            year, month, status.value if status else None, db=db
        )
    except Exception as e:
        logger.error(f"Error building HSN summary: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))

    if format == "csv":
        return _csv_response(rows, "hsn_sac_summary", year, month)
    return {
        "year": year,
        "month": month,
        "rows": [row.model_dump(mode="json") for row in rows],
        "count": len(rows),
    }


@router.post("/{report}/export")
async def export_report(
    report: str,
    year: Optional[int] = None,
    month: Optional[int] = Query(None, ge=1, le=12),
    status: Optional[InvoiceStatus] = None,
    db: AsyncSession = Depends(get_db)
):
    """
    Write a report as CSV to the configured export directory

    Returns:
        File name and location of the export
    """
    year = year or date.today().year
    try:
        path = await ReportService.export_report(
            report, year, month, status.value if status else None, db=db
        )
        return {"report": report, "filename": path.name, "path": str(path)}
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error(f"Error exporting report {report}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))
