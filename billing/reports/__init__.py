"""Sales reports and CSV export"""

from .report_service import HsnSummaryRow, MonthlySalesRow, ReportService

__all__ = ["HsnSummaryRow", "MonthlySalesRow", "ReportService"]
