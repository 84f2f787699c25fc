"""Invoice PDF rendering"""

from .renderer import InvoicePDFRenderer, render_invoice_pdf
from .templates import CompanyTemplate, get_template

__all__ = ["InvoicePDFRenderer", "render_invoice_pdf", "CompanyTemplate", "get_template"]
