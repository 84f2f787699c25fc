"""Taxable invoice PDF renderer"""

import logging
import os
from io import BytesIO
from typing import List, Optional, Sequence, Tuple

from reportlab.pdfgen import canvas
from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import simpleSplit
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from PyPDF2 import PdfReader

from billing.config import settings
from billing.ledger.columns import AMOUNT, CUSTOM_COLUMN_WIDTH, REQUIRED_COLUMNS
from billing.models.invoice import InvoiceViewModel, TaxType, ViewItem
from billing.pdf.templates import CompanyTemplate, get_template
from billing.utils.formatting import format_currency, format_date, format_money

logger = logging.getLogger(__name__)

FONT = "Helvetica"
FONT_BOLD = "Helvetica-Bold"
HINDI_FONT = "InvoiceHindi"

BASE_SIZE = 9
LEADING = 1.25
CELL_PADDING = 3
MIN_SCALE = 0.35


class _Pen:
    """
    Top-down cursor over a canvas.

    With no canvas it only measures: text is not drawn and pages never break,
    so `consumed` is the height the content needs on one page.
    """

    def __init__(self, pdf: Optional[canvas.Canvas], pagesize: Tuple[float, float], margin: float, scale: float):
        self.pdf = pdf
        self.width, self.height = pagesize
        self.margin = margin
        self.scale = scale
        self.top = self.height - margin
        self.y = self.top
        self.pages = 1

    @property
    def left(self) -> float:
        return self.margin

    @property
    def right(self) -> float:
        return self.width - self.margin

    @property
    def consumed(self) -> float:
        return self.top - self.y

    def size(self, points: float) -> float:
        return points * self.scale

    def line_height(self, font_size: float = BASE_SIZE) -> float:
        return self.size(font_size) * LEADING

    def gap(self, points: float):
        self.y -= self.size(points)

    def fits(self, height: float) -> bool:
        return self.pdf is None or self.y - height >= self.margin

    def new_page(self):
        self.pdf.showPage()
        self.pages += 1
        self.y = self.top

    def ensure(self, height: float) -> bool:
        """Start a new page unless `height` fits; True when a page was started"""
        if self.fits(height):
            return False
        self.new_page()
        return True

    def wrap(self, text: Optional[str], width: float, font: str = FONT, font_size: float = BASE_SIZE) -> List[str]:
        lines: List[str] = []
        for paragraph in (text or "").split("\n"):
            lines.extend(simpleSplit(paragraph, font, self.size(font_size), width) or [""])
        return lines

    def draw(self, x: float, y: float, text: str, font: str = FONT, font_size: float = BASE_SIZE, align: str = "left"):
        if self.pdf is None or not text:
            return
        self.pdf.setFont(font, self.size(font_size))
        baseline = y - self.size(font_size)
        if align == "right":
            self.pdf.drawRightString(x, baseline, text)
        elif align == "center":
            self.pdf.drawCentredString(x, baseline, text)
        else:
            self.pdf.drawString(x, baseline, text)

    def line(self, text: str, font: str = FONT, font_size: float = BASE_SIZE, align: str = "left", x: Optional[float] = None):
        """Draw one line at the cursor and move below it"""
        if x is None:
            x = {"left": self.left, "right": self.right, "center": self.width / 2}[align]
        self.draw(x, self.y, text, font, font_size, align)
        self.y -= self.line_height(font_size)

    def rule(self):
        if self.pdf is not None:
            self.pdf.line(self.left, self.y, self.right, self.y)

    def box(self, x: float, width: float, height: float):
        if self.pdf is not None:
            self.pdf.rect(x, self.y - height, width, height, stroke=1, fill=0)


def _rate_label(rate) -> str:
    """9.00 -> "9", 2.50 -> "2.5" """
    return format(rate.normalize(), "f")


class InvoicePDFRenderer:
    """Renders an InvoiceViewModel as a branded A4 tax invoice"""

    def __init__(
        self,
        pagesize: Tuple[float, float] = A4,
        margin: float = 36,
        hindi_font_path: Optional[str] = None
    ):
        """
        Initialize renderer

        Args:
            pagesize: ReportLab page size
            margin: Page margin in points
            hindi_font_path: TTF with Devanagari glyphs (defaults to settings)
        """
        self.pagesize = pagesize
        self.margin = margin
        self.hindi_font_path = hindi_font_path or settings.PDF_HINDI_FONT_PATH

    def render(self, view: InvoiceViewModel) -> bytes:
        """
        Render an invoice.

        Only the view model's values are printed; nothing is recomputed.
        With `fit_to_one_page` every size is scaled down until the content
        fits one page (but never below MIN_SCALE).

        Returns:
            PDF bytes
        """
        template = get_template(view.company_name)
        description_font = self._description_font(view)

        scale = 1.0
        if view.fit_to_one_page:
            scale = self._fit_scale(view, template, description_font)

        buffer = BytesIO()
        pdf = canvas.Canvas(buffer, pagesize=self.pagesize)
        pdf.setTitle(f"Tax Invoice {view.invoice_number}")
        pdf.setAuthor(template.name)

        pen = _Pen(pdf, self.pagesize, self.margin, scale)
        self._draw_invoice(pen, view, template, description_font)
        pdf.save()

        logger.info(
            f"Rendered invoice {view.invoice_number} with template '{template.key}' "
            f"({len(view.items)} items, {pen.pages} page(s), scale {scale:.2f})"
        )
        return buffer.getvalue()

    @staticmethod
    def page_count(pdf_bytes: bytes) -> int:
        return len(PdfReader(BytesIO(pdf_bytes)).pages)

    def _description_font(self, view: InvoiceViewModel) -> str:
        if not view.hindi_mode:
            return FONT
        if HINDI_FONT in pdfmetrics.getRegisteredFontNames():
            return HINDI_FONT
        if self.hindi_font_path and os.path.exists(self.hindi_font_path):
            pdfmetrics.registerFont(TTFont(HINDI_FONT, self.hindi_font_path))
            return HINDI_FONT
        logger.warning(
            f"Hindi mode requested for invoice {view.invoice_number} but no Hindi font is "
            f"configured (PDF_HINDI_FONT_PATH); falling back to {FONT}"
        )
        return FONT

    def _fit_scale(self, view: InvoiceViewModel, template: CompanyTemplate, description_font: str) -> float:
        probe = _Pen(None, self.pagesize, self.margin, 1.0)
        self._draw_invoice(probe, view, template, description_font)

        available = self.pagesize[1] - 2 * self.margin
        if probe.consumed <= available:
            return 1.0
        # slack for wrapping differences at the smaller size
        return max(MIN_SCALE, 0.98 * available / probe.consumed)

    def _draw_invoice(self, pen: _Pen, view: InvoiceViewModel, template: CompanyTemplate, description_font: str):
        self._draw_letterhead(pen, template)
        self._draw_invoice_info(pen, view)
        self._draw_parties(pen, view)
        self._draw_items_table(pen, view, description_font)
        self._draw_totals(pen, view)
        self._draw_footer(pen, view, template)

    def _draw_letterhead(self, pen: _Pen, template: CompanyTemplate):
        pen.line(template.name, FONT_BOLD, 16, align="center")
        for detail in template.detail_lines:
            pen.line(detail, FONT, BASE_SIZE, align="center")
        pen.gap(4)
        pen.rule()
        pen.gap(6)
        pen.line("TAX INVOICE", FONT_BOLD, 12, align="center")
        pen.gap(4)

    def _draw_invoice_info(self, pen: _Pen, view: InvoiceViewModel):
        lines = [
            f"Invoice No: {view.invoice_number}",
            f"Invoice Date: {format_date(view.invoice_date)}",
        ]
        if view.po_reference:
            lines.append(f"PO Reference: {view.po_reference}")
        if view.po_date:
            lines.append(f"PO Date: {format_date(view.po_date)}")
        for text in lines:
            pen.line(text)
        pen.gap(6)

    def _draw_parties(self, pen: _Pen, view: InvoiceViewModel):
        half = (pen.right - pen.left) / 2
        columns = []
        for title, party in (("Bill To:", view.bill_to), ("Ship To:", view.ship_to)):
            lines = [(title, FONT_BOLD), (party.name, FONT_BOLD)]
            lines += [(text, FONT) for text in pen.wrap(party.address, half - 6)]
            if party.gst:
                lines.append((f"GST No: {party.gst}", FONT))
            columns.append(lines)

        height = max(len(lines) for lines in columns) * pen.line_height()
        pen.ensure(height)
        for index, lines in enumerate(columns):
            x = pen.left + index * half
            for row, (text, font) in enumerate(lines):
                pen.draw(x, pen.y - row * pen.line_height(), text, font)
        pen.y -= height
        pen.gap(8)

    def _table_layout(self, pen: _Pen, view: InvoiceViewModel) -> Tuple[List[str], List[float]]:
        """Header labels and column widths; custom columns sit before Amount"""
        headers: List[str] = []
        weights: List[float] = []
        for column in REQUIRED_COLUMNS:
            if column.id == AMOUNT:
                headers.extend(view.custom_column_names)
                weights.extend([CUSTOM_COLUMN_WIDTH] * len(view.custom_column_names))
            headers.append(column.name)
            weights.append(column.width)

        table_width = pen.right - pen.left
        total = sum(weights)
        return headers, [table_width * weight / total for weight in weights]

    def _row_cells(self, view: InvoiceViewModel, item: ViewItem) -> List[str]:
        description = item.description
        if view.hindi_mode and item.description_hindi:
            description = item.description_hindi
        return (
            [str(item.serial_no), description, item.hsn_sac_code, item.quantity, format_currency(item.rate)]
            + [item.custom_values.get(name, "") for name in view.custom_column_names]
            + [format_currency(item.amount)]
        )

    def _draw_row(
        self,
        pen: _Pen,
        cells: Sequence[str],
        widths: Sequence[float],
        fonts: Sequence[str],
        numeric: Sequence[bool],
    ):
        padding = pen.size(CELL_PADDING)
        wrapped = [
            pen.wrap(text, width - 2 * padding, font)
            for text, width, font in zip(cells, widths, fonts)
        ]
        height = max(len(lines) for lines in wrapped) * pen.line_height() + 2 * padding

        x = pen.left
        for lines, width, font, right_aligned in zip(wrapped, widths, fonts, numeric):
            pen.box(x, width, height)
            for index, text in enumerate(lines):
                y = pen.y - padding - index * pen.line_height()
                if right_aligned:
                    pen.draw(x + width - padding, y, text, font, align="right")
                else:
                    pen.draw(x + padding, y, text, font)
            x += width
        pen.y -= height

    def _draw_items_table(self, pen: _Pen, view: InvoiceViewModel, description_font: str):
        headers, widths = self._table_layout(pen, view)
        header_fonts = [FONT_BOLD] * len(headers)
        not_numeric = [False] * len(headers)

        # rate and amount columns are right-aligned
        numeric = [False, False, False, False, True] + [False] * len(view.custom_column_names) + [True]
        fonts = [FONT, description_font] + [FONT] * (len(headers) - 2)

        header_height = 2 * pen.line_height() + 2 * pen.size(CELL_PADDING)
        pen.ensure(header_height * 2)
        self._draw_row(pen, headers, widths, header_fonts, not_numeric)

        for item in view.items:
            cells = self._row_cells(view, item)
            padding = 2 * pen.size(CELL_PADDING)
            lines = max(
                len(pen.wrap(text, width - padding, font)) for text, width, font in zip(cells, widths, fonts)
            )
            if pen.ensure(lines * pen.line_height() + padding):
                self._draw_row(pen, headers, widths, header_fonts, not_numeric)
            self._draw_row(pen, cells, widths, fonts, numeric)
        pen.gap(8)

    def _draw_totals(self, pen: _Pen, view: InvoiceViewModel):
        totals = view.totals
        def money(value) -> str:
            return f"Rs. {format_money(value, view.round_off)}"

        rows = [("Sub Total:", money(totals.subtotal), FONT)]
        if view.tax_type == TaxType.IGST:
            rows.append((f"IGST ({_rate_label(view.igst_rate)}%):", money(totals.igst_amount), FONT))
        else:
            rows.append((f"CGST ({_rate_label(view.cgst_rate)}%):", money(totals.cgst_amount), FONT))
            rows.append((f"SGST ({_rate_label(view.sgst_rate)}%):", money(totals.sgst_amount), FONT))
        rows.append(("Total Tax:", money(totals.tax_amount), FONT))
        rows.append(("Grand Total:", money(totals.total), FONT_BOLD))

        pen.ensure(len(rows) * pen.line_height(10))
        label_x = pen.right - pen.size(110)
        for label, value, font in rows:
            pen.draw(label_x, pen.y, label, font, 10, align="right")
            pen.draw(pen.right, pen.y, value, font, 10, align="right")
            pen.y -= pen.line_height(10)
        pen.gap(6)

        words = pen.wrap(f"Amount in Words: {view.amount_in_words}", pen.right - pen.left, FONT_BOLD)
        pen.ensure(len(words) * pen.line_height())
        for text in words:
            pen.line(text, FONT_BOLD)
        pen.gap(8)

    def _draw_footer(self, pen: _Pen, view: InvoiceViewModel, template: CompanyTemplate):
        width = pen.right - pen.left

        if view.terms_and_conditions:
            terms = pen.wrap(view.terms_and_conditions, width)
            pen.ensure((len(terms) + 1) * pen.line_height())
            pen.line("Terms & Conditions:", FONT_BOLD)
            for text in terms:
                pen.line(text)
            pen.gap(6)

        if template.bank_lines:
            pen.ensure((len(template.bank_lines) + 1) * pen.line_height())
            pen.line("Company's Bank Details", FONT_BOLD)
            for text in template.bank_lines:
                pen.line(text)
            pen.gap(6)

        declaration = pen.wrap(template.declaration, width, FONT, 8)
        pen.ensure(2 * pen.line_height() + pen.size(38) + len(declaration) * pen.line_height(8))
        pen.line(f"For {template.name}", FONT_BOLD, align="right")
        pen.gap(30)
        pen.line("Authorized Signatory", FONT, align="right")
        pen.gap(8)
        for text in declaration:
            pen.line(text, FONT, 8)


def render_invoice_pdf(view: InvoiceViewModel) -> bytes:
    """Render with default page settings"""
    return InvoicePDFRenderer().render(view)
