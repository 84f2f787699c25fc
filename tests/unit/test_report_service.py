"""Unit tests for sales reports and CSV export"""

import csv
import pytest
from datetime import date
from decimal import Decimal
from io import StringIO

from billing.models.invoice import InvoiceStatus
from billing.reports import ReportService
from billing.services.db_service import DatabaseService
from billing.services.invoice_service import build_invoice_record


@pytest.fixture
def second_record(ledger_factory, igst_config, bill_to):
    """IGST invoice sharing HSN 8473 with the sample invoice"""
    ledger = ledger_factory([
        {"description": "monitor arm", "hsn_sac_code": "8473", "quantity": "1", "rate": "400"},
        {"description": "keyboard", "hsn_sac_code": "8471", "quantity": "2", "rate": "300"},
    ])
    return build_invoice_record(
        ledger,
        igst_config,
        invoice_number="GDC/2024/002",
        invoice_date=date(2024, 3, 20),
        company_name="Global Digital Connect",
        bill_to=bill_to.model_copy(update={"name": "Verma & Sons"}),
        status=InvoiceStatus.SENT,
    )


@pytest.mark.unit
class TestMonthlySalesRows:

    def test_one_row_per_invoice(self, sample_record, second_record):
        rows = ReportService.monthly_sales_rows([sample_record, second_record])

        assert [row.invoice_number for row in rows] == ["GDC/2024/001", "GDC/2024/002"]
        first = rows[0]
        assert first.customer_name == "Sharma Traders"
        assert first.hsn_codes == "8473, 8544, 998733"
        assert first.total_taxable_value == Decimal("2575.00")
        assert first.total_cgst == Decimal("231.75")
        assert first.total_igst == Decimal("0")
        assert first.total_amount == Decimal("3038.50")
        assert first.status == "draft"

    def test_duplicate_codes_listed_once(self, ledger_factory, cgst_sgst_config, sample_record):
        ledger = ledger_factory([
            {"hsn_sac_code": "8473", "rate": "10"},
            {"hsn_sac_code": "8473", "rate": "20"},
        ])
        record = sample_record.model_copy(update={
            "items": build_invoice_record(
                ledger, cgst_sgst_config,
                invoice_number="X", invoice_date=date(2024, 1, 1),
                company_name="Rudharma", bill_to=sample_record.bill_to,
            ).items
        })

        assert ReportService.monthly_sales_rows([record])[0].hsn_codes == "8473"


@pytest.mark.unit
class TestHsnSummary:

    def test_groups_sorted_by_code_with_proportional_tax(self, sample_record, second_record):
        rows = ReportService.hsn_summary_rows([sample_record, second_record])

        assert [row.hsn_sac_code for row in rows] == ["8471", "8473", "8544", "998733"]
        by_code = {row.hsn_sac_code: row for row in rows}

        # 1100 of 2575 under 9% + 9%, plus 400 of 1000 under 18% IGST
        shared = by_code["8473"]
        assert shared.description == "Laptop stand"
        assert shared.total_taxable_value == Decimal("1500.00")
        assert shared.total_cgst == Decimal("99.00")
        assert shared.total_sgst == Decimal("99.00")
        assert shared.total_igst == Decimal("72.00")
        assert shared.total_amount == Decimal("1770.00")
        assert shared.invoice_count == 2
        assert shared.total_quantity == "2 items"

        keyboard = by_code["8471"]
        assert keyboard.total_igst == Decimal("108.00")
        assert keyboard.total_cgst == 0
        assert keyboard.total_amount == Decimal("708.00")

    def test_zero_subtotal_contributes_no_tax(self, ledger_factory, cgst_sgst_config, bill_to):
        record = build_invoice_record(
            ledger_factory([{"hsn_sac_code": "9983", "rate": "0"}]),
            cgst_sgst_config,
            invoice_number="Z", invoice_date=date(2024, 1, 1),
            company_name="Global Digital Connect", bill_to=bill_to,
        )

        row = ReportService.hsn_summary_rows([record])[0]

        assert row.total_cgst == 0
        assert row.total_amount == 0


@pytest.mark.unit
class TestCsvExport:

    def test_every_field_quoted(self, sample_record):
        rows = ReportService.monthly_sales_rows([sample_record])

        content = ReportService.export_to_csv(rows)
        lines = content.strip().split("\n")

        assert lines[0].startswith('"invoice_number","invoice_date","customer_name","hsn_codes"')
        assert lines[1].startswith('"GDC/2024/001","2024-03-15","Sharma Traders","8473, 8544, 998733"')

    def test_numbers_keep_precision(self, sample_record):
        content = ReportService.export_to_csv(ReportService.monthly_sales_rows([sample_record]))

        record = next(csv.DictReader(StringIO(content)))

        assert record["total_taxable_value"] == "2575.00"
        assert record["total_amount"] == "3038.50"
        assert record["status"] == "draft"

    def test_plain_dicts_and_empty_input(self):
        assert ReportService.export_to_csv([]) == ""
        assert ReportService.export_to_csv([{"a": 1, "b": None}]) == '"a","b"\n"1",""\n'

    def test_quotes_inside_values_are_escaped(self):
        content = ReportService.export_to_csv([{"description": 'Cable 6" long'}])

        assert content.split("\n")[1] == '"Cable 6"" long"'

    def test_export_filename(self):
        assert ReportService.export_filename("hsn_sac_summary", 2024) == "hsn_sac_summary_2024.csv"
        assert ReportService.export_filename("hsn_sac_summary", 2024, 3) == "hsn_sac_summary_2024_03.csv"

    def test_write_export(self, tmp_path):
        path = ReportService.write_export('"a"\n"1"\n', "report.csv", export_dir=str(tmp_path / "exports"))

        assert path.read_text(encoding="utf-8") == '"a"\n"1"\n'


@pytest.mark.asyncio
async def test_reports_from_database(db_session, sample_record, second_record):
    await DatabaseService.save_invoice(sample_record, db=db_session)
    await DatabaseService.save_invoice(second_record, db=db_session)
    await DatabaseService.save_invoice(
        sample_record.model_copy(update={"invoice_number": "GDC/2023/050", "invoice_date": date(2023, 11, 2)}),
        db=db_session,
    )

    sales = await ReportService.monthly_sales(2024, 3, db=db_session)
    sent_only = await ReportService.monthly_sales(2024, status="sent", db=db_session)
    summary = await ReportService.hsn_summary(2023, db=db_session)
    years = await ReportService.available_years(db=db_session)

    assert {row.invoice_number for row in sales} == {"GDC/2024/001", "GDC/2024/002"}
    assert [row.invoice_number for row in sent_only] == ["GDC/2024/002"]
    assert [row.hsn_sac_code for row in summary] == ["8473", "8544", "998733"]
    assert years == [2024, 2023]


@pytest.mark.asyncio
async def test_available_years_defaults_to_current_year(db_session):
    assert await ReportService.available_years(db=db_session) == [date.today().year]


@pytest.mark.asyncio
async def test_export_report_writes_csv(db_session, sample_record, tmp_path):
    await DatabaseService.save_invoice(sample_record, db=db_session)

    path = await ReportService.export_report("hsn-summary", 2024, 3, db=db_session, export_dir=str(tmp_path))

    assert path.name == "hsn_sac_summary_2024_03.csv"
    lines = path.read_text(encoding="utf-8").strip().split("\n")
    assert lines[0].startswith('"hsn_sac_code"')
    assert len(lines) == 4


@pytest.mark.asyncio
async def test_export_report_rejects_unknown_report(db_session):
    with pytest.raises(ValueError):
        await ReportService.export_report("gst-return", 2024, db=db_session)
