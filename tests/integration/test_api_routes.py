"""Integration tests for API routes"""

import pytest
from fastapi.testclient import TestClient
from unittest.mock import patch, AsyncMock

from api.main import app
from billing.config import settings
from billing.models.invoice import Customer


INVOICE_PAYLOAD = {
    "invoice_number": "GDC/2024/001",
    "invoice_date": "2024-03-15",
    "company_name": "Global Digital Connect",
    "bill_to": {"name": "Sharma Traders", "address": "Raipur", "gst": "22ABCDE1234F1Z5"},
    "tax": {"tax_type": "cgst_sgst", "cgst_rate": "9", "sgst_rate": "9"},
    "custom_columns": ["Unit"],
    "items": [
        {"description": "laptop stand", "hsn_sac_code": "8473", "quantity": "2 pcs", "rate": "550",
         "custom_values": {"Unit": "pcs"}},
        {"description": "network cable", "hsn_sac_code": "8544", "quantity": "5 m", "rate": 115},
        {"description": "installation", "hsn_sac_code": "998733", "quantity": 1, "rate": "900"},
    ],
}


def _echo_saved(record, db=None):
    return record.model_copy(update={"id": "inv-1"})


@pytest.mark.integration
@pytest.mark.api
class TestAPIRoutes:
    """Test API routes"""

    @pytest.fixture
    def client(self):
        """Create test client"""
        return TestClient(app)

    def test_root_endpoint(self, client):
        response = client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert "message" in data
        assert data["status"] == "running"

    def test_health_endpoint(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_calculate_returns_string_money(self, client):
        response = client.post("/api/invoices/calculate", json={
            "custom_columns": INVOICE_PAYLOAD["custom_columns"],
            "items": INVOICE_PAYLOAD["items"],
            "tax": INVOICE_PAYLOAD["tax"],
        })

        assert response.status_code == 200
        data = response.json()
        assert data["totals"] == {
            "subtotal": "2575.00",
            "igst_amount": "0.00",
            "cgst_amount": "231.75",
            "sgst_amount": "231.75",
            "tax_amount": "463.50",
            "total": "3038.50",
        }
        assert [item["amount"] for item in data["items"]] == ["1100.00", "575.00", "900.00"]
        assert [item["serial_no"] for item in data["items"]] == [1, 2, 3]
        assert data["items"][0]["description"] == "Laptop stand"
        assert data["items"][0]["custom_columns"] == {"unit": "Pcs"}
        assert data["custom_columns_map"] == {"Unit": "unit"}
        assert data["amount_in_words"] == "Three Thousand Thirty Nine Rupees Only"

    def test_calculate_round_off(self, client):
        response = client.post("/api/invoices/calculate", json={
            "items": INVOICE_PAYLOAD["items"],
            "tax": {"tax_type": "cgst_sgst", "cgst_rate": 9, "sgst_rate": 9, "round_off": True},
        })

        assert response.status_code == 200
        totals = response.json()["totals"]
        assert totals["subtotal"] == "2575"
        assert totals["cgst_amount"] == "232"
        assert totals["total"] == "3039"

    def test_calculate_rejects_duplicate_column(self, client):
        response = client.post("/api/invoices/calculate", json={"custom_columns": ["Unit", "unit"]})

        assert response.status_code == 400
        assert "already exists" in response.json()["detail"]

    def test_calculate_with_oversized_rate(self, client):
        response = client.post("/api/invoices/calculate", json={
            "items": [{"description": "bulk order", "quantity": "1", "rate": "1e30"}],
            "tax": {"tax_type": "igst", "igst_rate": 18},
        })

        assert response.status_code == 200
        data = response.json()
        assert data["totals"]["subtotal"] == "1" + "0" * 30 + ".00"
        assert data["amount_in_words"].endswith("Rupees Only")

    def test_calculate_rejects_out_of_range_rate(self, client):
        response = client.post("/api/invoices/calculate", json={"tax": {"igst_rate": 150}})

        assert response.status_code == 422

    @patch("api.routes.invoices.DatabaseService.upsert_customer", new_callable=AsyncMock)
    @patch("api.routes.invoices.DatabaseService.save_invoice", new_callable=AsyncMock)
    def test_create_invoice(self, mock_save, mock_upsert, client):
        mock_upsert.return_value = Customer(id="cust-1", name="Sharma Traders", address="Raipur")
        mock_save.side_effect = _echo_saved

        response = client.post("/api/invoices", json=INVOICE_PAYLOAD)

        assert response.status_code == 201
        data = response.json()
        assert data["id"] == "inv-1"
        assert data["customer_id"] == "cust-1"
        assert data["total"] == "3038.50"
        assert data["ship_to"] == data["bill_to"]
        saved_record = mock_save.call_args.args[0]
        assert saved_record.tax_amount == saved_record.cgst_amount + saved_record.sgst_amount

    @patch("api.routes.invoices.DatabaseService.upsert_customer", new_callable=AsyncMock)
    @patch("api.routes.invoices.DatabaseService.save_invoice", new_callable=AsyncMock)
    def test_create_without_customer(self, mock_save, mock_upsert, client):
        mock_save.side_effect = _echo_saved

        response = client.post("/api/invoices", json={**INVOICE_PAYLOAD, "save_customer": False})

        assert response.status_code == 201
        assert response.json()["customer_id"] is None
        mock_upsert.assert_not_called()

    @patch("api.routes.invoices.DatabaseService.get_invoice", new_callable=AsyncMock)
    def test_get_invoice_not_found(self, mock_get, client):
        mock_get.return_value = None

        response = client.get("/api/invoices/missing")

        assert response.status_code == 404

    @patch("api.routes.invoices.DatabaseService.get_invoice", new_callable=AsyncMock)
    def test_get_invoice(self, mock_get, client, sample_record):
        mock_get.return_value = sample_record.model_copy(update={"id": "inv-1"})

        response = client.get("/api/invoices/inv-1")

        assert response.status_code == 200
        assert response.json()["cgst_amount"] == "231.75"

    @patch("api.routes.invoices.DatabaseService.list_invoices", new_callable=AsyncMock)
    def test_list_invoices(self, mock_list, client, sample_record):
        mock_list.return_value = [sample_record]

        response = client.get("/api/invoices", params={"year": 2024, "month": 3, "status": "draft"})

        assert response.status_code == 200
        assert response.json()["count"] == 1
        kwargs = mock_list.call_args.kwargs
        assert kwargs["year"] == 2024
        assert kwargs["month"] == 3
        assert kwargs["status"] == "draft"

    def test_list_invoices_rejects_bad_month(self, client):
        response = client.get("/api/invoices", params={"month": 13})

        assert response.status_code == 422

    @patch("api.routes.invoices.DatabaseService.upsert_customer", new_callable=AsyncMock)
    @patch("api.routes.invoices.DatabaseService.update_invoice", new_callable=AsyncMock)
    @patch("api.routes.invoices.DatabaseService.get_invoice", new_callable=AsyncMock)
    def test_update_invoice_not_found(self, mock_get, mock_update, mock_upsert, client):
        mock_get.return_value = None

        response = client.put("/api/invoices/missing", json=INVOICE_PAYLOAD)

        assert response.status_code == 404
        mock_upsert.assert_not_called()
        mock_update.assert_not_called()

    @patch("api.routes.invoices.DatabaseService.upsert_customer", new_callable=AsyncMock)
    @patch("api.routes.invoices.DatabaseService.save_invoice", new_callable=AsyncMock)
    def test_rejected_column_writes_nothing(self, mock_save, mock_upsert, client):
        payload = {**INVOICE_PAYLOAD, "custom_columns": ["Unit", "unit"]}

        response = client.post("/api/invoices", json=payload)

        assert response.status_code == 400
        mock_upsert.assert_not_called()
        mock_save.assert_not_called()

    @patch("api.routes.invoices.DatabaseService.upsert_customer", new_callable=AsyncMock)
    @patch("api.routes.invoices.DatabaseService.update_invoice", new_callable=AsyncMock)
    @patch("api.routes.invoices.DatabaseService.get_invoice", new_callable=AsyncMock)
    def test_update_with_rejected_column_writes_nothing(self, mock_get, mock_update, mock_upsert, client, sample_record):
        mock_get.return_value = sample_record
        payload = {**INVOICE_PAYLOAD, "custom_columns": [" ", "Unit"]}

        response = client.put("/api/invoices/inv-1", json=payload)

        assert response.status_code == 400
        mock_upsert.assert_not_called()
        mock_update.assert_not_called()

    @patch("api.routes.invoices.DatabaseService.update_status", new_callable=AsyncMock)
    def test_update_status(self, mock_status, client):
        mock_status.return_value = True

        response = client.patch("/api/invoices/inv-1/status", json={"status": "paid"})

        assert response.status_code == 200
        assert response.json() == {"invoice_id": "inv-1", "status": "paid"}

    def test_update_status_rejects_unknown_status(self, client):
        response = client.patch("/api/invoices/inv-1/status", json={"status": "archived"})

        assert response.status_code == 422

    @patch("api.routes.invoices.DatabaseService.delete_invoice", new_callable=AsyncMock)
    def test_delete_invoice(self, mock_delete, client):
        mock_delete.return_value = False

        assert client.delete("/api/invoices/missing").status_code == 404

        mock_delete.return_value = True
        assert client.delete("/api/invoices/inv-1").json()["deleted"] is True

    @patch("api.routes.invoices.DatabaseService.get_invoice", new_callable=AsyncMock)
    def test_validation_endpoint(self, mock_get, client, sample_record):
        mock_get.return_value = sample_record

        response = client.get("/api/invoices/inv-1/validation")

        assert response.status_code == 200
        assert response.json()["all_valid"] is True

    @patch("api.routes.invoices.DatabaseService.get_invoice", new_callable=AsyncMock)
    def test_invoice_pdf(self, mock_get, client, sample_record):
        mock_get.return_value = sample_record

        response = client.get("/api/invoices/inv-1/pdf")

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert 'filename="Tax_Invoice_GDC-2024-001.pdf"' in response.headers["content-disposition"]
        assert response.content.startswith(b"%PDF")

    @patch("billing.reports.report_service.DatabaseService.list_invoices", new_callable=AsyncMock)
    def test_monthly_sales_csv(self, mock_list, client, sample_record):
        mock_list.return_value = [sample_record]

        response = client.get("/api/reports/monthly-sales", params={"year": 2024, "month": 3, "format": "csv"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "invoice_details_report_2024_03.csv" in response.headers["content-disposition"]
        lines = response.text.strip().split("\n")
        assert lines[0].startswith('"invoice_number"')
        assert '"3038.50"' in lines[1]

    @patch("billing.reports.report_service.DatabaseService.list_invoices", new_callable=AsyncMock)
    def test_hsn_summary_json(self, mock_list, client, sample_record):
        mock_list.return_value = [sample_record]

        response = client.get("/api/reports/hsn-summary", params={"year": 2024})

        assert response.status_code == 200
        rows = response.json()["rows"]
        assert [row["hsn_sac_code"] for row in rows] == ["8473", "8544", "998733"]
        assert rows[0]["total_taxable_value"] == "1100.00"

    @patch("billing.reports.report_service.DatabaseService.available_years", new_callable=AsyncMock)
    def test_report_years(self, mock_years, client):
        mock_years.return_value = [2024, 2023]

        response = client.get("/api/reports/years")

        assert response.json() == {"years": [2024, 2023]}

    @patch("billing.reports.report_service.DatabaseService.list_invoices", new_callable=AsyncMock)
    def test_export_report_to_directory(self, mock_list, client, sample_record, tmp_path, monkeypatch):
        monkeypatch.setattr(settings, "REPORT_EXPORT_DIR", str(tmp_path))
        mock_list.return_value = [sample_record]

        response = client.post("/api/reports/monthly-sales/export", params={"year": 2024, "month": 3})

        assert response.status_code == 200
        assert response.json()["filename"] == "invoice_details_report_2024_03.csv"
        assert (tmp_path / "invoice_details_report_2024_03.csv").read_text(encoding="utf-8").startswith(
            '"invoice_number"'
        )

    def test_export_unknown_report(self, client):
        response = client.post("/api/reports/gst-return/export", params={"year": 2024})

        assert response.status_code == 404
