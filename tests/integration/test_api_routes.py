"""Integration tests for API routes"""

import pytest
from fastapi.testclient import TestClient
from httpx import AsyncClient, ASGITransport

from api.main import app
from api.dependencies import get_tax_policy_registry
from docpricing.models.database import get_db


@pytest.fixture
def override_registry(tax_registry):
    app.dependency_overrides[get_tax_policy_registry] = lambda: tax_registry
    try:
        yield tax_registry
    finally:
        app.dependency_overrides.pop(get_tax_policy_registry, None)


@pytest.mark.integration
@pytest.mark.api
class TestAPIRoutes:
    """Test API routes"""

    @pytest.fixture
    def client(self, override_registry):
        """Create test client"""
        return TestClient(app)

    def test_root_endpoint(self, client):
        """Test root endpoint"""
        response = client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert "message" in data
        assert "status" in data

    def test_health_endpoint(self, client):
        """Test health check endpoint"""
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_line_total(self, client):
        response = client.post("/api/pricing/line-total", json={"quantity": 3, "unit_price": "33.335"})
        assert response.status_code == 200
        assert response.json() == {"line_total": "100.01"}

    def test_line_total_rejects_zero_quantity(self, client):
        response = client.post("/api/pricing/line-total", json={"quantity": 0, "unit_price": "10"})
        assert response.status_code == 422
        assert response.json()["detail"]["field"] == "quantity"

    def test_totals_with_discount_and_duty_status(self, client, sample_quotation_payload):
        response = client.post("/api/pricing/totals", json={
            "document_type": "quotation",
            "line_items": sample_quotation_payload["line_items"],
            "discount": {"kind": "percentage", "value": "10"},
            "duty_status": "DDP Aden",
        })
        assert response.status_code == 200
        data = response.json()
        assert data["tax_label"] == "Tax (17%)"
        assert data["line_totals"] == ["200.00", "50.00"]
        assert data["totals"] == {
            "subtotal": "250.00",
            "discount_amount": "25.00",
            "net_amount": "225.00",
            "tax_rate": "0.17",
            "tax_amount": "38.25",
            "grand_total": "263.25",
        }

    def test_totals_unknown_duty_status_uses_fallback(self, client):
        response = client.post("/api/pricing/totals", json={
            "document_type": "sales_invoice",
            "line_items": [{"product_ref": "X", "quantity": 1, "unit_price": "100"}],
            "duty_status": "Somewhere else",
        })
        assert response.status_code == 200
        data = response.json()
        assert data["totals"]["tax_amount"] == "0.00"
        assert data["totals"]["grand_total"] == "100.00"
        assert data["tax_label"] == "Tax (0%)"

    def test_totals_fixed_discount_is_clamped(self, client):
        response = client.post("/api/pricing/totals", json={
            "document_type": "quotation",
            "line_items": [{"product_ref": "X", "quantity": 1, "unit_price": "100.00"}],
            "discount": {"kind": "fixed", "value": 150},
            "duty_status": "DDP Sana'a",
        })
        assert response.status_code == 200
        totals = response.json()["totals"]
        assert totals["discount_amount"] == "100.00"
        assert totals["grand_total"] == "0.00"

    def test_totals_invalid_line_reports_index(self, client):
        response = client.post("/api/pricing/totals", json={
            "document_type": "quotation",
            "line_items": [
                {"product_ref": "X", "quantity": 1, "unit_price": "10"},
                {"product_ref": "Y", "quantity": 1, "unit_price": "-1"},
            ],
        })
        assert response.status_code == 422
        detail = response.json()["detail"]
        assert detail["field"] == "unit_price"
        assert detail["line_index"] == 1

    def test_totals_percentage_over_hundred_rejected(self, client):
        response = client.post("/api/pricing/totals", json={
            "document_type": "quotation",
            "line_items": [{"product_ref": "X", "quantity": 1, "unit_price": "10"}],
            "discount": {"kind": "percentage", "value": 120},
        })
        assert response.status_code == 422
        assert response.json()["detail"]["field"] == "discount.value"

    def test_tax_policy_options(self, client):
        response = client.get("/api/pricing/tax-policies/purchase_order")
        assert response.status_code == 200
        data = response.json()
        assert data["fallback_rate"] == "0"
        assert data["fallback_label"] == "Tax (0%)"
        options = {o["duty_status"]: o for o in data["options"]}
        assert options["CIF Aden Freezone"]["tax_rate"] == "0"
        assert options["DDP Sana'a"]["label"] == "Customs Duty & Sales Tax (21%)"
        assert options["CIF Aden Freezone"]["label"] == "Tax (0%)"

    def test_quotation_tax_labels(self, client):
        data = client.get("/api/pricing/tax-policies/quotation").json()
        options = {o["duty_status"]: o for o in data["options"]}
        assert options["DDP Aden"]["label"] == "Tax (17%)"

    def test_line_total_out_of_range_is_rejected(self, client):
        response = client.post("/api/pricing/line-total", json={"quantity": 1, "unit_price": "1e30"})
        assert response.status_code == 422
        assert response.json()["detail"]["field"] == "unit_price"

    def test_totals_price_finer_than_storage_is_rejected(self, client):
        response = client.post("/api/pricing/totals", json={
            "document_type": "quotation",
            "line_items": [{"product_ref": "X", "quantity": 1000, "unit_price": "0.00005"}],
        })
        assert response.status_code == 422
        detail = response.json()["detail"]
        assert detail["field"] == "unit_price"
        assert detail["line_index"] == 0


@pytest.fixture
async def api_client(db_session, override_registry):
    """Async client sharing the test database session"""
    async def _get_test_db():
        yield db_session

    app.dependency_overrides[get_db] = _get_test_db
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            yield client
    finally:
        app.dependency_overrides.pop(get_db, None)


@pytest.mark.integration
@pytest.mark.asyncio
@pytest.mark.api
class TestDocumentRoutes:
    """Test document persistence routes"""

    async def test_create_quotation(self, api_client, sample_quotation_payload):
        response = await api_client.post("/api/documents", json=sample_quotation_payload)
        assert response.status_code == 201
        data = response.json()
        assert data["id"]
        assert data["header"]["document_number"] == "QT-00001"
        assert data["header"]["discount_kind"] == "percentage"
        assert data["totals"]["discount_amount"] == "25.00"
        assert data["totals"]["grand_total"] == "263.25"

    async def test_create_ignores_client_number(self, api_client, sample_quotation_payload):
        sample_quotation_payload["header"]["document_number"] = "QT-99999"
        response = await api_client.post("/api/documents", json=sample_quotation_payload)
        assert response.json()["header"]["document_number"] == "QT-00001"

    async def test_create_rejects_blank_product(self, api_client, sample_quotation_payload):
        sample_quotation_payload["line_items"][1]["product_ref"] = ""
        response = await api_client.post("/api/documents", json=sample_quotation_payload)
        assert response.status_code == 422
        assert response.json()["detail"]["line_index"] == 1

    async def test_create_rejects_empty_document(self, api_client, sample_quotation_payload):
        sample_quotation_payload["line_items"] = []
        response = await api_client.post("/api/documents", json=sample_quotation_payload)
        assert response.status_code == 422
        assert response.json()["detail"]["field"] == "line_items"

    async def test_purchase_order_rejects_discount(self, api_client, sample_quotation_payload):
        sample_quotation_payload["document_type"] = "purchase_order"
        response = await api_client.post("/api/documents", json=sample_quotation_payload)
        assert response.status_code == 422
        assert response.json()["detail"]["field"] == "discount"

    async def test_credit_invoice_requires_payment_terms(self, api_client, sample_quotation_payload):
        sample_quotation_payload["document_type"] = "sales_invoice"
        sample_quotation_payload["header"]["invoice_type"] = "credit"
        response = await api_client.post("/api/documents", json=sample_quotation_payload)
        assert response.status_code == 422
        assert response.json()["detail"]["field"] == "payment_terms"

    async def test_get_document(self, api_client, sample_quotation_payload):
        created = (await api_client.post("/api/documents", json=sample_quotation_payload)).json()

        response = await api_client.get(f"/api/documents/{created['id']}")
        assert response.status_code == 200
        data = response.json()
        assert data["totals"] == created["totals"]
        assert [line["line_total"] for line in data["line_items"]] == ["200.00", "50.00"]

    async def test_get_missing_document(self, api_client):
        response = await api_client.get("/api/documents/missing")
        assert response.status_code == 404

    async def test_update_document_recomputes(self, api_client, sample_quotation_payload):
        created = (await api_client.post("/api/documents", json=sample_quotation_payload)).json()

        response = await api_client.put(f"/api/documents/{created['id']}", json={
            "header": {**sample_quotation_payload["header"], "discount_kind": None, "discount_value": None},
            "line_items": [{"product_ref": "ITEM-A", "quantity": 3, "unit_price": "100.00"}],
        })
        assert response.status_code == 200
        data = response.json()
        assert data["id"] == created["id"]
        assert data["header"]["document_number"] == "QT-00001"
        assert data["totals"]["discount_amount"] is None
        assert data["totals"]["grand_total"] == "351.00"

    async def test_list_documents(self, api_client, sample_quotation_payload):
        await api_client.post("/api/documents", json=sample_quotation_payload)
        await api_client.post("/api/documents", json=sample_quotation_payload)

        response = await api_client.get("/api/documents", params={"document_type": "quotation"})
        assert response.status_code == 200
        assert response.json()["count"] == 2

        response = await api_client.get("/api/documents", params={"document_type": "sales_invoice"})
        assert response.json()["count"] == 0

    async def test_update_status(self, api_client, sample_quotation_payload):
        created = (await api_client.post("/api/documents", json=sample_quotation_payload)).json()

        response = await api_client.patch(f"/api/documents/{created['id']}/status", json={"status": "sent"})
        assert response.status_code == 200

        response = await api_client.patch(f"/api/documents/{created['id']}/status", json={"status": "paid"})
        assert response.status_code == 422

        response = await api_client.patch("/api/documents/missing/status", json={"status": "sent"})
        assert response.status_code == 404

        data = (await api_client.get(f"/api/documents/{created['id']}")).json()
        assert data["header"]["status"] == "sent"

    async def test_convert_to_purchase_order_drops_discount(self, api_client, sample_quotation_payload):
        created = (await api_client.post("/api/documents", json=sample_quotation_payload)).json()

        response = await api_client.post(f"/api/documents/{created['id']}/convert", json={
            "document_type": "purchase_order",
            "counterparty_ref": "SUP-001",
        })
        assert response.status_code == 201
        data = response.json()
        assert data["document_type"] == "purchase_order"
        assert data["header"]["document_number"] == "PO-00001"
        assert data["header"]["counterparty_ref"] == "SUP-001"
        assert data["header"]["source_document_id"] == created["id"]
        assert data["header"]["duty_status"] == "DDP Aden"
        assert data["totals"]["discount_amount"] is None
        assert data["totals"]["grand_total"] == "292.50"

    async def test_convert_to_sales_invoice_keeps_discount(self, api_client, sample_quotation_payload):
        created = (await api_client.post("/api/documents", json=sample_quotation_payload)).json()

        response = await api_client.post(f"/api/documents/{created['id']}/convert", json={
            "document_type": "sales_invoice",
        })
        assert response.status_code == 201
        data = response.json()
        assert data["header"]["document_number"] == "INV-00001"
        assert data["header"]["status"] == "draft"
        assert data["totals"]["grand_total"] == "263.25"

    async def test_convert_rejects_quotation_target(self, api_client, sample_quotation_payload):
        created = (await api_client.post("/api/documents", json=sample_quotation_payload)).json()

        response = await api_client.post(f"/api/documents/{created['id']}/convert", json={
            "document_type": "quotation",
        })
        assert response.status_code == 400

    async def _create_purchase_order(self, api_client, sample_quotation_payload):
        payload = dict(sample_quotation_payload)
        payload["document_type"] = "purchase_order"
        payload["header"] = {
            "counterparty_ref": "SUP-001",
            "status": "draft",
            "duty_status": "DDP Aden",
        }
        response = await api_client.post("/api/documents", json=payload)
        assert response.status_code == 201
        return response.json()

    async def test_convert_purchase_order_to_sales_invoice(self, api_client, sample_quotation_payload):
        po = await self._create_purchase_order(api_client, sample_quotation_payload)

        response = await api_client.post(f"/api/documents/{po['id']}/convert", json={
            "document_type": "sales_invoice",
            "counterparty_ref": "CUST-002",
        })
        assert response.status_code == 201
        data = response.json()
        assert data["document_type"] == "sales_invoice"
        assert data["header"]["document_number"] == "INV-00001"
        assert data["header"]["counterparty_ref"] == "CUST-002"
        assert data["header"]["source_document_id"] == po["id"]
        assert [line["product_ref"] for line in data["line_items"]] == ["ITEM-A", "ITEM-B"]
        assert data["totals"]["grand_total"] == "292.50"

    async def test_convert_purchase_order_requires_customer(self, api_client, sample_quotation_payload):
        po = await self._create_purchase_order(api_client, sample_quotation_payload)

        response = await api_client.post(f"/api/documents/{po['id']}/convert", json={
            "document_type": "sales_invoice",
        })
        assert response.status_code == 422
        assert response.json()["detail"]["field"] == "counterparty_ref"

    async def test_convert_rejects_purchase_order_to_quotation(self, api_client, sample_quotation_payload):
        po = await self._create_purchase_order(api_client, sample_quotation_payload)

        response = await api_client.post(f"/api/documents/{po['id']}/convert", json={
            "document_type": "quotation",
        })
        assert response.status_code == 400
