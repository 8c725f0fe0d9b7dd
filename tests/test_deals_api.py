"""Tests for the deals API router."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from dealerdesk.bridge.models import WebhookOperation
from dealerdesk.deals.store import DealStore
from dealerdesk.web.app import create_app

from conftest import ScriptedWebhookAdapter, make_registry


@pytest.fixture
def adapter():
    return ScriptedWebhookAdapter()


@pytest.fixture
def store():
    return DealStore()


@pytest.fixture
def client(store, adapter):
    return TestClient(create_app(deal_store=store, adapter_registry=make_registry(adapter)))


def _insert(client, table, data, deal_id="1"):
    return client.post("/api/deals/insert", json={"table": table, "deal_id": deal_id, "data": data})


class TestCrud:
    def test_allocate(self, client):
        assert client.post("/api/deals").json() == {"deal_id": "1"}
        assert client.post("/api/deals").json() == {"deal_id": "2"}

    def test_insert_and_get(self, client):
        resp = _insert(client, "edc_deals_customers", {"firstname": "Ada"})
        assert resp.status_code == 200
        assert resp.json()["inserted"] == 1
        deal = client.get("/api/deals/1").json()
        assert deal["customer"]["data"] == {"firstname": "Ada"}
        assert deal["vehicles"] == []

    def test_insert_takes_id_from_data(self, client):
        resp = client.post("/api/deals/insert", json={
            "table": "edc_deals_delivery", "data": {"id": 7, "salesperson": "Sam"},
        })
        assert resp.status_code == 200
        assert client.get("/api/deals/7").status_code == 200

    def test_insert_requires_id(self, client):
        resp = client.post("/api/deals/insert", json={"table": "edc_deals_delivery", "data": {}})
        assert resp.status_code == 400

    def test_table_not_allowed(self, client):
        resp = _insert(client, "users", {"a": 1})
        assert resp.status_code == 400
        assert "not allowed" in resp.json()["detail"]

    def test_get_missing(self, client):
        assert client.get("/api/deals/99").status_code == 404

    def test_update(self, client):
        _insert(client, "edc_deals_delivery", {"salesperson": "Sam"})
        resp = client.post("/api/deals/update", json={
            "table": "edc_deals_delivery", "id": 1, "data": {"salesperson": "Kim"},
        })
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "updated": 1, "version": 2}

    def test_update_missing_row(self, client):
        resp = client.post("/api/deals/update", json={
            "table": "edc_deals_delivery", "id": "9", "data": {"a": 1},
        })
        assert resp.status_code == 404

    def test_update_conflict(self, client):
        _insert(client, "edc_deals_delivery", {"salesperson": "Sam"})
        client.post("/api/deals/update", json={
            "table": "edc_deals_delivery", "id": "1", "data": {"salesperson": "Kim"},
        })
        resp = client.post("/api/deals/update", json={
            "table": "edc_deals_delivery",
            "id": "1",
            "data": {"salesperson": "Lee"},
            "expected_version": 1,
        })
        assert resp.status_code == 409
        assert resp.json()["detail"]["actual"] == 2

    def test_delete(self, client):
        _insert(client, "edc_deals_customers", {})
        _insert(client, "edc_deals_vehicles", {})
        resp = client.post("/api/deals/delete", json={"dealId": "1"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["deleted"] == "1"
        assert body["details"]["edc_deals_vehicles"] == 1
        assert client.get("/api/deals/1").status_code == 404

    def test_list(self, client):
        _insert(client, "edc_deals_customers", {"firstname": "Ada", "lastname": "Lovelace"})
        _insert(client, "edc_deals_vehicles", {"vin": "1HGCM82633A004352"})
        deals = client.get("/api/deals").json()["deals"]
        assert len(deals) == 1
        assert deals[0]["primary_customer"] == "Ada Lovelace"
        assert deals[0]["vehicle"] == "1HGCM82633A004352"


class TestWorksheetSave:
    def test_first_save_inserts_and_forwards(self, client, adapter, store):
        resp = client.post("/api/deals/1/worksheet/save", json={
            "inputs": {"purchase_price": 1000, "license_fee": 59},
        })
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "ok"
        assert body["version"] == 1
        assert body["totals"]["total_balance_due"] == 1189

        [sent] = adapter.sent
        assert sent.operation == WebhookOperation.SAVE_WORKSHEET
        assert sent.resource == "worksheet:1"
        assert sent.payload["total_tax"] == 130
        assert store.get_deal("1").worksheet.data["total_balance_due"] == 1189

    def test_second_save_updates(self, client, store):
        client.post("/api/deals/1/worksheet/save", json={"inputs": {"purchase_price": 1000}})
        resp = client.post("/api/deals/1/worksheet/save", json={
            "inputs": {"purchase_price": 2000}, "expected_version": 1,
        })
        assert resp.json()["version"] == 2
        assert store.get_deal("1").worksheet.data["purchase_price"] == 2000

    def test_conflicting_save(self, client):
        client.post("/api/deals/1/worksheet/save", json={"inputs": {"purchase_price": 1000}})
        client.post("/api/deals/1/worksheet/save", json={"inputs": {"purchase_price": 1100}})
        resp = client.post("/api/deals/1/worksheet/save", json={
            "inputs": {"purchase_price": 1200}, "expected_version": 1,
        })
        assert resp.status_code == 409

    def test_price_from_vehicle(self, client, adapter):
        _insert(client, "edc_deals_vehicles", {"sale_price": "15,000"})
        resp = client.post("/api/deals/1/worksheet/save", json={
            "inputs": {"tax_code": "Exempt"},
        })
        assert resp.json()["totals"]["subtotal"] == 15000
        assert adapter.sent[0].payload["purchase_price"] == 15000

    def test_webhook_without_done_is_error(self, store):
        adapter = ScriptedWebhookAdapter({WebhookOperation.SAVE_WORKSHEET: (200, "")})
        client = TestClient(create_app(deal_store=store, adapter_registry=make_registry(adapter)))
        resp = client.post("/api/deals/1/worksheet/save", json={"inputs": {"purchase_price": 1}})
        assert resp.status_code == 502
        assert resp.json()["status"] == "error"
        assert resp.json()["message"] == "Webhook did not return done"
        # the record itself is kept
        assert store.get_deal("1").worksheet is not None
