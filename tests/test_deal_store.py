"""Tests for the in-memory deal store and deal listing."""

from __future__ import annotations

import pytest

from dealerdesk.core.errors import RecordNotFoundError, UnknownTableError, VersionConflictError
from dealerdesk.deals.models import DealTable, primary_customer, vehicle_label
from dealerdesk.deals.store import DealStore


@pytest.fixture
def store():
    return DealStore()


def _seed(store: DealStore, deal_id: str, **customer) -> None:
    store.insert(DealTable.CUSTOMERS, deal_id, {"id": deal_id, **customer})


class TestInsertAndGet:
    def test_allocate_is_monotonic(self, store):
        assert store.allocate_deal_id() == "1"
        assert store.allocate_deal_id() == "2"

    def test_insert_starts_at_version_one(self, store):
        record = store.insert("edc_deals_worksheet", "5", {"purchase_price": 1000})
        assert record.table == DealTable.WORKSHEET
        assert record.version == 1

    def test_unknown_table(self, store):
        with pytest.raises(UnknownTableError, match="not allowed"):
            store.insert("users", "5", {})

    def test_get_deal_bundles_tables(self, store):
        _seed(store, "5", firstname="Ada")
        store.insert(DealTable.VEHICLES, "5", {"vin": "A"})
        store.insert(DealTable.VEHICLES, "5", {"vin": "B"})
        store.insert(DealTable.DELIVERY, "5", {"salesperson": "Sam"})
        bundle = store.get_deal("5")
        assert bundle.customer.data["firstname"] == "Ada"
        assert [v.data["vin"] for v in bundle.vehicles] == ["A", "B"]
        assert bundle.delivery.data["salesperson"] == "Sam"
        assert bundle.worksheet is None

    def test_get_missing_deal(self, store):
        assert store.get_deal("404") is None


class TestUpdate:
    def test_merges_and_bumps_version(self, store):
        store.insert(DealTable.WORKSHEET, "5", {"purchase_price": 1000, "tax_code": "HST"})
        rows = store.update(DealTable.WORKSHEET, "5", {"purchase_price": 1200})
        assert rows[0].version == 2
        assert rows[0].data == {"purchase_price": 1200, "tax_code": "HST"}

    def test_missing_row(self, store):
        with pytest.raises(RecordNotFoundError, match="No row found with id=9"):
            store.update(DealTable.WORKSHEET, "9", {"a": 1})

    def test_expected_version_matches(self, store):
        store.insert(DealTable.DELIVERY, "5", {})
        rows = store.update(DealTable.DELIVERY, "5", {"a": 1}, expected_version=1)
        assert rows[0].version == 2

    def test_stale_version_conflicts(self, store):
        store.insert(DealTable.DELIVERY, "5", {"salesperson": "Sam"})
        store.update(DealTable.DELIVERY, "5", {"salesperson": "Kim"}, expected_version=1)
        with pytest.raises(VersionConflictError) as exc_info:
            store.update(DealTable.DELIVERY, "5", {"salesperson": "Lee"}, expected_version=1)
        assert exc_info.value.expected == 1
        assert exc_info.value.actual == 2
        assert store.get_deal("5").delivery.data["salesperson"] == "Kim"

    def test_without_expected_version_last_write_wins(self, store):
        store.insert(DealTable.DELIVERY, "5", {"salesperson": "Sam"})
        store.update(DealTable.DELIVERY, "5", {"salesperson": "Kim"})
        store.update(DealTable.DELIVERY, "5", {"salesperson": "Lee"})
        assert store.get_deal("5").delivery.data["salesperson"] == "Lee"

    def test_updates_every_vehicle_row(self, store):
        store.insert(DealTable.VEHICLES, "5", {"vin": "A"})
        store.insert(DealTable.VEHICLES, "5", {"vin": "B"})
        rows = store.update(DealTable.VEHICLES, "5", {"status": "Sold"})
        assert len(rows) == 2
        assert all(r.data["status"] == "Sold" for r in rows)


class TestDelete:
    def test_counts_per_table(self, store):
        _seed(store, "5")
        store.insert(DealTable.VEHICLES, "5", {})
        store.insert(DealTable.VEHICLES, "5", {})
        _seed(store, "6")
        counts = store.delete_deal("5")
        assert counts["edc_deals_customers"] == 1
        assert counts["edc_deals_vehicles"] == 2
        assert counts["edc_deals_worksheet"] == 0
        assert store.get_deal("5") is None
        assert store.get_deal("6") is not None


class TestListDeals:
    def test_summary_row(self, store):
        _seed(store, "5", firstname="Ada", lastname="Lovelace", dealtype="Finance",
              dealdate="2026-01-15")
        store.insert(DealTable.VEHICLES, "5", {
            "selected_stock_number": "S100",
            "selected_year": 2020,
            "selected_make": "Honda",
            "selected_model": "Civic",
            "selected_trim": "EX",
        })
        store.insert(DealTable.WORKSHEET, "5", {"deal_state": "Pending"})
        store.insert(DealTable.DELIVERY, "5", {"salesperson": "Sam", "deal_state": "Closed"})

        [row] = store.list_deals()
        assert row.deal_id == "5"
        assert row.primary_customer == "Ada Lovelace"
        assert row.vehicle == "S100 - 2020 - Honda - Civic - EX"
        assert row.type == "Finance"
        assert row.state == "Pending"
        assert row.deal_date == "2026-01-15"
        assert row.primary_salesperson == "Sam"
        assert row.worksheet == {"deal_state": "Pending"}

    def test_newest_customer_first(self, store):
        _seed(store, "1")
        _seed(store, "2")
        assert [row.deal_id for row in store.list_deals()] == ["2", "1"]

    def test_customer_state_wins(self, store):
        _seed(store, "1", dealState=" Open ")
        store.insert(DealTable.DELIVERY, "1", {"deal_state": "Closed"})
        assert store.list_deals()[0].state == "Open"

    def test_deal_without_customer_is_not_listed(self, store):
        store.insert(DealTable.WORKSHEET, "1", {})
        assert store.list_deals() == []


class TestLabels:
    def test_vehicle_label_falls_back_to_vin(self):
        assert vehicle_label({"selected_vin": "1HGCM82633A004352"}) == "1HGCM82633A004352"

    def test_vehicle_label_plain_fields(self):
        assert vehicle_label({"year": 2018, "make": "Mazda", "model": "3"}) == "2018 - Mazda - 3"

    def test_primary_customer_fallbacks(self):
        assert primary_customer({"firstname": "Ada"}) == "Ada"
        assert primary_customer({"displayname": "Ada L."}) == "Ada L."
        assert primary_customer({"legalname": "Acme Corp"}) == "Acme Corp"
        assert primary_customer({}) == ""
