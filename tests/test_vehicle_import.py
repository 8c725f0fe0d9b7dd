"""Tests for bulk inventory sheet parsing and import planning."""

from __future__ import annotations

import io

import openpyxl
import pytest

from dealerdesk.inventory.importer import (
    TEMPLATE_CSV,
    VehicleCodes,
    clean_integer,
    clean_number,
    normalize_row,
    parse_equipment,
    parse_unit,
    plan_import,
    read_sheet,
)
from dealerdesk.inventory.models import InventoryType


@pytest.fixture(scope="module")
def codes():
    return VehicleCodes()


def _plan(rows, inventory_type=InventoryType.FLEET, existing=(), start=1000, codes=None):
    return plan_import(rows, inventory_type, existing, start, codes=codes, current_year=2025)


def _row(**fields):
    base = {"VIN": "1HGCM82633A004352", "Make": "Honda", "Model": "Accord", "Year": "2019",
            "Price": "$18,500"}
    return {**base, **fields}


class TestCleaning:
    def test_normalize_row_aliases_headers(self):
        row = normalize_row({"Unit ID": " 77 ", "MSRP": "1", "Ext Color": "Red", "Kilometers": 5, None: "x"})
        assert row == {"stock_number": "77", "price": "1", "exterior_color": "Red", "mileage": 5}

    @pytest.mark.parametrize("raw, expected", [
        ("$18,500.50", 18500.5), ("abc", None), ("", None), (12, 12.0), ("1.2.3", 1.2),
    ])
    def test_clean_number(self, raw, expected):
        assert clean_number(raw) == expected

    @pytest.mark.parametrize("raw, expected", [("78,215 km", 78215), ("", None), (12.0, 12)])
    def test_clean_integer(self, raw, expected):
        assert clean_integer(raw) == expected

    def test_parse_unit(self):
        assert parse_unit("2011 TOYOTA SIENNA LE - 1000", 2025) == (2011, "TOYOTA", "SIENNA LE")
        assert parse_unit("1985 TOYOTA SIENNA", 2025) is None
        assert parse_unit("2011 TOYOTA", 2025) is None


class TestVehicleCodes:
    def test_expands_known_codes(self, codes):
        assert codes.expand_make("chev") == "Chevrolet"
        assert codes.expand_model("EQUI") == "Equinox"
        assert codes.expand_model("Civic") == "Civic"

    def test_body_styles(self, codes):
        assert codes.style_for_model("Equinox") == "SUV"
        assert codes.style_for_model("Unknown") is None
        assert codes.style_from_keywords("Grand Caravan SXT") == "Minivan"
        assert codes.style_from_keywords("Model 3") == ""

    def test_missing_table_leaves_codes(self, tmp_path):
        empty = VehicleCodes(tmp_path / "none.yml")
        assert empty.expand_make("CHEV") == "CHEV"


class TestEquipment:
    def test_mines_equipment_text(self, codes):
        info = parse_equipment("A3 40 KOMFORT AWD SEDAN NAV LTHR", "A3", codes)
        assert info.trim == "A3 40 KOMFORT"
        assert info.drivetrain == "AWD"
        assert info.body_style == "Sedan"
        assert info.features == ["Navigation", "Leather Interior"]
        assert info.description.endswith("- Well maintained vehicle with quality features")

    def test_body_style_falls_back_to_model(self, codes):
        assert parse_equipment("LT 4X4", "Equinox", codes).body_style == "SUV"
        assert parse_equipment("LT 4X4", "Equinox", codes).drivetrain == "4WD"

    def test_empty(self, codes):
        assert parse_equipment(None, "A3", codes).trim is None


class TestPlanImport:
    def test_fleet_rows_get_sequential_stock_numbers(self, codes):
        plan = _plan([_row(), _row(VIN="2T1BURHE0JC000001")], start=1042, codes=codes)
        assert [p.vehicle.stock_number for p in plan.planned] == ["F1042", "F1043"]
        first = plan.planned[0].vehicle
        assert first.price == 18500
        assert first.city == "Toronto"
        assert first.province == "ON"
        assert first.mileage == 0
        assert first.body_style == "Sedan"
        assert plan.planned[0].row == 2

    def test_row_errors(self, codes):
        rows = [
            _row(VIN=""),
            _row(Make=""),
            _row(VIN="DUPE1"),
            _row(Price="call"),
            _row(VIN="SEEN1"),
            _row(VIN="seen1"),
        ]
        plan = _plan(rows, existing={"DUPE1"}, codes=codes)
        errors = {r.row: (r.vin, r.error) for r in plan.rejected}
        assert errors == {
            2: ("N/A", "Missing VIN"),
            3: ("1HGCM82633A004352", "Missing make, model, or year"),
            4: ("DUPE1", "VIN already exists"),
            5: ("1HGCM82633A004352", "Invalid price"),
            7: ("SEEN1", "VIN already exists"),
        }
        assert [p.row for p in plan.planned] == [6]

    def test_premiere_unit_rows(self, codes):
        row = {"Unit": "2011 TOYO SIENNA - 1000", "Price": "9,900", "Stock": "P555",
               "Equipment": "LE FWD NAV 8 PASS", "Features": "Bluetooth, Navigation"}
        plan = _plan([row], InventoryType.PREMIERE, codes=codes)
        vehicle = plan.planned[0].vehicle
        assert (vehicle.year, vehicle.make, vehicle.model) == (2011, "Toyota", "SIENNA")
        assert vehicle.stock_number == "P555"
        assert vehicle.vin.startswith("EDCPREMIERE555")
        assert len(vehicle.vin) == len("EDCPREMIERE555") + 4
        assert vehicle.drivetrain == "FWD"
        assert vehicle.body_style == "Van"
        assert vehicle.features == ["Navigation", "Bluetooth"]
        assert vehicle.inventory_type == InventoryType.PREMIERE

    def test_premiere_stock_from_unit(self, codes):
        row = {"Unit": "2020 FORD F-150 XLT - 4321", "Price": "30000", "VIN": "1FTEW1EP0LFA00001"}
        plan = _plan([row], InventoryType.PREMIERE, codes=codes)
        assert plan.planned[0].vehicle.stock_number == "4321"
        assert plan.planned[0].vehicle.body_style == "Truck"

    def test_drivetrain_from_trim(self, codes):
        plan = _plan([_row(Trim="Sport AWD")], codes=codes)
        assert plan.planned[0].vehicle.drivetrain == "AWD"


class TestReadSheet:
    def test_template_parses(self, codes):
        rows = read_sheet(TEMPLATE_CSV.encode(), "template.csv")
        assert len(rows) == 1
        plan = _plan(rows, codes=codes)
        vehicle = plan.planned[0].vehicle
        assert vehicle.vin == "WAUGUCGY2RA065548"
        assert vehicle.mileage == 78215
        assert "Heated Seats" in vehicle.features

    def test_csv_skips_blank_lines_and_bom(self):
        content = "\ufeffVIN,Make\nABC,Kia\n,\n".encode("utf-8")
        assert read_sheet(content, "x.csv") == [{"VIN": "ABC", "Make": "Kia"}]

    def test_xlsx(self):
        wb = openpyxl.Workbook()
        ws = wb.active
        ws.append(["VIN", "Make", "Model", "Year", "Price"])
        ws.append(["ABC123", "Kia", "Soul", 2019, 9000])
        ws.append([None, None, None, None, None])
        buf = io.BytesIO()
        wb.save(buf)
        rows = read_sheet(buf.getvalue(), "stock.XLSX")
        assert rows == [{"VIN": "ABC123", "Make": "Kia", "Model": "Soul", "Year": 2019, "Price": 9000}]

    def test_unreadable_file(self):
        with pytest.raises(ValueError, match="Unable to parse file"):
            read_sheet(b"not a zip", "stock.xlsx")
