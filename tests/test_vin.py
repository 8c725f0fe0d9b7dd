"""Tests for VIN validation and decode normalization."""

from __future__ import annotations

import pytest

from dealerdesk.core.errors import MalformedResponseError
from dealerdesk.inventory.vin import (
    DecodedVehicle,
    map_body_style,
    map_drive,
    normalize_vin_decode,
    validate_vin,
)

DECODE_REPLY = [
    {
        "decode": [
            {"label": "Make", "value": "Ford"},
            {"label": "Model", "value": "F-150"},
            {"label": "Model Year", "value": "2019"},
            {"label": "Body", "value": "Pickup"},
            {"label": "Trim", "value": "XLT"},
            {"label": "Drive", "value": "4x4"},
            {"label": "Engine Cylinders", "value": 6},
            {"label": "Fuel Type - Primary", "value": "Gasoline"},
            {"label": "Transmission", "value": "Automatic"},
            {"label": "Number of Doors", "value": 4},
            {"label": "Engine Model", "value": "EcoBoost"},
        ],
        "Stock Number (Unit ID)": "A1234",
    }
]


class TestValidateVin:
    def test_trims(self):
        assert validate_vin("  1FTEW1EP5KFA00001 ") == "1FTEW1EP5KFA00001"

    @pytest.mark.parametrize("vin", [None, "", "1234", "  12  "])
    def test_too_short(self, vin):
        with pytest.raises(ValueError, match="Invalid VIN"):
            validate_vin(vin)


class TestNormalizeVinDecode:
    def test_labelled_entries(self):
        vehicle = normalize_vin_decode(DECODE_REPLY)
        assert vehicle == DecodedVehicle(
            make="Ford",
            model="F-150",
            year=2019,
            body_style="Truck",
            trim="XLT",
            drivetrain="4WD",
            cylinders="6",
            fuel_type="Gasoline",
            transmission="Automatic",
            doors="4",
            engine="EcoBoost",
            stock_number="A1234",
        )

    def test_flat_key_fallbacks(self):
        vehicle = normalize_vin_decode({
            "Make": "Toyota",
            " Model ": "Corolla",
            "year": "2021",
            "Body Style": "4dr Sedan",
            "Drivetrain": "FWD",
        })
        assert vehicle.make == "Toyota"
        assert vehicle.model == "Corolla"
        assert vehicle.year == 2021
        assert vehicle.body_style == "Sedan"
        assert vehicle.drivetrain == "FWD"

    def test_label_beats_flat_key(self):
        vehicle = normalize_vin_decode({
            "decode": [{"label": "Make", "value": "Honda"}],
            "make": "Acura",
        })
        assert vehicle.make == "Honda"

    def test_empty_label_value_falls_back(self):
        vehicle = normalize_vin_decode({
            "decode": [{"label": "Model", "value": ""}],
            "model": "Civic",
        })
        assert vehicle.model == "Civic"

    def test_bad_year(self):
        assert normalize_vin_decode({"year": "n/a"}).year is None

    def test_wrapped_reply(self):
        vehicle = normalize_vin_decode({"body": '[{"make": "Kia"}]'})
        assert vehicle.make == "Kia"

    def test_malformed_reply(self):
        with pytest.raises(MalformedResponseError):
            normalize_vin_decode("done")


class TestMappings:
    @pytest.mark.parametrize("raw,expected", [
        ("Pickup", "Truck"),
        ("Sport Utility Vehicle (SUV)", "SUV"),
        ("Coupe", "Coupe"),
        ("Hatchback/Liftback", "Hatchback"),
        ("Wagon", "Wagon"),
        ("Minivan", "Van"),
        ("Convertible/Cabriolet", "Convertible"),
        ("Sedan/Saloon", "Sedan"),
        ("Bus", ""),
        (None, ""),
    ])
    def test_body_style(self, raw, expected):
        assert map_body_style(raw) == expected

    @pytest.mark.parametrize("raw,expected", [
        ("4WD/4-Wheel Drive/4x4", "4WD"),
        ("4x4", "4WD"),
        ("AWD/All-Wheel Drive", "AWD"),
        ("RWD/Rear-Wheel Drive", "RWD"),
        ("FWD/Front-Wheel Drive", "FWD"),
        ("", ""),
    ])
    def test_drive(self, raw, expected):
        assert map_drive(raw) == expected
