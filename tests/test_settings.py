"""Tests for the roaster settings model."""

import pytest

from sr900_mcp.models.settings import RoasterSettings, VoltageSupply


def test_default_subtype():
    """Fahrenheit with average voltage."""
    assert RoasterSettings().to_subtype() == 0x82


def test_celsius_internal_low():
    settings = RoasterSettings(fahrenheit=False, voltage=VoltageSupply.LOW)
    assert settings.to_subtype() == 0x01


def test_all_flags():
    settings = RoasterSettings(
        fahrenheit=True, external_thermistor=True, voltage=VoltageSupply.HIGH
    )
    assert settings.to_subtype() == 0xC4


def test_from_subtype():
    settings = RoasterSettings.from_subtype(0x44)
    assert not settings.fahrenheit
    assert settings.external_thermistor
    assert settings.voltage == VoltageSupply.HIGH


def test_from_subtype_without_voltage():
    with pytest.raises(ValueError):
        RoasterSettings.from_subtype(0x80)


def test_voltage_from_name():
    assert VoltageSupply.from_name("high") == VoltageSupply.HIGH
    assert VoltageSupply.from_name(" Average ") == VoltageSupply.AVERAGE
    with pytest.raises(ValueError):
        VoltageSupply.from_name("medium")


def test_to_dict():
    d = RoasterSettings().to_dict()
    assert d == {
        "temperature_unit": "F",
        "thermistor": "internal",
        "voltage": "AVERAGE",
        "subtype": "0x82",
    }
