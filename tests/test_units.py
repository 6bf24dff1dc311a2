import os
import sys
from decimal import Decimal

import pytest

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from invoice_pricing.engine.units import (
    ConvertibleUnit,
    CustomUnit,
    NoUnit,
    SimpleUnit,
    default_selection,
    parse_unit,
    selection_value,
    unit_name,
)


@pytest.mark.parametrize("raw", [None, "", "  ", "NONE", "none", 42])
def test_empty_values_mean_no_unit(raw):
    assert parse_unit(raw) == NoUnit()


def test_plain_name_is_simple_unit():
    assert parse_unit(" Box ") == SimpleUnit("Box")


def test_custom_selection_carries_label():
    unit = parse_unit("Custom", custom_label=" Tray ")
    assert unit == CustomUnit("Tray")
    assert unit.label == "Tray"
    assert CustomUnit().label == "Custom"


def test_legacy_string_without_factor_is_degenerate():
    unit = parse_unit("Piece / Packet")
    assert unit == ConvertibleUnit("Piece", "Packet", None)
    assert unit.degenerate


def test_legacy_string_with_factor():
    unit = parse_unit("Piece / Packet", conversion_factor="10")
    assert unit.conversion_factor == Decimal("10")
    assert not unit.degenerate


def test_mapping_with_both_units():
    unit = parse_unit({"base": "Box", "secondary": "Carton", "conversionFactor": 12})
    assert unit == ConvertibleUnit("Box", "Carton", Decimal("12"))
    assert unit.label == "Box / Carton"


@pytest.mark.parametrize("secondary", ["", "None", None])
def test_mapping_without_secondary_is_simple(secondary):
    assert parse_unit({"base": "Box", "secondary": secondary}) == SimpleUnit("Box")


def test_mapping_without_units():
    assert parse_unit({"base": "", "secondary": ""}) == NoUnit()


@pytest.mark.parametrize("factor", ["0", "-2", "abc"])
def test_unusable_factor_is_degenerate(factor):
    unit = parse_unit({"base": "Box", "secondary": "Carton", "conversion_factor": factor})
    assert unit.degenerate


def test_variant_passes_through():
    unit = SimpleUnit("Kg")
    assert parse_unit(unit) is unit


def test_default_selection_prefers_secondary():
    assert default_selection(ConvertibleUnit("Box", "Carton", Decimal("12"))) == SimpleUnit("Carton")
    assert default_selection(SimpleUnit("Kg")) == SimpleUnit("Kg")
    assert default_selection(CustomUnit("Tray")) == NoUnit()


def test_selection_values():
    assert selection_value(NoUnit()) == "NONE"
    assert selection_value(SimpleUnit("Box")) == "Box"
    assert selection_value(CustomUnit("Tray")) == "Custom"


def test_only_simple_units_have_a_name():
    assert unit_name(SimpleUnit("Box")) == "Box"
    assert unit_name(CustomUnit("Box")) is None
    assert unit_name(NoUnit()) is None
