"""
Unit representation for catalog items and invoice lines.

Catalog records describe units either as a mapping
({base, secondary, conversionFactor}) or as a legacy "Piece / Packet"
string. Both are resolved here, once, into one of four variants so the
pricing code never has to inspect raw records.

One secondary unit equals `conversion_factor` base units
(base "Box", secondary "Carton", factor 12 -> 1 Carton = 12 Boxes).
"""
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Union

from .money import ZERO, parse_decimal

NONE_UNIT = "NONE"
CUSTOM_UNIT = "Custom"
LEGACY_SEPARATOR = " / "


@dataclass(frozen=True)
class NoUnit:
    """No unit selected."""

    @property
    def label(self) -> str:
        return NONE_UNIT


@dataclass(frozen=True)
class SimpleUnit:
    """A single named unit, e.g. "Box"."""
    name: str

    @property
    def label(self) -> str:
        return self.name


@dataclass(frozen=True)
class ConvertibleUnit:
    """A base unit paired with a secondary unit."""
    base: str
    secondary: str
    conversion_factor: Optional[Decimal] = None

    @property
    def degenerate(self) -> bool:
        """True when the factor cannot be used for conversion."""
        return self.conversion_factor is None or self.conversion_factor <= ZERO

    @property
    def label(self) -> str:
        return f"{self.base}{LEGACY_SEPARATOR}{self.secondary}"


@dataclass(frozen=True)
class CustomUnit:
    """A free-text unit typed on the line."""
    text: str = ""

    @property
    def label(self) -> str:
        return self.text or CUSTOM_UNIT


Unit = Union[NoUnit, SimpleUnit, ConvertibleUnit, CustomUnit]
UNIT_TYPES = (NoUnit, SimpleUnit, ConvertibleUnit, CustomUnit)


def _clean_name(value) -> str:
    if value is None:
        return ""
    text = str(value).strip()
    if text.upper() == NONE_UNIT:
        return ""
    return text


def parse_unit(raw, custom_label: Optional[str] = None, conversion_factor=None) -> Unit:
    """
    Resolve a raw unit value into a Unit variant.

    Accepts an existing variant, None/""/"NONE", a unit name, "Custom"
    (with `custom_label`), a legacy "Base / Secondary" string (factor from
    `conversion_factor`, unknown otherwise) or a mapping with base,
    secondary and conversionFactor keys.
    """
    if isinstance(raw, UNIT_TYPES):
        return raw

    if isinstance(raw, Mapping):
        base = _clean_name(raw.get('base'))
        secondary = _clean_name(raw.get('secondary'))
        factor = raw.get('conversionFactor', raw.get('conversion_factor', conversion_factor))
        if base and secondary:
            return ConvertibleUnit(base, secondary, parse_decimal(factor))
        if base or secondary:
            return SimpleUnit(base or secondary)
        return NoUnit()

    if isinstance(raw, str):
        text = raw.strip()
        if not text or text.upper() == NONE_UNIT:
            return NoUnit()
        if text == CUSTOM_UNIT:
            return CustomUnit((custom_label or "").strip())
        if LEGACY_SEPARATOR in text:
            base, _, secondary = text.partition(LEGACY_SEPARATOR)
            base, secondary = _clean_name(base), _clean_name(secondary)
            if base and secondary:
                return ConvertibleUnit(base, secondary, parse_decimal(conversion_factor))
            return SimpleUnit(base or secondary) if (base or secondary) else NoUnit()
        return SimpleUnit(text)

    return NoUnit()


def unit_name(unit: Unit) -> Optional[str]:
    """Name of a selected unit, or None for NONE/custom selections."""
    if isinstance(unit, SimpleUnit):
        return unit.name
    return None


def default_selection(unit: Unit) -> Unit:
    """
    Unit a line starts with after picking a catalog item.

    Secondary wins over base (a "Carton" item is sold by the carton
    unless the user switches to boxes).
    """
    if isinstance(unit, ConvertibleUnit):
        return SimpleUnit(unit.secondary)
    if isinstance(unit, SimpleUnit):
        return unit
    return NoUnit()


def selection_value(unit: Unit) -> str:
    """Value stored in a document's `unit` field."""
    if isinstance(unit, CustomUnit):
        return CUSTOM_UNIT
    return unit.label
