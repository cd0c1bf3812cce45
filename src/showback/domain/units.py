# src/showback/domain/units.py
"""
Units Converter - SI and Binary Prefix Arithmetic

This module normalizes measurement units so quantities expressed with
different prefixes (KB, MiB, GHz, ...) can be compared and combined.
Distances between prefixes are exact rationals, so repeated conversions
inside one prefix family never accumulate rounding error.

Files that USE this module:
- showback.domain.rating (normalizes measures to the unit a rate is priced in)
- showback.shared.validators (checks unit strings from configuration files)
- tests.test_units (unit tests)

Files that this module USES:
- showback.domain.errors (UnitConversionError)
"""
from __future__ import annotations

from enum import Enum
from fractions import Fraction
from numbers import Number
from types import MappingProxyType
from typing import Mapping, Optional, Union

from showback.domain.errors import UnitConversionError


class PrefixFamily(str, Enum):
    SI = "SI"
    BINARY = "BINARY"
    ALL = "ALL"


SYMBOLS = ("b", "B", "Hz", "bps", "Bps")

SI_PREFIX: Mapping[str, int] = MappingProxyType({
    "": 1,
    "K": 1000,
    "M": 1000 ** 2,
    "G": 1000 ** 3,
    "T": 1000 ** 4,
    "P": 1000 ** 5,
    "E": 1000 ** 6,
    "Z": 1000 ** 7,
    "Y": 1000 ** 8,
})

BINARY_PREFIX: Mapping[str, int] = MappingProxyType({
    "": 1,
    "Ki": 1024,
    "Mi": 1024 ** 2,
    "Gi": 1024 ** 3,
    "Ti": 1024 ** 4,
    "Pi": 1024 ** 5,
    "Ei": 1024 ** 6,
    "Zi": 1024 ** 7,
    "Yi": 1024 ** 8,
})

ALL_PREFIXES: Mapping[str, int] = MappingProxyType({**SI_PREFIX, **BINARY_PREFIX})

_TABLES = {
    PrefixFamily.SI: SI_PREFIX,
    PrefixFamily.BINARY: BINARY_PREFIX,
    PrefixFamily.ALL: ALL_PREFIXES,
}

FamilyLike = Union[PrefixFamily, str]


def resolve_family(family: FamilyLike) -> PrefixFamily:
    """
    Resolve a prefix family from the enum or one of its names.

    Accepts "SI", "BINARY", "ALL" as well as the long forms
    "SI_PREFIX", "BINARY_PREFIX" and "ALL_PREFIXES" (case-insensitive).

    Raises:
        UnitConversionError: If the name is not a known family
    """
    if isinstance(family, PrefixFamily):
        return family
    name = str(family).upper()
    for suffix in ("_PREFIXES", "_PREFIX"):
        if name.endswith(suffix):
            name = name[: -len(suffix)]
            break
    try:
        return PrefixFamily(name)
    except ValueError:
        raise UnitConversionError(f"Unknown prefix family: {family!r}") from None


def prefix_table(family: FamilyLike = PrefixFamily.ALL) -> Mapping[str, int]:
    return _TABLES[resolve_family(family)]


def extract_prefix(unit: Optional[str], family: FamilyLike = PrefixFamily.ALL) -> str:
    """
    Extract the prefix part of a unit string.

    The longest prefix of the family whose remainder is a known symbol wins,
    so "KiB" yields "Ki" rather than failing on "K" + "iB".

    Args:
        unit: Unit string such as "KB", "MiB" or "GHz"
        family: Prefix family to match against (default: ALL)

    Returns:
        The prefix ("" for a bare symbol), "" for None or an empty unit,
        or the unit unchanged when it is not a prefixed known symbol
    """
    if not unit:
        return ""
    table = prefix_table(family)
    for prefix in sorted(table, key=len, reverse=True):
        if not unit.startswith(prefix):
            continue
        if unit[len(prefix):] in SYMBOLS:
            return prefix
    return unit


def distance(
    origin: str,
    destination: str = "",
    family: FamilyLike = PrefixFamily.ALL,
) -> Optional[Fraction]:
    """
    Exact multiplicative distance between two prefixes.

    Returns:
        value(origin) / value(destination) as a Fraction, or None when
        either prefix is unknown in the selected family
    """
    table = prefix_table(family)
    if origin not in table or destination not in table:
        return None
    return Fraction(table[origin], table[destination])


def _family_of(prefix: str) -> Optional[PrefixFamily]:
    if prefix == "":
        return None  # the base unit belongs to both families
    if prefix in SI_PREFIX:
        return PrefixFamily.SI
    return PrefixFamily.BINARY


def to_unit(
    value: Number,
    unit: Optional[str] = "",
    destination: Optional[str] = "",
    family: FamilyLike = PrefixFamily.ALL,
) -> Number:
    """
    Convert a quantity from one unit to another.

    Conversions inside one family are exact: an int when the result is
    integral, otherwise a Fraction. Mixing SI and binary prefixes yields the
    nearest float, e.g. to_unit(7, "PB", "TiB") == 6366.462912410498.

    Raises:
        UnitConversionError: If either unit is unknown in the family
    """
    origin_prefix = extract_prefix(unit, family)
    destination_prefix = extract_prefix(destination, family)
    ratio = distance(origin_prefix, destination_prefix, family)
    if ratio is None:
        raise UnitConversionError(
            f"Can't convert {unit!r} to {destination!r} using {resolve_family(family).value} prefixes"
        )

    if isinstance(value, float):
        return value * float(ratio)

    result = Fraction(value) * ratio
    if result.denominator == 1:
        return int(result)

    families = {_family_of(origin_prefix), _family_of(destination_prefix)} - {None}
    if len(families) > 1:
        return float(result)
    return result
