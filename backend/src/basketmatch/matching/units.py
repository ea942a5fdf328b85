"""Unit normalization utilities for grocery quantities."""

from typing import Dict, Optional

# Canonical unit codes grouped by dimension
UNIT_DIMENSIONS: Dict[str, str] = {
    "G": "weight",
    "KG": "weight",
    "LB": "weight",
    "OZ": "weight",
    "ML": "volume",
    "L": "volume",
    "PINT": "volume",
    "GAL": "volume",
    "EACH": "count",
    "DOZEN": "count",
    "PACK": "count",
}

# Mapping from common variations to canonical codes
UNIT_MAPPING: Dict[str, str] = {
    # Grams
    "G": "G",
    "GR": "G",
    "GRM": "G",
    "GRAM": "G",
    "GRAMME": "G",

    # Kilograms
    "KG": "KG",
    "KGS": "KG",
    "KILO": "KG",
    "KILOGRAM": "KG",

    # Pounds
    "LB": "LB",
    "LBS": "LB",
    "POUND": "LB",

    # Ounces
    "OZ": "OZ",
    "OUNCE": "OZ",

    # Millilitres
    "ML": "ML",
    "MILLILITRE": "ML",
    "MILLILITER": "ML",

    # Litres
    "L": "L",
    "LT": "L",
    "LTR": "L",
    "LITRE": "L",
    "LITER": "L",

    # Pints
    "PT": "PINT",
    "PINT": "PINT",

    # Gallons
    "GAL": "GAL",
    "GALLON": "GAL",

    # Pieces / Each
    "EA": "EACH",
    "EACH": "EACH",
    "PC": "EACH",
    "PCS": "EACH",
    "PIECE": "EACH",
    "ITEM": "EACH",
    "UNIT": "EACH",
    "LOAF": "EACH",
    "BOTTLE": "EACH",
    "JAR": "EACH",
    "TIN": "EACH",
    "CAN": "EACH",
    "BOX": "EACH",
    "BAG": "EACH",

    # Multiples
    "DOZEN": "DOZEN",
    "DOZ": "DOZEN",
    "PACK": "PACK",
    "PK": "PACK",
    "MULTIPACK": "PACK",
}


def normalize_unit(unit: Optional[str]) -> Optional[str]:
    """Normalize a unit string to its canonical code.

    Args:
        unit: Raw unit string (catalog unit or extracted quantity unit)

    Returns:
        Canonical unit code or None if unmappable
    """
    if not unit:
        return None

    key = unit.strip().upper().replace(".", "")
    if key in UNIT_DIMENSIONS:
        return key

    return UNIT_MAPPING.get(key)


def unit_dimension(unit: Optional[str]) -> Optional[str]:
    """Return the dimension (weight, volume, count) of a unit, if known."""
    code = normalize_unit(unit)
    if code is None:
        return None
    return UNIT_DIMENSIONS[code]


def units_compatible(unit1: Optional[str], unit2: Optional[str]) -> bool:
    """Check if two units measure the same dimension.

    Unknown or missing units are never compatible.

    Args:
        unit1: First unit
        unit2: Second unit

    Returns:
        True if both units are known and share a dimension
    """
    dim1 = unit_dimension(unit1)
    dim2 = unit_dimension(unit2)

    if dim1 is None or dim2 is None:
        return False

    return dim1 == dim2
