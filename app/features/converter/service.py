"""Cooking unit conversions"""

from typing import Dict, Optional

# factor to multiply a value in the outer unit to get the inner unit
CONVERSION_TABLE: Dict[str, Dict[str, float]] = {
    "cup": {"tablespoon": 16, "teaspoon": 48, "ml": 240, "liter": 0.24, "ounce": 8},
    "tablespoon": {"cup": 1 / 16, "teaspoon": 3, "ml": 15, "ounce": 0.5},
    "teaspoon": {"tablespoon": 1 / 3, "ml": 5},
    "ml": {"cup": 1 / 240, "tablespoon": 1 / 15, "teaspoon": 1 / 5, "liter": 1 / 1000},
    "liter": {"cup": 4.22675, "ml": 1000},
    "ounce": {"gram": 28.3495, "cup": 1 / 8},
}


def convert_units(value: float, from_unit: str, to_unit: str) -> Optional[float]:
    """
    Convert a quantity between two cooking units.

    Units are case-insensitive. Returns None when the pair is not supported.
    """
    source = (from_unit or "").lower()
    target = (to_unit or "").lower()

    factor = CONVERSION_TABLE.get(source, {}).get(target)
    if factor is None:
        return None

    return round(value * factor, 6)
