"""Unit converter feature module"""

from app.features.converter.api import router
from app.features.converter.service import CONVERSION_TABLE, convert_units

__all__ = ["router", "CONVERSION_TABLE", "convert_units"]
