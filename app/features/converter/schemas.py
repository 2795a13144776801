"""Response schemas for the converter API"""

from pydantic import BaseModel


class ConversionResponse(BaseModel):
    """Converted quantity"""
    result: float
