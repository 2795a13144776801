"""Unit conversion API endpoints"""

import logging
import math
from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from app.features.converter.schemas import ConversionResponse
from app.features.converter.service import convert_units

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/convert", tags=["converter"])


@router.get("", response_model=ConversionResponse)
async def convert(
    value: Optional[str] = Query(None),
    from_unit: Optional[str] = Query(None, alias="from"),
    to_unit: Optional[str] = Query(None, alias="to")
):
    """Convert `value` from one cooking unit to another"""
    try:
        number = float(value) if value is not None else math.nan
    except ValueError:
        number = math.nan

    if not math.isfinite(number) or not from_unit or not to_unit:
        raise HTTPException(status_code=400, detail="Invalid params")

    result = convert_units(number, from_unit, to_unit)
    if result is None:
        raise HTTPException(status_code=400, detail="Unsupported conversion")

    return ConversionResponse(result=result)
