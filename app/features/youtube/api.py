"""YouTube search API endpoints"""

import logging
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, Request

from app.features.youtube.schemas import VideoResult
from app.features.youtube.service import search_videos

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/youtube", tags=["youtube"])


@router.get("/search", response_model=List[VideoResult])
async def search(request: Request, q: Optional[str] = Query(None)):
    """Search YouTube videos"""
    if not q:
        raise HTTPException(status_code=400, detail="Missing query")

    settings = request.app.state.settings
    try:
        return await search_videos(q, settings.youtube_api_key)
    except Exception as e:
        logger.error(f"YouTube search failed for '{q}': {e}")
        raise HTTPException(status_code=500, detail=f"YouTube search failed: {str(e)}")
