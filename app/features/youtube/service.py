"""
YouTube Search Service

Thin passthrough to the YouTube Data API v3 search endpoint.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from app.features.youtube.schemas import VideoResult

logger = logging.getLogger(__name__)

YOUTUBE_SEARCH_URL = "https://www.googleapis.com/youtube/v3/search"
MAX_RESULTS = 6
SEARCH_TIMEOUT = 8.0


def _to_video(item: Dict[str, Any]) -> VideoResult:
    snippet = item.get("snippet") or {}
    thumbnails = snippet.get("thumbnails") or {}
    thumbnail = (thumbnails.get("medium") or {}).get("url") or (thumbnails.get("default") or {}).get("url")

    return VideoResult(
        id=(item.get("id") or {}).get("videoId"),
        title=snippet.get("title"),
        channel=snippet.get("channelTitle"),
        thumbnail=thumbnail,
        published_at=snippet.get("publishedAt"),
    )


async def search_videos(
    query: str,
    api_key: Optional[str],
    client: Optional[httpx.AsyncClient] = None
) -> List[VideoResult]:
    """
    Search YouTube for videos matching `query`.

    Args:
        query: Free-text search
        api_key: YouTube Data API key
        client: Optional shared HTTP client (a short-lived one is used otherwise)

    Returns:
        Up to six videos

    Raises:
        ValueError: If no API key is configured
        httpx.HTTPError: If the upstream request fails
    """
    if not api_key:
        raise ValueError("YOUTUBE_API_KEY not configured")

    params = {
        "key": api_key,
        "part": "snippet",
        "q": query,
        "type": "video",
        "maxResults": MAX_RESULTS,
    }

    if client is None:
        async with httpx.AsyncClient() as own_client:
            response = await own_client.get(YOUTUBE_SEARCH_URL, params=params, timeout=SEARCH_TIMEOUT)
    else:
        response = await client.get(YOUTUBE_SEARCH_URL, params=params, timeout=SEARCH_TIMEOUT)

    response.raise_for_status()
    items = response.json().get("items") or []
    logger.info(f"YouTube search '{query}' returned {len(items)} items")
    return [_to_video(item) for item in items]
