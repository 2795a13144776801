"""YouTube search feature module"""

from app.features.youtube.api import router
from app.features.youtube.schemas import VideoResult
from app.features.youtube.service import search_videos

__all__ = ["router", "VideoResult", "search_videos"]
