"""Response schemas for the YouTube search API"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class VideoResult(BaseModel):
    """One search hit, reduced to what the frontend renders"""
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    title: Optional[str] = None
    channel: Optional[str] = None
    thumbnail: Optional[str] = None
    published_at: Optional[str] = Field(default=None, alias="publishedAt")
