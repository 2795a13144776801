"""Request and response schemas for the Chat API"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.features.chat.domain import TranscriptEntry


class ConverseRequest(BaseModel):
    """Request model for a text conversation turn"""
    message: Optional[str] = None


class ConverseResponse(BaseModel):
    """Agent reply"""
    reply: str


class HistoryResponse(BaseModel):
    """Full conversation transcript"""
    history: List[TranscriptEntry]


class SignedUrlResponse(BaseModel):
    """Signed URL for a voice conversation session"""
    model_config = ConfigDict(populate_by_name=True)

    signed_url: str = Field(alias="signedUrl")
