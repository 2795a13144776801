"""Chat API endpoints"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from app.features.chat.repository import ConversationTranscript
from app.features.chat.schemas import (
    ConverseRequest,
    ConverseResponse,
    HistoryResponse,
    SignedUrlResponse,
)
from app.features.chat.service import converse, get_signed_url

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["chat"])


def get_transcript(request: Request) -> ConversationTranscript:
    return request.app.state.conversation_transcript


@router.post("/converse", response_model=ConverseResponse)
async def text_converse(
    request: Request,
    body: Optional[ConverseRequest] = None,
    transcript: ConversationTranscript = Depends(get_transcript)
):
    """Send a text message to the conversational agent"""
    message = body.message if body else None
    if not message:
        raise HTTPException(status_code=400, detail="Message is required")

    try:
        reply = await converse(message, request.app.state.settings, transcript)
    except Exception as e:
        logger.error(f"Error conversing: {e}")
        raise HTTPException(status_code=500, detail="Failed to get response")

    return ConverseResponse(reply=reply)


@router.get("/history", response_model=HistoryResponse)
async def get_history(transcript: ConversationTranscript = Depends(get_transcript)):
    """Conversation transcript for this process"""
    return HistoryResponse(history=transcript.entries())


@router.get("/conversation-history", response_model=HistoryResponse)
async def get_conversation_history(transcript: ConversationTranscript = Depends(get_transcript)):
    """Alias of /history kept for existing frontends"""
    return HistoryResponse(history=transcript.entries())


@router.get("/get-signed-url", response_model=SignedUrlResponse)
async def signed_url(request: Request):
    """Signed URL for starting a voice conversation"""
    try:
        url = await get_signed_url(request.app.state.settings)
    except Exception as e:
        logger.error(f"Error getting signed URL: {e}")
        raise HTTPException(status_code=500, detail="Failed to generate signed URL")

    return SignedUrlResponse(signed_url=url)
