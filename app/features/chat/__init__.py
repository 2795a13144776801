"""Chat feature module"""

from app.features.chat.api import router
from app.features.chat.domain import Sender, TranscriptEntry
from app.features.chat.repository import ConversationTranscript
from app.features.chat.service import converse, extract_reply, get_signed_url

__all__ = [
    "router",
    "Sender",
    "TranscriptEntry",
    "ConversationTranscript",
    "converse",
    "extract_reply",
    "get_signed_url",
]
