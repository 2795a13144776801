"""Domain models for the Chat feature"""

from enum import Enum

from pydantic import BaseModel


class Sender(str, Enum):
    """Who authored a transcript entry"""
    USER = "You"
    AGENT = "Agent"


class TranscriptEntry(BaseModel):
    """One line of the conversation transcript"""
    sender: Sender
    text: str
