"""
Conversation Service

Passthrough to the ElevenLabs conversational agent API. Replies are
appended to the in-process transcript.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from app.config import Settings
from app.features.chat.repository import ConversationTranscript

logger = logging.getLogger(__name__)

ELEVENLABS_API_URL = "https://api.elevenlabs.io/v1/convai"
REQUEST_TIMEOUT = 30.0
NO_RESPONSE = "No response"


def extract_reply(data: Dict[str, Any]) -> str:
    """Pull the agent's text out of a simulate-conversation response"""
    choices = data.get("choices") or []
    if choices:
        content = (choices[0].get("message") or {}).get("content")
        if content:
            return content
    return data.get("output") or NO_RESPONSE


def _require_agent(settings: Settings) -> None:
    if not settings.elevenlabs_api_key or not settings.agent_id:
        raise ValueError("ELEVENLABS_API_KEY and AGENT_ID must be set")


async def converse(
    message: str,
    settings: Settings,
    transcript: ConversationTranscript,
    client: Optional[httpx.AsyncClient] = None
) -> str:
    """
    Send one user message to the agent and return its reply.

    Raises:
        ValueError: If the agent is not configured
        httpx.HTTPError: If the upstream request fails
    """
    _require_agent(settings)

    url = f"{ELEVENLABS_API_URL}/agents/{settings.agent_id}/simulate-conversation"
    payload = {
        "messages": [{"role": "user", "content": message}],
        "simulation_specification": {
            "initial_user_message": message,
            "mode": "text",
            "language": "en-US",
        },
    }
    headers = {
        "xi-api-key": settings.elevenlabs_api_key,
        "Content-Type": "application/json",
    }

    if client is None:
        async with httpx.AsyncClient() as own_client:
            response = await own_client.post(url, json=payload, headers=headers, timeout=REQUEST_TIMEOUT)
    else:
        response = await client.post(url, json=payload, headers=headers, timeout=REQUEST_TIMEOUT)

    response.raise_for_status()
    reply = extract_reply(response.json())

    transcript.append_exchange(message, reply)
    logger.info(f"Conversation turn recorded ({len(transcript)} transcript entries)")
    return reply


async def get_signed_url(
    settings: Settings,
    client: Optional[httpx.AsyncClient] = None
) -> str:
    """
    Request a signed URL for a voice session with the agent.

    Raises:
        ValueError: If the agent is not configured or no URL is returned
        httpx.HTTPError: If the upstream request fails
    """
    _require_agent(settings)

    url = f"{ELEVENLABS_API_URL}/conversation/get-signed-url"
    params = {"agent_id": settings.agent_id}
    headers = {"xi-api-key": settings.elevenlabs_api_key}

    if client is None:
        async with httpx.AsyncClient() as own_client:
            response = await own_client.get(url, params=params, headers=headers, timeout=REQUEST_TIMEOUT)
    else:
        response = await client.get(url, params=params, headers=headers, timeout=REQUEST_TIMEOUT)

    response.raise_for_status()
    signed_url = response.json().get("signed_url")
    if not signed_url:
        raise ValueError("Failed to get signed URL")
    return signed_url
