"""Service status and endpoint catalogue"""

from datetime import datetime, timezone

from fastapi import APIRouter

router = APIRouter(tags=["status"])

ENDPOINTS = {
    "conversation": {
        "POST /api/converse": "Send message to AI agent",
        "GET /api/history": "Get conversation history",
        "GET /api/conversation-history": "Get conversation history (alias)",
        "GET /api/get-signed-url": "Get ElevenLabs signed URL",
    },
    "timers": {
        "GET /api/timer": "List active timers",
        "POST /api/timer/start": "Start new timer",
        "POST /api/timer/stop": "Stop timer",
        "GET /api/timer/status": "Poll timers and connection counts",
        "GET /api/timer/stream": "Timer events (Server-Sent Events)",
        "WS /ws/timers": "Timer events (WebSocket)",
    },
    "utilities": {
        "GET /api/convert": "Convert units",
        "GET /api/youtube/search": "Search YouTube",
    },
}


@router.get("/status")
async def service_status():
    """List available APIs"""
    return {
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "endpoints": ENDPOINTS,
    }
