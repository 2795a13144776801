"""Timers feature module"""

from app.features.timers.domain import Timer, TimerEvent, TimerEventType
from app.features.timers.hub import BroadcastHub, Subscription, TRANSPORT_SSE, TRANSPORT_WEBSOCKET
from app.features.timers.repository import DurationStore, SupabaseDurationStore, create_duration_store
from app.features.timers.service import TimerRegistry, normalize_duration
from app.features.timers.api import router, ws_router

__all__ = [
    "router",
    "ws_router",
    "Timer",
    "TimerEvent",
    "TimerEventType",
    "BroadcastHub",
    "Subscription",
    "TRANSPORT_SSE",
    "TRANSPORT_WEBSOCKET",
    "DurationStore",
    "SupabaseDurationStore",
    "create_duration_store",
    "TimerRegistry",
    "normalize_duration",
]
