"""Timers API: request surface, WebSocket channel, SSE stream and polling"""

import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import AsyncIterator, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, WebSocket
from fastapi.responses import StreamingResponse
from fastapi.websockets import WebSocketState

from app.features.timers.domain import TimerEvent
from app.features.timers.hub import TRANSPORT_SSE, TRANSPORT_WEBSOCKET, BroadcastHub, Subscription
from app.features.timers.schemas import (
    StartTimerRequest,
    StartTimerResponse,
    StopTimerRequest,
    StopTimerResponse,
    TimerListResponse,
    TimerSnapshot,
    TimerStatusResponse,
)
from app.features.timers.service import TimerRegistry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/timer", tags=["timers"])
ws_router = APIRouter(tags=["timers"])


def get_timer_registry(request: Request) -> TimerRegistry:
    return request.app.state.timer_registry


def get_broadcast_hub(request: Request) -> BroadcastHub:
    return request.app.state.broadcast_hub


def _snapshots(registry: TimerRegistry) -> List[TimerSnapshot]:
    return [TimerSnapshot(id=t.id, seconds_left=t.seconds_left) for t in registry.list()]


@router.get("", response_model=TimerListResponse)
async def list_timers(registry: TimerRegistry = Depends(get_timer_registry)):
    """List every live timer"""
    return TimerListResponse(timers=_snapshots(registry))


@router.post("/start", response_model=StartTimerResponse)
async def start_timer(
    request: Optional[StartTimerRequest] = None,
    registry: TimerRegistry = Depends(get_timer_registry)
):
    """
    Start a countdown.

    `seconds` must be a positive, finite number; anything else is rejected
    with 400 before it reaches the registry.
    """
    seconds = request.seconds if request else None
    if isinstance(seconds, bool) or not isinstance(seconds, (int, float)):
        raise HTTPException(status_code=400, detail="seconds must be positive")

    try:
        timer = registry.start(seconds)
    except ValueError:
        raise HTTPException(status_code=400, detail="seconds must be positive")

    return StartTimerResponse(id=timer.id, seconds=seconds)


@router.post("/stop", response_model=StopTimerResponse)
async def stop_timer(
    request: Optional[StopTimerRequest] = None,
    registry: TimerRegistry = Depends(get_timer_registry)
):
    """Stop a countdown. Unknown or finished ids succeed as a no-op."""
    timer_id = request.id if request else None
    if isinstance(timer_id, bool) or not isinstance(timer_id, int) or not timer_id:
        raise HTTPException(status_code=400, detail="id required")

    registry.stop(timer_id)
    return StopTimerResponse(success=True)


@router.get("/status", response_model=TimerStatusResponse)
async def timer_status(
    registry: TimerRegistry = Depends(get_timer_registry),
    hub: BroadcastHub = Depends(get_broadcast_hub)
):
    """Polling fallback for clients that cannot hold a push connection"""
    return TimerStatusResponse(
        timers=_snapshots(registry),
        connections=hub.connection_counts(),
        total_connections=hub.total_connections,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


def format_sse(event: TimerEvent) -> str:
    """Frame one event for a text/event-stream response"""
    return f"event: {event.name}\ndata: {json.dumps(event.data)}\n\n"


async def sse_event_stream(
    request: Request,
    registry: TimerRegistry,
    hub: BroadcastHub,
    heartbeat_seconds: float
) -> AsyncIterator[str]:
    """
    Yield SSE frames for one observer: bootstrap first, then live events.

    Heartbeats double as a liveness probe so a vanished client is
    unsubscribed without waiting for a failed write.
    """
    subscription = hub.subscribe(TRANSPORT_SSE, bootstrap=TimerEvent.bootstrap(registry.list()))
    try:
        while True:
            try:
                event = await subscription.next_event(timeout=heartbeat_seconds)
            except asyncio.TimeoutError:
                if await request.is_disconnected():
                    break
                yield ": keep-alive\n\n"
                continue

            if event is None:
                break
            yield format_sse(event)
    finally:
        hub.unsubscribe(subscription)


@router.get("/stream")
async def stream_timer_events(
    request: Request,
    registry: TimerRegistry = Depends(get_timer_registry),
    hub: BroadcastHub = Depends(get_broadcast_hub)
):
    """Unidirectional event stream (SSE fallback for the WebSocket channel)"""
    settings = request.app.state.settings
    return StreamingResponse(
        sse_event_stream(request, registry, hub, settings.sse_heartbeat_seconds),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
        }
    )


async def _watch_disconnect(websocket: WebSocket, hub: BroadcastHub, subscription: Subscription):
    """Drain inbound frames; the channel is read-only so they are ignored"""
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
    finally:
        hub.unsubscribe(subscription)


@ws_router.websocket("/ws/timers")
async def timer_websocket(websocket: WebSocket):
    """
    Bidirectional push channel.

    Sends `timer:bootstrap` on connect, then every lifecycle event as
    {"event": ..., "data": {...}}.
    """
    registry: TimerRegistry = websocket.app.state.timer_registry
    hub: BroadcastHub = websocket.app.state.broadcast_hub
    send_timeout = websocket.app.state.settings.broadcast_send_timeout

    await websocket.accept()
    subscription = hub.subscribe(
        TRANSPORT_WEBSOCKET, bootstrap=TimerEvent.bootstrap(registry.list())
    )
    watcher = asyncio.create_task(_watch_disconnect(websocket, hub, subscription))

    try:
        while True:
            event = await subscription.next_event()
            if event is None:
                break
            await asyncio.wait_for(websocket.send_json(event.to_message()), send_timeout)
    except Exception as e:
        logger.warning(f"Dropping websocket observer {subscription.id}: {e!r}")
    finally:
        watcher.cancel()
        hub.unsubscribe(subscription)

    if websocket.application_state == WebSocketState.CONNECTED and \
            websocket.client_state == WebSocketState.CONNECTED:
        await websocket.close()
