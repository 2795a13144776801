"""
Shared pytest fixtures

Provides:
- In-memory, failing and thread-backed Duration Store doubles
- Fast tick settings
- Hub / registry / app factories
- Helpers for draining hub subscriptions
"""

import asyncio
import time
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from app.config import Settings
from app.features.timers import BroadcastHub, Subscription, TimerEvent, TimerRegistry
from app.main import create_app

TICK = 0.02


class FakeDurationStore:
    """Dict-backed Duration Store that records every call"""

    def __init__(self, rows: Optional[List[Dict[str, Any]]] = None, delay: float = 0.0):
        self.records: Dict[int, int] = {}
        self.seed_rows = list(rows or [])
        self.calls: List[tuple] = []
        self.delay = delay
        self.fail = False
        self.closed = False

    async def _maybe_fail(self, op: str):
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise ConnectionError(f"store unreachable during {op}")

    async def put(self, timer_id: int, seconds_left: int) -> None:
        self.calls.append(("put", timer_id, seconds_left))
        await self._maybe_fail("put")
        self.records[timer_id] = seconds_left

    async def delete(self, timer_id: int) -> None:
        self.calls.append(("delete", timer_id))
        await self._maybe_fail("delete")
        self.records.pop(timer_id, None)

    async def list_all(self) -> List[Dict[str, Any]]:
        self.calls.append(("list_all",))
        await self._maybe_fail("list_all")
        rows = [{"id": k, "seconds_left": v} for k, v in self.records.items()]
        return rows + self.seed_rows

    async def close(self) -> None:
        self.calls.append(("close",))
        self.closed = True


class ThreadedDurationStore:
    """
    Duration Store whose calls block a worker thread, like the Supabase client.

    A timed-out put keeps running in its thread and lands `put_delay` later.
    """

    def __init__(self, put_delay: float = 0.0):
        self.records: Dict[int, int] = {}
        self.put_delay = put_delay

    def _put(self, timer_id: int, seconds_left: int) -> None:
        time.sleep(self.put_delay)
        self.records[timer_id] = seconds_left

    async def put(self, timer_id: int, seconds_left: int) -> None:
        await asyncio.to_thread(self._put, timer_id, seconds_left)

    async def delete(self, timer_id: int) -> None:
        await asyncio.to_thread(self.records.pop, timer_id, None)

    async def list_all(self) -> List[Dict[str, Any]]:
        return [{"id": k, "seconds_left": v} for k, v in self.records.items()]

    async def close(self) -> None:
        pass


async def collect_events(
    subscription: Subscription,
    count: Optional[int] = None,
    timeout: float = 1.0
) -> List[TimerEvent]:
    """Drain events until `count` are received or the stream goes quiet"""
    events: List[TimerEvent] = []
    while count is None or len(events) < count:
        try:
            event = await subscription.next_event(timeout=timeout)
        except asyncio.TimeoutError:
            break
        if event is None:
            break
        events.append(event)
    return events


def wire(events: List[TimerEvent]) -> List[tuple]:
    """Compact (name, data) view for assertions"""
    return [(e.name, e.data) for e in events]


@pytest.fixture
def store():
    return FakeDurationStore()


@pytest.fixture
def hub():
    return BroadcastHub(queue_size=64)


@pytest.fixture
async def registry(hub):
    registry = TimerRegistry(hub, tick_interval=TICK, store_timeout=0.2)
    yield registry
    await registry.shutdown()


@pytest.fixture
async def persistent_registry(hub, store):
    registry = TimerRegistry(hub, store, tick_interval=TICK, store_timeout=0.2)
    yield registry
    await registry.shutdown()


@pytest.fixture
def settings():
    return Settings(
        timer_tick_seconds=0.05,
        timer_store_enabled=False,
        timer_store_timeout=0.2,
        broadcast_send_timeout=1.0,
        sse_heartbeat_seconds=0.1,
    )


@pytest.fixture
def client(settings):
    app = create_app(settings, duration_store=None)
    with TestClient(app) as test_client:
        yield test_client
