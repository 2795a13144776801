"""Tests for the timer request surface, WebSocket channel, SSE stream and polling"""

import asyncio
import json
import time
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from fastapi.websockets import WebSocketState

from app.config import Settings
from app.features.timers import TimerEvent, TimerRegistry
from app.features.timers.api import format_sse, sse_event_stream, timer_websocket
from app.main import create_app
from conftest import FakeDurationStore


@pytest.fixture
def slow_client():
    """App whose timers effectively never tick during a test"""
    settings = Settings(timer_tick_seconds=10, timer_store_enabled=False)
    with TestClient(create_app(settings, duration_store=None)) as test_client:
        yield test_client


@pytest.fixture
async def quiet_registry(hub):
    """Registry whose timers do not tick while a test inspects the stream"""
    registry = TimerRegistry(hub, tick_interval=10)
    yield registry
    await registry.shutdown()


def _wait_for(predicate, timeout: float = 2.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


class TestRequestSurface:
    def test_start_returns_id_and_seconds(self, slow_client):
        response = slow_client.post("/api/timer/start", json={"seconds": 5})

        assert response.status_code == 200
        assert response.json() == {"id": 1, "seconds": 5}

    def test_list_reflects_started_timer(self, slow_client):
        timer_id = slow_client.post("/api/timer/start", json={"seconds": 5}).json()["id"]

        response = slow_client.get("/api/timer")

        assert response.status_code == 200
        assert response.json() == {"timers": [{"id": timer_id, "secondsLeft": 5}]}

    @pytest.mark.parametrize("body", [
        {"seconds": 0},
        {"seconds": -3},
        {"seconds": "5"},
        {"seconds": True},
        {"seconds": None},
        {},
    ])
    def test_start_rejects_invalid_seconds(self, slow_client, body):
        response = slow_client.post("/api/timer/start", json=body)

        assert response.status_code == 400
        assert response.json()["detail"] == "seconds must be positive"
        assert slow_client.get("/api/timer").json() == {"timers": []}

    def test_start_without_body_is_rejected(self, slow_client):
        assert slow_client.post("/api/timer/start").status_code == 400

    def test_stop_removes_timer(self, slow_client):
        timer_id = slow_client.post("/api/timer/start", json={"seconds": 5}).json()["id"]

        response = slow_client.post("/api/timer/stop", json={"id": timer_id})

        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert slow_client.get("/api/timer").json() == {"timers": []}

    def test_stop_unknown_id_succeeds(self, slow_client):
        response = slow_client.post("/api/timer/stop", json={"id": 999})

        assert response.status_code == 200
        assert response.json() == {"success": True}

    @pytest.mark.parametrize("body", [{}, {"id": None}, {"id": 0}, {"id": "abc"}])
    def test_stop_requires_id(self, slow_client, body):
        response = slow_client.post("/api/timer/stop", json=body)

        assert response.status_code == 400
        assert response.json()["detail"] == "id required"

    def test_status_reports_timers_and_connections(self, slow_client):
        slow_client.post("/api/timer/start", json={"seconds": 30})

        body = slow_client.get("/api/timer/status").json()

        assert body["timers"] == [{"id": 1, "secondsLeft": 30}]
        assert body["connections"] == {"websocket": 0, "sse": 0}
        assert body["totalConnections"] == 0
        assert "timestamp" in body


class TestWebSocket:
    def test_bootstrap_then_full_lifecycle(self, client):
        with client.websocket_connect("/ws/timers") as ws:
            assert ws.receive_json() == {"event": "timer:bootstrap", "data": {"timers": []}}

            timer_id = client.post("/api/timer/start", json={"seconds": 2}).json()["id"]
            messages = [ws.receive_json() for _ in range(4)]

        assert messages == [
            {"event": "timer:started", "data": {"id": timer_id, "secondsLeft": 2}},
            {"event": "timer:update", "data": {"id": timer_id, "secondsLeft": 1}},
            {"event": "timer:update", "data": {"id": timer_id, "secondsLeft": 0}},
            {"event": "timer:done", "data": {"id": timer_id}},
        ]
        assert client.get("/api/timer").json() == {"timers": []}

    def test_late_joiner_gets_snapshot_of_live_timers(self, slow_client):
        slow_client.post("/api/timer/start", json={"seconds": 10})
        slow_client.post("/api/timer/start", json={"seconds": 3})

        with slow_client.websocket_connect("/ws/timers") as ws:
            first = ws.receive_json()

        assert first == {
            "event": "timer:bootstrap",
            "data": {"timers": [{"id": 1, "secondsLeft": 10}, {"id": 2, "secondsLeft": 3}]},
        }

    def test_stop_is_broadcast_to_every_observer(self, slow_client):
        timer_id = slow_client.post("/api/timer/start", json={"seconds": 30}).json()["id"]

        with slow_client.websocket_connect("/ws/timers") as a, \
                slow_client.websocket_connect("/ws/timers") as b:
            a.receive_json()
            b.receive_json()

            slow_client.post("/api/timer/stop", json={"id": timer_id})

            expected = {"event": "timer:stopped", "data": {"id": timer_id}}
            assert a.receive_json() == expected
            assert b.receive_json() == expected

    def test_disconnected_observer_is_pruned(self, slow_client):
        def websocket_count():
            return slow_client.get("/api/timer/status").json()["connections"]["websocket"]

        with slow_client.websocket_connect("/ws/timers") as ws:
            ws.receive_json()
            assert _wait_for(lambda: websocket_count() == 1)

        assert _wait_for(lambda: websocket_count() == 0)


class FakeWebSocket:
    """Stands in for a connected peer; sends can be made to fail or hang"""

    def __init__(self, app_state, fail_after=None, hang=False):
        self.app = SimpleNamespace(state=app_state)
        self.sent = []
        self.fail_after = fail_after
        self.hang = hang
        self.application_state = WebSocketState.CONNECTING
        self.client_state = WebSocketState.CONNECTED
        self._gone = asyncio.Event()

    async def accept(self):
        self.application_state = WebSocketState.CONNECTED

    async def receive(self):
        await self._gone.wait()
        return {"type": "websocket.disconnect"}

    async def send_json(self, data):
        if self.fail_after is not None and len(self.sent) >= self.fail_after:
            if self.hang:
                await asyncio.sleep(10)
            raise ConnectionResetError("peer went away")
        self.sent.append(data)

    async def close(self):
        self.application_state = WebSocketState.DISCONNECTED

    def disconnect(self):
        self._gone.set()


async def _eventually(predicate, timeout: float = 1.0) -> bool:
    deadline = asyncio.get_running_loop().time() + timeout
    while asyncio.get_running_loop().time() < deadline:
        if predicate():
            return True
        await asyncio.sleep(0.005)
    return predicate()


class TestWebSocketSendFailures:
    @pytest.fixture
    def app_state(self, quiet_registry, hub):
        return SimpleNamespace(
            timer_registry=quiet_registry,
            broadcast_hub=hub,
            settings=Settings(broadcast_send_timeout=0.05),
        )

    @pytest.mark.parametrize("hang", [False, True], ids=["send-raises", "send-times-out"])
    async def test_failed_send_prunes_only_that_observer(self, app_state, quiet_registry, hub, hang):
        broken = FakeWebSocket(app_state, fail_after=1, hang=hang)
        healthy = FakeWebSocket(app_state)
        broken_task = asyncio.create_task(timer_websocket(broken))
        healthy_task = asyncio.create_task(timer_websocket(healthy))

        assert await _eventually(lambda: len(broken.sent) == 1 and len(healthy.sent) == 1)
        assert hub.connection_counts()["websocket"] == 2

        timer = quiet_registry.start(30)

        await asyncio.wait_for(broken_task, timeout=1.0)
        assert hub.connection_counts()["websocket"] == 1
        assert broken.application_state == WebSocketState.DISCONNECTED

        assert await _eventually(lambda: len(healthy.sent) == 2)
        assert healthy.sent[1] == {"event": "timer:started", "data": {"id": timer.id, "secondsLeft": 30}}

        quiet_registry.stop(timer.id)
        assert await _eventually(lambda: len(healthy.sent) == 3)
        assert healthy.sent[2] == {"event": "timer:stopped", "data": {"id": timer.id}}

        healthy.disconnect()
        await asyncio.wait_for(healthy_task, timeout=1.0)
        assert hub.total_connections == 0


class FakeRequest:
    def __init__(self):
        self.disconnected = False

    async def is_disconnected(self) -> bool:
        return self.disconnected


class TestServerSentEvents:
    def test_format_sse_frames_event(self):
        frame = format_sse(TimerEvent.stopped(4))
        assert frame == 'event: timer:stopped\ndata: {"id": 4}\n\n'

    async def test_stream_replays_bootstrap_then_live_events(self, quiet_registry, hub):
        registry = quiet_registry
        timer = registry.start(30)
        request = FakeRequest()
        stream = sse_event_stream(request, registry, hub, heartbeat_seconds=1.0)

        first = await stream.__anext__()
        assert first.startswith("event: timer:bootstrap\n")
        assert json.loads(first.split("data: ", 1)[1]) == {
            "timers": [{"id": timer.id, "secondsLeft": 30}]
        }
        assert hub.connection_counts()["sse"] == 1

        registry.stop(timer.id)
        second = await stream.__anext__()
        assert second == format_sse(TimerEvent.stopped(timer.id))

        await stream.aclose()
        assert hub.connection_counts()["sse"] == 0

    async def test_stream_sends_heartbeat_and_ends_on_disconnect(self, quiet_registry, hub):
        registry = quiet_registry
        request = FakeRequest()
        stream = sse_event_stream(request, registry, hub, heartbeat_seconds=0.02)

        await stream.__anext__()  # bootstrap
        assert await stream.__anext__() == ": keep-alive\n\n"

        request.disconnected = True
        with pytest.raises(StopAsyncIteration):
            await stream.__anext__()
        assert hub.total_connections == 0

    async def test_stream_ends_when_hub_closes(self, quiet_registry, hub):
        registry = quiet_registry
        stream = sse_event_stream(FakeRequest(), registry, hub, heartbeat_seconds=1.0)
        await stream.__anext__()

        hub.close()

        with pytest.raises(StopAsyncIteration):
            await stream.__anext__()


class TestLifespan:
    def test_restores_persisted_timers_on_startup(self):
        store = FakeDurationStore()
        store.records = {7: 40}
        settings = Settings(timer_tick_seconds=10, timer_store_enabled=False)

        with TestClient(create_app(settings, duration_store=store)) as test_client:
            assert test_client.get("/api/timer").json() == {"timers": [{"id": 7, "secondsLeft": 40}]}
            assert test_client.post("/api/timer/start", json={"seconds": 5}).json()["id"] == 8

        # Shutdown keeps the records for the next process
        assert store.closed is True
        assert store.records == {7: 40, 8: 5}

    def test_starts_when_store_is_unreachable(self):
        store = FakeDurationStore()
        store.fail = True
        settings = Settings(timer_tick_seconds=10, timer_store_enabled=False, timer_store_timeout=0.2)

        with TestClient(create_app(settings, duration_store=store)) as test_client:
            assert test_client.get("/api/timer").json() == {"timers": []}
            response = test_client.post("/api/timer/start", json={"seconds": 5})
            assert response.status_code == 200
            assert test_client.post("/api/timer/stop", json={"id": 1}).json() == {"success": True}
