"""Tests for the realtime hub and the /ws project channel."""
import asyncio
import json

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from bugtracker.core.deps import get_db, get_session_factory
from bugtracker.core.realtime import RealtimeHub, project_channel
from bugtracker.main import app


class FakeWebSocket:
    def __init__(self, fail: bool = False, delay: float = 0) -> None:
        self.sent: list[str] = []
        self.fail = fail
        self.delay = delay

    async def send_text(self, data: str) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(data)

    def events(self) -> list[dict]:
        return [json.loads(s) for s in self.sent]


# =============================================================================
# Hub
# =============================================================================

@pytest.mark.asyncio
async def test_publish_delivers_to_channel_subscribers_only():
    hub = RealtimeHub()
    ws_a = FakeWebSocket()
    ws_b = FakeWebSocket()
    await hub.subscribe("project-a", ws_a)
    await hub.subscribe("project-b", ws_b)

    task = hub.publish("project-a", "ticket-created", {"project_id": "a"})
    await task

    assert ws_a.events() == [{"event": "ticket-created", "data": {"project_id": "a"}}]
    assert ws_b.sent == []


@pytest.mark.asyncio
async def test_publish_from_worker_thread_is_scheduled_on_loop():
    hub = RealtimeHub()
    ws = FakeWebSocket()
    await hub.subscribe("project-a", ws)

    future = await asyncio.to_thread(hub.publish, "project-a", "ticket-updated", {"n": 1})
    await asyncio.wrap_future(future)

    assert ws.events()[0]["event"] == "ticket-updated"


@pytest.mark.asyncio
async def test_failed_and_slow_connections_are_dropped():
    hub = RealtimeHub(send_timeout=0.05)
    healthy = FakeWebSocket()
    broken = FakeWebSocket(fail=True)
    slow = FakeWebSocket(delay=1)
    for ws in (healthy, broken, slow):
        await hub.subscribe("project-a", ws)

    await hub.publish("project-a", "notification", {"message": "hi"})

    assert len(healthy.sent) == 1
    assert hub.subscribers("project-a") == [healthy]


@pytest.mark.asyncio
async def test_unsubscribe_and_disconnect():
    hub = RealtimeHub()
    ws = FakeWebSocket()
    await hub.subscribe("project-a", ws)
    await hub.subscribe("project-b", ws)

    await hub.unsubscribe("project-a", ws)
    assert hub.subscribers("project-a") == []
    assert hub.subscribers("project-b") == [ws]

    await hub.disconnect(ws)
    assert hub.subscribers("project-b") == []
    assert hub.publish("project-b", "notification", {}) is None


def test_publish_without_loop_or_subscribers_is_a_no_op():
    hub = RealtimeHub()
    assert hub.publish("project-a", "notification", {"x": 1}) is None


def test_project_channel_name():
    assert project_channel("123") == "project-123"


# =============================================================================
# WebSocket endpoint
# =============================================================================

@pytest.fixture
def live_client(db, session_factory, monkeypatch):
    """TestClient with a real hub so events flow to connected sockets."""
    hub = RealtimeHub(send_timeout=2)
    monkeypatch.setattr(app.state, "realtime", hub)

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    with TestClient(app) as tc:
        yield tc
    app.dependency_overrides.clear()


def test_websocket_requires_token(live_client):
    with pytest.raises(WebSocketDisconnect):
        with live_client.websocket_connect("/ws") as ws:
            ws.receive_text()

    with pytest.raises(WebSocketDisconnect):
        with live_client.websocket_connect("/ws?token=garbage") as ws:
            ws.receive_text()


def test_websocket_member_receives_ticket_events(live_client, alice, bob):
    project = live_client.post(
        "/projects/",
        json={"title": "Apollo", "team_member_ids": [str(bob.user.id)]},
        headers=alice.headers,
    ).json()

    with live_client.websocket_connect(f"/ws?token={bob.token}") as ws:
        ws.send_text("ping")
        assert ws.receive_text() == "pong"

        ws.send_json({"action": "join-project", "project_id": project["id"]})
        assert ws.receive_json() == {"event": "joined", "data": {"project_id": project["id"]}}

        response = live_client.post(
            "/tickets/",
            json={"project_id": project["id"], "title": "Crash", "assignee_id": str(bob.user.id)},
            headers=alice.headers,
        )
        assert response.status_code == 201

        received = [ws.receive_json(), ws.receive_json()]
        by_event = {m["event"]: m["data"] for m in received}
        assert set(by_event) == {"notification", "ticket-created"}
        assert by_event["ticket-created"]["ticket"]["id"] == response.json()["id"]
        assert by_event["notification"]["notification"]["recipient_id"] == str(bob.user.id)


def test_websocket_header_auth_and_non_member_join(live_client, alice, carol):
    project = live_client.post("/projects/", json={"title": "Apollo"}, headers=alice.headers).json()

    with live_client.websocket_connect("/ws", headers=carol.headers) as ws:
        ws.send_json({"action": "join-project", "project_id": project["id"]})
        reply = ws.receive_json()
        assert reply["event"] == "error"

        ws.send_json({"action": "dance"})
        assert ws.receive_json()["data"]["message"] == "Unknown action"

        ws.send_text("{not json")
        assert ws.receive_json()["event"] == "error"

    assert app.state.realtime.subscribers(f"project-{project['id']}") == []


@pytest.mark.asyncio
async def test_in_flight_broadcast_is_held_until_done():
    hub = RealtimeHub()
    ws = FakeWebSocket(delay=0.01)
    await hub.subscribe("project-a", ws)

    task = hub.publish("project-a", "ticket-deleted", {"project_id": "a"})
    assert task in hub._pending

    await task
    await asyncio.sleep(0)
    assert task not in hub._pending
    assert len(ws.sent) == 1
