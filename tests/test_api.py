import httpx
import pytest

from crisp_relay.main import create_app
from crisp_relay.schemas.messages import ConversationSession, DispatchResult
from crisp_relay.services.debounce_engine import DebounceEngine

from conftest import CLARIFICATION, PAUSE, RecordingCrisp, RecordingSink, file_event, settle, text_event


@pytest.fixture
def crisp():
    return RecordingCrisp()


@pytest.fixture
async def app(sink, crisp):
    app = create_app()
    app.state.engine = DebounceEngine(sink, pause_seconds=PAUSE, clarification_message=CLARIFICATION)
    app.state.crisp_client = crisp
    yield app
    await app.state.engine.shutdown()


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


def envelope(data: dict, event: str = "message:send") -> dict:
    return {"event": event, "website_id": data.get("website_id"), "data": data, "timestamp": 1700000000000}


# ============================================================
# Webhook
# ============================================================

async def test_webhook_ignores_other_events(client, app):
    resp = await client.post("/v1/webhooks/crisp", json=envelope(text_event("hi"), event="message:received"))

    assert resp.status_code == 200
    assert resp.json() == {"ignored": True, "reason": "not_message_send"}
    assert app.state.engine.pending_sessions() == []


async def test_webhook_requires_session(client):
    resp = await client.post("/v1/webhooks/crisp", json={"event": "message:send", "data": {"type": "text"}})

    assert resp.json() == {"ignored": True, "reason": "missing_session"}


async def test_webhook_buffers_text_then_forwards(client, app, sink):
    event = text_event("hello")

    resp = await client.post("/v1/webhooks/crisp", json=envelope(event))

    assert resp.json() == {"status": "accepted"}
    session = ConversationSession(website_id="website_1", session_id="session_1")
    assert app.state.engine.has_pending(session)

    await settle()

    assert sink.forwarded == [event]


async def test_webhook_uses_envelope_website_id(client, app):
    data = text_event("hello")
    data.pop("website_id")

    await client.post("/v1/webhooks/crisp", json={"event": "message:send", "website_id": "website_9", "data": data})

    session = ConversationSession(website_id="website_9", session_id="session_1")
    assert app.state.engine.has_pending(session)


async def test_webhook_burst_replies_into_conversation(client, sink):
    await client.post("/v1/webhooks/crisp", json=envelope(text_event("a")))
    await client.post("/v1/webhooks/crisp", json=envelope(text_event("b")))
    await client.post("/v1/webhooks/crisp", json=envelope(file_event()))

    await settle()

    assert [e["type"] for e in sink.forwarded] == ["file"]
    assert len(sink.replies) == 1


# ============================================================
# Operator send-message
# ============================================================

async def test_send_message_requires_fields(client, crisp):
    resp = await client.post("/v1/crisp/send-message", json={"website_id": "w"})

    assert resp.status_code == 400
    assert resp.json()["required"] == ["website_id", "session_id", "message"]
    assert crisp.sent == []


async def test_send_message_applies_defaults(client, crisp):
    resp = await client.post(
        "/v1/crisp/send-message",
        json={"website_id": "w", "session_id": "s", "message": {"content": "Hello!"}},
    )

    assert resp.status_code == 200
    assert resp.json()["success"] is True

    session, message = crisp.sent[0]
    assert session == ConversationSession(website_id="w", session_id="s")
    assert message.to_payload() == {"type": "text", "from": "operator", "origin": "chat", "content": "Hello!"}


async def test_send_message_accepts_empty_message_object(client, crisp):
    resp = await client.post(
        "/v1/crisp/send-message",
        json={"website_id": "w", "session_id": "s", "message": {}},
    )

    assert resp.status_code == 200
    assert crisp.sent[0][1].to_payload() == {"type": "text", "from": "operator", "origin": "chat", "content": None}


async def test_send_message_propagates_provider_status(client, crisp):
    crisp.result = DispatchResult(success=False, status=404, error="session_not_found")

    resp = await client.post(
        "/v1/crisp/send-message",
        json={"website_id": "w", "session_id": "s", "message": {"content": "x", "from": "user"}},
    )

    assert resp.status_code == 404
    assert resp.json() == {"success": False, "error": "session_not_found"}
    assert crisp.sent[0][1].from_ == "user"


# ============================================================
# Service routes
# ============================================================

async def test_root_and_health(client):
    root = await client.get("/")
    assert root.json()["status"] == "running"

    await client.post("/v1/webhooks/crisp", json=envelope(text_event("hold")))

    health = await client.get("/health")
    assert health.json() == {"status": "ok", "pending_sessions": 1}
