import asyncio
from typing import Any, Dict, List, Optional, Tuple

import pytest

from crisp_relay.schemas.messages import ConversationSession, DispatchResult, OutboundMessage
from crisp_relay.services.debounce_engine import DebounceEngine

PAUSE = 0.05
CLARIFICATION = "Please resend your question as one message."


class RecordingSink:
    """Dispatch sink that records every call instead of doing HTTP."""

    def __init__(self, result: Optional[DispatchResult] = None, error: Optional[Exception] = None):
        self.result = result or DispatchResult(success=True, status=200)
        self.error = error
        self.forwarded: List[Dict[str, Any]] = []
        self.replies: List[Tuple[ConversationSession, OutboundMessage]] = []

    async def forward_to_backend(self, event):
        self.forwarded.append(event)
        if self.error:
            raise self.error
        return self.result

    async def reply_to_conversation(self, session, message):
        self.replies.append((session, message))
        if self.error:
            raise self.error
        return self.result


class RecordingCrisp:
    def __init__(self, result: Optional[DispatchResult] = None):
        self.result = result or DispatchResult(success=True, status=200)
        self.sent: List[Tuple[ConversationSession, OutboundMessage]] = []

    async def send_message_to_conversation(self, session, message):
        self.sent.append((session, message))
        return self.result


def text_event(content: str, session_id: str = "session_1", website_id: str = "website_1") -> dict:
    return {
        "website_id": website_id,
        "session_id": session_id,
        "type": "text",
        "from": "user",
        "origin": "chat",
        "content": content,
        "fingerprint": abs(hash((session_id, content))),
    }


def file_event(session_id: str = "session_1", website_id: str = "website_1") -> dict:
    return {
        "website_id": website_id,
        "session_id": session_id,
        "type": "file",
        "from": "user",
        "origin": "chat",
        "content": {
            "name": "invoice.pdf",
            "url": "https://storage.crisp.chat/invoice.pdf",
            "type": "application/pdf",
        },
    }


async def settle(seconds: float = PAUSE * 3) -> None:
    await asyncio.sleep(seconds)


@pytest.fixture
def session() -> ConversationSession:
    return ConversationSession(website_id="website_1", session_id="session_1")


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
async def engine(sink):
    engine = DebounceEngine(sink, pause_seconds=PAUSE, clarification_message=CLARIFICATION)
    yield engine
    await engine.shutdown()
