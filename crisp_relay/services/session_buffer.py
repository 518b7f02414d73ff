# file: crisp_relay/services/session_buffer.py

import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from crisp_relay.schemas.messages import ConversationSession

logger = logging.getLogger("session_buffer")


class PendingBuffer(BaseModel):
    """
    Text collected for one session since its last flush.

    `last_event` is the most recent raw message event; it is what gets
    forwarded when the buffer holds a single fragment.
    """
    fragments: List[str] = Field(default_factory=list)
    last_event: Dict[str, Any] = Field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.fragments)


class SessionBufferStore:
    def __init__(self) -> None:
        self._buffers: Dict[ConversationSession, PendingBuffer] = {}

    def append(self, session: ConversationSession, text: str, event: Dict[str, Any]) -> int:
        buffer = self._buffers.get(session)
        if buffer is None:
            buffer = self._buffers[session] = PendingBuffer()
            logger.debug(f"[BUFFER] created session={session.key}")

        buffer.fragments.append(text)
        buffer.last_event = event

        logger.debug(f"[BUFFER] append session={session.key} size={len(buffer)}")
        return len(buffer)

    def get_and_clear(self, session: ConversationSession) -> Optional[PendingBuffer]:
        return self._buffers.pop(session, None)

    def exists(self, session: ConversationSession) -> bool:
        return session in self._buffers

    def size(self, session: ConversationSession) -> int:
        buffer = self._buffers.get(session)
        return len(buffer) if buffer else 0

    def sessions(self) -> List[ConversationSession]:
        return list(self._buffers)

    def clear(self) -> int:
        count = len(self._buffers)
        self._buffers.clear()
        return count

    def __len__(self) -> int:
        return len(self._buffers)
