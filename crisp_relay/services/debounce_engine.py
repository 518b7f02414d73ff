# file: crisp_relay/services/debounce_engine.py

"""
Debounce engine for inbound Crisp messages.

Text messages from one conversation are buffered until the visitor pauses
for the configured threshold. Every new text message restarts the pause.
When the pause elapses:

1. a single buffered message is forwarded unchanged to the backend;
2. two or more buffered messages are treated as a rapid burst and a fixed
   clarification notice is sent back into the conversation instead.

Non-text messages skip the buffer and are forwarded right away.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Awaitable, Dict, List, Optional, Set

from pydantic import BaseModel

from crisp_relay.core.settings import settings
from crisp_relay.schemas.messages import ConversationSession, DispatchResult, OutboundMessage
from crisp_relay.services.dispatch_service import DispatchSink
from crisp_relay.services.session_buffer import PendingBuffer, SessionBufferStore
from crisp_relay.services.timer_registry import TimerRegistry
from crisp_relay.utils.crisp_events import detect_message_type, session_from_event
from crisp_relay.utils.profiler import now, step

logger = logging.getLogger("debounce_engine")


# ============================================================
# Flush decision
# ============================================================

class FlushKind(str, Enum):
    PASS_THROUGH = "pass_through"
    AGGREGATE = "aggregate"


class FlushDecision(BaseModel):
    kind: FlushKind
    session: ConversationSession
    count: int
    event: Optional[Dict[str, Any]] = None
    combined_text: Optional[str] = None

    @classmethod
    def from_buffer(cls, session: ConversationSession, buffer: PendingBuffer) -> "FlushDecision":
        count = len(buffer)

        if count > 1:
            return cls(
                kind=FlushKind.AGGREGATE,
                session=session,
                count=count,
                combined_text=" ".join(buffer.fragments),
            )

        return cls(
            kind=FlushKind.PASS_THROUGH,
            session=session,
            count=count,
            event=buffer.last_event,
        )


# ============================================================
# Engine
# ============================================================

class DebounceEngine:
    def __init__(
        self,
        sink: DispatchSink,
        pause_seconds: Optional[float] = None,
        clarification_message: Optional[str] = None,
    ) -> None:
        self.sink = sink
        self.pause_seconds = (
            pause_seconds if pause_seconds is not None else settings.DEBOUNCE_PAUSE_MS / 1000
        )
        self.clarification_message = clarification_message or settings.CLARIFICATION_MESSAGE

        self._timers = TimerRegistry()
        self._buffers = SessionBufferStore()
        self._inflight: Set[asyncio.Task] = set()

        logger.info(f"[DEBOUNCE] engine ready pause={self.pause_seconds:.3f}s")

    # --------------------------------------------------------
    # Inbound
    # --------------------------------------------------------
    def on_message(self, event: Dict[str, Any]) -> None:
        session = session_from_event(event)
        if session is None:
            logger.warning("⚠️ [DEBOUNCE] message without website_id/session_id ignored")
            return

        msg_type = detect_message_type(event)

        if event.get("type") == "text" and msg_type != "text":
            logger.warning(f"⚠️ [DEBOUNCE] text message without content ignored session={session.key}")
            return

        if msg_type != "text":
            logger.info(f"[DEBOUNCE] {msg_type} message bypasses debounce session={session.key}")
            self._spawn(
                self._deliver(f"forward {msg_type}", session, self.sink.forward_to_backend(event))
            )
            return

        if self._timers.cancel_if_armed(session):
            logger.info(f"[DEBOUNCE] pause interrupted session={session.key}")

        size = self._buffers.append(session, event["content"], event)
        self._timers.arm(session, self.pause_seconds, self.on_pause)

        logger.debug(f"[DEBOUNCE] buffered session={session.key} pending={size}")

    # --------------------------------------------------------
    # Pause elapsed
    # --------------------------------------------------------
    def on_pause(self, session: ConversationSession) -> Optional[FlushDecision]:
        buffer = self._buffers.get_and_clear(session)
        self._timers.cancel_if_armed(session)

        if buffer is None or len(buffer) == 0:
            logger.debug(f"[DEBOUNCE] nothing pending session={session.key}")
            return None

        decision = FlushDecision.from_buffer(session, buffer)

        if decision.kind is FlushKind.AGGREGATE:
            logger.info(
                f"[DEBOUNCE] rapid burst session={session.key} "
                f"count={decision.count} combined={decision.combined_text!r}"
            )
            reply = OutboundMessage(content=self.clarification_message)
            self._spawn(
                self._deliver("clarification reply", session, self.sink.reply_to_conversation(session, reply))
            )
        else:
            logger.info(f"[DEBOUNCE] single message flush session={session.key}")
            self._spawn(
                self._deliver("forward text", session, self.sink.forward_to_backend(buffer.last_event))
            )

        return decision

    # --------------------------------------------------------
    # Inspection
    # --------------------------------------------------------
    def has_pending(self, session: ConversationSession) -> bool:
        return self._buffers.exists(session)

    def is_armed(self, session: ConversationSession) -> bool:
        return self._timers.is_armed(session)

    def pending_count(self, session: ConversationSession) -> int:
        return self._buffers.size(session)

    def pending_sessions(self) -> List[ConversationSession]:
        return self._buffers.sessions()

    # --------------------------------------------------------
    # Shutdown
    # --------------------------------------------------------
    async def shutdown(self) -> None:
        timers = self._timers.cancel_all()
        dropped = self._buffers.clear()

        if timers:
            await asyncio.gather(*timers, return_exceptions=True)

        if dropped:
            logger.warning(f"⚠️ [DEBOUNCE] shutdown dropped {dropped} pending session(s)")

        if self._inflight:
            await asyncio.gather(*self._inflight, return_exceptions=True)

        logger.info(f"[DEBOUNCE] engine stopped timers_cancelled={len(timers)}")

    # --------------------------------------------------------
    # Delivery
    # --------------------------------------------------------
    def _spawn(self, coro: Awaitable[Optional[DispatchResult]]) -> None:
        task = asyncio.ensure_future(coro)
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    async def _deliver(
        self,
        label: str,
        session: ConversationSession,
        call: Awaitable[DispatchResult],
    ) -> Optional[DispatchResult]:
        T = now()
        try:
            result = await call
        except Exception as e:
            logger.exception(f"❌ [DEBOUNCE] {label} failed session={session.key}: {e}")
            return None

        step(T, f"{label} session={session.key}")

        if result.success:
            logger.info(f"✅ [DEBOUNCE] {label} delivered session={session.key} status={result.status}")
        else:
            logger.error(f"❌ [DEBOUNCE] {label} failed session={session.key}: {result.error}")

        return result
