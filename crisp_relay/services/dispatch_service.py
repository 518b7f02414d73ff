# file: crisp_relay/services/dispatch_service.py

import logging
from typing import Any, Dict, Optional, Protocol

from crisp_relay.core.settings import settings
from crisp_relay.schemas.messages import ConversationSession, DispatchResult, OutboundMessage
from crisp_relay.services.backend_service import BackendClient
from crisp_relay.services.crisp_service import CrispClient

logger = logging.getLogger("dispatch_service")


class DispatchSink(Protocol):
    async def forward_to_backend(self, event: Dict[str, Any]) -> DispatchResult:
        ...

    async def reply_to_conversation(
        self, session: ConversationSession, message: OutboundMessage
    ) -> DispatchResult:
        ...


# ============================================================
# Backend + Crisp delivery
# ============================================================
class RelayDispatchSink:
    def __init__(
        self,
        crisp_client: CrispClient,
        backend_client: BackendClient,
        relay_path: Optional[str] = None,
    ) -> None:
        self.crisp_client = crisp_client
        self.backend_client = backend_client
        self.relay_path = relay_path or settings.BACKEND_RELAY_PATH

    async def forward_to_backend(self, event: Dict[str, Any]) -> DispatchResult:
        logger.info(
            f"[RELAY] → backend {self.relay_path} "
            f"session={event.get('session_id')} type={event.get('type')}"
        )
        return await self.backend_client.post(self.relay_path, event)

    async def reply_to_conversation(
        self, session: ConversationSession, message: OutboundMessage
    ) -> DispatchResult:
        logger.info(f"[RELAY] → conversation session={session.key}")
        return await self.crisp_client.send_message_to_conversation(session, message)
