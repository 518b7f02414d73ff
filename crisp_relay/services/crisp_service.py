# file: crisp_relay/services/crisp_service.py

import asyncio
import logging
from typing import Dict, Optional

import aiohttp

from crisp_relay.core.settings import settings
from crisp_relay.schemas.messages import ConversationSession, DispatchResult, OutboundMessage

logger = logging.getLogger("crisp_service")


class CrispError(Exception):
    pass


# ============================================================
# CRISP REST CLIENT
# ============================================================
class CrispClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        identifier: Optional[str] = None,
        key: Optional[str] = None,
    ) -> None:
        self.base_url = (base_url or settings.CRISP_API_BASE_URL).rstrip("/")
        self.identifier = identifier if identifier is not None else settings.CRISP_IDENTIFIER
        self.key = key if key is not None else settings.CRISP_KEY
        self.tier = settings.CRISP_TIER
        self.timeout = aiohttp.ClientTimeout(total=settings.CRISP_TIMEOUT_SECONDS)

        logger.info(f"[CRISP] Initializing CrispClient base_url={self.base_url}")

        if not self.identifier or not self.key:
            logger.error("❌ CRISP_IDENTIFIER and CRISP_KEY must be set.")

    # --------------------------------------------------------
    # HEADERS / AUTH
    # --------------------------------------------------------
    def _headers(self) -> Dict[str, str]:
        return {"Content-Type": "application/json", "X-Crisp-Tier": self.tier}

    def _auth(self) -> aiohttp.BasicAuth:
        return aiohttp.BasicAuth(self.identifier, self.key)

    def _message_url(self, session: ConversationSession) -> str:
        if not session.website_id or not session.session_id:
            raise CrispError("website_id and session_id are required")

        return (
            f"{self.base_url}/website/{session.website_id}/"
            f"conversation/{session.session_id}/message"
        )

    # --------------------------------------------------------
    # Send message into a conversation
    # --------------------------------------------------------
    async def send_message_to_conversation(
        self,
        session: ConversationSession,
        message: OutboundMessage,
    ) -> DispatchResult:
        url = self._message_url(session)
        payload = message.to_payload()

        logger.info(f"[CRISP] Sending {message.type} → session={session.session_id}")

        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as http:
                async with http.post(url, json=payload, headers=self._headers(), auth=self._auth()) as resp:
                    text = await resp.text()

                    if resp.status >= 400:
                        logger.error(f"❌ [CRISP] Error sending message: status={resp.status} body={text}")
                        return DispatchResult(success=False, status=resp.status, data=text, error=text or f"HTTP {resp.status}")

                    try:
                        data = await resp.json(content_type=None) if text else None
                    except ValueError:
                        data = text
                    return DispatchResult(success=True, status=resp.status, data=data)

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            error = str(e) or type(e).__name__
            logger.error(f"❌ [CRISP] Error sending message to Crisp: {error}")
            return DispatchResult(success=False, error=error)
