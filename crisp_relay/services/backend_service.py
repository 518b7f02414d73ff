# file: crisp_relay/services/backend_service.py

import asyncio
import logging
from typing import Any, Dict, Optional

import aiohttp

from crisp_relay.core.settings import settings
from crisp_relay.schemas.messages import DispatchResult

logger = logging.getLogger("backend_service")


# ============================================================
# CLIENT FOR THE RECEIVING BACKEND
# ============================================================
class BackendClient:
    def __init__(self, base_url: Optional[str] = None) -> None:
        self.base_url = (base_url or settings.BACKEND_URL).rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=settings.BACKEND_TIMEOUT_SECONDS)

        logger.info(f"[BE] Initializing BackendClient base_url={self.base_url}")

        if not self.base_url:
            logger.error("❌ BACKEND_URL is not set.")

    # --------------------------------------------------------
    # HEADERS
    # --------------------------------------------------------
    @staticmethod
    def _headers(extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        return {"Content-Type": "application/json", **(extra or {})}

    @staticmethod
    async def _read_body(resp: aiohttp.ClientResponse) -> Any:
        text = await resp.text()
        if resp.content_type == "application/json" and text:
            try:
                return await resp.json()
            except ValueError:
                pass
        return text

    # --------------------------------------------------------
    # Generic request with JSON body
    # --------------------------------------------------------
    async def request(
        self,
        method: str,
        endpoint: str,
        data: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> DispatchResult:
        url = f"{self.base_url}{endpoint}"

        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.request(method, url, json=data, headers=self._headers(headers)) as resp:
                    body = await self._read_body(resp)

                    if resp.status >= 400:
                        logger.error(f"❌ {method} {endpoint} failed: HTTP {resp.status}")
                        return DispatchResult(
                            success=False,
                            status=resp.status,
                            data=body,
                            error=f"HTTP {resp.status}",
                        )

                    logger.info(f"✅ {method} {endpoint}: {resp.status}")
                    return DispatchResult(success=True, status=resp.status, data=body)

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            error = str(e) or type(e).__name__
            logger.error(f"❌ {method} {endpoint} failed: {error}")
            return DispatchResult(success=False, error=error)

    async def post(self, endpoint: str, data: Any, headers: Optional[Dict[str, str]] = None) -> DispatchResult:
        return await self.request("POST", endpoint, data, headers)
