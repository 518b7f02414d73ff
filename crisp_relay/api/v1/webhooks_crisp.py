# file: crisp_relay/api/v1/webhooks_crisp.py

import logging
from fastapi import APIRouter, Depends

from crisp_relay.api.deps import get_engine
from crisp_relay.services.debounce_engine import DebounceEngine

router = APIRouter()
logger = logging.getLogger("webhooks_crisp")

# visitor → operator messages only
HANDLED_EVENT = "message:send"


# ============================================================
# Main webhook
# ============================================================

@router.post("")
async def crisp_webhook(payload: dict, engine: DebounceEngine = Depends(get_engine)):

    event_name = payload.get("event")
    if event_name != HANDLED_EVENT:
        return {"ignored": True, "reason": "not_message_send"}

    message = payload.get("data")
    if not isinstance(message, dict):
        return {"ignored": True, "reason": "missing_data"}

    # the forwarded event carries the envelope website_id when data has none
    if not message.get("website_id") and payload.get("website_id"):
        message["website_id"] = payload["website_id"]

    if not message.get("website_id") or not message.get("session_id"):
        logger.warning("⚠️ [CRISP] message:send without website_id/session_id")
        return {"ignored": True, "reason": "missing_session"}

    logger.info(
        f"📨 [CRISP] message:send session={message.get('session_id')} type={message.get('type')}"
    )
    engine.on_message(message)

    return {"status": "accepted"}
