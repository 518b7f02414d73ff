# file: crisp_relay/api/v1/conversations.py

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from crisp_relay.api.deps import get_crisp_client
from crisp_relay.schemas.messages import ConversationSession, OutboundMessage
from crisp_relay.services.crisp_service import CrispClient

router = APIRouter()
logger = logging.getLogger("conversations")

REQUIRED_FIELDS = ["website_id", "session_id", "message"]


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


# ============================================================
# Operator → conversation
# ============================================================

@router.post("/send-message")
async def send_message(payload: dict, crisp: CrispClient = Depends(get_crisp_client)):
    message = payload.get("message")

    missing_ids = not payload.get("website_id") or not payload.get("session_id")
    if missing_ids or not isinstance(message, dict):
        return JSONResponse(
            status_code=400,
            content={"error": "Missing required fields", "required": REQUIRED_FIELDS},
        )

    session = ConversationSession(
        website_id=str(payload["website_id"]),
        session_id=str(payload["session_id"]),
    )
    outbound = OutboundMessage(
        type=message.get("type") or "text",
        origin=message.get("origin") or "chat",
        content=message.get("content"),
        **{"from": message.get("from") or "operator"},
    )

    logger.info(f"📤 Sending message to session {session.session_id}")

    result = await crisp.send_message_to_conversation(session, outbound)

    if not result.success:
        return JSONResponse(
            status_code=result.status or 500,
            content={"success": False, "error": result.error},
        )

    return {
        "success": True,
        "message": "Message sent successfully",
        "timestamp": _timestamp(),
    }
