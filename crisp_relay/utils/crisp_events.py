# file: crisp_relay/utils/crisp_events.py

from typing import Any, Dict, Optional

from crisp_relay.schemas.messages import ConversationSession


def detect_message_type(event: Dict[str, Any]) -> str:
    msg_type = event.get("type")
    if msg_type == "text":
        return "text" if isinstance(event.get("content"), str) else "unknown"
    return msg_type or "unknown"


def is_text_message(event: Dict[str, Any]) -> bool:
    return detect_message_type(event) == "text"


def session_from_event(event: Dict[str, Any]) -> Optional[ConversationSession]:
    """
    Returns the conversation key of a message event, or None when the
    event does not carry both identifiers.
    """
    website_id = event.get("website_id")
    session_id = event.get("session_id")

    if not website_id or not session_id:
        return None

    return ConversationSession(website_id=str(website_id), session_id=str(session_id))
