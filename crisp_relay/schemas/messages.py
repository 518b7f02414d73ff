from typing import Any, Optional

from pydantic import BaseModel, Field


# ===========================================
# Conversation session (state key)
# ===========================================

class ConversationSession(BaseModel):
    website_id: str
    session_id: str

    @property
    def key(self) -> str:
        return f"{self.website_id}:{self.session_id}"

    def __str__(self) -> str:
        return self.key

    class Config:
        frozen = True


# ===========================================
# Outbound message (Crisp send-message body)
# ===========================================

class OutboundMessage(BaseModel):
    type: str = "text"
    from_: str = Field(default="operator", alias="from")
    origin: str = "chat"
    content: Any

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True)

    class Config:
        populate_by_name = True


# ===========================================
# Result of every outbound call
# ===========================================

class DispatchResult(BaseModel):
    success: bool
    status: Optional[int] = None
    data: Any = None
    error: Optional[str] = None
