from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from messenger.database.core.clock import utc_now

MessageStatus = Literal["sent", "delivered", "read"]


class Attachment(BaseModel):
    id: str
    type: Literal["image", "video", "audio", "document"]
    url: str
    name: str
    size: int
    mime_type: Optional[str] = None


class Message(BaseModel):
    """A single message posted to a conversation."""

    id: str
    tenant_id: str
    conversation_id: str
    sender_id: str
    text: str
    type: Literal["text"] = "text"
    attachments: List[Attachment] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=utc_now)
    status: MessageStatus = "sent"
