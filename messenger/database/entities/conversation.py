from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from messenger.database.core.clock import utc_now

ConversationType = Literal["direct", "group"]


class LastMessage(BaseModel):
    """Preview of the newest message, shown in conversation lists."""

    text: str
    timestamp: datetime
    sender: str


class Conversation(BaseModel):
    """A direct or group conversation between participants of one tenant."""

    id: str
    tenant_id: str
    type: ConversationType = "direct"
    name: Optional[str] = None
    avatar_url: Optional[str] = None
    participants: List[str] = Field(default_factory=list)
    last_message: Optional[LastMessage] = None
    unread_count: int = 0
    created_at: datetime = Field(default_factory=utc_now)
