"""
Pydantic schemas for request validation and the session carried in JWTs.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from messenger.database.entities.conversation import ConversationType
from messenger.database.entities.message import Attachment, MessageStatus
from messenger.database.entities.user import UserStatus


class Session(BaseModel):
    """Identity resolved from a session token."""
    user_id: str
    tenant_id: str
    username: str
    display_name: str
    authenticated: bool = True


class StatusUpdate(BaseModel):
    status: UserStatus


class ConversationCreationDetails(BaseModel):
    type: ConversationType = "direct"
    name: Optional[str] = None
    participants: List[str] = Field(default_factory=list)


class NewMessage(BaseModel):
    text: str
    type: Literal["text"] = "text"
    attachments: List[Attachment] = Field(default_factory=list)


class MessageStatusUpdate(BaseModel):
    status: MessageStatus


class TypingUpdate(BaseModel):
    is_typing: bool


class RegisterBegin(BaseModel):
    username: str = ""
    display_name: str = ""
    tenant_id: Optional[str] = None


class RegisterFinish(BaseModel):
    challenge_id: str = ""
    attestation: Optional[Dict[str, Any]] = None
    tenant_id: Optional[str] = None


class LoginBegin(BaseModel):
    username: str = ""
    tenant_id: Optional[str] = None


class LoginFinish(BaseModel):
    challenge_id: str = ""
    credential: Optional[Dict[str, Any]] = None
    tenant_id: Optional[str] = None
