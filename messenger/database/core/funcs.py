"""
Service functions used by the REST router.

Each function works on behalf of a `Session` and only ever touches records
of the session's tenant. Lookups that fail raise `HTTPException` 404, access
to a conversation the caller does not take part in raises 403.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import HTTPException

from messenger.api.models import ConversationCreationDetails, NewMessage, Session
from messenger.database.daos.conversation_dao import ConversationDao
from messenger.database.daos.message_dao import MessageDao
from messenger.database.daos.typing_dao import TypingDao
from messenger.database.daos.user_dao import UserDao
from messenger.database.entities.conversation import Conversation, LastMessage
from messenger.database.entities.message import Message, MessageStatus
from messenger.database.entities.user import User, UserStatus

logger = logging.getLogger(__name__)

user_dao = UserDao()
conversation_dao = ConversationDao()
message_dao = MessageDao()
typing_dao = TypingDao()

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def list_users(session: Session) -> List[User]:
    return user_dao.get_users(session.tenant_id)


def get_user(session: Session) -> User:
    user = user_dao.get_user(session.user_id, session.tenant_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user


def set_user_status(session: Session, status: UserStatus) -> User:
    user = user_dao.update_status(session.user_id, session.tenant_id, status)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user


def list_conversations(session: Session) -> List[Conversation]:
    """Caller's conversations, most recently active first; silent ones go last."""
    conversations = conversation_dao.get_conversations(session.tenant_id, session.user_id)
    return sorted(
        conversations,
        key=lambda c: c.last_message.timestamp if c.last_message else _EPOCH,
        reverse=True,
    )


def get_conversation_for(session: Session, conversation_id: str) -> Conversation:
    conversation = conversation_dao.get_conversation(conversation_id, session.tenant_id)
    if conversation is None:
        raise HTTPException(status_code=404, detail="Conversation not found")
    if session.user_id not in conversation.participants:
        raise HTTPException(status_code=403, detail="Not a participant of this conversation")
    return conversation


def create_conversation(session: Session, details: ConversationCreationDetails) -> Conversation:
    """
    Create a conversation owned by the tenant of `session`.

    The caller is always a participant and duplicate ids are dropped while
    keeping the given order. A direct conversation needs exactly two people.
    """
    participants = list(dict.fromkeys([session.user_id, *details.participants]))
    if details.type == "direct" and len(participants) != 2:
        raise HTTPException(status_code=400, detail="A direct conversation needs exactly two participants")

    conversation = conversation_dao.create_conversation(Conversation(
        id=f"conv_{uuid.uuid4()}",
        tenant_id=session.tenant_id,
        type=details.type,
        name=details.name,
        participants=participants,
    ))
    logger.info("User %s created %s conversation %s", session.user_id, conversation.type, conversation.id)
    return conversation


def mark_conversation_read(session: Session, conversation_id: str) -> Conversation:
    get_conversation_for(session, conversation_id)
    return conversation_dao.mark_as_read(conversation_id, session.tenant_id)


def list_messages(
    session: Session,
    conversation_id: str,
    limit: int = 50,
    before: Optional[datetime] = None,
) -> List[Message]:
    get_conversation_for(session, conversation_id)
    # Timestamps without an offset are taken as UTC.
    if before is not None and before.tzinfo is None:
        before = before.replace(tzinfo=timezone.utc)
    return message_dao.get_messages(conversation_id, session.tenant_id, limit=limit, before=before)


def send_message(session: Session, conversation_id: str, data: NewMessage) -> Message:
    """Store a message from the session user and refresh the conversation preview."""
    get_conversation_for(session, conversation_id)
    message = message_dao.create_message(Message(
        id=f"msg_{uuid.uuid4()}",
        tenant_id=session.tenant_id,
        conversation_id=conversation_id,
        sender_id=session.user_id,
        text=data.text,
        type=data.type,
        attachments=data.attachments,
    ))
    conversation_dao.update_last_message(
        conversation_id,
        session.tenant_id,
        LastMessage(text=message.text, timestamp=message.timestamp, sender=message.sender_id),
    )
    conversation_dao.increment_unread_count(conversation_id, session.tenant_id)
    return message


def _message_for(session: Session, message_id: str) -> Message:
    message = message_dao.get_message(message_id, session.tenant_id)
    if message is None:
        raise HTTPException(status_code=404, detail="Message not found")
    get_conversation_for(session, message.conversation_id)
    return message


def update_message_status(session: Session, message_id: str, status: MessageStatus) -> Message:
    _message_for(session, message_id)
    return message_dao.update_status(message_id, session.tenant_id, status)


def delete_message(session: Session, message_id: str) -> None:
    _message_for(session, message_id)
    message_dao.delete_message(message_id, session.tenant_id)
    logger.info("User %s deleted message %s", session.user_id, message_id)


def set_typing(session: Session, conversation_id: str, is_typing: bool) -> None:
    get_conversation_for(session, conversation_id)
    typing_dao.set_typing(conversation_id, session.user_id, is_typing)


def get_typing(session: Session, conversation_id: str) -> List[str]:
    get_conversation_for(session, conversation_id)
    return typing_dao.get_typing_users(conversation_id)


def search_messages(session: Session, query: Optional[str], conversation_id: Optional[str] = None) -> List[Message]:
    if not query:
        raise HTTPException(status_code=400, detail='Query parameter "q" is required')
    conversation_ids = [c.id for c in conversation_dao.get_conversations(session.tenant_id, session.user_id)]
    return message_dao.search(session.tenant_id, query, conversation_ids, conversation_id=conversation_id)
