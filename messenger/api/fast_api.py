"""
FastAPI Router: Users, Conversations, Messages, Typing and Search

This module defines the `/v1` HTTP API endpoints exposed by the backend. It handles:
- Listing users and updating the caller's presence status
- Conversation creation, retrieval and read marking
- Messaging (send, page through history, update status, delete)
- Typing indicators
- Message search

Every `/v1` endpoint requires a Bearer session token and only sees records of the
caller's tenant. Events produced here are relayed to WebSocket clients.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query

from messenger.api.models import (
    ConversationCreationDetails,
    MessageStatusUpdate,
    NewMessage,
    Session,
    StatusUpdate,
    TypingUpdate,
)
from messenger.api.utils import get_current_session
from messenger.api.websocket import manager
from messenger.database.config.config import settings
from messenger.database.core import funcs
from messenger.database.core.clock import create_timestamp

router = APIRouter()
"""Creates the FastAPI router in which we define its routes"""


@router.get("/health")
async def health():
    """
    Liveness probe.

    Returns
    -------
    dict
        {'status': 'ok', 'version': str, 'service': 'messenger'}
    """
    return {"status": "ok", "version": settings.APP_VERSION, "service": "messenger"}


@router.get("/v1/users/me")
async def get_me(session: Session = Depends(get_current_session)):
    """
    Return the user behind the session token.

    Raises
    ------
    HTTPException 404
        If the user no longer exists.
    """
    return {"user": funcs.get_user(session)}


@router.get("/v1/users")
async def get_users(session: Session = Depends(get_current_session)):
    """List every user of the caller's tenant."""
    return {"users": funcs.list_users(session)}


@router.patch("/v1/users/me/status")
async def update_status(data: StatusUpdate, session: Session = Depends(get_current_session)):
    """
    Update the caller's presence status.

    Request Body
    ------------
    StatusUpdate {status: 'online'|'away'|'offline'}
    """
    return {"user": funcs.set_user_status(session, data.status)}


@router.get("/v1/conversations")
async def get_conversations(session: Session = Depends(get_current_session)):
    """
    Fetch the caller's conversations.

    Returns
    -------
    dict
        {'conversations': [...]} sorted by last message time, newest first.
    """
    return {"conversations": funcs.list_conversations(session)}


@router.post("/v1/conversations", status_code=201)
async def new_conversation(data: ConversationCreationDetails, session: Session = Depends(get_current_session)):
    """
    Create a new conversation.

    Request Body
    ------------
    ConversationCreationDetails {type: 'direct'|'group', name: str|None, participants: list[str]}

    Raises
    ------
    HTTPException 400
        If a direct conversation does not have exactly two participants.
    """
    return {"conversation": funcs.create_conversation(session, data)}


@router.get("/v1/conversations/{conversation_id}")
async def get_conversation(conversation_id: str, session: Session = Depends(get_current_session)):
    """
    Fetch one conversation.

    Raises
    ------
    HTTPException 404
        If the conversation does not exist.
    HTTPException 403
        If the caller is not a participant.
    """
    return {"conversation": funcs.get_conversation_for(session, conversation_id)}


@router.post("/v1/conversations/{conversation_id}/read")
async def mark_read(conversation_id: str, session: Session = Depends(get_current_session)):
    """Reset the unread counter of a conversation."""
    return {"conversation": funcs.mark_conversation_read(session, conversation_id)}


@router.get("/v1/conversations/{conversation_id}/messages")
async def get_messages(
    conversation_id: str,
    limit: int = Query(50, ge=1, le=200),
    before: Optional[datetime] = None,
    session: Session = Depends(get_current_session),
):
    """
    Fetch a page of messages for a conversation.

    Query Parameters
    ----------------
    limit : int
        Maximum number of messages (default 50).
    before : datetime, optional
        Only return messages strictly older than this instant.

    Returns
    -------
    dict
        {'messages': [...]} in ascending timestamp order.
    """
    return {"messages": funcs.list_messages(session, conversation_id, limit=limit, before=before)}


@router.post("/v1/conversations/{conversation_id}/messages", status_code=201)
async def new_message(conversation_id: str, data: NewMessage, session: Session = Depends(get_current_session)):
    """
    Send a message as the session user and relay it to the participants' sockets.

    Request Body
    ------------
    NewMessage {text: str, type: 'text', attachments: list}

    Returns
    -------
    dict
        {'message': {...}}
    """
    message = funcs.send_message(session, conversation_id, data)
    conversation = funcs.get_conversation_for(session, conversation_id)
    await manager.broadcast(
        {"type": "new_message", "message": message.model_dump(mode="json"), "timestamp": create_timestamp()},
        tenant_id=session.tenant_id,
        user_ids=conversation.participants,
    )
    return {"message": message}


@router.patch("/v1/messages/{message_id}")
async def update_message(message_id: str, data: MessageStatusUpdate, session: Session = Depends(get_current_session)):
    """
    Update the delivery status of a message.

    Request Body
    ------------
    MessageStatusUpdate {status: 'sent'|'delivered'|'read'}
    """
    return {"message": funcs.update_message_status(session, message_id, data.status)}


@router.delete("/v1/messages/{message_id}")
async def delete_message(message_id: str, session: Session = Depends(get_current_session)):
    funcs.delete_message(session, message_id)
    return {"success": True}


@router.post("/v1/conversations/{conversation_id}/typing")
async def set_typing(conversation_id: str, data: TypingUpdate, session: Session = Depends(get_current_session)):
    """
    Start or stop the caller's typing indicator.

    Request Body
    ------------
    TypingUpdate {is_typing: bool}
    """
    funcs.set_typing(session, conversation_id, data.is_typing)
    conversation = funcs.get_conversation_for(session, conversation_id)
    await manager.broadcast(
        {
            "type": "typing",
            "conversation_id": conversation_id,
            "user_id": session.user_id,
            "is_typing": data.is_typing,
            "timestamp": create_timestamp(),
        },
        tenant_id=session.tenant_id,
        user_ids=conversation.participants,
    )
    return {"success": True}


@router.get("/v1/conversations/{conversation_id}/typing")
async def get_typing(conversation_id: str, session: Session = Depends(get_current_session)):
    """Users currently typing; indicators older than a few seconds are dropped."""
    return {"typing_users": funcs.get_typing(session, conversation_id)}


@router.get("/v1/search/messages")
async def search_messages(
    q: Optional[str] = None,
    conversation_id: Optional[str] = None,
    session: Session = Depends(get_current_session),
):
    """
    Search message text in the caller's conversations.

    Query Parameters
    ----------------
    q : str
        Case-insensitive substring to look for.
    conversation_id : str, optional
        Restrict the search to one conversation.

    Raises
    ------
    HTTPException 400
        If `q` is missing.
    """
    return {"messages": funcs.search_messages(session, q, conversation_id)}
