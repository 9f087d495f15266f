"""
WebSocket relay.

Clients send JSON envelopes; the relay tags the connection on `authenticate`
and re-broadcasts `message`, `typing` and `read_receipt` envelopes to every
other open socket. Nothing is stored and there is no delivery or ordering
guarantee: a socket that fails to receive is simply dropped.

When the sender carries a tenant tag, only sockets tagged with the same
tenant receive the envelope.
"""

import asyncio
import json
import logging
from typing import Any, Dict, Iterable, List, Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from messenger.api.utils import verify_token
from messenger.database.core.clock import create_timestamp

logger = logging.getLogger(__name__)

DEFAULT_USER_ID = "U.001"

router = APIRouter()


class Connection:
    """An accepted socket and the identity it announced, if any."""

    def __init__(self, websocket: WebSocket) -> None:
        self.websocket = websocket
        self.user_id: Optional[str] = None
        self.tenant_id: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return (
            self.websocket.client_state == WebSocketState.CONNECTED
            and self.websocket.application_state == WebSocketState.CONNECTED
        )


class ConnectionManager:
    """Tracks open sockets and fans envelopes out to them."""

    def __init__(self) -> None:
        self.connections: List[Connection] = []

    async def connect(self, websocket: WebSocket) -> Connection:
        await websocket.accept()
        connection = Connection(websocket)
        self.connections.append(connection)
        logger.info("New WebSocket connection (%d open)", len(self.connections))
        return connection

    def disconnect(self, connection: Connection) -> None:
        if connection in self.connections:
            self.connections.remove(connection)
        logger.info("WebSocket connection closed (%d open)", len(self.connections))

    def recipients(
        self,
        sender: Optional[Connection] = None,
        tenant_id: Optional[str] = None,
        user_ids: Optional[Iterable[str]] = None,
    ) -> List[Connection]:
        allowed = set(user_ids) if user_ids is not None else None
        return [
            c for c in self.connections
            if c is not sender
            and c.is_open
            and (tenant_id is None or c.tenant_id == tenant_id)
            and (allowed is None or c.user_id in allowed)
        ]

    async def broadcast(
        self,
        envelope: Dict[str, Any],
        sender: Optional[Connection] = None,
        tenant_id: Optional[str] = None,
        user_ids: Optional[Iterable[str]] = None,
    ) -> int:
        """
        Send `envelope` to every open socket except `sender`.

        `user_ids` restricts delivery to sockets tagged with one of those users.
        Returns the number of sockets that received it.
        """
        targets = self.recipients(sender, tenant_id, user_ids)
        if not targets:
            return 0

        results = await asyncio.gather(
            *(c.websocket.send_json(envelope) for c in targets),
            return_exceptions=True,
        )
        delivered = 0
        for connection, result in zip(targets, results):
            if isinstance(result, Exception):
                logger.warning("Dropping connection of %s after send failure: %s", connection.user_id, result)
                self.disconnect(connection)
            else:
                delivered += 1
        return delivered

    async def handle(self, connection: Connection, data: Dict[str, Any]) -> None:
        msg_type = data.get("type")
        logger.debug("Received %s from %s", msg_type, connection.user_id)

        if msg_type == "authenticate":
            await self._authenticate(connection, data)
        elif msg_type == "message":
            await self.broadcast(
                {"type": "new_message", "message": data.get("message"), "timestamp": create_timestamp()},
                sender=connection,
                tenant_id=connection.tenant_id,
            )
        elif msg_type == "typing":
            await self.broadcast(
                {
                    "type": "typing",
                    "conversation_id": data.get("conversation_id"),
                    "user_id": connection.user_id,
                    "is_typing": data.get("is_typing"),
                    "timestamp": create_timestamp(),
                },
                sender=connection,
                tenant_id=connection.tenant_id,
            )
        elif msg_type == "read_receipt":
            await self.broadcast(
                {
                    "type": "read_receipt",
                    "message_id": data.get("message_id"),
                    "user_id": connection.user_id,
                    "timestamp": create_timestamp(),
                },
                sender=connection,
                tenant_id=connection.tenant_id,
            )
        else:
            logger.info("Unknown message type: %s", msg_type)

    async def _authenticate(self, connection: Connection, data: Dict[str, Any]) -> None:
        token = data.get("token")
        if token:
            session = verify_token(token)
            if session is None or not session.authenticated:
                await connection.websocket.send_json(
                    {"type": "error", "error": "Invalid or expired token", "timestamp": create_timestamp()}
                )
                return
            connection.user_id = session.user_id
            connection.tenant_id = session.tenant_id
        else:
            connection.user_id = data.get("userId") or DEFAULT_USER_ID
            connection.tenant_id = data.get("tenant_id")

        await connection.websocket.send_json({
            "type": "authenticated",
            "userId": connection.user_id,
            "tenantId": connection.tenant_id,
            "timestamp": create_timestamp(),
        })


manager = ConnectionManager()
"""Process-wide relay shared by the WebSocket endpoint and the REST router."""


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    connection = await manager.connect(websocket)
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))

            # Text and binary frames carry the same JSON envelopes.
            raw = message.get("text")
            if raw is None and message.get("bytes") is not None:
                raw = message["bytes"]
            if raw is None:
                continue
            try:
                data = json.loads(raw)
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                logger.error("Error handling WebSocket message: %s", e)
                continue
            if not isinstance(data, dict):
                logger.error("Error handling WebSocket message: expected a JSON object")
                continue
            await manager.handle(connection, data)
    except WebSocketDisconnect:
        pass
    finally:
        manager.disconnect(connection)
