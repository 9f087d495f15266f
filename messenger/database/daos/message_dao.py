from datetime import datetime
from typing import Iterable, List, Optional

from messenger.database.core.storage import InMemoryStorage, storage
from messenger.database.entities.message import Message, MessageStatus

SEARCH_RESULT_LIMIT = 50


class MessageDao:
    """Access to `Message` records of a store."""

    def __init__(self, store: InMemoryStorage = storage) -> None:
        self.store = store

    def create_message(self, message: Message) -> Message:
        self.store.messages.append(message)
        return message

    def get_message(self, message_id: str, tenant_id: str) -> Optional[Message]:
        return next(
            (m for m in self.store.messages if m.id == message_id and m.tenant_id == tenant_id),
            None,
        )

    def get_messages(
        self,
        conversation_id: str,
        tenant_id: str,
        limit: int = 50,
        before: Optional[datetime] = None,
    ) -> List[Message]:
        """
        Return one page of a conversation's history.

        The newest `limit` messages strictly older than `before` (when given)
        are selected and returned oldest first.
        """
        messages = [
            m for m in self.store.messages
            if m.conversation_id == conversation_id and m.tenant_id == tenant_id
        ]
        if before is not None:
            messages = [m for m in messages if m.timestamp < before]

        messages.sort(key=lambda m: m.timestamp, reverse=True)
        return list(reversed(messages[:limit]))

    def update_status(self, message_id: str, tenant_id: str, status: MessageStatus) -> Optional[Message]:
        message = self.get_message(message_id, tenant_id)
        if message:
            message.status = status
        return message

    def delete_message(self, message_id: str, tenant_id: str) -> bool:
        for index, message in enumerate(self.store.messages):
            if message.id == message_id and message.tenant_id == tenant_id:
                del self.store.messages[index]
                return True
        return False

    def search(
        self,
        tenant_id: str,
        query: str,
        conversation_ids: Iterable[str],
        conversation_id: Optional[str] = None,
    ) -> List[Message]:
        """Case-insensitive substring search, newest first, capped at `SEARCH_RESULT_LIMIT`."""
        needle = query.lower()
        allowed = set(conversation_ids)
        if conversation_id is not None:
            allowed &= {conversation_id}

        results = [
            m for m in self.store.messages
            if m.tenant_id == tenant_id
            and m.conversation_id in allowed
            and m.text and needle in m.text.lower()
        ]
        results.sort(key=lambda m: m.timestamp, reverse=True)
        return results[:SEARCH_RESULT_LIMIT]
