from typing import List, Optional

from messenger.database.core.storage import InMemoryStorage, storage
from messenger.database.entities.conversation import Conversation, LastMessage


class ConversationDao:
    """Access to `Conversation` records of a store."""

    def __init__(self, store: InMemoryStorage = storage) -> None:
        self.store = store

    def create_conversation(self, conversation: Conversation) -> Conversation:
        self.store.conversations.append(conversation)
        return conversation

    def get_conversation(self, conversation_id: str, tenant_id: str) -> Optional[Conversation]:
        return next(
            (c for c in self.store.conversations
             if c.id == conversation_id and c.tenant_id == tenant_id),
            None,
        )

    def get_conversations(self, tenant_id: str, user_id: Optional[str] = None) -> List[Conversation]:
        """Conversations of a tenant, restricted to those `user_id` takes part in when given."""
        conversations = [c for c in self.store.conversations if c.tenant_id == tenant_id]
        if user_id:
            conversations = [c for c in conversations if user_id in c.participants]
        return conversations

    def update_last_message(self, conversation_id: str, tenant_id: str, last_message: LastMessage) -> None:
        conversation = self.get_conversation(conversation_id, tenant_id)
        if conversation:
            conversation.last_message = last_message

    def mark_as_read(self, conversation_id: str, tenant_id: str) -> Optional[Conversation]:
        conversation = self.get_conversation(conversation_id, tenant_id)
        if conversation:
            conversation.unread_count = 0
        return conversation

    def increment_unread_count(self, conversation_id: str, tenant_id: str) -> None:
        conversation = self.get_conversation(conversation_id, tenant_id)
        if conversation:
            conversation.unread_count += 1
