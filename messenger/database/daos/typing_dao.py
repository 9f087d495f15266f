import time
from typing import List

from messenger.database.config.config import settings
from messenger.database.core.storage import InMemoryStorage, storage


class TypingDao:
    """Short-lived "is typing" indicators keyed by conversation and user."""

    def __init__(self, store: InMemoryStorage = storage, ttl_seconds: float = settings.TYPING_TTL_SECONDS) -> None:
        self.store = store
        self.ttl_seconds = ttl_seconds

    def set_typing(self, conversation_id: str, user_id: str, is_typing: bool) -> None:
        indicators = self.store.typing.setdefault(conversation_id, {})
        if is_typing:
            indicators[user_id] = time.time()
        else:
            indicators.pop(user_id, None)

    def get_typing_users(self, conversation_id: str) -> List[str]:
        """User ids currently typing; stale indicators are dropped on the way."""
        indicators = self.store.typing.get(conversation_id, {})
        now = time.time()
        for user_id, started in list(indicators.items()):
            if now - started > self.ttl_seconds:
                del indicators[user_id]
        return list(indicators)
