"""
Process-local storage for the messenger.

Every collection is a plain list (or dict) scanned linearly by the DAOs.
There are no indices and no persistence: restarting the process loses
everything except the optional demo seed.
"""

import logging
from datetime import timedelta
from typing import Dict, List

from messenger.database.core.clock import utc_now
from messenger.database.entities.auth import Challenge, StoredCredential
from messenger.database.entities.conversation import Conversation, LastMessage
from messenger.database.entities.message import Message
from messenger.database.entities.user import User

logger = logging.getLogger(__name__)

AVATAR_URL = "https://api.dicebear.com/7.x/notionists/svg?seed={seed}&backgroundColor={color}"


def avatar_for(seed: str, color: str = "f5f5f5") -> str:
    return AVATAR_URL.format(seed=seed, color=color)


class InMemoryStorage:
    """Holds every record of the running process."""

    def __init__(self) -> None:
        self.users: List[User] = []
        self.conversations: List[Conversation] = []
        self.messages: List[Message] = []
        # conversation_id -> {user_id -> time the indicator was set}
        self.typing: Dict[str, Dict[str, float]] = {}
        self.challenges: Dict[str, Challenge] = {}
        # user_id -> registered passkeys
        self.credentials: Dict[str, List[StoredCredential]] = {}

    def clear(self) -> None:
        self.users.clear()
        self.conversations.clear()
        self.messages.clear()
        self.typing.clear()
        self.challenges.clear()
        self.credentials.clear()


storage = InMemoryStorage()
"""Shared store used by the DAOs unless another one is injected."""


def seed_demo_data(store: InMemoryStorage, tenant_id: str) -> None:
    """
    Populate `store` with the demo users, conversations and messages.

    Parameters
    ----------
    store : InMemoryStorage
        Store to fill. Existing records are kept.
    tenant_id : str
        Tenant tag applied to every seeded record.
    """
    now = utc_now()

    store.users.extend([
        User(id="U.001", tenant_id=tenant_id, username="dan", display_name="Dan",
             avatar_url=avatar_for("dan"), status="online", last_seen=now),
        User(id="U.002", tenant_id=tenant_id, username="alex", display_name="Alex (Advisor)",
             avatar_url=avatar_for("alex", "e0e0e0"), status="online", last_seen=now),
        User(id="U.003", tenant_id=tenant_id, username="sarah", display_name="Sarah (Designer)",
             avatar_url=avatar_for("sarah", "c8e6c9"), status="away",
             last_seen=now - timedelta(hours=1)),
    ])

    store.conversations.extend([
        Conversation(
            id="conv_001", tenant_id=tenant_id, type="direct", name="Alex (Advisor)",
            avatar_url=avatar_for("alex", "e0e0e0"), participants=["U.001", "U.002"],
            last_message=LastMessage(text="Let's sync on the investor deck",
                                     timestamp=now - timedelta(hours=3), sender="U.002"),
            unread_count=0, created_at=now - timedelta(days=1),
        ),
        Conversation(
            id="conv_002", tenant_id=tenant_id, type="direct", name="Sarah (Designer)",
            avatar_url=avatar_for("sarah", "c8e6c9"), participants=["U.001", "U.003"],
            last_message=LastMessage(text="The new mockups are ready!",
                                     timestamp=now - timedelta(hours=2), sender="U.003"),
            unread_count=2, created_at=now - timedelta(days=2),
        ),
        Conversation(
            id="conv_003", tenant_id=tenant_id, type="group", name="UBL 2.0 Sprint",
            participants=["U.001", "U.002", "U.003"],
            last_message=LastMessage(text="Policy VM bytecode tests passing",
                                     timestamp=now - timedelta(minutes=12), sender="U.001"),
            unread_count=0, created_at=now - timedelta(days=3),
        ),
    ])

    store.messages.extend([
        Message(id="msg_001", tenant_id=tenant_id, conversation_id="conv_001", sender_id="U.002",
                text="Hey Dan, do you have time this week to review the investor deck?",
                timestamp=now - timedelta(hours=4), status="read"),
        Message(id="msg_002", tenant_id=tenant_id, conversation_id="conv_001", sender_id="U.001",
                text="Sure! How about Thursday afternoon?",
                timestamp=now - timedelta(hours=3, minutes=30), status="read"),
        Message(id="msg_003", tenant_id=tenant_id, conversation_id="conv_001", sender_id="U.002",
                text="Perfect! I'll send over the deck by Wednesday.",
                timestamp=now - timedelta(hours=3, minutes=16, seconds=40), status="read"),
        Message(id="msg_004", tenant_id=tenant_id, conversation_id="conv_001", sender_id="U.002",
                text="Let's sync on the investor deck",
                timestamp=now - timedelta(hours=3), status="read"),
    ])

    logger.info("Seeded demo data for tenant %s: %d users, %d conversations, %d messages",
                tenant_id, len(store.users), len(store.conversations), len(store.messages))
