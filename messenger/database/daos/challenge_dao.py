import logging
import time
from typing import Optional

from messenger.database.config.config import settings
from messenger.database.core.storage import InMemoryStorage, storage
from messenger.database.entities.auth import Challenge

logger = logging.getLogger(__name__)


class ChallengeDao:
    """
    Pending WebAuthn challenges with a fixed time-to-live.

    Lookups treat expired entries as missing and evict them. `consume`
    removes the challenge, so each one can finish at most one ceremony.
    """

    def __init__(self, store: InMemoryStorage = storage, ttl_seconds: float = settings.CHALLENGE_TTL_SECONDS) -> None:
        self.store = store
        self.ttl_seconds = ttl_seconds

    def _expired(self, challenge: Challenge, now: float) -> bool:
        return now - challenge.created_at > self.ttl_seconds

    def issue(self, challenge: Challenge) -> Challenge:
        self.purge_expired()
        self.store.challenges[challenge.id] = challenge
        return challenge

    def get(self, challenge_id: str) -> Optional[Challenge]:
        challenge = self.store.challenges.get(challenge_id)
        if challenge is None:
            return None
        if self._expired(challenge, time.time()):
            del self.store.challenges[challenge_id]
            return None
        return challenge

    def consume(self, challenge_id: str) -> Optional[Challenge]:
        challenge = self.get(challenge_id)
        if challenge is not None:
            del self.store.challenges[challenge_id]
        return challenge

    def purge_expired(self) -> int:
        now = time.time()
        expired = [cid for cid, c in self.store.challenges.items() if self._expired(c, now)]
        for cid in expired:
            del self.store.challenges[cid]
        if expired:
            logger.debug("Purged %d expired challenges", len(expired))
        return len(expired)
