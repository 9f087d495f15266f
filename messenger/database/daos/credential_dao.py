from typing import List, Optional

from messenger.database.core.storage import InMemoryStorage, storage
from messenger.database.entities.auth import StoredCredential


class CounterRegressionError(Exception):
    """Raised when an assertion's signature counter does not move forward."""


class CredentialDao:
    """Registered passkeys, grouped by user id."""

    def __init__(self, store: InMemoryStorage = storage) -> None:
        self.store = store

    def add_credential(self, user_id: str, credential: StoredCredential) -> StoredCredential:
        self.store.credentials.setdefault(user_id, []).append(credential)
        return credential

    def get_credentials(self, user_id: str) -> List[StoredCredential]:
        return list(self.store.credentials.get(user_id, []))

    def find_credential(self, user_id: str, credential_id: str) -> Optional[StoredCredential]:
        return next((c for c in self.store.credentials.get(user_id, []) if c.id == credential_id), None)

    def update_counter(self, credential: StoredCredential, new_counter: int) -> None:
        """
        Record the counter reported by the latest assertion.

        Authenticators without counter support always report zero; for any
        other value the counter must strictly increase, otherwise the
        assertion may come from a cloned authenticator.
        """
        if (new_counter or credential.counter) and new_counter <= credential.counter:
            raise CounterRegressionError(
                f"Signature counter went from {credential.counter} to {new_counter}"
            )
        credential.counter = new_counter
