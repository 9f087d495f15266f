from typing import List, Optional

from messenger.database.core.clock import utc_now
from messenger.database.core.storage import InMemoryStorage, storage
from messenger.database.entities.user import User, UserStatus


class UserDao:
    """Access to `User` records of a store."""

    def __init__(self, store: InMemoryStorage = storage) -> None:
        self.store = store

    def create_user(self, user: User) -> User:
        user.last_seen = utc_now()
        self.store.users.append(user)
        return user

    def get_user(self, user_id: str, tenant_id: str) -> Optional[User]:
        return next(
            (u for u in self.store.users if u.id == user_id and u.tenant_id == tenant_id),
            None,
        )

    def get_user_by_username(self, username: str, tenant_id: str) -> Optional[User]:
        return next(
            (u for u in self.store.users if u.username == username and u.tenant_id == tenant_id),
            None,
        )

    def get_users(self, tenant_id: str) -> List[User]:
        return [u for u in self.store.users if u.tenant_id == tenant_id]

    def update_status(self, user_id: str, tenant_id: str, status: UserStatus) -> Optional[User]:
        """Set the presence status and refresh `last_seen`. Unknown users are ignored."""
        user = self.get_user(user_id, tenant_id)
        if user:
            user.status = status
            user.last_seen = utc_now()
        return user
