from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

from messenger.database.core.clock import utc_now

UserStatus = Literal["online", "away", "offline"]


class User(BaseModel):
    """A registered messenger user."""

    id: str
    tenant_id: str
    username: str
    display_name: str
    avatar_url: Optional[str] = None
    status: UserStatus = "offline"
    last_seen: datetime = Field(default_factory=utc_now)
