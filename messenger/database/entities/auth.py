from typing import List, Literal, Optional

from pydantic import BaseModel, Field

ChallengeKind = Literal["registration", "authentication"]


class Challenge(BaseModel):
    """
    A pending WebAuthn ceremony.

    `challenge` holds the raw bytes handed to the authenticator and
    `created_at` is a unix timestamp used for expiry.
    """

    id: str
    kind: ChallengeKind
    tenant_id: str
    username: str
    display_name: str
    user_id: Optional[str] = None
    challenge: bytes
    created_at: float


class StoredCredential(BaseModel):
    """A registered passkey. `id` is the base64url encoded credential id."""

    id: str
    user_id: str
    public_key: bytes
    counter: int = 0
    transports: List[str] = Field(default_factory=list)
