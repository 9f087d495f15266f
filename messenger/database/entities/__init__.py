"""
The `entities` package defines the records of the application as
pydantic models. They are held in process memory by
`messenger.database.core.storage.InMemoryStorage`; nothing survives a restart.

These entity classes are the foundation of the storage layer,
used by DAOs (`daos` package) to perform CRUD operations.

Contents
--------
- User
    Represents a registered user in the system.
    * Stores username, display name and avatar
    * Tracks presence status and last seen timestamp
    * Carries the tenant tag

- Conversation
    Represents a direct or group conversation.
    * Stores the participant list and the last message preview
    * Tracks unread counter and creation timestamp

- Message
    Represents a single message within a conversation.
    * Stores message text, sender and attachments
    * Records creation timestamp and delivery status

- Challenge, StoredCredential
    WebAuthn bookkeeping.
    * Pending registration/authentication challenges with creation time
    * Registered passkeys with their public key and signature counter
"""
