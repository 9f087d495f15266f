"""
The `daos` package provides the Data Access Layer for the application.

It is responsible for all interactions with the in-memory store,
encapsulating CRUD operations that support the core functionality
of the system. Each DAO operates on a specific entity and hides the
list scans over `InMemoryStorage`, offering a cleaner API to the
service layer.

Contents
--------
- UserDao
    Handles user records:
    * Creates users
    * Fetches users by id or username within a tenant
    * Updates presence status and last seen time

- ConversationDao
    Manages conversation records:
    * Creates new conversations
    * Fetches conversations by tenant and participant
    * Updates last message preview and unread counter

- MessageDao
    Manages message records:
    * Creates messages within a conversation
    * Fetches a page of messages (chronological order)
    * Updates delivery status, deletes, searches text

- TypingDao
    Tracks short-lived typing indicators per conversation.

- ChallengeDao
    Pending WebAuthn challenges with TTL expiry and one-shot consumption.

- CredentialDao
    Registered passkeys and their signature counters.
"""
