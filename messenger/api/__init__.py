"""
The `api` package defines the backend's HTTP and WebSocket interface,
along with supporting utilities and data models.

It integrates FastAPI routing, JWT session tokens, passkey (WebAuthn)
login and the WebSocket relay. The package ensures clean request/response
validation and participant-based access control.

Contents
--------
- fast_api
    Defines the FastAPI router with endpoints for:
        * Health check
        * Users and presence status
        * Conversation creation, retrieval and read marking
        * Messaging, typing indicators and search

- identity_api
    Passkey registration and login, logout and whoami.

- passkeys
    WebAuthn ceremonies on top of `py_webauthn`:
        * Challenge issuance with expiry and one-shot consumption
        * Credential storage and signature counter checks

- websocket
    `ConnectionManager` relaying `message`, `typing` and `read_receipt`
    envelopes between connected sockets, optionally per tenant.

- models
    Pydantic schemas for request validation and the `Session` identity.

- utils
    JWT utilities:
        * `create_access_token`: issues signed JWTs with expiration
        * `verify_token`: validates JWTs and extracts the session
        * `get_current_session`: FastAPI dependency for Bearer auth
"""
