"""
FastAPI Router: Passkey Identity

Registration and login use two round trips each (`begin` returns WebAuthn
options plus a challenge id, `finish` submits the authenticator response).
Successful ceremonies return a session token to be sent as
`Authorization: Bearer <token>` on the `/v1` API.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from messenger.api import passkeys
from messenger.api.models import LoginBegin, LoginFinish, RegisterBegin, RegisterFinish, Session
from messenger.api.passkeys import AuthenticationError
from messenger.api.utils import get_optional_session
from messenger.database.config.config import settings

logger = logging.getLogger(__name__)

router = APIRouter()


def _session_payload(session: Session, token: str) -> dict:
    return {
        "sid": session.user_id,
        "session_token": token,
        "user": {
            "id": session.user_id,
            "username": session.username,
            "display_name": session.display_name,
            "tenant_id": session.tenant_id,
        },
    }


@router.post("/register/begin")
async def register_begin(data: RegisterBegin):
    """
    Start a passkey registration.

    Request Body
    ------------
    RegisterBegin {username: str, display_name: str, tenant_id: str|None}

    Returns
    -------
    dict
        {'challenge_id': str, 'options': PublicKeyCredentialCreationOptions}

    Raises
    ------
    HTTPException 400
        If a field is missing or the username already exists.
    """
    if not data.username or not data.display_name:
        raise HTTPException(status_code=400, detail="Username and display_name are required")
    try:
        challenge_id, options = passkeys.generate_registration_challenge(
            data.username, data.display_name, data.tenant_id or settings.DEFAULT_TENANT_ID
        )
    except AuthenticationError as e:
        logger.info("Registration begin rejected: %s", e)
        raise HTTPException(status_code=400, detail=str(e))
    return {"challenge_id": challenge_id, "options": options}


@router.post("/register/finish")
async def register_finish(data: RegisterFinish):
    """
    Complete a passkey registration and open a session.

    Request Body
    ------------
    RegisterFinish {challenge_id: str, attestation: dict, tenant_id: str|None}

    Returns
    -------
    dict
        {'sid': str, 'session_token': str, 'user': {...}}
    """
    if not data.challenge_id or not data.attestation:
        raise HTTPException(status_code=400, detail="challenge_id and attestation are required")
    try:
        session, token = passkeys.verify_registration_challenge(
            data.challenge_id, data.attestation, data.tenant_id or settings.DEFAULT_TENANT_ID
        )
    except AuthenticationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _session_payload(session, token)


@router.post("/login/begin")
async def login_begin(data: LoginBegin):
    """
    Start a passkey login.

    Returns
    -------
    dict
        {'challenge_id': str, 'public_key': PublicKeyCredentialRequestOptions}
    """
    if not data.username:
        raise HTTPException(status_code=400, detail="Username is required")
    try:
        challenge_id, options = passkeys.generate_authentication_challenge(
            data.username, data.tenant_id or settings.DEFAULT_TENANT_ID
        )
    except AuthenticationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"challenge_id": challenge_id, "public_key": options}


@router.post("/login/finish")
async def login_finish(data: LoginFinish):
    """
    Complete a passkey login and open a session.

    Request Body
    ------------
    LoginFinish {challenge_id: str, credential: dict, tenant_id: str|None}
    """
    if not data.challenge_id or not data.credential:
        raise HTTPException(status_code=400, detail="challenge_id and credential are required")
    try:
        session, token = passkeys.verify_authentication_challenge(
            data.challenge_id, data.credential, data.tenant_id or settings.DEFAULT_TENANT_ID
        )
    except AuthenticationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _session_payload(session, token)


@router.post("/logout")
async def logout(session: Optional[Session] = Depends(get_optional_session)):
    """
    Logout the caller by marking them offline. Tokens are stateless and stay
    valid until they expire; the client is expected to discard its copy.
    """
    if session:
        passkeys.user_dao.update_status(session.user_id, session.tenant_id, "offline")
    return {"ok": True}


@router.get("/whoami")
async def whoami(session: Optional[Session] = Depends(get_optional_session)):
    """
    Describe the caller.

    Returns
    -------
    dict
        Identity and presence of the session user, or nulls when anonymous.
    """
    if session is None:
        return {"authenticated": False, "sid": None, "display_name": None, "kind": None}

    user = passkeys.user_dao.get_user(session.user_id, session.tenant_id)
    return {
        "authenticated": session.authenticated,
        "sid": session.user_id,
        "display_name": session.display_name,
        "username": session.username,
        "tenant_id": session.tenant_id,
        "kind": user.status if user else "offline",
    }
