"""
JWT utilities and FastAPI dependencies resolving the caller's session.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from messenger.api.models import Session
from messenger.database.config.config import settings

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def create_access_token(session: Session, expires_delta: Optional[timedelta] = None) -> str:
    """
    Issue a signed session token for `session`.

    Parameters
    ----------
    session : Session
        Identity to embed in the token claims.
    expires_delta : timedelta, optional
        Token lifetime; defaults to `ACCESS_TOKEN_EXPIRE_MINUTES`.

    Returns
    -------
    str
        The encoded JWT.
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    payload = {
        "sub": session.user_id,
        "userId": session.user_id,
        "tenantId": session.tenant_id,
        "username": session.username,
        "displayName": session.display_name,
        "authenticated": session.authenticated,
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def verify_token(token: str) -> Optional[Session]:
    """
    Decode a session token.

    Returns
    -------
    Session or None
        The embedded identity, or None if the token is malformed, forged or expired.
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.PyJWTError as e:
        logger.info("Token verification failed: %s", e)
        return None
    try:
        return Session(
            user_id=payload["userId"],
            tenant_id=payload["tenantId"],
            username=payload["username"],
            display_name=payload["displayName"],
            authenticated=payload.get("authenticated", False),
        )
    except KeyError as e:
        logger.info("Token is missing claim %s", e)
        return None


def get_optional_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[Session]:
    if credentials is None:
        return None
    return verify_token(credentials.credentials)


def get_current_session(session: Optional[Session] = Depends(get_optional_session)) -> Session:
    if session is None or not session.authenticated:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    return session
