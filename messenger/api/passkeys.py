"""
Passkey (WebAuthn) registration and login.

Options generation and response verification are delegated to `py_webauthn`.
This module only keeps the bookkeeping around it:

- challenges are issued with a TTL and consumed by the first finish attempt,
- a challenge only finishes the ceremony kind it was issued for,
- credential signature counters must move forward between logins,
- successful ceremonies produce a `Session` and its signed token.
"""

import json
import logging
import secrets
import time
import uuid
from typing import Any, Dict, Tuple

from webauthn import (
    generate_authentication_options,
    generate_registration_options,
    options_to_json,
    verify_authentication_response,
    verify_registration_response,
)
from webauthn.helpers import base64url_to_bytes, bytes_to_base64url
from webauthn.helpers.exceptions import (
    InvalidAuthenticationResponse,
    InvalidCBORData,
    InvalidJSONStructure,
    InvalidRegistrationResponse,
)
from webauthn.helpers.structs import (
    AttestationConveyancePreference,
    AuthenticatorAttachment,
    AuthenticatorSelectionCriteria,
    AuthenticatorTransport,
    PublicKeyCredentialDescriptor,
    ResidentKeyRequirement,
    UserVerificationRequirement,
)

from messenger.api.models import Session
from messenger.api.utils import create_access_token
from messenger.database.config.config import settings
from messenger.database.core.storage import avatar_for
from messenger.database.daos.challenge_dao import ChallengeDao
from messenger.database.daos.credential_dao import CounterRegressionError, CredentialDao
from messenger.database.daos.user_dao import UserDao
from messenger.database.entities.auth import Challenge, StoredCredential
from messenger.database.entities.user import User

logger = logging.getLogger(__name__)

VERIFICATION_ERRORS = (
    InvalidRegistrationResponse,
    InvalidAuthenticationResponse,
    InvalidJSONStructure,
    InvalidCBORData,
)

KNOWN_TRANSPORTS = {t.value for t in AuthenticatorTransport}

challenge_dao = ChallengeDao()
credential_dao = CredentialDao()
user_dao = UserDao()


class AuthenticationError(Exception):
    """A registration or login ceremony could not be completed."""


def _new_challenge_id() -> str:
    return f"challenge_{int(time.time() * 1000)}_{secrets.token_urlsafe(8)}"


def _issue_session(user: User, tenant_id: str) -> Tuple[Session, str]:
    session = Session(
        user_id=user.id,
        tenant_id=tenant_id,
        username=user.username,
        display_name=user.display_name,
        authenticated=True,
    )
    return session, create_access_token(session)


def _take_challenge(challenge_id: str, kind: str, tenant_id: str) -> Challenge:
    challenge = challenge_dao.consume(challenge_id)
    if challenge is None or challenge.kind != kind or challenge.tenant_id != tenant_id:
        raise AuthenticationError("Challenge not found or expired")
    return challenge


def generate_registration_challenge(
    username: str, display_name: str, tenant_id: str
) -> Tuple[str, Dict[str, Any]]:
    """
    Start a passkey registration for a new username.

    Returns
    -------
    tuple
        (challenge_id, PublicKeyCredentialCreationOptions as JSON-ready dict)

    Raises
    ------
    AuthenticationError
        If the username is already taken in the tenant.
    """
    if user_dao.get_user_by_username(username, tenant_id):
        raise AuthenticationError("Username already exists")

    user_id = f"U.{uuid.uuid4().hex[:10].upper()}"
    options = generate_registration_options(
        rp_id=settings.RP_ID,
        rp_name=settings.RP_NAME,
        user_id=user_id.encode(),
        user_name=username,
        user_display_name=display_name,
        attestation=AttestationConveyancePreference.NONE,
        authenticator_selection=AuthenticatorSelectionCriteria(
            authenticator_attachment=AuthenticatorAttachment.PLATFORM,
            resident_key=ResidentKeyRequirement.PREFERRED,
            user_verification=UserVerificationRequirement.PREFERRED,
        ),
    )

    challenge = challenge_dao.issue(Challenge(
        id=_new_challenge_id(),
        kind="registration",
        tenant_id=tenant_id,
        username=username,
        display_name=display_name,
        user_id=user_id,
        challenge=options.challenge,
        created_at=time.time(),
    ))
    return challenge.id, json.loads(options_to_json(options))


def verify_registration_challenge(
    challenge_id: str, attestation: Dict[str, Any], tenant_id: str
) -> Tuple[Session, str]:
    """Verify an attestation, create the user and store the passkey."""
    challenge = _take_challenge(challenge_id, "registration", tenant_id)

    if user_dao.get_user_by_username(challenge.username, tenant_id):
        raise AuthenticationError("Username already exists")

    try:
        verification = verify_registration_response(
            credential=attestation,
            expected_challenge=challenge.challenge,
            expected_origin=settings.ORIGIN,
            expected_rp_id=settings.RP_ID,
        )
    except VERIFICATION_ERRORS as e:
        logger.warning("Registration verification failed for %s: %s", challenge.username, e)
        raise AuthenticationError("Registration verification failed") from e

    user = user_dao.create_user(User(
        id=challenge.user_id,
        tenant_id=tenant_id,
        username=challenge.username,
        display_name=challenge.display_name or challenge.username,
        avatar_url=avatar_for(challenge.username),
        status="online",
    ))

    transports = (attestation.get("response") or {}).get("transports") or []
    credential_dao.add_credential(user.id, StoredCredential(
        id=bytes_to_base64url(verification.credential_id),
        user_id=user.id,
        public_key=verification.credential_public_key,
        counter=verification.sign_count,
        transports=[t for t in transports if t in KNOWN_TRANSPORTS],
    ))
    logger.info("Registered user %s (%s) in tenant %s", user.username, user.id, tenant_id)
    return _issue_session(user, tenant_id)


def generate_authentication_challenge(username: str, tenant_id: str) -> Tuple[str, Dict[str, Any]]:
    """
    Start a passkey login.

    Returns
    -------
    tuple
        (challenge_id, PublicKeyCredentialRequestOptions as JSON-ready dict)
    """
    user = user_dao.get_user_by_username(username, tenant_id)
    if user is None:
        raise AuthenticationError("User not found")

    allow_credentials = [
        PublicKeyCredentialDescriptor(
            id=base64url_to_bytes(cred.id),
            transports=[AuthenticatorTransport(t) for t in cred.transports],
        )
        for cred in credential_dao.get_credentials(user.id)
    ]
    options = generate_authentication_options(
        rp_id=settings.RP_ID,
        allow_credentials=allow_credentials,
        user_verification=UserVerificationRequirement.PREFERRED,
    )

    challenge = challenge_dao.issue(Challenge(
        id=_new_challenge_id(),
        kind="authentication",
        tenant_id=tenant_id,
        username=username,
        display_name=user.display_name,
        user_id=user.id,
        challenge=options.challenge,
        created_at=time.time(),
    ))
    return challenge.id, json.loads(options_to_json(options))


def verify_authentication_challenge(
    challenge_id: str, credential: Dict[str, Any], tenant_id: str
) -> Tuple[Session, str]:
    """Verify an assertion against the stored passkey and open a session."""
    challenge = _take_challenge(challenge_id, "authentication", tenant_id)

    user = user_dao.get_user(challenge.user_id, tenant_id)
    if user is None:
        raise AuthenticationError("User not found")

    stored = credential_dao.find_credential(user.id, credential.get("id", ""))
    if stored is None:
        raise AuthenticationError("Credential not found")

    try:
        verification = verify_authentication_response(
            credential=credential,
            expected_challenge=challenge.challenge,
            expected_origin=settings.ORIGIN,
            expected_rp_id=settings.RP_ID,
            credential_public_key=stored.public_key,
            credential_current_sign_count=stored.counter,
        )
        credential_dao.update_counter(stored, verification.new_sign_count)
    except VERIFICATION_ERRORS as e:
        logger.warning("Authentication verification failed for %s: %s", user.username, e)
        raise AuthenticationError("Authentication verification failed") from e
    except CounterRegressionError as e:
        logger.warning("Possible cloned authenticator for %s: %s", user.username, e)
        raise AuthenticationError("Authentication verification failed") from e

    user_dao.update_status(user.id, tenant_id, "online")
    logger.info("User %s logged in", user.id)
    return _issue_session(user, tenant_id)
