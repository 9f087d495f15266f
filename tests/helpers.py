from messenger.api.models import Session
from messenger.api.utils import create_access_token

TENANT = "T.UBL"


def make_token(user_id="U.001", tenant_id=TENANT, username="dan", display_name="Dan", authenticated=True):
    return create_access_token(Session(
        user_id=user_id,
        tenant_id=tenant_id,
        username=username,
        display_name=display_name,
        authenticated=authenticated,
    ))


def auth_headers(user_id="U.001", **kwargs):
    return {"Authorization": f"Bearer {make_token(user_id, **kwargs)}"}
