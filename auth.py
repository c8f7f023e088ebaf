import logging
from typing import Optional
from fastapi import Depends, HTTPException, status, Request
from itsdangerous import URLSafeTimedSerializer
import config
from models_sql import User
from queries import Queries, NoRowsError, get_queries

logger = logging.getLogger(__name__)

# Short-lived cookie carrying the provider identity between the OAuth callback
# and account registration
REGISTRATION_COOKIE = "pastemyst-registration"
REGISTRATION_MAX_AGE = 60 * 60


def registration_serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(config.get_secret_key(), salt="registration")


def issue_registration_token(provider_name: str, provider_id: str, avatar_url: str = "") -> str:
    """Sign a provider identity for the registration cookie."""
    return registration_serializer().dumps({
        "provider_name": provider_name,
        "provider_id": provider_id,
        "avatar_url": avatar_url,
    })


def read_registration_token(token: str) -> dict:
    """Verify and decode a registration token.

    Raises itsdangerous.BadSignature (SignatureExpired included) or ValueError
    when the payload is not a provider identity.
    """
    claims = registration_serializer().loads(token, max_age=REGISTRATION_MAX_AGE)
    if not isinstance(claims, dict) or not claims.get("provider_name") or not claims.get("provider_id"):
        raise ValueError("registration token without a provider identity")
    return claims


async def require_session(request: Request):
    """Require a server-side session cookie."""

    if request is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing request")

    session = getattr(request, "session", None)
    user_id = session.get("user_id") if session else None

    if user_id:
        return {"type": "session", "user_id": user_id}

    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or missing session")


async def optional_user(request: Request, queries: Queries = Depends(get_queries)) -> Optional[User]:
    """Resolve the session to a user row, or None for anonymous requests."""
    try:
        auth = await require_session(request)
    except HTTPException:
        return None  # treat as anonymous

    try:
        return await queries.get_user_by_id(auth["user_id"])
    except NoRowsError:
        # stale session pointing at a deleted account
        logger.info("Session references unknown user %s", auth["user_id"])
        return None
