"""Identity and session handling on top of Supabase Auth.

Passwords, tokens and their expiry belong to the identity provider; this
module only adds the ``users`` directory row at sign-up, resolves a bearer
token to a directory ``User`` and keeps a cached session marker per user.
"""

from __future__ import annotations

import logging
from typing import Any

from supabase import Client

from app.core.exceptions import AuthenticationError, NotFoundError, ValidationError
from app.db.supabase import utc_now_iso
from app.models.user import AuthSession, SignInRequest, SignUpRequest, User
from app.services.cache import CacheService
from app.services.directory import create_profile, get_user

logger = logging.getLogger(__name__)


def _session_tokens(session: Any) -> dict[str, str | None]:
    if session is None:
        return {"access_token": None, "refresh_token": None}
    return {
        "access_token": session.access_token,
        "refresh_token": session.refresh_token,
    }


def _fallback_user(identity: Any) -> User:
    # Identity without a directory row yet: name from metadata or the email
    email = identity.email or ""
    metadata = identity.user_metadata or {}
    name = metadata.get("name") or email.split("@")[0]
    return User(id=str(identity.id), name=name, email=email)


def sign_up(client: Client, auth_client: Client, data: SignUpRequest) -> AuthSession:
    """Register an identity and create its directory profile."""
    try:
        response = auth_client.auth.sign_up({
            "email": data.email,
            "password": data.password,
            "options": {"data": {"name": data.name}},
        })
    except Exception as exc:
        logger.warning(
            "sign_up_rejected",
            extra={"email": data.email, "error_message": str(exc)},
        )
        raise ValidationError(str(exc) or "Sign-up failed") from exc

    if response.user is None:
        raise ValidationError("Sign-up failed")

    user = create_profile(client, str(response.user.id), data.name, data.email)
    logger.info("user_signed_up", extra={"user_id": user.id})
    return AuthSession(user=user, **_session_tokens(response.session))


def sign_in(
    client: Client,
    auth_client: Client,
    data: SignInRequest,
    cache: CacheService | None = None,
) -> AuthSession:
    """Password sign-in.  Raises AuthenticationError on bad credentials."""
    try:
        response = auth_client.auth.sign_in_with_password({
            "email": data.email,
            "password": data.password,
        })
    except Exception as exc:
        logger.info("sign_in_rejected", extra={"email": data.email})
        raise AuthenticationError("Invalid email or password") from exc

    if response.user is None or response.session is None:
        raise AuthenticationError("Invalid email or password")

    try:
        user = get_user(client, str(response.user.id), cache=cache)
    except NotFoundError:
        user = _fallback_user(response.user)

    if cache is not None:
        cache.set_session(user.id, {"email": user.email, "signed_in_at": utc_now_iso()})
    logger.info("user_signed_in", extra={"user_id": user.id})
    return AuthSession(user=user, **_session_tokens(response.session))


def authenticate_token(
    client: Client,
    auth_client: Client,
    token: str,
    cache: CacheService | None = None,
) -> User:
    """Resolve a bearer token to its directory user.

    Any failure to verify the token is an ``AuthenticationError``.
    """
    if not token:
        raise AuthenticationError("Missing access token")
    try:
        response = auth_client.auth.get_user(token)
    except Exception as exc:
        logger.info("token_rejected", extra={"error_message": str(exc)})
        raise AuthenticationError("Invalid or expired token") from exc

    identity = getattr(response, "user", None)
    if identity is None:
        raise AuthenticationError("Invalid or expired token")

    try:
        return get_user(client, str(identity.id), cache=cache)
    except NotFoundError:
        return _fallback_user(identity)


def sign_out(user_id: str, cache: CacheService | None = None) -> None:
    """Drop the cached session and the user's cached data.

    Token revocation is client side.
    """
    if cache is not None:
        cache.clear_user_cache(user_id)
    logger.info("user_signed_out", extra={"user_id": user_id})
