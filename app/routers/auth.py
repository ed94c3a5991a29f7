"""Authentication and profile endpoints.

Sign-up and sign-in are the only unauthenticated routes in the API.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from supabase import Client

from app.core.deps import get_cache, get_current_user
from app.db.supabase import get_auth_client, get_supabase
from app.models.user import AuthSession, ProfileUpdate, SignInRequest, SignUpRequest, User
from app.services import auth as auth_service
from app.services.cache import CacheService
from app.services.directory import update_display_name

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/signup", response_model=AuthSession, status_code=status.HTTP_201_CREATED)
async def signup(
    body: SignUpRequest,
    client: Client = Depends(get_supabase),
    auth_client: Client = Depends(get_auth_client),
) -> AuthSession:
    """Create an identity and its directory profile."""
    return auth_service.sign_up(client, auth_client, body)


@router.post("/signin", response_model=AuthSession)
async def signin(
    body: SignInRequest,
    client: Client = Depends(get_supabase),
    auth_client: Client = Depends(get_auth_client),
    cache: CacheService = Depends(get_cache),
) -> AuthSession:
    return auth_service.sign_in(client, auth_client, body, cache=cache)


@router.get("/profile", response_model=User)
async def get_profile(user: User = Depends(get_current_user)) -> User:
    return user


@router.put("/profile", response_model=User)
async def update_profile(
    body: ProfileUpdate,
    user: User = Depends(get_current_user),
    client: Client = Depends(get_supabase),
    cache: CacheService = Depends(get_cache),
) -> User:
    """Change the display name used for mention resolution."""
    return update_display_name(client, user.id, body.name, cache=cache)


@router.get("/verify")
async def verify(
    user: User = Depends(get_current_user),
    cache: CacheService = Depends(get_cache),
) -> dict[str, object]:
    """Token check.  ``session`` is the cached sign-in marker, if any."""
    return {
        "valid": True,
        "user": user.model_dump(mode="json"),
        "session": cache.get_session(user.id),
    }


@router.post("/signout")
async def signout(
    user: User = Depends(get_current_user),
    cache: CacheService = Depends(get_cache),
) -> dict[str, str]:
    auth_service.sign_out(user.id, cache=cache)
    return {"message": "Signed out"}
