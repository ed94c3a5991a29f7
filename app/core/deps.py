"""FastAPI dependencies shared by the routers.

The cache and realtime hub are created in the application lifespan and
read from ``app.state``; ``HTTPConnection`` makes the same providers work
for HTTP routes and the WebSocket endpoint.
"""

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from starlette.requests import HTTPConnection
from supabase import Client

from app.core.exceptions import AuthenticationError
from app.db.supabase import get_auth_client, get_supabase
from app.models.user import User
from app.realtime.hub import RealtimeHub
from app.services.auth import authenticate_token
from app.services.cache import CacheService

_bearer = HTTPBearer(auto_error=False)


def get_cache(connection: HTTPConnection) -> CacheService:
    return connection.app.state.cache


def get_hub(connection: HTTPConnection) -> RealtimeHub:
    return connection.app.state.hub


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
    client: Client = Depends(get_supabase),
    auth_client: Client = Depends(get_auth_client),
    cache: CacheService = Depends(get_cache),
) -> User:
    """Resolve the bearer token on the request to the acting user."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Missing access token")
    return authenticate_token(client, auth_client, credentials.credentials, cache=cache)
