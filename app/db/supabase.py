"""Supabase client providers.

``get_supabase()`` returns a lazily-initialized, process-wide Supabase
client using credentials from ``settings``.  Routers receive it through
``Depends(get_supabase)`` so tests can swap it via
``app.dependency_overrides``; services take the client as an argument.

``get_auth_client()`` is a second client reserved for password sign-up
and sign-in.  Those calls store the user's session on the client they run
on, which would otherwise replace the service key on table queries.
"""

from datetime import datetime, timezone

from supabase import Client, create_client

from app.core.config import settings

_client: Client | None = None
_auth_client: Client | None = None


def get_supabase() -> Client:
    """Return the shared Supabase client, creating it on first call."""
    global _client
    if _client is None:
        _client = create_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)
    return _client


def get_auth_client() -> Client:
    """Return the Supabase client used for identity calls."""
    global _auth_client
    if _auth_client is None:
        _auth_client = create_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)
    return _auth_client


def utc_now_iso() -> str:
    """Timestamp string used for ``created_at`` / ``updated_at`` writes."""
    return datetime.now(timezone.utc).isoformat()
