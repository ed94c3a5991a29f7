"""User directory endpoint (mention autocomplete)."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from supabase import Client

from app.core.deps import get_current_user
from app.db.supabase import get_supabase
from app.models.user import User
from app.services.directory import find_users

router = APIRouter()


@router.get("", response_model=list[User])
async def list_directory(
    q: str = Query(default="", description="Case-insensitive name/email filter"),
    _: User = Depends(get_current_user),
    client: Client = Depends(get_supabase),
) -> list[User]:
    return find_users(client, q)
