# src/app/deps.py

from __future__ import annotations

import logging
import secrets

from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel
from supabase import Client, create_client

from src.app.config import Settings, get_settings
from src.app.domain.errors import AuthError
from src.app.infra.db.base import RecipeStore
from src.app.infra.db.supabase_recipe_store import SupabaseRecipeStore
from src.services.enrichment import EnrichmentClient, EnrichmentScheduler, SECRET_HEADER, get_scheduler
from src.services.grocery import GroceryClient

log = logging.getLogger("auth")


def get_supabase(settings: Settings = Depends(get_settings)) -> Client:
    """One client per request, built from the current environment."""
    return create_client(str(settings.SUPABASE_URL), settings.SUPABASE_SERVICE_ROLE_KEY)


def get_store(supa: Client = Depends(get_supabase)) -> RecipeStore:
    return SupabaseRecipeStore(supa)


def get_enrichment_client(settings: Settings = Depends(get_settings)) -> EnrichmentClient:
    return EnrichmentClient.from_settings(settings)


def get_enrichment_scheduler() -> EnrichmentScheduler:
    return get_scheduler()


def get_grocery_client(settings: Settings = Depends(get_settings)) -> GroceryClient:
    return GroceryClient(settings.GROCERY_SEARCH_URL, timeout=settings.GROCERY_TIMEOUT_SECONDS)


auth_scheme = HTTPBearer(auto_error=False)


class CurrentUser(BaseModel):
    id: str
    email: str | None = None
    name: str | None = None


def get_current_user(
    cred: HTTPAuthorizationCredentials | None = Depends(auth_scheme),
    supa: Client = Depends(get_supabase),
) -> CurrentUser:
    """
    Validate ``Authorization: Bearer <access_token>`` against Supabase Auth
    and return the minimal user data.
    """
    if cred is None or cred.scheme.lower() != "bearer" or not cred.credentials:
        raise AuthError("Unauthorized - Missing or invalid token")

    token = cred.credentials
    try:
        res = supa.auth.get_user(token)
    except Exception as exc:
        log.info("auth.verify_fail error=%s", exc)
        raise AuthError("Unauthorized - Invalid token") from exc

    user = getattr(res, "user", None) if res is not None else None
    if not user:
        raise AuthError("Unauthorized - Invalid token")

    name = None
    meta = getattr(user, "user_metadata", None) or {}
    if isinstance(meta, dict):
        name = meta.get("name")

    return CurrentUser(id=str(user.id), email=getattr(user, "email", None), name=name)


def verify_callback_secret(
    settings: Settings = Depends(get_settings),
    secret: str | None = Header(default=None, alias=SECRET_HEADER),
) -> None:
    """
    Guard for the enrichment callback. Open when no secret is configured.
    """
    expected = settings.ENRICHMENT_CALLBACK_SECRET
    if not expected:
        return
    if not secret or not secrets.compare_digest(secret, expected):
        raise AuthError("Unauthorized - Invalid enrichment secret")
