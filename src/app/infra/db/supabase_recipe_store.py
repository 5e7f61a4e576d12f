from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

import httpx
from postgrest.exceptions import APIError
from supabase import Client

from src.app.domain.errors import PersistenceError
from src.app.domain.models import ENRICHMENT_FIELDS, RECIPE_COLUMNS, LinkedRecipe, RecipeState
from src.app.infra.db.base import RecipeStore, Row

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"
# Characters with meaning inside a PostgREST or=() filter
_FILTER_UNSAFE = re.compile(r"[%,()*\\\"]")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _safe_term(term: str) -> str:
    return _FILTER_UNSAFE.sub("", term).strip()


def _first(data: Any) -> Optional[Row]:
    if isinstance(data, list):
        return data[0] if data else None
    if isinstance(data, dict) and data:
        return data
    return None


class SupabaseRecipeStore(RecipeStore):
    RECIPE_TABLE = "recipe"
    LINK_TABLE = "user_recipe"
    INGREDIENT_SEARCH_FN = "search_recipes_by_ingredient_names"

    def __init__(self, client: Client):
        self._client = client

    def _recipes(self):
        return self._client.table(self.RECIPE_TABLE)

    def _links(self):
        return self._client.table(self.LINK_TABLE)

    def get_recipe(self, recipe_id: int) -> Optional[Row]:
        try:
            result = self._recipes().select("*").eq("id", recipe_id).limit(1).execute()
        except (APIError, httpx.HTTPError) as error:
            raise PersistenceError("get_recipe", str(error)) from error
        return _first(result.data)

    def _find_by_video_id(self, video_id: str) -> Optional[Row]:
        try:
            result = self._recipes().select("*").eq("video_id", video_id).limit(1).execute()
        except (APIError, httpx.HTTPError) as error:
            raise PersistenceError("find_recipe", str(error)) from error
        return _first(result.data)

    def get_or_create_recipe(self, video_id: str) -> tuple[Row, bool]:
        existing = self._find_by_video_id(video_id)
        if existing:
            return existing, False

        placeholder = {field: None for field in ENRICHMENT_FIELDS}
        placeholder["video_id"] = video_id
        try:
            result = self._recipes().insert(placeholder).execute()
        except APIError as error:
            if error.code != UNIQUE_VIOLATION:
                raise PersistenceError("create_recipe", str(error)) from error
            # Another request inserted the same video first
            logger.info("recipe.create_conflict video=%s", video_id)
            winner = self._find_by_video_id(video_id)
            if not winner:
                raise PersistenceError("create_recipe", "conflicting row not found") from error
            return winner, False
        except httpx.HTTPError as error:
            raise PersistenceError("create_recipe", str(error)) from error

        row = _first(result.data)
        if not row:
            raise PersistenceError("create_recipe", "insert returned no row")
        return row, True

    def link_user(self, user_id: str, recipe_id: int) -> Row:
        link = {"user_id": user_id, "recipe_id": recipe_id, "created_at": _now_iso()}
        try:
            result = self._links().insert(link).execute()
        except (APIError, httpx.HTTPError) as error:
            raise PersistenceError("link_user", str(error)) from error
        return _first(result.data) or link

    def has_link(self, user_id: str, recipe_id: int) -> bool:
        try:
            result = (
                self._links()
                .select("recipe_id")
                .eq("user_id", user_id)
                .eq("recipe_id", recipe_id)
                .limit(1)
                .execute()
            )
        except (APIError, httpx.HTTPError) as error:
            raise PersistenceError("has_link", str(error)) from error
        return bool(result.data)

    def list_user_recipes(self, user_id: str) -> list[LinkedRecipe]:
        columns = ",".join(RECIPE_COLUMNS)
        try:
            result = (
                self._links()
                .select(f"recipe_id,created_at,recipe:recipe_id({columns})")
                .eq("user_id", user_id)
                .order("created_at", desc=True)
                .execute()
            )
        except (APIError, httpx.HTTPError) as error:
            raise PersistenceError("list_user_recipes", str(error)) from error

        linked: list[LinkedRecipe] = []
        for row in result.data or []:
            recipe = row.get("recipe")
            if not isinstance(recipe, dict):
                continue
            linked.append(LinkedRecipe(recipe=recipe, linked_at=row.get("created_at")))
        return linked

    def apply_enrichment(self, recipe_id: int, fields: Row) -> None:
        update = dict(fields)
        update["state"] = int(RecipeState.ENRICHED)
        try:
            self._recipes().update(update).eq("id", recipe_id).execute()
        except (APIError, httpx.HTTPError) as error:
            raise PersistenceError("apply_enrichment", str(error)) from error

    def search_by_menu(
        self,
        keywords: Sequence[str],
        exclude_id: int,
        limit: int,
    ) -> list[Row]:
        terms = [term for term in (_safe_term(k) for k in keywords) if term]
        if not terms:
            return []
        or_filters = []
        for term in terms:
            or_filters.append(f"title.ilike.%{term}%")
            or_filters.append(f"name.ilike.%{term}%")
        try:
            result = (
                self._recipes()
                .select("*")
                .or_(",".join(or_filters))
                .neq("id", exclude_id)
                .eq("state", int(RecipeState.ENRICHED))
                .limit(limit)
                .execute()
            )
        except (APIError, httpx.HTTPError) as error:
            raise PersistenceError("search_by_menu", str(error)) from error
        return result.data or []

    def search_by_ingredients(
        self,
        names: Sequence[str],
        exclude_id: int,
        limit: int,
    ) -> list[Row]:
        # ingredients is a jsonb array; substring matching on its elements
        # lives in a SQL function (see sql/schema.sql).
        payload = {
            "names": list(names),
            "exclude_id": exclude_id,
            "max_rows": limit,
        }
        try:
            result = self._client.rpc(self.INGREDIENT_SEARCH_FN, payload).execute()
        except (APIError, httpx.HTTPError) as error:
            raise PersistenceError("search_by_ingredients", str(error)) from error
        return result.data or []

    def list_enriched(self, exclude_id: int, limit: int) -> list[Row]:
        if limit <= 0:
            return []
        try:
            result = (
                self._recipes()
                .select("*")
                .neq("id", exclude_id)
                .eq("state", int(RecipeState.ENRICHED))
                .limit(limit)
                .execute()
            )
        except (APIError, httpx.HTTPError) as error:
            raise PersistenceError("list_enriched", str(error)) from error
        return result.data or []
