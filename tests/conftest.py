from __future__ import annotations

import os

os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-service-role-key")

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Any, Optional, Sequence
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from src.app.deps import (
    get_enrichment_client,
    get_enrichment_scheduler,
    get_store,
    get_supabase,
)
from src.app.domain.errors import PersistenceError
from src.app.domain.models import EnrichmentJob, LinkedRecipe, RecipeState
from src.app.infra.db.base import RecipeStore, Row
from src.app.main import app

TOKENS = {
    "token-alice": "11111111-1111-1111-1111-111111111111",
    "token-bob": "22222222-2222-2222-2222-222222222222",
}
ALICE = {"Authorization": "Bearer token-alice"}
BOB = {"Authorization": "Bearer token-bob"}


class InMemoryRecipeStore(RecipeStore):
    def __init__(self) -> None:
        self.recipes: dict[int, Row] = {}
        self.links: list[Row] = []
        self.fail_on: set[str] = set()
        self._next_id = 1
        self._tick = 0

    def _check(self, operation: str) -> None:
        if operation in self.fail_on:
            raise PersistenceError(operation, "simulated failure")

    def _timestamp(self) -> str:
        self._tick += 1
        moment = datetime(2024, 1, 15, tzinfo=timezone.utc) + timedelta(seconds=self._tick)
        return moment.isoformat()

    def add_recipe(self, state: int = RecipeState.ENRICHED, **fields: Any) -> Row:
        row: Row = {
            "id": self._next_id,
            "video_id": fields.pop("video_id", f"vid{self._next_id:08d}"),
            "title": None,
            "name": None,
            "channel": None,
            "item": None,
            "ingredients": None,
            "state": int(state),
            "created_at": self._timestamp(),
        }
        row.update(fields)
        self.recipes[row["id"]] = row
        self._next_id += 1
        return row

    def get_recipe(self, recipe_id: int) -> Optional[Row]:
        self._check("get_recipe")
        row = self.recipes.get(recipe_id)
        return dict(row) if row else None

    def get_or_create_recipe(self, video_id: str) -> tuple[Row, bool]:
        self._check("get_or_create_recipe")
        for row in self.recipes.values():
            if row["video_id"] == video_id:
                return dict(row), False
        return dict(self.add_recipe(state=RecipeState.PENDING, video_id=video_id)), True

    def link_user(self, user_id: str, recipe_id: int) -> Row:
        self._check("link_user")
        link = {"user_id": user_id, "recipe_id": recipe_id, "created_at": self._timestamp()}
        self.links.append(link)
        return link

    def has_link(self, user_id: str, recipe_id: int) -> bool:
        self._check("has_link")
        return any(l["user_id"] == user_id and l["recipe_id"] == recipe_id for l in self.links)

    def list_user_recipes(self, user_id: str) -> list[LinkedRecipe]:
        self._check("list_user_recipes")
        links = [l for l in self.links if l["user_id"] == user_id]
        links.sort(key=lambda l: l["created_at"], reverse=True)
        return [
            LinkedRecipe(recipe=dict(self.recipes[l["recipe_id"]]), linked_at=l["created_at"])
            for l in links
            if l["recipe_id"] in self.recipes
        ]

    def apply_enrichment(self, recipe_id: int, fields: Row) -> None:
        self._check("apply_enrichment")
        row = self.recipes.get(recipe_id)
        if row is None:
            return
        row.update(fields)
        row["state"] = int(RecipeState.ENRICHED)

    def _enriched(self, exclude_id: int) -> list[Row]:
        return [
            dict(row)
            for row in self.recipes.values()
            if row["state"] == RecipeState.ENRICHED and row["id"] != exclude_id
        ]

    def search_by_menu(self, keywords: Sequence[str], exclude_id: int, limit: int) -> list[Row]:
        self._check("search_by_menu")
        terms = [k.lower() for k in keywords]
        found = []
        for row in self._enriched(exclude_id):
            text = [(row.get("title") or "").lower(), (row.get("name") or "").lower()]
            if any(term in field for term in terms for field in text):
                found.append(row)
        return found[:limit]

    def search_by_ingredients(self, names: Sequence[str], exclude_id: int, limit: int) -> list[Row]:
        self._check("search_by_ingredients")
        needles = [n.lower() for n in names]
        found = []
        for row in self._enriched(exclude_id):
            ingredients = row.get("ingredients") or []
            row_names = [
                str(i.get("name") or "").lower() for i in ingredients if isinstance(i, dict)
            ]
            if any(needle in name for needle in needles for name in row_names):
                found.append(row)
        return found[:limit]

    def list_enriched(self, exclude_id: int, limit: int) -> list[Row]:
        self._check("list_enriched")
        return self._enriched(exclude_id)[:max(limit, 0)]


class EnrichmentClientStub:
    def __init__(self) -> None:
        self.requested: list[tuple[str, Any]] = []

    def request_enrichment(self, video_id: str, recipe_id: Any):
        self.requested.append((video_id, recipe_id))
        return self._done()

    async def _done(self) -> bool:
        return True


class SchedulerStub:
    def __init__(self) -> None:
        self.jobs: list[EnrichmentJob] = []

    def schedule(self, job: EnrichmentJob) -> EnrichmentJob:
        self.jobs.append(job)
        return job

    def pending(self) -> list[EnrichmentJob]:
        return list(self.jobs)


def _get_user(token: str):
    user_id = TOKENS.get(token)
    if user_id is None:
        raise Exception("invalid JWT: unable to parse or verify signature")
    return SimpleNamespace(
        user=SimpleNamespace(id=user_id, email=f"{user_id[:4]}@example.com", user_metadata={})
    )


@pytest.fixture
def supabase_stub() -> MagicMock:
    supa = MagicMock()
    supa.auth.get_user.side_effect = _get_user
    return supa


@pytest.fixture
def store() -> InMemoryRecipeStore:
    return InMemoryRecipeStore()


@pytest.fixture
def enrichment_stub() -> EnrichmentClientStub:
    return EnrichmentClientStub()


@pytest.fixture
def scheduler_stub() -> SchedulerStub:
    return SchedulerStub()


@pytest.fixture
def client(supabase_stub, store, enrichment_stub, scheduler_stub):
    app.dependency_overrides[get_supabase] = lambda: supabase_stub
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_enrichment_client] = lambda: enrichment_stub
    app.dependency_overrides[get_enrichment_scheduler] = lambda: scheduler_stub
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()
