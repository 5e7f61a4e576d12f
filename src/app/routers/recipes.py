# src/app/routers/recipes.py
from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Set

from fastapi import APIRouter, Depends, status
from starlette.concurrency import run_in_threadpool

from src.app.deps import (
    CurrentUser,
    get_current_user,
    get_enrichment_client,
    get_store,
    verify_callback_secret,
)
from src.app.domain.errors import InvalidInputError, NotFoundError
from src.app.domain.models import ENRICHMENT_FIELDS
from src.app.infra.db.base import RecipeStore
from src.app.schemas.recipes import (
    CreateRecipeRequest,
    CreateRecipeResponse,
    ProcessRecipeRequest,
    ProcessRecipeResponse,
    RecipeListResponse,
    RecipeRecord,
)
from src.services.enrichment import EnrichmentClient
from src.services.ids import extract_video_id

log = logging.getLogger("ingest")
router = APIRouter(prefix="/recipe", tags=["recipes"])

# Strong references to fire-and-forget notifications until they finish
_background: Set["asyncio.Task[Any]"] = set()


def _fire_and_forget(coro: Awaitable[Any]) -> None:
    task = asyncio.ensure_future(coro)
    _background.add(task)
    task.add_done_callback(_background.discard)


@router.post("", response_model=CreateRecipeResponse, status_code=status.HTTP_201_CREATED)
async def create_recipe(
    body: CreateRecipeRequest,
    user: CurrentUser = Depends(get_current_user),
    store: RecipeStore = Depends(get_store),
    enrichment: EnrichmentClient = Depends(get_enrichment_client),
) -> CreateRecipeResponse:
    t0 = time.time()
    if not body.url:
        raise InvalidInputError("Missing 'url' in request body", field="url")

    video_id = extract_video_id(body.url)
    if not video_id:
        raise InvalidInputError("Invalid YouTube URL", field="url")

    log.info("recipe.create.start video=%s user=%s", video_id, user.id)
    recipe, created = await run_in_threadpool(store.get_or_create_recipe, video_id)
    recipe_id = recipe["id"]

    if created:
        log.info("recipe.create.new recipe=%s video=%s", recipe_id, video_id)
        _fire_and_forget(enrichment.request_enrichment(video_id, recipe_id))
    else:
        log.info("recipe.create.existing recipe=%s video=%s", recipe_id, video_id)

    await run_in_threadpool(store.link_user, user.id, recipe_id)

    log.info(
        "recipe.create.ok recipe=%s video=%s new=%s dt=%.2fs",
        recipe_id,
        video_id,
        created,
        time.time() - t0,
    )
    return CreateRecipeResponse(
        message="Recipe created and linked to user" if created else "Recipe linked to user",
        recipe_id=recipe_id,
        user_id=user.id,
        video_id=video_id,
        is_new_recipe=created,
    )


@router.get("", response_model=RecipeListResponse)
async def list_recipes(
    user: CurrentUser = Depends(get_current_user),
    store: RecipeStore = Depends(get_store),
) -> RecipeListResponse:
    linked = await run_in_threadpool(store.list_user_recipes, user.id)
    recipes = [RecipeRecord(**entry.as_listing()) for entry in linked]
    return RecipeListResponse(recipes=recipes, count=len(recipes))


@router.post("/process", response_model=ProcessRecipeResponse, dependencies=[Depends(verify_callback_secret)])
async def process_recipe(
    body: ProcessRecipeRequest,
    store: RecipeStore = Depends(get_store),
) -> ProcessRecipeResponse:
    if not body.recipe_id:
        raise InvalidInputError("Missing 'recipe_id' in request body", field="recipe_id")

    payload = body.model_dump(include=set(ENRICHMENT_FIELDS), exclude_unset=True)
    await run_in_threadpool(store.apply_enrichment, body.recipe_id, payload)
    log.info("recipe.process.ok recipe=%s video=%s", body.recipe_id, body.video_id)
    return ProcessRecipeResponse(
        message="Recipe updated successfully",
        recipe_id=body.recipe_id,
        video_id=body.video_id,
    )


@router.get("/{recipe_id}", response_model=RecipeRecord)
async def get_recipe(
    recipe_id: int,
    user: CurrentUser = Depends(get_current_user),
    store: RecipeStore = Depends(get_store),
) -> RecipeRecord:
    if not await run_in_threadpool(store.has_link, user.id, recipe_id):
        raise NotFoundError("Recipe not found or access denied", recipe_id=recipe_id)

    recipe = await run_in_threadpool(store.get_recipe, recipe_id)
    if not recipe:
        raise NotFoundError("Recipe not found", recipe_id=recipe_id)
    return RecipeRecord(**recipe)
