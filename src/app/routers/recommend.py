from __future__ import annotations

from fastapi import APIRouter, Depends
from starlette.concurrency import run_in_threadpool

from src.app.deps import CurrentUser, get_current_user, get_store
from src.app.infra.db.base import RecipeStore
from src.app.schemas.catalog import RecommendResponse
from src.services import recommend as recommend_service

router = APIRouter(prefix="/recommend", tags=["recommend"])


@router.get("/{recipe_id}", response_model=RecommendResponse)
async def recommend(
    recipe_id: int,
    user: CurrentUser = Depends(get_current_user),
    store: RecipeStore = Depends(get_store),
) -> RecommendResponse:
    lists = await run_in_threadpool(recommend_service.recommend, store, recipe_id)
    return RecommendResponse(recommends=lists)
