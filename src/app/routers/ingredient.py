from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from starlette.concurrency import run_in_threadpool

from src.app.deps import get_grocery_client
from src.app.schemas.catalog import IngredientProduct
from src.services.grocery import GroceryClient

router = APIRouter(prefix="/ingredient", tags=["ingredient"])


@router.get("", response_model=list[IngredientProduct])
async def search_ingredient(
    keyword: str | None = Query(default=None),
    grocery: GroceryClient = Depends(get_grocery_client),
) -> list[IngredientProduct]:
    if not keyword:
        return []
    products = await run_in_threadpool(grocery.search, keyword)
    return [IngredientProduct(**product) for product in products]
