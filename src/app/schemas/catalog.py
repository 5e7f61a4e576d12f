from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

from src.app.schemas.recipes import RecipeRecord


class IngredientProduct(BaseModel):
    id: Optional[str] = None
    name: Optional[str] = None
    price: Optional[str] = None
    imageUrl: Optional[str] = None


class Recommendations(BaseModel):
    by_menu: list[RecipeRecord]
    by_ingredients: list[RecipeRecord]


class RecommendResponse(BaseModel):
    recommends: Recommendations
