from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class IngredientEntry(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: Optional[str] = None
    amount: Optional[str] = None

    @field_validator("amount", mode="before")
    @classmethod
    def _amount_as_text(cls, value: Any) -> Any:
        # Enrichment output sometimes carries bare quantities like 2 or 0.5.
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class RecipeRecord(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: int
    video_id: Optional[str] = None
    title: Optional[str] = None
    name: Optional[str] = None
    channel: Optional[str] = None
    item: Optional[list[Any]] = None
    ingredients: Optional[list[Any]] = None
    state: Optional[int] = None
    created_at: Optional[str] = None


class CreateRecipeRequest(BaseModel):
    url: Optional[str] = None


class CreateRecipeResponse(BaseModel):
    message: str
    recipe_id: int
    user_id: str
    video_id: str
    is_new_recipe: bool


class RecipeListResponse(BaseModel):
    recipes: list[RecipeRecord] = Field(default_factory=list)
    count: int


class ProcessRecipeRequest(BaseModel):
    recipe_id: Optional[int] = None
    video_id: Optional[str] = None
    title: Optional[str] = None
    name: Optional[str] = None
    channel: Optional[str] = None
    item: Optional[list[Any]] = None
    ingredients: Optional[list[IngredientEntry]] = None


class ProcessRecipeResponse(BaseModel):
    message: str
    recipe_id: int
    video_id: Optional[str] = None
