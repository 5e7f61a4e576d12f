# src/app/domain/models.py
"""
Domain models for recipes and the enrichment hand-off.
These are pure data structures with no infrastructure dependencies.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import IntEnum
from typing import Any, Optional
from uuid import UUID, uuid4


class RecipeState(IntEnum):
    """Value of the recipe ``state`` column."""
    PENDING = 0
    ENRICHED = 1


# Columns written by the enrichment callback
ENRICHMENT_FIELDS = ("title", "name", "channel", "item", "ingredients")

# Columns returned for a recipe row
RECIPE_COLUMNS = (
    "id",
    "video_id",
    "title",
    "name",
    "channel",
    "item",
    "ingredients",
    "state",
    "created_at",
)


@dataclass
class EnrichmentJob:
    """
    A deferred, one-shot enrichment delivery.

    The job lives only in memory: a process restart before ``due_at``
    drops it.
    """
    recipe_id: Any
    video_id: str
    delay_seconds: float
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def due_at(self) -> datetime:
        return self.created_at + timedelta(seconds=self.delay_seconds)


@dataclass
class LinkedRecipe:
    """A recipe row as seen through a user's link."""
    recipe: dict[str, Any]
    linked_at: Optional[str] = None

    def as_listing(self) -> dict[str, Any]:
        row = dict(self.recipe)
        row["created_at"] = self.linked_at
        return row
