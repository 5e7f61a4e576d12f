# src/app/infra/db/base.py
"""
Abstract base class for the recipe store.
This interface keeps the handlers independent of the Supabase client.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence

from src.app.domain.models import LinkedRecipe

Row = dict[str, Any]


class RecipeStore(ABC):
    """
    Abstract interface for recipe and user-link persistence.

    Implementations:
    - SupabaseRecipeStore: PostgREST tables ``recipe`` and ``user_recipe``
    - tests: in-memory stub

    All methods raise PersistenceError when the backend fails.
    """

    @abstractmethod
    def get_recipe(self, recipe_id: int) -> Optional[Row]:
        """Return the recipe row with ``recipe_id`` or None."""
        pass

    @abstractmethod
    def get_or_create_recipe(self, video_id: str) -> tuple[Row, bool]:
        """
        Return the recipe for ``video_id``, creating a pending placeholder
        when none exists.

        Must be safe under concurrent calls for the same video: the loser
        of an insert race gets the winner's row with ``created=False``.

        Returns:
            Tuple of (recipe_row, created)
        """
        pass

    @abstractmethod
    def link_user(self, user_id: str, recipe_id: int) -> Row:
        """Insert a user-recipe link stamped with the current time."""
        pass

    @abstractmethod
    def has_link(self, user_id: str, recipe_id: int) -> bool:
        pass

    @abstractmethod
    def list_user_recipes(self, user_id: str) -> list[LinkedRecipe]:
        """Recipes linked to ``user_id``, newest link first."""
        pass

    @abstractmethod
    def apply_enrichment(self, recipe_id: int, fields: Row) -> None:
        """
        Overwrite the enrichment columns and mark the recipe enriched.
        Updating an unknown id is not an error.
        """
        pass

    @abstractmethod
    def search_by_menu(
        self,
        keywords: Sequence[str],
        exclude_id: int,
        limit: int,
    ) -> list[Row]:
        """
        Enriched recipes (other than ``exclude_id``) whose title or name
        contains any keyword, case-insensitive.
        """
        pass

    @abstractmethod
    def search_by_ingredients(
        self,
        names: Sequence[str],
        exclude_id: int,
        limit: int,
    ) -> list[Row]:
        """
        Enriched recipes (other than ``exclude_id``) with at least one
        ingredient name containing any of ``names``, case-insensitive.
        """
        pass

    @abstractmethod
    def list_enriched(self, exclude_id: int, limit: int) -> list[Row]:
        """Arbitrary enriched recipes other than ``exclude_id``."""
        pass
