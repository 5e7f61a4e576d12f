"""
Related-recipe ranking.

Two lists are built for a target recipe: one by menu keywords found in
title/name, one by overlap of ingredient names. Each list is padded with
arbitrary enriched recipes up to ``RESULT_SIZE``.
"""
from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Sequence

from src.app.domain.errors import NotFoundError, PersistenceError
from src.app.domain.models import RECIPE_COLUMNS
from src.app.infra.db.base import RecipeStore

log = logging.getLogger("recommend")

RESULT_SIZE = 5
MAX_MENU_KEYWORDS = 3
MAX_QUERY_INGREDIENTS = 5
MAX_INGREDIENT_CANDIDATES = 50

_KEYWORD_SPLIT = re.compile(r"[\s,]+")


def menu_keywords(recipe: Dict[str, Any]) -> List[str]:
    parts = [value for value in (recipe.get("title"), recipe.get("name")) if value]
    if not parts:
        return []
    words = _KEYWORD_SPLIT.split(" ".join(str(p) for p in parts))
    return [word for word in words if len(word) > 1][:MAX_MENU_KEYWORDS]


def ingredient_names(recipe: Dict[str, Any]) -> List[str]:
    ingredients = recipe.get("ingredients")
    if not isinstance(ingredients, list):
        return []
    names: List[str] = []
    for entry in ingredients:
        if not isinstance(entry, dict):
            continue
        name = entry.get("name")
        if isinstance(name, str) and name:
            names.append(name)
    return names


def match_score(target_names: Sequence[str], candidate: Dict[str, Any]) -> int:
    """
    Number of target ingredient names that contain, or are contained in,
    one of the candidate's ingredient names (case-insensitive).
    """
    candidate_names = [name.lower() for name in ingredient_names(candidate)]
    if not candidate_names:
        return 0
    score = 0
    for target in target_names:
        needle = target.lower()
        if any(needle in name or name in needle for name in candidate_names):
            score += 1
    return score


def rank_by_ingredients(
    target_names: Sequence[str],
    candidates: Sequence[Dict[str, Any]],
    limit: int = RESULT_SIZE,
) -> List[Dict[str, Any]]:
    scored = [(match_score(target_names, candidate), candidate) for candidate in candidates]
    scored = [item for item in scored if item[0] > 0]
    # sorted() is stable: equal scores keep query order
    scored.sort(key=lambda item: item[0], reverse=True)
    return [_project(candidate) for _, candidate in scored[:limit]]


def _project(row: Dict[str, Any]) -> Dict[str, Any]:
    return {column: row.get(column) for column in RECIPE_COLUMNS}


def _pad(
    store: RecipeStore,
    results: List[Dict[str, Any]],
    exclude_id: int,
) -> List[Dict[str, Any]]:
    missing = RESULT_SIZE - len(results)
    if missing <= 0:
        return results[:RESULT_SIZE]
    try:
        fillers = store.list_enriched(exclude_id, missing)
    except PersistenceError as exc:
        log.warning("recommend.pad_fail recipe=%s error=%s", exclude_id, exc)
        fillers = []
    # Fillers are not checked against `results`; a recipe may appear twice.
    return [*results, *fillers][:RESULT_SIZE]


def _by_menu(store: RecipeStore, target: Dict[str, Any], recipe_id: int) -> List[Dict[str, Any]]:
    keywords = menu_keywords(target)
    if not keywords:
        return []
    try:
        return store.search_by_menu(keywords, recipe_id, RESULT_SIZE)
    except PersistenceError as exc:
        log.warning("recommend.menu_fail recipe=%s error=%s", recipe_id, exc)
        return []


def _by_ingredients(store: RecipeStore, target: Dict[str, Any], recipe_id: int) -> List[Dict[str, Any]]:
    names = ingredient_names(target)
    if not names:
        return []
    try:
        candidates = store.search_by_ingredients(
            names[:MAX_QUERY_INGREDIENTS],
            recipe_id,
            MAX_INGREDIENT_CANDIDATES,
        )
    except PersistenceError as exc:
        log.warning("recommend.ingredients_fail recipe=%s error=%s", recipe_id, exc)
        return []
    return rank_by_ingredients(names, candidates)


def recommend(store: RecipeStore, recipe_id: int) -> Dict[str, List[Dict[str, Any]]]:
    target = store.get_recipe(recipe_id)
    if not target:
        raise NotFoundError("Recipe not found", recipe_id=recipe_id)

    by_menu = _pad(store, _by_menu(store, target, recipe_id), recipe_id)
    by_ingredients = _pad(store, _by_ingredients(store, target, recipe_id), recipe_id)
    log.info(
        "recommend.ok recipe=%s by_menu=%d by_ingredients=%d",
        recipe_id,
        len(by_menu),
        len(by_ingredients),
    )
    return {"by_menu": by_menu, "by_ingredients": by_ingredients}
