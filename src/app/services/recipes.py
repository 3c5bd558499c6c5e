from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from src.app.domain.errors import RecipeNotFoundError, RecipePermissionError
from src.app.domain.models import Recipe, RecipeSourceType
from src.app.infra.db.base import RecipeRepository
from src.services import multiselect

logger = logging.getLogger(__name__)

# Picker options offered by the creation form
DEFAULT_TAG_OPTIONS = [
    "Breakfast",
    "Lunch",
    "Dinner",
    "Dessert",
    "Snack",
    "Vegetarian",
    "Vegan",
    "Gluten-free",
    "Quick",
    "Baking",
]


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class RecipeService:
    """End-user recipe flows: create, read, list own, tag picker."""

    def __init__(self, recipes: RecipeRepository, tag_options: Optional[list[str]] = None):
        self._recipes = recipes
        self.tag_options = list(tag_options or DEFAULT_TAG_OPTIONS)

    def create_recipe(
        self,
        creator_id: str,
        fields: dict[str, Any],
        source: RecipeSourceType = RecipeSourceType.MANUAL,
    ) -> Recipe:
        now = _now_utc().isoformat()
        data = {
            **fields,
            "creatorId": creator_id,
            "source": source.value,
            "createdAt": now,
            "updatedAt": now,
            "stats": {"views": 0, "likes": 0, "saves": 0},
            "invites": [],
        }
        return self._recipes.create_recipe(data)

    def get_recipe(self, recipe_id: str) -> Recipe:
        recipe = self._recipes.get_recipe(recipe_id)
        if recipe is None:
            raise RecipeNotFoundError(recipe_id)
        return recipe

    def list_for_creator(self, creator_id: str) -> list[Recipe]:
        return self._recipes.list_by_creator(creator_id)

    def tag_picker(self, selected: list[str], text: Optional[str] = None) -> multiselect.MultiSelectView:
        picker = multiselect.MultiSelect(options=self.tag_options, selected=selected, placeholder="Select tags...")
        return picker.view(text)

    def toggle_tag(self, recipe_id: str, tag: str, user_id: str) -> Recipe:
        recipe = self.get_recipe(recipe_id)
        if recipe.creator_id != user_id:
            raise RecipePermissionError(recipe_id, user_id)

        tags = multiselect.toggle(recipe.tags, tag)
        self._recipes.update_recipe(recipe_id, {"tags": tags, "updatedAt": _now_utc().isoformat()})
        recipe.tags = tags
        logger.info("Recipe tags toggled: id=%s, tag=%s, now=%s", recipe_id, tag, tags)
        return recipe
