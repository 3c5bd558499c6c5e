from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from src.app.domain.errors import RemoteWriteError
from src.app.domain.models import MutationOutcome, Recipe, RecipeInvite
from src.app.infra.db.base import RecipeRepository
from src.app.services import notices

logger = logging.getLogger(__name__)

# The document key never changes through an update
_IMMUTABLE_FIELDS = {"id"}


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _invite_to_row(invite: RecipeInvite) -> dict[str, Optional[str]]:
    return {
        "email": invite.email,
        "status": invite.status,
        "invitedAt": invite.invited_at.isoformat() if invite.invited_at else None,
    }


class BackofficeRecipeService:
    def __init__(self, recipes: RecipeRepository):
        self._recipes = recipes

    def list_recipes(self) -> list[Recipe]:
        return self._recipes.list_recipes()

    def update_recipe(self, recipe_id: str, updates: dict[str, Any]) -> MutationOutcome:
        """Apply a partial update as given and stamp updatedAt. Fields are not validated."""
        fields = {key: value for key, value in updates.items() if key not in _IMMUTABLE_FIELDS}
        fields["updatedAt"] = _now_utc().isoformat()

        self._recipes.update_recipe(recipe_id, fields)
        logger.info("Recipe updated: id=%s, fields=%s", recipe_id, sorted(fields))
        return MutationOutcome(changed=True, notice=notices.updated("recipe"))

    def delete_recipe(self, recipe_id: str) -> MutationOutcome:
        self._recipes.delete_recipe(recipe_id)
        logger.info("Recipe deleted: id=%s", recipe_id)
        return MutationOutcome(changed=True, notice=notices.deleted("recipe"))

    def invite_to_recipe(self, recipe_id: str, emails: list[str]) -> MutationOutcome:
        recipe = self._recipes.get_recipe(recipe_id)
        if recipe is None:
            raise RemoteWriteError("send invites", f"recipe {recipe_id} not found")

        now = _now_utc()
        added: list[str] = []
        for email in emails:
            cleaned = (email or "").strip()
            if not cleaned or recipe.has_invite(cleaned):
                continue
            recipe.invites.append(RecipeInvite(email=cleaned, invited_at=now))
            added.append(cleaned)

        if not added:
            return MutationOutcome(changed=False)

        self._recipes.update_recipe(
            recipe_id,
            {"invites": [_invite_to_row(invite) for invite in recipe.invites]},
        )
        logger.info("Recipe invites sent: id=%s, count=%d", recipe_id, len(added))
        return MutationOutcome(
            changed=True,
            notice=notices.success("Invites sent", f"{len(added)} invite(s) have been sent for this recipe."),
            payload={"invited": added},
        )
