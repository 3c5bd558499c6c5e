from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, status
from starlette.concurrency import run_in_threadpool

from src.app.deps import get_backoffice_recipe_service, get_mutation_guard, require_admin
from src.app.domain.errors import BackofficeError
from src.app.domain.models import MutationOutcome, Recipe
from src.app.schemas.common import Notice
from src.app.schemas.recipes import (
    BackofficeRecipeList,
    BackofficeRecipeRow,
    RecipeInviteRequest,
    RecipeMutationResponse,
    RecipeResponse,
    RecipeUpdate,
)
from src.app.services import notices
from src.app.services.backoffice_recipes import BackofficeRecipeService
from src.app.services.mutation_guard import MutationGuard
from src.app.services.row_expansion import is_expanded, toggle_row

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/backoffice/recipes", tags=["backoffice"], dependencies=[Depends(require_admin)])


def _failure(action: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail=Notice.from_domain(notices.failure(action)).model_dump(),
    )


def _recipe_row(recipe: Recipe, expanded: list[str]) -> BackofficeRecipeRow:
    detail = RecipeResponse.from_domain(recipe)
    open_row = is_expanded(expanded, recipe.id)
    return BackofficeRecipeRow(
        id=detail.id,
        title=detail.title,
        creatorId=detail.creatorId,
        source=detail.source,
        createdAt=detail.createdAt,
        updatedAt=detail.updatedAt,
        stats=detail.stats,
        invites=detail.invites,
        isExpanded=open_row,
        detail=detail if open_row else None,
    )


async def _fetch_rows(service: BackofficeRecipeService, expanded: list[str]) -> list[BackofficeRecipeRow]:
    try:
        recipes = await run_in_threadpool(service.list_recipes)
    except BackofficeError:
        logger.exception("Error fetching recipes")
        raise _failure("load recipes")
    return [_recipe_row(recipe, expanded) for recipe in recipes]


async def _mutate(
    guard: MutationGuard,
    recipe_id: str,
    idempotency_key: Optional[str],
    action: str,
    fn,
    *args,
) -> MutationOutcome:
    async def operation() -> MutationOutcome:
        try:
            return await run_in_threadpool(fn, *args)
        except BackofficeError:
            logger.exception("Error during '%s' on recipe %s", action, recipe_id)
            raise _failure(action)

    return await guard.run(f"recipes:{recipe_id}", operation, idempotency_key)


@router.get("", response_model=BackofficeRecipeList)
async def list_recipes(
    expanded: Optional[list[str]] = Query(default=None),
    toggle: Optional[str] = Query(default=None),
    service: BackofficeRecipeService = Depends(get_backoffice_recipe_service),
) -> BackofficeRecipeList:
    open_rows = list(expanded or [])
    if toggle:
        open_rows = toggle_row(open_rows, toggle)
    items = await _fetch_rows(service, open_rows)
    return BackofficeRecipeList(items=items, expanded=open_rows)


@router.patch("/{recipe_id}", response_model=RecipeMutationResponse)
async def update_recipe(
    recipe_id: str,
    payload: RecipeUpdate,
    expanded: Optional[list[str]] = Query(default=None),
    idempotency_key: Optional[str] = Header(default=None, alias="Idempotency-Key"),
    service: BackofficeRecipeService = Depends(get_backoffice_recipe_service),
    guard: MutationGuard = Depends(get_mutation_guard),
) -> RecipeMutationResponse:
    updates = payload.model_dump(exclude_unset=True)
    outcome = await _mutate(guard, recipe_id, idempotency_key, "update recipe", service.update_recipe, recipe_id, updates)
    items = await _fetch_rows(service, list(expanded or []))
    return RecipeMutationResponse(changed=outcome.changed, notice=Notice.from_domain(outcome.notice), items=items)


@router.delete("/{recipe_id}", response_model=RecipeMutationResponse)
async def delete_recipe(
    recipe_id: str,
    expanded: Optional[list[str]] = Query(default=None),
    idempotency_key: Optional[str] = Header(default=None, alias="Idempotency-Key"),
    service: BackofficeRecipeService = Depends(get_backoffice_recipe_service),
    guard: MutationGuard = Depends(get_mutation_guard),
) -> RecipeMutationResponse:
    outcome = await _mutate(guard, recipe_id, idempotency_key, "delete recipe", service.delete_recipe, recipe_id)
    open_rows = [row_id for row_id in (expanded or []) if row_id != recipe_id]
    items = await _fetch_rows(service, open_rows)
    return RecipeMutationResponse(changed=outcome.changed, notice=Notice.from_domain(outcome.notice), items=items)


@router.post("/{recipe_id}/invites", response_model=RecipeMutationResponse)
async def invite_to_recipe(
    recipe_id: str,
    payload: RecipeInviteRequest,
    expanded: Optional[list[str]] = Query(default=None),
    idempotency_key: Optional[str] = Header(default=None, alias="Idempotency-Key"),
    service: BackofficeRecipeService = Depends(get_backoffice_recipe_service),
    guard: MutationGuard = Depends(get_mutation_guard),
) -> RecipeMutationResponse:
    outcome = await _mutate(
        guard, recipe_id, idempotency_key, "send invites",
        service.invite_to_recipe, recipe_id, payload.emails,
    )
    items = await _fetch_rows(service, list(expanded or []))
    return RecipeMutationResponse(
        changed=outcome.changed,
        notice=Notice.from_domain(outcome.notice),
        invited=outcome.payload.get("invited", []),
        items=items,
    )
