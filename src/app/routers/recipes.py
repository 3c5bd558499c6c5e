from __future__ import annotations

import logging
import time
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, status
from starlette.concurrency import run_in_threadpool

from src.app.config import settings
from src.app.deps import get_current_user, get_mutation_guard, get_recipe_service
from src.app.domain.errors import BackofficeError, RecipeNotFoundError, RecipePermissionError
from src.app.domain.models import RecipeSourceType, SessionUser
from src.app.schemas.common import Notice
from src.app.schemas.recipes import (
    CreationOption,
    ImportRequest,
    RecipeCreate,
    RecipeDraftResponse,
    RecipeResponse,
    TagOption,
    TagPickerResponse,
)
from src.app.services import notices
from src.app.services.mutation_guard import MutationGuard
from src.app.services.recipes import RecipeService
from src.services import recipe_import
from src.services.errors import (
    FetchFailedError,
    InvalidURLError,
    NetworkTimeoutError,
    NoRecipeFoundError,
    PrivateOrUnavailableError,
)

log = logging.getLogger("routers.recipes")

router = APIRouter(prefix="/recipes", tags=["recipes"])


def _remote_failure(action: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail=Notice.from_domain(notices.failure(action)).model_dump(),
    )


@router.get("/creation-options", response_model=list[CreationOption])
async def list_creation_options() -> list[CreationOption]:
    return [
        CreationOption(key=option.key, label=option.label, available=option.available)
        for option in recipe_import.creation_options()
    ]


@router.get("/tag-options", response_model=TagPickerResponse)
async def tag_options(
    selected: Optional[list[str]] = Query(default=None),
    q: Optional[str] = Query(default=None, description="Search text"),
    service: RecipeService = Depends(get_recipe_service),
) -> TagPickerResponse:
    view = service.tag_picker(list(selected or []), q)
    return TagPickerResponse(
        options=[TagOption(value=option.value, checked=option.checked) for option in view.options],
        badges=view.badges,
        placeholder=view.placeholder,
        searchPlaceholder=view.search_placeholder,
        emptyMessage=view.empty_message,
    )


@router.post("/import", response_model=RecipeDraftResponse)
async def import_recipe(
    body: ImportRequest,
    user: SessionUser = Depends(get_current_user),
) -> RecipeDraftResponse:
    t0 = time.perf_counter()
    log.info("import.start url=%s user=%s", body.url, user.id)
    try:
        draft = await run_in_threadpool(
            recipe_import.import_recipe, body.url, settings.SCRAPE_TIMEOUT_SECONDS
        )
    except InvalidURLError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc) or "Invalid URL") from exc
    except NoRecipeFoundError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    except (FetchFailedError, NetworkTimeoutError, PrivateOrUnavailableError) as exc:
        log.warning("import.fail url=%s dt=%.2fs err=%s", body.url, time.perf_counter() - t0, exc)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc

    log.info("import.done url=%s source=%s dt=%.2fs", body.url, draft.source, time.perf_counter() - t0)
    return RecipeDraftResponse(
        source=draft.source,
        sourceUrl=draft.source_url,
        title=draft.title,
        description=draft.description,
        ingredients=draft.ingredients,
        instructions=draft.instructions,
        tags=draft.tags,
        imageUrl=draft.image_url,
        author=draft.author,
        platform=draft.platform,
    )


@router.get("", response_model=list[RecipeResponse])
async def list_my_recipes(
    user: SessionUser = Depends(get_current_user),
    service: RecipeService = Depends(get_recipe_service),
) -> list[RecipeResponse]:
    try:
        recipes = await run_in_threadpool(service.list_for_creator, user.id)
    except BackofficeError:
        log.exception("Error fetching recipes for %s", user.id)
        raise _remote_failure("load recipes")
    return [RecipeResponse.from_domain(recipe) for recipe in recipes]


@router.post("", response_model=RecipeResponse, status_code=status.HTTP_201_CREATED)
async def create_recipe(
    payload: RecipeCreate,
    user: SessionUser = Depends(get_current_user),
    service: RecipeService = Depends(get_recipe_service),
) -> RecipeResponse:
    fields = payload.model_dump(exclude={"source"})
    try:
        recipe = await run_in_threadpool(
            service.create_recipe, user.id, fields, RecipeSourceType(payload.source)
        )
    except BackofficeError:
        log.exception("Error creating recipe for %s", user.id)
        raise _remote_failure("create recipe")
    return RecipeResponse.from_domain(recipe)


@router.get("/{recipe_id}", response_model=RecipeResponse)
async def get_recipe(
    recipe_id: str,
    user: SessionUser = Depends(get_current_user),
    service: RecipeService = Depends(get_recipe_service),
) -> RecipeResponse:
    try:
        recipe = await run_in_threadpool(service.get_recipe, recipe_id)
    except RecipeNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except BackofficeError:
        log.exception("Error fetching recipe %s", recipe_id)
        raise _remote_failure("load recipe")
    return RecipeResponse.from_domain(recipe)


@router.post("/{recipe_id}/tags/{tag}", response_model=RecipeResponse)
async def toggle_recipe_tag(
    recipe_id: str,
    tag: str,
    idempotency_key: Optional[str] = Header(default=None, alias="Idempotency-Key"),
    user: SessionUser = Depends(get_current_user),
    service: RecipeService = Depends(get_recipe_service),
    guard: MutationGuard = Depends(get_mutation_guard),
) -> RecipeResponse:
    async def operation():
        try:
            return await run_in_threadpool(service.toggle_tag, recipe_id, tag, user.id)
        except RecipeNotFoundError as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
        except RecipePermissionError as exc:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
        except BackofficeError:
            log.exception("Error toggling tag %s on recipe %s", tag, recipe_id)
            raise _remote_failure("update tags")

    # Read-modify-write on the tag list; shares the per-record lock with backoffice edits
    recipe = await guard.run(f"recipes:{recipe_id}", operation, idempotency_key)
    return RecipeResponse.from_domain(recipe)
