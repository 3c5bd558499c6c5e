from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, status
from starlette.concurrency import run_in_threadpool

from src.app.config import settings
from src.app.deps import (
    get_backoffice_user_service,
    get_mutation_guard,
    get_role_settings_service,
    require_admin,
)
from src.app.domain.errors import BackofficeError
from src.app.domain.models import MutationOutcome, SessionUser, User
from src.app.schemas.common import Notice
from src.app.schemas.recipes import RecipeResponse
from src.app.schemas.users import (
    InviteUsersRequest,
    InviteUsersResponse,
    MessageRequest,
    MessageResponse,
    NameUpdate,
    RoleCreate,
    RoleListResponse,
    RoleUpdate,
    UserList,
    UserMutationResponse,
    UserRow,
)
from src.app.services import notices
from src.app.services.backoffice_users import BackofficeUserService
from src.app.services.mutation_guard import MutationGuard
from src.app.services.role_settings import RoleSettingsService
from src.app.services.row_expansion import is_expanded, toggle_row

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/backoffice", tags=["backoffice"], dependencies=[Depends(require_admin)])


def _failure(action: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail=Notice.from_domain(notices.failure(action)).model_dump(),
    )


def _user_row(user: User, expanded: list[str]) -> UserRow:
    open_row = is_expanded(expanded, user.id)
    return UserRow(
        id=user.id,
        email=user.email,
        name=user.name,
        role=user.role,
        createdAt=user.created_at.isoformat() if user.created_at else None,
        avatarUrl=user.avatar_url,
        recipeCount=user.recipe_count,
        isExpanded=open_row,
        recipes=[RecipeResponse.from_domain(recipe) for recipe in user.recipes] if open_row else None,
    )


async def _fetch_rows(
    service: BackofficeUserService,
    search: Optional[str],
    expanded: list[str],
) -> list[UserRow]:
    try:
        users = await run_in_threadpool(service.list_users, search)
    except BackofficeError:
        logger.exception("Error fetching users (search=%r)", search)
        raise _failure("load users")
    return [_user_row(user, expanded) for user in users]


async def _mutate(
    guard: MutationGuard,
    record_key: str,
    idempotency_key: Optional[str],
    action: str,
    fn: Callable[..., MutationOutcome],
    *args: Any,
) -> MutationOutcome:
    async def operation() -> MutationOutcome:
        try:
            return await run_in_threadpool(fn, *args)
        except BackofficeError:
            logger.exception("Error during '%s' on %s", action, record_key)
            raise _failure(action)

    return await guard.run(record_key, operation, idempotency_key)


@router.get("/users", response_model=UserList)
async def list_users(
    search: Optional[str] = Query(default=None),
    expanded: Optional[list[str]] = Query(default=None),
    toggle: Optional[str] = Query(default=None),
    service: BackofficeUserService = Depends(get_backoffice_user_service),
) -> UserList:
    open_rows = list(expanded or [])
    if toggle:
        open_rows = toggle_row(open_rows, toggle)
    items = await _fetch_rows(service, search, open_rows)
    return UserList(items=items, expanded=open_rows, search=search or None)


@router.patch("/users/{user_id}/name", response_model=UserMutationResponse)
async def edit_user_name(
    user_id: str,
    payload: NameUpdate,
    search: Optional[str] = Query(default=None),
    expanded: Optional[list[str]] = Query(default=None),
    idempotency_key: Optional[str] = Header(default=None, alias="Idempotency-Key"),
    service: BackofficeUserService = Depends(get_backoffice_user_service),
    guard: MutationGuard = Depends(get_mutation_guard),
) -> UserMutationResponse:
    outcome = await _mutate(
        guard, f"users:{user_id}", idempotency_key, "update user",
        service.edit_name, user_id, payload.name,
    )
    items = await _fetch_rows(service, search, list(expanded or []))
    return UserMutationResponse(changed=outcome.changed, notice=Notice.from_domain(outcome.notice), items=items)


@router.patch("/users/{user_id}/role", response_model=UserMutationResponse)
async def change_user_role(
    user_id: str,
    payload: RoleUpdate,
    search: Optional[str] = Query(default=None),
    expanded: Optional[list[str]] = Query(default=None),
    idempotency_key: Optional[str] = Header(default=None, alias="Idempotency-Key"),
    service: BackofficeUserService = Depends(get_backoffice_user_service),
    guard: MutationGuard = Depends(get_mutation_guard),
) -> UserMutationResponse:
    outcome = await _mutate(
        guard, f"users:{user_id}", idempotency_key, "update role",
        service.change_role, user_id, payload.role, payload.previousRole,
    )
    items = await _fetch_rows(service, search, list(expanded or []))
    return UserMutationResponse(changed=outcome.changed, notice=Notice.from_domain(outcome.notice), items=items)


@router.delete("/users/{user_id}", response_model=UserMutationResponse)
async def delete_user(
    user_id: str,
    search: Optional[str] = Query(default=None),
    expanded: Optional[list[str]] = Query(default=None),
    idempotency_key: Optional[str] = Header(default=None, alias="Idempotency-Key"),
    service: BackofficeUserService = Depends(get_backoffice_user_service),
    guard: MutationGuard = Depends(get_mutation_guard),
) -> UserMutationResponse:
    outcome = await _mutate(
        guard, f"users:{user_id}", idempotency_key, "delete user",
        service.delete_user, user_id,
    )
    open_rows = [row_id for row_id in (expanded or []) if row_id != user_id]
    items = await _fetch_rows(service, search, open_rows)
    return UserMutationResponse(
        changed=outcome.changed,
        notice=Notice.from_domain(outcome.notice),
        undo=outcome.payload.get("undo"),
        items=items,
    )


@router.post("/users/{user_id}/undo-delete", response_model=UserMutationResponse)
async def undo_delete_user(
    user_id: str,
    search: Optional[str] = Query(default=None),
    service: BackofficeUserService = Depends(get_backoffice_user_service),
) -> UserMutationResponse:
    outcome = await run_in_threadpool(service.undo_delete, user_id)
    items = await _fetch_rows(service, search, [])
    return UserMutationResponse(changed=outcome.changed, notice=Notice.from_domain(outcome.notice), items=items)


@router.post("/users/{user_id}/messages", response_model=MessageResponse)
async def message_user(
    user_id: str,
    payload: MessageRequest,
    idempotency_key: Optional[str] = Header(default=None, alias="Idempotency-Key"),
    admin: SessionUser = Depends(require_admin),
    service: BackofficeUserService = Depends(get_backoffice_user_service),
    guard: MutationGuard = Depends(get_mutation_guard),
) -> MessageResponse:
    outcome = await _mutate(
        guard, f"messages:{user_id}", idempotency_key, "send message",
        service.message_user, user_id, payload.subject, payload.body, admin.id,
    )
    return MessageResponse(
        changed=outcome.changed,
        notice=Notice.from_domain(outcome.notice),
        messageId=outcome.payload.get("messageId"),
    )


@router.post("/invitations", response_model=InviteUsersResponse)
async def invite_users(
    payload: InviteUsersRequest,
    idempotency_key: Optional[str] = Header(default=None, alias="Idempotency-Key"),
    admin: SessionUser = Depends(require_admin),
    service: BackofficeUserService = Depends(get_backoffice_user_service),
    guard: MutationGuard = Depends(get_mutation_guard),
) -> InviteUsersResponse:
    outcome = await _mutate(
        guard, "invitations", idempotency_key, "send invitations",
        service.invite_users, payload.emails, payload.role, admin.id,
    )
    return InviteUsersResponse(
        changed=outcome.changed,
        notice=Notice.from_domain(outcome.notice),
        invited=outcome.payload.get("invited", []),
    )


@router.get("/roles", response_model=RoleListResponse)
async def list_roles(roles: RoleSettingsService = Depends(get_role_settings_service)) -> RoleListResponse:
    try:
        available = await run_in_threadpool(roles.get_roles, settings.DEFAULT_TENANT_ID)
    except BackofficeError:
        logger.exception("Error fetching roles")
        raise _failure("load roles")
    return RoleListResponse(roles=available)


@router.post("/roles", response_model=RoleListResponse)
async def add_role(
    payload: RoleCreate,
    idempotency_key: Optional[str] = Header(default=None, alias="Idempotency-Key"),
    roles: RoleSettingsService = Depends(get_role_settings_service),
    guard: MutationGuard = Depends(get_mutation_guard),
) -> RoleListResponse:
    tenant_id = settings.DEFAULT_TENANT_ID
    outcome = await _mutate(
        guard, f"roles:{tenant_id}", idempotency_key, "add role",
        roles.add_role, tenant_id, payload.role,
    )
    return RoleListResponse(roles=outcome.payload.get("roles", []), notice=Notice.from_domain(outcome.notice))
