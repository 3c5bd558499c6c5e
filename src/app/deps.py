# src/app/deps.py (mantém o singleton, mas expõe como dependência)

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from starlette.concurrency import run_in_threadpool
from supabase import Client, create_client

from src.app.config import settings
from src.app.domain.errors import BackofficeError, SessionMissingError
from src.app.domain.models import Notice, SessionUser
from src.app.infra.db.base import (
    InvitationRepository,
    MessageRepository,
    RecipeRepository,
    RoleSettingsRepository,
    UserRepository,
)
from src.app.infra.db.supabase_repo import (
    SupabaseInvitationRepository,
    SupabaseMessageRepository,
    SupabaseRecipeRepository,
    SupabaseRoleSettingsRepository,
    SupabaseUserRepository,
)
from src.app.schemas.common import Notice as NoticeOut
from src.app.services import notices
from src.app.services.auth_service import AuthListener, AuthService, log_auth_event
from src.app.services.backoffice_recipes import BackofficeRecipeService
from src.app.services.backoffice_users import BackofficeUserService
from src.app.services.mutation_guard import MutationGuard
from src.app.services.recipes import RecipeService
from src.app.services.role_settings import RoleSettingsService

_client: Client | None = None
_guard: MutationGuard | None = None

# Shared by every AuthService instance; subscriptions outlive a request
_auth_listeners: list[AuthListener] = [log_auth_event]


def get_supabase() -> Client:
    global _client
    if _client is None:
        _client = create_client(str(settings.SUPABASE_URL),
                                settings.SUPABASE_SERVICE_ROLE_KEY)
    return _client


def _new_auth_client() -> Client:
    return create_client(
        str(settings.SUPABASE_URL),
        settings.SUPABASE_ANON_KEY or settings.SUPABASE_SERVICE_ROLE_KEY,
    )


def get_auth_client_factory() -> Callable[[], Client]:
    return _new_auth_client


def get_mutation_guard() -> MutationGuard:
    global _guard
    if _guard is None:
        _guard = MutationGuard(ttl_seconds=settings.IDEMPOTENCY_TTL_SECONDS)
    return _guard


def get_user_repository(supa: Client = Depends(get_supabase)) -> UserRepository:
    return SupabaseUserRepository(supa)


def get_recipe_repository(supa: Client = Depends(get_supabase)) -> RecipeRepository:
    return SupabaseRecipeRepository(supa)


def get_role_settings_repository(supa: Client = Depends(get_supabase)) -> RoleSettingsRepository:
    return SupabaseRoleSettingsRepository(supa)


def get_invitation_repository(supa: Client = Depends(get_supabase)) -> InvitationRepository:
    return SupabaseInvitationRepository(supa)


def get_message_repository(supa: Client = Depends(get_supabase)) -> MessageRepository:
    return SupabaseMessageRepository(supa)


def get_role_settings_service(
    repo: RoleSettingsRepository = Depends(get_role_settings_repository),
) -> RoleSettingsService:
    return RoleSettingsService(repo, default_roles=settings.DEFAULT_ROLES)


def get_auth_service(
    supa: Client = Depends(get_supabase),
    client_factory: Callable[[], Client] = Depends(get_auth_client_factory),
    users: UserRepository = Depends(get_user_repository),
    roles: RoleSettingsService = Depends(get_role_settings_service),
) -> AuthService:
    return AuthService(
        admin_client=supa,
        client_factory=client_factory,
        users=users,
        roles=roles,
        tenant_id=settings.DEFAULT_TENANT_ID,
        admin_roles=settings.ADMIN_ROLES,
        listeners=_auth_listeners,
    )


def get_backoffice_user_service(
    users: UserRepository = Depends(get_user_repository),
    recipes: RecipeRepository = Depends(get_recipe_repository),
    messages: MessageRepository = Depends(get_message_repository),
    invitations: InvitationRepository = Depends(get_invitation_repository),
) -> BackofficeUserService:
    return BackofficeUserService(users, recipes, messages, invitations)


def get_backoffice_recipe_service(
    recipes: RecipeRepository = Depends(get_recipe_repository),
) -> BackofficeRecipeService:
    return BackofficeRecipeService(recipes)


def get_recipe_service(
    recipes: RecipeRepository = Depends(get_recipe_repository),
) -> RecipeService:
    return RecipeService(recipes)


auth_scheme = HTTPBearer(auto_error=False)


@dataclass
class CurrentSession:
    user: SessionUser
    access_token: str
    notices: list[Notice] = field(default_factory=list)


async def get_current_session(
    cred: HTTPAuthorizationCredentials | None = Depends(auth_scheme),
    auth: AuthService = Depends(get_auth_service),
) -> CurrentSession:
    """
    Recebe Authorization: Bearer <access_token> do Supabase,
    valida no GoTrue e devolve o usuário com o papel do documento de perfil.
    """
    if cred is None or cred.scheme.lower() != "bearer":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing token")

    try:
        user, session_notices = await run_in_threadpool(auth.resolve_session, cred.credentials)
    except SessionMissingError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc))
    except BackofficeError:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=NoticeOut.from_domain(notices.failure("load profile")).model_dump(),
        )

    return CurrentSession(user=user, access_token=cred.credentials, notices=session_notices)


async def get_current_user(session: CurrentSession = Depends(get_current_session)) -> SessionUser:
    return session.user


async def require_admin(user: SessionUser = Depends(get_current_user)) -> SessionUser:
    if user.role not in settings.ADMIN_ROLES:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin role required")
    return user
