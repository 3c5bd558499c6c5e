from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Iterable
from uuid import uuid4

import httpx
from postgrest.exceptions import APIError
from supabase import Client

from src.app.domain.errors import RemoteReadError, RemoteWriteError
from src.app.domain.models import (
    Invitation,
    Recipe,
    RecipeInvite,
    RecipeSourceType,
    RecipeStats,
    User,
    UserMessage,
)
from src.app.infra.db.base import (
    InvitationRepository,
    MessageRepository,
    RecipeRepository,
    RoleSettingsRepository,
    UserRepository,
)

logger = logging.getLogger(__name__)

# Upper bound of a prefix range query on a text field
PREFIX_RANGE_END = "\uf8ff"

_REMOTE_ERRORS = (APIError, httpx.HTTPError, ConnectionError, TimeoutError)


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _parse_datetime(value: object) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    # Documents migrated from the previous store keep {"seconds": ...}
    if isinstance(value, dict) and "seconds" in value:
        try:
            return datetime.fromtimestamp(float(value["seconds"]), tz=timezone.utc)
        except (TypeError, ValueError):
            return None
    if not isinstance(value, str):
        return None

    try:
        normalized = value.replace("Z", "+00:00") if value.endswith("Z") else value
        return datetime.fromisoformat(normalized)
    except ValueError:
        return None


def _safe_int(value: object, default: int = 0) -> int:
    try:
        return int(value) if value else default
    except (TypeError, ValueError):
        return default


def _safe_str(value: object) -> str | None:
    return str(value) if value else None


def _str_list(value: object) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if item is not None]


def _parse_source(value: object) -> RecipeSourceType:
    try:
        return RecipeSourceType(str(value))
    except ValueError:
        return RecipeSourceType.MANUAL


def _row_to_stats(value: object) -> RecipeStats:
    if not isinstance(value, dict):
        return RecipeStats()
    return RecipeStats(
        views=_safe_int(value.get("views")),
        likes=_safe_int(value.get("likes")),
        saves=_safe_int(value.get("saves")),
    )


def _row_to_invites(value: object) -> list[RecipeInvite]:
    if not isinstance(value, list):
        return []
    invites: list[RecipeInvite] = []
    for entry in value:
        if isinstance(entry, str):
            invites.append(RecipeInvite(email=entry))
        elif isinstance(entry, dict) and entry.get("email"):
            invites.append(
                RecipeInvite(
                    email=str(entry["email"]),
                    status=str(entry.get("status") or "pending"),
                    invited_at=_parse_datetime(entry.get("invitedAt")),
                )
            )
    return invites


def _row_to_recipe(row: dict[str, Any]) -> Recipe:
    return Recipe(
        id=str(row["id"]),
        title=str(row.get("title") or ""),
        creator_id=_safe_str(row.get("creatorId")),
        source=_parse_source(row.get("source")),
        description=_safe_str(row.get("description")),
        ingredients=_str_list(row.get("ingredients")),
        instructions=_str_list(row.get("instructions")),
        tags=_str_list(row.get("tags")),
        image_url=_safe_str(row.get("imageUrl")),
        source_url=_safe_str(row.get("sourceUrl")),
        created_at=_parse_datetime(row.get("createdAt")),
        updated_at=_parse_datetime(row.get("updatedAt")),
        stats=_row_to_stats(row.get("stats")),
        invites=_row_to_invites(row.get("invites")),
    )


def _row_to_user(row: dict[str, Any]) -> User:
    return User(
        id=str(row["id"]),
        email=str(row.get("email") or ""),
        name=str(row.get("name") or ""),
        role=str(row.get("role") or "user"),
        created_at=_parse_datetime(row.get("createdAt")),
        avatar_url=_safe_str(row.get("avatarUrl")),
    )


class SupabaseUserRepository(UserRepository):
    TABLE_NAME = "users"

    def __init__(self, client: Client):
        self._client = client

    def list_users(self, email_prefix: str | None = None) -> list[User]:
        try:
            query = self._client.table(self.TABLE_NAME).select("*")
            if email_prefix:
                query = query.gte("email", email_prefix).lt("email", email_prefix + PREFIX_RANGE_END)
            result = query.execute()
        except _REMOTE_ERRORS as error:
            logger.error("Error fetching users (prefix=%r): %s", email_prefix, error)
            raise RemoteReadError("fetch users", str(error)) from error

        return [_row_to_user(row) for row in (result.data or [])]

    def get_user(self, user_id: str) -> User | None:
        try:
            result = self._client.table(self.TABLE_NAME).select("*").eq("id", user_id).limit(1).execute()
        except _REMOTE_ERRORS as error:
            logger.error("Error fetching user %s: %s", user_id, error)
            raise RemoteReadError("fetch user", str(error)) from error

        rows = result.data or []
        return _row_to_user(rows[0]) if rows else None

    def create_user(self, user_id: str, email: str, name: str, role: str) -> User:
        data = {
            "id": user_id,
            "email": email,
            "name": name,
            "role": role,
            "createdAt": _now_utc().isoformat(),
        }
        try:
            result = self._client.table(self.TABLE_NAME).upsert(data).execute()
        except _REMOTE_ERRORS as error:
            logger.error("Error creating user document %s: %s", user_id, error)
            raise RemoteWriteError("create user", str(error)) from error

        rows = result.data or [data]
        logger.info("Created user document: id=%s, email=%s", user_id, email)
        return _row_to_user(rows[0])

    def update_user(self, user_id: str, fields: dict[str, Any]) -> bool:
        try:
            result = self._client.table(self.TABLE_NAME).update(fields).eq("id", user_id).execute()
        except _REMOTE_ERRORS as error:
            logger.error("Error updating user %s: %s", user_id, error)
            raise RemoteWriteError("update user", str(error)) from error
        return bool(result.data)

    def delete_user(self, user_id: str) -> bool:
        try:
            result = self._client.table(self.TABLE_NAME).delete().eq("id", user_id).execute()
        except _REMOTE_ERRORS as error:
            logger.error("Error deleting user %s: %s", user_id, error)
            raise RemoteWriteError("delete user", str(error)) from error
        return bool(result.data)


class SupabaseRecipeRepository(RecipeRepository):
    TABLE_NAME = "recipes"

    def __init__(self, client: Client):
        self._client = client

    def list_recipes(self) -> list[Recipe]:
        try:
            result = self._client.table(self.TABLE_NAME).select("*").execute()
        except _REMOTE_ERRORS as error:
            logger.error("Error fetching recipes: %s", error)
            raise RemoteReadError("fetch recipes", str(error)) from error
        return [_row_to_recipe(row) for row in (result.data or [])]

    def list_by_creators(self, creator_ids: Iterable[str]) -> list[Recipe]:
        ids = sorted({str(creator_id) for creator_id in creator_ids if creator_id})
        if not ids:
            return []

        try:
            result = self._client.table(self.TABLE_NAME).select("*").in_("creatorId", ids).execute()
        except _REMOTE_ERRORS as error:
            logger.error("Error fetching recipes for %d creators: %s", len(ids), error)
            raise RemoteReadError("fetch user recipes", str(error)) from error
        return [_row_to_recipe(row) for row in (result.data or [])]

    def list_by_creator(self, creator_id: str) -> list[Recipe]:
        try:
            result = self._client.table(self.TABLE_NAME).select("*").eq("creatorId", creator_id).execute()
        except _REMOTE_ERRORS as error:
            logger.error("Error fetching recipes for creator %s: %s", creator_id, error)
            raise RemoteReadError("fetch user recipes", str(error)) from error
        return [_row_to_recipe(row) for row in (result.data or [])]

    def get_recipe(self, recipe_id: str) -> Recipe | None:
        try:
            result = self._client.table(self.TABLE_NAME).select("*").eq("id", recipe_id).limit(1).execute()
        except _REMOTE_ERRORS as error:
            logger.error("Error fetching recipe %s: %s", recipe_id, error)
            raise RemoteReadError("fetch recipe", str(error)) from error

        rows = result.data or []
        return _row_to_recipe(rows[0]) if rows else None

    def create_recipe(self, data: dict[str, Any]) -> Recipe:
        payload = {"id": str(uuid4()), **data}
        try:
            result = self._client.table(self.TABLE_NAME).insert(payload).execute()
        except _REMOTE_ERRORS as error:
            logger.error("Error creating recipe: %s", error)
            raise RemoteWriteError("create recipe", str(error)) from error

        if not result.data:
            raise RemoteWriteError("create recipe", "store returned no document")

        recipe = _row_to_recipe(result.data[0])
        logger.info("Created recipe: id=%s, creator=%s, source=%s", recipe.id, recipe.creator_id, recipe.source.value)
        return recipe

    def update_recipe(self, recipe_id: str, fields: dict[str, Any]) -> bool:
        try:
            result = self._client.table(self.TABLE_NAME).update(fields).eq("id", recipe_id).execute()
        except _REMOTE_ERRORS as error:
            logger.error("Error updating recipe %s: %s", recipe_id, error)
            raise RemoteWriteError("update recipe", str(error)) from error
        return bool(result.data)

    def delete_recipe(self, recipe_id: str) -> bool:
        try:
            result = self._client.table(self.TABLE_NAME).delete().eq("id", recipe_id).execute()
        except _REMOTE_ERRORS as error:
            logger.error("Error deleting recipe %s: %s", recipe_id, error)
            raise RemoteWriteError("delete recipe", str(error)) from error
        return bool(result.data)


class SupabaseRoleSettingsRepository(RoleSettingsRepository):
    TABLE_NAME = "role_settings"

    def __init__(self, client: Client):
        self._client = client

    def get_roles(self, tenant_id: str) -> list[str] | None:
        try:
            result = (
                self._client.table(self.TABLE_NAME)
                .select("roles")
                .eq("tenantId", tenant_id)
                .limit(1)
                .execute()
            )
        except _REMOTE_ERRORS as error:
            logger.error("Error fetching roles for tenant %s: %s", tenant_id, error)
            raise RemoteReadError("fetch roles", str(error)) from error

        rows = result.data or []
        if not rows:
            return None
        return _str_list(rows[0].get("roles"))

    def save_roles(self, tenant_id: str, roles: list[str]) -> list[str]:
        data = {
            "tenantId": tenant_id,
            "roles": list(roles),
            "updatedAt": _now_utc().isoformat(),
        }
        try:
            self._client.table(self.TABLE_NAME).upsert(data, on_conflict="tenantId").execute()
        except _REMOTE_ERRORS as error:
            logger.error("Error saving roles for tenant %s: %s", tenant_id, error)
            raise RemoteWriteError("save roles", str(error)) from error

        logger.info("Saved %d roles for tenant %s", len(roles), tenant_id)
        return list(roles)


class SupabaseInvitationRepository(InvitationRepository):
    TABLE_NAME = "invitations"

    def __init__(self, client: Client):
        self._client = client

    def create_invitations(
        self,
        emails: list[str],
        role: str,
        invited_by: str | None = None,
    ) -> list[Invitation]:
        if not emails:
            return []

        now = _now_utc().isoformat()
        rows = [
            {
                "id": str(uuid4()),
                "email": email,
                "role": role,
                "invitedBy": invited_by,
                "status": "pending",
                "createdAt": now,
            }
            for email in emails
        ]
        try:
            result = self._client.table(self.TABLE_NAME).insert(rows).execute()
        except _REMOTE_ERRORS as error:
            logger.error("Error creating %d invitations: %s", len(rows), error)
            raise RemoteWriteError("send invitations", str(error)) from error

        return [
            Invitation(
                id=str(row["id"]),
                email=str(row["email"]),
                role=str(row.get("role") or role),
                invited_by=_safe_str(row.get("invitedBy")),
                status=str(row.get("status") or "pending"),
                created_at=_parse_datetime(row.get("createdAt")),
            )
            for row in (result.data or rows)
        ]


class SupabaseMessageRepository(MessageRepository):
    TABLE_NAME = "messages"

    def __init__(self, client: Client):
        self._client = client

    def create_message(
        self,
        user_id: str,
        email: str,
        subject: str,
        body: str,
        sent_by: str | None = None,
    ) -> UserMessage:
        data = {
            "id": str(uuid4()),
            "userId": user_id,
            "email": email,
            "subject": subject,
            "body": body,
            "sentBy": sent_by,
            "createdAt": _now_utc().isoformat(),
        }
        try:
            self._client.table(self.TABLE_NAME).insert(data).execute()
        except _REMOTE_ERRORS as error:
            logger.error("Error sending message to user %s: %s", user_id, error)
            raise RemoteWriteError("send message", str(error)) from error

        return UserMessage(
            id=data["id"],
            user_id=user_id,
            email=email,
            subject=subject,
            body=body,
            sent_by=sent_by,
            created_at=_parse_datetime(data["createdAt"]),
        )
