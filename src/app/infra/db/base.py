# src/app/infra/db/base.py
"""
Abstract repositories over the remote document store.
This interface allows easy swapping between different store backends.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Iterable, Optional

from src.app.domain.models import Invitation, Recipe, User, UserMessage


class UserRepository(ABC):
    """
    Access to the `users` collection.

    Implementations:
    - SupabaseUserRepository: PostgREST table used as a document collection
    """

    @abstractmethod
    def list_users(self, email_prefix: Optional[str] = None) -> list[User]:
        """
        Full collection scan, or a prefix range on email.

        Args:
            email_prefix: When set, only users with
                email >= prefix and email < prefix + U+F8FF are returned

        Returns:
            Users without their derived recipe lists
        """
        pass

    @abstractmethod
    def get_user(self, user_id: str) -> Optional[User]:
        pass

    @abstractmethod
    def create_user(self, user_id: str, email: str, name: str, role: str) -> User:
        """Write the profile document keyed by the auth user id."""
        pass

    @abstractmethod
    def update_user(self, user_id: str, fields: dict[str, Any]) -> bool:
        """
        Partial-field update.

        Returns:
            True if a document was updated
        """
        pass

    @abstractmethod
    def delete_user(self, user_id: str) -> bool:
        """Direct remove. Does not touch recipes created by the user."""
        pass


class RecipeRepository(ABC):
    """Access to the `recipes` collection."""

    @abstractmethod
    def list_recipes(self) -> list[Recipe]:
        pass

    @abstractmethod
    def list_by_creators(self, creator_ids: Iterable[str]) -> list[Recipe]:
        """
        Recipes whose creatorId is any of the given ids, in a single query.

        Args:
            creator_ids: User ids to match

        Returns:
            Matching recipes, unordered
        """
        pass

    @abstractmethod
    def list_by_creator(self, creator_id: str) -> list[Recipe]:
        """Recipes whose creatorId equals the given user id."""
        pass

    @abstractmethod
    def get_recipe(self, recipe_id: str) -> Optional[Recipe]:
        pass

    @abstractmethod
    def create_recipe(self, data: dict[str, Any]) -> Recipe:
        pass

    @abstractmethod
    def update_recipe(self, recipe_id: str, fields: dict[str, Any]) -> bool:
        pass

    @abstractmethod
    def delete_recipe(self, recipe_id: str) -> bool:
        pass


class RoleSettingsRepository(ABC):
    """Persisted role registry, one document per tenant."""

    @abstractmethod
    def get_roles(self, tenant_id: str) -> Optional[list[str]]:
        """
        Returns:
            The stored roles, or None when the tenant has no document yet
        """
        pass

    @abstractmethod
    def save_roles(self, tenant_id: str, roles: list[str]) -> list[str]:
        pass


class InvitationRepository(ABC):

    @abstractmethod
    def create_invitations(
        self,
        emails: list[str],
        role: str,
        invited_by: Optional[str] = None,
    ) -> list[Invitation]:
        pass


class MessageRepository(ABC):

    @abstractmethod
    def create_message(
        self,
        user_id: str,
        email: str,
        subject: str,
        body: str,
        sent_by: Optional[str] = None,
    ) -> UserMessage:
        pass
