# src/app/services/backoffice_users.py
"""
User administration for the backoffice.
Every mutation awaits the remote write and reports a notice; callers
refetch the listing afterwards instead of merging changes locally.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from typing import Optional

from src.app.domain.errors import RemoteWriteError
from src.app.domain.models import MutationOutcome, Recipe, User
from src.app.infra.db.base import (
    InvitationRepository,
    MessageRepository,
    RecipeRepository,
    UserRepository,
)
from src.app.services import notices

logger = logging.getLogger(__name__)


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


class BackofficeUserService:
    """
    Service behind the users table.

    Responsibilities:
    - List users, optionally by email prefix, with the recipes they created
    - Rename, change role, delete
    - Message a user and invite new users
    """

    def __init__(
        self,
        users: UserRepository,
        recipes: RecipeRepository,
        messages: MessageRepository,
        invitations: InvitationRepository,
    ):
        self._users = users
        self._recipes = recipes
        self._messages = messages
        self._invitations = invitations

    def list_users(self, search: Optional[str] = None) -> list[User]:
        """
        Fetch users and attach the recipes each one created.

        Recipes come from a single query over all listed user ids, so the
        listing either fails as a whole or every user is enriched.

        Args:
            search: Optional email prefix

        Returns:
            Users in store order, each with `recipes` populated
        """
        users = self._users.list_users(email_prefix=_clean(search) or None)
        if not users:
            return []

        by_creator: dict[str, list[Recipe]] = defaultdict(list)
        for recipe in self._recipes.list_by_creators(user.id for user in users):
            if recipe.creator_id:
                by_creator[recipe.creator_id].append(recipe)

        for user in users:
            user.recipes = by_creator.get(user.id, [])

        logger.debug("Listed %d users (search=%r)", len(users), search)
        return users

    def edit_name(self, user_id: str, name: Optional[str]) -> MutationOutcome:
        new_name = _clean(name)
        if not new_name:
            return MutationOutcome(changed=False)

        self._users.update_user(user_id, {"name": new_name})
        logger.info("User renamed: id=%s", user_id)
        return MutationOutcome(changed=True, notice=notices.updated("user"))

    def change_role(
        self,
        user_id: str,
        role: Optional[str],
        previous_role: Optional[str] = None,
    ) -> MutationOutcome:
        """
        Persist a new role on the user.

        Args:
            user_id: The user
            role: The role to set
            previous_role: When given, only users currently holding this
                role are updated (renaming a role from the edit modal)

        Returns:
            MutationOutcome; unchanged when role is blank or the
            precondition does not hold
        """
        new_role = _clean(role)
        if not new_role:
            return MutationOutcome(changed=False)

        if previous_role is not None:
            current = self._users.get_user(user_id)
            if current is None or current.role != previous_role:
                logger.info(
                    "Role change skipped: id=%s, expected=%s, actual=%s",
                    user_id, previous_role, current.role if current else None,
                )
                return MutationOutcome(changed=False)

        self._users.update_user(user_id, {"role": new_role})
        logger.info("User role changed: id=%s, role=%s", user_id, new_role)
        return MutationOutcome(changed=True, notice=notices.role_updated())

    def delete_user(self, user_id: str) -> MutationOutcome:
        """
        Remove the user document. Recipes created by the user are kept.
        """
        self._users.delete_user(user_id)
        logger.info("User deleted: id=%s", user_id)
        return MutationOutcome(
            changed=True,
            notice=notices.deleted("user"),
            payload={"undo": {"action": "undo-delete", "userId": user_id}},
        )

    def undo_delete(self, user_id: str) -> MutationOutcome:
        # Acknowledged only: the removed document is not written back.
        logger.info("Undo delete requested for user: %s", user_id)
        return MutationOutcome(changed=False, notice=notices.delete_undone("user"))

    def message_user(
        self,
        user_id: str,
        subject: Optional[str],
        body: Optional[str],
        sent_by: Optional[str] = None,
    ) -> MutationOutcome:
        text = _clean(body)
        if not text:
            return MutationOutcome(changed=False)

        user = self._users.get_user(user_id)
        if user is None:
            raise RemoteWriteError("send message", f"user {user_id} not found")

        message = self._messages.create_message(
            user_id=user.id,
            email=user.email,
            subject=_clean(subject),
            body=text,
            sent_by=sent_by,
        )
        logger.info("Message sent: id=%s, to=%s", message.id, user.email)
        return MutationOutcome(
            changed=True,
            notice=notices.success("Message sent", f"Your message has been sent to {user.email}."),
            payload={"messageId": message.id},
        )

    def invite_users(
        self,
        emails: list[str],
        role: str = "user",
        invited_by: Optional[str] = None,
    ) -> MutationOutcome:
        distinct: list[str] = []
        seen: set[str] = set()
        for email in emails:
            cleaned = _clean(email)
            if cleaned and cleaned.lower() not in seen:
                seen.add(cleaned.lower())
                distinct.append(cleaned)

        if not distinct:
            return MutationOutcome(changed=False)

        invitations = self._invitations.create_invitations(distinct, _clean(role) or "user", invited_by)
        logger.info("Invitations sent: count=%d, by=%s", len(invitations), invited_by)
        return MutationOutcome(
            changed=True,
            notice=notices.success("Invitations sent", f"{len(invitations)} invitation(s) have been sent."),
            payload={"invited": [invitation.email for invitation in invitations]},
        )
