# src/app/services/role_settings.py
"""
Role registry service.
Keeps the admin-extensible set of role tags, persisted per tenant.
"""
from __future__ import annotations

import logging
from typing import Optional

from src.app.domain.models import MutationOutcome
from src.app.infra.db.base import RoleSettingsRepository
from src.app.services import notices

logger = logging.getLogger(__name__)

DEFAULT_ROLES = ("user", "admin", "superadmin")


class RoleSettingsService:
    """
    Service for reading and extending the available roles.

    Responsibilities:
    - Fall back to the default roles while a tenant has none stored
      (nothing is written until a role is added)
    - Append custom roles added from the backoffice
    """

    def __init__(
        self,
        repository: RoleSettingsRepository,
        default_roles: Optional[list[str]] = None,
    ):
        self._repo = repository
        self.default_roles = list(default_roles or DEFAULT_ROLES)

    def get_roles(self, tenant_id: str) -> list[str]:
        """
        Get the roles available to a tenant.

        Args:
            tenant_id: The tenant

        Returns:
            The stored roles, or the defaults when nothing is stored yet
        """
        stored = self._repo.get_roles(tenant_id)
        if stored:
            return stored
        return list(self.default_roles)

    def add_role(self, tenant_id: str, role: str) -> MutationOutcome:
        """
        Add a custom role.

        A blank role is ignored. A role that already exists returns the
        current list without a notice.

        Args:
            tenant_id: The tenant
            role: The new role tag

        Returns:
            MutationOutcome with the resulting roles under payload["roles"]
        """
        roles = self.get_roles(tenant_id)
        candidate = (role or "").strip()

        if not candidate or candidate in roles:
            return MutationOutcome(changed=False, payload={"roles": roles})

        saved = self._repo.save_roles(tenant_id, [*roles, candidate])
        logger.info("Role added: tenant=%s, role=%s", tenant_id, candidate)
        return MutationOutcome(
            changed=True,
            notice=notices.role_added(candidate),
            payload={"roles": saved},
        )
