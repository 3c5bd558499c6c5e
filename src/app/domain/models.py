# src/app/domain/models.py
"""
Domain models for the recipe backoffice.
These are pure data structures with no infrastructure dependencies.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class RecipeSourceType(str, Enum):
    """How a recipe entered the system."""
    MANUAL = "manual"
    SCRAPED = "scraped"
    IMPORTED = "imported"


class SessionState(str, Enum):
    """Lifecycle of an authenticated session."""
    SIGNED_OUT = "signed_out"
    SIGNED_IN_UNVERIFIED = "signed_in_unverified"
    SIGNED_IN_VERIFIED = "signed_in_verified"


class AuthEvent(str, Enum):
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    USER_REGISTERED = "USER_REGISTERED"


class NoticeVariant(str, Enum):
    DEFAULT = "default"
    DESTRUCTIVE = "destructive"


@dataclass
class Notice:
    """User-facing notification attached to a response."""
    title: str
    description: str
    variant: NoticeVariant = NoticeVariant.DEFAULT
    duration: Optional[int] = None  # milliseconds

    @property
    def is_error(self) -> bool:
        return self.variant == NoticeVariant.DESTRUCTIVE


@dataclass
class RecipeStats:
    views: int = 0
    likes: int = 0
    saves: int = 0


@dataclass
class RecipeInvite:
    email: str
    status: str = "pending"
    invited_at: Optional[datetime] = None


@dataclass
class Recipe:
    """A recipe document. Only `id` is guaranteed by the store."""
    id: str
    title: str
    creator_id: Optional[str] = None
    source: RecipeSourceType = RecipeSourceType.MANUAL

    description: Optional[str] = None
    ingredients: list[str] = field(default_factory=list)
    instructions: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    image_url: Optional[str] = None
    source_url: Optional[str] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    stats: RecipeStats = field(default_factory=RecipeStats)
    invites: list[RecipeInvite] = field(default_factory=list)

    def has_invite(self, email: str) -> bool:
        target = email.strip().lower()
        return any(invite.email.lower() == target for invite in self.invites)


@dataclass
class User:
    """A profile document from the `users` collection."""
    id: str
    email: str
    name: str = ""
    role: str = "user"
    created_at: Optional[datetime] = None
    avatar_url: Optional[str] = None

    # Derived: recipes whose creatorId points to this user
    recipes: list[Recipe] = field(default_factory=list)

    @property
    def recipe_count(self) -> int:
        return len(self.recipes)


@dataclass
class SessionUser:
    """The authenticated user with the profile role mirrored onto it."""
    id: str
    email: Optional[str]
    email_verified: bool
    name: Optional[str] = None
    role: Optional[str] = None
    avatar_url: Optional[str] = None
    available_roles: list[str] = field(default_factory=list)

    @property
    def state(self) -> SessionState:
        if self.email_verified:
            return SessionState.SIGNED_IN_VERIFIED
        return SessionState.SIGNED_IN_UNVERIFIED


@dataclass
class AuthResult:
    """Outcome of a login or registration."""
    user: Optional[SessionUser]
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    notices: list[Notice] = field(default_factory=list)
    verification_emails_sent: int = 0

    @property
    def state(self) -> SessionState:
        return self.user.state if self.user else SessionState.SIGNED_OUT


@dataclass
class Invitation:
    id: str
    email: str
    role: str
    invited_by: Optional[str] = None
    status: str = "pending"
    created_at: Optional[datetime] = None


@dataclass
class UserMessage:
    id: str
    user_id: str
    email: str
    subject: str
    body: str
    sent_by: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass
class MutationOutcome:
    """Result of a backoffice write: whether anything was written plus the notice to show."""
    changed: bool
    notice: Optional[Notice] = None
    payload: dict[str, Any] = field(default_factory=dict)
