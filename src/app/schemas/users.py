from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field

from src.app.schemas.common import Notice
from src.app.schemas.recipes import RecipeResponse


class UserRow(BaseModel):
    id: str
    email: str
    name: str
    role: str
    createdAt: Optional[str] = None
    avatarUrl: Optional[str] = None
    recipeCount: int = 0
    isExpanded: bool = False
    # Only filled for expanded rows
    recipes: Optional[list[RecipeResponse]] = None


class UserList(BaseModel):
    items: list[UserRow] = Field(default_factory=list)
    expanded: list[str] = Field(default_factory=list)
    search: Optional[str] = None


class UserMutationResponse(BaseModel):
    changed: bool
    notice: Optional[Notice] = None
    undo: Optional[dict[str, Any]] = None
    items: list[UserRow] = Field(default_factory=list)


class NameUpdate(BaseModel):
    name: str = ""


class RoleUpdate(BaseModel):
    role: str = ""
    previousRole: Optional[str] = None


class MessageRequest(BaseModel):
    subject: str = Field(default="", max_length=200)
    body: str = Field(default="", max_length=5000)


class MessageResponse(BaseModel):
    changed: bool
    notice: Optional[Notice] = None
    messageId: Optional[str] = None


class InviteUsersRequest(BaseModel):
    emails: list[str] = Field(..., min_length=1)
    role: str = "user"


class InviteUsersResponse(BaseModel):
    changed: bool
    notice: Optional[Notice] = None
    invited: list[str] = Field(default_factory=list)


class RoleCreate(BaseModel):
    role: str = ""


class RoleListResponse(BaseModel):
    roles: list[str] = Field(default_factory=list)
    notice: Optional[Notice] = None
