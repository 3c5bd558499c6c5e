from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from src.app.domain.models import Recipe as DomainRecipe
from src.app.schemas.common import Notice

RecipeSourceValue = Literal["manual", "scraped", "imported"]


class RecipeStats(BaseModel):
    views: int = 0
    likes: int = 0
    saves: int = 0


class RecipeInvite(BaseModel):
    email: str
    status: str = "pending"
    invitedAt: Optional[str] = None


class RecipeResponse(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    ingredients: list[str] = Field(default_factory=list)
    instructions: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    imageUrl: Optional[str] = None
    sourceUrl: Optional[str] = None
    creatorId: Optional[str] = None
    source: RecipeSourceValue = "manual"
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None
    stats: RecipeStats = Field(default_factory=RecipeStats)
    invites: list[RecipeInvite] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, recipe: DomainRecipe) -> "RecipeResponse":
        return cls(
            id=recipe.id,
            title=recipe.title,
            description=recipe.description,
            ingredients=recipe.ingredients,
            instructions=recipe.instructions,
            tags=recipe.tags,
            imageUrl=recipe.image_url,
            sourceUrl=recipe.source_url,
            creatorId=recipe.creator_id,
            source=recipe.source.value,
            createdAt=recipe.created_at.isoformat() if recipe.created_at else None,
            updatedAt=recipe.updated_at.isoformat() if recipe.updated_at else None,
            stats=RecipeStats(
                views=recipe.stats.views,
                likes=recipe.stats.likes,
                saves=recipe.stats.saves,
            ),
            invites=[
                RecipeInvite(
                    email=invite.email,
                    status=invite.status,
                    invitedAt=invite.invited_at.isoformat() if invite.invited_at else None,
                )
                for invite in recipe.invites
            ],
        )


class RecipeCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=5000)
    ingredients: list[str] = Field(default_factory=list)
    instructions: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    imageUrl: Optional[str] = None
    sourceUrl: Optional[str] = None
    source: RecipeSourceValue = "manual"


class RecipeUpdate(BaseModel):
    """Partial update. Unknown fields pass through to the store as given."""
    model_config = ConfigDict(extra="allow")

    title: Optional[str] = None
    description: Optional[str] = None
    ingredients: Optional[list[str]] = None
    instructions: Optional[list[str]] = None
    tags: Optional[list[str]] = None
    imageUrl: Optional[str] = None
    sourceUrl: Optional[str] = None
    source: Optional[str] = None
    stats: Optional[dict[str, Any]] = None


class ImportRequest(BaseModel):
    url: str = Field(..., min_length=1)


class RecipeDraftResponse(BaseModel):
    source: Literal["scraped", "imported"]
    sourceUrl: str
    title: Optional[str] = None
    description: Optional[str] = None
    ingredients: list[str] = Field(default_factory=list)
    instructions: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    imageUrl: Optional[str] = None
    author: Optional[str] = None
    platform: Optional[str] = None


class CreationOption(BaseModel):
    key: str
    label: str
    available: bool = True


class TagOption(BaseModel):
    value: str
    checked: bool


class TagPickerResponse(BaseModel):
    options: list[TagOption] = Field(default_factory=list)
    badges: list[str] = Field(default_factory=list)
    placeholder: Optional[str] = None
    searchPlaceholder: str
    emptyMessage: Optional[str] = None


class BackofficeRecipeRow(BaseModel):
    id: str
    title: str
    creatorId: Optional[str] = None
    source: RecipeSourceValue = "manual"
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None
    stats: RecipeStats = Field(default_factory=RecipeStats)
    invites: list[RecipeInvite] = Field(default_factory=list)
    isExpanded: bool = False
    detail: Optional[RecipeResponse] = None


class BackofficeRecipeList(BaseModel):
    items: list[BackofficeRecipeRow] = Field(default_factory=list)
    expanded: list[str] = Field(default_factory=list)


class RecipeMutationResponse(BaseModel):
    changed: bool
    notice: Optional[Notice] = None
    invited: list[str] = Field(default_factory=list)
    items: list[BackofficeRecipeRow] = Field(default_factory=list)


class RecipeInviteRequest(BaseModel):
    emails: list[str] = Field(..., min_length=1)
