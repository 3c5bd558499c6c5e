from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field

from src.app.domain.models import SessionUser as DomainSessionUser
from src.app.schemas.common import Notice

SessionStateValue = Literal["signed_out", "signed_in_unverified", "signed_in_verified"]


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    name: str = Field(..., min_length=1, max_length=120)


class SessionUser(BaseModel):
    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    role: Optional[str] = None
    avatarUrl: Optional[str] = None
    emailVerified: bool = False
    availableRoles: list[str] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, user: DomainSessionUser) -> "SessionUser":
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            role=user.role,
            avatarUrl=user.avatar_url,
            emailVerified=user.email_verified,
            availableRoles=user.available_roles,
        )


class AuthResponse(BaseModel):
    state: SessionStateValue
    user: Optional[SessionUser] = None
    accessToken: Optional[str] = None
    refreshToken: Optional[str] = None
    verificationEmailsSent: int = 0
    notices: list[Notice] = Field(default_factory=list)


class SessionResponse(BaseModel):
    state: SessionStateValue
    user: SessionUser
    notices: list[Notice] = Field(default_factory=list)


class VerificationResponse(BaseModel):
    sent: bool
    notice: Optional[Notice] = None
