from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from starlette.concurrency import run_in_threadpool

from src.app.deps import CurrentSession, get_auth_service, get_current_session
from src.app.domain.errors import AuthError, AuthenticationError, BackofficeError, RegistrationError
from src.app.domain.models import AuthResult
from src.app.schemas.auth import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    SessionResponse,
    SessionUser,
    VerificationResponse,
)
from src.app.schemas.common import Notice
from src.app.services import notices
from src.app.services.auth_service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _auth_response(result: AuthResult) -> AuthResponse:
    return AuthResponse(
        state=result.state.value,
        user=SessionUser.from_domain(result.user) if result.user else None,
        accessToken=result.access_token,
        refreshToken=result.refresh_token,
        verificationEmailsSent=result.verification_emails_sent,
        notices=[Notice.from_domain(notice) for notice in result.notices],
    )


@router.post("/login", response_model=AuthResponse)
async def login(payload: LoginRequest, auth: AuthService = Depends(get_auth_service)) -> AuthResponse:
    try:
        result = await run_in_threadpool(auth.login, payload.email, payload.password)
    except AuthenticationError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc))
    except BackofficeError:
        logger.exception("Profile lookup failed during login for %s", payload.email)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=Notice.from_domain(notices.failure("sign in")).model_dump(),
        )
    return _auth_response(result)


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterRequest, auth: AuthService = Depends(get_auth_service)) -> AuthResponse:
    try:
        result = await run_in_threadpool(auth.register, payload.email, payload.password, payload.name)
    except RegistrationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except BackofficeError:
        logger.exception("Profile creation failed during registration for %s", payload.email)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=Notice.from_domain(notices.failure("create account")).model_dump(),
        )
    return _auth_response(result)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    session: CurrentSession = Depends(get_current_session),
    auth: AuthService = Depends(get_auth_service),
) -> Response:
    try:
        await run_in_threadpool(auth.logout, session.access_token)
    except AuthError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/verification-email", response_model=VerificationResponse)
async def send_verification_email(
    session: CurrentSession = Depends(get_current_session),
    auth: AuthService = Depends(get_auth_service),
) -> VerificationResponse:
    notice = await run_in_threadpool(auth.send_verification_email, session.user)
    return VerificationResponse(
        sent=notice is not None and not notice.is_error,
        notice=Notice.from_domain(notice),
    )


@router.get("/me", response_model=SessionResponse)
async def me(session: CurrentSession = Depends(get_current_session)) -> SessionResponse:
    return SessionResponse(
        state=session.user.state.value,
        user=SessionUser.from_domain(session.user),
        notices=[Notice.from_domain(notice) for notice in session.notices],
    )
