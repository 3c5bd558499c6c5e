# src/app/services/auth_service.py
"""
Authentication session service.
Wraps sign-in, registration, sign-out and email verification on the
auth provider and mirrors the profile document's role onto the session user.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from supabase import Client

from src.app.domain.errors import AuthError, AuthenticationError, RegistrationError, SessionMissingError
from src.app.domain.models import AuthEvent, AuthResult, Notice, SessionUser
from src.app.infra.db.base import UserRepository
from src.app.services import notices
from src.app.services.role_settings import RoleSettingsService

logger = logging.getLogger(__name__)

DEFAULT_ROLE = "user"

AuthListener = Callable[[AuthEvent, Optional[SessionUser]], None]


def log_auth_event(event: AuthEvent, user: Optional[SessionUser]) -> None:
    if user is None:
        logger.info("Auth state changed: %s", event.value)
    else:
        logger.info("Auth state changed: %s user=%s role=%s state=%s", event.value, user.email, user.role, user.state.value)


def _metadata(auth_user: Any) -> dict[str, Any]:
    meta = getattr(auth_user, "user_metadata", None) or {}
    return meta if isinstance(meta, dict) else {}


def _is_verified(auth_user: Any) -> bool:
    return bool(getattr(auth_user, "email_confirmed_at", None))


class AuthService:
    """
    Service behind the login, registration and session endpoints.

    Sign-in and sign-up run on a fresh client from `client_factory` so
    that one user's session never lands on the shared service client.
    Token lookups and sign-out go through `admin_client`.
    """

    def __init__(
        self,
        admin_client: Client,
        client_factory: Callable[[], Client],
        users: UserRepository,
        roles: RoleSettingsService,
        tenant_id: str,
        admin_roles: list[str],
        listeners: Optional[list[AuthListener]] = None,
    ):
        self._admin = admin_client
        self._client_factory = client_factory
        self._users = users
        self._roles = roles
        self.tenant_id = tenant_id
        self.admin_roles = set(admin_roles)
        self._listeners: list[AuthListener] = listeners if listeners is not None else []

    def on_auth_state_change(self, listener: AuthListener) -> Callable[[], None]:
        """
        Subscribe to sign-in, sign-out and registration events.

        Returns:
            A callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event: AuthEvent, user: Optional[SessionUser]) -> None:
        for listener in list(self._listeners):
            try:
                listener(event, user)
            except Exception:
                logger.exception("Auth listener failed for event %s", event.value)

    def _build_session_user(self, auth_user: Any) -> SessionUser:
        user_id = str(auth_user.id)
        profile = self._users.get_user(user_id)
        meta = _metadata(auth_user)

        role = profile.role if profile else None
        available_roles = self._roles.get_roles(self.tenant_id) if role in self.admin_roles else []

        return SessionUser(
            id=user_id,
            email=getattr(auth_user, "email", None),
            email_verified=_is_verified(auth_user),
            name=(profile.name if profile and profile.name else meta.get("name")),
            role=role,
            # The profile avatar wins over the provider's photo
            avatar_url=(profile.avatar_url if profile and profile.avatar_url else meta.get("avatar_url")),
            available_roles=available_roles,
        )

    def login(self, email: str, password: str) -> AuthResult:
        """
        Sign in with email and password.

        An unverified account gets one verification email per call.

        Raises:
            AuthenticationError: On rejected credentials or provider failure
        """
        logger.info("Attempting login for: %s", email)
        client = self._client_factory()
        try:
            response = client.auth.sign_in_with_password({"email": email, "password": password})
        except Exception as exc:
            logger.error("Login error for %s: %s", email, exc)
            raise AuthenticationError(str(exc) or "Invalid login credentials") from exc

        auth_user = getattr(response, "user", None)
        if auth_user is None:
            raise AuthenticationError()

        session = getattr(response, "session", None)
        user = self._build_session_user(auth_user)
        result = AuthResult(
            user=user,
            access_token=getattr(session, "access_token", None),
            refresh_token=getattr(session, "refresh_token", None),
        )

        if not user.email_verified:
            notice = self.send_verification_email(user)
            if notice is not None:
                result.notices.append(notice)
                if not notice.is_error:
                    result.verification_emails_sent += 1

        self._emit(AuthEvent.SIGNED_IN, user)
        return result

    def register(self, email: str, password: str, name: str) -> AuthResult:
        """
        Create the auth account and its profile document with the default role.

        The provider dispatches the verification email as part of sign-up.

        Raises:
            RegistrationError: When the provider rejects the account
        """
        logger.info("Registering new user: %s", email)
        client = self._client_factory()
        try:
            response = client.auth.sign_up(
                {"email": email, "password": password, "options": {"data": {"name": name}}}
            )
        except Exception as exc:
            logger.error("Registration error for %s: %s", email, exc)
            raise RegistrationError(str(exc) or "Registration failed") from exc

        auth_user = getattr(response, "user", None)
        if auth_user is None:
            raise RegistrationError()

        profile = self._users.create_user(str(auth_user.id), email, name, DEFAULT_ROLE)
        user = SessionUser(
            id=profile.id,
            email=email,
            email_verified=_is_verified(auth_user),
            name=name,
            role=DEFAULT_ROLE,
        )
        session = getattr(response, "session", None)
        result = AuthResult(
            user=user,
            access_token=getattr(session, "access_token", None),
            refresh_token=getattr(session, "refresh_token", None),
            notices=[notices.account_created()],
            verification_emails_sent=0 if user.email_verified else 1,
        )

        self._emit(AuthEvent.USER_REGISTERED, user)
        return result

    def logout(self, access_token: str) -> None:
        try:
            self._admin.auth.admin.sign_out(access_token)
        except Exception as exc:
            logger.error("Logout error: %s", exc)
            raise AuthError(str(exc) or "Logout failed") from exc

        self._emit(AuthEvent.SIGNED_OUT, None)

    def send_verification_email(self, user: Optional[SessionUser]) -> Optional[Notice]:
        """
        Send a verification email to a signed-in, unverified user.

        Not rate limited: every call dispatches one email.

        Returns:
            A success or error notice, or None when nothing was sent
        """
        if user is None or user.email_verified or not user.email:
            return None

        client = self._client_factory()
        try:
            logger.info("Sending verification email to: %s", user.email)
            client.auth.resend({"type": "signup", "email": user.email})
        except Exception as exc:
            logger.error("Error sending verification email to %s: %s", user.email, exc)
            return notices.failure("send verification email")

        return notices.verification_sent()

    def resolve_session(self, access_token: str) -> tuple[SessionUser, list[Notice]]:
        """
        Validate a bearer token and load the session user.

        Raises:
            SessionMissingError: When the token is invalid or expired
        """
        try:
            response = self._admin.auth.get_user(access_token)
        except Exception as exc:
            raise SessionMissingError("Invalid/expired token") from exc

        auth_user = getattr(response, "user", None) if response else None
        if auth_user is None:
            raise SessionMissingError("Invalid token")

        user = self._build_session_user(auth_user)
        session_notices = [] if user.email_verified else [notices.verification_required()]
        return user, session_notices
