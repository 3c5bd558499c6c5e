from __future__ import annotations

import pytest

from src.app.domain.errors import AuthError, AuthenticationError, RegistrationError, SessionMissingError
from src.app.domain.models import AuthEvent, SessionState, SessionUser
from src.app.infra.db.supabase_repo import SupabaseRoleSettingsRepository, SupabaseUserRepository
from src.app.services.auth_service import AuthService
from src.app.services.role_settings import RoleSettingsService


@pytest.fixture
def auth(seeded) -> AuthService:
    return AuthService(
        admin_client=seeded,
        client_factory=lambda: seeded,
        users=SupabaseUserRepository(seeded),
        roles=RoleSettingsService(SupabaseRoleSettingsRepository(seeded)),
        tenant_id="default",
        admin_roles=["admin", "superadmin"],
    )


class TestLogin:
    def test_verified_login(self, seeded, auth: AuthService) -> None:
        result = auth.login("alice@example.com", "secret123")

        assert result.state == SessionState.SIGNED_IN_VERIFIED
        assert result.user.role == "user"
        assert result.user.name == "Alice"
        assert result.access_token in seeded.auth.tokens
        assert result.verification_emails_sent == 0
        assert result.notices == []

    def test_bad_password(self, auth: AuthService) -> None:
        with pytest.raises(AuthenticationError):
            auth.login("alice@example.com", "wrong")

    def test_unverified_login_sends_one_email(self, seeded, auth: AuthService) -> None:
        result = auth.login("bob@example.com", "secret123")

        assert result.state == SessionState.SIGNED_IN_UNVERIFIED
        assert result.verification_emails_sent == 1
        assert seeded.auth.resent == ["bob@example.com"]
        assert result.notices[0].title == "Verification email sent"

    def test_each_login_sends_exactly_one(self, seeded, auth: AuthService) -> None:
        auth.login("bob@example.com", "secret123")
        auth.login("bob@example.com", "secret123")
        assert seeded.auth.resent == ["bob@example.com", "bob@example.com"]

    def test_admin_sees_available_roles(self, auth: AuthService) -> None:
        result = auth.login("admin@example.com", "secret123")
        assert result.user.available_roles == ["user", "admin", "superadmin"]

    def test_non_admin_gets_no_roles(self, auth: AuthService) -> None:
        assert auth.login("alice@example.com", "secret123").user.available_roles == []

    def test_login_without_profile_has_no_role(self, seeded, auth: AuthService) -> None:
        seeded.auth.add_account("ghost@example.com", user_id="u-ghost")
        result = auth.login("ghost@example.com", "secret123")
        assert result.user.role is None


class TestRegister:
    def test_creates_profile_with_default_role(self, seeded, auth: AuthService) -> None:
        result = auth.register("new@example.com", "secret123", "Newbie")

        profile = next(row for row in seeded.tables["users"] if row["email"] == "new@example.com")
        assert profile["role"] == "user"
        assert profile["name"] == "Newbie"
        assert result.state == SessionState.SIGNED_IN_UNVERIFIED
        assert result.verification_emails_sent == 1
        assert result.notices[0].title == "Account created successfully"

    def test_duplicate_email(self, auth: AuthService) -> None:
        with pytest.raises(RegistrationError):
            auth.register("alice@example.com", "secret123", "Alice again")


class TestVerificationEmail:
    def test_resend_is_not_rate_limited(self, seeded, auth: AuthService) -> None:
        user = SessionUser(id="u-bob", email="bob@example.com", email_verified=False)
        for _ in range(3):
            assert auth.send_verification_email(user).title == "Verification email sent"
        assert len(seeded.auth.resent) == 3

    def test_verified_user_gets_nothing(self, seeded, auth: AuthService) -> None:
        user = SessionUser(id="u-alice", email="alice@example.com", email_verified=True)
        assert auth.send_verification_email(user) is None
        assert auth.send_verification_email(None) is None
        assert seeded.auth.resent == []

    def test_failure_returns_error_notice(self, seeded, auth: AuthService) -> None:
        seeded.auth.fail_resend = True
        user = SessionUser(id="u-bob", email="bob@example.com", email_verified=False)

        notice = auth.send_verification_email(user)
        assert notice.is_error
        assert notice.description == "Failed to send verification email. Please try again."


class TestSession:
    def test_resolve_unverified_adds_reminder(self, auth: AuthService) -> None:
        user, notices = auth.resolve_session("bob-token")

        assert user.id == "u-bob"
        assert notices[0].title == "Email verification required"

    def test_invalid_token(self, auth: AuthService) -> None:
        with pytest.raises(SessionMissingError):
            auth.resolve_session("nope")

    def test_logout_revokes_token(self, seeded, auth: AuthService) -> None:
        auth.logout("alice-token")

        assert "alice-token" not in seeded.auth.tokens
        with pytest.raises(AuthError):
            auth.logout("alice-token")


class TestListeners:
    def test_events_and_unsubscribe(self, auth: AuthService) -> None:
        events: list[AuthEvent] = []
        unsubscribe = auth.on_auth_state_change(lambda event, user: events.append(event))

        auth.login("alice@example.com", "secret123")
        auth.logout("alice-token")
        unsubscribe()
        auth.login("alice@example.com", "secret123")

        assert events == [AuthEvent.SIGNED_IN, AuthEvent.SIGNED_OUT]

    def test_failing_listener_does_not_break_login(self, auth: AuthService) -> None:
        def broken(event, user):
            raise RuntimeError("listener bug")

        auth.on_auth_state_change(broken)
        assert auth.login("alice@example.com", "secret123").user is not None
