from __future__ import annotations

from datetime import datetime, timezone

from src.app.domain.models import (
    AuthResult,
    MutationOutcome,
    Notice,
    NoticeVariant,
    Recipe,
    RecipeInvite,
    RecipeSourceType,
    SessionState,
    SessionUser,
    User,
)


class TestRecipeSourceType:
    def test_values(self) -> None:
        assert RecipeSourceType.MANUAL.value == "manual"
        assert RecipeSourceType.SCRAPED.value == "scraped"
        assert RecipeSourceType.IMPORTED.value == "imported"

    def test_is_string_enum(self) -> None:
        assert isinstance(RecipeSourceType.MANUAL, str)
        assert RecipeSourceType("scraped") is RecipeSourceType.SCRAPED


class TestNotice:
    def test_default_variant(self) -> None:
        notice = Notice(title="Saved", description="All good")

        assert notice.variant == NoticeVariant.DEFAULT
        assert notice.duration is None
        assert notice.is_error is False

    def test_destructive_is_error(self) -> None:
        notice = Notice(title="Error", description="Nope", variant=NoticeVariant.DESTRUCTIVE)
        assert notice.is_error is True


class TestRecipe:
    def test_defaults(self) -> None:
        recipe = Recipe(id="r-1", title="Soup")

        assert recipe.source == RecipeSourceType.MANUAL
        assert recipe.tags == []
        assert recipe.stats.views == 0
        assert recipe.invites == []

    def test_has_invite_ignores_case_and_spaces(self) -> None:
        recipe = Recipe(id="r-1", title="Soup", invites=[RecipeInvite(email="Friend@Example.com")])

        assert recipe.has_invite(" friend@example.com ")
        assert not recipe.has_invite("other@example.com")


class TestUser:
    def test_recipe_count_follows_recipes(self) -> None:
        user = User(id="u-1", email="a@example.com")
        assert user.recipe_count == 0

        user.recipes = [Recipe(id="r-1", title="A"), Recipe(id="r-2", title="B")]
        assert user.recipe_count == 2

    def test_default_role(self) -> None:
        assert User(id="u-1", email="a@example.com").role == "user"


class TestSessionState:
    def test_verified_user(self) -> None:
        user = SessionUser(id="u-1", email="a@example.com", email_verified=True)
        assert user.state == SessionState.SIGNED_IN_VERIFIED

    def test_unverified_user(self) -> None:
        user = SessionUser(id="u-1", email="a@example.com", email_verified=False)
        assert user.state == SessionState.SIGNED_IN_UNVERIFIED

    def test_auth_result_without_user_is_signed_out(self) -> None:
        assert AuthResult(user=None).state == SessionState.SIGNED_OUT


class TestMutationOutcome:
    def test_payload_defaults_to_empty_dict(self) -> None:
        first = MutationOutcome(changed=False)
        second = MutationOutcome(changed=True)

        first.payload["x"] = 1
        assert second.payload == {}


def test_invite_keeps_timestamp() -> None:
    now = datetime(2024, 5, 1, tzinfo=timezone.utc)
    invite = RecipeInvite(email="a@example.com", invited_at=now)

    assert invite.status == "pending"
    assert invite.invited_at == now
