# src/app/services/notices.py
"""
Notification texts shown to the user after an action.
"""
from __future__ import annotations

from src.app.domain.models import Notice, NoticeVariant

VERIFY_REMINDER_DURATION_MS = 10000
VERIFY_SENT_DURATION_MS = 5000
UNDO_WINDOW_MS = 5000


def success(title: str, description: str, duration: int | None = None) -> Notice:
    return Notice(title=title, description=description, duration=duration)


def failure(action: str) -> Notice:
    """The single generic error shown for any remote failure."""
    return Notice(
        title="Error",
        description=f"Failed to {action}. Please try again.",
        variant=NoticeVariant.DESTRUCTIVE,
    )


def verification_required() -> Notice:
    return success(
        "Email verification required",
        "Please check your inbox and verify your email to access all features.",
        duration=VERIFY_REMINDER_DURATION_MS,
    )


def verification_sent() -> Notice:
    return success(
        "Verification email sent",
        "Please check your inbox and verify your email address.",
        duration=VERIFY_SENT_DURATION_MS,
    )


def account_created() -> Notice:
    return success(
        "Account created successfully",
        "Please check your inbox and verify your email address to access all features.",
        duration=VERIFY_REMINDER_DURATION_MS,
    )


def deleted(entity: str) -> Notice:
    return success(
        f"{entity.capitalize()} deleted",
        f"The {entity} has been successfully deleted.",
        duration=UNDO_WINDOW_MS,
    )


def updated(entity: str) -> Notice:
    return success(f"{entity.capitalize()} updated", f"The {entity} has been successfully updated.")


def role_updated() -> Notice:
    return success("Role updated", "The user's role has been successfully updated.")


def role_added(role: str) -> Notice:
    return success("Role added", f'The role "{role}" has been added to the available roles.')


def delete_undone(entity: str) -> Notice:
    return success("Delete undone", f"The {entity} has been restored.")
