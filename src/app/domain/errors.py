from __future__ import annotations


class RecipeAppError(Exception):
    pass


class BackofficeError(RecipeAppError):
    """A document-store call made on behalf of the backoffice failed."""

    def __init__(self, action: str, reason: str):
        super().__init__(f"Failed to {action}: {reason}")
        self.action = action
        self.reason = reason


class RemoteReadError(BackofficeError):
    pass


class RemoteWriteError(BackofficeError):
    pass


class RecipeNotFoundError(RecipeAppError):
    def __init__(self, recipe_id: str):
        super().__init__(f"Recipe not found: {recipe_id}")
        self.recipe_id = recipe_id


class AuthError(RecipeAppError):
    pass


class AuthenticationError(AuthError):
    def __init__(self, message: str = "Invalid login credentials"):
        super().__init__(message)


class RegistrationError(AuthError):
    def __init__(self, message: str = "Registration failed"):
        super().__init__(message)


class SessionMissingError(AuthError):
    def __init__(self, message: str = "No active session"):
        super().__init__(message)


class RecipePermissionError(RecipeAppError):
    def __init__(self, recipe_id: str, user_id: str):
        super().__init__(f"User {user_id} cannot modify recipe {recipe_id}")
        self.recipe_id = recipe_id
        self.user_id = user_id
