from __future__ import annotations


class RecipeServiceError(Exception):
    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
        self.message = message


class AuthError(RecipeServiceError):
    status_code = 401

    def __init__(self, message: str = "Unauthorized - Missing or invalid token"):
        super().__init__(message)


class InvalidInputError(RecipeServiceError):
    status_code = 400

    def __init__(self, message: str = "Invalid request body", field: str | None = None):
        super().__init__(message)
        self.field = field


class NotFoundError(RecipeServiceError):
    status_code = 404

    def __init__(self, message: str = "Recipe not found", recipe_id: int | None = None):
        super().__init__(message)
        self.recipe_id = recipe_id


class PersistenceError(RecipeServiceError):
    status_code = 500

    def __init__(self, operation: str, reason: str):
        super().__init__(f"Store error during {operation}: {reason}")
        self.operation = operation
        self.reason = reason


class MethodNotAllowedError(RecipeServiceError):
    status_code = 405

    def __init__(self, message: str = "Method Not Allowed"):
        super().__init__(message)
