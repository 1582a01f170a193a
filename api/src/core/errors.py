"""Base exceptions shared across domain services."""


class AppError(Exception):
    """Base domain error carrying a user-facing message and a machine code."""

    def __init__(self, message: str, code: str = "error"):
        self.message = message
        self.code = code
        super().__init__(message)


class DatabaseError(AppError):
    """Raised when a database operation fails.

    Wraps the underlying driver exception with a user-facing message while
    preserving the original error for logging.
    """

    def __init__(self, message: str, original_error: Exception | None = None):
        super().__init__(message, "database_error")
        self.original_error = original_error
