"""Custom exception classes for the application."""


class AppError(Exception):
    """Base application error class."""

    kind = "internal"

    def __init__(self, message, status_code=400, details=None):
        """Initialize the error."""
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.details = details

    def to_dict(self):
        """Serialize the error for a JSON response body."""
        payload = {"code": self.kind, "message": self.message}
        if self.details is not None:
            payload["details"] = self.details
        return payload


class ValidationError(AppError):
    """Raised when user input fails validation."""

    kind = "invalid-argument"

    def __init__(self, message="Validation failed.", details=None):
        """Initialize the error."""
        super().__init__(message, 400, details)


class NotFoundError(AppError):
    """Raised when a resource is not found."""

    kind = "not-found"

    def __init__(self, message="Resource not found."):
        """Initialize the error."""
        super().__init__(message, 404)


class FailedPreconditionError(AppError):
    """Raised when an operation is attempted in the wrong game or round phase."""

    kind = "failed-precondition"

    def __init__(self, message="Operation not allowed in the current state."):
        """Initialize the error."""
        super().__init__(message, 409)


class DuplicateResourceError(AppError):
    """Raised when trying to create a resource that already exists."""

    kind = "already-exists"

    def __init__(self, message="Resource already exists."):
        """Initialize the error."""
        super().__init__(message, 409)


class ResourceExhaustedError(AppError):
    """Raised when a game has no room left."""

    kind = "resource-exhausted"

    def __init__(self, message="Resource exhausted."):
        """Initialize the error."""
        super().__init__(message, 429)


class PermissionDeniedError(AppError):
    """Raised when a player attempts an action reserved for the host or creator."""

    kind = "permission-denied"

    def __init__(self, message="Permission denied."):
        """Initialize the error."""
        super().__init__(message, 403)


class InternalError(AppError):
    """Wraps an unexpected failure, keeping the original message for diagnostics."""

    kind = "internal"

    def __init__(self, message="An internal error occurred.", original=None):
        """Initialize the error."""
        details = {"originalError": str(original)} if original is not None else None
        super().__init__(message, 500, details)
