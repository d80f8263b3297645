from flask import Blueprint, current_app, jsonify
from werkzeug.exceptions import HTTPException

from .errors import (
    AppError,
    DuplicateResourceError,
    FailedPreconditionError,
    InternalError,
    NotFoundError,
    PermissionDeniedError,
    ResourceExhaustedError,
    ValidationError,
)

error_handlers_bp = Blueprint("error_handlers", __name__)

HTTP_ERROR_KINDS = {
    400: "invalid-argument",
    401: "permission-denied",
    403: "permission-denied",
    404: "not-found",
    405: "failed-precondition",
    409: "failed-precondition",
    429: "resource-exhausted",
}


def _error_response(error):
    return jsonify({"error": error.to_dict()}), error.status_code


@error_handlers_bp.app_errorhandler(ValidationError)
def handle_validation_error(error):
    """Handles validation errors raised before any transaction starts."""
    current_app.logger.warning(f"Validation Error: {error.message}")
    return _error_response(error)


@error_handlers_bp.app_errorhandler(DuplicateResourceError)
def handle_duplicate_resource_error(error):
    """Handles duplicate resource errors."""
    current_app.logger.warning(f"Duplicate Resource Error: {error.message}")
    return _error_response(error)


@error_handlers_bp.app_errorhandler(NotFoundError)
def handle_not_found_error(error):
    """Handles not found errors."""
    current_app.logger.warning(f"Not Found Error: {error.message}")
    return _error_response(error)


@error_handlers_bp.app_errorhandler(FailedPreconditionError)
def handle_failed_precondition_error(error):
    """Handles phase guard violations."""
    current_app.logger.warning(f"Failed Precondition: {error.message}")
    return _error_response(error)


@error_handlers_bp.app_errorhandler(PermissionDeniedError)
def handle_permission_denied_error(error):
    """Handles host and creator checks."""
    current_app.logger.warning(f"Permission Denied: {error.message}")
    return _error_response(error)


@error_handlers_bp.app_errorhandler(ResourceExhaustedError)
def handle_resource_exhausted_error(error):
    """Handles full games."""
    current_app.logger.warning(f"Resource Exhausted: {error.message}")
    return _error_response(error)


@error_handlers_bp.app_errorhandler(AppError)
def handle_app_error(error):
    """Handles generic application errors."""
    current_app.logger.error(f"Application Error: {error.message}")
    return _error_response(error)


@error_handlers_bp.app_errorhandler(404)
def handle_404(e):
    """Handles generic 404 errors for routes that don't exist."""
    return _error_response(NotFoundError("Endpoint not found."))


@error_handlers_bp.app_errorhandler(Exception)
def handle_unexpected_error(e):
    """Wraps unexpected server errors into an internal error."""
    if isinstance(e, HTTPException):
        code = e.code or 500
        if code >= 500:
            kind = "internal"
        else:
            kind = HTTP_ERROR_KINDS.get(code, "invalid-argument")
        return jsonify({"error": {"code": kind, "message": e.description}}), code
    current_app.logger.error(f"Internal Server Error: {e}")
    return _error_response(InternalError(original=e))
