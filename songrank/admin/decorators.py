"""Decorators for the admin blueprint."""

import hmac
from functools import wraps

from flask import current_app, request

from songrank.errors import PermissionDeniedError


def admin_required(f):
    """Reject requests that do not carry the configured admin token.

    Usage:
    @admin_required
    def admin_view():
        ...
    """

    @wraps(f)
    def decorated_function(*args, **kwargs):
        expected = current_app.config.get("ADMIN_TOKEN")
        provided = request.headers.get("X-Admin-Token", "")
        if not expected or not hmac.compare_digest(provided, expected):
            current_app.logger.warning(
                f"Rejected admin request to {request.path} from {request.remote_addr}"
            )
            raise PermissionDeniedError("Admin access required.")
        return f(*args, **kwargs)

    return decorated_function
