"""Validation helpers for JSON request payloads."""

from __future__ import annotations

from typing import Any

from flask import request

from songrank.errors import ValidationError


def get_json_payload() -> dict[str, Any]:
    """Return the request body as a dict, rejecting anything else."""
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object.")
    return payload


def require_str(payload: dict[str, Any], key: str) -> str:
    """Return a required non-empty string field."""
    value = payload.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{key} is required and must be a non-empty string.")
    return value


def optional_str(payload: dict[str, Any], key: str) -> str | None:
    """Return an optional string field, treating blanks as missing."""
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{key} must be a string.")
    return value.strip() or None


def require_int(payload: dict[str, Any], key: str) -> int:
    """Return a required integer field."""
    value = payload.get(key)
    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{key} is required and must be an integer.")
    return value


def optional_int(payload: dict[str, Any], key: str) -> int | None:
    """Return an optional integer field."""
    if payload.get(key) is None:
        return None
    return require_int(payload, key)


def optional_bool(payload: dict[str, Any], key: str) -> bool | None:
    """Return an optional boolean field."""
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, bool):
        raise ValidationError(f"{key} must be a boolean.")
    return value


def require_dict(payload: dict[str, Any], key: str) -> dict[str, Any]:
    """Return a required non-empty object field."""
    value = payload.get(key)
    if not isinstance(value, dict) or not value:
        raise ValidationError(f"{key} is required and must be a non-empty object.")
    return value
