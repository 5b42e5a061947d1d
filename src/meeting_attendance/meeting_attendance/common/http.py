"""Mapping of domain errors to JSON error responses for the Flask controllers."""

from __future__ import annotations

import logging
from functools import wraps

from flask import jsonify, session

from ..core.enums import Role
from ..core.exceptions import (
    AlreadyCheckedInError,
    AuthorizationError,
    DomainError,
    InvalidStateError,
    NotFoundError,
    StorageUnavailableError,
    ValidationError,
)

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR = (
    (NotFoundError, 404),
    (AuthorizationError, 403),
    (AlreadyCheckedInError, 400),
    (InvalidStateError, 400),
    (ValidationError, 400),
    (StorageUnavailableError, 503),
)


def status_for(error: DomainError) -> int:
    for error_cls, status in _STATUS_BY_ERROR:
        if isinstance(error, error_cls):
            return status
    return 400


def error_response(error: DomainError):
    status = status_for(error)
    if status >= 500:
        logger.error("Storage failure: %s", error)
    return jsonify({"message": str(error)}), status


def current_user_id() -> int:
    return int(session["user_id"])


def current_role() -> Role:
    return Role(session.get("role", Role.EMPLOYEE.value))


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"message": "Not authenticated"}), 401
        return view(*args, **kwargs)

    return wrapper


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"message": "Not authenticated"}), 401
        if session.get("role") != Role.ADMIN.value:
            return jsonify({"message": "Not authorized"}), 403
        return view(*args, **kwargs)

    return wrapper
