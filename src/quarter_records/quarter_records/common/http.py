from __future__ import annotations

from datetime import date
from enum import Enum
from functools import wraps
from typing import Any, Optional

from flask import Flask, jsonify, request, session

from ..core.exceptions import (
    ConcurrentModificationError,
    DomainError,
    FutureDateError,
    InvalidTransitionError,
    NotFoundError,
    PackageLockedError,
    UnauthorizedError,
    ValidationError,
)
from .app_logger import get_logger
from .datetime_utils import format_date

logger = get_logger("http")

ERROR_STATUS = (
    (ValidationError, 400),
    (FutureDateError, 400),
    (UnauthorizedError, 403),
    (NotFoundError, 404),
    (InvalidTransitionError, 409),
    (ConcurrentModificationError, 409),
    (PackageLockedError, 423),
)


def status_for(error: DomainError) -> int:
    for cls, code in ERROR_STATUS:
        if isinstance(error, cls):
            return code
    return 400


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(error: DomainError):
        code = status_for(error)
        logger.info("%s %s -> %d %s", request.method, request.path, code, type(error).__name__)
        return jsonify(error.to_dict()), code


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"error": "AuthenticationRequired", "message": "Please sign in to continue"}), 401
        return view(*args, **kwargs)

    return wrapper


def current_actor_id() -> int:
    return int(session["user_id"])


def payload() -> dict:
    return request.get_json(silent=True) or {}


def optional_int(value: Any, field_name: str) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer")


def required_int(value: Any, field_name: str) -> int:
    parsed = optional_int(value, field_name)
    if parsed is None:
        raise ValidationError(f"{field_name} is required")
    return parsed


def to_json(value: Any) -> Any:
    """Plain JSON view of dataclasses, enums and dates."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, date):
        return format_date(value)
    if isinstance(value, (list, tuple)):
        return [to_json(v) for v in value]
    if isinstance(value, (set, frozenset)):
        return sorted(to_json(v) for v in value)
    if isinstance(value, dict):
        return {k: to_json(v) for k, v in value.items()}
    if hasattr(value, "__dataclass_fields__"):
        return {k: to_json(getattr(value, k)) for k in value.__dataclass_fields__}
    return value
