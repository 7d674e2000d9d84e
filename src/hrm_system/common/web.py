from __future__ import annotations

from functools import wraps
from typing import Any, Optional

from flask import abort, g, jsonify, request

from ..core.exceptions import ForbiddenError, ValidationError
from ..employees.model import Employee
from ..employees.permissions import has_permission
from .serializers import to_jsonable

ACTOR_HEADER = "X-User-Id"


def success(data: Any = None, *, status: int = 200, message: Optional[str] = None):
    body = {"success": True, "data": to_jsonable(data)}
    if message:
        body["message"] = message
    return jsonify(body), status


def json_body() -> dict:
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return payload


def current_employee() -> Employee:
    employee = getattr(g, "employee", None)
    if employee is None:
        abort(401, description="Authentication required")
    return employee


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        current_employee()
        return view(*args, **kwargs)

    return wrapper


def permission_required(permission: str):
    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            current_employee()
            if not has_permission(getattr(g, "user", None), permission):
                raise ForbiddenError("Insufficient permissions")
            return view(*args, **kwargs)

        return wrapper

    return decorator
