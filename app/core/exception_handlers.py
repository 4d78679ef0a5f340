"""
DRF exception handler producing the gateway response envelope.

Configured in settings:
    REST_FRAMEWORK["EXCEPTION_HANDLER"] = "core.exception_handlers.api_exception_handler"

Every error leaving an API view looks like:
    {"success": false, "message": "...", "error_code": "..."}
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rest_framework import exceptions as drf_exceptions
from rest_framework.response import Response
from rest_framework.views import exception_handler

from core.exceptions import BaseApplicationError

if TYPE_CHECKING:
    from typing import Any


def _flatten_detail(detail) -> str:
    """Pick the first human-readable string out of a DRF error detail."""
    if isinstance(detail, dict):
        for key, value in detail.items():
            text = _flatten_detail(value)
            if key in ("detail", "non_field_errors"):
                return text
            return f"{key}: {text}"
        return ""
    if isinstance(detail, list):
        return _flatten_detail(detail[0]) if detail else ""
    return str(detail)


def api_exception_handler(exc, context) -> Response | None:
    """
    DRF exception handler producing the gateway envelope.

    Application errors are rendered from to_dict(); DRF's own exceptions
    (validation, authentication, 404) keep their status code and have their
    detail folded into "message". Anything else propagates so Django turns
    it into a 500.
    """
    if isinstance(exc, BaseApplicationError):
        return Response(exc.to_dict(), status=exc.status_code)

    response = exception_handler(exc, context)
    if response is None:
        return None

    body: dict[str, Any] = {
        "success": False,
        "message": _flatten_detail(response.data),
    }
    if isinstance(exc, drf_exceptions.APIException):
        codes = exc.get_codes()
        body["error_code"] = (
            codes.upper() if isinstance(codes, str) else "VALIDATION_ERROR"
        )
    if isinstance(exc, drf_exceptions.ValidationError) and isinstance(
        response.data, dict
    ):
        body["errors"] = response.data

    response.data = body
    return response
