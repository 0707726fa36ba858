"""
Error taxonomy and the DRF exception handler for the project.

Service code raises ``rest_framework.exceptions`` subclasses; the handler
below renders every one of them as ``{"success": false, "message": ...,
"code": ...}`` so clients see a single error shape.  Database failures that
escape a view are reported as a retryable ``PersistenceError``.
"""
import logging

from django.db import DatabaseError
from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class ConflictError(APIException):
    """The request conflicts with the current state of the resource."""

    status_code = status.HTTP_409_CONFLICT
    default_detail = "The request conflicts with the current state of the resource."
    default_code = "conflict"


class UpstreamError(APIException):
    """An external service (the payment gateway) failed or was unreachable."""

    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = "Payment provider request failed. Please try again later."
    default_code = "upstream_error"


class PersistenceError(APIException):
    """The order store could not be read or written; safe to retry."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "The service is temporarily unavailable. Please try again."
    default_code = "persistence_error"


def _flatten(detail):
    if isinstance(detail, dict):
        for key, value in detail.items():
            text = _flatten(value)
            return text if key == "non_field_errors" else f"{key}: {text}"
        return ""
    if isinstance(detail, (list, tuple)):
        return _flatten(detail[0]) if detail else ""
    return str(detail)


def api_exception_handler(exc, context):
    """Render API errors with the ``success``/``message`` envelope."""
    if isinstance(exc, DatabaseError):
        logger.exception("Database error while handling %s", context.get("view"))
        exc = PersistenceError()

    response = exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, UpstreamError):
        # Gateway details stay in the logs
        logger.error("Upstream failure in %s: %s", context.get("view"), exc.detail)
        message = str(UpstreamError.default_detail)
        code = exc.default_code
    else:
        message = _flatten(response.data.get("detail", response.data)) if isinstance(response.data, dict) else _flatten(response.data)
        codes = exc.get_codes() if isinstance(exc, APIException) else None
        code = codes if isinstance(codes, str) else getattr(exc, "default_code", "error")

    payload = {"success": False, "message": message, "code": code}
    if isinstance(exc, ValidationError) and isinstance(exc.detail, dict):
        payload["errors"] = exc.detail
    response.data = payload
    return response
