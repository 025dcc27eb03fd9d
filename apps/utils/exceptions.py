from django.db import IntegrityError
from rest_framework.response import Response
from rest_framework import status
import logging

logger = logging.getLogger(__name__)


class BusinessLogicException(Exception):
    """
    Raised when a domain rule is violated (e.g. 'Order is not editable').
    Subclasses pick the HTTP status and may attach extra payload for the client.
    """
    status_code = status.HTTP_400_BAD_REQUEST
    default_code = "business_error"

    def __init__(self, message, code=None, extra=None):
        self.message = message
        self.code = code or self.default_code
        self.extra = extra or {}
        super().__init__(message)


class InvalidTransition(BusinessLogicException):
    default_code = "invalid_transition"

    def __init__(self, current, requested, allowed):
        self.current = current
        self.requested = requested
        self.allowed = sorted(str(s) for s in allowed)
        super().__init__(
            f"Invalid transition: {current} -> {requested}",
            extra={
                "current_state": str(current),
                "requested_state": str(requested),
                "allowed_next": self.allowed,
            },
        )


class OrderNotEditable(BusinessLogicException):
    default_code = "order_not_editable"


class NotSendable(BusinessLogicException):
    default_code = "not_sendable"


class ConcurrentModification(BusinessLogicException):
    status_code = status.HTTP_409_CONFLICT
    default_code = "concurrent_modification"


class SettlementConflict(BusinessLogicException):
    status_code = status.HTTP_409_CONFLICT
    default_code = "settlement_conflict"


class ImmutableRecordError(BusinessLogicException):
    status_code = status.HTTP_409_CONFLICT
    default_code = "immutable_record"


def custom_exception_handler(exc, context):
    # Local import: model modules import this file while the app registry loads
    from rest_framework.views import exception_handler

    # Call REST framework's default exception handler first
    response = exception_handler(exc, context)

    if isinstance(exc, BusinessLogicException):
        return Response(
            {"error": exc.message, "code": exc.code, **exc.extra},
            status=exc.status_code
        )

    if isinstance(exc, IntegrityError):
        logger.warning(f"Integrity violation: {exc}")
        return Response(
            {"error": "Conflicting update, please retry.", "code": "conflict"},
            status=status.HTTP_409_CONFLICT
        )

    # If response is None, it's an unhandled server error (500)
    if response is None:
        logger.error(f"Unhandled Exception: {exc}", exc_info=True)
        return Response(
            {"error": "Internal Server Error", "code": "server_error"},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    if isinstance(response.data, dict) and "detail" in response.data:
        response.data = {
            "error": str(response.data["detail"]),
            "code": getattr(exc, "default_code", "error"),
        }
    return response
