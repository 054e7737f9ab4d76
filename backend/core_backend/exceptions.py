"""
Domain error taxonomy shared by every app, and the DRF exception handler that
turns it into stable machine-readable responses.

Every business rejection raised by the order/reservation core subclasses
``DomainError`` and carries:
    code     stable snake_case identifier clients can switch on
    message  human-readable explanation
    details  JSON-serialisable context (current state, conflicting ids, ...)
"""
import logging

from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class DomainError(Exception):
    """Base exception for every error raised by the domain services."""

    code = "domain_error"
    default_message = "The operation could not be completed."

    def __init__(self, message=None, details=None):
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)

    def as_dict(self):
        return {"code": self.code, "message": self.message, "details": self.details}


class DomainValidationError(DomainError):
    """
    Expected outcome of a business rule (illegal transition, limit reached,
    slot taken...). Never logged as a failure.
    """

    code = "validation_error"
    http_status = status.HTTP_409_CONFLICT


class DomainNotFoundError(DomainError):
    """Caller supplied an identifier that does not resolve."""

    code = "not_found"
    http_status = status.HTTP_404_NOT_FOUND


class InfrastructureError(DomainError):
    """The backing store or another dependency is unavailable."""

    code = "infrastructure_error"
    default_message = "A backing service is unavailable."
    http_status = status.HTTP_503_SERVICE_UNAVAILABLE


class OperationTimeout(InfrastructureError):
    """The caller-supplied deadline elapsed; the transaction was rolled back."""

    code = "operation_timeout"
    default_message = "The operation exceeded its deadline and was rolled back."
    http_status = status.HTTP_504_GATEWAY_TIMEOUT

    def __init__(self, deadline, elapsed, message=None):
        self.deadline = deadline
        self.elapsed = elapsed
        super().__init__(
            message,
            details={"deadline_seconds": deadline, "elapsed_seconds": round(elapsed, 3)},
        )


def domain_exception_handler(exc, context):
    """
    DRF exception handler that renders ``DomainError`` subclasses as
    ``{"code", "message", "details"}`` and defers everything else to DRF.
    """
    if isinstance(exc, DomainError):
        request = context.get("request")
        path = request.path if request is not None else None

        if isinstance(exc, InfrastructureError):
            logger.error(
                f"Infrastructure error on {path}: {exc.code}",
                extra={"code": exc.code, "path": path},
            )
        else:
            # Business outcome, not a server fault
            logger.info(f"Rejected request on {path}: {exc.code}")

        return Response(exc.as_dict(), status=exc.http_status)

    if isinstance(exc, Http404):
        exc = exceptions.NotFound()

    response = exception_handler(exc, context)

    if response is not None and isinstance(response.data, dict) and "code" not in response.data:
        default_code = getattr(exc, "default_code", "error")
        response.data = {
            "code": default_code,
            "message": response.data.get("detail", "Invalid request."),
            "details": {k: v for k, v in response.data.items() if k != "detail"},
        }

    return response
