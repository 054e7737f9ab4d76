"""
Tests for the DRF exception handler: every error body is
{"code", "message", "details"}.
"""
from django.http import Http404
from rest_framework import exceptions

from core_backend.exceptions import (
    DomainNotFoundError,
    DomainValidationError,
    InfrastructureError,
    domain_exception_handler,
)
from orders.exceptions import IllegalTransition


def handle(exc):
    return domain_exception_handler(exc, {"request": None})


class TestDomainErrors:

    def test_business_rejection(self):
        response = handle(DomainValidationError("nope", details={"id": "1"}))

        assert response.status_code == 409
        assert response.data == {"code": "validation_error", "message": "nope", "details": {"id": "1"}}

    def test_subclass_code_and_status(self):
        response = handle(IllegalTransition("o-1", "confirmado", "listo"))

        assert response.status_code == 409
        assert response.data["code"] == "illegal_transition"
        assert response.data["details"]["current_state"] == "confirmado"

    def test_not_found(self):
        response = handle(DomainNotFoundError())

        assert response.status_code == 404
        assert response.data["message"] == DomainNotFoundError.default_message

    def test_infrastructure_error(self):
        response = handle(InfrastructureError())

        assert response.status_code == 503
        assert response.data["code"] == "infrastructure_error"


class TestFrameworkErrors:

    def test_http404(self):
        response = handle(Http404())

        assert response.status_code == 404
        assert response.data["code"] == "not_found"

    def test_validation_error_details(self):
        response = handle(exceptions.ValidationError({"items": ["This field is required."]}))

        assert response.status_code == 400
        assert response.data["code"] == "invalid"
        assert response.data["details"] == {"items": ["This field is required."]}

    def test_method_not_allowed(self):
        response = handle(exceptions.MethodNotAllowed("PATCH"))

        assert response.status_code == 405
        assert response.data["code"] == "method_not_allowed"

    def test_unhandled_exception(self):
        assert handle(RuntimeError("bug")) is None
