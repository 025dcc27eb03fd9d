# apps/utils/tests.py
import json
import logging

from django.db import IntegrityError
from django.test import SimpleTestCase, TestCase
from rest_framework.exceptions import NotFound, ValidationError

from .exceptions import (
    custom_exception_handler,
    BusinessLogicException,
    ConcurrentModification,
    InvalidTransition,
)
from .logging import JSONFormatter
from .utils import generate_numeric_code


class ExceptionHandlerTests(SimpleTestCase):

    def test_business_error_payload(self):
        exc = InvalidTransition("PENDING", "SENT", {"PREPARING"})
        response = custom_exception_handler(exc, {})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data, {
            "error": "Invalid transition: PENDING -> SENT",
            "code": "invalid_transition",
            "current_state": "PENDING",
            "requested_state": "SENT",
            "allowed_next": ["PREPARING"],
        })

    def test_conflict_status(self):
        response = custom_exception_handler(ConcurrentModification("stale"), {})
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data["code"], "concurrent_modification")

    def test_custom_code(self):
        response = custom_exception_handler(BusinessLogicException("Nope", code="cart_empty"), {})
        self.assertEqual(response.data, {"error": "Nope", "code": "cart_empty"})

    def test_integrity_error_is_conflict(self):
        response = custom_exception_handler(IntegrityError("duplicate key"), {})
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data["code"], "conflict")

    def test_drf_detail_rewritten(self):
        response = custom_exception_handler(NotFound("Order not found."), {})
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data, {"error": "Order not found.", "code": "not_found"})

    def test_validation_errors_kept_per_field(self):
        response = custom_exception_handler(ValidationError({"state": ["Invalid"]}), {})
        self.assertEqual(response.status_code, 400)
        self.assertIn("state", response.data)

    def test_unhandled_is_server_error(self):
        response = custom_exception_handler(RuntimeError("boom"), {})
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.data["code"], "server_error")


class JSONFormatterTests(SimpleTestCase):

    def make_record(self, msg, **extra):
        record = logging.LogRecord("apps.test", logging.INFO, __file__, 1, msg, None, None)
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_context_fields_included(self):
        out = json.loads(JSONFormatter().format(self.make_record("moved", order_id="abc", user_id=7)))
        self.assertEqual(out["msg"], "moved")
        self.assertEqual(out["order_id"], "abc")
        self.assertEqual(out["user_id"], "7")
        self.assertEqual(out["lvl"], "INFO")

    def test_sensitive_keys_redacted(self):
        out = json.loads(JSONFormatter().format(self.make_record({"email": "a@b.c", "password": "hunter2"})))
        self.assertIn("***REDACTED***", out["msg"])
        self.assertNotIn("hunter2", out["msg"])


class CodeTests(SimpleTestCase):

    def test_numeric_code_is_zero_padded(self):
        for _ in range(50):
            code = generate_numeric_code(6)
            self.assertEqual(len(code), 6)
            self.assertTrue(code.isdigit())


class HealthCheckTests(TestCase):

    def test_health_ok(self):
        response = self.client.get("/api/v1/utils/health/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["components"]["db"], "ok")
