"""test_lambda_function.py — Mock-based integration tests for document_access.

Covers the sign and upload flows end to end: transport validation, the
access policy, signed-URL issuing and upload ingestion, with storage
simulated as an in-memory map. All locally runnable without AWS credentials.

Run: python3 -m pytest test_lambda_function.py -v
"""

from __future__ import annotations

import base64
import importlib.util
import json
import os
import sys
import time
import unittest
from unittest.mock import patch

_HERE = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, os.path.join(_HERE, "..", "shared_layer", "python"))

from docvault_shared.config import Settings
from docvault_shared.storage import StorageError

_spec = importlib.util.spec_from_file_location(
    "document_access",
    os.path.join(_HERE, "lambda_function.py"),
)
document_access = importlib.util.module_from_spec(_spec)
_spec.loader.exec_module(document_access)

SECRET = "correct-horse"
ORIGIN = "https://fanuel045.vercel.app"
PDF_BASE64 = base64.b64encode(b"%PDF-1.4 portfolio").decode()


class InMemoryStorage:
    def __init__(self):
        self.objects = {}
        self.sign_calls = []

    def create_signed_url(self, path, ttl_seconds, download=False):
        self.sign_calls.append((path, ttl_seconds, download))
        return f"https://storage.test/{path}?sig={len(self.sign_calls)}"

    def upload(self, path, data, content_type, upsert=True):
        self.objects[path] = (data, content_type)


class BrokenStorage:
    def __init__(self):
        self.calls = 0

    def create_signed_url(self, path, ttl_seconds, download=False):
        self.calls += 1
        raise StorageError("InternalError: shard 7 unavailable")

    def upload(self, path, data, content_type, upsert=True):
        self.calls += 1
        raise StorageError("InternalError: shard 7 unavailable")


def _make_event(
    body=None,
    method="POST",
    path="/api/sign-url",
    origin=ORIGIN,
    content_type="application/json",
):
    """Build a mock API Gateway v2 event."""
    headers = {"host": "example.com"}
    if origin:
        headers["origin"] = origin
    if content_type:
        headers["content-type"] = content_type
    event = {
        "requestContext": {"http": {"method": method, "path": path}},
        "headers": headers,
        "rawPath": path,
    }
    if body is not None:
        event["body"] = json.dumps(body) if isinstance(body, dict) else body
    return event


class HandlerTestCase(unittest.TestCase):
    def setUp(self):
        self.storage = InMemoryStorage()
        self.settings = Settings(admin_password=SECRET)
        patchers = [
            patch.object(document_access, "_get_settings", return_value=self.settings),
            patch.object(document_access, "_get_storage", return_value=self.storage),
        ]
        for patcher in patchers:
            patcher.start()
            self.addCleanup(patcher.stop)

    def invoke(self, event):
        resp = document_access.lambda_handler(event, None)
        body = json.loads(resp["body"]) if resp["body"] else None
        return resp, body


class OptionsTests(HandlerTestCase):
    def test_preflight_returns_204(self):
        resp, body = self.invoke(_make_event(method="OPTIONS", content_type=None))
        self.assertEqual(resp["statusCode"], 204)
        self.assertIsNone(body)
        self.assertEqual(resp["headers"]["Access-Control-Allow-Origin"], ORIGIN)
        self.assertEqual(resp["headers"]["Access-Control-Allow-Methods"], "POST, OPTIONS")
        self.assertEqual(resp["headers"]["Vary"], "Origin")

    def test_preflight_from_unknown_origin_not_echoed(self):
        resp, _ = self.invoke(
            _make_event(method="OPTIONS", origin="https://evil.example", content_type=None)
        )
        self.assertEqual(resp["statusCode"], 204)
        self.assertNotIn("Access-Control-Allow-Origin", resp["headers"])


class TransportTests(HandlerTestCase):
    def test_get_returns_405(self):
        resp, body = self.invoke(_make_event(method="GET"))
        self.assertEqual(resp["statusCode"], 405)
        self.assertEqual(body["error_envelope"]["code"], "METHOD_NOT_ALLOWED")

    def test_unknown_origin_returns_403(self):
        resp, _ = self.invoke(_make_event({"docType": "cv"}, origin="https://evil.example"))
        self.assertEqual(resp["statusCode"], 403)
        self.assertNotIn("Access-Control-Allow-Origin", resp["headers"])

    def test_non_json_returns_400(self):
        resp, body = self.invoke(_make_event("docType=cv", content_type="text/plain"))
        self.assertEqual(resp["statusCode"], 400)
        self.assertIn("application/json", body["error"])

    def test_invalid_json_returns_400(self):
        resp, body = self.invoke(_make_event("{bad json"))
        self.assertEqual(resp["statusCode"], 400)
        self.assertEqual(body["error"], "Invalid JSON body")

    def test_missing_doc_type_returns_400(self):
        resp, body = self.invoke(_make_event({"action": "sign"}))
        self.assertEqual(resp["statusCode"], 400)
        self.assertIn("docType", body["error"])
        self.assertEqual(self.storage.sign_calls, [])


class SignTests(HandlerTestCase):
    def test_cv_without_password(self):
        before = int(time.time() * 1000)
        resp, body = self.invoke(_make_event({"action": "sign", "docType": "cv"}))
        after = int(time.time() * 1000)
        self.assertEqual(resp["statusCode"], 200)
        self.assertTrue(body["url"].startswith("https://storage.test/cv.pdf"))
        self.assertGreaterEqual(body["expiresAt"], before + 60000)
        self.assertLessEqual(body["expiresAt"], after + 60000)
        self.assertEqual(self.storage.sign_calls, [("cv.pdf", 60, True)])
        self.assertEqual(resp["headers"]["Access-Control-Allow-Origin"], ORIGIN)
        self.assertEqual(resp["headers"]["Vary"], "Origin")

    def test_action_defaults_to_sign(self):
        resp, body = self.invoke(_make_event({"docType": "cv"}))
        self.assertEqual(resp["statusCode"], 200)
        self.assertIn("url", body)

    def test_diplomas_without_password_returns_401(self):
        resp, body = self.invoke(_make_event({"action": "sign", "docType": "diplomas"}))
        self.assertEqual(resp["statusCode"], 401)
        self.assertEqual(body["error_envelope"]["code"], "PERMISSION_DENIED")
        self.assertEqual(self.storage.sign_calls, [])

    def test_diplomas_with_wrong_password_returns_401(self):
        resp, _ = self.invoke(
            _make_event({"action": "sign", "docType": "diplomas", "password": "guess"})
        )
        self.assertEqual(resp["statusCode"], 401)

    def test_diplomas_with_password(self):
        resp, body = self.invoke(
            _make_event({"action": "sign", "docType": "diplomas", "password": SECRET})
        )
        self.assertEqual(resp["statusCode"], 200)
        self.assertEqual(self.storage.sign_calls, [("diplomes.pdf", 60, False)])

    def test_two_public_signs_are_independent(self):
        first, first_body = self.invoke(_make_event({"action": "sign", "docType": "cv"}))
        second, second_body = self.invoke(_make_event({"action": "sign", "docType": "cv"}))
        self.assertEqual(first["statusCode"], 200)
        self.assertEqual(second["statusCode"], 200)
        self.assertNotEqual(first_body["url"], second_body["url"])
        self.assertEqual(self.storage.objects, {})

    def test_unknown_doc_type_returns_400(self):
        for body in (
            {"action": "sign", "docType": "resume"},
            {"action": "sign", "docType": "resume", "password": SECRET},
            {"action": "upload", "docType": "resume", "password": SECRET, "contentBase64": "QQ=="},
            {"action": "upload", "docType": "resume", "password": "wrong", "contentBase64": "QQ=="},
        ):
            resp, payload = self.invoke(_make_event(body))
            self.assertEqual(resp["statusCode"], 400, body)
            self.assertEqual(payload["error"], "Invalid document type")

    def test_padded_doc_type_returns_400(self):
        resp, payload = self.invoke(_make_event({"action": "sign", "docType": " cv "}))
        self.assertEqual(resp["statusCode"], 400)
        self.assertEqual(payload["error"], "Invalid document type")
        self.assertEqual(self.storage.sign_calls, [])

    def test_action_is_case_sensitive(self):
        resp, _ = self.invoke(_make_event({"action": "SIGN ", "docType": "cv"}))
        self.assertEqual(resp["statusCode"], 400)
        self.assertEqual(self.storage.sign_calls, [])

    def test_cv_with_numeric_password(self):
        resp, body = self.invoke(_make_event({"action": "sign", "docType": "cv", "password": 1234}))
        self.assertEqual(resp["statusCode"], 200)
        self.assertIn("url", body)

    def test_diplomas_with_numeric_password_returns_401(self):
        resp, _ = self.invoke(
            _make_event({"action": "sign", "docType": "diplomas", "password": 1234})
        )
        self.assertEqual(resp["statusCode"], 401)

    def test_backend_failure_returns_generic_500(self):
        broken = BrokenStorage()
        with patch.object(document_access, "_get_storage", return_value=broken):
            resp, body = self.invoke(_make_event({"action": "sign", "docType": "cv"}))
        self.assertEqual(resp["statusCode"], 500)
        self.assertEqual(body["error"], "Failed to generate signed URL")
        self.assertNotIn("shard", resp["body"])
        self.assertEqual(broken.calls, 1)


class UploadTests(HandlerTestCase):
    def test_wrong_password_returns_401(self):
        resp, _ = self.invoke(_make_event({
            "action": "upload",
            "docType": "cv",
            "password": "wrong",
            "contentBase64": "QQ==",
        }))
        self.assertEqual(resp["statusCode"], 401)
        self.assertEqual(self.storage.objects, {})

    def test_numeric_password_returns_401(self):
        resp, body = self.invoke(_make_event({
            "action": "upload",
            "docType": "cv",
            "password": 1234,
            "contentBase64": "QQ==",
        }))
        self.assertEqual(resp["statusCode"], 401)
        self.assertEqual(body["error_envelope"]["code"], "PERMISSION_DENIED")
        self.assertEqual(self.storage.objects, {})

    def test_portfolio_upload(self):
        resp, body = self.invoke(_make_event({
            "action": "upload",
            "docType": "portfolio",
            "password": SECRET,
            "contentBase64": PDF_BASE64,
            "mimeType": "application/pdf",
        }))
        self.assertEqual(resp["statusCode"], 200)
        self.assertTrue(body["success"])
        self.assertEqual(body["documentType"], "portfolio")
        self.assertEqual(body["path"], "presentation_portfolio.pdf")
        self.assertEqual(
            self.storage.objects["presentation_portfolio.pdf"],
            (b"%PDF-1.4 portfolio", "application/pdf"),
        )

    def test_upload_route_defaults_action(self):
        resp, body = self.invoke(_make_event(
            {"docType": "cv", "password": SECRET, "contentBase64": "QQ=="},
            path="/api/upload-doc",
        ))
        self.assertEqual(resp["statusCode"], 200)
        self.assertEqual(body["documentType"], "cv")
        self.assertIn("cv.pdf", self.storage.objects)

    def test_second_upload_replaces_first(self):
        for content in (b"payload A", b"payload B"):
            resp, _ = self.invoke(_make_event({
                "action": "upload",
                "docType": "motivation",
                "password": SECRET,
                "contentBase64": base64.b64encode(content).decode(),
            }))
            self.assertEqual(resp["statusCode"], 200)
        self.assertEqual(list(self.storage.objects), ["lettre_motivation.pdf"])
        self.assertEqual(self.storage.objects["lettre_motivation.pdf"][0], b"payload B")

    def test_missing_fields_returns_400(self):
        resp, body = self.invoke(_make_event({"action": "upload", "docType": "cv"}))
        self.assertEqual(resp["statusCode"], 400)
        self.assertIn("password", body["error"])
        self.assertIn("contentBase64", body["error"])

    def test_invalid_mime_returns_400(self):
        resp, body = self.invoke(_make_event({
            "action": "upload",
            "docType": "cv",
            "password": SECRET,
            "contentBase64": "QQ==",
            "mimeType": "application/x-msdownload",
        }))
        self.assertEqual(resp["statusCode"], 400)
        self.assertEqual(body["error_envelope"]["details"]["reason"], "unsupported_type")

    def test_bad_base64_returns_400(self):
        resp, body = self.invoke(_make_event({
            "action": "upload",
            "docType": "cv",
            "password": SECRET,
            "contentBase64": "%%%%",
        }))
        self.assertEqual(resp["statusCode"], 400)
        self.assertEqual(body["error"], "Invalid base64 encoding")

    def test_oversized_returns_400(self):
        small = Settings(admin_password=SECRET, max_upload_bytes=3)
        with patch.object(document_access, "_get_settings", return_value=small):
            resp, body = self.invoke(_make_event({
                "action": "upload",
                "docType": "cv",
                "password": SECRET,
                "contentBase64": "QUFB" + "QQ==",
            }))
        self.assertEqual(resp["statusCode"], 400)
        self.assertEqual(body["error_envelope"]["details"]["reason"], "too_large")
        self.assertEqual(self.storage.objects, {})

    def test_backend_failure_returns_500(self):
        broken = BrokenStorage()
        with patch.object(document_access, "_get_storage", return_value=broken):
            resp, body = self.invoke(_make_event({
                "action": "upload",
                "docType": "cv",
                "password": SECRET,
                "contentBase64": "QQ==",
            }))
        self.assertEqual(resp["statusCode"], 500)
        self.assertEqual(body["error"], "Upload failed")
        self.assertNotIn("shard", resp["body"])


class UnexpectedErrorTests(HandlerTestCase):
    def test_unexpected_exception_returns_500(self):
        with patch.object(document_access, "authorize", side_effect=RuntimeError("boom")):
            resp, body = self.invoke(_make_event({"docType": "cv"}))
        self.assertEqual(resp["statusCode"], 500)
        self.assertEqual(body["error"], "Internal server error")
        self.assertNotIn("boom", resp["body"])


if __name__ == "__main__":
    unittest.main()
