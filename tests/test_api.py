import unittest
from unittest import mock

from fastapi.testclient import TestClient

from app.config import settings
from app.deps import get_psp_dispatcher
from app.main import app
from app.middleware import RATE_LIMIT_MESSAGE, limiter
from app.psp.dispatcher import PSPDispatcher
from razorpay_fakes import FakeRazorpay, KEY_SECRET, sign

ORDER = {
    "id": "order_9A33XWu170gUtm",
    "amount": 50000,
    "currency": "INR",
    "receipt": "receipt-1",
    "status": "created",
    "created_at": 1700000000,
}
PAYMENT = {
    "id": "pay_29QQoUBi66xm2f",
    "amount": 50000,
    "currency": "INR",
    "status": "captured",
    "order_id": "order_9A33XWu170gUtm",
    "method": "upi",
    "email": "buyer@example.com",
    "contact": "+919876543210",
}


class ApiTestCase(unittest.TestCase):
    def setUp(self):
        limiter.reset()
        self.rzp = FakeRazorpay()
        self.dispatcher = PSPDispatcher([self.rzp.adapter()])
        app.dependency_overrides[get_psp_dispatcher] = lambda: self.dispatcher
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()


class TestCreateOrderEndpoint(ApiTestCase):
    def test_created(self):
        self.rzp.on("POST", "/v1/orders", body=ORDER)

        res = self.client.post("/api/payment/create-order", json={
            "amount": 500.00, "currency": "INR", "receipt": "receipt-1",
        })

        self.assertEqual(res.status_code, 201)
        body = res.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["data"]["provider_order_id"], "order_9A33XWu170gUtm")
        self.assertEqual(body["data"]["amount"], 500.0)
        self.assertEqual(body["data"]["status"], "created")
        self.assertEqual(self.rzp.calls[0][2]["amount"], 50000)
        self.assertIn("X-Request-ID", res.headers)

    def test_legacy_path(self):
        self.rzp.on("POST", "/v1/orders", body=ORDER)

        res = self.client.post("/api/create-order", json={"amount": 500, "currency": "INR", "receipt": "receipt-1"})

        self.assertEqual(res.status_code, 201)

    def test_missing_fields(self):
        res = self.client.post("/api/payment/create-order", json={"amount": 10})

        self.assertEqual(res.status_code, 400)
        body = res.json()
        self.assertFalse(body["success"])
        self.assertEqual(body["error"], "Missing required fields: currency, receipt")
        self.assertEqual(self.rzp.calls, [])

    def test_non_positive_amount(self):
        for amount in (0, -5):
            with self.subTest(amount=amount):
                res = self.client.post("/api/payment/create-order", json={
                    "amount": amount, "currency": "INR", "receipt": "r",
                })
                self.assertEqual(res.status_code, 400)
                self.assertEqual(res.json()["fields"], ["amount"])
        self.assertEqual(self.rzp.calls, [])

    def test_sub_paise_amount_rejected(self):
        for amount in ("0.004", 0.004, "10.005"):
            with self.subTest(amount=amount):
                res = self.client.post("/api/payment/create-order", json={
                    "amount": amount, "currency": "INR", "receipt": "r",
                })
                self.assertEqual(res.status_code, 400)
                self.assertEqual(res.json()["fields"], ["amount"])
        self.assertEqual(self.rzp.calls, [])

    def test_two_decimal_amount_accepted(self):
        self.rzp.on("POST", "/v1/orders", body=dict(ORDER, amount=1999))

        res = self.client.post("/api/payment/create-order", json={"amount": "19.99", "currency": "INR", "receipt": "r"})

        self.assertEqual(res.status_code, 201)
        self.assertEqual(self.rzp.calls[0][2]["amount"], 1999)
        self.assertEqual(res.json()["data"]["amount"], 19.99)

    def test_malformed_processor_amount(self):
        self.rzp.on("POST", "/v1/orders", body={"id": "o", "amount": None})

        res = self.client.post("/api/payment/create-order", json={"amount": 10, "currency": "INR", "receipt": "r"})

        self.assertEqual(res.status_code, 500)
        body = res.json()
        self.assertEqual(body["error"], "Failed to create payment order")
        self.assertIn("Malformed processor response", body["message"])

    def test_unknown_provider(self):
        res = self.client.post("/api/payment/create-order", json={
            "amount": 10, "currency": "INR", "receipt": "r", "provider": "stripe",
        })

        self.assertEqual(res.status_code, 503)
        self.assertIn("stripe", res.json()["error"])

    def test_processor_failure(self):
        self.rzp.on("POST", "/v1/orders", status_code=401, body={
            "error": {"code": "BAD_REQUEST_ERROR", "description": "Authentication failed"},
        })

        res = self.client.post("/api/payment/create-order", json={"amount": 10, "currency": "INR", "receipt": "r"})

        self.assertEqual(res.status_code, 500)
        body = res.json()
        self.assertEqual(body["error"], "Failed to create payment order")
        self.assertIn("Authentication failed", body["message"])


class TestVerifySignatureEndpoint(ApiTestCase):
    def _body(self, signature):
        return {"payment_id": PAYMENT["id"], "order_id": PAYMENT["order_id"], "signature": signature}

    def test_valid(self):
        self.rzp.on("GET", f"/v1/payments/{PAYMENT['id']}", body=PAYMENT)
        signature = sign(KEY_SECRET, f"{PAYMENT['order_id']}|{PAYMENT['id']}")

        res = self.client.post("/api/payment/verify-signature", json=self._body(signature))

        self.assertEqual(res.status_code, 200)
        data = res.json()["data"]
        self.assertTrue(data["is_valid"])
        self.assertEqual(data["amount"], 500.0)
        self.assertEqual(data["method"], "upi")

    def test_tampered(self):
        res = self.client.post("/api/verify-signature", json=self._body("0" * 64))

        self.assertEqual(res.status_code, 400)
        body = res.json()
        self.assertFalse(body["success"])
        self.assertEqual(body["error"], "Payment verification failed")
        self.assertEqual(body["data"]["error_code"], "INVALID_SIGNATURE")
        self.assertEqual(self.rzp.calls, [])

    def test_missing_signature(self):
        res = self.client.post("/api/payment/verify-signature", json={"payment_id": "p", "order_id": "o"})

        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.json()["error"], "Missing required fields: signature")

    def test_unexpected_error_is_generic_500(self):
        client = self._broken_client()

        res = client.post("/api/payment/verify-signature", json=self._body("sig"))

        self.assertEqual(res.status_code, 500)
        self.assertEqual(res.json()["error"], "Internal server error")

    def _broken_client(self):
        class Broken(PSPDispatcher):
            async def verify_payment(self, *args, **kwargs):
                raise RuntimeError("boom")

        broken = Broken([self.rzp.adapter()])
        app.dependency_overrides[get_psp_dispatcher] = lambda: broken
        return TestClient(app, raise_server_exceptions=False)

    def test_error_detail_shown_in_development(self):
        client = self._broken_client()

        with mock.patch.object(settings, "ENVIRONMENT", "development"):
            res = client.post("/api/payment/verify-signature", json=self._body("sig"))

        self.assertEqual(res.status_code, 500)
        self.assertEqual(res.json()["message"], "boom")

    def test_error_detail_hidden_outside_development(self):
        client = self._broken_client()

        for environment in ("production", "test"):
            with self.subTest(environment=environment):
                with mock.patch.object(settings, "ENVIRONMENT", environment):
                    res = client.post("/api/payment/verify-signature", json=self._body("sig"))
                self.assertEqual(res.status_code, 500)
                self.assertEqual(res.json(), {
                    "success": False,
                    "error": "Internal server error",
                    "message": "Something went wrong",
                })


class TestRefundEndpoint(ApiTestCase):
    path = f"/v1/payments/{PAYMENT['id']}/refund"

    def test_partial_refund(self):
        self.rzp.on("POST", self.path, body={"id": "rfnd_1", "amount": 25000, "currency": "INR", "status": "processed"})

        res = self.client.post("/api/payment/refund", json={"payment_id": PAYMENT["id"], "amount": 250, "reason": "requested"})

        self.assertEqual(res.status_code, 200)
        data = res.json()["data"]
        self.assertEqual(data["amount"], 250.0)
        self.assertEqual(data["refund_id"], "rfnd_1")
        self.assertEqual(data["reason"], "requested")
        self.assertEqual(self.rzp.calls[0][2]["amount"], 25000)

    def test_missing_payment_id(self):
        res = self.client.post("/api/payment/refund", json={"amount": 10})

        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.json()["error"], "Missing required fields: payment_id")

    def test_sub_paise_refund_rejected(self):
        res = self.client.post("/api/payment/refund", json={"payment_id": PAYMENT["id"], "amount": "10.005"})

        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.json()["fields"], ["amount"])
        self.assertEqual(self.rzp.calls, [])

    def test_processor_failure(self):
        self.rzp.on("POST", self.path, status_code=400, body={"error": {"description": "already refunded"}})

        res = self.client.post("/api/payment/refund", json={"payment_id": PAYMENT["id"]})

        self.assertEqual(res.status_code, 500)
        self.assertEqual(res.json()["error"], "Failed to process refund")
        self.assertEqual(len(self.rzp.calls), 1)


class TestIntrospectionEndpoints(ApiTestCase):
    def test_providers(self):
        res = self.client.get("/api/providers")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json()["data"], {"providers": ["razorpay"], "count": 1})

    def test_providers_empty_without_credentials(self):
        empty = PSPDispatcher([self.rzp.adapter(key_id="", key_secret="")])
        app.dependency_overrides[get_psp_dispatcher] = lambda: empty

        res = self.client.get("/api/providers")

        self.assertEqual(res.json()["data"], {"providers": [], "count": 0})

    def test_health(self):
        res = self.client.get("/api/health")

        self.assertEqual(res.status_code, 200)
        data = res.json()["data"]
        self.assertEqual(data["status"], "healthy")
        self.assertEqual(data["providers"], ["razorpay"])
        self.assertGreaterEqual(data["uptime"], 0)

    def test_root(self):
        res = self.client.get("/")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json()["documentation"], "/api/health")

    def test_unknown_path(self):
        res = self.client.get("/api/nope")

        self.assertEqual(res.status_code, 404)
        self.assertEqual(res.json(), {"success": False, "error": "Endpoint not found", "path": "/api/nope"})

    def test_request_id_echoed(self):
        res = self.client.get("/api/providers", headers={"X-Request-ID": "req-123"})

        self.assertEqual(res.headers["X-Request-ID"], "req-123")
        self.assertEqual(res.headers["X-Content-Type-Options"], "nosniff")


class TestRateLimit(ApiTestCase):
    def test_window_from_settings(self):
        self.assertEqual(settings.RATE_LIMIT_WINDOW_MS, 900000)
        self.assertEqual(settings.RATE_LIMIT_MAX_REQUESTS, 100)

    def test_limit_exceeded_returns_429(self):
        for _ in range(settings.RATE_LIMIT_MAX_REQUESTS):
            self.assertEqual(self.client.get("/api/providers").status_code, 200)

        res = self.client.get("/api/providers")

        self.assertEqual(res.status_code, 429)
        self.assertEqual(res.json(), {"success": False, "error": RATE_LIMIT_MESSAGE})
        self.assertIn("X-Request-ID", res.headers)

    def test_limit_is_shared_across_routes(self):
        for _ in range(settings.RATE_LIMIT_MAX_REQUESTS):
            self.client.get("/api/health")

        res = self.client.post("/api/payment/create-order", json={"amount": 10, "currency": "INR", "receipt": "r"})

        self.assertEqual(res.status_code, 429)
        self.assertEqual(self.rzp.calls, [])


if __name__ == "__main__":
    unittest.main()
