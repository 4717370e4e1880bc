"""
Tests para la integración de WhatsApp

Las llamadas a la Graph API se simulan con httpx.MockTransport.
"""
import hashlib
import hmac
import json
import threading
from datetime import date, timedelta
from uuid import UUID

import httpx
import pytest

from app.core.config import settings
from app.modules.invoices.models import Invoice
from app.modules.settings.service import SettingService, WHATSAPP_KEY
from app.modules.whatsapp.notifications import notify_template, run_payment_reminders
from app.modules.whatsapp.service import (
    DailyRateLimiter, WhatsAppService, rate_limiter, verify_webhook_signature, parse_webhook
)
from app.modules.whatsapp.templates import format_currency, validate_parameters


def enable_whatsapp(db_session, tenant_id, **extra):
    value = {"enabled": True, "access_token": "EAAG-test-token", "phone_number_id": "1098765"}
    value.update(extra)
    SettingService(db_session).upsert(UUID(tenant_id), WHATSAPP_KEY, value)


class GraphApiStub:
    """Registra las peticiones y responde con el status indicado."""

    def __init__(self, status_code=200, body=None, headers=None):
        self.status_code = status_code
        self.body = body if body is not None else {"messages": [{"id": "wamid.HBgM"}]}
        self.headers = headers or {}
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json=self.body, headers=self.headers)

    @property
    def transport(self):
        return httpx.MockTransport(self)


class TestTemplates:

    def test_format_currency(self):
        assert format_currency("1234.5") == "GHS 1,234.50"
        assert format_currency(None) == "GHS 0.00"

    def test_validate_parameters(self):
        validate_parameters("order_confirmation", ["Kwame", "JOB-202601-0001"])
        with pytest.raises(ValueError):
            validate_parameters("order_confirmation", ["Kwame"])
        with pytest.raises(ValueError):
            validate_parameters("birthday_greeting", [])


class TestSendTemplate:

    def test_sends_when_configured(self, owner, db_session):
        enable_whatsapp(db_session, owner["tenant_id"])
        stub = GraphApiStub()
        service = WhatsAppService(db_session, transport=stub.transport)

        result = service.send_template(UUID(owner["tenant_id"]), "0241112233", "order_confirmation",
                                       ["Kwame", "JOB-202601-0001"])
        assert result == {"success": True, "message_id": "wamid.HBgM"}

        request = stub.requests[0]
        assert request.url.path.endswith("/1098765/messages")
        assert request.headers["Authorization"] == "Bearer EAAG-test-token"
        payload = json.loads(request.content)
        assert payload["to"] == "233241112233"
        assert payload["template"]["name"] == "order_confirmation"
        assert payload["template"]["components"][0]["parameters"][1]["text"] == "JOB-202601-0001"

    def test_not_configured(self, owner, db_session):
        stub = GraphApiStub()
        result = WhatsAppService(db_session, transport=stub.transport).send_template(
            UUID(owner["tenant_id"]), "0241112233", "order_confirmation", ["Kwame", "JOB-1"]
        )
        assert result["success"] is False
        assert stub.requests == []

    def test_wrong_parameter_count_is_not_sent(self, owner, db_session):
        enable_whatsapp(db_session, owner["tenant_id"])
        stub = GraphApiStub()
        result = WhatsAppService(db_session, transport=stub.transport).send_template(
            UUID(owner["tenant_id"]), "0241112233", "payment_reminder", ["INV-1"]
        )
        assert result["success"] is False
        assert "expects 3 parameters" in result["error"]
        assert stub.requests == []

    def test_invalid_phone(self, owner, db_session):
        enable_whatsapp(db_session, owner["tenant_id"])
        result = WhatsAppService(db_session, transport=GraphApiStub().transport).send_text(
            UUID(owner["tenant_id"]), "abc", "Hello"
        )
        assert result["success"] is False

    def test_daily_limit(self, owner, db_session, monkeypatch):
        monkeypatch.setattr(rate_limiter, "limit", 1)
        enable_whatsapp(db_session, owner["tenant_id"])
        service = WhatsAppService(db_session, transport=GraphApiStub().transport)
        tenant_id = UUID(owner["tenant_id"])

        assert service.send_text(tenant_id, "0241112233", "First")["success"] is True
        second = service.send_text(tenant_id, "0241112233", "Second")
        assert second == {"success": False, "error": "Daily message limit reached"}

    def test_failed_send_does_not_count(self, owner, db_session):
        enable_whatsapp(db_session, owner["tenant_id"])
        stub = GraphApiStub(status_code=400, body={"error": {"message": "Invalid parameter"}})
        tenant_id = UUID(owner["tenant_id"])
        WhatsAppService(db_session, transport=stub.transport).send_text(tenant_id, "0241112233", "Hello")
        assert rate_limiter.used(tenant_id) == 0

    def test_limiter_never_exceeds_limit_under_concurrency(self):
        limiter = DailyRateLimiter(limit=5)
        barrier = threading.Barrier(20)
        granted = []

        def worker():
            barrier.wait()
            granted.append(limiter.try_acquire("tenant-a"))

        threads = [threading.Thread(target=worker) for _ in range(20)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert granted.count(True) == 5
        assert limiter.used("tenant-a") == 5

    def test_rate_limited_response_is_retryable(self, owner, db_session):
        enable_whatsapp(db_session, owner["tenant_id"])
        stub = GraphApiStub(status_code=429, body={"error": {"message": "Too many"}}, headers={"retry-after": "30"})
        result = WhatsAppService(db_session, transport=stub.transport).send_text(
            UUID(owner["tenant_id"]), "0241112233", "Hello"
        )
        assert result["success"] is False
        assert result["retryable"] is True
        assert result["retry_after"] == "30"

    def test_client_error_is_not_retryable(self, owner, db_session):
        enable_whatsapp(db_session, owner["tenant_id"])
        stub = GraphApiStub(status_code=400, body={"error": {"message": "Invalid parameter"}})
        result = WhatsAppService(db_session, transport=stub.transport).send_text(
            UUID(owner["tenant_id"]), "0241112233", "Hello"
        )
        assert result["error"] == "Invalid parameter"
        assert result["retryable"] is False

    def test_notify_template_skips_disabled_tenant(self, owner, db_session):
        assert notify_template(db_session, UUID(owner["tenant_id"]), "0241112233", "order_confirmation",
                               ["Kwame", "JOB-1"]) is False


class TestPaymentReminders:

    def test_overdue_invoice_gets_reminder(self, client, owner, customer, db_session):
        client.post("/invoices", headers=owner["headers"], json={
            "customer_id": customer["id"],
            "status": "sent",
            "due_date": (date.today() - timedelta(days=5)).isoformat(),
            "items": [{"description": "Banners", "quantity": 1, "unit_price": "300"}],
        })
        client.post("/invoices", headers=owner["headers"], json={
            "status": "sent",
            "due_date": (date.today() - timedelta(days=5)).isoformat(),
            "subtotal": "50",
        })
        enable_whatsapp(db_session, owner["tenant_id"])
        stub = GraphApiStub()

        summary = run_payment_reminders(db_session, transport=stub.transport)
        assert summary == {"sent": 1, "skipped": 1, "failed": 0}

        payload = json.loads(stub.requests[0].content)
        assert payload["template"]["name"] == "payment_reminder"
        assert payload["template"]["components"][0]["parameters"][1]["text"] == "GHS 300.00"

        invoice = db_session.query(Invoice).filter(Invoice.customer_id == UUID(customer["id"])).one()
        assert invoice.status.value == "overdue"

    def test_disabled_tenant_is_skipped(self, client, owner, customer, db_session):
        client.post("/invoices", headers=owner["headers"], json={
            "customer_id": customer["id"],
            "status": "sent",
            "due_date": (date.today() - timedelta(days=1)).isoformat(),
            "subtotal": "80",
        })
        stub = GraphApiStub()
        assert run_payment_reminders(db_session, transport=stub.transport)["skipped"] == 1
        assert stub.requests == []


class TestWebhook:

    def test_signature(self):
        body = b'{"entry": []}'
        signature = "sha256=" + hmac.new(b"app-secret", body, hashlib.sha256).hexdigest()
        assert verify_webhook_signature(body, signature, "app-secret") is True
        assert verify_webhook_signature(body, signature, "other-secret") is False
        assert verify_webhook_signature(body, None, "app-secret") is False
        assert verify_webhook_signature(body, signature, "") is False

    def test_parse_webhook(self):
        events = parse_webhook({"entry": [{"changes": [{"value": {
            "statuses": [{"id": "wamid.1", "status": "delivered", "recipient_id": "233241112233"}],
            "messages": [{"id": "wamid.2", "from": "233241112233", "type": "text", "text": {"body": "Hi"}}],
        }}]}]})
        assert events["statuses"][0]["status"] == "delivered"
        assert events["messages"][0]["text"] == "Hi"

    def test_verification_with_tenant_token(self, client, owner, db_session):
        enable_whatsapp(db_session, owner["tenant_id"], webhook_verify_token="acme-verify")
        response = client.get("/whatsapp/webhook", params={
            "hub.mode": "subscribe", "hub.verify_token": "acme-verify", "hub.challenge": "1158201444"
        })
        assert response.status_code == 200
        assert response.text == "1158201444"

        response = client.get("/whatsapp/webhook", params={
            "hub.mode": "subscribe", "hub.verify_token": "wrong", "hub.challenge": "1"
        })
        assert response.status_code == 403

    def test_post_requires_valid_signature(self, client, monkeypatch):
        monkeypatch.setattr(settings, "WHATSAPP_APP_SECRET", "app-secret")
        body = json.dumps({"entry": [{"changes": [{"value": {
            "statuses": [{"id": "wamid.1", "status": "read"}]
        }}]}]}).encode()

        response = client.post("/whatsapp/webhook", content=body, headers={"X-Hub-Signature-256": "sha256=bad"})
        assert response.status_code == 403

        signature = "sha256=" + hmac.new(b"app-secret", body, hashlib.sha256).hexdigest()
        response = client.post("/whatsapp/webhook", content=body, headers={"X-Hub-Signature-256": signature})
        assert response.status_code == 200
        assert response.json() == {"success": True, "statuses": 1, "messages": 0}


class TestConnection:

    def test_not_configured(self, client, owner):
        response = client.post("/whatsapp/test-connection", headers=owner["headers"])
        assert response.status_code == 200
        assert response.json()["success"] is False

    def test_staff_forbidden(self, client, add_member):
        assert client.post("/whatsapp/test-connection", headers=add_member("staff")).status_code == 403
