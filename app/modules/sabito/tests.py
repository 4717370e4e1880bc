"""
Tests para la sincronización de clientes Sabito
"""
import hashlib
import hmac
import json
from uuid import UUID

import httpx
import pytest

from app.core.config import settings
from app.modules.customers.models import Customer
from app.modules.sabito.models import SabitoTenantMapping
from app.modules.sabito.service import SabitoMappingService, SabitoSyncService
from app.modules.tenants.models import Tenant, TenantStatus

SABITO_CUSTOMERS = [
    {"id": 501, "name": "Efua Quaye", "email": "efua@quaye.com", "phone": "+233501112233",
     "city": "Tema", "country": "Ghana", "sourceReferralId": 77},
    {"id": 502, "name": "Kwame M.", "email": "KWAME@mensahacademy.com", "country": "Ghana"},
    {"id": 503, "name": "No Email"},
]


@pytest.fixture
def api_key(monkeypatch):
    monkeypatch.setattr(settings, "SABITO_API_KEY", "sk-sabito-test")
    monkeypatch.setattr(settings, "SABITO_SYNC_DELAY_SECONDS", 0)


@pytest.fixture
def mapping(client, owner):
    response = client.post("/sabito/mapping", headers=owner["headers"], json={
        "sabito_business_id": "biz-acme", "business_name": "Acme on Sabito"
    })
    assert response.status_code == 201, response.text
    return response.json()


def sabito_transport(requests, status_code=200, customers=None):
    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(status_code, json={"data": customers if customers is not None else SABITO_CUSTOMERS})
    return httpx.MockTransport(handler)


class TestMapping:

    def test_one_mapping_per_tenant_and_business(self, client, owner, other_tenant, mapping):
        again = client.post("/sabito/mapping", headers=owner["headers"], json={"sabito_business_id": "biz-2"})
        assert again.status_code == 409
        taken = client.post("/sabito/mapping", headers=other_tenant["headers"], json={"sabito_business_id": "biz-acme"})
        assert taken.status_code == 409

    def test_status_and_delete(self, client, owner, mapping):
        status = client.get("/sabito/sync/status", headers=owner["headers"]).json()
        assert status["mapped"] is True
        assert status["last_synced_at"] is None

        assert client.delete("/sabito/mapping", headers=owner["headers"]).status_code == 204
        assert client.get("/sabito/sync/status", headers=owner["headers"]).json() == {
            "mapped": False, "sabito_business_id": None, "business_name": None,
            "last_synced_at": None, "last_sync_result": None,
        }
        assert client.get("/sabito/mapping", headers=owner["headers"]).status_code == 404

    def test_manager_forbidden(self, client, add_member):
        assert client.get("/sabito/mapping", headers=add_member("manager")).status_code == 403


class TestSync:

    def test_creates_updates_and_skips(self, owner, customer, mapping, db_session, api_key):
        requests = []
        service = SabitoSyncService(db_session, transport=sabito_transport(requests))
        row = SabitoMappingService(db_session).get_current(UUID(owner["tenant_id"]))

        result = service.sync_tenant_customers(row)
        assert result["success"] is True
        assert (result["customers_processed"], result["created"], result["updated"], result["skipped"]) == (3, 1, 1, 1)

        request = requests[0]
        assert request.headers["X-API-Key"] == "sk-sabito-test"
        assert request.url.params["businessId"] == "biz-acme"
        assert "updatedAfter" not in request.url.params

        created = db_session.query(Customer).filter(Customer.sabito_customer_id == "501").one()
        assert created.tenant_id == UUID(owner["tenant_id"])
        assert created.how_did_you_hear == "Sabito Referral"
        assert created.referral_name == "From Sabito"
        assert created.sabito_source_referral_id == "77"

        existing = db_session.query(Customer).filter(Customer.id == UUID(customer["id"])).one()
        assert existing.sabito_customer_id == "502"
        assert existing.name == "Kwame M."

    def test_resync_is_incremental_and_idempotent(self, owner, mapping, db_session, api_key):
        requests = []
        service = SabitoSyncService(db_session, transport=sabito_transport(requests))
        row = SabitoMappingService(db_session).get_current(UUID(owner["tenant_id"]))

        service.sync_tenant_customers(row)
        second = service.sync_tenant_customers(row)
        assert second["created"] == 0
        assert second["updated"] == 2
        assert "updatedAfter" in requests[1].url.params
        assert db_session.query(Customer).count() == 2

        service.sync_tenant_customers(row, full_sync=True)
        assert "updatedAfter" not in requests[2].url.params

    def test_fetch_error_returns_failure(self, owner, mapping, db_session, api_key):
        service = SabitoSyncService(db_session, transport=sabito_transport([], status_code=500))
        row = SabitoMappingService(db_session).get_current(UUID(owner["tenant_id"]))

        result = service.sync_tenant_customers(row)
        assert result["success"] is False
        assert result["error"]
        assert row.metadata_.get("last_synced_at") is None

    def test_without_api_key_nothing_is_fetched(self, client, owner, mapping):
        response = client.post("/sabito/sync", headers=owner["headers"])
        assert response.status_code == 200
        assert response.json()["success"] is True
        assert response.json()["customers_processed"] == 0

        status = client.get("/sabito/sync/status", headers=owner["headers"]).json()
        assert status["last_synced_at"] is not None
        assert status["last_sync_result"]["created"] == 0

    def test_sync_all_tenants(self, owner, mapping, db_session, api_key):
        requests = []
        results = SabitoSyncService(db_session, transport=sabito_transport(requests)).sync_all_tenants()
        assert len(results) == 1
        assert results[0]["business_id"] == "biz-acme"
        assert results[0]["created"] == 2


def customer_event(business_id="biz-acme", **customer):
    body = {"name": "Abena Owusu", "email": "abena@owusu.com", "phone": "+233244000111", "city": "Kumasi"}
    body.update(customer)
    return {
        "event": "customer.created",
        "data": {
            "sabitoCustomerId": 9001,
            "sourceReferralId": 31,
            "businessId": business_id,
            "businessName": "Acme on Sabito",
            "customer": body,
        },
    }


def webhook_headers(key="sk-sabito-test", **extra):
    headers = {"X-API-Key": key}
    headers.update(extra)
    return headers


class TestCustomerWebhook:

    def test_api_key_required(self, client, mapping, api_key):
        assert client.post("/webhooks/sabito/customer", json=customer_event()).status_code == 401
        response = client.post("/webhooks/sabito/customer", headers=webhook_headers("wrong"), json=customer_event())
        assert response.status_code == 401

    def test_rejected_when_key_not_configured(self, client, mapping):
        response = client.post("/webhooks/sabito/customer", headers=webhook_headers(), json=customer_event())
        assert response.status_code == 401

    def test_creates_then_updates_customer(self, client, owner, mapping, db_session, api_key):
        response = client.post("/webhooks/sabito/customer", headers=webhook_headers(), json=customer_event())
        assert response.status_code == 201, response.text
        body = response.json()
        assert body["sabito_customer_id"] == "9001"

        created = db_session.query(Customer).filter(Customer.id == UUID(body["customer_id"])).one()
        assert created.tenant_id == UUID(owner["tenant_id"])
        assert created.sabito_business_id == "biz-acme"
        assert created.sabito_source_referral_id == "31"
        assert created.how_did_you_hear == "Sabito Referral"

        again = client.post(
            "/webhooks/sabito/customer", headers=webhook_headers(),
            json=customer_event(email="ABENA@owusu.com", city="Accra")
        )
        assert again.status_code == 200
        assert again.json()["customer_id"] == body["customer_id"]
        db_session.expire_all()
        assert db_session.query(Customer).filter(Customer.tenant_id == UUID(owner["tenant_id"])).count() == 1

    def test_signature_checked_when_present(self, client, mapping, api_key):
        raw = json.dumps(customer_event()).encode()
        bad = client.post(
            "/webhooks/sabito/customer", content=raw,
            headers=webhook_headers(**{"X-Sabito-Signature": "deadbeef", "Content-Type": "application/json"})
        )
        assert bad.status_code == 401

        signature = hmac.new(b"sk-sabito-test", raw, hashlib.sha256).hexdigest()
        good = client.post(
            "/webhooks/sabito/customer", content=raw,
            headers=webhook_headers(**{"X-Sabito-Signature": signature, "Content-Type": "application/json"})
        )
        assert good.status_code == 201, good.text

    def test_invalid_events_rejected(self, client, mapping, api_key):
        unsupported = customer_event()
        unsupported["event"] = "customer.deleted"
        response = client.post("/webhooks/sabito/customer", headers=webhook_headers(), json=unsupported)
        assert response.status_code == 400
        assert response.json()["detail"] == "Unsupported event type: customer.deleted"

        no_email = customer_event(email=None)
        response = client.post("/webhooks/sabito/customer", headers=webhook_headers(), json=no_email)
        assert response.status_code == 400

        no_business = customer_event(business_id=None)
        response = client.post("/webhooks/sabito/customer", headers=webhook_headers(), json=no_business)
        assert response.status_code == 400

    def test_unmapped_business_needs_tenant_header(self, client, owner, db_session, api_key):
        response = client.post("/webhooks/sabito/customer", headers=webhook_headers(), json=customer_event("biz-new"))
        assert response.status_code == 404

        response = client.post(
            "/webhooks/sabito/customer",
            headers=webhook_headers(**{"X-Tenant-ID": owner["tenant_id"]}),
            json=customer_event("biz-new")
        )
        assert response.status_code == 201, response.text

        row = db_session.query(SabitoTenantMapping).filter(SabitoTenantMapping.sabito_business_id == "biz-new").one()
        assert row.tenant_id == UUID(owner["tenant_id"])
        assert row.business_name == "Acme on Sabito"

    def test_suspended_tenant_forbidden(self, client, owner, mapping, db_session, api_key):
        tenant = db_session.query(Tenant).filter(Tenant.id == UUID(owner["tenant_id"])).one()
        tenant.status = TenantStatus.SUSPENDED
        db_session.commit()

        response = client.post("/webhooks/sabito/customer", headers=webhook_headers(), json=customer_event())
        assert response.status_code == 403
        assert db_session.query(Customer).count() == 0
