"""
Tests para el módulo de autenticación

Cubre:
- Signup: tenant + owner + settings por defecto
- Login, /me, cambio de contraseña
- Resolución de tenant con X-Tenant-ID
- Control de roles
"""

from datetime import timedelta
from uuid import UUID, uuid4

from app.modules.auth.utils import hash_password, verify_password, create_access_token, verify_token
from app.modules.settings.models import Setting
from app.modules.tenants.models import Tenant, TenantStatus


class TestPasswordUtils:

    def test_hash_and_verify(self):
        hashed = hash_password("Sup3rSecret!")
        assert hashed != "Sup3rSecret!"
        assert verify_password("Sup3rSecret!", hashed)
        assert not verify_password("wrong-password", hashed)

    def test_token_roundtrip_carries_subject(self):
        token = create_access_token({"sub": "abc"})
        payload = verify_token(token)
        assert payload["sub"] == "abc"
        assert payload["type"] == "access"


class TestSignup:

    def test_signup_creates_tenant_owner_and_default_settings(self, client, owner, db_session):
        response = client.get("/auth/me", headers=owner["headers"])
        assert response.status_code == 200
        body = response.json()
        assert body["email"] == "owner@acmeprint.com"
        assert len(body["memberships"]) == 1
        membership = body["memberships"][0]
        assert membership["role"] == "owner"
        assert membership["tenant_name"] == "Acme Print House"
        assert membership["tenant_slug"] == "acme-print-house"

        keys = {s.key for s in db_session.query(Setting).filter(Setting.tenant_id == UUID(membership["tenant_id"])).all()}
        assert {"payroll", "whatsapp", "organization"} <= keys

    def test_signup_duplicate_email_rejected(self, client, owner):
        response = client.post("/auth/signup", json={
            "company_name": "Another Shop",
            "admin_name": "Someone Else",
            "admin_email": "OWNER@acmeprint.com",
            "password": "Sup3rSecret!",
        })
        assert response.status_code == 400

    def test_signup_same_company_name_gets_unique_slug(self, client, owner):
        response = client.post("/auth/signup", json={
            "company_name": "Acme Print House",
            "admin_name": "Second Owner",
            "admin_email": "second@acmeprint.com",
            "password": "Sup3rSecret!",
        })
        assert response.status_code == 201
        assert response.json()["memberships"][0]["tenant_slug"] == "acme-print-house-1"

    def test_signup_short_password_is_422(self, client):
        response = client.post("/auth/signup", json={
            "company_name": "Tiny",
            "admin_name": "Tiny Owner",
            "admin_email": "tiny@tinyprint.com",
            "password": "short",
        })
        assert response.status_code == 422


class TestLogin:

    def test_login_success(self, client, owner):
        response = client.post("/auth/login", data={"username": "owner@acmeprint.com", "password": "Sup3rSecret!"})
        assert response.status_code == 200
        body = response.json()
        assert body["token_type"] == "bearer"
        assert body["default_tenant_id"] == owner["tenant_id"]
        assert body["user"]["last_login"] is not None

    def test_login_wrong_password(self, client, owner):
        response = client.post("/auth/login", data={"username": "owner@acmeprint.com", "password": "nope-nope"})
        assert response.status_code == 401

    def test_login_unknown_user(self, client):
        response = client.post("/auth/login", data={"username": "ghost@acmeprint.com", "password": "whatever1"})
        assert response.status_code == 401


class TestCurrentUser:

    def test_me_requires_token(self, client):
        assert client.get("/auth/me").status_code == 401

    def test_invalid_token_rejected(self, client):
        response = client.get("/auth/me", headers={"Authorization": "Bearer not-a-token"})
        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"

    def test_expired_token_rejected(self, client, owner):
        token = create_access_token({"sub": owner["user_id"]}, expires_delta=timedelta(minutes=-1))
        response = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Expired token"

    def test_update_details_normalizes_phone(self, client, owner):
        response = client.put("/auth/me", headers=owner["headers"], json={"name": "Ama Owusu", "phone": "0241234567"})
        assert response.status_code == 200
        assert response.json()["name"] == "Ama Owusu"
        assert response.json()["phone"] == "+233241234567"

    def test_update_email_conflict(self, client, owner, other_tenant):
        response = client.put("/auth/me", headers=owner["headers"], json={"email": "owner@kumasicopy.com"})
        assert response.status_code == 409

    def test_change_password(self, client, owner):
        response = client.put("/auth/me/password", headers=owner["headers"], json={
            "current_password": "Sup3rSecret!",
            "new_password": "EvenB3tterSecret!",
        })
        assert response.status_code == 200
        assert response.json()["access_token"]

        login = client.post("/auth/login", data={"username": "owner@acmeprint.com", "password": "EvenB3tterSecret!"})
        assert login.status_code == 200

    def test_change_password_wrong_current(self, client, owner):
        response = client.put("/auth/me/password", headers=owner["headers"], json={
            "current_password": "bad-password",
            "new_password": "EvenB3tterSecret!",
        })
        assert response.status_code == 401


class TestTenantResolution:

    def test_context_uses_default_membership_without_header(self, client, owner):
        headers = {"Authorization": owner["headers"]["Authorization"]}
        response = client.get("/auth/context", headers=headers)
        assert response.status_code == 200
        assert response.json()["tenant_id"] == owner["tenant_id"]
        assert response.json()["user_role"] == "owner"

    def test_foreign_tenant_header_forbidden(self, client, owner, other_tenant):
        headers = {
            "Authorization": owner["headers"]["Authorization"],
            "X-Tenant-ID": other_tenant["tenant_id"],
        }
        assert client.get("/auth/context", headers=headers).status_code == 403

    def test_malformed_tenant_header(self, client, owner):
        headers = {"Authorization": owner["headers"]["Authorization"], "X-Tenant-ID": "not-a-uuid"}
        assert client.get("/auth/context", headers=headers).status_code == 400

    def test_unknown_tenant_header_forbidden(self, client, owner):
        headers = {"Authorization": owner["headers"]["Authorization"], "X-Tenant-ID": str(uuid4())}
        assert client.get("/auth/context", headers=headers).status_code == 403

    def test_suspended_tenant_forbidden(self, client, owner, db_session):
        tenant = db_session.query(Tenant).filter(Tenant.id == UUID(owner["tenant_id"])).one()
        tenant.status = TenantStatus.SUSPENDED
        db_session.commit()

        response = client.get("/tenants/current", headers=owner["headers"])
        assert response.status_code == 403
        assert client.get("/auth/context", headers={"Authorization": owner["headers"]["Authorization"]}).status_code == 403


class TestRoles:

    def test_staff_cannot_update_tenant(self, client, add_member):
        staff_headers = add_member("staff")
        response = client.put("/tenants/current", headers=staff_headers, json={"name": "Hijacked"})
        assert response.status_code == 403

    def test_staff_can_read_tenant(self, client, owner, add_member):
        staff_headers = add_member("staff")
        response = client.get("/tenants/current", headers=staff_headers)
        assert response.status_code == 200
        assert response.json()["id"] == owner["tenant_id"]
