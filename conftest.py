"""
Fixtures compartidos: base SQLite en memoria recreada por test, cliente HTTP
y tenants registrados vía /auth/signup.
"""
import os

os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("APP_SECRET_STRING", "test-secret-key")
os.environ.setdefault("SABITO_API_KEY", "")
os.environ.setdefault("WHATSAPP_APP_SECRET", "")

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.database.database import Base, SessionLocal, sync_engine
from app.modules.whatsapp.service import rate_limiter


@pytest.fixture(autouse=True)
def database():
    Base.metadata.create_all(bind=sync_engine)
    rate_limiter.reset()
    yield
    Base.metadata.drop_all(bind=sync_engine)


@pytest.fixture
def client(database):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def db_session(database):
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def _signup(client, company_name, email, phone="+233241234567"):
    response = client.post("/auth/signup", json={
        "company_name": company_name,
        "admin_name": "Owner " + company_name,
        "admin_email": email,
        "admin_phone": phone,
        "password": "Sup3rSecret!",
    })
    assert response.status_code == 201, response.text
    body = response.json()
    tenant_id = body["default_tenant_id"]
    return {
        "tenant_id": tenant_id,
        "user_id": body["user"]["id"],
        "token": body["access_token"],
        "headers": {
            "Authorization": f"Bearer {body['access_token']}",
            "X-Tenant-ID": tenant_id,
        },
    }


@pytest.fixture
def owner(client):
    return _signup(client, "Acme Print House", "owner@acmeprint.com")


@pytest.fixture
def other_tenant(client):
    return _signup(client, "Kumasi Copy Centre", "owner@kumasicopy.com", phone="+233209876543")


@pytest.fixture
def add_member(client, owner):
    """Agrega un usuario al tenant del owner con el rol indicado y retorna sus headers."""
    def _add(role, email=None):
        email = email or f"{role}@acmeprint.com"
        response = client.post("/tenants/current/members", headers=owner["headers"], json={
            "email": email,
            "role": role,
            "name": f"{role.title()} User",
            "password": "Member123!",
        })
        assert response.status_code == 201, response.text
        login = client.post("/auth/login", data={"username": email, "password": "Member123!"})
        assert login.status_code == 200, login.text
        return {
            "Authorization": f"Bearer {login.json()['access_token']}",
            "X-Tenant-ID": owner["tenant_id"],
        }
    return _add


@pytest.fixture
def customer(client, owner):
    response = client.post("/customers", headers=owner["headers"], json={
        "name": "Kwame Mensah",
        "company": "Mensah Academy",
        "email": "kwame@mensahacademy.com",
        "phone": "0241112233",
        "city": "Accra",
        "country": "Ghana",
    })
    assert response.status_code == 201, response.text
    return response.json()
