"""
Registration, login and bearer-token gate tests.
"""

from datetime import datetime, timedelta, timezone

import pytest

from pdv.models import User
from pdv.services.token_service import issue_token, verify_token
from conftest import TEST_SECRET, TEST_PASSWORD


class TestRegister:

    def test_register_creates_user_with_private_tenant(self, client, db_session):
        resp = client.post("/auth/register", json={"email": "New@Shop.com ", "password": "pw-123456"})
        assert resp.status_code == 201

        user = db_session.query(User).filter_by(email="new@shop.com").one()
        assert user.role == "user"
        assert user.tenant_id
        assert user.password_hash != "pw-123456"

    def test_duplicate_email_conflicts_and_keeps_first_account(self, client, db_session):
        """Registering the same email twice yields 409 DuplicateEmail."""
        first = client.post("/auth/register", json={"email": "a@x.com", "password": "first-pass"})
        assert first.status_code == 201
        original_hash = db_session.query(User).filter_by(email="a@x.com").one().password_hash

        second = client.post("/auth/register", json={"email": "a@x.com", "password": "second-pass"})
        assert second.status_code == 409
        assert second.get_json()["reason"] == "DuplicateEmail"

        users = db_session.query(User).filter_by(email="a@x.com").all()
        assert len(users) == 1
        assert users[0].password_hash == original_hash

        login = client.post("/auth/login", json={"email": "a@x.com", "password": "first-pass"})
        assert login.status_code == 200

    def test_duplicate_email_is_case_insensitive(self, client, db_session):
        client.post("/auth/register", json={"email": "case@x.com", "password": "pw"})
        resp = client.post("/auth/register", json={"email": "CASE@X.COM", "password": "pw"})
        assert resp.status_code == 409

    def test_cannot_self_register_as_admin(self, client, db_session):
        resp = client.post("/auth/register", json={"email": "evil@x.com", "password": "pw", "role": "admin"})
        assert resp.status_code == 400
        assert db_session.query(User).filter_by(email="evil@x.com").first() is None

    @pytest.mark.parametrize("payload", [
        {"password": "pw"},
        {"email": "no-at-sign", "password": "pw"},
        {"email": "ok@x.com"},
        {"email": "ok@x.com", "password": ""},
    ])
    def test_invalid_payload_is_400(self, client, db_session, payload):
        assert client.post("/auth/register", json=payload).status_code == 400

    def test_array_body_is_400(self, client, db_session):
        resp = client.post("/auth/register", json=[{"email": "a@x.com", "password": "pw"}])
        assert resp.status_code == 400
        assert db_session.query(User).count() == 0


class TestLogin:

    def test_login_returns_token_and_business_type(self, app, client, user_a, tenant_a):
        resp = client.post("/auth/login", json={"email": user_a.email, "password": TEST_PASSWORD})
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["role"] == "user"
        assert body["email"] == user_a.email
        assert body["business_type"] == "bakery"
        assert body["name"] is None

        claims = verify_token(body["token"], TEST_SECRET)
        assert claims.sub == user_a.id
        assert claims.tenant_id == tenant_a.id
        assert claims.role == "user"

    def test_login_without_tenant_row_has_null_business_type(self, client, admin_user):
        resp = client.post("/auth/login", json={"email": admin_user.email, "password": TEST_PASSWORD})
        assert resp.status_code == 200
        assert resp.get_json()["business_type"] is None

    def test_wrong_password_is_401(self, client, user_a):
        resp = client.post("/auth/login", json={"email": user_a.email, "password": "nope"})
        assert resp.status_code == 401

    def test_unknown_email_is_401(self, client, db_session):
        resp = client.post("/auth/login", json={"email": "ghost@x.com", "password": "whatever"})
        assert resp.status_code == 401

    def test_array_body_is_400(self, client, db_session):
        assert client.post("/auth/login", json=["a@x.com", "pw"]).status_code == 400


class TestBearerGate:

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/admin/tenants"),
            ("POST", "/admin/tenants"),
            ("GET", "/admin/users"),
            ("GET", "/admin/resellers"),
            ("GET", "/admin/plans"),
            ("GET", "/products"),
            ("POST", "/products"),
            ("GET", "/customers"),
            ("GET", "/sales"),
            ("POST", "/sales"),
            ("GET", "/sales/stats"),
            ("GET", "/metrics/overview"),
            ("GET", "/metrics/sales-trend"),
            ("GET", "/metrics/top-products"),
            ("GET", "/metrics/inventory-alerts"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    def test_non_bearer_scheme_is_401(self, client, user_a):
        resp = client.get("/products", headers={"Authorization": "Basic dXNlcjpwYXNz"})
        assert resp.status_code == 401

    def test_expired_token_is_401(self, client, user_a):
        issued = datetime.now(timezone.utc) - timedelta(days=2)
        token = issue_token(user_a.id, user_a.tenant_id, user_a.role, TEST_SECRET, now=issued)
        resp = client.get("/products", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401

    def test_foreign_secret_is_401(self, client, user_a):
        token = issue_token(user_a.id, user_a.tenant_id, user_a.role, "some-other-secret-of-adequate-length")
        resp = client.get("/products", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401

    def test_valid_token_passes(self, client, user_a_headers):
        assert client.get("/products", headers=user_a_headers).status_code == 200


class TestSystemRoutes:

    def test_root_greeting(self, client):
        resp = client.get("/")
        assert resp.status_code == 200
        assert resp.get_data(as_text=True) == "Hello, SaaS PDV!"

    def test_health(self, client, db_session):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.get_json()["checks"]["database"]["status"] == "healthy"

    def test_cors_header_for_any_origin_by_default(self, client):
        resp = client.get("/", headers={"Origin": "http://localhost:5173"})
        assert resp.headers["Access-Control-Allow-Origin"] == "http://localhost:5173"
