"""
Tenant lifecycle tests: atomic creation with owner, reseller ownership,
partial updates and guarded deletion.
"""

import json
import time

import pytest

from pdv.models import Tenant, User, Plan, Product
from pdv.services import tenant_service
from pdv.services.auth_service import HashingError, verify_password
from pdv.services.permission_service import AuthzError, NOT_OWNER
from pdv.validation import HAS_DEPENDENTS, DUPLICATE_EMAIL


class TestCreateTenant:

    def test_admin_creates_tenant_with_owner_atomically(self, client, db_session, admin_headers):
        resp = client.post(
            "/admin/tenants",
            json={"name": "Loja Nova", "owner_email": "Owner@LojaNova.com", "owner_password": "owner-pass"},
            headers=admin_headers,
        )
        assert resp.status_code == 201
        tenant_id = resp.get_json()["id"]

        tenant = db_session.get(Tenant, tenant_id)
        assert tenant.name == "Loja Nova"
        assert tenant.reseller_id is None
        assert tenant.status == "active"
        assert tenant.business_type == "retail"

        owner = db_session.query(User).filter_by(email="owner@lojanova.com").one()
        assert owner.role == "user"
        assert owner.tenant_id == tenant_id
        assert verify_password(owner.password_hash, "owner-pass")

    def test_duplicate_owner_email_writes_nothing(self, client, db_session, admin_headers, user_a):
        before = db_session.query(Tenant).count()
        resp = client.post(
            "/admin/tenants",
            json={"name": "Clash", "owner_email": user_a.email, "owner_password": "pw"},
            headers=admin_headers,
        )
        assert resp.status_code == 409
        assert resp.get_json()["reason"] == DUPLICATE_EMAIL
        assert db_session.query(Tenant).count() == before
        assert db_session.query(Tenant).filter_by(name="Clash").first() is None

    def test_hashing_failure_writes_nothing(self, db_session, admin_user, claims_of, monkeypatch):
        def boom(password, rounds=None):
            raise HashingError("Failed to hash password")

        monkeypatch.setattr(tenant_service, "hash_password", boom)
        with pytest.raises(HashingError):
            tenant_service.create_tenant(
                claims_of(admin_user),
                {"name": "No Hash", "owner_email": "o@nohash.com", "owner_password": "pw"},
            )
        assert db_session.query(Tenant).filter_by(name="No Hash").first() is None
        assert db_session.query(User).filter_by(email="o@nohash.com").first() is None

    def test_owner_fields_must_come_together(self, client, db_session, admin_headers):
        resp = client.post(
            "/admin/tenants",
            json={"name": "Half", "owner_email": "half@x.com"},
            headers=admin_headers,
        )
        assert resp.status_code == 400

    def test_reseller_id_in_payload_is_ignored_for_resellers(self, client, db_session, reseller, reseller_b, reseller_headers):
        resp = client.post(
            "/admin/tenants",
            json={"name": "Mine", "reseller_id": reseller_b.id},
            headers=reseller_headers,
        )
        assert resp.status_code == 201
        tenant = db_session.get(Tenant, resp.get_json()["id"])
        assert tenant.reseller_id == reseller.id

    def test_admin_may_assign_reseller(self, client, db_session, admin_headers, reseller):
        resp = client.post(
            "/admin/tenants",
            json={"name": "Assigned", "reseller_id": reseller.id},
            headers=admin_headers,
        )
        assert resp.status_code == 201
        assert db_session.get(Tenant, resp.get_json()["id"]).reseller_id == reseller.id

    def test_admin_reseller_id_must_be_a_reseller(self, client, db_session, admin_headers, user_a):
        resp = client.post(
            "/admin/tenants",
            json={"name": "Bad Owner", "reseller_id": user_a.id},
            headers=admin_headers,
        )
        assert resp.status_code == 400

    def test_unknown_plan_rejected(self, client, db_session, admin_headers):
        resp = client.post("/admin/tenants", json={"name": "X", "plan_id": "missing"}, headers=admin_headers)
        assert resp.status_code == 400

    def test_custom_fields_must_be_json(self, client, db_session, admin_headers):
        resp = client.post(
            "/admin/tenants",
            json={"name": "X", "custom_fields": "{not json"},
            headers=admin_headers,
        )
        assert resp.status_code == 400

        resp = client.post(
            "/admin/tenants",
            json={"name": "Y", "custom_fields": {"cnpj": "12.345.678/0001-90"}},
            headers=admin_headers,
        )
        assert resp.status_code == 201
        stored = db_session.get(Tenant, resp.get_json()["id"]).custom_fields
        assert json.loads(stored) == {"cnpj": "12.345.678/0001-90"}


class TestListTenants:

    def test_admin_sees_all(self, client, admin_headers, tenant_a, tenant_b):
        ids = {t["id"] for t in client.get("/admin/tenants", headers=admin_headers).get_json()}
        assert ids == {tenant_a.id, tenant_b.id}

    def test_reseller_sees_only_owned(self, client, reseller_headers, tenant_a, tenant_b):
        ids = [t["id"] for t in client.get("/admin/tenants", headers=reseller_headers).get_json()]
        assert ids == [tenant_a.id]

    def test_other_reseller_sees_nothing(self, client, reseller_b_headers, tenant_a):
        assert client.get("/admin/tenants", headers=reseller_b_headers).get_json() == []


class TestUpdateTenant:

    def test_partial_update_leaves_other_fields(self, client, db_session, admin_headers, tenant_a, reseller):
        before_updated = tenant_a.updated_at
        time.sleep(1.1)
        resp = client.put(f"/admin/tenants/{tenant_a.id}", json={"status": "suspended"}, headers=admin_headers)
        assert resp.status_code == 200

        db_session.expire_all()
        tenant = db_session.get(Tenant, tenant_a.id)
        assert tenant.status == "suspended"
        assert tenant.name == "Shop A - Padaria"
        assert tenant.business_type == "bakery"
        assert tenant.reseller_id == reseller.id
        assert tenant.updated_at > before_updated

    def test_empty_patch_still_touches_updated_at(self, client, db_session, admin_headers, tenant_b):
        before_updated = tenant_b.updated_at
        time.sleep(1.1)
        assert client.put(f"/admin/tenants/{tenant_b.id}", json={}, headers=admin_headers).status_code == 200
        db_session.expire_all()
        assert db_session.get(Tenant, tenant_b.id).updated_at > before_updated

    def test_owning_reseller_can_update(self, client, db_session, reseller_headers, tenant_a):
        resp = client.put(f"/admin/tenants/{tenant_a.id}", json={"name": "Renamed"}, headers=reseller_headers)
        assert resp.status_code == 200
        assert resp.get_json()["name"] == "Renamed"

    def test_foreign_reseller_cannot_update(self, client, db_session, reseller_b_headers, tenant_a):
        resp = client.put(f"/admin/tenants/{tenant_a.id}", json={"name": "Hijack"}, headers=reseller_b_headers)
        assert resp.status_code == 403
        assert resp.get_json()["reason"] == NOT_OWNER
        db_session.expire_all()
        assert db_session.get(Tenant, tenant_a.id).name == "Shop A - Padaria"

    def test_invalid_status_rejected(self, client, admin_headers, tenant_a):
        resp = client.put(f"/admin/tenants/{tenant_a.id}", json={"status": "deleted"}, headers=admin_headers)
        assert resp.status_code == 400

    def test_missing_tenant_is_404_for_admin(self, client, db_session, admin_headers):
        assert client.put("/admin/tenants/nope", json={"name": "x"}, headers=admin_headers).status_code == 404

    def test_missing_tenant_is_not_owner_for_reseller(self, client, db_session, reseller_headers):
        resp = client.put("/admin/tenants/nope", json={"name": "x"}, headers=reseller_headers)
        assert resp.status_code == 403


class TestDeleteTenant:

    def test_foreign_reseller_delete_is_not_owner(self, db_session, tenant_a, reseller_b, claims_of):
        """Reseller R2 cannot delete a tenant created by reseller R."""
        with pytest.raises(AuthzError) as exc_info:
            tenant_service.delete_tenant(claims_of(reseller_b), tenant_a.id)
        assert exc_info.value.reason == NOT_OWNER
        assert db_session.get(Tenant, tenant_a.id) is not None

    def test_reseller_created_tenant_then_foreign_delete_over_http(
        self, client, db_session, reseller_headers, reseller_b_headers, reseller
    ):
        created = client.post("/admin/tenants", json={"name": "R Shop"}, headers=reseller_headers)
        tenant_id = created.get_json()["id"]
        assert db_session.get(Tenant, tenant_id).reseller_id == reseller.id

        resp = client.delete(f"/admin/tenants/{tenant_id}", headers=reseller_b_headers)
        assert resp.status_code == 403
        assert db_session.get(Tenant, tenant_id) is not None

    def test_owner_deletes_tenant_and_its_shop_users(self, client, db_session, reseller_headers, tenant_a, user_a):
        user_a_id = user_a.id
        resp = client.delete(f"/admin/tenants/{tenant_a.id}", headers=reseller_headers)
        assert resp.status_code == 204
        db_session.expire_all()
        assert db_session.get(Tenant, tenant_a.id) is None
        assert db_session.get(User, user_a_id) is None

    def test_tenant_with_products_is_blocked(self, client, db_session, admin_headers, tenant_a, product_a):
        resp = client.delete(f"/admin/tenants/{tenant_a.id}", headers=admin_headers)
        assert resp.status_code == 409
        body = resp.get_json()
        assert body["reason"] == HAS_DEPENDENTS
        assert "products" in body["error"]
        assert db_session.get(Tenant, tenant_a.id) is not None
        assert db_session.get(Product, product_a.id) is not None

    def test_shop_user_cannot_delete(self, client, db_session, user_a_headers, tenant_a):
        assert client.delete(f"/admin/tenants/{tenant_a.id}", headers=user_a_headers).status_code == 403


class TestPlans:

    def test_admin_creates_and_lists_plans(self, client, db_session, admin_headers):
        resp = client.post(
            "/admin/plans",
            json={"name": "Basic", "price": 4990, "max_users": 3, "features": "POS,Reports"},
            headers=admin_headers,
        )
        assert resp.status_code == 201
        plan = db_session.get(Plan, resp.get_json()["id"])
        assert plan.price == 4990

        listed = client.get("/admin/plans", headers=admin_headers).get_json()
        assert [p["name"] for p in listed] == ["Basic"]

    def test_plan_price_must_be_integer_minor_units(self, client, db_session, admin_headers):
        resp = client.post("/admin/plans", json={"name": "Float", "price": 49.9, "max_users": 1}, headers=admin_headers)
        assert resp.status_code == 400

    def test_plan_max_users_beyond_column_range_is_400(self, client, db_session, admin_headers):
        resp = client.post(
            "/admin/plans", json={"name": "Huge", "price": 100, "max_users": 10 ** 20}, headers=admin_headers
        )
        assert resp.status_code == 400
        assert client.get("/admin/plans", headers=admin_headers).get_json() == []

    def test_tenant_can_reference_plan(self, client, db_session, admin_headers):
        plan_id = client.post(
            "/admin/plans", json={"name": "Pro", "price": 9990, "max_users": 10}, headers=admin_headers
        ).get_json()["id"]
        resp = client.post("/admin/tenants", json={"name": "Pro Shop", "plan_id": plan_id}, headers=admin_headers)
        assert resp.status_code == 201
        assert db_session.get(Tenant, resp.get_json()["id"]).plan_id == plan_id
