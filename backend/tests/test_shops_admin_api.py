# Overview: Pytest coverage for shops, staff management, admin and system endpoints.

import pytest

from conftest import auth_headers, get_auth_token
from optometry import create_app
from optometry.config import TestingConfig
from optometry.extensions import db
from optometry.models import PermissionRecord, Shop, User
from optometry.permissions import ROLES, Role
from optometry.services import customer_service, permission_service, record_service


# =============================================================================
# SHOPS
# =============================================================================


class TestShopsApi:

    def test_admin_creates_shop_with_temporary_password(self, client, admin):
        resp = client.post(
            "/api/shops",
            json={"name": "Focus Point", "ownerEmail": "fiona@focuspoint.com", "ownerName": "Fiona Focus"},
            headers=auth_headers(admin),
        )

        assert resp.status_code == 201
        shop = resp.json["shop"]
        assert shop["owner"]["name"] == "Fiona Focus"
        assert shop["createdBy"] == admin.id
        temporary = resp.json["temporaryPassword"]
        assert get_auth_token(client, "fiona@focuspoint.com", temporary)

        records = db.session.query(PermissionRecord).filter_by(shop_id=shop["id"]).all()
        assert len(records) == len(ROLES)
        assert all(r.created_by_id == admin.id for r in records)

    def test_create_with_password_has_no_temporary(self, client, admin):
        resp = client.post(
            "/api/shops",
            json={"name": "Focus Point", "ownerEmail": "fiona@focuspoint.com", "ownerPassword": "chosen-pass"},
            headers=auth_headers(admin),
        )

        assert resp.status_code == 201
        assert "temporaryPassword" not in resp.json

    def test_admin_cannot_own_a_shop(self, client, admin):
        resp = client.post(
            "/api/shops",
            json={"name": "Admin Optics", "ownerEmail": "admin@optometrypro.com"},
            headers=auth_headers(admin),
        )
        assert resp.status_code == 400

    def test_owner_cannot_create_shops(self, client, shop_a):
        resp = client.post(
            "/api/shops", json={"name": "Second Store", "ownerEmail": "x@y.com"}, headers=auth_headers(shop_a[1])
        )
        assert resp.status_code == 403

    def test_list_shops_by_status(self, client, admin, shop_a, shop_b):
        client.patch(f"/api/shops/{shop_b[0].id}/status", json={"status": "suspended"}, headers=auth_headers(admin))

        body = client.get("/api/shops?status=active", headers=auth_headers(admin)).json
        assert [s["name"] for s in body["shops"]] == ["Clear Sight Optics"]

    def test_my_shop(self, client, shop_a, optometrist_a, admin):
        owner_view = client.get("/api/shops/my-shop", headers=auth_headers(shop_a[1]))
        staff_view = client.get("/api/shops/my-shop", headers=auth_headers(optometrist_a))
        admin_view = client.get("/api/shops/my-shop", headers=auth_headers(admin))

        assert owner_view.json["name"] == "Clear Sight Optics"
        assert staff_view.json["id"] == shop_a[0].id
        assert admin_view.status_code == 404

    def test_owner_updates_my_shop(self, client, shop_a):
        resp = client.put(
            "/api/shops/my-shop",
            json={"name": "Clear Sight Optics Downtown", "settings": {"defaultUserRole": "receptionist"}},
            headers=auth_headers(shop_a[1]),
        )

        assert resp.status_code == 200
        assert resp.json["shop"]["name"] == "Clear Sight Optics Downtown"
        assert resp.json["shop"]["settings"]["defaultUserRole"] == "receptionist"

    def test_staff_cannot_update_my_shop(self, client, optometrist_a):
        resp = client.put("/api/shops/my-shop", json={"name": "Mine Now"}, headers=auth_headers(optometrist_a))
        assert resp.status_code == 403

    def test_invalid_default_role_setting(self, client, shop_a):
        resp = client.put(
            "/api/shops/my-shop",
            json={"settings": {"defaultUserRole": Role.SHOP_OWNER}},
            headers=auth_headers(shop_a[1]),
        )

        assert resp.status_code == 400
        assert resp.json["errors"][0]["field"] == "settings.defaultUserRole"

    def test_owner_cannot_change_subscription(self, client, shop_a):
        shop, owner = shop_a
        resp = client.put(
            f"/api/shops/{shop.id}",
            json={"subscription": {"plan": "enterprise"}, "isActive": False},
            headers=auth_headers(owner),
        )

        assert resp.status_code == 200
        assert resp.json["shop"]["subscription"]["plan"] == "basic"
        assert resp.json["shop"]["isActive"] is True

    def test_shop_statistics(self, client, shop_a, optometrist_a):
        resp = client.get(f"/api/shops/{shop_a[0].id}", headers=auth_headers(optometrist_a))

        assert resp.status_code == 200
        assert resp.json["statistics"] == {"customerCount": 0, "recordCount": 0, "usersCount": 2}

    def test_status_change_locks_out_staff(self, client, admin, shop_a, optometrist_a):
        staff_headers = auth_headers(optometrist_a)

        resp = client.patch(
            f"/api/shops/{shop_a[0].id}/status", json={"status": "suspended"}, headers=auth_headers(admin)
        )
        assert resp.status_code == 200
        assert resp.json["shop"]["status"] == "suspended"
        assert client.get("/api/customers", headers=staff_headers).status_code == 401

        client.patch(f"/api/shops/{shop_a[0].id}/status", json={"status": "active"}, headers=auth_headers(admin))
        assert client.get("/api/customers", headers=staff_headers).status_code == 200

    def test_invalid_status(self, client, admin, shop_a):
        resp = client.patch(
            f"/api/shops/{shop_a[0].id}/status", json={"status": "on-fire"}, headers=auth_headers(admin)
        )
        assert resp.status_code == 400

    def test_shop_users(self, client, shop_a, optometrist_a, receptionist_a):
        body = client.get(f"/api/shops/{shop_a[0].id}/users", headers=auth_headers(shop_a[1])).json

        assert body["total"] == 3
        assert {u["email"] for u in body["users"]} == {
            "owner_a@clearsight.com", "opto_a@clearsight.com", "desk_a@clearsight.com"
        }


# =============================================================================
# STAFF MANAGEMENT
# =============================================================================


class TestUserManagementApi:

    def _create(self, client, actor, **payload):
        body = {"name": "New Staffer", "email": "new@clearsight.com", "password": "staffpass"}
        body.update(payload)
        return client.post("/api/user-management", json=body, headers=auth_headers(actor))

    def test_create_uses_shop_default_role(self, client, shop_a):
        shop, owner = shop_a
        resp = self._create(client, owner)

        assert resp.status_code == 201
        assert resp.json["user"]["role"] == Role.OPTOMETRIST
        assert resp.json["user"]["shop"]["id"] == shop.id
        assert get_auth_token(client, "new@clearsight.com", "staffpass")

    def test_create_follows_changed_default_role(self, client, shop_a):
        owner = shop_a[1]
        client.put(
            "/api/shops/my-shop", json={"settings": {"defaultUserRole": "assistant"}}, headers=auth_headers(owner)
        )

        assert self._create(client, owner).json["user"]["role"] == Role.ASSISTANT

    def test_create_rejects_admin_role(self, client, shop_a):
        resp = self._create(client, shop_a[1], role=Role.ADMIN)
        assert resp.status_code == 400

    def test_duplicate_email(self, client, shop_a, optometrist_a):
        resp = self._create(client, shop_a[1], email="opto_a@clearsight.com")
        assert resp.status_code == 400

    def test_staff_without_users_module_denied(self, client, optometrist_a):
        assert client.get("/api/user-management", headers=auth_headers(optometrist_a)).status_code == 403
        assert self._create(client, optometrist_a).status_code == 403

    def test_only_owner_assigns_owner_role(self, client, shop_a, receptionist_a):
        permission_service.set_user_overrides(
            receptionist_a, permissions={"users": {"view": True, "create": True}}
        )

        denied = self._create(client, receptionist_a, role=Role.SHOP_OWNER)
        allowed = self._create(client, shop_a[1], role=Role.SHOP_OWNER, email="partner@clearsight.com")

        assert denied.status_code == 403
        assert allowed.status_code == 201

    def test_list_is_scoped_and_filtered(self, client, shop_a, optometrist_a, receptionist_a, optometrist_b):
        headers = auth_headers(shop_a[1])

        everyone = client.get("/api/user-management", headers=headers).json
        optometrists = client.get(f"/api/user-management?role={Role.OPTOMETRIST}", headers=headers).json

        assert everyone["total"] == 3
        assert [u["email"] for u in optometrists["users"]] == ["opto_a@clearsight.com"]

    def test_admin_filters_by_shop(self, client, admin, optometrist_a, optometrist_b, shop_b):
        body = client.get(f"/api/user-management?shop={shop_b[0].id}", headers=auth_headers(admin)).json

        assert {u["email"] for u in body["users"]} == {"owner_b@brighteyes.com", "opto_b@brighteyes.com"}

    def test_update_staff(self, client, shop_a, optometrist_a):
        resp = client.put(
            f"/api/user-management/{optometrist_a.id}",
            json={"role": Role.ASSISTANT, "licenseNumber": "OD-1234"},
            headers=auth_headers(shop_a[1]),
        )

        assert resp.status_code == 200
        assert resp.json["user"]["role"] == Role.ASSISTANT
        assert resp.json["user"]["licenseNumber"] == "OD-1234"

    def test_update_rejects_unknown_role(self, client, shop_a, optometrist_a):
        resp = client.put(
            f"/api/user-management/{optometrist_a.id}", json={"role": "wizard"}, headers=auth_headers(shop_a[1])
        )
        assert resp.status_code == 400

    def test_delete_is_soft(self, client, shop_a, optometrist_a):
        resp = client.delete(f"/api/user-management/{optometrist_a.id}", headers=auth_headers(shop_a[1]))

        assert resp.status_code == 200
        assert resp.json["user"]["isActive"] is False
        assert db.session.get(User, optometrist_a.id) is not None
        assert get_auth_token(client, "opto_a@clearsight.com") is None

    def test_cannot_delete_self(self, client, shop_a):
        _, owner = shop_a
        resp = client.delete(f"/api/user-management/{owner.id}", headers=auth_headers(owner))

        assert resp.status_code == 400
        assert resp.json["message"] == "You cannot delete your own account"

    def test_owner_cannot_demote_self(self, client, shop_a):
        _, owner = shop_a
        resp = client.put(
            f"/api/user-management/{owner.id}", json={"role": Role.RECEPTIONIST}, headers=auth_headers(owner)
        )

        assert resp.status_code == 403
        assert db.session.get(User, owner.id).role == Role.SHOP_OWNER

    def test_users_override_cannot_touch_registered_owner(self, client, shop_a, receptionist_a):
        _, owner = shop_a
        permission_service.set_user_overrides(
            receptionist_a, permissions={"users": {"view": True, "edit": True, "delete": True}}
        )
        headers = auth_headers(receptionist_a)

        demote = client.put(f"/api/user-management/{owner.id}", json={"role": Role.RECEPTIONIST}, headers=headers)
        disable = client.put(f"/api/user-management/{owner.id}", json={"isActive": False}, headers=headers)
        delete = client.delete(f"/api/user-management/{owner.id}", headers=headers)

        assert demote.status_code == disable.status_code == delete.status_code == 403
        stored = db.session.get(User, owner.id)
        assert stored.role == Role.SHOP_OWNER
        assert stored.is_active is True
        # other fields of the owner stay editable
        renamed = client.put(f"/api/user-management/{owner.id}", json={"name": "Owner Renamed"}, headers=headers)
        assert renamed.status_code == 200

    def test_admin_can_deactivate_registered_owner(self, client, admin, shop_a):
        _, owner = shop_a
        resp = client.delete(f"/api/user-management/{owner.id}", headers=auth_headers(admin))

        assert resp.status_code == 200
        assert db.session.get(User, owner.id).is_active is False

    def test_reset_password(self, client, shop_a, optometrist_a):
        resp = client.post(
            f"/api/user-management/{optometrist_a.id}/reset-password",
            json={"newPassword": "reset-by-owner"},
            headers=auth_headers(shop_a[1]),
        )

        assert resp.status_code == 200
        assert get_auth_token(client, "opto_a@clearsight.com", "reset-by-owner")

    def test_shop_users_listing(self, client, shop_a, optometrist_a, receptionist_a, optometrist_b):
        optometrist_a.is_active = False
        db.session.commit()

        body = client.get("/api/users/shop-users", headers=auth_headers(shop_a[1])).json
        assert [u["email"] for u in body["users"]] == ["desk_a@clearsight.com", "owner_a@clearsight.com"]

    def test_shop_users_requires_owner(self, client, optometrist_a):
        assert client.get("/api/users/shop-users", headers=auth_headers(optometrist_a)).status_code == 403


# =============================================================================
# PLATFORM ADMIN
# =============================================================================


class TestAdminApi:

    def test_dashboard(self, client, admin, shop_a, shop_b, optometrist_a):
        customer = customer_service.create_customer(optometrist_a, {"name": "Alice Alpha"})
        record_service.create_record(optometrist_a, {"customer": customer.id})

        body = client.get("/api/admin/dashboard", headers=auth_headers(admin)).json

        assert body["totalShops"] == 2
        assert body["activeShops"] == 2
        assert body["totalCustomers"] == 1
        assert body["totalRecords"] == 1
        assert [s["name"] for s in body["recentActivity"]] == ["Bright Eyes Clinic", "Clear Sight Optics"]

    @pytest.mark.parametrize("path", ["/api/admin/dashboard", "/api/admin/shops", "/api/admin/users"])
    def test_owner_is_not_admin(self, client, shop_a, path):
        assert client.get(path, headers=auth_headers(shop_a[1])).status_code == 403

    def test_update_shop_subscription(self, client, admin, shop_a):
        resp = client.put(
            f"/api/admin/shops/{shop_a[0].id}",
            json={"subscription": {"plan": "enterprise", "features": {"maxUsers": 50}}},
            headers=auth_headers(admin),
        )

        assert resp.status_code == 200
        subscription = resp.json["shop"]["subscription"]
        assert subscription["plan"] == "enterprise"
        assert subscription["features"]["maxUsers"] == 50

    def test_invalid_subscription_plan(self, client, admin, shop_a):
        resp = client.put(
            f"/api/admin/shops/{shop_a[0].id}",
            json={"subscription": {"plan": "platinum"}},
            headers=auth_headers(admin),
        )

        assert resp.status_code == 400
        assert db.session.get(Shop, shop_a[0].id).subscription_plan == "basic"

    def test_shop_customers_and_records(self, client, admin, shop_a, optometrist_a):
        customer = customer_service.create_customer(optometrist_a, {"name": "Alice Alpha"})
        record_service.create_record(optometrist_a, {"customer": customer.id})
        headers = auth_headers(admin)

        customers = client.get(f"/api/admin/shops/{shop_a[0].id}/customers", headers=headers).json
        records = client.get(f"/api/admin/shops/{shop_a[0].id}/records", headers=headers).json

        assert customers["total"] == 1
        assert records["total"] == 1

    def test_unknown_shop(self, client, admin):
        assert client.get("/api/admin/shops/99999", headers=auth_headers(admin)).status_code == 404

    def test_users_by_role(self, client, admin, optometrist_a, optometrist_b):
        body = client.get(f"/api/admin/users?role={Role.OPTOMETRIST}", headers=auth_headers(admin)).json
        assert {u["email"] for u in body["users"]} == {"opto_a@clearsight.com", "opto_b@brighteyes.com"}

    def test_update_user(self, client, admin, optometrist_b):
        resp = client.put(
            f"/api/admin/users/{optometrist_b.id}", json={"isActive": False}, headers=auth_headers(admin)
        )

        assert resp.status_code == 200
        assert resp.json["user"]["isActive"] is False

    def test_admin_cannot_demote_self(self, client, admin):
        resp = client.put(
            f"/api/admin/users/{admin.id}", json={"role": Role.OPTOMETRIST}, headers=auth_headers(admin)
        )
        assert resp.status_code == 400

    def test_update_user_validation(self, client, admin, optometrist_b):
        resp = client.put(
            f"/api/admin/users/{optometrist_b.id}",
            json={"role": "wizard", "isActive": "nope"},
            headers=auth_headers(admin),
        )

        assert resp.status_code == 400
        assert {e["field"] for e in resp.json["errors"]} == {"role", "isActive"}

    def test_shop_account_cannot_become_admin(self, client, admin, optometrist_b):
        resp = client.put(
            f"/api/admin/users/{optometrist_b.id}", json={"role": Role.ADMIN}, headers=auth_headers(admin)
        )

        assert resp.status_code == 400
        assert resp.json["errors"][0]["field"] == "role"
        assert db.session.get(User, optometrist_b.id).role == Role.OPTOMETRIST

    def test_shopless_account_cannot_take_shop_role(self, client, admin, make_user):
        other = make_user("ops@optometrypro.com", Role.ADMIN, name="Second Admin")
        resp = client.put(
            f"/api/admin/users/{other.id}", json={"role": Role.RECEPTIONIST}, headers=auth_headers(admin)
        )

        assert resp.status_code == 400
        assert resp.json["errors"][0]["field"] == "role"
        assert db.session.get(User, other.id).role == Role.ADMIN


# =============================================================================
# SYSTEM
# =============================================================================


class TestSystemApi:

    def test_health(self, client, shop_a):
        resp = client.get("/api/health")

        assert resp.status_code == 200
        assert resp.json["status"] == "healthy"
        assert resp.json["checks"]["database"]["status"] == "healthy"
        assert resp.json["checks"]["permission_registry"]["details"] == {"shops": 1, "shops_with_registry": 1}

    def test_health_degraded_without_registry(self, client, shop_a):
        db.session.query(PermissionRecord).delete()
        db.session.commit()

        resp = client.get("/api/health")

        assert resp.status_code == 200
        assert resp.json["status"] == "degraded"

    def test_status(self, client, shop_a, optometrist_a):
        body = client.get("/api/status").json

        assert body["environment"] == "testing"
        assert body["counts"]["shops"] == 1
        assert body["counts"]["users"] == 2

    def test_index(self, client, db_session):
        assert client.get("/").json["status"] == "ok"

    def test_unknown_route_uses_error_envelope(self, client, db_session):
        resp = client.get("/api/does-not-exist")

        assert resp.status_code == 404
        assert "message" in resp.json
        assert "timestamp" in resp.json

    @pytest.mark.parametrize("env_name,shows_trace", [
        ("development", True),
        ("staging", False),
        ("testing", False),
        ("production", False),
    ])
    def test_server_error_trace_only_in_development(self, env_name, shows_trace):
        config = type("EnvConfig", (TestingConfig,), {"ENV_NAME": env_name})
        app = create_app(config)

        @app.route("/api/explode")
        def explode():
            raise RuntimeError("secret internals")

        resp = app.test_client().get("/api/explode")

        assert resp.status_code == 500
        assert resp.json["message"] == "Server error"
        assert ("error" in resp.json) is shows_trace
        if shows_trace:
            assert "secret internals" in resp.json["error"]
