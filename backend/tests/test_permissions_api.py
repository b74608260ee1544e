# Overview: Pytest coverage for the permission API endpoints.

import pytest

from conftest import auth_headers
from optometry.extensions import db
from optometry.models import User
from optometry.permissions import ACTIONS, PAGES, ROLES, Role


def _role_url(shop, role, suffix=""):
    return f"/api/permissions/shop/{shop.id}/role/{role}{suffix}"


class TestPointChecks:

    def test_my_permissions(self, client, optometrist_a):
        resp = client.get("/api/permissions/my-permissions", headers=auth_headers(optometrist_a))

        assert resp.status_code == 200
        body = resp.json
        assert body["userId"] == optometrist_a.id
        assert body["email"] == "opto_a@clearsight.com"
        assert body["role"] == Role.OPTOMETRIST
        assert body["permissions"]["records"]["view"] is True
        assert body["permissions"]["records"]["delete"] is False
        assert "records" in body["accessiblePages"]

    def test_my_permissions_admin(self, client, admin):
        body = client.get("/api/permissions/my-permissions", headers=auth_headers(admin)).json

        assert body["accessiblePages"] == list(PAGES)
        assert all(body["permissions"]["users"][action] for action in ACTIONS)

    @pytest.mark.parametrize("module,action,expected", [
        ("records", "view", True),
        ("records", "delete", False),
        ("users", "view", False),
        ("spaceships", "view", False),
    ])
    def test_check_permission(self, client, optometrist_a, module, action, expected):
        resp = client.get(
            "/api/permissions/check-permission",
            query_string={"module": module, "action": action},
            headers=auth_headers(optometrist_a),
        )

        assert resp.status_code == 200
        assert resp.json == {"hasPermission": expected, "module": module, "action": action}

    def test_check_permission_needs_both_params(self, client, optometrist_a):
        resp = client.get(
            "/api/permissions/check-permission",
            query_string={"module": "records"},
            headers=auth_headers(optometrist_a),
        )
        assert resp.status_code == 400

    def test_check_page_access(self, client, receptionist_a):
        headers = auth_headers(receptionist_a)

        customers = client.get("/api/permissions/check-page-access?page=customers", headers=headers)
        records = client.get("/api/permissions/check-page-access?page=records", headers=headers)
        missing = client.get("/api/permissions/check-page-access", headers=headers)

        assert customers.json == {"canAccess": True, "page": "customers"}
        assert records.json == {"canAccess": False, "page": "records"}
        assert missing.status_code == 400

    def test_available_permissions(self, client, receptionist_a):
        body = client.get("/api/permissions/available-permissions", headers=auth_headers(receptionist_a)).json

        assert body["availableActions"] == list(ACTIONS)
        assert [p["name"] for p in body["availablePages"]] == list(PAGES)


class TestShopRegistryApi:

    def test_owner_views_registry(self, client, shop_a):
        shop, owner = shop_a
        resp = client.get(f"/api/permissions/shop/{shop.id}", headers=auth_headers(owner))

        assert resp.status_code == 200
        assert resp.json["shop"]["name"] == "Clear Sight Optics"
        assert sorted(p["role"] for p in resp.json["permissions"]) == sorted(ROLES)
        assert resp.json["availableActions"] == list(ACTIONS)

    def test_staff_views_own_registry(self, client, shop_a, optometrist_a):
        resp = client.get(f"/api/permissions/shop/{shop_a[0].id}", headers=auth_headers(optometrist_a))
        assert resp.status_code == 200

    def test_owner_grants_record_delete(self, client, shop_a, optometrist_a):
        shop, owner = shop_a
        opto_headers = auth_headers(optometrist_a)
        check = "/api/permissions/check-permission?module=records&action=delete"
        assert client.get(check, headers=opto_headers).json["hasPermission"] is False

        resp = client.put(
            _role_url(shop, Role.OPTOMETRIST),
            json={
                "permissions": {"records": {"view": True, "create": True, "delete": True}},
                "pageAccess": ["dashboard", "records"],
            },
            headers=auth_headers(owner),
        )

        assert resp.status_code == 200
        assert resp.json["message"] == "Permissions updated successfully"
        assert resp.json["permission"]["permissions"]["records"]["delete"] is True
        assert resp.json["permission"]["pageAccess"] == ["dashboard", "records"]
        # takes effect on the very next check
        assert client.get(check, headers=opto_headers).json["hasPermission"] is True

    def test_update_rejects_bad_payload(self, client, shop_a):
        shop, owner = shop_a
        resp = client.put(
            _role_url(shop, Role.OPTOMETRIST),
            json={"permissions": {"records": {"teleport": True}}, "pageAccess": []},
            headers=auth_headers(owner),
        )

        assert resp.status_code == 400
        assert resp.json["errors"][0]["field"] == "permissions.records.teleport"

    def test_staff_cannot_update_registry(self, client, shop_a, optometrist_a):
        resp = client.put(
            _role_url(shop_a[0], Role.OPTOMETRIST),
            json={"permissions": {}, "pageAccess": []},
            headers=auth_headers(optometrist_a),
        )
        assert resp.status_code == 403

    def test_reset_restores_defaults(self, client, shop_a, optometrist_a):
        shop, owner = shop_a
        headers = auth_headers(owner)
        client.put(_role_url(shop, Role.OPTOMETRIST), json={"permissions": {}, "pageAccess": []}, headers=headers)

        resp = client.post(_role_url(shop, Role.OPTOMETRIST, "/reset"), headers=headers)

        assert resp.status_code == 200
        assert resp.json["permission"]["permissions"]["records"]["view"] is True
        check = client.get(
            "/api/permissions/check-permission?module=records&action=view",
            headers=auth_headers(optometrist_a),
        )
        assert check.json["hasPermission"] is True

    def test_deactivate_then_activate(self, client, shop_a, optometrist_a):
        shop, owner = shop_a
        headers = auth_headers(owner)
        opto_headers = auth_headers(optometrist_a)

        resp = client.post(_role_url(shop, Role.OPTOMETRIST, "/deactivate"), headers=headers)
        assert resp.json["permission"]["isActive"] is False
        assert client.get("/api/records", headers=opto_headers).status_code == 403

        resp = client.post(_role_url(shop, Role.OPTOMETRIST, "/activate"), headers=headers)
        assert resp.json["permission"]["isActive"] is True
        assert client.get("/api/records", headers=opto_headers).status_code == 200

    def test_initialize_is_admin_only(self, client, shop_a, admin):
        shop, owner = shop_a
        url = f"/api/permissions/shop/{shop.id}/initialize"

        assert client.post(url, headers=auth_headers(owner)).status_code == 403

        resp = client.post(url, headers=auth_headers(admin))
        assert resp.status_code == 200
        assert len(resp.json["permissions"]) == len(ROLES)

    def test_admin_manages_any_shop(self, client, shop_b, admin):
        resp = client.post(_role_url(shop_b[0], Role.RECEPTIONIST, "/reset"), headers=auth_headers(admin))
        assert resp.status_code == 200


class TestUserOverridesApi:

    def test_owner_sets_overrides(self, client, shop_a, optometrist_a):
        _, owner = shop_a
        resp = client.post(
            f"/api/permissions/user/{optometrist_a.id}",
            json={"permissions": {"records": {"delete": True}}, "accessiblePages": ["billing"]},
            headers=auth_headers(owner),
        )

        assert resp.status_code == 200
        assert resp.json["user"]["id"] == optometrist_a.id

        body = client.get(
            "/api/permissions/my-permissions", headers=auth_headers(optometrist_a)
        ).json
        assert body["permissions"]["records"]["delete"] is True
        assert body["permissions"]["records"]["view"] is True
        assert "billing" in body["accessiblePages"]

    def test_get_overrides(self, client, shop_a, optometrist_a):
        _, owner = shop_a
        resp = client.get(f"/api/permissions/user/{optometrist_a.id}", headers=auth_headers(owner))

        assert resp.status_code == 200
        assert resp.json["permissions"] == {}
        assert resp.json["accessiblePages"] == []

    def test_staff_cannot_set_overrides(self, client, optometrist_a, receptionist_a):
        resp = client.post(
            f"/api/permissions/user/{receptionist_a.id}",
            json={"permissions": {"records": {"view": True}}},
            headers=auth_headers(optometrist_a),
        )
        assert resp.status_code == 403

    def test_unknown_user(self, client, shop_a):
        _, owner = shop_a
        resp = client.get("/api/permissions/user/99999", headers=auth_headers(owner))
        assert resp.status_code == 404

    def test_role_update_clears_overrides(self, client, shop_a, optometrist_a):
        shop, owner = shop_a
        headers = auth_headers(owner)
        client.post(
            f"/api/permissions/user/{optometrist_a.id}",
            json={"permissions": {"records": {"delete": True}}},
            headers=headers,
        )

        client.put(
            _role_url(shop, Role.OPTOMETRIST),
            json={"permissions": {"records": {"view": True}}, "pageAccess": ["records"]},
            headers=headers,
        )

        assert db.session.get(User, optometrist_a.id).permissions is None
