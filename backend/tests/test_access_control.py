# Overview: Pytest coverage for the access-control gate.

import logging

import pytest
from flask import g

from optometry.decorators import require_page_access, require_permission, require_role
from optometry.errors import AuthorizationError
from optometry.extensions import db
from optometry.models import PermissionRecord, User
from optometry.permissions import MODULES, PAGES, Role
from optometry.services import access_control, permission_service


class TestAdminBypass:

    @pytest.mark.parametrize("module", MODULES)
    def test_admin_allowed_every_module(self, db_session, admin, module):
        assert access_control.authorize(admin, module, "delete")

    def test_admin_allowed_without_any_records(self, db_session, admin):
        assert db.session.query(PermissionRecord).count() == 0
        assert access_control.authorize(admin, "permissions", "manage")
        assert all(access_control.authorize_page(admin, page) for page in PAGES)

    def test_admin_allowed_any_shop(self, db_session, admin, shop_a, shop_b):
        assert access_control.authorize_shop(admin, shop_a[0].id)
        assert access_control.authorize_shop(admin, shop_b[0].id)


class TestStaffDecisions:

    def test_optometrist_defaults(self, db_session, optometrist_a):
        assert access_control.authorize(optometrist_a, "records", "view")
        assert access_control.authorize(optometrist_a, "records", "edit")
        assert not access_control.authorize(optometrist_a, "records", "delete")
        assert not access_control.authorize(optometrist_a, "users", "view")

    def test_unknown_module_denied(self, db_session, optometrist_a):
        assert not access_control.authorize(optometrist_a, "spaceships", "view")

    def test_receptionist_pages(self, db_session, receptionist_a):
        assert access_control.authorize_page(receptionist_a, "customers")
        assert not access_control.authorize_page(receptionist_a, "records")

    def test_shop_ownership(self, db_session, optometrist_a, shop_a, shop_b):
        assert access_control.authorize_shop(optometrist_a, shop_a[0].id)
        assert not access_control.authorize_shop(optometrist_a, shop_b[0].id)
        assert not access_control.authorize_shop(optometrist_a, None)

    def test_missing_registry_denies(self, db_session, shop_a, optometrist_a):
        db.session.query(PermissionRecord).filter_by(shop_id=shop_a[0].id).delete()
        db.session.commit()

        assert not access_control.authorize(optometrist_a, "records", "view")
        assert not access_control.authorize_page(optometrist_a, "dashboard")

    def test_registry_change_seen_on_next_check(self, db_session, shop_a, optometrist_a):
        shop, owner = shop_a
        assert not access_control.authorize(optometrist_a, "records", "delete")

        permission_service.update_role_permissions(
            shop.id,
            Role.OPTOMETRIST,
            permissions={"records": {"view": True, "delete": True}},
            page_access=["records"],
            actor_id=owner.id,
        )
        assert access_control.authorize(db.session.get(User, optometrist_a.id), "records", "delete")


class TestRaisingVariants:

    def test_require_permission_raises_403(self, db_session, optometrist_a):
        with pytest.raises(AuthorizationError) as exc_info:
            access_control.require_permission(optometrist_a, "records", "delete")

        assert exc_info.value.status_code == 403
        assert "delete records" in exc_info.value.message

    def test_require_page_access_raises(self, db_session, receptionist_a):
        with pytest.raises(AuthorizationError):
            access_control.require_page_access(receptionist_a, "records")

    def test_require_shop_access_custom_message(self, db_session, optometrist_a, shop_b):
        with pytest.raises(AuthorizationError) as exc_info:
            access_control.require_shop_access(optometrist_a, shop_b[0].id, "Not your shop")
        assert exc_info.value.message == "Not your shop"

    def test_require_role(self, db_session, optometrist_a, admin):
        access_control.require_role(admin, Role.ADMIN)
        with pytest.raises(AuthorizationError):
            access_control.require_role(optometrist_a, Role.SHOP_OWNER, Role.ADMIN)

    def test_denial_is_logged_and_changes_nothing(self, db_session, app, optometrist_a, caplog):
        before = [r.to_dict() for r in db.session.query(PermissionRecord).order_by(PermissionRecord.id)]

        with caplog.at_level(logging.WARNING, logger=app.logger.name):
            with pytest.raises(AuthorizationError):
                access_control.require_permission(optometrist_a, "records", "delete")

        assert any("Access denied" in r.getMessage() for r in caplog.records)
        after = [r.to_dict() for r in db.session.query(PermissionRecord).order_by(PermissionRecord.id)]
        assert before == after


class TestDecorators:

    @staticmethod
    def _guarded(decorator):
        @decorator
        def view():
            return "ok"
        return view

    def _call_as(self, app, user, view):
        with app.test_request_context("/"):
            g.current_user = user
            try:
                return view()
            finally:
                g.pop("current_user", None)

    def test_require_page_access(self, db_session, app, receptionist_a, optometrist_a):
        view = self._guarded(require_page_access("records"))

        denied, status = self._call_as(app, receptionist_a, view)
        assert status == 403
        assert denied.json["required_page"] == "records"
        assert self._call_as(app, optometrist_a, view) == "ok"

    def test_require_permission(self, db_session, app, optometrist_a, admin):
        view = self._guarded(require_permission("records", "delete"))

        denied, status = self._call_as(app, optometrist_a, view)
        assert status == 403
        assert denied.json["required_permission"] == "records:delete"
        assert self._call_as(app, admin, view) == "ok"

    def test_unauthenticated_is_401(self, db_session, app):
        view = self._guarded(require_role(Role.ADMIN))

        _, status = self._call_as(app, None, view)
        assert status == 401
