# Overview: Pytest coverage for the outlet account-status gate.

"""
Account-Status Gate Tests

SECURITY TESTS: an outlet may act only while its account is ACTIVE, decided
against the live outlets row on every request.

Verifies:
1. Deactivation mid-session fails the very next request with ACCOUNT_DEACTIVATED
2. The gated request terminates every session of the caller
3. PENDING and INACTIVE are distinguishable
4. Every outlet route is gated, and login is refused while not ACTIVE
"""

import pytest

from wholesale.errors import AccountDeactivatedError
from wholesale.models import SecurityEvent, SessionToken, OUTLET_ACTIVE, OUTLET_INACTIVE, OUTLET_PENDING
from wholesale.services import order_service, session_service
from wholesale.services.account_status_service import check_account_status, require_outlet_active
from wholesale.validation import PlaceOrderRequest


OUTLET_ROUTES = [
    ("GET", "/api/outlet/account/status"),
    ("GET", "/api/outlet/account"),
    ("GET", "/api/outlet/products"),
    ("GET", "/api/outlet/orders"),
    ("GET", "/api/outlet/orders/1"),
    ("POST", "/api/outlet/orders"),
]


def login_token(client, email, password="Password123"):
    resp = client.post("/api/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.json
    return resp.json["token"]


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


class TestMidSessionDeactivation:

    def test_next_request_fails_after_operator_deactivates(self, client, db_session, active_outlet, operator_headers):
        outlet, user = active_outlet
        token = login_token(client, user.email)

        assert client.get("/api/outlet/products", headers=bearer(token)).status_code == 200

        resp = client.patch(f"/api/admin/outlets/{outlet.id}", json={"status": "INACTIVE"}, headers=operator_headers)
        assert resp.status_code == 200
        assert resp.json["outlet"]["status"] == OUTLET_INACTIVE

        # Authentication alone still succeeds with the prior token
        assert session_service.validate_session(token) is not None

        resp = client.get("/api/outlet/products", headers=bearer(token))
        assert resp.status_code == 403
        assert resp.json["code"] == "ACCOUNT_DEACTIVATED"
        assert resp.json["account_status"] == OUTLET_INACTIVE
        assert resp.json["session_terminated"] is True

        # Session was terminated by the gate
        resp = client.get("/api/outlet/products", headers=bearer(token))
        assert resp.status_code == 401

    def test_validate_fails_after_operator_deactivates(self, client, db_session, active_outlet, operator_headers):
        outlet, user = active_outlet
        token = login_token(client, user.email)
        assert client.post("/api/auth/validate", headers=bearer(token)).json["account_status"] == OUTLET_ACTIVE

        client.patch(f"/api/admin/outlets/{outlet.id}", json={"status": "INACTIVE"}, headers=operator_headers)

        resp = client.post("/api/auth/validate", headers=bearer(token))
        assert resp.status_code == 403
        assert resp.json["code"] == "ACCOUNT_DEACTIVATED"
        assert resp.json["account_status"] == OUTLET_INACTIVE
        assert resp.json["session_terminated"] is True

        assert client.post("/api/auth/validate", headers=bearer(token)).status_code == 401
        assert db_session.query(SecurityEvent).filter_by(event_type="ACCOUNT_DEACTIVATED").count() == 1

    def test_all_sessions_revoked(self, client, db_session, active_outlet):
        outlet, user = active_outlet
        first = login_token(client, user.email)
        second = login_token(client, user.email)

        outlet.status = OUTLET_INACTIVE
        db_session.commit()

        assert client.get("/api/outlet/orders", headers=bearer(first)).status_code == 403
        assert client.get("/api/outlet/orders", headers=bearer(second)).status_code == 401

        active = db_session.query(SessionToken).filter_by(user_id=user.id, is_revoked=False).count()
        assert active == 0

    def test_denial_recorded_as_security_event(self, client, db_session, active_outlet):
        outlet, user = active_outlet
        token = login_token(client, user.email)
        outlet.status = OUTLET_INACTIVE
        db_session.commit()

        client.post("/api/outlet/orders", json={"items": []}, headers=bearer(token))

        event = db_session.query(SecurityEvent).filter_by(event_type="ACCOUNT_DEACTIVATED").one()
        assert event.user_id == user.id
        assert event.outlet_id == outlet.id
        assert event.success is False

    def test_gate_runs_before_validation(self, client, db_session, active_outlet):
        """A deactivated outlet learns it is deactivated, not that its payload is malformed."""
        outlet, user = active_outlet
        token = login_token(client, user.email)
        outlet.status = OUTLET_INACTIVE
        db_session.commit()

        resp = client.post("/api/outlet/orders", json={"items": "garbage"}, headers=bearer(token))
        assert resp.status_code == 403
        assert resp.json["code"] == "ACCOUNT_DEACTIVATED"


class TestPendingVersusInactive:

    def test_pending_is_distinguishable(self, client, db_session, active_outlet):
        outlet, user = active_outlet
        token = login_token(client, user.email)
        outlet.status = OUTLET_PENDING
        db_session.commit()

        resp = client.get("/api/outlet/account/status", headers=bearer(token))
        assert resp.status_code == 403
        assert resp.json["account_status"] == OUTLET_PENDING
        assert "awaiting approval" in resp.json["error"]

    def test_inactive_message(self, client, db_session, active_outlet):
        outlet, user = active_outlet
        token = login_token(client, user.email)
        outlet.status = OUTLET_INACTIVE
        db_session.commit()

        resp = client.get("/api/outlet/account/status", headers=bearer(token))
        assert resp.json["account_status"] == OUTLET_INACTIVE
        assert "deactivated" in resp.json["error"]

    def test_check_account_status_is_pure_read(self, db_session, active_outlet, pending_outlet):
        outlet, _ = active_outlet
        assert check_account_status(outlet.id) == {"outlet_id": outlet.id, "status": OUTLET_ACTIVE, "can_transact": True}
        assert check_account_status(pending_outlet.id)["can_transact"] is False
        assert check_account_status(987654)["status"] is None

    def test_require_outlet_active_missing_outlet(self, db_session):
        with pytest.raises(AccountDeactivatedError) as exc:
            require_outlet_active(987654)
        assert exc.value.account_status is None


class TestEveryOutletRouteGated:

    @pytest.mark.parametrize("method,path", OUTLET_ROUTES)
    def test_inactive_outlet_denied(self, client, db_session, active_outlet, method, path):
        outlet, user = active_outlet
        token = login_token(client, user.email)
        outlet.status = OUTLET_INACTIVE
        db_session.commit()

        resp = getattr(client, method.lower())(path, headers=bearer(token), json={} if method == "POST" else None)
        assert resp.status_code == 403, f"{method} {path} returned {resp.status_code}"
        assert resp.json["code"] == "ACCOUNT_DEACTIVATED"

    @pytest.mark.parametrize("method,path", OUTLET_ROUTES)
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401

    @pytest.mark.parametrize("method,path", OUTLET_ROUTES)
    def test_distributor_is_not_an_outlet(self, client, distributor_headers, method, path):
        resp = getattr(client, method.lower())(path, headers=distributor_headers, json={} if method == "POST" else None)
        assert resp.status_code == 403
        assert resp.json["code"] == "UNAUTHORIZED"


class TestLoginAndCheckout:

    @pytest.mark.parametrize("status", [OUTLET_PENDING, OUTLET_INACTIVE])
    def test_login_refused_when_not_active(self, client, db_session, active_outlet, status):
        outlet, user = active_outlet
        outlet.status = status
        db_session.commit()

        resp = client.post("/api/auth/login", json={"email": user.email, "password": "Password123"})
        assert resp.status_code == 403
        assert resp.json["code"] == "ACCOUNT_DEACTIVATED"
        assert resp.json["account_status"] == status
        assert "token" not in resp.json

        event = db_session.query(SecurityEvent).filter_by(event_type="LOGIN_DENIED_ACCOUNT_STATUS").one()
        assert event.outlet_id == outlet.id

    def test_wrong_password_does_not_reveal_status(self, client, db_session, active_outlet):
        outlet, user = active_outlet
        outlet.status = OUTLET_INACTIVE
        db_session.commit()

        resp = client.post("/api/auth/login", json={"email": user.email, "password": "WrongPass999"})
        assert resp.status_code == 401
        assert "account_status" not in resp.json

    def test_reactivation_restores_access(self, client, db_session, active_outlet, operator_headers):
        outlet, user = active_outlet
        client.patch(f"/api/admin/outlets/{outlet.id}", json={"status": "INACTIVE"}, headers=operator_headers)
        client.patch(f"/api/admin/outlets/{outlet.id}", json={"status": "ACTIVE"}, headers=operator_headers)

        token = login_token(client, user.email)
        assert client.get("/api/outlet/account/status", headers=bearer(token)).json["can_transact"] is True

    def test_checkout_rechecks_status(self, db_session, active_outlet, distributor, make_product):
        """place_order refuses an inactive outlet even when called past the HTTP gate."""
        outlet, _ = active_outlet
        p = make_product(distributor, stock_quantity=5)
        request = PlaceOrderRequest.from_payload(
            {"items": [{"product_id": p.id, "quantity": 1, "unit_price_cents": p.price_cents}]}
        )
        outlet.status = OUTLET_INACTIVE
        db_session.commit()

        with pytest.raises(AccountDeactivatedError):
            order_service.place_order(outlet.id, request)
        assert p.stock_quantity == 5

    def test_change_password_gated(self, client, db_session, active_outlet):
        outlet, user = active_outlet
        token = login_token(client, user.email)
        outlet.status = OUTLET_INACTIVE
        db_session.commit()

        resp = client.post(
            "/api/auth/change-password",
            json={"current_password": "Password123", "new_password": "NewPassword456"},
            headers=bearer(token),
        )
        assert resp.status_code == 403
        assert resp.json["code"] == "ACCOUNT_DEACTIVATED"
