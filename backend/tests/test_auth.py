# Overview: Pytest coverage for login, logout, session validation and password change.

from datetime import timedelta

import pytest

from wholesale.models import SecurityEvent, SessionToken
from wholesale.services import session_service
from wholesale.services.auth_service import PasswordValidationError, validate_password_strength


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


class TestLogin:

    def test_login_returns_token(self, client, distributor):
        resp = client.post("/api/auth/login", json={"email": "DIST-A@test.local", "password": "Password123"})
        assert resp.status_code == 200
        assert len(resp.json["token"]) == 64
        assert resp.json["user"]["role"] == "DISTRIBUTOR"

    def test_token_stored_hashed(self, client, db_session, distributor):
        token = client.post("/api/auth/login", json={"email": distributor.email, "password": "Password123"}).json["token"]
        stored = db_session.query(SessionToken).filter_by(user_id=distributor.id).one()
        assert stored.token_hash != token
        assert stored.token_hash == session_service.hash_token(token)

    def test_bad_credentials(self, client, db_session, distributor):
        resp = client.post("/api/auth/login", json={"email": distributor.email, "password": "Nope12345"})
        assert resp.status_code == 401
        assert db_session.query(SecurityEvent).filter_by(event_type="LOGIN_FAILED").count() == 1

    def test_missing_fields(self, client, db_session):
        assert client.post("/api/auth/login", json={"email": "x@y.z"}).status_code == 400

    def test_disabled_identity_cannot_login(self, client, db_session, distributor):
        distributor.is_active = False
        db_session.commit()
        resp = client.post("/api/auth/login", json={"email": distributor.email, "password": "Password123"})
        assert resp.status_code == 401


class TestSessions:

    def test_validate_and_logout(self, client, distributor):
        token = client.post("/api/auth/login", json={"email": distributor.email, "password": "Password123"}).json["token"]

        resp = client.post("/api/auth/validate", headers=bearer(token))
        assert resp.status_code == 200
        assert resp.json["user"]["id"] == distributor.id
        assert "account_status" not in resp.json

        assert client.post("/api/auth/logout", headers=bearer(token)).status_code == 200
        assert client.post("/api/auth/validate", headers=bearer(token)).status_code == 401
        assert client.post("/api/auth/logout", headers=bearer(token)).status_code == 401

    def test_validate_reports_outlet_status(self, client, active_outlet):
        _, user = active_outlet
        token = client.post("/api/auth/login", json={"email": user.email, "password": "Password123"}).json["token"]
        resp = client.post("/api/auth/validate", headers=bearer(token))
        assert resp.json["account_status"] == "ACTIVE"

    def test_idle_timeout(self, client, db_session, distributor):
        token = client.post("/api/auth/login", json={"email": distributor.email, "password": "Password123"}).json["token"]
        session = db_session.query(SessionToken).filter_by(user_id=distributor.id).one()
        session.last_used_at = session.last_used_at - session_service.SESSION_IDLE_TIMEOUT - timedelta(minutes=1)
        db_session.commit()

        assert session_service.validate_session(token) is None
        db_session.refresh(session)
        assert session.is_revoked is True

    def test_absolute_timeout(self, client, db_session, distributor):
        token = client.post("/api/auth/login", json={"email": distributor.email, "password": "Password123"}).json["token"]
        session = db_session.query(SessionToken).filter_by(user_id=distributor.id).one()
        session.expires_at = session.created_at - timedelta(seconds=1)
        db_session.commit()

        assert client.post("/api/auth/validate", headers=bearer(token)).status_code == 401

    def test_garbage_token(self, client, db_session):
        assert client.post("/api/auth/validate", headers=bearer("not-a-token")).status_code == 401
        assert client.post("/api/auth/validate", headers={"Authorization": "Basic abc"}).status_code == 401


class TestChangePassword:

    def test_change_password_revokes_other_sessions(self, client, distributor):
        creds = {"email": distributor.email, "password": "Password123"}
        current = client.post("/api/auth/login", json=creds).json["token"]
        other = client.post("/api/auth/login", json=creds).json["token"]

        resp = client.post(
            "/api/auth/change-password",
            json={"current_password": "Password123", "new_password": "Different456"},
            headers=bearer(current),
        )
        assert resp.status_code == 200

        assert client.post("/api/auth/validate", headers=bearer(current)).status_code == 200
        assert client.post("/api/auth/validate", headers=bearer(other)).status_code == 401

        assert client.post("/api/auth/login", json=creds).status_code == 401
        assert client.post("/api/auth/login", json={"email": distributor.email, "password": "Different456"}).status_code == 200

    @pytest.mark.parametrize(
        "body",
        [
            {"current_password": "WrongPass1", "new_password": "Different456"},
            {"current_password": "Password123", "new_password": "short1"},
            {"current_password": "Password123", "new_password": "nodigitshere"},
            {"current_password": "Password123"},
        ],
    )
    def test_change_password_rejected(self, client, distributor_headers, body):
        resp = client.post("/api/auth/change-password", json=body, headers=distributor_headers)
        assert resp.status_code == 400


class TestPasswordStrength:

    @pytest.mark.parametrize("password", ["short1", "allletters", "12345678", ""])
    def test_weak(self, password):
        with pytest.raises(PasswordValidationError):
            validate_password_strength(password)

    def test_strong(self):
        validate_password_strength("Password123")
