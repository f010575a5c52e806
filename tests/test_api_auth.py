"""Integration tests for the login flow over HTTP.

Tests the complete flow including:
- Login with credentials and the emailed code
- Session cookie attributes
- Generic error responses
- Logout
"""

from banking_portal.core.config import settings
from banking_portal.core.session import SessionStore
from banking_portal.core.security import decode_session_token
from banking_portal.models.otp import OtpCode
from banking_portal.models.user import User
from banking_portal.seed import DEMO_PASSWORD

from conftest import wrong_code


def _login(client, user_id="1972000", password=DEMO_PASSWORD):
    return client.post("/api/auth/login", json={"user_id": user_id, "password": password})


def _session_state(client, db):
    sid = decode_session_token(client.cookies.get(settings.SESSION_COOKIE_NAME))
    db.expire_all()
    return SessionStore(db).load(sid)


class TestLoginFlow:
    def test_end_to_end_login(self, client, notifier, db):
        response = _login(client)

        assert response.status_code == 200
        assert response.json()["requires_otp"] is True
        member = db.query(User).filter(User.user_id == "1972000").one()
        assert _session_state(client, db).pending_user_id == member.id
        assert _session_state(client, db).is_authenticated is False

        row = db.query(OtpCode).one()
        assert row.purpose == "login"
        assert row.used is False
        assert 9 * 60 < (row.expires_at - row.created_at).total_seconds() <= 10 * 60 + 1

        assert client.get("/api/auth/me").status_code == 401

        response = client.post("/api/auth/verify-otp", json={"code": notifier.last_code("login"), "purpose": "login"})
        assert response.status_code == 200
        assert response.json()["purpose"] == "login"

        state = _session_state(client, db)
        assert state.is_authenticated is True
        assert state.user_id == member.id
        assert state.pending_user_id is None
        db.expire_all()
        assert db.query(OtpCode).one().used is True

        me = client.get("/api/auth/me")
        assert me.status_code == 200
        assert me.json()["user_id"] == "1972000"
        assert "password_hash" not in me.json()

    def test_session_cookie_is_http_only_with_one_day_lifetime(self, client):
        response = _login(client)

        cookie = response.headers["set-cookie"].lower()
        assert cookie.startswith(settings.SESSION_COOKIE_NAME.lower() + "=")
        assert "httponly" in cookie
        assert "max-age=86400" in cookie

    def test_session_id_changes_on_elevation(self, client, notifier):
        _login(client)
        pending_sid = decode_session_token(client.cookies.get(settings.SESSION_COOKIE_NAME))

        client.post("/api/auth/verify-otp", json={"code": notifier.last_code("login"), "purpose": "login"})
        elevated_sid = decode_session_token(client.cookies.get(settings.SESSION_COOKIE_NAME))

        assert elevated_sid and elevated_sid != pending_sid

    def test_bad_credentials_are_reported_identically(self, client, notifier, db):
        unknown = _login(client, user_id="9999999")
        wrong_secret = _login(client, password="Mate@201")

        assert unknown.status_code == wrong_secret.status_code == 401
        assert unknown.json() == wrong_secret.json() == {"detail": "Invalid credentials"}
        assert "set-cookie" not in unknown.headers
        assert "set-cookie" not in wrong_secret.headers
        assert notifier.otps == []
        assert db.query(OtpCode).count() == 0

    def test_inactive_member_is_reported_like_a_wrong_password(self, client, db):
        member = db.query(User).filter(User.user_id == "197200").one()
        member.is_active = False
        db.commit()

        response = _login(client, user_id="197200")

        assert response.status_code == 401
        assert response.json() == {"detail": "Invalid credentials"}

    def test_verify_without_login_has_no_pending_challenge(self, client):
        response = client.post("/api/auth/verify-otp", json={"code": "123456", "purpose": "login"})

        assert response.status_code == 400
        assert response.json() == {"detail": "No pending authentication"}

    def test_wrong_code_keeps_session_pending(self, client, notifier, db):
        _login(client)
        code = notifier.last_code("login")

        response = client.post("/api/auth/verify-otp", json={"code": wrong_code(code), "purpose": "login"})
        assert response.status_code == 401
        assert response.json() == {"detail": "Invalid or expired code"}
        assert _session_state(client, db).is_authenticated is False

        response = client.post("/api/auth/verify-otp", json={"code": code, "purpose": "login"})
        assert response.status_code == 200

    def test_blank_purpose_is_rejected(self, client):
        _login(client)

        response = client.post("/api/auth/verify-otp", json={"code": "123456", "purpose": "   "})

        assert response.status_code == 400

    def test_malformed_code_fails_validation(self, client):
        response = client.post("/api/auth/verify-otp", json={"code": "123", "purpose": "login"})
        assert response.status_code == 422

    def test_notification_failure_is_reported_and_state_kept(self, client, notifier, db):
        notifier.fail_otp = True

        response = _login(client)

        assert response.status_code == 502
        assert response.json() == {"detail": "Unable to send verification code. Please try again later."}
        assert db.query(OtpCode).count() == 1
        member = db.query(User).filter(User.user_id == "1972000").one()
        assert _session_state(client, db).pending_user_id == member.id


class TestLogout:
    def test_logout_ends_authenticated_session(self, member_client, db):
        sid = decode_session_token(member_client.cookies.get(settings.SESSION_COOKIE_NAME))
        assert member_client.get("/api/accounts").status_code == 200

        response = member_client.post("/api/auth/logout")

        assert response.status_code == 200
        assert SessionStore(db).load(sid) is None
        assert member_client.get("/api/accounts").status_code == 401

    def test_logout_without_session_is_harmless(self, client):
        assert client.post("/api/auth/logout").status_code == 200


def test_protected_routes_require_authentication(client):
    for path in ("/api/auth/me", "/api/accounts", "/api/bill-payments", "/api/cheque-orders", "/api/external-accounts"):
        response = client.get(path)
        assert response.status_code == 401
        assert response.json() == {"detail": "Authentication required"}


def test_pending_session_is_not_authenticated(client):
    _login(client)
    assert client.get("/api/accounts").status_code == 401


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}
