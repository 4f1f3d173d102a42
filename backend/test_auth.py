"""Registration, login, token handling and role gates."""
from datetime import timedelta

from conftest import PASSWORD, auth_headers
from pharmatrust.core.config import settings
from pharmatrust.core.rate_limiter import RateLimiter, rate_limiter
from pharmatrust.core.security import create_access_token
from pharmatrust.models import User


def test_missing_token_is_401(client):
    resp = client.get("/api/medicines")
    assert resp.status_code == 401
    assert resp.json() == {"success": False, "message": "Not authorized, no token provided"}
    assert resp.headers["www-authenticate"] == "Bearer"


def test_invalid_and_expired_tokens_rejected(client, cashier):
    garbage = client.get("/api/medicines", headers={"Authorization": "Bearer not-a-jwt"})
    assert garbage.status_code == 401

    expired = create_access_token(str(cashier.id), cashier.role, expires_delta=timedelta(minutes=-1))
    resp = client.get("/api/medicines", headers={"Authorization": f"Bearer {expired}"})
    assert resp.status_code == 401
    assert resp.json()["message"] == "Invalid or expired token"


def test_deactivated_user_rejected(client, make_user):
    user = make_user("pharmacist", is_active=False)
    resp = client.get("/api/medicines", headers=auth_headers(user))
    assert resp.status_code == 401
    assert resp.json()["message"] == "Account is deactivated"


def test_register_returns_user_and_token(client):
    resp = client.post(
        "/api/auth/register",
        json={
            "name": "Neha Gupta",
            "email": "Neha@PharmaTrust.in",
            "password": "neha1234",
            "phone": "9812345678",
        },
    )

    assert resp.status_code == 201, resp.text
    data = resp.json()["data"]
    assert data["user"]["email"] == "neha@pharmatrust.in"
    assert data["user"]["role"] == "cashier"
    assert "hashedPassword" not in data["user"]
    assert data["token"]

    profile = client.get("/api/auth/profile", headers={"Authorization": f"Bearer {data['token']}"})
    assert profile.json()["data"]["user"]["name"] == "Neha Gupta"


def test_register_with_profile_image(client):
    resp = client.post(
        "/api/auth/register",
        data={"name": "Image User", "email": "img@pharmatrust.in", "password": "secret123"},
        files={"profileImage": ("me.gif", b"GIF89a-fake", "image/gif")},
    )
    assert resp.status_code == 201, resp.text
    assert resp.json()["data"]["user"]["role"] == "cashier"
    assert resp.json()["data"]["user"]["profileImage"].startswith("uploads/profiles/profileImage-")


def test_register_rejects_duplicates_and_short_passwords(client, cashier):
    dup = client.post(
        "/api/auth/register",
        json={"name": "Copy", "email": cashier.email, "password": "secret123"},
    )
    assert dup.status_code == 409

    short = client.post(
        "/api/auth/register",
        json={"name": "Short", "email": "short@pharmatrust.in", "password": "abc"},
    )
    assert short.status_code == 400
    assert f"at least {settings.MIN_PASSWORD_LENGTH} characters" in short.json()["message"]

    bad_role = client.post(
        "/api/auth/register",
        json={"name": "Root", "email": "root@pharmatrust.in", "password": "secret123", "role": "owner"},
    )
    assert bad_role.status_code == 400


def test_anonymous_cannot_register_elevated_roles(client, db):
    for role in ("admin", "pharmacist"):
        resp = client.post(
            "/api/auth/register",
            json={"name": "Walk In", "email": f"{role}@walkin.in", "password": "secret123", "role": role},
        )
        assert resp.status_code == 403
        assert resp.json()["message"] == "You do not have permission to perform this action"

    assert db.query(User).count() == 0


def test_non_admin_session_cannot_register_elevated_roles(client, pharmacist_headers):
    resp = client.post(
        "/api/auth/register",
        json={"name": "Boss", "email": "boss@pharmatrust.in", "password": "secret123", "role": "admin"},
        headers=pharmacist_headers,
    )
    assert resp.status_code == 403


def test_admin_registers_staff_with_role(client, admin, admin_headers):
    resp = client.post(
        "/api/auth/register",
        json={"name": "Kiran Rao", "email": "kiran@pharmatrust.in", "password": "secret123", "role": "pharmacist"},
        headers=admin_headers,
    )

    assert resp.status_code == 201, resp.text
    assert resp.json()["data"]["user"]["role"] == "pharmacist"
    # the admin keeps their own session
    assert settings.TOKEN_COOKIE_NAME not in resp.cookies


def test_stale_token_registers_as_cashier(client):
    resp = client.post(
        "/api/auth/register",
        json={"name": "Old Tab", "email": "oldtab@pharmatrust.in", "password": "secret123"},
        headers={"Authorization": "Bearer not-a-jwt"},
    )
    assert resp.status_code == 201
    assert resp.json()["data"]["user"]["role"] == "cashier"


def test_login_sets_cookie_session(client, pharmacist):
    resp = client.post("/api/auth/login", json={"email": pharmacist.email, "password": PASSWORD})

    assert resp.status_code == 200
    assert resp.json()["message"] == "Login successful"
    assert resp.json()["data"]["token"]
    assert settings.TOKEN_COOKIE_NAME in resp.cookies

    # cookie alone authenticates
    profile = client.get("/api/auth/profile")
    assert profile.status_code == 200
    assert profile.json()["data"]["user"]["id"] == pharmacist.id

    out = client.post("/api/auth/logout")
    assert out.status_code == 200
    client.cookies.clear()
    assert client.get("/api/auth/profile").status_code == 401


def test_login_failure_is_generic(client, pharmacist):
    wrong = client.post("/api/auth/login", json={"email": pharmacist.email, "password": "wrong-pass"})
    unknown = client.post("/api/auth/login", json={"email": "ghost@pharmatrust.in", "password": PASSWORD})

    assert wrong.status_code == unknown.status_code == 401
    assert wrong.json()["message"] == unknown.json()["message"] == "Invalid email or password"


def test_update_profile(client, cashier, cashier_headers):
    resp = client.put(
        "/api/auth/profile",
        json={"name": "Chitra R", "phone": "9000000001", "role": "admin"},
        headers=cashier_headers,
    )
    assert resp.status_code == 200
    user = resp.json()["data"]["user"]
    assert user["name"] == "Chitra R"
    assert user["phone"] == "9000000001"
    assert user["role"] == "cashier"


def test_user_list_is_admin_only(client, admin_headers, cashier_headers):
    assert client.get("/api/auth/users", headers=cashier_headers).status_code == 403

    resp = client.get("/api/auth/users", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["count"] == 2


def test_root_health_and_unknown_route(client):
    root = client.get("/")
    assert root.json()["data"]["endpoints"]["sales"] == "/api/sales"
    assert client.get("/health").json() == {"status": "ok"}

    missing = client.get("/api/nothing-here")
    assert missing.status_code == 404
    assert missing.json() == {
        "success": False,
        "message": "Route not found! Please check the API documentation.",
    }


def test_security_headers(client):
    resp = client.get("/health")
    assert resp.headers["x-content-type-options"] == "nosniff"
    assert resp.headers["x-frame-options"] == "DENY"


def test_rate_limiter_window_slides():
    limiter = RateLimiter(requests=2, window=60)

    assert limiter.hit("ip:1.2.3.4", now=0) == (True, 1)
    assert limiter.hit("ip:1.2.3.4", now=10) == (True, 0)
    assert limiter.hit("ip:1.2.3.4", now=20) == (False, 0)
    # other callers have their own budget
    assert limiter.hit("token:abc", now=20) == (True, 1)
    # first hit has left the window
    assert limiter.hit("ip:1.2.3.4", now=61) == (True, 0)


def test_throttled_requests_get_envelope(client, monkeypatch):
    monkeypatch.setattr(rate_limiter, "requests", 1)

    first = client.post("/api/auth/login", json={"email": "a@pharmatrust.in", "password": "x"})
    assert first.headers["x-ratelimit-remaining"] == "0"

    second = client.post("/api/auth/login", json={"email": "a@pharmatrust.in", "password": "x"})
    assert second.status_code == 429
    assert second.json()["success"] is False
    assert second.headers["retry-after"] == str(rate_limiter.window)
