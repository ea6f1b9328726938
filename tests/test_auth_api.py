"""Registration, login and token verification through the API."""

from __future__ import annotations

from fastapi.testclient import TestClient

from app.utils.security import create_access_token
from tests.fakes import FakeSupabaseClient, bearer


def test_register_returns_token_and_stores_hash(client: TestClient, store: FakeSupabaseClient, register) -> None:
    body = register(name="Vera", email="Vera@Example.com")

    assert body["message"] == "User registered successfully"
    assert body["role"] == "Voter"
    assert body["token"]
    assert body["user"]["email"] == "vera@example.com"
    assert "password_hash" not in body["user"]

    stored = store.tables["users"][0]
    assert stored["password_hash"] != "secret123"
    assert stored["password_hash"].startswith("$2")


def test_register_duplicate_email_conflicts(client: TestClient, register) -> None:
    register(email="dup@example.com")
    response = client.post(
        "/api/auth/register",
        json={"name": "Again", "email": "dup@example.com", "password": "secret123"},
    )

    assert response.status_code == 409
    assert response.json() == {"error": "Email already registered", "code": "EMAIL_TAKEN"}


def test_register_missing_fields_is_bad_request(client: TestClient) -> None:
    response = client.post("/api/auth/register", json={"email": "x@example.com"})

    assert response.status_code == 400
    assert response.json()["code"] == "BAD_REQUEST"


def test_register_admin_requires_signup_code(client: TestClient) -> None:
    response = client.post(
        "/api/auth/register",
        json={
            "name": "Mallory",
            "email": "mallory@example.com",
            "password": "secret123",
            "type": "Admin",
            "adminCode": "guess",
        },
    )

    assert response.status_code == 403


def test_register_admin_with_code(register) -> None:
    body = register(name="Ada", email="ada@example.com", role="Admin")
    assert body["role"] == "Admin"


def test_login_and_profile(client: TestClient, register) -> None:
    register(name="Vera", email="vera@example.com", password="secret123")

    login = client.post(
        "/api/auth/login", json={"email": "vera@example.com", "password": "secret123"}
    )
    assert login.status_code == 200
    assert login.json()["message"] == "Login successful"

    profile = client.get("/api/auth/profile", headers=bearer(login.json()["token"]))
    assert profile.status_code == 200
    assert profile.json() == {
        "id": login.json()["user"]["id"],
        "name": "Vera",
        "email": "vera@example.com",
        "role": "Voter",
    }


def test_login_with_wrong_password_is_unauthorized(client: TestClient, register) -> None:
    register(email="vera@example.com")
    response = client.post(
        "/api/auth/login", json={"email": "vera@example.com", "password": "nope-nope"}
    )

    assert response.status_code == 401
    assert response.json()["error"] == "Invalid credentials"


def test_login_unknown_email_is_unauthorized(client: TestClient) -> None:
    response = client.post(
        "/api/auth/login", json={"email": "ghost@example.com", "password": "secret123"}
    )
    assert response.status_code == 401


def test_missing_token_is_unauthorized(client: TestClient) -> None:
    response = client.get("/api/auth/profile")

    assert response.status_code == 401
    assert response.json()["code"] == "UNAUTHORIZED"


def test_malformed_token_is_unauthorized(client: TestClient) -> None:
    response = client.get("/api/auth/profile", headers=bearer("not-a-jwt"))
    assert response.status_code == 401


def test_expired_token_is_unauthorized(client: TestClient, settings) -> None:
    token = create_access_token(
        "someone", "Voter", "V", secret=settings.jwt_secret, expires_minutes=-5
    )
    response = client.get("/api/auth/profile", headers=bearer(token))

    assert response.status_code == 401
    assert response.json()["error"] == "Token expired"


def test_profile_for_deleted_user_is_not_found(client: TestClient, store: FakeSupabaseClient, register) -> None:
    token = register(email="gone@example.com")["token"]
    store.tables["users"].clear()

    response = client.get("/api/auth/profile", headers=bearer(token))
    assert response.status_code == 404


def test_register_password_over_72_bytes_is_bad_request(client: TestClient, store: FakeSupabaseClient) -> None:
    response = client.post(
        "/api/auth/register",
        json={"name": "Mei", "email": "mei@example.com", "password": "密" * 30},
    )

    assert response.status_code == 400
    assert response.json()["code"] == "BAD_REQUEST"
    assert store.tables["users"] == []


def test_register_multibyte_password_within_limit(client: TestClient, register) -> None:
    register(name="Mei", email="mei@example.com", password="密" * 24)

    login = client.post("/api/auth/login", json={"email": "mei@example.com", "password": "密" * 24})
    assert login.status_code == 200
