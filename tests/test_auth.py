"""Unit tests for the auth endpoints."""

from fastapi.testclient import TestClient

from conftest import auth, register_and_login


def test_register_user(client: TestClient):
    response = client.post(
        "/auth/register",
        json={"email": "u1@ex.com", "password": "pwd1", "name": "Test User"},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["accessToken"]
    assert data["tokenType"] == "bearer"
    assert data["user"]["email"] == "u1@ex.com"
    assert data["user"]["name"] == "Test User"
    assert "hashedPassword" not in data["user"]


def test_register_duplicate_email(client: TestClient):
    payload = {"email": "u2@ex.com", "password": "pwd1", "name": "Test User"}
    client.post("/auth/register", json=payload)

    response = client.post("/auth/register", json={**payload, "name": "Another User"})
    assert response.status_code == 409
    body = response.json()
    assert body["success"] is False
    assert "already registered" in body["message"].lower()


def test_register_invalid_email(client: TestClient):
    response = client.post(
        "/auth/register",
        json={"email": "not-an-email", "password": "pwd1", "name": "X"},
    )
    assert response.status_code == 400
    assert response.json()["error_code"] == "validation_error"


def test_login_user(client: TestClient):
    client.post(
        "/auth/register",
        json={"email": "u3@ex.com", "password": "pwd1", "name": "Test User"},
    )
    response = client.post("/auth/login", json={"email": "u3@ex.com", "password": "pwd1"})
    assert response.status_code == 200
    assert "accessToken" in response.json()


def test_login_invalid_credentials(client: TestClient):
    response = client.post(
        "/auth/login",
        json={"email": "nonexistent@ex.com", "password": "wrongpassword"},
    )
    assert response.status_code == 401
    assert response.json()["error_code"] == "unauthorized"


def test_get_current_user(client: TestClient):
    token = register_and_login(client, "Meg")
    response = client.get("/auth/me", headers=auth(token))
    assert response.status_code == 200
    assert response.json()["name"] == "Meg"


def test_unauthorized_access(client: TestClient):
    response = client.get("/auth/me")
    assert response.status_code == 401
    assert response.headers.get("www-authenticate") == "Bearer"


def test_garbage_token_rejected(client: TestClient):
    response = client.get("/auth/me", headers=auth("not-a-jwt"))
    assert response.status_code == 401


def test_token_subject_roundtrip():
    import uuid

    from quiz_builder.core.security import issue_token, token_subject

    user_id = uuid.uuid4()
    assert token_subject(issue_token(user_id)) == str(user_id)
    assert token_subject("garbage") is None


def test_password_over_bcrypt_limit_rejected(client: TestClient):
    response = client.post(
        "/auth/register",
        json={"email": "long@ex.com", "password": "x" * 73, "name": "Long"},
    )
    assert response.status_code == 400
