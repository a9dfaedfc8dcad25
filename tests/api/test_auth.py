from __future__ import annotations

from fastapi.testclient import TestClient

from institute.services.auth_service import SIGN_UP_MESSAGE
from tests.conftest import PASSWORD, auth, log_in, sign_up


def test_register_returns_message_without_session(client: TestClient) -> None:
    resp = client.post(
        "/auth/register",
        json={"name": "Grace", "email": "Grace@Example.com", "password": PASSWORD},
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["message"] == SIGN_UP_MESSAGE
    assert body["user"]["email"] == "grace@example.com"
    assert body["user"]["role"] == "student"
    assert "accessToken" not in body


def test_register_rejects_bad_email(client: TestClient) -> None:
    resp = client.post(
        "/auth/register", json={"name": "X", "email": "not-an-email", "password": PASSWORD}
    )
    assert resp.status_code == 422


def test_register_requires_name(client: TestClient) -> None:
    resp = client.post(
        "/auth/register", json={"name": "  ", "email": "x@example.com", "password": PASSWORD}
    )
    assert resp.status_code == 422


def test_register_duplicate_email(client: TestClient) -> None:
    sign_up(client, "dup@example.com")
    resp = client.post(
        "/auth/register",
        json={"name": "Dup", "email": "dup@example.com", "password": PASSWORD},
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "User already registered"


def test_register_short_password(client: TestClient) -> None:
    resp = client.post(
        "/auth/register", json={"name": "S", "email": "s@example.com", "password": "123"}
    )
    assert resp.status_code == 400


def test_login_wrong_password(client: TestClient) -> None:
    sign_up(client, "ada@example.com")
    resp = client.post(
        "/auth/login", json={"email": "ada@example.com", "password": "wrong-password"}
    )
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Invalid login credentials"


def test_login_returns_token_and_role(client: TestClient) -> None:
    sign_up(client, "ada@example.com", "Ada")
    resp = client.post("/auth/login", json={"email": "ADA@example.com", "password": PASSWORD})
    assert resp.status_code == 200
    body = resp.json()
    assert body["accessToken"]
    assert body["user"] == {
        "id": body["user"]["id"],
        "email": "ada@example.com",
        "name": "Ada",
        "role": "student",
    }


def test_admin_email_gets_admin_role(client: TestClient, admin_token: str) -> None:
    resp = client.get("/auth/me", headers=auth(admin_token))
    assert resp.status_code == 200
    assert resp.json()["role"] == "admin"


def test_me_returns_user_aggregate(client: TestClient, student_token: str) -> None:
    resp = client.get("/auth/me", headers=auth(student_token))
    assert resp.status_code == 200
    body = resp.json()
    assert body["name"] == "Ada Lovelace"
    assert body["registered_course_ids"] == []
    assert body["course_progress"] == {}


def test_me_requires_token(client: TestClient) -> None:
    assert client.get("/auth/me").status_code == 401
    assert client.get("/auth/me", headers=auth("garbage")).status_code == 401


def test_login_posts_welcome_and_logout_posts_goodbye(client: TestClient) -> None:
    sign_up(client, "ada@example.com", "Ada")
    token = log_in(client, "ada@example.com")
    messages = [n["message"] for n in client.get("/v1/notifications", headers=auth(token)).json()]
    assert messages == ["Welcome, Ada!"]

    assert client.post("/auth/logout", headers=auth(token)).status_code == 204
    assert client.get("/auth/me", headers=auth(token)).status_code == 401
    # logout is idempotent
    assert client.post("/auth/logout", headers=auth(token)).status_code == 204
