from __future__ import annotations

from fastapi.testclient import TestClient

from tests.conftest import add_course, auth


def test_notifications_are_per_user(
    client: TestClient, admin_token: str, student_token: str
) -> None:
    add_course(client, admin_token, "Data Viz")
    admin = [n["message"] for n in client.get("/v1/notifications", headers=auth(admin_token)).json()]
    student = [
        n["message"] for n in client.get("/v1/notifications", headers=auth(student_token)).json()
    ]
    assert "New training program created successfully" in admin
    assert "New training program created successfully" not in student


def test_dismiss(client: TestClient, student_token: str) -> None:
    [welcome] = client.get("/v1/notifications", headers=auth(student_token)).json()
    assert welcome["type"] == "success"

    resp = client.delete(f"/v1/notifications/{welcome['id']}", headers=auth(student_token))
    assert resp.status_code == 204
    assert client.get("/v1/notifications", headers=auth(student_token)).json() == []

    resp = client.delete(f"/v1/notifications/{welcome['id']}", headers=auth(student_token))
    assert resp.status_code == 404


def test_ids_increase(client: TestClient, admin_token: str) -> None:
    add_course(client, admin_token, "One")
    add_course(client, admin_token, "Two")
    ids = [n["id"] for n in client.get("/v1/notifications", headers=auth(admin_token)).json()]
    assert ids == sorted(ids)
    assert len(set(ids)) == len(ids)
