"""End-to-end: register, progress, request completion, admin review,
certificate."""

from __future__ import annotations

from fastapi.testclient import TestClient

from tests.conftest import add_course, auth, png_bytes


def _messages(client: TestClient, token: str) -> list[str]:
    return [n["message"] for n in client.get("/v1/notifications", headers=auth(token)).json()]


def test_full_completion_flow(
    client: TestClient, admin_token: str, student_token: str
) -> None:
    course = add_course(client, admin_token, "Business Intelligence", instructor="Dr. Chen")
    cid = course["id"]
    client.post(
        f"/v1/courses/{cid}/signature",
        files={"file": ("sig.png", png_bytes(), "image/png")},
        headers=auth(admin_token),
    )

    resp = client.post(f"/v1/courses/{cid}/enroll", headers=auth(student_token))
    assert resp.status_code == 201
    assert resp.json() == {
        "user_id": resp.json()["user_id"],
        "course_id": cid,
        "status": "registered",
        "progress": 0,
    }
    assert "Successfully registered for Business Intelligence!" in _messages(
        client, student_token
    )

    resp = client.put(
        f"/v1/enrollments/{cid}/progress", json={"progress": 60}, headers=auth(student_token)
    )
    assert resp.status_code == 200
    assert resp.json()["progress"] == 60

    resp = client.post(
        f"/v1/enrollments/{cid}/completion-request", headers=auth(student_token)
    )
    assert resp.status_code == 200
    assert resp.json()["status"] == "pending"

    # certificate not yet available
    assert client.get(f"/v1/certificates/{cid}", headers=auth(student_token)).status_code == 409

    queue = client.get("/admin/completion-requests", headers=auth(admin_token)).json()
    assert len(queue) == 1
    student_id = queue[0]["user"]["id"]
    assert queue[0]["course"]["title"] == "Business Intelligence"

    resp = client.post(
        f"/admin/completion-requests/{student_id}/{cid}/approve", headers=auth(admin_token)
    )
    assert resp.status_code == 200
    assert resp.json()["status"] == "completed"
    assert resp.json()["progress"] == 100
    assert "Approved completion for Ada Lovelace." in _messages(client, admin_token)

    assert client.get("/admin/completion-requests", headers=auth(admin_token)).json() == []

    me = client.get("/auth/me", headers=auth(student_token)).json()
    assert me["completed_course_ids"] == [cid]
    assert me["pending_course_ids"] == []

    cert = client.get(
        f"/v1/certificates/{cid}?template=elegant", headers=auth(student_token)
    ).json()
    assert cert["student_name"] == "Ada Lovelace"
    assert cert["course_title"] == "Business Intelligence"
    assert cert["instructor"] == "Dr. Chen"
    assert cert["template"] == "elegant"
    assert cert["signature_url"] is not None


def test_enroll_twice_conflicts(client: TestClient, admin_token: str, student_token: str) -> None:
    course = add_course(client, admin_token)
    client.post(f"/v1/courses/{course['id']}/enroll", headers=auth(student_token))
    resp = client.post(f"/v1/courses/{course['id']}/enroll", headers=auth(student_token))
    assert resp.status_code == 409
    assert "You are already registered for this training program." in _messages(
        client, student_token
    )


def test_enroll_unknown_course(client: TestClient, student_token: str) -> None:
    assert client.post("/v1/courses/nope/enroll", headers=auth(student_token)).status_code == 404


def test_progress_bounds(client: TestClient, admin_token: str, student_token: str) -> None:
    course = add_course(client, admin_token)
    client.post(f"/v1/courses/{course['id']}/enroll", headers=auth(student_token))
    for value in (-1, 101):
        resp = client.put(
            f"/v1/enrollments/{course['id']}/progress",
            json={"progress": value},
            headers=auth(student_token),
        )
        assert resp.status_code == 422


def test_progress_requires_enrollment(
    client: TestClient, admin_token: str, student_token: str
) -> None:
    course = add_course(client, admin_token)
    resp = client.put(
        f"/v1/enrollments/{course['id']}/progress",
        json={"progress": 10},
        headers=auth(student_token),
    )
    assert resp.status_code == 404


def test_reject_returns_to_registered(
    client: TestClient, admin_token: str, student_token: str
) -> None:
    course = add_course(client, admin_token)
    cid = course["id"]
    client.post(f"/v1/courses/{cid}/enroll", headers=auth(student_token))
    client.post(f"/v1/enrollments/{cid}/completion-request", headers=auth(student_token))
    student_id = client.get("/auth/me", headers=auth(student_token)).json()["id"]

    resp = client.post(
        f"/admin/completion-requests/{student_id}/{cid}/reject", headers=auth(admin_token)
    )
    assert resp.status_code == 200
    assert resp.json()["status"] == "registered"
    assert "Rejected completion for Ada Lovelace" in _messages(client, admin_token)

    # approving a non-pending enrollment is a conflict
    resp = client.post(
        f"/admin/completion-requests/{student_id}/{cid}/approve", headers=auth(admin_token)
    )
    assert resp.status_code == 409


def test_review_unknown_enrollment(client: TestClient, admin_token: str) -> None:
    resp = client.post("/admin/completion-requests/ghost/nope/approve", headers=auth(admin_token))
    assert resp.status_code == 404


def test_deleted_course_leaves_no_orphan_requests(
    client: TestClient, admin_token: str, student_token: str
) -> None:
    course = add_course(client, admin_token)
    cid = course["id"]
    client.post(f"/v1/courses/{cid}/enroll", headers=auth(student_token))
    client.post(f"/v1/enrollments/{cid}/completion-request", headers=auth(student_token))

    client.delete(f"/v1/courses/{cid}", headers=auth(admin_token))

    assert client.get("/admin/completion-requests", headers=auth(admin_token)).json() == []
    me = client.get("/auth/me", headers=auth(student_token)).json()
    assert me["registered_course_ids"] == []


def test_admin_user_list(client: TestClient, admin_token: str, student_token: str) -> None:
    resp = client.get("/admin/users", headers=auth(admin_token))
    assert resp.status_code == 200
    emails = sorted(u["email"] for u in resp.json())
    assert emails == ["ada@example.com", "admin@inst.example"]


def test_certificate_template_validated(
    client: TestClient, admin_token: str, student_token: str
) -> None:
    course = add_course(client, admin_token)
    resp = client.get(
        f"/v1/certificates/{course['id']}?template=gothic", headers=auth(student_token)
    )
    assert resp.status_code == 422
