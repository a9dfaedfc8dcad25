from __future__ import annotations

from fastapi.testclient import TestClient

from institute.repos.backends import object_storage
from tests.conftest import add_course, auth, png_bytes


def test_catalog_is_public(client: TestClient, admin_token: str) -> None:
    add_course(client, admin_token, "SQL Fundamentals", level="Beginner", price=99)
    resp = client.get("/v1/courses")
    assert resp.status_code == 200
    [course] = resp.json()
    assert course["title"] == "SQL Fundamentals"
    assert course["price"] == 99


def test_create_course_with_explicit_id_and_tags(client: TestClient, admin_token: str) -> None:
    created = add_course(
        client,
        admin_token,
        "Deep Learning",
        id="dl-101",
        tags=[" ai ", "", "python"],
        level="Advanced",
        image="https://img.example/dl.png",
    )
    assert created["id"] == "dl-101"
    assert created["tags"] == ["ai", "python"]
    assert created["image"] == "https://img.example/dl.png"

    resp = client.get("/v1/courses/dl-101")
    assert resp.status_code == 200
    assert resp.json()["level"] == "Advanced"


def test_create_duplicate_id_conflicts(client: TestClient, admin_token: str) -> None:
    add_course(client, admin_token, "First", id="c-1")
    resp = client.post(
        "/v1/courses", json={"id": "c-1", "title": "Second"}, headers=auth(admin_token)
    )
    assert resp.status_code == 409


def test_create_validates_fields(client: TestClient, admin_token: str) -> None:
    for payload in (
        {"title": ""},
        {"title": "X", "price": -1},
        {"title": "X", "level": "Expert"},
    ):
        resp = client.post("/v1/courses", json=payload, headers=auth(admin_token))
        assert resp.status_code == 422, payload


def test_get_unknown_course(client: TestClient) -> None:
    assert client.get("/v1/courses/nope").status_code == 404


def test_partial_update(client: TestClient, admin_token: str) -> None:
    course = add_course(client, admin_token, "Statistics", price=50, instructor="Dr. Rao")
    resp = client.put(
        f"/v1/courses/{course['id']}", json={"price": 75}, headers=auth(admin_token)
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["price"] == 75
    assert body["instructor"] == "Dr. Rao"
    assert body["title"] == "Statistics"


def test_setting_image_url_replaces_uploaded_cover(
    client: TestClient, admin_token: str
) -> None:
    course = add_course(client, admin_token)
    client.post(
        f"/v1/courses/{course['id']}/image",
        files={"file": ("cover.png", png_bytes(), "image/png")},
        headers=auth(admin_token),
    )
    resp = client.put(
        f"/v1/courses/{course['id']}",
        json={"image": "https://img.example/new.png"},
        headers=auth(admin_token),
    )
    body = resp.json()
    assert body["image"] == "https://img.example/new.png"
    assert body["image_path"] is None


def test_saving_fetched_course_keeps_uploaded_cover(
    client: TestClient, admin_token: str
) -> None:
    course = add_course(client, admin_token)
    uploaded = client.post(
        f"/v1/courses/{course['id']}/image",
        files={"file": ("cover.png", png_bytes(), "image/png")},
        headers=auth(admin_token),
    ).json()

    fetched = client.get(f"/v1/courses/{course['id']}").json()
    fetched["price"] = 99
    editable = {k: fetched[k] for k in ("title", "price", "tags", "image")}
    resp = client.put(
        f"/v1/courses/{course['id']}", json=editable, headers=auth(admin_token)
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["price"] == 99
    assert body["image_path"] == uploaded["image_path"]
    assert "token=" in body["image"]

    again = client.get(f"/v1/courses/{course['id']}").json()
    assert again["image_path"] == uploaded["image_path"]
    assert again["image"] != fetched["image"]


def test_update_unknown_course(client: TestClient, admin_token: str) -> None:
    resp = client.put("/v1/courses/nope", json={"price": 1}, headers=auth(admin_token))
    assert resp.status_code == 404


def test_delete_course(client: TestClient, admin_token: str) -> None:
    course = add_course(client, admin_token)
    assert client.delete(f"/v1/courses/{course['id']}", headers=auth(admin_token)).status_code == 204
    assert client.get(f"/v1/courses/{course['id']}").status_code == 404
    assert client.delete(f"/v1/courses/{course['id']}", headers=auth(admin_token)).status_code == 404


def test_upload_cover_image(client: TestClient, admin_token: str) -> None:
    course = add_course(client, admin_token)
    resp = client.post(
        f"/v1/courses/{course['id']}/image",
        files={"file": ("cover.png", png_bytes(), "image/png")},
        headers=auth(admin_token),
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["image_path"].endswith(".png")
    assert "token=" in body["image"]

    # every read signs afresh
    listed = client.get(f"/v1/courses/{course['id']}").json()
    assert listed["image_path"] == body["image_path"]
    assert listed["image"] != body["image"]

    resp = client.delete(f"/v1/courses/{course['id']}/image", headers=auth(admin_token))
    assert resp.status_code == 200
    assert resp.json()["image"] is None
    assert object_storage.objects == {}  # type: ignore[attr-defined]


def test_upload_rejects_wrong_type_without_storing(client: TestClient, admin_token: str) -> None:
    course = add_course(client, admin_token)
    resp = client.post(
        f"/v1/courses/{course['id']}/image",
        files={"file": ("cover.gif", b"GIF89a", "image/gif")},
        headers=auth(admin_token),
    )
    assert resp.status_code == 422
    assert resp.json()["detail"] == "Invalid format. Use JPG, PNG, or WEBP."
    assert object_storage.objects == {}  # type: ignore[attr-defined]


def test_upload_rejects_oversized_signature(client: TestClient, admin_token: str) -> None:
    course = add_course(client, admin_token)
    resp = client.post(
        f"/v1/courses/{course['id']}/signature",
        files={"file": ("sig.png", b"\x89PNG" + b"0" * (2 * 1024 * 1024), "image/png")},
        headers=auth(admin_token),
    )
    assert resp.status_code == 422
    assert resp.json()["detail"] == "Image too large. Max 2MB."


def test_upload_signature_with_crop(client: TestClient, admin_token: str) -> None:
    course = add_course(client, admin_token)
    resp = client.post(
        f"/v1/courses/{course['id']}/signature",
        files={"file": ("sig.jpg", png_bytes(512, 224), "image/jpeg")},
        data={
            "crop_x": "0",
            "crop_y": "0",
            "crop_width": "256",
            "crop_height": "112",
            "remove_background": "true",
        },
        headers=auth(admin_token),
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["signature_path"].endswith(".png")
    assert body["signature_image"] is not None

    resp = client.delete(f"/v1/courses/{course['id']}/signature", headers=auth(admin_token))
    assert resp.json()["signature_path"] is None


def test_partial_crop_is_rejected(client: TestClient, admin_token: str) -> None:
    course = add_course(client, admin_token)
    resp = client.post(
        f"/v1/courses/{course['id']}/signature",
        files={"file": ("sig.png", png_bytes(), "image/png")},
        data={"crop_x": "0"},
        headers=auth(admin_token),
    )
    assert resp.status_code == 422


def test_upload_to_unknown_course(client: TestClient, admin_token: str) -> None:
    resp = client.post(
        "/v1/courses/nope/image",
        files={"file": ("cover.png", png_bytes(), "image/png")},
        headers=auth(admin_token),
    )
    assert resp.status_code == 404
