from __future__ import annotations

import asyncio
import io
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from PIL import Image

# Ensure repo root is on sys.path so `import institute` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from institute.core.config import SETTINGS  # noqa: E402
from institute.main import app  # noqa: E402
from institute.models.course import Course  # noqa: E402
from institute.repos.backends import course_repo, object_storage, table_store  # noqa: E402
from institute.services.auth_service import auth_backend  # noqa: E402
from institute.services.notification_bus import notification_bus  # noqa: E402
from institute.services.video_jobs import video_jobs  # noqa: E402

PASSWORD = "secret-pw"


@pytest.fixture(autouse=True)
def reset_tables() -> None:
    """Empty every in-memory table between tests."""
    if hasattr(table_store, "_tables"):
        for rows in table_store._tables.values():  # type: ignore[union-attr]
            rows.clear()


@pytest.fixture(autouse=True)
def reset_object_storage() -> None:
    if hasattr(object_storage, "objects"):
        object_storage.objects.clear()  # type: ignore[union-attr]


@pytest.fixture(autouse=True)
def reset_notifications() -> None:
    if hasattr(notification_bus, "_channels"):
        notification_bus._channels.clear()  # type: ignore[union-attr]


@pytest.fixture(autouse=True)
def reset_accounts() -> None:
    """Forget registered accounts and revoked sessions."""
    if hasattr(auth_backend, "_accounts"):
        auth_backend._accounts.clear()  # type: ignore[union-attr]
    blacklist = getattr(auth_backend, "_blacklist", None)
    if hasattr(blacklist, "_revoked"):
        blacklist._revoked.clear()  # type: ignore[union-attr]


@pytest.fixture(autouse=True)
def reset_video_jobs() -> None:
    video_jobs._jobs.clear()
    video_jobs._tasks.clear()
    video_jobs._finished_at.clear()


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


# ---------------------------------------------------------------------------
# Account helpers
# ---------------------------------------------------------------------------


def auth(token: str | None) -> dict[str, str]:
    if token is None:
        return {}
    return {"Authorization": f"Bearer {token}"}


def sign_up(client: TestClient, email: str, name: str = "Test Student") -> dict:
    resp = client.post(
        "/auth/register", json={"name": name, "email": email, "password": PASSWORD}
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["user"]


def log_in(client: TestClient, email: str) -> str:
    resp = client.post("/auth/login", json={"email": email, "password": PASSWORD})
    assert resp.status_code == 200, resp.text
    return resp.json()["accessToken"]


def sign_up_and_log_in(client: TestClient, email: str, name: str = "Test Student") -> str:
    sign_up(client, email, name)
    return log_in(client, email)


@pytest.fixture
def student_token(client: TestClient) -> str:
    return sign_up_and_log_in(client, "ada@example.com", "Ada Lovelace")


@pytest.fixture
def admin_token(client: TestClient) -> str:
    return sign_up_and_log_in(client, SETTINGS.admin_email, "Institute Admin")


def add_course(
    client: TestClient, admin_token: str, title: str = "Applied Statistics", **fields
) -> dict:
    resp = client.post(
        "/v1/courses", json={"title": title, **fields}, headers=auth(admin_token)
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


def seed_course(**fields) -> Course:
    """Store a course directly, bypassing the API."""
    course = Course.new(title=fields.pop("title", "Seeded Course"), **fields)
    return asyncio.run(course_repo.add(course))


def png_bytes(width: int = 40, height: int = 20, color: str = "black") -> bytes:
    out = io.BytesIO()
    Image.new("RGB", (width, height), color).save(out, format="PNG")
    return out.getvalue()
