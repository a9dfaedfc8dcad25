from __future__ import annotations

from collections.abc import Sequence

import pytest
from fastapi.testclient import TestClient

from institute.services import ai_service
from institute.services.ai_service import AIServiceError, ChatTurn
from institute.services.video_jobs import video_jobs
from tests.conftest import add_course, auth


class _FakeChat:
    def __init__(self, reply: str | None = None) -> None:
        self.reply = reply
        self.calls: list[tuple[list[ChatTurn], str, str]] = []

    async def chat(
        self, history: Sequence[ChatTurn], message: str, *, system_instruction: str
    ) -> str:
        self.calls.append((list(history), message, system_instruction))
        if self.reply is None:
            raise AIServiceError("quota exceeded")
        return self.reply


@pytest.fixture(autouse=True)
def _no_ai(monkeypatch):
    monkeypatch.setattr(ai_service, "generative_ai", None)


def test_chat_unconfigured(client: TestClient, student_token: str) -> None:
    resp = client.post("/v1/ai/chat", json={"message": "hi"}, headers=auth(student_token))
    assert resp.status_code == 503


def test_chat_uses_catalog(
    client: TestClient, admin_token: str, student_token: str, monkeypatch
) -> None:
    add_course(client, admin_token, "Deep Learning", level="Advanced")
    fake = _FakeChat("Try Deep Learning.")
    monkeypatch.setattr(ai_service, "generative_ai", fake)

    resp = client.post(
        "/v1/ai/chat",
        json={
            "message": "What should I take next?",
            "history": [{"role": "user", "text": "I know Python"}],
        },
        headers=auth(student_token),
    )
    assert resp.status_code == 200
    assert resp.json() == {"reply": "Try Deep Learning."}

    [(history, message, instruction)] = fake.calls
    assert history == [ChatTurn(role="user", text="I know Python")]
    assert message == "What should I take next?"
    assert "Deep Learning (Advanced" in instruction


def test_chat_model_failure(client: TestClient, student_token: str, monkeypatch) -> None:
    monkeypatch.setattr(ai_service, "generative_ai", _FakeChat(None))
    resp = client.post("/v1/ai/chat", json={"message": "hi"}, headers=auth(student_token))
    assert resp.status_code == 502


def test_chat_rejects_empty_message(client: TestClient, student_token: str) -> None:
    resp = client.post("/v1/ai/chat", json={"message": ""}, headers=auth(student_token))
    assert resp.status_code == 422


def test_video_unconfigured(client: TestClient, student_token: str, monkeypatch) -> None:
    monkeypatch.setattr(video_jobs, "ai", None)
    resp = client.post(
        "/v1/ai/videos", json={"prompt": "a sunrise"}, headers=auth(student_token)
    )
    assert resp.status_code == 503


def test_unknown_video_job(client: TestClient, student_token: str) -> None:
    assert client.get("/v1/ai/videos/nope", headers=auth(student_token)).status_code == 404
    assert client.delete("/v1/ai/videos/nope", headers=auth(student_token)).status_code == 404
