"""Generative AI: course advisor chat and text-to-video.

The GenerativeAI protocol keeps the Gemini SDK out of the rest of the
code; tests substitute a fake.  When GEMINI_API_KEY is not configured
``generative_ai`` is None and the AI endpoints answer 503.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any, Literal, Protocol, runtime_checkable

from google import genai
from google.genai import errors, types

from institute.core.config import SETTINGS
from institute.models.course import Course

logger = logging.getLogger(__name__)


class AIServiceError(Exception):
    """The model API failed or returned nothing usable."""


class AINotConfiguredError(Exception):
    pass


@dataclass(frozen=True, slots=True)
class ChatTurn:
    role: Literal["user", "model"]
    text: str


@dataclass(frozen=True, slots=True)
class VideoPoll:
    handle: Any
    done: bool
    video_uri: str | None = None
    error: str | None = None


@runtime_checkable
class GenerativeAI(Protocol):
    async def chat(
        self, history: Sequence[ChatTurn], message: str, *, system_instruction: str
    ) -> str: ...

    async def start_video(self, prompt: str, *, aspect_ratio: str = "16:9") -> Any:
        """Submit a generation request; returns an opaque operation handle."""
        ...

    async def poll_video(self, handle: Any) -> VideoPoll: ...


class GeminiAI:
    def __init__(self, api_key: str, chat_model: str, video_model: str) -> None:
        self._client = genai.Client(api_key=api_key)
        self.chat_model = chat_model
        self.video_model = video_model

    async def chat(
        self, history: Sequence[ChatTurn], message: str, *, system_instruction: str
    ) -> str:
        session = self._client.aio.chats.create(
            model=self.chat_model,
            config=types.GenerateContentConfig(system_instruction=system_instruction),
            history=[
                types.Content(role=turn.role, parts=[types.Part(text=turn.text)])
                for turn in history
            ],
        )
        try:
            response = await session.send_message(message)
        except errors.APIError as exc:
            logger.warning("Gemini chat failed: %s", exc)
            raise AIServiceError(str(exc)) from exc
        if not response or not response.text:
            raise AIServiceError("Empty response from Gemini API.")
        return response.text

    async def start_video(self, prompt: str, *, aspect_ratio: str = "16:9") -> Any:
        try:
            return await self._client.aio.models.generate_videos(
                model=self.video_model,
                prompt=prompt,
                config=types.GenerateVideosConfig(
                    number_of_videos=1, aspect_ratio=aspect_ratio
                ),
            )
        except errors.APIError as exc:
            logger.warning("Gemini video request failed: %s", exc)
            raise AIServiceError(str(exc)) from exc

    async def poll_video(self, handle: Any) -> VideoPoll:
        try:
            operation = await self._client.aio.operations.get(handle)
        except errors.APIError as exc:
            raise AIServiceError(str(exc)) from exc
        if not operation.done:
            return VideoPoll(handle=operation, done=False)
        if operation.error:
            return VideoPoll(handle=operation, done=True, error=str(operation.error))
        videos = operation.response.generated_videos if operation.response else None
        if not videos or videos[0].video is None:
            return VideoPoll(handle=operation, done=True, error="No video was returned.")
        return VideoPoll(handle=operation, done=True, video_uri=videos[0].video.uri)


def advisor_instruction(courses: Iterable[Course]) -> str:
    """System prompt for the course advisor, grounded in the live catalog."""
    lines = [
        "You are a friendly learning advisor for a data and AI training institute.",
        "Recommend training programs from the catalog below, answer questions "
        "about them, and keep answers short. If nothing fits, say so.",
        "",
        "Catalog:",
    ]
    for c in courses:
        tags = ", ".join(c.tags)
        lines.append(
            f"- {c.title} ({c.level}, {c.duration or 'self-paced'}, "
            f"price {c.price:g}) by {c.instructor or 'TBA'}"
            + (f" [{tags}]" if tags else "")
        )
    return "\n".join(lines)


if SETTINGS.gemini_api_key:
    generative_ai: GenerativeAI | None = GeminiAI(
        SETTINGS.gemini_api_key, SETTINGS.gemini_chat_model, SETTINGS.gemini_video_model
    )
else:
    generative_ai = None
