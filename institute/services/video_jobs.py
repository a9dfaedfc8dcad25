"""Background polling of text-to-video generation.

Generation takes minutes, so ``start`` submits the request and returns a
job at once; an asyncio task then polls the operation every
``poll_interval`` seconds.  A job ends in exactly one of:

  succeeded   the operation produced a video URI
  failed      the operation, the API or the transport reported an error
  timed_out   max_attempts polls or timeout_seconds elapsed first
  cancelled   the owner cancelled it (or the app shut down)

The job id doubles as the cancellation token.  Finished jobs stay
readable for ``retention_seconds``, then are evicted.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from collections.abc import Callable
from dataclasses import replace
from typing import Any

from institute.core.config import SETTINGS
from institute.core.metrics import VIDEO_JOBS
from institute.models.video import VideoJob, VideoJobStatus
from institute.services.ai_service import (
    AINotConfiguredError,
    AIServiceError,
    GenerativeAI,
    generative_ai,
)

logger = logging.getLogger(__name__)


class VideoJobNotFoundError(Exception):
    pass


class VideoJobManager:
    def __init__(
        self,
        ai: GenerativeAI | None,
        *,
        poll_interval: float,
        max_attempts: int,
        timeout_seconds: float,
        retention_seconds: float = 3600,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ai = ai
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts
        self.timeout_seconds = timeout_seconds
        self.retention_seconds = retention_seconds
        self._clock = clock
        self._jobs: dict[str, VideoJob] = {}
        self._tasks: dict[str, asyncio.Task] = {}
        self._finished_at: dict[str, float] = {}

    def _evict(self) -> None:
        cutoff = self._clock() - self.retention_seconds
        for job_id in [j for j, t in self._finished_at.items() if t <= cutoff]:
            del self._finished_at[job_id]
            self._jobs.pop(job_id, None)

    async def start(self, owner_id: str, prompt: str, *, aspect_ratio: str = "16:9") -> VideoJob:
        self._evict()
        if self.ai is None:
            raise AINotConfiguredError("video generation is not configured")
        handle = await self.ai.start_video(prompt, aspect_ratio=aspect_ratio)
        job = VideoJob(id=str(uuid.uuid4()), owner_id=owner_id, prompt=prompt)
        self._jobs[job.id] = job
        self._tasks[job.id] = asyncio.create_task(
            self._run(job.id, self.ai, handle), name=f"video-job-{job.id}"
        )
        logger.info("Video job %s started for user=%s", job.id, owner_id)
        return job

    def get(self, job_id: str, owner_id: str) -> VideoJob:
        self._evict()
        job = self._jobs.get(job_id)
        if job is None or job.owner_id != owner_id:
            raise VideoJobNotFoundError(job_id)
        return job

    def cancel(self, job_id: str, owner_id: str) -> VideoJob:
        job = self.get(job_id, owner_id)
        if job.finished:
            return job
        job = self._finish(job_id, "cancelled")
        task = self._tasks.pop(job_id, None)
        if task is not None:
            task.cancel()
        return job

    async def shutdown(self) -> None:
        tasks = list(self._tasks.values())
        for job_id in list(self._tasks):
            if not self._jobs[job_id].finished:
                self._finish(job_id, "cancelled")
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()

    def _finish(
        self,
        job_id: str,
        status: VideoJobStatus,
        *,
        video_uri: str | None = None,
        error: str | None = None,
    ) -> VideoJob:
        job = replace(self._jobs[job_id], status=status, video_uri=video_uri, error=error)
        self._jobs[job_id] = job
        self._finished_at[job_id] = self._clock()
        VIDEO_JOBS.labels(outcome=status).inc()
        logger.info("Video job %s finished: %s", job_id, status)
        return job

    async def _run(self, job_id: str, ai: GenerativeAI, handle: Any) -> None:
        try:
            async with asyncio.timeout(self.timeout_seconds):
                await self._poll(job_id, ai, handle)
        except TimeoutError:
            self._finish(job_id, "timed_out", error="Video generation timed out.")
        except AIServiceError as exc:
            self._finish(job_id, "failed", error=str(exc))
        except asyncio.CancelledError:
            job = self._jobs.get(job_id)
            if job is not None and not job.finished:
                self._finish(job_id, "cancelled")
            raise
        except Exception:
            logger.exception("Video job %s crashed while polling", job_id)
            self._finish(job_id, "failed", error="Video generation failed.")
        finally:
            self._tasks.pop(job_id, None)

    async def _poll(self, job_id: str, ai: GenerativeAI, handle: Any) -> None:
        for attempt in range(1, self.max_attempts + 1):
            await asyncio.sleep(self.poll_interval)
            poll = await ai.poll_video(handle)
            handle = poll.handle
            self._jobs[job_id] = replace(self._jobs[job_id], attempts=attempt)
            if poll.done:
                if poll.video_uri:
                    self._finish(job_id, "succeeded", video_uri=poll.video_uri)
                else:
                    self._finish(job_id, "failed", error=poll.error or "No video was returned.")
                return
        self._finish(
            job_id,
            "timed_out",
            error=f"No result after {self.max_attempts} polls.",
        )


video_jobs = VideoJobManager(
    generative_ai,
    poll_interval=SETTINGS.video_poll_interval_seconds,
    max_attempts=SETTINGS.video_poll_max_attempts,
    timeout_seconds=SETTINGS.video_job_timeout_seconds,
    retention_seconds=SETTINGS.video_job_retention_seconds,
)
