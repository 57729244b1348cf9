from __future__ import annotations

import asyncio
from functools import lru_cache
import logging
import uuid

from replayer.config import get_settings
from replayer.services.replay.broker_channel import ChannelFactory, kafka_channel_factory
from replayer.services.replay.errors import NotFoundError
from replayer.services.replay.job import ReplayJob
from replayer.services.replay.types import JobState, QueueDefinition

logger = logging.getLogger(__name__)


class JobRegistry:
    """Process-wide map from job id to ``ReplayJob``.

    Jobs are never evicted: the map grows for the lifetime of the process so
    that a poller never sees a job disappear.
    """

    def __init__(self, channel_factory: ChannelFactory) -> None:
        self._channel_factory = channel_factory
        self._jobs: dict[str, ReplayJob] = {}
        self._tasks: dict[str, asyncio.Task[None]] = {}

    def submit(self, definition: QueueDefinition) -> tuple[str, JobState]:
        """Register a job and schedule it on the running event loop.

        Returns before the job makes any progress, so the returned state is
        always ``NotStarted``.
        """
        loop = asyncio.get_running_loop()
        job_id = str(uuid.uuid4())
        job = ReplayJob(definition, channel_factory=self._channel_factory, job_id=job_id)
        self._jobs[job_id] = job

        task = loop.create_task(job.start(), name=f"replay-job-{job_id}")
        self._tasks[job_id] = task
        task.add_done_callback(lambda _: self._tasks.pop(job_id, None))

        logger.info("job submitted id=%s topic=%s", job_id, definition.topic)
        return job_id, job.get_state()

    def get(self, job_id: str) -> ReplayJob:
        job = self._jobs.get(job_id)
        if job is None:
            raise NotFoundError(f"job not found: {job_id}")
        return job

    async def join(self, job_id: str) -> JobState:
        job = self.get(job_id)
        task = self._tasks.get(job_id)
        if task is not None:
            await task
        return job.get_state()

    def __len__(self) -> int:
        return len(self._jobs)


@lru_cache
def get_registry() -> JobRegistry:
    settings = get_settings()
    return JobRegistry(
        kafka_channel_factory(
            required_acks=settings.broker_required_acks,
            ack_timeout_ms=settings.broker_ack_timeout_ms,
            connect_timeout_seconds=settings.broker_connect_timeout_seconds,
            flush_timeout_seconds=settings.broker_flush_timeout_seconds,
        )
    )
