from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
import logging

from replayer.services.replay.broker_channel import ChannelFactory
from replayer.services.replay.types import (
    Empty,
    JobState,
    JobStatus,
    Pause,
    QueueDefinition,
)

logger = logging.getLogger(__name__)


class ReplayJob:
    """Replays one queue definition onto its topic, item by item.

    Only the coroutine started by ``start`` writes ``status``, ``error`` and the
    acknowledged indices; ``get_state`` may be called from anywhere at any time.
    """

    def __init__(
        self,
        definition: QueueDefinition,
        *,
        channel_factory: ChannelFactory,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
        job_id: str | None = None,
    ) -> None:
        self.definition = definition
        self.job_id = job_id
        self.status = JobStatus.NOT_STARTED
        self.error: str | None = None
        self._acked: list[int] = []
        self._channel_factory = channel_factory
        self._sleep = sleep

    async def start(self) -> None:
        if self.status is not JobStatus.NOT_STARTED:
            return

        self.status = JobStatus.STARTING
        logger.info(
            "job starting id=%s broker=%s topic=%s items=%d",
            self.job_id,
            self.definition.broker_address,
            self.definition.topic,
            len(self.definition.items),
        )
        try:
            channel = self._channel_factory(self.definition.broker_address, self.definition.topic)
            await channel.initialize()
            self.status = JobStatus.CONNECTED

            for index, item in enumerate(self.definition.items):
                if isinstance(item, Empty):
                    continue
                if isinstance(item, Pause):
                    await self._sleep(item.duration_ms / 1000)
                    continue
                await channel.send(item)
                self._acked.append(index)
        except Exception as exc:
            self.error = f"internal error: {exc}, acked: {list(self._acked)}"
            self.status = JobStatus.ERRORED
            logger.error("queue halted id=%s error=%s", self.job_id, self.error)
            return

        self.status = JobStatus.DONE
        logger.info("job done id=%s acked=%d", self.job_id, len(self._acked))

    def get_state(self) -> JobState:
        return JobState(
            status=self.status,
            acked_indices=tuple(self._acked),
            error=self.error,
        )
