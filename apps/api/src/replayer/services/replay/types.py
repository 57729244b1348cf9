from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from replayer.services.replay.errors import ValidationError


@dataclass(frozen=True)
class Pause:
    duration_ms: int


@dataclass(frozen=True)
class Payload:
    body: Any
    key: str | None = None


@dataclass(frozen=True)
class Empty:
    pass


Item = Union[Pause, Payload, Empty]


@dataclass(frozen=True)
class QueueDefinition:
    broker_address: str
    topic: str
    items: tuple[Item, ...]

    def __post_init__(self) -> None:
        if not isinstance(self.broker_address, str) or not self.broker_address:
            raise ValidationError("brokerAddress is required")
        if not self.items:
            raise ValidationError("at least one item is required")
        if not isinstance(self.topic, str) or not self.topic:
            raise ValidationError("topic is required")


class JobStatus(str, Enum):
    NOT_STARTED = "NotStarted"
    STARTING = "Starting"
    CONNECTED = "Connected"
    DONE = "Done"
    ERRORED = "Errored"


@dataclass(frozen=True)
class Ack:
    topic: str
    partition: int
    offset: int


@dataclass(frozen=True)
class JobState:
    status: JobStatus
    acked_indices: tuple[int, ...]
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        state: dict[str, Any] = {
            "status": self.status.value,
            "ackedIndices": list(self.acked_indices),
        }
        if self.error is not None:
            state["error"] = self.error
        return state
