from replayer.services.replay.errors import (
    BrokerConnectionError,
    NotFoundError,
    ReplayError,
    TransportError,
    ValidationError,
)
from replayer.services.replay.job import ReplayJob
from replayer.services.replay.registry import JobRegistry, get_registry
from replayer.services.replay.types import JobState, JobStatus, QueueDefinition
from replayer.services.replay.validation import parse_definition

__all__ = [
    "BrokerConnectionError",
    "JobRegistry",
    "JobState",
    "JobStatus",
    "NotFoundError",
    "QueueDefinition",
    "ReplayError",
    "ReplayJob",
    "TransportError",
    "ValidationError",
    "get_registry",
    "parse_definition",
]
