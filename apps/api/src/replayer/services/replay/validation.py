from __future__ import annotations

from collections.abc import Mapping, Sequence
import json
import math
from typing import Any

from replayer.services.replay.errors import ValidationError
from replayer.services.replay.types import Empty, Item, Pause, Payload, QueueDefinition

DEFAULT_KEY = "0"


def _is_present(value: Any) -> bool:
    # Only blank scalars are absent; empty records and lists still count.
    if value is None or value is False:
        return False
    if isinstance(value, float) and math.isnan(value):
        return False
    if isinstance(value, (str, int, float)):
        return bool(value)
    return True


def parse_item(raw: Any) -> Item:
    """Decide the item variant once.

    Absent entries and values that are neither pauses nor payloads (``true``)
    are skipped at run time, never rejected.
    """
    if not _is_present(raw) or isinstance(raw, bool):
        return Empty()
    if isinstance(raw, (int, float)):
        if not math.isfinite(raw):
            raise ValidationError(f"pause duration must be finite: {raw}")
        if raw < 0:
            raise ValidationError(f"pause duration must not be negative: {raw}")
        return Pause(duration_ms=int(raw))
    if isinstance(raw, str):
        return Payload(body=raw)
    if isinstance(raw, Mapping):
        payload = raw.get("payload")
        key = raw.get("key")
        if _is_present(payload) or _is_present(key):
            return Payload(
                body=payload if _is_present(payload) else None,
                key=str(key) if _is_present(key) else None,
            )
        return Payload(body=raw)
    if isinstance(raw, list):
        return Payload(body=raw)
    return Empty()


def parse_definition(
    *,
    broker_address: str | None,
    topic: str | None,
    items: Sequence[Any] | None,
) -> QueueDefinition:
    if not broker_address:
        raise ValidationError("brokerAddress is required")
    if not items:
        raise ValidationError("at least one item is required")
    if not topic:
        raise ValidationError("topic is required")
    return QueueDefinition(
        broker_address=broker_address,
        topic=topic,
        items=tuple(parse_item(raw) for raw in items),
    )


def encode_payload(item: Payload | None) -> tuple[str, str]:
    """Validate a payload item and return its wire ``(value, key)`` pair.

    String bodies pass through unchanged; structured bodies are serialized to
    compact JSON. Items without a key are routed with ``DEFAULT_KEY``.
    """
    if item is None:
        raise ValidationError("message cannot be empty")
    if not isinstance(item, Payload):
        raise ValidationError("messages can only be objects or strings")
    if item.key and item.body is None:
        raise ValidationError("payload is required if 'key' is present")

    body = item.body
    if body is None:
        raise ValidationError("message cannot be empty")
    if isinstance(body, str):
        value = body
    elif isinstance(body, (Mapping, list)):
        value = json.dumps(body, separators=(",", ":"), ensure_ascii=False)
    else:
        raise ValidationError("messages can only be objects or strings")

    return value, item.key or DEFAULT_KEY
