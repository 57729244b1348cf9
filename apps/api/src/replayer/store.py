from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy.orm import Session

from replayer.models import StreamRecord
from replayer.services.replay import QueueDefinition, parse_definition


def save_stream(
    session: Session,
    *,
    name: str,
    broker_address: str,
    topic: str,
    items: list[Any],
) -> StreamRecord:
    record = StreamRecord(
        name=name,
        broker_address=broker_address,
        topic=topic,
        items=items,
        updated_at=datetime.now(timezone.utc),
    )
    record = session.merge(record)
    session.commit()
    return record


def get_stream(session: Session, name: str) -> StreamRecord | None:
    return session.get(StreamRecord, name)


def stream_definition(record: StreamRecord) -> QueueDefinition:
    return parse_definition(
        broker_address=record.broker_address,
        topic=record.topic,
        items=record.items,
    )


def stream_detail(record: StreamRecord) -> dict[str, Any]:
    return {
        "name": record.name,
        "brokerAddress": record.broker_address,
        "topic": record.topic,
        "items": record.items,
    }
