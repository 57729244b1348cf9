from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any

from sqlalchemy.orm import Session

from replayer.config import get_settings
from replayer.db import get_engine
from replayer.services.replay.broker_channel import ChannelFactory
from replayer.services.replay.errors import NotFoundError, ReplayError
from replayer.services.replay.registry import JobRegistry, get_registry
from replayer.services.replay.types import JobState, QueueDefinition
from replayer.services.replay.validation import parse_definition
from replayer.store import get_stream, stream_definition


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stream-replay-runner",
        description="Replay one queue definition onto its topic and print the final state",
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--definition-json",
        default=None,
        help="JSON object with brokerAddress, topic and items",
    )
    source.add_argument(
        "--stream",
        default=None,
        help="Name of a saved stream to replay",
    )
    return parser


def _definition_from_json(raw: str) -> QueueDefinition:
    parsed = json.loads(raw)
    if not isinstance(parsed, dict):
        raise ReplayError("definition must be a JSON object")
    return parse_definition(
        broker_address=parsed.get("brokerAddress"),
        topic=parsed.get("topic"),
        items=parsed.get("items"),
    )


def _definition_from_store(name: str) -> QueueDefinition:
    with Session(get_engine()) as session:
        record = get_stream(session, name)
        if record is None:
            raise NotFoundError(f"stream not found: {name}")
        return stream_definition(record)


async def replay_definition(
    definition: QueueDefinition,
    *,
    channel_factory: ChannelFactory | None = None,
) -> JobState:
    registry = JobRegistry(channel_factory) if channel_factory is not None else get_registry()
    job_id, _ = registry.submit(definition)
    return await registry.join(job_id)


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=get_settings().log_level, stream=sys.stderr)

    try:
        if args.definition_json is not None:
            definition = _definition_from_json(args.definition_json)
        else:
            definition = _definition_from_store(args.stream)
    except (ReplayError, json.JSONDecodeError) as exc:
        print(f"[stream-replay-runner] failed: {exc}", file=sys.stderr, flush=True)
        raise SystemExit(1) from exc

    state = asyncio.run(replay_definition(definition))
    result: dict[str, Any] = state.to_dict()
    print(json.dumps(result), flush=True)
    if state.error is not None:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
