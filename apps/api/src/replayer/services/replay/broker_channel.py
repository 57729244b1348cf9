from __future__ import annotations

import asyncio
from collections.abc import Callable
import logging
from typing import Any, Protocol

from confluent_kafka import KafkaException, Producer

from replayer.services.replay.errors import BrokerConnectionError, TransportError
from replayer.services.replay.types import Ack, Payload
from replayer.services.replay.validation import encode_payload

logger = logging.getLogger(__name__)


class BrokerChannel(Protocol):
    async def initialize(self) -> None: ...

    async def send(self, item: Payload | None) -> Ack: ...


ChannelFactory = Callable[[str, str], BrokerChannel]


class KafkaBrokerChannel:
    """Producer connection bound to one topic on one Kafka cluster.

    The underlying ``confluent_kafka.Producer`` is blocking, so metadata and
    flush round trips run in a worker thread and the caller only suspends.
    """

    def __init__(
        self,
        broker_address: str,
        topic: str,
        *,
        required_acks: int = 1,
        ack_timeout_ms: int = 100,
        connect_timeout_seconds: float = 10.0,
        flush_timeout_seconds: float = 10.0,
        producer_factory: Callable[[dict[str, Any]], Any] = Producer,
    ) -> None:
        self.broker_address = broker_address
        self.topic = topic
        self._required_acks = required_acks
        self._ack_timeout_ms = ack_timeout_ms
        self._connect_timeout_seconds = connect_timeout_seconds
        self._flush_timeout_seconds = flush_timeout_seconds
        self._producer_factory = producer_factory
        self._producer: Any | None = None

    def producer_config(self) -> dict[str, Any]:
        return {
            "bootstrap.servers": self.broker_address,
            "client.id": "stream-replayer",
            "acks": self._required_acks,
            "request.timeout.ms": self._ack_timeout_ms,
            # Same key, same partition: keeps relative order per key.
            "partitioner": "murmur2_random",
            "retries": 0,
            # A report never arrives after send() has already given up.
            "message.timeout.ms": int(self._flush_timeout_seconds * 1000),
        }

    async def initialize(self) -> None:
        if self._producer is not None:
            raise RuntimeError("broker channel is already initialized")

        try:
            producer = self._producer_factory(self.producer_config())
            await asyncio.to_thread(producer.list_topics, timeout=self._connect_timeout_seconds)
        except KafkaException as exc:
            raise BrokerConnectionError(
                f"cannot connect to broker {self.broker_address}: {exc}"
            ) from exc

        self._producer = producer
        logger.info("broker channel ready broker=%s topic=%s", self.broker_address, self.topic)

    async def send(self, item: Payload | None) -> Ack:
        value, key = encode_payload(item)
        if self._producer is None:
            raise RuntimeError("broker channel is not initialized")

        reports: list[tuple[Any, Any]] = []

        def _on_delivery(err: Any, msg: Any) -> None:
            reports.append((err, msg))

        try:
            self._producer.produce(
                self.topic,
                value=value.encode("utf-8"),
                key=key.encode("utf-8"),
                on_delivery=_on_delivery,
            )
        except (BufferError, KafkaException) as exc:
            raise TransportError(f"producer fail to write: {exc}", cause=exc) from exc

        pending = await asyncio.to_thread(self._producer.flush, self._flush_timeout_seconds)
        if not reports:
            raise TransportError(
                f"delivery not confirmed within {self._flush_timeout_seconds}s "
                f"({pending} message(s) pending)"
            )

        err, msg = reports[0]
        if err is not None:
            logger.error("producer fail to write topic=%s error=%s", self.topic, err)
            raise TransportError(f"producer fail to write: {err}", cause=err)

        ack = Ack(topic=msg.topic(), partition=msg.partition(), offset=msg.offset())
        logger.debug("delivered topic=%s partition=%s offset=%s", ack.topic, ack.partition, ack.offset)
        return ack


def kafka_channel_factory(
    *,
    required_acks: int = 1,
    ack_timeout_ms: int = 100,
    connect_timeout_seconds: float = 10.0,
    flush_timeout_seconds: float = 10.0,
) -> ChannelFactory:
    def _factory(broker_address: str, topic: str) -> BrokerChannel:
        return KafkaBrokerChannel(
            broker_address,
            topic,
            required_acks=required_acks,
            ack_timeout_ms=ack_timeout_ms,
            connect_timeout_seconds=connect_timeout_seconds,
            flush_timeout_seconds=flush_timeout_seconds,
        )

    return _factory
