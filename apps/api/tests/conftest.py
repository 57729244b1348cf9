from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from replayer.config import get_settings
from replayer.db import Base, get_engine
from replayer.main import app, get_job_registry
from replayer.services.replay import JobRegistry, get_registry
from replayer.services.replay.types import Ack, Payload
from replayer.services.replay.validation import encode_payload


class FakeChannel:
    """In-memory broker channel recording every payload it is asked to send."""

    def __init__(
        self,
        broker_address: str,
        topic: str,
        *,
        fail_on_send: int | None = None,
        fail_on_initialize: bool = False,
    ) -> None:
        self.broker_address = broker_address
        self.topic = topic
        self.sent: list[Payload] = []
        self.initialized = False
        self._fail_on_send = fail_on_send
        self._fail_on_initialize = fail_on_initialize

    async def initialize(self) -> None:
        if self._fail_on_initialize:
            raise ConnectionRefusedError("broker unreachable")
        self.initialized = True

    async def send(self, item: Payload | None) -> Ack:
        if self._fail_on_send is not None and len(self.sent) == self._fail_on_send:
            raise RuntimeError("send rejected")
        encode_payload(item)
        assert item is not None
        self.sent.append(item)
        return Ack(topic=self.topic, partition=0, offset=len(self.sent) - 1)


class FakeChannelFactory:
    def __init__(self, **channel_options: object) -> None:
        self.channels: list[FakeChannel] = []
        self._channel_options = channel_options

    def __call__(self, broker_address: str, topic: str) -> FakeChannel:
        channel = FakeChannel(broker_address, topic, **self._channel_options)
        self.channels.append(channel)
        return channel


@pytest.fixture(autouse=True)
def reset_api_caches() -> Iterator[None]:
    get_settings.cache_clear()
    get_engine.cache_clear()
    get_registry.cache_clear()
    yield
    get_settings.cache_clear()
    get_engine.cache_clear()
    get_registry.cache_clear()


@pytest.fixture
def channel_factory() -> FakeChannelFactory:
    return FakeChannelFactory()


@pytest.fixture
def registry(channel_factory: FakeChannelFactory) -> JobRegistry:
    return JobRegistry(channel_factory)


@pytest.fixture
def client(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    registry: JobRegistry,
) -> Iterator[TestClient]:
    sqlite_db_path = tmp_path / "api-tests.db"
    monkeypatch.setenv("API_DATABASE_URL", f"sqlite+pysqlite:///{sqlite_db_path}")
    monkeypatch.setenv("API_DB_ECHO", "false")

    engine = get_engine()
    Base.metadata.create_all(bind=engine)
    app.dependency_overrides[get_job_registry] = lambda: registry

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    engine.dispose()
