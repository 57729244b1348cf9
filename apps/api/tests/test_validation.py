import pytest

from replayer.services.replay import QueueDefinition, ValidationError, parse_definition
from replayer.services.replay.types import Empty, Pause, Payload
from replayer.services.replay.validation import DEFAULT_KEY, encode_payload, parse_item


@pytest.mark.parametrize(
    ("kwargs", "message"),
    [
        ({"broker_address": None, "topic": "t", "items": ["x"]}, "brokerAddress is required"),
        ({"broker_address": "", "topic": "t", "items": ["x"]}, "brokerAddress is required"),
        ({"broker_address": "b:9092", "topic": "t", "items": []}, "at least one item is required"),
        ({"broker_address": "b:9092", "topic": "t", "items": None}, "at least one item is required"),
        ({"broker_address": "b:9092", "topic": "", "items": ["x"]}, "topic is required"),
    ],
)
def test_parse_definition_rejects_missing_fields(kwargs: dict, message: str) -> None:
    with pytest.raises(ValidationError, match=message):
        parse_definition(**kwargs)


def test_parse_definition_reports_broker_before_items_and_topic() -> None:
    with pytest.raises(ValidationError, match="brokerAddress is required"):
        parse_definition(broker_address=None, topic=None, items=None)


def test_queue_definition_cannot_be_built_with_empty_items() -> None:
    with pytest.raises(ValidationError, match="at least one item is required"):
        QueueDefinition(broker_address="b:9092", topic="t", items=())


def test_parse_item_decides_variant_once() -> None:
    assert parse_item(None) == Empty()
    assert parse_item("") == Empty()
    assert parse_item(0) == Empty()
    assert parse_item(False) == Empty()
    assert parse_item(True) == Empty()
    assert parse_item(float("nan")) == Empty()
    assert parse_item(250) == Pause(duration_ms=250)
    assert parse_item("hello") == Payload(body="hello")
    assert parse_item({"a": 1}) == Payload(body={"a": 1})
    assert parse_item({"payload": {"a": 1}, "key": "k"}) == Payload(body={"a": 1}, key="k")
    assert parse_item({"key": "k"}) == Payload(body=None, key="k")


def test_parse_item_rejects_negative_pause() -> None:
    with pytest.raises(ValidationError, match="must not be negative"):
        parse_item(-5)


def test_encode_payload_passes_strings_through_with_default_key() -> None:
    assert encode_payload(Payload(body="hello")) == ("hello", DEFAULT_KEY)


def test_encode_payload_serializes_records_compactly() -> None:
    value, key = encode_payload(Payload(body={"a": 1, "b": [1, 2]}, key="k1"))

    assert value == '{"a":1,"b":[1,2]}'
    assert key == "k1"


@pytest.mark.parametrize(
    ("item", "message"),
    [
        (None, "message cannot be empty"),
        (Pause(duration_ms=10), "messages can only be objects or strings"),
        (Payload(body=True), "messages can only be objects or strings"),
        (Payload(body=None, key="k1"), "payload is required if 'key' is present"),
    ],
)
def test_encode_payload_rejects_invalid_items(item: object, message: str) -> None:
    with pytest.raises(ValidationError, match=message):
        encode_payload(item)  # type: ignore[arg-type]


def test_parse_item_sends_empty_records_and_lists() -> None:
    assert parse_item({}) == Payload(body={})
    assert parse_item([]) == Payload(body=[])


def test_parse_item_treats_record_with_blank_envelope_fields_as_plain_record() -> None:
    record = {"key": None, "value": "x"}

    assert parse_item(record) == Payload(body=record)
    assert parse_item({"payload": "", "key": ""}) == Payload(body={"payload": "", "key": ""})
    assert encode_payload(parse_item(record)) == ('{"key":null,"value":"x"}', DEFAULT_KEY)


@pytest.mark.parametrize("raw", [float("inf"), float("-inf")])
def test_parse_item_rejects_non_finite_pause(raw: float) -> None:
    with pytest.raises(ValidationError, match="must be finite"):
        parse_item(raw)
