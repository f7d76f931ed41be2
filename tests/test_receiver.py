"""Tests de ingesta de telemetría."""

import json
from datetime import datetime, timezone
from unittest.mock import MagicMock

from sqlalchemy.exc import OperationalError

from common.config import SENSOR_TOPIC
from common.tables import sensor_data
from cooling_api.mqtt.receiver import TelemetryReceiver
from cooling_api.queries import get_latest_sensor_reading


def _encode(data) -> bytes:
    return json.dumps(data).encode("utf-8")


def test_valid_message_persists_one_reading(session_factory, row_count):
    receiver = TelemetryReceiver(session_factory, SENSOR_TOPIC)
    before = datetime.now(timezone.utc)

    reading = receiver.handle(SENSOR_TOPIC, _encode({"umidade": 55.2, "temperatura": 23.1}))

    assert reading is not None
    assert reading.humidity == 55.2
    assert reading.temperature == 23.1
    assert reading.timestamp >= before
    assert row_count(sensor_data) == 1

    db = session_factory()
    try:
        stored = get_latest_sensor_reading(db)
    finally:
        db.close()
    assert stored.id == reading.id
    assert stored.humidity == 55.2
    assert stored.temperature == 23.1
    assert stored.timestamp.replace(tzinfo=None) >= before.replace(tzinfo=None)

    assert receiver.stats.received == 1
    assert receiver.stats.saved == 1
    assert receiver.stats.dropped == 0
    assert receiver.stats.last_reading_id == reading.id


def test_each_message_is_a_new_row(session_factory, row_count):
    receiver = TelemetryReceiver(session_factory, SENSOR_TOPIC)

    first = receiver.handle(SENSOR_TOPIC, _encode({"umidade": 50, "temperatura": 20}))
    second = receiver.handle(SENSOR_TOPIC, _encode({"umidade": 50, "temperatura": 20}))

    assert first.id != second.id
    assert row_count(sensor_data) == 2


def test_invalid_json_is_dropped(session_factory, row_count):
    receiver = TelemetryReceiver(session_factory, SENSOR_TOPIC)

    assert receiver.handle(SENSOR_TOPIC, b"{not json") is None
    assert receiver.handle(SENSOR_TOPIC, b"\xff\xfe") is None

    assert row_count(sensor_data) == 0
    assert receiver.stats.received == 2
    assert receiver.stats.rejected == 2


def test_invalid_payload_is_dropped(session_factory, row_count):
    receiver = TelemetryReceiver(session_factory, SENSOR_TOPIC)

    assert receiver.handle(SENSOR_TOPIC, _encode({"umidade": 55.2})) is None
    assert receiver.handle(SENSOR_TOPIC, _encode([55.2, 23.1])) is None

    assert row_count(sensor_data) == 0
    assert receiver.stats.rejected == 2


def test_other_topics_are_ignored(session_factory, row_count):
    receiver = TelemetryReceiver(session_factory, SENSOR_TOPIC)

    assert receiver.handle("coolingSystem/controles", _encode({"umidade": 1, "temperatura": 2})) is None

    assert row_count(sensor_data) == 0
    assert receiver.stats.received == 0


def test_db_failure_is_logged_and_dropped():
    session = MagicMock()
    session.execute.side_effect = OperationalError("INSERT", {}, Exception("database is locked"))
    receiver = TelemetryReceiver(lambda: session, SENSOR_TOPIC)

    result = receiver.handle(SENSOR_TOPIC, _encode({"umidade": 55.2, "temperatura": 23.1}))

    assert result is None
    session.rollback.assert_called_once()
    session.commit.assert_not_called()
    session.close.assert_called_once()
    assert receiver.stats.db_errors == 1
    assert receiver.stats.saved == 0


def test_unexpected_error_does_not_escape():
    def broken_factory():
        raise RuntimeError("pool exhausted")

    receiver = TelemetryReceiver(broken_factory, SENSOR_TOPIC)

    assert receiver.handle(SENSOR_TOPIC, _encode({"umidade": 1, "temperatura": 2})) is None
    assert receiver.stats.unexpected_errors == 1


def test_counters_add_up_per_outcome(session_factory):
    receiver = TelemetryReceiver(session_factory, SENSOR_TOPIC)

    receiver.handle(SENSOR_TOPIC, _encode({"umidade": 55.2, "temperatura": 23.1}))
    receiver.handle(SENSOR_TOPIC, b"{not json")
    receiver.handle(SENSOR_TOPIC, _encode({"umidade": 10**400, "temperatura": 23.1}))

    stats = receiver.stats.to_dict()
    assert stats["received"] == 3
    assert stats["saved"] == 1
    assert stats["rejected"] == 2
    assert stats["dropped"] == 2
    assert stats["db_errors"] == 0
    assert stats["last_received_at"] is not None
