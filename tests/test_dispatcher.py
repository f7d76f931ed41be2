"""Tests del despacho de comandos."""

from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from common.config import CONTROL_TOPIC
from common.tables import control_commands
from cooling_api.dispatcher import CommandDispatcher
from cooling_api.errors import PublishError
from cooling_api.mqtt.validators import ControlRequest
from cooling_api.schemas import ControlMode
from cooling_api.state import LastCommandState


@pytest.fixture
def state() -> LastCommandState:
    return LastCommandState()


def test_state_starts_manual_with_outputs_off(state):
    current = state.get()

    assert current.mode is ControlMode.MANUAL
    assert current.ventilador is False
    assert current.aspersor is False
    assert current.updated_at is None


def test_dispatch_publishes_persists_and_tracks(fake_mqtt, session_factory, state, row_count):
    dispatcher = CommandDispatcher(fake_mqtt, CONTROL_TOPIC, state)
    request = ControlRequest(modo="automatico", ventilador=True, aspersor=False)

    db = session_factory()
    try:
        saved = dispatcher.dispatch(db, request)
    finally:
        db.close()

    assert fake_mqtt.published == [
        (CONTROL_TOPIC, {"mode": "AUTOMATIC", "ventilador": True, "aspersor": False})
    ]
    assert saved.mode is ControlMode.AUTOMATIC
    assert saved.ventilador is True
    assert saved.aspersor is False
    assert row_count(control_commands) == 1

    current = state.get()
    assert current.mode is ControlMode.AUTOMATIC
    assert current.ventilador is True
    assert current.updated_at is not None


def test_publish_failure_skips_persistence(fake_mqtt, session_factory, state, row_count):
    fake_mqtt.fail_publish = True
    dispatcher = CommandDispatcher(fake_mqtt, CONTROL_TOPIC, state)
    request = ControlRequest(modo="manual", ventilador=True, aspersor=True)

    db = session_factory()
    try:
        with pytest.raises(PublishError):
            dispatcher.dispatch(db, request)
    finally:
        db.close()

    assert row_count(control_commands) == 0
    assert state.get().updated_at is None


def test_persistence_failure_after_publish_raises(fake_mqtt, state):
    session = MagicMock()
    session.execute.side_effect = OperationalError("INSERT", {}, Exception("disk full"))
    dispatcher = CommandDispatcher(fake_mqtt, CONTROL_TOPIC, state)
    request = ControlRequest(modo="manual", ventilador=False, aspersor=True)

    with pytest.raises(OperationalError):
        dispatcher.dispatch(session, request)

    # El comando ya salió hacia el dispositivo
    assert len(fake_mqtt.published) == 1
    assert state.get().aspersor is True
    session.rollback.assert_called_once()
