from __future__ import annotations

from typing import Any, Dict, Iterator, List, Tuple

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from common.config import CONTROL_TOPIC, SENSOR_TOPIC, Settings
from common.db import build_session_factory, ensure_schema
from cooling_api.errors import PublishError
from cooling_api.main import create_app


class FakeMQTTClient:
    """Sustituto del BridgeMQTTClient: registra publicaciones en memoria."""

    def __init__(self) -> None:
        self.published: List[Tuple[str, Dict[str, Any]]] = []
        self.handler = None
        self.started = False
        self.stopped = False
        self.fail_publish = False

    def set_message_handler(self, handler) -> None:
        self.handler = handler

    def start(self) -> bool:
        self.started = True
        return True

    def stop(self) -> None:
        self.stopped = True

    def publish(self, topic: str, message: dict) -> None:
        if self.fail_publish:
            raise PublishError(topic, "The client is not currently connected.")
        self.published.append((topic, message))

    def deliver(self, topic: str, payload: bytes):
        return self.handler(topic, payload)

    def health_check(self) -> dict:
        return {"healthy": self.started, "running": self.started, "connected": self.started}


@pytest.fixture
def settings() -> Settings:
    return Settings(
        broker_url="mqtt://broker.test:1883",
        mqtt_username=None,
        mqtt_password=None,
        mqtt_client_id="cooling-test",
        mqtt_connect_timeout=1.0,
        mqtt_qos=0,
        sensor_topic=SENSOR_TOPIC,
        control_topic=CONTROL_TOPIC,
        database_url="sqlite://",
        port=3000,
        cors_origins=("*",),
        log_level="DEBUG",
    )


@pytest.fixture
def engine() -> Iterator[Engine]:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    ensure_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def fake_mqtt() -> FakeMQTTClient:
    return FakeMQTTClient()


@pytest.fixture
def app(settings, engine, fake_mqtt):
    return create_app(settings=settings, mqtt_client=fake_mqtt, engine=engine)


@pytest.fixture
def client(app) -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def row_count(engine):
    def _count(table) -> int:
        with engine.connect() as conn:
            return conn.execute(select(func.count()).select_from(table)).scalar_one()

    return _count
