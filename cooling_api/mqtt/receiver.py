"""Receptor de telemetría.

Flujo:
  MQTT topic coolingSystem/sensores
  → TelemetryReceiver.handle (hilo de red de paho)
  → validate_sensor_payload
  → INSERT sensor_data (una fila por mensaje válido)

Fire-and-forget: los mensajes inválidos o que fallan en BD se loguean y
se descartan. No hay reintento ni dead letter.
"""

from __future__ import annotations

import json
import logging
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..persistence import insert_sensor_reading
from ..schemas import SensorReadingOut
from ..stats import IngestStats
from .validators import validate_sensor_payload

logger = logging.getLogger(__name__)


class TelemetryReceiver:
    """Persiste cada lectura válida recibida en el topic de sensores."""

    def __init__(self, session_factory: Callable[[], Session], sensor_topic: str):
        self._session_factory = session_factory
        self.sensor_topic = sensor_topic
        self._stats = IngestStats()

    def handle(self, topic: str, payload: bytes) -> Optional[SensorReadingOut]:
        """Procesa un mensaje MQTT. Nunca lanza: corre en el hilo de red de paho."""
        if topic != self.sensor_topic:
            logger.debug("[INGEST] Ignoring message on topic=%s", topic)
            return None

        self._stats.mark_received()

        try:
            return self._process(topic, payload)
        except Exception as e:
            logger.exception("[INGEST] Processing error: %s", e)
            self._stats.unexpected_errors += 1
            return None

    def _process(self, topic: str, payload: bytes) -> Optional[SensorReadingOut]:
        try:
            data = json.loads(payload.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning("[INGEST] Invalid JSON: %s (topic=%s)", e, topic)
            self._stats.rejected += 1
            return None

        logger.debug("[INGEST] Received: topic=%s payload=%s", topic, data)

        validation = validate_sensor_payload(data)
        if not validation.valid:
            logger.warning("[INGEST] Validation failed: %s (topic=%s)", validation.error, topic)
            self._stats.rejected += 1
            return None

        reading = self._persist(validation.payload.umidade, validation.payload.temperatura)
        if reading is None:
            self._stats.db_errors += 1
            return None

        self._stats.mark_saved(reading.id)
        logger.info(
            "[INGEST] Saved reading id=%d humidity=%.2f temperature=%.2f",
            reading.id,
            reading.humidity,
            reading.temperature,
        )
        return reading

    def _persist(self, humidity: float, temperature: float) -> Optional[SensorReadingOut]:
        db = self._session_factory()
        try:
            reading = insert_sensor_reading(db, humidity, temperature)
            db.commit()
            return reading
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception("[INGEST] DB insert failed err=%s", type(e).__name__)
            return None
        finally:
            db.close()

    @property
    def stats(self) -> IngestStats:
        return self._stats
