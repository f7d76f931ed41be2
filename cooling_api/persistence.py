"""Inserciones append-only de lecturas y comandos.

El commit queda en manos del llamador (receiver o endpoint).
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy.orm import Session

from common.tables import control_commands, sensor_data

from .schemas import ControlCommandOut, ControlCommandPayload, SensorReadingOut


def _now() -> datetime:
    return datetime.now(timezone.utc)


def insert_sensor_reading(db: Session, humidity: float, temperature: float) -> SensorReadingOut:
    values = {
        "humidity": float(humidity),
        "temperature": float(temperature),
        "timestamp": _now(),
    }
    result = db.execute(sensor_data.insert().values(**values))
    return SensorReadingOut(id=int(result.inserted_primary_key[0]), **values)


def insert_control_command(db: Session, command: ControlCommandPayload) -> ControlCommandOut:
    values = {
        "mode": command.mode.value,
        "ventilador": bool(command.ventilador),
        "aspersor": bool(command.aspersor),
        "timestamp": _now(),
    }
    result = db.execute(control_commands.insert().values(**values))
    return ControlCommandOut(id=int(result.inserted_primary_key[0]), **values)
