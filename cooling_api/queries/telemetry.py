"""Queries de telemetría.

Orden: timestamp DESC, id DESC como desempate para escrituras en el mismo instante.
"""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from common.tables import sensor_data

from ..schemas import SensorReadingOut, as_utc

SENSOR_HISTORY_LIMIT = 100


def _newest_first():
    return select(sensor_data).order_by(sensor_data.c.timestamp.desc(), sensor_data.c.id.desc())


def _to_reading(row) -> SensorReadingOut:
    return SensorReadingOut(
        id=int(row.id),
        humidity=float(row.humidity),
        temperature=float(row.temperature),
        timestamp=as_utc(row.timestamp),
    )


def get_latest_sensor_reading(db: Session) -> Optional[SensorReadingOut]:
    """Obtiene la lectura más reciente, o None si no hay ninguna."""
    row = db.execute(_newest_first().limit(1)).fetchone()
    if not row:
        return None
    return _to_reading(row)


def list_sensor_readings(db: Session, limit: int = SENSOR_HISTORY_LIMIT) -> List[SensorReadingOut]:
    """Obtiene hasta `limit` lecturas, de la más reciente a la más antigua."""
    limit = max(1, min(int(limit), SENSOR_HISTORY_LIMIT))
    rows = db.execute(_newest_first().limit(limit)).fetchall()
    return [_to_reading(row) for row in rows]
