"""Endpoints de telemetría."""

from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from common.db import get_db

from ..queries import get_latest_sensor_reading, list_sensor_readings
from ..schemas import SensorReadingOut
from .deps import db_failure

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sensordata", tags=["sensordata"])


@router.get("/latest", response_model=Optional[SensorReadingOut])
def get_latest(db: Session = Depends(get_db)):
    """Última lectura registrada (null si todavía no hay ninguna)."""
    try:
        return get_latest_sensor_reading(db)
    except SQLAlchemyError as e:
        raise db_failure(db, logger, "/api/sensordata/latest", e) from e


@router.get("", response_model=List[SensorReadingOut])
def get_history(db: Session = Depends(get_db)):
    """Hasta 100 lecturas, de la más reciente a la más antigua."""
    try:
        return list_sensor_readings(db)
    except SQLAlchemyError as e:
        raise db_failure(db, logger, "/api/sensordata", e) from e
